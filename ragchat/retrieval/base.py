"""
Retrieval collaborator interfaces.

The orchestrator only reads from an embedding store and asks a reranker for
scores; how either one is built or indexed is outside the chat flow.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..models.context import Document


class EmbeddingStore(ABC):
    """Nearest-neighbour search over named tables of embedded documents."""

    @abstractmethod
    async def embed(self, text: str) -> Optional[List[float]]:
        """Embed a query, or return None if no embedding model is available."""
        pass

    @abstractmethod
    async def has_table(self, name: str) -> bool:
        pass

    @abstractmethod
    async def search(
        self,
        vector: Sequence[float],
        k: int,
        table: str,
        file_filter: Optional[Sequence[str]] = None
    ) -> List[Document]:
        """
        Return up to ``k`` documents closest to ``vector``.

        Args:
            vector: Query embedding
            k: Maximum number of documents
            table: Table name; a missing table yields an empty list
            file_filter: Restrict results to documents from these paths

        Returns:
            Documents ordered from most to least similar
        """
        pass


class Reranker(ABC):
    """Scores (query, candidate) pairs."""

    @abstractmethod
    async def score(self, query: str, candidates: Sequence[str]) -> Optional[List[float]]:
        """
        Score every candidate against the query.

        Returns:
            One score per candidate in the same order, or None on failure
        """
        pass
