"""In-memory vector store with cosine similarity search."""

from typing import Dict, List, Optional, Sequence

import numpy as np
from openai import AsyncOpenAI

from ..models.context import Document
from ..observability.logging import ChatLogger
from .base import EmbeddingStore

logger = ChatLogger("store")


class OpenAIEmbedder:
    """Embeddings through any OpenAI-compatible ``/embeddings`` endpoint."""

    def __init__(
        self,
        model: str,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.model = model
        kwargs = {"base_url": base_url, "api_key": api_key or "not-needed"}
        if timeout is not None:
            kwargs["timeout"] = timeout
        self._client = AsyncOpenAI(**kwargs)

    async def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        response = await self._client.embeddings.create(model=self.model, input=list(texts))
        return [item.embedding for item in sorted(response.data, key=lambda d: d.index)]


class _Table:
    def __init__(self, dim: int):
        self.vectors = np.empty((0, dim), dtype=np.float32)
        self.documents: List[Document] = []


class InMemoryEmbeddingStore(EmbeddingStore):
    """
    Named tables of documents searched by cosine similarity.

    Vectors are normalized on insert so a search is one matrix product.
    """

    def __init__(self, embedder: Optional[OpenAIEmbedder] = None):
        """Initialize the store.

        Args:
            embedder: Computes embeddings for queries and for documents added
                without precomputed vectors
        """
        self.embedder = embedder
        self._tables: Dict[str, _Table] = {}

    @staticmethod
    def _normalize(vectors: np.ndarray) -> np.ndarray:
        norms = np.linalg.norm(vectors, axis=-1, keepdims=True)
        norms[norms == 0] = 1.0
        return vectors / norms

    async def add_documents(
        self,
        table: str,
        documents: Sequence[Document],
        vectors: Optional[Sequence[Sequence[float]]] = None
    ):
        """Add documents to a table, creating it on first use.

        Args:
            table: Table name
            documents: Documents to store
            vectors: Precomputed embeddings; computed with the embedder when omitted

        Raises:
            ValueError: If no vectors are given and there is no embedder, or
                the vector count does not match
        """
        if not documents:
            return
        if vectors is None:
            if self.embedder is None:
                raise ValueError("No embedder configured and no vectors given")
            vectors = await self.embedder.embed_many([d.content for d in documents])
        if len(vectors) != len(documents):
            raise ValueError(f"Got {len(vectors)} vectors for {len(documents)} documents")

        matrix = self._normalize(np.asarray(vectors, dtype=np.float32))
        entry = self._tables.get(table)
        if entry is None:
            entry = self._tables[table] = _Table(matrix.shape[1])
        entry.vectors = np.vstack([entry.vectors, matrix])
        entry.documents.extend(documents)
        logger.debug("Added documents", table=table, count=len(documents), total=len(entry.documents))

    async def embed(self, text: str) -> Optional[List[float]]:
        if self.embedder is None or not text:
            return None
        vectors = await self.embedder.embed_many([text])
        return vectors[0] if vectors else None

    async def has_table(self, name: str) -> bool:
        return name in self._tables

    async def search(
        self,
        vector: Sequence[float],
        k: int,
        table: str,
        file_filter: Optional[Sequence[str]] = None
    ) -> List[Document]:
        entry = self._tables.get(table)
        if entry is None or k <= 0 or not entry.documents:
            return []

        query = self._normalize(np.asarray(vector, dtype=np.float32))
        similarities = entry.vectors @ query

        candidates = np.arange(len(entry.documents))
        if file_filter is not None:
            allowed = set(file_filter)
            candidates = np.array(
                [i for i in candidates if entry.documents[i].path in allowed],
                dtype=np.int64
            )
            if candidates.size == 0:
                return []

        order = candidates[np.argsort(-similarities[candidates], kind="stable")]
        return [entry.documents[i] for i in order[:k]]
