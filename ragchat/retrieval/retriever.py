"""
Workspace retrieval: relevant file paths and relevant code chunks.

Both lookups share one query embedding. Results are scored by the reranker
and only items scoring strictly above the threshold survive.
"""

import os
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple

from ..config.constants import DOCUMENTS_TABLE_SUFFIX, FILE_PATHS_TABLE_SUFFIX
from ..config.settings import ChatSettings
from ..errors import RetrievalError
from ..models.context import Document, RetrievalResult, ScoredItem
from ..observability.logging import ChatLogger
from .base import EmbeddingStore, Reranker

logger = ChatLogger("retriever")


def sanitize_workspace_name(name: Optional[str]) -> str:
    """Table-safe workspace name: every non-alphanumeric becomes ``_``."""
    if not name:
        return ""
    return re.sub(r"[^A-Za-z0-9]", "_", name)


def filter_by_threshold(items: RetrievalResult, threshold: float) -> RetrievalResult:
    """Keep items scoring strictly above ``threshold``, in their original order."""
    return [item for item in items if item.score > threshold]


async def safe_score(reranker: Reranker, query: str, candidates: Sequence[str]) -> Optional[List[float]]:
    """
    Score candidates, treating any malformed outcome as unscored.

    Returns:
        One float per candidate, or None when the reranker raised, returned
        None, or returned the wrong number of scores
    """
    try:
        scores = await reranker.score(query, candidates)
    except Exception as e:
        logger.warning("Reranker raised, discarding batch", candidates=len(candidates), error=e)
        return None

    if scores is None:
        return None
    if len(scores) != len(candidates):
        logger.warning("Reranker returned wrong number of scores",
                       candidates=len(candidates), scores=len(scores))
        return None
    return [float(s) for s in scores]


@dataclass
class RetrievalOutcome:
    """What one workspace lookup produced."""
    files: RetrievalResult = field(default_factory=list)
    code: List[str] = field(default_factory=list)
    embedding_computed: bool = False


class Retriever:
    """Stateless lookups against a workspace's file-path and document tables."""

    def __init__(
        self,
        store: EmbeddingStore,
        reranker: Reranker,
        workspace_name: Optional[str],
        settings: Optional[ChatSettings] = None
    ):
        self.store = store
        self.reranker = reranker
        self.workspace_name = sanitize_workspace_name(workspace_name)
        self.settings = settings or ChatSettings()

    def table_name(self, suffix: str) -> str:
        return f"{self.workspace_name}-{suffix}"

    async def retrieve(self, query: str) -> RetrievalOutcome:
        """
        Find relevant files and code for a query.

        The query embedding is computed at most once, and only if one of the
        tables exists.

        Raises:
            RetrievalError: If the store fails
        """
        outcome = RetrievalOutcome()
        if not query or not self.workspace_name:
            return outcome

        embedding: Optional[List[float]] = None

        async def get_embedding() -> Optional[List[float]]:
            nonlocal embedding
            if not outcome.embedding_computed:
                outcome.embedding_computed = True
                try:
                    embedding = await self.store.embed(query)
                except Exception as e:
                    raise RetrievalError("embed", e)
            return embedding

        scored_files = await self._relevant_files(query, get_embedding)
        outcome.files = filter_by_threshold(scored_files, self.settings.rerank_threshold)
        outcome.code = await self._relevant_code(query, get_embedding, scored_files)

        logger.debug(
            "Retrieved workspace context",
            workspace=self.workspace_name,
            candidate_files=len(scored_files),
            files=len(outcome.files),
            chunks=len(outcome.code)
        )
        return outcome

    async def _has_table(self, table: str) -> bool:
        try:
            return await self.store.has_table(table)
        except Exception as e:
            raise RetrievalError("has_table", e)

    async def _search(self, vector, k: int, table: str, file_filter=None) -> List[Document]:
        try:
            return await self.store.search(vector, k, table, file_filter) or []
        except Exception as e:
            raise RetrievalError("search", e)

    async def _relevant_files(self, query: str, get_embedding) -> RetrievalResult:
        table = self.table_name(FILE_PATHS_TABLE_SUFFIX)
        if not await self._has_table(table):
            return []

        embedding = await get_embedding()
        if embedding is None or len(embedding) == 0:
            return []

        documents = await self._search(embedding, self.settings.relevant_file_count, table)
        file_paths = [doc.content for doc in documents if doc.content]
        if not file_paths:
            return []

        # Paths are scored by basename, which is what users name in questions
        scores = await safe_score(self.reranker, query, [os.path.basename(p) for p in file_paths])
        if scores is None:
            return []
        return [ScoredItem(path, score) for path, score in zip(file_paths, scores)]

    async def _relevant_code(self, query: str, get_embedding, relevant_files: RetrievalResult) -> List[str]:
        table = self.table_name(DOCUMENTS_TABLE_SUFFIX)
        if not await self._has_table(table):
            return []

        embedding = await get_embedding()
        if embedding is None or len(embedding) == 0:
            return []

        per_query = (self.settings.relevant_code_count + 1) // 2
        file_filter = [item.identifier for item in relevant_files] or None

        unscoped = await self._search(embedding, per_query, table)
        scoped = await self._search(embedding, per_query, table, file_filter) if file_filter else []

        documents: List[Document] = []
        seen: Set[Tuple[str, str]] = set()
        for doc in unscoped + scoped:
            key = (doc.path, doc.content)
            if key in seen:
                continue
            seen.add(key)
            documents.append(doc)

        if not documents:
            return []

        scores = await safe_score(self.reranker, query, [(doc.content or "").strip() for doc in documents])
        if scores is None:
            return []

        scored = [ScoredItem(doc.content, score) for doc, score in zip(documents, scores)]
        return [item.identifier for item in filter_by_threshold(scored, self.settings.rerank_threshold)
                if item.identifier]
