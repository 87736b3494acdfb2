"""Retrieval layer: embedding store, reranker and workspace lookups."""

from .base import EmbeddingStore, Reranker
from .reranker import CrossEncoderReranker
from .retriever import (
    RetrievalOutcome,
    Retriever,
    filter_by_threshold,
    safe_score,
    sanitize_workspace_name,
)
from .store import InMemoryEmbeddingStore, OpenAIEmbedder

__all__ = [
    "EmbeddingStore",
    "Reranker",
    "CrossEncoderReranker",
    "InMemoryEmbeddingStore",
    "OpenAIEmbedder",
    "Retriever",
    "RetrievalOutcome",
    "filter_by_threshold",
    "safe_score",
    "sanitize_workspace_name",
]
