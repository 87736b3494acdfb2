"""Data models for ragchat."""

from .context import AssembledContext, Diagnostic, Document, LanguageDetails, RetrievalResult, ScoredItem
from .conversation_types import (
    ChatMessage,
    ContentPart,
    ContextItem,
    Conversation,
    ImagePart,
    ImageReference,
    ImageUrl,
    Role,
    TextPart,
)
from .events import EventType, ServerMessage
from .generation import ProviderConfig, ProviderKind

__all__ = [
    # Conversation models
    "ChatMessage",
    "ContentPart",
    "ContextItem",
    "Conversation",
    "ImagePart",
    "ImageReference",
    "ImageUrl",
    "Role",
    "TextPart",

    # Context models
    "AssembledContext",
    "Diagnostic",
    "Document",
    "LanguageDetails",
    "RetrievalResult",
    "ScoredItem",

    # Events
    "EventType",
    "ServerMessage",

    # Provider models
    "ProviderConfig",
    "ProviderKind",
]
