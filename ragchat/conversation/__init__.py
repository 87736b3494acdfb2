"""Conversation layer: message sanitising and conversation building."""

from .builder import ConversationBuilder, EnvironmentFacts, normalize_message
from .sanitizer import html_to_text, is_editor_markup, sanitize_text

__all__ = [
    "ConversationBuilder",
    "EnvironmentFacts",
    "normalize_message",
    "html_to_text",
    "is_editor_markup",
    "sanitize_text",
]
