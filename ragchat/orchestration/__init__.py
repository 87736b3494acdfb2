"""Orchestration layer: the chat orchestrator and its UI and editor seams."""

from .boundary import Boundary, CallbackBoundary, NullBoundary, QueueBoundary
from .chat import ChatOrchestrator
from .editor import EditorContext, StaticEditorContext, language_from_path

__all__ = [
    "ChatOrchestrator",
    "Boundary",
    "CallbackBoundary",
    "NullBoundary",
    "QueueBoundary",
    "EditorContext",
    "StaticEditorContext",
    "language_from_path",
]
