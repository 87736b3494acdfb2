"""
ragchat - Retrieval-augmented, cancellable chat completions for code editors.

This package turns a chat turn typed in an editor into a provider call:

- Directives (``@workspace``, ``@problems``) pull in workspace context
- Relevant files and code are found by embedding search plus reranking
- Conversations are built with a templated system prompt
- Completions stream to a UI boundary and can be aborted mid-flight

Supported providers:
- OpenAI and OpenAI-compatible servers (Ollama, Groq, Mistral, DeepSeek, ...)
- Anthropic (Claude models)
"""

__version__ = "0.1.0"

from .config.settings import ChatSettings
from .context.assembler import ContextAssembler
from .conversation.builder import ConversationBuilder, EnvironmentFacts
from .core.routing import EnvProviderManager, ProviderManager, StaticProviderManager
from .errors import ConfigurationError, RagChatError, RetrievalError, TemplateError
from .models.context import Diagnostic, LanguageDetails
from .models.conversation_types import ChatMessage, ContextItem, Role
from .models.events import EventType, ServerMessage
from .models.generation import ProviderConfig, ProviderKind
from .orchestration import (
    Boundary,
    CallbackBoundary,
    ChatOrchestrator,
    NullBoundary,
    QueueBoundary,
    StaticEditorContext,
)
from .providers.base import ProviderError
from .streaming.cancellation import CancellationToken
from .streaming.driver import CompletionDriver
from .templates.provider import TemplateProvider

__all__ = [
    # Orchestrator
    "ChatOrchestrator",
    "CompletionDriver",
    "CancellationToken",

    # Boundaries and editor
    "Boundary",
    "CallbackBoundary",
    "NullBoundary",
    "QueueBoundary",
    "StaticEditorContext",

    # Building blocks
    "ContextAssembler",
    "ConversationBuilder",
    "EnvironmentFacts",
    "TemplateProvider",

    # Providers
    "ProviderManager",
    "StaticProviderManager",
    "EnvProviderManager",
    "ProviderConfig",
    "ProviderKind",

    # Models
    "ChatMessage",
    "ContextItem",
    "Diagnostic",
    "LanguageDetails",
    "Role",
    "EventType",
    "ServerMessage",
    "ChatSettings",

    # Errors
    "RagChatError",
    "ConfigurationError",
    "RetrievalError",
    "TemplateError",
    "ProviderError",
]
