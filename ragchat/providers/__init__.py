"""
Provider Adapters Layer

This layer contains the upstream model transports. Each adapter translates
between OpenAI-style messages and the provider's specific API requirements.
"""

from .base import ProviderAdapter, ProviderError
from .errors import ErrorMapper
from .openai.adapter import OpenAICompatibleProvider
from .anthropic.adapter import AnthropicProvider
from .registry import ProviderRegistry, get_provider_adapter

__all__ = [
    "ProviderAdapter",
    "ProviderError",
    "ErrorMapper",
    "OpenAICompatibleProvider",
    "AnthropicProvider",
    "ProviderRegistry",
    "get_provider_adapter",
]
