"""Capability registry and policy layer.

This layer handles:
- Provider capability definitions and lookup
- Streaming path selection
"""

from .models import (
    DEFAULT_CAPABILITIES,
    PROVIDER_CAPABILITIES,
    ProviderCapabilities,
    get_provider_capabilities,
)
from .policy import prepare_blocking_messages, should_use_streaming, supports_streaming

__all__ = [
    "ProviderCapabilities",
    "DEFAULT_CAPABILITIES",
    "PROVIDER_CAPABILITIES",
    "get_provider_capabilities",
    # Policy helpers
    "supports_streaming",
    "should_use_streaming",
    "prepare_blocking_messages",
]
