from typing import Dict, Optional

from ..config.providers import get_provider_entry
from ..models.generation import ProviderConfig
from .anthropic.adapter import AnthropicProvider
from .base import ProviderAdapter
from .openai.adapter import OpenAICompatibleProvider


class ProviderRegistry:
    """Hands out one transport per wire format, reused across calls."""

    def __init__(self, timeout: Optional[float] = None):
        self._timeout = timeout
        self._adapters: Dict[str, ProviderAdapter] = {}

    def get_adapter(self, config: ProviderConfig) -> ProviderAdapter:
        """Get the transport for a provider configuration."""
        transport = get_provider_entry(config.provider_kind).transport
        if transport not in self._adapters:
            if transport == "anthropic":
                self._adapters[transport] = AnthropicProvider(timeout=self._timeout)
            else:
                self._adapters[transport] = OpenAICompatibleProvider(timeout=self._timeout)
        return self._adapters[transport]

    def register(self, transport: str, adapter: ProviderAdapter):
        """Install a custom transport for a wire format."""
        self._adapters[transport] = adapter


_default_registries: Dict[Optional[float], ProviderRegistry] = {}


def get_provider_adapter(config: ProviderConfig, timeout: Optional[float] = None) -> ProviderAdapter:
    """Get a shared transport for a provider configuration."""
    if timeout not in _default_registries:
        _default_registries[timeout] = ProviderRegistry(timeout=timeout)
    return _default_registries[timeout].get_adapter(config)
