from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import os

from ...config.providers import get_provider_entry
from ...models.generation import ProviderConfig, ProviderKind
from ..capabilities.models import ProviderCapabilities, get_provider_capabilities


class ProviderManager(ABC):
    """Source of the active provider configuration.

    Implementations are external collaborators: an editor settings store, a
    web session, environment variables. Configurations are read fresh for each
    completion call and never persisted by the orchestrator.
    """

    @abstractmethod
    def get_active_provider(self) -> Optional[ProviderConfig]:
        """Return the provider to use for the next call, or None."""
        pass


class StaticProviderManager(ProviderManager):
    """In-memory provider list with one active entry."""

    def __init__(self, providers: Optional[List[ProviderConfig]] = None, active: int = 0):
        self._providers = list(providers or [])
        self._active = active

    @property
    def providers(self) -> List[ProviderConfig]:
        return list(self._providers)

    def add_provider(self, config: ProviderConfig, make_active: bool = False):
        self._providers.append(config)
        if make_active:
            self._active = len(self._providers) - 1

    def set_active(self, index: int):
        if not 0 <= index < len(self._providers):
            raise IndexError(f"No provider at index {index}")
        self._active = index

    def get_active_provider(self) -> Optional[ProviderConfig]:
        if not self._providers:
            return None
        return self._providers[self._active]


class EnvProviderManager(ProviderManager):
    """Reads the active provider from RAGCHAT_* environment variables on every call."""

    def get_active_provider(self) -> Optional[ProviderConfig]:
        return ProviderConfig.from_env()


def resolve_base_url(config: ProviderConfig) -> Optional[str]:
    """Explicit base URL, or the catalogue default for the provider kind."""
    return config.base_url or get_provider_entry(config.provider_kind).default_base_url


def resolve_api_key(config: ProviderConfig) -> Optional[str]:
    """Explicit API key, or the provider's conventional environment variable."""
    if config.api_key:
        return config.api_key
    entry = get_provider_entry(config.provider_kind)
    if entry.api_key_env:
        return os.getenv(entry.api_key_env)
    return None


def check_lightweight_availability(config: ProviderConfig) -> bool:
    """Lightweight availability check without contacting the provider."""
    entry = get_provider_entry(config.provider_kind)
    if not resolve_base_url(config):
        return False
    if entry.requires_api_key and not resolve_api_key(config):
        return False
    return True


def get_capability_table() -> Dict[str, ProviderCapabilities]:
    """Capabilities keyed by provider kind value, for listing."""
    return {kind.value: get_provider_capabilities(kind) for kind in ProviderKind}
