"""Provider selection."""

from .selector import (
    EnvProviderManager,
    ProviderManager,
    StaticProviderManager,
    check_lightweight_availability,
    get_capability_table,
    resolve_api_key,
    resolve_base_url,
)

__all__ = [
    "ProviderManager",
    "StaticProviderManager",
    "EnvProviderManager",
    "check_lightweight_availability",
    "get_capability_table",
    "resolve_api_key",
    "resolve_base_url",
]
