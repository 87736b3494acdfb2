"""
Capability-driven policy helpers.

All decisions about how a request is shaped for a provider flow through these
helpers rather than checks on provider or model names.
"""

from typing import Any, Dict, List

from ...models.generation import ProviderConfig
from .models import ProviderCapabilities, get_provider_capabilities


def supports_streaming(config: ProviderConfig) -> bool:
    """
    Determine whether the configured provider/model can stream.

    An explicit ``supports_streaming`` on the config wins. Otherwise the
    capability table decides: a list means only those models stream, a bool
    applies to the whole provider.

    Args:
        config: Active provider configuration

    Returns:
        True if the streaming path may be used
    """
    if config.supports_streaming is not None:
        return config.supports_streaming

    capability = get_provider_capabilities(config.provider_kind).supports_streaming
    if isinstance(capability, list):
        return config.model_name in capability
    return bool(capability)


def should_use_streaming(config: ProviderConfig, prefer_streaming: bool = True) -> bool:
    """
    Pick the streaming or blocking path for a completion.

    Providers that cannot stream always use the blocking path, whatever the
    global preference says.
    """
    return prefer_streaming and supports_streaming(config)


def prepare_blocking_messages(
    messages: List[Dict[str, Any]],
    capabilities: ProviderCapabilities
) -> List[Dict[str, Any]]:
    """
    Drop system turns for providers that reject them on the blocking path.

    Args:
        messages: Provider-format messages
        capabilities: Capabilities of the target provider

    Returns:
        Messages safe to send in a non-streaming request
    """
    if capabilities.supports_system_message:
        return list(messages)
    return [m for m in messages if m.get("role") != "system"]
