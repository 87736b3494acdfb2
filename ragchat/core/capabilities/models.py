"""
Provider capability models for feature detection and configuration.

Defines what features each provider kind supports so the driver can pick the
streaming or blocking path without hardcoded conditionals.
"""

from typing import Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field

from ...models.generation import ProviderKind


class ProviderCapabilities(BaseModel):
    """Capabilities supported by a provider kind."""
    model_config = ConfigDict(extra="forbid")

    supports_streaming: Union[bool, List[str]] = Field(
        True,
        description="True/False for the whole provider, or the models that stream"
    )
    supports_system_message: bool = Field(True, description="Supports system role in messages")
    supports_image_inputs: bool = Field(False, description="Supports image content parts")
    streaming_delta_format: str = Field("openai", description="Shape of streaming chunks: openai or anthropic")


# Default capabilities for unknown providers
DEFAULT_CAPABILITIES = ProviderCapabilities(
    supports_streaming=True,
    supports_system_message=True,
    supports_image_inputs=False,
    streaming_delta_format="openai"
)


# OpenAI models that stream; anything else (e.g. o1) takes the blocking path
OPENAI_STREAMING_MODELS: List[str] = [
    "gpt-4o",
    "gpt-4o-mini",
    "gpt-4-turbo",
    "gpt-4",
    "gpt-4.1",
    "gpt-4.1-mini",
    "gpt-4.1-nano",
    "gpt-3.5-turbo",
    "o3-mini",
    "o4-mini",
]


PROVIDER_CAPABILITIES: Dict[ProviderKind, ProviderCapabilities] = {
    ProviderKind.OPENAI: ProviderCapabilities(
        supports_streaming=OPENAI_STREAMING_MODELS,
        supports_system_message=True,
        supports_image_inputs=True,
    ),

    ProviderKind.ANTHROPIC: ProviderCapabilities(
        supports_streaming=True,
        supports_system_message=True,
        supports_image_inputs=True,
        streaming_delta_format="anthropic"
    ),

    ProviderKind.OLLAMA: ProviderCapabilities(
        supports_streaming=True,
        supports_image_inputs=True,
    ),

    ProviderKind.GROQ: ProviderCapabilities(supports_streaming=True),

    ProviderKind.MISTRAL: ProviderCapabilities(supports_streaming=True),

    ProviderKind.DEEPSEEK: ProviderCapabilities(
        supports_streaming=["deepseek-chat", "deepseek-reasoner", "deepseek-coder"],
    ),

    ProviderKind.OPENROUTER: ProviderCapabilities(
        supports_streaming=True,
        supports_image_inputs=True,
    ),

    ProviderKind.LMSTUDIO: ProviderCapabilities(supports_streaming=True),

    ProviderKind.LLAMACPP: ProviderCapabilities(
        supports_streaming=True,
        # Many llama.cpp chat templates reject a system turn
        supports_system_message=False,
    ),

    ProviderKind.LITELLM: ProviderCapabilities(supports_streaming=True),

    ProviderKind.OPENAI_COMPATIBLE: ProviderCapabilities(supports_streaming=True),
}


def get_provider_capabilities(kind: ProviderKind) -> ProviderCapabilities:
    """Get capabilities for a provider kind, with fallback to defaults."""
    return PROVIDER_CAPABILITIES.get(kind, DEFAULT_CAPABILITIES)
