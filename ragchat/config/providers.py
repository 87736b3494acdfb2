# Provider catalogue: default endpoints and credentials per provider kind
from typing import Dict, Optional

from pydantic import BaseModel

from ..models.generation import ProviderKind


class ProviderEntry(BaseModel):
    """Static facts about a provider kind."""
    display_name: str
    default_base_url: Optional[str] = None
    api_key_env: Optional[str] = None
    transport: str = "openai"  # "openai" (OpenAI-compatible) or "anthropic"
    requires_api_key: bool = True


PROVIDER_CATALOGUE: Dict[ProviderKind, ProviderEntry] = {
    ProviderKind.OPENAI: ProviderEntry(
        display_name="OpenAI",
        default_base_url="https://api.openai.com/v1",
        api_key_env="OPENAI_API_KEY",
    ),
    ProviderKind.ANTHROPIC: ProviderEntry(
        display_name="Anthropic",
        default_base_url="https://api.anthropic.com",
        api_key_env="ANTHROPIC_API_KEY",
        transport="anthropic",
    ),
    ProviderKind.OLLAMA: ProviderEntry(
        display_name="Ollama",
        default_base_url="http://localhost:11434/v1",
        requires_api_key=False,
    ),
    ProviderKind.GROQ: ProviderEntry(
        display_name="Groq",
        default_base_url="https://api.groq.com/openai/v1",
        api_key_env="GROQ_API_KEY",
    ),
    ProviderKind.MISTRAL: ProviderEntry(
        display_name="Mistral",
        default_base_url="https://api.mistral.ai/v1",
        api_key_env="MISTRAL_API_KEY",
    ),
    ProviderKind.DEEPSEEK: ProviderEntry(
        display_name="DeepSeek",
        default_base_url="https://api.deepseek.com/v1",
        api_key_env="DEEPSEEK_API_KEY",
    ),
    ProviderKind.OPENROUTER: ProviderEntry(
        display_name="OpenRouter",
        default_base_url="https://openrouter.ai/api/v1",
        api_key_env="OPENROUTER_API_KEY",
    ),
    ProviderKind.LMSTUDIO: ProviderEntry(
        display_name="LM Studio",
        default_base_url="http://localhost:1234/v1",
        requires_api_key=False,
    ),
    ProviderKind.LLAMACPP: ProviderEntry(
        display_name="llama.cpp",
        default_base_url="http://localhost:8080/v1",
        requires_api_key=False,
    ),
    ProviderKind.LITELLM: ProviderEntry(
        display_name="LiteLLM",
        default_base_url="http://localhost:4000/v1",
        api_key_env="LITELLM_API_KEY",
        requires_api_key=False,
    ),
    ProviderKind.OPENAI_COMPATIBLE: ProviderEntry(
        display_name="OpenAI compatible",
        requires_api_key=False,
    ),
}


def get_provider_entry(kind: ProviderKind) -> ProviderEntry:
    """Get the catalogue entry for a provider kind."""
    return PROVIDER_CATALOGUE.get(kind, PROVIDER_CATALOGUE[ProviderKind.OPENAI_COMPATIBLE])
