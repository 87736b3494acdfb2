import os
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProviderKind(str, Enum):
    """Supported upstream providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"
    GROQ = "groq"
    MISTRAL = "mistral"
    DEEPSEEK = "deepseek"
    OPENROUTER = "openrouter"
    LMSTUDIO = "lmstudio"
    LLAMACPP = "llamacpp"
    LITELLM = "litellm"
    OPENAI_COMPATIBLE = "openai-compatible"


class ProviderConfig(BaseModel):
    """
    Upstream model configuration for one completion call.

    Supplied by an external provider manager and never persisted by the
    orchestrator. Instances are frozen so a configuration cannot change while
    a call that captured it is still running.
    """
    model_config = ConfigDict(frozen=True)

    provider_kind: ProviderKind = Field(..., description="Which upstream API family to talk to")
    model_name: str = Field(..., description="Model identifier sent upstream")
    base_url: Optional[str] = Field(None, description="API base URL; catalogue default when omitted")
    api_key: Optional[str] = Field(None, description="API key; environment default when omitted")
    supports_streaming: Optional[bool] = Field(
        None,
        description="Explicit streaming override; capability table decides when None"
    )

    @classmethod
    def from_env(cls) -> Optional["ProviderConfig"]:
        """Build a provider configuration from RAGCHAT_* environment variables.

        Returns:
            ProviderConfig, or None when no provider/model is configured
        """
        from ..config.providers import get_provider_entry

        kind = os.getenv("RAGCHAT_PROVIDER")
        model = os.getenv("RAGCHAT_MODEL")
        if not kind or not model:
            return None

        provider_kind = ProviderKind(kind.lower())
        entry = get_provider_entry(provider_kind)
        api_key = os.getenv("RAGCHAT_API_KEY")
        if not api_key and entry.api_key_env:
            api_key = os.getenv(entry.api_key_env)

        return cls(
            provider_kind=provider_kind,
            model_name=model,
            base_url=os.getenv("RAGCHAT_BASE_URL") or None,
            api_key=api_key,
        )
