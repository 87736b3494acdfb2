import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_RELEVANT_CODE_COUNT,
    DEFAULT_RELEVANT_FILE_COUNT,
    DEFAULT_RERANK_THRESHOLD,
    ENV_PREFIX,
)


class ChatSettings(BaseModel):
    """Tunable behaviour of the chat orchestrator."""

    rerank_threshold: float = Field(
        default=DEFAULT_RERANK_THRESHOLD,
        description="Retrieved items must score strictly above this to be included"
    )
    relevant_file_count: int = Field(default=DEFAULT_RELEVANT_FILE_COUNT, ge=1)
    relevant_code_count: int = Field(default=DEFAULT_RELEVANT_CODE_COUNT, ge=1)
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, ge=0, description="Per-file byte ceiling")
    template_dir: Optional[str] = Field(None, description="Directory overriding the built-in templates")
    streaming: bool = Field(default=True, description="Global streaming preference")
    request_timeout: Optional[float] = Field(None, gt=0, description="Provider client timeout in seconds")

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "ChatSettings":
        """Load settings from RAGCHAT_* environment variables.

        Args:
            load_env_file: Whether to read a .env file first

        Returns:
            ChatSettings with defaults for every unset variable
        """
        if load_env_file:
            load_dotenv()

        values = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is None or raw == "":
                continue
            if name == "streaming":
                values[name] = raw.strip().lower() in ("1", "true", "yes", "on")
            else:
                values[name] = raw
        return cls(**values)
