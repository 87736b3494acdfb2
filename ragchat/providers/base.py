"""
Provider transport interface.

A transport sends OpenAI-style message dicts to one family of chat APIs and
returns text (blocking) or StreamDelta objects (streaming). Conversation
building, capability checks and cancellation stay in the completion driver.
"""

import inspect
from abc import ABC, abstractmethod
from typing import Any, AsyncGenerator, Dict, List, Optional

from ..models.generation import ProviderConfig
from ..streaming.types import StreamDelta


class ProviderAdapter(ABC):
    """
    Abstract base class for provider transports.

    Implementations must:
    - map every SDK or transport failure to ProviderError
    - close the SDK stream when ``generate_stream`` is closed or cancelled
      early, so an aborted generation releases its HTTP connection
    """

    # Chunk shape read by StreamAdapter ("openai", "anthropic")
    wire_format: str = "plain"

    @abstractmethod
    async def generate(
        self,
        messages: List[Dict[str, Any]],
        config: ProviderConfig
    ) -> str:
        """
        Run a blocking completion.

        Args:
            messages: OpenAI-style message dicts
            config: Active provider configuration

        Returns:
            The reply text, "" when the provider returned none

        Raises:
            ProviderError: For transport and API errors
        """
        pass

    @abstractmethod
    def generate_stream(
        self,
        messages: List[Dict[str, Any]],
        config: ProviderConfig
    ) -> AsyncGenerator[StreamDelta, None]:
        """
        Run a streaming completion, yielding non-empty deltas as they arrive.

        Raises:
            ProviderError: For transport and API errors, including a stream
                that breaks part way through
        """
        pass

    @abstractmethod
    def is_available(self, config: ProviderConfig) -> bool:
        """Whether ``config`` has what a call needs (base URL, API key) without contacting the API."""
        pass


async def close_stream(stream: Any):
    """Close an SDK stream (``close``) or a plain async generator (``aclose``)."""
    close = getattr(stream, "close", None) or getattr(stream, "aclose", None)
    if close is None:
        return
    result = close()
    if inspect.isawaitable(result):
        await result


class ProviderError(Exception):
    """
    A failed provider call, with a message fit for the chat.

    Attributes:
        message: User-facing text, ``"<provider> API error: <what went wrong>"``
        provider: Provider name
        status_code: HTTP status code, when there was a response
        retry_after: Seconds the provider asked callers to wait
        category: Failure kind (``rate_limit``, ``timeout``, ...), set by ErrorMapper
        is_retryable: Whether trying again later could succeed
        original_error: The SDK or transport exception that was wrapped
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after
        self.category: Optional[str] = None
        self.is_retryable = False
        self.original_error: Optional[Exception] = None
