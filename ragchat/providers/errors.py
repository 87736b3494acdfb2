"""
Error mapping for provider transports.

SDK and httpx exceptions become ProviderError with a short message that is
safe to show in the chat, e.g. ``"openai API error: rate limit exceeded"``.
Failures are never retried here; ``is_retryable`` and ``retry_after`` are
informational for callers and logs.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import anthropic
import httpx
import openai

from .base import ProviderError


@dataclass(frozen=True)
class ErrorRule:
    """Recognises one kind of failure by exception type or HTTP status."""
    category: str
    description: str
    types: Tuple[type, ...] = ()
    status_code: Optional[int] = None
    retryable: bool = False

    def matches(self, error: Exception, status_code: Optional[int]) -> bool:
        if self.types and isinstance(error, self.types):
            return True
        return self.status_code is not None and status_code == self.status_code


# First match wins; SDK timeout errors subclass their connection errors
ERROR_RULES: Tuple[ErrorRule, ...] = (
    ErrorRule("authentication", "authentication failed, check the API key",
              (openai.AuthenticationError, anthropic.AuthenticationError), 401),
    ErrorRule("permission", "permission denied for this model",
              (openai.PermissionDeniedError, anthropic.PermissionDeniedError), 403),
    ErrorRule("not_found", "model or endpoint not found",
              (openai.NotFoundError, anthropic.NotFoundError), 404),
    ErrorRule("rate_limit", "rate limit exceeded",
              (openai.RateLimitError, anthropic.RateLimitError), 429, retryable=True),
    ErrorRule("timeout", "request timed out",
              (openai.APITimeoutError, anthropic.APITimeoutError, httpx.TimeoutException), retryable=True),
    ErrorRule("network", "could not connect to the provider",
              (openai.APIConnectionError, anthropic.APIConnectionError, httpx.ConnectError), retryable=True),
)

RATE_LIMIT_PHRASES = ('rate limit', 'too many requests', 'quota exceeded', 'too_many_requests')


def _status_code(error: Exception) -> Optional[int]:
    status_code = getattr(error, 'status_code', None)
    if status_code is None and isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
    return status_code


def _raw_message(error: Exception) -> str:
    return getattr(error, 'message', None) or str(error) or type(error).__name__


class ErrorMapper:
    """Maps SDK and transport errors to ProviderError."""

    @staticmethod
    def classify(error: Exception) -> Tuple[str, str, bool]:
        """
        Work out what went wrong.

        Returns:
            ``(category, description, retryable)``
        """
        status_code = _status_code(error)
        for rule in ERROR_RULES:
            if rule.matches(error, status_code):
                return rule.category, rule.description, rule.retryable

        if status_code is not None and status_code >= 500:
            return "server_error", f"provider server error ({status_code})", True
        if status_code is not None and status_code >= 400:
            return "client_error", _raw_message(error), False

        message = _raw_message(error)
        rate_limited = any(phrase in message.lower() for phrase in RATE_LIMIT_PHRASES)
        return ("rate_limit" if rate_limited else "unknown"), message, rate_limited

    @staticmethod
    def is_retryable(error: Exception) -> bool:
        return ErrorMapper.classify(error)[2]

    @staticmethod
    def get_retry_after(error: Exception) -> Optional[float]:
        """Seconds from a ``Retry-After`` header or a ``retry_after`` attribute, if any."""
        headers = getattr(getattr(error, 'response', None), 'headers', None)
        if headers is not None:
            value = headers.get('Retry-After')
            if value:
                try:
                    return float(value)
                except ValueError:
                    pass
        return getattr(error, 'retry_after', None)

    @staticmethod
    def map_error(error: Exception, provider: str) -> ProviderError:
        """
        Wrap an SDK or transport error; a ProviderError is returned unchanged.

        Args:
            error: The exception raised by the SDK or httpx
            provider: Provider name used as the message prefix

        Returns:
            ProviderError carrying the status code, retry hints and the cause
        """
        if isinstance(error, ProviderError):
            return error

        category, description, retryable = ErrorMapper.classify(error)
        provider_error = ProviderError(
            message=f"{provider} API error: {description}",
            provider=provider,
            status_code=_status_code(error),
            retry_after=ErrorMapper.get_retry_after(error)
        )
        provider_error.category = category
        provider_error.is_retryable = retryable
        provider_error.original_error = error
        return provider_error

    @staticmethod
    def user_message(error: Exception, provider: str = "provider") -> str:
        """Text shown in the chat when a completion fails."""
        return ErrorMapper.map_error(error, provider).message

    @staticmethod
    def get_error_classification(error: ProviderError) -> Dict[str, Any]:
        """Fields for logging a failed request."""
        category = error.category
        if category is None:
            category = ErrorMapper.classify(error.original_error or error)[0]
        return {
            'provider': error.provider,
            'status_code': error.status_code,
            'category': category,
            'is_retryable': error.is_retryable,
            'retry_after': error.retry_after,
            'error_type': type(error.original_error).__name__ if error.original_error else None,
        }
