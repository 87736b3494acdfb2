"""
Structured logging for ragchat.

Components log through a ChatLogger so every line has the same shape::

    [component=openai request_id=3f2a9c1e model=gpt-4o outcome=cancelled] Stream request ended

The package never installs handlers; applications (and the CLI's
``--verbose`` switch) configure ``logging`` themselves.
"""

import asyncio
import logging
import time
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from ..streaming.types import StreamStats


class ChatLogger:
    """Logger for one component, writing ``key=value`` fields ahead of the message."""

    def __init__(self, component: str):
        """
        Args:
            component: Short component name, e.g. ``"driver"``; the stdlib
                logger is ``ragchat.<component>``
        """
        self.component = component
        self.logger = logging.getLogger(f"ragchat.{component}")

    def _log(self, level: int, message: str, error: Optional[BaseException] = None, **fields):
        if not self.logger.isEnabledFor(level):
            return
        if error is not None:
            fields['error_type'] = type(error).__name__
            fields['error_msg'] = str(error)
        pairs = [f"component={self.component}"]
        pairs.extend(f"{key}={value}" for key, value in fields.items() if value is not None)
        self.logger.log(level, "[%s] %s", " ".join(pairs), message)

    def debug(self, message: str, **fields):
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields):
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, error: Optional[BaseException] = None, **fields):
        self._log(logging.WARNING, message, error, **fields)

    def error(self, message: str, error: Optional[BaseException] = None, **fields):
        self._log(logging.ERROR, message, error, **fields)

    @contextmanager
    def track_request(self, method: str, model: str, request_id: Optional[str] = None) -> Iterator[Dict[str, Any]]:
        """
        Log the lifetime of one provider request.

        The start is logged at debug. The end is logged once with
        ``duration_ms`` and an ``outcome``: whatever the caller stored in the
        yielded dict (a finish reason, say), ``cancelled`` when the request was
        aborted or its stream closed early, or ``failed`` with the error.

        Args:
            method: ``"generate"`` or ``"stream"``
            model: Model name
            request_id: Correlation id; a short random id when omitted

        Yields:
            Mutable request info with ``request_id``, ``model`` and ``method``
        """
        info: Dict[str, Any] = {
            'request_id': request_id or uuid.uuid4().hex[:8],
            'model': model,
            'method': method,
        }
        started = time.monotonic()
        self.debug(f"Starting {method} request", request_id=info['request_id'], model=model)

        def elapsed() -> int:
            return int((time.monotonic() - started) * 1000)

        try:
            yield info
        except (asyncio.CancelledError, GeneratorExit):
            self.info(f"{method.capitalize()} request ended", request_id=info['request_id'], model=model,
                      duration_ms=elapsed(), outcome="cancelled")
            raise
        except Exception as e:
            self.error(f"{method.capitalize()} request failed", error=e, request_id=info['request_id'],
                       model=model, duration_ms=elapsed(), outcome="failed")
            raise
        else:
            self.info(f"{method.capitalize()} request ended", request_id=info['request_id'], model=model,
                      duration_ms=elapsed(), outcome=info.get('outcome', "completed"))

    def log_stream_stats(self, stats: StreamStats, model: str, request_id: Optional[str] = None):
        """Debug line with the chunk and character counts of a finished stream."""
        self.debug(
            "Stream stats",
            request_id=request_id,
            model=model,
            chunks=stats.chunks,
            chars=stats.chars,
            tool_fragments=stats.tool_fragments or None,
            duration_ms=stats.duration_ms
        )
