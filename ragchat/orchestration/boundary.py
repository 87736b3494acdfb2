"""
UI boundary: where the orchestrator's events go.

A boundary receives every ServerMessage in order and tracks whether a
generation is running. Delivery is best effort.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional

from ..models.events import ServerMessage


class Boundary(ABC):
    """Sink for orchestrator events."""

    @abstractmethod
    async def post_message(self, message: ServerMessage) -> None:
        pass

    @abstractmethod
    def set_generating(self, generating: bool) -> None:
        """Toggle the UI's "generating" status flag."""
        pass


class NullBoundary(Boundary):
    """Drops every event."""

    async def post_message(self, message: ServerMessage) -> None:
        return None

    def set_generating(self, generating: bool) -> None:
        return None


class QueueBoundary(Boundary):
    """Puts events on an asyncio.Queue for a consumer task."""

    def __init__(self, queue: Optional["asyncio.Queue[ServerMessage]"] = None):
        self.queue: "asyncio.Queue[ServerMessage]" = queue if queue is not None else asyncio.Queue()
        self.generating = False

    async def post_message(self, message: ServerMessage) -> None:
        await self.queue.put(message)

    def set_generating(self, generating: bool) -> None:
        self.generating = generating

    def drain(self) -> List[ServerMessage]:
        """Take every queued event without waiting."""
        messages = []
        while not self.queue.empty():
            messages.append(self.queue.get_nowait())
        return messages


class CallbackBoundary(Boundary):
    """Forwards events to an async callable."""

    def __init__(
        self,
        callback: Callable[[ServerMessage], Awaitable[None]],
        on_generating: Optional[Callable[[bool], None]] = None
    ):
        self._callback = callback
        self._on_generating = on_generating
        self.generating = False

    async def post_message(self, message: ServerMessage) -> None:
        await self._callback(message)

    def set_generating(self, generating: bool) -> None:
        self.generating = generating
        if self._on_generating is not None:
            self._on_generating(generating)
