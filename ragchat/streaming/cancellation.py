"""Cooperative cancellation for in-flight completions."""

import asyncio
import inspect
from typing import Any, Callable, List, Set


class CancellationToken:
    """
    One-shot cancellation signal shared by the orchestrator and the driver.

    The driver checks ``cancelled`` at every chunk boundary and registers
    callbacks that abort the live transport. Cancelling is idempotent:
    callbacks run once, on the first ``cancel()``.
    """

    def __init__(self):
        self._cancelled = False
        self._event = asyncio.Event()
        self._callbacks: List[Callable[[], Any]] = []
        self._pending: Set["asyncio.Task[Any]"] = set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        """Signal cancellation and run registered abort callbacks."""
        if self._cancelled:
            return
        self._cancelled = True
        self._event.set()

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._invoke(callback)

    def on_cancel(self, callback: Callable[[], Any]):
        """
        Register a callback to run on cancellation.

        If the token is already cancelled the callback runs immediately.
        Callbacks may return an awaitable, which is scheduled on the running
        loop.
        """
        if self._cancelled:
            self._invoke(callback)
        else:
            self._callbacks.append(callback)

    async def wait(self):
        """Block until the token is cancelled."""
        await self._event.wait()

    def _invoke(self, callback: Callable[[], Any]):
        result = callback()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
