"""
Completion driver.

Sends a built conversation to the active provider, either as one blocking
request or as a stream, and turns the outcome into boundary events. The
driver is an async generator: the orchestrator iterates it and forwards each
ServerMessage to the UI boundary.

Lifecycle of one call::

    Idle -> Dispatched -> Streaming -> Completed
                                    -> Cancelled
                       -> Failed

Every call ends with exactly one StopGeneration event.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

from ..core.capabilities import get_provider_capabilities, prepare_blocking_messages
from ..models.conversation_types import ChatMessage
from ..models.events import ServerMessage, add_message, on_completion, stop_generation
from ..models.generation import ProviderConfig
from ..observability.logging import ChatLogger
from ..providers.base import ProviderAdapter
from ..providers.errors import ErrorMapper
from ..providers.registry import get_provider_adapter
from .cancellation import CancellationToken
from .types import StreamDelta

logger = ChatLogger("driver")


class SessionState(str, Enum):
    IDLE = "idle"
    DISPATCHED = "dispatched"
    STREAMING = "streaming"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class TransportAborted(Exception):
    """The in-flight request was cancelled through the session's token."""
    pass


async def _next_chunk(chunks: AsyncIterator[StreamDelta]) -> StreamDelta:
    return await chunks.__anext__()


@dataclass
class GenerationSession:
    """Transient state of one in-flight completion."""
    token: CancellationToken
    correlation_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: SessionState = SessionState.IDLE
    completion: str = ""

    # Function-call accumulation
    function_name: str = ""
    function_id: str = ""
    function_arguments: str = ""
    is_collecting_function_args: bool = False

    _inflight: Optional["asyncio.Future[Any]"] = field(default=None, repr=False)

    def abort_transport(self):
        """Cancel whatever request the session is currently waiting on."""
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()

    async def await_transport(self, awaitable: Awaitable[Any]) -> Any:
        """
        Await a transport operation so that cancelling the token interrupts it.

        Raises:
            TransportAborted: If the token was cancelled before or during the wait
        """
        if self.token.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise TransportAborted()

        task = asyncio.ensure_future(awaitable)
        self._inflight = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            # The caller was cancelled; the request must settle before the stream is closed
            task.cancel()
            await asyncio.wait({task})
            raise
        finally:
            self._inflight = None

        if task.cancelled():
            raise TransportAborted()
        return task.result()

    def collect_tool_call(self, call: Dict[str, Any]):
        if call.get("name"):
            self.function_name = call["name"]
            self.is_collecting_function_args = True
        if call.get("id"):
            self.function_id = call["id"]
        self.function_arguments += call.get("arguments") or ""


class CompletionDriver:
    """Runs one provider call per invocation and yields boundary events."""

    def __init__(
        self,
        adapter_factory: Optional[Callable[[ProviderConfig], ProviderAdapter]] = None,
        timeout: Optional[float] = None
    ):
        """
        Args:
            adapter_factory: Returns the transport for a provider config.
                Defaults to the shared provider registry.
            timeout: Provider client timeout in seconds, for the default factory
        """
        if adapter_factory is None:
            def adapter_factory(config: ProviderConfig) -> ProviderAdapter:
                return get_provider_adapter(config, timeout=timeout)
        self._adapter_factory = adapter_factory
        self.session: Optional[GenerationSession] = None

    def _start_session(self, token: CancellationToken) -> GenerationSession:
        session = GenerationSession(token=token)
        token.on_cancel(session.abort_transport)
        # A newer call replaces the bookkeeping of an older one; the older
        # transport keeps running on its own session.
        self.session = session
        return session

    async def run(
        self,
        conversation: List[ChatMessage],
        config: ProviderConfig,
        token: CancellationToken,
        streaming: bool = True
    ) -> AsyncIterator[ServerMessage]:
        """Dispatch to ``stream`` or ``once``."""
        events = self.stream(conversation, config, token) if streaming else self.once(conversation, config, token)
        async for event in events:
            yield event

    async def stream(
        self,
        conversation: List[ChatMessage],
        config: ProviderConfig,
        token: CancellationToken
    ) -> AsyncIterator[ServerMessage]:
        """
        Stream a completion, yielding OnCompletion with the text so far.

        Args:
            conversation: Built conversation to send
            config: Active provider configuration
            token: Cancellation token for this call

        Yields:
            ServerMessage events for the boundary
        """
        session = self._start_session(token)
        if token.cancelled:
            session.state = SessionState.CANCELLED
            yield stop_generation()
            return

        provider = config.provider_kind.value
        messages = [message.to_provider_dict() for message in conversation]
        error: Optional[Exception] = None

        logger.debug(
            "Chat completion request",
            request_id=session.correlation_id,
            provider=provider,
            model=config.model_name,
            messages=len(messages),
            stream=True
        )

        session.state = SessionState.DISPATCHED
        chunks: Optional[AsyncIterator[StreamDelta]] = None
        try:
            chunks = self._adapter_factory(config).generate_stream(messages, config)
            while not token.cancelled:
                try:
                    delta = await session.await_transport(_next_chunk(chunks))
                except StopAsyncIteration:
                    break

                if token.cancelled:
                    break
                session.state = SessionState.STREAMING

                tool_call = delta.get_tool_call()
                if tool_call is not None:
                    session.collect_tool_call(tool_call)
                    continue

                text = delta.get_text()
                if text:
                    session.completion += text
                    yield on_completion(session.completion.lstrip() or " ")
        except TransportAborted:
            pass
        except Exception as e:
            if not token.cancelled:
                error = e
        finally:
            aclose = getattr(chunks, "aclose", None)
            if aclose is not None:
                await aclose()

        async for event in self._finish(session, config, error):
            yield event

    async def once(
        self,
        conversation: List[ChatMessage],
        config: ProviderConfig,
        token: CancellationToken
    ) -> AsyncIterator[ServerMessage]:
        """Run a blocking completion and yield its final events."""
        session = self._start_session(token)
        if token.cancelled:
            session.state = SessionState.CANCELLED
            yield stop_generation()
            return

        provider = config.provider_kind.value
        capabilities = get_provider_capabilities(config.provider_kind)
        messages = prepare_blocking_messages(
            [message.to_provider_dict() for message in conversation],
            capabilities
        )
        error: Optional[Exception] = None

        logger.debug(
            "Chat completion request",
            request_id=session.correlation_id,
            provider=provider,
            model=config.model_name,
            messages=len(messages),
            stream=False
        )

        session.state = SessionState.DISPATCHED
        try:
            adapter = self._adapter_factory(config)
            text = await session.await_transport(adapter.generate(messages, config))
            session.completion = text or ""
        except TransportAborted:
            pass
        except Exception as e:
            if not token.cancelled:
                error = e

        async for event in self._finish(session, config, error):
            yield event

    async def _finish(
        self,
        session: GenerationSession,
        config: ProviderConfig,
        error: Optional[Exception]
    ) -> AsyncIterator[ServerMessage]:
        provider = config.provider_kind.value

        if session.token.cancelled:
            session.state = SessionState.CANCELLED
            logger.info("Completion cancelled", request_id=session.correlation_id, model=config.model_name)
            yield stop_generation()
            return

        if error is not None:
            session.state = SessionState.FAILED
            mapped = ErrorMapper.map_error(error, provider)
            logger.error(
                "Completion failed",
                request_id=session.correlation_id,
                model=config.model_name,
                category=ErrorMapper.get_error_classification(mapped)['category'],
                error=error
            )
            yield stop_generation()
            yield add_message(mapped.message)
            return

        session.state = SessionState.COMPLETED
        content = session.completion.strip()
        logger.debug(
            "Chat completion response",
            request_id=session.correlation_id,
            model=config.model_name,
            chars=len(content),
            function_call=session.function_name or None
        )
        yield add_message(content)
        yield stop_generation()
        session.completion = ""

    async def complete_text(
        self,
        messages: List[ChatMessage],
        config: ProviderConfig
    ) -> Optional[str]:
        """
        One-shot blocking completion with no events.

        Returns:
            The trimmed reply, or None if the provider returned nothing

        Raises:
            ProviderError: If the request fails
        """
        capabilities = get_provider_capabilities(config.provider_kind)
        payload = prepare_blocking_messages([m.to_provider_dict() for m in messages], capabilities)
        text = await self._adapter_factory(config).generate(payload, config)
        text = (text or "").strip()
        return text or None
