"""FastAPI HTTP endpoints for ragchat.

Exposes one ChatOrchestrator over HTTP. Chat and template requests answer
with server-sent events, one ServerMessage per ``data:`` line, ending with
``data: [DONE]``. Usage::

    boundary = QueueBoundary()
    orchestrator = ChatOrchestrator(EnvProviderManager(), boundary=boundary)
    app = FastAPI()
    app.include_router(create_router(orchestrator, boundary), prefix="/api")
"""

import asyncio
import json
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

try:
    from fastapi import APIRouter, HTTPException
    from fastapi.responses import StreamingResponse
except ImportError:
    raise ImportError(
        "FastAPI is required for HTTP endpoints. "
        "Please install with: pip install fastapi"
    )
from pydantic import BaseModel, Field

from ..core.capabilities import get_provider_capabilities
from ..core.routing import check_lightweight_availability
from ..models.conversation_types import ChatMessage, ContextItem
from ..observability.logging import ChatLogger
from ..orchestration.boundary import QueueBoundary
from ..orchestration.chat import ChatOrchestrator

logger = ChatLogger("http")

DONE_LINE = "data: [DONE]\n\n"


class CompletionRequest(BaseModel):
    messages: List[ChatMessage] = Field(..., min_length=1)
    file_attachments: Optional[List[ContextItem]] = None
    conversation_id: Optional[str] = None


class TemplateRequest(BaseModel):
    selection_context: Optional[str] = Field(None, description="Code to use when the editor has no selection")


class SimpleCompletionRequest(BaseModel):
    prompt: str


def create_router(orchestrator: ChatOrchestrator, boundary: QueueBoundary) -> APIRouter:
    """
    Build the chat routes for an orchestrator.

    Args:
        orchestrator: The orchestrator serving every request
        boundary: The queue boundary the orchestrator posts events to

    Returns:
        APIRouter with the chat, template and control endpoints
    """
    router = APIRouter()
    # One chat view: calls that produce events run one at a time
    call_lock = asyncio.Lock()

    async def event_stream(call: Callable[[], Awaitable[Any]]) -> AsyncIterator[str]:
        async with call_lock:
            boundary.drain()
            finished = asyncio.Event()
            task = asyncio.ensure_future(call())
            task.add_done_callback(lambda _: finished.set())
            try:
                while True:
                    if finished.is_set() and boundary.queue.empty():
                        break
                    getter = asyncio.ensure_future(boundary.queue.get())
                    waiter = asyncio.ensure_future(finished.wait())
                    done, _ = await asyncio.wait({getter, waiter}, return_when=asyncio.FIRST_COMPLETED)
                    waiter.cancel()
                    if getter in done:
                        yield f"data: {json.dumps(getter.result().to_dict())}\n\n"
                    else:
                        getter.cancel()
                if not task.cancelled() and task.exception() is not None:
                    logger.error("Chat request failed", error=task.exception())
                yield DONE_LINE
            finally:
                if not task.done():
                    # Client went away mid-generation
                    orchestrator.abort()
                    await asyncio.wait({task})

    def sse(call: Callable[[], Awaitable[Any]]) -> StreamingResponse:
        return StreamingResponse(
            event_stream(call),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache"}
        )

    @router.post("/chat/completions")
    async def chat_completion(request: CompletionRequest):
        """Stream the events of one chat turn."""
        return sse(lambda: orchestrator.completion(
            request.messages,
            request.file_attachments,
            request.conversation_id
        ))

    @router.get("/chat/templates")
    async def list_templates():
        return {"templates": orchestrator.templates.list_templates()}

    @router.post("/chat/templates/{name}")
    async def template_completion(name: str, request: Optional[TemplateRequest] = None):
        """Stream the events of a template run."""
        if not orchestrator.templates.has_template(name):
            raise HTTPException(status_code=404, detail=f"Unknown template: {name}")
        selection_context = request.selection_context if request else None
        return sse(lambda: orchestrator.template_completion(name, selection_context))

    @router.post("/chat/simple")
    async def simple_completion(request: SimpleCompletionRequest):
        text = await orchestrator.simple_completion(request.prompt)
        if text is None:
            raise HTTPException(status_code=502, detail="Completion failed")
        return {"text": text}

    @router.post("/chat/abort")
    async def abort():
        """Cancel the live generation. The open event stream ends with StopGeneration."""
        orchestrator.abort()
        return {"aborted": True}

    @router.post("/chat/reset")
    async def reset():
        orchestrator.reset_conversation()
        return {"reset": True}

    @router.get("/chat/conversation")
    async def conversation():
        return {
            "messages": [m.model_dump(mode="json", exclude_none=True) for m in orchestrator.conversation],
            "generating": boundary.generating,
        }

    @router.get("/providers/active")
    async def active_provider():
        """Describe the active provider without contacting it."""
        provider = orchestrator.provider_manager.get_active_provider()
        if provider is None:
            raise HTTPException(status_code=404, detail="No active provider configured")
        status: Dict[str, Any] = {
            "provider": provider.provider_kind.value,
            "model": provider.model_name,
            "available": check_lightweight_availability(provider),
            "capabilities": get_provider_capabilities(provider.provider_kind).model_dump(),
        }
        return status

    return router
