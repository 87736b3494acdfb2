"""
Delta normalisation for streamed completions.

OpenAI-compatible servers (OpenAI, Ollama, Groq, llama.cpp, ...) share the
``openai`` chunk shape; Anthropic has its own event stream. Both are reduced
to StreamDelta so the completion driver never sees SDK objects.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from .types import StreamDelta, StreamStats


def _openai_delta(chunk: Any) -> StreamDelta:
    """Read ``chunk.choices[0].delta``: content text or the first tool call fragment."""
    choices = getattr(chunk, 'choices', None)
    if not choices:
        return StreamDelta.text("", "openai", chunk)

    delta = getattr(choices[0], 'delta', None)
    tool_calls = getattr(delta, 'tool_calls', None)
    if isinstance(tool_calls, list) and tool_calls:
        call = tool_calls[0]
        function = getattr(call, 'function', None)
        return StreamDelta.tool_call(
            "openai",
            call_id=getattr(call, 'id', None),
            name=getattr(function, 'name', None),
            arguments=getattr(function, 'arguments', None),
            raw_event=chunk
        )
    return StreamDelta.text(getattr(delta, 'content', None), "openai", chunk)


def _anthropic_delta(event: Any) -> StreamDelta:
    """Read text and tool-use input from Messages API stream events."""
    event_type = getattr(event, 'type', None)

    if event_type == "content_block_start":
        block = getattr(event, 'content_block', None)
        if getattr(block, 'type', None) == "tool_use":
            return StreamDelta.tool_call("anthropic", call_id=block.id, name=block.name, raw_event=event)

    elif event_type == "content_block_delta":
        inner = getattr(event, 'delta', None)
        inner_type = getattr(inner, 'type', None)
        if inner_type == "input_json_delta":
            return StreamDelta.tool_call("anthropic", arguments=inner.partial_json, raw_event=event)
        if inner_type == "text_delta" or hasattr(inner, 'text'):
            return StreamDelta.text(getattr(inner, 'text', None), "anthropic", event)

    # message_start, message_delta, ping, content_block_stop, ...
    return StreamDelta.text("", "anthropic", event)


def _plain_delta(event: Any) -> StreamDelta:
    if isinstance(event, str):
        return StreamDelta.text(event, "plain")
    text = getattr(event, 'delta', None) or getattr(event, 'text', None)
    return StreamDelta.text(str(text) if text is not None else "", "plain", event)


WIRE_FORMATS: Dict[str, Callable[[Any], StreamDelta]] = {
    "openai": _openai_delta,
    "anthropic": _anthropic_delta,
}


class StreamAdapter:
    """Normalises one stream and keeps its StreamStats.

    Usage::

        adapter = StreamAdapter("openai")
        async for chunk in sdk_stream:
            delta = adapter.normalize_delta(chunk)
            if delta is not None:
                yield delta
    """

    def __init__(self, wire_format: str, model: Optional[str] = None):
        self.wire_format = wire_format.lower()
        self.model = model
        self.stats = StreamStats()
        self._normalize = WIRE_FORMATS.get(self.wire_format, _plain_delta)

    def normalize_delta(self, event: Any) -> Optional[StreamDelta]:
        """
        Convert an SDK event and count it.

        Returns:
            The delta, or None for events with nothing to forward
        """
        delta = self._normalize(event)
        if delta.is_empty:
            return None
        self.stats.record(delta)
        return delta
