from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Union


DeltaType = Literal["text", "tool_call"]


@dataclass
class StreamDelta:
    """One unit of provider output, independent of the wire format.

    Attributes:
        kind: ``"text"`` for completion text, ``"tool_call"`` for a function
            call fragment
        value: The text, or a dict of ``id``/``name``/``arguments`` fragments.
            Only the first fragment of a call carries ``id`` and ``name``.
        provider: Wire format that produced the delta
        raw_event: SDK event the delta was read from
    """
    kind: DeltaType
    value: Union[str, Dict[str, Any]]
    provider: str
    raw_event: Optional[Any] = None

    @classmethod
    def text(cls, value: Optional[str], provider: str, raw_event: Any = None) -> "StreamDelta":
        return cls(kind="text", value=value or "", provider=provider, raw_event=raw_event)

    @classmethod
    def tool_call(
        cls,
        provider: str,
        call_id: Optional[str] = None,
        name: Optional[str] = None,
        arguments: Optional[str] = None,
        raw_event: Any = None
    ) -> "StreamDelta":
        return cls(
            kind="tool_call",
            value={"id": call_id, "name": name, "arguments": arguments or ""},
            provider=provider,
            raw_event=raw_event
        )

    def get_text(self) -> str:
        if self.kind == "text":
            return str(self.value)
        return ""

    def get_tool_call(self) -> Optional[Dict[str, Any]]:
        if self.kind == "tool_call" and isinstance(self.value, dict):
            return self.value
        return None

    @property
    def is_empty(self) -> bool:
        """True for keep-alive and bookkeeping events with nothing to forward."""
        return self.kind == "text" and not self.value


@dataclass
class StreamStats:
    """Counts for one streamed response, logged when the stream closes."""
    chunks: int = 0
    chars: int = 0
    tool_fragments: int = 0
    started_at: float = field(default_factory=time.monotonic)

    def record(self, delta: StreamDelta):
        if delta.kind == "tool_call":
            self.tool_fragments += 1
        else:
            self.chunks += 1
            self.chars += len(delta.get_text())

    @property
    def duration_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)
