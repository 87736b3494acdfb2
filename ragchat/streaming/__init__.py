"""Streaming layer: delta normalisation, cancellation and the completion driver."""

from .adapter import StreamAdapter
from .cancellation import CancellationToken
from .types import DeltaType, StreamDelta, StreamStats

__all__ = [
    "StreamAdapter",
    "CancellationToken",
    "StreamDelta",
    "DeltaType",
    "StreamStats",
]
