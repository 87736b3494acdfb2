"""Event models for the UI boundary.

Every event crossing the boundary is a ``ServerMessage`` carrying an
``EventType`` and an optional payload.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
import time

from .conversation_types import ChatMessage, Role


class EventType(str, Enum):
    """Boundary event types."""
    ADD_MESSAGE = "AddMessage"
    ON_COMPLETION = "OnCompletion"
    STOP_GENERATION = "StopGeneration"
    SEND_LANGUAGE = "SendLanguage"
    SET_TAB = "SetTab"
    UPDATE_LOADING_MESSAGE = "UpdateLoadingMessage"


@dataclass
class ServerMessage:
    """A typed event sent to the UI boundary."""
    type: EventType
    data: Any = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        data = self.data
        if isinstance(data, ChatMessage):
            data = data.model_dump(mode="json", exclude_none=True)
        elif hasattr(data, "model_dump"):
            data = data.model_dump(mode="json")
        return {"type": self.type.value, "data": data}


def add_message(content: str, role: Role = Role.ASSISTANT) -> ServerMessage:
    return ServerMessage(EventType.ADD_MESSAGE, ChatMessage(role=role, content=content))


def on_completion(content: str) -> ServerMessage:
    return ServerMessage(EventType.ON_COMPLETION, ChatMessage(role=Role.ASSISTANT, content=content))


def stop_generation() -> ServerMessage:
    return ServerMessage(EventType.STOP_GENERATION)


def set_tab(tab: str) -> ServerMessage:
    return ServerMessage(EventType.SET_TAB, tab)


def update_loading_message(message: Optional[str]) -> ServerMessage:
    return ServerMessage(EventType.UPDATE_LOADING_MESSAGE, message)
