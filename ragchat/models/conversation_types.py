from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Conversation turn roles."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    FUNCTION = "function"


class ImageReference(BaseModel):
    """Image attached to a message, either a remote URL or an inline data URL."""
    data: str


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageUrl(BaseModel):
    url: str


class ImagePart(BaseModel):
    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl


ContentPart = Union[TextPart, ImagePart]


class ChatMessage(BaseModel):
    """A single conversation message.

    ``content`` is plain text as typed by the user (possibly carrying editor
    markup) until the conversation builder normalises it; messages carrying
    images are converted into an ordered list of content parts.
    """

    role: Role
    content: Union[str, List[ContentPart]] = ""
    id: Optional[str] = None
    name: Optional[str] = None
    images: Optional[List[Union[ImageReference, str]]] = None

    def text(self) -> str:
        """Return the textual content regardless of representation."""
        if isinstance(self.content, str):
            return self.content
        return "".join(part.text for part in self.content if isinstance(part, TextPart))

    def image_urls(self) -> List[str]:
        urls = []
        for image in self.images or []:
            urls.append(image if isinstance(image, str) else image.data)
        return urls

    def to_provider_dict(self) -> Dict[str, Any]:
        """Serialize to the OpenAI-style wire format."""
        if isinstance(self.content, str):
            content: Any = self.content
        else:
            content = [part.model_dump() for part in self.content]

        result: Dict[str, Any] = {"role": self.role.value, "content": content}
        if self.role == Role.FUNCTION and self.name:
            result["name"] = self.name
        return result


class ContextItem(BaseModel):
    """A file the user pinned or attached to the chat."""
    name: str
    path: str
    category: str = Field(default="file", description="file, selection or directive")


Conversation = List[ChatMessage]
