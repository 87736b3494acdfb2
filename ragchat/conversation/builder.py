import getpass
import os
import platform
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..errors import TemplateError
from ..models.conversation_types import ChatMessage, ContentPart, ImagePart, ImageUrl, Role, TextPart
from ..observability.logging import ChatLogger
from ..templates.provider import TemplateProvider
from .sanitizer import sanitize_text

logger = ChatLogger("builder")


def _default_shell() -> Optional[str]:
    shell = os.environ.get("SHELL") or os.environ.get("COMSPEC")
    if shell:
        return shell
    try:
        import pwd
        return pwd.getpwnam(getpass.getuser()).pw_shell
    except (ImportError, KeyError, OSError):
        return None


@dataclass
class EnvironmentFacts:
    """Facts about the user's machine rendered into the system prompt."""
    cwd: Optional[str] = None
    default_shell: Optional[str] = None
    os_name: Optional[str] = None
    home_dir: Optional[str] = None

    @classmethod
    def current(cls, workspace_root: Optional[str] = None) -> "EnvironmentFacts":
        return cls(
            cwd=workspace_root,
            default_shell=_default_shell(),
            os_name=platform.system().lower(),
            home_dir=os.path.expanduser("~"),
        )

    def as_variables(self) -> dict:
        return {
            "cwd": self.cwd,
            "default_shell": self.default_shell,
            "os_name": self.os_name,
            "home_dir": self.home_dir,
        }


def normalize_message(message: ChatMessage, text: Optional[str] = None) -> ChatMessage:
    """
    Copy a message into its wire shape.

    Content becomes ``[text, image, ...]`` parts when images are attached,
    otherwise it stays a plain string. ``name`` is only kept for function
    messages.
    """
    content_text = message.text() if text is None else text
    image_urls = message.image_urls()

    content: object
    if image_urls:
        parts: List[ContentPart] = [TextPart(text=content_text)]
        parts.extend(ImagePart(image_url=ImageUrl(url=url)) for url in image_urls)
        content = parts
    else:
        content = content_text

    return ChatMessage(
        role=message.role,
        content=content,
        id=message.id,
        name=message.name if message.role == Role.FUNCTION else None,
        images=list(message.images) if message.images else None,
    )


class ConversationBuilder:
    """Builds the conversation sent to the model for one user turn."""

    def __init__(self, templates: TemplateProvider, environment: Optional[EnvironmentFacts] = None):
        self.templates = templates
        self.environment = environment or EnvironmentFacts.current()

    def system_prompt(self) -> str:
        try:
            return self.templates.read_template("system", self.environment.as_variables()) or ""
        except TemplateError as e:
            logger.warning("System template failed, sending empty system prompt", error=e)
            return ""

    def system_message(self, conversation_id: Optional[str] = None) -> ChatMessage:
        return ChatMessage(role=Role.SYSTEM, content=self.system_prompt(), id=conversation_id)

    def build(
        self,
        prior_messages: Sequence[ChatMessage],
        additional_context: Optional[str] = None,
        conversation_id: Optional[str] = None
    ) -> List[ChatMessage]:
        """
        Build the outgoing conversation.

        Args:
            prior_messages: Earlier turns followed by the new user message
            additional_context: Context block appended to the new user message
            conversation_id: Used as the system message id

        Returns:
            A new list: system message, earlier turns, then the new user turn
            carrying the context. The inputs are not modified.
        """
        conversation = [self.system_message(conversation_id)]
        if not prior_messages:
            return conversation

        for message in prior_messages[:-1]:
            conversation.append(normalize_message(message, sanitize_text(message.text())))

        last = prior_messages[-1]
        context = (additional_context or "").strip()
        content = f"{sanitize_text(last.text())}\n\n{context}".strip()
        user_turn = ChatMessage(role=Role.USER, content=content, id=last.id, images=last.images)
        conversation.append(normalize_message(user_turn))

        logger.debug(
            "Built conversation",
            messages=len(conversation),
            context_chars=len(context),
            images=len(last.image_urls())
        )
        return conversation
