"""
Context assembly for one user turn.

Directives in the user's text decide which enrichment steps run:

- ``@problems``: editor diagnostics, one JSON object per line
- ``@workspace``: relevant file paths and code chunks from the embedding store

The directives themselves never reach the model.
"""

from typing import Awaitable, Callable, Iterable, Optional, Sequence

from ..config.constants import EXPLORING_MESSAGE
from ..errors import RetrievalError, TemplateError
from ..models.context import AssembledContext, Diagnostic
from ..models.events import ServerMessage, update_loading_message
from ..observability.logging import ChatLogger
from ..retrieval.retriever import RetrievalOutcome, Retriever
from ..templates.provider import TemplateProvider
from .directives import Directive, detect_directives, strip_directives

logger = ChatLogger("assembler")

ProgressCallback = Callable[[ServerMessage], Awaitable[None]]


def format_problems(diagnostics: Optional[Sequence[Diagnostic]]) -> str:
    return "\n".join(d.to_line() for d in diagnostics or [])


class ContextAssembler:
    """Turns directives in free text into a supplementary context block."""

    def __init__(
        self,
        templates: TemplateProvider,
        retriever: Optional[Retriever] = None,
        on_progress: Optional[ProgressCallback] = None
    ):
        """
        Args:
            templates: Renders the relevant-files and relevant-code blocks
            retriever: Workspace lookups; ``@workspace`` is a no-op without one
            on_progress: Receives loading-status events for the UI
        """
        self.templates = templates
        self.retriever = retriever
        self.on_progress = on_progress

    async def assemble(
        self,
        raw_text: Optional[str],
        diagnostics: Optional[Sequence[Diagnostic]] = None,
        force: Iterable[Directive] = ()
    ) -> AssembledContext:
        """
        Resolve the directives in ``raw_text``.

        Args:
            raw_text: The user's message, directives included
            diagnostics: Current editor diagnostics, used by ``@problems``
            force: Directives to apply even if the text does not mention them

        Returns:
            AssembledContext whose ``text`` is None when nothing was produced
        """
        directives = detect_directives(raw_text) | set(force)
        if not directives:
            return AssembledContext()

        combined = ""

        if Directive.PROBLEMS in directives:
            problems = format_problems(diagnostics)
            if problems:
                combined += problems + "\n\n"

        prompt = strip_directives(raw_text)
        outcome = RetrievalOutcome()

        if Directive.WORKSPACE in directives and self.retriever is not None:
            if self.on_progress is not None:
                await self.on_progress(update_loading_message(EXPLORING_MESSAGE))
            try:
                outcome = await self.retriever.retrieve(prompt)
            except RetrievalError as e:
                logger.warning("Workspace retrieval failed, continuing without it", error=e)

        if outcome.files:
            files_block = self._render("relevant-files", ", ".join(item.identifier for item in outcome.files))
            if files_block:
                combined += files_block + "\n\n"

        if outcome.code:
            code_block = self._render("relevant-code", "\n\n".join(outcome.code))
            if code_block:
                combined += code_block

        return AssembledContext(text=combined.strip() or None, files=list(outcome.files))

    def _render(self, name: str, code: str) -> Optional[str]:
        try:
            return self.templates.read_template(name, {"code": code})
        except TemplateError as e:
            logger.warning("Could not render context template", template=name, error=e)
            return None
