"""Chat orchestrator.

Runs one user turn end to end: context assembly, conversation building and
the provider call, forwarding every event to the UI boundary as it happens.
The orchestrator owns the live conversation; nothing else mutates it.
"""

from typing import List, Optional, Sequence

from ..config.constants import CHAT_TAB, RAG_TEMPLATES
from ..config.settings import ChatSettings
from ..context.assembler import ContextAssembler
from ..context.directives import Directive
from ..context.file_loader import FileLoader
from ..conversation.builder import ConversationBuilder, EnvironmentFacts
from ..core.capabilities import should_use_streaming
from ..core.routing.selector import ProviderManager
from ..errors import TemplateError
from ..models.context import ScoredItem
from ..models.conversation_types import ChatMessage, ContextItem, Role
from ..models.events import EventType, ServerMessage, add_message, set_tab
from ..models.generation import ProviderConfig
from ..observability.logging import ChatLogger
from ..retrieval.base import EmbeddingStore, Reranker
from ..retrieval.retriever import Retriever
from ..streaming.cancellation import CancellationToken
from ..streaming.driver import CompletionDriver
from ..templates.provider import TemplateProvider, kebab_to_sentence
from .boundary import Boundary, NullBoundary
from .editor import EditorContext, StaticEditorContext

logger = ChatLogger("orchestrator")


def retrieved_file_items(files: Sequence[ScoredItem]) -> List[ContextItem]:
    return [ContextItem(name=item.identifier, path=item.identifier, category="retrieval") for item in files]


def dedupe_items(items: Sequence[ContextItem]) -> List[ContextItem]:
    """Drop repeated paths, keeping the first occurrence."""
    seen = set()
    unique = []
    for item in items:
        if item.path in seen:
            continue
        seen.add(item.path)
        unique.append(item)
    return unique


class ChatOrchestrator:
    """Retrieval-augmented, cancellable chat completions for one chat view.

    The orchestrator is responsible for:
    1. Assembling workspace context from directives and attachments
    2. Building the conversation sent to the model
    3. Driving the provider call in streaming or blocking mode
    4. Forwarding lifecycle events to the boundary
    5. Cancelling the live generation on request
    """

    def __init__(
        self,
        provider_manager: ProviderManager,
        boundary: Optional[Boundary] = None,
        editor: Optional[EditorContext] = None,
        settings: Optional[ChatSettings] = None,
        templates: Optional[TemplateProvider] = None,
        store: Optional[EmbeddingStore] = None,
        reranker: Optional[Reranker] = None,
        driver: Optional[CompletionDriver] = None,
        environment: Optional[EnvironmentFacts] = None
    ):
        """Initialize orchestrator.

        Args:
            provider_manager: Supplies the active provider for each call
            boundary: Receives events; defaults to a boundary that drops them
            editor: Language, selection, diagnostics and pinned files
            settings: Retrieval and streaming settings
            templates: Prompt templates; built from ``settings.template_dir`` by default
            store: Embedding store for ``@workspace``; retrieval is off without it
            reranker: Scores retrieved items; required alongside ``store``
            driver: Completion driver; defaults to the shared provider registry
            environment: Facts for the system prompt; detected when omitted
        """
        self.provider_manager = provider_manager
        self.boundary = boundary or NullBoundary()
        self.editor = editor or StaticEditorContext()
        self.settings = settings or ChatSettings()
        self.templates = templates or TemplateProvider(self.settings.template_dir)

        retriever = None
        if store is not None and reranker is not None:
            retriever = Retriever(store, reranker, self.editor.workspace_name, self.settings)
        elif store is not None or reranker is not None:
            logger.warning("Retrieval needs both a store and a reranker; @workspace is disabled")

        self.assembler = ContextAssembler(self.templates, retriever, on_progress=self.boundary.post_message)
        self.file_loader = FileLoader(self.editor.workspace_root, self.settings.max_file_size)
        self.builder = ConversationBuilder(
            self.templates,
            environment or EnvironmentFacts.current(self.editor.workspace_root)
        )
        self.driver = driver or CompletionDriver(timeout=self.settings.request_timeout)

        self._conversation: List[ChatMessage] = []
        self._token: Optional[CancellationToken] = None

    @property
    def conversation(self) -> List[ChatMessage]:
        """Copy of the live conversation."""
        return list(self._conversation)

    def reset_conversation(self):
        self._conversation = []

    def abort(self):
        """Cancel the live generation and clear the generating status."""
        if self._token is not None:
            self._token.cancel()
        self.boundary.set_generating(False)
        logger.info("Generation aborted")

    def _new_token(self) -> CancellationToken:
        self._token = CancellationToken()
        return self._token

    def _get_provider(self) -> Optional[ProviderConfig]:
        provider = self.provider_manager.get_active_provider()
        if provider is None:
            logger.warning("No active provider configured")
        return provider

    async def _post(self, message: ServerMessage):
        await self.boundary.post_message(message)

    async def send_editor_language(self):
        await self._post(ServerMessage(EventType.SEND_LANGUAGE, self.editor.language()))

    async def focus_chat_tab(self):
        await self._post(set_tab(CHAT_TAB))

    async def build_additional_context(
        self,
        message_content: str,
        file_attachments: Optional[Sequence[ContextItem]] = None
    ) -> str:
        """
        Collect everything appended to the user's message.

        Returns:
            Selected code, assembled context and file contents, each under its
            own heading, or "" when there is nothing to add
        """
        context = ""

        selection = self.editor.selection()
        if selection:
            context += f"Selected Code:\n{selection}\n\n"

        assembled = await self.assembler.assemble(message_content, self.editor.diagnostics())
        if assembled.text:
            context += f"Additional Context:\n{assembled.text}\n\n"

        items = dedupe_items(
            list(file_attachments or [])
            + self.editor.context_items()
            + retrieved_file_items(assembled.files)
        )
        file_contents = await self.file_loader.load_file_contents(items)
        if file_contents:
            context += f"File Contents:\n{file_contents}\n\n"

        return context

    async def _dispatch(self, provider: ProviderConfig, token: CancellationToken):
        streaming = should_use_streaming(provider, self.settings.streaming)
        logger.debug(
            "Dispatching completion",
            provider=provider.provider_kind.value,
            model=provider.model_name,
            streaming=streaming,
            messages=len(self._conversation)
        )

        self.boundary.set_generating(True)
        try:
            async for event in self.driver.run(self._conversation, provider, token, streaming=streaming):
                await self._post(event)
        finally:
            # A newer call owns the status flag once it has replaced the token
            if self._token is token:
                self.boundary.set_generating(False)

    async def completion(
        self,
        messages: Sequence[ChatMessage],
        file_attachments: Optional[Sequence[ContextItem]] = None,
        conversation_id: Optional[str] = None
    ):
        """
        Answer the last message in ``messages``.

        Args:
            messages: Earlier turns followed by the new user message
            file_attachments: Files attached to this message
            conversation_id: Id given to the system message
        """
        token = self._new_token()
        await self.send_editor_language()

        provider = self._get_provider()
        if provider is None:
            return

        message_content = messages[-1].text() if messages else ""
        additional_context = await self.build_additional_context(message_content, file_attachments)

        self._conversation = self.builder.build(messages, additional_context, conversation_id)
        await self._dispatch(provider, token)

    def _render_template_prompt(self, template: str, selection: str, language: str) -> str:
        try:
            prompt = self.templates.read_template(template, {"code": selection, "language": language})
        except TemplateError as e:
            logger.error("Template failed to render", template=template, error=e)
            return ""
        return prompt or ""

    async def get_template_messages(self, template: str, context: Optional[str] = None) -> List[ChatMessage]:
        """
        Prepare the live conversation for a template request.

        Args:
            template: Template name, e.g. ``"explain"``
            context: Code to use when the editor has no selection

        Returns:
            The updated conversation, or [] when no provider is configured
        """
        language = self.editor.language()
        await self.send_editor_language()

        selection = self.editor.selection() or context or ""
        prompt = self._render_template_prompt(template, selection, language.lang_name or "unknown")

        await self.focus_chat_tab()
        echo = f"{kebab_to_sentence(template)}\n\n\n<pre><code>{selection}</code></pre>".strip() or " "
        await self._post(add_message(echo, role=Role.USER))

        rag_context = None
        if template in RAG_TEMPLATES:
            assembled = await self.assembler.assemble(
                selection,
                self.editor.diagnostics(),
                force=[Directive.WORKSPACE]
            )
            rag_context = assembled.text
            file_contents = await self.file_loader.load_file_contents(retrieved_file_items(assembled.files))
            if file_contents:
                rag_context = f"{rag_context}\n\nFile Contents:\n{file_contents}" if rag_context else \
                    f"File Contents:\n{file_contents}"

        user_content = f"{prompt}\n\nAdditional Context:\n{rag_context}" if rag_context else prompt

        if self._get_provider() is None:
            return []

        if not self._conversation:
            self._conversation.append(self.builder.system_message())
        self._conversation.append(ChatMessage(role=Role.USER, content=user_content.strip() or " "))
        return self.conversation

    async def template_completion(self, template: str, selection_context: Optional[str] = None):
        """Run a named template over the editor selection (or ``selection_context``)."""
        token = self._new_token()
        conversation = await self.get_template_messages(template, selection_context)
        if not conversation:
            return

        provider = self._get_provider()
        if provider is None:
            return
        await self._dispatch(provider, token)

    async def simple_completion(self, prompt: str) -> Optional[str]:
        """
        One-shot completion outside the chat: no events, no conversation.

        Returns:
            The trimmed reply, or None if there is no provider or the call fails
        """
        provider = self._get_provider()
        if provider is None:
            logger.error("No provider configured for simple completion")
            return None

        try:
            return await self.driver.complete_text([ChatMessage(role=Role.USER, content=prompt)], provider)
        except Exception as e:
            logger.error("Simple completion failed", model=provider.model_name, error=e)
            return None
