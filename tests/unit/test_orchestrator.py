"""Unit tests for the chat orchestrator."""

import asyncio

import pytest

from ragchat.core.routing import StaticProviderManager
from ragchat.models.context import Diagnostic, LanguageDetails
from ragchat.models.conversation_types import ChatMessage, ContextItem, Role
from ragchat.models.events import EventType
from ragchat.models.generation import ProviderConfig, ProviderKind
from ragchat.orchestration.chat import ChatOrchestrator, dedupe_items
from ragchat.orchestration.editor import StaticEditorContext
from ragchat.providers.base import ProviderError
from ragchat.streaming.driver import CompletionDriver, SessionState
from tests.helpers.fakes import FakeAdapter


def types_of(events):
    return [e.type for e in events]


async def run_until(condition):
    for _ in range(1000):
        if condition():
            return
        await asyncio.sleep(0.001)
    raise AssertionError("event loop never reached the expected state")


@pytest.fixture
def adapter():
    return FakeAdapter(chunks=["Hi", " there"], reply="Blocking reply")


@pytest.fixture
def editor(workspace):
    return StaticEditorContext(
        workspace_root=str(workspace),
        language=LanguageDetails(language_id="python", lang_name="Python"),
    )


@pytest.fixture
def make_orchestrator(boundary, editor, settings, templates, environment, adapter, openai_config):
    def factory(providers=None, **kwargs):
        manager = StaticProviderManager([openai_config] if providers is None else providers)
        options = dict(
            boundary=boundary,
            editor=editor,
            settings=settings,
            templates=templates,
            environment=environment,
            driver=CompletionDriver(adapter_factory=lambda config: adapter),
        )
        options.update(kwargs)
        return ChatOrchestrator(manager, **options)
    return factory


class TestCompletion:
    """Test a chat turn end to end with a scripted transport."""

    @pytest.mark.asyncio
    async def test_streaming_turn(self, make_orchestrator, boundary, adapter):
        orchestrator = make_orchestrator()

        await orchestrator.completion([ChatMessage(role=Role.USER, content="hello", id="u1")], conversation_id="c1")

        events = boundary.drain()
        assert types_of(events) == [
            EventType.SEND_LANGUAGE,
            EventType.ON_COMPLETION,
            EventType.ON_COMPLETION,
            EventType.ADD_MESSAGE,
            EventType.STOP_GENERATION,
        ]
        assert events[0].data.lang_name == "Python"
        assert events[3].data.content == "Hi there"
        assert not boundary.generating

        conversation = orchestrator.conversation
        assert [m.role for m in conversation] == [Role.SYSTEM, Role.USER]
        assert conversation[0].id == "c1"
        assert conversation[1].content == "hello"
        assert adapter.calls[0]["mode"] == "stream"

    @pytest.mark.asyncio
    async def test_blocking_when_streaming_disabled(self, make_orchestrator, boundary, adapter, settings):
        orchestrator = make_orchestrator(settings=settings.model_copy(update={"streaming": False}))

        await orchestrator.completion([ChatMessage(role=Role.USER, content="hello")])

        assert types_of(boundary.drain()) == [EventType.SEND_LANGUAGE, EventType.ADD_MESSAGE, EventType.STOP_GENERATION]
        assert adapter.calls[0]["mode"] == "once"

    @pytest.mark.asyncio
    async def test_blocking_for_model_that_cannot_stream(self, make_orchestrator, adapter):
        o1 = ProviderConfig(provider_kind=ProviderKind.OPENAI, model_name="o1-preview", api_key="k")
        orchestrator = make_orchestrator(providers=[o1])

        await orchestrator.completion([ChatMessage(role=Role.USER, content="hello")])

        assert adapter.calls[0]["mode"] == "once"

    @pytest.mark.asyncio
    async def test_no_provider(self, make_orchestrator, boundary, adapter):
        orchestrator = make_orchestrator(providers=[])

        await orchestrator.completion([ChatMessage(role=Role.USER, content="hello")])

        assert types_of(boundary.drain()) == [EventType.SEND_LANGUAGE]
        assert orchestrator.conversation == []
        assert adapter.calls == []

    @pytest.mark.asyncio
    async def test_selection_problems_and_files(self, make_orchestrator, editor):
        editor.set_selection("x = add(1, 2)")
        editor.set_diagnostics([Diagnostic(
            severity="Warning", message="unused variable", line_number=1, character=1,
        )])
        editor.pin(ContextItem(name="util.py", path="util.py"))
        orchestrator = make_orchestrator()

        await orchestrator.completion(
            [ChatMessage(role=Role.USER, content="@problems what is wrong?")],
            file_attachments=[
                ContextItem(name="auth.ts", path="auth.ts"),
                ContextItem(name="util.py", path="util.py"),
                ContextItem(name="problems", path="problems", category="directive"),
            ],
        )

        content = orchestrator.conversation[-1].content
        assert content.startswith("what is wrong?\n\nSelected Code:\nx = add(1, 2)\n\nAdditional Context:\n")
        assert '"message":"unused variable"' in content
        assert content.endswith(
            "File Contents:\nFile: auth.ts\n\nexport const login = () => true;\n\n\n"
            "File: util.py\n\ndef add(a, b):\n    return a + b"
        )
        assert content.count("File: util.py") == 1

    @pytest.mark.asyncio
    async def test_failure_is_reported_as_message(self, make_orchestrator, boundary):
        failing = FakeAdapter(error=ProviderError("openai API error: rate limit exceeded", provider="openai"))
        orchestrator = make_orchestrator(driver=CompletionDriver(adapter_factory=lambda config: failing))

        await orchestrator.completion([ChatMessage(role=Role.USER, content="hello")])

        events = boundary.drain()
        assert types_of(events)[-2:] == [EventType.STOP_GENERATION, EventType.ADD_MESSAGE]
        assert events[-1].data.content == "openai API error: rate limit exceeded"
        assert not boundary.generating


class TestAbort:
    """Test cancelling a live generation."""

    @pytest.mark.asyncio
    async def test_abort_mid_stream(self, make_orchestrator, boundary):
        gated = FakeAdapter(chunks=["Partial", " never"], gate=asyncio.Event())
        orchestrator = make_orchestrator(driver=CompletionDriver(adapter_factory=lambda config: gated))

        task = asyncio.ensure_future(orchestrator.completion([ChatMessage(role=Role.USER, content="hello")]))
        seen = []
        while EventType.ON_COMPLETION not in types_of(seen):
            seen.append(await asyncio.wait_for(boundary.queue.get(), 1))
        assert boundary.generating

        orchestrator.abort()
        await asyncio.wait_for(task, 1)
        seen.extend(boundary.drain())

        after_first_progress = types_of(seen)[types_of(seen).index(EventType.ON_COMPLETION) + 1:]
        assert after_first_progress == [EventType.STOP_GENERATION]
        assert EventType.ADD_MESSAGE not in types_of(seen)
        assert not boundary.generating
        assert gated.stream_closed

    def test_abort_without_generation(self, make_orchestrator, boundary):
        orchestrator = make_orchestrator()
        orchestrator.abort()
        assert not boundary.generating


class TestOverlappingGenerations:
    """Test a second completion started while the first is still streaming."""

    @pytest.fixture
    def gates(self):
        return asyncio.Event(), asyncio.Event()

    @pytest.fixture
    def transports(self, gates):
        return (
            FakeAdapter(chunks=["one", " done"], gate=gates[0]),
            FakeAdapter(chunks=["two", " done"], gate=gates[1]),
        )

    @pytest.fixture
    def driver(self, transports):
        pending = list(transports)
        return CompletionDriver(adapter_factory=lambda config: pending.pop(0))

    async def start_both(self, orchestrator, driver, transports):
        first, second = transports
        first_task = asyncio.ensure_future(orchestrator.completion([ChatMessage(role=Role.USER, content="first")]))
        await run_until(lambda: first.calls and driver.session.state == SessionState.STREAMING)
        first_session = driver.session

        second_task = asyncio.ensure_future(orchestrator.completion([ChatMessage(role=Role.USER, content="second")]))
        await run_until(lambda: second.calls and driver.session is not first_session
                        and driver.session.state == SessionState.STREAMING)
        return first_task, first_session, second_task

    @pytest.mark.asyncio
    async def test_newer_call_owns_session_and_status(self, make_orchestrator, boundary, driver, transports, gates):
        first, second = transports
        orchestrator = make_orchestrator(driver=driver)
        first_task, first_session, second_task = await self.start_both(orchestrator, driver, transports)

        assert not first_session.token.cancelled
        assert driver.session.token is orchestrator._token

        gates[0].set()
        await asyncio.wait_for(first_task, 1)
        assert first.stream_closed
        assert boundary.generating

        gates[1].set()
        await asyncio.wait_for(second_task, 1)
        assert not boundary.generating

        replies = [e.data.content for e in boundary.drain() if e.type == EventType.ADD_MESSAGE]
        assert replies == ["one done", "two done"]

    @pytest.mark.asyncio
    async def test_abort_cancels_only_newer_call(self, make_orchestrator, boundary, driver, transports, gates):
        first, second = transports
        orchestrator = make_orchestrator(driver=driver)
        first_task, first_session, second_task = await self.start_both(orchestrator, driver, transports)

        orchestrator.abort()
        await asyncio.wait_for(second_task, 1)

        assert second.stream_closed
        assert not first_task.done()
        assert not first_session.token.cancelled
        assert not first.stream_closed

        gates[0].set()
        await asyncio.wait_for(first_task, 1)
        replies = [e.data.content for e in boundary.drain() if e.type == EventType.ADD_MESSAGE]
        assert replies == ["one done"]


class TestTemplates:
    """Test template-driven requests."""

    @pytest.mark.asyncio
    async def test_template_completion(self, make_orchestrator, boundary, editor, adapter):
        editor.set_selection("def f(): pass")
        orchestrator = make_orchestrator()

        await orchestrator.template_completion("refactor")

        events = boundary.drain()
        assert types_of(events)[:3] == [EventType.SEND_LANGUAGE, EventType.SET_TAB, EventType.ADD_MESSAGE]
        assert events[1].data == "chat"
        assert events[2].data.role == Role.USER
        assert events[2].data.content == "Refactor\n\n\n<pre><code>def f(): pass</code></pre>"
        assert types_of(events)[-1] == EventType.STOP_GENERATION

        conversation = orchestrator.conversation
        assert [m.role for m in conversation] == [Role.SYSTEM, Role.USER]
        assert conversation[1].content.startswith("Refactor the following Python code")
        assert "Additional Context" not in conversation[1].content

    @pytest.mark.asyncio
    async def test_selection_context_used_without_selection(self, make_orchestrator):
        orchestrator = make_orchestrator()

        conversation = await orchestrator.get_template_messages("add-types", "let x = 1")

        assert "let x = 1" in conversation[-1].content

    @pytest.mark.asyncio
    async def test_appends_to_existing_conversation(self, make_orchestrator):
        orchestrator = make_orchestrator()
        await orchestrator.completion([ChatMessage(role=Role.USER, content="hello")])

        conversation = await orchestrator.get_template_messages("explain", "print(1)")

        assert [m.role for m in conversation] == [Role.SYSTEM, Role.USER, Role.USER]

    @pytest.mark.asyncio
    async def test_no_provider_returns_empty(self, make_orchestrator, boundary):
        orchestrator = make_orchestrator(providers=[])

        assert await orchestrator.get_template_messages("explain", "print(1)") == []
        assert orchestrator.conversation == []
        # The echo is still shown
        assert EventType.ADD_MESSAGE in types_of(boundary.drain())

    @pytest.mark.asyncio
    async def test_unknown_template_sends_placeholder(self, make_orchestrator):
        orchestrator = make_orchestrator()
        conversation = await orchestrator.get_template_messages("no-such-template")
        assert conversation[-1].content == " "


class TestSimpleCompletion:

    @pytest.mark.asyncio
    async def test_returns_text_without_events(self, make_orchestrator, boundary):
        orchestrator = make_orchestrator()

        assert await orchestrator.simple_completion("Name this chat") == "Blocking reply"
        assert boundary.drain() == []
        assert orchestrator.conversation == []

    @pytest.mark.asyncio
    async def test_failure_returns_none(self, make_orchestrator):
        failing = FakeAdapter(error=RuntimeError("down"))
        orchestrator = make_orchestrator(driver=CompletionDriver(adapter_factory=lambda config: failing))
        assert await orchestrator.simple_completion("x") is None

    @pytest.mark.asyncio
    async def test_no_provider(self, make_orchestrator):
        assert await make_orchestrator(providers=[]).simple_completion("x") is None


class TestConversationState:

    @pytest.mark.asyncio
    async def test_reset(self, make_orchestrator):
        orchestrator = make_orchestrator()
        await orchestrator.completion([ChatMessage(role=Role.USER, content="hello")])

        orchestrator.reset_conversation()

        assert orchestrator.conversation == []

    @pytest.mark.asyncio
    async def test_conversation_is_a_copy(self, make_orchestrator):
        orchestrator = make_orchestrator()
        await orchestrator.completion([ChatMessage(role=Role.USER, content="hello")])

        orchestrator.conversation.clear()

        assert len(orchestrator.conversation) == 2

    def test_dedupe_items(self):
        items = [ContextItem(name="a", path="a.py"), ContextItem(name="a2", path="a.py"), ContextItem(name="b", path="b.py")]
        assert [i.name for i in dedupe_items(items)] == ["a", "b"]
