"""Shared pytest fixtures for ragchat tests."""

import pytest
from dotenv import load_dotenv
from unittest.mock import Mock, AsyncMock

# Load environment variables from .env file for tests
load_dotenv()

from ragchat.config.settings import ChatSettings
from ragchat.conversation.builder import EnvironmentFacts
from ragchat.models.conversation_types import ChatMessage, Role
from ragchat.models.generation import ProviderConfig, ProviderKind
from ragchat.orchestration.boundary import QueueBoundary
from ragchat.templates.provider import TemplateProvider
from tests.helpers.streaming_mocks import create_anthropic_stream, create_openai_stream


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no I/O beyond tmp_path")
    config.addinivalue_line("markers", "integration: end-to-end flows through the orchestrator")
    config.addinivalue_line("markers", "slow: tests that take more than a second")


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Mock environment variables for testing."""
    env_vars = {
        "OPENAI_API_KEY": "test-openai-key",
        "ANTHROPIC_API_KEY": "test-anthropic-key",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    for key in ("RAGCHAT_PROVIDER", "RAGCHAT_MODEL", "RAGCHAT_BASE_URL", "RAGCHAT_API_KEY"):
        monkeypatch.delenv(key, raising=False)
    return env_vars


@pytest.fixture
def openai_config():
    return ProviderConfig(provider_kind=ProviderKind.OPENAI, model_name="gpt-4o-mini", api_key="test-openai-key")


@pytest.fixture
def anthropic_config():
    return ProviderConfig(
        provider_kind=ProviderKind.ANTHROPIC,
        model_name="claude-3-5-sonnet-20241022",
        api_key="test-anthropic-key"
    )


@pytest.fixture
def environment():
    """Fixed environment facts so system prompts are deterministic."""
    return EnvironmentFacts(cwd="/work/app", default_shell="/bin/bash", os_name="linux", home_dir="/home/dev")


@pytest.fixture
def templates():
    return TemplateProvider()


@pytest.fixture
def settings():
    return ChatSettings(rerank_threshold=0.5)


@pytest.fixture
def boundary():
    return QueueBoundary()


@pytest.fixture
def workspace(tmp_path):
    """A small workspace on disk."""
    (tmp_path / "auth.ts").write_text("export const login = () => true;\n")
    (tmp_path / "util.py").write_text("def add(a, b):\n    return a + b\n")
    (tmp_path / "empty.txt").write_text("")
    (tmp_path / "big.log").write_text("x" * 6000)
    return tmp_path


@pytest.fixture
def sample_conversation_messages():
    """Sample conversation messages."""
    return [
        ChatMessage(role=Role.USER, content="What does util.py do?", id="m1"),
        ChatMessage(role=Role.ASSISTANT, content="It adds two numbers.", id="m2"),
        ChatMessage(role=Role.USER, content="Can you add a docstring?", id="m3"),
    ]


SDK_REPLY = "`add` returns the sum of its arguments."
STREAMED_REPLY = ["`add`", " returns", " the sum."]


def sdk_create(blocking_response, stream_factory, chunks):
    """``create(**kwargs)`` that streams when called with ``stream=True``."""
    async def create(**kwargs):
        if kwargs.get("stream"):
            return stream_factory(chunks)
        return blocking_response
    return AsyncMock(side_effect=create)


@pytest.fixture
def mock_openai_client():
    """AsyncOpenAI stand-in answering chat.completions.create."""
    completion = Mock(model="gpt-4o-mini")
    completion.choices = [Mock(message=Mock(content=SDK_REPLY), finish_reason="stop")]

    client = AsyncMock()
    client.chat.completions.create = sdk_create(completion, create_openai_stream, STREAMED_REPLY)
    return client


@pytest.fixture
def mock_anthropic_client():
    """AsyncAnthropic stand-in answering messages.create."""
    message = Mock(stop_reason="end_turn")
    message.content = [Mock(type="text", text=SDK_REPLY), Mock(type="tool_use", text=None)]

    client = AsyncMock()
    client.messages.create = sdk_create(message, create_anthropic_stream, STREAMED_REPLY[:2])
    return client
