"""Unit tests for the command line interface."""

import io

import pytest
from unittest.mock import patch

from ragchat.cli import ConsolePrinter, main
from ragchat.config.settings import ChatSettings
from ragchat.models.events import add_message, on_completion, stop_generation, update_loading_message


class TestConsolePrinter:
    """Test terminal rendering of boundary events."""

    @pytest.mark.asyncio
    async def test_streamed_reply_printed_once(self):
        out, err = io.StringIO(), io.StringIO()
        printer = ConsolePrinter(out, err)

        for event in (on_completion("Hel"), on_completion("Hello"), add_message("Hello"), stop_generation()):
            await printer(event)

        assert out.getvalue() == "Hello\n"
        assert err.getvalue() == ""

    @pytest.mark.asyncio
    async def test_blocking_reply(self):
        out = io.StringIO()
        printer = ConsolePrinter(out, io.StringIO())

        await printer(add_message("Done."))

        assert out.getvalue() == "Done.\n"

    @pytest.mark.asyncio
    async def test_error_after_stop_goes_to_stderr(self):
        out, err = io.StringIO(), io.StringIO()
        printer = ConsolePrinter(out, err)

        await printer(update_loading_message("Exploring knowledge base"))
        await printer(stop_generation())
        await printer(add_message("openai API error: request timed out"))

        assert out.getvalue() == ""
        assert err.getvalue() == "Exploring knowledge base...\nError: openai API error: request timed out\n"


class TestMain:

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "ragchat CLI" in capsys.readouterr().out

    def test_providers(self, capsys, mock_env_vars):
        with pytest.raises(SystemExit) as exc_info:
            main(["providers"])
        assert exc_info.value.code == 0
        output = capsys.readouterr().out
        assert "Providers:" in output
        assert "(openai)" in output and "(anthropic)" in output

    def test_chat_without_provider(self, capsys, mock_env_vars):
        with patch("ragchat.cli.ChatSettings.from_env", return_value=ChatSettings()):
            with pytest.raises(SystemExit) as exc_info:
                main(["chat", "hello"])
        assert exc_info.value.code == 1
        assert "no provider configured" in capsys.readouterr().err
