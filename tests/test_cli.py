"""Tests for the CLI: argument parsing, slash commands, REPL wiring."""

from __future__ import annotations

import asyncio
import io
import os
import signal
import sys
import threading
from unittest.mock import AsyncMock, patch

import pytest
from rich.console import Console

from nexus.agent.session import AgentSession
from nexus.cli import ChatApp, Command, build_parser, main, parse_command
from nexus.conversation.controller import Conversation
from nexus.conversation.state import Role
from nexus.ui.renderer import ChatRenderer
from tests.conftest import ScriptedTransport, wait_until


class TestParseCommand:
    @pytest.mark.parametrize("line", ["/exit", "/quit", "/q", "/EXIT", "/q "])
    def test_exit_aliases(self, line):
        assert parse_command(line) == Command.EXIT

    def test_clear_and_help(self):
        assert parse_command("/clear") == Command.CLEAR
        assert parse_command("/help") == Command.HELP

    def test_plain_prompt(self):
        assert parse_command("hello /exit") is None

    def test_unknown_slash_is_prompt(self):
        assert parse_command("/deploy now") is None


class TestBuildParser:
    def test_prompt_words_and_flags(self):
        args = build_parser().parse_args(["fix", "the", "bug", "-m", "claude-x", "-c", "/src", "-r", "sess-1"])
        assert args.prompt == ["fix", "the", "bug"]
        assert args.model == "claude-x"
        assert args.cwd == "/src"
        assert args.resume == "sess-1"

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.prompt == []
        assert args.model is None
        assert args.cwd is None
        assert args.resume is None


class TestMain:
    def test_missing_api_key_exits_with_hint(self, monkeypatch, tmp_path, capsys):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        assert main([]) == 1

        err = capsys.readouterr().err
        assert "Configuration error" in err
        assert "ANTHROPIC_API_KEY=sk-ant-..." in err

    def test_flags_forwarded_to_app(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        with patch("nexus.cli.run_app", new_callable=AsyncMock) as run_app, \
                patch("nexus.cli.configure_logging"):
            assert main(["hello", "world", "-m", "claude-x", "-c", "/src", "-r", "sess-9"]) == 0

        settings, prompt, resume = run_app.call_args.args
        assert settings.model == "claude-x"
        assert settings.cwd == "/src"
        assert prompt == "hello world"
        assert resume == "sess-9"


class TestChatApp:
    def _make_app(self, settings, transport):
        console = Console(file=io.StringIO(), width=100, force_terminal=False, color_system=None)
        conversation = Conversation(AgentSession(transport))
        renderer = ChatRenderer(console, model=settings.model, cwd=settings.cwd)
        return ChatApp(conversation, renderer), conversation, console

    @pytest.mark.asyncio
    async def test_repl_sends_prompts_and_handles_commands(self, settings):
        transport = ScriptedTransport([{"type": "assistant", "content": "Hi!"}])
        app, conversation, console = self._make_app(settings, transport)
        app._read_line = AsyncMock(side_effect=["/help", "", "hello", "/quit", "never sent"])

        await app.run()

        assert [c["prompt"] for c in transport.calls] == ["hello"]
        assert [(m.role, m.content) for m in conversation.state.history] == [
            (Role.USER, "hello"),
            (Role.ASSISTANT, "Hi!"),
        ]
        assert "/exit, /quit, /q" in console.file.getvalue()

    @pytest.mark.asyncio
    async def test_initial_prompt_sent_first(self, settings):
        transport = ScriptedTransport([{"type": "result", "content": "done"}])
        app, conversation, _ = self._make_app(settings, transport)
        app._read_line = AsyncMock(return_value=None)

        await app.run("start here")

        assert [c["prompt"] for c in transport.calls] == ["start here"]
        assert conversation.state.history[-1].content == "done"

    @pytest.mark.asyncio
    async def test_clear_keeps_history(self, settings):
        transport = ScriptedTransport([{"type": "assistant", "content": "kept"}])
        app, conversation, _ = self._make_app(settings, transport)
        app._read_line = AsyncMock(side_effect=["q", "/clear", None])

        await app.run()

        assert len(conversation.state.history) == 2

    @pytest.mark.asyncio
    async def test_typed_prompt_not_echoed_twice(self, settings):
        transport = ScriptedTransport([{"type": "assistant", "content": "Hi!"}])
        app, _, console = self._make_app(settings, transport)
        app._read_line = AsyncMock(side_effect=["hello", None])

        await app.run()

        output = console.file.getvalue()
        assert "You: hello" not in output
        assert "Hi!" in output

    @pytest.mark.asyncio
    async def test_initial_prompt_is_echoed(self, settings):
        transport = ScriptedTransport([{"type": "assistant", "content": "ok"}])
        app, _, console = self._make_app(settings, transport)
        app._read_line = AsyncMock(return_value=None)

        await app.run("from argv")

        assert "You: from argv" in console.file.getvalue()

    @pytest.mark.asyncio
    async def test_clear_drops_last_error(self, settings):
        transport = ScriptedTransport([RuntimeError("backend down")])
        app, conversation, _ = self._make_app(settings, transport)
        app._read_line = AsyncMock(side_effect=["q", "/clear", None])

        await app.run()

        assert conversation.state.turn.last_error is None
        assert len(conversation.state.history) == 1


class TestPromptInput:
    def _make_app(self, settings, read):
        console = Console(file=io.StringIO(), width=100, force_terminal=False, color_system=None)
        renderer = ChatRenderer(console, model=settings.model, cwd=settings.cwd)
        app = ChatApp(Conversation(AgentSession(ScriptedTransport())), renderer)
        app._prompt = read
        return app

    @pytest.mark.asyncio
    async def test_reads_line_from_thread(self, settings):
        app = self._make_app(settings, lambda: "  hello  ")
        assert await app._read_line() == "hello"

    @pytest.mark.asyncio
    async def test_eof_returns_none(self, settings):
        def read():
            raise EOFError

        app = self._make_app(settings, read)
        assert await app._read_line() is None

    @pytest.mark.asyncio
    async def test_cancelled_read_ends_repl(self, settings):
        """run() returns while the input thread is still blocked."""
        release = threading.Event()

        def read():
            release.wait(5)
            raise EOFError

        app = self._make_app(settings, read)
        task = asyncio.create_task(app.run())
        try:
            await wait_until(lambda: app._pending_input is not None)
            app._pending_input.cancel()
            await asyncio.wait_for(task, timeout=1.0)
        finally:
            release.set()

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="loop signal handlers are POSIX only")
    async def test_ctrl_c_at_prompt_exits(self, settings):
        release = threading.Event()

        def read():
            release.wait(5)
            raise EOFError

        app = self._make_app(settings, read)
        previous = signal.getsignal(signal.SIGINT)
        task = asyncio.create_task(app.run())
        try:
            await wait_until(lambda: app._pending_input is not None)
            os.kill(os.getpid(), signal.SIGINT)
            await asyncio.wait_for(task, timeout=1.0)
        finally:
            release.set()

        assert signal.getsignal(signal.SIGINT) is previous
