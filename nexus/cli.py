"""Nexus terminal client entry point.

Usage:
    nexus [PROMPT ...] [-m MODEL] [-c DIR] [-r SESSION_ID]

Environment:
    ANTHROPIC_API_KEY  - required
    CLAUDE_MODEL       - default model (overridden by --model)
    NEXUS_CWD          - working directory sent to the agent (overridden by --cwd)
    NEXUS_AGENT_URL    - agent backend base URL (default: http://localhost:8000)
    NEXUS_LOG_LEVEL    - debug/info/warning/error (default: warning)
    NEXUS_LOG_FILE     - write logs to this file instead of stderr
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import threading
from collections.abc import Callable, Sequence
from enum import StrEnum

from rich.console import Console

from nexus import __version__
from nexus.agent.session import AgentSession
from nexus.agent.transport import HttpAgentTransport
from nexus.config import ConfigError, Settings, load_settings
from nexus.conversation.controller import Conversation
from nexus.ui.renderer import ChatRenderer
from nexus.ui.theme import SYMBOLS

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  /help            Show this help
  /clear           Clear the screen and the last error
  /exit, /quit, /q Exit

Ctrl+C cancels a running turn; Ctrl+C or Ctrl+D at the prompt exits."""

API_KEY_HINT = """
Please set your ANTHROPIC_API_KEY environment variable.
You can create a .env file with:
  ANTHROPIC_API_KEY=sk-ant-..."""


class Command(StrEnum):
    EXIT = "exit"
    CLEAR = "clear"
    HELP = "help"


_COMMANDS: dict[str, Command] = {
    "exit": Command.EXIT,
    "quit": Command.EXIT,
    "q": Command.EXIT,
    "clear": Command.CLEAR,
    "help": Command.HELP,
}


def parse_command(line: str) -> Command | None:
    """Return the slash command in ``line``, or None if it is a prompt.

    Unknown slash commands are treated as prompts.
    """
    if not line.startswith("/"):
        return None
    return _COMMANDS.get(line[1:].strip().lower())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nexus",
        description="Nexus AI Terminal - interactive terminal client for a remote coding agent",
    )
    parser.add_argument("prompt", nargs="*", help="Initial prompt to send")
    parser.add_argument("-m", "--model", default=None, help="Model to use")
    parser.add_argument("-c", "--cwd", default=None, help="Working directory")
    parser.add_argument("-r", "--resume", default=None, metavar="SESSION_ID", help="Resume a previous session")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        filename=settings.log_file,
    )


def _install_sigint_handler(loop: asyncio.AbstractEventLoop, callback: Callable[[], None]) -> Callable[[], None] | None:
    """Route SIGINT to ``callback`` on the loop.

    Returns a function that puts the previous handler back, or None when
    the platform has no loop signal support.
    """
    previous = signal.getsignal(signal.SIGINT)
    try:
        loop.add_signal_handler(signal.SIGINT, callback)
    except (NotImplementedError, RuntimeError, ValueError):
        return None

    def restore() -> None:
        try:
            loop.remove_signal_handler(signal.SIGINT)
            # remove_signal_handler leaves default_int_handler behind
            if previous is not None:
                signal.signal(signal.SIGINT, previous)
        except (NotImplementedError, RuntimeError, ValueError):
            pass

    return restore


def _settle(future: asyncio.Future, value: str | None) -> None:
    if not future.done():
        future.set_result(value)


def _read_in_thread(loop: asyncio.AbstractEventLoop, read: Callable[[], str]) -> asyncio.Future:
    """Run a blocking ``read`` on a daemon thread and resolve a future with it.

    EOF resolves to None. The thread is never joined, so a read still
    blocked at exit does not hold up interpreter shutdown.
    """
    future = loop.create_future()

    def worker() -> None:
        try:
            line: str | None = read()
        except (EOFError, KeyboardInterrupt):
            line = None
        except Exception as e:
            logger.warning("Reading input failed: %s", e)
            line = None
        try:
            loop.call_soon_threadsafe(_settle, future, line)
        except RuntimeError:
            # Loop already closed
            pass

    threading.Thread(target=worker, name="nexus-input", daemon=True).start()
    return future


class ChatApp:
    """REPL wiring: input -> slash commands or Conversation -> renderer."""

    def __init__(self, conversation: Conversation, renderer: ChatRenderer) -> None:
        self._conversation = conversation
        self._renderer = renderer
        self._background: set[asyncio.Task] = set()
        self._pending_input: asyncio.Future | None = None
        conversation.subscribe(renderer.render)

    async def run_turn(self, prompt: str, echoed: bool = False) -> None:
        """Send one prompt and wait until the turn ends or is aborted."""
        loop = asyncio.get_running_loop()
        aborted = asyncio.Event()

        def on_interrupt() -> None:
            self._conversation.abort()
            aborted.set()

        session_before = self._conversation.state.session_id
        self._renderer.start_turn(echoed_prompt=echoed)
        task = asyncio.create_task(self._conversation.send_message(prompt), name="nexus-turn")
        restore = _install_sigint_handler(loop, on_interrupt)
        waiter = asyncio.create_task(aborted.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if restore is not None:
                restore()
            self._renderer.end_turn()

        if not task.done():
            # Aborted: the turn task is closing its stream
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            self._renderer.console.print(f"[yellow]{SYMBOLS['warning']} Cancelled[/yellow]")

        if self._conversation.state.session_id != session_before:
            self._renderer.print_status(self._conversation.state)

    def _prompt(self) -> str:
        return self._renderer.console.input(f"[bold green]{SYMBOLS['user']}[/] ")

    async def _read_line(self) -> str | None:
        """Next input line, or None on EOF or Ctrl+C at the prompt."""
        loop = asyncio.get_running_loop()
        pending = _read_in_thread(loop, self._prompt)
        restore = _install_sigint_handler(loop, lambda: _settle(pending, None))
        self._pending_input = pending
        try:
            line = await pending
        except asyncio.CancelledError:
            return None
        finally:
            self._pending_input = None
            if restore is not None:
                restore()
        return line.strip() if line is not None else None

    async def run(self, initial_prompt: str | None = None) -> None:
        self._renderer.print_header()
        self._renderer.print_status(self._conversation.state)
        self._renderer.print_footer()

        if initial_prompt:
            await self.run_turn(initial_prompt)

        while True:
            line = await self._read_line()
            if line is None:
                break
            if not line:
                continue

            command = parse_command(line)
            if command == Command.EXIT:
                break
            if command == Command.CLEAR:
                self._conversation.clear_error()
                self._renderer.redraw(self._conversation.state)
                continue
            if command == Command.HELP:
                self._renderer.console.print(HELP_TEXT, style="dim", markup=False)
                continue

            await self.run_turn(line, echoed=True)

    async def shutdown(self) -> None:
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)


async def run_app(settings: Settings, initial_prompt: str | None = None, resume: str | None = None) -> None:
    transport = HttpAgentTransport(settings)
    session = AgentSession(transport, session_id=resume)
    conversation = Conversation(session)
    renderer = ChatRenderer(
        Console(),
        model=settings.model,
        cwd=settings.cwd,
        max_history_display=settings.max_history_display,
    )
    app = ChatApp(conversation, renderer)
    try:
        await app.run(initial_prompt)
    finally:
        await app.shutdown()
        await transport.aclose()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    overrides: dict[str, str] = {}
    if args.model:
        overrides["CLAUDE_MODEL"] = args.model
    if args.cwd:
        overrides["NEXUS_CWD"] = args.cwd

    try:
        settings = load_settings(**overrides)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        if "ANTHROPIC_API_KEY" in str(e):
            print(API_KEY_HINT, file=sys.stderr)
        return 1

    configure_logging(settings)
    initial_prompt = " ".join(args.prompt) if args.prompt else None

    try:
        asyncio.run(run_app(settings, initial_prompt, args.resume))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
