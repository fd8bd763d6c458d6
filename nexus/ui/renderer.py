"""Rich renderer for conversation snapshots.

Committed history is printed once, in order, above a live region that
shows the turn in flight (thinking, active tool, streaming response,
last error). The renderer only reads snapshots; it never touches the
conversation itself.
"""

from __future__ import annotations

import logging

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.padding import Padding
from rich.table import Table
from rich.text import Text

from nexus.conversation.state import ActiveTool, ConversationMessage, ConversationState, Role
from nexus.ui.formatting import format_value, short_session_id, truncate
from nexus.ui.theme import (
    ERROR_STYLE,
    MUTED_STYLE,
    ROLE_STYLES,
    SYMBOLS,
    THINKING_STYLE,
    role_label,
)

logger = logging.getLogger(__name__)

_TOOL_HISTORY_PREVIEW = 50
_TOOL_LIVE_PREVIEW = 200


def render_message(message: ConversationMessage) -> RenderableType:
    """Renderable for one committed history entry."""
    _, _, style = ROLE_STYLES[message.role]

    if message.role == Role.USER:
        line = Text(f"{role_label(Role.USER)}: ", style=style)
        line.append(message.content, style="default")
        return Padding(line, (1, 0, 0, 0))

    if message.role == Role.ASSISTANT:
        body = Padding(Text(message.content), (0, 0, 0, 2))
        return Padding(Group(Text(role_label(Role.ASSISTANT), style=style), body), (1, 0, 0, 0))

    if message.role == Role.TOOL:
        line = Text(f"{SYMBOLS['tool']} {message.tool_name or message.content}", style=style)
        if message.tool_output is not None:
            output = truncate(str(message.tool_output), _TOOL_HISTORY_PREVIEW)
            line.append(f" {SYMBOLS['arrow']} {output}", style=MUTED_STYLE)
        return Padding(line, (1, 0, 0, 2))

    return Padding(Text(f"{SYMBOLS['info']} {message.content}", style=style), (1, 0, 0, 0))


def render_tool(tool: ActiveTool) -> RenderableType:
    header = Text(f"{SYMBOLS['tool']} {tool.name}", style="bold yellow")
    if tool.is_running:
        header.append(" running...", style=MUTED_STYLE)
    parts: list[RenderableType] = [header]
    if tool.input is not None:
        line = Text("Input: ", style=MUTED_STYLE)
        line.append(format_value(tool.input, _TOOL_LIVE_PREVIEW), style="default")
        parts.append(Padding(line, (0, 0, 0, 2)))
    if tool.output is not None:
        line = Text("Output: ", style=MUTED_STYLE)
        line.append(format_value(tool.output, _TOOL_LIVE_PREVIEW), style="green")
        parts.append(Padding(line, (0, 0, 0, 2)))
    return Padding(Group(*parts), (1, 0, 0, 2))


def render_streaming(content: str, processing: bool, thinking: bool = False) -> RenderableType:
    """Streaming block for the in-progress response or reasoning."""
    if thinking:
        header = Text(f"{SYMBOLS['thinking']} Thinking", style=THINKING_STYLE)
    else:
        header = Text(role_label(Role.ASSISTANT), style=ROLE_STYLES[Role.ASSISTANT][2])
    if processing:
        header.append(" ...", style=MUTED_STYLE)
    body = content or ("Thinking..." if processing else "")
    return Padding(Group(header, Padding(Text(body), (0, 0, 0, 2))), (1, 0, 0, 0))


def render_turn(state: ConversationState) -> RenderableType | None:
    """Live region for the turn in flight, or None when there is nothing to show."""
    turn = state.turn
    parts: list[RenderableType] = []

    if turn.current_thinking_text:
        parts.append(render_streaming(turn.current_thinking_text, turn.processing, thinking=True))
    if turn.active_tool is not None:
        parts.append(render_tool(turn.active_tool))
    if (turn.current_response_text or turn.processing) and not turn.current_thinking_text:
        parts.append(render_streaming(turn.current_response_text, turn.processing))
    if turn.last_error:
        parts.append(Padding(Text(f"Error: {turn.last_error}", style=ERROR_STYLE), (1, 0, 0, 0)))

    if not parts:
        return None
    return Group(*parts)


def render_status(state: ConversationState, model: str, cwd: str) -> RenderableType:
    """One-line status bar: model, cwd, session, processing marker."""
    grid = Table.grid(expand=True, padding=(0, 2))
    cells: list[Text] = [
        Text.assemble(("Model: ", MUTED_STYLE), (model, "cyan")),
        Text.assemble(("CWD: ", MUTED_STYLE), (cwd, "blue")),
    ]
    if state.session_id:
        cells.append(Text.assemble(("Session: ", MUTED_STYLE), (short_session_id(state.session_id), "magenta")))
    if state.processing:
        cells.append(Text("● Processing", style="yellow"))
    for _ in cells:
        grid.add_column()
    grid.add_row(*cells)
    return grid


class ChatRenderer:
    """Renders ConversationState snapshots to a rich Console.

    render() is idempotent for a given snapshot: history entries are
    printed once, keyed by message id.
    """

    def __init__(self, console: Console, model: str, cwd: str, max_history_display: int = 10) -> None:
        self.console = console
        self._model = model
        self._cwd = cwd
        self._max_history_display = max_history_display
        self._printed_ids: set[str] = set()
        self._live: Live | None = None
        self._last_state: ConversationState | None = None
        self._shown_error: str | None = None
        self._skip_user_echo = False

    def print_header(self) -> None:
        self.console.print(Text.assemble(("Nexus", "bold cyan"), (" - AI Terminal", MUTED_STYLE)))

    def print_status(self, state: ConversationState) -> None:
        self.console.rule(style=MUTED_STYLE)
        self.console.print(render_status(state, self._model, self._cwd))
        self.console.rule(style=MUTED_STYLE)

    def print_footer(self) -> None:
        self.console.print(Text("Ctrl+C to cancel/exit | /help for commands", style=MUTED_STYLE))

    def render(self, state: ConversationState) -> None:
        """Bring the terminal up to date with ``state``."""
        self._last_state = state
        new_messages = [m for m in state.history if m.id not in self._printed_ids]
        if new_messages and self._live is not None:
            # Live region must be cleared before printing above it
            self._live.update(Text(""), refresh=True)
        for message in new_messages:
            self._printed_ids.add(message.id)
            if message.role == Role.USER and self._skip_user_echo:
                # Already on screen from the input prompt
                self._skip_user_echo = False
                continue
            self.console.print(render_message(message))

        if self._live is not None:
            live_view = render_turn(state)
            self._live.update(live_view if live_view is not None else Text(""), refresh=True)
            return

        error = state.turn.last_error
        if error and error != self._shown_error:
            self.console.print(Text(f"Error: {error}", style=ERROR_STYLE))
        self._shown_error = error

    def start_turn(self, echoed_prompt: bool = False) -> None:
        """Open the live region for a turn.

        ``echoed_prompt`` means the prompt was typed at the input line,
        so its user message is not printed a second time.
        """
        if self._live is not None:
            return
        self._shown_error = None
        self._skip_user_echo = echoed_prompt
        self._live = Live(console=self.console, refresh_per_second=8, auto_refresh=False, transient=True)
        self._live.start()

    def end_turn(self) -> None:
        if self._live is None:
            return
        self._live.stop()
        self._live = None
        self._skip_user_echo = False
        if self._last_state is not None:
            self.render(self._last_state)

    def redraw(self, state: ConversationState) -> None:
        """Clear the screen and reprint the most recent history entries."""
        self.console.clear()
        self.print_header()
        self.print_status(state)
        for message in state.history[-self._max_history_display:]:
            self.console.print(render_message(message))
        self._printed_ids.update(m.id for m in state.history)
