"""Conversation reducer.

(state, event) -> new_state

Pure: no IO, no clocks beyond message timestamps, no mutation. The
history only ever grows by appending; turn buffers live in TurnState
and are discarded or committed at the turn boundary.

Turn lifecycle:
    Idle --begin_turn--> Processing --DoneEvent--> Idle
                                    --cancel_turn/fail_turn--> Idle
"""

from __future__ import annotations

import logging
from dataclasses import replace

from nexus.agent.events import (
    CanonicalEvent,
    DoneEvent,
    ErrorEvent,
    TextEvent,
    ThinkingEvent,
    ToolEndEvent,
    ToolStartEvent,
)
from nexus.conversation.state import (
    ActiveTool,
    ConversationMessage,
    ConversationState,
    Role,
    TurnState,
)

logger = logging.getLogger(__name__)


def _append(state: ConversationState, message: ConversationMessage) -> ConversationState:
    return replace(state, history=(*state.history, message))


# ---------------------------------------------------------------------------
# Turn boundary
# ---------------------------------------------------------------------------


def begin_turn(state: ConversationState, prompt: str) -> ConversationState:
    """Commit the user prompt and enter Processing with fresh buffers."""
    state = _append(state, ConversationMessage(role=Role.USER, content=prompt))
    return replace(state, turn=TurnState(processing=True))


def cancel_turn(state: ConversationState) -> ConversationState:
    """Force Idle without committing anything from the turn."""
    return replace(state, turn=TurnState(last_error=state.turn.last_error))


def fail_turn(state: ConversationState, cause: str) -> ConversationState:
    """Force Idle after a transport failure, keeping the cause visible."""
    return replace(state, turn=TurnState(last_error=cause))


def clear_error(state: ConversationState) -> ConversationState:
    return replace(state, turn=replace(state.turn, last_error=None))


def set_session_id(state: ConversationState, session_id: str | None) -> ConversationState:
    if session_id == state.session_id:
        return state
    return replace(state, session_id=session_id)


# ---------------------------------------------------------------------------
# Event transitions
# ---------------------------------------------------------------------------


def _on_tool_end(state: ConversationState, event: ToolEndEvent) -> ConversationState:
    # Without a matching start the end event stands alone as a
    # single-shot tool notice and is still recorded.
    active = state.turn.active_tool
    message = ConversationMessage(
        role=Role.TOOL,
        content=event.name,
        tool_name=event.name,
        tool_input=active.input if active is not None else None,
        tool_output=event.output,
    )
    state = _append(state, message)
    return replace(state, turn=replace(state.turn, active_tool=None))


def _on_done(state: ConversationState) -> ConversationState:
    text = state.turn.current_response_text
    if text:
        state = _append(state, ConversationMessage(role=Role.ASSISTANT, content=text))
    return replace(state, turn=TurnState(last_error=state.turn.last_error))


def reduce(state: ConversationState, event: CanonicalEvent) -> ConversationState:
    """Fold one canonical event into the conversation state."""
    if not state.turn.processing:
        logger.debug("Ignoring %s event while idle", event.type)
        return state

    turn = state.turn

    if isinstance(event, TextEvent):
        return replace(state, turn=replace(turn, current_response_text=event.content))

    if isinstance(event, ThinkingEvent):
        return replace(state, turn=replace(turn, current_thinking_text=event.content))

    if isinstance(event, ToolStartEvent):
        tool = ActiveTool(name=event.name, input=event.input, is_running=True)
        return replace(state, turn=replace(turn, active_tool=tool))

    if isinstance(event, ToolEndEvent):
        return _on_tool_end(state, event)

    if isinstance(event, ErrorEvent):
        logger.warning("Agent reported error: %s", event.cause)
        return replace(state, turn=replace(turn, last_error=event.cause))

    if isinstance(event, DoneEvent):
        return _on_done(state)

    logger.debug("Unhandled event %r", event)
    return state
