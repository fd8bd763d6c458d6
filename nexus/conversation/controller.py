"""Conversation controller -- turn entry point and state owner.

Wraps the pure reducer with the side of things that is not pure:
driving the agent session, holding the current snapshot, cancelling,
and notifying listeners after every transition. Errors from the
backend are absorbed here and represented as state; nothing is
re-raised to the rendering layer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from nexus.agent.session import AgentSession
from nexus.cancellation import CancellationToken
from nexus.conversation import reducer
from nexus.conversation.state import ConversationState

logger = logging.getLogger(__name__)

StateListener = Callable[[ConversationState], None]


class Conversation:
    """Single conversation: at most one turn in flight."""

    def __init__(self, session: AgentSession) -> None:
        self._session = session
        self._state = ConversationState(session_id=session.session_id)
        self._listeners: list[StateListener] = []
        self._token: CancellationToken | None = None

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def processing(self) -> bool:
        return self._state.turn.processing

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with each new snapshot. Returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, new_state: ConversationState) -> None:
        if new_state is self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("State listener %r failed", listener)

    async def send_message(self, prompt: str) -> None:
        """Run one turn for ``prompt``.

        No-op while another turn is processing: the prompt is neither
        recorded nor sent.
        """
        if self.processing:
            logger.info("Turn already in flight, ignoring prompt")
            return

        token = CancellationToken()
        self._token = token
        self._commit(reducer.begin_turn(self._state, prompt))

        events = self._session.run_turn(prompt, token)
        try:
            async for event in events:
                if token.cancelled:
                    break
                self._commit(reducer.set_session_id(self._state, self._session.session_id))
                self._commit(reducer.reduce(self._state, event))
        except Exception as e:
            if token.cancelled:
                logger.debug("Transport error after cancellation ignored: %s", e)
            else:
                logger.error("Turn failed: %s", e)
                self._commit(reducer.fail_turn(self._state, str(e) or type(e).__name__))
        finally:
            await events.aclose()
            if self._token is token:
                self._token = None

        if token.cancelled:
            return

        # Capture a session id that arrived on the last message
        self._commit(reducer.set_session_id(self._state, self._session.session_id))
        if self.processing:
            # Stream ended without DoneEvent reaching the reducer
            self._commit(reducer.cancel_turn(self._state))

    def abort(self) -> None:
        """Cancel the turn in flight. Partial text is discarded."""
        token = self._token
        if token is None or token.cancelled:
            return
        token.cancel("aborted by user")
        self._token = None
        self._commit(reducer.cancel_turn(self._state))

    def clear_error(self) -> None:
        self._commit(reducer.clear_error(self._state))
