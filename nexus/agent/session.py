"""Agent session -- runs turns against the backend as canonical events.

Owns the session-continuation token: captured from any raw message that
carries one and passed back on every later turn. The token is never
generated locally.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from nexus.agent.events import CanonicalEvent, DoneEvent, TextEvent
from nexus.agent.messages import extract_session_id
from nexus.agent.normalizer import normalize
from nexus.agent.transport import AgentTransport
from nexus.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class AgentSession:
    """Drives one backend conversation, turn by turn.

    Pass ``session_id`` to resume an earlier backend session.
    """

    def __init__(self, transport: AgentTransport, session_id: str | None = None) -> None:
        self._transport = transport
        self._session_id = session_id

    @property
    def session_id(self) -> str | None:
        return self._session_id

    async def run_turn(
        self,
        prompt: str,
        token: CancellationToken,
    ) -> AsyncIterator[CanonicalEvent]:
        """Yield canonical events for one turn, ending with DoneEvent.

        Cancelling the token interrupts the pending read and closes the
        transport stream; nothing further is yielded, not even DoneEvent.
        Transport failures propagate to the caller.
        """
        accumulated_text = ""
        stream = self._transport.start_turn(prompt, resume_token=self._session_id)
        cancelled = asyncio.get_running_loop().create_future()

        def on_cancel() -> None:
            if not cancelled.done():
                cancelled.set_result(None)

        token.on_cancel(on_cancel)
        next_raw: asyncio.Future | None = None

        try:
            while True:
                next_raw = asyncio.ensure_future(anext(stream))
                await asyncio.wait({next_raw, cancelled}, return_when=asyncio.FIRST_COMPLETED)
                if token.cancelled:
                    logger.info("Turn cancelled (%s), closing stream", token.reason or "no reason given")
                    return

                try:
                    raw = next_raw.result()
                except StopAsyncIteration:
                    break

                session_id = extract_session_id(raw)
                if session_id and session_id != self._session_id:
                    logger.debug("Captured session id %s", session_id)
                    self._session_id = session_id

                event = normalize(raw, accumulated_text)
                if event is None:
                    continue
                if isinstance(event, TextEvent):
                    accumulated_text = event.content
                yield event
        finally:
            if not cancelled.done():
                cancelled.cancel()
            if next_raw is not None and not next_raw.done():
                next_raw.cancel()
                with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration):
                    await next_raw
            elif next_raw is not None and not next_raw.cancelled() and token.cancelled:
                # A read that failed as the turn was cancelled
                next_raw.exception()
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        if not token.cancelled:
            yield DoneEvent()
