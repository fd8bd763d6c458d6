"""Cooperative cancellation for agent turns.

A token is created per turn. The turn loop checks ``cancelled`` between
raw messages and registers a callback that interrupts a pending read,
so a stalled backend stream is closed as soon as the turn is cancelled.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

CancelCallback = Callable[[], None]


class CancellationToken:
    """One-shot cancellation flag with optional callbacks."""

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None
        self._callbacks: list[CancelCallback] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation. Idempotent: later calls are ignored."""
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        logger.debug("Cancellation requested: %s", reason or "no reason given")

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Cancel callback %r failed", callback)

    def on_cancel(self, callback: CancelCallback) -> None:
        """Register a callback. Runs immediately if already cancelled."""
        if self._cancelled:
            callback()
            return
        self._callbacks.append(callback)
