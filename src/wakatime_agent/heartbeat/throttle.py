"""Decide whether an editor event is worth a heartbeat."""

from __future__ import annotations

import os

from .models import EditorDocument, ThrottleState

HEARTBEAT_INTERVAL_MS = 120_000


class HeartbeatThrottler:
    """Rate-limit heartbeats for continuous editing of one file.

    An event passes when it is a save, when at least two minutes have gone
    by since the last heartbeat, or when it is for a different file. The
    state is updated before :meth:`accept` returns, so a burst of events for
    the same file lets only the first one through. Events with no document,
    an empty document, or a blank or relative path never touch the state.
    """

    def __init__(
        self,
        state: ThrottleState | None = None,
        *,
        interval_ms: int = HEARTBEAT_INTERVAL_MS,
    ) -> None:
        self._state = state or ThrottleState()
        self._interval_ms = interval_ms

    @property
    def state(self) -> ThrottleState:
        return self._state

    def enough_time_passed(self, now_ms: int) -> bool:
        return now_ms - self._state.last_sent_at_ms >= self._interval_ms

    def accept(
        self,
        document: EditorDocument | None,
        *,
        is_write: bool,
        now_ms: int,
    ) -> bool:
        if document is None or document.is_empty:
            return False
        path = (document.path or "").strip()
        if not path or not os.path.isabs(path):
            return False

        if not (is_write or self.enough_time_passed(now_ms) or path != self._state.last_file):
            return False

        self._state.last_file = path
        self._state.last_sent_at_ms = now_ms
        return True


__all__ = ["HEARTBEAT_INTERVAL_MS", "HeartbeatThrottler"]
