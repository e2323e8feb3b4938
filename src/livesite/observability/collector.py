"""Session collector — records reload-session and filter events.

Implements Pounce's ``LifecycleCollector`` protocol so it can be passed
directly to the Pounce server; connection lifecycle events land in the
same ``EventLog`` as session events.

Thread Safety:
    Event storage is delegated to ``EventLog`` (internally locked); the
    active-session gauge has its own lock.

"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from livesite.observability.events import (
    ChangeObserved,
    ReloadSent,
    ResponseFiltered,
    SessionClosed,
    SessionOpened,
    now_ns,
)
from livesite.observability.log import EventLog

if TYPE_CHECKING:
    from livesite._types import ChangeKind, CloseReason, SessionID


class SessionCollector:
    """Unified event collector for livesite.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_active", "_lock", "_log", "_reloads")

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()
        self._lock = threading.Lock()
        self._active = 0
        self._reloads = 0

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    @property
    def active_sessions(self) -> int:
        with self._lock:
            return self._active

    # ----- Pounce LifecycleCollector protocol -----

    def record(self, event: Any) -> None:
        """Record a Pounce lifecycle event as-is (they are frozen dataclasses)."""
        self._log.append(event)

    # ----- Reload sessions -----

    def session_opened(self, session_id: SessionID) -> None:
        with self._lock:
            self._active += 1
        self._log.append(SessionOpened(session_id=session_id, timestamp_ns=now_ns()))

    def change_observed(self, session_id: SessionID, path: str, kind: ChangeKind) -> None:
        self._log.append(
            ChangeObserved(session_id=session_id, path=path, kind=kind, timestamp_ns=now_ns())
        )

    def reload_sent(self, session_id: SessionID, *, changes: int) -> None:
        with self._lock:
            self._reloads += 1
        self._log.append(ReloadSent(session_id=session_id, changes=changes, timestamp_ns=now_ns()))

    def session_closed(self, session_id: SessionID, reason: CloseReason) -> None:
        with self._lock:
            self._active -= 1
        self._log.append(SessionClosed(session_id=session_id, reason=reason, timestamp_ns=now_ns()))

    # ----- Content filter -----

    def response_filtered(self, path: str, *, filtered: bool, content_length: int) -> None:
        self._log.append(
            ResponseFiltered(
                path=path,
                filtered=filtered,
                content_length=content_length,
                timestamp_ns=now_ns(),
            )
        )

    def stats(self) -> dict[str, Any]:
        """Session gauges plus the event log summary."""
        with self._lock:
            sessions = {"active": self._active, "reloads_sent": self._reloads}
        return {"sessions": sessions, "event_log": self._log.stats()}
