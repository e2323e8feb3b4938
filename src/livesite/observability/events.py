"""Diagnostic event model for reload sessions and filtered responses.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass

from livesite._types import ChangeKind, CloseReason, SessionID

# ---------------------------------------------------------------------------
# Reload session events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SessionOpened:
    """A notification connection started its reload session."""

    session_id: SessionID
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ChangeObserved:
    """A session received a change notification from its detector.

    Attributes:
        session_id: Owning session.
        path: Absolute path of the changed file.
        kind: Type of filesystem change.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: SessionID
    path: str
    kind: ChangeKind
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ReloadSent:
    """A session delivered its reload message.

    Attributes:
        session_id: Owning session.
        changes: Number of change notifications folded into this reload.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: SessionID
    changes: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class SessionClosed:
    """A session terminated and released its helpers."""

    session_id: SessionID
    reason: CloseReason
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Content filter events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ResponseFiltered:
    """The content filter emitted a response.

    Attributes:
        path: Request path.
        filtered: True if the reload snippet was spliced in.
        content_length: Length of the emitted body in bytes.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    filtered: bool
    content_length: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type LiveSiteEvent = (
    SessionOpened
    | ChangeObserved
    | ReloadSent
    | SessionClosed
    | ResponseFiltered
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
