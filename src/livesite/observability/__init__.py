"""Diagnostics — session lifecycle and content-filter events.

Quick Start:
    >>> from livesite.observability import EventLog, SessionCollector
    >>> collector = SessionCollector(EventLog())
    >>> # Pass collector to Pounce as lifecycle_collector; reload sessions
    >>> # and the content filter record through the same instance.

"""

from livesite.observability.collector import SessionCollector
from livesite.observability.events import (
    ChangeObserved,
    LiveSiteEvent,
    ReloadSent,
    ResponseFiltered,
    SessionClosed,
    SessionOpened,
    now_ns,
)
from livesite.observability.log import EventLog

__all__ = [
    "ChangeObserved",
    "EventLog",
    "LiveSiteEvent",
    "ReloadSent",
    "ResponseFiltered",
    "SessionClosed",
    "SessionCollector",
    "SessionOpened",
    "now_ns",
]
