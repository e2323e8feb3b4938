"""Watch layer — filesystem change detection and heartbeat pacing.

The detector reports matching file changes in one directory; the heartbeat
supplies the fixed-interval ticks that gate when a pending change is flushed.
"""

from livesite.watch.detector import ChangeDetector, ChangeEvent
from livesite.watch.heartbeat import Heartbeat

__all__ = [
    "ChangeDetector",
    "ChangeEvent",
    "Heartbeat",
]
