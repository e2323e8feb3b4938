"""Reload session — one per notification connection.

Owns a ``ChangeDetector`` and a ``Heartbeat``.  Change notifications arm
the session; the next heartbeat tick after arming sends a single reload
message and the session terminates.  The browser reconnects to resume
watching, which starts a fresh session.

Lifecycle::

    active ── change ──> active (pending) ── tick ──> send ──> terminated
       │                                                          ^
       └── detector ends / send fails / cancelled ────────────────┘

Both helpers are stopped on every exit path, cooperatively: each one
watches its own stop event, and the session waits for them to wind down.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from livesite._errors import DeliveryError
from livesite.watch.detector import ChangeDetector
from livesite.watch.heartbeat import Heartbeat

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterator, Callable

    from livesite._types import CloseReason, SendText, SessionID
    from livesite.config import WatchSpec
    from livesite.observability.collector import SessionCollector
    from livesite.watch.detector import ChangeEvent

logger = logging.getLogger("livesite.reload")

# How long to wait for helpers to observe their stop signal before
# cancelling them outright.
_SHUTDOWN_GRACE = 5.0


@dataclass(frozen=True, slots=True)
class ReloadMessage:
    """The instruction telling a browser to reload.

    The client treats any truthy ``r`` field as "reload now".
    """

    timestamp: float

    def encode(self) -> str:
        """Serialize to the wire payload ``{"r": <timestamp>}``."""
        return json.dumps({"r": self.timestamp})


class SessionCounter:
    """Hands out monotonically increasing session ids.

    One instance per server; sessions only use the id for logs and
    diagnostics.
    """

    __slots__ = ("_last", "_lock")

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def next_id(self) -> SessionID:
        with self._lock:
            self._last += 1
            return self._last


class ReloadSession:
    """Coordinates one connection's detector and heartbeat.

    Args:
        spec: What to watch.
        send: Sends one text frame over the connection.
        session_id: Identifier used in logs and diagnostics.
        heartbeat_interval: Seconds between heartbeat ticks.
        collector: Optional diagnostics sink.
        detector_factory: Builds the change detector for *spec*.

    """

    def __init__(
        self,
        spec: WatchSpec,
        send: SendText,
        *,
        session_id: SessionID = 0,
        heartbeat_interval: float = 1.0,
        collector: SessionCollector | None = None,
        detector_factory: Callable[[WatchSpec], ChangeDetector] = ChangeDetector,
    ) -> None:
        self._spec = spec
        self._send = send
        self._id = session_id
        self._interval = heartbeat_interval
        self._collector = collector
        self._detector_factory = detector_factory
        self._state: Literal["idle", "active", "terminated"] = "idle"
        self._pending = False
        self._changes: list[str] = []

    @property
    def id(self) -> SessionID:
        return self._id

    @property
    def state(self) -> Literal["idle", "active", "terminated"]:
        return self._state

    @property
    def pending(self) -> bool:
        """True once a change has been observed and not yet delivered."""
        return self._pending

    async def run(self) -> CloseReason:
        """Run until a reload is delivered or the detector ends.

        Returns:
            ``"reloaded"`` or ``"watch_ended"``.

        Raises:
            DeliveryError: If sending the reload message failed.
            asyncio.CancelledError: If the connection went away.

        """
        if self._state != "idle":
            msg = f"reload session {self._id} already ran"
            raise RuntimeError(msg)
        self._state = "active"
        reason: CloseReason = "disconnected"
        if self._collector is not None:
            self._collector.session_opened(self._id)
        logger.debug("session %d: watching %s", self._id, self._spec.root)

        heartbeat = Heartbeat(self._interval)
        detector: ChangeDetector | None = None
        changes: AsyncGenerator[ChangeEvent] | None = None
        heartbeat_task: asyncio.Task[None] | None = None
        next_change: asyncio.Task[ChangeEvent] | None = None
        next_tick: asyncio.Task[float] | None = None

        try:
            detector = self._detector_factory(self._spec)
            changes = detector.changes()
            heartbeat_task = asyncio.create_task(
                heartbeat.run(), name=f"livesite-heartbeat-{self._id}"
            )
            while True:
                if next_change is None:
                    next_change = asyncio.create_task(_next_event(changes))
                if next_tick is None:
                    next_tick = asyncio.create_task(heartbeat.tick())

                done, _ = await asyncio.wait(
                    {next_change, next_tick},
                    return_when=asyncio.FIRST_COMPLETED,
                )

                # A tick that completed alongside a change predates it.
                if next_tick in done:
                    next_tick = None
                    if self._pending:
                        await self._deliver()
                        reason = "reloaded"
                        return reason

                if next_change in done:
                    finished, next_change = next_change, None
                    try:
                        event = finished.result()
                    except StopAsyncIteration:
                        reason = "watch_ended"
                        return reason
                    self._observe(event)
        except DeliveryError:
            reason = "delivery_failed"
            raise
        except Exception:
            reason = "failed"
            raise
        finally:
            self._state = "terminated"
            if detector is not None:
                detector.stop()
            heartbeat.stop()
            if next_tick is not None:
                next_tick.cancel()
            await _wind_down(next_change, next_tick, heartbeat_task)
            if changes is not None:
                await changes.aclose()
            if self._collector is not None:
                self._collector.session_closed(self._id, reason)
            logger.debug("session %d: terminated (%s)", self._id, reason)

    def _observe(self, event: ChangeEvent) -> None:
        self._pending = True
        self._changes.append(event.description)
        if self._collector is not None:
            self._collector.change_observed(self._id, str(event.path), event.kind)

    async def _deliver(self) -> None:
        message = ReloadMessage(timestamp=time.time())
        try:
            await self._send(message.encode())
        except Exception as exc:
            msg = f"session {self._id}: reload delivery failed: {exc}"
            raise DeliveryError(msg) from exc
        self._pending = False
        if self._collector is not None:
            self._collector.reload_sent(self._id, changes=len(self._changes))
        logger.info("reload sent (session %d): %s", self._id, ", ".join(self._changes))


async def _next_event(changes: AsyncIterator[ChangeEvent]) -> ChangeEvent:
    return await anext(changes)


async def _wind_down(*tasks: asyncio.Task[object] | None) -> None:
    """Wait for stopped helpers to finish; cancel any that overstay."""
    live = {task for task in tasks if task is not None}
    if not live:
        return
    _done, pending = await asyncio.wait(live, timeout=_SHUTDOWN_GRACE)
    for task in pending:
        logger.warning("helper %s ignored stop signal, cancelling", task.get_name())
        task.cancel()
    if pending:
        await asyncio.wait(pending)
    for task in live:
        if task.cancelled():
            continue
        exc = task.exception()
        if exc is not None and not isinstance(exc, StopAsyncIteration):
            logger.error("helper %s failed during shutdown: %r", task.get_name(), exc)
