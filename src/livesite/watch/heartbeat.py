"""Heartbeat — fixed-interval pacing signal for reload sessions.

A tick is handed to the consumer only if it is currently waiting in
``tick()``.  Ticks that fire while nobody is waiting are dropped, never
queued: the heartbeat paces delivery, it is not a message buffer.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time

logger = logging.getLogger("livesite.watch")


class Heartbeat:
    """Emits a tick every *interval* seconds until stopped.

    Run ``run()`` as a task and await ``tick()`` from the single consumer.

    """

    __slots__ = ("_dropped", "_interval", "_stop_event", "_waiter")

    def __init__(self, interval: float = 1.0) -> None:
        self._interval = interval
        self._stop_event = asyncio.Event()
        self._waiter: asyncio.Future[float] | None = None
        self._dropped = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def dropped(self) -> int:
        """Number of ticks discarded because no consumer was waiting."""
        return self._dropped

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Stop scheduling ticks; ``run()`` returns promptly."""
        self._stop_event.set()

    async def run(self) -> None:
        """Fire ticks on the interval until ``stop()`` is called."""
        while not self._stop_event.is_set():
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            if self._stop_event.is_set():
                break
            self._fire()

    async def tick(self) -> float:
        """Wait for the next tick and return its wall-clock time."""
        waiter = asyncio.get_running_loop().create_future()
        self._waiter = waiter
        try:
            return await waiter
        finally:
            if self._waiter is waiter:
                self._waiter = None

    def _fire(self) -> None:
        waiter = self._waiter
        if waiter is None or waiter.done():
            self._dropped += 1
            logger.debug("heartbeat tick dropped, no receiver waiting")
            return
        waiter.set_result(time.time())
