"""Reload notification endpoint — the WebSocket side of live reload.

Speaks the ASGI WebSocket protocol directly: accepts the connection, runs
one ``ReloadSession`` for it, and closes it once the session ends.

Two concurrent tasks:
- **Session**: watches, waits for a heartbeat, sends at most one message.
- **Disconnect monitor**: awaits ``websocket.disconnect`` from the client
  and cancels the session so its helpers are released.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from livesite._errors import DeliveryError
from livesite.reload.session import ReloadSession
from livesite.watch.detector import ChangeDetector

if TYPE_CHECKING:
    from collections.abc import Callable

    from chirp._internal.asgi import Receive, Scope, Send

    from livesite._types import SessionID
    from livesite.config import WatchSpec
    from livesite.observability.collector import SessionCollector

logger = logging.getLogger("livesite.server")

# RFC 6455 close codes
CLOSE_NORMAL = 1000
CLOSE_POLICY_VIOLATION = 1008
CLOSE_INTERNAL_ERROR = 1011


async def handle_reload_socket(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    spec: WatchSpec,
    session_id: SessionID,
    heartbeat_interval: float = 1.0,
    collector: SessionCollector | None = None,
    detector_factory: Callable[[WatchSpec], ChangeDetector] = ChangeDetector,
) -> None:
    """Serve one reload notification connection.

    1. Waits for ``websocket.connect`` and accepts.
    2. Runs the session and the disconnect monitor concurrently; the first
       to finish cancels the other.
    3. Closes the socket (code 1000) after a delivered reload.
    """
    message = await receive()
    if message["type"] != "websocket.connect":
        return
    await send({"type": "websocket.accept"})

    disconnected = asyncio.Event()

    async def send_text(text: str) -> None:
        if disconnected.is_set():
            msg = "client already disconnected"
            raise ConnectionError(msg)
        await send({"type": "websocket.send", "text": text})

    async def monitor_disconnect() -> None:
        """Drain client frames until the client goes away."""
        while True:
            message = await receive()
            if message["type"] == "websocket.disconnect":
                disconnected.set()
                return

    session = ReloadSession(
        spec,
        send_text,
        session_id=session_id,
        heartbeat_interval=heartbeat_interval,
        collector=collector,
        detector_factory=detector_factory,
    )

    session_task = asyncio.create_task(session.run(), name=f"livesite-session-{session_id}")
    monitor_task = asyncio.create_task(monitor_disconnect())

    try:
        await asyncio.wait(
            {session_task, monitor_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
    finally:
        for task in (session_task, monitor_task):
            if not task.done():
                task.cancel()
        # The cancelled session still stops its helpers before finishing.
        await asyncio.wait({session_task, monitor_task})

    if not monitor_task.cancelled() and monitor_task.exception() is not None:
        logger.debug("session %d: receive failed: %r", session_id, monitor_task.exception())

    if session_task.cancelled():
        logger.debug("session %d: client disconnected", session_id)
        return

    code = CLOSE_NORMAL
    try:
        session_task.result()
    except DeliveryError as exc:
        logger.debug("%s", exc)
        return
    except Exception:
        logger.exception("session %d failed", session_id)
        code = CLOSE_INTERNAL_ERROR

    if not disconnected.is_set():
        with contextlib.suppress(OSError, RuntimeError):
            await send({"type": "websocket.close", "code": code})


async def reject_socket(receive: Receive, send: Send) -> None:
    """Refuse a WebSocket on a path that isn't the reload endpoint."""
    message = await receive()
    if message["type"] == "websocket.connect":
        await send({"type": "websocket.close", "code": CLOSE_POLICY_VIOLATION})
