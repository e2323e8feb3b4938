"""Tests for livesite.reload.endpoint — the ASGI WebSocket side."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

import pytest

from livesite.observability import EventLog, SessionClosed, SessionCollector
from livesite.reload.endpoint import (
    CLOSE_NORMAL,
    CLOSE_POLICY_VIOLATION,
    handle_reload_socket,
    reject_socket,
)
from livesite.reload.inject import RELOAD_PATH

if TYPE_CHECKING:
    from livesite.config import WatchSpec
    from tests.conftest import DetectorFactory

SCOPE: dict[str, Any] = {"type": "websocket", "path": RELOAD_PATH, "headers": []}


class FakeSocket:
    """Client half of an ASGI WebSocket connection."""

    def __init__(self) -> None:
        self.inbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self.sent: list[dict[str, Any]] = []
        self.inbox.put_nowait({"type": "websocket.connect"})

    async def receive(self) -> dict[str, Any]:
        return await self.inbox.get()

    async def send(self, message: dict[str, Any]) -> None:
        self.sent.append(message)

    def disconnect(self) -> None:
        self.inbox.put_nowait({"type": "websocket.disconnect", "code": 1001})

    def of_type(self, kind: str) -> list[dict[str, Any]]:
        return [m for m in self.sent if m["type"] == kind]


class TestHandleReloadSocket:
    @pytest.mark.asyncio
    async def test_accepts_sends_reload_then_closes(
        self, spec: WatchSpec, detectors: DetectorFactory
    ) -> None:
        socket = FakeSocket()
        task = asyncio.create_task(
            handle_reload_socket(
                SCOPE,
                socket.receive,
                socket.send,
                spec=spec,
                session_id=1,
                heartbeat_interval=0.05,
                detector_factory=detectors,
            )
        )
        detector = await detectors.wait_for()
        detector.emit("index.html")
        await asyncio.wait_for(task, timeout=2.0)

        assert [m["type"] for m in socket.sent] == [
            "websocket.accept",
            "websocket.send",
            "websocket.close",
        ]
        assert json.loads(socket.sent[1]["text"])["r"]
        assert socket.sent[2]["code"] == CLOSE_NORMAL
        assert detector.released

    @pytest.mark.asyncio
    async def test_client_disconnect_releases_session(
        self, spec: WatchSpec, detectors: DetectorFactory
    ) -> None:
        collector = SessionCollector(EventLog())
        socket = FakeSocket()
        task = asyncio.create_task(
            handle_reload_socket(
                SCOPE,
                socket.receive,
                socket.send,
                spec=spec,
                session_id=3,
                heartbeat_interval=0.05,
                collector=collector,
                detector_factory=detectors,
            )
        )
        detector = await detectors.wait_for()
        socket.disconnect()
        await asyncio.wait_for(task, timeout=2.0)

        assert detector.stopped
        assert detector.released
        assert socket.of_type("websocket.send") == []
        assert socket.of_type("websocket.close") == []
        (closed,) = collector.log.query(event_type=SessionClosed)
        assert closed.reason == "disconnected"
        assert collector.active_sessions == 0

    @pytest.mark.asyncio
    async def test_failed_send_ends_quietly(
        self, spec: WatchSpec, detectors: DetectorFactory
    ) -> None:
        socket = FakeSocket()

        async def send(message: dict[str, Any]) -> None:
            if message["type"] == "websocket.send":
                raise OSError("broken pipe")
            await socket.send(message)

        task = asyncio.create_task(
            handle_reload_socket(
                SCOPE,
                socket.receive,
                send,
                spec=spec,
                session_id=4,
                heartbeat_interval=0.05,
                detector_factory=detectors,
            )
        )
        detector = await detectors.wait_for()
        detector.emit("index.md")
        await asyncio.wait_for(task, timeout=2.0)

        assert detector.released
        assert socket.of_type("websocket.close") == []

    @pytest.mark.asyncio
    async def test_ignores_non_connect_first_message(
        self, spec: WatchSpec, detectors: DetectorFactory
    ) -> None:
        socket = FakeSocket()
        socket.inbox = asyncio.Queue()
        socket.disconnect()

        await handle_reload_socket(
            SCOPE, socket.receive, socket.send, spec=spec, session_id=5,
            detector_factory=detectors,
        )

        assert socket.sent == []
        assert detectors.created == []


class TestRejectSocket:
    @pytest.mark.asyncio
    async def test_closes_with_policy_violation(self) -> None:
        socket = FakeSocket()
        await reject_socket(socket.receive, socket.send)

        assert socket.sent == [{"type": "websocket.close", "code": CLOSE_POLICY_VIOLATION}]
