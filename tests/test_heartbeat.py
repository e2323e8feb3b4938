"""Tests for livesite.watch.heartbeat — ticks are dropped, never queued."""

from __future__ import annotations

import asyncio

import pytest

from livesite.watch.heartbeat import Heartbeat


class TestHeartbeat:
    @pytest.mark.asyncio
    async def test_tick_delivered_to_waiting_receiver(self) -> None:
        heartbeat = Heartbeat(0.05)
        runner = asyncio.create_task(heartbeat.run())
        try:
            stamp = await asyncio.wait_for(heartbeat.tick(), timeout=1.0)
            assert stamp > 0
        finally:
            heartbeat.stop()
            await runner

    @pytest.mark.asyncio
    async def test_ticks_without_receiver_are_dropped(self) -> None:
        heartbeat = Heartbeat(0.02)
        runner = asyncio.create_task(heartbeat.run())
        await asyncio.sleep(0.15)
        heartbeat.stop()
        await runner

        assert heartbeat.dropped >= 2

    @pytest.mark.asyncio
    async def test_dropped_ticks_do_not_accumulate(self) -> None:
        heartbeat = Heartbeat(10.0)
        heartbeat._fire()
        heartbeat._fire()
        assert heartbeat.dropped == 2

        waiter = asyncio.create_task(heartbeat.tick())
        await asyncio.sleep(0)
        assert not waiter.done()

        heartbeat._fire()
        assert await waiter > 0
        assert heartbeat.dropped == 2

    @pytest.mark.asyncio
    async def test_stop_ends_run_promptly(self) -> None:
        heartbeat = Heartbeat(30.0)
        runner = asyncio.create_task(heartbeat.run())
        await asyncio.sleep(0)
        heartbeat.stop()

        await asyncio.wait_for(runner, timeout=1.0)
        assert heartbeat.stopped

    @pytest.mark.asyncio
    async def test_cancelled_tick_clears_waiter(self) -> None:
        heartbeat = Heartbeat(10.0)
        waiter = asyncio.create_task(heartbeat.tick())
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        heartbeat._fire()
        assert heartbeat.dropped == 1

    def test_interval_property(self) -> None:
        assert Heartbeat(2.5).interval == 2.5
