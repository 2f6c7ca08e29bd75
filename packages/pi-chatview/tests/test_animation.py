"""Tests for pi.chatview.animation -- scheduled tick callbacks."""

from __future__ import annotations

import asyncio

import pytest

from pi.chatview.animation import TickScheduler


class Counter:
    """Tick callback that asks for ``limit`` ticks in total."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.count = 0

    def __call__(self) -> bool:
        self.count += 1
        return self.count < self.limit


class TestTickScheduler:
    """Ticks run on the event loop until the callback declines."""

    @pytest.mark.asyncio
    async def test_ticks_until_callback_stops(self) -> None:
        counter = Counter(3)
        scheduler = TickScheduler(0.001, counter)
        scheduler.start()
        assert scheduler.running
        for _ in range(200):
            if not scheduler.running:
                break
            await asyncio.sleep(0.005)
        assert counter.count == 3
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_tick(self) -> None:
        counter = Counter(5)
        scheduler = TickScheduler(0.01, counter)
        scheduler.start()
        scheduler.stop()
        await asyncio.sleep(0.05)
        assert counter.count == 0
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_restart_replaces_pending_tick(self) -> None:
        counter = Counter(1)
        scheduler = TickScheduler(0.01, counter)
        scheduler.start()
        scheduler.start()
        await asyncio.sleep(0.05)
        assert counter.count == 1

    def test_start_without_loop_is_noop(self) -> None:
        counter = Counter(1)
        scheduler = TickScheduler(0.01, counter)
        scheduler.start()
        assert not scheduler.running
        assert counter.count == 0

    def test_manual_tick(self) -> None:
        counter = Counter(2)
        scheduler = TickScheduler(0.01, counter)
        assert scheduler.tick() is True
        assert scheduler.tick() is False
        assert counter.count == 2
