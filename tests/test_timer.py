"""Phase timer tests with a tiny tick interval."""

import asyncio

import pytest
from game.timer import PhaseTimer

INTERVAL = 0.01


async def _direct(fn):
    return await fn()


class _Recorder:
    def __init__(self):
        self.ticks = []
        self.expired = 0
        self.done = asyncio.Event()

    async def on_tick(self, remaining):
        self.ticks.append(remaining)

    async def on_expire(self):
        self.expired += 1
        self.done.set()


@pytest.mark.asyncio
async def test_tick_sequence_then_expire():
    timer = PhaseTimer(_direct, interval=INTERVAL)
    rec = _Recorder()
    await timer.start(3, rec.on_expire, rec.on_tick)
    assert timer.active
    await asyncio.wait_for(rec.done.wait(), 2)
    assert rec.ticks == [3, 2, 1, 0]
    assert rec.expired == 1
    assert not timer.active


@pytest.mark.asyncio
async def test_zero_seconds_expires_inline():
    timer = PhaseTimer(_direct, interval=INTERVAL)
    rec = _Recorder()
    await timer.start(0, rec.on_expire, rec.on_tick)
    assert rec.ticks == [0]
    assert rec.expired == 1
    assert timer._task is None


@pytest.mark.asyncio
async def test_cancel_prevents_expiry():
    timer = PhaseTimer(_direct, interval=INTERVAL)
    rec = _Recorder()
    await timer.start(3, rec.on_expire, rec.on_tick)
    timer.cancel()
    await asyncio.sleep(INTERVAL * 10)
    assert rec.ticks == [3]
    assert rec.expired == 0


@pytest.mark.asyncio
async def test_start_replaces_running_countdown():
    timer = PhaseTimer(_direct, interval=INTERVAL)
    first, second = _Recorder(), _Recorder()
    await timer.start(50, first.on_expire, first.on_tick)
    await timer.start(2, second.on_expire, second.on_tick)
    await asyncio.wait_for(second.done.wait(), 2)
    await asyncio.sleep(INTERVAL * 5)
    assert first.expired == 0
    assert first.ticks == [50]
    assert second.ticks == [2, 1, 0]
    assert second.expired == 1


@pytest.mark.asyncio
async def test_fire_now_fires_once():
    timer = PhaseTimer(_direct, interval=INTERVAL)
    rec = _Recorder()
    await timer.start(100, rec.on_expire)
    assert await timer.fire_now() is True
    assert await timer.fire_now() is False
    assert rec.expired == 1
    assert timer.remaining == 0


@pytest.mark.asyncio
async def test_dispatch_returning_none_stops_loop():
    async def closed(fn):
        return None

    timer = PhaseTimer(closed, interval=INTERVAL)
    rec = _Recorder()
    await timer.start(2, rec.on_expire, rec.on_tick)
    await asyncio.sleep(INTERVAL * 10)
    assert rec.expired == 0
    assert timer._task.done()
