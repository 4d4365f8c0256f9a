"""Cancellable per-room countdown.

Ticks and expiry are delivered through the owning room's dispatch callable so
they serialize with player actions. Each start bumps a generation number;
callbacks from a replaced countdown are dropped.
"""

import asyncio
import logging
from functools import partial
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], Awaitable[Any]]
ExpireCallback = Callable[[], Awaitable[Any]]
Dispatch = Callable[[Callable[[], Awaitable[Any]]], Awaitable[Any]]


class PhaseTimer:
    """At most one live countdown; starting a new one replaces the old."""

    def __init__(self, dispatch: Dispatch, interval: float = 1.0, label: str = "") -> None:
        self._dispatch = dispatch
        self._interval = interval
        self._label = label
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self._on_expire: Optional[ExpireCallback] = None
        self._on_tick: Optional[TickCallback] = None
        self.remaining = 0

    @property
    def active(self) -> bool:
        return self._on_expire is not None

    async def start(
        self,
        seconds: int,
        on_expire: ExpireCallback,
        on_tick: Optional[TickCallback] = None,
    ) -> None:
        """
        Replace any running countdown. on_tick gets the starting value right
        away, then each new remaining value; on_expire runs once at zero.
        A zero-length countdown expires inline without scheduling a task.
        """
        self._cancel_task()
        self._generation += 1
        generation = self._generation
        seconds = max(0, int(seconds))
        self.remaining = seconds
        self._on_expire = on_expire
        self._on_tick = on_tick

        if on_tick is not None:
            await on_tick(seconds)
        if generation != self._generation:
            return
        if seconds == 0:
            logger.debug("%s: immediate expiry", self._label)
            await self._fire()
            return
        self._task = asyncio.create_task(self._run(generation))

    def cancel(self) -> None:
        """Stop without firing on_expire."""
        self._generation += 1
        self._cancel_task()
        self._on_expire = None
        self._on_tick = None

    async def fire_now(self) -> bool:
        """Short-circuit the running countdown: stop it and fire on_expire once."""
        if self._on_expire is None:
            return False
        self._generation += 1
        self._cancel_task()
        self.remaining = 0
        await self._fire()
        return True

    def _cancel_task(self) -> None:
        task, self._task = self._task, None
        # An expiry handler may restart the timer from inside the timer task itself
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _run(self, generation: int) -> None:
        while True:
            await asyncio.sleep(self._interval)
            keep_going = await self._dispatch(partial(self._tick, generation))
            if not keep_going:
                return

    async def _tick(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("%s: dropping tick from replaced countdown", self._label)
            return False
        self.remaining -= 1
        if self._on_tick is not None:
            await self._on_tick(self.remaining)
        if generation != self._generation:
            return False
        if self.remaining > 0:
            return True
        self._task = None
        await self._fire()
        return False

    async def _fire(self) -> None:
        on_expire = self._on_expire
        self._on_expire = None
        self._on_tick = None
        if on_expire is not None:
            await on_expire()
