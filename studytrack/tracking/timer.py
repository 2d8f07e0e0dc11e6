"""
TimeAccumulator - Count study time while the app is visible.

One instance per session: started when a textbook opens, stopped (with a
final flush) when it closes.
"""

import asyncio
import logging
from typing import Optional

from .clock import Clock
from .store import ProgressStore


logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 1  # seconds

# Longer gaps mean the host stopped driving the clock (tab closed, asleep)
MAX_CATCH_UP_TICKS = 5


class TimeAccumulator:
    """
    Periodic time accrual for a ProgressStore.

    Every tick adds the interval to today's bucket if the app is visible,
    then flushes whether or not time was added. Flush failures are
    reported by the store and retried by the next tick.
    """

    def __init__(self, store: ProgressStore, clock: Clock, interval: int = DEFAULT_TICK_INTERVAL):
        if interval < 1:
            raise ValueError(f"Tick interval must be at least one second: {interval}")
        self.store = store
        self.clock = clock
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self._last_tick: Optional[float] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> bool:
        """Run one accrual step. Returns whether the flush was stored."""
        self.ticks += 1
        if self.clock.is_foreground_visible():
            self.store.accumulate_time(self.interval)
        return await self.store.flush()

    async def tick_due(self, now: float) -> int:
        """
        Credit the ticks that have elapsed by `now`, for hosts that poll.

        The first call only sets the reference time. Calls that come early
        credit nothing, so extra polls never add time. A gap longer than
        MAX_CATCH_UP_TICKS intervals is not credited either; the clock
        restarts from `now`.

        Args:
            now: Monotonic time in seconds

        Returns:
            Number of ticks credited
        """
        if self._last_tick is None:
            self._last_tick = now
            return 0

        due = int((now - self._last_tick) // self.interval)
        if due < 1:
            return 0
        if due > MAX_CATCH_UP_TICKS:
            logger.debug(f"Clock for {self.store.course.id} idle for {now - self._last_tick:.0f}s, not credited")
            self._last_tick = now
            await self.store.flush()
            return 0

        self._last_tick += due * self.interval
        self.ticks += due
        if self.clock.is_foreground_visible():
            self.store.accumulate_time(due * self.interval)
        await self.store.flush()
        return due

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            await self.tick()

    def start(self):
        """Start ticking on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Started time accrual for {self.store.course.id} every {self.interval}s")

    async def on_visibility_change(self, visible: bool):
        """Flush as soon as the app goes to the background."""
        if not visible:
            await self.store.flush()

    async def stop(self) -> bool:
        """
        Cancel the timer and write the final snapshot.

        Safe to call when the timer was never started.
        """
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        return await self.store.flush()
