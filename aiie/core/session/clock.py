"""
Session clocks.

The session state machine never reads wall time.  It subscribes a
callback to a Clock and the clock calls it once per elapsed second.

  ManualClock  – tests and scripted replays; `advance(n)` fires n ticks
                 immediately.
  AsyncioClock – the API service; one asyncio task fans ticks out to
                 every live session.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class ClockSubscription:
    """Handle returned by Clock.subscribe; cancel() is idempotent."""

    def __init__(self, clock: "Clock", callback: TickCallback):
        self._clock = clock
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._active = False
            self._clock._unsubscribe(self._callback)


class Clock:
    """Base clock: keeps subscribers and fans out ticks."""

    def __init__(self):
        self._subscribers: List[TickCallback] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: TickCallback) -> ClockSubscription:
        self._subscribers.append(callback)
        return ClockSubscription(self, callback)

    def _unsubscribe(self, callback: TickCallback) -> None:
        try:
            self._subscribers.remove(callback)
        except ValueError:
            pass

    def _fire(self) -> None:
        # Copy: callbacks may cancel their own subscription (forced submit)
        for callback in list(self._subscribers):
            try:
                callback()
            except Exception as exc:
                # One broken session must not stop the others' countdowns
                logger.error(f"Clock: tick callback raised {exc}", exc_info=True)


class ManualClock(Clock):
    """Deterministic clock driven by the caller."""

    def advance(self, seconds: int = 1) -> None:
        for _ in range(max(0, seconds)):
            self._fire()


class AsyncioClock(Clock):
    """Wall-clock ticks from a background asyncio task."""

    def __init__(self, interval: float = 1.0):
        super().__init__()
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking.  Must be called from inside a running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"AsyncioClock started (interval={self.interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("AsyncioClock stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._fire()
