"""Background tick source for timer engines."""

from __future__ import annotations

import asyncio
import logging

from focusflow.focus.manager import TimerManager

logger = logging.getLogger(__name__)


class TimerRunner:
    """Calls ``TimerManager.tick_all()`` on a fixed interval.

    Runs on the same event loop as the request handlers, so a tick never
    lands in the middle of a timer command.
    """

    def __init__(self, manager: TimerManager, interval: float = 1.0):
        self._manager = manager
        self._interval = interval
        self._task: asyncio.Task | None = None
        self._running = False

    async def start(self) -> None:
        """Start the tick loop."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._tick_loop())
        logger.info(f"Timer runner started (tick every {self._interval}s)")

    async def stop(self) -> None:
        """Stop the tick loop."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Timer runner stopped")

    async def _tick_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._interval

        while self._running:
            try:
                # Sleep to the next scheduled tick so handler latency does not drift the clock
                await asyncio.sleep(max(0.0, next_tick - loop.time()))
                next_tick += self._interval
                self._manager.tick_all()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in timer tick loop: {e}")

    @property
    def is_running(self) -> bool:
        return self._running
