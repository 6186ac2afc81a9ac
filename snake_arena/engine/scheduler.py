from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable


logger = logging.getLogger(__name__)


class TickScheduler:
    """Cooperative fixed-delay timer for the simulation.

    Contract:
      - `interval_ms()` is read before every sleep, so speed changes apply to the
        next period. Returning None ends the loop (the game left running).
      - `on_tick()` is synchronous and runs to completion; cancellation can only
        land on the sleep, never inside a tick.
      - `cancel()` / `stop()` mean "stop rescheduling".
    """

    def __init__(self, *, interval_ms: Callable[[], float | None], on_tick: Callable[[], None]) -> None:
        self._interval_ms = interval_ms
        self._on_tick = on_tick
        self._task: asyncio.Task[None] | None = None
        self.ticks = 0

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop on the running event loop; no-op if already active."""

        if self.active:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("tick loop started")

    def cancel(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.debug("tick loop cancelled after %d ticks", self.ticks)

    async def stop(self) -> None:
        task = self._task
        self.cancel()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        while True:
            delay = self._interval_ms()
            if delay is None:
                return
            await asyncio.sleep(delay / 1000)
            # Paused or crashed while we slept.
            if self._interval_ms() is None:
                return
            self._on_tick()
            self.ticks += 1
