"""Periodic, single-flight execution of the update pipeline"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class UpdateScheduler:
    """
    Fires the pipeline every ``interval`` seconds, one run at a time.

    A tick that fires while a run is in flight is dropped: it is not
    queued, coalesced or retried. Timer ticks are independent of how long
    a run takes, so a slow run simply swallows the ticks it overlaps.
    """

    def __init__(self, pipeline: Callable[[], Awaitable[object]], interval: float):
        self._pipeline = pipeline
        self.interval = interval
        self._busy = False
        self._runs = 0
        self._dropped = 0
        self._timer_task: Optional[asyncio.Task] = None
        self._tick_tasks: set[asyncio.Task] = set()
        self._stop_event = asyncio.Event()

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def runs(self) -> int:
        """Number of pipeline runs started by ticks"""
        return self._runs

    @property
    def dropped(self) -> int:
        """Number of ticks dropped because a run was in flight"""
        return self._dropped

    @property
    def running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    async def tick(self) -> bool:
        """
        Run the pipeline unless a run is already in flight.

        Returns:
            True if the pipeline ran, False if the tick was dropped
        """
        if self._busy:
            self._dropped += 1
            logger.debug("Update still in progress, skipping tick")
            return False

        self._busy = True
        self._runs += 1
        try:
            await self._pipeline()
        except Exception as e:
            logger.error(f"Update pipeline failed: {e}", exc_info=True)
        finally:
            self._busy = False
        return True

    async def start(self, initialize: Optional[Callable[[], Awaitable[object]]] = None) -> None:
        """
        Run ``initialize`` once, then the first update, then start the timer.

        Ticks are refused while initialization is in progress.
        """
        if self.running:
            logger.warning("Scheduler already running")
            return

        self._stop_event.clear()
        if initialize is not None:
            self._busy = True
            try:
                await initialize()
            finally:
                self._busy = False

        await self.tick()
        if self._stop_event.is_set():
            logger.info("Update scheduler stopped during startup")
            return
        self._timer_task = asyncio.create_task(self._timer_loop())
        logger.info(f"Update scheduler started (interval {self.interval}s)")

    async def _timer_loop(self) -> None:
        while not self._stop_event.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            if self._stop_event.is_set():
                break
            task = asyncio.create_task(self.tick())
            self._tick_tasks.add(task)
            task.add_done_callback(self._tick_tasks.discard)

    async def stop(self) -> None:
        """Stop the timer and wait for an in-flight run to finish"""
        # Also seen by a start() that is still initializing
        self._stop_event.set()
        if self._timer_task is None:
            return

        logger.info("Stopping update scheduler...")
        with contextlib.suppress(asyncio.CancelledError):
            await self._timer_task
        self._timer_task = None

        if self._tick_tasks:
            _, pending = await asyncio.wait(set(self._tick_tasks), timeout=5.0)
            for task in pending:
                logger.warning("Update did not finish in time, cancelling")
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
