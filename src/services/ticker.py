"""
The only autonomously scheduled work: a recurring task charging the side to move once per second.

The task holds a reference to the state machine that owns the match, and its lifetime is bounded by that match:
it stops by itself once the match is over, and the match screen cancels it when it is torn down.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from contextlib import suppress
from typing import Optional

from src.match.game import MatchStateMachine

logger = logging.getLogger(__name__)


class ClockTicker:
    def __init__(
        self,
        machine: MatchStateMachine,
        interval: float = 1.0,
        now: Callable[[], float] = time.monotonic,
    ) -> None:
        self.machine = machine
        self.interval = interval
        self._now = now
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Needs a running event loop. Starting twice is a no-op."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="match-clock"
        )
        self._task.add_done_callback(self._log_failure)
        logger.info("Clock started (interval %.2fs)", self.interval)

    def cancel(self) -> None:
        if self.running:
            assert self._task is not None
            self._task.cancel()
            logger.info("Clock cancelled")
        self._task = None

    async def wait(self) -> None:
        """Block until the ticker stops (match over or cancelled)."""
        task = self._task
        if task is None:
            return
        with suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        """
        Charge the whole seconds elapsed since the last charge, not one second per wake-up.
        ----

        A late wake-up then charges 2 seconds at once, and the fractional remainder carries over to the next one,
        so scheduling jitter neither loses nor double-charges time.
        """
        last_charge = self._now()
        while self.machine.in_progress:
            await asyncio.sleep(self.interval)
            seconds = int(self._now() - last_charge)
            if seconds <= 0:
                continue
            last_charge += seconds
            try:
                self.machine.tick(seconds)
            except Exception:
                # the charge itself is applied before observers run, keep the clock going
                logger.exception("Clock tick of %ds failed", seconds)
        logger.info("Clock stopped, match status: %s", self.machine.status)

    def _log_failure(self, task: asyncio.Task[None]) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("Clock task crashed", exc_info=task.exception())
