"""Clock and periodic timer primitives on top of asyncio."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from .interfaces import ClockInterface

logger = logging.getLogger(__name__)


class SystemClock:
    """Local wall clock backed by asyncio.sleep."""

    def now(self) -> datetime:
        return datetime.now().astimezone()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


def format_clock_time(moment: datetime) -> str:
    """Render a moment as HH:MM:SS (24h)."""

    return moment.strftime("%H:%M:%S")


class PeriodicTimer:
    """Invoke a callback every ``interval`` seconds until cancelled.

    The first call happens one full interval after ``start``. Callback
    errors are logged and do not stop the timer.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        clock: ClockInterface,
        name: str = "timer",
    ):
        self.interval = interval
        self.callback = callback
        self.clock = clock
        self.name = name
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop(), name=self.name)

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _loop(self) -> None:
        while True:
            await self.clock.sleep(self.interval)
            try:
                self.callback()
            except Exception:
                logger.exception("Periodic callback failed: %s", self.name)
