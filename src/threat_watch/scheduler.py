"""Hourly auto-run scheduler with a live countdown."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from .clock import PeriodicTimer, format_clock_time
from .event_log import EventLog
from .interfaces import ClockInterface
from .models import LogType

logger = logging.getLogger(__name__)

RUN_INTERVAL_SECONDS = 3600
COUNTDOWN_TICK_SECONDS = 1
RUNNING_SENTINEL = "Running..."


def format_time_remaining(next_run_time: datetime, now: datetime) -> str:
    """Return ``"{minutes}m {seconds}s"`` until the next run.

    Minutes are total minutes, not wrapped at the hour. A non-positive
    remaining time yields the running sentinel.
    """

    remaining_ms = int((next_run_time - now).total_seconds() * 1000)
    if remaining_ms <= 0:
        return RUNNING_SENTINEL
    minutes = remaining_ms // 60000
    seconds = (remaining_ms % 60000) // 1000
    return f"{minutes}m {seconds}s"


class AutoRunScheduler:
    """Own the trigger timer, the countdown timer and ``next_run_time``.

    The trigger timer fires on a fixed cadence counted from ``enable()``.
    ``next_run_time`` is re-armed after every completed run and drives only
    the countdown, so the two can drift apart by the length of a run.
    """

    def __init__(
        self,
        trigger: Callable[[], None],
        clock: ClockInterface,
        event_log: EventLog,
        run_interval_seconds: float = RUN_INTERVAL_SECONDS,
        countdown_tick_seconds: float = COUNTDOWN_TICK_SECONDS,
    ):
        self.clock = clock
        self.event_log = event_log
        self.run_interval = timedelta(seconds=run_interval_seconds)
        self.next_run_time: datetime | None = None
        self.time_until_next_run = ""
        self._enabled = False
        self._trigger_timer = PeriodicTimer(
            run_interval_seconds, trigger, clock, name="auto-run-trigger"
        )
        self._countdown_timer = PeriodicTimer(
            countdown_tick_seconds, self.tick, clock, name="auto-run-countdown"
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        if self._enabled:
            return
        self._enabled = True
        if self.next_run_time is None:
            scheduled = self._compute_next()
            self.event_log.append(
                f"Auto-Run Enabled. Next scan scheduled for {format_clock_time(scheduled)}.",
                LogType.SYSTEM,
            )
        self._trigger_timer.start()
        self._countdown_timer.start()
        logger.info("Auto-run enabled, interval=%s", self.run_interval)

    def disable(self) -> None:
        self._trigger_timer.cancel()
        self._countdown_timer.cancel()
        self.next_run_time = None
        self.time_until_next_run = ""
        if self._enabled:
            logger.info("Auto-run disabled")
        self._enabled = False

    def rearm(self) -> datetime:
        """Recompute ``next_run_time`` after a completed run."""

        return self._compute_next()

    def tick(self) -> str:
        """Refresh the countdown text from the current clock."""

        if self.next_run_time is not None:
            self.time_until_next_run = format_time_remaining(self.next_run_time, self.clock.now())
        return self.time_until_next_run

    def _compute_next(self) -> datetime:
        self.next_run_time = self.clock.now() + self.run_interval
        return self.next_run_time
