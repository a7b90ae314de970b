"""Append-only event log observed by the UI/CLI."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable

from .clock import SystemClock, format_clock_time
from .interfaces import ClockInterface
from .models import LogEntry, LogType

logger = logging.getLogger(__name__)

LogListener = Callable[[LogEntry], None]


class EventLog:
    """Ordered, timestamped run narrative.

    Entries are never edited. ``entries()`` returns a tuple copy so readers
    can iterate while the run keeps appending. ``capacity`` bounds the log
    as a ring buffer; by default it grows for the process lifetime.
    """

    def __init__(self, clock: ClockInterface | None = None, capacity: int | None = None):
        self.clock = clock or SystemClock()
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._listeners: list[LogListener] = []

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, message: str, log_type: LogType | str = LogType.INFO) -> LogEntry:
        entry = LogEntry(
            timestamp=format_clock_time(self.clock.now()),
            message=message,
            type=LogType(log_type),
        )
        self._entries.append(entry)
        for listener in list(self._listeners):
            try:
                listener(entry)
            except Exception:
                logger.exception("Log listener failed")
        return entry

    def clear(self) -> None:
        self._entries.clear()

    def entries(self) -> tuple[LogEntry, ...]:
        return tuple(self._entries)

    def subscribe(self, listener: LogListener) -> Callable[[], None]:
        """Register a listener called for every appended entry."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
