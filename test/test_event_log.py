from datetime import timedelta

import pytest

from conftest import T0
from threat_watch.event_log import EventLog
from threat_watch.models import LogEntry, LogType


def test_append_captures_wall_clock_time(clock) -> None:
    log = EventLog(clock=clock)

    entry = log.append("Initializing discovery protocols...", LogType.SYSTEM)

    assert entry == LogEntry(
        timestamp="12:00:00",
        message="Initializing discovery protocols...",
        type=LogType.SYSTEM,
    )


def test_entries_keep_insertion_order_and_accept_plain_type_names(clock) -> None:
    log = EventLog(clock=clock)
    log.append("first")
    clock.current = T0 + timedelta(seconds=75)
    log.append("second", log_type="warning")

    entries = log.entries()

    assert [entry.message for entry in entries] == ["first", "second"]
    assert entries[0].type is LogType.INFO
    assert entries[1].type is LogType.WARNING
    assert entries[1].timestamp == "12:01:15"


def test_unknown_type_is_rejected(clock) -> None:
    log = EventLog(clock=clock)

    with pytest.raises(ValueError):
        log.append("oops", "fatal")


def test_snapshot_is_not_affected_by_later_appends(clock) -> None:
    log = EventLog(clock=clock)
    log.append("a")
    snapshot = log.entries()

    log.append("b")
    log.clear()

    assert [entry.message for entry in snapshot] == ["a"]
    assert log.entries() == ()


def test_capacity_turns_log_into_ring_buffer(clock) -> None:
    log = EventLog(clock=clock, capacity=2)
    for message in ["a", "b", "c"]:
        log.append(message)

    assert [entry.message for entry in log.entries()] == ["b", "c"]


def test_listeners_receive_entries_until_unsubscribed(clock) -> None:
    log = EventLog(clock=clock)
    received = []
    unsubscribe = log.subscribe(received.append)

    log.append("one")
    unsubscribe()
    log.append("two")

    assert [entry.message for entry in received] == ["one"]


def test_failing_listener_does_not_break_append(clock) -> None:
    log = EventLog(clock=clock)

    def broken(entry):
        raise RuntimeError("listener bug")

    log.subscribe(broken)
    log.append("still recorded")

    assert len(log) == 1
