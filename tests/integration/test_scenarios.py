# tests/integration/test_scenarios.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""End-to-end scenarios running timers on their background thread."""

import logging
import time
from datetime import datetime, timedelta

from scheduletimer import Timer, TimerRegistry, TimerStatus
from scheduletimer.runtime.clock import SyncUnit, next_boundary
from tests.fakes import Counter, FakeModel, Record


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_running_timer_starts_record(timer_factory, fake_model, record):
    timer = timer_factory(fake_model, tick_interval=0.1)
    timer.start()
    assert wait_for(lambda: record.count("start") == 1)

    time.sleep(0.3)
    timer.stop()
    timer.join(timeout=1.0)

    assert record.transitions == ["start"]
    assert record.count("tick") >= 3
    assert timer.status is TimerStatus.STOPPED
    assert timer.active_events == {}


def test_interrupt_fires_once(timer_factory, fake_model, record):
    timer = timer_factory(fake_model, tick_interval=0.05)
    timer.start()
    assert wait_for(lambda: record.count("start") == 1)

    timer.interrupt()
    timer.join(timeout=1.0)
    timer.interrupt()

    assert record.count("interrupt") == 1
    assert timer.status is TimerStatus.STOPPED


def test_interval_fires_while_running(timer_factory):
    counter = Counter()
    timer = timer_factory(FakeModel([counter]), tick_interval=0.25)
    timer.start()

    assert wait_for(lambda: counter.count("interval") >= 1, timeout=3.0)
    timer.interrupt()
    assert counter.transitions[0] == "start"
    assert counter.transitions[-1] == "interrupt"


def test_skip_first_then_stop_fires_nothing(timer_factory, fake_model, record):
    timer = timer_factory(fake_model, tick_interval=30, skip_first=True)
    timer.start()
    time.sleep(0.1)
    timer.interrupt()
    timer.join(timeout=1.0)

    assert record.calls == []


def test_sync_to_minute_starts_at_boundary(timer_factory, fake_model, record):
    now = datetime.now()
    offset = next_boundary(SyncUnit.MINUTE, now) - now - timedelta(seconds=0.3)
    timer = timer_factory(
        fake_model,
        tick_interval=10,
        sync_to="minute",
        clock=lambda: datetime.now() + offset,
    )
    timer.start()
    assert timer.status is TimerStatus.SYNCING
    assert record.calls == []

    assert wait_for(lambda: record.count("start") == 1)
    assert timer.status is TimerStatus.RUNNING


def test_hook_error_stops_timer(timer_factory, caplog):
    record = Record()
    record.on_interval = lambda: 1 / 0
    record.interval = 0.1
    timer = timer_factory(FakeModel([record]), tick_interval=0.1, name="faulty")

    with caplog.at_level(logging.ERROR):
        timer.start()
        assert wait_for(lambda: timer.status is TimerStatus.STOPPED)
        timer.join(timeout=1.0)

    assert isinstance(timer.failure, ZeroDivisionError)
    assert timer.active_events == {}
    assert "faulty" in caplog.text


def test_add_event_while_running(timer_factory):
    timer = timer_factory(FakeModel(), tick_interval=0.05)
    timer.start()
    record = Record(7)
    timer.add_event(record)

    assert wait_for(lambda: record.count("start") == 1)
    timer.remove_event(record)
    assert record.transitions == ["start", "interrupt"]


def test_registry_runs_several_timers():
    registry = TimerRegistry()
    first, second = Record(1), Record(2)
    registry.create("first", FakeModel([first]), tick_interval=0.05)
    registry.create("second", FakeModel([second]), tick_interval=0.05)
    try:
        registry.start("first")
        registry.start("second")
        assert wait_for(lambda: first.count("start") == 1 and second.count("start") == 1)
    finally:
        for name in registry.names():
            registry.delete(name)

    assert first.count("interrupt") == 1
    assert second.count("interrupt") == 1


def test_restart_after_interrupt(timer_factory, fake_model, record):
    timer: Timer = timer_factory(fake_model, tick_interval=0.05)
    timer.start()
    assert wait_for(lambda: record.count("start") == 1)
    timer.interrupt()
    timer.join(timeout=1.0)

    assert timer.start() is True
    assert wait_for(lambda: record.count("start") == 2)
