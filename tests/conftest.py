# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import threading
from datetime import datetime

import pytest

from tests.fakes import FakeModel, Record


@pytest.fixture
def base_time():
    """A fixed instant well away from midnight and month boundaries."""
    return datetime(2026, 10, 14, 12, 0, 0)


@pytest.fixture
def record():
    """A record with every hook and an all-day window."""
    return Record(id=1)


@pytest.fixture
def fake_model(record):
    """An event source returning the ``record`` fixture."""
    return FakeModel([record])


@pytest.fixture
def timer_factory():
    """
    Returns a factory creating timers. Every timer created is interrupted at
    teardown so no background thread outlives its test.
    """
    from scheduletimer.timer import Timer

    timers = []

    def _factory(source=None, **options):
        timer = Timer(source if source is not None else FakeModel(), **options)
        timers.append(timer)
        return timer

    yield _factory

    for timer in timers:
        timer.interrupt()
        timer.join(timeout=1.0)


@pytest.fixture
def manual_timer(timer_factory):
    """A timer that never loads from its source, for driving ticks by hand."""
    return timer_factory(tick_interval=2, autoload=False)


@pytest.fixture(autouse=True)
def cleanup_threads():
    yield
    # Cleanup any remaining threads after each test
    for thread in threading.enumerate():
        if thread != threading.current_thread() and thread.is_alive() and thread.name.startswith("scheduletimer-"):
            thread.join(timeout=1.0)
