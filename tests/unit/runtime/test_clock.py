# tests/unit/runtime/test_clock.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import threading
import time
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from scheduletimer.runtime.clock import SyncClock, SyncUnit, next_boundary


@pytest.mark.parametrize(
    "unit, now, expected",
    [
        (SyncUnit.MINUTE, datetime(2026, 10, 14, 12, 30, 15, 500), datetime(2026, 10, 14, 12, 31)),
        (SyncUnit.MINUTE, datetime(2026, 10, 14, 23, 59, 59), datetime(2026, 10, 15, 0, 0)),
        (SyncUnit.HOUR, datetime(2026, 10, 14, 12, 30, 15), datetime(2026, 10, 14, 13, 0)),
        (SyncUnit.HOUR, datetime(2026, 12, 31, 23, 5), datetime(2027, 1, 1, 0, 0)),
        (SyncUnit.DAY, datetime(2026, 10, 14, 12, 30, 15), datetime(2026, 10, 15, 0, 0)),
        (SyncUnit.DAY, datetime(2026, 10, 31, 0, 0, 1), datetime(2026, 11, 1, 0, 0)),
    ],
)
def test_next_boundary(unit, now, expected):
    assert next_boundary(unit, now) == expected


def test_next_boundary_is_strictly_after_an_exact_boundary():
    assert next_boundary(SyncUnit.MINUTE, datetime(2026, 10, 14, 12, 0)) == datetime(2026, 10, 14, 12, 1)


@pytest.mark.parametrize("value", ["minute", "HOUR", SyncUnit.DAY, None])
def test_coerce_accepts_names(value):
    coerced = SyncUnit.coerce(value)
    assert coerced is None or isinstance(coerced, SyncUnit)


@pytest.mark.parametrize("value", ["week", 5])
def test_coerce_rejects_unknown_units(value):
    with pytest.raises(ValueError):
        SyncUnit.coerce(value)


def test_delay():
    clock = SyncClock(clock=lambda: datetime(2026, 10, 14, 12, 59, 30))
    assert clock.delay(SyncUnit.MINUTE) == pytest.approx(30)
    assert clock.delay(SyncUnit.HOUR) == pytest.approx(30)
    assert clock.delay(SyncUnit.DAY) == pytest.approx(11 * 3600 + 30)


def test_wait_runs_continuation_at_boundary():
    clock = SyncClock(clock=lambda: datetime(2026, 10, 14, 12, 0, 59, 900000))
    continuation = MagicMock()
    started = time.monotonic()
    assert clock.wait(SyncUnit.MINUTE, continuation) is True
    assert time.monotonic() - started >= 0.05
    continuation.assert_called_once_with()


def test_cancelled_wait_skips_continuation():
    clock = SyncClock(clock=lambda: datetime(2026, 10, 14, 12, 0, 0))
    continuation = MagicMock()
    results = []
    waiter = threading.Thread(target=lambda: results.append(clock.wait(SyncUnit.MINUTE, continuation)))
    waiter.start()
    time.sleep(0.05)
    clock.cancel()
    waiter.join(timeout=1.0)

    assert not waiter.is_alive()
    assert results == [False]
    assert clock.cancelled
    continuation.assert_not_called()


def test_wait_logs_the_sync_target():
    log = MagicMock()
    clock = SyncClock(clock=lambda: datetime(2026, 10, 14, 12, 0, 59, 990000), log=log)
    clock.wait(SyncUnit.MINUTE, name="nightly")
    message = log.info.call_args[0][0]
    assert "nightly" in message
    assert "2026-10-14 12:01:00" in message
