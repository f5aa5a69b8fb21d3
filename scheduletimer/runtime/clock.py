# scheduletimer/runtime/clock.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)


class SyncUnit(Enum):
    """Clock boundaries a timer can wait for before it starts ticking."""

    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"

    @classmethod
    def coerce(cls, value: Union["SyncUnit", str, None]) -> Optional["SyncUnit"]:
        """Accept a SyncUnit, its string value, or None."""
        if value is None or isinstance(value, SyncUnit):
            return value
        if isinstance(value, str):
            return cls(value.lower())
        raise ValueError(f"Invalid sync unit: {value!r}")


def next_boundary(unit: SyncUnit, now: datetime) -> datetime:
    """
    Return the first instant strictly after ``now`` that falls on the given
    boundary: the next :00 second, the next :00:00 minute, or the next midnight.
    """
    if unit is SyncUnit.MINUTE:
        return now.replace(second=0, microsecond=0) + timedelta(minutes=1)
    if unit is SyncUnit.HOUR:
        return now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    if unit is SyncUnit.DAY:
        return now.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=1)
    raise ValueError(f"Invalid sync unit: {unit!r}")


class SyncClock:
    """
    Blocks until the next clock boundary, then runs a continuation. The wait
    is a cancellable timed wait on a threading.Event.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now, log: Optional[logging.Logger] = None) -> None:
        self._clock = clock
        self._log = log or logger
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def delay(self, unit: SyncUnit) -> float:
        """Seconds from now until the next boundary."""
        now = self._clock()
        return (next_boundary(unit, now) - now).total_seconds()

    def wait(self, unit: SyncUnit, continuation: Optional[Callable[[], None]] = None, name: str = "") -> bool:
        """
        Sleep until the next boundary and run the continuation.

        :return: True if the boundary was reached, False if the wait was cancelled.
        """
        now = self._clock()
        target = next_boundary(unit, now)
        delay = (target - now).total_seconds()
        self._log.info(f"Waiting {delay:.2f} seconds for timer sync. Timer {name} will start at {target}")
        if self._cancelled.wait(delay):
            self._log.debug(f"Timer {name} sync wait cancelled")
            return False
        if continuation is not None:
            continuation()
        return True

    def cancel(self) -> None:
        """Abort a pending or future wait."""
        self._cancelled.set()
