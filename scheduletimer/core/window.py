# scheduletimer/core/window.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Window evaluation for event records.

The evaluator decides, for one record at one instant, whether the record is
inside its window and which transition follows from its current state. It
never touches the event store: the tick applies decisions while holding the
store lock.
"""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum, auto
from typing import Any, FrozenSet, Optional

from dateutil import parser

from scheduletimer.core.store import ActiveState

logger = logging.getLogger(__name__)


class Transition(Enum):
    """Outcome of evaluating one record for one tick."""

    IDLE = auto()  # Outside the window and not active
    START = auto()  # Entered the window
    END = auto()  # Left the window
    INTERVAL = auto()  # Still active, an interval elapsed
    CONTINUE = auto()  # Still active, nothing due


_TRANSITION_HOOKS = {
    Transition.START: "on_start",
    Transition.END: "on_end",
    Transition.INTERVAL: "on_interval",
}


@dataclass(frozen=True)
class Decision:
    """
    :param transition: The transition to apply.
    :param remaining: Countdown to store as active state afterwards. Meaningless
        for IDLE and END.
    """

    transition: Transition
    remaining: Optional[float] = None

    @property
    def hook(self) -> Optional[str]:
        """Name of the hook this decision fires, if any."""
        return _TRANSITION_HOOKS.get(self.transition)

    @property
    def active(self) -> bool:
        """Whether the record is active after this decision."""
        return self.transition in (Transition.START, Transition.INTERVAL, Transition.CONTINUE)


@dataclass(frozen=True)
class Window:
    """Bounds of a record's window resolved against one instant."""

    start: datetime
    end: datetime
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days: Optional[FrozenSet[int]] = None
    crosses_midnight: bool = False

    def opened_on(self, now: datetime) -> date:
        """
        Calendar day the window containing ``now`` opened on. The part of a
        midnight-crossing window after midnight belongs to the previous day.
        """
        if self.crosses_midnight and now < self.end:
            return (now - timedelta(days=1)).date()
        return now.date()

    def in_days(self, day: date) -> bool:
        return self.days is None or day.day in self.days

    def in_dates(self, day: date) -> bool:
        if self.start_date is not None and day < self.start_date:
            return False
        if self.end_date is not None and day > self.end_date:
            return False
        return True

    def in_times(self, now: datetime) -> bool:
        # Equal bounds never open, so a full-day wraparound fires nothing.
        if self.start == self.end:
            return False
        if self.crosses_midnight:
            return now >= self.start or now < self.end
        return self.start <= now < self.end

    def contains(self, now: datetime) -> bool:
        if not self.in_times(now):
            return False
        day = self.opened_on(now)
        return self.in_days(day) and self.in_dates(day)


class WindowEvaluator:
    """
    Resolves record windows and decides state transitions.

    :param use_time_date: Compare the date part embedded in datetime start and
        end times instead of rebasing them onto the current date.
    :param default_interval: Interval used for records that do not define one.
    """

    def __init__(self, use_time_date: bool = False, default_interval: Optional[float] = None) -> None:
        self.use_time_date = use_time_date
        self.default_interval = default_interval

    def window(self, record: Any, now: datetime) -> Window:
        midnight = datetime.combine(now.date(), time()).replace(tzinfo=now.tzinfo)
        start = self._time_bound(record, "start_time", now, midnight)
        end = self._time_bound(record, "end_time", now, midnight + timedelta(days=1))
        return Window(
            start=start,
            end=end,
            start_date=self._date_bound(getattr(record, "start_date", None)),
            end_date=self._date_bound(getattr(record, "end_date", None)),
            days=self._days(getattr(record, "day", None)),
            crosses_midnight=not self.use_time_date and end < start,
        )

    def interval_of(self, record: Any) -> Optional[float]:
        value = getattr(record, "interval", None)
        if _is_positive_number(value):
            return value
        return self.default_interval

    def evaluate(
        self, record: Any, now: datetime, elapsed: float, state: Optional[ActiveState] = None
    ) -> Decision:
        """
        Decide the next transition for a record.

        :param record: The event record.
        :param now: Instant of the tick.
        :param elapsed: Seconds covered by this tick, used for the interval countdown.
        :param state: The record's active state, or None when it is idle.
        """
        in_window = self.window(record, now).contains(now)

        if state is None:
            if in_window:
                return Decision(Transition.START, self.interval_of(record))
            return Decision(Transition.IDLE)

        if not in_window:
            return Decision(Transition.END)

        if state.remaining is None:
            return Decision(Transition.CONTINUE)

        remaining = state.remaining - elapsed
        if remaining <= 0:
            # At most one interval call per tick, the overshoot carries over.
            interval = self.interval_of(record)
            return Decision(Transition.INTERVAL, remaining + interval if interval else None)
        return Decision(Transition.CONTINUE, remaining)

    def _time_bound(self, record: Any, field: str, now: datetime, default: datetime) -> datetime:
        value = getattr(record, field, None)
        base = datetime.combine(now.date(), time())
        if isinstance(value, str):
            try:
                value = parser.parse(value, default=base)
            except (ValueError, OverflowError):
                logger.warning(f"Event record {record!r} has an unparseable {field} {value!r}, using {default.time()}")
                return default
        if isinstance(value, datetime):
            value = _align_tz(value, now)
            if self.use_time_date:
                return value
            return datetime.combine(now.date(), value.time()).replace(tzinfo=now.tzinfo)
        if isinstance(value, time):
            return datetime.combine(now.date(), value.replace(tzinfo=None)).replace(tzinfo=now.tzinfo)
        return default

    @staticmethod
    def _date_bound(value: Any) -> Optional[date]:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return parser.parse(value).date()
            except (ValueError, OverflowError):
                return None
        return None

    @staticmethod
    def _days(value: Any) -> Optional[FrozenSet[int]]:
        if value is None or isinstance(value, (bool, str)):
            return None
        if isinstance(value, numbers.Integral):
            return frozenset([int(value)])
        try:
            return frozenset(int(day) for day in value)
        except (TypeError, ValueError):
            return None


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and value > 0


def _align_tz(value: datetime, now: datetime) -> datetime:
    """Make a datetime comparable with now (both naive or both aware)."""
    if value.tzinfo is not None and now.tzinfo is None:
        return value.astimezone().replace(tzinfo=None)
    if value.tzinfo is None and now.tzinfo is not None:
        return value.replace(tzinfo=now.tzinfo)
    return value
