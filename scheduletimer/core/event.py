# scheduletimer/core/event.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Event record interface and hook dispatch.

An event record is any object that exposes some of the time window attributes
below and some of the lifecycle hooks. Nothing is required except an id: every
attribute and every hook is looked up by capability, so a missing member is a
valid variant rather than an error.

Window attributes:
- start_date / end_date: calendar bounds, inclusive
- start_time / end_time: time of day bounds, end exclusive
- day: a day of month or a collection of days of month
- interval: seconds between on_interval calls while active

Hooks (called with no arguments):
- on_tick: every tick, before any transition is evaluated
- on_start: the record entered its window
- on_end: the record left its window
- on_interval: an interval elapsed while the record was active
- on_interrupt: the timer was interrupted, or the record was removed, while active
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Protocol, Union, runtime_checkable

from scheduletimer.core.errors import EventRecordError

if TYPE_CHECKING:
    from scheduletimer.timer import Timer

HOOKS = ("on_tick", "on_start", "on_end", "on_interval", "on_interrupt")

RELOAD_EVENT_ID = "__reload__"

DateLike = Union[date, datetime, str]
TimeLike = Union[time, datetime, str]


@runtime_checkable
class EventRecord(Protocol):
    """
    Typing aid describing the full capability set of an event record.
    Concrete records implement any subset of it.
    """

    start_date: Optional[DateLike]
    end_date: Optional[DateLike]
    start_time: Optional[TimeLike]
    end_time: Optional[TimeLike]
    day: Optional[Union[int, Iterable[int]]]
    interval: Optional[float]

    def on_tick(self) -> None: ...

    def on_start(self) -> None: ...

    def on_end(self) -> None: ...

    def on_interval(self) -> None: ...

    def on_interrupt(self) -> None: ...


def get_hook(record: Any, name: str) -> Optional[Callable[[], Any]]:
    """
    Return the named hook of a record, or None if the record does not provide it.

    :param record: Event record to inspect.
    :param name: One of HOOKS.
    """
    if name not in HOOKS:
        raise ValueError(f"Unknown hook: {name}")
    hook = getattr(record, name, None)
    return hook if callable(hook) else None


def has_hook(record: Any, name: str) -> bool:
    """Check whether a record provides the named hook."""
    return get_hook(record, name) is not None


def invoke_hook(record: Any, name: str) -> bool:
    """
    Call the named hook of a record if present. Exceptions raised by the hook
    propagate to the caller.

    :return: True if the hook was called, False if the record has no such hook.
    """
    hook = get_hook(record, name)
    if hook is None:
        return False
    hook()
    return True


def record_id(record: Any, id_field: str) -> Any:
    """
    Extract the id of a record, reading the attribute first and falling back to
    item access for mapping-like records.

    :raises EventRecordError: If the record exposes no id.
    """
    if hasattr(record, id_field):
        return getattr(record, id_field)
    if isinstance(record, Mapping) or hasattr(record, "__getitem__"):
        try:
            return record[id_field]
        except (KeyError, IndexError, TypeError):
            pass
    raise EventRecordError(f"Event record {record!r} has no '{id_field}' field")


class ReloadEvent:
    """
    System record that asks its timer to reload events from the event source
    once a day at a fixed time of day. It goes through the ordinary window
    evaluation like any other record.
    """

    system = True

    def __init__(self, timer: "Timer", reload_at: TimeLike) -> None:
        self._timer = timer
        self.start_time = reload_at
        self.id = RELOAD_EVENT_ID

    def on_start(self) -> None:
        self._timer.schedule_reload()

    def __repr__(self) -> str:
        return f"ReloadEvent(start_time={self.start_time!r})"
