# tests/fakes.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""Fake event records and event sources shared by the test suite."""

from typing import Any, List


class Record:
    """
    An event record with every hook. Window attributes are set from keyword
    arguments; any attribute left out is simply missing on the object.
    """

    def __init__(self, id: Any = 1, **window: Any) -> None:
        self.id = id
        self.calls: List[str] = []
        for key, value in window.items():
            setattr(self, key, value)

    def on_tick(self) -> None:
        self.calls.append("tick")

    def on_start(self) -> None:
        self.calls.append("start")

    def on_end(self) -> None:
        self.calls.append("end")

    def on_interval(self) -> None:
        self.calls.append("interval")

    def on_interrupt(self) -> None:
        self.calls.append("interrupt")

    def count(self, hook: str) -> int:
        return self.calls.count(hook)

    @property
    def transitions(self) -> List[str]:
        """Calls without the on_tick noise."""
        return [call for call in self.calls if call != "tick"]

    def __repr__(self) -> str:
        return f"Record({self.id!r})"


class BareRecord:
    """A record with an id and no hooks at all."""

    def __init__(self, id: Any = 1) -> None:
        self.id = id


class Counter(Record):
    """Counts start, end, interval and interrupt calls; one second interval."""

    interval = 1


class FakeModel:
    """
    Stand-in for a model class: returns its records from ``all`` and records
    every query it receives.
    """

    def __init__(self, records: List[Any] = None) -> None:
        self.records = list(records or [])
        self.queries: List[tuple] = []

    def all(self) -> List[Any]:
        self.queries.append(("all",))
        return list(self.records)

    def where(self, *args: Any) -> List[Any]:
        self.queries.append(("where",) + args)
        return list(self.records)

    def active(self) -> "FakeModel":
        self.queries.append(("active",))
        return self

    def limit(self, count: int) -> List[Any]:
        self.queries.append(("limit", count))
        return list(self.records[:count])


class BrokenModel(FakeModel):
    """An event source whose queries always fail."""

    def all(self) -> List[Any]:
        raise RuntimeError("database is down")

    def where(self, *args: Any) -> List[Any]:
        raise RuntimeError("database is down")
