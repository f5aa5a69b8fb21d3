# scheduletimer/persistence/source.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Loading event records from a client-supplied event source.

The source is any object, typically a model class or repository. Which of its
methods is called, and with what, depends on the filter descriptors that are
configured. Descriptors are tried by an ordered list of strategies and the
first one that applies wins:

1. ChainFilter: ``filter`` is a list of steps applied as a method chain
2. ValueFilter: ``filter`` is any other value, passed to the filter method
3. SqlFilter: ``filter_sql`` with ``filter_params``, passed to the filter method
4. HashFilter: ``filter_hash``, passed to the filter method
5. AllFilter: the all method, with no arguments
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from scheduletimer.core.errors import DataSourceError


class Placeholder(Enum):
    """Tokens replaced by the current instant before a query is dispatched."""

    NOW = "%Y-%m-%dT%H:%M:%S"
    TIME = "%H:%M:%S"
    TIME_NO_SECONDS = "%H:%M"
    TODAY = "%Y-%m-%d"

    def render(self, now: datetime) -> str:
        return now.strftime(self.value)


def substitute(value: Any, now: datetime) -> Any:
    """Render a Placeholder, leave anything else untouched."""
    if isinstance(value, Placeholder):
        return value.render(now)
    return value


@dataclass(frozen=True)
class FilterDescriptors:
    """The filter settings of one load."""

    filter: Any = None
    filter_sql: Optional[str] = None
    filter_params: Sequence[Any] = ()
    filter_hash: Optional[Mapping] = None


class FilterStrategy(ABC):
    """One way of turning descriptors into a call on the event source."""

    @abstractmethod
    def applies(self, descriptors: FilterDescriptors) -> bool:
        """Whether this strategy handles the given descriptors."""

    @abstractmethod
    def fetch(self, source: "EventSource", descriptors: FilterDescriptors, now: datetime) -> Any:
        """Query the event source and return its raw result."""


class ChainFilter(FilterStrategy):
    """
    Applies each step to the result of the previous one, starting from the
    source object itself. A step is a method name or ``(method_name, *args)``.
    """

    def applies(self, descriptors: FilterDescriptors) -> bool:
        return isinstance(descriptors.filter, (list, tuple))

    def fetch(self, source: "EventSource", descriptors: FilterDescriptors, now: datetime) -> Any:
        relation = source.source
        for step in descriptors.filter:
            if isinstance(step, str):
                name, args = step, ()
            else:
                name, *args = step
            relation = getattr(relation, name)(*args)
        return relation


class ValueFilter(FilterStrategy):
    def applies(self, descriptors: FilterDescriptors) -> bool:
        return descriptors.filter is not None and not isinstance(descriptors.filter, (list, tuple))

    def fetch(self, source: "EventSource", descriptors: FilterDescriptors, now: datetime) -> Any:
        return source.call_filter(descriptors.filter)


class SqlFilter(FilterStrategy):
    def applies(self, descriptors: FilterDescriptors) -> bool:
        return descriptors.filter_sql is not None

    def fetch(self, source: "EventSource", descriptors: FilterDescriptors, now: datetime) -> Any:
        params = [substitute(param, now) for param in descriptors.filter_params or ()]
        return source.call_filter(descriptors.filter_sql, *params)


class HashFilter(FilterStrategy):
    def applies(self, descriptors: FilterDescriptors) -> bool:
        return descriptors.filter_hash is not None

    def fetch(self, source: "EventSource", descriptors: FilterDescriptors, now: datetime) -> Any:
        return source.call_filter({key: substitute(value, now) for key, value in descriptors.filter_hash.items()})


class AllFilter(FilterStrategy):
    def applies(self, descriptors: FilterDescriptors) -> bool:
        return True

    def fetch(self, source: "EventSource", descriptors: FilterDescriptors, now: datetime) -> Any:
        return getattr(source.source, source.all_method)()


DEFAULT_STRATEGIES = (ChainFilter(), ValueFilter(), SqlFilter(), HashFilter(), AllFilter())


class EventSource:
    """
    Wraps the client's event source and dispatches loads to it.

    :param source: The object records are loaded from.
    :param all_method: Method called when no filter is configured.
    :param filter_method: Method called with a filter value, SQL, or mapping.
    :param clock: Source of the instant used for placeholders.
    :param strategies: Strategies in priority order.
    """

    def __init__(
        self,
        source: Any,
        all_method: str = "all",
        filter_method: str = "where",
        clock: Callable[[], datetime] = datetime.now,
        strategies: Sequence[FilterStrategy] = DEFAULT_STRATEGIES,
    ) -> None:
        self.source = source
        self.all_method = all_method
        self.filter_method = filter_method
        self._clock = clock
        self._strategies = tuple(strategies)

    def call_filter(self, *args: Any) -> Any:
        return getattr(self.source, self.filter_method)(*args)

    def resolve(self, descriptors: FilterDescriptors) -> FilterStrategy:
        """Return the first strategy that applies to the descriptors."""
        for strategy in self._strategies:
            if strategy.applies(descriptors):
                return strategy
        raise DataSourceError("No filter strategy applies to the configured descriptors")

    def load(self, descriptors: Optional[FilterDescriptors] = None) -> List[Any]:
        """
        Fetch records from the source.

        :raises DataSourceError: If resolving or fetching fails for any reason.
        """
        descriptors = descriptors or FilterDescriptors()
        strategy = self.resolve(descriptors)
        try:
            result = strategy.fetch(self, descriptors, self._clock())
            return [] if result is None else list(result)
        except Exception as exc:
            raise DataSourceError(f"{type(strategy).__name__} failed to load events: {exc}") from exc
