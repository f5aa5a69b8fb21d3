# scheduletimer/config.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import numbers
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from scheduletimer.core.errors import ConfigurationError
from scheduletimer.persistence.source import FilterDescriptors
from scheduletimer.runtime.clock import SyncUnit

_LOGGER_METHODS = ("debug", "info", "warning", "error", "critical", "exception")


@dataclass(frozen=True)
class TimerOptions:
    """
    Immutable timer configuration, validated on construction.

    Timing:
        tick_interval: Seconds between ticks. Lower values are more expensive.
        sync_to: Wait for the next minute, hour, or day before the first tick.
        tick_before_sync: Tick once right away before waiting for sync_to.
        skip_first: Sleep one interval before the first tick.
        use_time_date: Honor the date embedded in datetime start/end times
            instead of comparing time of day only.
        interval: Interval for records that do not define one.

    Records:
        id_field: Attribute (or key) holding each record's unique id.
        additional_events: Records injected on every refresh.
        reload_at: Time of day at which records are reloaded from the source.

    Event source:
        autoload: Load records from the source when the timer starts.
        all_method / filter_method: Source methods used for loading.
        filter / filter_sql / filter_params / filter_hash: Filter descriptors.

    Logging:
        name: Timer name used in log messages.
        logger: Logger to use instead of the library logger. Needs debug, info,
            warning, error, critical and exception methods.

    clock: Callable returning the current local datetime.
    """

    name: str = ""
    tick_interval: float = 60
    id_field: str = "id"
    sync_to: Optional[SyncUnit] = None
    tick_before_sync: bool = False
    skip_first: bool = False
    use_time_date: bool = False
    interval: Optional[float] = None
    autoload: bool = True
    all_method: str = "all"
    filter_method: str = "where"
    filter: Any = None
    filter_sql: Optional[str] = None
    filter_params: Sequence[Any] = ()
    filter_hash: Optional[Mapping] = None
    additional_events: Sequence[Any] = ()
    reload_at: Any = None
    logger: Optional[Any] = None
    clock: Optional[Callable[[], datetime]] = None

    def __post_init__(self) -> None:
        if not _is_positive_number(self.tick_interval):
            raise ConfigurationError("Invalid tick interval. Must be a positive number.")

        if self.interval is not None and not _is_positive_number(self.interval):
            raise ConfigurationError("Invalid interval. Must be a positive number or None.")

        try:
            object.__setattr__(self, "sync_to", SyncUnit.coerce(self.sync_to))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid sync_to {self.sync_to!r}. Allowed: minute, hour, day.") from exc

        for field_name in ("id_field", "all_method", "filter_method"):
            value = getattr(self, field_name)
            if not value or not isinstance(value, str):
                raise ConfigurationError(f"{field_name} must be a non-empty string")

        if self.filter_sql is not None and not isinstance(self.filter_sql, str):
            raise ConfigurationError("filter_sql must be a string")

        if self.filter_hash is not None and not isinstance(self.filter_hash, Mapping):
            raise ConfigurationError("filter_hash must be a mapping")

        if self.logger is not None and not all(callable(getattr(self.logger, m, None)) for m in _LOGGER_METHODS):
            raise ConfigurationError("logger must provide debug, info, warning, error, critical and exception")

        if self.clock is not None and not callable(self.clock):
            raise ConfigurationError("clock must be callable")

        object.__setattr__(self, "name", str(self.name))
        object.__setattr__(self, "filter_params", tuple(self.filter_params or ()))
        object.__setattr__(self, "additional_events", tuple(self.additional_events or ()))

    def descriptors(self, filter: Any = None) -> FilterDescriptors:
        """Filter descriptors for a load, with an optional override of ``filter``."""
        return FilterDescriptors(
            filter=filter if filter is not None else self.filter,
            filter_sql=self.filter_sql,
            filter_params=self.filter_params,
            filter_hash=self.filter_hash,
        )


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and value > 0
