# scheduletimer/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details


class ScheduleTimerError(Exception):
    """
    Base exception class for errors raised by the schedule timer library.
    """


class ConfigurationError(ScheduleTimerError, ValueError):
    """
    Raised when a timer is constructed with a missing event source or invalid options.
    """


class DataSourceError(ScheduleTimerError):
    """
    Raised when loading event records from the event source fails.
    """


class EventRecordError(ScheduleTimerError, LookupError):
    """
    Raised when an event record cannot be identified (no id attribute or key).
    """
