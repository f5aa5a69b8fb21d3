"""scheduletimer: in-process timer for time-windowed events

This package notifies a set of event records when they start, end, or reach
an interval boundary, without an external cron daemon. A single background
thread wakes on a fixed cadence and evaluates every record's time window
against the current instant.

Responsibilities:
    - Time window matching (dates, days of month, time of day)
    - Interval countdowns while a record is active
    - Drift compensation when a tick overruns its interval
    - Optional start on the next minute, hour, or day boundary
    - Loading records from a client-supplied event source

Cross-cutting Concerns:
    Thread Safety:
        - All public Timer methods are thread-safe
        - One lock guards all records and active state for a whole tick

    Error Handling:
        - ConfigurationError at construction for invalid options
        - Event source failures keep the previous records and are logged
        - Hook exceptions propagate and end the background thread

    Logging:
        - Standard library logging under the ``scheduletimer`` logger
        - Silent unless the application configures logging
"""

import logging

from .config import TimerOptions
from .core.errors import ConfigurationError, DataSourceError, EventRecordError, ScheduleTimerError
from .persistence.source import Placeholder
from .registry import TimerRegistry
from .runtime.clock import SyncUnit
from .runtime.scheduler import TimerStatus
from .timer import Timer

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "Timer",
    "TimerOptions",
    "TimerRegistry",
    "TimerStatus",
    "SyncUnit",
    "Placeholder",
    "ScheduleTimerError",
    "ConfigurationError",
    "DataSourceError",
    "EventRecordError",
]
