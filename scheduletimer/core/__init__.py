"""
Core package: event records, the event store, and window evaluation.

Architecture:
- Event records are duck-typed; hooks and window attributes are optional
- The event store holds all records and the active subset behind one lock
- The window evaluator is pure and never mutates the store
"""

from .errors import ConfigurationError, DataSourceError, EventRecordError, ScheduleTimerError
from .event import HOOKS, EventRecord, ReloadEvent, has_hook, invoke_hook, record_id
from .store import ActiveState, EventStore
from .window import Decision, Transition, Window, WindowEvaluator

__all__ = [
    # Records
    "HOOKS",
    "EventRecord",
    "ReloadEvent",
    "has_hook",
    "invoke_hook",
    "record_id",
    # Store
    "ActiveState",
    "EventStore",
    # Evaluation
    "Decision",
    "Transition",
    "Window",
    "WindowEvaluator",
    # Errors
    "ScheduleTimerError",
    "ConfigurationError",
    "DataSourceError",
    "EventRecordError",
]
