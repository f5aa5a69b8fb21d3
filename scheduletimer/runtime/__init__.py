"""
Runtime package for the background tick loop and clock synchronization.

Architecture:
- TickScheduler owns the single background thread
- SyncClock defers the first tick to a minute, hour, or day boundary
- Sleeps and sync waits are cancellable timed waits
"""

from .clock import SyncClock, SyncUnit, next_boundary
from .scheduler import TickScheduler, TimerStatus, fold_delay

__all__ = ["SyncClock", "SyncUnit", "next_boundary", "TickScheduler", "TimerStatus", "fold_delay"]
