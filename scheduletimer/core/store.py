# scheduletimer/core/store.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional


@dataclass
class ActiveState:
    """
    Bookkeeping for a record inside its window.

    :param remaining: Seconds until the next on_interval call, or None when the
        record has no interval.
    """

    remaining: Optional[float] = None


class EventStore:
    """
    All tracked event records keyed by id, plus the active subset.

    Every read and write of either map must happen while holding ``lock``. The
    lock is reentrant so hooks invoked during a tick may call back into the
    timer (add_event, remove_event, stop) from the tick thread.

    ``generation`` is bumped every time active state is cleared, so a tick can
    tell that a hook stopped the timer underneath it.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.events: Dict[Hashable, Any] = {}
        self.active: Dict[Hashable, ActiveState] = {}
        self.generation = 0

    def add(self, key: Hashable, record: Any) -> None:
        with self.lock:
            self.events[key] = record

    def discard(self, key: Hashable) -> Optional[Any]:
        """Remove a record and any active state it had."""
        with self.lock:
            self.active.pop(key, None)
            return self.events.pop(key, None)

    def replace(self, events: Dict[Hashable, Any]) -> List[Hashable]:
        """
        Swap in a new event map wholesale. Active state for ids that no longer
        exist is dropped silently.

        :return: The orphaned ids that were dropped.
        """
        with self.lock:
            self.events = dict(events)
            orphaned = [key for key in self.active if key not in self.events]
            for key in orphaned:
                del self.active[key]
            return orphaned

    def activate(self, key: Hashable, remaining: Optional[float]) -> None:
        with self.lock:
            self.active[key] = ActiveState(remaining)

    def deactivate(self, key: Hashable) -> None:
        with self.lock:
            self.active.pop(key, None)

    def is_active(self, key: Hashable) -> bool:
        with self.lock:
            return key in self.active

    def active_records(self) -> List[Any]:
        """Records that are currently active, in activation order."""
        with self.lock:
            return [self.events[key] for key in self.active if key in self.events]

    def clear_active(self) -> None:
        with self.lock:
            self.active.clear()
            self.generation += 1

    def snapshot(self) -> Dict[Hashable, Any]:
        with self.lock:
            return dict(self.events)

    def active_snapshot(self) -> Dict[Hashable, Optional[float]]:
        with self.lock:
            return {key: state.remaining for key, state in self.active.items()}

    def __len__(self) -> int:
        with self.lock:
            return len(self.events)
