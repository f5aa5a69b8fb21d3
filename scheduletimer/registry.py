# scheduletimer/registry.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import threading
from typing import Any, Dict, Hashable, List, Optional

from scheduletimer.config import TimerOptions
from scheduletimer.core.errors import ConfigurationError
from scheduletimer.timer import Timer


class TimerRegistry:
    """
    Named timers, for applications that manage several timers by name.

    A timer created here stays referenced until it is deleted, so delete
    timers you no longer need.
    """

    def __init__(self) -> None:
        self._timers: Dict[Hashable, Timer] = {}
        self._lock = threading.Lock()

    def create(self, name: Hashable, source: Any, options: Optional[TimerOptions] = None, **overrides: Any) -> Timer:
        """
        Create and store a timer. The name is also used as the timer's log
        name unless one is configured.

        :raises ConfigurationError: If a timer with this name already exists.
        """
        if not (options and options.name) and "name" not in overrides:
            overrides["name"] = str(name)
        with self._lock:
            if name in self._timers:
                raise ConfigurationError(f"Timer {name!r} already exists")
            timer = Timer(source, options, **overrides)
            self._timers[name] = timer
        return timer

    def get(self, name: Hashable) -> Optional[Timer]:
        with self._lock:
            return self._timers.get(name)

    def _require(self, name: Hashable) -> Timer:
        with self._lock:
            try:
                return self._timers[name]
            except KeyError:
                raise KeyError(f"No timer named {name!r}") from None

    def start(self, name: Hashable) -> bool:
        return self._require(name).start()

    def stop(self, name: Hashable) -> bool:
        return self._require(name).stop()

    def interrupt(self, name: Hashable) -> bool:
        """Stop a timer, calling on_interrupt on its active records."""
        return self._require(name).interrupt()

    def delete(self, name: Hashable) -> bool:
        """Interrupt a timer and forget it."""
        with self._lock:
            try:
                timer = self._timers.pop(name)
            except KeyError:
                raise KeyError(f"No timer named {name!r}") from None
        return timer.interrupt()

    def names(self) -> List[Hashable]:
        with self._lock:
            return list(self._timers)

    def __contains__(self, name: Hashable) -> bool:
        with self._lock:
            return name in self._timers

    def __len__(self) -> int:
        with self._lock:
            return len(self._timers)
