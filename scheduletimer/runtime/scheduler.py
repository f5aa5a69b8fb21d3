# scheduletimer/runtime/scheduler.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Background tick loop.

Architecture:
- One daemon thread per run of the scheduler
- Optional wait for a clock boundary before the first tick
- Fixed nominal cadence with drift compensation after slow ticks
- Cancellable sleeps so an interrupt takes effect promptly

Threading/Concurrency Guarantees:
1. Only the scheduler thread calls the tick function while running
2. Status changes are serialized by an internal lock
3. A stopped run never ticks again, even if its thread is still sleeping
"""

from __future__ import annotations

import logging
import math
import threading
import time
from datetime import datetime
from enum import Enum, auto
from typing import Callable, Optional

from scheduletimer.runtime.clock import SyncClock, SyncUnit

logger = logging.getLogger(__name__)

TickFunction = Callable[[datetime, float, threading.Event], None]


class TimerStatus(Enum):
    """Defines the possible states of a timer.

    Used to track timer lifecycle and coordinate operations.
    """

    IDLE = auto()  # Never started
    SYNCING = auto()  # Waiting for a clock boundary
    RUNNING = auto()  # Tick loop active
    STOPPED = auto()  # Stopped or interrupted


def fold_delay(elapsed: float, interval: float) -> float:
    """
    Fold an overrun tick duration back into ``[0, interval]``.

    The duration is reflected about the nominal interval until it fits, which
    is a triangle wave of period ``2 * interval``. Sleeping for the folded
    value after an overrun brings the loop back in phase with its original
    cadence.
    """
    if elapsed <= interval:
        return elapsed
    folded = math.fmod(elapsed, 2 * interval)
    return folded if folded <= interval else 2 * interval - folded


class _Run:
    """Per-start state, so a stale thread from an earlier run can never tick."""

    def __init__(self, clock: Callable[[], datetime], log: logging.Logger) -> None:
        self.stop_requested = threading.Event()
        self.cancel = threading.Event()
        self.sync_clock = SyncClock(clock, log)
        self.thread: Optional[threading.Thread] = None


class TickScheduler:
    """
    Owns the background thread that ticks at a fixed nominal interval.

    :param tick: Called as ``tick(now, elapsed, stop_requested)`` on every tick.
        It must not evaluate anything once ``stop_requested`` is set.
    :param tick_interval: Nominal seconds between ticks.
    :param clock: Source of the current local datetime.
    :param monotonic: Source of monotonic seconds used to time ticks.
    """

    def __init__(
        self,
        tick: TickFunction,
        tick_interval: float,
        clock: Callable[[], datetime] = datetime.now,
        monotonic: Callable[[], float] = time.monotonic,
        log: Optional[logging.Logger] = None,
        name: str = "",
    ) -> None:
        self._tick = tick
        self.tick_interval = tick_interval
        self._clock = clock
        self._monotonic = monotonic
        self._log = log or logger
        self.name = name
        self._status = TimerStatus.IDLE
        self._lock = threading.Lock()
        self._run: Optional[_Run] = None
        self._failure: Optional[BaseException] = None

    @property
    def status(self) -> TimerStatus:
        with self._lock:
            return self._status

    @property
    def busy(self) -> bool:
        """True while syncing or running."""
        return self.status in (TimerStatus.SYNCING, TimerStatus.RUNNING)

    @property
    def failure(self) -> Optional[BaseException]:
        """The exception that ended the last run, if any."""
        return self._failure

    @property
    def thread(self) -> Optional[threading.Thread]:
        run = self._run
        return run.thread if run else None

    def start(self, sync_to: Optional[SyncUnit] = None, skip_first: bool = False) -> bool:
        """
        Start the background thread.

        :param sync_to: Wait for this clock boundary before the first tick.
        :param skip_first: Sleep one interval before the first tick.
        :return: False if already syncing or running, True otherwise.
        """
        with self._lock:
            if self._status in (TimerStatus.SYNCING, TimerStatus.RUNNING):
                return False
            run = _Run(self._clock, self._log)
            run.thread = threading.Thread(
                target=self._main,
                args=(run, sync_to, skip_first),
                name=f"scheduletimer-{self.name or id(self)}",
                daemon=True,
            )
            self._run = run
            self._failure = None
            self._status = TimerStatus.SYNCING if sync_to is not None else TimerStatus.RUNNING
        run.thread.start()
        return True

    def stop(self, interrupt: bool = False) -> TimerStatus:
        """
        Stop ticking. A plain stop lets an in-flight sleep finish, after which
        the thread exits without ticking; an interrupt cancels the sleep too.
        A pending sync wait is always cancelled.

        :return: The status before stopping.
        """
        with self._lock:
            previous = self._status
            self._status = TimerStatus.STOPPED
            run = self._run
        if run is not None:
            run.stop_requested.set()
            run.sync_clock.cancel()
            if interrupt:
                run.cancel.set()
        return previous

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the current thread to exit."""
        thread = self.thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _main(self, run: _Run, sync_to: Optional[SyncUnit], skip_first: bool) -> None:
        try:
            if sync_to is not None:
                if not run.sync_clock.wait(sync_to, name=self.name):
                    return
                with self._lock:
                    if run.stop_requested.is_set():
                        return
                    self._status = TimerStatus.RUNNING
            self._loop(run, skip_first)
        except Exception as exc:
            self._log.exception(f"Timer {self.name} tick raised {type(exc).__name__}, stopping the timer")
            self._failure = exc
            with self._lock:
                if self._run is run:
                    self._status = TimerStatus.STOPPED
            run.stop_requested.set()

    def _loop(self, run: _Run, skip_first: bool) -> None:
        nominal = self.tick_interval
        next_tick = nominal
        while not run.stop_requested.is_set():
            if skip_first:
                skip_first = False
                if run.cancel.wait(next_tick):
                    break
                continue

            started = self._monotonic()
            self._tick(self._clock(), next_tick, run.stop_requested)
            elapsed = self._monotonic() - started

            if elapsed > next_tick:
                # Tick again right away, then sleep just long enough to get back in phase
                self._log.info(
                    f"Timer {self.name} tick took longer than tick interval. "
                    "If this continues to happen, things will start running behind schedule."
                )
                self._log.debug(
                    f"Timer {self.name} tick took {elapsed:.2f} seconds. This is greater than the "
                    f"tick interval, {nominal:.2f}. Ticking again immediately."
                )
                if run.stop_requested.is_set():
                    break
                self._tick(self._clock(), elapsed, run.stop_requested)
                next_tick = fold_delay(elapsed, nominal)
                if run.cancel.wait(next_tick):
                    break
            else:
                self._log.debug(
                    f"Timer {self.name} tick took {elapsed:.2f} seconds. "
                    f"Ticking again in {next_tick - elapsed:.2f} seconds."
                )
                if run.cancel.wait(next_tick - elapsed):
                    break
            next_tick = nominal
