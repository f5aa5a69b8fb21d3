# scheduletimer/timer.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Public timer API.

A Timer tracks a set of event records and, once started, wakes up every tick
interval on a background thread to check whether any record has started,
ended, or reached an interval boundary, calling the matching hook on the
record. See scheduletimer.core.event for the record interface.

Threading/Concurrency Guarantees:
1. One background thread evaluates records; every other method may be called
   from any thread
2. A whole tick is evaluated under the event store lock, so add_event,
   remove_event, refresh and stop are ordered before or after a tick, never
   inside one
3. Hooks run on the tick thread while the store lock is held; they may call
   add_event, remove_event, stop and interrupt on the same timer. A stop from
   a hook ends the tick right after that hook returns
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Hashable, Optional

from scheduletimer.config import TimerOptions
from scheduletimer.core.errors import ConfigurationError, DataSourceError, EventRecordError
from scheduletimer.core.event import RELOAD_EVENT_ID, ReloadEvent, invoke_hook, record_id
from scheduletimer.core.store import EventStore
from scheduletimer.core.window import Transition, WindowEvaluator
from scheduletimer.persistence.source import EventSource
from scheduletimer.runtime.scheduler import TickScheduler, TimerStatus

logger = logging.getLogger(__name__)


class Timer:
    """
    Calls start, end, interval, interrupt and tick hooks on event records as
    their time windows open and close.

    :param source: Object event records are loaded from (see EventSource).
    :param options: Timer configuration.
    :param overrides: Individual TimerOptions fields, applied on top of ``options``.
    :raises ConfigurationError: If the source is missing or an option is invalid.
    """

    def __init__(self, source: Any, options: Optional[TimerOptions] = None, **overrides: Any) -> None:
        if source is None:
            raise ConfigurationError("Missing or invalid event source")
        options = options or TimerOptions()
        if overrides:
            try:
                options = replace(options, **overrides)
            except TypeError as exc:
                raise ConfigurationError(str(exc)) from exc

        self.source = source
        self.options = options
        self._log = options.logger or logger
        self._clock = options.clock or datetime.now
        self._store = EventStore()
        self._evaluator = WindowEvaluator(options.use_time_date, options.interval)
        self._event_source = EventSource(
            source,
            all_method=options.all_method,
            filter_method=options.filter_method,
            clock=self._clock,
        )
        self._scheduler = TickScheduler(
            self._scheduled_tick,
            options.tick_interval,
            clock=self._clock,
            log=self._log,
            name=options.name,
        )
        # Reentrant so a hook run by the tick in start() may call stop()
        self._control_lock = threading.RLock()
        self._reload_scheduled = False

    @property
    def name(self) -> str:
        return self.options.name

    @property
    def status(self) -> TimerStatus:
        return self._scheduler.status

    @property
    def running(self) -> bool:
        return self._scheduler.status is TimerStatus.RUNNING

    @property
    def loaded_events(self) -> Dict[Hashable, Any]:
        """Copy of all tracked records, keyed by id."""
        return self._store.snapshot()

    @property
    def active_events(self) -> Dict[Hashable, Optional[float]]:
        """Copy of the active ids mapped to their remaining interval countdown."""
        return self._store.active_snapshot()

    @property
    def failure(self) -> Optional[BaseException]:
        """Exception raised by a hook that ended the background thread, if any."""
        return self._scheduler.failure

    def start(self) -> bool:
        """
        Start the timer. Loads records from the source unless autoload is off,
        then either waits for the sync_to boundary or starts ticking right away.
        Returns once the background thread is started, not once ticking begins.

        :return: False if the timer is already running or syncing, else True.
        """
        with self._control_lock:
            if self._scheduler.busy:
                self._log.warning(
                    f"Timer {self.name}: start was called, but this instance is already running or syncing. "
                    "Doing nothing."
                )
                return False

            if self.options.autoload:
                self.refresh()

            sync_to = self.options.sync_to
            if sync_to is not None and self.options.tick_before_sync:
                self.tick()

            return self._scheduler.start(sync_to=sync_to, skip_first=self.options.skip_first)

    def stop(self, interrupt: bool = False) -> bool:
        """
        Stop the timer. Active state is always cleared, so a restarted timer
        starts every record from idle.

        :param interrupt: Also cancel any in-flight sleep and call on_interrupt
            on every active record.
        """
        with self._control_lock:
            self._scheduler.stop(interrupt)
        # Not under the control lock: a hook holding the store lock may call stop
        with self._store.lock:
            try:
                if interrupt:
                    for record in self._store.active_records():
                        invoke_hook(record, "on_interrupt")
            finally:
                self._store.clear_active()
        return True

    def interrupt(self) -> bool:
        """Convenience method for stop(interrupt=True)."""
        return self.stop(interrupt=True)

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the background thread to exit."""
        self._scheduler.join(timeout)

    def refresh(self, filter: Any = None) -> bool:
        """
        Replace the tracked records with a fresh load from the event source.
        Active state of records that disappear is dropped without calling
        on_end. If loading fails, the previous records are kept.

        :param filter: Overrides the configured ``filter`` descriptor.
        :return: True if the records were replaced.
        """
        id_field = self.options.id_field
        try:
            records = self._event_source.load(self.options.descriptors(filter))
            loaded = {record_id(record, id_field): record for record in records}
        except (DataSourceError, EventRecordError) as exc:
            self._log.error(f"Timer {self.name} failed to refresh events, keeping the previous ones: {exc}")
            return False

        events: Dict[Hashable, Any] = {}
        for index, record in enumerate(self.options.additional_events, start=1):
            try:
                key = record_id(record, id_field)
            except EventRecordError:
                key = f"additional_event_{index}"
            events[key] = record
        events.update(loaded)
        if self.options.reload_at is not None:
            events[RELOAD_EVENT_ID] = ReloadEvent(self, self.options.reload_at)

        orphaned = self._store.replace(events)
        self._log.debug(f"Timer {self.name} loaded {len(events)} events, dropped {len(orphaned)} active")
        return True

    def schedule_reload(self) -> None:
        """Reload records from the source at the end of the current tick."""
        self._reload_scheduled = True

    def add_event(self, record: Any) -> None:
        """
        Track a record. It may be dropped again by the next refresh unless it
        is also returned by the event source.
        """
        self._store.add(record_id(record, self.options.id_field), record)

    def remove_event(self, record: Any) -> None:
        """Stop tracking a record, calling on_interrupt first if it is active."""
        key = record_id(record, self.options.id_field)
        with self._store.lock:
            if self._store.is_active(key):
                invoke_hook(self._store.events.get(key, record), "on_interrupt")
            self._store.discard(key)

    def tick(self, now: Optional[datetime] = None, elapsed: Optional[float] = None) -> None:
        """
        Evaluate every record once. The background thread calls this on its
        own; it is public so the timer can also be driven manually.

        :param now: Instant to evaluate at, defaults to the clock.
        :param elapsed: Seconds this tick covers, defaults to the tick interval.
        """
        self._evaluate(now or self._clock(), self.options.tick_interval if elapsed is None else elapsed)
        self._reload_if_scheduled()

    def _scheduled_tick(self, now: datetime, elapsed: float, stop_requested: threading.Event) -> None:
        try:
            self._evaluate(now, elapsed, stop_requested)
            self._reload_if_scheduled()
        except Exception:
            # The scheduler stops on this error; start over from idle on restart
            self._store.clear_active()
            raise

    def _evaluate(self, now: datetime, elapsed: float, stop_requested: Optional[threading.Event] = None) -> None:
        self._log.debug(f"Timer {self.name} tick at {now}")
        store = self._store
        with store.lock:
            if stop_requested is not None and stop_requested.is_set():
                return
            generation = store.generation
            for key, record in list(store.events.items()):
                # A hook earlier in this tick may have removed it
                if store.events.get(key) is not record:
                    continue

                invoke_hook(record, "on_tick")
                if store.generation != generation:
                    return
                state = store.active.get(key)
                decision = self._evaluator.evaluate(record, now, elapsed, state)
                if decision.hook is not None:
                    invoke_hook(record, decision.hook)
                    # The hook stopped the timer, leave active state cleared
                    if store.generation != generation:
                        return

                if decision.transition is Transition.START:
                    store.activate(key, decision.remaining)
                elif decision.transition is Transition.END:
                    store.deactivate(key)
                elif decision.active and state is not None:
                    state.remaining = decision.remaining

    def _reload_if_scheduled(self) -> None:
        if self._reload_scheduled:
            self._reload_scheduled = False
            self.refresh()

    def __repr__(self) -> str:
        return f"Timer(name={self.name!r}, status={self.status.name}, events={len(self._store)})"
