"""
Execution driver: run a callback over a source under a time budget.

``ContinuationRunner`` is what an entry point calls.  It decides whether
an invocation is a fresh start or a resumption, drives the iterator
against the callback until stop, exhaustion or timeout, and on timeout
persists the cursor and registers a continuation that re-enters the
same entry point later.

Manifesto:
    The host kills anything that runs too long, and there is no memory
    between invocations.  So every invocation must be able to:

    - **Start or resume:** a trigger event with an id means "resume"
    - **Yield before the wall:** check the budget between items
    - **Hand off exactly:** persist the next unconsumed position, no
      more and no less, under the id of the timer that will resume it
    - **Not mask bugs:** callback errors propagate, nothing is saved

Architecture:
    ::

        entry_point(event)
              │
              ▼
        ContinuationRunner.run(entry_point, event, source, callback, options)
              │
              ├── validate entry point / callback / source  ── ConfigError
              │
              ├── event has trigger_uid?
              │     ├── store.get(id)        ── None → MissingContinuationError
              │     ├── store.delete(id)
              │     ├── registrar.cancel(id)
              │     └── iterator.seek(cursor)  ── BoundDriftError
              │
              ├── loop:  advance() → done?                 → EXHAUSTED
              │          callback(item) raises StopRun     → STOPPED
              │          callback(item) raises other       → propagate
              │          clock() - start > timeout         → TIMED_OUT
              │
              └── TIMED_OUT and not exhausted:
                    registrar.register(entry_point, delay) → id
                    store.put(id, iterator.cursor())
                    return registration

        run_in_parallel (fresh start):
              quota guard → split_range(0, bound) → one continuation per segment

Examples:
    >>> store = KeyValueContinuationStore()
    >>> registrar = InMemoryTimerRegistrar()
    >>> runner = ContinuationRunner(store, registrar)
    >>>
    >>> @register_entry_point
    ... def sync_rows(event=None):
    ...     return runner.run(sync_rows, event, Source(items=rows), handle_row)

Guardrails:
    ❌ DON'T: Signal "stop" by returning a value from the callback
    ✅ DO: Raise ``StopRun``; return values are ignored

    ❌ DON'T: Catch callback errors to force a continuation
    ✅ DO: Let them propagate; fix the bug, then restart the job

    ❌ DON'T: Pass different options on different legs of one run
    ✅ DO: Build options with ``RunOptions.from_settings``

Tags:
    continuation, checkpoint, resume, time-budget, fan-out, relayrun

Doc-Types:
    - API Reference
    - Architecture Guide
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import replace
from enum import Enum
from typing import Any

from relayrun.core.continuations import ContinuationStore
from relayrun.core.cursor import Cursor
from relayrun.core.errors import (
    ConfigError,
    MissingContinuationError,
    QuotaError,
    RelayError,
    StopRun,
)
from relayrun.core.logging import LogContext, get_logger
from relayrun.core.scheduling.protocol import TimerRegistrar, TimerRegistration

from .entrypoints import EntryPoint, resolve_entry_point_name
from .events import TriggerEvent
from .iterators import ListIterator, PageTokenIterator, RangeIterator, Source
from .options import MAX_SPLIT, RunOptions
from .splitter import split_range

logger = get_logger(__name__)

Callback = Callable[[Any], Any]
SourceIterator = ListIterator | RangeIterator | PageTokenIterator


class RunOutcome(str, Enum):
    """Why the item loop ended."""

    EXHAUSTED = "exhausted"
    STOPPED = "stopped"
    TIMED_OUT = "timed_out"


class ContinuationRunner:
    """Drives restartable iterations across invocation boundaries.

    Args:
        store: Where cursors wait between invocations
        registrar: Host timer backend
        clock: Wall-clock reading in seconds (``time.time`` by default)
    """

    def __init__(
        self,
        store: ContinuationStore,
        registrar: TimerRegistrar,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.registrar = registrar
        self._clock = clock

    # === Public API ===

    def run(
        self,
        entry_point: str | EntryPoint,
        event: Any,
        source: Source,
        callback: Callback,
        options: RunOptions | None = None,
    ) -> TimerRegistration | None:
        """Process items until exhaustion, stop, or timeout.

        Args:
            entry_point: The function (or its registered name) a
                continuation should re-invoke
            event: Trigger event of this invocation, ``None`` on a fresh start
            source: Exactly one work item source
            callback: Called once per item; raise ``StopRun`` to end early
            options: Run options (defaults when omitted)

        Returns:
            The continuation registered on timeout, or ``None`` when the
            run finished (exhausted or stopped).

        Raises:
            ConfigError: Invalid entry point, callback, source or event
            MissingContinuationError: The event's id has no stored cursor
            BoundDriftError: A resumed bounded source changed length
        """
        options = options or RunOptions()
        start = options.start if options.start is not None else self._clock()
        name = resolve_entry_point_name(entry_point)
        self._check_call(callback, source)
        trigger = TriggerEvent.coerce(event)

        with LogContext(entry_point=name, continuation_id=trigger.trigger_uid):
            iterator = source.to_iterator()
            if trigger.trigger_uid:
                self._restore(trigger.trigger_uid, iterator)
            return self._drive(name, iterator, callback, options, start)

    def run_in_parallel(
        self,
        entry_point: str | EntryPoint,
        event: Any,
        source: Source,
        callback: Callback,
        options: RunOptions | None = None,
    ) -> list[TimerRegistration]:
        """Fan a bounded source out into independently scheduled segments.

        Without a continuation id nothing is processed: the range
        ``[0, bound)`` is split into up to ``2 ** options.split`` segments
        and one continuation is registered per segment.  An empty source
        registers nothing.  With an id the call behaves like :meth:`run`
        on that segment.

        Returns:
            All segment registrations on a fresh start; on a resumption,
            the follow-up continuation (if any) as a one-element list.

        Raises:
            ConfigError: Unbounded source, ``split > 4``, or any
                :meth:`run` precondition
            QuotaError: ``2 ** split`` exceeds the free timer slots
        """
        options = options or RunOptions()
        start = options.start if options.start is not None else self._clock()
        name = resolve_entry_point_name(entry_point)
        self._check_call(callback, source)
        if not source.is_bounded:
            raise ConfigError("parallel runs need a bounded source (items or table)")
        if options.split > MAX_SPLIT:
            raise ConfigError(f"split cannot be greater than {MAX_SPLIT}, got {options.split}")
        trigger = TriggerEvent.coerce(event)

        if trigger.trigger_uid:
            registration = self.run(name, trigger, source, callback, replace(options, start=start))
            return [registration] if registration is not None else []

        with LogContext(entry_point=name):
            iterator = source.to_iterator()
            assert isinstance(iterator, ListIterator | RangeIterator)
            if iterator.bound == iterator.position:
                logger.info("fan_out_registered", segments=0, split=options.split, length=0)
                return []

            requested = 2**options.split
            available = self.registrar.quota - len(self.registrar.list_pending())
            if requested > available:
                raise QuotaError.for_request(requested, available).with_context(entry_point=name)

            registrations = split_range(
                self.registrar,
                self.store,
                name,
                iterator.position,
                iterator.bound,
                options.split,
                resume_delay_seconds=options.resume_delay_seconds,
                source_length=iterator.source_length,
            )
            logger.info(
                "fan_out_registered",
                segments=len(registrations),
                split=options.split,
                length=iterator.bound,
            )
            return registrations

    # === Internals ===

    @staticmethod
    def _check_call(callback: Callback, source: Source) -> None:
        if not callable(callback):
            raise ConfigError("callback is not callable")
        if not isinstance(source, Source):
            raise ConfigError(f"source must be a Source, got {type(source).__name__}")

    def _restore(self, continuation_id: str, iterator: SourceIterator) -> None:
        """Consume the stored cursor and timer for *continuation_id*."""
        cursor = self.store.get(continuation_id)
        if cursor is None:
            raise MissingContinuationError(
                f"Cannot find continuation for {continuation_id}"
            ).with_context(continuation_id=continuation_id)

        self.store.delete(continuation_id)
        self.registrar.cancel(continuation_id)
        logger.info("continuation_restored", cursor=cursor.to_dict())

        try:
            iterator.seek(cursor)
        except RelayError as exc:
            raise exc.with_context(continuation_id=continuation_id, cursor=cursor.to_dict())

    def _drive(
        self,
        name: str,
        iterator: SourceIterator,
        callback: Callback,
        options: RunOptions,
        start: float,
    ) -> TimerRegistration | None:
        processed = 0
        outcome = RunOutcome.EXHAUSTED

        while True:
            item_started = self._clock()
            step = iterator.advance()
            if step.done:
                break

            try:
                callback(step.value)
            except StopRun as stop:
                outcome = RunOutcome.STOPPED
                logger.info("run_stopped", reason=stop.message, position=iterator.position)
                break
            except Exception:
                logger.exception("callback_failed", position=iterator.position, processed=processed)
                raise

            processed += 1
            now = self._clock()
            if options.debug:
                logger.info(
                    "item_processed",
                    position=iterator.position,
                    bound=iterator.bound,
                    item_seconds=round(now - item_started, 3),
                    elapsed_seconds=round(now - start, 3),
                )
            if now - start > options.timeout_seconds:
                outcome = RunOutcome.TIMED_OUT
                break

        registration = None
        if outcome is RunOutcome.TIMED_OUT and not iterator.exhausted:
            registration = self._register(name, iterator.cursor(), options)

        logger.info(
            "run_finished",
            outcome=outcome.value,
            processed=processed,
            position=iterator.position,
            bound=iterator.bound,
            next_continuation_id=registration.id if registration else None,
        )
        return registration

    def _register(self, name: str, cursor: Cursor, options: RunOptions) -> TimerRegistration:
        registration = self.registrar.register(name, options.resume_delay_seconds)
        self.store.put(registration.id, cursor)
        logger.info(
            "continuation_registered",
            next_continuation_id=registration.id,
            cursor=cursor.to_dict(),
            delay_seconds=options.resume_delay_seconds,
        )
        return registration


def purge_continuations(
    store: ContinuationStore,
    registrar: TimerRegistrar,
    entry_point: str | EntryPoint | None = None,
) -> int:
    """Cancel pending timers and delete their cursors.

    Args:
        store: Continuation store holding the cursors
        registrar: Timer backend
        entry_point: Only purge timers for this entry point (all when omitted)

    Returns:
        Number of timers cancelled.
    """
    name = resolve_entry_point_name(entry_point) if entry_point is not None else None
    cancelled = 0
    for registration in registrar.list_pending():
        if name is not None and registration.entry_point != name:
            continue
        if registrar.cancel(registration.id):
            cancelled += 1
        store.delete(registration.id)
    logger.info("continuations_purged", entry_point=name, cancelled=cancelled)
    return cancelled


__all__ = ["ContinuationRunner", "RunOutcome", "purge_continuations"]
