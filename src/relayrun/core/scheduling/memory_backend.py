"""Zero-dependency in-memory timer registrar.

Timers never fire on their own: the host (or a test) calls
:meth:`InMemoryTimerRegistrar.fire_due` to deliver everything that is
due.  That makes whole resume chains deterministic to drive.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime

from relayrun.core.logging import get_logger
from relayrun.core.timestamps import generate_ulid, utc_after, utc_now

from .protocol import TimerRegistration

logger = get_logger(__name__)


class InMemoryTimerRegistrar:
    """In-process timer registrar.

    Example:
        >>> registrar = InMemoryTimerRegistrar(quota=20)
        >>> reg = registrar.register("sync_rows", delay_seconds=60)
        >>> [t.id for t in registrar.list_pending()] == [reg.id]
        True
        >>> registrar.fire_due(now=utc_after(61))  # invokes sync_rows
    """

    name = "memory"

    def __init__(
        self,
        quota: int = 20,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.quota = quota
        self._clock = clock
        self._pending: dict[str, TimerRegistration] = {}
        self._lock = threading.Lock()

    def register(self, entry_point: str, delay_seconds: float) -> TimerRegistration:
        registration = TimerRegistration(
            id=generate_ulid(),
            entry_point=entry_point,
            fire_at=utc_after(delay_seconds, self._clock()),
        )
        with self._lock:
            self._pending[registration.id] = registration
        logger.info(
            "timer_registered",
            backend=self.name,
            entry_point=entry_point,
            timer_id=registration.id,
        )
        return registration

    def list_pending(self) -> list[TimerRegistration]:
        with self._lock:
            return list(self._pending.values())

    def cancel(self, timer_id: str) -> bool:
        with self._lock:
            removed = self._pending.pop(timer_id, None) is not None
        if removed:
            logger.info("timer_cancelled", backend=self.name, timer_id=timer_id)
        return removed

    def fire_due(self, now: datetime | None = None) -> list[TimerRegistration]:
        """Invoke every timer due at *now* (default: the clock), oldest first.

        A timer leaves the pending list as it fires, like a one-shot job
        on a real scheduler.  Timers registered while firing wait for
        the next call.  An exception from an entry point propagates and
        leaves the remaining due timers pending.

        Returns:
            The registrations that were fired.
        """
        from relayrun.execution.entrypoints import get_entry_point
        from relayrun.execution.events import TriggerEvent

        moment = now or self._clock()
        with self._lock:
            due = sorted(
                (r for r in self._pending.values() if r.fire_at is None or r.fire_at <= moment),
                key=lambda r: (r.fire_at or moment, r.id),
            )

        fired: list[TimerRegistration] = []
        for registration in due:
            with self._lock:
                if self._pending.pop(registration.id, None) is None:
                    continue
            fired.append(registration)
            logger.info(
                "timer_fired",
                backend=self.name,
                entry_point=registration.entry_point,
                timer_id=registration.id,
            )
            get_entry_point(registration.entry_point)(TriggerEvent(trigger_uid=registration.id))
        return fired


__all__ = ["InMemoryTimerRegistrar"]
