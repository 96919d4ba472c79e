"""Timer registrar protocol.

┌──────────────────────────────────────────────────────────────────────────────┐
│  TIMER REGISTRAR PROTOCOL                                                     │
│                                                                               │
│  Design Philosophy:                                                           │
│  The host owns time.  relayrun only needs to ask it for a one-shot,          │
│  delayed invocation of a named entry point, to see which ones are still      │
│  pending, and to cancel one.  Everything else (threads, job stores,          │
│  misfire policy) is the backend's business.                                  │
│                                                                               │
│  ┌─────────────────────────────────────────────────────────────────────┐     │
│  │                                                                     │     │
│  │   ContinuationRunner ── register(name, delay) ──► TimerRegistrar    │     │
│  │          ▲                                             │            │     │
│  │          │                                             │ delay      │     │
│  │          │                                             ▼            │     │
│  │   entry_point(TriggerEvent(trigger_uid=id)) ◄── timer fires         │     │
│  │                                                                     │     │
│  │   Backends:                                                         │     │
│  │   • InMemoryTimerRegistrar  (tests, local, explicit fire_due())     │     │
│  │   • APSchedulerTimerRegistrar (BackgroundScheduler date jobs)       │     │
│  └─────────────────────────────────────────────────────────────────────┘     │
│                                                                               │
│  Contract:                                                                    │
│  - register() returns an id usable as a continuation store key before        │
│    it returns                                                                 │
│  - cancel() of an unknown id is a no-op returning False                      │
│  - quota is the host's limit on outstanding timers                           │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class TimerRegistration:
    """A pending one-shot invocation of an entry point.

    Attributes:
        id: Continuation id; join key into the continuation store.
        entry_point: Name of the entry point the timer will invoke.
        fire_at: When the timer is due, if the backend knows.
    """

    id: str
    entry_point: str
    fire_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "entry_point": self.entry_point,
            "fire_at": self.fire_at.isoformat() if self.fire_at else None,
        }


@runtime_checkable
class TimerRegistrar(Protocol):
    """Protocol for one-shot delayed-callback backends.

    Example (custom backend):
        >>> class MyRegistrar:
        ...     quota = 20
        ...
        ...     def register(self, entry_point, delay_seconds):
        ...         job = my_host.after(delay_seconds, entry_point)
        ...         return TimerRegistration(id=job.id, entry_point=entry_point)
        ...
        ...     def list_pending(self):
        ...         return [TimerRegistration(j.id, j.name) for j in my_host.jobs()]
        ...
        ...     def cancel(self, timer_id):
        ...         return my_host.delete(timer_id)
    """

    quota: int

    def register(self, entry_point: str, delay_seconds: float) -> TimerRegistration:
        """Schedule *entry_point* to be invoked once after *delay_seconds*."""
        ...

    def list_pending(self) -> list[TimerRegistration]:
        """Return all timers that have not fired yet."""
        ...

    def cancel(self, timer_id: str) -> bool:
        """Cancel a pending timer.  Returns True if one was removed."""
        ...


__all__ = ["TimerRegistration", "TimerRegistrar"]
