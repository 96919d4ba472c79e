"""Timer registrars: one-shot delayed invocations of named entry points.

┌──────────────────────────────────────────────────────────────────────────────┐
│  RELAYRUN TIMERS                                                              │
│                                                                               │
│  Quick Start:                                                                 │
│  ┌──────────────────────────────────────────────────────────────────────┐   │
│  │   from relayrun.core.scheduling import create_registrar             │   │
│  │                                                                      │   │
│  │   registrar = create_registrar("apscheduler")                        │   │
│  │   registrar.start()                                                  │   │
│  └──────────────────────────────────────────────────────────────────────┘   │
│                                                                               │
│  Backends:                                                                    │
│  - InMemoryTimerRegistrar: tests and local runs, fires on fire_due()        │
│  - APSchedulerTimerRegistrar: BackgroundScheduler date jobs, optional        │
│    SQLAlchemy job store for persistence across restarts                      │
└──────────────────────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ Reaching for a module-level scheduler from inside a run
    ✅ Pass the registrar into ``ContinuationRunner``
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .apscheduler_backend import APSchedulerTimerRegistrar
from .memory_backend import InMemoryTimerRegistrar
from .protocol import TimerRegistrar, TimerRegistration

if TYPE_CHECKING:
    from relayrun.core.settings import RelaySettings

__all__ = [
    "TimerRegistrar",
    "TimerRegistration",
    "InMemoryTimerRegistrar",
    "APSchedulerTimerRegistrar",
    "create_registrar",
]


def create_registrar(
    backend: str = "apscheduler",
    settings: RelaySettings | None = None,
) -> InMemoryTimerRegistrar | APSchedulerTimerRegistrar:
    """Factory for a registrar configured from settings.

    Args:
        backend: ``"apscheduler"`` or ``"memory"``
        settings: Settings to read quota and job store from (default:
            ``get_settings()``)
    """
    if settings is None:
        from relayrun.core.settings import get_settings

        settings = get_settings()

    if backend == "memory":
        return InMemoryTimerRegistrar(quota=settings.timer_quota)
    if backend == "apscheduler":
        if settings.jobstore_url is None:
            settings.database_path.parent.mkdir(parents=True, exist_ok=True)
        return APSchedulerTimerRegistrar(
            quota=settings.timer_quota,
            jobstore_url=settings.resolved_jobstore_url(),
        )
    raise ValueError(f"Unknown timer backend: {backend}")
