"""
relayrun - checkpoint/resume continuations for time-limited batch jobs.

Hosts that kill invocations after a few minutes can still walk large
sources: a run processes items until its time budget is spent, saves a
cursor, and schedules a timer that re-enters the same entry point to
pick up at the next unconsumed item.

Quick start::

    from relayrun import (
        ContinuationRunner, KeyValueContinuationStore,
        InMemoryTimerRegistrar, Source, register_entry_point,
    )

    runner = ContinuationRunner(KeyValueContinuationStore(), InMemoryTimerRegistrar())

    @register_entry_point
    def sync_rows(event=None):
        runner.run(sync_rows, event, Source(items=ROWS), handle_row)
"""

__version__ = "0.1.0"

from relayrun.core.continuations import (
    ContinuationStore,
    KeyValueContinuationStore,
    create_store,
)
from relayrun.core.cursor import Cursor
from relayrun.core.errors import (
    BoundDriftError,
    ConfigError,
    ContinuationError,
    CorruptContinuationError,
    MissingContinuationError,
    QuotaError,
    RelayError,
    SourceError,
    StopRun,
)
from relayrun.core.scheduling import (
    APSchedulerTimerRegistrar,
    InMemoryTimerRegistrar,
    TimerRegistrar,
    TimerRegistration,
    create_registrar,
)
from relayrun.core.settings import RelaySettings, get_settings
from relayrun.execution import (
    ContinuationRunner,
    Page,
    RunOptions,
    RunOutcome,
    Segment,
    SqlTableSource,
    Source,
    TriggerEvent,
    get_entry_point,
    plan_segments,
    purge_continuations,
    register_entry_point,
    split_range,
)

__all__ = [
    "__version__",
    # core
    "Cursor",
    "ContinuationStore",
    "KeyValueContinuationStore",
    "create_store",
    "TimerRegistrar",
    "TimerRegistration",
    "InMemoryTimerRegistrar",
    "APSchedulerTimerRegistrar",
    "create_registrar",
    "RelaySettings",
    "get_settings",
    # errors
    "RelayError",
    "ConfigError",
    "QuotaError",
    "ContinuationError",
    "MissingContinuationError",
    "CorruptContinuationError",
    "SourceError",
    "BoundDriftError",
    "StopRun",
    # execution
    "ContinuationRunner",
    "RunOutcome",
    "RunOptions",
    "Source",
    "SqlTableSource",
    "Page",
    "TriggerEvent",
    "Segment",
    "plan_segments",
    "split_range",
    "purge_continuations",
    "register_entry_point",
    "get_entry_point",
]
