"""relayrun core primitives: errors, logging, settings, cursors, storage, timers.

Nothing in ``relayrun.core`` knows how items are iterated or when a run
times out; that lives in ``relayrun.execution``.
"""

from relayrun.core.continuations import ContinuationStore, KeyValueContinuationStore
from relayrun.core.cursor import Cursor
from relayrun.core.errors import ErrorCategory, ErrorContext, RelayError, StopRun
from relayrun.core.logging import LogContext, configure_logging, get_logger

__all__ = [
    "ContinuationStore",
    "KeyValueContinuationStore",
    "Cursor",
    "ErrorCategory",
    "ErrorContext",
    "RelayError",
    "StopRun",
    "LogContext",
    "configure_logging",
    "get_logger",
]
