"""relayrun execution: run a callback over a source across invocations.

ARCHITECTURE
────────────
::

    entry point (registered by name)
      │  TriggerEvent(trigger_uid)
      ▼
    ContinuationRunner
      ├── run()              ─ sequential, resumes from a saved cursor
      ├── run_in_parallel()  ─ fan out a bounded source into segments
      │
      ├── Source → restartable iterator
      │     ├─ ListIterator      (items)
      │     ├─ RangeIterator     (table)
      │     └─ PageTokenIterator (page_request)
      │
      └── splitter ─ plan_segments / split_range
"""

from relayrun.execution.driver import ContinuationRunner, RunOutcome, purge_continuations
from relayrun.execution.entrypoints import (
    clear_entry_points,
    get_entry_point,
    list_entry_points,
    register_entry_point,
    resolve_entry_point_name,
)
from relayrun.execution.events import TriggerEvent
from relayrun.execution.iterators import (
    ListIterator,
    Page,
    PageTokenIterator,
    RangeIterator,
    Source,
    SqlTableSource,
    Step,
)
from relayrun.execution.options import MAX_SPLIT, RunOptions
from relayrun.execution.splitter import Segment, plan_segments, split_range

__all__ = [
    "ContinuationRunner",
    "RunOutcome",
    "purge_continuations",
    "register_entry_point",
    "get_entry_point",
    "list_entry_points",
    "clear_entry_points",
    "resolve_entry_point_name",
    "TriggerEvent",
    "Source",
    "SqlTableSource",
    "ListIterator",
    "RangeIterator",
    "PageTokenIterator",
    "Page",
    "Step",
    "MAX_SPLIT",
    "RunOptions",
    "Segment",
    "plan_segments",
    "split_range",
]
