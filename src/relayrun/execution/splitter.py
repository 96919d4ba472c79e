"""
Range splitter for parallel fan-out.

Partitions a bounded index range into up to ``2 ** split`` contiguous
segments by recursive halving, then registers one continuation per
segment.  Each segment becomes an independent resume chain with its own
timer id and its own cursor.

Manifesto:
    Halving instead of equal k-way slicing keeps the recursion depth at
    ``split`` and handles ranges that do not divide evenly by ``2 ** k``
    without remainder bookkeeping.  A half that would hold one item or
    fewer stops the recursion, so tiny ranges do not burn timer slots.

Architecture:
    ::

        plan_segments(0, 17, split=2)
              │  section=17  mid=8
              ├── plan_segments(0, 8, 1)     mid=4
              │     ├── [0, 4)
              │     └── [4, 8)
              └── plan_segments(8, 17, 1)    mid=4
                    ├── [8, 12)
                    └── [12, 17)

        split_range(...)  → one TimerRegistration + Cursor(index, length) per segment

Examples:
    >>> plan_segments(0, 17, 2)
    [Segment(index=0, length=4), Segment(index=4, length=8), Segment(index=8, length=12), Segment(index=12, length=17)]
    >>> plan_segments(0, 17, 0)
    [Segment(index=0, length=17)]
    >>> plan_segments(0, 3, 4)
    [Segment(index=0, length=3)]

Performance:
    - plan_segments(): O(2 ** split), at most 16 segments
    - split_range(): one register() + one put() per segment

Guardrails:
    ❌ DON'T: Call split_range without checking the timer quota
    ✅ DO: Go through ``ContinuationRunner.run_in_parallel``, which guards it

Tags:
    fan-out, partitioning, range-splitting, relayrun

Doc-Types:
    - API Reference
    - Algorithm Notes
"""

from __future__ import annotations

from dataclasses import dataclass

from relayrun.core.continuations import ContinuationStore
from relayrun.core.cursor import Cursor
from relayrun.core.errors import ConfigError
from relayrun.core.logging import get_logger
from relayrun.core.scheduling.protocol import TimerRegistrar, TimerRegistration

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Segment:
    """Half-open index range ``[index, length)`` owned by one continuation.

    ``length`` is the exclusive end index, not the segment size.
    """

    index: int
    length: int

    @property
    def size(self) -> int:
        return self.length - self.index


def plan_segments(index: int, length: int, split: int) -> list[Segment]:
    """Partition ``[index, length)`` by recursive halving.

    Pure and deterministic: the same arguments always give the same
    segments, in ascending order.

    Raises:
        ConfigError: If the range or split is invalid.
    """
    for label, value in (("index", index), ("length", length), ("split", split)):
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ConfigError(f"{label} must be a non-negative integer, got {value!r}")
    if index > length:
        raise ConfigError(f"index {index} is past length {length}")

    mid = (length - index) // 2
    if split == 0 or mid <= 1:
        return [Segment(index, length)]
    return plan_segments(index, index + mid, split - 1) + plan_segments(index + mid, length, split - 1)


def split_range(
    registrar: TimerRegistrar,
    store: ContinuationStore,
    entry_point: str,
    index: int,
    length: int,
    split: int,
    *,
    resume_delay_seconds: float,
    source_length: int | None = None,
) -> list[TimerRegistration]:
    """Register one continuation per planned segment.

    Each registration's cursor starts at the segment's first index and
    is bounded by its end, so the resumed run walks only that segment.

    Args:
        registrar: Timer backend
        store: Continuation store
        entry_point: Name the timers will invoke
        index: First index of the range
        length: Exclusive end of the range
        split: Maximum halving depth
        resume_delay_seconds: Delay before each segment starts
        source_length: Full source length, recorded for drift detection

    Returns:
        Registrations in segment order; empty when the range is empty.
    """
    registrations: list[TimerRegistration] = []
    for segment in plan_segments(index, length, split):
        if segment.size == 0:
            continue
        registration = registrar.register(entry_point, resume_delay_seconds)
        store.put(
            registration.id,
            Cursor(position=segment.index, bound=segment.length, source_length=source_length),
        )
        logger.info(
            "segment_registered",
            entry_point=entry_point,
            continuation_id=registration.id,
            index=segment.index,
            length=segment.length,
        )
        registrations.append(registration)
    return registrations


__all__ = ["Segment", "plan_segments", "split_range"]
