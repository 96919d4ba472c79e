"""
Cursor value object: the minimal state needed to resume an iteration.

A cursor names the *next* unconsumed item and, for bounded sources, the
exclusive end of the range being walked.  It is the only thing that
survives between two invocations of an entry point.

Architecture:
    ::

        fresh start                       resumed run
        ───────────                       ───────────
        Cursor(position=0, bound=N)       Cursor.from_text(store.get(id))
              │                                 │
              ▼                                 ▼
        iterator.advance() ...  ──timeout──►  cursor.to_text() ──► store.put(id)

    Persisted record (JSON text)::

        {"position": 42, "bound": 100, "source_length": 100}
        {"position": "CgNhYmM", "bound": null, "source_length": null}

Examples:
    >>> cursor = Cursor(position=3, bound=10, source_length=10)
    >>> Cursor.from_text(cursor.to_text()) == cursor
    True
    >>> Cursor(position=10, bound=10).exhausted
    True

Tags:
    cursor, checkpoint, resume, serialization, relayrun
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from relayrun.core.errors import CorruptContinuationError

PageToken = str | int | float
Position = int | PageToken | None


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def is_page_token(value: Any) -> bool:
    """True for the JSON scalars a paginated API may use as its token."""
    return isinstance(value, str | int | float) and not isinstance(value, bool)


@dataclass(frozen=True, slots=True)
class Cursor:
    """Resume point for a restartable iterator.

    Attributes:
        position: Index of the next item (bounded sources) or the page
            token for the next request (token sources: any JSON string
            or number; ``None`` means the first page).
        bound: Exclusive end index for bounded sources, ``None`` for
            unbounded ones.
        source_length: Total source length when the cursor was taken.
            Only bounded sources set it; used to detect drift on resume.
    """

    position: Position = 0
    bound: int | None = None
    source_length: int | None = None

    @property
    def is_bounded(self) -> bool:
        return self.bound is not None

    @property
    def exhausted(self) -> bool:
        """True when a bounded cursor has reached its bound."""
        return self.bound is not None and self.position == self.bound

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": self.position,
            "bound": self.bound,
            "source_length": self.source_length,
        }

    def to_text(self) -> str:
        """Serialize to the persisted JSON record."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Any) -> Cursor:
        """Build a cursor from a decoded record, validating every field."""
        if not isinstance(data, dict) or "position" not in data:
            raise CorruptContinuationError(f"Continuation record is not a cursor: {data!r}")

        position = data["position"]
        bound = data.get("bound")
        source_length = data.get("source_length")

        if bound is None:
            if position is not None and not is_page_token(position):
                raise CorruptContinuationError(
                    f"Unbounded cursor position must be a page token, got {position!r}"
                )
        else:
            if not _is_index(bound) or not _is_index(position):
                raise CorruptContinuationError(
                    f"Bounded cursor needs integer position and bound, got {data!r}"
                )
            if position > bound:
                raise CorruptContinuationError(
                    f"Cursor position {position} lies past its bound {bound}"
                )
        if source_length is not None and not _is_index(source_length):
            raise CorruptContinuationError(f"Invalid source_length: {source_length!r}")

        return cls(position=position, bound=bound, source_length=source_length)

    @classmethod
    def from_text(cls, text: str) -> Cursor:
        """Parse a persisted JSON record."""
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as exc:
            raise CorruptContinuationError(
                f"Continuation record is not valid JSON: {text!r}", cause=exc
            ) from exc
        return cls.from_dict(data)


__all__ = ["Cursor", "PageToken", "Position", "is_page_token"]
