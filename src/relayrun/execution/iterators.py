"""
Restartable iterators over the three kinds of work item sources.

A restartable iterator is an ordinary iterator that can also say where
it stands (``position``/``bound``) and be put back there (``seek``).
Constructing a fresh iterator from the same source and seeking it to a
saved cursor resumes at the exact next unconsumed item, with no gaps or
duplicates, as long as the source did not change in between.

Manifesto:
    The runner must not care where items come from.  One small
    capability set covers all three sources:

    - **advance():** produce the next item or report done
    - **position / bound:** readable resume point
    - **cursor() / seek():** snapshot and restore

Architecture:
    ::

        Source(items=[...])             → ListIterator      position:int  bound:len
        Source(table=TabularSource)     → RangeIterator     position:int  bound:row_count()
        Source(page_request=fn)         → PageTokenIterator position:token bound:None

        ┌────────────┐ advance() ┌──────────────┐
        │  iterator  │ ────────► │ Step(value,  │
        │ position=k │           │      done)   │
        └────────────┘           └──────────────┘
              │ cursor()                 ▲
              ▼                          │ seek(cursor)
        Cursor(position, bound, source_length)

Examples:
    >>> it = Source(items=["a", "b", "c"]).to_iterator()
    >>> it.advance()
    Step(value='a', done=False)
    >>> it.cursor()
    Cursor(position=1, bound=3, source_length=3)

    >>> again = Source(items=["a", "b", "c"]).to_iterator()
    >>> again.seek(it.cursor())
    >>> list(again)
    ['b', 'c']

Guardrails:
    ❌ DON'T: Sort or filter the source differently between legs
    ✅ DO: Keep the source stable; drift in length is reported as
       ``BoundDriftError``

Tags:
    iterator, resume, pagination, tabular, relayrun

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from relayrun.core.cursor import Cursor, PageToken, Position, is_page_token
from relayrun.core.errors import BoundDriftError, ConfigError, SourceError


@dataclass(frozen=True, slots=True)
class Step:
    """Result of one ``advance()`` call."""

    value: Any = None
    done: bool = False


@runtime_checkable
class RestartableIterator(Protocol):
    """Position-aware iterator that can resume from a saved cursor."""

    @property
    def position(self) -> Position: ...

    @property
    def bound(self) -> int | None: ...

    @property
    def exhausted(self) -> bool: ...

    def advance(self) -> Step: ...

    def cursor(self) -> Cursor: ...

    def seek(self, cursor: Cursor) -> None: ...


@runtime_checkable
class TabularSource(Protocol):
    """A row-addressable table (spreadsheet range, SQL table, ...)."""

    def row_count(self) -> int: ...

    def row(self, offset: int) -> Any: ...


class _IterMixin:
    """Python iteration on top of ``advance()``."""

    def __iter__(self) -> Iterator[Any]:
        return self  # type: ignore[return-value]

    def __next__(self) -> Any:
        step = self.advance()  # type: ignore[attr-defined]
        if step.done:
            raise StopIteration
        return step.value


# =============================================================================
# BOUNDED ITERATORS
# =============================================================================


class _BoundedIterator(_IterMixin):
    """Shared index bookkeeping for list- and range-backed iterators."""

    def __init__(self, length: int) -> None:
        self._length = length
        self._position = 0
        self._bound = length

    @property
    def position(self) -> int:
        return self._position

    @property
    def bound(self) -> int:
        return self._bound

    @property
    def source_length(self) -> int:
        """Length of the underlying source at construction time."""
        return self._length

    @property
    def exhausted(self) -> bool:
        return self._position >= self._bound

    def _materialize(self, index: int) -> Any:
        raise NotImplementedError

    def advance(self) -> Step:
        if self._position >= self._bound:
            return Step(done=True)
        value = self._materialize(self._position)
        self._position += 1
        return Step(value=value)

    def cursor(self) -> Cursor:
        return Cursor(position=self._position, bound=self._bound, source_length=self._length)

    def seek(self, cursor: Cursor) -> None:
        """Resume at *cursor*, restricting iteration to ``[position, bound)``.

        Raises:
            BoundDriftError: The source length changed since the cursor
                was saved, or the cursor does not fit inside the source.
        """
        if cursor.bound is None or not isinstance(cursor.position, int):
            raise BoundDriftError(
                f"Cannot resume a bounded source from an unbounded cursor: {cursor.to_dict()}"
            )
        if cursor.source_length is not None and cursor.source_length != self._length:
            raise BoundDriftError(
                f"Source length changed from {cursor.source_length} to {self._length} "
                "since the continuation was saved",
                expected=cursor.source_length,
                actual=self._length,
            )
        if cursor.bound > self._length:
            raise BoundDriftError(
                f"Saved bound {cursor.bound} exceeds current source length {self._length}",
                expected=cursor.bound,
                actual=self._length,
            )
        if not 0 <= cursor.position <= cursor.bound:
            raise BoundDriftError(
                f"Saved position {cursor.position} lies outside [0, {cursor.bound}]"
            )
        self._position = cursor.position
        self._bound = cursor.bound


class ListIterator(_BoundedIterator):
    """Iterates a fixed sequence by index."""

    def __init__(self, items: Sequence[Any]) -> None:
        self._items = items
        super().__init__(len(items))

    def _materialize(self, index: int) -> Any:
        return self._items[index]


class RangeIterator(_BoundedIterator):
    """Iterates a tabular source one row at a time.

    The row count is captured once at construction; rows appended later
    are not visited by this iterator.
    """

    def __init__(self, table: TabularSource) -> None:
        self._table = table
        super().__init__(table.row_count())

    def _materialize(self, index: int) -> Any:
        return self._table.row(index)


# =============================================================================
# PAGE TOKEN ITERATOR
# =============================================================================


@dataclass(frozen=True, slots=True)
class Page:
    """One response of a paginated request.

    Request functions may return a ``Page`` or a mapping carrying the
    next token under ``page_token``, ``pageToken`` or ``nextPageToken``.
    """

    value: Any = None
    page_token: PageToken | None = None


_TOKEN_KEYS = ("page_token", "pageToken", "nextPageToken")


def _next_token(response: Any) -> Any:
    if isinstance(response, Mapping):
        for key in _TOKEN_KEYS:
            if key in response:
                return response[key]
        return None
    return getattr(response, "page_token", None)


PageRequest = Callable[[PageToken | None], Any]


class PageTokenIterator(_IterMixin):
    """Iterates the pages of a token-paginated request.

    ``position`` is the token the next request will be made with;
    ``None`` requests the first page.  A response without a further
    token is still delivered, and the iterator is exhausted afterwards.
    """

    def __init__(self, request: PageRequest) -> None:
        self._request = request
        self._position: PageToken | None = None
        self._exhausted = False

    @property
    def position(self) -> PageToken | None:
        return self._position

    @property
    def bound(self) -> None:
        return None

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def advance(self) -> Step:
        if self._exhausted:
            return Step(done=True)
        response = self._request(self._position)
        token = _next_token(response)
        if token is not None and not is_page_token(token):
            raise SourceError(
                f"Page token must be a string or number, got {type(token).__name__}"
            )
        if token:
            self._position = token
        else:
            self._position = None
            self._exhausted = True
        return Step(value=response)

    def cursor(self) -> Cursor:
        return Cursor(position=self._position, bound=None)

    def seek(self, cursor: Cursor) -> None:
        if cursor.bound is not None or not (cursor.position is None or is_page_token(cursor.position)):
            raise SourceError(
                f"Cannot resume a paginated source from a bounded cursor: {cursor.to_dict()}"
            )
        self._position = cursor.position
        self._exhausted = False


# =============================================================================
# SOURCE
# =============================================================================


@dataclass(frozen=True)
class Source:
    """Exactly one work item source.

    Examples:
        >>> Source(items=rows)
        >>> Source(table=SqlTableSource(conn, "orders"))
        >>> Source(page_request=lambda token: api.list(page_token=token))
    """

    items: Sequence[Any] | None = None
    table: TabularSource | None = None
    page_request: PageRequest | None = None

    def __post_init__(self) -> None:
        given = [
            name
            for name in ("items", "table", "page_request")
            if getattr(self, name) is not None
        ]
        if not given:
            raise ConfigError("source is not defined: pass one of items, table, page_request")
        if len(given) > 1:
            raise ConfigError(f"source must have exactly one kind, got {', '.join(given)}")
        if self.items is not None and (
            not isinstance(self.items, Sequence) or isinstance(self.items, str | bytes)
        ):
            raise ConfigError(f"items must be a sequence, got {type(self.items).__name__}")
        if self.table is not None and not isinstance(self.table, TabularSource):
            raise ConfigError("table must provide row_count() and row(offset)")
        if self.page_request is not None and not callable(self.page_request):
            raise ConfigError("page_request is not callable")

    @property
    def kind(self) -> str:
        if self.items is not None:
            return "items"
        if self.table is not None:
            return "table"
        return "page_request"

    @property
    def is_bounded(self) -> bool:
        return self.page_request is None

    def to_iterator(self) -> ListIterator | RangeIterator | PageTokenIterator:
        if self.items is not None:
            return ListIterator(self.items)
        if self.table is not None:
            return RangeIterator(self.table)
        assert self.page_request is not None
        return PageTokenIterator(self.page_request)


# =============================================================================
# SQL TABLE SOURCE
# =============================================================================

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SqlTableSource:
    """Tabular source over one table of a DB-API connection.

    Rows are addressed by offset in ``order_by`` order, so the ordering
    column must be stable across invocations (``rowid`` by default).

    Args:
        conn: Connection exposing ``execute()`` (sqlite3 style ``?`` params)
        table: Table name
        order_by: Column defining row order
    """

    def __init__(self, conn: Any, table: str, order_by: str = "rowid") -> None:
        for label, ident in (("table", table), ("order_by", order_by)):
            if not _IDENTIFIER.match(ident):
                raise ConfigError(f"Invalid SQL identifier for {label}: {ident!r}")
        self._conn = conn
        self._table = table
        self._order_by = order_by

    def row_count(self) -> int:
        row = self._conn.execute(f"SELECT COUNT(*) FROM {self._table}").fetchone()
        return int(row[0])

    def row(self, offset: int) -> Any:
        row = self._conn.execute(
            f"SELECT * FROM {self._table} ORDER BY {self._order_by} LIMIT 1 OFFSET ?",
            (offset,),
        ).fetchone()
        if row is None:
            raise SourceError(f"Row {offset} of {self._table} no longer exists")
        return row


__all__ = [
    "Step",
    "RestartableIterator",
    "TabularSource",
    "ListIterator",
    "RangeIterator",
    "Page",
    "PageRequest",
    "PageTokenIterator",
    "Source",
    "SqlTableSource",
]
