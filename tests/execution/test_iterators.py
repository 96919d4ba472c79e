"""
Tests for relayrun.execution.iterators.

Tests cover:
- ListIterator / RangeIterator advance, cursor and seek
- Bound drift detection on seek
- PageTokenIterator token bookkeeping, including the final page
- Source validation and dispatch
- SqlTableSource against SQLite
"""

import sqlite3

import pytest

from relayrun.core.cursor import Cursor
from relayrun.core.errors import BoundDriftError, ConfigError, SourceError
from relayrun.execution.iterators import (
    ListIterator,
    Page,
    PageTokenIterator,
    RangeIterator,
    RestartableIterator,
    Source,
    SqlTableSource,
    Step,
)


class FakeTable:
    def __init__(self, rows):
        self.rows = rows
        self.reads = []

    def row_count(self):
        return len(self.rows)

    def row(self, offset):
        self.reads.append(offset)
        return self.rows[offset]


def paged(pages):
    """Request function over ``{token: (value, next_token)}``; records tokens."""
    requested = []

    def request(token):
        requested.append(token)
        value, next_token = pages[token]
        return {"value": value, "nextPageToken": next_token}

    return request, requested


PAGES = {None: ("p1", "a"), "a": ("p2", "b"), "b": ("p3", "c"), "c": ("p4", None)}


# =============================================================================
# Bounded iterators
# =============================================================================


class TestListIterator:
    def test_protocol(self):
        assert isinstance(ListIterator([]), RestartableIterator)

    def test_advance_until_done(self):
        it = ListIterator(["a", "b"])
        assert it.advance() == Step(value="a")
        assert it.advance() == Step(value="b")
        assert it.advance().done is True
        assert it.exhausted is True

    def test_position_counts_consumed_items(self):
        it = ListIterator(["a", "b", "c"])
        it.advance()
        assert it.position == 1
        assert it.bound == 3
        assert it.cursor() == Cursor(position=1, bound=3, source_length=3)

    def test_python_iteration(self):
        assert list(ListIterator([1, 2, 3])) == [1, 2, 3]

    def test_empty(self):
        it = ListIterator([])
        assert it.exhausted is True
        assert it.advance().done is True

    def test_seek_resumes_at_next_item(self):
        items = list(range(10))
        first = ListIterator(items)
        consumed = [first.advance().value for _ in range(4)]

        second = ListIterator(items)
        second.seek(first.cursor())
        assert consumed + list(second) == items

    def test_seek_restricts_to_segment(self):
        it = ListIterator(list(range(10)))
        it.seek(Cursor(position=4, bound=7, source_length=10))
        assert list(it) == [4, 5, 6]
        assert it.cursor() == Cursor(position=7, bound=7, source_length=10)


class TestBoundDrift:
    def test_length_changed(self):
        it = ListIterator(list(range(12)))
        with pytest.raises(BoundDriftError) as excinfo:
            it.seek(Cursor(position=3, bound=10, source_length=10))
        assert (excinfo.value.expected, excinfo.value.actual) == (10, 12)

    def test_bound_past_source(self):
        it = ListIterator(list(range(5)))
        with pytest.raises(BoundDriftError):
            it.seek(Cursor(position=3, bound=10))

    def test_unbounded_cursor(self):
        with pytest.raises(BoundDriftError):
            ListIterator([1]).seek(Cursor(position="tok"))

    def test_legacy_cursor_without_length(self):
        it = ListIterator(list(range(10)))
        it.seek(Cursor(position=8, bound=10))
        assert list(it) == [8, 9]


class TestRangeIterator:
    def test_reads_rows_lazily(self):
        table = FakeTable(["r0", "r1", "r2"])
        it = RangeIterator(table)
        assert table.reads == []
        assert it.advance().value == "r0"
        assert table.reads == [0]

    def test_row_count_captured_at_construction(self):
        table = FakeTable(["r0"])
        it = RangeIterator(table)
        table.rows.append("r1")
        assert list(it) == ["r0"]

    def test_seek(self):
        it = RangeIterator(FakeTable(list("abcdef")))
        it.seek(Cursor(position=2, bound=6, source_length=6))
        assert list(it) == ["c", "d", "e", "f"]


# =============================================================================
# Page token iterator
# =============================================================================


class TestPageTokenIterator:
    def test_unbounded(self):
        it = PageTokenIterator(lambda token: Page("x"))
        assert it.bound is None
        assert it.position is None

    def test_delivers_every_page_including_last(self):
        request, requested = paged(PAGES)
        it = PageTokenIterator(request)
        assert [p["value"] for p in it] == ["p1", "p2", "p3", "p4"]
        assert requested == [None, "a", "b", "c"]
        assert it.exhausted is True

    def test_position_is_next_token(self):
        request, _ = paged(PAGES)
        it = PageTokenIterator(request)
        it.advance()
        it.advance()
        assert it.position == "b"
        assert it.cursor() == Cursor(position="b", bound=None)

    def test_seek_supplies_saved_token(self):
        request, requested = paged(PAGES)
        it = PageTokenIterator(request)
        it.seek(Cursor(position="b"))
        assert [p["value"] for p in it] == ["p3", "p4"]
        assert requested == ["b", "c"]

    def test_page_objects(self):
        pages = {None: Page("first", page_token="t1"), "t1": Page("second")}
        it = PageTokenIterator(lambda token: pages[token])
        assert [p.value for p in it] == ["first", "second"]

    @pytest.mark.parametrize("key", ["page_token", "pageToken", "nextPageToken"])
    def test_mapping_token_keys(self, key):
        responses = {None: {key: "t1"}, "t1": {key: ""}}
        it = PageTokenIterator(lambda token: responses[token])
        assert len(list(it)) == 2

    def test_numeric_tokens(self):
        responses = {None: {"nextPageToken": 2}, 2: {"nextPageToken": 3}, 3: {}}
        it = PageTokenIterator(lambda token: responses[token])
        it.advance()
        assert it.cursor() == Cursor(position=2, bound=None)
        it.seek(Cursor.from_text(it.cursor().to_text()))
        assert len(list(it)) == 2

    @pytest.mark.parametrize("token", [{"offset": 2}, ["a"], True])
    def test_rejects_non_scalar_token(self, token):
        it = PageTokenIterator(lambda _: {"nextPageToken": token})
        with pytest.raises(SourceError):
            it.advance()

    def test_seek_rejects_bounded_cursor(self):
        with pytest.raises(SourceError):
            PageTokenIterator(lambda token: {}).seek(Cursor(position=1, bound=3))


# =============================================================================
# Source
# =============================================================================


class TestSource:
    def test_kind_and_iterator(self):
        assert isinstance(Source(items=[1]).to_iterator(), ListIterator)
        assert isinstance(Source(table=FakeTable([])).to_iterator(), RangeIterator)
        assert isinstance(Source(page_request=lambda t: {}).to_iterator(), PageTokenIterator)
        assert Source(items=[]).kind == "items"
        assert Source(table=FakeTable([])).kind == "table"
        assert Source(page_request=lambda t: {}).kind == "page_request"

    def test_boundedness(self):
        assert Source(items=[]).is_bounded is True
        assert Source(page_request=lambda t: {}).is_bounded is False

    def test_no_source(self):
        with pytest.raises(ConfigError, match="not defined"):
            Source()

    def test_multiple_sources(self):
        with pytest.raises(ConfigError, match="exactly one"):
            Source(items=[1], page_request=lambda t: {})

    @pytest.mark.parametrize(
        "kwargs",
        [{"items": "abc"}, {"items": 5}, {"table": object()}, {"page_request": "not callable"}],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigError):
            Source(**kwargs)


# =============================================================================
# SQL table source
# =============================================================================


class TestSqlTableSource:
    def setup_method(self):
        self.conn = sqlite3.connect(":memory:")
        self.conn.execute("CREATE TABLE orders (id INTEGER PRIMARY KEY, sku TEXT)")
        self.conn.executemany("INSERT INTO orders (id, sku) VALUES (?, ?)", [(3, "c"), (1, "a"), (2, "b")])

    def test_row_count(self):
        assert SqlTableSource(self.conn, "orders").row_count() == 3

    def test_rows_in_order(self):
        table = SqlTableSource(self.conn, "orders", order_by="id")
        assert list(Source(table=table).to_iterator()) == [(1, "a"), (2, "b"), (3, "c")]

    def test_missing_row(self):
        with pytest.raises(SourceError):
            SqlTableSource(self.conn, "orders").row(10)

    @pytest.mark.parametrize(("table", "order_by"), [("orders; DROP", "id"), ("orders", "id desc")])
    def test_rejects_bad_identifiers(self, table, order_by):
        with pytest.raises(ConfigError):
            SqlTableSource(self.conn, table, order_by=order_by)
