"""
Tests for relayrun.execution.splitter.

Tests cover:
- plan_segments() partitions for known inputs
- Exact, contiguous coverage across lengths and depths
- split_range() registration and stored cursors
"""

import pytest

from relayrun.core.cursor import Cursor
from relayrun.core.errors import ConfigError
from relayrun.execution.splitter import Segment, plan_segments, split_range


class TestPlanSegments:
    def test_seventeen_split_two(self):
        assert plan_segments(0, 17, 2) == [
            Segment(0, 4),
            Segment(4, 8),
            Segment(8, 12),
            Segment(12, 17),
        ]

    def test_split_zero_is_one_segment(self):
        assert plan_segments(0, 17, 0) == [Segment(0, 17)]

    def test_tiny_range_stops_early(self):
        assert plan_segments(0, 3, 4) == [Segment(0, 3)]

    def test_offset_range(self):
        assert plan_segments(10, 14, 1) == [Segment(10, 12), Segment(12, 14)]

    def test_empty_range(self):
        assert plan_segments(5, 5, 3) == [Segment(5, 5)]

    def test_segment_size(self):
        assert Segment(4, 9).size == 5

    @pytest.mark.parametrize("split", range(5))
    @pytest.mark.parametrize("length", [0, 1, 2, 5, 17, 40, 100])
    def test_covers_range_exactly(self, length, split):
        segments = plan_segments(0, length, split)
        assert 1 <= len(segments) <= 2**split
        assert segments[0].index == 0
        assert segments[-1].length == length
        for left, right in zip(segments, segments[1:]):
            assert left.length == right.index

    def test_deterministic(self):
        assert plan_segments(0, 1000, 4) == plan_segments(0, 1000, 4)

    @pytest.mark.parametrize(
        ("index", "length", "split"),
        [(-1, 5, 1), (0, -5, 1), (0, 5, -1), (6, 5, 1), (0, 5.0, 1), (True, 5, 1)],
    )
    def test_invalid_arguments(self, index, length, split):
        with pytest.raises(ConfigError):
            plan_segments(index, length, split)


class TestSplitRange:
    def test_one_registration_per_segment(self, store, registrar):
        regs = split_range(registrar, store, "sync_rows", 0, 17, 2, resume_delay_seconds=5, source_length=17)
        assert len(regs) == 4
        assert {r.entry_point for r in regs} == {"sync_rows"}
        assert len(registrar.list_pending()) == 4
        cursors = [store.get(r.id) for r in regs]
        assert cursors == [
            Cursor(0, 4, 17),
            Cursor(4, 8, 17),
            Cursor(8, 12, 17),
            Cursor(12, 17, 17),
        ]

    def test_split_zero(self, store, registrar):
        (reg,) = split_range(registrar, store, "job", 0, 17, 0, resume_delay_seconds=0)
        assert store.get(reg.id) == Cursor(0, 17, None)

    def test_empty_range_registers_nothing(self, store, registrar):
        assert split_range(registrar, store, "job", 4, 4, 3, resume_delay_seconds=5) == []
        assert registrar.list_pending() == []
        assert store.list_ids() == []
