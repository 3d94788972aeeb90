"""Tests for admission clocks."""

import pytest

from polyvisor.ledger.clock import BlockClock, Clock, LogicalClock


class TestLogicalClock:

    def test_now_has_no_side_effects(self):
        clock = LogicalClock(start=10)
        assert clock.now() == 10
        assert clock.now() == 10

    def test_stamp_strictly_increasing(self):
        clock = LogicalClock(start=5, step=2)
        assert [clock.stamp() for _ in range(3)] == [5, 7, 9]
        assert clock.now() == 11

    def test_advance(self):
        clock = LogicalClock()
        clock.advance(3_600_000)
        assert clock.now() == 3_600_000
        with pytest.raises(ValueError):
            clock.advance(-1)

    def test_invalid_step(self):
        with pytest.raises(ValueError):
            LogicalClock(step=0)


class TestBlockClock:

    def test_stamps_unique(self):
        clock = BlockClock()
        stamps = [clock.stamp() for _ in range(50)]
        assert len(set(stamps)) == 50
        assert stamps == sorted(stamps)
        assert clock.now() >= stamps[-1]

    def test_satisfies_protocol(self):
        assert isinstance(BlockClock(), Clock)
        assert isinstance(LogicalClock(), Clock)
