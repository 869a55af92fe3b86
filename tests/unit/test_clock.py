"""Tests for the injectable clocks."""

import pytest

from wagestream_kernel.domain.arithmetic import U64_MAX
from wagestream_kernel.domain.clock import (
    DEFAULT_EPOCH_SECONDS,
    DeterministicClock,
    SystemClock,
)
from wagestream_kernel.domain.wage import WagePeriod
from wagestream_kernel.exceptions import ArithmeticOverflowError


class TestDeterministicClock:

    def test_default_epoch(self):
        assert DeterministicClock().now() == DEFAULT_EPOCH_SECONDS

    def test_advance(self):
        clock = DeterministicClock(100)
        clock.advance(10)
        clock.advance(0)
        assert clock.now() == 110

    def test_advance_refuses_negative(self):
        with pytest.raises(ValueError):
            DeterministicClock(100).advance(-1)

    def test_set_time_jumps(self):
        clock = DeterministicClock(100)
        clock.advance(50)
        clock.set_time(20)
        assert clock.now() == 20

    def test_outside_u64_rejected(self):
        with pytest.raises(ArithmeticOverflowError):
            DeterministicClock(-1)
        with pytest.raises(ArithmeticOverflowError):
            DeterministicClock().set_time(-5)
        clock = DeterministicClock(U64_MAX)
        with pytest.raises(ArithmeticOverflowError):
            clock.advance(1)


class TestSystemClock:

    def test_whole_seconds(self):
        now = SystemClock().now()
        assert isinstance(now, int)
        assert now > DEFAULT_EPOCH_SECONDS


class TestClockMovingBackwards:

    def test_rewound_clock_accrues_nothing_until_caught_up(self, stream, clock):
        with stream.authorizer.signed_by("employer"):
            stream.service.hire("alice", 100, WagePeriod.HOUR)
        clock.advance(3600)
        assert stream.service.live_balance("alice") == 100

        clock.set_time(clock.now() - 7200)
        assert stream.service.live_balance("alice") == 0

        clock.advance(7200)
        assert stream.service.live_balance("alice") == 100
