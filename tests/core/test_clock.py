"""Tests for the timer queue and the fake clock."""

from __future__ import annotations

import pytest

from hardcover_tui.core.clock import FakeClock, TimerQueue


class TestFakeClock:
    def test_advance(self) -> None:
        clock = FakeClock(start=10.0)
        clock.advance(2.5)
        assert clock.now() == 12.5

    def test_cannot_go_backwards(self) -> None:
        with pytest.raises(ValueError, match="backwards"):
            FakeClock().advance(-1)


class TestTimerQueue:
    def test_nothing_due_before_deadline(self) -> None:
        clock = FakeClock()
        timers = TimerQueue(clock)
        timers.arm(1.0, "a")
        clock.advance(0.999)
        assert timers.pop_due() == []
        clock.advance(0.001)
        assert timers.pop_due() == ["a"]

    def test_deadline_order(self) -> None:
        clock = FakeClock()
        timers = TimerQueue(clock)
        timers.arm(3.0, "late")
        timers.arm(1.0, "early")
        timers.arm(2.0, "middle")
        clock.advance(5)
        assert timers.pop_due() == ["early", "middle", "late"]

    def test_equal_deadlines_fire_in_arming_order(self) -> None:
        clock = FakeClock()
        timers = TimerQueue(clock)
        for name in ("first", "second", "third"):
            timers.arm(1.0, name)
        clock.advance(1)
        assert timers.pop_due() == ["first", "second", "third"]

    def test_rearming_key_replaces_pending_timer(self) -> None:
        clock = FakeClock()
        timers = TimerQueue(clock)
        timers.arm(1.0, "old", key="k")
        clock.advance(0.5)
        timers.arm(1.0, "new", key="k")
        clock.advance(0.6)
        assert timers.pop_due() == []
        clock.advance(0.4)
        assert timers.pop_due() == ["new"]
        assert not timers.pending("k")

    def test_cancel(self) -> None:
        clock = FakeClock()
        timers = TimerQueue(clock)
        timers.arm(1.0, "x", key="k")
        assert timers.cancel("k") is True
        assert timers.cancel("k") is False
        clock.advance(2)
        assert timers.pop_due() == []
        assert len(timers) == 0

    def test_next_deadline_skips_cancelled(self) -> None:
        clock = FakeClock()
        timers = TimerQueue(clock)
        timers.arm(1.0, "x", key="k")
        timers.arm(4.0, "y")
        timers.cancel("k")
        assert timers.next_deadline() == 4.0

    def test_negative_delay_is_due_now(self) -> None:
        timers = TimerQueue(FakeClock())
        timers.arm(-5, "now")
        assert timers.pop_due() == ["now"]
