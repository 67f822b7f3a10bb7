"""Tests for command scheduling, timeouts and result routing."""

from __future__ import annotations

from typing import Any

from hardcover_tui.api.errors import Unauthorized
from hardcover_tui.core.clock import FakeClock, TimerQueue
from hardcover_tui.core.commands import (
    Command,
    CommandCompleted,
    CommandResult,
    CommandScheduler,
    CommandTimedOut,
    error_from_exception,
)
from hardcover_tui.core.events import Routed
from hardcover_tui.core.loop import EventLoop


class Recorder:
    def __init__(self) -> None:
        self.events: list[Any] = []
        self.errors: list[Exception] = []

    def handle(self, event: Any) -> None:
        self.events.append(event)

    def on_error(self, exc: Exception) -> None:
        self.errors.append(exc)

    def results(self) -> list[CommandResult]:
        return [e.event for e in self.events if isinstance(e, Routed) and isinstance(e.event, CommandResult)]


def _manual_scheduler() -> tuple[CommandScheduler, list[Any], FakeClock]:
    """Sync scheduler whose completions are collected instead of dispatched."""
    clock = FakeClock()
    posted: list[Any] = []
    return CommandScheduler(posted.append, TimerQueue(clock), sync=True), posted, clock


class TestErrorFromException:
    def test_data_source_code_is_kept(self) -> None:
        error = error_from_exception(Unauthorized("bad token"))
        assert error.code == "unauthorized"
        assert error.message == "bad token"

    def test_other_exceptions_are_internal(self) -> None:
        error = error_from_exception(KeyError("boom"))
        assert error.code == "internal_error"
        assert "KeyError" in error.message


class TestCommandScheduler:
    def test_success_result(self) -> None:
        scheduler, posted, _ = _manual_scheduler()
        handle = scheduler.schedule(Command("k", lambda: 42, 5.0, tag="t"), "screen-1")
        assert posted == [CommandCompleted(handle.command_id, data=42)]
        routed = scheduler.resolve(posted[0])
        assert routed is not None
        assert routed.origin == "screen-1"
        result = routed.event
        assert result.ok and result.data == 42 and result.tag == "t" and result.kind == "k"
        assert scheduler.inflight == 0

    def test_failure_result(self) -> None:
        scheduler, posted, _ = _manual_scheduler()

        def fail() -> None:
            raise Unauthorized("nope")

        scheduler.schedule(Command("k", fail, 5.0), "o")
        routed = scheduler.resolve(posted[0])
        assert routed is not None
        assert routed.event.ok is False
        assert routed.event.error.code == "unauthorized"

    def test_timeout_wins_and_late_completion_is_dropped(self) -> None:
        scheduler, posted, _ = _manual_scheduler()
        handle = scheduler.schedule(Command("k", lambda: "late", 1.0), "o")
        timed_out = scheduler.resolve(CommandTimedOut(handle.command_id))
        assert timed_out is not None
        assert timed_out.event.error.code == "timeout"
        assert scheduler.resolve(posted[0]) is None

    def test_completion_cancels_timeout(self) -> None:
        clock = FakeClock()
        timers = TimerQueue(clock)
        posted: list[Any] = []
        scheduler = CommandScheduler(posted.append, timers, sync=True)
        scheduler.schedule(Command("k", lambda: 1, 1.0), "o")
        scheduler.resolve(posted[0])
        clock.advance(2)
        assert timers.pop_due() == []

    def test_ids_are_unique(self) -> None:
        scheduler, _, _ = _manual_scheduler()
        first = scheduler.schedule(Command("a", lambda: None, 1.0), "o")
        second = scheduler.schedule(Command("b", lambda: None, 1.0), "o")
        assert first.command_id != second.command_id


class TestLoopCommands:
    def test_exactly_one_result(self, loop: EventLoop) -> None:
        recorder = Recorder()
        loop.bind(recorder)
        loop.schedule(Command("k", lambda: "done", 1.0), "o")
        loop.drain()
        loop.advance(5)
        results = recorder.results()
        assert len(results) == 1
        assert results[0].ok

    def test_timeout_at_deadline(self, clock: FakeClock) -> None:
        posted: list[Any] = []
        event_loop = EventLoop(clock=clock, sync=True)
        recorder = Recorder()
        event_loop.bind(recorder)
        # Swallow the completion so only the deadline can resolve the command.
        event_loop.scheduler._post = posted.append
        event_loop.schedule(Command("slow", lambda: None, 2.0), "o")
        event_loop.advance(1.5)
        assert recorder.results() == []
        event_loop.advance(0.5)
        results = recorder.results()
        assert len(results) == 1
        assert results[0].error.code == "timeout"
        assert results[0].elapsed == 2.0

        for late in posted:
            event_loop.post(late)
        event_loop.drain()
        assert len(recorder.results()) == 1

    def test_handler_error_is_reported(self, loop: EventLoop) -> None:
        class Exploding(Recorder):
            def handle(self, event: Any) -> None:
                raise RuntimeError("kaboom")

        handler = Exploding()
        loop.bind(handler)
        loop.post("anything")
        loop.drain()
        assert [str(e) for e in handler.errors] == ["kaboom"]

    def test_threaded_scheduler_delivers_result(self) -> None:
        event_loop = EventLoop(clock=FakeClock())
        recorder = Recorder()
        event_loop.bind(recorder)
        try:
            event_loop.schedule(Command("k", lambda: "threaded", 5.0), "o")
            event_loop.scheduler.wait()
            event_loop.drain()
        finally:
            event_loop.scheduler.shutdown()
        assert [r.data for r in recorder.results()] == ["threaded"]
