"""Single-threaded event loop.

All application state is mutated inside :meth:`EventLoop.dispatch`, one event
at a time, in arrival order. Worker threads and the terminal driver only ever
call :meth:`EventLoop.post`, which is thread-safe.

Production code calls :meth:`run`. Tests use a :class:`FakeClock` and call
:meth:`drain` / :meth:`advance` to step through time deterministically.
"""

from __future__ import annotations

import logging
import queue
from collections.abc import Callable, Hashable
from typing import Any, Protocol

from hardcover_tui.core.clock import Clock, MonotonicClock, TimerQueue
from hardcover_tui.core.commands import (
    Command,
    CommandCompleted,
    CommandHandle,
    CommandScheduler,
    CommandTimedOut,
)
from hardcover_tui.core.events import Routed

logger = logging.getLogger(__name__)


class EventHandler(Protocol):
    def handle(self, event: Any) -> None: ...

    def on_error(self, exc: Exception) -> None: ...


class EventLoop:
    """Event queue, timer queue and command scheduler for one application.

    Parameters:
        clock: Time source for timers (defaults to the monotonic clock).
        sync: Run command actions inline instead of on a thread pool.
        max_workers: Thread pool size for command actions.
        idle_wait: Longest time :meth:`run` blocks waiting for input when no
            timer is due sooner.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        sync: bool = False,
        max_workers: int = 4,
        idle_wait: float = 0.25,
    ) -> None:
        self.clock = clock or MonotonicClock()
        self.timers = TimerQueue(self.clock)
        self._queue: queue.SimpleQueue[Any] = queue.SimpleQueue()
        self.scheduler = CommandScheduler(
            self.post, self.timers, sync=sync, max_workers=max_workers
        )
        self._handler: EventHandler | None = None
        self._idle_wait = idle_wait
        self._running = False
        self.dispatched = 0

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def bind(self, handler: EventHandler) -> None:
        self._handler = handler

    def post(self, event: Any) -> None:
        """Enqueue *event*. Safe to call from any thread."""
        self._queue.put(event)

    def schedule(self, command: Command, origin: str) -> CommandHandle:
        return self.scheduler.schedule(command, origin)

    def delay(
        self,
        seconds: float,
        event: Any,
        *,
        origin: str,
        key: Hashable | None = None,
    ) -> None:
        """Deliver *event* to *origin* after *seconds* of loop time."""
        timer_key = (origin, key) if key is not None else None
        self.timers.arm(seconds, Routed(origin, event), key=timer_key)

    def cancel_delay(self, key: Hashable, *, origin: str) -> None:
        self.timers.cancel((origin, key))

    def stop(self) -> None:
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def dispatch(self, event: Any) -> None:
        """Process exactly one event on the calling (loop) thread."""
        if isinstance(event, CommandCompleted | CommandTimedOut):
            routed = self.scheduler.resolve(event)
            if routed is None:
                return
            event = routed
        if self._handler is None:
            logger.debug("No handler bound; dropping %r", event)
            return
        self.dispatched += 1
        try:
            self._handler.handle(event)
        except Exception as exc:
            logger.exception("Unhandled error while processing %s", type(event).__name__)
            self._handler.on_error(exc)

    def drain(self, *, limit: int = 100_000) -> int:
        """Process queued events and due timers until both are empty.

        Never blocks. Returns the number of events processed.
        """
        processed = 0
        while processed < limit:
            self._release_due_timers()
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                break
            self.dispatch(event)
            processed += 1
        return processed

    def advance(self, seconds: float) -> int:
        """Move a fake clock forward, then drain. Test helper."""
        advance: Callable[[float], None] | None = getattr(self.clock, "advance", None)
        if advance is None:
            msg = "advance() requires a clock with an advance() method"
            raise TypeError(msg)
        processed = self.drain()
        advance(seconds)
        return processed + self.drain()

    def run(self, after_batch: Callable[[], None] | None = None) -> None:
        """Block processing events until :meth:`stop` is called.

        *after_batch* runs whenever the queue has been emptied, which is
        where the terminal driver repaints.
        """
        self._running = True
        try:
            while self._running:
                self._release_due_timers()
                try:
                    event = self._queue.get(timeout=self._wait_time())
                except queue.Empty:
                    continue
                self.dispatch(event)
                if not self._running:
                    break
                self.drain()
                if after_batch is not None and self._running:
                    after_batch()
        finally:
            self._running = False
            self.scheduler.shutdown()

    def _wait_time(self) -> float:
        deadline = self.timers.next_deadline()
        if deadline is None:
            return self._idle_wait
        return min(max(deadline - self.clock.now(), 0.0), self._idle_wait)

    def _release_due_timers(self) -> None:
        for payload in self.timers.pop_due():
            self._queue.put(payload)
