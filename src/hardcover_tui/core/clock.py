"""Clock and timer primitives shared by every delayed transition.

Debounce delays, command timeouts, notification expiry and animation ticks
are all expressed as timers on a single :class:`TimerQueue`. The queue reads
time from an injectable :class:`Clock`, so tests drive transitions with a
:class:`FakeClock` instead of sleeping.

INVARIANT: Timers fire in deadline order, and a timer never fires before
``clock.now() >= deadline``.
"""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Any, Protocol


class Clock(Protocol):
    """Monotonic time source in seconds."""

    def now(self) -> float: ...


class MonotonicClock:
    """Production clock backed by :func:`time.monotonic`."""

    def now(self) -> float:
        return time.monotonic()


class FakeClock:
    """Manually advanced clock for deterministic tests."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._lock = threading.Lock()

    def now(self) -> float:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            msg = f"Cannot move a clock backwards ({seconds}s)"
            raise ValueError(msg)
        with self._lock:
            self._now += seconds


@dataclass(order=True)
class Timer:
    """A pending delayed event.

    Ordered by ``(deadline, seq)`` so equal deadlines fire in arming order.
    """

    deadline: float
    seq: int
    key: Hashable | None = field(compare=False, default=None)
    payload: Any = field(compare=False, default=None)
    cancelled: bool = field(compare=False, default=False)


class TimerQueue:
    """Deadline-ordered timers with optional replace-by-key semantics.

    Arming a timer with a key that already has a pending timer cancels the
    old one, which is what makes re-arming a debounce *restart* its delay.
    """

    def __init__(self, clock: Clock) -> None:
        self.clock = clock
        self._heap: list[Timer] = []
        self._by_key: dict[Hashable, Timer] = {}
        self._seq = itertools.count()

    def __len__(self) -> int:
        return sum(1 for t in self._heap if not t.cancelled)

    def arm(self, delay: float, payload: Any, *, key: Hashable | None = None) -> Timer:
        """Schedule *payload* to be released after *delay* seconds."""
        if key is not None:
            self.cancel(key)
        timer = Timer(
            deadline=self.clock.now() + max(delay, 0.0),
            seq=next(self._seq),
            key=key,
            payload=payload,
        )
        heapq.heappush(self._heap, timer)
        if key is not None:
            self._by_key[key] = timer
        return timer

    def cancel(self, key: Hashable) -> bool:
        """Cancel the pending timer registered under *key*, if any."""
        timer = self._by_key.pop(key, None)
        if timer is None:
            return False
        timer.cancelled = True
        return True

    def pending(self, key: Hashable) -> bool:
        return key in self._by_key

    def next_deadline(self) -> float | None:
        """Deadline of the earliest live timer, or None when idle."""
        self._discard_cancelled()
        return self._heap[0].deadline if self._heap else None

    def pop_due(self) -> list[Any]:
        """Remove and return payloads of every timer whose deadline has passed."""
        now = self.clock.now()
        due: list[Any] = []
        self._discard_cancelled()
        while self._heap and self._heap[0].deadline <= now:
            timer = heapq.heappop(self._heap)
            if timer.cancelled:
                continue
            if timer.key is not None and self._by_key.get(timer.key) is timer:
                del self._by_key[timer.key]
            due.append(timer.payload)
            self._discard_cancelled()
        return due

    def _discard_cancelled(self) -> None:
        while self._heap and self._heap[0].cancelled:
            heapq.heappop(self._heap)
