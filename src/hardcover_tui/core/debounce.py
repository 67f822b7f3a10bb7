"""Debounce gate keyed by a generation counter.

Each :meth:`DebounceGate.arm` bumps the generation and returns a keyed
:class:`~hardcover_tui.core.effects.Delay`; re-arming replaces the pending
timer. When a :class:`~hardcover_tui.core.events.Settled` event arrives the
owner calls :meth:`DebounceGate.accept`, which only succeeds for the
generation armed last. Rapid presses therefore collapse into at most one
fetch per quiet period.
"""

from __future__ import annotations

from hardcover_tui.core.effects import Delay
from hardcover_tui.core.events import Settled


class DebounceGate:
    def __init__(self, key: str, delay: float) -> None:
        self.key = key
        self.delay = delay
        self.generation = 0
        self.pending = False

    def arm(self, generation: int | None = None) -> Delay:
        """(Re)start the delay. Generations must strictly increase."""
        if generation is None:
            generation = self.generation + 1
        elif generation <= self.generation:
            msg = f"Debounce generation must increase ({generation} <= {self.generation})"
            raise ValueError(msg)
        self.generation = generation
        self.pending = True
        return Delay(self.key, self.delay, Settled(self.key, generation))

    def accept(self, event: Settled) -> bool:
        """True exactly once per quiet period: for the last-armed generation."""
        if event.key != self.key or not self.pending:
            return False
        if event.generation != self.generation:
            return False
        self.pending = False
        return True

    def reset(self) -> None:
        """Forget the pending trigger; a late Settled event will be dropped."""
        self.pending = False
