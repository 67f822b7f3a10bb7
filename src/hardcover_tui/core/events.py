"""Events consumed by the root controller and by screens.

Every event is an immutable value. Events that belong to a specific logical
context (a command result, a debounce settling) travel inside a
:class:`Routed` envelope naming the origin that asked for them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Origin id used for effects issued by the root controller itself.
ROOT = "root"


@dataclass(frozen=True)
class KeyPressed:
    """A normalised key name such as ``"q"``, ``"enter"`` or ``"shift+tab"``."""

    key: str


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class AnimationTick:
    """Frame tick for the loading overlay and spinners."""

    frame: int = 0


@dataclass(frozen=True)
class Settled:
    """A debounce delay elapsed for *key* at *generation*."""

    key: str
    generation: int


@dataclass(frozen=True)
class NotificationExpired:
    notification_id: int


@dataclass(frozen=True)
class NotifyTick:
    """Periodic repaint while any notification is visible."""


@dataclass(frozen=True)
class Routed:
    """Envelope delivering *event* to the context identified by *origin*."""

    origin: str
    event: Any


@dataclass(frozen=True)
class Shutdown:
    """Posted by the terminal driver when input reaches EOF."""
