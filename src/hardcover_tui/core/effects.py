"""Effects returned by a screen's update step.

Screens never touch the loop, the stack or the terminal directly. They
return a list of effects and the root controller applies them in order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from hardcover_tui.core.notify import NotificationLevel

if TYPE_CHECKING:
    from hardcover_tui.core.commands import Command


@dataclass(frozen=True)
class Schedule:
    """Run *command* off the loop; its result comes back to the issuer."""

    command: Command


@dataclass(frozen=True)
class Delay:
    """Deliver *event* to the issuer after *seconds*.

    A second ``Delay`` with the same *key* from the same issuer replaces the
    pending one.
    """

    key: str
    seconds: float
    event: Any


@dataclass(frozen=True)
class CancelDelay:
    key: str


@dataclass(frozen=True)
class Notify:
    level: NotificationLevel
    message: str


@dataclass(frozen=True)
class Navigate:
    """Ask the root controller to push or pop a screen."""

    request: Any


# --- Navigation requests (carried by Navigate) ---


@dataclass(frozen=True)
class GoBack:
    """Pop the current screen if the stack allows it."""


@dataclass(frozen=True)
class OpenBook:
    book_id: int
    title: str = ""
    user_book_id: int | None = None


@dataclass(frozen=True)
class OpenBookFromList:
    """Open a book with next/previous navigation over *book_ids*."""

    book_id: int
    list_id: int
    list_name: str
    book_ids: tuple[int, ...]
    title: str = ""


@dataclass(frozen=True)
class OpenJournal:
    book_id: int
    title: str = ""


@dataclass(frozen=True)
class OpenReview:
    """Edit the review of the user's copy (*user_book_id*) of a book."""

    user_book_id: int
    title: str = ""


@dataclass(frozen=True)
class OpenProgress:
    """Update the page and dates of the user's current read-through."""

    user_book_id: int
    title: str = ""


@dataclass(frozen=True)
class ScreenReady:
    """One-shot signal that the issuing screen finished its initial load."""


@dataclass(frozen=True)
class Unhandled:
    """The screen did not consume the key; global bindings still apply."""


@dataclass(frozen=True)
class SetupComplete:
    """Token validated and stored; *user* is the profile it belongs to."""

    token: str
    user: Any


@dataclass(frozen=True)
class Quit:
    pass


Effect = (
    Schedule
    | Delay
    | CancelDelay
    | Notify
    | Navigate
    | ScreenReady
    | Unhandled
    | SetupComplete
    | Quit
)


def notify_success(message: str) -> Notify:
    return Notify(NotificationLevel.SUCCESS, message)


def notify_error(message: str) -> Notify:
    return Notify(NotificationLevel.ERROR, message)
