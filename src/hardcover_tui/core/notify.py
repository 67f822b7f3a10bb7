"""Toast notifications with independent expiry.

Each posted notification arms its own expiry timer, so several toasts can
stack without shortening or extending each other. While any toast is
visible the channel keeps a periodic :class:`NotifyTick` armed to drive
repaints; the tick stops re-arming once the queue is empty.

INVARIANT: A notification is removed only by its own expiry event.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from hardcover_tui.core.clock import Clock
from hardcover_tui.core.events import NotificationExpired, NotifyTick

logger = logging.getLogger(__name__)

TICK_KEY = "notify-tick"

# (seconds, event, key) -> None. Supplied by the owner of the channel.
DelayFn = Callable[[float, Any, Hashable], None]


class NotificationLevel(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


_LEVEL_STYLES = {
    NotificationLevel.INFO: ("hc.info", "i"),
    NotificationLevel.SUCCESS: ("hc.ok", "✓"),
    NotificationLevel.WARNING: ("hc.warning", "!"),
    NotificationLevel.ERROR: ("hc.error", "✗"),
}


@dataclass(frozen=True)
class Notification:
    id: int
    level: NotificationLevel
    message: str
    expires_at: float


class NotificationChannel:
    """Queue of toasts owned by the root controller.

    Parameters:
        clock: Time source used to stamp expiry.
        delay: Callable that arms a keyed delayed event back to the owner.
        lifetime: Seconds each toast stays visible.
        max_visible: Upper bound on toasts rendered at once.
        tick_interval: Repaint period while toasts are visible.
    """

    def __init__(
        self,
        clock: Clock,
        delay: DelayFn,
        *,
        lifetime: float = 3.0,
        max_visible: int = 5,
        tick_interval: float = 0.5,
    ) -> None:
        self._clock = clock
        self._delay = delay
        self.lifetime = lifetime
        self.max_visible = max_visible
        self.tick_interval = tick_interval
        self._ids = itertools.count(1)
        self._items: list[Notification] = []
        self._ticking = False

    def __len__(self) -> int:
        return len(self._items)

    @property
    def ticking(self) -> bool:
        return self._ticking

    def post(self, level: NotificationLevel | str, message: str) -> Notification:
        """Enqueue a toast and arm its expiry."""
        notification = Notification(
            id=next(self._ids),
            level=NotificationLevel(level),
            message=message,
            expires_at=self._clock.now() + self.lifetime,
        )
        self._items.append(notification)
        self._delay(
            self.lifetime,
            NotificationExpired(notification.id),
            ("notify-expire", notification.id),
        )
        if not self._ticking:
            self._ticking = True
            self._delay(self.tick_interval, NotifyTick(), TICK_KEY)
        logger.debug("Notification #%d (%s): %s", notification.id, notification.level, message)
        return notification

    def handle(self, event: Any) -> bool:
        """Apply an expiry or tick event. Returns True if *event* was ours."""
        if isinstance(event, NotificationExpired):
            self._items = [n for n in self._items if n.id != event.notification_id]
            return True
        if isinstance(event, NotifyTick):
            if self._items:
                self._delay(self.tick_interval, NotifyTick(), TICK_KEY)
            else:
                self._ticking = False
            return True
        return False

    def clear(self) -> None:
        self._items.clear()

    def visible(self) -> list[Notification]:
        """Newest first, capped at ``max_visible``."""
        return list(reversed(self._items))[: self.max_visible]

    def render(self, width: int = 40) -> RenderableType | None:
        items = self.visible()
        if not items:
            return None
        panels = []
        for item in items:
            style, icon = _LEVEL_STYLES[item.level]
            body = Text.assemble((f"{icon} ", style), (item.message, "hc.text"))
            panels.append(Panel(body, border_style=style, width=width, padding=(0, 1)))
        return Group(*panels)
