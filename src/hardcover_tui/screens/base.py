"""Shared foundation for screens backed by the Hardcover API.

Every data screen receives a :class:`ScreenContext` at construction time:
the data source, the logged-in user and the timeout/UI configuration.
Command actions built here capture only values copied out of the screen
at scheduling time plus the thread-safe data source.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from rich.console import RenderableType
from rich.text import Text

from hardcover_tui.api.client import DataSource
from hardcover_tui.api.models import User
from hardcover_tui.config.models import TimeoutsConfig, UiConfig
from hardcover_tui.core.commands import Command, CommandResult
from hardcover_tui.core.effects import Schedule, ScreenReady
from hardcover_tui.core.overlay import Anchor, composite
from hardcover_tui.core.screen import Screen
from hardcover_tui.output.renderer import render_lines

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScreenContext:
    source: DataSource
    user: User
    timeouts: TimeoutsConfig
    ui: UiConfig


class DataScreen(Screen):
    """Base for screens that load data through commands.

    Subclasses call :meth:`ready` once their initial load settles; it
    returns the one-shot :class:`ScreenReady` effect the first time only
    after each :meth:`begin_load`.
    """

    def __init__(self, ctx: ScreenContext) -> None:
        super().__init__()
        self.ctx = ctx
        self.loading = False
        self.error: str | None = None
        self._ready_sent = True

    @property
    def user_id(self) -> int:
        return self.ctx.user.id

    def begin_load(self) -> None:
        self.loading = True
        self.error = None
        self._ready_sent = False

    def ready(self) -> list[Any]:
        self.loading = False
        if self._ready_sent:
            return []
        self._ready_sent = True
        return [ScreenReady()]

    def loaded(self) -> bool:
        return not self.loading

    def primary(self, kind: str, action: Callable[[], Any], tag: Any = None) -> Schedule:
        """Schedule a main fetch or mutation with the primary timeout."""
        return Schedule(Command(kind, action, self.ctx.timeouts.primary, tag))

    def secondary(self, kind: str, action: Callable[[], Any], tag: Any = None) -> Schedule:
        """Schedule an enrichment fetch (tags, reviews) with the secondary timeout."""
        return Schedule(Command(kind, action, self.ctx.timeouts.secondary, tag))

    @staticmethod
    def failure(result: CommandResult) -> str:
        assert result.error is not None
        return result.error.message

    def render_status(self) -> RenderableType | None:
        """Common loading / error line, or None when there is content to show."""
        if self.loading:
            return Text("  Loading…", style="hc.muted")
        if self.error:
            return Text(f"  Error: {self.error}", style="hc.error")
        return None

    def with_overlay(self, base: RenderableType, panel: RenderableType, panel_width: int) -> RenderableType:
        """Composite *panel* (rendered *panel_width* cells wide) over the center of *base*."""
        width, height = max(self.width, 1), max(self.height, 1)
        background = render_lines(base, width, height)
        foreground = render_lines(panel, min(panel_width, width))
        return Text("\n").join(composite(foreground, background, Anchor.CENTER, width=width, height=height))


def modal_width(width: int) -> int:
    """Width shared by confirm dialogs and select modals on a *width*-cell screen."""
    return min(max(width // 2, 30), 50)


def truncate(text: str | None, width: int) -> str:
    text = (text or "").replace("\n", " ")
    if width <= 1 or len(text) <= width:
        return text
    return text[: width - 1] + "…"


def rating_text(rating: float | None) -> str:
    return "-" if rating is None else f"{rating:.1f}"


def stars(rating: float | None) -> str:
    if not rating:
        return "☆☆☆☆☆"
    full = int(rating)
    half = rating - full >= 0.5
    return "★" * full + ("½" if half else "") + "☆" * (5 - full - (1 if half else 0))
