"""Home tab: the user's library with status filters and paging, plus an activity feed.

Cycling the filter with ``f``/``F`` is debounced: every press re-arms a
gate and only the press that stays quiet for the debounce window fetches.
Each fetch carries a sequence tag so a slower, older page never overwrites
a newer one. Activity results are tagged with the feed they were fetched
for and dropped once the user has switched feeds.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

import click
from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from hardcover_tui.api import queries
from hardcover_tui.api.models import Activity, ReadingStatus, UserBook
from hardcover_tui.core.commands import CommandResult
from hardcover_tui.core.confirm import ConfirmDialog
from hardcover_tui.core.debounce import DebounceGate
from hardcover_tui.core.effects import Navigate, OpenBook, Unhandled, notify_error
from hardcover_tui.core.events import KeyPressed, Settled
from hardcover_tui.core.screen import Capability, binding
from hardcover_tui.output.console import style_for_status
from hardcover_tui.screens.base import DataScreen, ScreenContext, modal_width, rating_text, truncate

logger = logging.getLogger(__name__)

# (label, status filter); index 0 shows every status.
FILTERS: tuple[tuple[str, int | None], ...] = (
    ("All", None),
    *((status.label, int(status)) for status in ReadingStatus),
)

FILTER_KEY = "home-filter"

ACTIVITY_LIMIT = 30

# Narrower screens drop the activity column.
ACTIVITY_MIN_WIDTH = 80


class Feed(StrEnum):
    MINE = "mine"
    FOR_YOU = "for-you"

    @property
    def label(self) -> str:
        return "Mine" if self is Feed.MINE else "For You"


BINDINGS = [
    binding("j", "down", help="j/k", desc="move"),
    binding("enter", help="enter", desc="open"),
    binding("f", "F", help="f/F", desc="filter"),
    binding("[", "]", help="[/]", desc="page"),
    binding("r", help="r", desc="reading"),
    binding("a", help="a", desc="activity"),
]

ACTIVITY_BINDINGS = [
    binding("j", "down", help="j/k", desc="move"),
    binding("enter", help="enter", desc="open in browser"),
    binding("a", help="a", desc="switch feed"),
    binding("esc", help="esc", desc="library"),
]


def open_in_browser(url: str) -> str:
    click.launch(url)
    return url


class HomeScreen(DataScreen):
    title = "Home"
    capabilities = frozenset({Capability.SIZE, Capability.INPUT_FOCUS, Capability.LOADED, Capability.HELP})

    def __init__(self, ctx: ScreenContext) -> None:
        super().__init__(ctx)
        self.filter_index = 0
        self.page = 0
        self.books: list[UserBook] = []
        self.reading: list[UserBook] = []
        self.cursor = 0
        self.reading_focused = False
        self.reading_cursor = 0
        self.books_loading = False
        self.feed = Feed.MINE
        self.activities: list[Activity] = []
        self.activity_loading = False
        self.activity_error: str | None = None
        self.activity_focused = False
        self.activity_cursor = 0
        self.confirm = ConfirmDialog()
        self._fetch_seq = 0
        self._gate = DebounceGate(FILTER_KEY, ctx.ui.filter_debounce)

    @property
    def page_size(self) -> int:
        return self.ctx.ui.page_size

    @property
    def status_filter(self) -> int | None:
        return FILTERS[self.filter_index][1]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def initialize(self) -> list[Any]:
        self.begin_load()
        self._gate.reset()
        self.reading_focused = False
        self.reading_cursor = 0
        self._fetch_seq += 1
        source, user_id = self.ctx.source, self.user_id
        status, size, offset = self.status_filter, self.page_size, self.page * self.page_size

        def load() -> tuple[list[UserBook], list[UserBook]]:
            books = queries.get_user_books(source, user_id, status, size, offset)
            reading = queries.get_currently_reading(source, user_id)
            return books, reading

        return [self.primary("home.initial", load, tag=self._fetch_seq), *self.fetch_activities()]

    def fetch_books(self) -> list[Any]:
        """Fetch the current page for the current filter."""
        self.books_loading = True
        self.error = None
        self._fetch_seq += 1
        source, user_id = self.ctx.source, self.user_id
        status, size, offset = self.status_filter, self.page_size, self.page * self.page_size
        return [
            self.primary(
                "home.books",
                lambda: queries.get_user_books(source, user_id, status, size, offset),
                tag=self._fetch_seq,
            )
        ]

    def fetch_activities(self) -> list[Any]:
        """Fetch the selected activity feed."""
        self.activity_loading = True
        self.activity_error = None
        source, user_id, feed = self.ctx.source, self.user_id, self.feed

        def load() -> list[Activity]:
            if feed is Feed.MINE:
                return queries.get_activities(source, user_id, ACTIVITY_LIMIT)
            return queries.get_for_you_activities(source, ACTIVITY_LIMIT)

        return [self.primary("home.activities", load, tag=feed)]

    def switch_feed(self) -> list[Any]:
        self.feed = Feed.FOR_YOU if self.feed is Feed.MINE else Feed.MINE
        self.activities = []
        self.activity_cursor = 0
        return self.fetch_activities()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def input_focused(self) -> bool:
        return self.reading_focused or self.activity_focused or self.confirm.active

    def help_bindings(self) -> list:
        return ACTIVITY_BINDINGS if self.activity_focused else BINDINGS

    def handle_event(self, event: Any) -> list[Any]:
        if isinstance(event, CommandResult):
            return self._apply_result(event)
        if isinstance(event, Settled):
            if self._gate.accept(event):
                return self.fetch_books()
            return []
        if isinstance(event, KeyPressed):
            if self.confirm.active:
                return self._confirm_key(event.key)
            if self.activity_focused:
                return self._activity_key(event.key)
            if self.reading_focused:
                return self._reading_key(event.key)
            return self._key(event.key)
        return []

    def _apply_result(self, result: CommandResult) -> list[Any]:
        if result.kind == "home.activities":
            return self._on_activities(result)
        if result.kind == "home.open-activity":
            if not result.ok:
                return [notify_error(f"Could not open browser: {self.failure(result)}")]
            return []
        if result.tag != self._fetch_seq:
            return []
        if result.kind == "home.initial":
            if result.ok:
                self.books, self.reading = result.data
                self.cursor = 0
                self.reading_cursor = 0
            else:
                self.error = self.failure(result)
            return self.ready()
        if result.kind == "home.books":
            self.books_loading = False
            if result.ok:
                self.books = result.data
                self.cursor = 0
            else:
                self.error = self.failure(result)
        return []

    def _on_activities(self, result: CommandResult) -> list[Any]:
        if result.tag != self.feed:
            logger.debug("Dropping %s activities (showing %s)", result.tag, self.feed)
            return []
        self.activity_loading = False
        if not result.ok:
            self.activity_error = self.failure(result)
            self.activity_focused = False
            return []
        self.activities = result.data
        self.activity_cursor = 0
        self.activity_focused = self.activity_focused and bool(self.activities)
        return []

    def _key(self, key: str) -> list[Any]:
        if key in ("j", "down"):
            self.cursor = min(self.cursor + 1, max(len(self.books) - 1, 0))
        elif key in ("k", "up"):
            self.cursor = max(self.cursor - 1, 0)
        elif key == "enter":
            if self.books:
                ub = self.books[self.cursor]
                return [Navigate(OpenBook(ub.book_id, _title(ub), ub.id))]
        elif key in ("f", "F"):
            step = 1 if key == "f" else len(FILTERS) - 1
            self.filter_index = (self.filter_index + step) % len(FILTERS)
            self.page = 0
            return [self._gate.arm()]
        elif key == "]":
            if len(self.books) == self.page_size:
                self.page += 1
                return self.fetch_books()
        elif key == "[":
            if self.page > 0:
                self.page -= 1
                return self.fetch_books()
        elif key == "r":
            if self.reading:
                self.reading_focused = True
                self.reading_cursor = 0
        elif key == "a":
            if self.activities:
                self.activity_focused = True
            elif not self.activity_loading:
                return self.switch_feed()
        return []

    def _reading_key(self, key: str) -> list[Any]:
        if not self.reading:
            self.reading_focused = False
            return self._key(key)
        if key in ("j", "down"):
            self.reading_cursor = min(self.reading_cursor + 1, len(self.reading) - 1)
        elif key in ("k", "up"):
            self.reading_cursor = max(self.reading_cursor - 1, 0)
        elif key == "enter":
            ub = self.reading[self.reading_cursor]
            return [Navigate(OpenBook(ub.book_id, _title(ub), ub.id))]
        elif key in ("esc", "r"):
            self.reading_focused = False
        else:
            return [Unhandled()]
        return []

    def _activity_key(self, key: str) -> list[Any]:
        if key in ("j", "down"):
            self.activity_cursor = min(self.activity_cursor + 1, max(len(self.activities) - 1, 0))
        elif key in ("k", "up"):
            self.activity_cursor = max(self.activity_cursor - 1, 0)
        elif key == "enter":
            if self.activities:
                url = self.activities[self.activity_cursor].url(self.ctx.user.username)
                self.confirm.open(f"Open in browser?\n{url}", "open-activity", payload=url)
        elif key == "a":
            self.activity_focused = False
            return self.switch_feed()
        elif key == "esc":
            self.activity_focused = False
        else:
            return [Unhandled()]
        return []

    def _confirm_key(self, key: str) -> list[Any]:
        confirmed, _ = self.confirm.handle_key(key)
        if self.confirm.active or not confirmed or self.confirm.action != "open-activity":
            return []
        url = self.confirm.payload
        return [self.primary("home.open-activity", lambda: open_in_browser(url), tag=url)]

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> RenderableType:
        label = FILTERS[self.filter_index][0]
        header = Text.assemble(
            (" Library ", "hc.primary"),
            ("  filter: ", "hc.muted"),
            (label, "hc.label"),
            (f"  page {self.page + 1}", "hc.muted"),
        )
        if self._gate.pending or self.books_loading:
            header.append("  …", style="hc.muted")
        status = self.render_status()
        parts: list[RenderableType] = [header]
        if self.reading:
            parts.append(self._render_reading())
        library = status if status is not None else self._render_books()
        if self.width >= ACTIVITY_MIN_WIDTH:
            grid = Table.grid(expand=True, padding=(0, 2))
            grid.add_column(ratio=3)
            grid.add_column(ratio=2)
            grid.add_row(library, self._render_activity())
            parts.append(grid)
        else:
            parts.append(library)
        base = Group(*parts)
        if self.confirm.active:
            width = modal_width(self.width)
            return self.with_overlay(base, self.confirm.render(width), width)
        return base

    def _render_reading(self) -> RenderableType:
        line = Text(" Reading: ", style="hc.muted")
        for index, ub in enumerate(self.reading[:5]):
            if index:
                line.append(" · ", style="hc.muted")
            style = "hc.cursor" if self.reading_focused and index == self.reading_cursor else "hc.status.2"
            line.append(truncate(_title(ub), 30), style=style)
        return line

    def _render_books(self) -> RenderableType:
        if not self.books:
            return Text("  No books here yet.", style="hc.muted")
        width = max(self.width - 4, 40)
        table = Table(box=None, expand=True, show_edge=False, header_style="hc.primary", pad_edge=False)
        table.add_column("", width=1)
        table.add_column("Title", ratio=3, no_wrap=True)
        table.add_column("Author", ratio=2, no_wrap=True)
        table.add_column("Status", width=17, no_wrap=True)
        table.add_column("Rating", width=6, justify="right")
        visible = max(self.height - 6, 5)
        start = max(0, min(self.cursor - visible // 2, len(self.books) - visible))
        focused = self.reading_focused or self.activity_focused
        for index, ub in enumerate(self.books[start : start + visible], start=start):
            book = ub.book
            row_style = "hc.cursor" if index == self.cursor and not focused else None
            table.add_row(
                Text("■", style=style_for_status(ub.status_id)),
                truncate(_title(ub), width // 2),
                book.authors if book else "",
                ub.status_label,
                rating_text(ub.rating),
                style=row_style,
            )
        return table

    def _render_activity(self) -> RenderableType:
        tabs = Text(" Activity ", style="hc.primary")
        for feed in Feed:
            tabs.append(f" {feed.label} ", style="hc.tab.active" if feed is self.feed else "hc.muted")
        if self.activity_loading:
            return Group(tabs, Text(" Loading…", style="hc.muted"))
        if self.activity_error:
            return Group(tabs, Text(f" {self.activity_error}", style="hc.error"))
        if not self.activities:
            return Group(tabs, Text(" No activity yet", style="hc.muted"))
        width = max(self.width * 2 // 5 - 6, 20)
        visible = max((self.height - 4) // 2, 1)
        start = max(0, min(self.activity_cursor - visible + 1, len(self.activities) - visible))
        body = Text(end="")
        for index, activity in enumerate(self.activities[start : start + visible], start=start):
            if index > start:
                body.append("\n")
            selected = self.activity_focused and index == self.activity_cursor
            body.append("> " if selected else "  ", style="hc.primary")
            if self.feed is Feed.FOR_YOU and activity.user is not None:
                body.append(f"@{activity.user.username} ", style="hc.label")
            body.append(truncate(activity.summary, width), style="hc.cursor" if selected else "hc.text")
            detail = activity.book.title if activity.book and activity.book.title else ""
            when = (activity.created_at or "")[:10]
            body.append(f"\n    {truncate(detail, width - 12)}  ", style="hc.value")
            body.append(when, style="hc.muted")
        return Group(tabs, body)


def _title(ub: UserBook) -> str:
    return ub.book.title if ub.book and ub.book.title else f"Book {ub.book_id}"
