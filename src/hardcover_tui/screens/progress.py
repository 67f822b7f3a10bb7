"""Update the page reached and the start/finish dates of the current read-through.

Changes go through a confirmation dialog before anything is sent; on
success the screen asks to be popped.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import IntEnum
from typing import Any

from rich.console import Group, RenderableType
from rich.text import Text

from hardcover_tui.api import mutations, queries
from hardcover_tui.api.models import UserBook, UserBookRead
from hardcover_tui.core.commands import CommandResult
from hardcover_tui.core.confirm import ConfirmDialog
from hardcover_tui.core.effects import GoBack, Navigate, Unhandled, notify_error, notify_success
from hardcover_tui.core.events import KeyPressed
from hardcover_tui.core.screen import Capability, binding
from hardcover_tui.output.keys import is_printable
from hardcover_tui.screens.base import DataScreen, ScreenContext, modal_width

BINDINGS = [
    binding("tab", help="tab", desc="next field"),
    binding("enter", help="enter", desc="update"),
    binding("ctrl+u", help="ctrl+u", desc="clear field"),
    binding("esc", help="esc", desc="back"),
]

BAR_WIDTH = 30


class Field(IntEnum):
    PAGE = 0
    STARTED = 1
    FINISHED = 2


FIELD_LABELS = {
    Field.PAGE: "Page number",
    Field.STARTED: "Started reading (YYYY-MM-DD)",
    Field.FINISHED: "Finished reading (YYYY-MM-DD)",
}

# Keys a field accepts: digits for the page, digits and dashes for dates.
FIELD_CHARS = {
    Field.PAGE: frozenset("0123456789"),
    Field.STARTED: frozenset("0123456789-"),
    Field.FINISHED: frozenset("0123456789-"),
}


@dataclass(frozen=True)
class ProgressUpdate:
    read_id: int
    pages: int
    started_at: str | None
    finished_at: str | None

    def describe(self) -> str:
        lines = ["Update progress?", f"Page: {self.pages}"]
        if self.started_at:
            lines.append(f"Started: {self.started_at}")
        if self.finished_at:
            lines.append(f"Finished: {self.finished_at}")
        return "\n".join(lines)


def parse_date(value: str) -> str | None:
    """Normalise a ``YYYY-MM-DD`` field; blank means unset."""
    value = value.strip()
    if not value:
        return None
    return date.fromisoformat(value).isoformat()


class ProgressScreen(DataScreen):
    title = "Progress"
    capabilities = frozenset({Capability.SIZE, Capability.INPUT_FOCUS, Capability.LOADED, Capability.HELP})

    def __init__(self, ctx: ScreenContext, user_book_id: int, book_title: str = "") -> None:
        super().__init__(ctx)
        self.user_book_id = user_book_id
        self.book_title = book_title
        self.user_book: UserBook | None = None
        self.values = {field: "" for field in Field}
        self.focus = Field.PAGE
        self.invalid: str | None = None
        self.saving = False
        self.confirm = ConfirmDialog()

    @property
    def current_read(self) -> UserBookRead | None:
        if self.user_book is None or not self.user_book.user_book_reads:
            return None
        return self.user_book.user_book_reads[0]

    def initialize(self) -> list[Any]:
        self.begin_load()
        source, user_book_id = self.ctx.source, self.user_book_id
        return [self.primary("progress.load", lambda: queries.get_user_book(source, user_book_id), tag=user_book_id)]

    def input_focused(self) -> bool:
        return not self.loading

    def help_bindings(self) -> list:
        return BINDINGS

    def handle_event(self, event: Any) -> list[Any]:
        if isinstance(event, CommandResult):
            return self._apply_result(event)
        if isinstance(event, KeyPressed):
            if self.confirm.active:
                return self._confirm_key(event.key)
            if self.saving:
                return []
            return self._key(event.key)
        return []

    def _apply_result(self, result: CommandResult) -> list[Any]:
        if result.kind == "progress.load":
            if not result.ok:
                self.error = self.failure(result)
                return self.ready()
            self.user_book = result.data
            if not self.book_title and self.user_book.book is not None:
                self.book_title = self.user_book.book.title
            read = self.current_read
            if read is not None:
                self.values[Field.PAGE] = "" if read.progress_pages is None else str(read.progress_pages)
                self.values[Field.STARTED] = (read.started_at or "")[:10]
                self.values[Field.FINISHED] = (read.finished_at or "")[:10]
            return self.ready()
        if result.kind == "progress.save":
            self.saving = False
            if not result.ok:
                return [notify_error(self.failure(result))]
            return [notify_success("Progress updated"), Navigate(GoBack())]
        return []

    def _key(self, key: str) -> list[Any]:
        if key == "esc":
            return [Unhandled()]
        if key == "tab":
            self.focus = Field((self.focus + 1) % len(Field))
        elif key == "shift+tab":
            self.focus = Field((self.focus - 1) % len(Field))
        elif key == "enter":
            return self._submit()
        elif key == "backspace":
            self.values[self.focus] = self.values[self.focus][:-1]
        elif key == "ctrl+u":
            self.values[self.focus] = ""
        elif key in FIELD_CHARS[self.focus]:
            if len(self.values[self.focus]) < 10:
                self.values[self.focus] += key
        elif not is_printable(key):
            return [Unhandled()]
        return []

    def _submit(self) -> list[Any]:
        read = self.current_read
        if read is None:
            return [notify_error("No active read found")]
        try:
            pages = int(self.values[Field.PAGE].strip())
        except ValueError:
            self.invalid = "Please enter a valid page number"
            return []
        try:
            started_at = parse_date(self.values[Field.STARTED])
            finished_at = parse_date(self.values[Field.FINISHED])
        except ValueError:
            self.invalid = "Dates must look like 2024-01-31"
            return []
        self.invalid = None
        update = ProgressUpdate(read.id, pages, started_at, finished_at)
        self.confirm.open(update.describe(), "update-progress", payload=update)
        return []

    def _confirm_key(self, key: str) -> list[Any]:
        confirmed, _ = self.confirm.handle_key(key)
        if self.confirm.active or not confirmed or self.confirm.action != "update-progress":
            return []
        update: ProgressUpdate = self.confirm.payload
        self.saving = True
        source = self.ctx.source
        return [
            self.primary(
                "progress.save",
                lambda: mutations.update_user_book_read(
                    source,
                    update.read_id,
                    update.pages,
                    started_at=update.started_at,
                    finished_at=update.finished_at,
                ),
                tag=self.user_book_id,
            )
        ]

    def render(self) -> RenderableType:
        status = self.render_status()
        if status is not None:
            return status
        parts: list[RenderableType] = [Text(f" Update progress: {self.book_title or 'Book'}", style="hc.primary")]
        parts.extend(self._render_summary())
        if self.current_read is None:
            parts.append(Text(" No active read found. Set the status to Currently Reading first.", style="hc.muted"))
        for field in Field:
            focused = field is self.focus
            line = Text(f" {'>' if focused else ' '} {FIELD_LABELS[field]}: ", style="hc.label")
            line.append(self.values[field], style="hc.value")
            if focused:
                line.append("▏", style="hc.primary")
            parts.append(line)
        if self.invalid:
            parts.append(Text(f" {self.invalid}", style="hc.error"))
        if self.saving:
            parts.append(Text(" Updating…", style="hc.muted"))
        base = Group(*parts)
        if self.confirm.active:
            width = modal_width(self.width)
            return self.with_overlay(base, self.confirm.render(width), width)
        return base

    def _render_summary(self) -> list[RenderableType]:
        book = self.user_book.book if self.user_book else None
        read = self.current_read
        lines: list[RenderableType] = []
        if book is not None and book.pages:
            lines.append(Text(f" Total pages: {book.pages}", style="hc.muted"))
        if read is not None and read.progress_pages is not None:
            line = Text(f" Current progress: {read.progress_pages} pages", style="hc.muted")
            if book is not None and book.pages:
                ratio = min(read.progress_pages / book.pages, 1.0)
                filled = round(ratio * BAR_WIDTH)
                line.append("  ")
                line.append("█" * filled, style="hc.primary")
                line.append("░" * (BAR_WIDTH - filled), style="hc.border")
                line.append(f" {int(ratio * 100)}%", style="hc.value")
            lines.append(line)
        lines.append(Text(""))
        return lines
