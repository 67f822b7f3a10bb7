"""Reading journal for one book: list, write and delete entries."""

from __future__ import annotations

from typing import Any

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from hardcover_tui.api import mutations, queries
from hardcover_tui.api.models import ReadingJournal
from hardcover_tui.core.commands import CommandResult
from hardcover_tui.core.confirm import ConfirmDialog
from hardcover_tui.core.effects import notify_error, notify_success
from hardcover_tui.core.events import KeyPressed
from hardcover_tui.core.screen import Capability, binding
from hardcover_tui.output.keys import is_printable, key_text
from hardcover_tui.screens.base import DataScreen, ScreenContext, modal_width, truncate

LIST_BINDINGS = [
    binding("j", "down", help="j/k", desc="move"),
    binding("n", help="n", desc="new entry"),
    binding("d", help="d", desc="delete"),
]

WRITE_BINDINGS = [
    binding("ctrl+s", help="ctrl+s", desc="save"),
    binding("enter", help="enter", desc="newline"),
    binding("esc", help="esc", desc="cancel"),
]


class JournalScreen(DataScreen):
    title = "Journal"
    capabilities = frozenset({Capability.SIZE, Capability.INPUT_FOCUS, Capability.LOADED, Capability.HELP})

    def __init__(self, ctx: ScreenContext, book_id: int, book_title: str = "") -> None:
        super().__init__(ctx)
        self.book_id = book_id
        self.book_title = book_title
        self.entries: list[ReadingJournal] = []
        self.cursor = 0
        self.writing = False
        self.draft = ""
        self.saving = False
        self.confirm = ConfirmDialog()

    def initialize(self) -> list[Any]:
        self.begin_load()
        return self.load()

    def load(self) -> list[Any]:
        source, user_id, book_id = self.ctx.source, self.user_id, self.book_id
        return [
            self.primary(
                "journal.load",
                lambda: queries.get_reading_journals(source, user_id, book_id),
                tag=book_id,
            )
        ]

    def input_focused(self) -> bool:
        return self.writing or self.confirm.active

    def help_bindings(self) -> list:
        return WRITE_BINDINGS if self.writing else LIST_BINDINGS

    def handle_event(self, event: Any) -> list[Any]:
        if isinstance(event, CommandResult):
            return self._apply_result(event)
        if isinstance(event, KeyPressed):
            if self.confirm.active:
                return self._confirm_key(event.key)
            if self.writing:
                return self._write_key(event.key)
            return self._list_key(event.key)
        return []

    def _apply_result(self, result: CommandResult) -> list[Any]:
        if result.kind == "journal.load":
            if result.ok:
                self.entries = result.data
                self.cursor = min(self.cursor, max(len(self.entries) - 1, 0))
            else:
                self.error = self.failure(result)
            return self.ready()
        if result.kind == "journal.save":
            self.saving = False
            if not result.ok:
                return [notify_error(self.failure(result))]
            self.writing = False
            self.draft = ""
            return [*self.load(), notify_success("Journal entry saved")]
        if result.kind == "journal.delete":
            if not result.ok:
                return [notify_error(self.failure(result))]
            return [*self.load(), notify_success("Journal entry deleted")]
        return []

    def _list_key(self, key: str) -> list[Any]:
        if key in ("j", "down"):
            self.cursor = min(self.cursor + 1, max(len(self.entries) - 1, 0))
        elif key in ("k", "up"):
            self.cursor = max(self.cursor - 1, 0)
        elif key == "n":
            self.writing = True
        elif key == "d" and self.entries:
            entry = self.entries[self.cursor]
            self.confirm.open("Delete this journal entry?", "delete-journal-entry", payload=entry.id)
        return []

    def _write_key(self, key: str) -> list[Any]:
        if self.saving:
            return []
        if key == "esc":
            self.writing = False
        elif key == "ctrl+s":
            entry = self.draft.strip()
            if entry:
                self.saving = True
                source, book_id = self.ctx.source, self.book_id
                return [
                    self.primary(
                        "journal.save",
                        lambda: mutations.insert_reading_journal(source, book_id, entry),
                        tag=book_id,
                    )
                ]
        elif key == "enter":
            self.draft += "\n"
        elif key == "backspace":
            self.draft = self.draft[:-1]
        elif is_printable(key):
            self.draft += key_text(key)
        return []

    def _confirm_key(self, key: str) -> list[Any]:
        confirmed, _ = self.confirm.handle_key(key)
        if self.confirm.active or not confirmed:
            return []
        if self.confirm.action != "delete-journal-entry":
            return []
        source, entry_id = self.ctx.source, self.confirm.payload
        return [
            self.primary(
                "journal.delete",
                lambda: mutations.delete_reading_journal(source, entry_id),
                tag=entry_id,
            )
        ]

    def render(self) -> RenderableType:
        status = self.render_status()
        if status is not None:
            return status
        heading = Text(f" Journal: {self.book_title or f'Book {self.book_id}'}", style="hc.primary")
        if self.writing:
            editor = Text(self.draft, style="hc.value")
            editor.append("▏", style="hc.primary")
            subtitle = "saving…" if self.saving else "ctrl+s save · esc cancel"
            return Group(
                heading,
                Panel(
                    editor,
                    title=Text("New entry", style="hc.label"),
                    subtitle=Text(subtitle, style="hc.help"),
                    border_style="hc.border",
                    height=max(self.height - 2, 5),
                ),
            )
        body = Text(end="")
        if not self.entries:
            body.append(" No journal entries yet. Press n to write one.", style="hc.muted")
        width = max(self.width - 30, 20)
        for index, entry in enumerate(self.entries):
            if index:
                body.append("\n")
            style = "hc.cursor" if index == self.cursor else "hc.text"
            when = (entry.action_at or entry.created_at or "")[:10]
            body.append(f" {when:<10} ", style="hc.muted")
            body.append(f"{entry.event:<10} ", style="hc.label")
            body.append(truncate(entry.entry or "", width), style=style)
        base = Group(heading, Text(""), body)
        if self.confirm.active:
            width = modal_width(self.width)
            return self.with_overlay(base, self.confirm.render(width), width)
        return base
