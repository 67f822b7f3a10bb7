"""Write or edit the review on the user's copy of a book."""

from __future__ import annotations

from typing import Any

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from hardcover_tui.api import mutations, queries
from hardcover_tui.api.models import UserBook
from hardcover_tui.core.commands import CommandResult
from hardcover_tui.core.effects import GoBack, Navigate, Unhandled, notify_error, notify_success
from hardcover_tui.core.events import KeyPressed
from hardcover_tui.core.screen import Capability, binding
from hardcover_tui.output.keys import is_printable, key_text
from hardcover_tui.screens.base import DataScreen, ScreenContext, rating_text, stars

EDIT_BINDINGS = [
    binding("ctrl+s", help="ctrl+s", desc="save"),
    binding("enter", help="enter", desc="newline"),
    binding("esc", help="esc", desc="stop editing"),
]

VIEW_BINDINGS = [
    binding("i", "enter", help="i/enter", desc="edit"),
    binding("s", help="s", desc="spoilers"),
    binding("ctrl+s", help="ctrl+s", desc="save"),
    binding("esc", help="esc", desc="back"),
]


class ReviewScreen(DataScreen):
    title = "Review"
    capabilities = frozenset({Capability.SIZE, Capability.INPUT_FOCUS, Capability.LOADED, Capability.HELP})

    def __init__(self, ctx: ScreenContext, user_book_id: int, book_title: str = "") -> None:
        super().__init__(ctx)
        self.user_book_id = user_book_id
        self.book_title = book_title
        self.user_book: UserBook | None = None
        self.draft = ""
        self.spoilers = False
        self.editing = True
        self.saving = False

    def initialize(self) -> list[Any]:
        self.begin_load()
        source, user_book_id = self.ctx.source, self.user_book_id
        return [self.primary("review.load", lambda: queries.get_user_book(source, user_book_id), tag=user_book_id)]

    def input_focused(self) -> bool:
        return self.editing and not self.loading

    def help_bindings(self) -> list:
        return EDIT_BINDINGS if self.editing else VIEW_BINDINGS

    def handle_event(self, event: Any) -> list[Any]:
        if isinstance(event, CommandResult):
            return self._apply_result(event)
        if isinstance(event, KeyPressed):
            if self.loading or self.saving:
                return []
            return self._key(event.key)
        return []

    def _apply_result(self, result: CommandResult) -> list[Any]:
        if result.kind == "review.load":
            if not result.ok:
                self.error = self.failure(result)
                return self.ready()
            self.user_book = result.data
            self.draft = self.user_book.review or ""
            self.spoilers = bool(self.user_book.review_has_spoilers)
            if not self.book_title and self.user_book.book is not None:
                self.book_title = self.user_book.book.title
            return self.ready()
        if result.kind == "review.save":
            self.saving = False
            if not result.ok:
                return [notify_error(self.failure(result))]
            return [notify_success("Review saved"), Navigate(GoBack())]
        return []

    def _key(self, key: str) -> list[Any]:
        if key == "ctrl+s":
            return self._save()
        if not self.editing:
            if key in ("i", "enter"):
                self.editing = True
            elif key == "s":
                self.spoilers = not self.spoilers
            else:
                return [Unhandled()]
            return []
        if key == "esc":
            self.editing = False
        elif key == "enter":
            self.draft += "\n"
        elif key == "backspace":
            self.draft = self.draft[:-1]
        elif is_printable(key):
            self.draft += key_text(key)
        return []

    def _save(self) -> list[Any]:
        review = self.draft.strip()
        if not review or self.error:
            return []
        self.saving = True
        source, user_book_id, spoilers = self.ctx.source, self.user_book_id, self.spoilers
        return [
            self.primary(
                "review.save",
                lambda: mutations.update_user_book_review(source, user_book_id, review, spoilers=spoilers),
                tag=user_book_id,
            )
        ]

    def render(self) -> RenderableType:
        status = self.render_status()
        if status is not None:
            return status
        heading = Text(f" Review: {self.book_title or 'Book'}", style="hc.primary")
        parts: list[RenderableType] = [heading]
        if self.user_book is not None and self.user_book.rating:
            rating = self.user_book.rating
            parts.append(
                Text.assemble((" Rating: ", "hc.label"), (stars(rating), "hc.warning"), f" {rating_text(rating)}")
            )
        flag = Text(" Spoilers: ", style="hc.label")
        flag.append("yes" if self.spoilers else "no", style="hc.warning" if self.spoilers else "hc.muted")
        parts.append(flag)
        editor = Text(self.draft, style="hc.value")
        if self.draft == "" and not self.editing:
            editor = Text("Write your review…", style="hc.muted")
        if self.editing:
            editor.append("▏", style="hc.primary")
        if self.saving:
            subtitle = "saving…"
        elif self.editing:
            subtitle = "ctrl+s save · esc stop editing"
        else:
            subtitle = "i edit · s spoilers · ctrl+s save · esc back"
        parts.append(
            Panel(
                editor,
                subtitle=Text(subtitle, style="hc.help"),
                border_style="hc.primary" if self.editing else "hc.border",
                height=max(self.height - len(parts) - 1, 5),
            )
        )
        return Group(*parts)
