"""Book detail: metadata, the user's status and rating, tags and reviews.

The screen can change its subject in place (``n``/``N`` walk through the
list it was opened from), so every fetch is tagged with the book id it was
issued for and results for any other book are dropped.
"""

from __future__ import annotations

import logging
from typing import Any

from rich.console import Group, RenderableType
from rich.text import Text

from hardcover_tui.api import mutations, queries
from hardcover_tui.api.errors import ServerError
from hardcover_tui.api.models import Book, BookList, BookReview, BookTags, ReadingStatus, UserBook
from hardcover_tui.core.commands import CommandResult
from hardcover_tui.core.confirm import ConfirmDialog
from hardcover_tui.core.effects import (
    Navigate,
    OpenJournal,
    OpenProgress,
    OpenReview,
    Unhandled,
    notify_error,
    notify_success,
)
from hardcover_tui.core.events import KeyPressed
from hardcover_tui.core.overlay import ModalAction, SelectModal, SelectOption
from hardcover_tui.core.screen import Capability, binding
from hardcover_tui.output.console import style_for_status
from hardcover_tui.screens.base import DataScreen, ScreenContext, modal_width, rating_text, stars, truncate

logger = logging.getLogger(__name__)

RATINGS = tuple(step / 2 for step in range(10, 0, -1))

DESCRIPTION_LINES = 4

BINDINGS = [
    binding("s", help="s", desc="status"),
    binding("r", help="r", desc="rate"),
    binding("l", help="l", desc="add to list"),
    binding("j", help="j", desc="journal"),
    binding("v", help="v", desc="reviews"),
    binding("w", help="w", desc="write review"),
    binding("p", help="p", desc="progress"),
    binding("D", help="D", desc="remove from library"),
    binding("m", help="m", desc="more"),
]

LIST_BINDINGS = [
    binding("n", help="n/N", desc="next/prev"),
    binding("x", help="x", desc="remove from list"),
]

REVIEW_BINDINGS = [
    binding("j", "down", help="j/k", desc="move"),
    binding("enter", help="enter", desc="read"),
    binding("esc", "v", help="esc", desc="close"),
]


def remove_from_list(source: Any, list_id: int, book_id: int) -> int:
    """Delete the ``list_books`` row linking *book_id* to *list_id*."""
    for entry in queries.get_list_books(source, list_id):
        if entry.book_id == book_id:
            return mutations.delete_list_book(source, entry.id)
    raise ServerError("Book not found in list")


class BookDetailScreen(DataScreen):
    title = "Book"
    capabilities = frozenset({Capability.SIZE, Capability.INPUT_FOCUS, Capability.LOADED, Capability.HELP})

    def __init__(
        self,
        ctx: ScreenContext,
        book_id: int,
        *,
        list_id: int | None = None,
        list_name: str = "",
        book_ids: tuple[int, ...] = (),
    ) -> None:
        super().__init__(ctx)
        self.book_id = book_id
        self.list_id = list_id
        self.list_name = list_name
        self.book_ids = list(book_ids)
        self.book: Book | None = None
        self.user_book: UserBook | None = None
        self.tags = BookTags()
        self.reviews: list[BookReview] = []
        self.review_cursor = 0
        self.reviews_focused = False
        self.review_open = False
        self.expanded = False
        self.lists_loading = False
        self.modal = SelectModal()
        self.confirm = ConfirmDialog()

    @property
    def list_index(self) -> int:
        try:
            return self.book_ids.index(self.book_id)
        except ValueError:
            return -1

    @property
    def from_list(self) -> bool:
        return self.list_id is not None and bool(self.book_ids)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def initialize(self) -> list[Any]:
        self.begin_load()
        return self.fetch()

    def fetch(self) -> list[Any]:
        source, user_id, book_id = self.ctx.source, self.user_id, self.book_id

        def load() -> tuple[Book, UserBook | None]:
            return queries.get_book(source, book_id), queries.get_user_book_by_book_id(source, user_id, book_id)

        return [self.primary("detail.book", load, tag=book_id)]

    def enrich(self) -> list[Any]:
        source, book_id = self.ctx.source, self.book_id
        return [
            self.secondary("detail.tags", lambda: queries.get_book_tags(source, book_id), tag=book_id),
            self.secondary("detail.reviews", lambda: queries.get_book_reviews(source, book_id), tag=book_id),
        ]

    def switch_to(self, index: int) -> list[Any]:
        """Show another book of the list this screen was opened from."""
        self.book_id = self.book_ids[index]
        self.book = None
        self.user_book = None
        self.tags = BookTags()
        self.reviews = []
        self.review_cursor = 0
        self.reviews_focused = False
        self.review_open = False
        self.expanded = False
        self.loading = True
        self.error = None
        return self.fetch()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def input_focused(self) -> bool:
        return self.modal.active or self.confirm.active or self.reviews_focused

    def help_bindings(self) -> list:
        if self.reviews_focused:
            return REVIEW_BINDINGS
        return [*BINDINGS, *LIST_BINDINGS] if self.from_list else BINDINGS

    def handle_event(self, event: Any) -> list[Any]:
        if isinstance(event, CommandResult):
            if event.tag != self.book_id:
                logger.debug("Dropping %s for book %s (showing %s)", event.kind, event.tag, self.book_id)
                return []
            return self._apply_result(event)
        if isinstance(event, KeyPressed):
            return self._key(event.key)
        return []

    def _apply_result(self, result: CommandResult) -> list[Any]:
        kind = result.kind
        if kind == "detail.book":
            if not result.ok:
                self.error = self.failure(result)
                return self.ready()
            self.book, self.user_book = result.data
            return [*self.ready(), *self.enrich()]
        if kind in ("detail.tags", "detail.reviews"):
            # Enrichment is best effort; the detail view is complete without it.
            if not result.ok:
                logger.debug("%s failed: %s", kind, self.failure(result))
            elif kind == "detail.tags":
                self.tags = result.data
            else:
                self.reviews = result.data
            return []
        if kind == "detail.lists":
            return self._on_lists(result)
        if kind in ("detail.status", "detail.rating", "detail.add-list"):
            self.modal.resolve()
            if not result.ok:
                return [notify_error(self.failure(result))]
            message = {
                "detail.status": "Status updated",
                "detail.rating": "Rating updated",
                "detail.add-list": "Added to list",
            }[kind]
            effects: list[Any] = [notify_success(message)]
            if kind != "detail.add-list":
                effects.extend(self.fetch())
            return effects
        if kind == "detail.remove":
            return self._on_removed(result)
        if kind == "detail.delete":
            if not result.ok:
                return [notify_error(self.failure(result))]
            self.user_book = None
            return [notify_success("Removed from library")]
        return []

    def _on_lists(self, result: CommandResult) -> list[Any]:
        self.lists_loading = False
        if not result.ok:
            return [notify_error(self.failure(result))]
        lists: list[BookList] = result.data
        if not lists:
            return [notify_error("You have no lists yet")]
        options = [SelectOption(item.name, item.id, hint=f"{item.books_count} books") for item in lists]
        self.modal.open("list", "Add to list", options)
        return []

    def _on_removed(self, result: CommandResult) -> list[Any]:
        if not result.ok:
            return [notify_error(self.failure(result))]
        notice = notify_success(f"Removed from {self.list_name}")
        index = self.list_index
        if index >= 0:
            del self.book_ids[index]
        if not self.book_ids:
            return [notice]
        return [*self.switch_to(min(max(index, 0), len(self.book_ids) - 1)), notice]

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def _key(self, key: str) -> list[Any]:
        if self.modal.active:
            return self._modal_key(key)
        if self.confirm.active:
            return self._confirm_key(key)
        if self.reviews_focused:
            return self._review_key(key)
        if self.loading:
            return []
        return self._detail_key(key)

    def _detail_key(self, key: str) -> list[Any]:
        if key == "m":
            self.expanded = not self.expanded
        elif key == "v":
            if self.reviews:
                self.reviews_focused = True
        elif key in ("s", "a"):
            if self.book is not None:
                cursor = self.user_book.status_id - 1 if self.user_book else 0
                options = [SelectOption(status.label, int(status)) for status in ReadingStatus]
                title = "Set status" if self.user_book else "Add to library"
                self.modal.open("status", title, options, cursor=cursor)
        elif key == "r":
            if self.user_book is not None:
                current = self.user_book.rating
                cursor = RATINGS.index(current) if current in RATINGS else len(RATINGS) - 1
                options = [SelectOption(f"{stars(value)}  {value:.1f}", value) for value in RATINGS]
                self.modal.open("rating", "Rate", options, cursor=cursor)
        elif key == "l":
            if not self.lists_loading and self.book is not None:
                self.lists_loading = True
                source, user_id = self.ctx.source, self.user_id
                return [self.primary("detail.lists", lambda: queries.get_lists(source, user_id), tag=self.book_id)]
        elif key == "j":
            title = self.book.title if self.book else ""
            return [Navigate(OpenJournal(self.book_id, title))]
        elif key in ("w", "p"):
            if self.user_book is None:
                return [notify_error("Add this book to your library first")]
            title = self.book.title if self.book else ""
            request = OpenReview if key == "w" else OpenProgress
            return [Navigate(request(self.user_book.id, title))]
        elif key == "D":
            if self.user_book is not None:
                title = self.book.title if self.book else f"Book {self.book_id}"
                self.confirm.open(
                    f'Remove "{title}" from your library?\nIts status, rating and reads are deleted.',
                    "delete-user-book",
                    payload=self.user_book.id,
                )
        elif key == "x":
            if self.from_list:
                title = self.book.title if self.book else f"Book {self.book_id}"
                self.confirm.open(
                    f'Remove "{title}" from {self.list_name}?',
                    "remove-from-list",
                    payload=self.book_id,
                )
        elif key == "n":
            index = self.list_index
            if self.from_list and 0 <= index < len(self.book_ids) - 1:
                return self.switch_to(index + 1)
        elif key == "N":
            index = self.list_index
            if self.from_list and index > 0:
                return self.switch_to(index - 1)
        return []

    def _review_key(self, key: str) -> list[Any]:
        if self.review_open:
            if key in ("esc", "q", "enter"):
                self.review_open = False
            return []
        if key in ("j", "down"):
            self.review_cursor = min(self.review_cursor + 1, len(self.reviews) - 1)
        elif key in ("k", "up"):
            self.review_cursor = max(self.review_cursor - 1, 0)
        elif key == "enter":
            self.review_open = True
        elif key in ("esc", "v"):
            self.reviews_focused = False
        else:
            return [Unhandled()]
        return []

    def _modal_key(self, key: str) -> list[Any]:
        action = self.modal.handle_key(key)
        if action is not ModalAction.COMMITTED:
            return []
        source, book_id, value = self.ctx.source, self.book_id, self.modal.selection
        if self.modal.name == "status":
            user_book = self.user_book
            if user_book is None:
                return [
                    self.primary(
                        "detail.status",
                        lambda: mutations.insert_user_book(source, book_id, value),
                        tag=book_id,
                    )
                ]
            return [
                self.primary(
                    "detail.status",
                    lambda: mutations.update_user_book_status(source, user_book.id, value),
                    tag=book_id,
                )
            ]
        if self.modal.name == "rating" and self.user_book is not None:
            user_book_id = self.user_book.id
            return [
                self.primary(
                    "detail.rating",
                    lambda: mutations.update_user_book_rating(source, user_book_id, value),
                    tag=book_id,
                )
            ]
        if self.modal.name == "list":
            return [
                self.primary(
                    "detail.add-list",
                    lambda: mutations.insert_list_book(source, value, book_id),
                    tag=book_id,
                )
            ]
        self.modal.close()
        return []

    def _confirm_key(self, key: str) -> list[Any]:
        confirmed, _ = self.confirm.handle_key(key)
        if self.confirm.active or not confirmed:
            return []
        if self.confirm.action == "remove-from-list" and self.list_id is not None:
            source, list_id, book_id = self.ctx.source, self.list_id, self.confirm.payload
            return [
                self.primary(
                    "detail.remove",
                    lambda: remove_from_list(source, list_id, book_id),
                    tag=book_id,
                )
            ]
        if self.confirm.action == "delete-user-book":
            source, user_book_id = self.ctx.source, self.confirm.payload
            return [
                self.primary(
                    "detail.delete",
                    lambda: mutations.delete_user_book(source, user_book_id),
                    tag=self.book_id,
                )
            ]
        return []

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> RenderableType:
        status = self.render_status()
        base = status if status is not None else self._render_detail()
        width = modal_width(self.width)
        if self.modal.active:
            return self.with_overlay(base, self.modal.render(width), width)
        if self.confirm.active:
            return self.with_overlay(base, self.confirm.render(width), width)
        return base

    def _render_detail(self) -> RenderableType:
        book = self.book
        assert book is not None
        width = max(self.width - 2, 20)
        parts: list[RenderableType] = []

        if self.from_list:
            parts.append(
                Text(f" {self.list_name}  ({self.list_index + 1}/{len(self.book_ids)})", style="hc.muted")
            )
        heading = Text(f" {book.title}", style="hc.primary")
        if book.subtitle:
            heading.append(f": {book.subtitle}", style="hc.secondary")
        parts.append(heading)
        facts = Text(f" by {book.authors}", style="hc.text")
        if book.release_year:
            facts.append(f"  ·  {book.release_year}", style="hc.muted")
        if book.pages:
            facts.append(f"  ·  {book.pages} pages", style="hc.muted")
        facts.append(f"  ·  {book.format_indicator}", style="hc.muted")
        parts.append(facts)
        parts.append(
            Text.assemble(
                (" ", ""),
                (stars(book.rating), "hc.warning"),
                (f" {rating_text(book.rating)}", "hc.value"),
                (f"  {book.ratings_count} ratings · {book.users_count} readers", "hc.muted"),
            )
        )

        mine = Text(" Yours: ", style="hc.label")
        if self.user_book is None:
            mine.append("not in library (a to add)", style="hc.muted")
        else:
            mine.append(self.user_book.status_label, style=style_for_status(self.user_book.status_id))
            mine.append(f"  {stars(self.user_book.rating)}", style="hc.warning")
        parts.append(mine)

        tag_line = self._tag_line()
        if tag_line is not None:
            parts.append(tag_line)

        parts.append(Text(""))
        description = (book.description or "No description.").strip()
        if not self.expanded:
            limit = width * DESCRIPTION_LINES
            description = truncate(description, limit)
        parts.append(Text(description, style="hc.text"))

        parts.append(Text(""))
        parts.append(self._render_reviews(width))
        return Group(*parts)

    def _tag_line(self) -> Text | None:
        if not (self.tags.genres or self.tags.moods):
            return None
        line = Text(" ", end="")
        for genre in self.tags.genres[:6]:
            line.append(f"[{genre}] ", style="hc.secondary")
        for mood in self.tags.moods[:4]:
            line.append(f"({mood}) ", style="hc.muted")
        return line

    def _render_reviews(self, width: int) -> RenderableType:
        if not self.reviews:
            return Text(" No reviews yet.", style="hc.muted")
        if self.review_open:
            review = self.reviews[self.review_cursor]
            header = Text(f" @{review.user.username}", style="hc.label")
            header.append(f"  {stars(review.rating)}", style="hc.warning")
            body = review.review or ""
            if review.review_has_spoilers:
                body = "[SPOILER]\n\n" + body
            return Group(header, Text(body, style="hc.text"))
        lines = Text(f" Reviews ({len(self.reviews)})\n", style="hc.primary", end="")
        for index, review in enumerate(self.reviews):
            style = "hc.cursor" if self.reviews_focused and index == self.review_cursor else "hc.text"
            lines.append(f" @{review.user.username} ", style="hc.label")
            lines.append(f"{stars(review.rating)} ", style="hc.warning")
            lines.append(truncate(review.review, width - 25), style=style)
            lines.append("\n")
        return lines
