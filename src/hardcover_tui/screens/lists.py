"""Lists tab: the user's lists on the left, the selected list's books on the right.

Moving through the lists is debounced (``[ui] list_debounce_ms``) so holding
``j`` does not fire a book fetch per list; book results are tagged with the
list id and dropped when another list has been selected since.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from hardcover_tui.api import mutations, queries
from hardcover_tui.api.models import Book, BookList, ListBook, Privacy
from hardcover_tui.core.commands import CommandResult
from hardcover_tui.core.confirm import ConfirmDialog
from hardcover_tui.core.debounce import DebounceGate
from hardcover_tui.core.effects import Navigate, OpenBookFromList, Unhandled, notify_error, notify_success
from hardcover_tui.core.events import KeyPressed, Settled
from hardcover_tui.core.overlay import ModalAction, SelectModal, SelectOption
from hardcover_tui.core.screen import Capability, binding
from hardcover_tui.output.keys import is_printable, key_text
from hardcover_tui.screens.base import DataScreen, ScreenContext, modal_width, truncate

logger = logging.getLogger(__name__)

LIST_KEY = "list-select"


class Mode(StrEnum):
    NORMAL = "normal"
    BOOKS = "books"
    CREATE = "create"
    ADD_BOOK = "add-book"
    CONFIRM = "confirm"


NORMAL_BINDINGS = [
    binding("j", "down", help="j/k", desc="select list"),
    binding("enter", "l", help="enter", desc="books"),
    binding("n", help="n", desc="new"),
    binding("a", help="a", desc="add book"),
    binding("p", help="p", desc="privacy"),
    binding("d", help="d", desc="delete"),
]

BOOKS_BINDINGS = [
    binding("j", "down", help="j/k", desc="move"),
    binding("enter", help="enter", desc="open"),
    binding("x", help="x", desc="remove"),
    binding("esc", "h", help="esc", desc="lists"),
]

INPUT_BINDINGS = [
    binding("enter", help="enter", desc="submit"),
    binding("tab", help="tab", desc="switch field"),
    binding("esc", help="esc", desc="cancel"),
]


class ListsScreen(DataScreen):
    title = "Lists"
    capabilities = frozenset({Capability.SIZE, Capability.INPUT_FOCUS, Capability.LOADED, Capability.HELP})

    def __init__(self, ctx: ScreenContext) -> None:
        super().__init__(ctx)
        self.mode = Mode.NORMAL
        self.lists: list[BookList] = []
        self.selected = 0
        self.books: list[ListBook] = []
        self.book_cursor = 0
        self.books_loading = False
        self.books_error: str | None = None
        self.busy = False
        self.name_input = ""
        self.search_input = ""
        self.search_focused = True
        self.search_results: list[Book] = []
        self.search_cursor = 0
        self.searching = False
        self.confirm = ConfirmDialog()
        self.modal = SelectModal()
        self._gate = DebounceGate(LIST_KEY, ctx.ui.list_debounce)

    @property
    def current_list(self) -> BookList | None:
        if 0 <= self.selected < len(self.lists):
            return self.lists[self.selected]
        return None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def initialize(self) -> list[Any]:
        self.begin_load()
        self._gate.reset()
        return self.load_lists()

    def load_lists(self) -> list[Any]:
        source, user_id = self.ctx.source, self.user_id
        return [self.primary("lists.load", lambda: queries.get_lists(source, user_id))]

    def load_books(self, list_id: int) -> list[Any]:
        self.books_loading = True
        self.books_error = None
        source = self.ctx.source
        return [self.primary("lists.books", lambda: queries.get_list_books(source, list_id), tag=list_id)]

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def input_focused(self) -> bool:
        return self.mode is not Mode.NORMAL or self.modal.active

    def help_bindings(self) -> list:
        if self.mode is Mode.BOOKS:
            return BOOKS_BINDINGS
        if self.mode in (Mode.CREATE, Mode.ADD_BOOK):
            return INPUT_BINDINGS
        return NORMAL_BINDINGS

    def handle_event(self, event: Any) -> list[Any]:
        if isinstance(event, CommandResult):
            return self._apply_result(event)
        if isinstance(event, Settled):
            current = self.current_list
            if self._gate.accept(event) and current is not None:
                return self.load_books(current.id)
            return []
        if isinstance(event, KeyPressed):
            return self._key(event.key)
        return []

    def _apply_result(self, result: CommandResult) -> list[Any]:
        handler = getattr(self, f"_on_{result.kind.removeprefix('lists.')}", None)
        if handler is None:
            logger.debug("Unexpected result kind %s", result.kind)
            return []
        return handler(result)

    def _on_load(self, result: CommandResult) -> list[Any]:
        self.busy = False
        if not result.ok:
            self.error = self.failure(result)
            return self.ready()
        self.lists = result.data
        self.selected = min(self.selected, max(len(self.lists) - 1, 0))
        self.books = []
        effects = self.ready()
        current = self.current_list
        if current is not None:
            effects.extend(self.load_books(current.id))
        return effects

    def _on_books(self, result: CommandResult) -> list[Any]:
        current = self.current_list
        if current is None or result.tag != current.id:
            return []
        self.books_loading = False
        if not result.ok:
            self.books_error = self.failure(result)
            return []
        self.books = result.data
        self.book_cursor = min(self.book_cursor, max(len(self.books) - 1, 0))
        return []

    def _on_create(self, result: CommandResult) -> list[Any]:
        self.busy = False
        if not result.ok:
            return [notify_error(self.failure(result))]
        self.mode = Mode.NORMAL
        self.name_input = ""
        return [*self.load_lists(), notify_success("List created")]

    def _on_delete(self, result: CommandResult) -> list[Any]:
        self.busy = False
        if not result.ok:
            return [notify_error(self.failure(result))]
        return [*self.load_lists(), notify_success("List deleted")]

    def _on_privacy(self, result: CommandResult) -> list[Any]:
        self.modal.resolve()
        if not result.ok:
            return [notify_error(self.failure(result))]
        return [*self.load_lists(), notify_success("Privacy updated")]

    def _on_search(self, result: CommandResult) -> list[Any]:
        if self.mode is not Mode.ADD_BOOK or result.tag != self.search_input.strip():
            return []
        self.searching = False
        if not result.ok:
            return [notify_error(self.failure(result))]
        self.search_results = result.data
        self.search_cursor = 0
        if self.search_results:
            self.search_focused = False
        return []

    def _on_add(self, result: CommandResult) -> list[Any]:
        if not result.ok:
            return [notify_error(self.failure(result))]
        effects: list[Any] = [notify_success("Book added to list")]
        current = self.current_list
        if current is not None and current.id == result.tag:
            effects.extend(self.load_books(current.id))
        return effects

    def _on_remove(self, result: CommandResult) -> list[Any]:
        if not result.ok:
            return [notify_error(self.failure(result))]
        effects: list[Any] = [notify_success("Book removed from list")]
        current = self.current_list
        if current is not None and current.id == result.tag:
            effects.extend(self.load_books(current.id))
        return effects

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def _key(self, key: str) -> list[Any]:
        if self.modal.active:
            return self._modal_key(key)
        if self.mode is Mode.CONFIRM:
            return self._confirm_key(key)
        if self.mode is Mode.CREATE:
            return self._create_key(key)
        if self.mode is Mode.ADD_BOOK:
            return self._add_key(key)
        if self.busy or self.loading:
            return []
        if self.mode is Mode.BOOKS:
            return self._books_key(key)
        return self._normal_key(key)

    def _normal_key(self, key: str) -> list[Any]:
        current = self.current_list
        if key in ("j", "down", "k", "up"):
            if not self.lists:
                return []
            step = 1 if key in ("j", "down") else -1
            self.selected = (self.selected + step) % len(self.lists)
            self.books = []
            self.book_cursor = 0
            self.books_loading = True
            self.books_error = None
            return [self._gate.arm()]
        if key in ("enter", "l", "right"):
            if self.books:
                self.mode = Mode.BOOKS
        elif key == "n":
            self.mode = Mode.CREATE
            self.name_input = ""
        elif key == "a" and current is not None:
            self.mode = Mode.ADD_BOOK
            self.search_input = ""
            self.search_results = []
            self.search_focused = True
        elif key == "d" and current is not None:
            self.confirm.open(
                f'Delete list "{current.name}"? This cannot be undone.',
                "delete-list",
                return_to=Mode.NORMAL,
                payload=current.id,
            )
            self.mode = Mode.CONFIRM
        elif key == "p" and current is not None:
            options = [SelectOption(p.label, p) for p in Privacy]
            self.modal.open("privacy", "List privacy", options, cursor=current.privacy_setting_id - 1)
        return []

    def _books_key(self, key: str) -> list[Any]:
        if key in ("j", "down"):
            self.book_cursor = min(self.book_cursor + 1, max(len(self.books) - 1, 0))
        elif key in ("k", "up"):
            self.book_cursor = max(self.book_cursor - 1, 0)
        elif key in ("esc", "h", "left"):
            self.mode = Mode.NORMAL
        elif key == "enter" and self.books:
            return [Navigate(self._open_request())]
        elif key == "x" and self.books:
            entry = self.books[self.book_cursor]
            title = entry.book.title if entry.book else f"Book {entry.book_id}"
            self.confirm.open(
                f'Remove "{title}" from this list?',
                "remove-book",
                return_to=Mode.BOOKS,
                payload=entry.id,
            )
            self.mode = Mode.CONFIRM
        else:
            return [Unhandled()]
        return []

    def _open_request(self) -> OpenBookFromList:
        current = self.current_list
        assert current is not None
        entry = self.books[self.book_cursor]
        return OpenBookFromList(
            book_id=entry.book_id,
            list_id=current.id,
            list_name=current.name,
            book_ids=tuple(b.book_id for b in self.books),
            title=entry.book.title if entry.book else "",
        )

    def _confirm_key(self, key: str) -> list[Any]:
        confirmed, _ = self.confirm.handle_key(key)
        if self.confirm.active:
            return []
        self.mode = self.confirm.return_to or Mode.NORMAL
        if not confirmed:
            return []
        source = self.ctx.source
        subject = self.confirm.payload
        if self.confirm.action == "delete-list":
            self.mode = Mode.NORMAL
            self.busy = True
            return [self.primary("lists.delete", lambda: mutations.delete_list(source, subject), tag=subject)]
        if self.confirm.action == "remove-book":
            current = self.current_list
            list_id = current.id if current is not None else None
            return [self.primary("lists.remove", lambda: mutations.delete_list_book(source, subject), tag=list_id)]
        return []

    def _modal_key(self, key: str) -> list[Any]:
        action = self.modal.handle_key(key)
        current = self.current_list
        if action is not ModalAction.COMMITTED or current is None:
            return []
        privacy, source, list_id = self.modal.selection, self.ctx.source, current.id
        return [
            self.primary(
                "lists.privacy",
                lambda: mutations.update_list_privacy(source, list_id, privacy),
                tag=list_id,
            )
        ]

    def _create_key(self, key: str) -> list[Any]:
        if self.busy:
            return []
        if key == "esc":
            self.mode = Mode.NORMAL
            self.name_input = ""
        elif key == "enter":
            name = self.name_input.strip()
            if name:
                self.busy = True
                source = self.ctx.source
                return [self.primary("lists.create", lambda: mutations.insert_list(source, name))]
        elif key == "backspace":
            self.name_input = self.name_input[:-1]
        elif is_printable(key):
            self.name_input += key_text(key)
        return []

    def _add_key(self, key: str) -> list[Any]:
        if key == "esc":
            self.mode = Mode.NORMAL
            self.search_input = ""
            self.search_results = []
            self.searching = False
            return []
        if key == "tab":
            self.search_focused = not self.search_focused or not self.search_results
            return []
        if self.search_focused:
            if key == "enter":
                query = self.search_input.strip()
                if query:
                    self.searching = True
                    source = self.ctx.source
                    return [self.primary("lists.search", lambda: queries.search_books(source, query), tag=query)]
            elif key == "backspace":
                self.search_input = self.search_input[:-1]
            elif is_printable(key):
                self.search_input += key_text(key)
            return []
        if key in ("j", "down"):
            self.search_cursor = min(self.search_cursor + 1, len(self.search_results) - 1)
        elif key in ("k", "up"):
            self.search_cursor = max(self.search_cursor - 1, 0)
        elif key == "enter":
            current = self.current_list
            if current is not None and self.search_results:
                book_id, list_id, source = self.search_results[self.search_cursor].id, current.id, self.ctx.source
                return [
                    self.primary(
                        "lists.add",
                        lambda: mutations.insert_list_book(source, list_id, book_id),
                        tag=list_id,
                    )
                ]
        return []

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> RenderableType:
        status = self.render_status()
        if status is not None:
            return status
        if self.mode is Mode.CREATE:
            base: RenderableType = self._render_create()
        elif self.mode is Mode.ADD_BOOK:
            base = self._render_add()
        else:
            base = self._render_panes()
        width = modal_width(self.width)
        if self.modal.active:
            return self.with_overlay(base, self.modal.render(width), width)
        if self.mode is Mode.CONFIRM:
            return self.with_overlay(base, self.confirm.render(width), width)
        return base

    def _render_panes(self) -> RenderableType:
        left = Text(end="")
        if not self.lists:
            left.append(" No lists yet. Press n to create one.", style="hc.muted")
        for index, item in enumerate(self.lists):
            if index:
                left.append("\n")
            style = "hc.cursor" if index == self.selected else "hc.text"
            left.append(f" {truncate(item.name, 28)} ", style=style)
            left.append(f"{item.books_count} · {item.privacy_label.lower()}", style="hc.muted")

        if self.books_loading:
            right: RenderableType = Text(" Loading books…", style="hc.muted")
        elif self.books_error:
            right = Text(f" Error: {self.books_error}", style="hc.error")
        elif not self.books:
            right = Text(" This list is empty.", style="hc.muted")
        else:
            table = Table(box=None, expand=True, show_edge=False, show_header=False, pad_edge=False)
            table.add_column("#", width=3, justify="right", style="hc.muted")
            table.add_column("Title", ratio=3, no_wrap=True)
            table.add_column("Author", ratio=2, no_wrap=True, style="hc.muted")
            for index, entry in enumerate(self.books):
                book = entry.book
                focused = self.mode is Mode.BOOKS and index == self.book_cursor
                table.add_row(
                    str(index + 1),
                    book.title if book else f"Book {entry.book_id}",
                    book.authors if book else "",
                    style="hc.cursor" if focused else None,
                )
            right = table

        grid = Table.grid(expand=True, padding=(0, 2))
        grid.add_column(ratio=1)
        grid.add_column(ratio=2)
        grid.add_row(left, right)
        return grid

    def _render_create(self) -> RenderableType:
        line = Text(" New list name: ", style="hc.label")
        line.append(self.name_input, style="hc.value")
        line.append("▏", style="hc.primary")
        if self.busy:
            line.append("  creating…", style="hc.muted")
        return line

    def _render_add(self) -> RenderableType:
        current = self.current_list
        header = Text(f" Add to {current.name if current else 'list'}: ", style="hc.label")
        header.append(self.search_input, style="hc.value")
        if self.search_focused:
            header.append("▏", style="hc.primary")
        if self.searching:
            header.append("  searching…", style="hc.muted")
        rows = Text(end="")
        for index, book in enumerate(self.search_results):
            if index:
                rows.append("\n")
            style = "hc.cursor" if index == self.search_cursor and not self.search_focused else "hc.text"
            rows.append(f"  {truncate(book.title, 50)}", style=style)
            rows.append(f"  {book.authors}", style="hc.muted")
        return Group(header, Text(""), rows)
