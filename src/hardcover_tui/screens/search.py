"""Search tab: free-text book search."""

from __future__ import annotations

from typing import Any

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from hardcover_tui.api import queries
from hardcover_tui.api.models import Book
from hardcover_tui.core.commands import CommandResult
from hardcover_tui.core.effects import Navigate, OpenBook, Unhandled
from hardcover_tui.core.events import KeyPressed
from hardcover_tui.core.screen import Capability, binding
from hardcover_tui.output.keys import is_printable, key_text
from hardcover_tui.screens.base import DataScreen, ScreenContext, rating_text, truncate

TYPING_BINDINGS = [
    binding("enter", help="enter", desc="search"),
    binding("esc", help="esc", desc="results"),
]

RESULT_BINDINGS = [
    binding("j", "down", help="j/k", desc="move"),
    binding("enter", help="enter", desc="open"),
    binding("/", "esc", help="/", desc="edit query"),
]


class SearchScreen(DataScreen):
    """Query input on top, results table below.

    The screen owns every key while the query field is focused and while it
    has results to move through; keys it does not use come back as
    :class:`Unhandled` so tab switching still works from the results table.
    """

    title = "Search"
    capabilities = frozenset({Capability.SIZE, Capability.INPUT_FOCUS, Capability.LOADED, Capability.HELP})

    def __init__(self, ctx: ScreenContext) -> None:
        super().__init__(ctx)
        self.query = ""
        self.typing = True
        self.searching = False
        self.results: list[Book] = []
        self.cursor = 0
        self._pending_query: str | None = None

    def initialize(self) -> list[Any]:
        # Nothing to fetch until the user submits a query.
        return self.ready()

    def input_focused(self) -> bool:
        return self.typing or bool(self.results)

    def help_bindings(self) -> list:
        return TYPING_BINDINGS if self.typing else RESULT_BINDINGS

    def handle_event(self, event: Any) -> list[Any]:
        if isinstance(event, CommandResult):
            return self._apply_result(event)
        if isinstance(event, KeyPressed):
            if self.typing:
                return self._typing_key(event.key)
            return self._results_key(event.key)
        return []

    def search(self, query: str) -> list[Any]:
        self.searching = True
        self.error = None
        self._pending_query = query
        source = self.ctx.source
        return [self.primary("search.books", lambda: queries.search_books(source, query), tag=query)]

    def _apply_result(self, result: CommandResult) -> list[Any]:
        if result.kind != "search.books" or result.tag != self._pending_query:
            return []
        self.searching = False
        self._pending_query = None
        if not result.ok:
            self.error = self.failure(result)
            return []
        self.results = result.data
        self.cursor = 0
        if self.results:
            self.typing = False
        return []

    def _typing_key(self, key: str) -> list[Any]:
        if key == "enter":
            query = self.query.strip()
            if query:
                return self.search(query)
        elif key == "esc":
            if self.results:
                self.typing = False
            else:
                return [Unhandled()]
        elif key == "backspace":
            self.query = self.query[:-1]
        elif key == "ctrl+u":
            self.query = ""
        elif is_printable(key):
            self.query += key_text(key)
        else:
            return [Unhandled()]
        return []

    def _results_key(self, key: str) -> list[Any]:
        if key in ("j", "down"):
            self.cursor = min(self.cursor + 1, len(self.results) - 1)
        elif key in ("k", "up"):
            self.cursor = max(self.cursor - 1, 0)
        elif key == "enter":
            book = self.results[self.cursor]
            return [Navigate(OpenBook(book.id, book.title))]
        elif key in ("/", "esc"):
            self.typing = True
        else:
            return [Unhandled()]
        return []

    def render(self) -> RenderableType:
        prompt = Text(" Search: ", style="hc.label")
        prompt.append(self.query, style="hc.value")
        if self.typing:
            prompt.append("▏", style="hc.primary")
        if self.searching:
            prompt.append("  searching…", style="hc.muted")
        parts: list[RenderableType] = [prompt, Text("")]
        if self.error:
            parts.append(Text(f"  Error: {self.error}", style="hc.error"))
        elif self.results:
            parts.append(self._render_results())
        elif not self.searching:
            parts.append(Text("  Type a title or author and press enter.", style="hc.muted"))
        return Group(*parts)

    def _render_results(self) -> RenderableType:
        width = max(self.width - 4, 40)
        table = Table(box=None, expand=True, show_edge=False, header_style="hc.primary", pad_edge=False)
        table.add_column("Title", ratio=3, no_wrap=True)
        table.add_column("Author", ratio=2, no_wrap=True)
        table.add_column("Year", width=4)
        table.add_column("Fmt", width=4)
        table.add_column("Rating", width=6, justify="right")
        visible = max(self.height - 4, 5)
        start = max(0, min(self.cursor - visible // 2, len(self.results) - visible))
        for index, book in enumerate(self.results[start : start + visible], start=start):
            table.add_row(
                truncate(book.title, width // 2),
                book.authors,
                str(book.release_year or ""),
                book.format_indicator,
                rating_text(book.rating),
                style="hc.cursor" if index == self.cursor and not self.typing else None,
            )
        return table
