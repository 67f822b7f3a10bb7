"""Stats tab: how the library splits across reading statuses."""

from __future__ import annotations

from typing import Any

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from hardcover_tui.api import queries
from hardcover_tui.api.models import ReadingStatus
from hardcover_tui.core.commands import CommandResult
from hardcover_tui.core.screen import Capability, binding
from hardcover_tui.output.console import style_for_status
from hardcover_tui.screens.base import DataScreen, ScreenContext

BINDINGS = [binding("4", help="4", desc="reload")]

BAR_CHAR = "█"


class StatsScreen(DataScreen):
    title = "Stats"
    capabilities = frozenset({Capability.SIZE, Capability.LOADED, Capability.HELP})

    def __init__(self, ctx: ScreenContext) -> None:
        super().__init__(ctx)
        self.counts: dict[ReadingStatus, int] = {}

    @property
    def total(self) -> int:
        return sum(count for status, count in self.counts.items() if status is not ReadingStatus.IGNORED)

    def initialize(self) -> list[Any]:
        self.begin_load()
        source, user_id = self.ctx.source, self.user_id
        return [self.primary("stats.counts", lambda: queries.get_status_counts(source, user_id))]

    def help_bindings(self) -> list:
        return BINDINGS

    def handle_event(self, event: Any) -> list[Any]:
        if isinstance(event, CommandResult) and event.kind == "stats.counts":
            if event.ok:
                self.counts = event.data
            else:
                self.error = self.failure(event)
            return self.ready()
        return []

    def render(self) -> RenderableType:
        status = self.render_status()
        if status is not None:
            return status
        peak = max(self.counts.values(), default=0)
        bar_width = max(self.width - 32, 10)
        table = Table(box=None, show_header=False, pad_edge=False, expand=True)
        table.add_column("Status", width=18, style="hc.label", no_wrap=True)
        table.add_column("Count", width=6, justify="right", style="hc.value")
        table.add_column("Bar", ratio=1, no_wrap=True)
        for reading_status in ReadingStatus:
            count = self.counts.get(reading_status, 0)
            length = round(bar_width * count / peak) if peak else 0
            if count and not length:
                length = 1
            table.add_row(
                reading_status.label,
                str(count),
                Text(BAR_CHAR * length, style=style_for_status(reading_status)),
            )

        finished = self.counts.get(ReadingStatus.READ, 0)
        share = f"{finished / self.total:.0%}" if self.total else "-"
        summary = Text.assemble(
            (" Books tracked: ", "hc.muted"),
            (str(self.total), "hc.value"),
            ("   finished: ", "hc.muted"),
            (share, "hc.value"),
        )
        return Group(Text(" Reading status", style="hc.primary"), Text(""), table, Text(""), summary)
