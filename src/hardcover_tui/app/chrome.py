"""Frame chrome around the active screen: tab bar, breadcrumb, help line."""

from __future__ import annotations

from collections.abc import Sequence

from rich.text import Text

from hardcover_tui.api.models import User
from hardcover_tui.app import keymap
from hardcover_tui.app.tabs import TABS
from hardcover_tui.core.screen import KeyBinding

HEADER_HEIGHT = 2
HELP_COLUMNS = 4


def _fit(left: Text, right: Text, width: int) -> Text:
    """Left text, spaces, then *right* flush against the right edge."""
    gap = max(width - left.cell_len - right.cell_len, 1)
    line = Text.assemble(left, " " * gap, right, end="", no_wrap=True)
    line.truncate(width, pad=True)
    return line


def _bindings_text(bindings: Sequence[KeyBinding], sep: str = "  ") -> Text:
    text = Text(end="", no_wrap=True)
    for index, item in enumerate(bindings):
        if index:
            text.append(sep, style="hc.help")
        text.append(item.help_key, style="hc.key")
        text.append(f" {item.description}", style="hc.help")
    return text


def tab_bar(active: int, width: int) -> Text:
    tabs = Text(" ", end="", no_wrap=True)
    for index, tab in enumerate(TABS):
        style = "hc.tab.active" if index == active else "hc.tab.inactive"
        tabs.append(f" {index + 1} {tab.title} ", style=style)
    return _fit(tabs, _bindings_text(keymap.SHORTCUTS), width)


def breadcrumb(titles: Sequence[str], width: int) -> Text:
    """``Home > Book > Journal``; blank when only the root is on the stack."""
    line = Text(" ", end="", no_wrap=True)
    if len(titles) > 1:
        for index, title in enumerate(titles):
            if index:
                line.append(" > ", style="hc.help")
            style = "hc.label" if index == len(titles) - 1 else "hc.value"
            line.append(title, style=style)
    line.truncate(width, pad=True)
    return line


def user_badge(user: User | None) -> Text:
    badge = Text(end="", no_wrap=True)
    if user is not None:
        badge.append(f"@{user.username}", style="hc.secondary")
        if user.pro:
            badge.append(" PRO", style="hc.ok")
    return badge


def help_lines(
    bindings: Sequence[KeyBinding],
    *,
    show_all: bool,
    user: User | None,
    width: int,
) -> list[Text]:
    """Short view: one line of screen bindings. Full view: columns of four."""
    badge = user_badge(user)
    if not show_all:
        return [_fit(Text.assemble(" ", _bindings_text(bindings)), badge, width)]

    everything = [*bindings, *keymap.FULL_HELP]
    rows = [
        everything[i : i + HELP_COLUMNS] for i in range(0, len(everything), HELP_COLUMNS)
    ]
    lines = [_fit(Text.assemble(" ", _bindings_text(rows[0], sep="   ")), badge, width)]
    for row in rows[1:]:
        line = Text.assemble(" ", _bindings_text(row, sep="   "), end="", no_wrap=True)
        line.truncate(width, pad=True)
        lines.append(line)
    return lines
