"""Tab registry: the four root screens reachable with 1-4 and tab."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from hardcover_tui.core.screen import Screen
from hardcover_tui.screens.base import ScreenContext
from hardcover_tui.screens.home import HomeScreen
from hardcover_tui.screens.lists import ListsScreen
from hardcover_tui.screens.search import SearchScreen
from hardcover_tui.screens.stats import StatsScreen


@dataclass(frozen=True)
class Tab:
    title: str
    factory: Callable[[ScreenContext], Screen]


TABS: tuple[Tab, ...] = (
    Tab("Home", HomeScreen),
    Tab("Search", SearchScreen),
    Tab("Lists", ListsScreen),
    Tab("Stats", StatsScreen),
)


def next_tab(index: int, step: int = 1) -> int:
    return (index + step) % len(TABS)
