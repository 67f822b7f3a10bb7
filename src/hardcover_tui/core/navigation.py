"""Navigation stack of screens.

INVARIANT: Once the first screen is pushed the stack never drops below
depth 1 through :meth:`NavigationStack.pop`. Only :meth:`clear` empties it.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hardcover_tui.core.screen import Screen


@dataclass(frozen=True)
class NavigationItem:
    title: str
    screen: Screen


class NavigationStack:
    def __init__(self) -> None:
        self._items: list[NavigationItem] = []

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, screen_id: object) -> bool:
        return any(item.screen.screen_id == screen_id for item in self._items)

    def __iter__(self) -> Iterator[NavigationItem]:
        return iter(self._items)

    @property
    def depth(self) -> int:
        return len(self._items)

    def push(self, title: str, screen: Screen) -> None:
        self._items.append(NavigationItem(title, screen))

    def pop(self) -> bool:
        """Remove the top screen. No-op returning False at depth <= 1."""
        if len(self._items) <= 1:
            return False
        self._items.pop()
        return True

    def clear(self) -> None:
        self._items.clear()

    def reset(self, title: str, screen: Screen) -> None:
        """Replace the whole stack with a single root screen."""
        self.clear()
        self.push(title, screen)

    def top(self) -> Screen | None:
        return self._items[-1].screen if self._items else None

    def top_item(self) -> NavigationItem | None:
        return self._items[-1] if self._items else None

    def summary(self) -> list[str]:
        """Titles from root to top, used for the breadcrumb."""
        return [item.title for item in self._items]

    def contains(self, screen_id: str) -> bool:
        return screen_id in self

    def find(self, screen_id: str) -> Screen | None:
        for item in self._items:
            if item.screen.screen_id == screen_id:
                return item.screen
        return None

    def screens(self) -> list[Screen]:
        return [item.screen for item in self._items]
