"""Tests for the navigation stack."""

from __future__ import annotations

from typing import Any

from rich.text import Text

from hardcover_tui.core.navigation import NavigationStack
from hardcover_tui.core.screen import Screen


class Dummy(Screen):
    def handle_event(self, event: Any) -> list[Any]:
        return []

    def render(self) -> Text:
        return Text("dummy")


class TestNavigationStack:
    def test_pop_never_below_one(self) -> None:
        stack = NavigationStack()
        stack.push("Home", Dummy())
        assert stack.pop() is False
        assert stack.depth == 1

    def test_push_pop(self) -> None:
        stack = NavigationStack()
        root, child = Dummy(), Dummy()
        stack.push("Home", root)
        stack.push("Book", child)
        assert stack.top() is child
        assert stack.summary() == ["Home", "Book"]
        assert stack.pop() is True
        assert stack.top() is root

    def test_reset_replaces_everything(self) -> None:
        stack = NavigationStack()
        stack.push("Home", Dummy())
        stack.push("Book", Dummy())
        fresh = Dummy()
        stack.reset("Lists", fresh)
        assert stack.depth == 1
        assert stack.top() is fresh
        assert stack.summary() == ["Lists"]

    def test_find_by_screen_id(self) -> None:
        stack = NavigationStack()
        screen = Dummy()
        stack.push("Home", screen)
        assert stack.find(screen.screen_id) is screen
        assert screen.screen_id in stack
        assert stack.find("missing") is None

    def test_screen_ids_are_unique(self) -> None:
        assert Dummy().screen_id != Dummy().screen_id

    def test_clear(self) -> None:
        stack = NavigationStack()
        stack.push("Home", Dummy())
        stack.clear()
        assert stack.top() is None
        assert stack.depth == 0
