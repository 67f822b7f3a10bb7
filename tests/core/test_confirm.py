"""Tests for the yes/no confirmation dialog."""

from __future__ import annotations

import pytest

from hardcover_tui.core.confirm import NO, YES, ConfirmDialog
from hardcover_tui.output.renderer import render_lines, to_plain


class TestConfirmDialog:
    def test_starts_on_no(self) -> None:
        dialog = ConfirmDialog()
        dialog.open("Sure?", "logout")
        assert dialog.active
        assert dialog.cursor == NO

    def test_enter_on_default_cancels(self) -> None:
        dialog = ConfirmDialog()
        dialog.open("Sure?", "logout")
        assert dialog.handle_key("enter") == (False, True)
        assert not dialog.active

    @pytest.mark.parametrize("key", ["k", "up", "h", "left"])
    def test_move_to_yes_then_enter(self, key: str) -> None:
        dialog = ConfirmDialog()
        dialog.open("Sure?", "logout")
        dialog.handle_key(key)
        assert dialog.cursor == YES
        assert dialog.handle_key("enter") == (True, True)

    def test_y_confirms_immediately(self) -> None:
        dialog = ConfirmDialog()
        dialog.open("Sure?", "delete-list", payload=4)
        assert dialog.handle_key("y") == (True, True)
        assert dialog.payload == 4

    @pytest.mark.parametrize("key", ["n", "esc"])
    def test_cancel_keys(self, key: str) -> None:
        dialog = ConfirmDialog()
        dialog.open("Sure?", "logout")
        assert dialog.handle_key(key) == (False, True)
        assert not dialog.active

    def test_other_keys_are_swallowed(self) -> None:
        dialog = ConfirmDialog()
        dialog.open("Sure?", "logout")
        assert dialog.handle_key("q") == (False, True)
        assert dialog.active

    def test_reopen_resets_cursor(self) -> None:
        dialog = ConfirmDialog()
        dialog.open("Sure?", "logout")
        dialog.handle_key("k")
        dialog.handle_key("esc")
        dialog.open("Again?", "logout")
        assert dialog.cursor == NO

    def test_render(self) -> None:
        dialog = ConfirmDialog()
        dialog.open("Delete this?", "delete-list")
        text = to_plain(render_lines(dialog.render(40), 40))
        assert "Delete this?" in text
        assert "Yes" in text and "No" in text

    def test_return_to_is_kept_for_the_owner(self) -> None:
        dialog = ConfirmDialog()
        dialog.open("Sure?", "delete-list", return_to="browse", payload=3)
        dialog.handle_key("n")
        assert (dialog.return_to, dialog.action) == ("browse", "delete-list")
