"""Tests for the review editor."""

from __future__ import annotations

from typing import Any

import pytest

from hardcover_tui.api.errors import ServerError
from hardcover_tui.core.effects import GoBack, Navigate, Notify, ScreenReady, Unhandled
from hardcover_tui.output.renderer import render_lines, to_plain
from hardcover_tui.screens.base import ScreenContext
from hardcover_tui.screens.review import EDIT_BINDINGS, VIEW_BINDINGS, ReviewScreen
from tests.conftest import FakeSource, press, settle, user_book_payload


def _user_book(review: str | None = "Loved it", spoilers: bool | None = True) -> dict[str, Any]:
    payload = user_book_payload(55, 8, 3, title="The Hobbit", rating=4.5)
    payload.update({"review": review, "review_has_spoilers": spoilers})
    return payload


@pytest.fixture
def review(source: FakeSource, ctx: ScreenContext) -> ReviewScreen:
    source.responses.update(
        {
            "GetUserBook": {"user_books_by_pk": _user_book()},
            "UpdateUserBookReview": {"update_user_book": {"id": 55}},
        }
    )
    screen = ReviewScreen(ctx, 55)
    screen.set_size(100, 20)
    return screen


def _notices(effects: list[Any]) -> list[str]:
    return [effect.message for effect in effects if isinstance(effect, Notify)]


class TestReview:
    def test_load(self, source: FakeSource, review: ReviewScreen) -> None:
        assert settle(review, review.initialize()) == [ScreenReady()]
        assert source.calls_to("GetUserBook")[0].variables == {"id": 55}
        assert review.draft == "Loved it"
        assert review.spoilers
        assert review.input_focused()
        text = to_plain(render_lines(review.render(), 100, 20))
        assert "Review: The Hobbit" in text
        assert "Loved it" in text
        assert "Spoilers: yes" in text
        assert "4.5" in text

    def test_save(self, source: FakeSource, review: ReviewScreen) -> None:
        settle(review, review.initialize())
        press(review, "space", "!", "q")
        assert review.draft == "Loved it !q"
        produced = settle(review, press(review, "ctrl+s"))
        assert _notices(produced) == ["Review saved"]
        assert Navigate(GoBack()) in produced
        (call,) = source.calls_to("UpdateUserBookReview")
        assert call.variables == {"id": 55, "review": "Loved it !q", "spoilers": True}

    def test_blank_review_not_saved(self, source: FakeSource, review: ReviewScreen) -> None:
        source.responses["GetUserBook"] = {"user_books_by_pk": _user_book(review=None, spoilers=None)}
        settle(review, review.initialize())
        assert not review.spoilers
        press(review, "space", "enter")
        assert press(review, "ctrl+s") == []

    def test_save_failure_keeps_draft(self, source: FakeSource, review: ReviewScreen) -> None:
        source.responses["UpdateUserBookReview"] = ServerError("review too long")
        settle(review, review.initialize())
        produced = settle(review, press(review, "ctrl+s"))
        assert _notices(produced) == ["review too long"]
        assert not review.saving
        assert review.draft == "Loved it"

    def test_keys_ignored_while_saving(self, review: ReviewScreen) -> None:
        settle(review, review.initialize())
        press(review, "ctrl+s")
        assert review.saving
        press(review, "x", "backspace")
        assert review.draft == "Loved it"

    def test_view_mode_keys(self, review: ReviewScreen) -> None:
        settle(review, review.initialize())
        assert review.help_bindings() == EDIT_BINDINGS
        press(review, "esc")
        assert not review.editing
        assert not review.input_focused()
        assert review.help_bindings() == VIEW_BINDINGS
        press(review, "s")
        assert not review.spoilers
        assert press(review, "esc") == [Unhandled()]
        assert press(review, "2") == [Unhandled()]
        press(review, "i")
        assert review.editing

    def test_load_failure(self, source: FakeSource, review: ReviewScreen) -> None:
        source.responses["GetUserBook"] = ServerError("HTTP 500")
        assert settle(review, review.initialize()) == [ScreenReady()]
        assert "Error: HTTP 500" in to_plain(render_lines(review.render(), 100, 20))
        press(review, "x")
        assert press(review, "ctrl+s") == []
