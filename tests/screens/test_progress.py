"""Tests for the progress and dates form."""

from __future__ import annotations

from typing import Any

import pytest

from hardcover_tui.api.errors import ServerError
from hardcover_tui.core.effects import GoBack, Navigate, Notify, ScreenReady, Unhandled
from hardcover_tui.output.renderer import render_lines, to_plain
from hardcover_tui.screens.base import ScreenContext
from hardcover_tui.screens.progress import Field, ProgressScreen, parse_date
from tests.conftest import FakeSource, book_payload, press, schedules, settle, user_book_payload

READ = {"id": 300, "progress_pages": 120, "started_at": "2024-05-01T00:00:00+00:00", "finished_at": None}


def _user_book(reads: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    payload = user_book_payload(55, 8, 2)
    payload["book"] = book_payload(8, "The Hobbit", pages=300)
    payload["user_book_reads"] = [READ] if reads is None else reads
    return payload


@pytest.fixture
def progress(source: FakeSource, ctx: ScreenContext) -> ProgressScreen:
    source.responses.update(
        {
            "GetUserBook": {"user_books_by_pk": _user_book()},
            "UpdateUserBookRead": {"update_user_book_read": {"id": 300}},
            "UpdateUserBookReadDates": {"update_user_book_read": {"id": 300}},
        }
    )
    screen = ProgressScreen(ctx, 55)
    screen.set_size(100, 20)
    return screen


def _notices(effects: list[Any]) -> list[str]:
    return [effect.message for effect in effects if isinstance(effect, Notify)]


class TestProgress:
    def test_load_fills_fields(self, progress: ProgressScreen) -> None:
        assert settle(progress, progress.initialize()) == [ScreenReady()]
        assert progress.values == {Field.PAGE: "120", Field.STARTED: "2024-05-01", Field.FINISHED: ""}
        text = to_plain(render_lines(progress.render(), 100, 20))
        assert "Update progress: The Hobbit" in text
        assert "Total pages: 300" in text
        assert "40%" in text

    def test_update_page_after_confirm(self, source: FakeSource, progress: ProgressScreen) -> None:
        settle(progress, progress.initialize())
        press(progress, "ctrl+u", "1", "5", "0", "enter")
        assert progress.confirm.active
        assert "Page: 150" in progress.confirm.message
        produced = settle(progress, press(progress, "y"))
        assert _notices(produced) == ["Progress updated"]
        assert Navigate(GoBack()) in produced
        assert source.calls_to("UpdateUserBookRead")[0].variables == {"id": 300, "progressPages": 150}
        dates = source.calls_to("UpdateUserBookReadDates")[0].variables
        assert dates == {"id": 300, "startedAt": "2024-05-01", "finishedAt": None}

    def test_finish_date(self, source: FakeSource, progress: ProgressScreen) -> None:
        settle(progress, progress.initialize())
        press(progress, "shift+tab", *"2024-06-30", "enter")
        assert "Finished: 2024-06-30" in progress.confirm.message
        settle(progress, press(progress, "y"))
        assert source.calls_to("UpdateUserBookReadDates")[0].variables["finishedAt"] == "2024-06-30"

    def test_no_dates_skips_date_update(self, source: FakeSource, progress: ProgressScreen) -> None:
        settle(progress, progress.initialize())
        press(progress, "tab", "ctrl+u", "enter")
        settle(progress, press(progress, "y"))
        assert source.operations()[-1] == "UpdateUserBookRead"
        assert source.calls_to("UpdateUserBookReadDates") == []

    def test_declined_confirm_sends_nothing(self, progress: ProgressScreen) -> None:
        settle(progress, progress.initialize())
        press(progress, "enter")
        assert press(progress, "n") == []
        assert not progress.confirm.active

    def test_invalid_page(self, progress: ProgressScreen) -> None:
        settle(progress, progress.initialize())
        press(progress, "ctrl+u", "enter")
        assert progress.invalid == "Please enter a valid page number"
        assert not progress.confirm.active
        assert "Please enter a valid page number" in to_plain(render_lines(progress.render(), 100, 20))

    def test_invalid_date(self, progress: ProgressScreen) -> None:
        settle(progress, progress.initialize())
        press(progress, "tab", "ctrl+u", *"2024-13-01", "enter")
        assert progress.invalid == "Dates must look like 2024-01-31"
        assert not progress.confirm.active

    def test_field_accepts_only_its_characters(self, progress: ProgressScreen) -> None:
        settle(progress, progress.initialize())
        assert press(progress, "q") == []
        assert press(progress, "-") == []
        assert progress.values[Field.PAGE] == "120"
        assert press(progress, "ctrl+q") == [Unhandled()]
        assert press(progress, "esc") == [Unhandled()]

    def test_no_active_read(self, source: FakeSource, progress: ProgressScreen) -> None:
        source.responses["GetUserBook"] = {"user_books_by_pk": _user_book(reads=[])}
        settle(progress, progress.initialize())
        assert "No active read found" in to_plain(render_lines(progress.render(), 100, 20))
        assert _notices(press(progress, "1", "enter")) == ["No active read found"]

    def test_save_failure(self, source: FakeSource, progress: ProgressScreen) -> None:
        source.responses["UpdateUserBookRead"] = ServerError("HTTP 500")
        settle(progress, progress.initialize())
        press(progress, "enter")
        (effect,) = schedules(press(progress, "y"))
        assert progress.saving
        assert press(progress, "1") == []
        produced = settle(progress, [effect])
        assert _notices(produced) == ["HTTP 500"]
        assert not progress.saving


class TestParseDate:
    def test_blank_is_unset(self) -> None:
        assert parse_date("  ") is None

    def test_normalises(self) -> None:
        assert parse_date(" 2024-01-31 ") == "2024-01-31"

    def test_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            parse_date("2024-1")
