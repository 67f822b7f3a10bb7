"""Tests for overlay compositing, the select modal and the loader."""

from __future__ import annotations

import random

from rich.text import Text

from hardcover_tui.core.overlay import (
    LOADER_QUOTES,
    SWEEP_FRAMES,
    Anchor,
    Loader,
    ModalAction,
    ModalState,
    SelectModal,
    SelectOption,
    composite,
    crop,
)
from hardcover_tui.output.renderer import render_lines, to_plain


def _buffer(*rows: str) -> list[Text]:
    return [Text(row) for row in rows]


class TestCrop:
    def test_ascii(self) -> None:
        assert crop(Text("abcdef"), 1, 4).plain == "bcd"

    def test_pads_short_lines(self) -> None:
        assert crop(Text("ab"), 0, 5).plain == "ab   "

    def test_wide_char_straddling_start_becomes_space(self) -> None:
        # "書" occupies cells 1-2; starting at cell 2 cuts it in half.
        result = crop(Text("a書b"), 2, 4)
        assert result.plain == " b"
        assert result.cell_len == 2

    def test_wide_char_straddling_end_becomes_space(self) -> None:
        result = crop(Text("a書b"), 0, 2)
        assert result.plain == "a "
        assert result.cell_len == 2

    def test_empty_range(self) -> None:
        assert crop(Text("abc"), 2, 2).plain == ""


class TestComposite:
    def test_center(self) -> None:
        background = _buffer(".....", ".....", ".....")
        result = composite(_buffer("X"), background, Anchor.CENTER)
        assert [line.plain for line in result] == [".....", "..X..", "....."]

    def test_top_right_with_margin(self) -> None:
        background = _buffer("......", "......", "......")
        result = composite(_buffer("AB"), background, Anchor.TOP_RIGHT, margin=1)
        assert [line.plain for line in result] == ["......", "...AB.", "......"]

    def test_does_not_mutate_inputs(self) -> None:
        background = _buffer("aaaa", "bbbb")
        foreground = _buffer("XY")
        composite(foreground, background, Anchor.TOP_LEFT)
        assert [line.plain for line in background] == ["aaaa", "bbbb"]
        assert foreground[0].plain == "XY"

    def test_columns_right_of_wide_chars_stay_aligned(self) -> None:
        background = _buffer("書書書書")
        result = composite(_buffer("X"), background, Anchor.CENTER)
        assert result[0].cell_len == 8
        assert result[0].plain == "書 X書書"

    def test_foreground_larger_than_background_is_clipped(self) -> None:
        result = composite(_buffer("XXXXXX", "YYYYYY", "ZZZZZZ"), _buffer("ab", "cd"), Anchor.CENTER)
        assert [line.plain for line in result] == ["XX", "YY"]

    def test_pads_to_requested_size(self) -> None:
        result = composite([], _buffer("ab"), width=4, height=3)
        assert [line.plain for line in result] == ["ab  ", "    ", "    "]


class TestSelectModal:
    def _modal(self) -> SelectModal:
        modal = SelectModal()
        modal.open("status", "Set status", [SelectOption("One", 1), SelectOption("Two", 2), SelectOption("Three", 3)])
        return modal

    def test_closed_ignores_keys(self) -> None:
        assert SelectModal().handle_key("enter") is ModalAction.IGNORED

    def test_cursor_clamped(self) -> None:
        modal = self._modal()
        assert modal.handle_key("k") is ModalAction.MOVED
        assert modal.cursor == 0
        modal.handle_key("j")
        modal.handle_key("j")
        modal.handle_key("j")
        assert modal.cursor == 2

    def test_commit_then_resolve(self) -> None:
        modal = self._modal()
        modal.handle_key("j")
        assert modal.handle_key("enter") is ModalAction.COMMITTED
        assert modal.state is ModalState.LOADING
        assert modal.handle_key("esc") is ModalAction.BLOCKED
        assert modal.resolve() == 2
        assert not modal.active

    def test_escape_cancels(self) -> None:
        modal = self._modal()
        assert modal.handle_key("esc") is ModalAction.CANCELLED
        assert modal.state is ModalState.CLOSED

    def test_initial_cursor_is_clamped(self) -> None:
        modal = SelectModal()
        modal.open("x", "X", [SelectOption("a", 1)], cursor=9)
        assert modal.cursor == 0

    def test_render_marks_cursor(self) -> None:
        modal = self._modal()
        modal.handle_key("j")
        text = to_plain(render_lines(modal.render(30), 30))
        assert "▸ Two" in text
        assert "Set status" in text


class TestLoader:
    def test_start_picks_quote(self) -> None:
        loader = Loader(random.Random(3))
        loader.start()
        assert loader.active
        assert loader.quote in LOADER_QUOTES

    def test_tick_only_while_active(self) -> None:
        loader = Loader()
        loader.tick()
        assert loader.frame == 0
        loader.start()
        loader.tick()
        assert loader.frame == 1

    def test_position_sweeps_back_and_forth(self) -> None:
        loader = Loader()
        loader.frame = 0
        assert loader.position() == 0.0
        loader.frame = SWEEP_FRAMES
        assert loader.position() == 1.0
        loader.frame = 2 * SWEEP_FRAMES
        assert loader.position() == 0.0

    def test_render_fills_screen(self) -> None:
        loader = Loader(random.Random(1))
        loader.start()
        buffer = render_lines(loader.render(60, 10), 60, 10)
        assert len(buffer) == 10
        assert loader.quote[:20] in to_plain(buffer)
