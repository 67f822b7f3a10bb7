"""Tests for terminal key decoding and the text renderer."""

from __future__ import annotations

import pytest
from prompt_toolkit.input.vt100_parser import Vt100Parser
from prompt_toolkit.key_binding import KeyPress
from rich.table import Table
from rich.text import Text

from hardcover_tui.output.console import style_for_status
from hardcover_tui.output.keys import is_printable, key_names, key_text
from hardcover_tui.output.renderer import blank, buffer_width, fit_height, render_lines, to_plain


def decode(*chunks: str, flush: bool = True) -> list[str]:
    """Feed raw chunks through the VT100 parser and name the resulting keys."""
    presses: list[KeyPress] = []
    parser = Vt100Parser(presses.append)
    for chunk in chunks:
        parser.feed(chunk)
    if flush:
        parser.flush()
    return [name for press in presses for name in key_names(press)]


class TestKeyNames:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("q", ["q"]),
            ("\r", ["enter"]),
            ("\x1b", ["esc"]),
            ("\x1b[A", ["up"]),
            ("\x1b[B", ["down"]),
            ("\x1b[Z", ["shift+tab"]),
            ("\x1b[3~", ["delete"]),
            ("\x1b[1;2C", ["shift+right"]),
            ("\x1bOD", ["left"]),
            ("\x03", ["ctrl+c"]),
            ("\x11", ["ctrl+q"]),
            ("\x13", ["ctrl+s"]),
            ("\x15", ["ctrl+u"]),
            ("\t", ["tab"]),
            ("\x7f", ["backspace"]),
            (" ", ["space"]),
            ("\x00", ["ctrl+space"]),
        ],
    )
    def test_single_keys(self, raw: str, expected: list[str]) -> None:
        assert decode(raw) == expected

    def test_chunk_with_several_keys(self) -> None:
        assert decode("jj\x1b[Ak") == ["j", "j", "up", "k"]

    def test_sequence_split_across_reads(self) -> None:
        assert decode("\x1b", "[A") == ["up"]
        assert decode("\x1b[", "3", "~") == ["delete"]

    def test_lone_escape_waits_for_flush(self) -> None:
        assert decode("\x1b", flush=False) == []
        assert decode("\x1b") == ["esc"]

    def test_bracketed_paste_expands_to_text(self) -> None:
        assert decode("\x1b[200~ab c\x1b[201~") == ["a", "b", "space", "c"]

    def test_unicode_passes_through(self) -> None:
        assert decode("é") == ["é"]


class TestPrintable:
    def test_printable(self) -> None:
        assert is_printable("a")
        assert is_printable("space")
        assert not is_printable("enter")
        assert not is_printable("ctrl+c")

    def test_key_text(self) -> None:
        assert key_text("space") == " "
        assert key_text("x") == "x"


class TestRenderer:
    def test_exact_width_and_height(self) -> None:
        buffer = render_lines(Text("hello"), 12, 3)
        assert len(buffer) == 3
        assert all(line.cell_len == 12 for line in buffer)
        assert to_plain(buffer) == "hello\n\n"

    def test_crops_to_height(self) -> None:
        buffer = render_lines(Text("a\nb\nc\nd"), 5, 2)
        assert to_plain(buffer) == "a\nb"

    def test_table(self) -> None:
        table = Table("Title")
        table.add_row("Dune")
        assert "Dune" in to_plain(render_lines(table, 30))

    def test_helpers(self) -> None:
        assert buffer_width(blank(7, 2)) == 7
        assert len(fit_height([Text("x")], 4, 3)) == 4
        assert buffer_width([]) == 0


class TestStatusStyle:
    def test_known_status(self) -> None:
        assert style_for_status(3) == "hc.status.3"

    def test_unknown_status(self) -> None:
        assert style_for_status(42) == "hc.muted"
