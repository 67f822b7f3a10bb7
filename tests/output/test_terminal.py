"""Tests for the terminal driver's key decoding over a prompt_toolkit pipe input."""

from __future__ import annotations

import io
from collections.abc import Generator
from typing import Any

import pytest
from prompt_toolkit.input import PipeInput, create_pipe_input
from rich.console import Console

from hardcover_tui.core.events import KeyPressed
from hardcover_tui.output.terminal import TerminalDriver


@pytest.fixture
def pipe() -> Generator[PipeInput]:
    with create_pipe_input() as pipe_input:
        yield pipe_input


@pytest.fixture
def events() -> list[Any]:
    return []


@pytest.fixture
def driver(pipe: PipeInput, events: list[Any]) -> TerminalDriver:
    return TerminalDriver(events.append, term_input=pipe, console=Console(file=io.StringIO()))


def _read(driver: TerminalDriver, pipe: PipeInput, text: str) -> None:
    pipe.send_text(text)
    driver._post_keys(pipe.read_keys())


class TestInput:
    def test_plain_keys(self, driver: TerminalDriver, pipe: PipeInput, events: list[Any]) -> None:
        _read(driver, pipe, "jq ")
        assert events == [KeyPressed("j"), KeyPressed("q"), KeyPressed("space")]

    def test_split_arrow_sequence(self, driver: TerminalDriver, pipe: PipeInput, events: list[Any]) -> None:
        _read(driver, pipe, "\x1b[")
        assert events == []
        _read(driver, pipe, "A")
        assert events == [KeyPressed("up")]

    def test_lone_escape_is_flushed(self, driver: TerminalDriver, pipe: PipeInput, events: list[Any]) -> None:
        _read(driver, pipe, "\x1b")
        assert events == []
        driver._post_keys(pipe.flush_keys())
        assert events == [KeyPressed("esc")]

    def test_control_keys(self, driver: TerminalDriver, pipe: PipeInput, events: list[Any]) -> None:
        _read(driver, pipe, "\x13\x11\r\x7f")
        assert events == [KeyPressed("ctrl+s"), KeyPressed("ctrl+q"), KeyPressed("enter"), KeyPressed("backspace")]

    def test_size_from_terminal(self, driver: TerminalDriver) -> None:
        width, height = driver.size
        assert width > 0 and height > 0
