"""Text renderer: rich renderables to fixed-width ``Text`` lines.

This is the only place layout is measured. Everything above it (chrome,
overlays, screens) exchanges a :data:`Buffer`, a list of single-line
``Text`` objects, so compositing can work in terminal cells without
re-parsing ANSI output.
"""

from __future__ import annotations

from rich.console import Console, RenderableType
from rich.segment import Segment
from rich.text import Text

from hardcover_tui.output.console import create_console

Buffer = list[Text]

_console: Console | None = None


def _shared_console() -> Console:
    global _console
    if _console is None:
        _console = create_console()
    return _console


def render_lines(
    renderable: RenderableType,
    width: int,
    height: int | None = None,
    *,
    console: Console | None = None,
) -> Buffer:
    """Render *renderable* into exactly *width* cells per line.

    When *height* is given the buffer is padded or cropped to that many lines.
    Pure: no output is written anywhere.
    """
    console = console or _shared_console()
    width = max(width, 1)
    options = console.options.update(width=width, height=height) if height else console.options.update(width=width)
    lines = console.render_lines(renderable, options, pad=True, new_lines=False)
    buffer = [_segments_to_text(line) for line in lines]
    if height is not None:
        buffer = fit_height(buffer, height, width)
    return buffer


def fit_height(buffer: Buffer, height: int, width: int) -> Buffer:
    """Pad with blank lines or crop so the buffer is *height* lines long."""
    if len(buffer) >= height:
        return buffer[:height]
    return buffer + [Text(" " * width) for _ in range(height - len(buffer))]


def blank(width: int, height: int) -> Buffer:
    return [Text(" " * width) for _ in range(max(height, 0))]


def buffer_width(buffer: Buffer) -> int:
    return max((line.cell_len for line in buffer), default=0)


def to_plain(buffer: Buffer) -> str:
    """Join a buffer into plain text with trailing spaces stripped."""
    return "\n".join(line.plain.rstrip() for line in buffer)


def _segments_to_text(segments: list[Segment]) -> Text:
    text = Text(end="", no_wrap=True)
    for segment in segments:
        if segment.control:
            continue
        text.append(segment.text, segment.style)
    return text
