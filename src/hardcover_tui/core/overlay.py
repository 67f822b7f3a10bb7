"""Overlay compositing, the select-modal state machine and the loader.

Compositing works on buffers of single-line ``rich.text.Text`` objects and
measures in terminal cells, so wide characters (CJK titles, emoji) never
shift the columns to the right of an overlay.

INVARIANT: :func:`composite` never mutates its inputs.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from rich.align import Align
from rich.cells import cell_len
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from hardcover_tui.output.renderer import Buffer, buffer_width

# ---------------------------------------------------------------------------
# Compositing
# ---------------------------------------------------------------------------


class Anchor(StrEnum):
    CENTER = "center"
    TOP_RIGHT = "top-right"
    TOP_LEFT = "top-left"


def crop(line: Text, start: int, end: int) -> Text:
    """Return the cells ``[start, end)`` of *line*, padded to full width.

    A wide character straddling either edge is replaced by spaces.
    """
    width = end - start
    if width <= 0:
        return Text(end="")
    position = 0
    first: int | None = None
    last = 0
    lead = 0
    trail = 0
    for index, char in enumerate(line.plain):
        char_end = position + cell_len(char)
        if char_end <= start:
            position = char_end
            continue
        if position >= end:
            break
        if position < start:
            lead = char_end - start
        elif char_end > end:
            trail = end - position
            break
        else:
            if first is None:
                first = index
            last = index + 1
        position = char_end

    result = Text(" " * lead, end="", no_wrap=True)
    if first is not None:
        result.append_text(line[first:last])
    if trail:
        result.append(" " * trail)
    missing = width - result.cell_len
    if missing > 0:
        result.append(" " * missing)
    return result


def composite(
    foreground: Buffer,
    background: Buffer,
    anchor: Anchor = Anchor.CENTER,
    *,
    width: int | None = None,
    height: int | None = None,
    margin: int = 0,
) -> Buffer:
    """Place *foreground* over *background* and return a new buffer."""
    width = width if width is not None else buffer_width(background)
    height = height if height is not None else len(background)
    base = [crop(line, 0, width) for line in background[:height]]
    while len(base) < height:
        base.append(Text(" " * width, end="", no_wrap=True))

    fg_width = min(buffer_width(foreground), width)
    fg_height = min(len(foreground), height)
    if fg_width == 0 or fg_height == 0:
        return base

    if anchor is Anchor.CENTER:
        x = (width - fg_width) // 2
        y = (height - fg_height) // 2
    elif anchor is Anchor.TOP_RIGHT:
        x = max(width - fg_width - margin, 0)
        y = min(margin, height - fg_height)
    else:
        x = min(margin, width - fg_width)
        y = min(margin, height - fg_height)

    for row in range(fg_height):
        target = base[y + row]
        merged = crop(target, 0, x)
        merged.append_text(crop(foreground[row], 0, fg_width))
        merged.append_text(crop(target, x + fg_width, width))
        base[y + row] = merged
    return base


# ---------------------------------------------------------------------------
# Select modal
# ---------------------------------------------------------------------------


class ModalState(StrEnum):
    CLOSED = "closed"
    OPEN = "open"
    LOADING = "loading"


class ModalAction(StrEnum):
    """Outcome of feeding one key to a :class:`SelectModal`."""

    IGNORED = "ignored"
    MOVED = "moved"
    CANCELLED = "cancelled"
    COMMITTED = "committed"
    BLOCKED = "blocked"


@dataclass
class SelectOption:
    label: str
    value: Any
    hint: str = ""


@dataclass
class SelectModal:
    """Screen-owned picker: status, rating, privacy and list selection.

    ``Closed -> Open -> {Closed | Loading -> Closed}``. Enter commits the
    highlighted option and waits in ``LOADING`` until :meth:`resolve`.
    """

    name: str = ""
    title: str = ""
    options: list[SelectOption] = field(default_factory=list)
    cursor: int = 0
    state: ModalState = ModalState.CLOSED
    selection: Any = None

    @property
    def active(self) -> bool:
        return self.state is not ModalState.CLOSED

    @property
    def accepting_input(self) -> bool:
        return self.state is ModalState.OPEN

    def open(self, name: str, title: str, options: list[SelectOption], cursor: int = 0) -> None:
        self.name = name
        self.title = title
        self.options = list(options)
        self.cursor = min(max(cursor, 0), max(len(self.options) - 1, 0))
        self.selection = None
        self.state = ModalState.OPEN

    def close(self) -> None:
        self.state = ModalState.CLOSED
        self.selection = None

    def handle_key(self, key: str) -> ModalAction:
        if self.state is ModalState.CLOSED:
            return ModalAction.IGNORED
        if self.state is ModalState.LOADING:
            return ModalAction.BLOCKED
        if key == "esc":
            self.close()
            return ModalAction.CANCELLED
        if key in ("up", "k"):
            if self.cursor > 0:
                self.cursor -= 1
            return ModalAction.MOVED
        if key in ("down", "j"):
            if self.cursor < len(self.options) - 1:
                self.cursor += 1
            return ModalAction.MOVED
        if key == "enter":
            if not self.options:
                self.close()
                return ModalAction.CANCELLED
            self.selection = self.options[self.cursor].value
            self.state = ModalState.LOADING
            return ModalAction.COMMITTED
        return ModalAction.MOVED

    def resolve(self) -> Any:
        """Leave the loading state once the commit's result arrived."""
        selection = self.selection
        self.close()
        return selection

    def render(self, width: int = 40) -> RenderableType:
        body = Text(end="")
        for index, option in enumerate(self.options):
            if index:
                body.append("\n")
            if index == self.cursor:
                body.append(f"▸ {option.label}", style="hc.cursor")
            else:
                body.append(f"  {option.label}", style="hc.text")
            if option.hint:
                body.append(f"  {option.hint}", style="hc.muted")
        footer = "saving…" if self.state is ModalState.LOADING else "enter select · esc cancel"
        return Panel(
            body,
            title=Text(self.title, style="hc.primary"),
            subtitle=Text(footer, style="hc.help"),
            border_style="hc.primary",
            width=width,
            padding=(0, 1),
        )


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

LOADER_QUOTES = (
    "A reader lives a thousand lives before he dies...",
    "So many books, so little time.",
    "Books are a uniquely portable magic.",
    "Reading is dreaming with open eyes.",
    "One more chapter...",
    "There is no friend as loyal as a book.",
    "A book is a dream you hold in your hands.",
    "The world was hers for the reading.",
    "Books are mirrors: you see yourself in them.",
    "I have always imagined paradise as a library.",
    "We read to know we are not alone.",
    "Between the pages of a book is a lovely place.",
    "Reading gives us someplace to go when we have to stay.",
    "Today a reader, tomorrow a leader.",
    "Books are the quietest friends.",
    "Lost in a good book...",
    "Turning pages, turning worlds.",
    "Let the story unfold...",
)

SPRITES = ("█", "▓", "▒", "░")
SPRITE_LEN = 5
SWEEP_FRAMES = 30


class Loader:
    """Full-screen loading panel advanced by animation ticks."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()
        self.active = False
        self.frame = 0
        self.quote = LOADER_QUOTES[0]

    def start(self) -> None:
        self.active = True
        self.frame = 0
        self.quote = self._rng.choice(LOADER_QUOTES)

    def stop(self) -> None:
        self.active = False

    def tick(self) -> None:
        if self.active:
            self.frame += 1

    def position(self) -> float:
        """Sprite position in [0, 1], sweeping back and forth."""
        phase = self.frame % (2 * SWEEP_FRAMES)
        if phase < SWEEP_FRAMES:
            return phase / SWEEP_FRAMES
        return 1.0 - (phase - SWEEP_FRAMES) / SWEEP_FRAMES

    def render(self, width: int, height: int) -> RenderableType:
        width = width if width >= 10 else 80
        sprite = SPRITES[self.frame // 8 % len(SPRITES)] * SPRITE_LEN
        col = round(width * 0.3 + self.position() * width * 0.4)
        col = min(max(col, 0), max(width - SPRITE_LEN - 1, 0))
        quote = self.quote
        if len(quote) > width - 4:
            quote = quote[: max(width - 7, 0)] + "..."
        content = Group(
            Text(""),
            Text.assemble(" " * col, (sprite, "hc.primary")),
            Text(""),
            Align.center(Text(quote, style="italic hc.help")),
        )
        return Align.center(content, vertical="middle", width=width, height=max(height, 1))
