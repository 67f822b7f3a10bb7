"""Yes/No confirmation dialog shared by every destructive action."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from rich.align import Align
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

YES = 0
NO = 1

_YES_KEYS = frozenset({"up", "k", "left", "h"})
_NO_KEYS = frozenset({"down", "j", "right", "l"})


@dataclass
class ConfirmDialog:
    """Modal confirmation state.

    Attributes:
        active: Whether the dialog is showing and owns input.
        message: Question shown to the user.
        action: Tag the owner uses to pick the effect on confirm
            (``"logout"``, ``"delete-list"``, ...).
        cursor: ``YES`` or ``NO``; a fresh dialog always starts on ``NO``.
        return_to: Opaque prior mode the owner restores once the dialog closes.
        payload: Subject of the action (list id, book id, entry id).
    """

    active: bool = False
    message: str = ""
    action: str = ""
    cursor: int = NO
    return_to: Any = None
    payload: Any = None

    def open(self, message: str, action: str, *, return_to: Any = None, payload: Any = None) -> None:
        self.active = True
        self.message = message
        self.action = action
        self.cursor = NO
        self.return_to = return_to
        self.payload = payload

    def handle_key(self, key: str) -> tuple[bool, bool]:
        """Feed one key. Returns ``(confirmed, handled)``; handled is always True."""
        if key in _YES_KEYS:
            self.cursor = YES
            return False, True
        if key in _NO_KEYS:
            self.cursor = NO
            return False, True
        if key == "y":
            self.active = False
            return True, True
        if key in ("n", "esc"):
            self.active = False
            return False, True
        if key == "enter":
            self.active = False
            return self.cursor == YES, True
        return False, True

    def render(self, width: int = 40) -> RenderableType:
        width = min(max(width, 30), 50)
        if self.cursor == YES:
            yes = Text("  Yes  ", style="hc.button.yes")
            no = Text("  No  ", style="hc.muted")
        else:
            yes = Text("  Yes  ", style="hc.muted")
            no = Text("  No  ", style="hc.button.no")
        buttons = Text.assemble(yes, "  ", no)
        body = Group(
            Align.center(Text(self.message, style="hc.text", justify="center")),
            Text(""),
            Align.center(buttons),
            Text(""),
            Text("y/n | enter: confirm | esc: cancel", style="hc.help"),
        )
        return Panel(
            body,
            title=Text("Confirm", style="hc.primary"),
            border_style="hc.primary",
            width=width,
            padding=(0, 2),
        )
