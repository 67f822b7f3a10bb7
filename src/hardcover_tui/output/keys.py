"""Translate prompt_toolkit key presses into key names.

Key names follow the ``"ctrl+c"`` / ``"shift+tab"`` / ``"enter"`` style
used by keybindings. Printable characters map to themselves. Decoding of
escape sequences, including ones split across reads, is left to
prompt_toolkit's VT100 parser.
"""

from __future__ import annotations

from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys

_NAMED_KEYS: dict[str, str] = {
    Keys.Escape.value: "esc",
    Keys.ControlM.value: "enter",
    Keys.ControlJ.value: "enter",
    Keys.ControlI.value: "tab",
    Keys.BackTab.value: "shift+tab",
    Keys.ControlH.value: "backspace",
    Keys.ControlAt.value: "ctrl+space",
    Keys.Up.value: "up",
    Keys.Down.value: "down",
    Keys.Left.value: "left",
    Keys.Right.value: "right",
    Keys.Home.value: "home",
    Keys.End.value: "end",
    Keys.Insert.value: "insert",
    Keys.Delete.value: "delete",
    Keys.PageUp.value: "pgup",
    Keys.PageDown.value: "pgdown",
    Keys.ShiftUp.value: "shift+up",
    Keys.ShiftDown.value: "shift+down",
    Keys.ShiftLeft.value: "shift+left",
    Keys.ShiftRight.value: "shift+right",
}


def key_names(press: KeyPress) -> list[str]:
    """Key names for one decoded key press.

    A bracketed paste expands to its printable characters. Mouse reports,
    cursor position responses and unknown sequences yield nothing.
    """
    key = press.key.value if isinstance(press.key, Keys) else press.key
    if key == Keys.BracketedPaste.value:
        return [_char_name(ch) for ch in press.data if ch.isprintable()]
    if key in _NAMED_KEYS:
        return [_NAMED_KEYS[key]]
    if key.startswith("c-") and len(key) == 3 and key[2].isalpha():
        return [f"ctrl+{key[2]}"]
    if len(key) == 1:
        if key == "\x7f":
            return ["backspace"]
        if key.isprintable():
            return [_char_name(key)]
    return []


def _char_name(ch: str) -> str:
    return "space" if ch == " " else ch


def is_printable(key: str) -> bool:
    """True for keys that insert text into an input field."""
    return key == "space" or (len(key) == 1 and key.isprintable())


def key_text(key: str) -> str:
    return " " if key == "space" else key
