"""Global keybindings handled by the root controller."""

from __future__ import annotations

from hardcover_tui.core.screen import binding

HELP = binding("?", help="?", desc="toggle help")
BACK = binding("esc", help="esc", desc="back")
QUIT = binding("q", "ctrl+c", help="q", desc="quit")
LOGOUT = binding("ctrl+q", help="ctrl+q", desc="logout")
NEXT_TAB = binding("tab", help="tab", desc="next tab")
PREV_TAB = binding("shift+tab", help="shift+tab", desc="prev tab")

# Index matches the tab registry order.
TAB_KEYS = ("1", "2", "3", "4")

# Shown in the tab bar on the right.
SHORTCUTS = (HELP, BACK, LOGOUT, QUIT)

# Appended to the screen's bindings in the full help view.
FULL_HELP = (NEXT_TAB, PREV_TAB, HELP, BACK, LOGOUT, QUIT)
