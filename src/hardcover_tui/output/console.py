"""Rich Console factory and theme for hardcover-tui output.

Off-screen consoles render to a StringIO buffer so frames can be built and
composited as plain ``Text`` lines before anything reaches the terminal. In
non-TTY environments (tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

HC_THEME = Theme(
    {
        "hc.primary": "bold #8B5CF6",
        "hc.secondary": "#06B6D4",
        "hc.text": "#E5E7EB",
        "hc.muted": "#6B7280",
        "hc.label": "bold #E5E7EB",
        "hc.value": "#9CA3AF",
        "hc.border": "#374151",
        "hc.ok": "bold #10B981",
        "hc.error": "bold #EF4444",
        "hc.warning": "bold #F59E0B",
        "hc.info": "bold #3B82F6",
        "hc.tab.active": "bold #111827 on #8B5CF6",
        "hc.tab.inactive": "#9CA3AF",
        "hc.key": "bold #A78BFA",
        "hc.help": "#6B7280",
        "hc.cursor": "bold #111827 on #8B5CF6",
        "hc.button.yes": "bold #111827 on #EF4444",
        "hc.button.no": "bold #111827 on #10B981",
        "hc.status.1": "#3B82F6",
        "hc.status.2": "#F59E0B",
        "hc.status.3": "#10B981",
        "hc.status.4": "#8B5CF6",
        "hc.status.5": "#EF4444",
        "hc.status.6": "#6B7280",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=HC_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
        legacy_windows=False,
    )


def style_for_status(status_id: int) -> str:
    """Return the Rich style name for a reading status id."""
    if 1 <= status_id <= 6:
        return f"hc.status.{status_id}"
    return "hc.muted"
