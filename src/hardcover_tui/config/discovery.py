"""Config file discovery.

Walk-up finder locates hardcover-tui.toml, similar to how git finds .git/,
then falls back to the per-user config directory. Supports the
HARDCOVER_TUI_CONFIG env var and the --config CLI flag.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "hardcover-tui.toml"
CONFIG_ENV_VAR = "HARDCOVER_TUI_CONFIG"


def user_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/hardcover-tui`` (default ``~/.config/hardcover-tui``)."""
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "hardcover-tui"


def user_cache_dir() -> Path:
    base = os.environ.get("XDG_CACHE_HOME")
    root = Path(base) if base else Path.home() / ".cache"
    return root / "hardcover-tui"


def find_config(start: Path | None = None) -> Path | None:
    """Locate the config file, or None if there is none.

    Order: HARDCOVER_TUI_CONFIG, walk-up from *start* (default: cwd),
    then ``<user config dir>/config.toml``.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    fallback = user_config_dir() / "config.toml"
    if fallback.is_file():
        return fallback
    return None
