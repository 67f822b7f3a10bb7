"""Subcommand modules for hardcover-tui.

Provides register_commands(), which imports command modules lazily so the
bare ``hardcover-tui`` launch does not pay for them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Attach every subcommand group to the root CLI group."""
    from hardcover_tui.commands.auth import auth

    cli.add_command(auth)
