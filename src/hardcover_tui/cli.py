"""Root CLI group for hardcover-tui with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from hardcover_tui import __version__
from hardcover_tui.commands import register_commands
from hardcover_tui.commands._context import AppContext
from hardcover_tui.config.settings import AppSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="hardcover-tui")
@click.option("-v", "--verbose", is_flag=True, help="Debug-level logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log lines.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write logs to this file.",
)
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option("--sync", is_flag=True, help="Run API commands inline on the event loop.")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    log_json: bool,
    log_file: Path | None,
    config_path: str | None,
    sync: bool,
) -> None:
    """hardcover-tui: a terminal client for Hardcover.

    Without a subcommand the interactive interface starts.
    """
    ctx.ensure_object(dict)
    settings = AppSettings.from_cli(
        config_path=config_path,
        verbose=verbose or None,
        log_json=log_json or None,
        log_file=log_file,
        sync=sync or None,
    )
    interactive = ctx.invoked_subcommand is None
    target = settings.log_file
    if interactive and target is None:
        # Interactive runs never log to stderr.
        target = settings.default_log_file
    ctx.obj = AppContext(settings, log_file=target)
    if interactive:
        from hardcover_tui.app.runner import run_tui

        run_tui(ctx.obj)


register_commands(cli)
