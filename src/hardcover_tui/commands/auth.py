"""Command group: manage the stored API token outside the TUI."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from hardcover_tui.commands._base import HcGroup

if TYPE_CHECKING:
    from hardcover_tui.api.models import User
    from hardcover_tui.commands._context import AppContext


def _validate(app: AppContext, token: str) -> User:
    """Resolve *token* to its user or fail with a ClickException."""
    from hardcover_tui.api import queries
    from hardcover_tui.api.errors import DataSourceError

    app.client.set_token(token)
    try:
        return queries.get_me(app.client)
    except DataSourceError as exc:
        msg = f"Token rejected ({exc.code}): {exc}"
        raise click.ClickException(msg) from exc


def _store_error(exc: Exception) -> click.ClickException:
    return click.ClickException(str(exc))


@click.group(
    cls=HcGroup,
    examples="""\
  hardcover-tui auth login
  hardcover-tui auth status --check
  hardcover-tui auth logout""",
)
def auth() -> None:
    """Log in, log out and inspect the stored token."""


@auth.command(
    examples="""\
  hardcover-tui auth login
  hardcover-tui auth login --token eyJhbGciOi...""",
)
@click.option("--token", default=None, help="Token to store (prompted for when omitted).")
@click.pass_obj
def login(app: AppContext, token: str | None) -> None:
    """Validate a token against the API and store it."""
    from hardcover_tui.api.client import normalize_token
    from hardcover_tui.infrastructure.credentials import CredentialStoreError

    if not token:
        token = click.prompt("API token", hide_input=True)
    token = normalize_token(token.strip())
    user = _validate(app, token)
    try:
        app.store.save(token)
    except CredentialStoreError as exc:
        raise _store_error(exc) from exc
    click.echo(f"Logged in as @{user.username}")


@auth.command(
    examples="""\
  hardcover-tui auth logout""",
)
@click.pass_obj
def logout(app: AppContext) -> None:
    """Delete the stored token."""
    from hardcover_tui.infrastructure.credentials import CredentialStoreError

    try:
        app.store.delete()
    except CredentialStoreError as exc:
        raise _store_error(exc) from exc
    click.echo("Logged out")


@auth.command(
    examples="""\
  hardcover-tui auth status
  hardcover-tui auth status --check""",
)
@click.option("--check", is_flag=True, help="Validate the stored token against the API.")
@click.pass_obj
def status(app: AppContext, check: bool) -> None:
    """Report whether a token is stored."""
    from hardcover_tui.infrastructure.credentials import CredentialStoreError, describe_store

    try:
        token = app.store.load()
    except CredentialStoreError as exc:
        raise _store_error(exc) from exc
    if token is None:
        click.echo("No token stored", err=True)
        raise SystemExit(1)
    click.echo(f"Token stored ({describe_store(app.store)})")
    if check:
        user = _validate(app, token)
        click.echo(f"Valid for @{user.username}")
