"""AppContext: shared Click context for the TUI and every subcommand.

Created once by the root group and passed down with ``@click.pass_obj``.
The HTTP client and the credential store are built lazily so ``--help``
and ``--version`` never touch the network or the filesystem.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hardcover_tui.api.client import GraphQLClient
    from hardcover_tui.config.settings import AppSettings
    from hardcover_tui.infrastructure.credentials import CredentialStore


class AppContext:
    """Settings plus lazily created collaborators.

    Args:
        settings: Resolved settings for this invocation.
        log_file: Route logs to this file instead of stderr (the TUI owns
            the terminal while it runs).
    """

    def __init__(self, settings: AppSettings, *, log_file: Path | None = None) -> None:
        self.settings = settings
        self._client: GraphQLClient | None = None
        self._store: CredentialStore | None = None

        from hardcover_tui.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json, log_file=log_file)

    @property
    def store(self) -> CredentialStore:
        """Token store; an environment token shadows it without touching it."""
        if self._store is None:
            from hardcover_tui.infrastructure.credentials import open_store

            self._store = open_store(self.settings)
        return self._store

    @property
    def client(self) -> GraphQLClient:
        """GraphQL client without a token; callers set it once one is known."""
        if self._client is None:
            from hardcover_tui.api.client import GraphQLClient, RateLimiter

            api = self.settings.api
            self._client = GraphQLClient(
                endpoint=api.endpoint,
                timeout=self.settings.timeouts.primary,
                limiter=RateLimiter(api.requests_per_minute),
            )
        return self._client
