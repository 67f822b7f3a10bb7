"""Authentication session owned by the root controller."""

from __future__ import annotations

from dataclasses import dataclass

from hardcover_tui.api.models import User


@dataclass
class Session:
    """Who is logged in.

    Mutated only by :class:`~hardcover_tui.app.controller.RootController`.
    """

    authenticated: bool = False
    credential: str | None = None
    current_user: User | None = None

    def login(self, credential: str, user: User) -> None:
        self.authenticated = True
        self.credential = credential
        self.current_user = user

    def reset(self) -> None:
        self.authenticated = False
        self.credential = None
        self.current_user = None
