"""Token setup: shown until a valid API token is stored.

``input -> validating -> {complete | error}``. The token is written to the
client before the validation command runs so the validation query and every later
request use it; it is only saved to the credential store once ``get_me``
succeeds.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from rich.align import Align
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from hardcover_tui.api import queries
from hardcover_tui.api.client import GraphQLClient, normalize_token
from hardcover_tui.core.commands import Command, CommandResult
from hardcover_tui.core.effects import Schedule, SetupComplete
from hardcover_tui.core.events import KeyPressed
from hardcover_tui.core.screen import Capability, Screen, binding
from hardcover_tui.infrastructure.credentials import CredentialStore, CredentialStoreError
from hardcover_tui.output.keys import is_printable, key_text

logger = logging.getLogger(__name__)

LOGO = "hardcover"
TOKEN_URL = "https://hardcover.app/account/api"
MASK = "•"


class SetupState(StrEnum):
    INPUT = "input"
    VALIDATING = "validating"
    ERROR = "error"


class SetupScreen(Screen):
    title = "Setup"
    capabilities = frozenset({Capability.SIZE, Capability.INPUT_FOCUS, Capability.HELP})

    def __init__(
        self,
        client: GraphQLClient,
        store: CredentialStore,
        *,
        timeout: float = 30.0,
        error: str | None = None,
        saved_token: str | None = None,
    ) -> None:
        super().__init__()
        self.client = client
        self.store = store
        self.timeout = timeout
        self.value = ""
        self.error = error
        self.saved_token = saved_token
        self.state = SetupState.ERROR if error else SetupState.INPUT
        self._token: str | None = None

    def input_focused(self) -> bool:
        return True

    def help_bindings(self) -> list:
        if self.state is SetupState.ERROR:
            if self.saved_token:
                return [
                    binding("enter", help="enter", desc="retry with saved token"),
                    binding("n", help="n", desc="new token"),
                    binding("ctrl+c", help="ctrl+c", desc="quit"),
                ]
            return [binding("enter", help="enter", desc="try again"), binding("ctrl+c", help="ctrl+c", desc="quit")]
        return [binding("enter", help="enter", desc="continue"), binding("ctrl+c", help="ctrl+c", desc="quit")]

    def validate(self, token: str) -> list[Any]:
        self._token = token
        self.state = SetupState.VALIDATING
        self.error = None
        self.client.set_token(token)
        client = self.client
        return [Schedule(Command("setup.validate", lambda: queries.get_me(client), self.timeout, token))]

    def handle_event(self, event: Any) -> list[Any]:
        if isinstance(event, CommandResult):
            return self._apply_result(event)
        if isinstance(event, KeyPressed):
            return self._key(event.key)
        return []

    def _apply_result(self, result: CommandResult) -> list[Any]:
        if result.kind != "setup.validate" or result.tag != self._token:
            return []
        token = self._token
        assert token is not None
        if not result.ok:
            assert result.error is not None
            self.state = SetupState.ERROR
            self.error = result.error.message
            return []
        try:
            self.store.save(token)
        except CredentialStoreError as exc:
            logger.warning("Could not save token: %s", exc)
            self.state = SetupState.ERROR
            self.error = f"failed to save key: {exc}"
            return []
        self.saved_token = token
        return [SetupComplete(token, result.data)]

    def _key(self, key: str) -> list[Any]:
        if self.state is SetupState.VALIDATING:
            return []
        if self.state is SetupState.ERROR:
            if key == "enter" and self.saved_token:
                return self.validate(self.saved_token)
            if key == "enter" or (key == "n" and self.saved_token):
                self.state = SetupState.INPUT
                self.error = None
                self.value = ""
            return []
        if key == "enter":
            token = self.value.strip()
            if token:
                return self.validate(normalize_token(token))
        elif key == "backspace":
            self.value = self.value[:-1]
        elif key == "ctrl+u":
            self.value = ""
        elif is_printable(key):
            self.value += key_text(key)
        return []

    def render(self) -> RenderableType:
        sections: list[RenderableType] = [Text(LOGO, style="hc.primary", justify="center"), Text("")]
        if self.state is SetupState.INPUT:
            masked = Text(MASK * len(self.value), style="hc.value")
            masked.append("▏", style="hc.primary")
            sections += [
                Text("An unofficial Hardcover terminal client", style="hc.muted", justify="center"),
                Text(""),
                Text("Enter your API token:", style="hc.label", justify="center"),
                Align.center(Panel(masked, border_style="hc.primary", width=min(max(self.width - 8, 20), 64))),
                Text(f"Get your token from {TOKEN_URL}", style="hc.value", justify="center"),
            ]
        elif self.state is SetupState.VALIDATING:
            sections.append(Text("Validating token…", style="hc.muted", justify="center"))
        else:
            sections += [
                Text("Authentication failed", style="hc.error", justify="center"),
                Text(""),
                Text(self.error or "", style="hc.value", justify="center"),
            ]
        sections.append(Text(""))
        hints = Text(justify="center")
        for index, item in enumerate(self.help_bindings()):
            if index:
                hints.append("  ")
            hints.append(item.help_key, style="hc.key")
            hints.append(f" {item.description}", style="hc.help")
        sections.append(hints)
        return Align.center(Group(*sections), vertical="middle", height=max(self.height, 1))
