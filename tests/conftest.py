"""Shared pytest fixtures and test helpers for hardcover-tui tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from hardcover_tui.api.client import GraphQLRequest, normalize_token
from hardcover_tui.api.models import User
from hardcover_tui.config.discovery import CONFIG_ENV_VAR
from hardcover_tui.config.models import TimeoutsConfig, UiConfig
from hardcover_tui.core.clock import FakeClock
from hardcover_tui.core.commands import CommandResult, error_from_exception
from hardcover_tui.core.effects import Schedule
from hardcover_tui.core.events import KeyPressed
from hardcover_tui.core.loop import EventLoop
from hardcover_tui.infrastructure.credentials import CredentialStoreError
from hardcover_tui.screens.base import ScreenContext

Response = dict[str, Any] | Exception | Callable[[GraphQLRequest], dict[str, Any]]


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeSource:
    """In-memory data source keyed by GraphQL operation name.

    A response is a ``data`` dict, an exception to raise, or a callable
    taking the request. Unknown operations answer with an empty dict.
    """

    def __init__(self, responses: dict[str, Response] | None = None) -> None:
        self.responses: dict[str, Response] = dict(responses or {})
        self.calls: list[GraphQLRequest] = []
        self.token = ""

    def set_token(self, token: str | None) -> None:
        self.token = normalize_token(token) if token else ""

    def query(self, request: GraphQLRequest) -> dict[str, Any]:
        self.calls.append(request)
        response = self.responses.get(request.operation, {})
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        return response

    def operations(self) -> list[str]:
        return [call.operation for call in self.calls]

    def calls_to(self, operation: str) -> list[GraphQLRequest]:
        return [call for call in self.calls if call.operation == operation]


class MemoryStore:
    """Credential store kept in memory; ``fail`` makes every call raise."""

    def __init__(self, token: str | None = None, *, fail: bool = False) -> None:
        self.token = token
        self.fail = fail
        self.saved: list[str] = []
        self.deleted = 0

    def load(self) -> str | None:
        if self.fail:
            raise CredentialStoreError("store unavailable")
        return self.token

    def save(self, token: str) -> None:
        if self.fail:
            raise CredentialStoreError("disk full")
        self.token = token
        self.saved.append(token)

    def delete(self) -> None:
        if self.fail:
            raise CredentialStoreError("permission denied")
        self.token = None
        self.deleted += 1


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------


def user_payload(user_id: int = 1, username: str = "reader") -> dict[str, Any]:
    return {"id": user_id, "username": username, "name": "Avid Reader", "books_count": 12}


def book_payload(book_id: int, title: str | None = None, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": book_id,
        "title": title or f"Book {book_id}",
        "contributions": [{"author": {"id": 7, "name": "Ursula K. Le Guin"}}],
    }
    payload.update(extra)
    return payload


def user_book_payload(
    user_book_id: int,
    book_id: int,
    status_id: int = 1,
    *,
    title: str | None = None,
    rating: float | None = None,
) -> dict[str, Any]:
    return {
        "id": user_book_id,
        "book_id": book_id,
        "status_id": status_id,
        "rating": rating,
        "book": book_payload(book_id, title),
    }


def list_payload(list_id: int, name: str, books_count: int = 0, privacy: int = 1) -> dict[str, Any]:
    return {"id": list_id, "name": name, "books_count": books_count, "privacy_setting_id": privacy}


def list_book_payload(entry_id: int, list_id: int, book_id: int) -> dict[str, Any]:
    return {"id": entry_id, "list_id": list_id, "book_id": book_id, "book": book_payload(book_id)}


def me_response(user_id: int = 1, username: str = "reader") -> dict[str, Any]:
    return {"me": [user_payload(user_id, username)]}


# ---------------------------------------------------------------------------
# Screen helpers
# ---------------------------------------------------------------------------


def schedules(effects: list[Any]) -> list[Schedule]:
    return [effect for effect in effects if isinstance(effect, Schedule)]


def run_command(effect: Schedule, command_id: int = 1) -> CommandResult:
    """Run a scheduled command inline and wrap its outcome like the scheduler does."""
    command = effect.command
    try:
        data = command.action()
    except Exception as exc:
        return CommandResult(
            ok=False,
            kind=command.kind,
            command_id=command_id,
            tag=command.tag,
            error=error_from_exception(exc),
        )
    return CommandResult(ok=True, kind=command.kind, command_id=command_id, tag=command.tag, data=data)


def settle(screen: Any, effects: list[Any]) -> list[Any]:
    """Run every scheduled command in *effects* and feed the results back.

    Repeats until the screen stops scheduling work. Returns the
    non-schedule effects produced along the way.
    """
    pending = list(effects)
    produced: list[Any] = []
    for _ in range(20):
        work = schedules(pending)
        produced.extend(effect for effect in pending if not isinstance(effect, Schedule))
        if not work:
            return produced
        pending = []
        for effect in work:
            pending.extend(screen.handle_event(run_command(effect)))
    msg = "screen kept scheduling commands"
    raise AssertionError(msg)


def press(screen: Any, *keys: str) -> list[Any]:
    """Feed *keys* to *screen*; returns the effects of the last key."""
    effects: list[Any] = []
    for key in keys:
        effects = screen.handle_event(KeyPressed(key))
    return effects


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def loop(clock: FakeClock) -> Generator[EventLoop]:
    """Synchronous loop on a fake clock: commands run inline, timers on demand."""
    event_loop = EventLoop(clock=clock, sync=True)
    try:
        yield event_loop
    finally:
        event_loop.scheduler.shutdown()


@pytest.fixture
def user() -> User:
    return User.model_validate(user_payload())


@pytest.fixture
def source() -> FakeSource:
    return FakeSource({"GetMe": me_response()})


@pytest.fixture
def ctx(source: FakeSource, user: User) -> ScreenContext:
    return ScreenContext(source, user, TimeoutsConfig(), UiConfig(page_size=3))


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path]:
    """Isolate a CLI invocation: temp XDG dirs, file token store, logging restored.

    Yields the directory the token file lives in.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    for name in ("TOKEN", "VERBOSE", "SYNC", "LOG_JSON", "LOG_FILE"):
        monkeypatch.delenv(f"HARDCOVER_TUI_{name}", raising=False)
    monkeypatch.setenv("HARDCOVER_TUI_CREDENTIALS__BACKEND", "file")
    monkeypatch.chdir(tmp_path)

    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield tmp_path / "xdg-config" / "hardcover-tui"
    root.handlers = original_handlers
    root.setLevel(original_level)
