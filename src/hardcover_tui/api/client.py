"""GraphQL client for the Hardcover API.

Thread-safe: commands call :meth:`GraphQLClient.query` from worker threads.
The token lives behind a lock so Setup and logout can swap it while
requests are in flight; each request reads it once when it starts.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

import requests

from hardcover_tui import __version__
from hardcover_tui.api.errors import (
    NetworkError,
    ParseError,
    RateLimited,
    RequestTimeout,
    ServerError,
    Unauthorized,
)
from hardcover_tui.config.models import DEFAULT_ENDPOINT

logger = logging.getLogger(__name__)

USER_AGENT = f"hardcover-tui/{__version__}"

_AUTH_MARKERS = ("unauthorized", "jwt", "authoriz", "authenticat", "invalid token")


@dataclass(frozen=True)
class GraphQLRequest:
    """One GraphQL operation. ``operation`` names it for logs and fakes."""

    operation: str
    query: str
    variables: dict[str, Any] = field(default_factory=dict)


class DataSource(Protocol):
    def query(self, request: GraphQLRequest) -> dict[str, Any]: ...


def normalize_token(raw: str) -> str:
    """Strip whitespace and ensure the ``Bearer`` scheme prefix."""
    token = raw.strip()
    if not token:
        return token
    if token.lower().startswith("bearer "):
        return "Bearer " + token[7:].strip()
    return f"Bearer {token}"


class RateLimiter:
    """Token bucket: *rate_per_minute* refill with a small burst.

    ``acquire`` blocks the calling worker thread until a token is free.
    """

    def __init__(
        self,
        rate_per_minute: int = 60,
        *,
        burst: int = 5,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._rate = rate_per_minute / 60.0
        self._capacity = float(max(burst, 1))
        self._tokens = self._capacity
        self._monotonic = monotonic
        self._sleep = sleep
        self._updated = monotonic()
        self._lock = threading.Lock()

    def acquire(self) -> float:
        """Take one token. Returns the seconds spent waiting."""
        waited = 0.0
        while True:
            with self._lock:
                now = self._monotonic()
                self._tokens = min(self._capacity, self._tokens + (now - self._updated) * self._rate)
                self._updated = now
                if self._tokens >= 1.0:
                    self._tokens -= 1.0
                    return waited
                shortfall = (1.0 - self._tokens) / self._rate
            self._sleep(shortfall)
            waited += shortfall


class GraphQLClient:
    """HTTPS GraphQL client built on a shared :class:`requests.Session`.

    Parameters:
        token: Initial authorization token (normalized to ``Bearer ...``).
        endpoint: GraphQL endpoint URL.
        timeout: Per-request HTTP timeout in seconds.
        limiter: Client-side rate limiter shared by every request.
        session: Injected HTTP session (tests pass a mock).
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 30.0,
        limiter: RateLimiter | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._limiter = limiter or RateLimiter()
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "User-Agent": USER_AGENT,
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        self._token_lock = threading.Lock()
        self._token = normalize_token(token) if token else ""

    # ------------------------------------------------------------------
    # Token holder
    # ------------------------------------------------------------------

    @property
    def token(self) -> str:
        with self._token_lock:
            return self._token

    def set_token(self, token: str | None) -> None:
        with self._token_lock:
            self._token = normalize_token(token) if token else ""

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def query(self, request: GraphQLRequest) -> dict[str, Any]:
        """Execute *request* and return its ``data`` object.

        Raises:
            DataSourceError: One of the subclasses, never a raw
                ``requests`` exception.
        """
        waited = self._limiter.acquire()
        if waited:
            logger.debug("Rate limiter delayed %s by %.2fs", request.operation, waited)

        headers = {"Authorization": self.token}
        payload = {"query": request.query, "variables": request.variables}
        started = time.monotonic()
        try:
            response = self._session.post(
                self.endpoint, json=payload, headers=headers, timeout=self.timeout
            )
        except requests.Timeout as exc:
            raise RequestTimeout(f"{request.operation}: timed out after {self.timeout:g}s") from exc
        except requests.RequestException as exc:
            raise NetworkError(f"{request.operation}: {exc}") from exc

        logger.debug(
            "%s -> HTTP %d in %.0fms",
            request.operation,
            response.status_code,
            (time.monotonic() - started) * 1000,
        )
        return self._parse(request, response)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _parse(self, request: GraphQLRequest, response: requests.Response) -> dict[str, Any]:
        status = response.status_code
        if status in (401, 403):
            raise Unauthorized(f"{request.operation}: invalid or expired token", status=status)
        if status == 429:
            raise RateLimited(f"{request.operation}: rate limited by server", status=status)
        if status >= 400:
            raise ServerError(f"{request.operation}: HTTP {status}", status=status)

        try:
            body = response.json()
        except ValueError as exc:
            raise ParseError(f"{request.operation}: response is not JSON") from exc
        if not isinstance(body, dict):
            raise ParseError(f"{request.operation}: unexpected response shape")

        errors = body.get("errors")
        if errors:
            message = _first_error_message(errors)
            if any(marker in message.lower() for marker in _AUTH_MARKERS):
                raise Unauthorized(f"{request.operation}: {message}", status=status)
            raise ServerError(f"{request.operation}: {message}", status=status)

        data = body.get("data")
        if not isinstance(data, dict):
            raise ParseError(f"{request.operation}: response has no data")
        return data


def _first_error_message(errors: Any) -> str:
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict):
            return str(first.get("message", "unknown error"))
        return str(first)
    return "unknown error"
