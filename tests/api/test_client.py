"""Tests for the GraphQL client: headers, error mapping and rate limiting."""

from __future__ import annotations

from typing import Any

import pytest
import requests

from hardcover_tui.api.client import GraphQLClient, GraphQLRequest, RateLimiter, normalize_token
from hardcover_tui.api.errors import (
    TRANSIENT_CODES,
    NetworkError,
    ParseError,
    RateLimited,
    RequestTimeout,
    ServerError,
    Unauthorized,
)


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, *, invalid: bool = False) -> None:
        self.status_code = status_code
        self._body = body
        self._invalid = invalid

    def json(self) -> Any:
        if self._invalid:
            raise ValueError("not json")
        return self._body


class FakeSession:
    def __init__(self, response: FakeResponse | Exception) -> None:
        self.headers: dict[str, str] = {}
        self.response = response
        self.posts: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.posts.append({"url": url, **kwargs})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class FakeTime:
    def __init__(self) -> None:
        self.now = 0.0
        self.slept: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.slept.append(seconds)
        self.now += seconds


REQUEST = GraphQLRequest("GetMe", "query GetMe { me { id } }", {"x": 1})


def _client(response: FakeResponse | Exception) -> tuple[GraphQLClient, FakeSession]:
    session = FakeSession(response)
    client = GraphQLClient("abc", endpoint="https://example.test/graphql", timeout=5, session=session)
    return client, session


class TestNormalizeToken:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("abc", "Bearer abc"),
            ("  abc\n", "Bearer abc"),
            ("Bearer abc", "Bearer abc"),
            ("bearer   abc", "Bearer abc"),
            ("", ""),
        ],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_token(raw) == expected


class TestGraphQLClient:
    def test_success_returns_data(self) -> None:
        client, session = _client(FakeResponse(body={"data": {"me": [{"id": 1}]}}))
        assert client.query(REQUEST) == {"me": [{"id": 1}]}
        sent = session.posts[0]
        assert sent["url"] == "https://example.test/graphql"
        assert sent["headers"] == {"Authorization": "Bearer abc"}
        assert sent["json"] == {"query": REQUEST.query, "variables": {"x": 1}}
        assert sent["timeout"] == 5

    def test_session_headers(self) -> None:
        _, session = _client(FakeResponse(body={"data": {}}))
        assert session.headers["User-Agent"].startswith("hardcover-tui/")
        assert session.headers["Content-Type"] == "application/json"

    def test_token_swap(self) -> None:
        client, session = _client(FakeResponse(body={"data": {}}))
        client.set_token("other")
        client.query(REQUEST)
        assert session.posts[0]["headers"]["Authorization"] == "Bearer other"
        client.set_token(None)
        assert not client.has_token

    @pytest.mark.parametrize(
        ("status", "error"),
        [(401, Unauthorized), (403, Unauthorized), (429, RateLimited), (500, ServerError), (502, ServerError)],
    )
    def test_http_status_mapping(self, status: int, error: type[Exception]) -> None:
        client, _ = _client(FakeResponse(status, body={}))
        with pytest.raises(error):
            client.query(REQUEST)

    def test_graphql_auth_error(self) -> None:
        body = {"errors": [{"message": "Could not verify JWT: JWTExpired"}]}
        client, _ = _client(FakeResponse(body=body))
        with pytest.raises(Unauthorized, match="JWTExpired"):
            client.query(REQUEST)

    def test_graphql_other_error(self) -> None:
        body = {"errors": [{"message": "field 'nope' not found"}]}
        client, _ = _client(FakeResponse(body=body))
        with pytest.raises(ServerError, match="not found"):
            client.query(REQUEST)

    def test_invalid_json(self) -> None:
        client, _ = _client(FakeResponse(invalid=True))
        with pytest.raises(ParseError):
            client.query(REQUEST)

    def test_missing_data(self) -> None:
        client, _ = _client(FakeResponse(body={"data": None}))
        with pytest.raises(ParseError):
            client.query(REQUEST)

    def test_timeout(self) -> None:
        client, _ = _client(requests.Timeout("slow"))
        with pytest.raises(RequestTimeout):
            client.query(REQUEST)

    def test_network_error(self) -> None:
        client, _ = _client(requests.ConnectionError("refused"))
        with pytest.raises(NetworkError):
            client.query(REQUEST)

    def test_codes(self) -> None:
        assert Unauthorized().code == "unauthorized"
        assert "unauthorized" not in TRANSIENT_CODES
        assert RequestTimeout.code in TRANSIENT_CODES


class TestRateLimiter:
    def test_burst_is_free(self) -> None:
        clock = FakeTime()
        limiter = RateLimiter(60, burst=3, monotonic=clock.monotonic, sleep=clock.sleep)
        assert [limiter.acquire() for _ in range(3)] == [0.0, 0.0, 0.0]
        assert clock.slept == []

    def test_waits_for_refill(self) -> None:
        clock = FakeTime()
        limiter = RateLimiter(60, burst=1, monotonic=clock.monotonic, sleep=clock.sleep)
        limiter.acquire()
        waited = limiter.acquire()
        assert waited == pytest.approx(1.0)
        assert sum(clock.slept) == pytest.approx(1.0)

    def test_refill_over_time(self) -> None:
        clock = FakeTime()
        limiter = RateLimiter(120, burst=1, monotonic=clock.monotonic, sleep=clock.sleep)
        limiter.acquire()
        clock.now += 0.5
        assert limiter.acquire() == 0.0

    def test_client_uses_limiter(self) -> None:
        clock = FakeTime()
        limiter = RateLimiter(60, burst=1, monotonic=clock.monotonic, sleep=clock.sleep)
        session = FakeSession(FakeResponse(body={"data": {}}))
        client = GraphQLClient("abc", limiter=limiter, session=session)
        client.query(REQUEST)
        client.query(REQUEST)
        assert len(session.posts) == 2
        assert sum(clock.slept) == pytest.approx(1.0)
