"""Data source exception hierarchy.

Every subclass carries a stable ``code`` that the command scheduler copies
into ``CommandError.code``, so screens branch on codes rather than types.
"""

from __future__ import annotations


class DataSourceError(Exception):
    """Base class for failures talking to the Hardcover API."""

    code = "data_source_error"

    def __init__(self, message: str = "", *, status: int | None = None) -> None:
        super().__init__(message or self.code.replace("_", " "))
        self.status = status


class RequestTimeout(DataSourceError):
    code = "timeout"


class RateLimited(DataSourceError):
    code = "rate_limited"


class Unauthorized(DataSourceError):
    code = "unauthorized"


class ServerError(DataSourceError):
    code = "server_error"


class ParseError(DataSourceError):
    code = "parse_error"


class NetworkError(DataSourceError):
    code = "network_error"


# Codes that mean "try again later" rather than "your token is bad".
TRANSIENT_CODES = frozenset(
    {
        RequestTimeout.code,
        RateLimited.code,
        ServerError.code,
        NetworkError.code,
        ParseError.code,
    }
)
