"""Error taxonomy raised by the Spotify request pipeline."""

from __future__ import annotations

from typing import Any


class APIError(Exception):
    """Base class for request pipeline failures."""


class InvalidURLError(APIError):
    """The endpoint does not describe a requestable URL."""

    def __init__(self, url: str):
        super().__init__(f"Invalid request URL: {url!r}")
        self.url = url


class UnauthorizedError(APIError):
    """Spotify rejected the access token (HTTP 401)."""

    def __init__(self, detail: Any = None):
        super().__init__(str(detail) if detail else "Spotify rejected the access token")
        self.status_code = 401
        self.detail = detail


class NetworkError(APIError):
    """Transport failure or a non-success status once retries are exhausted."""

    def __init__(
        self,
        cause: Any,
        *,
        status_code: int | None = None,
        detail: Any = None,
    ):
        super().__init__(str(detail or cause))
        self.cause = cause
        self.status_code = status_code
        self.detail = detail


class DecodingError(APIError):
    """The response body does not match the expected shape."""

    def __init__(self, message: str, *, body: bytes | None = None):
        super().__init__(message)
        self.body = body


__all__ = [
    "APIError",
    "DecodingError",
    "InvalidURLError",
    "NetworkError",
    "UnauthorizedError",
]
