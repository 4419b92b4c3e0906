"""Structured logging of Spotify API traffic."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Mapping, Optional

import httpx

_SENSITIVE_MARKERS = ("authorization", "token", "secret", "key", "password")
_REDACTED = "[REDACTED]"
_MAX_BODY_CHARS = 2000


class ApiLogLevel(str, Enum):
    NONE = "none"
    BASIC = "basic"
    HEADERS = "headers"
    BODY = "body"
    VERBOSE = "verbose"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    def includes(self, other: "ApiLogLevel") -> bool:
        return self.rank >= other.rank


_LEVEL_ORDER = (
    ApiLogLevel.NONE,
    ApiLogLevel.BASIC,
    ApiLogLevel.HEADERS,
    ApiLogLevel.BODY,
    ApiLogLevel.VERBOSE,
)


def is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in _SENSITIVE_MARKERS)


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {
        key: (_REDACTED if is_sensitive_key(key) else value)
        for key, value in sorted(headers.items())
    }


def _format_body(content: bytes) -> str:
    if not content:
        return ""
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        return f"<binary {len(content)} bytes>"
    try:
        text = json.dumps(json.loads(text), ensure_ascii=False)
    except ValueError:
        pass
    if len(text) > _MAX_BODY_CHARS:
        return f"{text[:_MAX_BODY_CHARS]}... ({len(content)} bytes)"
    return text


class ApiLogger:
    """Log requests and responses at the configured verbosity."""

    def __init__(
        self,
        level: ApiLogLevel = ApiLogLevel.BASIC,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.level = level
        self._logger = logger or logging.getLogger("sparkstats.api.traffic")

    @property
    def enabled(self) -> bool:
        return self.level is not ApiLogLevel.NONE

    def log_request(self, request: httpx.Request) -> None:
        if not self.enabled:
            return
        self._logger.info("-> %s %s", request.method, request.url)
        if self.level.includes(ApiLogLevel.HEADERS):
            self._logger.debug("   headers: %s", redact_headers(request.headers))
        if self.level.includes(ApiLogLevel.BODY):
            body = _format_body(request.content)
            if body:
                self._logger.debug("   body: %s", body)

    def log_response(self, response: httpx.Response, duration: float) -> None:
        if not self.enabled:
            return
        self._logger.info(
            "<- %s %s %s (%.0f ms)",
            response.status_code,
            response.request.method,
            response.request.url,
            duration * 1000,
        )
        if self.level.includes(ApiLogLevel.HEADERS):
            self._logger.debug("   headers: %s", redact_headers(response.headers))
        if self.level.includes(ApiLogLevel.BODY):
            body = _format_body(response.content)
            if body:
                self._logger.debug("   body: %s", body)
        if self.level.includes(ApiLogLevel.VERBOSE):
            self._logger.debug("   http version: %s", response.http_version)

    def log_error(self, request: httpx.Request, error: Exception, duration: float) -> None:
        if not self.enabled:
            return
        self._logger.warning(
            "x  %s %s failed after %.0f ms: %s",
            request.method,
            request.url,
            duration * 1000,
            error,
        )

    def log_retry(
        self, request: httpx.Request, attempt: int, reason: str, delay: float
    ) -> None:
        if not self.enabled:
            return
        self._logger.warning(
            "retry %d for %s %s in %.2fs (%s)",
            attempt,
            request.method,
            request.url,
            delay,
            reason,
        )


__all__ = ["ApiLogLevel", "ApiLogger", "is_sensitive_key", "redact_headers"]
