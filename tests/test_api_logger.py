"""Tests for API traffic logging."""

import logging

import httpx
import pytest

from sparkstats.api import ApiLogger, ApiLogLevel
from sparkstats.api.api_logger import is_sensitive_key, redact_headers

LOGGER_NAME = "sparkstats.api.traffic"


def _exchange() -> httpx.Response:
    request = httpx.Request(
        "GET",
        "https://api.spotify.com/v1/me",
        headers={"Authorization": "Bearer secret-token", "Accept": "application/json"},
    )
    return httpx.Response(200, json={"id": "user"}, request=request)


@pytest.mark.parametrize(
    "key", ["Authorization", "X-Api-Key", "refresh_token", "client_secret", "Password"]
)
def test_sensitive_keys_are_detected(key: str) -> None:
    assert is_sensitive_key(key)


def test_redact_headers_masks_credentials() -> None:
    redacted = redact_headers({"Authorization": "Bearer abc", "Accept": "application/json"})

    assert redacted == {"Accept": "application/json", "Authorization": "[REDACTED]"}


def test_level_ordering() -> None:
    assert ApiLogLevel.VERBOSE.includes(ApiLogLevel.BODY)
    assert ApiLogLevel.HEADERS.includes(ApiLogLevel.BASIC)
    assert not ApiLogLevel.BASIC.includes(ApiLogLevel.HEADERS)


def test_none_level_logs_nothing(caplog: pytest.LogCaptureFixture) -> None:
    response = _exchange()
    api_logger = ApiLogger(ApiLogLevel.NONE)

    with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
        api_logger.log_request(response.request)
        api_logger.log_response(response, 0.01)

    assert caplog.records == []


def test_basic_level_logs_request_line_only(caplog: pytest.LogCaptureFixture) -> None:
    response = _exchange()
    api_logger = ApiLogger(ApiLogLevel.BASIC)

    with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
        api_logger.log_request(response.request)
        api_logger.log_response(response, 0.01)

    messages = [record.getMessage() for record in caplog.records]
    assert messages == [
        "-> GET https://api.spotify.com/v1/me",
        "<- 200 GET https://api.spotify.com/v1/me (10 ms)",
    ]


def test_headers_level_never_leaks_token(caplog: pytest.LogCaptureFixture) -> None:
    response = _exchange()
    api_logger = ApiLogger(ApiLogLevel.VERBOSE)

    with caplog.at_level(logging.DEBUG, logger=LOGGER_NAME):
        api_logger.log_request(response.request)
        api_logger.log_response(response, 0.01)

    assert "secret-token" not in caplog.text
    assert "[REDACTED]" in caplog.text
    assert '{"id": "user"}' in caplog.text


def test_retry_is_logged_as_warning(caplog: pytest.LogCaptureFixture) -> None:
    request = httpx.Request("GET", "https://api.spotify.com/v1/me")

    with caplog.at_level(logging.WARNING, logger=LOGGER_NAME):
        ApiLogger().log_retry(request, 1, "HTTP 500", 0.5)

    assert caplog.records[0].levelno == logging.WARNING
    assert "retry 1" in caplog.records[0].getMessage()
