"""Request pipeline turning endpoint descriptors into decoded responses."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel, ValidationError

from .api_logger import ApiLogger
from .endpoints import BodyEncoding, Endpoint
from .errors import DecodingError, InvalidURLError, NetworkError, UnauthorizedError
from .interceptor import AuthInterceptor

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
Sleep = Callable[[float], Awaitable[Any]]

_RETRYABLE_CLIENT_STATUS = 429


def validate_url(url: str) -> str:
    """Return ``url`` if it has an http(s) scheme and a host."""

    if not url:
        raise InvalidURLError(url)
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise InvalidURLError(url) from exc
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise InvalidURLError(url)
    return url


def _extract_error_detail(response: httpx.Response) -> Any:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        if isinstance(error, str):
            return payload.get("error_description") or error
    return payload


def _retry_after_seconds(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


class RequestPipeline:
    """Issue authenticated Spotify requests with bounded retry.

    401 responses are surfaced immediately as :class:`UnauthorizedError` so the
    caller can renew the session. 5xx responses, 429 responses and transport
    failures are retried up to ``max_retries`` times with exponential backoff.
    Any other httpx failure surfaces as :class:`NetworkError` without a retry.
    """

    def __init__(
        self,
        interceptor: AuthInterceptor,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        sleep: Sleep = asyncio.sleep,
        api_logger: Optional[ApiLogger] = None,
    ) -> None:
        self._interceptor = interceptor
        self._client = client
        self._owns_client = client is None
        self._client_lock = asyncio.Lock()
        self._timeout = timeout
        self.max_retries = max(0, int(max_retries))
        self.retry_delay = max(0.0, float(retry_delay))
        self._sleep = sleep
        self._api_logger = api_logger or ApiLogger()

    async def _get_http_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None:
            return client

        async with self._client_lock:
            if self._client is None:
                timeout = httpx.Timeout(self._timeout, connect=10.0)
                limits = httpx.Limits(
                    max_connections=50,
                    max_keepalive_connections=20,
                )
                self._client = httpx.AsyncClient(timeout=timeout, limits=limits)
            return self._client

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None and self._owns_client:
            await client.aclose()

    def _build_request(self, client: httpx.AsyncClient, endpoint: Endpoint) -> httpx.Request:
        headers = self._interceptor.adapt(endpoint.headers)
        kwargs: dict[str, Any] = {
            "params": dict(endpoint.query) or None,
            "headers": headers,
        }
        if endpoint.body is not None:
            if endpoint.body_encoding is BodyEncoding.FORM:
                headers["Content-Type"] = "application/x-www-form-urlencoded"
                kwargs["data"] = endpoint.body
            else:
                kwargs["json"] = endpoint.body
        return client.build_request(endpoint.method.value, endpoint.url, **kwargs)

    def _backoff(self, attempt: int) -> float:
        return self.retry_delay * (2**attempt)

    async def send(self, endpoint: Endpoint) -> httpx.Response:
        """Send ``endpoint`` and return the successful response."""

        url = validate_url(endpoint.url)
        client = await self._get_http_client()
        attempt = 0

        while True:
            request = self._build_request(client, endpoint)
            self._api_logger.log_request(request)
            started = time.perf_counter()
            try:
                response = await client.send(request)
            except httpx.TransportError as exc:
                self._api_logger.log_error(request, exc, time.perf_counter() - started)
                if attempt < self.max_retries:
                    delay = self._backoff(attempt)
                    attempt += 1
                    self._api_logger.log_retry(request, attempt, type(exc).__name__, delay)
                    await self._sleep(delay)
                    continue
                raise NetworkError(exc, detail=str(exc) or type(exc).__name__) from exc
            except httpx.HTTPError as exc:
                self._api_logger.log_error(request, exc, time.perf_counter() - started)
                raise NetworkError(exc, detail=str(exc) or type(exc).__name__) from exc

            self._api_logger.log_response(response, time.perf_counter() - started)
            status_code = response.status_code

            if status_code == 401:
                raise UnauthorizedError(_extract_error_detail(response))

            retryable = status_code >= 500 or status_code == _RETRYABLE_CLIENT_STATUS
            if retryable and attempt < self.max_retries:
                delay = self._backoff(attempt)
                if status_code == _RETRYABLE_CLIENT_STATUS:
                    delay = _retry_after_seconds(response) or delay
                attempt += 1
                self._api_logger.log_retry(request, attempt, f"HTTP {status_code}", delay)
                await self._sleep(delay)
                continue

            if status_code >= 400:
                detail = _extract_error_detail(response)
                logger.warning(
                    "Spotify request %s %s failed with %s: %s",
                    endpoint.method.value,
                    url,
                    status_code,
                    detail,
                )
                raise NetworkError(
                    f"HTTP {status_code}", status_code=status_code, detail=detail
                )

            return response

    async def request(
        self,
        endpoint: Endpoint,
        response_model: Optional[Type[ModelT]] = None,
        *,
        allow_empty: bool = False,
    ) -> Optional[ModelT]:
        """Send ``endpoint`` and decode the body into ``response_model``.

        Without a model the body is ignored and ``None`` is returned. An empty
        body only decodes to ``None`` when ``allow_empty`` is set.
        """

        response = await self.send(endpoint)
        if response_model is None:
            return None

        content = response.content
        if not content.strip():
            if allow_empty:
                return None
            raise DecodingError(
                f"Expected {response_model.__name__} but the response body was empty"
            )

        try:
            return response_model.model_validate_json(content)
        except ValidationError as exc:
            raise DecodingError(
                f"Failed to decode {response_model.__name__}: {exc}", body=content
            ) from exc


__all__ = ["RequestPipeline", "validate_url"]
