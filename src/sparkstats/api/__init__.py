"""Spotify Web API request pipeline."""

from .api_logger import ApiLogger, ApiLogLevel
from .endpoints import DEFAULT_BASE_URL, BodyEncoding, Endpoint, HTTPMethod, SpotifyEndpoints
from .errors import (
    APIError,
    DecodingError,
    InvalidURLError,
    NetworkError,
    UnauthorizedError,
)
from .interceptor import AuthInterceptor
from .pipeline import RequestPipeline

__all__ = [
    "DEFAULT_BASE_URL",
    "APIError",
    "ApiLogLevel",
    "ApiLogger",
    "AuthInterceptor",
    "BodyEncoding",
    "DecodingError",
    "Endpoint",
    "HTTPMethod",
    "InvalidURLError",
    "NetworkError",
    "RequestPipeline",
    "SpotifyEndpoints",
    "UnauthorizedError",
]
