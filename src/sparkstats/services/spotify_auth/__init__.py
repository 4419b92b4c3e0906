"""Spotify authentication service."""

from .auth import (
    AuthConfigurationError,
    AuthSessionManager,
    AuthState,
    Authorized,
    Authorizing,
    Failed,
    Idle,
)
from .flow import SCOPES, AuthFlowError, Session, SpotifyPKCEFlow

__all__ = [
    "SCOPES",
    "AuthConfigurationError",
    "AuthFlowError",
    "AuthSessionManager",
    "AuthState",
    "Authorized",
    "Authorizing",
    "Failed",
    "Idle",
    "Session",
    "SpotifyPKCEFlow",
]
