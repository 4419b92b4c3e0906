"""Spotify authorization flow (Authorization Code + PKCE) built on spotipy.

The flow plays the role of the platform session manager: it produces the
consent URL, receives the redirect back from Spotify, exchanges or refreshes
tokens and reports every outcome to its delegate instead of returning it.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import uuid
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence
from urllib.parse import urlparse

from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyPKCE

from ..token_store import Token

logger = logging.getLogger(__name__)

SPOTIPY_LOGGER_NAMES = ("spotipy", "spotipy.client", "spotipy.oauth2")

# Scopes requested on every sign-in.
# Documentation: https://developer.spotify.com/documentation/web-api/concepts/scopes
SCOPES = (
    # Playlists
    "playlist-read-private",
    "playlist-read-collaborative",
    "playlist-modify-public",
    "playlist-modify-private",
    # Follow
    "user-follow-read",
    "user-follow-modify",
    # Library
    "user-library-read",
    "user-library-modify",
    # User Profile
    "user-read-email",
    "user-read-private",
    # Listening History
    "user-top-read",
    "user-read-recently-played",
    # Images
    "ugc-image-upload",
    # Spotify Connect / Playback
    "app-remote-control",
    "user-read-playback-state",
    "user-modify-playback-state",
    "user-read-currently-playing",
    "streaming",
)


def _quiet_spotipy_logging() -> None:
    """Keep spotipy's request chatter out of the application log."""
    for logger_name in SPOTIPY_LOGGER_NAMES:
        spotipy_logger = logging.getLogger(logger_name)
        spotipy_logger.setLevel(logging.WARNING)


_quiet_spotipy_logging()


class AuthFlowError(Exception):
    """Raised (and reported to the delegate) when the OAuth flow fails."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


@dataclass(frozen=True)
class Session:
    """Live authorization context bound to a token."""

    token: Token
    scope: str = ""
    session_id: str = ""

    @property
    def access_token(self) -> str:
        return self.token.access_token

    @property
    def is_expired(self) -> bool:
        return self.token.is_expired


class AuthFlowDelegate(Protocol):
    def session_initiated(self, session: Session) -> None:
        ...

    def session_renewed(self, session: Session) -> None:
        ...

    def session_failed(self, error: Exception) -> None:
        ...


class AuthorizationFlow(Protocol):
    delegate: Optional[AuthFlowDelegate]

    def initiate_session(self, scopes: Sequence[str]) -> str:
        ...

    async def handle(self, url: str) -> bool:
        ...

    async def renew_session(self, refresh_token: str) -> None:
        ...


def _session_from_token_info(
    token_info: dict[str, Any], *, fallback_refresh_token: Optional[str] = None
) -> Session:
    token = Token.from_token_info(
        token_info, fallback_refresh_token=fallback_refresh_token
    )
    if not token.access_token:
        raise AuthFlowError("Spotify token response did not include an access token")
    return Session(
        token=token,
        scope=str(token_info.get("scope") or ""),
        session_id=uuid.uuid4().hex,
    )


@dataclass
class _PendingAuthorization:
    oauth: SpotifyPKCE
    state: str
    url: str


class SpotifyPKCEFlow:
    """Authorization flow backed by ``spotipy.oauth2.SpotifyPKCE``."""

    def __init__(
        self,
        client_id: str,
        redirect_uri: str,
        *,
        requests_timeout: float = 30.0,
        delegate: Optional[AuthFlowDelegate] = None,
    ) -> None:
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.requests_timeout = requests_timeout
        self.delegate = delegate
        self._pending: Optional[_PendingAuthorization] = None

    def _build_oauth(self, scopes: Sequence[str]) -> SpotifyPKCE:
        return SpotifyPKCE(
            client_id=self.client_id,
            redirect_uri=self.redirect_uri,
            scope=" ".join(scopes),
            cache_handler=MemoryCacheHandler(),
            open_browser=False,
            requests_timeout=self.requests_timeout,
        )

    def initiate_session(self, scopes: Sequence[str]) -> str:
        """Start a consent flow and return the Spotify authorize URL."""

        oauth = self._build_oauth(scopes)
        state = secrets.token_urlsafe(16)
        url = oauth.get_authorize_url(state=state)
        self._pending = _PendingAuthorization(oauth=oauth, state=state, url=url)
        return url

    def can_handle(self, url: str) -> bool:
        expected = urlparse(self.redirect_uri)
        actual = urlparse(url)
        return (actual.scheme, actual.netloc, actual.path) == (
            expected.scheme,
            expected.netloc,
            expected.path,
        )

    async def handle(self, url: str) -> bool:
        """Complete the flow from the redirect URL.

        Returns False when the URL is not the configured redirect URI or no
        authorization is pending; every other outcome is reported to the
        delegate.
        """

        if not self.can_handle(url):
            return False

        pending, self._pending = self._pending, None
        if pending is None:
            logger.info("Ignoring Spotify redirect with no authorization in progress")
            return False

        try:
            state, code = SpotifyOAuth.parse_auth_response_url(url)
            if state != pending.state:
                raise AuthFlowError("Spotify authorization state mismatch")
            if not code:
                raise AuthFlowError("Spotify redirect did not include a code")
            token_info = await asyncio.to_thread(self._exchange_code, pending.oauth, code)
            session = _session_from_token_info(token_info)
        except Exception as exc:
            logger.warning("Spotify authorization failed: %s", exc)
            self._report_failure(exc)
            return True

        if self.delegate is not None:
            self.delegate.session_initiated(session)
        return True

    async def renew_session(self, refresh_token: str) -> None:
        try:
            oauth = self._build_oauth(SCOPES)
            token_info = await asyncio.to_thread(
                oauth.refresh_access_token, refresh_token
            )
            session = _session_from_token_info(
                token_info, fallback_refresh_token=refresh_token
            )
        except Exception as exc:
            logger.warning("Spotify session renewal failed: %s", exc)
            self._report_failure(exc)
            return

        if self.delegate is not None:
            self.delegate.session_renewed(session)

    @staticmethod
    def _exchange_code(oauth: SpotifyPKCE, code: str) -> dict[str, Any]:
        oauth.get_access_token(code=code, check_cache=False)
        token_info = oauth.cache_handler.get_cached_token()
        if not token_info:
            raise AuthFlowError("Failed to exchange authorization code for tokens")
        return token_info

    def _report_failure(self, exc: Exception) -> None:
        if self.delegate is None:
            return
        error = exc if isinstance(exc, AuthFlowError) else AuthFlowError(str(exc), cause=exc)
        self.delegate.session_failed(error)


__all__ = [
    "SCOPES",
    "AuthFlowDelegate",
    "AuthFlowError",
    "AuthorizationFlow",
    "Session",
    "SpotifyPKCEFlow",
]
