"""Spotify session lifecycle: authorization state machine and token persistence."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Union

from ..token_store import (
    TokenInvalidError,
    TokenNotFoundError,
    TokenStore,
    TokenStoreError,
)
from .flow import SCOPES, AuthorizationFlow, Session

logger = logging.getLogger(__name__)


class AuthConfigurationError(Exception):
    """Raised when the Spotify client configuration is incomplete."""


@dataclass(frozen=True)
class Idle:
    name = "idle"


@dataclass(frozen=True)
class Authorizing:
    name = "authorizing"


@dataclass(frozen=True)
class Authorized:
    session: Session
    name = "authorized"


@dataclass(frozen=True)
class Failed:
    error: Exception
    name = "failed"


AuthState = Union[Idle, Authorizing, Authorized, Failed]
StateListener = Callable[[AuthState], None]


class AuthSessionManager:
    """Drive the Spotify authorization flow and publish state transitions.

    Every transition happens synchronously on the calling thread or event
    loop, so a check-and-set on the current state cannot interleave with
    another transition. Outcomes of the external hand-off are only observable
    through :meth:`subscribe`.
    """

    def __init__(
        self,
        token_store: TokenStore,
        flow: AuthorizationFlow,
        *,
        client_id: str,
        redirect_uri: str,
        scopes: Sequence[str] = SCOPES,
    ) -> None:
        self._token_store = token_store
        self._flow = flow
        self._client_id = client_id
        self._redirect_uri = redirect_uri
        self._scopes = tuple(scopes)
        self._state: AuthState = Idle()
        self._session: Optional[Session] = None
        self._listeners: list[StateListener] = []
        self._renew_lock = asyncio.Lock()
        self._renewing = False
        self.pending_authorization_url: Optional[str] = None

        flow.delegate = self
        self.load_stored_session()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def current_session(self) -> Optional[Session]:
        return self._session

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Deliver the current state now and every later transition."""

        self._listeners.append(listener)
        listener(self._state)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, state: AuthState) -> None:
        self._state = state
        logger.debug("Spotify auth state -> %s", state.name)
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:  # pragma: no cover
                logger.exception("Auth state listener failed")

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------
    def start_authorization(
        self, present: Optional[Callable[[str], object]] = None
    ) -> None:
        """Begin the consent flow and hand the authorize URL to ``present``."""

        if isinstance(self._state, Authorizing):
            logger.info("Spotify authorization already in progress; ignoring")
            return

        if not self._client_id:
            self._emit(Failed(AuthConfigurationError("Spotify client ID is not configured")))
            return
        if not self._redirect_uri:
            self._emit(
                Failed(AuthConfigurationError("Spotify redirect URI is not configured"))
            )
            return

        self._emit(Authorizing())
        try:
            url = self._flow.initiate_session(self._scopes)
        except Exception as exc:
            logger.error("Failed to start Spotify authorization: %s", exc)
            self._emit(Failed(exc))
            return

        self.pending_authorization_url = url
        if present is not None:
            present(url)

    async def handle_callback(self, url: str) -> bool:
        """Forward the OAuth redirect URL to the platform flow."""

        return await self._flow.handle(url)

    async def renew_session(self) -> None:
        """Obtain a fresh session using the current refresh token."""

        session = self._session
        if session is None:
            logger.warning("No live Spotify session to renew")
            return

        async with self._renew_lock:
            if self._session is not session:
                # Renewed by a concurrent caller while waiting for the lock.
                return
            self._renewing = True
            try:
                await self._flow.renew_session(session.token.refresh_token)
            finally:
                self._renewing = False

    # ------------------------------------------------------------------
    # Platform flow delegate callbacks
    # ------------------------------------------------------------------
    # Outcomes only apply while a sign-in or a renewal is in flight.
    def session_initiated(self, session: Session) -> None:
        if not isinstance(self._state, Authorizing):
            logger.info("Ignoring Spotify session outside of authorization")
            return
        logger.info("Spotify session initiated")
        self._store_session(session)

    def session_renewed(self, session: Session) -> None:
        if not self._renewing:
            logger.info("Ignoring Spotify session renewal nobody requested")
            return
        logger.info("Spotify session renewed")
        self._store_session(session)

    def session_failed(self, error: Exception) -> None:
        if not (self._renewing or isinstance(self._state, Authorizing)):
            logger.info("Ignoring Spotify session failure: %s", error)
            return
        logger.warning("Spotify session failed: %s", error)
        self.pending_authorization_url = None
        self._emit(Failed(error))

    def _store_session(self, session: Session) -> None:
        try:
            self._token_store.save_token(session.token)
        except TokenStoreError as exc:
            logger.error("Failed to persist Spotify token: %s", exc)
            self.pending_authorization_url = None
            self._emit(Failed(exc))
            return
        self._session = session
        self.pending_authorization_url = None
        self._emit(Authorized(session))

    # ------------------------------------------------------------------
    # Stored state
    # ------------------------------------------------------------------
    def load_stored_session(self) -> None:
        """Reconcile the persisted token with the in-memory session.

        A valid stored token without a live session still requires the user
        to sign in again; an expired or unreadable token is deleted.
        """

        try:
            token = self._token_store.load_token()
        except TokenNotFoundError:
            return
        except TokenInvalidError as exc:
            logger.warning("Discarding unreadable Spotify token: %s", exc)
            self._delete_stored_token()
            return
        except TokenStoreError as exc:
            logger.error("Failed to read stored Spotify token: %s", exc)
            return

        if not token.is_valid:
            logger.info("Stored Spotify token expired; deleting")
            self._delete_stored_token()
            return

        if self._session is None:
            self._emit(Idle())

    def _delete_stored_token(self) -> None:
        try:
            self._token_store.delete_token()
        except TokenStoreError as exc:
            logger.error("Failed to delete Spotify token: %s", exc)

    def sign_out(self) -> None:
        try:
            self._token_store.delete_token()
        except TokenStoreError as exc:
            logger.error("Failed to sign out of Spotify: %s", exc)
            return
        self._session = None
        self.pending_authorization_url = None
        self._emit(Idle())

    # ------------------------------------------------------------------
    # Token access
    # ------------------------------------------------------------------
    @property
    def is_authorized(self) -> bool:
        if self._token_store.has_valid_token():
            return True
        session = self._session
        return session is not None and not session.is_expired

    def get_current_access_token(self) -> Optional[str]:
        try:
            return self._token_store.get_current_access_token()
        except TokenStoreError as exc:
            logger.info("No Spotify access token available: %s", exc)
            return None

    def get_current_refresh_token(self) -> Optional[str]:
        try:
            return self._token_store.get_current_refresh_token()
        except TokenStoreError as exc:
            logger.info("No Spotify refresh token available: %s", exc)
            return None


__all__ = [
    "AuthConfigurationError",
    "AuthSessionManager",
    "AuthState",
    "Authorized",
    "Authorizing",
    "Failed",
    "Idle",
    "StateListener",
]
