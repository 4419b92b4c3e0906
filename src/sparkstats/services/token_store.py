"""Typed Spotify token persistence on top of the credential store."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from .credential_store import (
    CredentialStore,
    CredentialStoreError,
    ItemNotFoundError,
    UnexpectedDataError,
)

logger = logging.getLogger(__name__)

TOKEN_KEY = "spotify_token"


class TokenStoreError(Exception):
    """Base class for token persistence failures."""


class TokenNotFoundError(TokenStoreError):
    """No usable token is stored (the user is not authenticated)."""


class TokenInvalidError(TokenStoreError):
    """The stored token could not be decoded into a usable token."""


@dataclass(frozen=True)
class Token:
    """Access/refresh credential pair with an expiration timestamp."""

    access_token: str
    refresh_token: str
    expiration_date: datetime

    @property
    def is_expired(self) -> bool:
        return datetime.now(timezone.utc) >= self.expiration_date

    @property
    def is_valid(self) -> bool:
        return bool(self.access_token and self.refresh_token) and not self.is_expired

    @classmethod
    def from_token_info(
        cls,
        payload: Mapping[str, Any],
        *,
        fallback_refresh_token: Optional[str] = None,
        now: Optional[float] = None,
    ) -> "Token":
        """Build a token from an OAuth token response.

        Accepts either an absolute ``expires_at`` (epoch seconds) or a relative
        ``expires_in``. Spotify may omit ``refresh_token`` on refresh, in which
        case ``fallback_refresh_token`` is kept.
        """

        if payload.get("expires_at") is not None:
            expires_at = float(payload["expires_at"])
        else:
            now_ts = float(time.time() if now is None else now)
            expires_at = now_ts + float(payload.get("expires_in", 0))

        return cls(
            access_token=str(payload.get("access_token") or ""),
            refresh_token=str(
                payload.get("refresh_token") or fallback_refresh_token or ""
            ),
            expiration_date=datetime.fromtimestamp(expires_at, tz=timezone.utc),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expiration_date": self.expiration_date.timestamp(),
        }


def _encode_token(token: Token) -> bytes:
    return json.dumps(token.to_payload(), separators=(",", ":")).encode("utf-8")


def _decode_token(data: bytes) -> Token:
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise TokenInvalidError(f"Stored token is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise TokenInvalidError("Stored token is not an object")

    access_token = payload.get("access_token")
    refresh_token = payload.get("refresh_token")
    expiration = payload.get("expiration_date")
    if not isinstance(access_token, str) or not access_token:
        raise TokenInvalidError("Stored token is missing access_token")
    if not isinstance(refresh_token, str):
        raise TokenInvalidError("Stored token is missing refresh_token")
    if isinstance(expiration, bool) or not isinstance(expiration, (int, float)):
        raise TokenInvalidError("Stored token is missing expiration_date")

    try:
        expiration_date = datetime.fromtimestamp(float(expiration), tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise TokenInvalidError(f"Stored token has an invalid expiration_date: {exc}") from exc

    return Token(
        access_token=access_token,
        refresh_token=refresh_token,
        expiration_date=expiration_date,
    )


class TokenStore:
    """Persist a single Spotify token in the secure credential store."""

    def __init__(self, credential_store: CredentialStore, *, key: str = TOKEN_KEY):
        self._store = credential_store
        self._key = key

    def save_token(self, token: Token) -> None:
        """Replace the stored token wholesale."""

        try:
            self._store.save(_encode_token(token), self._key)
        except CredentialStoreError as exc:
            raise TokenStoreError(f"Failed to save token: {exc}") from exc

    def load_token(self) -> Token:
        try:
            data = self._store.load(self._key)
        except ItemNotFoundError as exc:
            raise TokenNotFoundError("No Spotify token is stored") from exc
        except UnexpectedDataError as exc:
            raise TokenInvalidError(str(exc)) from exc
        except CredentialStoreError as exc:
            raise TokenStoreError(f"Failed to load token: {exc}") from exc
        return _decode_token(data)

    def has_valid_token(self) -> bool:
        """Return True when a stored, unexpired token exists. Never raises."""

        try:
            return self.load_token().is_valid
        except Exception as exc:
            logger.debug("No valid stored token: %s", exc)
            return False

    def delete_token(self) -> None:
        try:
            self._store.delete(self._key)
        except CredentialStoreError as exc:
            raise TokenStoreError(f"Failed to delete token: {exc}") from exc

    def clear_tokens(self) -> None:
        self.delete_token()

    def get_current_access_token(self) -> str:
        token = self.load_token()
        if not token.is_valid:
            raise TokenNotFoundError("Stored Spotify token has expired")
        return token.access_token

    def get_current_refresh_token(self) -> str:
        token = self.load_token()
        if not token.refresh_token:
            raise TokenNotFoundError("Stored Spotify token has no refresh token")
        return token.refresh_token


__all__ = [
    "TOKEN_KEY",
    "Token",
    "TokenInvalidError",
    "TokenNotFoundError",
    "TokenStore",
    "TokenStoreError",
]
