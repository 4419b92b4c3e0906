"""Per-request header decoration for Spotify API calls."""

from __future__ import annotations

import logging
from typing import Mapping

from ..services.token_store import TokenStore, TokenStoreError

logger = logging.getLogger(__name__)


class AuthInterceptor:
    """Attach JSON and bearer-token headers to every outgoing request.

    The access token is read from the token store on each call, so a renewed
    token is used by the very next request.
    """

    def __init__(self, token_store: TokenStore):
        self._token_store = token_store

    def adapt(self, headers: Mapping[str, str] | None = None) -> dict[str, str]:
        adapted = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if headers:
            adapted.update(headers)

        try:
            access_token = self._token_store.get_current_access_token()
        except TokenStoreError as exc:
            logger.warning("Sending Spotify request without access token: %s", exc)
        else:
            adapted["Authorization"] = f"Bearer {access_token}"
        return adapted


__all__ = ["AuthInterceptor"]
