"""Endpoint descriptors for the Spotify Web API."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional
from urllib.parse import quote

DEFAULT_BASE_URL = "https://api.spotify.com/v1"


class HTTPMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class BodyEncoding(str, Enum):
    JSON = "json"
    FORM = "form"


@dataclass(frozen=True)
class Endpoint:
    """Immutable description of a single HTTP call.

    Headers and query are frozen; the body is a private deep copy of the
    value passed in.
    """

    base_url: str
    path: str
    method: HTTPMethod = HTTPMethod.GET
    headers: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Any = None
    body_encoding: BodyEncoding = BodyEncoding.JSON

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        query = {key: value for key, value in self.query.items() if value is not None}
        object.__setattr__(self, "query", MappingProxyType(query))
        object.__setattr__(self, "body", copy.deepcopy(self.body))

    @property
    def url(self) -> str:
        base = (self.base_url or "").rstrip("/")
        path = self.path or ""
        if path and not path.startswith("/"):
            path = f"/{path}"
        return f"{base}{path}"


def _segment(value: str) -> str:
    return quote(value, safe="")


class SpotifyEndpoints:
    """Factory for every Spotify Web API call used by the repository."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL):
        self.base_url = base_url

    def _endpoint(
        self,
        path: str,
        method: HTTPMethod = HTTPMethod.GET,
        *,
        query: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> Endpoint:
        return Endpoint(
            base_url=self.base_url,
            path=path,
            method=method,
            query=query or {},
            body=body,
        )

    # Player ---------------------------------------------------------------
    def currently_playing(self) -> Endpoint:
        return self._endpoint("/me/player/currently-playing")

    def recently_played(self, limit: Optional[int] = None) -> Endpoint:
        return self._endpoint("/me/player/recently-played", query={"limit": limit})

    def play(self) -> Endpoint:
        return self._endpoint("/me/player/play", HTTPMethod.PUT)

    def pause(self) -> Endpoint:
        return self._endpoint("/me/player/pause", HTTPMethod.PUT)

    def next(self) -> Endpoint:
        return self._endpoint("/me/player/next", HTTPMethod.POST)

    def previous(self) -> Endpoint:
        return self._endpoint("/me/player/previous", HTTPMethod.POST)

    def seek(self, position_ms: int) -> Endpoint:
        return self._endpoint(
            "/me/player/seek", HTTPMethod.PUT, query={"position_ms": position_ms}
        )

    def add_to_queue(self, uri: str) -> Endpoint:
        return self._endpoint("/me/player/queue", HTTPMethod.POST, query={"uri": uri})

    # Listening stats --------------------------------------------------------
    def top_artists(self, time_range: str, limit: int, offset: int) -> Endpoint:
        return self._endpoint(
            "/me/top/artists",
            query={"time_range": time_range, "limit": limit, "offset": offset},
        )

    def top_tracks(self, time_range: str, limit: int, offset: int) -> Endpoint:
        return self._endpoint(
            "/me/top/tracks",
            query={"time_range": time_range, "limit": limit, "offset": offset},
        )

    # Catalogue --------------------------------------------------------------
    def artist(self, artist_id: str) -> Endpoint:
        return self._endpoint(f"/artists/{_segment(artist_id)}")

    def artists(self, ids: Iterable[str]) -> Endpoint:
        return self._endpoint("/artists", query={"ids": ",".join(ids)})

    def artist_albums(
        self,
        artist_id: str,
        *,
        include_groups: Optional[str] = None,
        market: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Endpoint:
        return self._endpoint(
            f"/artists/{_segment(artist_id)}/albums",
            query={
                "include_groups": include_groups,
                "market": market,
                "limit": limit,
                "offset": offset,
            },
        )

    def artist_top_tracks(self, artist_id: str, market: str) -> Endpoint:
        return self._endpoint(
            f"/artists/{_segment(artist_id)}/top-tracks", query={"market": market}
        )

    def album_tracks(
        self,
        album_id: str,
        *,
        market: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Endpoint:
        return self._endpoint(
            f"/albums/{_segment(album_id)}/tracks",
            query={"market": market, "limit": limit, "offset": offset},
        )

    def user_profile(self) -> Endpoint:
        return self._endpoint("/me")

    # Playlists --------------------------------------------------------------
    def user_playlists(
        self, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> Endpoint:
        return self._endpoint("/me/playlists", query={"limit": limit, "offset": offset})

    def playlist(self, playlist_id: str) -> Endpoint:
        return self._endpoint(f"/playlists/{_segment(playlist_id)}")

    def playlist_tracks(
        self,
        playlist_id: str,
        *,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        market: Optional[str] = None,
    ) -> Endpoint:
        return self._endpoint(
            f"/playlists/{_segment(playlist_id)}/tracks",
            query={"limit": limit, "offset": offset, "market": market},
        )

    def create_playlist(
        self,
        user_id: str,
        name: str,
        *,
        description: Optional[str] = None,
        public: Optional[bool] = None,
    ) -> Endpoint:
        body: dict[str, Any] = {"name": name}
        if description is not None:
            body["description"] = description
        if public is not None:
            body["public"] = public
        return self._endpoint(
            f"/users/{_segment(user_id)}/playlists", HTTPMethod.POST, body=body
        )

    def update_playlist(
        self,
        playlist_id: str,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        public: Optional[bool] = None,
    ) -> Endpoint:
        body = {
            key: value
            for key, value in (
                ("name", name),
                ("description", description),
                ("public", public),
            )
            if value is not None
        }
        return self._endpoint(
            f"/playlists/{_segment(playlist_id)}", HTTPMethod.PUT, body=body
        )

    def unfollow_playlist(self, playlist_id: str) -> Endpoint:
        return self._endpoint(
            f"/playlists/{_segment(playlist_id)}/followers", HTTPMethod.DELETE
        )

    def add_tracks(
        self, playlist_id: str, uris: Iterable[str], position: Optional[int] = None
    ) -> Endpoint:
        body: dict[str, Any] = {"uris": list(uris)}
        if position is not None:
            body["position"] = position
        return self._endpoint(
            f"/playlists/{_segment(playlist_id)}/tracks", HTTPMethod.POST, body=body
        )

    def remove_tracks(
        self,
        playlist_id: str,
        uris: Iterable[str],
        snapshot_id: Optional[str] = None,
    ) -> Endpoint:
        body: dict[str, Any] = {"tracks": [{"uri": uri} for uri in uris]}
        if snapshot_id is not None:
            body["snapshot_id"] = snapshot_id
        return self._endpoint(
            f"/playlists/{_segment(playlist_id)}/tracks", HTTPMethod.DELETE, body=body
        )

    # Search -----------------------------------------------------------------
    def search_tracks(
        self,
        query: str,
        *,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        market: Optional[str] = None,
    ) -> Endpoint:
        return self._endpoint(
            "/search",
            query={
                "q": query,
                "type": "track",
                "limit": limit,
                "offset": offset,
                "market": market,
            },
        )


__all__ = [
    "DEFAULT_BASE_URL",
    "BodyEncoding",
    "Endpoint",
    "HTTPMethod",
    "SpotifyEndpoints",
]
