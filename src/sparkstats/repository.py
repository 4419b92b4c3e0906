"""Repository façade over the Spotify request pipeline."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable, Optional, Type, TypeVar

from pydantic import BaseModel

from .api.endpoints import Endpoint, SpotifyEndpoints
from .api.errors import APIError, NetworkError, UnauthorizedError
from .api.pipeline import RequestPipeline
from .domain import (
    Album,
    AlbumTrack,
    Artist,
    CurrentPlayback,
    Page,
    Playlist,
    PlaylistTrack,
    RecentTrack,
    SearchTrackResult,
    TimeRange,
    TopArtist,
    TopTrack,
    Track,
)
from .mappers import (
    map_album_tracks,
    map_artist,
    map_artist_albums,
    map_artist_top_tracks,
    map_artists,
    map_current_playback,
    map_playlist,
    map_playlist_tracks,
    map_playlists,
    map_recently_played,
    map_search_tracks,
    map_top_artists,
    map_top_tracks,
)
from .schemas.playlists import (
    PlaylistDTO,
    PlaylistsResponse,
    PlaylistTracksResponse,
    SearchTracksResponse,
    SnapshotResponse,
)
from .schemas.spotify import (
    AlbumTracksResponse,
    ArtistAlbumsResponse,
    ArtistDTO,
    ArtistsResponse,
    ArtistTopTracksResponse,
    CurrentlyPlayingResponse,
    RecentlyPlayedResponse,
    TopArtistsResponse,
    TopTracksResponse,
    UserProfileDTO,
)
from .services.spotify_auth import AuthSessionManager, Authorized

logger = logging.getLogger(__name__)

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)


class RepositoryError(Exception):
    """Base class for failures surfaced to the presentation layer."""

    default_message = "Something went wrong while talking to Spotify."

    def __init__(self, message: Optional[str] = None, *, cause: Optional[BaseException] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.cause = cause


class NoCurrentlyPlayingError(RepositoryError):
    default_message = "Nothing is playing right now."


class RepositoryUnauthorizedError(RepositoryError):
    default_message = "Spotify authorization is required."


class RepositoryNetworkError(RepositoryError):
    default_message = "Could not reach Spotify."

    def __init__(self, message: Optional[str] = None, *, cause: Optional[BaseException] = None):
        if message is None and cause is not None:
            message = f"Network error: {cause}"
        super().__init__(message, cause=cause)
        self.status_code = getattr(cause, "status_code", None)


class RepositoryUnknownError(RepositoryError):
    def __init__(self, message: Optional[str] = None, *, cause: Optional[BaseException] = None):
        if message is None and cause is not None:
            message = f"Unexpected Spotify error: {cause}"
        super().__init__(message, cause=cause)


class SpotifyRepository:
    """Business operations returning domain entities.

    Every operation translates pipeline errors into :class:`RepositoryError`
    subclasses. An unauthorized response triggers one session renewal and one
    retry of the operation.
    """

    def __init__(
        self,
        pipeline: RequestPipeline,
        auth: Optional[AuthSessionManager] = None,
        endpoints: Optional[SpotifyEndpoints] = None,
    ) -> None:
        self._pipeline = pipeline
        self._auth = auth
        self._endpoints = endpoints or SpotifyEndpoints()

    async def _renew_session(self) -> bool:
        if self._auth is None:
            return False
        logger.info("Spotify returned 401; renewing session")
        await self._auth.renew_session()
        return isinstance(self._auth.state, Authorized)

    async def _call(self, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            try:
                return await operation()
            except UnauthorizedError:
                if not await self._renew_session():
                    raise
                return await operation()
        except UnauthorizedError as exc:
            raise RepositoryUnauthorizedError(cause=exc) from exc
        except NetworkError as exc:
            raise RepositoryNetworkError(cause=exc) from exc
        except APIError as exc:
            raise RepositoryUnknownError(cause=exc) from exc

    async def _fetch(self, endpoint: Endpoint, model: Type[ModelT]) -> ModelT:
        return await self._call(lambda: self._pipeline.request(endpoint, model))

    async def _send(self, endpoint: Endpoint) -> None:
        await self._call(lambda: self._pipeline.request(endpoint))

    # ------------------------------------------------------------------
    # Player
    # ------------------------------------------------------------------
    async def get_current_playback(self) -> CurrentPlayback:
        endpoint = self._endpoints.currently_playing()
        response = await self._call(
            lambda: self._pipeline.request(
                endpoint, CurrentlyPlayingResponse, allow_empty=True
            )
        )
        if response is None:
            raise NoCurrentlyPlayingError()
        return map_current_playback(response)

    async def play(self) -> None:
        await self._send(self._endpoints.play())

    async def pause(self) -> None:
        await self._send(self._endpoints.pause())

    async def next_track(self) -> None:
        await self._send(self._endpoints.next())

    async def previous_track(self) -> None:
        await self._send(self._endpoints.previous())

    async def seek(self, position_ms: int) -> None:
        await self._send(self._endpoints.seek(position_ms))

    async def add_to_queue(self, uri: str) -> None:
        await self._send(self._endpoints.add_to_queue(uri))

    # ------------------------------------------------------------------
    # Listening history and stats
    # ------------------------------------------------------------------
    async def get_recently_played(self, limit: int = 20) -> list[RecentTrack]:
        response = await self._fetch(
            self._endpoints.recently_played(limit), RecentlyPlayedResponse
        )
        return map_recently_played(response)

    async def get_top_artists(
        self,
        time_range: TimeRange | str = TimeRange.MEDIUM_TERM,
        limit: int = 20,
        offset: int = 0,
    ) -> list[TopArtist]:
        endpoint = self._endpoints.top_artists(TimeRange(time_range).value, limit, offset)
        return map_top_artists(await self._fetch(endpoint, TopArtistsResponse))

    async def get_top_tracks(
        self,
        time_range: TimeRange | str = TimeRange.MEDIUM_TERM,
        limit: int = 20,
        offset: int = 0,
    ) -> list[TopTrack]:
        endpoint = self._endpoints.top_tracks(TimeRange(time_range).value, limit, offset)
        return map_top_tracks(await self._fetch(endpoint, TopTracksResponse))

    # ------------------------------------------------------------------
    # Artists and albums
    # ------------------------------------------------------------------
    async def get_artist(self, artist_id: str) -> Artist:
        return map_artist(await self._fetch(self._endpoints.artist(artist_id), ArtistDTO))

    async def get_artists(self, artist_ids: Iterable[str]) -> list[Artist]:
        ids = [artist_id for artist_id in artist_ids if artist_id]
        if not ids:
            return []
        return map_artists(await self._fetch(self._endpoints.artists(ids), ArtistsResponse))

    async def get_artist_albums(
        self,
        artist_id: str,
        limit: int = 20,
        offset: int = 0,
        *,
        include_groups: Optional[str] = None,
        market: Optional[str] = None,
    ) -> list[Album]:
        endpoint = self._endpoints.artist_albums(
            artist_id,
            include_groups=include_groups,
            market=market,
            limit=limit,
            offset=offset,
        )
        return map_artist_albums(await self._fetch(endpoint, ArtistAlbumsResponse))

    async def get_artist_top_tracks(self, artist_id: str, market: str = "US") -> list[Track]:
        endpoint = self._endpoints.artist_top_tracks(artist_id, market)
        return map_artist_top_tracks(await self._fetch(endpoint, ArtistTopTracksResponse))

    async def get_album_tracks(
        self, album_id: str, limit: int = 50, offset: int = 0
    ) -> Page[AlbumTrack]:
        endpoint = self._endpoints.album_tracks(album_id, limit=limit, offset=offset)
        return map_album_tracks(await self._fetch(endpoint, AlbumTracksResponse))

    # ------------------------------------------------------------------
    # Playlists
    # ------------------------------------------------------------------
    async def get_user_playlists(
        self, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> Page[Playlist]:
        endpoint = self._endpoints.user_playlists(limit, offset)
        return map_playlists(await self._fetch(endpoint, PlaylistsResponse))

    async def get_playlist_detail(self, playlist_id: str) -> Playlist:
        return map_playlist(
            await self._fetch(self._endpoints.playlist(playlist_id), PlaylistDTO)
        )

    async def get_playlist_tracks(
        self,
        playlist_id: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> Page[PlaylistTrack]:
        endpoint = self._endpoints.playlist_tracks(playlist_id, limit=limit, offset=offset)
        return map_playlist_tracks(await self._fetch(endpoint, PlaylistTracksResponse))

    async def get_user_id(self) -> str:
        profile = await self._fetch(self._endpoints.user_profile(), UserProfileDTO)
        return profile.id

    async def create_playlist(
        self,
        user_id: str,
        name: str,
        description: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> Playlist:
        endpoint = self._endpoints.create_playlist(
            user_id, name, description=description, public=is_public
        )
        return map_playlist(await self._fetch(endpoint, PlaylistDTO))

    async def update_playlist(
        self,
        playlist_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> None:
        await self._send(
            self._endpoints.update_playlist(
                playlist_id, name=name, description=description, public=is_public
            )
        )

    async def delete_playlist(self, playlist_id: str) -> None:
        await self._send(self._endpoints.unfollow_playlist(playlist_id))

    async def add_tracks_to_playlist(
        self, playlist_id: str, uris: Iterable[str], position: Optional[int] = None
    ) -> str:
        endpoint = self._endpoints.add_tracks(playlist_id, uris, position)
        response = await self._fetch(endpoint, SnapshotResponse)
        return response.snapshot_id

    async def remove_tracks_from_playlist(
        self,
        playlist_id: str,
        uris: Iterable[str],
        snapshot_id: Optional[str] = None,
    ) -> str:
        endpoint = self._endpoints.remove_tracks(playlist_id, uris, snapshot_id)
        response = await self._fetch(endpoint, SnapshotResponse)
        return response.snapshot_id

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    async def search_tracks(
        self,
        query: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        market: Optional[str] = None,
    ) -> Page[SearchTrackResult]:
        endpoint = self._endpoints.search_tracks(
            query, limit=limit, offset=offset, market=market
        )
        return map_search_tracks(await self._fetch(endpoint, SearchTracksResponse))


__all__ = [
    "NoCurrentlyPlayingError",
    "RepositoryError",
    "RepositoryNetworkError",
    "RepositoryUnauthorizedError",
    "RepositoryUnknownError",
    "SpotifyRepository",
]