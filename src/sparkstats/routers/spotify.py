"""Spotify data and playback routes backed by the repository façade."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, Field

from ..domain import TimeRange
from ..repository import (
    NoCurrentlyPlayingError,
    RepositoryError,
    RepositoryNetworkError,
    RepositoryUnauthorizedError,
    SpotifyRepository,
)

router = APIRouter()


class CreatePlaylistRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    public: Optional[bool] = None


class UpdatePlaylistRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    public: Optional[bool] = None


class AddTracksRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    uris: list[str] = Field(..., min_length=1)
    position: Optional[int] = Field(default=None, ge=0)


class RemoveTracksRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    uris: list[str] = Field(..., min_length=1)
    snapshot_id: Optional[str] = None


class SnapshotPayload(BaseModel):
    snapshot_id: str


def get_repository(request: Request) -> SpotifyRepository:
    return request.app.state.spotify_repository


def _http_error(exc: RepositoryError) -> HTTPException:
    if isinstance(exc, RepositoryUnauthorizedError):
        return HTTPException(status_code=401, detail=exc.message)
    if isinstance(exc, RepositoryNetworkError):
        status_code = exc.status_code
        if status_code is not None and 400 <= status_code < 500:
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(status_code=502, detail=exc.message)


def _encode(value: Any) -> Any:
    return jsonable_encoder(value)


# ---------------------------------------------------------------------------
# Player
# ---------------------------------------------------------------------------
@router.get("/player", response_model=None)
async def get_current_playback(
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    """Return the current playback state, or 204 when nothing is playing."""

    try:
        playback = await repository.get_current_playback()
    except NoCurrentlyPlayingError:
        return Response(status_code=204)
    except RepositoryError as exc:
        raise _http_error(exc) from exc
    return _encode(playback)


@router.put("/player/play", status_code=204)
async def play(repository: SpotifyRepository = Depends(get_repository)) -> None:
    try:
        await repository.play()
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.put("/player/pause", status_code=204)
async def pause(repository: SpotifyRepository = Depends(get_repository)) -> None:
    try:
        await repository.pause()
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.post("/player/next", status_code=204)
async def next_track(repository: SpotifyRepository = Depends(get_repository)) -> None:
    try:
        await repository.next_track()
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.post("/player/previous", status_code=204)
async def previous_track(
    repository: SpotifyRepository = Depends(get_repository),
) -> None:
    try:
        await repository.previous_track()
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.put("/player/seek", status_code=204)
async def seek(
    position_ms: int = Query(..., ge=0),
    repository: SpotifyRepository = Depends(get_repository),
) -> None:
    try:
        await repository.seek(position_ms)
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.post("/player/queue", status_code=204)
async def add_to_queue(
    uri: str = Query(..., min_length=1),
    repository: SpotifyRepository = Depends(get_repository),
) -> None:
    try:
        await repository.add_to_queue(uri)
    except RepositoryError as exc:
        raise _http_error(exc) from exc


# ---------------------------------------------------------------------------
# Listening history and stats
# ---------------------------------------------------------------------------
@router.get("/history/recently-played", response_model=None)
async def get_recently_played(
    limit: int = Query(20, ge=1, le=50),
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    try:
        return _encode(await repository.get_recently_played(limit))
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.get("/top/artists", response_model=None)
async def get_top_artists(
    time_range: TimeRange = Query(TimeRange.MEDIUM_TERM),
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    try:
        return _encode(await repository.get_top_artists(time_range, limit, offset))
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.get("/top/tracks", response_model=None)
async def get_top_tracks(
    time_range: TimeRange = Query(TimeRange.MEDIUM_TERM),
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    try:
        return _encode(await repository.get_top_tracks(time_range, limit, offset))
    except RepositoryError as exc:
        raise _http_error(exc) from exc


# ---------------------------------------------------------------------------
# Artists and albums
# ---------------------------------------------------------------------------
@router.get("/artists", response_model=None)
async def get_artists(
    ids: str = Query(..., description="Comma separated artist ids"),
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    artist_ids = [item.strip() for item in ids.split(",") if item.strip()]
    try:
        return _encode(await repository.get_artists(artist_ids))
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.get("/artists/{artist_id}", response_model=None)
async def get_artist(
    artist_id: str,
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    try:
        return _encode(await repository.get_artist(artist_id))
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.get("/artists/{artist_id}/albums", response_model=None)
async def get_artist_albums(
    artist_id: str,
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    include_groups: Optional[str] = Query(None),
    market: Optional[str] = Query(None),
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    try:
        albums = await repository.get_artist_albums(
            artist_id,
            limit,
            offset,
            include_groups=include_groups,
            market=market,
        )
    except RepositoryError as exc:
        raise _http_error(exc) from exc
    return _encode(albums)


@router.get("/artists/{artist_id}/top-tracks", response_model=None)
async def get_artist_top_tracks(
    artist_id: str,
    market: str = Query("US", min_length=2, max_length=2),
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    try:
        return _encode(await repository.get_artist_top_tracks(artist_id, market))
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.get("/albums/{album_id}/tracks", response_model=None)
async def get_album_tracks(
    album_id: str,
    limit: int = Query(50, ge=1, le=50),
    offset: int = Query(0, ge=0),
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    try:
        return _encode(await repository.get_album_tracks(album_id, limit, offset))
    except RepositoryError as exc:
        raise _http_error(exc) from exc


# ---------------------------------------------------------------------------
# Playlists
# ---------------------------------------------------------------------------
@router.get("/me/id")
async def get_user_id(
    repository: SpotifyRepository = Depends(get_repository),
) -> dict[str, str]:
    try:
        return {"id": await repository.get_user_id()}
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.get("/playlists", response_model=None)
async def get_user_playlists(
    limit: Optional[int] = Query(None, ge=1, le=50),
    offset: Optional[int] = Query(None, ge=0),
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    try:
        return _encode(await repository.get_user_playlists(limit, offset))
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.post("/playlists", response_model=None, status_code=201)
async def create_playlist(
    payload: CreatePlaylistRequest,
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    """Create a playlist owned by the signed-in user."""

    try:
        user_id = await repository.get_user_id()
        playlist = await repository.create_playlist(
            user_id,
            payload.name,
            description=payload.description,
            is_public=payload.public,
        )
    except RepositoryError as exc:
        raise _http_error(exc) from exc
    return _encode(playlist)


@router.get("/playlists/{playlist_id}", response_model=None)
async def get_playlist(
    playlist_id: str,
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    try:
        return _encode(await repository.get_playlist_detail(playlist_id))
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.put("/playlists/{playlist_id}", status_code=204)
async def update_playlist(
    playlist_id: str,
    payload: UpdatePlaylistRequest,
    repository: SpotifyRepository = Depends(get_repository),
) -> None:
    try:
        await repository.update_playlist(
            playlist_id,
            name=payload.name,
            description=payload.description,
            is_public=payload.public,
        )
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.delete("/playlists/{playlist_id}", status_code=204)
async def delete_playlist(
    playlist_id: str,
    repository: SpotifyRepository = Depends(get_repository),
) -> None:
    try:
        await repository.delete_playlist(playlist_id)
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.get("/playlists/{playlist_id}/tracks", response_model=None)
async def get_playlist_tracks(
    playlist_id: str,
    limit: Optional[int] = Query(None, ge=1, le=100),
    offset: Optional[int] = Query(None, ge=0),
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    try:
        return _encode(await repository.get_playlist_tracks(playlist_id, limit, offset))
    except RepositoryError as exc:
        raise _http_error(exc) from exc


@router.post("/playlists/{playlist_id}/tracks", response_model=SnapshotPayload)
async def add_tracks_to_playlist(
    playlist_id: str,
    payload: AddTracksRequest,
    repository: SpotifyRepository = Depends(get_repository),
) -> SnapshotPayload:
    try:
        snapshot_id = await repository.add_tracks_to_playlist(
            playlist_id, payload.uris, payload.position
        )
    except RepositoryError as exc:
        raise _http_error(exc) from exc
    return SnapshotPayload(snapshot_id=snapshot_id)


@router.delete("/playlists/{playlist_id}/tracks", response_model=SnapshotPayload)
async def remove_tracks_from_playlist(
    playlist_id: str,
    payload: RemoveTracksRequest,
    repository: SpotifyRepository = Depends(get_repository),
) -> SnapshotPayload:
    try:
        snapshot_id = await repository.remove_tracks_from_playlist(
            playlist_id, payload.uris, payload.snapshot_id
        )
    except RepositoryError as exc:
        raise _http_error(exc) from exc
    return SnapshotPayload(snapshot_id=snapshot_id)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
@router.get("/search/tracks", response_model=None)
async def search_tracks(
    q: str = Query(..., min_length=1),
    limit: Optional[int] = Query(None, ge=1, le=50),
    offset: Optional[int] = Query(None, ge=0),
    market: Optional[str] = Query(None),
    repository: SpotifyRepository = Depends(get_repository),
) -> Any:
    try:
        page = await repository.search_tracks(q, limit, offset, market)
    except RepositoryError as exc:
        raise _http_error(exc) from exc
    return _encode(page)


__all__ = ["router"]
