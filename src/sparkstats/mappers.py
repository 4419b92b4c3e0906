"""Pure translation of Spotify wire schemas into domain entities."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from .domain import (
    Album,
    AlbumTrack,
    Artist,
    CurrentPlayback,
    Device,
    Image,
    Page,
    PlaybackContext,
    Playlist,
    PlaylistOwner,
    PlaylistTrack,
    RecentTrack,
    RepeatState,
    SearchTrackResult,
    TopArtist,
    TopTrack,
    Track,
    TrackRestriction,
)
from .schemas.playlists import (
    PlaylistDTO,
    PlaylistItemTrackDTO,
    PlaylistsResponse,
    PlaylistTrackDTO,
    PlaylistTracksResponse,
    SearchTracksResponse,
)
from .schemas.spotify import (
    AlbumDTO,
    AlbumTracksResponse,
    ArtistAlbumsResponse,
    ArtistDTO,
    ArtistsResponse,
    ArtistTopTracksResponse,
    CurrentlyPlayingResponse,
    DeviceDTO,
    ImageDTO,
    PagingDTO,
    PlaybackContextDTO,
    RecentlyPlayedResponse,
    SimplifiedTrackDTO,
    TopArtistsResponse,
    TopTracksResponse,
    TrackDTO,
)

logger = logging.getLogger(__name__)

SPOTIFY_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"
_WHOLE_SECOND_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def parse_spotify_timestamp(
    value: Optional[str], formats: Sequence[str] = (SPOTIFY_TIMESTAMP_FORMAT,)
) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; return None when no format matches."""

    if not value:
        return None
    for fmt in formats:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
def map_image(dto: ImageDTO) -> Image:
    return Image(url=dto.url, height=dto.height, width=dto.width)


def _map_images(images: Optional[Iterable[ImageDTO]]) -> tuple[Image, ...]:
    return tuple(map_image(image) for image in images or ())


def _first_image_url(images: Optional[Sequence[ImageDTO]]) -> Optional[str]:
    return images[0].url if images else None


def map_artist(dto: ArtistDTO) -> Artist:
    return Artist(
        id=dto.id,
        name=dto.name,
        uri=dto.uri,
        images=_map_images(dto.images),
        genres=tuple(dto.genres or ()),
        popularity=dto.popularity,
    )


def map_album(dto: AlbumDTO) -> Album:
    return Album(
        id=dto.id,
        name=dto.name,
        images=_map_images(dto.images),
        release_date=dto.release_date,
        total_tracks=dto.total_tracks,
        artists=tuple(map_artist(artist) for artist in dto.artists),
        uri=dto.uri,
    )


def map_track(dto: TrackDTO) -> Track:
    return Track(
        id=dto.id,
        name=dto.name,
        artists=tuple(map_artist(artist) for artist in dto.artists),
        album=map_album(dto.album),
        duration_ms=dto.duration_ms,
        popularity=dto.popularity,
        preview_url=dto.preview_url,
        uri=dto.uri,
    )


def map_album_track(dto: SimplifiedTrackDTO) -> AlbumTrack:
    return AlbumTrack(
        id=dto.id,
        name=dto.name,
        disc_number=dto.disc_number,
        track_number=dto.track_number,
        duration_ms=dto.duration_ms,
        explicit=dto.explicit,
        uri=dto.uri,
        preview_url=dto.preview_url,
        is_playable=dto.is_playable,
        is_local=dto.is_local,
        artists=tuple(map_artist(artist) for artist in dto.artists),
        available_markets=tuple(dto.available_markets or ()),
        restrictions=(
            TrackRestriction(reason=dto.restrictions.reason)
            if dto.restrictions is not None
            else None
        ),
    )


def map_artists(response: ArtistsResponse) -> list[Artist]:
    return [map_artist(artist) for artist in response.artists]


def map_artist_albums(response: ArtistAlbumsResponse) -> list[Album]:
    return [map_album(album) for album in response.items]


def map_artist_top_tracks(response: ArtistTopTracksResponse) -> list[Track]:
    return [map_track(track) for track in response.tracks]


def map_album_tracks(response: AlbumTracksResponse) -> Page[AlbumTrack]:
    items = tuple(map_album_track(track) for track in response.items)
    return Page(
        items=items,
        total=response.total if response.total is not None else len(items),
        limit=response.limit if response.limit is not None else len(items),
        offset=response.offset or 0,
        has_next=response.next is not None,
        has_previous=response.previous is not None,
    )


# ---------------------------------------------------------------------------
# Player and listening history
# ---------------------------------------------------------------------------
def map_device(dto: DeviceDTO) -> Device:
    return Device(
        id=dto.id,
        name=dto.name,
        type=dto.type,
        is_active=dto.is_active,
        volume_percent=dto.volume_percent,
    )


def map_context(dto: PlaybackContextDTO) -> PlaybackContext:
    return PlaybackContext(type=dto.type, uri=dto.uri)


def _repeat_state(value: Optional[str]) -> RepeatState:
    try:
        return RepeatState(value or RepeatState.OFF.value)
    except ValueError:
        return RepeatState.OFF


def map_current_playback(response: CurrentlyPlayingResponse) -> CurrentPlayback:
    return CurrentPlayback(
        track=map_track(response.item) if response.item is not None else None,
        is_playing=response.is_playing,
        progress_ms=response.progress_ms,
        device=map_device(response.device) if response.device is not None else None,
        shuffle_state=bool(response.shuffle_state),
        repeat_state=_repeat_state(response.repeat_state),
        timestamp=response.timestamp,
    )


def map_recently_played(response: RecentlyPlayedResponse) -> list[RecentTrack]:
    """Map play history, dropping entries whose timestamp cannot be parsed."""

    tracks: list[RecentTrack] = []
    for item in response.items:
        played_at = parse_spotify_timestamp(item.played_at)
        if played_at is None:
            logger.debug("Dropping recently played entry with bad timestamp %r", item.played_at)
            continue
        tracks.append(
            RecentTrack(
                track=map_track(item.track),
                played_at=played_at,
                context=map_context(item.context) if item.context is not None else None,
            )
        )
    return tracks


def map_top_artists(response: TopArtistsResponse) -> list[TopArtist]:
    return [
        TopArtist(artist=map_artist(artist), rank=response.offset + index + 1)
        for index, artist in enumerate(response.items)
    ]


def map_top_tracks(response: TopTracksResponse) -> list[TopTrack]:
    return [
        TopTrack(track=map_track(track), rank=response.offset + index + 1)
        for index, track in enumerate(response.items)
    ]


# ---------------------------------------------------------------------------
# Playlists and search
# ---------------------------------------------------------------------------
def _page(paging: PagingDTO, items: Iterable) -> Page:
    return Page(
        items=tuple(items),
        total=paging.total,
        limit=paging.limit,
        offset=paging.offset,
        has_next=paging.next is not None,
        has_previous=paging.previous is not None,
    )


def map_playlist(dto: PlaylistDTO) -> Playlist:
    return Playlist(
        id=dto.id,
        name=dto.name,
        description=dto.description,
        image_url=_first_image_url(dto.images),
        owner=PlaylistOwner(
            id=dto.owner.id,
            display_name=dto.owner.display_name or dto.owner.id,
            uri=dto.owner.uri,
        ),
        is_public=bool(dto.public),
        is_collaborative=dto.collaborative,
        track_count=dto.tracks.total,
        snapshot_id=dto.snapshot_id,
        uri=dto.uri,
    )


def map_playlists(response: PlaylistsResponse) -> Page[Playlist]:
    return _page(response, (map_playlist(item) for item in response.items))


def map_playlist_track(dto: PlaylistTrackDTO) -> PlaylistTrack:
    track = dto.track
    added_by = None
    if dto.added_by is not None:
        added_by = dto.added_by.display_name or dto.added_by.id
    return PlaylistTrack(
        id=track.id,
        name=track.name,
        artists=tuple(artist.name for artist in track.artists),
        album=track.album.name if track.album is not None else "",
        album_image_url=(
            _first_image_url(track.album.images) if track.album is not None else None
        ),
        duration_ms=track.duration_ms,
        uri=track.uri,
        added_at=parse_spotify_timestamp(
            dto.added_at, (SPOTIFY_TIMESTAMP_FORMAT, _WHOLE_SECOND_FORMAT)
        ),
        added_by=added_by,
        preview_url=track.preview_url,
        popularity=track.popularity,
        explicit=track.explicit,
    )


def map_playlist_tracks(response: PlaylistTracksResponse) -> Page[PlaylistTrack]:
    return _page(response, (map_playlist_track(item) for item in response.items))


def map_search_track(dto: PlaylistItemTrackDTO) -> SearchTrackResult:
    return SearchTrackResult(
        id=dto.id,
        name=dto.name,
        artists=tuple(artist.name for artist in dto.artists),
        album=dto.album.name if dto.album is not None else "",
        album_image_url=(
            _first_image_url(dto.album.images) if dto.album is not None else None
        ),
        duration_ms=dto.duration_ms,
        uri=dto.uri,
        popularity=dto.popularity,
        explicit=dto.explicit,
        preview_url=dto.preview_url,
    )


def map_search_tracks(response: SearchTracksResponse) -> Page[SearchTrackResult]:
    tracks = response.tracks
    return _page(tracks, (map_search_track(item) for item in tracks.items))


__all__ = [
    "SPOTIFY_TIMESTAMP_FORMAT",
    "map_album",
    "map_album_track",
    "map_album_tracks",
    "map_artist",
    "map_artist_albums",
    "map_artist_top_tracks",
    "map_artists",
    "map_context",
    "map_current_playback",
    "map_device",
    "map_image",
    "map_playlist",
    "map_playlist_track",
    "map_playlist_tracks",
    "map_playlists",
    "map_recently_played",
    "map_search_track",
    "map_search_tracks",
    "map_top_artists",
    "map_top_tracks",
    "map_track",
    "parse_spotify_timestamp",
]
