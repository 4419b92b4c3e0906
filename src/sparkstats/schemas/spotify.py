"""Wire schemas for Spotify player, catalogue and listening-stats responses."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SpotifyModel(BaseModel):
    """Base for Spotify response payloads; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class ExternalUrlsDTO(SpotifyModel):
    spotify: Optional[str] = None


class ImageDTO(SpotifyModel):
    url: str
    height: Optional[int] = None
    width: Optional[int] = None


class FollowersDTO(SpotifyModel):
    href: Optional[str] = None
    total: int = 0


class ArtistDTO(SpotifyModel):
    id: str
    name: str
    uri: str
    href: Optional[str] = None
    type: str = "artist"
    external_urls: Optional[ExternalUrlsDTO] = None
    followers: Optional[FollowersDTO] = None
    genres: Optional[list[str]] = None
    images: Optional[list[ImageDTO]] = None
    popularity: Optional[int] = None


class AlbumDTO(SpotifyModel):
    id: str
    name: str
    uri: str
    album_type: Optional[str] = None
    total_tracks: int = 0
    images: list[ImageDTO] = Field(default_factory=list)
    release_date: str = ""
    release_date_precision: Optional[str] = None
    artists: list[ArtistDTO] = Field(default_factory=list)
    href: Optional[str] = None


class TrackRestrictionDTO(SpotifyModel):
    reason: str


class TrackDTO(SpotifyModel):
    id: str
    name: str
    uri: str
    album: AlbumDTO
    artists: list[ArtistDTO]
    duration_ms: int
    popularity: int = 0
    preview_url: Optional[str] = None
    explicit: bool = False
    disc_number: int = 1
    track_number: int = 1
    is_local: bool = False
    is_playable: Optional[bool] = None
    restrictions: Optional[TrackRestrictionDTO] = None
    href: Optional[str] = None


class SimplifiedTrackDTO(SpotifyModel):
    """Track as listed inside an album (no album, no popularity)."""

    id: str
    name: str
    uri: str
    artists: list[ArtistDTO] = Field(default_factory=list)
    disc_number: int = 1
    track_number: int = 1
    duration_ms: int
    explicit: bool = False
    preview_url: Optional[str] = None
    is_playable: Optional[bool] = None
    is_local: bool = False
    available_markets: Optional[list[str]] = None
    restrictions: Optional[TrackRestrictionDTO] = None


class DeviceDTO(SpotifyModel):
    id: Optional[str] = None
    name: str
    type: str
    is_active: bool = False
    is_private_session: bool = False
    is_restricted: bool = False
    volume_percent: Optional[int] = None


class PlaybackContextDTO(SpotifyModel):
    type: str
    uri: str
    href: Optional[str] = None
    external_urls: Optional[ExternalUrlsDTO] = None


class CurrentlyPlayingResponse(SpotifyModel):
    device: Optional[DeviceDTO] = None
    repeat_state: Optional[str] = None
    shuffle_state: Optional[bool] = None
    context: Optional[PlaybackContextDTO] = None
    timestamp: int
    progress_ms: Optional[int] = None
    is_playing: bool
    item: Optional[TrackDTO] = None
    currently_playing_type: str = "track"


class PlayHistoryDTO(SpotifyModel):
    track: TrackDTO
    played_at: str
    context: Optional[PlaybackContextDTO] = None


class CursorDTO(SpotifyModel):
    after: Optional[str] = None
    before: Optional[str] = None


class RecentlyPlayedResponse(SpotifyModel):
    items: list[PlayHistoryDTO]
    next: Optional[str] = None
    cursors: Optional[CursorDTO] = None
    limit: int = 0
    href: Optional[str] = None
    total: Optional[int] = None


class PagingDTO(SpotifyModel):
    href: Optional[str] = None
    limit: int = 0
    offset: int = 0
    total: int = 0
    next: Optional[str] = None
    previous: Optional[str] = None


class TopArtistsResponse(PagingDTO):
    items: list[ArtistDTO]


class TopTracksResponse(PagingDTO):
    items: list[TrackDTO]


class ArtistsResponse(SpotifyModel):
    artists: list[ArtistDTO]


class ArtistAlbumsResponse(PagingDTO):
    items: list[AlbumDTO]


class ArtistTopTracksResponse(SpotifyModel):
    tracks: list[TrackDTO]


class AlbumTracksResponse(SpotifyModel):
    items: list[SimplifiedTrackDTO]
    href: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    total: Optional[int] = None
    next: Optional[str] = None
    previous: Optional[str] = None


class UserProfileDTO(SpotifyModel):
    id: str
    uri: Optional[str] = None
    display_name: Optional[str] = None
    email: Optional[str] = None
    country: Optional[str] = None
    product: Optional[str] = None
    images: list[ImageDTO] = Field(default_factory=list)
    followers: Optional[FollowersDTO] = None


__all__ = [
    "AlbumDTO",
    "AlbumTracksResponse",
    "ArtistAlbumsResponse",
    "ArtistDTO",
    "ArtistTopTracksResponse",
    "ArtistsResponse",
    "CurrentlyPlayingResponse",
    "CursorDTO",
    "DeviceDTO",
    "ExternalUrlsDTO",
    "FollowersDTO",
    "ImageDTO",
    "PagingDTO",
    "PlayHistoryDTO",
    "PlaybackContextDTO",
    "RecentlyPlayedResponse",
    "SimplifiedTrackDTO",
    "SpotifyModel",
    "TopArtistsResponse",
    "TopTracksResponse",
    "TrackDTO",
    "TrackRestrictionDTO",
    "UserProfileDTO",
]
