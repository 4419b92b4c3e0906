"""Wire schemas for Spotify playlist and search responses."""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from .spotify import (
    ArtistDTO,
    ExternalUrlsDTO,
    FollowersDTO,
    ImageDTO,
    PagingDTO,
    SpotifyModel,
)


class PlaylistOwnerDTO(SpotifyModel):
    id: str
    display_name: Optional[str] = None
    uri: str = ""
    href: Optional[str] = None
    type: Optional[str] = None
    external_urls: Optional[ExternalUrlsDTO] = None


class PlaylistTracksInfoDTO(SpotifyModel):
    href: Optional[str] = None
    total: int = 0


class PlaylistDTO(SpotifyModel):
    id: str
    name: str
    uri: str
    owner: PlaylistOwnerDTO
    snapshot_id: str
    tracks: PlaylistTracksInfoDTO
    collaborative: bool = False
    description: Optional[str] = None
    images: Optional[list[ImageDTO]] = None
    public: Optional[bool] = None
    followers: Optional[FollowersDTO] = None
    href: Optional[str] = None


class PlaylistsResponse(PagingDTO):
    items: list[PlaylistDTO]


class SimplifiedAlbumDTO(SpotifyModel):
    id: str
    name: str
    images: list[ImageDTO] = Field(default_factory=list)
    album_type: Optional[str] = None
    release_date: Optional[str] = None
    uri: Optional[str] = None


class PlaylistItemTrackDTO(SpotifyModel):
    """Track shape used by playlist items and search results."""

    id: str
    name: str
    uri: str
    artists: list[ArtistDTO] = Field(default_factory=list)
    album: Optional[SimplifiedAlbumDTO] = None
    duration_ms: int
    explicit: bool = False
    popularity: Optional[int] = None
    preview_url: Optional[str] = None
    is_local: Optional[bool] = None


class PlaylistTrackDTO(SpotifyModel):
    track: PlaylistItemTrackDTO
    added_at: Optional[str] = None
    added_by: Optional[PlaylistOwnerDTO] = None
    is_local: bool = False


class PlaylistTracksResponse(PagingDTO):
    items: list[PlaylistTrackDTO]


class SearchTracksResultDTO(PagingDTO):
    items: list[PlaylistItemTrackDTO]


class SearchTracksResponse(SpotifyModel):
    tracks: SearchTracksResultDTO


class SnapshotResponse(SpotifyModel):
    snapshot_id: str


__all__ = [
    "PlaylistDTO",
    "PlaylistItemTrackDTO",
    "PlaylistOwnerDTO",
    "PlaylistTrackDTO",
    "PlaylistTracksInfoDTO",
    "PlaylistTracksResponse",
    "PlaylistsResponse",
    "SearchTracksResponse",
    "SearchTracksResultDTO",
    "SimplifiedAlbumDTO",
    "SnapshotResponse",
]
