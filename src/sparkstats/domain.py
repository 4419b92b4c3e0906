"""Domain entities exposed to the presentation layer.

Entities are immutable value objects assembled once from wire schemas and
never hold a reference back to them. Collections are tuples.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


def format_duration(duration_ms: int) -> str:
    """Return ``m:ss`` for a duration in milliseconds."""

    seconds = max(0, duration_ms) // 1000
    return f"{seconds // 60}:{seconds % 60:02d}"


class RepeatState(str, Enum):
    OFF = "off"
    TRACK = "track"
    CONTEXT = "context"


class TimeRange(str, Enum):
    SHORT_TERM = "short_term"
    MEDIUM_TERM = "medium_term"
    LONG_TERM = "long_term"


@dataclass(frozen=True)
class Image:
    url: str
    height: Optional[int] = None
    width: Optional[int] = None


@dataclass(frozen=True)
class Artist:
    id: str
    name: str
    uri: str
    images: tuple[Image, ...] = ()
    genres: tuple[str, ...] = ()
    popularity: Optional[int] = None

    @property
    def image_url(self) -> Optional[str]:
        return self.images[0].url if self.images else None


@dataclass(frozen=True)
class Album:
    id: str
    name: str
    images: tuple[Image, ...]
    release_date: str
    total_tracks: int
    artists: tuple[Artist, ...]
    uri: str

    @property
    def image_url(self) -> Optional[str]:
        return self.images[0].url if self.images else None


@dataclass(frozen=True)
class Track:
    id: str
    name: str
    artists: tuple[Artist, ...]
    album: Album
    duration_ms: int
    popularity: int
    preview_url: Optional[str]
    uri: str

    @property
    def artist_name(self) -> Optional[str]:
        return self.artists[0].name if self.artists else None

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration_ms)


@dataclass(frozen=True)
class TrackRestriction:
    reason: str


@dataclass(frozen=True)
class AlbumTrack:
    id: str
    name: str
    disc_number: int
    track_number: int
    duration_ms: int
    explicit: bool
    uri: str
    preview_url: Optional[str]
    is_playable: Optional[bool]
    is_local: bool
    artists: tuple[Artist, ...]
    available_markets: tuple[str, ...]
    restrictions: Optional[TrackRestriction] = None

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration_ms)


@dataclass(frozen=True)
class Device:
    id: Optional[str]
    name: str
    type: str
    is_active: bool
    volume_percent: Optional[int] = None


@dataclass(frozen=True)
class PlaybackContext:
    type: str
    uri: str


@dataclass(frozen=True)
class CurrentPlayback:
    track: Optional[Track]
    is_playing: bool
    progress_ms: Optional[int]
    device: Optional[Device]
    shuffle_state: bool
    repeat_state: RepeatState
    timestamp: int

    @property
    def progress(self) -> float:
        """Fraction of the current track that has been played (0.0 to 1.0)."""

        if self.progress_ms is None or self.track is None or self.track.duration_ms <= 0:
            return 0.0
        return min(1.0, self.progress_ms / self.track.duration_ms)

    @property
    def formatted_progress(self) -> str:
        return format_duration(self.progress_ms or 0)


@dataclass(frozen=True)
class RecentTrack:
    track: Track
    played_at: datetime
    context: Optional[PlaybackContext] = None


@dataclass(frozen=True)
class TopArtist:
    artist: Artist
    rank: Optional[int] = None


@dataclass(frozen=True)
class TopTrack:
    track: Track
    rank: Optional[int] = None


@dataclass(frozen=True)
class PlaylistOwner:
    id: str
    display_name: str
    uri: str


@dataclass(frozen=True)
class Playlist:
    id: str
    name: str
    description: Optional[str]
    image_url: Optional[str]
    owner: PlaylistOwner
    is_public: bool
    is_collaborative: bool
    track_count: int
    snapshot_id: str
    uri: str


@dataclass(frozen=True)
class PlaylistTrack:
    id: str
    name: str
    artists: tuple[str, ...]
    album: str
    album_image_url: Optional[str]
    duration_ms: int
    uri: str
    added_at: Optional[datetime]
    added_by: Optional[str]
    preview_url: Optional[str]
    popularity: Optional[int]
    explicit: bool

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration_ms)


@dataclass(frozen=True)
class SearchTrackResult:
    id: str
    name: str
    artists: tuple[str, ...]
    album: str
    album_image_url: Optional[str]
    duration_ms: int
    uri: str
    popularity: Optional[int]
    explicit: bool
    preview_url: Optional[str]

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration_ms)


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a paged listing."""

    items: tuple[T, ...]
    total: int
    limit: int
    offset: int
    has_next: bool
    has_previous: bool


__all__ = [
    "Album",
    "AlbumTrack",
    "Artist",
    "CurrentPlayback",
    "Device",
    "Image",
    "Page",
    "PlaybackContext",
    "Playlist",
    "PlaylistOwner",
    "PlaylistTrack",
    "RecentTrack",
    "RepeatState",
    "SearchTrackResult",
    "TimeRange",
    "TopArtist",
    "TopTrack",
    "Track",
    "TrackRestriction",
    "format_duration",
]
