"""JSON payload builders shaped like Spotify Web API responses."""

from typing import Any


def artist_payload(artist_id: str = "artist-1", name: str = "Daft Punk", **extra: Any) -> dict:
    payload = {
        "id": artist_id,
        "name": name,
        "uri": f"spotify:artist:{artist_id}",
        "type": "artist",
        "images": [{"url": f"https://i.scdn.co/{artist_id}.jpg", "height": 640, "width": 640}],
        "genres": ["french house"],
        "popularity": 80,
    }
    payload.update(extra)
    return payload


def album_payload(album_id: str = "album-1", **extra: Any) -> dict:
    payload = {
        "id": album_id,
        "name": "Discovery",
        "uri": f"spotify:album:{album_id}",
        "album_type": "album",
        "total_tracks": 14,
        "images": [{"url": f"https://i.scdn.co/{album_id}.jpg", "height": 300, "width": 300}],
        "release_date": "2001-03-12",
        "artists": [artist_payload()],
    }
    payload.update(extra)
    return payload


def track_payload(track_id: str = "track-1", duration_ms: int = 320_000, **extra: Any) -> dict:
    payload = {
        "id": track_id,
        "name": "One More Time",
        "uri": f"spotify:track:{track_id}",
        "album": album_payload(),
        "artists": [artist_payload()],
        "duration_ms": duration_ms,
        "popularity": 75,
        "preview_url": None,
        "explicit": False,
    }
    payload.update(extra)
    return payload


def paging_payload(items: list, *, offset: int = 0, total: int | None = None, **extra: Any) -> dict:
    payload = {
        "href": "https://api.spotify.com/v1/page",
        "items": items,
        "limit": 20,
        "offset": offset,
        "total": len(items) if total is None else total,
        "next": None,
        "previous": None,
    }
    payload.update(extra)
    return payload


def currently_playing_payload(**extra: Any) -> dict:
    payload = {
        "device": {
            "id": "device-1",
            "name": "Kitchen",
            "type": "Speaker",
            "is_active": True,
            "volume_percent": 40,
        },
        "repeat_state": "context",
        "shuffle_state": True,
        "context": {"type": "album", "uri": "spotify:album:album-1"},
        "timestamp": 1_700_000_000_000,
        "progress_ms": 80_000,
        "is_playing": True,
        "item": track_payload(),
        "currently_playing_type": "track",
    }
    payload.update(extra)
    return payload


def playlist_payload(playlist_id: str = "playlist-1", **extra: Any) -> dict:
    payload = {
        "id": playlist_id,
        "name": "Road Trip",
        "uri": f"spotify:playlist:{playlist_id}",
        "description": "Songs for the drive",
        "collaborative": False,
        "public": True,
        "images": [{"url": "https://i.scdn.co/playlist.jpg"}],
        "owner": {"id": "user-1", "display_name": "User One", "uri": "spotify:user:user-1"},
        "snapshot_id": "snapshot-1",
        "tracks": {"href": "https://api.spotify.com/v1/playlists/x/tracks", "total": 12},
    }
    payload.update(extra)
    return payload


def playlist_item_payload(**extra: Any) -> dict:
    payload = {
        "track": {
            "id": "track-1",
            "name": "One More Time",
            "uri": "spotify:track:track-1",
            "artists": [artist_payload(), artist_payload("artist-2", "Romanthony")],
            "album": {"id": "album-1", "name": "Discovery", "images": [{"url": "https://i.scdn.co/a.jpg"}]},
            "duration_ms": 320_000,
            "explicit": True,
            "popularity": 75,
        },
        "added_at": "2024-02-03T04:05:06Z",
        "added_by": {"id": "user-2", "display_name": None},
        "is_local": False,
    }
    payload.update(extra)
    return payload
