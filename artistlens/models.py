"""
Data Model
==========

Snapshot types parsed from Spotify Web API payloads, plus the derived
records produced by the similarity and listening-history pipelines.

All snapshots are rebuilt per request; nothing here is persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .config import HISTORY_SOURCES, TIME_RANGES
from .utils import parse_timestamp


def _image_urls(payload: Dict) -> List[str]:
    return [img["url"] for img in payload.get("images") or [] if img and img.get("url")]


@dataclass
class Artist:
    """Artist metadata snapshot."""
    id: str
    name: str
    genres: List[str] = field(default_factory=list)
    popularity: int = 0
    followers: int = 0
    images: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, payload: Dict) -> "Artist":
        followers = payload.get("followers") or {}
        return cls(
            id=payload["id"],
            name=payload.get("name") or "",
            genres=list(payload.get("genres") or []),
            popularity=int(payload.get("popularity") or 0),
            followers=int(followers.get("total") or 0),
            images=_image_urls(payload),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "genres": list(self.genres),
            "popularity": self.popularity,
            "followers": self.followers,
            "images": list(self.images),
        }


@dataclass
class Track:
    """Track metadata snapshot. Credited artists keep API order (primary first)."""
    id: str
    name: str
    duration_ms: int = 0
    artist_ids: List[str] = field(default_factory=list)
    artist_names: List[str] = field(default_factory=list)
    album_id: Optional[str] = None
    album_name: Optional[str] = None
    popularity: int = 0

    @classmethod
    def from_api(cls, payload: Dict) -> "Track":
        artists = [a for a in payload.get("artists") or [] if a and a.get("id")]
        album = payload.get("album") or {}
        return cls(
            id=payload["id"],
            name=payload.get("name") or "",
            duration_ms=int(payload.get("duration_ms") or 0),
            artist_ids=[a["id"] for a in artists],
            artist_names=[a.get("name") or "" for a in artists],
            album_id=album.get("id"),
            album_name=album.get("name"),
            popularity=int(payload.get("popularity") or 0),
        )

    def credits(self, artist_id: str) -> bool:
        """True if the artist is credited on this track."""
        return artist_id in self.artist_ids

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "duration_ms": self.duration_ms,
            "artist_ids": list(self.artist_ids),
            "artist_names": list(self.artist_names),
            "album_id": self.album_id,
            "album_name": self.album_name,
            "popularity": self.popularity,
        }


@dataclass
class Album:
    """Simplified album as returned by the artist albums endpoint."""
    id: str
    name: str
    album_type: str = "album"
    release_date: Optional[str] = None
    total_tracks: int = 0
    images: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, payload: Dict) -> "Album":
        return cls(
            id=payload["id"],
            name=payload.get("name") or "",
            album_type=payload.get("album_type") or "album",
            release_date=payload.get("release_date"),
            total_tracks=int(payload.get("total_tracks") or 0),
            images=_image_urls(payload),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "album_type": self.album_type,
            "release_date": self.release_date,
            "total_tracks": self.total_tracks,
        }


@dataclass
class PlayRecord:
    """A single recently-played entry with its exact timestamp."""
    track: Track
    played_at: datetime

    @classmethod
    def from_api(cls, payload: Dict) -> "PlayRecord":
        return cls(
            track=Track.from_api(payload["track"]),
            played_at=parse_timestamp(payload["played_at"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"track": self.track.to_dict(), "played_at": self.played_at.isoformat()}


@dataclass
class TopItemsSnapshot:
    """
    One page of the user's top artists or tracks for a fixed time range.

    Presence means "frequently played in range"; there are no play counts.
    """
    kind: str
    time_range: str
    items: List[Any] = field(default_factory=list)
    offset: int = 0
    total: Optional[int] = None

    def __post_init__(self):
        if self.kind not in ("artists", "tracks"):
            raise ValueError(f"Unknown top items kind: {self.kind}")
        if self.time_range not in TIME_RANGES:
            raise ValueError(f"Unknown time range: {self.time_range}")

    @classmethod
    def from_api(cls, kind: str, time_range: str, payload: Dict) -> "TopItemsSnapshot":
        parser = Artist.from_api if kind == "artists" else Track.from_api
        items = [parser(item) for item in payload.get("items") or [] if item and item.get("id")]
        return cls(
            kind=kind,
            time_range=time_range,
            items=items,
            offset=int(payload.get("offset") or 0),
            total=payload.get("total"),
        )

    def position(self, item_id: str) -> Optional[int]:
        """1-based absolute rank of an item on this page, or None."""
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return self.offset + index + 1
        return None


@dataclass
class TrackHistoryItem:
    """One track's association with an artist's listening history."""
    track: Track
    source: str
    played_at: Optional[datetime] = None

    def __post_init__(self):
        if self.source not in HISTORY_SOURCES:
            raise ValueError(f"Unknown history source: {self.source}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "track": self.track.to_dict(),
            "source": self.source,
            "played_at": self.played_at.isoformat() if self.played_at else None,
        }


@dataclass
class SimilarityCandidate:
    """An artist considered for the similar-artists list, with its score."""
    artist: Artist
    score: float = 0.0
    match_reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "artist": self.artist.to_dict(),
            "score": round(self.score, 4),
            "match_reasons": list(self.match_reasons),
        }


@dataclass
class ListenData:
    """The user's derived listening relationship with one artist."""
    rank_in_top_artists: Optional[int] = None
    total_listens_ms: int = 0
    listen_trend: str = "steady"
    top_time_of_day: Optional[str] = None
    favorite_track_id: Optional[str] = None
    track_history: List[TrackHistoryItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank_in_top_artists": self.rank_in_top_artists,
            "total_listens_ms": self.total_listens_ms,
            "listen_trend": self.listen_trend,
            "top_time_of_day": self.top_time_of_day,
            "favorite_track_id": self.favorite_track_id,
            "track_history": [item.to_dict() for item in self.track_history],
        }
