"""
Utility Functions
=================

Common utilities used across ArtistLens.
"""

from datetime import datetime, timezone
from typing import Iterator, List, Optional, TypeVar

from .config import MAX_IDS_PER_REQUEST

T = TypeVar("T")

_BASE62 = set("0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz")


def normalize_artist_id(value: str) -> str:
    """
    Normalize various artist reference formats to an artist ID.

    Args:
        value: Spotify artist URL, URI, or ID

    Returns:
        Clean artist ID
    """
    if "spotify.com/artist/" in value:
        artist_id = value.split("/artist/")[-1].split("?")[0]
    elif "spotify:artist:" in value:
        artist_id = value.split("spotify:artist:")[-1]
    else:
        artist_id = value
    return artist_id.strip().strip("/")


def validate_spotify_id(spotify_id: str) -> bool:
    """
    Validate Spotify ID format.

    Args:
        spotify_id: Artist or track ID to validate

    Returns:
        True if valid format
    """
    if not spotify_id:
        return False

    # Spotify IDs are 22 characters, base62
    if len(spotify_id) != 22:
        return False

    return all(c in _BASE62 for c in spotify_id)


def chunked(items: List[T], size: int = MAX_IDS_PER_REQUEST) -> Iterator[List[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    for i in range(0, len(items), size):
        yield items[i:i + size]


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp as returned by the Web API.

    Naive values are assumed to be UTC. Returns None for empty input.
    """
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_listen_time(ms: int) -> str:
    """Format milliseconds as "H hr M min", or "M min" under an hour."""
    hours = ms // 3_600_000
    minutes = (ms % 3_600_000) // 60_000
    if hours > 0:
        return f"{hours} hr {minutes} min"
    return f"{minutes} min"


def ms_to_listening_days(ms: int, daily_hours: float = 3.5) -> str:
    """Express a listening total as days of typical daily listening."""
    daily_ms = daily_hours * 60 * 60 * 1000
    return f"{ms / daily_ms:.1f}"
