"""
Configuration and constants for the ArtistLens listening-analytics core.
"""
import os
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

# =============================================================================
# SPOTIFY API CONFIGURATION
# =============================================================================
SPOTIFY_CLIENT_ID = os.environ.get("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET = os.environ.get("SPOTIFY_CLIENT_SECRET", "")
SPOTIFY_REDIRECT_URI = os.environ.get("SPOTIFY_REDIRECT_URI", "http://localhost:8888/callback")

# Scopes needed for top items, recently played and follow status
SPOTIFY_SCOPES = [
    "user-top-read",
    "user-read-recently-played",
    "user-follow-read",
]

DEFAULT_MARKET = os.environ.get("ARTISTLENS_MARKET", "US")

# IANA zone used to bucket plays into weekdays and times of day
DEFAULT_TIMEZONE = os.environ.get("ARTISTLENS_TIMEZONE", "UTC")

# =============================================================================
# API LIMITS
# =============================================================================
MAX_IDS_PER_REQUEST = 50
TOP_ITEMS_PAGE_SIZE = 50
RECENTLY_PLAYED_LIMIT = 50
GENRE_SEARCH_LIMIT = 20
ARTIST_ALBUM_LIMIT = 50
ARTIST_ALBUM_TYPES = "album,single,appears_on"

# =============================================================================
# TIME RANGES AND HISTORY SOURCES
# =============================================================================
SHORT_TERM = "short_term"
MEDIUM_TERM = "medium_term"
LONG_TERM = "long_term"
TIME_RANGES = [SHORT_TERM, MEDIUM_TERM, LONG_TERM]

RECENT = "recent"
# Precedence order used when merging history sources
HISTORY_SOURCES = [RECENT, SHORT_TERM, MEDIUM_TERM, LONG_TERM]


# =============================================================================
# SIMILARITY SCORING (artist recommendation)
# =============================================================================
@dataclass
class SimilarityWeights:
    """Caps, multipliers and thresholds for the artist similarity signals."""
    # Genre overlap
    genre_max: float = 100.0
    genre_discovery_ratio: float = 0.3

    # Co-listening frequency
    top_track_weight: float = 1.0
    recent_play_weight: float = 0.5
    co_listen_max: float = 60.0
    co_listen_top_artist_damping: float = 0.4
    co_listen_other_damping: float = 0.8
    fresh_discovery_bonus: float = 20.0

    # Temporal (day-of-week) pattern
    temporal_max: float = 40.0

    # Popularity
    popularity_max: float = 40.0
    popularity_slope: float = 0.8
    popularity_min_reported: float = 15.0
    diversity_gap_threshold: int = 10
    diversity_slope: float = 0.5
    diversity_max: float = 30.0

    # Name-collaboration heuristic
    collaboration_bonus: float = 50.0

    # Anti echo-chamber correction for familiar artists
    familiar_threshold: float = 150.0
    familiar_multiplier: float = 0.9

    def to_dict(self) -> Dict[str, float]:
        return dict(self.__dict__)


DEFAULT_WEIGHTS = SimilarityWeights()


@dataclass
class DiscoveryConfig:
    """Discovery quota applied to the ranked similar-artist list."""
    max_results: int = 20
    min_discovery: int = 7
    keep_top: int = 15
    inject_discovery: int = 5


DEFAULT_DISCOVERY_CONFIG = DiscoveryConfig()


# =============================================================================
# LISTENING HISTORY
# =============================================================================
@dataclass
class ListenConfig:
    """Heuristics for merging top-items snapshots with recent plays."""
    # Favourite-track weight per history source
    source_weights: Dict[str, float] = field(default_factory=lambda: {
        RECENT: 1.5,
        SHORT_TERM: 1.0,
        MEDIUM_TERM: 0.8,
        LONG_TERM: 0.5,
    })

    # Assumed plays for a track that only shows up in a top-tracks range
    estimated_plays_per_top_track: int = 5

    # (label, start hour inclusive, end hour exclusive); night wraps midnight
    time_of_day_buckets: List[Tuple[str, int, int]] = field(default_factory=lambda: [
        ("morning", 5, 12),
        ("afternoon", 12, 17),
        ("evening", 17, 21),
        ("night", 21, 5),
    ])

    # Offset of the second page of top artists fetched for the rank lookup
    rank_second_page_offset: int = 50

    # Average daily listening used to express totals as "days"
    daily_listening_hours: float = 3.5


DEFAULT_LISTEN_CONFIG = ListenConfig()

# =============================================================================
# OUTPUT CONFIGURATION
# =============================================================================
OUTPUT_FORMAT = "json"  # json or simple
