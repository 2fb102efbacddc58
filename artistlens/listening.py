"""
Listening History Aggregator
============================

Derives a user's listening relationship with one artist from:
- Recently played items (exact timestamps, at most 50, possibly incomplete)
- Top tracks for short, medium and long term (ranked, no timestamps)

The history list is built by an ordered series of stages. Each stage adds
the tracks of one source that no earlier stage has claimed, so every track
appears once, tagged with its highest-precedence source:

    recent > short_term > medium_term > long_term

Duration accounting deliberately does NOT apply that dedup: every top-tracks
range contributes ``duration x 5`` for each artist track it contains, so a
track present in all three ranges is estimated three times.
"""

import logging
import math
from collections import Counter, OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple
from zoneinfo import ZoneInfo

from .config import (
    DEFAULT_LISTEN_CONFIG,
    DEFAULT_TIMEZONE,
    LONG_TERM,
    MEDIUM_TERM,
    RECENT,
    SHORT_TERM,
    ListenConfig,
)
from .models import ListenData, PlayRecord, Track, TrackHistoryItem

logger = logging.getLogger(__name__)

RISING = "rising"
FALLING = "falling"
STEADY = "steady"

WEEKDAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def tracks_by_artist(tracks: Iterable[Track], artist_id: str) -> List[Track]:
    return [t for t in tracks if t.credits(artist_id)]


def plays_by_artist(plays: Iterable[PlayRecord], artist_id: str) -> List[PlayRecord]:
    return [p for p in plays if p.track.credits(artist_id)]


def _local(dt: datetime, tz: Optional[tzinfo]) -> datetime:
    return dt.astimezone(tz or ZoneInfo(DEFAULT_TIMEZONE))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# =============================================================================
# TRACK HISTORY STAGES
# =============================================================================

def recent_stage(artist_recent: Sequence[PlayRecord], seen: Set[str]) -> List[TrackHistoryItem]:
    """
    Recent plays, newest first as returned by the API.

    Repeat plays of one track collapse into a single item carrying the
    first (latest) timestamp.
    """
    items = []
    for play in artist_recent:
        if play.track.id in seen:
            continue
        seen.add(play.track.id)
        items.append(TrackHistoryItem(track=play.track, source=RECENT, played_at=play.played_at))
    return items


def top_tracks_stage(source: str, tracks: Sequence[Track], seen: Set[str]) -> List[TrackHistoryItem]:
    """Top tracks of one range not already claimed by an earlier stage."""
    items = []
    for track in tracks:
        if track.id in seen:
            continue
        seen.add(track.id)
        items.append(TrackHistoryItem(track=track, source=source))
    return items


def build_track_history(
    artist_recent: Sequence[PlayRecord],
    short_term: Sequence[Track],
    medium_term: Sequence[Track],
    long_term: Sequence[Track],
) -> List[TrackHistoryItem]:
    """
    Merge recent plays and top-tracks ranges into one deduplicated history.

    All inputs must already be restricted to the target artist.
    """
    seen: Set[str] = set()
    history = recent_stage(artist_recent, seen)
    for source, tracks in ((SHORT_TERM, short_term), (MEDIUM_TERM, medium_term), (LONG_TERM, long_term)):
        history.extend(top_tracks_stage(source, tracks, seen))
    return history


# =============================================================================
# DERIVED METRICS
# =============================================================================

def estimate_listening_ms(
    artist_recent: Sequence[PlayRecord],
    top_ranges: Sequence[Sequence[Track]],
    config: ListenConfig = DEFAULT_LISTEN_CONFIG,
) -> int:
    """Real durations of recent plays plus an estimate per top-tracks range."""
    total = sum(play.track.duration_ms for play in artist_recent)
    for tracks in top_ranges:
        total += sum(t.duration_ms * config.estimated_plays_per_top_track for t in tracks)
    return total


def pick_favorite_track(
    occurrences: Iterable[TrackHistoryItem],
    config: ListenConfig = DEFAULT_LISTEN_CONFIG,
) -> Optional[str]:
    """
    Highest source-weighted track id; earliest occurrence wins ties.
    """
    weights: Dict[str, float] = OrderedDict()
    for item in occurrences:
        weights[item.track.id] = weights.get(item.track.id, 0.0) + config.source_weights[item.source]
    if not weights:
        return None
    return max(weights, key=weights.get)


def classify_trend(short_term_count: int, medium_term_count: int) -> str:
    if short_term_count > medium_term_count:
        return RISING
    if short_term_count < medium_term_count and short_term_count > 0:
        return FALLING
    return STEADY


def time_of_day(hour: int, config: ListenConfig = DEFAULT_LISTEN_CONFIG) -> str:
    for label, start, end in config.time_of_day_buckets:
        if start <= end:
            if start <= hour < end:
                return label
        elif hour >= start or hour < end:
            return label
    raise ValueError(f"Hour {hour} is not covered by any time-of-day bucket")


def time_of_day_counts(
    plays: Iterable[PlayRecord],
    config: ListenConfig = DEFAULT_LISTEN_CONFIG,
    tz: Optional[tzinfo] = None,
) -> Dict[str, int]:
    counts: Dict[str, int] = OrderedDict((label, 0) for label, _, _ in config.time_of_day_buckets)
    for play in plays:
        counts[time_of_day(_local(play.played_at, tz).hour, config)] += 1
    return counts


def top_time_of_day(
    plays: Sequence[PlayRecord],
    config: ListenConfig = DEFAULT_LISTEN_CONFIG,
    tz: Optional[tzinfo] = None,
) -> Optional[str]:
    """Most common time-of-day bucket, or None without timestamped plays."""
    if not plays:
        return None
    counts = time_of_day_counts(plays, config, tz)
    return max(counts, key=counts.get)


# =============================================================================
# ENTRY POINT
# =============================================================================

def calculate_listen_data(
    artist_id: str,
    top_tracks_short: Sequence[Track],
    top_tracks_medium: Sequence[Track],
    top_tracks_long: Sequence[Track],
    all_recently_played: Sequence[PlayRecord],
    artist_recently_played: Optional[Sequence[PlayRecord]],
    artist_rank: Optional[int],
    config: ListenConfig = DEFAULT_LISTEN_CONFIG,
    tz: Optional[tzinfo] = None,
) -> ListenData:
    """
    Compute the user's listening data for one artist.

    Args:
        artist_id: Target artist
        top_tracks_short: User's short-term top tracks (all artists)
        top_tracks_medium: User's medium-term top tracks
        top_tracks_long: User's long-term top tracks
        all_recently_played: User's recent plays (all artists)
        artist_recently_played: Recent plays crediting the artist; derived
            from ``all_recently_played`` when None
        artist_rank: 1-based rank among the user's top artists, or None
        config: Listening heuristics
        tz: Zone for time-of-day bucketing (config default if None)

    Returns:
        ListenData record
    """
    if artist_recently_played is None:
        artist_recently_played = plays_by_artist(all_recently_played, artist_id)

    short = tracks_by_artist(top_tracks_short, artist_id)
    medium = tracks_by_artist(top_tracks_medium, artist_id)
    long_ = tracks_by_artist(top_tracks_long, artist_id)

    history = build_track_history(artist_recently_played, short, medium, long_)

    # Every recent play counts towards the favourite, not just the first
    recent_occurrences = [
        TrackHistoryItem(track=p.track, source=RECENT, played_at=p.played_at)
        for p in artist_recently_played
    ]
    top_occurrences = [item for item in history if item.source != RECENT]

    listen_data = ListenData(
        rank_in_top_artists=artist_rank,
        total_listens_ms=estimate_listening_ms(artist_recently_played, (short, medium, long_), config),
        listen_trend=classify_trend(len(short), len(medium)),
        top_time_of_day=top_time_of_day(artist_recently_played, config, tz),
        favorite_track_id=pick_favorite_track(recent_occurrences + top_occurrences, config),
        track_history=history,
    )
    logger.debug(
        "Listen data for %s: %d history items, %d ms, trend %s",
        artist_id, len(history), listen_data.total_listens_ms, listen_data.listen_trend,
    )
    return listen_data


# =============================================================================
# HISTORY SUMMARIES
# =============================================================================

@dataclass
class TrackSummary:
    """One row of an artist's listening history, for display."""
    track: Track
    play_count: int = 0
    sources: List[str] = field(default_factory=list)
    last_played: Optional[datetime] = None
    ranking_score: float = 0.0

    def to_dict(self):
        return {
            "track": self.track.to_dict(),
            "play_count": self.play_count,
            "sources": list(self.sources),
            "last_played": self.last_played.isoformat() if self.last_played else None,
        }


def summarize_track_history(
    history: Sequence[TrackHistoryItem],
    artist_recent: Sequence[PlayRecord],
    config: ListenConfig = DEFAULT_LISTEN_CONFIG,
) -> List[TrackSummary]:
    """
    Collapse a history into per-track rows ordered by ranking score.

    ``play_count`` is the real number of recent plays; the ranking score is
    only used for ordering.
    """
    play_counts = Counter(play.track.id for play in artist_recent)
    last_played: Dict[str, datetime] = {}
    for play in artist_recent:
        current = last_played.get(play.track.id)
        if current is None or play.played_at > current:
            last_played[play.track.id] = play.played_at

    rows: Dict[str, TrackSummary] = OrderedDict()
    for item in history:
        row = rows.get(item.track.id)
        if row is None:
            row = rows[item.track.id] = TrackSummary(
                track=item.track,
                play_count=play_counts.get(item.track.id, 0),
                last_played=last_played.get(item.track.id, item.played_at),
            )
        if item.source not in row.sources:
            row.sources.append(item.source)
        occurrences = max(1, row.play_count) if item.source == RECENT else 1
        row.ranking_score += config.source_weights[item.source] * occurrences

    return sorted(rows.values(), key=lambda r: r.ranking_score, reverse=True)


def _percentages(counts: Dict[str, int]) -> List[Tuple[str, int]]:
    total = sum(counts.values())
    pairs = [
        (label, _round_half_up(count / total * 100) if total else 0)
        for label, count in counts.items()
    ]
    return sorted(pairs, key=lambda p: p[1], reverse=True)


def day_of_week_distribution(
    plays: Iterable[PlayRecord],
    tz: Optional[tzinfo] = None,
) -> List[Tuple[str, int]]:
    """(weekday, percentage) pairs, most active first."""
    counts: Dict[str, int] = OrderedDict((day, 0) for day in WEEKDAYS)
    for play in plays:
        day = WEEKDAYS[_local(play.played_at, tz).isoweekday() % 7]
        counts[day] += 1
    return _percentages(counts)


def time_of_day_distribution(
    plays: Iterable[PlayRecord],
    config: ListenConfig = DEFAULT_LISTEN_CONFIG,
    tz: Optional[tzinfo] = None,
) -> List[Tuple[str, int]]:
    """(time-of-day bucket, percentage) pairs, most active first."""
    return _percentages(time_of_day_counts(plays, config, tz))
