"""
Artist Similarity Scoring Engine
================================

Scores candidate artists against a target artist with five independent
signals. Each signal is a pure function of (candidate, context) that returns
zero or more contributions; the engine folds them into one score per
candidate together with the match reasons shown to the user.

Signals:
-------
1. Genre overlap          0-100, plus up to 30% discovery bonus
2. Co-listening frequency 0-60, or a flat +20 "fresh discovery"
3. Temporal similarity    0-40 (cosine of day-of-week play vectors)
4. Popularity proximity   0-40, plus a 0-30 diversity bonus
5. Name collaboration     flat +50

Final Score = Σ contributions, then x0.9 for already-familiar artists
scoring above 150.

Every contribution is non-negative, so scores never drop below zero.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Callable, Dict, List, Optional, Set, Tuple
from zoneinfo import ZoneInfo

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity

from .config import DEFAULT_TIMEZONE, DEFAULT_WEIGHTS, SimilarityWeights
from .models import Artist, PlayRecord, SimilarityCandidate, Track

logger = logging.getLogger(__name__)

DAYS_IN_WEEK = 7


@dataclass
class Contribution:
    """Score added by one signal, with its human-readable reason."""
    points: float
    reason: str


@dataclass
class ScoringContext:
    """Everything the signals need besides the candidate itself."""
    target: Artist
    top_artist_ids: Set[str]
    listen_frequency: Dict[str, float]
    day_of_week_vectors: Dict[str, np.ndarray]
    weights: SimilarityWeights = field(default_factory=SimilarityWeights)

    @property
    def target_frequency(self) -> float:
        return self.listen_frequency.get(self.target.id, 0.0)

    def is_top_artist(self, artist_id: str) -> bool:
        return artist_id in self.top_artist_ids

    def day_vector(self, artist_id: str) -> np.ndarray:
        vector = self.day_of_week_vectors.get(artist_id)
        return vector if vector is not None else np.zeros(DAYS_IN_WEEK)


Signal = Callable[[Artist, ScoringContext], List[Contribution]]


# =============================================================================
# CONTEXT FEATURES
# =============================================================================

def listen_frequency_map(
    top_tracks: List[Track],
    recently_played: List[PlayRecord],
    weights: SimilarityWeights = DEFAULT_WEIGHTS,
) -> Dict[str, float]:
    """Weighted count of credits per artist over top tracks and recent plays."""
    frequency: Dict[str, float] = defaultdict(float)
    for track in top_tracks:
        for artist_id in track.artist_ids:
            frequency[artist_id] += weights.top_track_weight
    for play in recently_played:
        for artist_id in play.track.artist_ids:
            frequency[artist_id] += weights.recent_play_weight
    return dict(frequency)


def day_of_week_vectors(
    recently_played: List[PlayRecord],
    tz: Optional[tzinfo] = None,
) -> Dict[str, np.ndarray]:
    """
    Play counts per weekday (Sunday first) for every credited artist.

    Timestamps are converted to ``tz`` before bucketing.
    """
    tz = tz or ZoneInfo(DEFAULT_TIMEZONE)
    vectors: Dict[str, np.ndarray] = {}
    for play in recently_played:
        day = play.played_at.astimezone(tz).isoweekday() % DAYS_IN_WEEK
        for artist_id in set(play.track.artist_ids):
            if artist_id not in vectors:
                vectors[artist_id] = np.zeros(DAYS_IN_WEEK)
            vectors[artist_id][day] += 1
    return vectors


def temporal_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two weekday vectors; 0 if either is all zero."""
    if not np.any(a) or not np.any(b):
        return 0.0
    sim = cosine_similarity(a.reshape(1, -1), b.reshape(1, -1))[0, 0]
    return float(max(0.0, sim))


# =============================================================================
# SIGNALS
# =============================================================================

def genre_overlap(candidate: Artist, ctx: ScoringContext) -> List[Contribution]:
    """Share of the target's genres the candidate also carries."""
    target_genres = ctx.target.genres
    if not candidate.genres or not target_genres:
        return []

    shared = [g for g in candidate.genres if g in target_genres]
    if not shared:
        return []

    w = ctx.weights
    genre_score = min(w.genre_max, len(shared) / max(1, len(target_genres)) * 100)
    contributions = [Contribution(genre_score, f"{len(shared)} shared genres")]

    if not ctx.is_top_artist(candidate.id):
        contributions.append(
            Contribution(genre_score * w.genre_discovery_ratio, "discovery bonus")
        )
    return contributions


def co_listening(candidate: Artist, ctx: ScoringContext) -> List[Contribution]:
    """
    How closely the candidate's listening frequency tracks the target's.

    Only applies when the user listens to the target at all. Familiar
    artists are damped harder than unfamiliar ones.
    """
    target_freq = ctx.target_frequency
    if target_freq <= 0:
        return []

    w = ctx.weights
    candidate_freq = ctx.listen_frequency.get(candidate.id, 0.0)
    if candidate_freq <= 0:
        return [Contribution(w.fresh_discovery_bonus, "fresh discovery")]

    ratio = min(candidate_freq / target_freq, target_freq / candidate_freq)
    damping = (
        w.co_listen_top_artist_damping
        if ctx.is_top_artist(candidate.id)
        else w.co_listen_other_damping
    )
    points = min(w.co_listen_max, ratio * w.co_listen_max * damping)
    return [Contribution(points, "listening patterns")]


def temporal_pattern(candidate: Artist, ctx: ScoringContext) -> List[Contribution]:
    """Similarity of the weekday play patterns in recent history."""
    sim = temporal_similarity(
        ctx.day_vector(ctx.target.id), ctx.day_vector(candidate.id)
    )
    if sim <= 0:
        return []
    points = min(ctx.weights.temporal_max, sim * ctx.weights.temporal_max)
    return [Contribution(points, "similar listening patterns")]


def popularity(candidate: Artist, ctx: ScoringContext) -> List[Contribution]:
    w = ctx.weights
    contributions = []

    diff = abs(candidate.popularity - ctx.target.popularity)
    proximity = max(0.0, w.popularity_max - diff * w.popularity_slope)
    if proximity > w.popularity_min_reported:
        contributions.append(Contribution(proximity, "similar popularity level"))

    # Less mainstream than the target
    if candidate.popularity < ctx.target.popularity - w.diversity_gap_threshold:
        gap = ctx.target.popularity - candidate.popularity
        contributions.append(
            Contribution(min(w.diversity_max, gap * w.diversity_slope), "diversity bonus")
        )
    return contributions


def name_collaboration(candidate: Artist, ctx: ScoringContext) -> List[Contribution]:
    """Either name containing the other hints at a feature or side project."""
    target_name = ctx.target.name.lower()
    candidate_name = candidate.name.lower()
    if not target_name or not candidate_name:
        return []
    if candidate_name in target_name or target_name in candidate_name:
        return [Contribution(ctx.weights.collaboration_bonus, "possible collaboration relationship")]
    return []


DEFAULT_SIGNALS: Tuple[Signal, ...] = (
    genre_overlap,
    co_listening,
    temporal_pattern,
    popularity,
    name_collaboration,
)


# =============================================================================
# ENGINE
# =============================================================================

class ScoringEngine:
    """
    Folds the similarity signals over every candidate and ranks them.
    """

    def __init__(
        self,
        weights: SimilarityWeights = DEFAULT_WEIGHTS,
        signals: Tuple[Signal, ...] = DEFAULT_SIGNALS,
        tz: Optional[tzinfo] = None,
    ):
        """
        Args:
            weights: Caps and multipliers for each signal
            signals: Signal functions, applied in order
            tz: Zone used for weekday bucketing (config default if None)
        """
        self.weights = weights
        self.signals = signals
        self.tz = tz

    def build_context(
        self,
        target: Artist,
        top_artists: List[Artist],
        top_tracks: List[Track],
        recently_played: List[PlayRecord],
    ) -> ScoringContext:
        return ScoringContext(
            target=target,
            top_artist_ids={a.id for a in top_artists},
            listen_frequency=listen_frequency_map(top_tracks, recently_played, self.weights),
            day_of_week_vectors=day_of_week_vectors(recently_played, self.tz),
            weights=self.weights,
        )

    def score(self, candidate: Artist, ctx: ScoringContext) -> SimilarityCandidate:
        """Raw accumulated score and reasons, before the familiarity adjustment."""
        result = SimilarityCandidate(artist=candidate)
        for signal in self.signals:
            for contribution in signal(candidate, ctx):
                result.score += contribution.points
                result.match_reasons.append(contribution.reason)
        return result

    def adjust_for_familiarity(self, scored: SimilarityCandidate, ctx: ScoringContext) -> SimilarityCandidate:
        if ctx.is_top_artist(scored.artist.id) and scored.score > self.weights.familiar_threshold:
            scored.score *= self.weights.familiar_multiplier
        return scored

    def score_candidates(
        self,
        candidates: List[Artist],
        ctx: ScoringContext,
    ) -> List[SimilarityCandidate]:
        """
        Score all candidates and rank them.

        Returns:
            Candidates with score > 0, sorted by score descending; ties keep
            candidate order
        """
        results = []
        for candidate in candidates:
            if candidate.id == ctx.target.id:
                continue
            scored = self.adjust_for_familiarity(self.score(candidate, ctx), ctx)
            if scored.score > 0:
                results.append(scored)

        results.sort(key=lambda c: c.score, reverse=True)
        logger.debug("Scored %d candidates, %d with a positive score", len(candidates), len(results))
        return results
