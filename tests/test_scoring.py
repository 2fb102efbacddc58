"""Unit tests for the artist similarity signals and scoring engine."""

from datetime import timezone

import numpy as np
import pytest

from artistlens.config import SimilarityWeights
from artistlens.scoring import (
    ScoringContext,
    ScoringEngine,
    co_listening,
    day_of_week_vectors,
    genre_overlap,
    listen_frequency_map,
    name_collaboration,
    popularity,
    temporal_pattern,
    temporal_similarity,
)

from conftest import make_artist, make_play, make_track


def _context(target, top_ids=(), frequency=None, vectors=None):
    return ScoringContext(
        target=target,
        top_artist_ids=set(top_ids),
        listen_frequency=frequency or {},
        day_of_week_vectors=vectors or {},
        weights=SimilarityWeights(),
    )


def _points(contributions):
    return sum(c.points for c in contributions)


def _reasons(contributions):
    return [c.reason for c in contributions]


# =============================================================================
# Genre overlap
# =============================================================================

class TestGenreOverlap:

    def test_partial_overlap_with_discovery_bonus(self):
        target = make_artist("target", genres=["dream pop", "indie rock"])
        candidate = make_artist("cand", genres=["dream pop"])

        result = genre_overlap(candidate, _context(target))

        assert _points(result) == pytest.approx(65.0)
        assert _reasons(result) == ["1 shared genres", "discovery bonus"]

    def test_top_artist_gets_no_discovery_bonus(self):
        target = make_artist("target", genres=["dream pop", "indie rock"])
        candidate = make_artist("cand", genres=["dream pop"])

        result = genre_overlap(candidate, _context(target, top_ids=["cand"]))

        assert _points(result) == pytest.approx(50.0)
        assert _reasons(result) == ["1 shared genres"]

    def test_full_overlap_is_capped_at_100(self):
        target = make_artist("target", genres=["shoegaze"])
        candidate = make_artist("cand", genres=["shoegaze", "shoegaze"])

        result = genre_overlap(candidate, _context(target, top_ids=["cand"]))

        assert _points(result) == pytest.approx(100.0)

    def test_no_genres_contributes_nothing(self):
        target = make_artist("target", genres=[])
        candidate = make_artist("cand", genres=["dream pop"])

        assert genre_overlap(candidate, _context(target)) == []

    def test_disjoint_genres_contribute_nothing(self):
        target = make_artist("target", genres=["techno"])
        candidate = make_artist("cand", genres=["bluegrass"])

        assert genre_overlap(candidate, _context(target)) == []


# =============================================================================
# Co-listening
# =============================================================================

class TestCoListening:

    def test_equal_frequency_unfamiliar_artist(self):
        target = make_artist("target")
        candidate = make_artist("cand")
        ctx = _context(target, frequency={"target": 2.0, "cand": 2.0})

        result = co_listening(candidate, ctx)

        assert _points(result) == pytest.approx(60 * 0.8)
        assert _reasons(result) == ["listening patterns"]

    def test_familiar_artist_is_damped_harder(self):
        target = make_artist("target")
        candidate = make_artist("cand")
        ctx = _context(target, top_ids=["cand"], frequency={"target": 4.0, "cand": 1.0})

        result = co_listening(candidate, ctx)

        assert _points(result) == pytest.approx(0.25 * 60 * 0.4)

    def test_ratio_is_symmetric(self):
        target = make_artist("target")
        candidate = make_artist("cand")
        low = co_listening(candidate, _context(target, frequency={"target": 1.0, "cand": 3.0}))
        high = co_listening(candidate, _context(target, frequency={"target": 3.0, "cand": 1.0}))

        assert _points(low) == pytest.approx(_points(high))

    def test_unheard_candidate_gets_fresh_discovery(self):
        target = make_artist("target")
        candidate = make_artist("cand")
        ctx = _context(target, frequency={"target": 1.5})

        result = co_listening(candidate, ctx)

        assert _points(result) == pytest.approx(20.0)
        assert _reasons(result) == ["fresh discovery"]

    def test_no_signal_when_target_never_played(self):
        target = make_artist("target")
        candidate = make_artist("cand")
        ctx = _context(target, frequency={"cand": 3.0})

        assert co_listening(candidate, ctx) == []


def test_listen_frequency_map_weights_sources():
    tracks = [make_track("t1", ["a", "b"]), make_track("t2", ["a"])]
    plays = [make_play(make_track("t3", ["b"]))]

    frequency = listen_frequency_map(tracks, plays)

    assert frequency == {"a": 2.0, "b": 1.5}


# =============================================================================
# Temporal similarity
# =============================================================================

class TestTemporal:

    def test_identical_patterns(self):
        a = np.array([1, 0, 2, 0, 0, 0, 0], dtype=float)

        assert temporal_similarity(a, a * 3) == pytest.approx(1.0)

    def test_zero_vector_gives_zero(self):
        a = np.array([1, 0, 0, 0, 0, 0, 0], dtype=float)

        assert temporal_similarity(a, np.zeros(7)) == 0.0

    def test_disjoint_days_give_zero(self):
        a = np.array([1, 0, 0, 0, 0, 0, 0], dtype=float)
        b = np.array([0, 1, 0, 0, 0, 0, 0], dtype=float)

        assert temporal_similarity(a, b) == pytest.approx(0.0)

    def test_weekday_vectors_start_on_sunday(self):
        plays = [
            make_play(make_track("t1", ["a"]), days=0),  # Sunday
            make_play(make_track("t2", ["a", "b"]), days=1),  # Monday
        ]

        vectors = day_of_week_vectors(plays, tz=timezone.utc)

        assert vectors["a"].tolist() == [1, 1, 0, 0, 0, 0, 0]
        assert vectors["b"].tolist() == [0, 1, 0, 0, 0, 0, 0]

    def test_signal_scales_to_forty(self):
        target = make_artist("target")
        candidate = make_artist("cand")
        vector = np.array([0, 2, 0, 1, 0, 0, 0], dtype=float)
        ctx = _context(target, vectors={"target": vector, "cand": vector.copy()})

        result = temporal_pattern(candidate, ctx)

        assert _points(result) == pytest.approx(40.0)
        assert _reasons(result) == ["similar listening patterns"]


# =============================================================================
# Popularity and name heuristics
# =============================================================================

class TestPopularity:

    def test_close_popularity_is_reported(self):
        target = make_artist("target", popularity=60)
        candidate = make_artist("cand", popularity=55)

        result = popularity(candidate, _context(target))

        assert _points(result) == pytest.approx(36.0)
        assert _reasons(result) == ["similar popularity level"]

    def test_small_proximity_is_not_reported(self):
        target = make_artist("target", popularity=60)
        candidate = make_artist("cand", popularity=95)

        assert popularity(candidate, _context(target)) == []

    def test_less_mainstream_candidate_gets_diversity_bonus(self):
        target = make_artist("target", popularity=80)
        candidate = make_artist("cand", popularity=20)

        result = popularity(candidate, _context(target))

        # proximity 40 - 48 < 0, diversity min(30, 60 * 0.5)
        assert _points(result) == pytest.approx(30.0)
        assert _reasons(result) == ["diversity bonus"]

    def test_gap_of_exactly_ten_gets_no_diversity_bonus(self):
        target = make_artist("target", popularity=60)
        candidate = make_artist("cand", popularity=50)

        assert "diversity bonus" not in _reasons(popularity(candidate, _context(target)))


class TestNameCollaboration:

    def test_substring_either_way(self):
        target = make_artist("target", name="Phoebe Bridgers")
        candidate = make_artist("cand", name="boygenius feat. phoebe bridgers")

        assert _points(name_collaboration(candidate, _context(target))) == 50.0
        assert _points(name_collaboration(target, _context(candidate))) == 50.0

    def test_unrelated_names(self):
        target = make_artist("target", name="Beach House")
        candidate = make_artist("cand", name="Slowdive")

        assert name_collaboration(candidate, _context(target)) == []


# =============================================================================
# Engine
# =============================================================================

class TestScoringEngine:

    def test_familiar_high_score_is_reduced_by_ten_percent(self):
        target = make_artist("target", name="Beach House", genres=["dream pop"], popularity=70)
        familiar = make_artist("fam", name="Beach House Live", genres=["dream pop"], popularity=70)
        engine = ScoringEngine(tz=timezone.utc)
        ctx = engine.build_context(target, [familiar], [], [])

        raw = engine.score(familiar, ctx).score
        ranked = engine.score_candidates([familiar], ctx)

        # genre 100 + popularity 40 + name 50
        assert raw == pytest.approx(190.0)
        assert ranked[0].score == pytest.approx(raw * 0.9)

    def test_unfamiliar_high_score_is_not_reduced(self):
        target = make_artist("target", name="Beach House", genres=["dream pop"], popularity=70)
        other = make_artist("other", name="Beach House Live", genres=["dream pop"], popularity=70)
        engine = ScoringEngine(tz=timezone.utc)
        ctx = engine.build_context(target, [], [], [])

        ranked = engine.score_candidates([other], ctx)

        # genre 100 + discovery 30 + popularity 40 + name 50
        assert ranked[0].score == pytest.approx(220.0)

    def test_zero_scores_are_dropped_and_ties_keep_candidate_order(self):
        target = make_artist("target", name="Target", genres=["x"], popularity=50)
        first = make_artist("first", name="Alpha", genres=["x"], popularity=100)
        second = make_artist("second", name="Beta", genres=["x"], popularity=100)
        nothing = make_artist("none", name="Gamma", genres=["y"], popularity=100)
        engine = ScoringEngine(tz=timezone.utc)
        ctx = engine.build_context(target, [], [], [])

        ranked = engine.score_candidates([first, second, nothing], ctx)

        assert [c.artist.id for c in ranked] == ["first", "second"]
        assert ranked[0].score == ranked[1].score

    def test_target_is_never_scored(self):
        target = make_artist("target", genres=["x"])
        engine = ScoringEngine(tz=timezone.utc)
        ctx = engine.build_context(target, [], [], [])

        assert engine.score_candidates([target], ctx) == []

    def test_reasons_follow_signal_order(self):
        target = make_artist("target", name="Target", genres=["a", "b"], popularity=50)
        cand = make_artist("cand", name="Cand", genres=["a"], popularity=50)
        tracks = [make_track("t1", ["target"]), make_track("t2", ["cand"])]
        engine = ScoringEngine(tz=timezone.utc)
        ctx = engine.build_context(target, [], tracks, [])

        scored = engine.score(cand, ctx)

        assert scored.match_reasons == [
            "1 shared genres",
            "discovery bonus",
            "listening patterns",
            "similar popularity level",
        ]
        assert scored.score == pytest.approx(50 + 15 + 48 + 40)
