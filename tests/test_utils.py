"""Tests for utilities, data model parsing and typed outcomes."""

import asyncio
from datetime import datetime, timezone

import pytest

from artistlens.config import DEFAULT_WEIGHTS
from artistlens.models import Artist, ListenData, TopItemsSnapshot, Track, TrackHistoryItem
from artistlens.outcomes import CatalogError, Fetched, Skipped, attempt
from artistlens.utils import (
    chunked,
    format_listen_time,
    ms_to_listening_days,
    normalize_artist_id,
    parse_timestamp,
    validate_spotify_id,
)

from conftest import make_track, track_payload

ARTIST_ID = "4Z8W4fKeB5YxbusRsdQVPb"


class TestArtistIds:

    @pytest.mark.parametrize("value", [
        ARTIST_ID,
        f"spotify:artist:{ARTIST_ID}",
        f"https://open.spotify.com/artist/{ARTIST_ID}",
        f"https://open.spotify.com/artist/{ARTIST_ID}?si=abc123",
    ])
    def test_normalize(self, value):
        assert normalize_artist_id(value) == ARTIST_ID

    def test_validate(self):
        assert validate_spotify_id(ARTIST_ID)
        assert not validate_spotify_id("")
        assert not validate_spotify_id("short")
        assert not validate_spotify_id("4Z8W4fKeB5YxbusRsdQVP!")


class TestHelpers:

    def test_chunked(self):
        assert list(chunked(list(range(5)), 2)) == [[0, 1], [2, 3], [4]]
        assert list(chunked([], 50)) == []

    def test_chunked_rejects_bad_size(self):
        with pytest.raises(ValueError):
            list(chunked([1], 0))

    def test_parse_timestamp(self):
        assert parse_timestamp("2024-01-07T10:00:00Z") == datetime(2024, 1, 7, 10, tzinfo=timezone.utc)
        assert parse_timestamp("2024-01-07T10:00:00").tzinfo == timezone.utc
        assert parse_timestamp(None) is None

    @pytest.mark.parametrize("ms,expected", [
        (0, "0 min"),
        (59_999, "0 min"),
        (45 * 60_000, "45 min"),
        (3_600_000, "1 hr 0 min"),
        (2 * 3_600_000 + 5 * 60_000, "2 hr 5 min"),
    ])
    def test_format_listen_time(self, ms, expected):
        assert format_listen_time(ms) == expected

    def test_ms_to_listening_days(self):
        assert ms_to_listening_days(7 * 3_600_000) == "2.0"
        assert ms_to_listening_days(0) == "0.0"


class TestModels:

    def test_track_keeps_credit_order(self):
        track = Track.from_api(track_payload("t1", ["primary", "feature"]))

        assert track.artist_ids == ["primary", "feature"]
        assert track.credits("feature")
        assert not track.credits("other")

    def test_artist_tolerates_missing_fields(self):
        artist = Artist.from_api({"id": "a1"})

        assert artist.name == ""
        assert artist.genres == []
        assert artist.popularity == 0
        assert artist.followers == 0

    def test_snapshot_validates_range(self):
        with pytest.raises(ValueError):
            TopItemsSnapshot("artists", "forever")
        with pytest.raises(ValueError):
            TopItemsSnapshot("playlists", "short_term")

    def test_history_item_validates_source(self):
        with pytest.raises(ValueError):
            TrackHistoryItem(track=make_track("t1"), source="radio")

    def test_empty_listen_data_dict(self):
        assert ListenData().to_dict() == {
            "rank_in_top_artists": None,
            "total_listens_ms": 0,
            "listen_trend": "steady",
            "top_time_of_day": None,
            "favorite_track_id": None,
            "track_history": [],
        }

    def test_weights_to_dict(self):
        weights = DEFAULT_WEIGHTS.to_dict()

        assert weights["genre_max"] == 100.0
        assert weights["familiar_multiplier"] == 0.9


class TestOutcomes:

    def test_fetched(self):
        outcome = Fetched([1, 2])

        assert outcome.ok
        assert outcome.value_or([]) == [1, 2]

    def test_skipped(self):
        outcome = Skipped(what="genre search", reason="no genres")

        assert not outcome.ok
        assert outcome.value_or([]) == []

    def test_attempt_converts_catalog_errors(self):
        async def failing():
            raise CatalogError("search_artists", "rate limited", 429)

        outcome = asyncio.run(attempt(failing(), "genre search"))

        assert isinstance(outcome, Skipped)
        assert "rate limited" in outcome.reason

    def test_attempt_propagates_other_errors(self):
        async def buggy():
            raise KeyError("id")

        with pytest.raises(KeyError):
            asyncio.run(attempt(buggy(), "artist"))
