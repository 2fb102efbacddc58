"""Test configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Dict, List

import pytest
from spotipy.exceptions import SpotifyException

from artistlens.models import Artist, PlayRecord, Track
from artistlens.spotify_client import SpotifyClient

# A Sunday, 10:00 UTC
BASE_TIME = datetime(2024, 1, 7, 10, 0, tzinfo=timezone.utc)


def artist_payload(artist_id, name=None, genres=(), popularity=50, followers=1000):
    return {
        "id": artist_id,
        "name": name or artist_id.title(),
        "genres": list(genres),
        "popularity": popularity,
        "followers": {"total": followers},
        "images": [{"url": f"https://img.example/{artist_id}.jpg"}],
    }


def track_payload(track_id, artist_ids, duration_ms=200_000, name=None):
    return {
        "id": track_id,
        "name": name or track_id.title(),
        "duration_ms": duration_ms,
        "artists": [{"id": a, "name": a.title()} for a in artist_ids],
        "album": {"id": f"album-{track_id}", "name": f"Album {track_id}"},
        "popularity": 40,
    }


def play_payload(track, played_at):
    return {"track": track, "played_at": played_at.isoformat().replace("+00:00", "Z")}


def make_artist(artist_id, name=None, genres=(), popularity=50):
    return Artist.from_api(artist_payload(artist_id, name, genres, popularity))


def make_track(track_id, artist_ids=("target",), duration_ms=200_000):
    return Track.from_api(track_payload(track_id, list(artist_ids), duration_ms))


def make_play(track, days=0, hours=0):
    return PlayRecord(track=track, played_at=BASE_TIME + timedelta(days=days, hours=hours))


class FakeSpotify:
    """
    Stand-in for a spotipy.Spotify handle.

    Records every call; methods listed in ``fail`` raise SpotifyException.
    """

    def __init__(self):
        self.artists_db: Dict[str, dict] = {}
        self.search_results: List[dict] = []
        self.top_artists: Dict[str, List[dict]] = {}
        self.top_tracks: Dict[str, List[dict]] = {}
        self.recent: List[dict] = []
        self.artist_tracks: List[dict] = []
        self.albums: List[dict] = []
        self.following = [False]
        self.fail = set()
        self.fail_artist_batches = set()
        self.calls = []

    def add_artists(self, *payloads):
        for payload in payloads:
            self.artists_db[payload["id"]] = payload

    def _record(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        if name in self.fail:
            raise SpotifyException(503, -1, f"{name} unavailable")

    def artist(self, artist_id):
        self._record("artist", artist_id)
        if artist_id not in self.artists_db:
            raise SpotifyException(404, -1, "non existing id")
        return self.artists_db[artist_id]

    def artists(self, artist_ids):
        self._record("artists", list(artist_ids))
        batch_number = sum(1 for c in self.calls if c[0] == "artists")
        if batch_number in self.fail_artist_batches:
            raise SpotifyException(502, -1, "bad gateway")
        return {"artists": [self.artists_db.get(a) for a in artist_ids]}

    def artist_top_tracks(self, artist_id, country="US"):
        self._record("artist_top_tracks", artist_id, country=country)
        return {"tracks": self.artist_tracks}

    def artist_albums(self, artist_id, album_type=None, include_groups=None, country=None, limit=20, offset=0):
        self._record("artist_albums", artist_id, include_groups=include_groups, country=country, limit=limit)
        return {"items": self.albums}

    def search(self, q, limit=10, offset=0, type="track", market=None):
        self._record("search", q=q, limit=limit, type=type)
        return {"artists": {"items": self.search_results}}

    def current_user_top_artists(self, limit=20, offset=0, time_range="medium_term"):
        self._record("current_user_top_artists", limit=limit, offset=offset, time_range=time_range)
        items = self.top_artists.get(time_range, [])
        return {"items": items[offset:offset + limit], "offset": offset, "total": len(items)}

    def current_user_top_tracks(self, limit=20, offset=0, time_range="medium_term"):
        self._record("current_user_top_tracks", limit=limit, offset=offset, time_range=time_range)
        items = self.top_tracks.get(time_range, [])
        return {"items": items[offset:offset + limit], "offset": offset, "total": len(items)}

    def current_user_recently_played(self, limit=50, after=None, before=None):
        self._record("current_user_recently_played", limit=limit)
        return {"items": self.recent[:limit]}

    def current_user_following_artists(self, ids=None):
        self._record("current_user_following_artists", ids)
        return self.following

    def current_user_following_users(self, ids=None):
        self._record("current_user_following_users", ids)
        return self.following

    def called(self, name):
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def fake_sp():
    return FakeSpotify()


@pytest.fixture
def client(fake_sp):
    return SpotifyClient(sp=fake_sp, market="US")
