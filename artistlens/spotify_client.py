"""
Spotify API Client Wrapper
==========================

Catalog facade used by the analytics core:
- Authentication (user-scoped OAuth)
- Artist / track / album metadata
- The user's top items, recently played and follow status
- Artist search

Every method is a coroutine. The underlying spotipy calls block, so each one
runs in a worker thread, which lets the page loader overlap requests with
``asyncio.gather``. Failures surface as ``CatalogError``; this module never
retries and never swallows errors.
"""

import asyncio
import logging
import os
from typing import Any, Callable, List, Optional

import spotipy
from requests.exceptions import RequestException
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from .config import (
    DEFAULT_MARKET,
    GENRE_SEARCH_LIMIT,
    MAX_IDS_PER_REQUEST,
    RECENTLY_PLAYED_LIMIT,
    SPOTIFY_CLIENT_ID,
    SPOTIFY_CLIENT_SECRET,
    SPOTIFY_REDIRECT_URI,
    SPOTIFY_SCOPES,
    TIME_RANGES,
    TOP_ITEMS_PAGE_SIZE,
)
from .models import Album, Artist, PlayRecord, TopItemsSnapshot, Track
from .outcomes import CatalogError

logger = logging.getLogger(__name__)


def build_spotipy_client() -> spotipy.Spotify:
    """
    Create an authenticated spotipy handle for the current user.

    Credentials are read from the environment at call time, not import time.
    The access token is obtained here, once, so the concurrent requests of a
    page load all share it instead of each starting its own sign-in.

    Raises:
        CatalogError: If the user cannot be authenticated
    """
    client_id = os.environ.get("SPOTIFY_CLIENT_ID") or os.environ.get("SPOTIPY_CLIENT_ID") or SPOTIFY_CLIENT_ID
    client_secret = os.environ.get("SPOTIFY_CLIENT_SECRET") or os.environ.get("SPOTIPY_CLIENT_SECRET") or SPOTIFY_CLIENT_SECRET
    redirect_uri = os.environ.get("SPOTIFY_REDIRECT_URI") or os.environ.get("SPOTIPY_REDIRECT_URI") or SPOTIFY_REDIRECT_URI

    auth_manager = SpotifyOAuth(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=redirect_uri,
        scope=" ".join(SPOTIFY_SCOPES),
    )
    try:
        auth_manager.get_access_token(as_dict=False)
    except (SpotifyOauthError, RequestException) as e:
        raise CatalogError("authenticate", str(e)) from e

    # Each call is attempted once; degradation is decided by the pipelines
    return spotipy.Spotify(auth_manager=auth_manager, retries=0, status_retries=0)


class SpotifyClient:
    """
    Async catalog facade around a spotipy handle.

    Attributes:
        sp: Spotipy client instance
        market: Market used for artist top tracks and albums
    """

    def __init__(self, sp: Optional[spotipy.Spotify] = None, market: str = DEFAULT_MARKET):
        """
        Args:
            sp: Pre-built spotipy handle (an OAuth handle is created if None)
            market: ISO country code for market-dependent endpoints
        """
        self.sp = sp if sp is not None else build_spotipy_client()
        self.market = market

    async def _call(self, operation: str, func: Callable, *args, **kwargs) -> Any:
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except SpotifyException as e:
            raise CatalogError(operation, e.msg, e.http_status) from e
        except (SpotifyOauthError, RequestException) as e:
            raise CatalogError(operation, str(e)) from e

    # =========================================================================
    # ARTIST OPERATIONS
    # =========================================================================

    async def get_artist(self, artist_id: str) -> Artist:
        payload = await self._call("get_artist", self.sp.artist, artist_id)
        return Artist.from_api(payload)

    async def get_artists(self, artist_ids: List[str]) -> List[Artist]:
        """
        Fetch up to 50 artists in one request.

        Unknown IDs come back as nulls and are dropped.
        """
        if len(artist_ids) > MAX_IDS_PER_REQUEST:
            raise ValueError(
                f"get_artists accepts at most {MAX_IDS_PER_REQUEST} ids, got {len(artist_ids)}"
            )
        if not artist_ids:
            return []
        payload = await self._call("get_artists", self.sp.artists, artist_ids)
        return [Artist.from_api(a) for a in payload.get("artists", []) if a]

    async def get_artist_top_tracks(self, artist_id: str, market: Optional[str] = None) -> List[Track]:
        payload = await self._call(
            "get_artist_top_tracks",
            self.sp.artist_top_tracks,
            artist_id,
            country=market or self.market,
        )
        return [Track.from_api(t) for t in payload.get("tracks", []) if t and t.get("id")]

    async def get_artist_albums(
        self,
        artist_id: str,
        types: str = "album,single",
        market: Optional[str] = None,
        limit: int = 20,
    ) -> List[Album]:
        payload = await self._call(
            "get_artist_albums",
            self.sp.artist_albums,
            artist_id,
            include_groups=types,
            country=market or self.market,
            limit=limit,
        )
        return [Album.from_api(a) for a in payload.get("items", []) if a and a.get("id")]

    # =========================================================================
    # SEARCH OPERATIONS
    # =========================================================================

    async def search_artists(self, query: str, limit: int = GENRE_SEARCH_LIMIT) -> List[Artist]:
        payload = await self._call(
            "search_artists",
            self.sp.search,
            q=query,
            type="artist",
            limit=min(limit, 50),
        )
        items = (payload.get("artists") or {}).get("items") or []
        return [Artist.from_api(a) for a in items if a and a.get("id")]

    # =========================================================================
    # USER OPERATIONS
    # =========================================================================

    async def get_user_top_items(
        self,
        kind: str,
        time_range: str,
        limit: int = TOP_ITEMS_PAGE_SIZE,
        offset: int = 0,
    ) -> TopItemsSnapshot:
        """
        Fetch one page of the user's top artists or tracks.

        Args:
            kind: "artists" or "tracks"
            time_range: short_term, medium_term or long_term
            limit: Page size (max 50)
            offset: Index of the first item
        """
        if time_range not in TIME_RANGES:
            raise ValueError(f"Unknown time range: {time_range}")
        if kind == "artists":
            func = self.sp.current_user_top_artists
        elif kind == "tracks":
            func = self.sp.current_user_top_tracks
        else:
            raise ValueError(f"Unknown top items kind: {kind}")

        payload = await self._call(
            f"get_user_top_{kind}",
            func,
            limit=limit,
            offset=offset,
            time_range=time_range,
        )
        return TopItemsSnapshot.from_api(kind, time_range, payload)

    async def get_recently_played(self, limit: int = RECENTLY_PLAYED_LIMIT) -> List[PlayRecord]:
        payload = await self._call(
            "get_recently_played",
            self.sp.current_user_recently_played,
            limit=min(limit, RECENTLY_PLAYED_LIMIT),
        )
        return [
            PlayRecord.from_api(item)
            for item in payload.get("items", [])
            if item and item.get("track") and item["track"].get("id")
        ]

    async def get_follow_status(self, artist_ids: List[str], kind: str = "artist") -> List[bool]:
        """Whether the user follows each of the given artists (or users)."""
        if kind == "artist":
            result = await self._call(
                "get_follow_status", self.sp.current_user_following_artists, artist_ids
            )
        elif kind == "user":
            result = await self._call(
                "get_follow_status", self.sp.current_user_following_users, artist_ids
            )
        else:
            raise ValueError(f"Unknown follow type: {kind}")
        return [bool(flag) for flag in result or []]
