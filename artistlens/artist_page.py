"""
Artist Page Loader
==================

Fetches everything an artist page needs in one concurrent fan-out, then runs
the two derived pipelines (listening data and similar artists) on the
snapshots:

    artist, artist top tracks, albums, follow status, recently played,
    top tracks x3 ranges, short-term top artists
        -> rank lookup (second page on demand)
        -> calculate_listen_data
        -> find_related_artists

Only the artist lookup is essential. Every other source degrades to an empty
snapshot when its request fails.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Any, Dict, List, Optional

from .config import (
    ARTIST_ALBUM_LIMIT,
    ARTIST_ALBUM_TYPES,
    DEFAULT_LISTEN_CONFIG,
    LONG_TERM,
    MEDIUM_TERM,
    RECENTLY_PLAYED_LIMIT,
    SHORT_TERM,
    TOP_ITEMS_PAGE_SIZE,
    ListenConfig,
)
from .listening import calculate_listen_data, plays_by_artist
from .models import (
    Album,
    Artist,
    ListenData,
    PlayRecord,
    SimilarityCandidate,
    TopItemsSnapshot,
    Track,
)
from .outcomes import attempt
from .recommender import RelatedArtistsRecommender
from .spotify_client import SpotifyClient

logger = logging.getLogger(__name__)


@dataclass
class ArtistPage:
    """Everything shown on an artist page."""
    artist: Artist
    top_tracks: List[Track] = field(default_factory=list)
    albums: List[Album] = field(default_factory=list)
    singles: List[Album] = field(default_factory=list)
    compilations: List[Album] = field(default_factory=list)
    is_following: bool = False
    artist_recently_played: List[PlayRecord] = field(default_factory=list)
    listen_data: ListenData = field(default_factory=ListenData)
    similar_artists: List[SimilarityCandidate] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "artist": self.artist.to_dict(),
            "top_tracks": [t.to_dict() for t in self.top_tracks],
            "albums": [a.to_dict() for a in self.albums],
            "singles": [a.to_dict() for a in self.singles],
            "compilations": [a.to_dict() for a in self.compilations],
            "is_following": self.is_following,
            "recently_played": [p.to_dict() for p in self.artist_recently_played],
            "listen_data": self.listen_data.to_dict(),
            "similar_artists": [c.to_dict() for c in self.similar_artists],
        }


def _empty_snapshot(kind: str, time_range: str) -> TopItemsSnapshot:
    return TopItemsSnapshot(kind=kind, time_range=time_range)


async def find_artist_rank(
    client: SpotifyClient,
    artist_id: str,
    first_page: TopItemsSnapshot,
    config: ListenConfig = DEFAULT_LISTEN_CONFIG,
) -> Optional[int]:
    """
    1-based rank of the artist among the user's top artists.

    Looks at the page already fetched, then fetches the next page once. A
    failed second page leaves the rank unknown (None). No request is made
    when the first page reports that the user has no further top artists.
    """
    rank = first_page.position(artist_id)
    if rank is not None:
        return rank
    if first_page.total is not None and first_page.total <= config.rank_second_page_offset:
        return None

    outcome = await attempt(
        client.get_user_top_items(
            "artists",
            first_page.time_range,
            limit=TOP_ITEMS_PAGE_SIZE,
            offset=config.rank_second_page_offset,
        ),
        "second page of top artists",
    )
    if not outcome.ok:
        return None
    return outcome.value.position(artist_id)


async def load_artist_page(
    client: Optional[SpotifyClient],
    artist_id: str,
    market: Optional[str] = None,
    listen_config: ListenConfig = DEFAULT_LISTEN_CONFIG,
    tz: Optional[tzinfo] = None,
) -> Optional[ArtistPage]:
    """
    Load and derive everything for one artist page.

    Returns None when there is no client or the artist cannot be fetched.
    """
    if client is None:
        logger.debug("No catalog client; skipping artist page")
        return None

    (
        artist_o,
        top_tracks_o,
        albums_o,
        following_o,
        recent_o,
        short_o,
        medium_o,
        long_o,
        top_artists_o,
    ) = await asyncio.gather(
        attempt(client.get_artist(artist_id), "artist"),
        attempt(client.get_artist_top_tracks(artist_id, market), "artist top tracks"),
        attempt(
            client.get_artist_albums(artist_id, ARTIST_ALBUM_TYPES, market, ARTIST_ALBUM_LIMIT),
            "artist albums",
        ),
        attempt(client.get_follow_status([artist_id], "artist"), "follow status"),
        attempt(client.get_recently_played(RECENTLY_PLAYED_LIMIT), "recently played"),
        attempt(client.get_user_top_items("tracks", SHORT_TERM), "short-term top tracks"),
        attempt(client.get_user_top_items("tracks", MEDIUM_TERM), "medium-term top tracks"),
        attempt(client.get_user_top_items("tracks", LONG_TERM), "long-term top tracks"),
        attempt(client.get_user_top_items("artists", SHORT_TERM), "short-term top artists"),
    )

    if not artist_o.ok:
        logger.error("Could not load artist %s: %s", artist_id, artist_o.reason)
        return None
    artist: Artist = artist_o.value

    short = short_o.value_or(_empty_snapshot("tracks", SHORT_TERM)).items
    medium = medium_o.value_or(_empty_snapshot("tracks", MEDIUM_TERM)).items
    long_ = long_o.value_or(_empty_snapshot("tracks", LONG_TERM)).items
    top_artists_page = top_artists_o.value_or(_empty_snapshot("artists", SHORT_TERM))
    recently_played: List[PlayRecord] = recent_o.value_or([])
    albums: List[Album] = albums_o.value_or([])
    following: List[bool] = following_o.value_or([])

    rank = await find_artist_rank(client, artist_id, top_artists_page, listen_config)
    artist_recent = plays_by_artist(recently_played, artist_id)

    listen_data = calculate_listen_data(
        artist_id,
        short,
        medium,
        long_,
        recently_played,
        artist_recent,
        rank,
        config=listen_config,
        tz=tz,
    )

    recommender = RelatedArtistsRecommender(client, tz=tz)
    similar = await recommender.recommend(
        artist, top_artists_page.items, short + medium + long_, recently_played
    )

    return ArtistPage(
        artist=artist,
        top_tracks=top_tracks_o.value_or([]),
        albums=[a for a in albums if a.album_type == "album"],
        singles=[a for a in albums if a.album_type == "single"],
        compilations=[a for a in albums if a.album_type == "compilation"],
        is_following=bool(following and following[0]),
        artist_recently_played=artist_recent,
        listen_data=listen_data,
        similar_artists=similar,
    )
