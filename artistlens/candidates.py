"""
Candidate Generation Module
============================

Collects candidate artists for the similar-artists list from:
1. The user's top artists
2. Artists credited on the user's top and recently played tracks
3. A catalog search for the target artist's most specific genre

and rebalances the final ranking so that it always carries some discovery
(artists outside the user's top artists).
"""

import logging
from typing import Dict, List, Optional, Set

from .config import (
    DEFAULT_DISCOVERY_CONFIG,
    GENRE_SEARCH_LIMIT,
    MAX_IDS_PER_REQUEST,
    DiscoveryConfig,
)
from .models import Artist, PlayRecord, SimilarityCandidate, Track
from .outcomes import Fetched, Outcome, Skipped, attempt
from .spotify_client import SpotifyClient
from .utils import chunked

logger = logging.getLogger(__name__)


def primary_genre(artist: Artist) -> Optional[str]:
    """The longest (assumed most specific) genre tag, first one on ties."""
    if not artist.genres:
        return None
    return max(artist.genres, key=len)


class CandidateCollector:
    """
    Gathers a deduplicated, ordered set of candidate artists.

    Candidate order is insertion order (top artists, then track credits,
    then genre search results) and is later used to break score ties.
    """

    def __init__(
        self,
        spotify_client: SpotifyClient,
        genre_search_limit: int = GENRE_SEARCH_LIMIT,
        batch_size: int = MAX_IDS_PER_REQUEST,
    ):
        self.spotify = spotify_client
        self.genre_search_limit = genre_search_limit
        self.batch_size = batch_size

    async def collect(
        self,
        target: Artist,
        top_artists: List[Artist],
        top_tracks: List[Track],
        recently_played: List[PlayRecord],
    ) -> List[Artist]:
        """
        Build the candidate artist list for a target artist.

        Args:
            target: Artist whose similar artists are being computed
            top_artists: User's top artists snapshot
            top_tracks: User's top tracks across all three ranges
            recently_played: User's recent play history

        Returns:
            Full artist records for every candidate, target excluded
        """
        candidate_ids = self.seed_ids(target, top_artists, top_tracks, recently_played)

        genre_outcome = await self.expand_by_genre(target)
        for artist_id in genre_outcome.value_or([]):
            candidate_ids.setdefault(artist_id, None)
        candidate_ids.pop(target.id, None)

        if not candidate_ids:
            logger.info("No candidates for %s", target.id)
            return []

        artists = await self.resolve_artists(list(candidate_ids))
        logger.info(
            "Resolved %d of %d candidate artists for %s",
            len(artists), len(candidate_ids), target.id,
        )
        return artists

    def seed_ids(
        self,
        target: Artist,
        top_artists: List[Artist],
        top_tracks: List[Track],
        recently_played: List[PlayRecord],
    ) -> Dict[str, None]:
        """Ordered id set from listening data; the target acts as an exclusion guard."""
        ids: Dict[str, None] = {target.id: None}
        for artist in top_artists:
            ids.setdefault(artist.id, None)
        for track in top_tracks:
            for artist_id in track.artist_ids:
                ids.setdefault(artist_id, None)
        for play in recently_played:
            for artist_id in play.track.artist_ids:
                ids.setdefault(artist_id, None)
        ids.pop(target.id, None)
        return ids

    async def expand_by_genre(self, target: Artist) -> Outcome:
        """
        Search the catalog for the target's most specific genre.

        Returns ``Fetched`` with artist ids (target excluded), or ``Skipped``
        when the target has no genres or the search fails.
        """
        genre = primary_genre(target)
        if genre is None:
            return Skipped(what="genre search", reason="target has no genres")

        outcome = await attempt(
            self.spotify.search_artists(genre, limit=self.genre_search_limit),
            f"genre search for {genre!r}",
        )
        if not outcome.ok:
            return outcome
        return Fetched([a.id for a in outcome.value if a.id != target.id])

    async def resolve_artists(self, artist_ids: List[str]) -> List[Artist]:
        """
        Fetch full artist records in sequential batches.

        A failed batch is logged and skipped; the rest still count.
        """
        artists: List[Artist] = []
        for batch in chunked(artist_ids, self.batch_size):
            outcome = await attempt(
                self.spotify.get_artists(batch),
                f"artist batch of {len(batch)}",
            )
            artists.extend(outcome.value_or([]))
        return artists


class DiscoveryRebalancer:
    """
    Guarantees a minimum amount of discovery in the final ranking.

    If too few of the top results are new to the user, the tail of the list
    is replaced with the best-scoring unfamiliar artists ranked below the
    cutoff.
    """

    def __init__(self, config: DiscoveryConfig = DEFAULT_DISCOVERY_CONFIG):
        self.config = config

    def rebalance(
        self,
        ranked: List[SimilarityCandidate],
        top_artist_ids: Set[str],
    ) -> List[SimilarityCandidate]:
        """
        Args:
            ranked: Candidates sorted by score, descending
            top_artist_ids: IDs in the user's top-artists snapshot

        Returns:
            At most ``max_results`` candidates
        """
        cfg = self.config
        top_results = ranked[:cfg.max_results]
        discovery_count = sum(
            1 for c in top_results if c.artist.id not in top_artist_ids
        )

        if discovery_count >= cfg.min_discovery or len(ranked) <= cfg.max_results:
            return top_results

        below_cutoff = [
            c for c in ranked[cfg.max_results:] if c.artist.id not in top_artist_ids
        ]
        injected = below_cutoff[:cfg.inject_discovery]
        logger.debug(
            "Only %d discovery artists in top %d; injecting %d",
            discovery_count, cfg.max_results, len(injected),
        )

        # Slots the pool cannot fill keep their original occupants
        shortfall = max(0, cfg.inject_discovery - len(injected))
        tail = top_results[cfg.keep_top:cfg.keep_top + shortfall] + injected
        tail.sort(key=lambda c: c.score, reverse=True)
        return (top_results[:cfg.keep_top] + tail)[:cfg.max_results]
