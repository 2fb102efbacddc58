"""
Similar Artists Recommender
===========================

Orchestrates the similar-artists pipeline for one target artist:
1. Collect candidate artists from listening data and a genre search
2. Score each candidate with the similarity signals
3. Rebalance the ranking for discovery and cap it

The pipeline is read-only and rebuilds everything from the snapshots it is
given; it never raises for missing data.
"""

import logging
from datetime import tzinfo
from typing import List, Optional

from .candidates import CandidateCollector, DiscoveryRebalancer
from .config import (
    DEFAULT_DISCOVERY_CONFIG,
    DEFAULT_WEIGHTS,
    DiscoveryConfig,
    SimilarityWeights,
)
from .models import Artist, PlayRecord, SimilarityCandidate, Track
from .scoring import ScoringEngine
from .spotify_client import SpotifyClient

logger = logging.getLogger(__name__)


class RelatedArtistsRecommender:
    """
    Finds artists similar to a target artist for the current user.

    Usage:
        recommender = RelatedArtistsRecommender(SpotifyClient())
        results = await recommender.recommend(target, top_artists, top_tracks, recent)
    """

    def __init__(
        self,
        spotify_client: SpotifyClient,
        weights: SimilarityWeights = DEFAULT_WEIGHTS,
        discovery_config: DiscoveryConfig = DEFAULT_DISCOVERY_CONFIG,
        tz: Optional[tzinfo] = None,
    ):
        self.spotify = spotify_client
        self.collector = CandidateCollector(spotify_client)
        self.scorer = ScoringEngine(weights, tz=tz)
        self.rebalancer = DiscoveryRebalancer(discovery_config)

    async def recommend(
        self,
        target: Artist,
        top_artists: List[Artist],
        top_tracks: List[Track],
        recently_played: List[PlayRecord],
    ) -> List[SimilarityCandidate]:
        """
        Rank artists similar to ``target``.

        Args:
            target: Artist being viewed
            top_artists: User's top artists snapshot
            top_tracks: User's top tracks, all three ranges concatenated
            recently_played: User's recent play history

        Returns:
            At most 20 candidates, score descending, target never included
        """
        candidates = await self.collector.collect(
            target, top_artists, top_tracks, recently_played
        )
        if not candidates:
            return []

        ctx = self.scorer.build_context(target, top_artists, top_tracks, recently_played)
        ranked = self.scorer.score_candidates(candidates, ctx)
        results = self.rebalancer.rebalance(ranked, ctx.top_artist_ids)

        logger.info(
            "Found %d similar artists for %s (%d candidates scored)",
            len(results), target.name, len(ranked),
        )
        return results


async def find_related_artists(
    client: Optional[SpotifyClient],
    target_artist: Artist,
    user_top_artists: List[Artist],
    user_top_tracks: List[Track],
    recently_played: List[PlayRecord],
) -> List[SimilarityCandidate]:
    """
    Convenience entry point for the similar-artists pipeline.

    A missing client handle yields an empty list.
    """
    if client is None:
        logger.debug("No catalog client; skipping similar artists")
        return []
    recommender = RelatedArtistsRecommender(client)
    return await recommender.recommend(
        target_artist, user_top_artists, user_top_tracks, recently_played
    )
