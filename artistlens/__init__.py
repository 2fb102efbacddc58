"""
ArtistLens - Personal Listening Analytics
=========================================

Derives listening insights and similar-artist recommendations for one
artist from a user's Spotify top items and recent plays.

Modules:
    - config: Configuration and constants
    - models: Snapshot and derived data types
    - outcomes: Typed results for best-effort catalog calls
    - spotify_client: Async Spotify API wrapper
    - candidates: Candidate artist collection and discovery rebalancing
    - scoring: Artist similarity signals and scoring engine
    - recommender: Similar-artists pipeline
    - listening: Listening history aggregation
    - artist_page: Concurrent page loader
    - explainer: Insight and explanation text
    - cli: Command-line interface
"""

__version__ = "1.0.0"
__author__ = "ArtistLens Team"
