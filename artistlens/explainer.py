"""
Insight Generator Module
========================

Turns derived listening data and similarity scores into human-readable
text:
- Listening insight messages and fan personas
- Listening time summaries
- Match-strength labels and short explanations for similar artists
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .config import DEFAULT_LISTEN_CONFIG, LONG_TERM, MEDIUM_TERM, RECENT, SHORT_TERM, ListenConfig
from .models import Artist, ListenData, SimilarityCandidate
from .utils import format_listen_time, ms_to_listening_days

# (minimum score, label), highest first
MATCH_STRENGTHS: List[Tuple[float, str]] = [
    (200, "Perfect Match"),
    (150, "Strong Match"),
    (100, "Good Match"),
    (70, "Decent Match"),
]
DEFAULT_MATCH_STRENGTH = "Mild Match"

TREND_LABELS = {
    "rising": "Increasing",
    "falling": "Decreasing",
    "steady": "Steady",
}


def match_strength(score: float) -> str:
    """Label for a similarity score."""
    for threshold, label in MATCH_STRENGTHS:
        if score >= threshold:
            return label
    return DEFAULT_MATCH_STRENGTH


def explain_similarity(candidate: SimilarityCandidate, max_reasons: int = 3) -> str:
    """
    Short explanation for a similar artist, e.g.
    "Strong Match: 2 shared genres, listening patterns +1 more".
    """
    label = match_strength(candidate.score)
    reasons = candidate.match_reasons
    if not reasons:
        return label
    shown = ", ".join(reasons[:max_reasons])
    if len(reasons) > max_reasons:
        shown += f" +{len(reasons) - max_reasons} more"
    return f"{label}: {shown}"


@dataclass
class ListeningInsight:
    """Everything the insights panel shows for one artist."""
    artist_id: str
    summary: str
    fan_persona: str
    listen_time: str
    listening_days: str
    trend_label: str
    rank_label: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "summary": self.summary,
            "fan_persona": self.fan_persona,
            "listen_time": self.listen_time,
            "listening_days": self.listening_days,
            "trend": self.trend_label,
            "rank": self.rank_label,
        }


class InsightGenerator:
    """
    Generates listening insights for an artist page.

    Focuses on the strongest single story the data tells: long-term
    consistency, rank, trend or recent discovery.
    """

    def __init__(self, config: ListenConfig = DEFAULT_LISTEN_CONFIG):
        self.config = config

    def generate(self, listen_data: ListenData, artist: Artist) -> ListeningInsight:
        rank = listen_data.rank_in_top_artists
        return ListeningInsight(
            artist_id=artist.id,
            summary=self.summary(listen_data, artist.name),
            fan_persona=self.fan_persona(listen_data),
            listen_time=format_listen_time(listen_data.total_listens_ms),
            listening_days=ms_to_listening_days(
                listen_data.total_listens_ms, self.config.daily_listening_hours
            ),
            trend_label=TREND_LABELS.get(listen_data.listen_trend, "Steady"),
            rank_label=f"#{rank} in your Top Artists" if rank else None,
        )

    def summary(self, listen_data: ListenData, artist_name: str) -> str:
        """Main insight sentence."""
        rank = listen_data.rank_in_top_artists
        if not rank:
            return "Keep exploring this artist's music to generate personalized insights."

        sources = {item.source for item in listen_data.track_history}
        has_recent = RECENT in sources
        has_short = SHORT_TERM in sources
        has_medium = MEDIUM_TERM in sources
        has_long = LONG_TERM in sources

        if (has_recent or has_short) and has_medium and has_long:
            return (
                f"{artist_name} has been a consistent part of your music journey. "
                "You've maintained interest in their music over time."
            )
        if rank <= 5:
            return f"You're a super fan! {artist_name} is among your absolute favorite artists."
        if rank <= 20:
            return (
                f"{artist_name} has a special place in your music rotation. "
                "You've spent significant time with their music."
            )
        if listen_data.listen_trend == "rising":
            return f"You've been listening to {artist_name} more frequently lately. Your interest is growing!"
        if listen_data.listen_trend == "falling":
            return f"Your listening to {artist_name} has decreased lately, but they're still in your rotation."
        if has_recent and not (has_medium or has_long):
            return (
                f"You've been checking out {artist_name} recently. "
                "Keep listening to see how they fit into your music taste!"
            )
        return f"{artist_name} is part of your broader music taste, ranking #{rank} among your top artists."

    def fan_persona(self, listen_data: ListenData) -> str:
        rank = listen_data.rank_in_top_artists
        rising = listen_data.listen_trend == "rising"
        if not rank:
            return "New Listener"
        if rank <= 5:
            return "Super Fan"
        if rank <= 20:
            return "Growing Enthusiast" if rising else "Regular Fan"
        if rank <= 50:
            return "Emerging Fan" if rising else "Casual Listener"
        return "Occasional Listener"


def listening_insight(listen_data: ListenData, artist: Artist) -> ListeningInsight:
    """Convenience wrapper around InsightGenerator."""
    return InsightGenerator().generate(listen_data, artist)
