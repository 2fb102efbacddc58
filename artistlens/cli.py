"""
Command-Line Interface for ArtistLens
=====================================

Usage:
    artistlens <artist> [options]

    or

    python -m artistlens.cli <artist> [options]

Options:
    --market        Market for top tracks and albums (default: US)
    --timezone      IANA zone for time-of-day analysis (default: UTC)
    --output, -o    Output file path (default: stdout)
    --format        Output format: json or simple (default: json)
    --verbose, -v   Verbose logging
    --help, -h      Show this help message

Examples:
    artistlens https://open.spotify.com/artist/4Z8W4fKeB5YxbusRsdQVPb
    artistlens spotify:artist:4Z8W4fKeB5YxbusRsdQVPb --format simple
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .artist_page import ArtistPage, load_artist_page
from .config import DEFAULT_MARKET, DEFAULT_TIMEZONE, OUTPUT_FORMAT
from .explainer import explain_similarity, listening_insight
from .listening import day_of_week_distribution, summarize_track_history, time_of_day_distribution
from .outcomes import CatalogError
from .spotify_client import SpotifyClient
from .utils import format_listen_time, normalize_artist_id, validate_spotify_id


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='artistlens',
        description='🎵 ArtistLens - your listening history and similar artists for one artist',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s https://open.spotify.com/artist/xxxxx
  %(prog)s spotify:artist:xxxxx --format simple

Environment Variables:
  SPOTIFY_CLIENT_ID      Your Spotify API client ID
  SPOTIFY_CLIENT_SECRET  Your Spotify API client secret
  SPOTIFY_REDIRECT_URI   OAuth redirect URI registered for the app
        """
    )

    parser.add_argument(
        'artist',
        type=str,
        help='Spotify artist URL, URI, or ID'
    )

    parser.add_argument(
        '--market',
        type=str,
        default=DEFAULT_MARKET,
        help=f'Market for artist top tracks and albums (default: {DEFAULT_MARKET})'
    )

    parser.add_argument(
        '--timezone',
        type=str,
        default=DEFAULT_TIMEZONE,
        help=f'IANA time zone for time-of-day analysis (default: {DEFAULT_TIMEZONE})'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output file path (default: print to stdout)'
    )

    parser.add_argument(
        '--format',
        type=str,
        choices=['json', 'simple'],
        default=OUTPUT_FORMAT,
        help=f'Output format (default: {OUTPUT_FORMAT})'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    return parser


def format_output(page: ArtistPage, fmt: str, tz=None) -> str:
    """Format an artist page based on requested format."""
    insight = listening_insight(page.listen_data, page.artist)

    if fmt == 'json':
        data = page.to_dict()
        data['insight'] = insight.to_dict()
        return json.dumps(data, indent=2)

    listen = page.listen_data
    lines = [
        f"🎵 {page.artist.name}",
        f"   Genres: {', '.join(page.artist.genres) or 'n/a'}",
        f"   Popularity: {page.artist.popularity}  Followers: {page.artist.followers:,}",
        f"   Following: {'yes' if page.is_following else 'no'}",
        "",
        "Your Listening",
        "-" * 50,
        f"   {insight.summary}",
        f"   Persona: {insight.fan_persona}",
        f"   Listening time: {format_listen_time(listen.total_listens_ms)} (~{insight.listening_days} days)",
        f"   Trend: {insight.trend_label}",
    ]
    if insight.rank_label:
        lines.append(f"   Rank: {insight.rank_label}")
    if listen.top_time_of_day:
        lines.append(f"   Usually at: {listen.top_time_of_day}")
    if page.artist_recently_played:
        top_day, top_day_pct = day_of_week_distribution(page.artist_recently_played, tz)[0]
        top_time, top_time_pct = time_of_day_distribution(page.artist_recently_played, tz=tz)[0]
        lines.append(f"   Most active day: {top_day} ({top_day_pct}%)")
        lines.append(f"   Most active time: {top_time} ({top_time_pct}%)")

    summaries = summarize_track_history(listen.track_history, page.artist_recently_played)
    if summaries:
        lines.append("")
        lines.append("Your Tracks")
        lines.append("-" * 50)
        for row in summaries[:10]:
            marker = "★" if row.track.id == listen.favorite_track_id else " "
            lines.append(
                f" {marker} {row.track.name}  [{', '.join(row.sources)}]"
                f"  plays: {row.play_count}"
            )

    lines.append("")
    lines.append(f"Similar Artists ({len(page.similar_artists)})")
    lines.append("-" * 50)
    for i, candidate in enumerate(page.similar_artists, 1):
        lines.append(f"{i:2}. {candidate.artist.name}")
        lines.append(f"    Score: {candidate.score:.1f}")
        lines.append(f"    Why: {explain_similarity(candidate)}")
    return '\n'.join(lines)


def validate_environment() -> bool:
    """Check if required environment variables are set."""
    client_id = os.environ.get('SPOTIFY_CLIENT_ID') or os.environ.get('SPOTIPY_CLIENT_ID')
    client_secret = os.environ.get('SPOTIFY_CLIENT_SECRET') or os.environ.get('SPOTIPY_CLIENT_SECRET')

    missing = []
    if not client_id:
        missing.append('SPOTIFY_CLIENT_ID')
    if not client_secret:
        missing.append('SPOTIFY_CLIENT_SECRET')

    if missing:
        print(f"❌ Error: missing Spotify credentials: {', '.join(missing)}", file=sys.stderr)
        print("   (the SPOTIPY_* names are accepted too)", file=sys.stderr)
        print("   Create an app at https://developer.spotify.com/dashboard", file=sys.stderr)
        return False
    return True


def main(argv=None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    artist_id = normalize_artist_id(args.artist)
    if not validate_spotify_id(artist_id):
        print(f"❌ Error: not a Spotify artist reference: {args.artist}", file=sys.stderr)
        return 2

    try:
        tz = ZoneInfo(args.timezone)
    except ZoneInfoNotFoundError:
        print(f"❌ Error: unknown time zone: {args.timezone}", file=sys.stderr)
        return 2

    if not validate_environment():
        return 1

    try:
        client = SpotifyClient(market=args.market)
        print(f"🔍 Loading artist {artist_id}...", file=sys.stderr)
        page = asyncio.run(load_artist_page(client, artist_id, market=args.market, tz=tz))
    except CatalogError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    if page is None:
        print("❌ Error: artist not found or not available in your region.", file=sys.stderr)
        return 1

    output = format_output(page, args.format, tz)

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(output)
        print(f"✅ Saved to: {args.output}", file=sys.stderr)
    else:
        print(output)

    return 0


if __name__ == '__main__':
    sys.exit(main())
