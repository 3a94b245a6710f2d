#!/usr/bin/env python3
"""
Rate a file of match results with Glicko-2.

Reads a match table (CSV or JSON records with the columns time, player,
opponent, score), replays it through a rating engine and prints every
player's rating at the end.

Usage:
    python scripts/rate_matches.py --matches data/matches.csv
    python scripts/rate_matches.py --matches data/matches.csv --config glicko_config.json
    python scripts/rate_matches.py --create-config glicko_config.json

Settings come from (later wins): defaults, GLICKO_* environment variables
(.env supported), --config file, command line flags.
"""

import argparse
import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from instant_glicko import GlickoError, Settings
from instant_glicko.config import create_example_config, load_settings, settings_from_env
from instant_glicko.replay import load_matches, replay_matches


def _parse_time(value: str) -> datetime:
    try:
        time = datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not an ISO-8601 time: {value}") from None
    if time.tzinfo is None:
        time = time.replace(tzinfo=timezone.utc)
    return time


def build_settings(args: argparse.Namespace) -> Settings:
    """Combine environment, config file and command line flags."""
    settings = settings_from_env(args.env_file)

    if args.config:
        settings = load_settings(args.config, defaults=settings)
    if args.tau is not None:
        settings = settings.with_volatility_change(args.tau)
    if args.period_hours is not None:
        settings = settings.with_rating_period_duration(timedelta(hours=args.period_hours))

    return settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rate match results with Glicko-2 (fractional rating periods)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Create example config file
    python scripts/rate_matches.py --create-config glicko_config.json

    # Rate matches with default settings
    python scripts/rate_matches.py --matches data/matches.csv

    # Weekly rating periods, more stable volatility
    python scripts/rate_matches.py --matches data/matches.csv --period-hours 168 --tau 0.5

    # Ratings as of a given time, with the per-match timeline
    python scripts/rate_matches.py --matches data/matches.csv --at 2024-06-01T00:00:00 \\
        --timeline-output data/timeline.csv
        """,
    )

    parser.add_argument(
        "--matches",
        type=Path,
        help="CSV or JSON file with columns time, player, opponent, score",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to JSON config file with rating settings",
    )
    parser.add_argument(
        "--create-config",
        type=Path,
        metavar="PATH",
        help="Write an example config file and exit",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load GLICKO_* settings from this .env file",
    )
    parser.add_argument(
        "--tau",
        type=float,
        default=None,
        help="System constant τ (volatility change)",
    )
    parser.add_argument(
        "--period-hours",
        type=float,
        default=None,
        help="Rating period duration in hours",
    )
    parser.add_argument(
        "--start-time",
        type=_parse_time,
        default=None,
        help="Start of the first rating period (default: first match)",
    )
    parser.add_argument(
        "--at",
        type=_parse_time,
        default=None,
        help="Report ratings at this time (default: last match)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write final ratings to this CSV file",
    )
    parser.add_argument(
        "--timeline-output",
        type=Path,
        default=None,
        help="Write the per-match rating timeline to this CSV file",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.create_config:
        create_example_config(args.create_config)
        print(f"Created example config at: {args.create_config}")
        print("\nEdit this file, then run:")
        print(f"  python scripts/rate_matches.py --matches <file> --config {args.create_config}")
        return 0

    if not args.matches:
        parser.error("--matches is required (or use --create-config)")

    try:
        settings = build_settings(args)
        matches = load_matches(args.matches)
        result = replay_matches(matches, settings, start_time=args.start_time)
        ratings = result.final_ratings(args.at)
    except (GlickoError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Rated {len(result.timeline)} matches between {len(result.handles)} players")
    print(f"Rating period: {settings.rating_period_duration}, τ = {settings.volatility_change}")
    print()
    if ratings.empty:
        print("No players.")
    else:
        print(ratings.round({'rating': 2, 'deviation': 2, 'volatility': 5}).to_string(index=False))

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        ratings.to_csv(args.output, index=False)
        print(f"\nSaved: {args.output}")

    if args.timeline_output:
        args.timeline_output.parent.mkdir(parents=True, exist_ok=True)
        result.timeline.to_csv(args.timeline_output, index=False)
        print(f"Saved: {args.timeline_output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
