"""
Replay a table of match results through a rating engine.

A match table has one row per match with the columns:
- time: when the match was played
- player, opponent: player names
- score: the player's score, a number in [0, 1] or "win", "draw", "loss"

Players are registered the first time they appear. The result contains the
engine, the name to handle mapping and a per-match rating timeline.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd

from .engine import RatingEngine
from .errors import InvalidScoreError
from .game import Points
from .model import Rating, Settings
from .storage import PlayerHandle

logger = logging.getLogger(__name__)

MATCH_COLUMNS = ['time', 'player', 'opponent', 'score']

RESULT_POINTS = {
    'win': 1.0,
    'w': 1.0,
    'draw': 0.5,
    'd': 0.5,
    'loss': 0.0,
    'l': 0.0,
}

TIMELINE_COLUMNS = [
    'time', 'player', 'opponent', 'score',
    'player_rating', 'player_deviation', 'player_volatility',
    'opponent_rating', 'opponent_deviation', 'opponent_volatility',
    'closed_periods',
]


def parse_scores(values: pd.Series) -> np.ndarray:
    """
    Convert a score column to points.

    Accepts numbers in [0, 1] and the labels in `RESULT_POINTS`
    (case-insensitive).

    Raises:
        InvalidScoreError: Listing the positions of all invalid entries.
    """
    numeric = pd.to_numeric(values, errors='coerce').to_numpy(dtype=float)
    labels = values.astype(str).str.strip().str.lower()
    mapped = labels.map(RESULT_POINTS).to_numpy(dtype=float)

    scores = np.where(np.isnan(numeric), mapped, numeric)
    invalid = np.isnan(scores) | (scores < 0.0) | (scores > 1.0)
    if invalid.any():
        positions = np.flatnonzero(invalid).tolist()
        raise InvalidScoreError(f"Invalid scores at rows {positions}")

    return scores


def prepare_matches(matches: pd.DataFrame) -> pd.DataFrame:
    """Validate a match table and normalize its column types."""
    missing = [col for col in MATCH_COLUMNS if col not in matches.columns]
    if missing:
        raise ValueError(f"Match table is missing columns: {missing}")

    df = matches[MATCH_COLUMNS].copy()
    df['time'] = pd.to_datetime(df['time'], utc=True)
    df['player'] = df['player'].astype(str)
    df['opponent'] = df['opponent'].astype(str)
    df['score'] = parse_scores(df['score'])

    # Stable sort keeps the file order for matches at the same instant
    return df.sort_values('time', kind='stable').reset_index(drop=True)


def load_matches(path: Path) -> pd.DataFrame:
    """
    Load a match table from a CSV or JSON (list of records) file.

    Returns:
        DataFrame with UTC times and scores as points, sorted by time.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Match file not found: {path}")

    if path.suffix == '.csv':
        df = pd.read_csv(path)
    elif path.suffix == '.json':
        df = pd.read_json(path, orient='records')
    else:
        raise ValueError(f"Unknown format: {path.name}")

    return prepare_matches(df)


@dataclass
class ReplayResult:
    """Outcome of `replay_matches`."""
    engine: RatingEngine
    handles: Dict[str, PlayerHandle]
    timeline: pd.DataFrame
    last_time: datetime

    def rating(self, name: str, at: Optional[datetime] = None) -> Rating:
        """Public rating of a player at `at` (default: time of the last match)."""
        return self.engine.player_rating(self.handles[name], at or self.last_time)[0]

    def final_ratings(self, at: Optional[datetime] = None) -> pd.DataFrame:
        """
        Ratings of all players at `at` (default: time of the last match).

        Columns: name, rating, deviation, volatility, pending_games
        """
        df = self.engine.ratings_frame(at or self.last_time)
        names = {handle.index: name for name, handle in self.handles.items()}
        df.insert(0, 'name', df['player'].map(names))
        return df.drop(columns=['player'])


def replay_matches(
    matches: pd.DataFrame,
    settings: Settings,
    initial_ratings: Optional[Dict[str, Rating]] = None,
    start_time: Optional[datetime] = None,
) -> ReplayResult:
    """
    Rate a match table in chronological order.

    Args:
        matches: Match table (see module docstring)
        settings: Rating settings
        initial_ratings: Start ratings by player name, others start at
            `settings.start_rating`
        start_time: Start of the first rating period (default: time of the
            first match)

    Returns:
        ReplayResult with the engine and one timeline row per match.
    """
    df = prepare_matches(matches)
    initial_ratings = initial_ratings or {}

    if start_time is None:
        start_time = df['time'].iloc[0].to_pydatetime() if len(df) else datetime.now(timezone.utc)
    elif start_time.tzinfo is None:
        start_time = start_time.replace(tzinfo=timezone.utc)

    engine = RatingEngine.start_new_at(start_time, settings)
    handles: Dict[str, PlayerHandle] = {}

    def handle_for(name: str, at: datetime) -> Tuple[PlayerHandle, int]:
        """The player's handle and the rating periods closed registering them."""
        if name in handles:
            return handles[name], 0
        rating = initial_ratings.get(name, settings.start_rating)
        handles[name], closed_periods = engine.register_player(rating, at=at)
        return handles[name], closed_periods

    records = []
    last_time = start_time
    for row in df.itertuples(index=False):
        at = row.time.to_pydatetime()
        player, closed_for_player = handle_for(row.player, at)
        opponent, closed_for_opponent = handle_for(row.opponent, at)

        closed_periods = closed_for_player + closed_for_opponent
        closed_periods += engine.register_result(player, opponent, Points.zero_sum(row.score), at=at)
        player_rating, _ = engine.player_rating(player, at=at)
        opponent_rating, _ = engine.player_rating(opponent, at=at)

        records.append({
            'time': row.time,
            'player': row.player,
            'opponent': row.opponent,
            'score': row.score,
            'player_rating': player_rating.rating,
            'player_deviation': player_rating.deviation,
            'player_volatility': player_rating.volatility,
            'opponent_rating': opponent_rating.rating,
            'opponent_deviation': opponent_rating.deviation,
            'opponent_volatility': opponent_rating.volatility,
            'closed_periods': closed_periods,
        })
        last_time = at

    logger.info("Replayed %d matches between %d players", len(records), len(handles))

    return ReplayResult(
        engine=engine,
        handles=handles,
        timeline=pd.DataFrame(records, columns=TIMELINE_COLUMNS),
        last_time=last_time,
    )
