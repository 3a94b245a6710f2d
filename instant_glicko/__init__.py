"""
instant_glicko: Glicko-2 ratings with fractional rating periods.

Ratings can be inspected at any instant instead of only when a rating period
closes. See `RatingEngine` for managing many players and `rate_games` /
`rate_player` for the algorithm itself.
"""

from .algorithm import (
    close_rating_period,
    estimated_improvement,
    estimated_variance,
    expected_score,
    g,
    new_deviation,
    new_rating,
    new_volatility,
    pre_rating_period_value,
    rate_game,
    rate_games,
    rate_player,
)
from .constants import (
    DEFAULT_CONVERGENCE_TOLERANCE,
    DEFAULT_RATING_PERIOD_DURATION,
    DEFAULT_START_DEVIATION,
    DEFAULT_START_RATING,
    DEFAULT_START_VOLATILITY,
    DEFAULT_VOLATILITY_CHANGE,
    MAX_ITERATIONS,
    RATING_SCALING_RATIO,
)
from .decay import TimedGame, TimedRating, decayed_deviation, elapsed_periods, rating_at
from .engine import EnginePlayer, RatingEngine
from .errors import (
    ConvergenceError,
    GlickoError,
    InvalidMatchError,
    InvalidRatingError,
    InvalidScoreError,
    InvalidSettingsError,
    TemporalInversionError,
    UnknownPlayerError,
)
from .game import Game, MatchResult, Points, ScaledGame, Score
from .model import Rating, ScaledRating, Settings, to_internal, to_public
from .storage import AppendOnlyStore, PlayerHandle

__version__ = "0.1.0"

__all__ = [
    # Values
    'Rating',
    'ScaledRating',
    'Settings',
    'to_internal',
    'to_public',
    'Game',
    'ScaledGame',
    'Score',
    'MatchResult',
    'Points',
    'TimedRating',
    'TimedGame',
    # Algorithm
    'rate_games',
    'rate_player',
    'rate_game',
    'close_rating_period',
    'g',
    'expected_score',
    'estimated_variance',
    'estimated_improvement',
    'new_volatility',
    'pre_rating_period_value',
    'new_deviation',
    'new_rating',
    # Time decay
    'elapsed_periods',
    'decayed_deviation',
    'rating_at',
    # Engine
    'RatingEngine',
    'EnginePlayer',
    'PlayerHandle',
    'AppendOnlyStore',
    # Errors
    'GlickoError',
    'InvalidRatingError',
    'InvalidSettingsError',
    'InvalidScoreError',
    'InvalidMatchError',
    'TemporalInversionError',
    'ConvergenceError',
    'UnknownPlayerError',
    # Constants
    'RATING_SCALING_RATIO',
    'DEFAULT_START_RATING',
    'DEFAULT_START_DEVIATION',
    'DEFAULT_START_VOLATILITY',
    'DEFAULT_VOLATILITY_CHANGE',
    'DEFAULT_CONVERGENCE_TOLERANCE',
    'DEFAULT_RATING_PERIOD_DURATION',
    'MAX_ITERATIONS',
]
