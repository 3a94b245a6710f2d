"""
Time-decay projection.

Without games, only the rating deviation changes over time: it grows with
the volatility for every (possibly fractional) rating period that elapses.

    φ' = √(φ² + t·σ²)

where t is the number of elapsed rating periods as a real number.
"""

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from .errors import TemporalInversionError
from .game import ScaledGame, validate_score
from .model import ScaledRating


def elapsed_periods(since: datetime, until: datetime, period_duration: timedelta) -> float:
    """
    Number of rating periods between two instants as a fraction.

    Args:
        since: Start of the interval
        until: End of the interval, must not be earlier than `since`
        period_duration: Length of one rating period

    Returns:
        Elapsed rating periods, >= 0.

    Raises:
        TemporalInversionError: If `until` is earlier than `since`.
    """
    if until < since:
        raise TemporalInversionError(f"{until.isoformat()} is earlier than {since.isoformat()}")
    return (until - since) / period_duration


def decayed_deviation(deviation: float, volatility: float, elapsed: float) -> float:
    """Deviation after `elapsed` rating periods without games."""
    return math.sqrt(deviation * deviation + elapsed * volatility * volatility)


@dataclass(frozen=True)
class TimedRating:
    """An internal rating together with the instant it became valid."""
    last_updated: datetime
    rating: ScaledRating

    def rating_at(self, time: datetime, period_duration: timedelta) -> ScaledRating:
        """The rating projected to `time`. See `rating_at`."""
        return rating_at(self, time, period_duration)


def rating_at(timed: TimedRating, query_time: datetime, period_duration: timedelta) -> ScaledRating:
    """
    Project a rating snapshot to a later instant.

    Rating and volatility stay the same, the deviation grows according to the
    elapsed (fractional) rating periods. The snapshot itself is not changed.

    Raises:
        TemporalInversionError: If `query_time` is earlier than `timed.last_updated`.
    """
    elapsed = elapsed_periods(timed.last_updated, query_time, period_duration)
    rating = timed.rating
    return replace(rating, deviation=decayed_deviation(rating.deviation, rating.volatility, elapsed))


@dataclass(frozen=True)
class TimedGame:
    """A game played at `time` against an opponent with a timed rating."""
    time: datetime
    opponent: TimedRating
    score: float

    def __post_init__(self):
        object.__setattr__(self, "score", validate_score(self.score))

    def to_scaled_game(self, period_duration: timedelta) -> ScaledGame:
        """The game with the opponent's rating projected to the time it was played."""
        opponent = self.opponent.rating_at(self.time, period_duration)
        return ScaledGame(opponent, self.score)
