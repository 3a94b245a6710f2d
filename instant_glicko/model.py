"""
Rating values and settings.

Ratings exist on two scales:
- `Rating`: the public Glicko scale (centered near 1500), used for display
- `ScaledRating`: the internal Glicko-2 scale (centered near 0), used for
  every calculation

Both are related by the affine transform from Steps 2 and 8 of Glickman's
paper, parameterized by the start rating in `Settings` and
`RATING_SCALING_RATIO`.
"""

import math
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Tuple

from .constants import (
    DEFAULT_CONVERGENCE_TOLERANCE,
    DEFAULT_RATING_PERIOD_DURATION,
    DEFAULT_START_DEVIATION,
    DEFAULT_START_RATING,
    DEFAULT_START_VOLATILITY,
    DEFAULT_VOLATILITY_CHANGE,
    RATING_SCALING_RATIO,
)
from .errors import InvalidRatingError, InvalidSettingsError


def _validate_triple(rating: float, deviation: float, volatility: float):
    if not math.isfinite(rating):
        raise InvalidRatingError(f"rating must be finite: {rating}")
    if not (deviation > 0 and math.isfinite(deviation)):
        raise InvalidRatingError(f"deviation must be finite and > 0: {deviation}")
    if not (volatility > 0 and math.isfinite(volatility)):
        raise InvalidRatingError(f"volatility must be finite and > 0: {volatility}")


@dataclass(frozen=True)
class Rating:
    """
    A Glicko-2 rating on the public scale.

    Attributes:
        rating: Skill estimate (e.g. 1500 for a new player)
        deviation: Rating Deviation (RD), uncertainty of the rating
        volatility: σ, expected fluctuation of the rating
    """
    rating: float
    deviation: float
    volatility: float

    def __post_init__(self):
        _validate_triple(self.rating, self.deviation, self.volatility)

    def to_internal(self, settings: "Settings") -> "ScaledRating":
        """Convert to the internal Glicko-2 scale (μ, φ, σ)."""
        return to_internal(self, settings)

    def confidence_interval(self, z: float = 1.96) -> Tuple[float, float]:
        """
        Calculate confidence interval for the rating.

        Args:
            z: Z-score for confidence level (1.96 = 95%, 2.58 = 99%)

        Returns:
            Tuple of (lower_bound, upper_bound)
        """
        margin = z * self.deviation
        return (self.rating - margin, self.rating + margin)

    def __str__(self) -> str:
        ci_low, ci_high = self.confidence_interval()
        return f"Rating: {self.rating:.0f} ± {self.deviation:.0f} (95% CI: {ci_low:.0f}-{ci_high:.0f}), σ={self.volatility:.4f}"


@dataclass(frozen=True)
class ScaledRating:
    """A rating on the internal Glicko-2 scale (μ, φ, σ)."""
    rating: float
    deviation: float
    volatility: float

    def __post_init__(self):
        _validate_triple(self.rating, self.deviation, self.volatility)

    def to_public(self, settings: "Settings") -> Rating:
        """Convert back to the public Glicko scale."""
        return to_public(self, settings)


@dataclass(frozen=True)
class Settings:
    """
    Immutable configuration for all rating calculations.

    Attributes:
        start_rating: Rating of new players, its `rating` is also the center
            of the public scale
        volatility_change: System constant τ, constrains volatility change
            over time (reasonable choices are between 0.3 and 1.2)
        convergence_tolerance: Cutoff for the volatility iteration
        rating_period_duration: Length of one rating period
    """
    start_rating: Rating = Rating(DEFAULT_START_RATING, DEFAULT_START_DEVIATION, DEFAULT_START_VOLATILITY)
    volatility_change: float = DEFAULT_VOLATILITY_CHANGE
    convergence_tolerance: float = DEFAULT_CONVERGENCE_TOLERANCE
    rating_period_duration: timedelta = DEFAULT_RATING_PERIOD_DURATION

    def __post_init__(self):
        if not isinstance(self.start_rating, Rating):
            raise InvalidSettingsError(f"start_rating must be a Rating: {self.start_rating!r}")
        if not (self.volatility_change > 0 and math.isfinite(self.volatility_change)):
            raise InvalidSettingsError(f"volatility_change must be finite and > 0: {self.volatility_change}")
        if not (self.convergence_tolerance > 0 and math.isfinite(self.convergence_tolerance)):
            raise InvalidSettingsError(f"convergence_tolerance must be finite and > 0: {self.convergence_tolerance}")
        if not isinstance(self.rating_period_duration, timedelta):
            raise InvalidSettingsError(
                f"rating_period_duration must be a timedelta: {self.rating_period_duration!r}"
            )
        if self.rating_period_duration <= timedelta(0):
            raise InvalidSettingsError(f"rating_period_duration <= 0: {self.rating_period_duration}")

    @classmethod
    def default(cls) -> "Settings":
        return cls()

    def with_start_rating(self, start_rating: Rating) -> "Settings":
        return replace(self, start_rating=start_rating)

    def with_volatility_change(self, volatility_change: float) -> "Settings":
        return replace(self, volatility_change=volatility_change)

    def with_convergence_tolerance(self, convergence_tolerance: float) -> "Settings":
        return replace(self, convergence_tolerance=convergence_tolerance)

    def with_rating_period_duration(self, rating_period_duration: timedelta) -> "Settings":
        return replace(self, rating_period_duration=rating_period_duration)

    def start_scaled_rating(self) -> ScaledRating:
        """The start rating on the internal scale."""
        return to_internal(self.start_rating, self)


# =============================================================================
# Scale conversion (Steps 2 and 8)
# =============================================================================

def to_internal(rating: Rating, settings: Settings) -> ScaledRating:
    """
    Convert a public rating to the internal Glicko-2 scale.

    μ = (rating - start_rating) / 173.7178
    φ = RD / 173.7178
    """
    return ScaledRating(
        rating=(rating.rating - settings.start_rating.rating) / RATING_SCALING_RATIO,
        deviation=rating.deviation / RATING_SCALING_RATIO,
        volatility=rating.volatility,
    )


def to_public(scaled: ScaledRating, settings: Settings) -> Rating:
    """Convert an internal rating back to the public Glicko scale."""
    return Rating(
        rating=scaled.rating * RATING_SCALING_RATIO + settings.start_rating.rating,
        deviation=scaled.deviation * RATING_SCALING_RATIO,
        volatility=scaled.volatility,
    )
