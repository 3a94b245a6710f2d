"""
Glicko-2 rating calculation with fractional rating periods.

Based on Professor Mark Glickman's paper:
"Example of the Glicko-2 system" (2013)
http://www.glicko.net/glicko/glicko2.pdf

The classic algorithm closes a rating period and lets the deviation grow by
one period's worth of volatility (Step 6). Here the number of elapsed periods
is a parameter, so a rating can be computed at any instant inside a period:

    φ* = √(φ² + t·σ'²)

with t the elapsed fraction of the rating period. With t = 1 this is exactly
the algorithm from the paper.

All functions in this module are pure and can be called concurrently.
"""

import logging
import math
from typing import List, Sequence, Tuple, Union

from .constants import MAX_ITERATIONS
from .decay import TimedGame, TimedRating, decayed_deviation, elapsed_periods
from .errors import ConvergenceError, TemporalInversionError
from .game import Game, ScaledGame
from .model import Rating, ScaledRating, Settings

logger = logging.getLogger(__name__)


def g(phi: float) -> float:
    """
    The g function from Glicko-2.
    Reduces the impact of an opponent's rating based on their uncertainty.

    g(φ) = 1 / √(1 + 3φ²/π²)
    """
    return 1.0 / math.sqrt(1.0 + 3.0 * phi * phi / (math.pi * math.pi))


def expected_score(g_phi: float, mu: float, mu_j: float) -> float:
    """
    Expected score against an opponent.

    E(μ, μⱼ, φⱼ) = 1 / (1 + exp(-g(φⱼ)(μ - μⱼ)))

    Computed so that exp never overflows, E saturates at 0.0 or 1.0.
    """
    x = g_phi * (mu - mu_j)
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def _game_terms(rating: ScaledRating, games: Sequence[ScaledGame]) -> List[Tuple[float, float, float]]:
    """(g, E, score) for every game."""
    terms = []
    for game in games:
        g_phi = g(game.opponent.deviation)
        e = expected_score(g_phi, rating.rating, game.opponent.rating)
        terms.append((g_phi, e, game.score))
    return terms


def estimated_variance(rating: ScaledRating, games: Sequence[ScaledGame]) -> float:
    """
    Compute the estimated variance v (Step 3).

    v = [Σ g(φⱼ)² × E × (1 - E)]⁻¹

    Only defined for at least one game. Infinite if every expected score
    is exactly 0 or 1.
    """
    variance_sum = 0.0
    for g_phi, e, _ in _game_terms(rating, games):
        variance_sum += g_phi * g_phi * e * (1.0 - e)

    if variance_sum == 0:
        return float('inf')
    return 1.0 / variance_sum


def _score_sum(rating: ScaledRating, games: Sequence[ScaledGame]) -> float:
    """Σ g(φⱼ) × (sⱼ - E), shared by Steps 4 and 7."""
    total = 0.0
    for g_phi, e, score in _game_terms(rating, games):
        total += g_phi * (score - e)
    return total


def estimated_improvement(variance: float, rating: ScaledRating, games: Sequence[ScaledGame]) -> float:
    """
    Compute the estimated improvement Δ (Step 4).

    Δ = v × Σ g(φⱼ) × (sⱼ - E)
    """
    return variance * _score_sum(rating, games)


def new_volatility(
    improvement: float,
    variance: float,
    rating: ScaledRating,
    settings: Settings,
) -> float:
    """
    Compute the new volatility σ' with the Illinois algorithm (Step 5).

    Finds the root of

        f(x) = eˣ(Δ² - φ² - v - eˣ) / (2(φ² + v + eˣ)²) - (x - a) / τ²

    with a = ln(σ²), then σ' = exp(A / 2).

    Raises:
        ConvergenceError: If the bracket search and the iteration together
            take more than `MAX_ITERATIONS` steps.
    """
    phi_sq = rating.deviation * rating.deviation
    delta_sq = improvement * improvement
    tau = settings.volatility_change
    tau_sq = tau * tau
    tolerance = settings.convergence_tolerance

    # 1.
    a = math.log(rating.volatility * rating.volatility)

    def f(x: float) -> float:
        ex = math.exp(x)
        num = ex * (delta_sq - phi_sq - variance - ex)
        denom = 2.0 * (phi_sq + variance + ex) ** 2
        return num / denom - (x - a) / tau_sq

    iterations = 0

    # 2. Initial bounds
    A = a
    if delta_sq > phi_sq + variance:
        B = math.log(delta_sq - phi_sq - variance)
    else:
        k = 1
        while f(a - k * tau) < 0:
            iterations += 1
            if iterations >= MAX_ITERATIONS:
                raise ConvergenceError(MAX_ITERATIONS, tolerance)
            k += 1
        B = a - k * tau

    # 3.
    f_A = f(A)
    f_B = f(B)

    # 4. Illinois iteration
    while abs(B - A) > tolerance:
        if iterations >= MAX_ITERATIONS:
            raise ConvergenceError(MAX_ITERATIONS, tolerance)

        C = A + (A - B) * f_A / (f_B - f_A)
        f_C = f(C)

        if f_C * f_B <= 0:
            A = B
            f_A = f_B
        else:
            f_A = f_A / 2.0

        B = C
        f_B = f_C
        iterations += 1

    logger.debug("Volatility converged after %d iterations", iterations)

    # 5.
    return math.exp(A / 2.0)


def pre_rating_period_value(volatility: float, rating: ScaledRating, elapsed: float) -> float:
    """
    Deviation grown over the elapsed rating periods (Step 6).

    φ* = √(φ² + t·σ'²)

    Same as Lichess: the new volatility is used for the growth.
    """
    return decayed_deviation(rating.deviation, volatility, elapsed)


def new_deviation(pre_period_value: float, variance: float) -> float:
    """
    New rating deviation (Step 7).

    φ' = 1 / √(1/φ*² + 1/v)
    """
    return 1.0 / math.sqrt(1.0 / (pre_period_value * pre_period_value) + 1.0 / variance)


def new_rating(deviation: float, rating: ScaledRating, games: Sequence[ScaledGame]) -> float:
    """
    New rating (Step 7).

    μ' = μ + φ'² × Σ g(φⱼ) × (sⱼ - E)
    """
    return rating.rating + deviation * deviation * _score_sum(rating, games)


def _decayed(rating: ScaledRating, elapsed: float) -> ScaledRating:
    deviation = decayed_deviation(rating.deviation, rating.volatility, elapsed)
    return ScaledRating(rating.rating, deviation, rating.volatility)


def rate_games(
    rating: ScaledRating,
    games: Sequence[ScaledGame],
    elapsed: float,
    settings: Settings,
) -> ScaledRating:
    """
    Apply Glicko-2 for a (possibly partial) rating period.

    Args:
        rating: The player's rating at the start of the rating period
        games: All games of the player in the rating period so far
        elapsed: Elapsed rating periods while the games were collected,
            usually between 0 and 1
        settings: Settings with τ and the convergence tolerance

    Returns:
        The new rating. If `games` is empty, or the rating gap to every
        opponent is too large for the expected score to differ from 0 or 1,
        only the deviation changes.

    Raises:
        TemporalInversionError: If `elapsed` is negative or not finite.
        ConvergenceError: If the convergence tolerance is unreasonably low.
    """
    if not (elapsed >= 0 and math.isfinite(elapsed)):
        raise TemporalInversionError(f"elapsed rating periods must be finite and >= 0: {elapsed}")

    if not games:
        # No games played - only Step 6 applies
        return _decayed(rating, elapsed)

    # Step 3
    variance = estimated_variance(rating, games)

    # Step 4
    improvement = estimated_improvement(variance, rating, games)

    if math.isinf(variance) or math.isinf(improvement * improvement):
        # Expected scores rounded to 0 or 1, the games carry no information
        logger.debug("Rating gap too large to rate %d game(s), only decaying", len(games))
        return _decayed(rating, elapsed)

    # Step 5
    volatility = new_volatility(improvement, variance, rating, settings)

    # Step 6
    pre_period_value = pre_rating_period_value(volatility, rating, elapsed)

    # Step 7
    deviation = new_deviation(pre_period_value, variance)
    mu = new_rating(deviation, rating, games)

    return ScaledRating(mu, deviation, volatility)


def rate_player(
    rating: Rating,
    games: Sequence[Game],
    elapsed: float,
    settings: Settings,
) -> Rating:
    """
    `rate_games` for ratings on the public scale.

    Converts to the internal scale (Step 2) and back (Step 8).
    """
    scaled = rate_games(
        rating.to_internal(settings),
        [game.to_internal(settings) for game in games],
        elapsed,
        settings,
    )
    return scaled.to_public(settings)


def close_rating_period(
    rating: Union[Rating, ScaledRating],
    games: Union[Sequence[Game], Sequence[ScaledGame]],
    settings: Settings,
) -> Union[Rating, ScaledRating]:
    """
    Finalise a full rating period (exactly the algorithm from the paper).

    Works on either scale and returns a rating on the scale it was given.
    """
    if isinstance(rating, Rating):
        return rate_player(rating, games, 1.0, settings)
    return rate_games(rating, games, 1.0, settings)


def rate_game(player: TimedRating, game: TimedGame, settings: Settings) -> TimedRating:
    """
    Rate a single game the instant it was played.

    The opponent's rating is projected to the time of the game, the player's
    rating is updated with the elapsed fraction of a rating period since it
    was last updated. The result is valid from the time of the game.

    Raises:
        TemporalInversionError: If the game was played before the player's
            rating was last updated.
    """
    duration = settings.rating_period_duration
    elapsed = elapsed_periods(player.last_updated, game.time, duration)
    rating = rate_games(player.rating, [game.to_scaled_game(duration)], elapsed, settings)
    return TimedRating(game.time, rating)
