"""
Rating engine: manages players and rating periods.

The engine abstracts the rating period away from the caller. Results can be
registered at any time and ratings update instantly: when a rating is
inspected, all whole rating periods that elapsed are closed and the results
of the current, unfinished period are rated with the elapsed fraction of the
period.

Example:
    settings = Settings.default()
    engine = RatingEngine.start_new(settings)

    alice, _ = engine.register_player(Rating(1700.0, 300.0, 0.06))
    bob, _ = engine.register_player(settings.start_rating)

    engine.register_result(alice, bob, MatchResult.LOSS)

    alice_rating, _ = engine.player_rating(alice)

The engine is not synchronized. Use one engine per independent rating pool
and guard it with a lock (or keep it in a single task) when sharing it.
Reading a rating can close rating periods, so it is a write operation too.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Optional, Tuple, Union

import pandas as pd

from .algorithm import rate_games
from .decay import elapsed_periods
from .errors import InvalidMatchError
from .game import Score, ScaledGame, validate_score
from .model import Rating, ScaledRating, Settings
from .storage import AppendOnlyStore, PlayerHandle

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class EnginePlayer:
    """
    A player as managed by `RatingEngine`.

    Attributes:
        rating: Internal rating at the start of the current rating period
        current_rating_period_results: Games of the current rating period
    """
    rating: ScaledRating
    current_rating_period_results: List[ScaledGame] = field(default_factory=list)


class RatingEngine:
    """
    Manages player ratings and calculates them from match results.

    Uses the Glicko-2 algorithm with the given settings. Every method that
    takes an `at` time uses the engine's clock when it is omitted. Times must
    not be earlier than the start of the current rating period.
    """

    def __init__(
        self,
        start_time: datetime,
        settings: Settings,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._last_rating_period_start = start_time
        self._settings = settings
        self._clock = clock or _utc_now
        # Handles are indices, so players are never removed
        self._players: AppendOnlyStore[EnginePlayer] = AppendOnlyStore()

    @classmethod
    def start_new(
        cls,
        settings: Settings,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "RatingEngine":
        """Create an engine whose first rating period starts now."""
        clock = clock or _utc_now
        return cls(clock(), settings, clock)

    @classmethod
    def start_new_at(
        cls,
        start_time: datetime,
        settings: Settings,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "RatingEngine":
        """
        Create an engine whose first rating period starts at `start_time`.

        This is the only way to back-date an engine, e.g. to replay
        historical results reproducibly.
        """
        return cls(start_time, settings, clock)

    @classmethod
    def from_players(
        cls,
        start_time: datetime,
        settings: Settings,
        players: List[EnginePlayer],
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "RatingEngine":
        """Rebuild an engine from stored players, handles follow list order."""
        engine = cls(start_time, settings, clock)
        for player in players:
            engine._players.append(
                EnginePlayer(player.rating, list(player.current_rating_period_results))
            )
        return engine

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def last_rating_period_start(self) -> datetime:
        """The start of the current (last opened) rating period."""
        return self._last_rating_period_start

    def __len__(self) -> int:
        return len(self._players)

    def player_handles(self) -> Iterator[PlayerHandle]:
        """Handles of all registered players, in registration order."""
        return self._players.handles()

    def player_handle(self, index: int) -> PlayerHandle:
        """The handle of the `index`-th registered player."""
        return self._players.handle_at(index)

    def players(self) -> Iterator[EnginePlayer]:
        """All managed players, in registration order."""
        return iter(self._players)

    def last_rating_period_rating(self, player: PlayerHandle) -> Rating:
        """The public rating of a player at the start of the current rating period."""
        return self._players.get(player).rating.to_public(self._settings)

    def pending_results(self, player: PlayerHandle) -> List[ScaledGame]:
        """The games a player has in the current rating period."""
        return list(self._players.get(player).current_rating_period_results)

    def elapsed_periods(self, at: Optional[datetime] = None) -> float:
        """Rating periods elapsed since the start of the current one, as a fraction."""
        at = self._now(at)
        return elapsed_periods(self._last_rating_period_start, at, self._settings.rating_period_duration)

    # =========================================================================
    # Registration
    # =========================================================================

    def register_player(
        self,
        rating: Union[Rating, ScaledRating],
        at: Optional[datetime] = None,
    ) -> Tuple[PlayerHandle, int]:
        """
        Register a new player at the start of the rating period current at `at`.

        Can close elapsed rating periods first.

        Returns:
            Tuple of (handle, number of rating periods closed)
        """
        _, closed_periods = self.maybe_close_rating_periods(at)

        if isinstance(rating, Rating):
            rating = rating.to_internal(self._settings)

        handle = self._players.append(EnginePlayer(rating))
        logger.debug("Registered %r at %s", handle, rating)

        return handle, closed_periods

    def register_result(
        self,
        player_1: PlayerHandle,
        player_2: PlayerHandle,
        score: Score,
        at: Optional[datetime] = None,
    ) -> int:
        """
        Register the result of a match in the rating period current at `at`.

        Rating calculations happen only when a rating is inspected. Each
        player's game records the opponent's rating at the start of the
        current rating period (after closing elapsed periods).

        Args:
            player_1: First player
            player_2: Second player
            score: Score from `player_1`'s point of view

        Returns:
            The number of rating periods that were closed.
        """
        if player_1 == player_2:
            raise InvalidMatchError(f"{player_1!r} cannot play against themselves")

        first = self._players.get(player_1)
        second = self._players.get(player_2)
        player_score = validate_score(score.player_score())
        opponent_score = validate_score(score.opponent_score())

        # Close first so the result lands in the right rating period
        _, closed_periods = self.maybe_close_rating_periods(at)

        first_rating = first.rating
        second_rating = second.rating

        first.current_rating_period_results.append(ScaledGame(second_rating, player_score))
        second.current_rating_period_results.append(ScaledGame(first_rating, opponent_score))

        return closed_periods

    # =========================================================================
    # Ratings
    # =========================================================================

    def player_scaled_rating(
        self,
        player: PlayerHandle,
        at: Optional[datetime] = None,
    ) -> Tuple[ScaledRating, int]:
        """
        A player's internal rating at `at`.

        Closes elapsed rating periods, then rates the current period's games
        with the elapsed fraction of the period. Stored ratings are only
        changed by the closed periods.

        Returns:
            Tuple of (rating, number of rating periods closed)
        """
        entry = self._players.get(player)
        fraction, closed_periods = self.maybe_close_rating_periods(at)

        rating = rate_games(entry.rating, entry.current_rating_period_results, fraction, self._settings)
        return rating, closed_periods

    def player_rating(
        self,
        player: PlayerHandle,
        at: Optional[datetime] = None,
    ) -> Tuple[Rating, int]:
        """A player's public rating at `at`. See `player_scaled_rating`."""
        rating, closed_periods = self.player_scaled_rating(player, at)
        return rating.to_public(self._settings), closed_periods

    def ratings_frame(self, at: Optional[datetime] = None) -> pd.DataFrame:
        """
        Public ratings of all players at `at` as a DataFrame.

        Columns: player, rating, deviation, volatility, pending_games
        """
        fraction, _ = self.maybe_close_rating_periods(at)

        records = []
        for handle, entry in zip(self._players.handles(), self._players):
            rating = rate_games(
                entry.rating, entry.current_rating_period_results, fraction, self._settings
            ).to_public(self._settings)
            records.append({
                'player': handle.index,
                'rating': rating.rating,
                'deviation': rating.deviation,
                'volatility': rating.volatility,
                'pending_games': len(entry.current_rating_period_results),
            })

        return pd.DataFrame(
            records, columns=['player', 'rating', 'deviation', 'volatility', 'pending_games']
        )

    # =========================================================================
    # Rating periods
    # =========================================================================

    def maybe_close_rating_periods(self, at: Optional[datetime] = None) -> Tuple[float, int]:
        """
        Close all rating periods that have elapsed by `at`.

        Closing a period folds every player's results into their rating,
        clears the results and starts the next period. Periods are closed
        one at a time, in order. Doesn't need to be called manually.

        Returns:
            Tuple of (elapsed fraction of the now current rating period,
            number of rating periods closed). The fraction is always < 1.

        Raises:
            TemporalInversionError: If `at` is earlier than the start of the
                current rating period.
            ConvergenceError: If a player's rating cannot be computed. No player
                and no rating period is changed then.
        """
        at = self._now(at)
        duration = self._settings.rating_period_duration

        # Raises on time going backwards
        elapsed_periods(self._last_rating_period_start, at, duration)

        since_start = at - self._last_rating_period_start
        periods_to_close = since_start // duration

        if periods_to_close:
            # Nothing changes unless every player could be rated
            new_ratings = [
                self._close_periods(player, periods_to_close) for player in self._players
            ]
            for player, rating in zip(self._players, new_ratings):
                player.rating = rating
                player.current_rating_period_results.clear()

            self._last_rating_period_start += periods_to_close * duration
            logger.debug(
                "Closed %d rating period(s), current period starts %s",
                periods_to_close, self._last_rating_period_start.isoformat(),
            )

        fraction = (since_start % duration) / duration
        return fraction, periods_to_close

    def _close_periods(self, player: EnginePlayer, periods: int) -> ScaledRating:
        """A player's rating after closing `periods` rating periods."""
        # All results belong to the first period that gets closed, because
        # closing runs before every registration.
        rating = rate_games(player.rating, player.current_rating_period_results, 1.0, self._settings)
        for _ in range(periods - 1):
            rating = rate_games(rating, [], 1.0, self._settings)
        return rating

    def _now(self, at: Optional[datetime]) -> datetime:
        return self._clock() if at is None else at

    def __repr__(self) -> str:
        return (
            f"RatingEngine(players={len(self._players)}, "
            f"last_rating_period_start={self._last_rating_period_start.isoformat()})"
        )
