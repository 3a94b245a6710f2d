"""
Game results and scores.

A game is a match result as it pertains to one player: the opponent's rating
(as it was when the game was recorded) and the player's score. The player's
own rating is stored elsewhere.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .errors import InvalidScoreError
from .model import Rating, ScaledRating, Settings


def validate_score(score: float) -> float:
    """Return `score` as float, raising `InvalidScoreError` outside of [0, 1]."""
    try:
        value = float(score)
    except (TypeError, ValueError):
        raise InvalidScoreError(f"score must be a number: {score!r}") from None
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise InvalidScoreError(f"score must be between 0 and 1: {score}")
    return value


class Score(Protocol):
    """
    The score of a match between a player and an opponent.

    Both values should be between 0.0 (loss) and 1.0 (win). For zero-sum
    games `opponent_score() == 1 - player_score()`, this is a convention and
    not enforced.
    """

    def player_score(self) -> float:
        ...

    def opponent_score(self) -> float:
        ...


class MatchResult(Enum):
    """A simple match result: 1.0 points for a win, 0.5 for a draw, 0.0 for a loss."""
    WIN = "win"
    DRAW = "draw"
    LOSS = "loss"

    def player_score(self) -> float:
        if self is MatchResult.WIN:
            return 1.0
        if self is MatchResult.DRAW:
            return 0.5
        return 0.0

    def opponent_score(self) -> float:
        return self.invert().player_score()

    def invert(self) -> "MatchResult":
        """The result from the opponent's point of view."""
        if self is MatchResult.WIN:
            return MatchResult.LOSS
        if self is MatchResult.LOSS:
            return MatchResult.WIN
        return MatchResult.DRAW


@dataclass(frozen=True)
class Points:
    """A score with explicit points for both sides."""
    player: float
    opponent: float

    def __post_init__(self):
        object.__setattr__(self, "player", validate_score(self.player))
        object.__setattr__(self, "opponent", validate_score(self.opponent))

    @classmethod
    def zero_sum(cls, score: float) -> "Points":
        """Points where the opponent gets `1 - score`."""
        score = validate_score(score)
        return cls(score, 1.0 - score)

    def player_score(self) -> float:
        return self.player

    def opponent_score(self) -> float:
        return self.opponent


@dataclass(frozen=True)
class Game:
    """A game on the public scale: opponent rating and the player's score."""
    opponent: Rating
    score: float

    def __post_init__(self):
        object.__setattr__(self, "score", validate_score(self.score))

    def to_internal(self, settings: Settings) -> "ScaledGame":
        return ScaledGame(self.opponent.to_internal(settings), self.score)


@dataclass(frozen=True)
class ScaledGame:
    """A game on the internal Glicko-2 scale."""
    opponent: ScaledRating
    score: float

    def __post_init__(self):
        object.__setattr__(self, "score", validate_score(self.score))

    def to_public(self, settings: Settings) -> Game:
        return Game(self.opponent.to_public(settings), self.score)
