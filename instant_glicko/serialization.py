"""
Conversion of ratings, settings and engines to plain dicts and JSON.

Nothing in the rating code depends on this module. Values are rebuilt
through their constructors, so a malformed payload fails with the same
errors as invalid input (`InvalidRatingError`, `InvalidSettingsError`,
`InvalidScoreError`) or a `KeyError` for missing fields.
"""

import json
from dataclasses import asdict
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from .engine import EnginePlayer, RatingEngine
from .errors import InvalidSettingsError
from .game import Game, ScaledGame
from .model import Rating, ScaledRating, Settings

FORMAT_VERSION = 1


def rating_to_dict(rating: Rating) -> Dict[str, float]:
    return asdict(rating)


def rating_from_dict(data: Dict[str, Any]) -> Rating:
    return Rating(
        rating=float(data['rating']),
        deviation=float(data['deviation']),
        volatility=float(data['volatility']),
    )


def scaled_rating_to_dict(rating: ScaledRating) -> Dict[str, float]:
    return asdict(rating)


def scaled_rating_from_dict(data: Dict[str, Any]) -> ScaledRating:
    return ScaledRating(
        rating=float(data['rating']),
        deviation=float(data['deviation']),
        volatility=float(data['volatility']),
    )


def game_to_dict(game: Game) -> Dict[str, Any]:
    return {'opponent': rating_to_dict(game.opponent), 'score': game.score}


def game_from_dict(data: Dict[str, Any]) -> Game:
    return Game(rating_from_dict(data['opponent']), data['score'])


def scaled_game_to_dict(game: ScaledGame) -> Dict[str, Any]:
    return {'opponent': scaled_rating_to_dict(game.opponent), 'score': game.score}


def scaled_game_from_dict(data: Dict[str, Any]) -> ScaledGame:
    return ScaledGame(scaled_rating_from_dict(data['opponent']), data['score'])


def settings_to_dict(settings: Settings) -> Dict[str, Any]:
    """Settings as a dict, the rating period duration in seconds."""
    return {
        'start_rating': rating_to_dict(settings.start_rating),
        'volatility_change': settings.volatility_change,
        'convergence_tolerance': settings.convergence_tolerance,
        'rating_period_seconds': settings.rating_period_duration.total_seconds(),
    }


def settings_from_dict(data: Dict[str, Any], defaults: Optional[Settings] = None) -> Settings:
    """
    Build settings from a dict.

    Missing keys fall back to `defaults` (or `Settings.default()`).
    """
    defaults = defaults or Settings.default()
    try:
        start_rating = defaults.start_rating
        if 'start_rating' in data:
            start_rating = rating_from_dict({**asdict(start_rating), **data['start_rating']})

        rating_period_duration = defaults.rating_period_duration
        if 'rating_period_seconds' in data:
            rating_period_duration = timedelta(seconds=float(data['rating_period_seconds']))

        return Settings(
            start_rating=start_rating,
            volatility_change=float(data.get('volatility_change', defaults.volatility_change)),
            convergence_tolerance=float(data.get('convergence_tolerance', defaults.convergence_tolerance)),
            rating_period_duration=rating_period_duration,
        )
    except (TypeError, ValueError, OverflowError) as e:
        if isinstance(e, InvalidSettingsError):
            raise
        raise InvalidSettingsError(f"Invalid settings: {e}") from e


def engine_to_dict(engine: RatingEngine) -> Dict[str, Any]:
    """
    The full state of an engine.

    Players are stored in registration order, so `RatingEngine.player_handle`
    returns matching handles on the restored engine.
    """
    return {
        'version': FORMAT_VERSION,
        'last_rating_period_start': engine.last_rating_period_start.isoformat(),
        'settings': settings_to_dict(engine.settings),
        'players': [
            {
                'rating': scaled_rating_to_dict(player.rating),
                'current_rating_period_results': [
                    scaled_game_to_dict(game) for game in player.current_rating_period_results
                ],
            }
            for player in engine.players()
        ],
    }


def engine_from_dict(
    data: Dict[str, Any],
    clock: Optional[Callable[[], datetime]] = None,
) -> RatingEngine:
    """Rebuild an engine stored with `engine_to_dict`."""
    version = data.get('version', FORMAT_VERSION)
    if version != FORMAT_VERSION:
        raise ValueError(f"Unknown engine format version: {version}")

    players = [
        EnginePlayer(
            rating=scaled_rating_from_dict(player['rating']),
            current_rating_period_results=[
                scaled_game_from_dict(game) for game in player['current_rating_period_results']
            ],
        )
        for player in data['players']
    ]

    return RatingEngine.from_players(
        start_time=datetime.fromisoformat(data['last_rating_period_start']),
        settings=settings_from_dict(data['settings']),
        players=players,
        clock=clock,
    )


def dumps_engine(engine: RatingEngine, indent: Optional[int] = None) -> str:
    return json.dumps(engine_to_dict(engine), indent=indent)


def loads_engine(text: str, clock: Optional[Callable[[], datetime]] = None) -> RatingEngine:
    return engine_from_dict(json.loads(text), clock=clock)
