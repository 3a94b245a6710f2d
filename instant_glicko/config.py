"""
Loading settings from the environment and from JSON config files.

Environment variables (also read from a .env file):
    GLICKO_START_RATING           default 1500
    GLICKO_START_DEVIATION        default 350
    GLICKO_START_VOLATILITY       default 0.06
    GLICKO_VOLATILITY_CHANGE      τ, default 0.75
    GLICKO_CONVERGENCE_TOLERANCE  default 0.000001
    GLICKO_RATING_PERIOD_SECONDS  default 86400 (one day)
"""

import json
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from .errors import InvalidSettingsError
from .model import Rating, Settings
from .serialization import settings_from_dict, settings_to_dict


ENV_PREFIX = "GLICKO_"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise InvalidSettingsError(f"{ENV_PREFIX + name} is not a number: {raw!r}") from None


def settings_from_env(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """
    Build settings from environment variables.

    Args:
        env_file: .env file to load first (default: search for one from the
            current directory). Variables already set in the environment win.

    Returns:
        Settings, unset variables fall back to the defaults.
    """
    load_dotenv(env_file)

    defaults = Settings.default()
    start = defaults.start_rating

    try:
        start_rating = Rating(
            rating=_env_float("START_RATING", start.rating),
            deviation=_env_float("START_DEVIATION", start.deviation),
            volatility=_env_float("START_VOLATILITY", start.volatility),
        )
    except ValueError as e:
        if isinstance(e, InvalidSettingsError):
            raise
        raise InvalidSettingsError(f"Invalid start rating: {e}") from e

    period_seconds = _env_float(
        "RATING_PERIOD_SECONDS", defaults.rating_period_duration.total_seconds()
    )
    try:
        rating_period_duration = timedelta(seconds=period_seconds)
    except (ValueError, OverflowError):
        raise InvalidSettingsError(
            f"{ENV_PREFIX}RATING_PERIOD_SECONDS out of range: {period_seconds}"
        ) from None

    return Settings(
        start_rating=start_rating,
        volatility_change=_env_float("VOLATILITY_CHANGE", defaults.volatility_change),
        convergence_tolerance=_env_float("CONVERGENCE_TOLERANCE", defaults.convergence_tolerance),
        rating_period_duration=rating_period_duration,
    )


def load_settings(path: Path, defaults: Optional[Settings] = None) -> Settings:
    """
    Load settings from a JSON config file.

    Keys are the ones written by `save_settings`, missing keys default.
    """
    with open(path) as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise InvalidSettingsError(f"Config root must be an object: {path}")

    return settings_from_dict(data, defaults=defaults)


def save_settings(settings: Settings, path: Path):
    """Write settings to a JSON config file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(settings_to_dict(settings), f, indent=2)


def create_example_config(path: Path):
    """Create an example configuration file with the default settings."""
    config = {
        "description": "instant_glicko rating settings",
        "created": datetime.now().isoformat(),
        **settings_to_dict(Settings.default()),
    }

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(config, f, indent=2)
