"""
Pytest configuration for rating tests.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from instant_glicko import Rating, Settings


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (many players or rating periods)"
    )


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-slow", action="store_true", default=False, help="Run slow tests"
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is specified."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="Need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


# =============================================================================
# Shared fixtures
# =============================================================================

START_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def start_time():
    return START_TIME


@pytest.fixture
def paper_settings():
    """Settings of the worked example in Glickman's paper (τ = 0.5)."""
    return Settings.default().with_volatility_change(0.5)


@pytest.fixture
def paper_player():
    return Rating(1500.0, 200.0, 0.06)


@pytest.fixture
def paper_opponents():
    """Opponents and the player's scores from the paper.

    Volatility of the opponents is not given in the paper and doesn't matter.
    """
    return [
        (Rating(1400.0, 30.0, 0.06), 1.0),
        (Rating(1550.0, 100.0, 0.06), 0.0),
        (Rating(1700.0, 300.0, 0.06), 0.0),
    ]


GLICKO_ENV_VARS = [
    "GLICKO_START_RATING",
    "GLICKO_START_DEVIATION",
    "GLICKO_START_VOLATILITY",
    "GLICKO_VOLATILITY_CHANGE",
    "GLICKO_CONVERGENCE_TOLERANCE",
    "GLICKO_RATING_PERIOD_SECONDS",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Unset GLICKO_* variables, including any a .env file sets during the test."""
    for name in GLICKO_ENV_VARS:
        # setenv first so teardown removes whatever load_dotenv wrote
        monkeypatch.setenv(name, "0")
        monkeypatch.delenv(name)
    return monkeypatch
