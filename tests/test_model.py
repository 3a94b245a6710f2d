"""
Tests for rating values, settings and scale conversion.

Run with: pytest tests/test_model.py -v
"""

import math
from datetime import timedelta

import pytest

from instant_glicko import (
    InvalidRatingError,
    InvalidSettingsError,
    RATING_SCALING_RATIO,
    Rating,
    ScaledRating,
    Settings,
    to_internal,
    to_public,
)


# =============================================================================
# Tests for Rating / ScaledRating
# =============================================================================

class TestRatingValidation:
    """Deviation and volatility must be positive."""

    @pytest.mark.parametrize("cls", [Rating, ScaledRating])
    def test_valid_rating(self, cls):
        rating = cls(1500.0, 200.0, 0.06)
        assert rating.rating == 1500.0
        assert rating.deviation == 200.0
        assert rating.volatility == 0.06

    @pytest.mark.parametrize("cls", [Rating, ScaledRating])
    @pytest.mark.parametrize("deviation", [0.0, -1.0, math.nan, math.inf])
    def test_invalid_deviation(self, cls, deviation):
        with pytest.raises(InvalidRatingError):
            cls(1500.0, deviation, 0.06)

    @pytest.mark.parametrize("cls", [Rating, ScaledRating])
    @pytest.mark.parametrize("volatility", [0.0, -0.06, math.nan])
    def test_invalid_volatility(self, cls, volatility):
        with pytest.raises(InvalidRatingError):
            cls(1500.0, 200.0, volatility)

    @pytest.mark.parametrize("deviation, volatility, message", [
        (math.inf, 0.06, "deviation must be finite and > 0: inf"),
        (200.0, math.nan, "volatility must be finite and > 0: nan"),
        (-1.0, 0.06, "deviation must be finite and > 0: -1.0"),
    ])
    def test_error_message_names_the_value(self, deviation, volatility, message):
        with pytest.raises(InvalidRatingError) as exc_info:
            Rating(1500.0, deviation, volatility)
        assert str(exc_info.value) == message

    def test_negative_rating_is_fine(self):
        """Only deviation and volatility are constrained."""
        assert ScaledRating(-3.0, 1.0, 0.06).rating == -3.0

    def test_invalid_rating_is_value_error(self):
        with pytest.raises(ValueError):
            Rating(1500.0, 0.0, 0.06)

    def test_ratings_are_immutable(self):
        rating = Rating(1500.0, 200.0, 0.06)
        with pytest.raises(AttributeError):
            rating.rating = 1600.0

    def test_confidence_interval(self):
        low, high = Rating(1500.0, 100.0, 0.06).confidence_interval()
        assert low == pytest.approx(1304.0)
        assert high == pytest.approx(1696.0)

    def test_str(self):
        assert "1500 ± 200" in str(Rating(1500.0, 200.0, 0.06))


# =============================================================================
# Tests for Settings
# =============================================================================

class TestSettings:
    """Settings validation and copy-on-write builders."""

    def test_defaults(self):
        settings = Settings.default()
        assert settings.start_rating == Rating(1500.0, 350.0, 0.06)
        assert settings.volatility_change == 0.75
        assert settings.convergence_tolerance == 0.000001
        assert settings.rating_period_duration == timedelta(days=1)

    def test_with_builders_return_copies(self):
        settings = Settings.default()
        changed = (
            settings
            .with_volatility_change(0.5)
            .with_convergence_tolerance(1e-8)
            .with_rating_period_duration(timedelta(hours=1))
            .with_start_rating(Rating(1200.0, 300.0, 0.05))
        )

        assert settings == Settings.default()
        assert changed.volatility_change == 0.5
        assert changed.convergence_tolerance == 1e-8
        assert changed.rating_period_duration == timedelta(hours=1)
        assert changed.start_rating == Rating(1200.0, 300.0, 0.05)

    @pytest.mark.parametrize("tolerance", [0.0, -1e-6])
    def test_invalid_convergence_tolerance(self, tolerance):
        with pytest.raises(InvalidSettingsError):
            Settings.default().with_convergence_tolerance(tolerance)

    @pytest.mark.parametrize("tau", [0.0, -0.5])
    def test_invalid_volatility_change(self, tau):
        with pytest.raises(InvalidSettingsError):
            Settings.default().with_volatility_change(tau)

    @pytest.mark.parametrize("duration", [timedelta(0), timedelta(seconds=-1)])
    def test_invalid_rating_period_duration(self, duration):
        with pytest.raises(InvalidSettingsError):
            Settings.default().with_rating_period_duration(duration)

    def test_rating_period_duration_must_be_timedelta(self):
        with pytest.raises(InvalidSettingsError):
            Settings(rating_period_duration=3600)


# =============================================================================
# Tests for scale conversion
# =============================================================================

class TestScaleConversion:
    """Steps 2 and 8 of the paper."""

    def test_start_rating_maps_to_zero(self):
        settings = Settings.default()
        scaled = to_internal(Rating(1500.0, 350.0, 0.06), settings)
        assert scaled.rating == 0.0
        assert scaled.deviation == pytest.approx(350.0 / RATING_SCALING_RATIO)
        assert scaled.volatility == 0.06

    def test_paper_values(self):
        """The paper's example opponents on the Glicko-2 scale."""
        settings = Settings.default()
        scaled = Rating(1400.0, 30.0, 0.06).to_internal(settings)
        assert scaled.rating == pytest.approx(-0.5756, abs=1e-4)
        assert scaled.deviation == pytest.approx(0.1727, abs=1e-4)

    def test_custom_start_rating_shifts_center(self):
        settings = Settings.default().with_start_rating(Rating(1200.0, 350.0, 0.06))
        assert Rating(1200.0, 100.0, 0.06).to_internal(settings).rating == 0.0

    @pytest.mark.parametrize("rating, deviation, volatility", [
        (1500.0, 350.0, 0.06),
        (1234.5678, 12.3, 0.01),
        (2850.0, 45.0, 0.2),
        (-200.0, 1000.0, 1.5),
    ])
    @pytest.mark.parametrize("start", [1500.0, 1000.0, 0.0])
    def test_round_trip(self, rating, deviation, volatility, start):
        settings = Settings.default().with_start_rating(Rating(start, 350.0, 0.06))
        original = Rating(rating, deviation, volatility)

        restored = to_public(to_internal(original, settings), settings)

        assert restored.rating == pytest.approx(original.rating, rel=1e-12, abs=1e-9)
        assert restored.deviation == pytest.approx(original.deviation, rel=1e-12)
        assert restored.volatility == original.volatility

    def test_method_and_function_agree(self):
        settings = Settings.default()
        rating = Rating(1650.0, 80.0, 0.06)
        assert rating.to_internal(settings) == to_internal(rating, settings)
        scaled = rating.to_internal(settings)
        assert scaled.to_public(settings) == to_public(scaled, settings)
