"""
Exceptions raised by instant_glicko.

Every error derives from `GlickoError` and from the builtin exception that
describes the same situation, so callers can catch either.
"""


class GlickoError(Exception):
    """Base class for all rating errors."""
    pass


class InvalidRatingError(GlickoError, ValueError):
    """A rating with deviation or volatility <= 0 (or a non-finite value)."""
    pass


class InvalidSettingsError(GlickoError, ValueError):
    """Settings that cannot be used for rating calculations."""
    pass


class InvalidScoreError(GlickoError, ValueError):
    """A score outside of [0, 1]."""
    pass


class InvalidMatchError(GlickoError, ValueError):
    """A match that cannot be recorded, e.g. a player against themselves."""
    pass


class TemporalInversionError(GlickoError, ValueError):
    """A time earlier than the timestamp it is compared against.

    Rating timelines only move forward, so this always points to a bug in
    the calling code and is never clamped to zero elapsed time.
    """
    pass


class ConvergenceError(GlickoError, RuntimeError):
    """The volatility iteration exceeded `MAX_ITERATIONS`.

    Retrying will fail again: the convergence tolerance is unreasonably
    small for the data.
    """

    def __init__(self, iterations: int, convergence_tolerance: float):
        self.iterations = iterations
        self.convergence_tolerance = convergence_tolerance
        super().__init__(
            f"Maximum number of iterations ({iterations}) in converging loop algorithm exceeded. "
            f"Is the convergence tolerance ({convergence_tolerance}) unreasonably low?"
        )


class UnknownPlayerError(GlickoError, LookupError):
    """A player handle that was not issued by this engine."""
    pass
