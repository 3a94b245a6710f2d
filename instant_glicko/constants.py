"""
Constants defined or recommended in Glickman's paper:
"Example of the Glicko-2 system" (2013)
http://www.glicko.net/glicko/glicko2.pdf

Also the defaults used by `Settings.default()`.
"""

from datetime import timedelta


# Conversion factor between the Glicko and the internal Glicko-2 scale (Steps 2 and 8)
RATING_SCALING_RATIO = 173.7178

# Step 1: start values for unrated players
DEFAULT_START_RATING = 1500.0
DEFAULT_START_DEVIATION = 350.0
DEFAULT_START_VOLATILITY = 0.06

# System constant τ. Middle of the 0.3 to 1.2 range from Step 1,
# might need tuning for a given application.
DEFAULT_VOLATILITY_CHANGE = 0.75

# Cutoff for the Illinois iteration (Step 5.1)
DEFAULT_CONVERGENCE_TOLERANCE = 0.000001

DEFAULT_RATING_PERIOD_DURATION = timedelta(days=1)

# Fail-safe for Step 5. Shared by the bracket search and the Illinois loop.
MAX_ITERATIONS = 10_000
