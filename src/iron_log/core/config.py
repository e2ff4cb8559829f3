"""
Configuration constants for the workout domain logic.

All adjustable parameters are centralized here.  Most of them can be
overridden at runtime through ``defaults.yaml`` (bundled) or
``~/.iron-log/config.yaml`` (user); see core/engine/config_loader.py.
"""

from typing import Final

# =============================================================================
# PLATE CALCULATOR
# =============================================================================

BAR_WEIGHT: Final[float] = 45.0  # Standard Olympic barbell (lbs)
AVAILABLE_PLATES: Final[tuple[float, ...]] = (45.0, 35.0, 25.0, 10.0, 5.0, 2.5)  # Descending
PLATE_TOLERANCE: Final[float] = 0.1  # Leftover per side treated as exact
WEIGHT_UNIT: Final[str] = "lbs"

# =============================================================================
# ONE-REP MAX (Brzycki)
# =============================================================================

BRZYCKI_NUMERATOR: Final[float] = 36.0
BRZYCKI_REP_LIMIT: Final[int] = 37  # 1RM = w × 36 / (37 − r); undefined at r ≥ 37

# =============================================================================
# REST TIMER
# =============================================================================

REST_SECONDS_BY_SET_TYPE: Final[dict[str, int]] = {
    "warmup": 60,
    "working": 120,
    "drop_set": 60,
    "to_failure": 90,
}
DEFAULT_REST_SECONDS: Final[int] = 90  # Used when no set-type context exists
TICK_SECONDS: Final[int] = 1

# =============================================================================
# WORKOUT LIMITS
# =============================================================================

MAX_SETS_PER_EXERCISE: Final[int] = 20
DEFAULT_TEMPLATE_SETS: Final[int] = 3
RECENT_EXERCISES_LIMIT: Final[int] = 10

# =============================================================================
# ANALYTICS
# =============================================================================

MOST_REPS_MIN_WEIGHT_FRACTION: Final[float] = 0.5  # "Most reps" ignores light sets
RPE_MIN: Final[int] = 1
RPE_MAX: Final[int] = 10
