"""
Estimated one-rep max (e1RM) via the Brzycki formula.

    e1RM = weight × 36 / (37 − reps)

The formula is only meaningful for 0 < reps < 37.  At reps == 37 the
denominator is zero and the result is infinite; above 37 it turns
negative.  estimate_one_rep_max() returns the raw value without guarding
so the boundary stays visible; callers that compare estimates use
in_brzycki_domain() / set_one_rep_max() to skip out-of-domain sets.
"""

import math

from .config import BRZYCKI_NUMERATOR, BRZYCKI_REP_LIMIT
from .models import ExerciseSet


def estimate_one_rep_max(weight: float, reps: int) -> float:
    """
    Estimate a one-rep max from a single weight/reps pair.

    Args:
        weight: Load lifted
        reps: Repetitions performed (callers filter reps <= 0)

    Returns:
        Brzycki estimate; ``inf`` at reps == 37, negative above it
    """
    denominator = BRZYCKI_REP_LIMIT - reps
    if denominator == 0:
        # IEEE semantics: x / 0 → ±inf (0 × inf → nan)
        return weight * math.inf
    return weight * (BRZYCKI_NUMERATOR / denominator)


def in_brzycki_domain(reps: int | None) -> bool:
    """Return True if reps is inside the range where Brzycki is monotonic."""
    return reps is not None and 0 < reps < BRZYCKI_REP_LIMIT


def set_one_rep_max(exercise_set: ExerciseSet) -> float | None:
    """
    Return the e1RM of a set, or None when weight is missing or reps are
    outside the formula's domain.
    """
    if exercise_set.weight is None or not in_brzycki_domain(exercise_set.reps):
        return None
    return estimate_one_rep_max(exercise_set.weight, exercise_set.reps)  # type: ignore[arg-type]
