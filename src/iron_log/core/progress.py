"""
Set-to-set progress indicator.

A current set is compared with the set at the same position in the most
recent prior occurrence of the exercise:

    up    ⇔ w > w_prev, or w == w_prev and r > r_prev
    down  ⇔ w < w_prev, or w == w_prev and r < r_prev
    none  ⇔ equal, or any operand missing

Weights compare exactly; values entered to one decimal compare fine.
"""

from .models import ExerciseSet, ProgressIndicator, WorkoutExercise


def compare_progress(
    current: ExerciseSet,
    previous: ExerciseSet | None,
) -> ProgressIndicator:
    """
    Compare a set against its counterpart from the previous workout.

    Args:
        current: Set being performed now
        previous: Matching set from the previous occurrence, if any

    Returns:
        "up", "down" or "none"
    """
    if previous is None:
        return "none"
    if (
        current.weight is None
        or current.reps is None
        or previous.weight is None
        or previous.reps is None
    ):
        return "none"

    if current.weight > previous.weight:
        return "up"
    if current.weight < previous.weight:
        return "down"
    if current.reps > previous.reps:
        return "up"
    if current.reps < previous.reps:
        return "down"
    return "none"


def previous_set_for(
    current: ExerciseSet,
    previous_exercise: WorkoutExercise | None,
) -> ExerciseSet | None:
    """
    Pair a set with the previous occurrence's completed set at the same position.

    Matching is by 1-based position among completed sets ordered by set
    number, not by set identity.
    """
    if previous_exercise is None:
        return None
    previous_sets = previous_exercise.completed_sets
    if 1 <= current.set_number <= len(previous_sets):
        return previous_sets[current.set_number - 1]
    return None
