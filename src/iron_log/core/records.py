"""
Personal record (PR) detection.

A just-completed set is a PR when its estimated 1RM strictly exceeds the
estimated 1RM of every completed set ever recorded for the same exercise
in *other* workouts.  Sets of the in-progress workout are excluded, so a
warm-up-to-working progression inside one session does not inflate PRs.

The decision is made once, at completion time, and frozen on the set.
The scan is O(historical sets of the exercise); a running best per
exercise would make it O(1) but is not needed for correctness.
"""

import logging
from typing import Callable, Iterable

from .models import ExerciseSet
from .one_rep_max import in_brzycki_domain, set_one_rep_max

logger = logging.getLogger(__name__)

# (exercise_id, exclude_workout_id) -> completed sets from other workouts
HistorySource = Callable[[str, str | None], list[ExerciseSet]]


def is_personal_record(candidate: ExerciseSet, history: Iterable[ExerciseSet]) -> bool:
    """
    Decide whether a set beats every historical set by estimated 1RM.

    Args:
        candidate: The set just completed
        history: Completed sets of the same exercise from other workouts

    Returns:
        True for the first-ever performance, or a strict e1RM improvement
    """
    if candidate.weight is None or candidate.reps is None or candidate.reps <= 0:
        return False

    history = list(history)
    if not history:
        return True

    if not in_brzycki_domain(candidate.reps):
        # e1RM is meaningless at r >= 37; nothing to compare against history
        return False

    current = set_one_rep_max(candidate)
    for previous in history:
        previous_1rm = set_one_rep_max(previous)
        if previous_1rm is None:
            continue
        if previous_1rm >= current:  # type: ignore[operator]
            return False
    return True


class PersonalRecordEvaluator:
    """Evaluates and freezes the PR flag of completed sets."""

    def __init__(self, history_source: HistorySource):
        """
        Args:
            history_source: Returns completed sets for an exercise, excluding
                the given workout id
        """
        self._history_source = history_source

    def evaluate(
        self,
        candidate: ExerciseSet,
        exercise_id: str,
        current_workout_id: str | None,
    ) -> bool:
        """
        Set and return ``candidate.is_personal_record``.

        A set that was already checked keeps its flag. The check only
        counts once both weight and reps are present.
        """
        if candidate.record_checked:
            return candidate.is_personal_record
        history = self._history_source(exercise_id, current_workout_id)
        candidate.is_personal_record = is_personal_record(candidate, history)
        candidate.record_checked = candidate.weight is not None and candidate.reps is not None
        logger.debug(
            "PR check for set %s of %s against %d historical sets: %s",
            candidate.set_number,
            exercise_id,
            len(history),
            candidate.is_personal_record,
        )
        return candidate.is_personal_record
