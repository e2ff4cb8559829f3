"""
Tests for personal record detection.

A set is a PR when its Brzycki e1RM strictly beats every completed set of
the same exercise in other workouts; the first-ever set always is one.
"""

from datetime import datetime

import pytest

from iron_log.core.models import ExerciseSet
from iron_log.core.records import PersonalRecordEvaluator, is_personal_record

DONE = datetime(2026, 1, 5, 18, 0)


def _done(weight: float | None, reps: int | None) -> ExerciseSet:
    return ExerciseSet(set_number=1, weight=weight, reps=reps, completed_at=DONE)


class TestIsPersonalRecord:

    def test_first_ever_set_is_pr(self):
        assert is_personal_record(_done(135, 5), [])

    def test_first_ever_set_with_out_of_domain_reps_is_pr(self):
        assert is_personal_record(_done(20, 40), [])

    @pytest.mark.parametrize("weight,reps", [(None, 5), (100, None), (100, 0)])
    def test_incomplete_candidate_is_never_pr(self, weight, reps):
        assert not is_personal_record(_done(weight, reps), [])

    def test_strict_improvement_required(self):
        history = [_done(185, 8)]
        assert not is_personal_record(_done(185, 8), history)  # tie
        assert not is_personal_record(_done(185, 7), history)
        assert is_personal_record(_done(185, 9), history)

    def test_lower_e1rm_with_more_reps_is_not_pr(self):
        # 225 × 36 / 32 = 253.1 vs 200 × 36 / 27 = 266.7
        assert not is_personal_record(_done(225, 5), [_done(200, 10)])

    def test_scans_full_history_not_just_last_session(self):
        older_peak = _done(225, 5)
        recent_dip = _done(185, 5)
        history = [older_peak, recent_dip]
        # Beats the recent session but not the older peak
        assert not is_personal_record(_done(205, 5), history)
        # Beats both
        assert is_personal_record(_done(230, 5), history)

    def test_out_of_domain_history_is_skipped(self):
        # 37 reps → infinite e1RM; must not block every future PR
        history = [_done(100, 37), _done(100, 50), _done(100, 5)]
        assert is_personal_record(_done(110, 5), history)

    def test_out_of_domain_candidate_against_history_is_not_pr(self):
        assert not is_personal_record(_done(100, 37), [_done(45, 5)])
        assert not is_personal_record(_done(100, 38), [_done(45, 5)])

    def test_history_with_only_unusable_sets_still_blocks_out_of_domain(self):
        assert not is_personal_record(_done(100, 40), [_done(100, 37)])


class TestPersonalRecordEvaluator:

    def test_sets_flag_and_excludes_current_workout(self):
        calls = []

        def history_source(exercise_id, exclude_workout_id):
            calls.append((exercise_id, exclude_workout_id))
            return [_done(200, 5)]

        evaluator = PersonalRecordEvaluator(history_source)
        candidate = _done(210, 5)
        assert evaluator.evaluate(candidate, "bench", "w-current") is True
        assert candidate.is_personal_record is True
        assert calls == [("bench", "w-current")]

    def test_does_not_touch_history(self):
        history = [_done(200, 5)]
        history[0].is_personal_record = True
        evaluator = PersonalRecordEvaluator(lambda _e, _w: history)
        evaluator.evaluate(_done(250, 5), "bench", None)
        assert history[0].is_personal_record is True

    def test_non_pr_clears_flag(self):
        evaluator = PersonalRecordEvaluator(lambda _e, _w: [_done(300, 5)])
        candidate = _done(200, 5)
        candidate.is_personal_record = True
        assert evaluator.evaluate(candidate, "bench", None) is False
        assert candidate.is_personal_record is False
