"""
History analytics.

Pure functions over a list of workouts: per-exercise statistics, best
sets, progression series, history totals and the daily streak.

All functions are pure and typed for testability.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterator, Sequence

from .config import MOST_REPS_MIN_WEIGHT_FRACTION
from .models import ExerciseSet, Workout, WorkoutExercise
from .one_rep_max import estimate_one_rep_max, in_brzycki_domain


@dataclass(frozen=True)
class ExerciseStats:
    """Lifetime numbers for one exercise."""

    total_volume: float
    total_sets: int
    workout_count: int
    estimated_1rm: float  # 0 when no usable set


@dataclass(frozen=True)
class BestSet:
    """A standout set for one exercise."""

    kind: str  # "Heaviest Weight" | "Most Reps" | "Highest Volume"
    weight: float
    reps: int
    performed_on: datetime


@dataclass(frozen=True)
class HistorySummary:
    workouts: int
    total_volume: float
    personal_records: int


def _occurrences(
    workouts: Sequence[Workout], exercise_id: str
) -> Iterator[tuple[Workout, WorkoutExercise]]:
    for workout in workouts:
        for we in workout.exercises:
            if we.exercise_id == exercise_id:
                yield workout, we


def exercise_stats(workouts: Sequence[Workout], exercise_id: str) -> ExerciseStats:
    """
    Summarise an exercise across workouts.

    The estimated 1RM is Brzycki on the heaviest completed set (first one
    found wins ties), and 0 when that set's reps are outside 1..36.
    """
    total_volume = 0.0
    total_sets = 0
    workout_ids: set[str] = set()
    best: ExerciseSet | None = None

    for workout, we in _occurrences(workouts, exercise_id):
        workout_ids.add(workout.id)
        total_volume += we.total_volume
        completed = we.completed_sets
        total_sets += len(completed)
        for s in completed:
            if best is None or s.weight > best.weight:  # type: ignore[operator]
                best = s

    estimated = 0.0
    if best is not None and in_brzycki_domain(best.reps):
        estimated = estimate_one_rep_max(best.weight, best.reps)  # type: ignore[arg-type]

    return ExerciseStats(
        total_volume=total_volume,
        total_sets=total_sets,
        workout_count=len(workout_ids),
        estimated_1rm=estimated,
    )


def best_sets(workouts: Sequence[Workout], exercise_id: str) -> list[BestSet]:
    """
    Return the heaviest, most-reps and highest-volume sets for an exercise.

    "Most reps" only considers sets at ≥ 50% of the heaviest weight seen so
    far in the scan, so light warm-ups do not win it.
    """
    heaviest: BestSet | None = None
    most_reps: BestSet | None = None
    top_volume: BestSet | None = None
    top_volume_value = 0.0

    for workout, we in _occurrences(workouts, exercise_id):
        for s in we.completed_sets:
            weight, reps = s.weight, s.reps
            if weight is None or reps is None:
                continue

            if heaviest is None or weight > heaviest.weight:
                heaviest = BestSet("Heaviest Weight", weight, reps, workout.start_time)

            min_weight = heaviest.weight * MOST_REPS_MIN_WEIGHT_FRACTION
            if weight >= min_weight and (most_reps is None or reps > most_reps.reps):
                most_reps = BestSet("Most Reps", weight, reps, workout.start_time)

            volume = weight * reps
            if top_volume is None or volume > top_volume_value:
                top_volume = BestSet("Highest Volume", weight, reps, workout.start_time)
                top_volume_value = volume

    return [b for b in (heaviest, most_reps, top_volume) if b is not None]


def weight_progression(
    workouts: Sequence[Workout], exercise_id: str
) -> list[tuple[datetime, float]]:
    """(start time, heaviest completed weight) per occurrence, oldest first."""
    points: list[tuple[datetime, float]] = []
    for workout, we in sorted(_occurrences(workouts, exercise_id), key=lambda p: p[0].start_time):
        top = max((s.weight for s in we.completed_sets), default=0.0)
        if top and top > 0:
            points.append((workout.start_time, top))
    return points


def volume_progression(
    workouts: Sequence[Workout], exercise_id: str
) -> list[tuple[datetime, float]]:
    """(start time, completed volume) per occurrence, oldest first."""
    points: list[tuple[datetime, float]] = []
    for workout, we in sorted(_occurrences(workouts, exercise_id), key=lambda p: p[0].start_time):
        if we.total_volume > 0:
            points.append((workout.start_time, we.total_volume))
    return points


def history_summary(workouts: Sequence[Workout]) -> HistorySummary:
    return HistorySummary(
        workouts=len(workouts),
        total_volume=sum(w.total_volume for w in workouts),
        personal_records=sum(w.personal_records_count for w in workouts),
    )


def current_streak(workouts: Sequence[Workout], today: date | None = None) -> int:
    """
    Count consecutive training days ending today.

    The streak is 0 unless there is a workout today or yesterday.  When the
    last workout was yesterday the count still starts from today, so it is
    0 until today's workout is logged.
    """
    if not workouts:
        return 0
    today = today or date.today()
    days = {w.start_time.date() for w in workouts}
    if today not in days and (today - timedelta(days=1)) not in days:
        return 0

    streak = 0
    current = today
    while current in days:
        streak += 1
        current -= timedelta(days=1)
    return streak


def format_duration(seconds: float) -> str:
    """Format seconds as H:MM:SS, or M:SS under an hour."""
    total = int(seconds)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
