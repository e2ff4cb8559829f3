"""
Data models for iron-log.

All core dataclasses representing the exercise catalog, workouts and
templates.  Ownership is an explicit tree:

    Workout ──owns──▶ WorkoutExercise ──owns──▶ ExerciseSet
    Template ─owns──▶ TemplateExercise

Children carry their parent's id (``workout_id``, ``workout_exercise_id``,
``template_id``) rather than an object reference, and refer to catalog
entries by ``exercise_id``.  Deleting an owner removes its children; the
exercise catalog is only ever referenced, never owned.
"""

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Mapping

from .config import DEFAULT_TEMPLATE_SETS, RPE_MAX, RPE_MIN
from .errors import ValidationError

SetType = Literal["warmup", "working", "drop_set", "to_failure"]
MuscleGroup = Literal[
    "chest", "back", "shoulders", "biceps", "triceps", "quads",
    "hamstrings", "glutes", "calves", "core", "full_body",
]
Equipment = Literal["barbell", "dumbbell", "cable", "machine", "bodyweight", "other"]
ProgressIndicator = Literal["up", "down", "none"]

SET_TYPE_LABELS: dict[str, str] = {
    "warmup": "Warmup",
    "working": "Working",
    "drop_set": "Drop Set",
    "to_failure": "To Failure",
}

MUSCLE_GROUP_LABELS: dict[str, str] = {
    "chest": "Chest",
    "back": "Back",
    "shoulders": "Shoulders",
    "biceps": "Biceps",
    "triceps": "Triceps",
    "quads": "Legs (Quads)",
    "hamstrings": "Legs (Hamstrings)",
    "glutes": "Legs (Glutes)",
    "calves": "Calves",
    "core": "Core",
    "full_body": "Full Body",
}

EQUIPMENT_LABELS: dict[str, str] = {
    "barbell": "Barbell",
    "dumbbell": "Dumbbell",
    "cable": "Cable",
    "machine": "Machine",
    "bodyweight": "Bodyweight",
    "other": "Other",
}


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


def validate_weight(weight: float | None) -> None:
    if weight is None:
        return
    if not math.isfinite(weight) or weight < 0:
        raise ValidationError(f"weight must be a finite non-negative number, got {weight}")


def validate_reps(reps: int | None) -> None:
    if reps is not None and reps < 0:
        raise ValidationError(f"reps must be non-negative, got {reps}")


def validate_set_type(set_type: str) -> None:
    if set_type not in SET_TYPE_LABELS:
        valid = ", ".join(SET_TYPE_LABELS)
        raise ValidationError(f"Invalid set_type: {set_type!r}. Must be one of {valid}")


def validate_rpe(rpe: int | None) -> None:
    if rpe is not None and not RPE_MIN <= rpe <= RPE_MAX:
        raise ValidationError(f"rpe must be between {RPE_MIN} and {RPE_MAX}, got {rpe}")


@dataclass
class Exercise:
    """
    A catalog entry.

    Identity is fixed once created; name and muscle group may change.
    Archiving is a soft delete: archived exercises disappear from active
    listings but stay resolvable for past workouts.
    """

    name: str
    muscle_group: MuscleGroup
    equipment: Equipment
    is_custom: bool = False
    is_archived: bool = False
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        """Validate exercise data."""
        if not self.name or not self.name.strip():
            raise ValidationError("Exercise name must be a non-empty string")
        if self.muscle_group not in MUSCLE_GROUP_LABELS:
            raise ValidationError(f"Invalid muscle_group: {self.muscle_group!r}")
        if self.equipment not in EQUIPMENT_LABELS:
            raise ValidationError(f"Invalid equipment: {self.equipment!r}")


@dataclass
class ExerciseSet:
    """
    A single set within a workout exercise.

    ``is_personal_record`` is decided once, the first time the set is
    completed with weight and reps, and is never recomputed afterwards.
    ``record_checked`` marks that the decision has been made.
    """

    set_number: int  # 1-based, dense within the owning exercise
    weight: float | None = None
    reps: int | None = None
    set_type: SetType = "working"
    completed_at: datetime | None = None
    is_personal_record: bool = False
    rpe: int | None = None
    record_checked: bool = False
    workout_exercise_id: str | None = None
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.set_number < 1:
            raise ValidationError("set_number must be 1 or greater")
        validate_weight(self.weight)
        validate_reps(self.reps)
        validate_set_type(self.set_type)
        validate_rpe(self.rpe)

    @property
    def is_completed(self) -> bool:
        """True once stamped complete with both weight and reps present."""
        return self.completed_at is not None and self.weight is not None and self.reps is not None

    @property
    def volume(self) -> float:
        """weight × reps, or 0 when either is missing."""
        if self.weight is None or self.reps is None:
            return 0.0
        return self.weight * self.reps


@dataclass
class WorkoutExercise:
    """One exercise performed inside a workout, with its sets."""

    exercise_id: str
    order: int  # 0-based, dense within the owning workout
    workout_id: str | None = None
    notes: str | None = None
    sets: list[ExerciseSet] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if self.order < 0:
            raise ValidationError("order must be non-negative")

    def sorted_sets(self) -> list[ExerciseSet]:
        return sorted(self.sets, key=lambda s: s.set_number)

    @property
    def completed_sets(self) -> list[ExerciseSet]:
        """Completed sets ordered by set number."""
        return [s for s in self.sorted_sets() if s.is_completed]

    @property
    def total_volume(self) -> float:
        return sum(s.volume for s in self.completed_sets)


@dataclass
class Workout:
    """
    A training session.

    ``end_time`` is None while the workout is in progress and is stamped
    exactly once, when the session finishes.
    """

    start_time: datetime
    end_time: datetime | None = None
    name: str | None = None
    notes: str | None = None
    template_id: str | None = None
    exercises: list[WorkoutExercise] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValidationError("end_time must not precede start_time")

    def sorted_exercises(self) -> list[WorkoutExercise]:
        return sorted(self.exercises, key=lambda e: e.order)

    @property
    def is_in_progress(self) -> bool:
        return self.end_time is None

    @property
    def duration_seconds(self) -> float | None:
        """Seconds between start and end, or None while in progress."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def total_volume(self) -> float:
        return sum(we.total_volume for we in self.exercises)

    @property
    def total_sets(self) -> int:
        """Number of completed sets across all exercises."""
        return sum(len(we.completed_sets) for we in self.exercises)

    @property
    def personal_records_count(self) -> int:
        return sum(1 for we in self.exercises for s in we.sets if s.is_personal_record)

    def display_name(self, exercise_names: Mapping[str, str]) -> str:
        """
        Return the workout's name, or one generated from its exercises.

        Args:
            exercise_names: {exercise_id: name} used to resolve exercise names

        Returns:
            Explicit name when set; otherwise "Workout", "A & B", or "A, B..."
        """
        if self.name:
            return self.name
        names = [
            exercise_names[we.exercise_id]
            for we in self.sorted_exercises()
            if we.exercise_id in exercise_names
        ]
        if not names:
            return "Workout"
        if len(names) <= 2:
            return " & ".join(names)
        return ", ".join(names[:2]) + "..."


@dataclass
class TemplateExercise:
    """An exercise slot in a template with a default set count."""

    exercise_id: str
    order: int
    default_sets: int = DEFAULT_TEMPLATE_SETS
    template_id: str | None = None
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if self.order < 0:
            raise ValidationError("order must be non-negative")
        if self.default_sets < 0:
            raise ValidationError("default_sets must be non-negative")


@dataclass
class Template:
    """A named, reusable ordered list of exercises used to seed workouts."""

    name: str
    created_at: datetime = field(default_factory=datetime.now)
    last_used_at: datetime | None = None
    exercises: list[TemplateExercise] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Template name must be a non-empty string")

    @property
    def exercise_count(self) -> int:
        return len(self.exercises)

    def sorted_exercises(self) -> list[TemplateExercise]:
        return sorted(self.exercises, key=lambda e: e.order)
