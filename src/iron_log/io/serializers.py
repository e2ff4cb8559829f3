"""
JSON serialization for workout data models.

Handles conversion between dataclasses and JSON-compatible dicts.
Timestamps are stored as ISO-8601 strings; optional fields are written as
null so every record has the same shape.
"""

import json
import math
from datetime import datetime
from typing import Any

from ..core.errors import ValidationError
from ..core.models import (
    EQUIPMENT_LABELS,
    MUSCLE_GROUP_LABELS,
    Exercise,
    ExerciseSet,
    Template,
    TemplateExercise,
    Workout,
    WorkoutExercise,
    validate_set_type,
)

__all__ = [
    "ValidationError",
    "exercise_to_dict",
    "dict_to_exercise",
    "exercise_set_to_dict",
    "dict_to_exercise_set",
    "workout_exercise_to_dict",
    "dict_to_workout_exercise",
    "workout_to_dict",
    "dict_to_workout",
    "workout_to_json_line",
    "template_to_dict",
    "dict_to_template",
]


def parse_timestamp(value: str | None, name: str) -> datetime | None:
    """
    Parse an ISO-8601 timestamp.

    Args:
        value: ISO string or None
        name: Field name for error messages

    Returns:
        datetime or None

    Raises:
        ValidationError: If the string is not ISO-8601
    """
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {name}: {value!r}. Expected ISO-8601") from e


def format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is a finite non-negative number.

    Raises:
        ValidationError: If value is not a number, negative, NaN or infinite
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data:
        raise ValidationError(f"Missing required field: {key}")
    return data[key]


# ---------------------------------------------------------------------------
# Exercise catalog
# ---------------------------------------------------------------------------


def exercise_to_dict(exercise: Exercise) -> dict[str, Any]:
    return {
        "id": exercise.id,
        "name": exercise.name,
        "muscle_group": exercise.muscle_group,
        "equipment": exercise.equipment,
        "is_custom": exercise.is_custom,
        "is_archived": exercise.is_archived,
    }


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    """
    Convert dict to Exercise.

    Raises:
        ValidationError: If data is invalid
    """
    muscle_group = _require(data, "muscle_group")
    equipment = _require(data, "equipment")
    if muscle_group not in MUSCLE_GROUP_LABELS:
        raise ValidationError(f"Invalid muscle_group: {muscle_group!r}")
    if equipment not in EQUIPMENT_LABELS:
        raise ValidationError(f"Invalid equipment: {equipment!r}")
    return Exercise(
        id=str(_require(data, "id")),
        name=str(_require(data, "name")),
        muscle_group=muscle_group,
        equipment=equipment,
        is_custom=bool(data.get("is_custom", False)),
        is_archived=bool(data.get("is_archived", False)),
    )


# ---------------------------------------------------------------------------
# Workouts
# ---------------------------------------------------------------------------


def exercise_set_to_dict(exercise_set: ExerciseSet) -> dict[str, Any]:
    return {
        "id": exercise_set.id,
        "set_number": exercise_set.set_number,
        "weight": exercise_set.weight,
        "reps": exercise_set.reps,
        "set_type": exercise_set.set_type,
        "completed_at": format_timestamp(exercise_set.completed_at),
        "is_personal_record": exercise_set.is_personal_record,
        "rpe": exercise_set.rpe,
        "record_checked": exercise_set.record_checked,
    }


def _was_completed(data: dict[str, Any]) -> bool:
    # records written before record_checked existed
    return all(data.get(key) is not None for key in ("completed_at", "weight", "reps"))


def dict_to_exercise_set(data: dict[str, Any], workout_exercise_id: str | None = None) -> ExerciseSet:
    """
    Convert dict to ExerciseSet.

    Raises:
        ValidationError: If data is invalid
    """
    weight = data.get("weight")
    reps = data.get("reps")
    if weight is not None:
        validate_non_negative(weight, "weight")
    if reps is not None:
        validate_non_negative(reps, "reps")
    set_type = data.get("set_type", "working")
    validate_set_type(set_type)

    return ExerciseSet(
        id=str(_require(data, "id")),
        set_number=int(_require(data, "set_number")),
        weight=float(weight) if weight is not None else None,
        reps=int(reps) if reps is not None else None,
        set_type=set_type,
        completed_at=parse_timestamp(data.get("completed_at"), "completed_at"),
        is_personal_record=bool(data.get("is_personal_record", False)),
        rpe=int(data["rpe"]) if data.get("rpe") is not None else None,
        record_checked=bool(data.get("record_checked", _was_completed(data))),
        workout_exercise_id=workout_exercise_id,
    )


def workout_exercise_to_dict(workout_exercise: WorkoutExercise) -> dict[str, Any]:
    return {
        "id": workout_exercise.id,
        "exercise_id": workout_exercise.exercise_id,
        "order": workout_exercise.order,
        "notes": workout_exercise.notes,
        "sets": [exercise_set_to_dict(s) for s in workout_exercise.sorted_sets()],
    }


def dict_to_workout_exercise(data: dict[str, Any], workout_id: str | None = None) -> WorkoutExercise:
    we_id = str(_require(data, "id"))
    return WorkoutExercise(
        id=we_id,
        exercise_id=str(_require(data, "exercise_id")),
        order=int(_require(data, "order")),
        workout_id=workout_id,
        notes=data.get("notes"),
        sets=[dict_to_exercise_set(s, workout_exercise_id=we_id) for s in data.get("sets", [])],
    )


def workout_to_dict(workout: Workout) -> dict[str, Any]:
    """
    Convert Workout (with nested exercises and sets) to a JSON-compatible dict.
    """
    return {
        "id": workout.id,
        "name": workout.name,
        "start_time": format_timestamp(workout.start_time),
        "end_time": format_timestamp(workout.end_time),
        "notes": workout.notes,
        "template_id": workout.template_id,
        "exercises": [workout_exercise_to_dict(we) for we in workout.sorted_exercises()],
    }


def dict_to_workout(data: dict[str, Any]) -> Workout:
    """
    Convert dict to Workout.

    Raises:
        ValidationError: If data is invalid
    """
    workout_id = str(_require(data, "id"))
    start_time = parse_timestamp(_require(data, "start_time"), "start_time")
    return Workout(
        id=workout_id,
        name=data.get("name"),
        start_time=start_time,  # type: ignore[arg-type]
        end_time=parse_timestamp(data.get("end_time"), "end_time"),
        notes=data.get("notes"),
        template_id=data.get("template_id"),
        exercises=[
            dict_to_workout_exercise(we, workout_id=workout_id)
            for we in data.get("exercises", [])
        ],
    )


def workout_to_json_line(workout: Workout) -> str:
    """Convert a workout to a single JSON line (no trailing newline)."""
    return json.dumps(workout_to_dict(workout), separators=(",", ":"))


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


def template_to_dict(template: Template) -> dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "created_at": format_timestamp(template.created_at),
        "last_used_at": format_timestamp(template.last_used_at),
        "exercises": [
            {
                "id": te.id,
                "exercise_id": te.exercise_id,
                "order": te.order,
                "default_sets": te.default_sets,
            }
            for te in template.sorted_exercises()
        ],
    }


def dict_to_template(data: dict[str, Any]) -> Template:
    template_id = str(_require(data, "id"))
    return Template(
        id=template_id,
        name=str(_require(data, "name")),
        created_at=parse_timestamp(_require(data, "created_at"), "created_at"),  # type: ignore[arg-type]
        last_used_at=parse_timestamp(data.get("last_used_at"), "last_used_at"),
        exercises=[
            TemplateExercise(
                id=str(_require(te, "id")),
                exercise_id=str(_require(te, "exercise_id")),
                order=int(_require(te, "order")),
                default_sets=int(te.get("default_sets", 3)),
                template_id=template_id,
            )
            for te in data.get("exercises", [])
        ],
    )
