"""Data access layer for iron-log.

Repositories query and mutate an in-memory Dataset and write it back
through a HistoryStore on save().  Cascade deletes along the ownership
edges (workout → exercises → sets, template → template exercises) are
explicit tree walks here.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, Sequence

from ..core.catalog import CatalogEntry, load_default_catalog
from ..core.config import RECENT_EXERCISES_LIMIT
from ..core.errors import NotFoundError, ValidationError
from ..core.models import (
    MUSCLE_GROUP_LABELS,
    Exercise,
    ExerciseSet,
    Template,
    TemplateExercise,
    Workout,
    WorkoutExercise,
)
from .history_store import Dataset, HistoryStore

logger = logging.getLogger(__name__)


class Repository:
    """Base class: shared dataset plus optional backing store."""

    def __init__(self, dataset: Dataset, store: HistoryStore | None = None):
        self.dataset = dataset
        self.store = store

    def save(self) -> None:
        """Write the dataset to the store (no-op for in-memory use)."""
        if self.store is not None:
            self.store.save(self.dataset)


class ExerciseRepository(Repository):
    """Repository for the exercise catalog."""

    def create(
        self,
        name: str,
        muscle_group: str,
        equipment: str,
        is_custom: bool = True,
    ) -> Exercise:
        """Create and store a new exercise."""
        exercise = Exercise(
            name=name.strip(),
            muscle_group=muscle_group,  # type: ignore[arg-type]
            equipment=equipment,  # type: ignore[arg-type]
            is_custom=is_custom,
        )
        self.dataset.exercises[exercise.id] = exercise
        return exercise

    def get(self, exercise_id: str) -> Exercise | None:
        """Get an exercise by ID (archived included)."""
        return self.dataset.exercises.get(exercise_id)

    def get_by_name(self, name: str) -> Exercise | None:
        """Case-insensitive exact name lookup over active exercises."""
        wanted = name.strip().lower()
        for exercise in self.fetch_all():
            if exercise.name.lower() == wanted:
                return exercise
        return None

    def fetch_all(self, include_archived: bool = False) -> list[Exercise]:
        """All exercises sorted by name; archived ones only on request."""
        exercises = [
            e for e in self.dataset.exercises.values()
            if include_archived or not e.is_archived
        ]
        return sorted(exercises, key=lambda e: e.name.lower())

    def fetch_by_muscle_group(self, muscle_group: str) -> list[Exercise]:
        if muscle_group not in MUSCLE_GROUP_LABELS:
            raise ValidationError(f"Invalid muscle_group: {muscle_group!r}")
        return [e for e in self.fetch_all() if e.muscle_group == muscle_group]

    def search(self, query: str) -> list[Exercise]:
        """Case-insensitive substring match on active exercise names."""
        needle = query.strip().lower()
        if not needle:
            return self.fetch_all()
        return [e for e in self.fetch_all() if needle in e.name.lower()]

    def update(
        self,
        exercise_id: str,
        name: str | None = None,
        muscle_group: str | None = None,
    ) -> Exercise:
        exercise = self._require(exercise_id)
        if name is not None:
            if not name.strip():
                raise ValidationError("Exercise name must be a non-empty string")
            exercise.name = name.strip()
        if muscle_group is not None:
            if muscle_group not in MUSCLE_GROUP_LABELS:
                raise ValidationError(f"Invalid muscle_group: {muscle_group!r}")
            exercise.muscle_group = muscle_group  # type: ignore[assignment]
        return exercise

    def archive(self, exercise_id: str) -> Exercise:
        """Soft-delete: hide from listings, keep for history."""
        exercise = self._require(exercise_id)
        exercise.is_archived = True
        logger.info("Archived exercise %s (%s)", exercise.name, exercise.id)
        return exercise

    def delete(self, exercise_id: str) -> None:
        """
        Remove an exercise from the catalog.

        Raises:
            ValidationError: If any workout or template still references it
        """
        self._require(exercise_id)
        referenced = any(
            we.exercise_id == exercise_id
            for w in self.dataset.workouts
            for we in w.exercises
        ) or any(
            te.exercise_id == exercise_id
            for t in self.dataset.templates
            for te in t.exercises
        )
        if referenced:
            raise ValidationError(
                "Exercise is referenced by workouts or templates; archive it instead"
            )
        del self.dataset.exercises[exercise_id]

    def seed_defaults(self, entries: Iterable[CatalogEntry] | None = None) -> int:
        """
        Insert catalog entries whose name is not already present.

        Returns:
            Number of exercises added
        """
        if entries is None:
            entries = load_default_catalog(self.store.data_dir if self.store else None)
        existing = {e.name.lower() for e in self.dataset.exercises.values()}
        added = 0
        for entry in entries:
            if entry.name.lower() in existing:
                continue
            exercise = entry.to_exercise()
            self.dataset.exercises[exercise.id] = exercise
            existing.add(entry.name.lower())
            added += 1
        logger.info("Seeded %d default exercises", added)
        return added

    def names_by_id(self) -> dict[str, str]:
        return {e.id: e.name for e in self.dataset.exercises.values()}

    def _require(self, exercise_id: str) -> Exercise:
        exercise = self.get(exercise_id)
        if exercise is None:
            raise NotFoundError("Exercise", exercise_id)
        return exercise


class WorkoutRepository(Repository):
    """Repository for workouts, their exercises and sets."""

    def __init__(
        self,
        dataset: Dataset,
        store: HistoryStore | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(dataset, store)
        self._clock = clock

    def create_workout(self, name: str | None = None, template_id: str | None = None) -> Workout:
        workout = Workout(start_time=self._clock(), name=name, template_id=template_id)
        self.dataset.workouts.append(workout)
        return workout

    def get(self, workout_id: str) -> Workout | None:
        for workout in self.dataset.workouts:
            if workout.id == workout_id:
                return workout
        return None

    def fetch_all(self) -> list[Workout]:
        """All workouts, most recent start first."""
        return sorted(self.dataset.workouts, key=lambda w: w.start_time, reverse=True)

    def fetch_finished(self) -> list[Workout]:
        return [w for w in self.fetch_all() if not w.is_in_progress]

    def fetch_in_progress(self) -> list[Workout]:
        return [w for w in self.fetch_all() if w.is_in_progress]

    def fetch_between(self, start: datetime, end: datetime) -> list[Workout]:
        """Workouts whose start time falls in [start, end)."""
        return [w for w in self.fetch_all() if start <= w.start_time < end]

    def finish(self, workout: Workout, end_time: datetime | None = None) -> Workout:
        if not workout.is_in_progress:
            raise ValidationError(f"Workout {workout.id} is already finished")
        workout.end_time = end_time or self._clock()
        return workout

    def rename(self, workout: Workout, name: str | None) -> Workout:
        workout.name = name.strip() if name and name.strip() else None
        return workout

    def add_exercise(self, workout: Workout, exercise: Exercise) -> WorkoutExercise:
        """Append an exercise at the next dense order index."""
        workout_exercise = WorkoutExercise(
            exercise_id=exercise.id,
            order=len(workout.exercises),
            workout_id=workout.id,
        )
        workout.exercises.append(workout_exercise)
        return workout_exercise

    def delete_workout(self, workout: Workout) -> None:
        """Delete a workout with all of its exercises and sets."""
        if workout not in self.dataset.workouts:
            raise NotFoundError("Workout", workout.id)
        for workout_exercise in list(workout.exercises):
            self._drop_workout_exercise(workout, workout_exercise)
        self.dataset.workouts.remove(workout)
        logger.debug("Deleted workout %s", workout.id)

    def delete_workout_exercise(self, workout_exercise: WorkoutExercise) -> Workout:
        """Delete one workout exercise and its sets; the workout stays."""
        workout = self._owner_of(workout_exercise)
        self._drop_workout_exercise(workout, workout_exercise)
        return workout

    def find_workout_exercise(self, workout_exercise_id: str) -> WorkoutExercise | None:
        for workout in self.dataset.workouts:
            for workout_exercise in workout.exercises:
                if workout_exercise.id == workout_exercise_id:
                    return workout_exercise
        return None

    def find_set(self, set_id: str) -> ExerciseSet | None:
        for workout in self.dataset.workouts:
            for workout_exercise in workout.exercises:
                for exercise_set in workout_exercise.sets:
                    if exercise_set.id == set_id:
                        return exercise_set
        return None

    def previous_workout_exercise(
        self,
        exercise_id: str,
        before: datetime | None = None,
        exclude_workout_id: str | None = None,
    ) -> WorkoutExercise | None:
        """
        Most recent prior occurrence of an exercise.

        Looks at finished workouts started before *before* (any when None),
        most recent first, and returns the first matching workout exercise.
        """
        for workout in self.fetch_finished():
            if workout.id == exclude_workout_id:
                continue
            if before is not None and workout.start_time >= before:
                continue
            for workout_exercise in workout.sorted_exercises():
                if workout_exercise.exercise_id == exercise_id:
                    return workout_exercise
        return None

    def completed_sets_for_exercise(
        self, exercise_id: str, exclude_workout_id: str | None = None
    ) -> list[ExerciseSet]:
        """Every completed set of an exercise across finished workouts."""
        sets: list[ExerciseSet] = []
        for workout in self.dataset.workouts:
            if workout.is_in_progress or workout.id == exclude_workout_id:
                continue
            for workout_exercise in workout.exercises:
                if workout_exercise.exercise_id == exercise_id:
                    sets.extend(workout_exercise.completed_sets)
        return sets

    def fetch_recent_exercises(
        self,
        exercises: ExerciseRepository,
        limit: int = RECENT_EXERCISES_LIMIT,
    ) -> list[Exercise]:
        """Distinct active exercises from recent workouts, most recent first."""
        seen: set[str] = set()
        recent: list[Exercise] = []
        for workout in self.fetch_all():
            for workout_exercise in workout.sorted_exercises():
                if workout_exercise.exercise_id in seen:
                    continue
                seen.add(workout_exercise.exercise_id)
                exercise = exercises.get(workout_exercise.exercise_id)
                if exercise is None or exercise.is_archived:
                    continue
                recent.append(exercise)
                if len(recent) >= limit:
                    return recent
        return recent

    def _owner_of(self, workout_exercise: WorkoutExercise) -> Workout:
        for workout in self.dataset.workouts:
            if workout_exercise in workout.exercises:
                return workout
        raise NotFoundError("Workout exercise", workout_exercise.id)

    @staticmethod
    def _drop_workout_exercise(workout: Workout, workout_exercise: WorkoutExercise) -> None:
        workout_exercise.sets.clear()
        workout.exercises.remove(workout_exercise)


class TemplateRepository(Repository):
    """Repository for workout templates."""

    def __init__(
        self,
        dataset: Dataset,
        store: HistoryStore | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(dataset, store)
        self._clock = clock

    def create(
        self,
        name: str,
        exercises: Sequence[tuple[Exercise, int]] = (),
    ) -> Template:
        """
        Create a template.

        Args:
            name: Template name
            exercises: (exercise, default set count) pairs in order
        """
        template = Template(name=name.strip(), created_at=self._clock())
        template.exercises = [
            TemplateExercise(
                exercise_id=exercise.id,
                order=index,
                default_sets=default_sets,
                template_id=template.id,
            )
            for index, (exercise, default_sets) in enumerate(exercises)
        ]
        self.dataset.templates.append(template)
        return template

    def create_from_workout(self, workout: Workout, name: str) -> Template:
        """Derive a template whose set counts match the workout's."""
        template = Template(name=name.strip(), created_at=self._clock())
        template.exercises = [
            TemplateExercise(
                exercise_id=we.exercise_id,
                order=index,
                default_sets=len(we.sets),
                template_id=template.id,
            )
            for index, we in enumerate(workout.sorted_exercises())
        ]
        self.dataset.templates.append(template)
        return template

    def get(self, template_id: str) -> Template | None:
        for template in self.dataset.templates:
            if template.id == template_id:
                return template
        return None

    def get_by_name(self, name: str) -> Template | None:
        wanted = name.strip().lower()
        for template in self.dataset.templates:
            if template.name.lower() == wanted:
                return template
        return None

    def fetch_all(self) -> list[Template]:
        """Most recently used first; never-used templates last, newest first."""
        used = [t for t in self.dataset.templates if t.last_used_at is not None]
        unused = [t for t in self.dataset.templates if t.last_used_at is None]
        used.sort(key=lambda t: t.last_used_at, reverse=True)  # type: ignore[arg-type, return-value]
        unused.sort(key=lambda t: t.created_at, reverse=True)
        return used + unused

    def mark_used(self, template: Template) -> Template:
        template.last_used_at = self._clock()
        return template

    def rename(self, template: Template, name: str) -> Template:
        if not name or not name.strip():
            raise ValidationError("Template name must be a non-empty string")
        template.name = name.strip()
        return template

    def delete(self, template: Template) -> None:
        """Delete a template and its template exercises; workouts keep their reference id."""
        if template not in self.dataset.templates:
            raise NotFoundError("Template", template.id)
        template.exercises.clear()
        self.dataset.templates.remove(template)
