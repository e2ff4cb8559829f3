"""
Workout session orchestration.

WorkoutSession owns the mutable state of the single in-progress workout:
its exercises and sets, the elapsed-time clock and the rest timer.

States:

    no_active_session ──start / load──▶ active
    active ──finish──▶ no_active_session   (workout kept, end_time stamped)
    active ──cancel──▶ no_active_session   (workout deleted with its children)

At most one workout with no end time may exist in the store; starting a
new session while one is persisted raises SessionStateError (callers
load the in-progress workout first).

Every mutation is saved through the workout repository immediately and
then broadcast to subscribers.  Clock and rest ticks arrive through the
injected Scheduler, so a session never owns a thread.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Iterable, Literal

from .config import MAX_SETS_PER_EXERCISE, TICK_SECONDS
from .errors import NotFoundError, SessionStateError, ValidationError
from .models import (
    SET_TYPE_LABELS,
    Exercise,
    ExerciseSet,
    ProgressIndicator,
    Template,
    Workout,
    WorkoutExercise,
    validate_reps,
    validate_rpe,
    validate_set_type,
    validate_weight,
)
from .progress import compare_progress, previous_set_for
from .records import PersonalRecordEvaluator
from .rest_timer import DEFAULT_POLICY, RestPolicy, RestTimer, RestTimerNotifier
from .scheduling import IntervalHandle, Scheduler, TickScheduler

if TYPE_CHECKING:
    from ..io.repositories import ExerciseRepository, TemplateRepository, WorkoutRepository

logger = logging.getLogger(__name__)

SessionState = Literal["no_active_session", "active"]


class WorkoutSession:
    """Single owner of the in-progress workout."""

    def __init__(
        self,
        workouts: "WorkoutRepository",
        exercises: "ExerciseRepository",
        templates: "TemplateRepository | None" = None,
        scheduler: Scheduler | None = None,
        notifier: RestTimerNotifier | None = None,
        clock: Callable[[], datetime] = datetime.now,
        rest_policy: RestPolicy | None = None,
        on_rest_complete: Callable[[], None] | None = None,
        max_sets: int = MAX_SETS_PER_EXERCISE,
    ):
        """
        Args:
            workouts: Workout repository (also the save path)
            exercises: Exercise catalog repository
            templates: Template repository, needed for start_from_template
            scheduler: Tick source for the elapsed clock and rest timer
            notifier: Live rest-timer mirror
            clock: Returns "now"; injected for tests
            rest_policy: Set type → rest duration
            on_rest_complete: One-shot alert when a rest countdown ends
            max_sets: Upper bound on sets per exercise
        """
        self._workouts = workouts
        self._exercises = exercises
        self._templates = templates
        self._scheduler = scheduler or TickScheduler()
        self._clock = clock
        self._max_sets = max_sets
        self._records = PersonalRecordEvaluator(workouts.completed_sets_for_exercise)
        self._clock_handle: IntervalHandle | None = None
        self._listeners: list[Callable[["WorkoutSession"], None]] = []

        self.current_workout: Workout | None = None
        self.elapsed_seconds = 0
        self.rest_timer = RestTimer(
            self._scheduler,
            notifier=notifier,
            on_complete=on_rest_complete,
            policy=rest_policy or DEFAULT_POLICY,
        )
        self.rest_timer.subscribe(lambda _snapshot: self._emit())

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return "active" if self.current_workout is not None else "no_active_session"

    @property
    def is_timer_running(self) -> bool:
        return self._clock_handle is not None

    @property
    def rest_time_remaining(self) -> int:
        return self.rest_timer.remaining_seconds

    @property
    def is_rest_timer_active(self) -> bool:
        return self.rest_timer.is_active

    @property
    def is_rest_timer_paused(self) -> bool:
        return self.rest_timer.is_paused

    @property
    def total_volume(self) -> float:
        if self.current_workout is None:
            return 0.0
        return self.current_workout.total_volume

    @property
    def total_sets_completed(self) -> int:
        if self.current_workout is None:
            return 0
        return self.current_workout.total_sets

    def subscribe(self, listener: Callable[["WorkoutSession"], None]) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_new_workout(self, name: str | None = None, template_id: str | None = None) -> Workout:
        """
        Create a workout starting now and start the elapsed clock.

        Raises:
            SessionStateError: If a workout is already in progress
        """
        if self.current_workout is not None:
            raise SessionStateError("A workout session is already active")
        if self._workouts.fetch_in_progress():
            raise SessionStateError(
                "Another workout is still in progress; resume or finish it first"
            )
        workout = self._workouts.create_workout(name=name, template_id=template_id)
        self.current_workout = workout
        self.elapsed_seconds = 0
        self._start_clock()
        self._save()
        logger.info("Started workout %s", workout.id)
        self._emit()
        return workout

    def load_in_progress_workout(self) -> Workout | None:
        """
        Resume the persisted in-progress workout, if there is one.

        Elapsed time is recomputed from the start timestamp.
        """
        if self.current_workout is not None:
            return self.current_workout
        in_progress = self._workouts.fetch_in_progress()
        if not in_progress:
            return None
        if len(in_progress) > 1:
            logger.warning("%d workouts in progress; resuming the latest", len(in_progress))
        workout = in_progress[0]
        self.current_workout = workout
        self.elapsed_seconds = max(0, int((self._clock() - workout.start_time).total_seconds()))
        self._start_clock()
        logger.debug("Resumed workout %s after %ss", workout.id, self.elapsed_seconds)
        self._emit()
        return workout

    def finish_workout(self) -> Workout:
        """Stamp the end time, stop all timers and keep the workout."""
        workout = self._require_active()
        self._workouts.finish(workout, self._clock())
        self._teardown()
        self._save()
        logger.info("Finished workout %s (volume %.1f)", workout.id, workout.total_volume)
        self._emit()
        return workout

    def cancel_workout(self) -> None:
        """Delete the workout with its exercises and sets and stop all timers."""
        workout = self._require_active()
        self._workouts.delete_workout(workout)
        self._teardown()
        self._save()
        logger.info("Cancelled workout %s", workout.id)
        self._emit()

    def close(self) -> None:
        """Release timers without touching persisted state."""
        self._teardown()

    # ------------------------------------------------------------------
    # Exercises
    # ------------------------------------------------------------------

    def add_exercise(self, exercise: Exercise) -> WorkoutExercise:
        """
        Append an exercise and seed its first set.

        The set is prefilled from the first completed set of the most
        recent prior occurrence, or left empty without history.
        """
        workout = self._require_active()
        workout_exercise = self._workouts.add_exercise(workout, exercise)
        previous = self.previous_workout_exercise(exercise.id)
        seed = previous.completed_sets[0] if previous and previous.completed_sets else None
        self._append_set(
            workout_exercise,
            seed.weight if seed else None,
            seed.reps if seed else None,
        )
        self._save()
        self._emit()
        return workout_exercise

    def add_exercise_from_past(self, past: WorkoutExercise) -> WorkoutExercise:
        """Add an exercise copying every completed set of a past occurrence."""
        workout = self._require_active()
        exercise = self._exercise_for(past)
        workout_exercise = self._workouts.add_exercise(workout, exercise)
        past_sets = past.completed_sets
        if not past_sets:
            self._append_set(workout_exercise, None, None)
        for past_set in past_sets[: self._max_sets]:
            self._append_set(workout_exercise, past_set.weight, past_set.reps)
        self._save()
        self._emit()
        return workout_exercise

    def repeat_workout(self, past: Workout) -> Workout:
        """Start a session that repeats a past workout's exercises and sets."""
        workout = self.start_new_workout(name=past.name)
        for past_exercise in past.sorted_exercises():
            self.add_exercise_from_past(past_exercise)
        return workout

    def start_from_template(self, template: Template) -> Workout:
        """
        Start a session seeded from a template.

        Each template exercise gets ``default_sets`` sets (at least one),
        prefilled position by position from the previous occurrence.
        """
        if self._templates is None:
            raise SessionStateError("No template repository configured")
        workout = self.start_new_workout(name=template.name, template_id=template.id)
        for template_exercise in template.sorted_exercises():
            exercise = self._exercises.get(template_exercise.exercise_id)
            if exercise is None:
                logger.warning(
                    "Template %s references missing exercise %s",
                    template.name,
                    template_exercise.exercise_id,
                )
                continue
            workout_exercise = self._workouts.add_exercise(workout, exercise)
            previous = self.previous_workout_exercise(exercise.id)
            previous_sets = previous.completed_sets if previous else []
            count = min(max(1, template_exercise.default_sets), self._max_sets)
            for index in range(count):
                seed = None
                if previous_sets:
                    seed = previous_sets[min(index, len(previous_sets) - 1)]
                self._append_set(
                    workout_exercise,
                    seed.weight if seed else None,
                    seed.reps if seed else None,
                )
        self._templates.mark_used(template)
        self._save()
        self._emit()
        return workout

    def remove_exercise(self, workout_exercise: WorkoutExercise) -> None:
        """Delete an exercise with its sets; sibling order stays dense."""
        workout = self._require_active()
        self._require_exercise(workout_exercise)
        self._workouts.delete_workout_exercise(workout_exercise)
        for index, sibling in enumerate(workout.sorted_exercises()):
            sibling.order = index
        self._save()
        self._emit()

    def reorder_exercises(self, from_indices: Iterable[int], to_index: int) -> None:
        """
        Move the exercises at *from_indices* so they sit before *to_index*.

        Indices refer to positions in the current order; the moved block
        keeps its relative order and every order value is reassigned from 0.
        """
        workout = self._require_active()
        ordered = workout.sorted_exercises()
        sources = sorted(set(from_indices))
        if not sources:
            return
        if sources[0] < 0 or sources[-1] >= len(ordered):
            raise ValidationError(f"Exercise index out of range: {sources}")
        if not 0 <= to_index <= len(ordered):
            raise ValidationError(f"Destination index out of range: {to_index}")

        moving = [ordered[i] for i in sources]
        remaining = [we for i, we in enumerate(ordered) if i not in sources]
        insert_at = to_index - sum(1 for i in sources if i < to_index)
        remaining[insert_at:insert_at] = moving
        for index, workout_exercise in enumerate(remaining):
            workout_exercise.order = index
        self._save()
        self._emit()

    def update_exercise_notes(self, workout_exercise: WorkoutExercise, notes: str | None) -> None:
        self._require_active()
        self._require_exercise(workout_exercise)
        text = (notes or "").strip()
        workout_exercise.notes = text or None
        self._save()
        self._emit()

    # ------------------------------------------------------------------
    # Sets
    # ------------------------------------------------------------------

    def add_set(
        self,
        workout_exercise: WorkoutExercise,
        weight: float | None = None,
        reps: int | None = None,
    ) -> ExerciseSet:
        """Append a set at the next dense set number."""
        self._require_active()
        self._require_exercise(workout_exercise)
        exercise_set = self._append_set(workout_exercise, weight, reps)
        self._save()
        self._emit()
        return exercise_set

    def add_next_set(self, workout_exercise: WorkoutExercise) -> ExerciseSet:
        """
        Append a set prefilled from the last set of this exercise, else the
        first completed set of the previous occurrence, else empty.
        """
        self._require_active()
        self._require_exercise(workout_exercise)
        current_sets = workout_exercise.sorted_sets()
        seed: ExerciseSet | None = current_sets[-1] if current_sets else None
        if seed is None:
            previous = self.previous_workout_exercise(workout_exercise.exercise_id)
            if previous and previous.completed_sets:
                seed = previous.completed_sets[0]
        return self.add_set(
            workout_exercise,
            seed.weight if seed else None,
            seed.reps if seed else None,
        )

    def update_set(self, exercise_set: ExerciseSet, weight: float | None, reps: int | None) -> None:
        """Overwrite weight and reps; a frozen PR flag is not recomputed."""
        self._require_active()
        self._owner_of(exercise_set)
        validate_weight(weight)
        validate_reps(reps)
        exercise_set.weight = weight
        exercise_set.reps = reps
        self._save()
        self._emit()

    def update_set_type(self, exercise_set: ExerciseSet, set_type: str) -> None:
        self._require_active()
        self._owner_of(exercise_set)
        validate_set_type(set_type)
        exercise_set.set_type = set_type  # type: ignore[assignment]
        self._save()
        self._emit()

    def update_set_rpe(self, exercise_set: ExerciseSet, rpe: int | None) -> None:
        self._require_active()
        self._owner_of(exercise_set)
        validate_rpe(rpe)
        exercise_set.rpe = rpe
        self._save()
        self._emit()

    def complete_set(self, exercise_set: ExerciseSet) -> ExerciseSet:
        """
        Mark a set done, decide its PR flag and start the rest timer.

        completed_at is stamped whenever this is called; the set only
        counts as completed once weight and reps are also present.  The PR
        flag is decided once: completing a set that was already completed
        with weight and reps leaves it untouched, even if those were
        cleared since.  A set stamped before its values were entered is
        checked when completed again.
        """
        workout = self._require_active()
        workout_exercise = self._owner_of(exercise_set)
        if exercise_set.record_checked:
            logger.debug("Set %s already completed", exercise_set.id)
            return exercise_set

        exercise_set.completed_at = self._clock()
        self._records.evaluate(exercise_set, workout_exercise.exercise_id, workout.id)
        self._save()

        exercise = self._exercises.get(workout_exercise.exercise_id)
        label = f"Set {exercise_set.set_number} · {SET_TYPE_LABELS[exercise_set.set_type]}"
        self.rest_timer.start_for_set_type(
            exercise_set.set_type,
            exercise_name=exercise.name if exercise else "Rest",
            set_label=label,
        )
        self._emit()
        return exercise_set

    def delete_set(self, exercise_set: ExerciseSet) -> None:
        """Remove a set and renumber the rest densely from 1."""
        self._require_active()
        workout_exercise = self._owner_of(exercise_set)
        workout_exercise.sets = [s for s in workout_exercise.sets if s is not exercise_set]
        for number, remaining in enumerate(workout_exercise.sorted_sets(), start=1):
            remaining.set_number = number
        self._save()
        self._emit()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def previous_workout_exercise(self, exercise_id: str) -> WorkoutExercise | None:
        """Most recent finished occurrence of the exercise before this session."""
        if self.current_workout is None:
            return self._workouts.previous_workout_exercise(exercise_id)
        return self._workouts.previous_workout_exercise(
            exercise_id,
            before=self.current_workout.start_time,
            exclude_workout_id=self.current_workout.id,
        )

    def previous_set_for(self, exercise_set: ExerciseSet) -> ExerciseSet | None:
        workout_exercise = self._owner_of(exercise_set)
        previous = self.previous_workout_exercise(workout_exercise.exercise_id)
        return previous_set_for(exercise_set, previous)

    def progress_for(self, exercise_set: ExerciseSet) -> ProgressIndicator:
        return compare_progress(exercise_set, self.previous_set_for(exercise_set))

    # ------------------------------------------------------------------
    # Rest timer controls
    # ------------------------------------------------------------------

    def pause_rest_timer(self) -> None:
        self.rest_timer.pause()

    def resume_rest_timer(self) -> None:
        self.rest_timer.resume()

    def skip_rest_timer(self) -> None:
        self.rest_timer.skip()

    def add_rest_time(self, seconds: int) -> None:
        self.rest_timer.add_time(seconds)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_active(self) -> Workout:
        if self.current_workout is None:
            raise SessionStateError("No active workout session")
        return self.current_workout

    def _require_exercise(self, workout_exercise: WorkoutExercise) -> None:
        workout = self._require_active()
        if not any(we is workout_exercise for we in workout.exercises):
            raise NotFoundError("Workout exercise", workout_exercise.id)

    def _owner_of(self, exercise_set: ExerciseSet) -> WorkoutExercise:
        workout = self._require_active()
        for workout_exercise in workout.exercises:
            if any(s is exercise_set for s in workout_exercise.sets):
                return workout_exercise
        raise NotFoundError("Set", exercise_set.id)

    def _exercise_for(self, workout_exercise: WorkoutExercise) -> Exercise:
        exercise = self._exercises.get(workout_exercise.exercise_id)
        if exercise is None:
            raise NotFoundError("Exercise", workout_exercise.exercise_id)
        return exercise

    def _append_set(
        self,
        workout_exercise: WorkoutExercise,
        weight: float | None,
        reps: int | None,
    ) -> ExerciseSet:
        if len(workout_exercise.sets) >= self._max_sets:
            raise ValidationError(f"An exercise can have at most {self._max_sets} sets")
        exercise_set = ExerciseSet(
            set_number=len(workout_exercise.sets) + 1,
            weight=weight,
            reps=reps,
            workout_exercise_id=workout_exercise.id,
        )
        workout_exercise.sets.append(exercise_set)
        return exercise_set

    def _start_clock(self) -> None:
        self._stop_clock()
        self._clock_handle = self._scheduler.every(TICK_SECONDS, self._tick)

    def _stop_clock(self) -> None:
        if self._clock_handle is not None:
            self._clock_handle.cancel()
            self._clock_handle = None

    def _tick(self) -> None:
        self.elapsed_seconds += TICK_SECONDS
        self._emit()

    def _teardown(self) -> None:
        self._stop_clock()
        self.rest_timer.stop()
        self.current_workout = None
        self.elapsed_seconds = 0

    def _save(self) -> None:
        self._workouts.save()

    def _emit(self) -> None:
        for listener in list(self._listeners):
            listener(self)
