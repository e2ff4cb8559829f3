"""Workout commands: start, status, add-exercise, add-set, log-set, finish, cancel, ..."""

from typing import Annotated, Optional

import typer

from ...core.errors import NotFoundError
from ...core.models import SET_TYPE_LABELS, Exercise, ExerciseSet, WorkoutExercise
from ...core.session import WorkoutSession
from ...core.stats import format_duration
from .. import views
from ..app import (
    DataDirOption,
    Workspace,
    app,
    handle_errors,
    open_active_session,
    open_workspace,
    plate_options,
)


def resolve_exercise(ws: Workspace, name: str) -> Exercise:
    """
    Find an active exercise by exact name, else by a unique substring match.

    Exits with code 1 when nothing (or more than one thing) matches.
    """
    exercise = ws.exercises.get_by_name(name)
    if exercise is not None:
        return exercise
    matches = ws.exercises.search(name)
    if len(matches) == 1:
        return matches[0]
    if not matches:
        views.print_error(f"No exercise matches '{name}'")
        views.print_info("Add it with 'iron-log exercises add'.")
    else:
        views.print_error(f"'{name}' matches {len(matches)} exercises:")
        for match in matches[:10]:
            views.console.print(f"  {match.name}")
    raise typer.Exit(1)


def _exercise_at(session: WorkoutSession, position: int) -> WorkoutExercise:
    """1-based exercise position in the current workout."""
    exercises = session.current_workout.sorted_exercises()  # type: ignore[union-attr]
    if position < 1 or position > len(exercises):
        views.print_error(f"Exercise position must be between 1 and {len(exercises)}")
        raise typer.Exit(1)
    return exercises[position - 1]


def _set_at(workout_exercise: WorkoutExercise, set_number: int) -> ExerciseSet:
    for exercise_set in workout_exercise.sets:
        if exercise_set.set_number == set_number:
            return exercise_set
    views.print_error(str(NotFoundError("Set", set_number)))
    raise typer.Exit(1)


def _print_session(ws: Workspace, session: WorkoutSession) -> None:
    workout = session.current_workout
    if workout is None:
        return
    progress = {
        s.id: session.progress_for(s)
        for we in workout.exercises
        for s in we.sets
    }
    views.print_workout(
        workout,
        ws.exercises.names_by_id(),
        progress=progress,
        elapsed_seconds=session.elapsed_seconds,
        plate_options=plate_options(ws.config),
    )


@app.command()
def start(
    template: Annotated[
        Optional[str],
        typer.Option("--template", "-t", help="Template name to seed the workout from"),
    ] = None,
    name: Annotated[
        Optional[str],
        typer.Option("--name", "-n", help="Workout name"),
    ] = None,
    repeat: Annotated[
        Optional[int],
        typer.Option("--repeat", "-r", help="Repeat workout # from 'history'"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Start a new workout.

    Fails if a workout is already in progress; finish or cancel it first.
    """
    ws = open_workspace(data_dir)
    session = ws.session()

    with handle_errors():
        if template is not None:
            tpl = ws.templates.get_by_name(template)
            if tpl is None:
                views.print_error(f"Template not found: {template}")
                raise typer.Exit(1)
            workout = session.start_from_template(tpl)
        elif repeat is not None:
            finished = ws.workouts.fetch_finished()
            if repeat < 1 or repeat > len(finished):
                views.print_error(f"Workout # must be between 1 and {len(finished)}")
                raise typer.Exit(1)
            workout = session.repeat_workout(finished[repeat - 1])
        else:
            workout = session.start_new_workout(name=name)

    views.print_success(f"Started workout at {workout.start_time:%H:%M}")
    if workout.exercises:
        _print_session(ws, session)
    session.close()


@app.command()
def status(data_dir: DataDirOption = None) -> None:
    """Show the workout in progress."""
    ws = open_workspace(data_dir)
    session = open_active_session(ws)
    _print_session(ws, session)
    session.close()


@app.command("add-exercise")
def add_exercise(
    name: Annotated[str, typer.Argument(help="Exercise name (exact or unique partial match)")],
    data_dir: DataDirOption = None,
) -> None:
    """Add an exercise to the workout; its first set is prefilled from history."""
    ws = open_workspace(data_dir)
    exercise = resolve_exercise(ws, name)
    session = open_active_session(ws)
    with handle_errors():
        session.add_exercise(exercise)
    views.print_success(f"Added {exercise.name}")
    _print_session(ws, session)
    session.close()


@app.command("add-set")
def add_set(
    position: Annotated[int, typer.Argument(help="Exercise position (1-based)")],
    weight: Annotated[Optional[float], typer.Option("--weight", "-w", help="Weight")] = None,
    reps: Annotated[Optional[int], typer.Option("--reps", "-r", help="Reps")] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Add a set to an exercise.

    Without --weight/--reps the set copies the previous one.
    """
    ws = open_workspace(data_dir)
    session = open_active_session(ws)
    workout_exercise = _exercise_at(session, position)
    with handle_errors():
        if weight is None and reps is None:
            exercise_set = session.add_next_set(workout_exercise)
        else:
            exercise_set = session.add_set(workout_exercise, weight=weight, reps=reps)
    views.print_success(f"Added set {exercise_set.set_number}")
    _print_session(ws, session)
    session.close()


@app.command("log-set")
def log_set(
    position: Annotated[int, typer.Argument(help="Exercise position (1-based)")],
    set_number: Annotated[int, typer.Argument(help="Set number (1-based)")],
    weight: Annotated[float, typer.Option("--weight", "-w", help="Weight lifted")],
    reps: Annotated[int, typer.Option("--reps", "-r", help="Reps performed")],
    set_type: Annotated[
        Optional[str],
        typer.Option("--type", "-t", help="warmup | working | drop_set | to_failure"),
    ] = None,
    rpe: Annotated[Optional[int], typer.Option("--rpe", help="Perceived exertion 1-10")] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Record weight and reps for a set and mark it complete."""
    ws = open_workspace(data_dir)
    session = open_active_session(ws)
    workout_exercise = _exercise_at(session, position)
    exercise_set = _set_at(workout_exercise, set_number)

    with handle_errors():
        if set_type is not None:
            session.update_set_type(exercise_set, set_type)
        if rpe is not None:
            session.update_set_rpe(exercise_set, rpe)
        session.update_set(exercise_set, weight, reps)
        session.complete_set(exercise_set)

    label = SET_TYPE_LABELS[exercise_set.set_type]
    views.print_success(f"Set {exercise_set.set_number} ({label}) done: {weight:g} × {reps}")
    if exercise_set.is_personal_record:
        views.console.print("[bold yellow]New personal record![/bold yellow]")
    progress = session.progress_for(exercise_set)
    if progress != "none":
        views.console.print(f"vs last time: {views.PROGRESS_MARKS[progress]}")
    if session.is_rest_timer_active:
        views.print_info(
            f"Rest {format_duration(session.rest_time_remaining)} "
            f"(run 'iron-log rest --type {exercise_set.set_type}' to time it)"
        )
    session.close()


@app.command("delete-set")
def delete_set(
    position: Annotated[int, typer.Argument(help="Exercise position (1-based)")],
    set_number: Annotated[int, typer.Argument(help="Set number (1-based)")],
    data_dir: DataDirOption = None,
) -> None:
    """Delete a set; later sets are renumbered."""
    ws = open_workspace(data_dir)
    session = open_active_session(ws)
    workout_exercise = _exercise_at(session, position)
    exercise_set = _set_at(workout_exercise, set_number)
    with handle_errors():
        session.delete_set(exercise_set)
    views.print_success(f"Deleted set {set_number}")
    _print_session(ws, session)
    session.close()


@app.command("remove-exercise")
def remove_exercise(
    position: Annotated[int, typer.Argument(help="Exercise position (1-based)")],
    data_dir: DataDirOption = None,
) -> None:
    """Remove an exercise and its sets from the workout."""
    ws = open_workspace(data_dir)
    session = open_active_session(ws)
    workout_exercise = _exercise_at(session, position)
    with handle_errors():
        session.remove_exercise(workout_exercise)
    views.print_success(f"Removed exercise #{position}")
    _print_session(ws, session)
    session.close()


@app.command("move-exercise")
def move_exercise(
    position: Annotated[int, typer.Argument(help="Exercise position to move (1-based)")],
    to: Annotated[int, typer.Argument(help="New position (1-based)")],
    data_dir: DataDirOption = None,
) -> None:
    """Move an exercise to a new position."""
    ws = open_workspace(data_dir)
    session = open_active_session(ws)
    count = len(session.current_workout.exercises)  # type: ignore[union-attr]
    _exercise_at(session, position)
    if to < 1 or to > count:
        views.print_error(f"New position must be between 1 and {count}")
        raise typer.Exit(1)
    # move-before semantics: moving down lands after the target
    destination = to if to > position else to - 1
    with handle_errors():
        session.reorder_exercises([position - 1], destination)
    _print_session(ws, session)
    session.close()


@app.command()
def notes(
    position: Annotated[int, typer.Argument(help="Exercise position (1-based)")],
    text: Annotated[str, typer.Argument(help="Notes; empty string clears them")],
    data_dir: DataDirOption = None,
) -> None:
    """Set notes on an exercise in the workout."""
    ws = open_workspace(data_dir)
    session = open_active_session(ws)
    workout_exercise = _exercise_at(session, position)
    with handle_errors():
        session.update_exercise_notes(workout_exercise, text)
    views.print_success("Notes saved" if workout_exercise.notes else "Notes cleared")
    session.close()


@app.command()
def finish(data_dir: DataDirOption = None) -> None:
    """Finish the workout in progress."""
    ws = open_workspace(data_dir)
    session = open_active_session(ws)
    with handle_errors():
        workout = session.finish_workout()
    views.print_success("Workout finished")
    views.print_workout(workout, ws.exercises.names_by_id(), plate_options=plate_options(ws.config))


@app.command()
def cancel(
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation")] = False,
    data_dir: DataDirOption = None,
) -> None:
    """Discard the workout in progress with all its sets."""
    ws = open_workspace(data_dir)
    session = open_active_session(ws)
    if not force and not views.confirm_action("Discard the current workout?"):
        views.print_info("Cancelled.")
        session.close()
        raise typer.Exit(0)
    with handle_errors():
        session.cancel_workout()
    views.print_success("Workout discarded")
