"""Catalog commands: init, exercises list/add/archive."""

from typing import Annotated, Optional

import typer

from ...core.models import EQUIPMENT_LABELS, MUSCLE_GROUP_LABELS
from .. import views
from ..app import DataDirOption, app, exercises_app, get_store, handle_errors, open_workspace
from .workout import resolve_exercise


@app.command()
def init(data_dir: DataDirOption = None) -> None:
    """
    Create the data directory and seed the default exercise catalog.

    Safe to re-run: existing data is kept and only missing catalog
    entries are added.
    """
    store = get_store(data_dir)
    with handle_errors():
        store.init()
    ws = open_workspace(store.data_dir)
    with handle_errors():
        added = ws.exercises.seed_defaults()
        ws.exercises.save()
    views.print_success(f"Data directory ready: {store.data_dir}")
    views.print_info(f"Added {added} exercises to the catalog.")


@exercises_app.command("list")
def list_exercises(
    muscle_group: Annotated[
        Optional[str],
        typer.Option("--muscle-group", "-m", help=f"One of: {', '.join(MUSCLE_GROUP_LABELS)}"),
    ] = None,
    search: Annotated[
        Optional[str],
        typer.Option("--search", "-s", help="Case-insensitive name filter"),
    ] = None,
    recent: Annotated[
        bool,
        typer.Option("--recent", help="Only exercises from recent workouts"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """List active exercises."""
    ws = open_workspace(data_dir)
    with handle_errors():
        if recent:
            limit = int((ws.config.get("workout", {}) or {}).get("recent_exercises_limit", 10))
            exercises = ws.workouts.fetch_recent_exercises(ws.exercises, limit=limit)
        elif muscle_group is not None:
            exercises = ws.exercises.fetch_by_muscle_group(muscle_group)
        else:
            exercises = ws.exercises.fetch_all()
    if search:
        needle = search.strip().lower()
        exercises = [e for e in exercises if needle in e.name.lower()]
    if not exercises:
        views.print_info("No exercises found.")
        return
    views.console.print(views.format_exercise_table(exercises))


@exercises_app.command("add")
def add_exercise(
    name: Annotated[str, typer.Argument(help="Exercise name")],
    muscle_group: Annotated[
        str,
        typer.Option("--muscle-group", "-m", help=f"One of: {', '.join(MUSCLE_GROUP_LABELS)}"),
    ],
    equipment: Annotated[
        str,
        typer.Option("--equipment", "-e", help=f"One of: {', '.join(EQUIPMENT_LABELS)}"),
    ] = "other",
    data_dir: DataDirOption = None,
) -> None:
    """Add a custom exercise."""
    ws = open_workspace(data_dir)
    if ws.exercises.get_by_name(name) is not None:
        views.print_error(f"Exercise already exists: {name}")
        raise typer.Exit(1)
    with handle_errors():
        exercise = ws.exercises.create(name, muscle_group, equipment)
        ws.exercises.save()
    views.print_success(f"Added {exercise.name}")


@exercises_app.command("archive")
def archive_exercise(
    name: Annotated[str, typer.Argument(help="Exercise name")],
    data_dir: DataDirOption = None,
) -> None:
    """Hide an exercise from listings; past workouts keep it."""
    ws = open_workspace(data_dir)
    exercise = resolve_exercise(ws, name)
    with handle_errors():
        ws.exercises.archive(exercise.id)
        ws.exercises.save()
    views.print_success(f"Archived {exercise.name}")
