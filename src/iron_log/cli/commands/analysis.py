"""Analysis commands: history, stats, plates, 1rm."""

from typing import Annotated, Optional

import typer

from ...core.config import WEIGHT_UNIT
from ...core.engine.config_loader import load_model_config
from ...core.one_rep_max import estimate_one_rep_max, in_brzycki_domain
from ...core.plates import describe_plates
from ...core.stats import (
    best_sets,
    current_streak,
    exercise_stats,
    history_summary,
    weight_progression,
)
from .. import views
from ..app import DataDirOption, app, get_store, open_workspace, plate_options
from .workout import resolve_exercise


@app.command()
def history(
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-l", help="Show only the N most recent workouts"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Show finished workouts, most recent first."""
    ws = open_workspace(data_dir)
    workouts = ws.workouts.fetch_finished()
    shown = workouts[:limit] if limit else workouts
    views.print_history(
        shown,
        ws.exercises.names_by_id(),
        history_summary(workouts),
        current_streak(workouts),
    )


@app.command()
def stats(
    name: Annotated[str, typer.Argument(help="Exercise name")],
    data_dir: DataDirOption = None,
) -> None:
    """Show lifetime statistics and best sets for an exercise."""
    ws = open_workspace(data_dir)
    exercise = resolve_exercise(ws, name)
    workouts = ws.workouts.fetch_finished()
    views.print_exercise_stats(
        exercise,
        exercise_stats(workouts, exercise.id),
        best_sets(workouts, exercise.id),
        weight_progression(workouts, exercise.id),
    )


@app.command()
def plates(
    total: Annotated[float, typer.Argument(help="Total load including the bar")],
    bar: Annotated[
        Optional[float],
        typer.Option("--bar", "-b", help="Bar weight (default from config)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Show which plates to load on each side of the bar."""
    config = load_model_config(get_store(data_dir).data_dir)
    options = plate_options(config)
    if bar is not None:
        options["bar_weight"] = bar
    unit = str((config.get("plates", {}) or {}).get("unit", WEIGHT_UNIT))
    views.console.print(describe_plates(total, unit=unit, **options))


@app.command("1rm")
def one_rep_max(
    weight: Annotated[float, typer.Argument(help="Weight lifted")],
    reps: Annotated[int, typer.Argument(help="Reps performed")],
) -> None:
    """Estimate a one-rep max (Brzycki)."""
    if not in_brzycki_domain(reps):
        views.print_error("Reps must be between 1 and 36 for a Brzycki estimate")
        raise typer.Exit(1)
    views.console.print(f"Estimated 1RM: [bold]{estimate_one_rep_max(weight, reps):.1f}[/bold]")
