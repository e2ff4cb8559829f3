"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of workouts, history and analytics.
"""

from typing import Any, Mapping, Sequence

from rich.console import Console
from rich.table import Table

from ..core.models import (
    EQUIPMENT_LABELS,
    MUSCLE_GROUP_LABELS,
    SET_TYPE_LABELS,
    Exercise,
    ExerciseSet,
    ProgressIndicator,
    Template,
    Workout,
)
from ..core.plates import compact_plates, format_plate
from ..core.rest_timer import TimerSnapshot
from ..core.stats import BestSet, ExerciseStats, HistorySummary, format_duration

console = Console()
err_console = Console(stderr=True)

PROGRESS_MARKS: dict[str, str] = {
    "up": "[green]▲[/green]",
    "down": "[red]▼[/red]",
    "none": "",
}


def _fmt_weight(weight: float | None) -> str:
    return format_plate(weight) if weight is not None else "-"


def _fmt_set_cells(exercise_set: ExerciseSet) -> tuple[str, str, str]:
    weight = _fmt_weight(exercise_set.weight)
    reps = str(exercise_set.reps) if exercise_set.reps is not None else "-"
    if exercise_set.is_completed:
        status = "[green]✓[/green]"
    else:
        status = "[dim]·[/dim]"
    return weight, reps, status


def format_workout_table(
    workout: Workout,
    exercise_names: Mapping[str, str],
    progress: Mapping[str, ProgressIndicator] | None = None,
    plate_options: Mapping[str, Any] | None = None,
) -> Table:
    """
    Create a Rich table listing every set of a workout.

    Args:
        workout: Workout to display
        exercise_names: {exercise_id: name}
        progress: Optional {set_id: indicator} against the previous occurrence
        plate_options: Keyword arguments for compact_plates (bar, plates, tolerance)

    Returns:
        Rich Table object
    """
    table = Table(title=workout.display_name(exercise_names))

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="cyan")
    table.add_column("Set", justify="right")
    table.add_column("Type", style="magenta")
    table.add_column("Weight", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("RPE", justify="right", style="dim")
    table.add_column("", width=2)  # done
    table.add_column("", width=3)  # PR / progress
    table.add_column("Plates", style="dim")

    for position, workout_exercise in enumerate(workout.sorted_exercises(), 1):
        name = exercise_names.get(workout_exercise.exercise_id, "?")
        for index, exercise_set in enumerate(workout_exercise.sorted_sets()):
            weight, reps, status = _fmt_set_cells(exercise_set)
            marks = "[yellow]PR[/yellow]" if exercise_set.is_personal_record else ""
            if progress is not None and not marks:
                marks = PROGRESS_MARKS[progress.get(exercise_set.id, "none")]
            plates = ""
            if exercise_set.weight is not None:
                plates = compact_plates(exercise_set.weight, **(plate_options or {})) or ""
            table.add_row(
                str(position) if index == 0 else "",
                name if index == 0 else "",
                str(exercise_set.set_number),
                SET_TYPE_LABELS[exercise_set.set_type],
                weight,
                reps,
                str(exercise_set.rpe) if exercise_set.rpe is not None else "",
                status,
                marks,
                plates,
            )
        if workout_exercise.notes:
            table.add_row("", f"[dim]{workout_exercise.notes}[/dim]", *[""] * 8)

    return table


def print_workout(
    workout: Workout,
    exercise_names: Mapping[str, str],
    progress: Mapping[str, ProgressIndicator] | None = None,
    elapsed_seconds: float | None = None,
    plate_options: Mapping[str, Any] | None = None,
) -> None:
    """Print a workout with its totals line."""
    console.print(format_workout_table(workout, exercise_names, progress, plate_options))
    duration = elapsed_seconds if workout.is_in_progress else workout.duration_seconds
    parts = [
        f"Sets: [bold]{workout.total_sets}[/bold]",
        f"Volume: [bold]{workout.total_volume:,.0f}[/bold]",
    ]
    if duration is not None:
        parts.insert(0, f"Time: [bold]{format_duration(duration)}[/bold]")
    if workout.personal_records_count:
        parts.append(f"PRs: [yellow]{workout.personal_records_count}[/yellow]")
    console.print("  ".join(parts))


def format_history_table(workouts: Sequence[Workout], exercise_names: Mapping[str, str]) -> Table:
    """
    Create a Rich table summarising finished workouts, most recent first.
    """
    table = Table(title="Workout History")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Workout")
    table.add_column("Duration", justify="right")
    table.add_column("Sets", justify="right")
    table.add_column("Volume", justify="right", style="bold")
    table.add_column("PRs", justify="right", style="yellow")

    for i, workout in enumerate(workouts, 1):
        duration = workout.duration_seconds
        table.add_row(
            str(i),
            workout.start_time.strftime("%Y-%m-%d %H:%M"),
            workout.display_name(exercise_names),
            format_duration(duration) if duration is not None else "-",
            str(workout.total_sets),
            f"{workout.total_volume:,.0f}",
            str(workout.personal_records_count or ""),
        )

    return table


def print_history(
    workouts: Sequence[Workout],
    exercise_names: Mapping[str, str],
    summary: HistorySummary,
    streak: int,
) -> None:
    """Print workout history with totals."""
    if not workouts:
        print_info("No finished workouts yet.")
        return
    console.print(format_history_table(workouts, exercise_names))
    console.print(
        f"Workouts: [bold]{summary.workouts}[/bold]  "
        f"Volume: [bold]{summary.total_volume:,.0f}[/bold]  "
        f"PRs: [yellow]{summary.personal_records}[/yellow]  "
        f"Streak: [bold]{streak}[/bold] day(s)"
    )


def format_exercise_table(exercises: Sequence[Exercise]) -> Table:
    table = Table(title="Exercises")
    table.add_column("Name", style="cyan")
    table.add_column("Muscle group", style="magenta")
    table.add_column("Equipment")
    table.add_column("", style="dim")
    for exercise in exercises:
        table.add_row(
            exercise.name,
            MUSCLE_GROUP_LABELS[exercise.muscle_group],
            EQUIPMENT_LABELS[exercise.equipment],
            "custom" if exercise.is_custom else "",
        )
    return table


def print_exercise_stats(
    exercise: Exercise,
    stats: ExerciseStats,
    best: Sequence[BestSet],
    weight_points: Sequence[tuple],
) -> None:
    """Print lifetime numbers, best sets and the recent weight trend."""
    console.print(f"[bold cyan]{exercise.name}[/bold cyan]")
    console.print(
        f"Workouts: [bold]{stats.workout_count}[/bold]  "
        f"Sets: [bold]{stats.total_sets}[/bold]  "
        f"Volume: [bold]{stats.total_volume:,.0f}[/bold]  "
        f"Est. 1RM: [bold]{stats.estimated_1rm:.1f}[/bold]"
    )
    if best:
        table = Table(title="Best Sets", show_header=True, header_style="dim")
        table.add_column("Record")
        table.add_column("Weight", justify="right")
        table.add_column("Reps", justify="right")
        table.add_column("Date", style="cyan")
        for b in best:
            table.add_row(b.kind, format_plate(b.weight), str(b.reps), b.performed_on.strftime("%Y-%m-%d"))
        console.print(table)
    if weight_points:
        trend = "  ".join(f"{d:%m-%d} {format_plate(w)}" for d, w in weight_points[-8:])
        console.print(f"[dim]Top weight:[/dim] {trend}")


def format_template_table(templates: Sequence[Template], exercise_names: Mapping[str, str]) -> Table:
    table = Table(title="Templates")
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Name", style="cyan")
    table.add_column("Exercises")
    table.add_column("Last used", style="dim")
    for i, template in enumerate(templates, 1):
        names = [
            f"{exercise_names.get(te.exercise_id, '?')} ×{te.default_sets}"
            for te in template.sorted_exercises()
        ]
        table.add_row(
            str(i),
            template.name,
            ", ".join(names),
            template.last_used_at.strftime("%Y-%m-%d") if template.last_used_at else "never",
        )
    return table


def rest_status_text(snapshot: TimerSnapshot) -> str:
    """One-line rest timer status."""
    label = f"{snapshot.exercise_name} {snapshot.set_label}".strip()
    if snapshot.state == "completed":
        return f"[green]Rest over[/green] {label}"
    paused = " [yellow](paused)[/yellow]" if snapshot.is_paused else ""
    return f"Rest [bold]{format_duration(snapshot.remaining_seconds)}[/bold] {label}{paused}"


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
