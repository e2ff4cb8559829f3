"""Template commands: templates list/create/from-workout/delete."""

from typing import Annotated, Optional

import typer

from ...core.config import DEFAULT_TEMPLATE_SETS
from .. import views
from ..app import DataDirOption, handle_errors, open_workspace, templates_app
from .workout import resolve_exercise


@templates_app.command("list")
def list_templates(data_dir: DataDirOption = None) -> None:
    """List templates, most recently used first."""
    ws = open_workspace(data_dir)
    templates = ws.templates.fetch_all()
    if not templates:
        views.print_info("No templates yet.")
        return
    views.console.print(views.format_template_table(templates, ws.exercises.names_by_id()))


@templates_app.command("create")
def create_template(
    name: Annotated[str, typer.Argument(help="Template name")],
    exercises: Annotated[list[str], typer.Argument(help="Exercise names in order")],
    sets: Annotated[
        Optional[int],
        typer.Option("--sets", "-s", help="Default sets per exercise (default from config)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Create a template from a list of exercises."""
    ws = open_workspace(data_dir)
    if ws.templates.get_by_name(name) is not None:
        views.print_error(f"Template already exists: {name}")
        raise typer.Exit(1)
    if sets is None:
        workout_cfg = ws.config.get("workout", {}) or {}
        sets = int(workout_cfg.get("default_template_sets", DEFAULT_TEMPLATE_SETS))
    resolved = [(resolve_exercise(ws, exercise_name), sets) for exercise_name in exercises]
    with handle_errors():
        template = ws.templates.create(name, resolved)
        ws.templates.save()
    views.print_success(f"Created template '{template.name}' with {template.exercise_count} exercises")


@templates_app.command("from-workout")
def template_from_workout(
    name: Annotated[str, typer.Argument(help="Template name")],
    workout_number: Annotated[
        Optional[int],
        typer.Option("--workout", "-w", help="Workout # from 'history' (default: latest)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Save a finished workout's exercises as a template."""
    ws = open_workspace(data_dir)
    finished = ws.workouts.fetch_finished()
    if not finished:
        views.print_error("No finished workouts")
        raise typer.Exit(1)
    index = (workout_number or 1) - 1
    if index < 0 or index >= len(finished):
        views.print_error(f"Workout # must be between 1 and {len(finished)}")
        raise typer.Exit(1)
    with handle_errors():
        template = ws.templates.create_from_workout(finished[index], name)
        ws.templates.save()
    views.print_success(f"Created template '{template.name}' with {template.exercise_count} exercises")


@templates_app.command("delete")
def delete_template(
    name: Annotated[str, typer.Argument(help="Template name")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation")] = False,
    data_dir: DataDirOption = None,
) -> None:
    """Delete a template. Workouts started from it are kept."""
    ws = open_workspace(data_dir)
    template = ws.templates.get_by_name(name)
    if template is None:
        views.print_error(f"Template not found: {name}")
        raise typer.Exit(1)
    if not force and not views.confirm_action(f"Delete template '{template.name}'?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)
    with handle_errors():
        ws.templates.delete(template)
        ws.templates.save()
    views.print_success(f"Deleted template '{template.name}'")
