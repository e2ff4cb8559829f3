"""Shared Typer app objects, shared option types, and workspace utilities."""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any, Iterator, Optional

import typer
from rich.logging import RichHandler

from ..core.config import AVAILABLE_PLATES, BAR_WEIGHT, MAX_SETS_PER_EXERCISE, PLATE_TOLERANCE
from ..core.engine.config_loader import get_data_dir, load_model_config
from ..core.errors import IronLogError
from ..core.rest_timer import RestPolicy
from ..core.session import WorkoutSession
from ..io.history_store import Dataset, HistoryStore
from ..io.repositories import ExerciseRepository, TemplateRepository, WorkoutRepository
from . import views

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-D", help="Data directory (default: $IRON_LOG_HOME or ~/.iron-log)"),
]

app = typer.Typer(
    name="iron-log",
    help="Strength-training log: workouts, personal records, rest timer and plate math.",
    no_args_is_help=True,
)
exercises_app = typer.Typer(help="Browse and edit the exercise catalog.", no_args_is_help=True)
templates_app = typer.Typer(help="Manage workout templates.", no_args_is_help=True)
app.add_typer(exercises_app, name="exercises")
app.add_typer(templates_app, name="templates")


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """
    Log workouts, track personal records and time your rest.
    """
    configure_logging(verbose)


def configure_logging(verbose: bool) -> None:
    """Route log records through Rich; DEBUG with --verbose, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=views.err_console, show_path=False)],
        force=True,
    )


@dataclass
class Workspace:
    """Loaded data plus the repositories operating on it."""

    store: HistoryStore
    dataset: Dataset
    exercises: ExerciseRepository
    workouts: WorkoutRepository
    templates: TemplateRepository
    config: dict[str, Any]

    def session(self) -> WorkoutSession:
        """Build a session honouring the configured rest policy and set limit."""
        workout_cfg = self.config.get("workout", {}) or {}
        return WorkoutSession(
            self.workouts,
            self.exercises,
            self.templates,
            rest_policy=RestPolicy.from_config(self.config),
            max_sets=int(workout_cfg.get("max_sets_per_exercise", MAX_SETS_PER_EXERCISE)),
        )


def plate_options(config: dict[str, Any]) -> dict[str, Any]:
    """Keyword arguments for the plate helpers from the ``plates`` config section."""
    section = config.get("plates", {}) or {}
    return {
        "bar_weight": float(section.get("bar_weight", BAR_WEIGHT)),
        "plates": tuple(float(p) for p in section.get("available", AVAILABLE_PLATES)),
        "tolerance": float(section.get("tolerance", PLATE_TOLERANCE)),
    }


def get_store(data_dir: Path | None) -> HistoryStore:
    """Get the store for a data directory, or the default location."""
    return HistoryStore(data_dir if data_dir is not None else get_data_dir())


def open_workspace(data_dir: Path | None) -> Workspace:
    """
    Load the dataset and wire up repositories.

    Exits with code 1 when the data directory is not initialized or
    cannot be read.
    """
    store = get_store(data_dir)
    if not store.exists():
        views.print_error(f"No data found in {store.data_dir}")
        views.print_info("Run 'iron-log init' first.")
        raise typer.Exit(1)
    with handle_errors():
        dataset = store.load()
    config = load_model_config(store.data_dir)
    return Workspace(
        store=store,
        dataset=dataset,
        exercises=ExerciseRepository(dataset, store),
        workouts=WorkoutRepository(dataset, store),
        templates=TemplateRepository(dataset, store),
        config=config,
    )


def open_active_session(ws: Workspace) -> WorkoutSession:
    """Resume the in-progress workout or exit with a hint."""
    session = ws.session()
    if session.load_in_progress_workout() is None:
        views.print_error("No workout in progress")
        views.print_info("Start one with 'iron-log start'.")
        raise typer.Exit(1)
    return session


@contextmanager
def handle_errors() -> Iterator[None]:
    """Report IronLogError as a red message and exit 1."""
    try:
        yield
    except IronLogError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
