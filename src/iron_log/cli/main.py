"""
CLI entry point using Typer.

Provides commands for logging workouts:
- init: Create the data directory and seed the exercise catalog
- start / status / finish / cancel: Workout lifecycle
- add-exercise / add-set / log-set / delete-set: Record sets
- history / stats: Review past workouts
- plates / 1rm / rest: Gym-floor helpers
"""

from .app import app
from .commands import analysis, catalog, templates, timer, workout  # noqa: F401  (register commands)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
