"""
File-based storage for the exercise catalog, workouts and templates.

Layout of the data directory:

    exercises.json   JSON list of catalog entries
    workouts.jsonl   one workout per line (exercises and sets nested)
    templates.json   JSON list of templates

The whole dataset is loaded into memory and rewritten on save; the
repositories in io/repositories.py operate on that in-memory Dataset.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from ..core.errors import PersistenceError, ValidationError
from ..core.models import Exercise, Template, Workout
from .serializers import (
    dict_to_exercise,
    dict_to_template,
    dict_to_workout,
    exercise_to_dict,
    template_to_dict,
    workout_to_json_line,
)

logger = logging.getLogger(__name__)


@dataclass
class Dataset:
    """Everything the application persists."""

    exercises: dict[str, Exercise] = field(default_factory=dict)  # by id
    workouts: list[Workout] = field(default_factory=list)
    templates: list[Template] = field(default_factory=list)


class HistoryStore:
    """
    Manages the data directory.

    Read errors (corrupt JSON, invalid records) and write errors (OS
    errors) are raised as PersistenceError.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding the data files
        """
        self.data_dir = Path(data_dir)
        self.exercises_path = self.data_dir / "exercises.json"
        self.workouts_path = self.data_dir / "workouts.jsonl"
        self.templates_path = self.data_dir / "templates.json"

    def exists(self) -> bool:
        """Check if the store has been initialized."""
        return self.workouts_path.exists()

    def init(self) -> None:
        """
        Create the data directory and empty data files if missing.
        """
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            if not self.workouts_path.exists():
                self.workouts_path.touch()
            for path in (self.exercises_path, self.templates_path):
                if not path.exists():
                    path.write_text("[]\n", encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Cannot initialize data directory {self.data_dir}: {e}") from e

    def load(self) -> Dataset:
        """
        Load the full dataset.

        Missing files load as empty collections.

        Raises:
            PersistenceError: If a file cannot be read or holds invalid data
        """
        dataset = Dataset()
        for data in self._load_json_list(self.exercises_path):
            exercise = self._decode(dict_to_exercise, data, self.exercises_path)
            dataset.exercises[exercise.id] = exercise
        dataset.workouts = self._load_workouts()
        dataset.templates = [
            self._decode(dict_to_template, data, self.templates_path)
            for data in self._load_json_list(self.templates_path)
        ]
        logger.debug(
            "Loaded %d exercises, %d workouts, %d templates from %s",
            len(dataset.exercises),
            len(dataset.workouts),
            len(dataset.templates),
            self.data_dir,
        )
        return dataset

    def save(self, dataset: Dataset) -> None:
        """
        Write the full dataset.

        Raises:
            PersistenceError: On any OS error
        """
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(self.exercises_path, "w", encoding="utf-8") as f:
                json.dump(
                    [exercise_to_dict(e) for e in dataset.exercises.values()], f, indent=2
                )
            workouts = sorted(dataset.workouts, key=lambda w: w.start_time)
            with open(self.workouts_path, "w", encoding="utf-8") as f:
                for workout in workouts:
                    f.write(workout_to_json_line(workout) + "\n")
            with open(self.templates_path, "w", encoding="utf-8") as f:
                json.dump([template_to_dict(t) for t in dataset.templates], f, indent=2)
        except OSError as e:
            raise PersistenceError(f"Cannot write data to {self.data_dir}: {e}") from e
        logger.debug("Saved dataset to %s", self.data_dir)

    def _load_json_list(self, path: Path) -> list[dict]:
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise PersistenceError(f"Cannot read {path}: {e}") from e
        if not text.strip():
            return []
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Error parsing {path}: {e}") from e
        if not isinstance(data, list):
            raise PersistenceError(f"Error parsing {path}: expected a JSON list")
        return data

    def _load_workouts(self) -> list[Workout]:
        if not self.workouts_path.exists():
            return []
        workouts: list[Workout] = []
        try:
            with open(self.workouts_path, "r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        workouts.append(dict_to_workout(json.loads(line)))
                    except (json.JSONDecodeError, ValidationError, TypeError, ValueError) as e:
                        raise PersistenceError(
                            f"Error parsing line {line_num} in {self.workouts_path}: {e}"
                        ) from e
        except OSError as e:
            raise PersistenceError(f"Cannot read {self.workouts_path}: {e}") from e
        return workouts

    @staticmethod
    def _decode(decoder, data, path: Path):
        try:
            return decoder(data)
        except (ValidationError, TypeError, ValueError) as e:
            raise PersistenceError(f"Invalid record in {path}: {e}") from e
