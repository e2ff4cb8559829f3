"""
Minimal smoke tests for the iron-log CLI.

Tests basic functionality:
- App runs without errors
- Data directory initializes with the exercise catalog
- A workout can be started, logged and finished
- Helpers (plates, 1rm, rest) print sensible output
"""

from datetime import datetime
from pathlib import Path

import pytest
from typer.testing import CliRunner

from iron_log.cli import views
from iron_log.cli.commands import timer as timer_command
from iron_log.cli.main import app
from iron_log.core.models import ExerciseSet, Workout, WorkoutExercise
from iron_log.io.history_store import HistoryStore


runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """An initialized data directory."""
    path = tmp_path / "iron"
    result = runner.invoke(app, ["init", "--data-dir", str(path)])
    assert result.exit_code == 0, result.output
    return path


def _run(data_dir: Path, *args: str):
    return runner.invoke(app, [*args, "--data-dir", str(data_dir)])


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "workout" in result.output.lower()

    def test_init_seeds_catalog(self, data_dir):
        dataset = HistoryStore(data_dir).load()
        names = {e.name for e in dataset.exercises.values()}
        assert "Bench Press" in names
        assert (data_dir / "workouts.jsonl").exists()

    def test_init_is_idempotent(self, data_dir):
        before = len(HistoryStore(data_dir).load().exercises)
        result = _run(data_dir, "init")
        assert result.exit_code == 0
        assert "Added 0 exercises" in result.output
        assert len(HistoryStore(data_dir).load().exercises) == before

    def test_commands_require_init(self, tmp_path):
        result = _run(tmp_path / "empty", "status")
        assert result.exit_code == 1
        assert "init" in result.output

    def test_status_without_workout(self, data_dir):
        result = _run(data_dir, "status")
        assert result.exit_code == 1
        assert "No workout in progress" in result.output


class TestWorkoutFlow:

    def test_log_and_finish(self, data_dir):
        assert _run(data_dir, "start").exit_code == 0

        result = _run(data_dir, "add-exercise", "Bench Press")
        assert result.exit_code == 0, result.output

        result = _run(data_dir, "log-set", "1", "1", "--weight", "185", "--reps", "8")
        assert result.exit_code == 0, result.output
        assert "personal record" in result.output
        assert "Rest 2:00" in result.output

        assert _run(data_dir, "add-set", "1").exit_code == 0
        result = _run(data_dir, "log-set", "1", "2", "--weight", "185", "--reps", "10")
        assert result.exit_code == 0, result.output

        result = _run(data_dir, "finish")
        assert result.exit_code == 0, result.output

        workouts = HistoryStore(data_dir).load().workouts
        assert len(workouts) == 1
        assert workouts[0].end_time is not None
        assert workouts[0].total_volume == 3330
        assert workouts[0].personal_records_count == 2

        result = _run(data_dir, "history")
        assert result.exit_code == 0
        assert "Workout History" in result.output

        result = _run(data_dir, "stats", "Bench Press")
        assert result.exit_code == 0
        assert "Est. 1RM" in result.output

    def test_start_twice_fails(self, data_dir):
        assert _run(data_dir, "start").exit_code == 0
        result = _run(data_dir, "start")
        assert result.exit_code == 1
        assert "in progress" in result.output

    def test_cancel_discards_workout(self, data_dir):
        _run(data_dir, "start")
        _run(data_dir, "add-exercise", "Bench Press")
        result = _run(data_dir, "cancel", "--force")
        assert result.exit_code == 0
        assert HistoryStore(data_dir).load().workouts == []

    def test_bad_positions(self, data_dir):
        _run(data_dir, "start")
        _run(data_dir, "add-exercise", "Bench Press")
        assert _run(data_dir, "add-set", "3").exit_code == 1
        assert _run(data_dir, "log-set", "1", "9", "--weight", "100", "--reps", "5").exit_code == 1

    def test_invalid_set_type(self, data_dir):
        _run(data_dir, "start")
        _run(data_dir, "add-exercise", "Bench Press")
        result = _run(data_dir, "log-set", "1", "1", "--weight", "100", "--reps", "5", "--type", "giant")
        assert result.exit_code == 1
        assert "Invalid set_type" in result.output

    def test_non_finite_weight_is_rejected(self, data_dir):
        _run(data_dir, "start")
        _run(data_dir, "add-exercise", "Bench Press")
        result = _run(data_dir, "log-set", "1", "1", "--weight", "nan", "--reps", "5")
        assert result.exit_code == 1
        assert "finite" in result.output
        workout = HistoryStore(data_dir).load().workouts[0]
        assert workout.exercises[0].sets[0].completed_at is None

    def test_unknown_exercise(self, data_dir):
        _run(data_dir, "start")
        result = _run(data_dir, "add-exercise", "Underwater Basket Press")
        assert result.exit_code == 1


class TestCatalogAndTemplates:

    def test_add_custom_exercise(self, data_dir):
        result = _run(data_dir, "exercises", "add", "Zercher Squat", "--muscle-group", "quads", "--equipment", "barbell")
        assert result.exit_code == 0, result.output
        result = _run(data_dir, "exercises", "list", "--search", "zercher")
        assert "Zercher" in result.output

    def test_add_exercise_with_bad_group(self, data_dir):
        result = _run(data_dir, "exercises", "add", "Wrist Roller", "--muscle-group", "forearms")
        assert result.exit_code == 1

    def test_template_seeds_workout(self, data_dir):
        result = _run(data_dir, "templates", "create", "Push", "Bench Press", "Overhead Press", "--sets", "2")
        assert result.exit_code == 0, result.output
        result = _run(data_dir, "start", "--template", "Push")
        assert result.exit_code == 0, result.output
        workout = HistoryStore(data_dir).load().workouts[0]
        assert [len(we.sets) for we in workout.sorted_exercises()] == [2, 2]
        templates = HistoryStore(data_dir).load().templates
        assert templates[0].last_used_at is not None


class TestConfigOverrides:

    def test_plate_tolerance_from_config(self, tmp_path):
        assert "Can't make" in _run(tmp_path, "plates", "231").output
        (tmp_path / "config.yaml").write_text("plates:\n  tolerance: 0.6\n")
        result = _run(tmp_path, "plates", "231")
        assert result.exit_code == 0
        assert "2×45 + 1×2.5" in result.output

    def test_template_sets_from_config(self, data_dir):
        (data_dir / "config.yaml").write_text("workout:\n  default_template_sets: 5\n")
        result = _run(data_dir, "templates", "create", "Legs", "Front Squat")
        assert result.exit_code == 0, result.output
        template = HistoryStore(data_dir).load().templates[0]
        assert [te.default_sets for te in template.exercises] == [5]

    def test_explicit_sets_beat_config(self, data_dir):
        (data_dir / "config.yaml").write_text("workout:\n  default_template_sets: 5\n")
        _run(data_dir, "templates", "create", "Legs", "Front Squat", "--sets", "2")
        template = HistoryStore(data_dir).load().templates[0]
        assert [te.default_sets for te in template.exercises] == [2]

    def test_workout_table_uses_plate_options(self):
        workout = Workout(start_time=datetime(2026, 1, 1, 18, 0))
        we = WorkoutExercise(exercise_id="bench", order=0, workout_id=workout.id)
        we.sets = [ExerciseSet(set_number=1, weight=135, reps=5)]
        workout.exercises.append(we)
        default = views.format_workout_table(workout, {"bench": "Bench Press"})
        light_bar = views.format_workout_table(
            workout, {"bench": "Bench Press"}, plate_options={"bar_weight": 35.0}
        )
        assert list(default.columns[-1].cells) == ["1×45"]
        assert list(light_bar.columns[-1].cells) == ["1×45 + 1×5"]


class TestHelpers:

    def test_plates(self, tmp_path):
        result = _run(tmp_path, "plates", "225")
        assert result.exit_code == 0
        assert "2×45" in result.output

    def test_plates_below_bar(self, tmp_path):
        result = _run(tmp_path, "plates", "30")
        assert "too low" in result.output

    def test_one_rep_max(self):
        result = runner.invoke(app, ["1rm", "185", "10"])
        assert result.exit_code == 0
        assert "246.7" in result.output

    def test_one_rep_max_out_of_domain(self):
        result = runner.invoke(app, ["1rm", "100", "37"])
        assert result.exit_code == 1

    def test_rest_countdown(self, tmp_path, monkeypatch):
        monkeypatch.setattr(timer_command.time, "sleep", lambda _seconds: None)
        result = _run(tmp_path, "rest", "3")
        assert result.exit_code == 0, result.output
        assert "Rest over (3s)" in result.output

    def test_rest_by_set_type(self, tmp_path, monkeypatch):
        monkeypatch.setattr(timer_command.time, "sleep", lambda _seconds: None)
        result = _run(tmp_path, "rest", "--type", "warmup")
        assert result.exit_code == 0, result.output
        assert "Rest over (60s)" in result.output
