"""
Tests for the JSON history store and the repositories.

Covers the persistence round trip, corrupt-file handling and the
cascade-delete rules of the ownership tree.
"""

import json
from datetime import datetime, timedelta

import pytest

from iron_log.core.catalog import CatalogEntry, load_default_catalog
from iron_log.core.errors import NotFoundError, PersistenceError, ValidationError
from iron_log.core.models import ExerciseSet, Workout, WorkoutExercise
from iron_log.io.history_store import Dataset, HistoryStore
from iron_log.io.repositories import ExerciseRepository, TemplateRepository, WorkoutRepository
from iron_log.io.serializers import workout_to_dict

START = datetime(2026, 2, 10, 7, 30)


def _repos(dataset: Dataset, store: HistoryStore | None = None):
    return (
        ExerciseRepository(dataset, store),
        WorkoutRepository(dataset, store, clock=lambda: START),
        TemplateRepository(dataset, store, clock=lambda: START),
    )


def _workout(exercise_ids: list[str], start: datetime = START, sets_each: int = 2) -> Workout:
    workout = Workout(start_time=start, end_time=start + timedelta(hours=1))
    for order, exercise_id in enumerate(exercise_ids):
        we = WorkoutExercise(exercise_id=exercise_id, order=order, workout_id=workout.id)
        we.sets = [
            ExerciseSet(
                set_number=n,
                weight=100 + n,
                reps=5,
                completed_at=start,
                workout_exercise_id=we.id,
            )
            for n in range(1, sets_each + 1)
        ]
        workout.exercises.append(we)
    return workout


class TestHistoryStore:

    def test_init_creates_files(self, tmp_path):
        store = HistoryStore(tmp_path / "data")
        assert not store.exists()
        store.init()
        assert store.exists()
        assert store.exercises_path.exists()
        assert store.templates_path.exists()
        assert store.load() == Dataset()

    def test_missing_directory_loads_empty(self, tmp_path):
        assert HistoryStore(tmp_path / "nowhere").load() == Dataset()

    def test_round_trip(self, tmp_path):
        store = HistoryStore(tmp_path)
        dataset = Dataset()
        exercises, workouts, templates = _repos(dataset, store)
        bench = exercises.create("Bench Press", "chest", "barbell")
        workout = _workout([bench.id])
        workout.name = "Push"
        workout.notes = "felt strong"
        workout.exercises[0].notes = "paused"
        workout.exercises[0].sets[0].is_personal_record = True
        workout.exercises[0].sets[1].set_type = "to_failure"
        workout.exercises[0].sets[1].rpe = 9
        dataset.workouts.append(workout)
        templates.create("Push", [(bench, 4)])
        exercises.save()

        loaded = store.load()
        assert loaded.exercises == dataset.exercises
        assert loaded.workouts == dataset.workouts
        assert loaded.templates == dataset.templates

    def test_workouts_are_one_json_line_each(self, tmp_path):
        store = HistoryStore(tmp_path)
        dataset = Dataset(workouts=[_workout(["a"]), _workout(["b"], START + timedelta(days=1))])
        store.save(dataset)
        lines = store.workouts_path.read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["exercises"][0]["exercise_id"] == "a"

    def test_corrupt_line_reports_line_number(self, tmp_path):
        store = HistoryStore(tmp_path)
        store.save(Dataset(workouts=[_workout(["a"])]))
        with open(store.workouts_path, "a", encoding="utf-8") as f:
            f.write("{not json\n")
        with pytest.raises(PersistenceError, match="line 2"):
            store.load()

    @pytest.mark.parametrize("path,value", [
        (("order",), "first"),
        (("sets", 0, "weight"), "heavy"),
        (("sets", 0, "weight"), float("nan")),
        (("sets", 0, "reps"), True),
    ])
    def test_bad_field_types_report_line_number(self, tmp_path, path, value):
        store = HistoryStore(tmp_path)
        record = workout_to_dict(_workout(["a"]))
        target = record["exercises"][0]
        for key in path[:-1]:
            target = target[key]
        target[path[-1]] = value
        store.workouts_path.write_text(json.dumps(record) + "\n")
        with pytest.raises(PersistenceError, match="line 1"):
            store.load()

    def test_sets_without_record_marker_count_as_checked(self, tmp_path):
        store = HistoryStore(tmp_path)
        record = workout_to_dict(_workout(["a"]))
        record["exercises"][0]["sets"][0].pop("record_checked")
        record["exercises"][0]["sets"][1].pop("record_checked")
        record["exercises"][0]["sets"][1]["reps"] = None
        store.workouts_path.write_text(json.dumps(record) + "\n")
        sets = store.load().workouts[0].exercises[0].sorted_sets()
        assert sets[0].record_checked
        assert not sets[1].record_checked

    def test_invalid_record_is_persistence_error(self, tmp_path):
        store = HistoryStore(tmp_path)
        store.exercises_path.write_text(
            json.dumps([{"id": "x", "name": "Curl", "muscle_group": "forearms", "equipment": "dumbbell"}])
        )
        with pytest.raises(PersistenceError):
            store.load()

    def test_non_list_file_is_persistence_error(self, tmp_path):
        store = HistoryStore(tmp_path)
        store.templates_path.write_text('{"name": "Push"}')
        with pytest.raises(PersistenceError):
            store.load()

    def test_save_failure_is_surfaced(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        store = HistoryStore(blocker / "data")
        with pytest.raises(PersistenceError):
            store.save(Dataset())


class TestCascadeDelete:

    def test_delete_workout_removes_children_only(self):
        dataset = Dataset()
        exercises, workouts, _ = _repos(dataset)
        bench = exercises.create("Bench Press", "chest", "barbell")
        doomed = _workout([bench.id])
        kept = _workout([bench.id], START + timedelta(days=1))
        dataset.workouts.extend([doomed, kept])
        doomed_children = list(doomed.exercises)

        workouts.delete_workout(doomed)

        assert dataset.workouts == [kept]
        assert all(we.sets == [] for we in doomed_children)
        assert workouts.find_workout_exercise(doomed_children[0].id) is None
        assert exercises.get(bench.id) is bench
        assert len(kept.exercises[0].sets) == 2

    def test_delete_workout_exercise_keeps_parent(self):
        dataset = Dataset()
        _, workouts, _ = _repos(dataset)
        workout = _workout(["a", "b"])
        dataset.workouts.append(workout)
        target = workout.exercises[0]
        target_set = target.sets[0]

        parent = workouts.delete_workout_exercise(target)

        assert parent is workout
        assert workouts.get(workout.id) is workout
        assert [we.exercise_id for we in workout.exercises] == ["b"]
        assert workouts.find_set(target_set.id) is None

    def test_delete_unknown_workout(self):
        _, workouts, _ = _repos(Dataset())
        with pytest.raises(NotFoundError):
            workouts.delete_workout(_workout(["a"]))

    def test_delete_template_keeps_workouts(self):
        dataset = Dataset()
        exercises, workouts, templates = _repos(dataset)
        bench = exercises.create("Bench Press", "chest", "barbell")
        template = templates.create("Push", [(bench, 3)])
        workout = _workout([bench.id])
        workout.template_id = template.id
        dataset.workouts.append(workout)

        templates.delete(template)

        assert templates.fetch_all() == []
        assert template.exercises == []
        assert dataset.workouts == [workout]
        assert exercises.get(bench.id) is bench


class TestExerciseRepository:

    def test_listing_hides_archived(self):
        exercises, _, _ = _repos(Dataset())
        squat = exercises.create("Back Squat", "quads", "barbell")
        exercises.create("Bench Press", "chest", "barbell")
        exercises.archive(squat.id)
        assert [e.name for e in exercises.fetch_all()] == ["Bench Press"]
        assert len(exercises.fetch_all(include_archived=True)) == 2
        assert exercises.get(squat.id).is_archived

    def test_search_and_filter(self):
        exercises, _, _ = _repos(Dataset())
        exercises.create("Bench Press", "chest", "barbell")
        exercises.create("Incline Bench Press", "chest", "barbell")
        exercises.create("Overhead Press", "shoulders", "barbell")
        assert len(exercises.search("bench")) == 2
        assert len(exercises.search("PRESS")) == 3
        assert [e.name for e in exercises.fetch_by_muscle_group("shoulders")] == ["Overhead Press"]
        assert exercises.get_by_name("bench press").name == "Bench Press"
        with pytest.raises(ValidationError):
            exercises.fetch_by_muscle_group("forearms")

    def test_update(self):
        exercises, _, _ = _repos(Dataset())
        curl = exercises.create("Curl", "biceps", "dumbbell")
        exercises.update(curl.id, name=" Hammer Curl ", muscle_group="biceps")
        assert curl.name == "Hammer Curl"
        with pytest.raises(ValidationError):
            exercises.update(curl.id, name="  ")
        with pytest.raises(NotFoundError):
            exercises.update("missing", name="x")

    def test_delete_referenced_exercise_is_refused(self):
        dataset = Dataset()
        exercises, _, _ = _repos(dataset)
        bench = exercises.create("Bench Press", "chest", "barbell")
        dataset.workouts.append(_workout([bench.id]))
        with pytest.raises(ValidationError):
            exercises.delete(bench.id)
        lonely = exercises.create("Cable Fly", "chest", "cable")
        exercises.delete(lonely.id)
        assert exercises.get(lonely.id) is None

    def test_seed_defaults_skips_existing_names(self):
        exercises, _, _ = _repos(Dataset())
        exercises.create("Bench Press", "chest", "barbell")
        added = exercises.seed_defaults([
            CatalogEntry("bench press", "chest", "barbell"),
            CatalogEntry("Deadlift", "back", "barbell"),
        ])
        assert added == 1
        assert not exercises.get_by_name("Deadlift").is_custom

    def test_bundled_catalog(self):
        entries = load_default_catalog()
        names = {e.name for e in entries}
        assert "Bench Press" in names
        assert len(entries) > 100


class TestWorkoutQueries:

    def test_completed_sets_exclude_in_progress_and_given_workout(self):
        dataset = Dataset()
        _, workouts, _ = _repos(dataset)
        older = _workout(["bench"], START - timedelta(days=3))
        newer = _workout(["bench"], START - timedelta(days=1))
        running = _workout(["bench"], START)
        running.end_time = None
        dataset.workouts.extend([older, newer, running])
        assert len(workouts.completed_sets_for_exercise("bench")) == 4
        assert len(workouts.completed_sets_for_exercise("bench", older.id)) == 2
        assert workouts.completed_sets_for_exercise("squat") == []

    def test_previous_workout_exercise(self):
        dataset = Dataset()
        _, workouts, _ = _repos(dataset)
        older = _workout(["bench"], START - timedelta(days=3))
        newer = _workout(["bench"], START - timedelta(days=1))
        dataset.workouts.extend([older, newer])
        assert workouts.previous_workout_exercise("bench") is newer.exercises[0]
        assert workouts.previous_workout_exercise("bench", before=newer.start_time) is older.exercises[0]
        assert workouts.previous_workout_exercise("squat") is None

    def test_fetch_between_and_recent(self):
        dataset = Dataset()
        exercises, workouts, _ = _repos(dataset)
        bench = exercises.create("Bench Press", "chest", "barbell")
        squat = exercises.create("Back Squat", "quads", "barbell")
        row = exercises.create("Barbell Row", "back", "barbell")
        dataset.workouts.extend([
            _workout([squat.id, bench.id], START - timedelta(days=5)),
            _workout([row.id, bench.id], START - timedelta(days=1)),
        ])
        exercises.archive(row.id)
        week = workouts.fetch_between(START - timedelta(days=2), START)
        assert len(week) == 1
        recent = workouts.fetch_recent_exercises(exercises, limit=10)
        assert [e.name for e in recent] == ["Bench Press", "Back Squat"]
        assert len(workouts.fetch_recent_exercises(exercises, limit=1)) == 1

    def test_finish_twice_is_rejected(self):
        dataset = Dataset()
        _, workouts, _ = _repos(dataset)
        workout = workouts.create_workout()
        workouts.finish(workout)
        with pytest.raises(ValidationError):
            workouts.finish(workout)

    def test_rename(self):
        _, workouts, _ = _repos(Dataset())
        workout = workouts.create_workout()
        workouts.rename(workout, "  Legs ")
        assert workout.name == "Legs"
        workouts.rename(workout, "")
        assert workout.name is None


class TestTemplateRepository:

    def test_from_workout_uses_set_counts(self):
        dataset = Dataset()
        _, _, templates = _repos(dataset)
        workout = _workout(["bench", "row"], sets_each=4)
        workout.exercises[1].sets.pop()
        template = templates.create_from_workout(workout, "Upper")
        assert [(te.exercise_id, te.default_sets, te.order) for te in template.sorted_exercises()] == [
            ("bench", 4, 0),
            ("row", 3, 1),
        ]

    def test_fetch_all_orders_by_last_use(self):
        dataset = Dataset()
        _, _, templates = _repos(dataset)
        never = templates.create("Never")
        old = templates.create("Old")
        fresh = templates.create("Fresh")
        old.last_used_at = START - timedelta(days=5)
        fresh.last_used_at = START - timedelta(days=1)
        assert [t.name for t in templates.fetch_all()] == ["Fresh", "Old", "Never"]
        assert never.exercise_count == 0

    def test_rename_and_lookup(self):
        _, _, templates = _repos(Dataset())
        template = templates.create("Push")
        templates.rename(template, "Push A")
        assert templates.get_by_name("push a") is template
        with pytest.raises(ValidationError):
            templates.rename(template, " ")
