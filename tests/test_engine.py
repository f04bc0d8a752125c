"""Tests for the engine workflow layer."""

import json
from datetime import date, datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest

from forma.adapters.file_snapshots import FileSnapshotStore
from forma.config import Config
from forma.core.filters import FilterCriteria
from forma.core.tasks import Importance, SortMode, Task
from forma.core.trash import DeletedEntry
from forma.engine import TaskEngine, open_engine


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def no_dates(text, now):
    return []


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 15, 9, 0))


@pytest.fixture
def snapshots(tmp_path):
    return FileSnapshotStore(tmp_path)


@pytest.fixture
def engine(snapshots, clock):
    return TaskEngine.load(snapshots, clock=clock, seed_examples=False, recognizer=no_dates)


def saved_titles(snapshots):
    return [r["title"] for r in json.loads(snapshots.read("tasks"))]


class TestLoad:
    def test_seeds_examples_on_first_launch(self, snapshots, clock):
        engine = TaskEngine.load(snapshots, clock=clock, recognizer=no_dates)
        assert [t.title for t in engine.tasks] == ["Check email", "Daily review"]

    def test_purges_expired_trash_at_startup(self, snapshots, clock):
        old = DeletedEntry(task=Task(title="Old"), deleted_at=clock.now - timedelta(days=10), original_index=0)
        recent = DeletedEntry(task=Task(title="Recent"), deleted_at=clock.now - timedelta(days=1), original_index=0)
        snapshots.write("trash", json.dumps([recent.to_dict(), old.to_dict()]))

        engine = TaskEngine.load(snapshots, clock=clock, seed_examples=False, recognizer=no_dates)

        assert [e.task.title for e in engine.trash] == ["Recent"]
        # The purge is persisted immediately
        assert [r["task"]["title"] for r in json.loads(snapshots.read("trash"))] == ["Recent"]

    def test_custom_retention(self, snapshots, clock):
        entry = DeletedEntry(task=Task(title="x"), deleted_at=clock.now - timedelta(days=3), original_index=0)
        snapshots.write("trash", json.dumps([entry.to_dict()]))
        engine = TaskEngine.load(snapshots, clock=clock, retention_days=2, recognizer=no_dates)
        assert engine.trash == ()

    def test_keeps_saved_order_until_resorted(self, snapshots, clock):
        snapshots.write(
            "tasks",
            json.dumps([Task(id="n", title="N").to_dict(), Task(id="h", title="H", importance=Importance.HIGH).to_dict()]),
        )
        engine = TaskEngine.load(snapshots, sort_mode=SortMode.IMPORTANCE, clock=clock, recognizer=no_dates)
        assert engine.store.sort_mode == SortMode.IMPORTANCE
        assert [t.id for t in engine.tasks] == ["n", "h"]
        engine.resort()
        assert [t.id for t in engine.tasks] == ["h", "n"]


class TestAdd:
    def test_parses_and_inserts_at_front(self, engine):
        engine.add("First")
        task = engine.add("Call mom tomorrow !high", notes="birthday", tags="family, Family")
        assert engine.tasks[0] is task
        assert task.title == "Call mom"
        assert task.importance == Importance.HIGH
        assert task.scheduled_at == datetime(2025, 1, 16)
        assert task.notes == "birthday"
        assert task.tags == ["family"]

    def test_blank_input_rejected(self, engine):
        assert engine.add("   ") is None
        assert engine.tasks == ()

    def test_every_mutation_saves(self, engine, snapshots):
        task = engine.add("Water plants")
        assert saved_titles(snapshots) == ["Water plants"]
        engine.edit(task.id, title="Water ferns")
        assert saved_titles(snapshots) == ["Water ferns"]
        engine.toggle(task.id)
        assert json.loads(snapshots.read("tasks"))[0]["isDone"] is True


class TestEditAndTags:
    def test_edit_fields(self, engine, clock):
        task = engine.add("Draft")
        when = clock.now + timedelta(days=2)
        assert engine.edit(task.id, notes="outline", scheduled_at=when, importance=Importance.LOW) is True
        edited = engine.store.get(task.id)
        assert (edited.notes, edited.scheduled_at, edited.importance) == ("outline", when, Importance.LOW)
        engine.edit(task.id, clear_schedule=True)
        assert engine.store.get(task.id).scheduled_at is None

    def test_edit_blank_title_rejected(self, engine):
        task = engine.add("Draft")
        assert engine.edit(task.id, title=" ") is False
        assert engine.store.get(task.id).title == "Draft"

    def test_add_and_remove_tags(self, engine):
        task = engine.add("Draft")
        engine.add_tags(task.id, "Work, writing")
        engine.add_tags(task.id, ["WORK", "q1"])
        assert engine.store.get(task.id).tags == ["Work", "writing", "q1"]
        engine.remove_tag(task.id, "writing")
        assert engine.store.get(task.id).tags == ["Work", "q1"]


class TestQueries:
    def test_filter_and_visible(self, engine):
        engine.add("Gym", tags="health")
        engine.add("Report urgent", tags="work")
        criteria = FilterCriteria(tags=frozenset({"work"}))
        assert engine.filter(criteria) == [0]
        assert [t.title for t in engine.visible(criteria)] == ["Report"]

    def test_overdue_uses_engine_clock(self, engine, clock):
        engine.add("Pay rent today")
        assert engine.filter(FilterCriteria(overdue_only=True)) == [0]

    def test_tasks_on(self, engine):
        engine.add("Dentist tomorrow")
        engine.add("Someday thing")
        assert [t.title for t in engine.tasks_on(date(2025, 1, 16))] == ["Dentist"]


class TestOrdering:
    def test_sort_mode_change_persists_order(self, engine, snapshots):
        engine.add("Later friday")
        engine.add("Sooner tomorrow")
        engine.add("Whenever")
        engine.set_sort_mode(SortMode.DATE)
        assert saved_titles(snapshots) == ["Sooner", "Later", "Whenever"]

    def test_move_only_in_manual_mode(self, engine):
        engine.add("C")
        engine.add("B")
        engine.add("A")
        assert engine.move([0], 3) is True
        assert [t.title for t in engine.tasks] == ["B", "C", "A"]
        engine.set_sort_mode("importance")
        assert engine.move([0], 3) is False


class TestDeleteUndo:
    def test_delete_then_undo(self, engine, snapshots, clock):
        engine.add("C")
        engine.add("B")
        engine.add("A")
        target = engine.tasks[1]
        original = target.copy()

        engine.delete(target.id)
        assert saved_titles(snapshots) == ["A", "C"]
        assert len(json.loads(snapshots.read("trash"))) == 1

        clock.advance(seconds=3)
        assert engine.undo() is True
        assert engine.tasks[1] == original
        assert saved_titles(snapshots) == ["A", "B", "C"]
        assert json.loads(snapshots.read("trash")) == []

    def test_undo_expires_but_trash_restore_works(self, engine, clock):
        task = engine.add("Keep me")
        entry = engine.delete(task.id)
        clock.advance(seconds=6)
        assert engine.undo() is False
        assert engine.tasks == ()
        assert engine.restore_from_trash(entry.id) is True
        assert [t.title for t in engine.tasks] == ["Keep me"]

    def test_empty_trash(self, engine, snapshots):
        engine.delete(engine.add("Gone").id)
        engine.empty_trash()
        assert engine.trash == ()
        assert json.loads(snapshots.read("trash")) == []


class TestPersistenceFailures:
    def test_write_failure_keeps_memory_state(self, clock):
        snapshots = MagicMock()
        snapshots.read.return_value = None
        snapshots.write.side_effect = OSError("read-only file system")
        engine = TaskEngine.load(snapshots, clock=clock, seed_examples=False, recognizer=no_dates)

        task = engine.add("Still here")

        assert engine.tasks == (task,)
        assert engine.save() is False

    def test_save_then_load_round_trips(self, engine, snapshots, clock):
        engine.add("One tomorrow urgent", tags="a,B")
        engine.add("Two", notes="details")
        engine.toggle(engine.tasks[0].id)
        engine.save()

        reloaded = TaskEngine.load(snapshots, clock=clock, seed_examples=False, recognizer=no_dates)
        assert reloaded.tasks == engine.tasks

    def test_round_trip_after_undo_keeps_order(self, engine, snapshots, clock):
        engine.add("c", at_front=False)
        engine.add("b", at_front=False)
        engine.add("a", at_front=False)
        ids = {t.title: t.id for t in engine.tasks}
        engine.toggle(ids["c"])
        engine.delete(ids["b"])
        engine.toggle(ids["a"])
        engine.undo()
        before = [t.title for t in engine.tasks]

        reloaded = TaskEngine.load(snapshots, clock=clock, seed_examples=False, recognizer=no_dates)

        assert [t.title for t in reloaded.tasks] == before
        assert reloaded.tasks == engine.tasks


class TestOpenEngine:
    def test_wires_config(self, tmp_path):
        config = Config(data_dir=str(tmp_path), sort_mode=SortMode.DATE, undo_window_seconds=2, seed_examples=False)
        with patch("forma.engine.dateparser_recognizer", return_value=no_dates) as mock_recognizer:
            engine = open_engine(config)
        mock_recognizer.assert_called_once_with(["en"])
        assert engine.store.sort_mode == SortMode.DATE
        assert engine.deletions.undo_window == timedelta(seconds=2)
        engine.add("Saved")
        assert (tmp_path / "tasks.json").exists()
