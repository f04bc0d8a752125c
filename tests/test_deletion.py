"""Tests for delete, undo and trash."""

import asyncio
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from forma.adapters.timers import AsyncioTimer
from forma.core.tasks import Importance, Task
from forma.core.trash import DeletedEntry
from forma.deletion import DeletionManager
from forma.store import TaskStore


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeTimer:
    """Records scheduled callbacks; tests fire them by hand."""

    def __init__(self):
        self.scheduled = []

    def call_later(self, delay, callback):
        handle = MagicMock()
        self.scheduled.append((delay, callback, handle))
        return handle


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 15, 9, 0))


@pytest.fixture
def store():
    return TaskStore(
        [
            Task(id="a", title="Alpha", notes="n", tags=["Work"], importance=Importance.HIGH),
            Task(id="b", title="Bravo", scheduled_at=datetime(2025, 1, 16, 10, 0)),
            Task(id="c", title="Charlie"),
        ]
    )


@pytest.fixture
def manager(store, clock):
    return DeletionManager(store, clock=clock)


def ids(store):
    return [t.id for t in store.tasks]


class TestDelete:
    def test_moves_task_to_trash(self, manager, store, clock):
        entry = manager.delete("b")
        assert ids(store) == ["a", "c"]
        assert entry.task.id == "b"
        assert entry.original_index == 1
        assert entry.deleted_at == clock.now
        assert manager.trash == (entry,)

    def test_newest_entry_first(self, manager):
        manager.delete("a")
        manager.delete("b")
        assert [e.task.id for e in manager.trash] == ["b", "a"]

    def test_unknown_id(self, manager):
        assert manager.delete("zzz") is None
        assert manager.trash == ()
        assert manager.pending_undo is None

    def test_arms_undo_slot(self, manager, clock):
        manager.delete("b")
        slot = manager.pending_undo
        assert slot.task.id == "b"
        assert slot.original_index == 1
        assert slot.deadline == clock.now + timedelta(seconds=5)


class TestUndo:
    def test_restores_identical_task_at_original_index(self, manager, store, clock):
        original = store.get("b").copy()
        manager.delete("b")
        clock.advance(4)
        assert manager.undo() is True
        assert ids(store) == ["a", "b", "c"]
        assert store.get("b") == original
        assert manager.trash == ()
        assert manager.pending_undo is None

    def test_restore_index_clamped(self, manager, store):
        manager.delete("c")
        store.remove("a")
        store.remove("b")
        assert manager.undo() is True
        assert ids(store) == ["c"]

    def test_after_deadline_is_noop(self, manager, store, clock):
        entry = manager.delete("b")
        clock.advance(5)
        assert manager.undo() is False
        assert ids(store) == ["a", "c"]
        # Still recoverable from the trash
        assert manager.restore(entry.id) is True
        assert ids(store) == ["a", "b", "c"]

    def test_nothing_pending(self, manager):
        assert manager.undo() is False

    def test_only_latest_delete_is_undoable(self, manager, store):
        manager.delete("a")
        manager.delete("b")
        assert manager.undo() is True
        assert ids(store) == ["b", "c"]
        assert manager.undo() is False
        # The superseded deletion keeps its trash entry
        assert [e.task.id for e in manager.trash] == ["a"]

    def test_second_undo_is_noop(self, manager):
        manager.delete("a")
        assert manager.undo() is True
        assert manager.undo() is False


class TestTimer:
    def test_arming_schedules_expiry(self, store, clock):
        timer = FakeTimer()
        manager = DeletionManager(store, clock=clock, timer=timer)
        manager.delete("a")
        delay, callback, _ = timer.scheduled[0]
        assert delay == 5.0
        callback()
        assert manager.pending_undo is None

    def test_new_delete_cancels_previous_handle(self, store, clock):
        timer = FakeTimer()
        manager = DeletionManager(store, clock=clock, timer=timer)
        manager.delete("a")
        manager.delete("b")
        first_handle = timer.scheduled[0][2]
        first_handle.cancel.assert_called_once()

    def test_stale_callback_does_not_clear_new_slot(self, store, clock):
        timer = FakeTimer()
        manager = DeletionManager(store, clock=clock, timer=timer)
        manager.delete("a")
        manager.delete("b")
        stale_callback = timer.scheduled[0][1]
        stale_callback()
        assert manager.pending_undo.task.id == "b"

    def test_undo_cancels_handle(self, store, clock):
        timer = FakeTimer()
        manager = DeletionManager(store, clock=clock, timer=timer)
        manager.delete("a")
        manager.undo()
        timer.scheduled[0][2].cancel.assert_called_once()

    def test_asyncio_timer_expires_slot(self, store):
        async def scenario():
            manager = DeletionManager(
                store,
                timer=AsyncioTimer(),
                undo_window=timedelta(milliseconds=20),
            )
            manager.delete("a")
            assert manager._slot is not None
            await asyncio.sleep(0.1)
            assert manager._slot is None
            return manager.undo()

        assert asyncio.run(scenario()) is False
        assert ids(store) == ["b", "c"]


class TestRestoreFromTrash:
    def test_restores_and_removes_entry(self, manager, store):
        entry = manager.delete("a")
        manager.delete("c")
        assert manager.restore(entry.id) is True
        assert ids(store) == ["a", "b"]
        assert [e.task.id for e in manager.trash] == ["c"]

    def test_clears_slot_for_same_task(self, manager, store):
        entry = manager.delete("a")
        manager.restore(entry.id)
        assert manager.pending_undo is None
        assert manager.undo() is False
        assert ids(store) == ["a", "b", "c"]

    def test_keeps_slot_for_other_task(self, manager):
        older = manager.delete("a")
        manager.delete("b")
        manager.restore(older.id)
        assert manager.pending_undo.task.id == "b"

    def test_unknown_entry(self, manager):
        assert manager.restore("nope") is False


class TestPurgeAndEmpty:
    def test_purge_expired(self, store, clock):
        old = DeletedEntry(task=Task(title="Old"), deleted_at=clock.now - timedelta(days=8), original_index=0)
        edge = DeletedEntry(task=Task(title="Edge"), deleted_at=clock.now - timedelta(days=7), original_index=0)
        fresh = DeletedEntry(task=Task(title="Fresh"), deleted_at=clock.now - timedelta(days=1), original_index=0)
        manager = DeletionManager(store, trash=[fresh, edge, old], clock=clock)
        assert manager.purge_expired() == 1
        assert manager.trash == (fresh, edge)

    def test_purge_custom_age(self, store, clock):
        entry = DeletedEntry(task=Task(title="x"), deleted_at=clock.now - timedelta(days=2), original_index=0)
        manager = DeletionManager(store, trash=[entry], clock=clock)
        assert manager.purge_expired(max_age_days=1) == 1
        assert manager.trash == ()

    def test_empty_all(self, manager):
        manager.delete("a")
        manager.delete("b")
        manager.empty_all()
        assert manager.trash == ()
        assert manager.pending_undo is None


class TestSubscribe:
    def test_notified_on_trash_changes(self, manager):
        listener = MagicMock()
        manager.subscribe(listener)
        entry = manager.delete("a")
        manager.restore(entry.id)
        manager.empty_all()
        assert listener.call_count == 3

    def test_not_notified_on_noop(self, manager):
        listener = MagicMock()
        manager.subscribe(listener)
        manager.delete("zzz")
        manager.undo()
        manager.purge_expired()
        listener.assert_not_called()
