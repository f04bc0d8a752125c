"""Soft delete, single-slot undo and the trash log."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable

from .core.trash import DEFAULT_RETENTION_DAYS, DeletedEntry, split_expired
from .core.tasks import Task
from .ports.timer import Timer, TimerHandle
from .store import TaskStore

logger = logging.getLogger(__name__)

DEFAULT_UNDO_WINDOW = timedelta(seconds=5)

Listener = Callable[["DeletionManager"], None]


@dataclass
class UndoSlot:
    """The most recent deletion, eligible for one-tap undo until its deadline."""

    task: Task
    original_index: int
    deadline: datetime
    entry_id: str


class DeletionManager:
    """
    Delete-with-undo on top of a TaskStore.

    Only the latest deletion can be undone. Older deletions stay in the
    trash and can be restored from there explicitly.
    """

    def __init__(
        self,
        store: TaskStore,
        trash: Iterable[DeletedEntry] = (),
        clock: Callable[[], datetime] = datetime.now,
        timer: Timer | None = None,
        undo_window: timedelta = DEFAULT_UNDO_WINDOW,
    ):
        self.store = store
        self._trash: list[DeletedEntry] = list(trash)
        self._clock = clock
        self._timer = timer
        self.undo_window = undo_window
        self._slot: UndoSlot | None = None
        self._handle: TimerHandle | None = None
        self._listeners: list[Listener] = []

    @property
    def trash(self) -> tuple[DeletedEntry, ...]:
        return tuple(self._trash)

    @property
    def pending_undo(self) -> UndoSlot | None:
        """The armed undo slot, or None once its deadline has passed."""
        if self._slot is not None and self._clock() >= self._slot.deadline:
            self._clear_slot()
        return self._slot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a trash change listener. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def get_entry(self, entry_id: str) -> DeletedEntry | None:
        for entry in self._trash:
            if entry.id == entry_id:
                return entry
        return None

    # ---- undo slot ----

    def _arm(self, entry: DeletedEntry) -> None:
        self._clear_slot()
        slot = UndoSlot(
            task=entry.task,
            original_index=entry.original_index,
            deadline=entry.deleted_at + self.undo_window,
            entry_id=entry.id,
        )
        self._slot = slot
        if self._timer is not None:
            self._handle = self._timer.call_later(
                self.undo_window.total_seconds(),
                lambda: self._expire(slot),
            )

    def _expire(self, slot: UndoSlot) -> None:
        # A superseded slot's callback must not clear its replacement
        if self._slot is slot:
            logger.debug(f"Undo window closed for task {slot.task.id}")
            self._slot = None
            self._handle = None

    def _clear_slot(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._slot = None

    # ---- operations ----

    def delete(self, task_id: str) -> DeletedEntry | None:
        """Move a task to the trash and arm undo for it."""
        removed = self.store.remove(task_id)
        if removed is None:
            return None

        task, index = removed
        entry = DeletedEntry(task=task.copy(), deleted_at=self._clock(), original_index=index)
        self._trash.insert(0, entry)
        self._arm(entry)
        logger.info(f"Deleted task {task.id} from position {index}")
        self._notify()
        return entry

    def undo(self) -> bool:
        """Reverse the latest deletion if its window is still open."""
        slot = self.pending_undo
        if slot is None:
            return False

        self._clear_slot()
        restored_at = self.store.restore(slot.task.copy(), slot.original_index)
        if restored_at is None:
            return False

        self._trash = [e for e in self._trash if e.task.id != slot.task.id]
        logger.info(f"Undid delete of task {slot.task.id}, restored at {restored_at}")
        self._notify()
        return True

    def restore(self, entry_id: str) -> bool:
        """Restore a trash entry explicitly, independent of the undo window."""
        entry = self.get_entry(entry_id)
        if entry is None:
            logger.debug(f"Restore ignored, unknown trash entry {entry_id}")
            return False

        if self._slot is not None and self._slot.task.id == entry.task.id:
            self._clear_slot()

        restored_at = self.store.restore(entry.task.copy(), entry.original_index)
        if restored_at is None:
            return False

        self._trash.remove(entry)
        logger.info(f"Restored task {entry.task.id} from trash at {restored_at}")
        self._notify()
        return True

    def purge_expired(self, max_age_days: int = DEFAULT_RETENTION_DAYS) -> int:
        """Drop entries older than max_age_days. Returns how many were dropped."""
        kept, expired = split_expired(self._trash, self._clock(), max_age_days)
        if not expired:
            return 0

        self._trash = kept
        logger.info(f"Purged {len(expired)} expired trash entries")
        self._notify()
        return len(expired)

    def empty_all(self) -> None:
        """Clear the trash unconditionally."""
        self._clear_slot()
        self._trash = []
        self._notify()
