"""Shared workflow layer between the task list UI and storage.

TaskEngine loads both snapshots at startup, purges expired trash, and saves
the affected snapshot after every committing mutation.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Iterable

from .adapters.file_snapshots import FileSnapshotStore
from .config import Config, load_config
from .core.filters import FilterCriteria, filter_indices, tasks_on_day
from .core.parsing import DateRecognizer, ParsedInput, dateparser_recognizer, parse
from .core.tags import merge_tags, remove_tag
from .core.tasks import Importance, SortMode, Task
from .core.trash import DEFAULT_RETENTION_DAYS, DeletedEntry
from .deletion import DeletionManager
from .persistence import PersistenceGateway
from .ports.snapshot_store import SnapshotStore
from .ports.timer import Timer
from .store import TaskStore

logger = logging.getLogger(__name__)


class TaskEngine:
    """Facade over TaskStore, DeletionManager and PersistenceGateway."""

    def __init__(
        self,
        store: TaskStore,
        deletions: DeletionManager,
        gateway: PersistenceGateway,
        clock: Callable[[], datetime] = datetime.now,
        recognizer: DateRecognizer | None = None,
    ):
        self.store = store
        self.deletions = deletions
        self.gateway = gateway
        self._clock = clock
        self._recognizer = recognizer or dateparser_recognizer()
        store.subscribe(lambda s: self.gateway.save_tasks(s.tasks))
        deletions.subscribe(lambda d: self.gateway.save_trash(d.trash))

    @classmethod
    def load(
        cls,
        snapshots: SnapshotStore,
        *,
        sort_mode: SortMode = SortMode.MANUAL,
        clock: Callable[[], datetime] = datetime.now,
        timer: Timer | None = None,
        undo_window: timedelta = timedelta(seconds=5),
        retention_days: int = DEFAULT_RETENTION_DAYS,
        seed_examples: bool = True,
        recognizer: DateRecognizer | None = None,
    ) -> "TaskEngine":
        """Read both snapshots and purge expired trash."""
        gateway = PersistenceGateway(snapshots, clock=clock, seed_examples=seed_examples)
        store = TaskStore(gateway.load_tasks(), sort_mode=sort_mode)
        deletions = DeletionManager(
            store,
            trash=gateway.load_trash(),
            clock=clock,
            timer=timer,
            undo_window=undo_window,
        )
        engine = cls(store, deletions, gateway, clock=clock, recognizer=recognizer)
        deletions.purge_expired(retention_days)
        logger.debug(f"Loaded {len(store)} tasks and {len(deletions.trash)} trash entries")
        return engine

    # ---- queries ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self.store.tasks

    @property
    def trash(self) -> tuple[DeletedEntry, ...]:
        return self.deletions.trash

    def parse(self, text: str) -> ParsedInput:
        return parse(text, self._clock(), recognizer=self._recognizer)

    def filter(self, criteria: FilterCriteria) -> list[int]:
        return filter_indices(list(self.store.tasks), criteria, self._clock())

    def visible(self, criteria: FilterCriteria) -> list[Task]:
        tasks = self.store.tasks
        return [tasks[i] for i in self.filter(criteria)]

    def tasks_on(self, day: date) -> list[Task]:
        """Tasks scheduled on a calendar day, for the calendar view."""
        tasks = self.store.tasks
        return [tasks[i] for i in tasks_on_day(list(tasks), day)]

    # ---- task mutations ----

    def add(self, text: str, notes: str = "", tags: str | Iterable[str] = "", at_front: bool = True) -> Task | None:
        """Parse free text and insert the resulting task."""
        draft = self.parse(text)
        if not draft.clean_title:
            return None
        task = Task(
            title=draft.clean_title,
            notes=notes,
            scheduled_at=draft.when,
            importance=draft.importance,
            tags=merge_tags([], tags),
        )
        if not self.store.insert(task, at_front=at_front):
            return None
        logger.info(f"Added task {task.id}: {task.title!r}")
        return task

    def insert(self, task: Task, at_front: bool = True) -> bool:
        return self.store.insert(task, at_front=at_front)

    def update(self, task_id: str, mutator: Callable[[Task], None]) -> bool:
        return self.store.update(task_id, mutator)

    def edit(
        self,
        task_id: str,
        *,
        title: str | None = None,
        notes: str | None = None,
        scheduled_at: datetime | None = None,
        clear_schedule: bool = False,
        importance: Importance | None = None,
    ) -> bool:
        """Field-level update used by detail editors."""

        def mutate(task: Task) -> None:
            if title is not None:
                task.title = title
            if notes is not None:
                task.notes = notes
            if clear_schedule:
                task.scheduled_at = None
            elif scheduled_at is not None:
                task.scheduled_at = scheduled_at
            if importance is not None:
                task.importance = importance

        return self.store.update(task_id, mutate)

    def add_tags(self, task_id: str, raw: str | Iterable[str]) -> bool:
        def mutate(task: Task) -> None:
            task.tags = merge_tags(task.tags, raw)

        return self.store.update(task_id, mutate)

    def remove_tag(self, task_id: str, tag: str) -> bool:
        def mutate(task: Task) -> None:
            task.tags = remove_tag(task.tags, tag)

        return self.store.update(task_id, mutate)

    def toggle(self, task_id: str) -> bool:
        return self.store.toggle_done(task_id)

    def remove(self, task_id: str) -> tuple[Task, int] | None:
        """Hard remove, bypassing the trash."""
        return self.store.remove(task_id)

    def restore(self, task: Task, at_index: int) -> int | None:
        return self.store.restore(task, at_index)

    def resort(self) -> None:
        self.store.resort()

    def set_sort_mode(self, mode: SortMode | str) -> None:
        self.store.set_sort_mode(mode)

    def move(self, source_positions: Iterable[int], destination: int) -> bool:
        return self.store.move(source_positions, destination)

    # ---- deletion ----

    def delete(self, task_id: str) -> DeletedEntry | None:
        return self.deletions.delete(task_id)

    def undo(self) -> bool:
        return self.deletions.undo()

    def restore_from_trash(self, entry_id: str) -> bool:
        return self.deletions.restore(entry_id)

    def purge_expired(self, max_age_days: int = DEFAULT_RETENTION_DAYS) -> int:
        return self.deletions.purge_expired(max_age_days)

    def empty_trash(self) -> None:
        self.deletions.empty_all()

    # ---- persistence ----

    def save(self) -> bool:
        """Write both snapshots now."""
        saved_tasks = self.gateway.save_tasks(self.store.tasks)
        saved_trash = self.gateway.save_trash(self.deletions.trash)
        return saved_tasks and saved_trash


def open_engine(config: Config | None = None, timer: Timer | None = None) -> TaskEngine:
    """Create a fully-wired engine from configuration."""
    config = config or load_config()
    return TaskEngine.load(
        FileSnapshotStore(config.data_path),
        sort_mode=config.sort_mode,
        timer=timer,
        undo_window=timedelta(seconds=config.undo_window_seconds),
        retention_days=config.trash_retention_days,
        seed_examples=config.seed_examples,
        recognizer=dateparser_recognizer(config.date_languages),
    )
