"""Task store - owner of the canonical ordered task collection."""

import logging
from typing import Callable, Iterable, Iterator

from .core.reorder import move_open_tasks
from .core.tags import normalize_tags
from .core.tasks import SortMode, Task, sort_tasks

logger = logging.getLogger(__name__)

Listener = Callable[["TaskStore"], None]


class TaskStore:
    """
    Ordered, id-unique task collection.

    All mutation goes through these methods. Subscribers are called after
    every committing change; rejected operations return a falsy value and
    notify nobody.
    """

    def __init__(self, tasks: Iterable[Task] = (), sort_mode: SortMode = SortMode.MANUAL):
        self._tasks: list[Task] = []
        self._sort_mode = SortMode.coerce(sort_mode)
        self._listeners: list[Listener] = []
        self.replace_all(tasks)

    # ---- queries ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        """Snapshot of the stored tasks. Treat them as read-only; change them through update()."""
        return tuple(self._tasks)

    @property
    def sort_mode(self) -> SortMode:
        return self._sort_mode

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(tuple(self._tasks))

    def index_of(self, task_id: str) -> int | None:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        return None

    def get(self, task_id: str) -> Task | None:
        index = self.index_of(task_id)
        return None if index is None else self._tasks[index]

    # ---- change notification ----

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ---- mutations ----

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """Load a collection wholesale, keeping its order. Does not notify."""
        accepted: list[Task] = []
        seen: set[str] = set()
        for task in tasks:
            prepared = _prepare(task)
            if prepared is None or prepared.id in seen:
                logger.debug(f"Dropping invalid or duplicate task {task.id}")
                continue
            seen.add(prepared.id)
            accepted.append(prepared)
        self._tasks = accepted

    def insert(self, task: Task, at_front: bool = True) -> bool:
        """Add a task at the front (or end), then resort."""
        prepared = _prepare(task)
        if prepared is None:
            logger.debug("Rejected task with empty title")
            return False
        if self.index_of(prepared.id) is not None:
            logger.debug(f"Rejected duplicate task id {prepared.id}")
            return False

        if at_front:
            self._tasks.insert(0, prepared)
        else:
            self._tasks.append(prepared)
        self._resort()
        self._notify()
        return True

    def update(self, task_id: str, mutator: Callable[[Task], None]) -> bool:
        """Apply mutator to the task with this id. Unknown id is a no-op."""
        index = self.index_of(task_id)
        if index is None:
            logger.debug(f"Update ignored, unknown task {task_id}")
            return False

        current = self._tasks[index]
        edited = current.copy()
        mutator(edited)
        # The id is immutable whatever the mutator did
        edited.id = current.id

        prepared = _prepare(edited)
        if prepared is None:
            logger.debug(f"Update ignored, empty title for task {task_id}")
            return False

        self._tasks[index] = prepared
        if prepared.sort_signature() != current.sort_signature():
            self._resort()
        self._notify()
        return True

    def toggle_done(self, task_id: str) -> bool:
        """Flip is_done and resort."""
        index = self.index_of(task_id)
        if index is None:
            logger.debug(f"Toggle ignored, unknown task {task_id}")
            return False

        toggled = self._tasks[index].copy()
        toggled.is_done = not toggled.is_done
        self._tasks[index] = toggled
        self._resort()
        self._notify()
        return True

    def remove(self, task_id: str) -> tuple[Task, int] | None:
        """Extract a task with its current global index."""
        index = self.index_of(task_id)
        if index is None:
            logger.debug(f"Remove ignored, unknown task {task_id}")
            return None

        task = self._tasks.pop(index)
        self._notify()
        return task, index

    def restore(self, task: Task, at_index: int) -> int | None:
        """Reinsert at min(at_index, len). Returns the index used."""
        if self.index_of(task.id) is not None:
            logger.debug(f"Restore ignored, task {task.id} already present")
            return None
        prepared = _prepare(task)
        if prepared is None:
            return None

        index = max(0, min(at_index, len(self._tasks)))
        self._tasks.insert(index, prepared)
        self._notify()
        return index

    def resort(self) -> None:
        """Re-establish open-before-done plus mode ordering."""
        self._resort()
        self._notify()

    def set_sort_mode(self, mode: SortMode | str) -> None:
        self._sort_mode = SortMode.coerce(mode)
        self.resort()

    def move(self, source_positions: Iterable[int], destination: int) -> bool:
        """Manual move within the open tasks. Only allowed in manual mode."""
        if self._sort_mode != SortMode.MANUAL:
            logger.debug(f"Move ignored in {self._sort_mode.value} mode")
            return False

        moved = move_open_tasks(self._tasks, source_positions, destination)
        if [t.id for t in moved] == [t.id for t in self._tasks]:
            return False

        self._tasks = moved
        self._notify()
        return True

    def _resort(self) -> None:
        self._tasks = sort_tasks(self._tasks, self._sort_mode)


def _prepare(task: Task) -> Task | None:
    """Trim the title and de-duplicate tags; None if the title is blank."""
    title = task.title.strip()
    if not title:
        return None
    task.title = title
    task.tags = normalize_tags(task.tags)
    return task
