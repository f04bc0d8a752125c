"""Pure task domain logic - no I/O dependencies."""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class Importance(str, Enum):
    """Task importance. Values are the literal strings stored on disk."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"

    @property
    def weight(self) -> int:
        """Sort weight: high sorts first."""
        return {Importance.HIGH: 0, Importance.NORMAL: 1, Importance.LOW: 2}[self]

    @classmethod
    def coerce(cls, value: "str | Importance") -> "Importance":
        """Accept any casing ("High", "HIGH", "high")."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


class SortMode(str, Enum):
    """How the open and done partitions are ordered."""

    MANUAL = "manual"
    DATE = "date"
    IMPORTANCE = "importance"

    @classmethod
    def coerce(cls, value: "str | SortMode") -> "SortMode":
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


def new_task_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Task:
    """A single task in the daily list."""

    title: str
    id: str = field(default_factory=new_task_id)
    is_done: bool = False
    notes: str = ""
    scheduled_at: datetime | None = None
    importance: Importance = Importance.NORMAL
    tags: list[str] = field(default_factory=list)

    def copy(self) -> "Task":
        """Independent copy (tags list included)."""
        return replace(self, tags=list(self.tags))

    def is_overdue(self, now: datetime) -> bool:
        """Open and scheduled before now."""
        return not self.is_done and self.scheduled_at is not None and self.scheduled_at < now

    def sort_signature(self) -> tuple:
        """Fields that can change this task's position after a resort."""
        return (self.is_done, self.scheduled_at, self.importance, self.title.casefold())

    def to_dict(self) -> dict:
        """Serialize to the tasks document record format."""
        data = {
            "id": self.id,
            "title": self.title,
            "isDone": self.is_done,
            "notes": self.notes,
            "importance": self.importance.value,
            "tags": list(self.tags),
        }
        if self.scheduled_at is not None:
            data["scheduledAt"] = self.scheduled_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from a tasks document record.

        Raises KeyError/TypeError/ValueError on malformed records.
        """
        scheduled = data.get("scheduledAt")
        tags = data.get("tags", [])
        if not isinstance(tags, list):
            raise TypeError(f"tags must be a list, got {type(tags).__name__}")
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            is_done=bool(data.get("isDone", False)),
            notes=data.get("notes", "") or "",
            scheduled_at=parse_timestamp(scheduled) if scheduled else None,
            importance=Importance.coerce(data.get("importance", Importance.NORMAL.value)),
            tags=[str(t) for t in tags],
        )


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into a naive local datetime."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def partition_done(tasks: list[Task]) -> tuple[list[Task], list[Task]]:
    """
    Stable split into (open, done).

    Pure function - no I/O.
    """
    open_tasks = [t for t in tasks if not t.is_done]
    done_tasks = [t for t in tasks if t.is_done]
    return open_tasks, done_tasks


def _date_key(t: Task) -> tuple:
    # Unscheduled tasks sort after every scheduled one
    if t.scheduled_at is None:
        return (1, datetime.min, t.title.casefold())
    return (0, t.scheduled_at, t.title.casefold())


def _importance_key(t: Task) -> tuple[int, str]:
    return (t.importance.weight, t.title.casefold())


def sort_tasks(tasks: list[Task], mode: SortMode) -> list[Task]:
    """
    Order tasks for display: open tasks first, done tasks after.

    Within each group:
    - manual: existing order kept
    - date: ascending schedule, unscheduled last, then title
    - importance: high, normal, low, then title

    Pure function - no I/O.
    """
    open_tasks, done_tasks = partition_done(tasks)

    if mode == SortMode.DATE:
        open_tasks.sort(key=_date_key)
        done_tasks.sort(key=_date_key)
    elif mode == SortMode.IMPORTANCE:
        open_tasks.sort(key=_importance_key)
        done_tasks.sort(key=_importance_key)

    return open_tasks + done_tasks
