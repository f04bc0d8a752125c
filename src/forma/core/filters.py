"""Derived task views - pure filtering, never mutates the collection."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime

from .tags import tag_key
from .tasks import Importance, Task


@dataclass(frozen=True)
class FilterCriteria:
    """Active filters. Empty fields are ignored; the rest combine with AND."""

    importance: Importance | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    overdue_only: bool = False
    search_text: str = ""

    @property
    def is_empty(self) -> bool:
        return (
            self.importance is None
            and not self.tags
            and not self.overdue_only
            and not self.search_text.strip()
        )

    def without_importance(self) -> "FilterCriteria":
        return replace(self, importance=None)

    def without_tag(self, tag: str) -> "FilterCriteria":
        key = tag_key(tag)
        return replace(self, tags=frozenset(t for t in self.tags if tag_key(t) != key))

    def cleared(self) -> "FilterCriteria":
        return FilterCriteria()


def matches(task: Task, criteria: FilterCriteria, now: datetime) -> bool:
    """Check a single task against every non-empty criterion."""
    if criteria.importance is not None and task.importance != criteria.importance:
        return False

    if criteria.tags:
        wanted = {tag_key(t) for t in criteria.tags}
        if wanted.isdisjoint(tag_key(t) for t in task.tags):
            return False

    if criteria.overdue_only and not task.is_overdue(now):
        return False

    needle = criteria.search_text.strip().lower()
    if needle:
        haystacks = [task.title, task.notes, *task.tags]
        if not any(needle in h.lower() for h in haystacks):
            return False

    return True


def filter_indices(tasks: list[Task], criteria: FilterCriteria, now: datetime | None = None) -> list[int]:
    """
    Global indices of visible tasks, in collection order.

    Pure function - no I/O.
    """
    now = now or datetime.now()
    return [i for i, t in enumerate(tasks) if matches(t, criteria, now)]


def tasks_on_day(tasks: list[Task], day: date) -> list[int]:
    """Global indices of tasks scheduled on a calendar day."""
    return [i for i, t in enumerate(tasks) if t.scheduled_at is not None and t.scheduled_at.date() == day]
