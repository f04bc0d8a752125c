"""Trash entries and age-based expiry."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .tasks import Task, parse_timestamp

DEFAULT_RETENTION_DAYS = 7


@dataclass
class DeletedEntry:
    """A soft-deleted task kept for manual recovery."""

    task: Task
    deleted_at: datetime
    original_index: int
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def age(self, now: datetime) -> timedelta:
        return now - self.deleted_at

    def is_expired(self, now: datetime, max_age_days: int = DEFAULT_RETENTION_DAYS) -> bool:
        return self.age(now) > timedelta(days=max_age_days)

    def to_dict(self) -> dict:
        """Serialize to the trash document record format."""
        return {
            "id": self.id,
            "task": self.task.to_dict(),
            "deletedAt": self.deleted_at.isoformat(),
            "originalIndex": self.original_index,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DeletedEntry":
        return cls(
            id=str(data["id"]),
            task=Task.from_dict(data["task"]),
            deleted_at=parse_timestamp(data["deletedAt"]),
            original_index=int(data["originalIndex"]),
        )


def split_expired(
    entries: list[DeletedEntry],
    now: datetime,
    max_age_days: int = DEFAULT_RETENTION_DAYS,
) -> tuple[list[DeletedEntry], list[DeletedEntry]]:
    """
    Split into (kept, expired), preserving order.

    Pure function - no I/O.
    """
    kept = [e for e in entries if not e.is_expired(now, max_age_days)]
    expired = [e for e in entries if e.is_expired(now, max_age_days)]
    return kept, expired
