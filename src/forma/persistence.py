"""Persistence gateway - task and trash snapshots."""

import json
import logging
from datetime import datetime, timedelta
from typing import Callable

from .core.tasks import Task
from .core.trash import DeletedEntry
from .ports.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

TASKS_DOCUMENT = "tasks"
TRASH_DOCUMENT = "trash"

# Malformed documents or records surface as one of these
_DECODE_ERRORS = (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError)


def example_tasks(now: datetime) -> list[Task]:
    """Starter tasks for a fresh or unreadable task list."""
    return [
        Task(title="Check email", scheduled_at=now + timedelta(minutes=30)),
        Task(title="Daily review"),
    ]


class PersistenceGateway:
    """
    Full-snapshot load/save of the task list and the trash.

    Reads never raise: unreadable documents fall back to defaults. Writes
    never raise: failures are logged and the in-memory state stays
    authoritative.
    """

    def __init__(
        self,
        snapshots: SnapshotStore,
        clock: Callable[[], datetime] = datetime.now,
        seed_examples: bool = True,
    ):
        self.snapshots = snapshots
        self._clock = clock
        self.seed_examples = seed_examples

    def _fallback_tasks(self) -> list[Task]:
        return example_tasks(self._clock()) if self.seed_examples else []

    def _read(self, name: str) -> list | None:
        """Read a document as a JSON array. None if missing; raises if malformed."""
        content = self.snapshots.read(name)
        if content is None:
            return None
        data = json.loads(content)
        if not isinstance(data, list):
            raise TypeError(f"{name} document must be a JSON array, got {type(data).__name__}")
        return data

    def _write(self, name: str, records: list[dict]) -> bool:
        try:
            self.snapshots.write(name, json.dumps(records, indent=2, ensure_ascii=False))
        except OSError as e:
            logger.warning(f"Failed to save {name}: {e}")
            return False
        return True

    def load_tasks(self) -> list[Task]:
        """Load the task list, seeding examples on first launch or corruption."""
        try:
            records = self._read(TASKS_DOCUMENT)
            if records is None:
                logger.info("No saved tasks, starting with examples")
                return self._fallback_tasks()
            return [Task.from_dict(r) for r in records]
        except OSError as e:
            logger.warning(f"Failed to read tasks: {e}")
        except _DECODE_ERRORS as e:
            logger.warning(f"Tasks document is corrupt, starting fresh: {e}")
        return self._fallback_tasks()

    def load_trash(self) -> list[DeletedEntry]:
        """Load the trash log; anything unreadable means an empty trash."""
        try:
            records = self._read(TRASH_DOCUMENT)
            if records is None:
                return []
            return [DeletedEntry.from_dict(r) for r in records]
        except OSError as e:
            logger.warning(f"Failed to read trash: {e}")
        except _DECODE_ERRORS as e:
            logger.warning(f"Trash document is corrupt, starting empty: {e}")
        return []

    def save_tasks(self, tasks: list[Task] | tuple[Task, ...]) -> bool:
        return self._write(TASKS_DOCUMENT, [t.to_dict() for t in tasks])

    def save_trash(self, entries: list[DeletedEntry] | tuple[DeletedEntry, ...]) -> bool:
        return self._write(TRASH_DOCUMENT, [e.to_dict() for e in entries])
