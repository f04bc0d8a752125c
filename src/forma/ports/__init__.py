"""Ports - interfaces/protocols for external dependencies."""

from .snapshot_store import SnapshotStore
from .timer import Timer, TimerHandle

__all__ = [
    "SnapshotStore",
    "Timer",
    "TimerHandle",
]
