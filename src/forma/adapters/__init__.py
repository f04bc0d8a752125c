"""Adapters - I/O implementations of ports."""

from .file_snapshots import FileSnapshotStore
from .timers import AsyncioTimer

__all__ = [
    "FileSnapshotStore",
    "AsyncioTimer",
]
