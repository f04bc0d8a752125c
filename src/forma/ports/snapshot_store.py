"""Snapshot storage interface."""

from typing import Protocol


class SnapshotStore(Protocol):
    """Interface for reading and overwriting whole named documents."""

    def read(self, name: str) -> str | None:
        """Read a document. Returns None if it has never been written."""
        ...

    def write(self, name: str, content: str) -> None:
        """Overwrite a document. Raises OSError on failure."""
        ...
