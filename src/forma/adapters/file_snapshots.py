"""File-based snapshot storage adapter."""

import os
import tempfile
from pathlib import Path


class FileSnapshotStore:
    """
    File-based snapshot storage.

    Implements SnapshotStore protocol. Each document is a JSON file in the
    data directory, replaced atomically on every write.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir).expanduser()

    def path_for(self, name: str) -> Path:
        """Get the file path for a document name."""
        return self.data_dir / f"{name}.json"

    def read(self, name: str) -> str | None:
        """Read a document. Returns None if not found."""
        path = self.path_for(name)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, name: str, content: str) -> None:
        """Overwrite a document via a temp file in the same directory."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(name)

        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def exists(self, name: str) -> bool:
        """Check if a document has been written."""
        return self.path_for(name).exists()
