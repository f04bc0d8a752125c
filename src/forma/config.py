"""Configuration management for Forma."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .core.tasks import SortMode

logger = logging.getLogger(__name__)

FORMA_HOME = Path(os.environ.get("FORMA_HOME", Path.home() / "forma"))
CONFIG_FILE = FORMA_HOME / "config" / "forma.conf"
DATA_DIR = FORMA_HOME / "data"

_TRUE = {"1", "true", "yes", "on"}


@dataclass
class Config:
    """Forma configuration."""

    data_dir: str = ""
    sort_mode: SortMode = SortMode.MANUAL
    undo_window_seconds: float = 5.0
    trash_retention_days: int = 7
    date_languages: list[str] = field(default_factory=lambda: ["en"])
    seed_examples: bool = True

    @property
    def data_path(self) -> Path:
        """Resolved data directory."""
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return DATA_DIR


def _unquote(value: str) -> str:
    """Handle quoted values with inline comments: "value" # comment"""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def parse_config(text: str) -> Config:
    """Parse forma.conf content into a Config."""
    config = Config()

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "data_dir":
                config.data_dir = value
            case "sort_mode":
                try:
                    config.sort_mode = SortMode.coerce(value)
                except ValueError:
                    logger.warning(f"Unknown SORT_MODE {value!r}, keeping {config.sort_mode.value}")
            case "undo_window_seconds":
                try:
                    config.undo_window_seconds = float(value)
                except ValueError:
                    logger.warning(f"UNDO_WINDOW_SECONDS must be a number, got {value!r}")
            case "trash_retention_days":
                try:
                    config.trash_retention_days = int(value)
                except ValueError:
                    logger.warning(f"TRASH_RETENTION_DAYS must be an integer, got {value!r}")
            case "date_languages":
                languages = [lang.strip() for lang in value.split(",") if lang.strip()]
                if languages:
                    config.date_languages = languages
            case "seed_examples":
                config.seed_examples = value.lower() in _TRUE

    return config


def load_config(path: Path | None = None) -> Config:
    """Load configuration from forma.conf file."""
    path = path or CONFIG_FILE
    if not path.exists():
        return Config()
    return parse_config(path.read_text())
