"""Constants and on-disk locations for mdshelf state."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

APP_NAME = "mdshelf"
STATE_DIR_ENV = "MDSHELF_STATE_DIR"
DEFAULT_STATE_DIR_NAME = ".mdshelf"
SESSION_FILE_NAME = "session.json"
RECENT_FILE_NAME = "recent-files.json"

RECENT_CAPACITY = 20
RECENT_MENU_LIMIT = 10
RECENT_SIDEBAR_LIMIT = 10

MARKDOWN_EXTENSIONS = ("md", "markdown", "mdown", "mkdn", "mkd")
TEXT_EXTENSIONS = ("txt",)


@dataclass(frozen=True)
class AppPaths:
    """Locations of the persisted session and recent-file records."""

    state_dir: Path

    @property
    def session_file(self) -> Path:
        return self.state_dir / SESSION_FILE_NAME

    @property
    def recent_file(self) -> Path:
        return self.state_dir / RECENT_FILE_NAME


def resolve_app_paths(state_dir: str | Path | None = None) -> AppPaths:
    """Resolve the state directory from an explicit value, the environment, or home."""
    if state_dir is not None:
        return AppPaths(Path(state_dir).expanduser())
    env_value = os.environ.get(STATE_DIR_ENV, "").strip()
    if env_value:
        return AppPaths(Path(env_value).expanduser())
    return AppPaths(Path.home() / DEFAULT_STATE_DIR_NAME)


def dialog_name_filters() -> str:
    """Qt-style name filter string for the open-file dialog."""
    markdown = " ".join(f"*.{ext}" for ext in MARKDOWN_EXTENSIONS)
    text = " ".join(f"*.{ext}" for ext in TEXT_EXTENSIONS)
    return f"Markdown ({markdown});;Text ({text});;All Files (*)"
