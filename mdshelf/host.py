"""Host bridge: the file system and dialog services the viewer core relies on."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from mdshelf.errors import DocumentReadError


@runtime_checkable
class HostBridge(Protocol):
    """Services supplied by the desktop host."""

    def pick_files(self) -> list[str]:
        """Ask the user for files to open; empty on cancel."""
        ...

    def read_file(self, path: str) -> str:
        """Return the text of path or raise DocumentReadError."""
        ...

    def file_exists(self, path: str) -> bool:
        """Return True when path names an existing regular file."""
        ...


class LocalFileSystem:
    """HostBridge over the local file system, without any dialog support."""

    def pick_files(self) -> list[str]:
        return []

    def read_file(self, path: str) -> str:
        try:
            return Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise DocumentReadError(path, exc.strerror or str(exc)) from exc

    def file_exists(self, path: str) -> bool:
        try:
            return Path(path).is_file()
        except OSError:
            return False


def normalize_path(path: str | Path) -> str:
    """Absolute, user-expanded form of path used as a document identifier."""
    candidate = Path(path).expanduser()
    try:
        return str(candidate.resolve())
    except OSError:
        return str(candidate.absolute())


def display_name(path: str) -> str:
    """Last path segment, or the path itself for a root."""
    return Path(path).name or path


def parent_key(path: str) -> str:
    """Parent directory of path; the file system root for top-level files."""
    parent = str(Path(path).parent)
    return parent if parent not in ("", ".") else "/"
