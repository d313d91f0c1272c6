"""Durable snapshot of the open documents and the active selection."""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from loguru import logger

from mdshelf.storage import read_json_record, write_json_record


class RestoreState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    RESTORING = "restoring"
    NO_SESSION = "no-session"


@dataclass(frozen=True)
class SessionSnapshot:
    open_files: list[str] = field(default_factory=list)
    active_file: str | None = None
    saved_at: int = 0


class SessionStore:
    """Reads and writes the session record at `path`.

    `save` writes wholesale through a temp file so an interrupted write never
    replaces the last good snapshot. `load` treats any unreadable record as
    "no session".
    """

    def __init__(self, path: Path, file_exists: Callable[[str], bool]) -> None:
        self.path = path
        self._file_exists = file_exists

    def save(self, open_identifiers: list[str], active_identifier: str | None) -> bool:
        valid = [identifier for identifier in open_identifiers if self._file_exists(identifier)]
        payload = {
            "openFiles": valid,
            "activeFile": active_identifier,
            "timestamp": int(time.time() * 1000),
        }
        try:
            write_json_record(self.path, payload)
        except OSError as exc:
            logger.error("Failed to save session to {}: {}", self.path, exc)
            return False
        logger.info("Session saved: {} file(s)", len(valid))
        return True

    def load(self) -> SessionSnapshot | None:
        payload = read_json_record(self.path)
        if payload is None:
            return None

        open_files = payload.get("openFiles")
        active_file = payload.get("activeFile")
        saved_at = payload.get("timestamp", 0)
        if not isinstance(open_files, list) or not all(isinstance(item, str) for item in open_files):
            logger.warning("Ignoring session record {}: malformed 'openFiles'", self.path)
            return None
        if active_file is not None and not isinstance(active_file, str):
            logger.warning("Ignoring session record {}: malformed 'activeFile'", self.path)
            return None
        if not isinstance(saved_at, (int, float)) or isinstance(saved_at, bool) or not math.isfinite(saved_at):
            saved_at = 0

        surviving = [identifier for identifier in open_files if self._file_exists(identifier)]
        dropped = len(open_files) - len(surviving)
        if dropped:
            logger.debug("Dropped {} missing file(s) from saved session", dropped)
        return SessionSnapshot(surviving, active_file, int(saved_at))
