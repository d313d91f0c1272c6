"""Bounded most-recent-first history of opened files."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from mdshelf.config import RECENT_CAPACITY, RECENT_SIDEBAR_LIMIT
from mdshelf.host import display_name, parent_key
from mdshelf.storage import read_json_record, write_json_record


@dataclass(frozen=True)
class RecentEntry:
    identifier: str
    display_name: str
    parent_display_name: str

    @classmethod
    def for_path(cls, identifier: str) -> RecentEntry:
        parent = parent_key(identifier)
        return cls(identifier, display_name(identifier), Path(parent).name or parent)


class RecentLedger:
    """Deduplicated, capacity-bounded list of file identifiers.

    Only identifiers are persisted; display fields are derived when listed.
    """

    def __init__(
        self,
        record_path: Path | None = None,
        file_exists: Callable[[str], bool] | None = None,
        capacity: int = RECENT_CAPACITY,
    ) -> None:
        self.record_path = record_path
        self._file_exists = file_exists or (lambda _path: True)
        self.capacity = capacity
        self._identifiers: list[str] = []

    def __len__(self) -> int:
        return len(self._identifiers)

    def touch(self, identifier: str) -> None:
        if identifier in self._identifiers:
            self._identifiers.remove(identifier)
        self._identifiers.insert(0, identifier)
        del self._identifiers[self.capacity :]

    def clear(self) -> None:
        self._identifiers.clear()

    def identifiers(self) -> list[str]:
        return list(self._identifiers)

    def list(self) -> list[RecentEntry]:
        return [RecentEntry.for_path(identifier) for identifier in self._identifiers]

    def load(self) -> None:
        """Replace the ledger with the persisted record, dropping missing files."""
        self._identifiers = []
        if self.record_path is None:
            return
        payload = read_json_record(self.record_path)
        if payload is None:
            return
        files = payload.get("files", [])
        if not isinstance(files, list):
            logger.warning("Ignoring recent-files record {}: 'files' is not a list", self.record_path)
            return
        for identifier in files:
            if not isinstance(identifier, str) or identifier in self._identifiers:
                continue
            if not self._file_exists(identifier):
                continue
            self._identifiers.append(identifier)
        del self._identifiers[self.capacity :]
        logger.debug("Loaded {} recent file(s)", len(self._identifiers))

    def save(self) -> bool:
        if self.record_path is None:
            return False
        try:
            write_json_record(self.record_path, {"files": list(self._identifiers)})
        except OSError as exc:
            logger.error("Failed to save recent files to {}: {}", self.record_path, exc)
            return False
        return True


def sidebar_recent_entries(
    entries: list[RecentEntry],
    open_identifiers: Iterable[str],
    limit: int = RECENT_SIDEBAR_LIMIT,
) -> list[RecentEntry]:
    """Recent entries worth showing next to the open-files list: not already open."""
    open_set = set(open_identifiers)
    return [entry for entry in entries if entry.identifier not in open_set][:limit]
