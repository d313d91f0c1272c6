"""Folder grouping of open documents for the sidebar."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from mdshelf.host import parent_key
from mdshelf.registry import Document


@dataclass
class Group:
    """Open documents sharing a parent directory."""

    key: str
    display_name: str
    members: list[tuple[int, Document]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.members)


def _group_display_name(key: str) -> str:
    return Path(key).name or "/"


def compute_groups(documents: Iterable[Document]) -> list[Group]:
    """Group documents by parent directory, keeping first-seen order."""
    groups: dict[str, Group] = {}
    for position, document in enumerate(documents):
        key = parent_key(document.identifier)
        group = groups.get(key)
        if group is None:
            group = Group(key, _group_display_name(key))
            groups[key] = group
        group.members.append((position, document))
    return list(groups.values())


class GroupingView:
    """Current groups plus collapse state that survives regrouping."""

    def __init__(self) -> None:
        self.groups: list[Group] = []
        self._collapsed: set[str] = set()

    @property
    def is_flat(self) -> bool:
        # A single folder is shown without folder headers.
        return len(self.groups) == 1

    def refresh(self, documents: Iterable[Document]) -> list[Group]:
        self.groups = compute_groups(documents)
        return self.groups

    def toggle(self, key: str) -> bool:
        """Flip the collapse state of one group; return True when now collapsed."""
        if key in self._collapsed:
            self._collapsed.discard(key)
            return False
        self._collapsed.add(key)
        return True

    def is_collapsed(self, key: str) -> bool:
        return key in self._collapsed

    @property
    def collapsed_keys(self) -> frozenset[str]:
        return frozenset(self._collapsed)
