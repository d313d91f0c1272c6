"""Ordered registry of open documents with a single active selection."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from mdshelf.transform import Block


@dataclass
class Document:
    """One opened file, keyed by its absolute path."""

    identifier: str
    display_name: str
    content: str
    rendered: list[Block] | None = field(default=None, repr=False)

    def replace_content(self, content: str) -> None:
        self.content = content
        self.rendered = None


class DocumentRegistry:
    """Open documents in open order plus the index of the active one."""

    def __init__(self) -> None:
        self._documents: list[Document] = []
        self._active_index: int | None = None

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __getitem__(self, index: int) -> Document:
        return self._documents[index]

    @property
    def documents(self) -> list[Document]:
        return list(self._documents)

    @property
    def active_index(self) -> int | None:
        return self._active_index

    @property
    def active_document(self) -> Document | None:
        if self._active_index is None:
            return None
        return self._documents[self._active_index]

    def index_of(self, identifier: str) -> int | None:
        for index, document in enumerate(self._documents):
            if document.identifier == identifier:
                return index
        return None

    def upsert(self, identifier: str, display_name: str, content: str) -> int:
        """Add or refresh a document and make it active; return its index."""
        index = self.index_of(identifier)
        if index is None:
            self._documents.append(Document(identifier, display_name, content))
            index = len(self._documents) - 1
        else:
            self._documents[index].replace_content(content)
        self._active_index = index
        return index

    def activate(self, index: int) -> bool:
        """Make index active. Out-of-range input is ignored and returns False."""
        if not 0 <= index < len(self._documents):
            return False
        self._active_index = index
        return True

    def close(self, index: int) -> int | None:
        """Remove the document at index and return the new active index.

        Closing at or before the active position selects the entry that
        slides into place, `max(0, active - 1)`; an empty registry has no
        active document.
        """
        if not 0 <= index < len(self._documents):
            return self._active_index
        del self._documents[index]
        if not self._documents:
            self._active_index = None
        elif self._active_index is not None and index <= self._active_index:
            self._active_index = max(0, self._active_index - 1)
        return self._active_index

    def clear(self) -> None:
        self._documents.clear()
        self._active_index = None

    def list_open_identifiers(self) -> list[str]:
        return [document.identifier for document in self._documents]

    def active_identifier(self) -> str | None:
        document = self.active_document
        return document.identifier if document is not None else None
