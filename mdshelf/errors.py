"""Exception types shared across mdshelf."""

from __future__ import annotations


class MdShelfError(Exception):
    """Base class for mdshelf failures."""


class DocumentReadError(MdShelfError):
    """A document could not be read from disk."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to open file {path}: {reason}")
        self.path = path
        self.reason = reason


class RenderError(MdShelfError):
    """Markdown text could not be turned into block elements."""
