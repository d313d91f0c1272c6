"""mdshelf: multi-document markdown viewer with persistent sessions."""

__version__ = "0.1.0"
