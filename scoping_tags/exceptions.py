"""
exceptions.py - Fatal error conditions raised by the indexing engine.

Everything else (unreadable directories, unparsable files, unsupported update
paths) is logged and skipped per file; only these abort a run.
"""

from __future__ import annotations

from typing import Optional


class ScopingTagsError(Exception):
    """Base class for all scoping_tags errors."""


class NoActiveStrategiesError(ScopingTagsError):
    """Raised when no extraction strategy resolves for a run."""

    def __init__(self, requested: Optional[list[str]] = None) -> None:
        self.requested = requested or []
        if self.requested:
            msg = f"No active extraction strategy for: {', '.join(self.requested)}"
        else:
            msg = "No active extraction strategy"
        super().__init__(msg)


class IndexWriteError(ScopingTagsError):
    """Raised when the index file cannot be written."""

    def __init__(self, path: str, cause: Exception) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot write index '{path}': {cause}")
