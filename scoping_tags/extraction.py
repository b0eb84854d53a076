"""
extraction.py - Extraction strategy interface and shared helpers.

Every language strategy exposes:
- ``language``               identifier written to the index ("typescript", ...)
- ``supported_extensions()`` lower-cased extensions including the dot
- ``supported_kinds``        the TagKind values it may emit
- ``extract_tags(path)``     ordered tags, or [] if the file is not recognised

Strategies are process-lifetime singletons and keep no state between calls.
"""

from __future__ import annotations

import os
import re
from abc import ABC, abstractmethod

from scoping_tags.models import ExtractedTag, TagKind

_LINE_SPLIT = re.compile(r"\r?\n")


def split_lines(text: str) -> list[str]:
    """Split source text into lines the way line numbers are counted.

    A trailing newline terminates the last line rather than opening a new one.
    """
    lines = _LINE_SPLIT.split(text)
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines


def slice_code(lines: list[str], start_line: int, end_line: int) -> str:
    """Return the trimmed verbatim text of 1-based inclusive lines."""
    return "\n".join(lines[start_line - 1:end_line]).strip()


class ExtractionStrategy(ABC):
    """Base class for per-language tag extraction."""

    language: str = ""
    supported_kinds: frozenset[TagKind] = frozenset()

    @abstractmethod
    def supported_extensions(self) -> list[str]:
        """Return the file extensions (lower-case, with leading dot) handled here."""

    @abstractmethod
    def extract_tags(self, file_path: str) -> list[ExtractedTag]:
        """Extract tags from *file_path*; [] means "not mine" or "nothing found"."""

    def accepts(self, file_path: str) -> bool:
        ext = os.path.splitext(file_path)[1].lower()
        return ext in {e.lower() for e in self.supported_extensions()}

    def make_tag(
        self,
        kind: TagKind,
        name: str,
        start_line: int,
        end_line: int,
        lines: list[str],
    ) -> ExtractedTag:
        if kind not in self.supported_kinds:
            raise ValueError(f"{type(self).__name__} does not emit kind '{kind.value}'")
        return ExtractedTag(
            kind=kind,
            name=name,
            start_line=start_line,
            end_line=end_line,
            code=slice_code(lines, start_line, end_line),
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} language={self.language!r}>"
