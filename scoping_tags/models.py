"""
models.py - Pydantic v2 data models for scoping-tags.

Defines data structures for:
- Extracted tags (one named construct with its line span and source text)
- Per-file index entries
- Scan summaries returned by the orchestrator
- Indexer configuration
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class TagKind(str, Enum):
    """All construct kinds a strategy may emit."""
    FUNCTION = "function"
    VARIABLE = "variable"
    CLASS = "class"
    TYPE = "type"              # TS type alias / Fortran derived type
    INTERFACE = "interface"
    PROGRAM = "program"        # Fortran main program
    MODULE = "module"          # Fortran module
    SUBROUTINE = "subroutine"  # Fortran subroutine


class Language(str, Enum):
    """Language identifiers written to the index."""
    TYPESCRIPT = "typescript"
    FORTRAN = "fortran"
    UNKNOWN = "unknown"  # tombstone: checked, no strategy matched


# ---------------------------------------------------------------------------
# Index models
# ---------------------------------------------------------------------------

class ExtractedTag(BaseModel):
    """A single named construct extracted from a source file.

    ``code`` is a view of the file, not a reconstruction: it equals the
    trimmed join of source lines ``start_line..end_line``.
    """
    model_config = ConfigDict(populate_by_name=True)

    kind: TagKind
    name: str = Field(min_length=1)
    start_line: int = Field(alias="startLine", ge=1)
    end_line: int = Field(alias="endLine", ge=1)
    code: str = ""

    @model_validator(mode="after")
    def check_span(self) -> "ExtractedTag":
        if self.end_line < self.start_line:
            raise ValueError(
                f"end_line {self.end_line} precedes start_line {self.start_line}"
            )
        return self


class ScopedFileContext(BaseModel):
    """All tags extracted from one file, plus the language that produced them."""
    model_config = ConfigDict(populate_by_name=True)

    file_path: str = Field(alias="filePath")
    language: str
    tags: list[ExtractedTag] = Field(default_factory=list)

    @property
    def is_tombstone(self) -> bool:
        return not self.tags and self.language == Language.UNKNOWN.value


class SkippedPath(BaseModel):
    """A path the orchestrator refused to process, with the reason."""
    path: str
    reason: str


class ScanResult(BaseModel):
    """Summary of a full scan or incremental update."""
    mode: str  # "full" | "incremental"
    root: str
    index_path: str
    candidates: int = 0
    entries: list[ScopedFileContext] = Field(default_factory=list)
    skipped: list[SkippedPath] = Field(default_factory=list)
    unmatched: list[str] = Field(default_factory=list)

    @property
    def tag_count(self) -> int:
        return sum(len(e.tags) for e in self.entries)

    def languages(self) -> dict[str, int]:
        """Number of index entries per language."""
        counts: dict[str, int] = {}
        for entry in self.entries:
            counts[entry.language] = counts.get(entry.language, 0) + 1
        return counts


# ---------------------------------------------------------------------------
# Configuration model
# ---------------------------------------------------------------------------

INDEX_FILENAME = "scoping-tags.json"
DEFAULT_IGNORE_FILES = [".gitignore", ".ignore"]


class IndexerConfig(BaseModel):
    """Top-level configuration for the indexer."""
    # Rule files read from the scan root, in order
    ignore_files: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_FILES))
    # Appended after the rule files; gitignore syntax. Shared by scans and detection
    extra_ignore_patterns: list[str] = Field(
        default_factory=lambda: [
            "dist/", "bld/", "build/", "obj/", "object/", "node_modules/",
            "__snapshots__/", "__fixtures__/", ".github/", "**/.github/**",
            "**/*.snap", "**/*.log", "**/*.sh", "**/*.md", "**/*.csv",
            "**/*.png", "**/*.jpg", "examples/**/runs/", "examples/**/template/",
        ]
    )
    index_filename: str = INDEX_FILENAME
    # None means every registered language
    languages: Optional[list[str]] = None
