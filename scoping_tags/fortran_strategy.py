"""
fortran_strategy.py - Line-oriented, stack-based tag extraction for Fortran.

Handles fixed-form and free-form sources in a single pass:

- full-line comments (first non-blank character c, C, * or !) are skipped;
- trailing ``!`` comments outside string literals are stripped;
- opener lines (program / module / subroutine / function / type) push a
  record; keywords match case-insensitively and names are lower-cased
  (Fortran identifiers are case-insensitive);
- ``end`` closes the innermost record when it is bare or names the same kind
  (``end subroutine``); ``end do``, ``end if`` and other unrelated closers are
  ignored because they close blocks that are not tracked;
- records still open at end of file are closed on the last line.

Tags are emitted when a record closes, so an inner construct precedes the
construct that encloses it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from scoping_tags.extraction import ExtractionStrategy, split_lines
from scoping_tags.models import ExtractedTag, Language, TagKind

logger = logging.getLogger(__name__)

# Also hides free-form statements starting with c (call, contains, ...)
COMMENT_LINE = re.compile(r"^\s*[cC*!]")

_ATTRS = r"(?:(?:pure|impure|elemental|recursive|non_recursive|module)\s+)*"
_TYPE_SPEC = (
    r"(?:(?:integer|real|logical|double\s+precision|double\s+complex)"
    r"(?:\s*\*\s*\d+|\s*\([^)]*\))?\s+"
    r"|type\s*\([^)]*\)\s+)?"
)
_PREFIX = _ATTRS + _TYPE_SPEC + _ATTRS

# Tested in order; the first match opens a record.
OPENERS: list[tuple[TagKind, re.Pattern[str]]] = [
    (TagKind.PROGRAM, re.compile(r"^program\s+(\w+)", re.IGNORECASE)),
    (TagKind.MODULE, re.compile(
        r"^module\s+(?!(?:procedure|subroutine|function|pure|impure|elemental|recursive)\b)(\w+)",
        re.IGNORECASE,
    )),
    (TagKind.SUBROUTINE, re.compile(rf"^{_PREFIX}subroutine\s+(\w+)", re.IGNORECASE)),
    (TagKind.FUNCTION, re.compile(rf"^{_PREFIX}function\s+(\w+)", re.IGNORECASE)),
    (TagKind.TYPE, re.compile(
        r"^type(?:\s*,[^:]*)?\s*::\s*(\w+)|^type\s+(?!is\b)(\w+)",
        re.IGNORECASE,
    )),
]

# "end", "end do", "enddo", "end subroutine foo"
CLOSER = re.compile(r"^end(?:\s*([a-z]+))?\b", re.IGNORECASE)


@dataclass
class _OpenRecord:
    kind: TagKind
    name: str
    start_line: int


def strip_inline_comment(line: str) -> str:
    """Drop a trailing ``!`` comment, ignoring ``!`` inside quoted strings."""
    quote = ""
    for i, ch in enumerate(line):
        if quote:
            if ch == quote:
                quote = ""
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "!":
            return line[:i]
    return line


def match_opener(code: str) -> Optional[tuple[TagKind, str]]:
    """Return (kind, lower-cased name) if *code* opens a tracked construct."""
    for kind, regex in OPENERS:
        m = regex.match(code)
        if m:
            name = next((g for g in m.groups() if g), None)
            if name:
                return kind, name.lower()
    return None


class FortranStrategy(ExtractionStrategy):
    """Extracts program units and derived types from Fortran sources.

    Supported extensions (case-insensitive): .f .for .f90 .f95 .f03 .f08 .fpp
    """

    language = Language.FORTRAN.value
    supported_kinds = frozenset({
        TagKind.PROGRAM, TagKind.MODULE, TagKind.SUBROUTINE,
        TagKind.FUNCTION, TagKind.TYPE,
    })

    def supported_extensions(self) -> list[str]:
        return [".f", ".for", ".f90", ".f95", ".f03", ".f08", ".fpp"]

    def extract_tags(self, file_path: str) -> list[ExtractedTag]:
        if not self.accepts(file_path):
            return []

        try:
            with open(file_path, "r", encoding="utf-8", errors="replace", newline="") as fh:
                source = fh.read()
        except OSError as exc:
            logger.error("Failed to read file '%s': %s", file_path, exc)
            return []

        lines = split_lines(source)
        tags: list[ExtractedTag] = []
        stack: list[_OpenRecord] = []

        for lineno, line in enumerate(lines, start=1):
            if COMMENT_LINE.match(line):
                continue
            code = strip_inline_comment(line).strip()
            if not code:
                continue

            opened = match_opener(code)
            if opened is not None:
                kind, name = opened
                stack.append(_OpenRecord(kind, name, lineno))
                continue  # a line cannot both open and close

            closer = CLOSER.match(code)
            if closer and stack:
                suffix = (closer.group(1) or "").lower()
                if not suffix or suffix == stack[-1].kind.value:
                    rec = stack.pop()
                    tags.append(self.make_tag(rec.kind, rec.name, rec.start_line, lineno, lines))

        # Close anything left open on the last line of the file
        last_line = len(lines)
        while stack:
            rec = stack.pop()
            tags.append(self.make_tag(rec.kind, rec.name, rec.start_line, last_line, lines))

        return tags
