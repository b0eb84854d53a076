"""
file_scanner.py - Ignore-aware directory walker.

Responsibilities:
- PatternMatcher: accumulate gitignore-style rules from rule files in the
  scan root plus supplementary patterns, and answer "is this path ignored?"
  with git semantics (negation, directory-only rules, ``**``, last match wins).
- FileScanner: walk a root directory, prune ignored subtrees early and return
  the absolute paths of regular files with an allowed extension.

Matching is delegated to ``pathspec.GitIgnoreSpec`` so behaviour tracks git.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, Optional

import pathspec

from scoping_tags.models import DEFAULT_IGNORE_FILES

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Ignore rules
# ---------------------------------------------------------------------------

def _read_rule_lines(text: str) -> list[str]:
    """Split rule-file text into pattern lines, dropping blanks and comments."""
    lines = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        lines.append(line)
    return lines


class PatternMatcher:
    """Accumulates ignore rules relative to a scan root.

    Usage::

        matcher = PatternMatcher("/path/to/project")
        matcher.load([".gitignore", ".ignore"], ["dist/", "**/*.log"])
        matcher.matches("dist/bundle.js")         # True
        matcher.matches("src", is_dir=True)       # False
    """

    def __init__(self, root: str) -> None:
        self.root = os.path.abspath(root)
        self._patterns: list[str] = []
        self._spec: Optional[pathspec.GitIgnoreSpec] = None

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)

    def load(
        self,
        rule_files: Iterable[str] = DEFAULT_IGNORE_FILES,
        extra_patterns: Optional[Iterable[str]] = None,
    ) -> "PatternMatcher":
        """Read each rule file under root (if present), then append extra patterns.

        A missing rule file is skipped silently; an unreadable one is skipped
        with a warning.
        """
        for name in rule_files:
            full_path = os.path.join(self.root, name)
            if not os.path.isfile(full_path):
                continue
            try:
                with open(full_path, "r", encoding="utf-8") as fh:
                    text = fh.read()
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Cannot read ignore file '%s': %s", full_path, exc)
                continue
            lines = _read_rule_lines(text)
            logger.debug("Loaded %d ignore rules from %s", len(lines), full_path)
            self.add(lines)

        if extra_patterns:
            self.add(extra_patterns)
        return self

    def add(self, patterns: Iterable[str]) -> None:
        """Append patterns; later patterns take precedence over earlier ones."""
        self._patterns.extend(p for p in patterns if p)
        self._spec = None

    def matches(self, relative_path: str, is_dir: bool = False) -> bool:
        """Return True if *relative_path* (relative to root) is ignored."""
        if not self._patterns:
            return False
        if self._spec is None:
            self._spec = pathspec.GitIgnoreSpec.from_lines(self._patterns)
        rel = relative_path.replace(os.sep, "/").strip("/")
        if not rel or rel == ".":
            return False
        if is_dir:
            rel += "/"
        return self._spec.match_file(rel)


# ---------------------------------------------------------------------------
# Directory walk
# ---------------------------------------------------------------------------

class FileScanner:
    """Recursively walks a root directory honouring ignore rules.

    Usage::

        scanner = FileScanner(root, extensions=[".ts", ".f90"])
        files = scanner.scan()   # absolute paths
    """

    def __init__(
        self,
        root: str,
        ignore_files: Optional[Iterable[str]] = None,
        extra_ignore_patterns: Optional[Iterable[str]] = None,
        extensions: Optional[Iterable[str]] = None,
        matcher: Optional[PatternMatcher] = None,
    ) -> None:
        self.root = os.path.abspath(root)
        if matcher is None:
            matcher = PatternMatcher(self.root).load(
                DEFAULT_IGNORE_FILES if ignore_files is None else ignore_files,
                extra_ignore_patterns,
            )
        self.matcher = matcher
        self.extensions: set[str] = {e.lower() for e in (extensions or [])}

    def scan(self) -> list[str]:
        """Return absolute paths of all non-ignored regular files with an allowed extension."""
        result: list[str] = []
        self._walk(self.root, result)
        return result

    def _allowed(self, name: str) -> bool:
        if not self.extensions:
            return True
        return os.path.splitext(name)[1].lower() in self.extensions

    def _walk(self, directory: str, out: list[str]) -> None:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            # Permissions issue or a directory that vanished mid-walk
            logger.warning("Cannot read directory '%s': %s", directory, exc)
            return

        for entry in entries:
            try:
                entry.name.encode("utf-8")
            except UnicodeEncodeError:
                # Undecodable bytes surface as surrogates; the index is UTF-8 JSON
                logger.warning("Skipping %r: name is not valid UTF-8", entry.path)
                continue
            rel_path = os.path.relpath(entry.path, self.root)
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file(follow_symlinks=False)
            except OSError as exc:
                logger.warning("Cannot stat '%s': %s", entry.path, exc)
                continue

            if self.matcher.matches(rel_path, is_dir=is_dir):
                continue

            if is_dir:
                self._walk(entry.path, out)
            elif is_file and self._allowed(entry.name):
                out.append(os.path.join(directory, entry.name))
            # Symbolic links, sockets, fifos etc. are never emitted
