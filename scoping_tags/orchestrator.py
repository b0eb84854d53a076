"""
orchestrator.py - Full and incremental indexing.

Key responsibilities:
1. full_scan:          walk the tree, extract every candidate, replace the index
2. incremental_update: re-extract a few paths and patch the existing index
3. detect_languages:   pre-scan for any registered extension (auto-detect)

Claiming rule (both modes): a file is offered to the active strategies in
order; the first strategy returning a non-empty tag list claims it and the
remaining strategies are not tried.

Unclaimed files differ between the modes: a full scan leaves them out of the
index, an incremental update records a tombstone entry (language "unknown",
no tags) so the file is known to have been checked.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Iterable, Optional, Sequence

from scoping_tags.exceptions import NoActiveStrategiesError
from scoping_tags.extraction import ExtractionStrategy
from scoping_tags.file_scanner import FileScanner
from scoping_tags.index_store import index_path, load_index, write_index
from scoping_tags.models import (
    IndexerConfig,
    Language,
    ScanResult,
    ScopedFileContext,
    SkippedPath,
)
from scoping_tags.registry import StrategyRegistry, collect_extensions

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 50


# ---------------------------------------------------------------------------
# Per-file extraction
# ---------------------------------------------------------------------------


def extract_file(
    file_path: str,
    strategies: Sequence[ExtractionStrategy],
) -> Optional[ScopedFileContext]:
    """Offer *file_path* to each strategy in order; return the first claim.

    A strategy that raises is logged and skipped; the failure never escapes
    the file being processed.
    """
    for strategy in strategies:
        try:
            tags = strategy.extract_tags(file_path)
        except Exception as exc:
            logger.warning(
                "Error extracting tags from %s with %s: %s",
                file_path, strategy.language, exc,
            )
            continue
        if tags:
            return ScopedFileContext(
                file_path=file_path,
                language=strategy.language,
                tags=tags,
            )
    return None


def _require_strategies(strategies: Sequence[ExtractionStrategy]) -> None:
    if not strategies:
        raise NoActiveStrategiesError()


# ---------------------------------------------------------------------------
# Full scan
# ---------------------------------------------------------------------------


def full_scan(
    root: str,
    strategies: Sequence[ExtractionStrategy],
    config: Optional[IndexerConfig] = None,
) -> ScanResult:
    """Index every candidate file under *root* and replace the index wholesale.

    Raises:
        NoActiveStrategiesError: *strategies* is empty.
        IndexWriteError: the index could not be written.
    """
    _require_strategies(strategies)
    cfg = config or IndexerConfig()
    root = os.path.abspath(root)
    out_path = index_path(root, cfg)

    scanner = FileScanner(
        root,
        ignore_files=cfg.ignore_files,
        extra_ignore_patterns=cfg.extra_ignore_patterns,
        extensions=collect_extensions(strategies),
    )

    t0 = time.perf_counter()
    files = scanner.scan()
    logger.info(
        "Found %d source file(s) in %.2f ms", len(files), (time.perf_counter() - t0) * 1000,
    )

    entries: dict[str, ScopedFileContext] = {}
    unmatched: list[str] = []
    for processed, file_path in enumerate(files, start=1):
        entry = extract_file(file_path, strategies)
        if entry is not None:
            entries[file_path] = entry
        else:
            unmatched.append(file_path)
        if processed % PROGRESS_EVERY == 0:
            logger.info("Processed %d/%d files...", processed, len(files))

    contexts = list(entries.values())
    write_index(out_path, contexts)
    logger.info("%s updated (%d file entries)", out_path, len(contexts))

    return ScanResult(
        mode="full",
        root=root,
        index_path=out_path,
        candidates=len(files),
        entries=contexts,
        unmatched=unmatched,
    )


# ---------------------------------------------------------------------------
# Incremental update
# ---------------------------------------------------------------------------


def incremental_update(
    root: str,
    strategies: Sequence[ExtractionStrategy],
    paths: Iterable[str],
    config: Optional[IndexerConfig] = None,
) -> ScanResult:
    """Re-extract *paths* (relative to *root* or absolute) and patch the index.

    Raises:
        NoActiveStrategiesError: *strategies* is empty.
        IndexWriteError: the index could not be written.
    """
    _require_strategies(strategies)
    cfg = config or IndexerConfig()
    root = os.path.abspath(root)
    out_path = index_path(root, cfg)

    context_map: dict[str, ScopedFileContext] = {
        ctx.file_path: ctx for ctx in load_index(out_path)
    }
    allowed = collect_extensions(strategies)

    skipped: list[SkippedPath] = []
    unmatched: list[str] = []
    candidates = 0

    for raw_path in paths:
        abs_path = os.path.abspath(os.path.join(root, raw_path))

        if not os.path.isfile(abs_path):
            logger.warning("Path does not exist or is not a file: %s. Skipping.", abs_path)
            skipped.append(SkippedPath(path=abs_path, reason="not a regular file"))
            continue

        try:
            abs_path.encode("utf-8")
        except UnicodeEncodeError:
            logger.warning("Path is not valid UTF-8: %r. Skipping.", abs_path)
            skipped.append(SkippedPath(path=repr(abs_path), reason="path is not valid UTF-8"))
            continue

        ext = os.path.splitext(abs_path)[1].lower()
        if ext not in allowed:
            logger.warning("%s: unsupported extension '%s'. Skipping.", abs_path, ext)
            skipped.append(SkippedPath(path=abs_path, reason=f"unsupported extension '{ext}'"))
            continue

        candidates += 1
        entry = extract_file(abs_path, strategies)
        if entry is None:
            # Record "checked, nothing found" rather than keeping stale tags
            entry = ScopedFileContext(
                file_path=abs_path, language=Language.UNKNOWN.value, tags=[],
            )
            unmatched.append(abs_path)
        context_map[abs_path] = entry

    contexts = list(context_map.values())
    write_index(out_path, contexts)
    logger.info("%s updated (%d file entries)", out_path, len(contexts))

    return ScanResult(
        mode="incremental",
        root=root,
        index_path=out_path,
        candidates=candidates,
        entries=contexts,
        skipped=skipped,
        unmatched=unmatched,
    )


# ---------------------------------------------------------------------------
# Language auto-detection
# ---------------------------------------------------------------------------


def detect_languages(
    registry: StrategyRegistry,
    root: str,
    config: Optional[IndexerConfig] = None,
) -> list[str]:
    """Return the registered languages with at least one candidate file under *root*.

    Only walks the tree; nothing is parsed.
    """
    cfg = config or IndexerConfig()
    scanner = FileScanner(
        root,
        ignore_files=cfg.ignore_files,
        extra_ignore_patterns=cfg.extra_ignore_patterns,
        extensions=collect_extensions(registry),
    )
    found = {os.path.splitext(p)[1].lower() for p in scanner.scan()}
    return registry.detect(found)
