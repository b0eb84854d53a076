"""
index_store.py - Load and persist the JSON tag index.

The index is a single JSON array of file entries::

    [{"filePath": "...", "language": "typescript",
      "tags": [{"kind": "function", "name": "foo",
                "startLine": 1, "endLine": 3, "code": "..."}]}]

Writes go to a temporary file in the destination directory which is then
atomically renamed over the old index, so an interrupted run never leaves a
truncated file behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Iterable, Optional

from pydantic import TypeAdapter, ValidationError

from scoping_tags.exceptions import IndexWriteError
from scoping_tags.models import INDEX_FILENAME, IndexerConfig, ScopedFileContext

logger = logging.getLogger(__name__)

_INDEX_ADAPTER = TypeAdapter(list[ScopedFileContext])


def index_path(root: str, config: Optional[IndexerConfig] = None) -> str:
    """Absolute path of the index file for *root*."""
    name = config.index_filename if config is not None else INDEX_FILENAME
    return os.path.join(os.path.abspath(root), name)


def load_index(path: str) -> list[ScopedFileContext]:
    """Read an existing index.

    A missing or unparsable file, or one that is not a JSON array, yields an
    empty index. Entries that fail validation are dropped individually.
    """
    if not os.path.exists(path):
        return []
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Failed to read or parse %s (%s). Starting from an empty index.", path, exc)
        return []

    if not isinstance(raw, list):
        logger.warning("%s is not a JSON array. Starting from an empty index.", path)
        return []

    # Validate per entry so one bad record does not discard the rest
    entries: list[ScopedFileContext] = []
    for position, item in enumerate(raw):
        try:
            entries.append(ScopedFileContext.model_validate(item))
        except ValidationError as exc:
            logger.warning(
                "%s: dropping invalid entry #%d (%d errors).",
                path, position, exc.error_count(),
            )
    return entries


def dump_index(entries: Iterable[ScopedFileContext]) -> str:
    """Serialize entries to the on-disk JSON format."""
    data = _INDEX_ADAPTER.dump_python(list(entries), mode="json", by_alias=True)
    return json.dumps(data, indent=2, ensure_ascii=False)


def write_index(path: str, entries: Iterable[ScopedFileContext]) -> None:
    """Atomically replace the index at *path* with *entries*.

    Raises:
        IndexWriteError: the destination could not be written.
    """
    payload = dump_index(entries)
    directory = os.path.dirname(os.path.abspath(path)) or "."
    tmp_path: Optional[str] = None
    try:
        fd, tmp_path = tempfile.mkstemp(
            prefix=".scoping-tags-", suffix=".tmp", dir=directory,
        )
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_path, 0o644)  # mkstemp creates 0600
        os.replace(tmp_path, path)
        tmp_path = None
    except (OSError, UnicodeEncodeError) as exc:
        raise IndexWriteError(path, exc) from exc
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
    logger.debug("Wrote index %s", path)
