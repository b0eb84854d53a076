"""
registry.py - Registry of extraction strategies.

The registry is built once at startup (``default_registry()``) and passed to
the orchestrator; it is never mutated afterwards. Registration order is the
order in which strategies are offered a file during a scan.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional

from scoping_tags.extraction import ExtractionStrategy
from scoping_tags.fortran_strategy import FortranStrategy
from scoping_tags.ts_strategy import TypeScriptStrategy

logger = logging.getLogger(__name__)

ALL_LANGUAGES = "all"


class StrategyRegistry:
    """Immutable, ordered mapping of language identifier → strategy.

    Usage::

        registry = default_registry()
        active = registry.resolve(["fortran"])
        exts = collect_extensions(active)
    """

    def __init__(self, strategies: Iterable[ExtractionStrategy]) -> None:
        entries: dict[str, ExtractionStrategy] = {}
        for strategy in strategies:
            key = strategy.language.lower()
            if not key:
                raise ValueError(f"{strategy!r} has no language identifier")
            if key in entries:
                raise ValueError(f"Duplicate strategy for language '{key}'")
            entries[key] = strategy
        self._entries: tuple[tuple[str, ExtractionStrategy], ...] = tuple(entries.items())

    def __iter__(self) -> Iterator[ExtractionStrategy]:
        return (s for _, s in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, language: object) -> bool:
        return isinstance(language, str) and self.get(language) is not None

    @property
    def languages(self) -> list[str]:
        return [lang for lang, _ in self._entries]

    def get(self, language: str) -> Optional[ExtractionStrategy]:
        key = language.strip().lower()
        for lang, strategy in self._entries:
            if lang == key:
                return strategy
        return None

    def resolve(self, requested: Optional[Iterable[str]] = None) -> list[ExtractionStrategy]:
        """Return the active strategies for *requested* language identifiers.

        ``None``, an empty list or ``"all"`` selects every strategy in
        registration order. Otherwise the requested order is kept and
        unknown identifiers are dropped with a warning.
        """
        wanted = [r.strip().lower() for r in (requested or []) if r and r.strip()]
        if not wanted or ALL_LANGUAGES in wanted:
            return list(self)

        chosen: list[ExtractionStrategy] = []
        for lang in wanted:
            strategy = self.get(lang)
            if strategy is None:
                logger.warning("Language strategy '%s' not found; skipping.", lang)
            elif strategy not in chosen:
                chosen.append(strategy)
        return chosen

    def detect(self, found_extensions: Iterable[str]) -> list[str]:
        """Return languages (registration order) owning any of *found_extensions*."""
        found = {e.lower() for e in found_extensions}
        return [
            lang for lang, strategy in self._entries
            if any(e.lower() in found for e in strategy.supported_extensions())
        ]


def collect_extensions(strategies: Iterable[ExtractionStrategy]) -> set[str]:
    """Union of the strategies' extensions, lower-cased."""
    exts: set[str] = set()
    for strategy in strategies:
        exts.update(e.lower() for e in strategy.supported_extensions())
    return exts


def default_registry() -> StrategyRegistry:
    """Build the registry of every built-in strategy."""
    return StrategyRegistry([
        TypeScriptStrategy(),
        FortranStrategy(),
    ])
