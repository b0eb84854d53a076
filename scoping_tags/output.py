"""
output.py - Output formatters for CLI.

Abstraction layer for formatting CLI output. Supports:
- JSON (machine-friendly, default)
- Human-readable (Rich tables, with --humanize flag)
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod

from rich.console import Console
from rich.table import Table

from scoping_tags.models import ScanResult
from scoping_tags.registry import StrategyRegistry


console = Console()


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format_scan_result(self, result: ScanResult) -> None:
        """Format the summary of a full scan or incremental update."""

    @abstractmethod
    def format_languages(self, registry: StrategyRegistry) -> None:
        """Format the registered strategies and their extensions."""


class JSONFormatter(OutputFormatter):
    """JSON output (default)."""

    def format_scan_result(self, result: ScanResult) -> None:
        output = {
            "mode": result.mode,
            "root": result.root,
            "index": result.index_path,
            "candidates": result.candidates,
            "entries": len(result.entries),
            "tags": result.tag_count,
            "languages": result.languages(),
            "unmatched": result.unmatched,
            "skipped": [s.model_dump() for s in result.skipped],
        }
        print(json.dumps(output, indent=2))

    def format_languages(self, registry: StrategyRegistry) -> None:
        output = {
            "languages": [
                {
                    "language": s.language,
                    "extensions": s.supported_extensions(),
                    "kinds": sorted(k.value for k in s.supported_kinds),
                }
                for s in registry
            ]
        }
        print(json.dumps(output, indent=2))


class HumanFormatter(OutputFormatter):
    """Human-readable output using Rich tables."""

    def format_scan_result(self, result: ScanResult) -> None:
        table = Table(title=f"{result.mode.capitalize()} index: {result.root}")
        table.add_column("Language", style="cyan")
        table.add_column("Files", justify="right")
        table.add_column("Tags", justify="right", style="green")

        tag_counts: dict[str, int] = {}
        for entry in result.entries:
            tag_counts[entry.language] = tag_counts.get(entry.language, 0) + len(entry.tags)
        for lang, files in sorted(result.languages().items()):
            table.add_row(lang, str(files), str(tag_counts.get(lang, 0)))

        console.print(table)
        console.print(
            f"[bold]{result.candidates}[/bold] candidate file(s), "
            f"[bold]{len(result.entries)}[/bold] index entries, "
            f"[bold]{result.tag_count}[/bold] tags."
        )
        if result.unmatched:
            console.print(f"[yellow]{len(result.unmatched)} file(s) with no tags.[/yellow]")
        for skipped in result.skipped:
            console.print(f"[yellow]Skipped {skipped.path}: {skipped.reason}[/yellow]")
        console.print(f"[dim]Index:[/dim] {result.index_path}")

    def format_languages(self, registry: StrategyRegistry) -> None:
        table = Table(title="Registered languages")
        table.add_column("Language", style="cyan")
        table.add_column("Extensions")
        table.add_column("Kinds", style="green")
        for strategy in registry:
            table.add_row(
                strategy.language,
                " ".join(strategy.supported_extensions()),
                ", ".join(sorted(k.value for k in strategy.supported_kinds)),
            )
        console.print(table)


def get_formatter(humanize: bool = False) -> OutputFormatter:
    """Get the appropriate formatter based on the humanize flag."""
    return HumanFormatter() if humanize else JSONFormatter()
