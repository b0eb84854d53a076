"""
cli.py - Typer-based CLI for scoping-tags.

Commands:
  scan      [PATH]               Full scan; rewrites PATH/scoping-tags.json
  update    FILES... --root PATH Re-index only FILES and patch the index
  languages                      List registered languages and extensions

Language selection (scan / update):
  --lang typescript,fortran      explicit list, in the order strategies are tried
  --lang auto | --detect         activate only languages present under the root
  (omitted)                      config "languages", else every language
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from scoping_tags.exceptions import ScopingTagsError
from scoping_tags.extraction import ExtractionStrategy
from scoping_tags.models import IndexerConfig
from scoping_tags.orchestrator import detect_languages, full_scan, incremental_update
from scoping_tags.output import get_formatter
from scoping_tags.registry import StrategyRegistry, default_registry

app = typer.Typer(
    name="scoping-tags",
    help="Structural tag index (functions, classes, program units) for source trees.",
    add_completion=False,
)
console = Console()

DEFAULT_CONFIG_FILE = "scoping_tags_config.json"

humanize_option = typer.Option(
    False,
    "--humanize",
    "-H",
    help="Use human-readable output (tables) instead of JSON",
)

# ---------------------------------------------------------------------------
# Configuration helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


def _load_config(config_path: Optional[str] = None) -> IndexerConfig:
    """Load indexer config from JSON file or return defaults."""
    try:
        if config_path:
            if Path(config_path).exists():
                return IndexerConfig.model_validate_json(Path(config_path).read_text())
            console.print(f"[yellow]Config file not found: {config_path}; using defaults.[/yellow]")
            return IndexerConfig()
        # Check for scoping_tags_config.json in CWD
        default = Path(DEFAULT_CONFIG_FILE)
        if default.exists():
            return IndexerConfig.model_validate_json(default.read_text())
    except ValidationError as exc:
        console.print(f"[red]Invalid config: {exc}[/red]")
        raise typer.Exit(1)
    return IndexerConfig()


def _select_strategies(
    registry: StrategyRegistry,
    root: str,
    cfg: IndexerConfig,
    lang: Optional[str],
    detect: bool = False,
) -> list[ExtractionStrategy]:
    """Resolve --lang / --detect / config languages into active strategies."""
    requested: Optional[list[str]]
    wants_auto = detect or (lang is not None and lang.strip().lower() == "auto")
    if wants_auto:
        with console.status("Auto-detecting languages..."):
            requested = detect_languages(registry, root, cfg)
        if not requested:
            console.print("[yellow]No supported-language files found in the project.[/yellow]")
            raise typer.Exit(1)
        logging.getLogger(__name__).info("Detected languages: %s", ", ".join(requested))
    elif lang:
        requested = [
            s.strip().lower() for s in lang.split(",")
            if s.strip() and s.strip().lower() != "auto"
        ]
    else:
        requested = cfg.languages

    strategies = registry.resolve(requested)
    if not strategies:
        console.print("[red]No active language strategies found. Exiting.[/red]")
        raise typer.Exit(1)
    return strategies


# ---------------------------------------------------------------------------
# scan command
# ---------------------------------------------------------------------------


@app.command()
def scan(
    path: str = typer.Argument(".", help="Root directory of the codebase to index"),
    lang: Optional[str] = typer.Option(
        None, "--lang", "-l",
        help='Comma-separated languages (e.g. "typescript,fortran"). Use "auto" to detect.',
    ),
    detect: bool = typer.Option(
        False, "--detect", "-d", help="Auto-detect which languages are present in the project.",
    ),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config JSON"),
    humanize: bool = humanize_option,
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Perform a full scan of PATH and rewrite its tag index."""
    _setup_logging(verbose)
    cfg = _load_config(config)
    root = os.path.abspath(path)
    if not os.path.isdir(root):
        console.print(f"[red]Not a directory: {root}[/red]")
        raise typer.Exit(1)

    registry = default_registry()
    strategies = _select_strategies(registry, root, cfg, lang, detect)
    formatter = get_formatter(humanize)

    try:
        if humanize:
            with console.status(f"Scanning {root}..."):
                result = full_scan(root, strategies, cfg)
        else:
            result = full_scan(root, strategies, cfg)
    except ScopingTagsError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    formatter.format_scan_result(result)


# ---------------------------------------------------------------------------
# update command
# ---------------------------------------------------------------------------


@app.command()
def update(
    files: list[str] = typer.Argument(..., help="File(s) to re-index, relative to the root"),
    root: str = typer.Option(".", "--root", "-r", help="Project root directory"),
    lang: Optional[str] = typer.Option(
        None, "--lang", "-l", help='Comma-separated languages. Use "auto" to detect.',
    ),
    detect: bool = typer.Option(
        False, "--detect", "-d", help="Auto-detect which languages are present in the project.",
    ),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config JSON"),
    humanize: bool = humanize_option,
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Incrementally re-index FILES and patch the existing index."""
    _setup_logging(verbose)
    cfg = _load_config(config)
    root_dir = os.path.abspath(root)

    registry = default_registry()
    strategies = _select_strategies(registry, root_dir, cfg, lang, detect)
    formatter = get_formatter(humanize)

    try:
        result = incremental_update(root_dir, strategies, files, cfg)
    except ScopingTagsError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    formatter.format_scan_result(result)


# ---------------------------------------------------------------------------
# languages command
# ---------------------------------------------------------------------------


@app.command()
def languages(humanize: bool = humanize_option) -> None:
    """List the registered languages, their extensions and tag kinds."""
    get_formatter(humanize).format_languages(default_registry())


if __name__ == "__main__":
    app()
