"""sqlscout CLI application -- Typer-based developer interface.

Provides commands for scanning source trees for embedded SQL and for
rewriting string literals inside detected SQL.  Human-readable output goes
to *stderr* via Rich; machine-readable output (``--json``) goes to *stdout*
so that pipelines can compose cleanly.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from cli.display import (
    display_column_usages,
    display_profile_stats,
    display_rewrite_results,
    display_scan_summary,
)
from scan_engine.config import Settings, load_settings
from scan_engine.logging_config import configure_logging
from scan_engine.sql_toolkit import Dialect

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="sqlscout",
    help="sqlscout - find, report and safely rewrite SQL embedded in source trees",
    no_args_is_help=True,
)
console = Console(stderr=True)

# Mutable global options populated by the Typer callback.
_verbose: bool = False


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
) -> None:
    """Global options applied to every command."""
    global _verbose  # noqa: PLW0603
    _verbose = verbose


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_settings(dialect: Dialect | None) -> Settings:
    """Load settings from the environment, apply CLI overrides and set up logging."""
    overrides: dict[str, Any] = {}
    if dialect is not None:
        overrides["dialect"] = dialect
    try:
        settings = load_settings(**overrides)
    except ValueError as exc:
        console.print(f"[red]Invalid configuration: {exc}[/red]")
        raise typer.Exit(code=2) from exc

    configure_logging(settings, verbose=_verbose)
    return settings


# ---------------------------------------------------------------------------
# scan
# ---------------------------------------------------------------------------


@app.command()
def scan(
    paths: list[Path] = typer.Argument(
        ...,
        help="Files or directories to scan.",
        resolve_path=True,
    ),
    json_mode: bool = typer.Option(
        False,
        "--json",
        help="Emit the scan results as JSON on stdout.",
    ),
    csv_dir: Path | None = typer.Option(
        None,
        "--csv-dir",
        help="Write both reporting tables as CSV files into this directory.",
        file_okay=False,
        resolve_path=True,
    ),
    dialect: Dialect | None = typer.Option(
        None,
        "--dialect",
        help="SQL dialect to parse with (overrides SQLSCOUT_DIALECT).",
        case_sensitive=False,
    ),
    profile: bool = typer.Option(
        False,
        "--profile",
        help="Show per-operation timings after the scan.",
    ),
) -> None:
    """Scan files for embedded SQL and report the columns it touches."""
    from scan_engine.finder import SqlFinder
    from scan_engine.hosts import ScanError
    from scan_engine.telemetry import ProfileCollector

    settings = _load_settings(dialect)
    finder = SqlFinder(settings)

    try:
        summary = finder.scan(paths)
    except ScanError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if summary.files == 0:
        console.print("[yellow]No scannable files found.[/yellow]")
        raise typer.Exit(code=1)

    columns_used = finder.columns_used.rows()
    queries = finder.queries.rows()

    if csv_dir is not None:
        finder.columns_used.to_csv(csv_dir / "columns_used.csv")
        finder.queries.to_csv(csv_dir / "queries.csv")
        console.print(f"[green]Wrote CSV tables to {csv_dir}[/green]")

    if json_mode:
        payload = {
            "summary": {
                "files": summary.files,
                "nodes": summary.nodes,
                "queries": summary.matched,
                "detection_failures": summary.detection_failures,
                "commit_hashes": summary.commit_hashes,
            },
            "columns_used": [row.model_dump(mode="json") for row in columns_used],
            "queries": [row.model_dump(mode="json") for row in queries],
        }
        sys.stdout.write(json.dumps(payload, indent=2) + "\n")
    else:
        display_scan_summary(console, summary)
        display_column_usages(console, columns_used)

    if profile:
        collector = ProfileCollector.get_instance()
        stats = [collector.get_stats(name) for name in collector.operations()]
        display_profile_stats(console, [s for s in stats if s is not None])


# ---------------------------------------------------------------------------
# rewrite-literal
# ---------------------------------------------------------------------------


@app.command("rewrite-literal")
def rewrite_literal(
    path: Path = typer.Argument(
        ...,
        help="A plain-text SQL file, or a directory of them.",
        resolve_path=True,
    ),
    old: str = typer.Option(
        ...,
        "--old",
        help="The string literal value to replace.",
    ),
    new: str = typer.Option(
        ...,
        "--new",
        help="The replacement string literal value.",
    ),
    dialect: Dialect | None = typer.Option(
        None,
        "--dialect",
        help="SQL dialect to parse with (overrides SQLSCOUT_DIALECT).",
        case_sensitive=False,
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Report which files would change without writing them.",
    ),
) -> None:
    """Replace a string literal inside the SQL of plain-text files.

    Only the characters of the literal change; formatting, comments and
    keyword case elsewhere in each file are preserved.  Files whose SQL
    cannot be rewritten safely are left untouched.
    """
    from scan_engine.finder import SqlFinder
    from scan_engine.hosts import ScanError, iter_files
    from scan_engine.sql_toolkit import get_sql_toolkit

    settings = _load_settings(dialect)
    finder = SqlFinder(settings)
    renderer = get_sql_toolkit().change_renderer

    try:
        files = [p for p in iter_files(path, settings) if p.suffix.lower() in settings.plain_text_suffixes]
    except ScanError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if not files:
        console.print("[yellow]No plain-text SQL files found.[/yellow]")
        raise typer.Exit(code=1)

    changed: list[Path] = []
    unchanged: list[Path] = []
    for file_path in files:
        rewritten = finder.rewrite_plain_text(
            file_path,
            lambda _view: renderer.string_literal_rewrite(old, new),
            dry_run=dry_run,
        )
        (changed if rewritten else unchanged).append(file_path)

    display_rewrite_results(console, changed, unchanged, dry_run=dry_run)
