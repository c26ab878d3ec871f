"""Rich output formatting for the sqlscout CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from scan_engine.finder import ScanSummary
    from scan_engine.tables import ColumnUsedRow


# ---------------------------------------------------------------------------
# Operation colour mapping
# ---------------------------------------------------------------------------

_OPERATION_COLOURS: dict[str, str] = {
    "SELECT": "cyan",
    "UPDATE": "yellow",
    "DELETE": "red",
    "INSERT": "green",
}


def _coloured_operation(operation: str) -> str:
    """Return a Rich markup string with the operation colour-coded."""
    colour = _OPERATION_COLOURS.get(operation, "white")
    return f"[{colour}]{operation}[/{colour}]"


# ---------------------------------------------------------------------------
# Scan results
# ---------------------------------------------------------------------------


def display_scan_summary(console: Console, summary: ScanSummary) -> None:
    """Render a panel with the counts of one scan.

    Parameters
    ----------
    console:
        Rich console to write to (typically stderr).
    summary:
        The aggregate counts returned by :meth:`SqlFinder.scan`.
    """
    commits = {sha for sha in summary.commit_hashes.values() if sha}
    commit_str = ", ".join(sorted(sha[:12] for sha in commits)) if commits else "(not a git repository)"

    lines = [
        f"[bold]Files:[/bold]              {summary.files}",
        f"[bold]Nodes:[/bold]              {summary.nodes}",
        f"[bold]Queries:[/bold]            {summary.matched}",
        f"[bold]Detection failures:[/bold] {summary.detection_failures}",
        f"[bold]Commit:[/bold]             {commit_str}",
    ]
    console.print(Panel("\n".join(lines), title="Scan Summary", border_style="blue"))


def display_column_usages(console: Console, rows: list[ColumnUsedRow]) -> None:
    """Render a table of column usage rows.

    Parameters
    ----------
    console:
        Rich console to write to.
    rows:
        Rows from the ``Database columns used`` table.
    """
    if not rows:
        console.print("[dim]No column usages found.[/dim]")
        return

    table = Table(
        title=f"Database columns used ({len(rows)})",
        show_lines=False,
        pad_edge=True,
        expand=False,
    )
    table.add_column("Operation")
    table.add_column("Table", style="bold")
    table.add_column("Column")
    table.add_column("Source")
    table.add_column("Line", style="dim", justify="right")

    for row in rows:
        table.add_row(
            _coloured_operation(row.operation.value),
            row.table,
            row.column or "-",
            row.source_path or "-",
            str(row.line_number) if row.line_number is not None else "-",
        )

    console.print(table)


def display_profile_stats(console: Console, stats: list[dict[str, Any]]) -> None:
    """Render per-operation timing statistics."""
    if not stats:
        console.print("[dim]No profiling data recorded.[/dim]")
        return

    table = Table(title="Profile", show_lines=False, pad_edge=True, expand=False)
    table.add_column("Operation", style="bold")
    table.add_column("Calls", justify="right")
    table.add_column("Mean (ms)", justify="right")
    table.add_column("Max (ms)", justify="right")

    for entry in stats:
        table.add_row(
            entry["operation"],
            str(entry["count"]),
            f"{entry['mean_ms']:.3f}",
            f"{entry['max_ms']:.3f}",
        )

    console.print(table)


# ---------------------------------------------------------------------------
# Rewrites
# ---------------------------------------------------------------------------


def display_rewrite_results(console: Console, changed: list[Path], unchanged: list[Path], *, dry_run: bool) -> None:
    """Render which files a literal rewrite touched."""
    verb = "Would rewrite" if dry_run else "Rewrote"
    for path in changed:
        console.print(f"[green]{verb}[/green] {path}")

    console.print(f"[bold]{len(changed)}[/bold] changed, [dim]{len(unchanged)} unchanged[/dim]")
