"""Build report output formatters.

Rich table and JSON output for build reports.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gogogo.models import BuildOutcome, BuildReport, OutcomeStatus, ReportStatus


def _status_icon(status: OutcomeStatus | ReportStatus) -> str:
    """Get icon for an outcome or report status."""
    icons: dict[str, str] = {
        "success": "✓",
        "skipped": "⏭",
        "nothing_built": "⏭",
        "failed": "✗",
    }
    return icons.get(status.value, "?")


def _status_color(status: OutcomeStatus | ReportStatus) -> str:
    """Get color for an outcome or report status."""
    colors: dict[str, str] = {
        "success": "green",
        "skipped": "yellow",
        "nothing_built": "yellow",
        "failed": "red",
    }
    return colors.get(status.value, "white")


def format_report_table(
    report: BuildReport,
    console: Console | None = None,
    *,
    show_outcomes: bool = True,
) -> None:
    """Format a build report as a Rich panel and table.

    Args:
        report: BuildReport to display
        console: Optional Rich console (creates one if not provided)
        show_outcomes: Include the per-target table

    Example:
        >>> format_report_table(report)
    """
    if console is None:
        console = Console()

    status = report.status
    color = _status_color(status)
    header = Text()
    header.append(f"Status: {_status_icon(status)} ", style=color)
    header.append(status.value.upper().replace("_", " "), style=f"bold {color}")
    header.append(
        f"\nTargets: {len(report.successful)} built, "
        f"{len(report.skipped)} skipped, {len(report.failed)} failed"
    )
    if report.total_duration_ms > 0:
        header.append(f"\nDuration: {report.total_duration_ms}ms")
    console.print(Panel(header, title="[bold]Build Results[/bold]"))

    if show_outcomes and report.outcomes:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Status", width=3, justify="center")
        table.add_column("Target", min_width=16)
        table.add_column("Attempts", justify="right", width=8)
        table.add_column("Result", min_width=30)

        for outcome in sorted(report.outcomes, key=lambda o: o.target.label):
            table.add_row(
                _status_icon(outcome.status),
                Text(outcome.target.label, style=_status_color(outcome.status)),
                str(outcome.attempts),
                Text(_summary(outcome), style="dim" if outcome.was_skipped else ""),
            )
        console.print(table)

    if report.failed:
        console.print()
        console.print("[bold red]Failed Targets:[/bold red]")
        for outcome in report.failures:
            console.print(f"  [red]• {escape(outcome.target.label)}[/red]")
            console.print(f"    {outcome.detail}", style="dim", markup=False)

    if report.skipped:
        console.print(
            f"[yellow]Skipped {len(report.skipped)} target(s):[/yellow] "
            + escape(", ".join(report.skipped))
        )

    if report.nothing_built:
        console.print("All targets were skipped; nothing was built.")


def _summary(outcome: BuildOutcome) -> str:
    if outcome.succeeded:
        return str(outcome.artifact_path) if outcome.artifact_path else "built"
    # First line only; full compiler output is listed under failures
    return outcome.detail.splitlines()[0] if outcome.detail else outcome.status.value


def format_report_json(report: BuildReport, pretty: bool = True) -> str:
    """Format a build report as JSON.

    Args:
        report: BuildReport to format
        pretty: Whether to use indentation

    Returns:
        JSON string representation
    """
    data = _report_to_dict(report)
    if pretty:
        return json.dumps(data, indent=2, default=str)
    return json.dumps(data, default=str)


def _report_to_dict(report: BuildReport) -> dict[str, Any]:
    """Convert BuildReport to dictionary for JSON serialization."""
    return {
        "status": report.status.value,
        "fully_successful": report.fully_successful,
        "summary": {
            "total": len(report.outcomes),
            "successful": len(report.successful),
            "skipped": len(report.skipped),
            "failed": len(report.failed),
        },
        "successful": list(report.successful),
        "skipped": list(report.skipped),
        "failed": list(report.failed),
        "duration_ms": report.total_duration_ms,
        "started_at": report.started_at.isoformat(),
        "finished_at": report.finished_at.isoformat(),
        "outcomes": [_outcome_to_dict(o) for o in report.outcomes],
    }


def _outcome_to_dict(outcome: BuildOutcome) -> dict[str, Any]:
    """Convert BuildOutcome to dictionary."""
    return {
        "target": outcome.target.label,
        "status": outcome.status.value,
        "detail": outcome.detail,
        "attempts": outcome.attempts,
        "duration_ms": outcome.duration_ms,
        "artifact": str(outcome.artifact_path) if outcome.artifact_path else None,
    }
