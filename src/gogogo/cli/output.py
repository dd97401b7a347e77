"""Console output for the gogogo CLI.

One Rich console is shared by every command. Status messages carry a
colored icon; `--no-color` and the NO_COLOR environment variable turn
colors off. Human-readable output goes through this module, JSON goes
straight to click.echo so it stays machine-parseable.
"""

from __future__ import annotations

import os
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

# Message kind -> (icon, color)
MESSAGE_STYLES: dict[str, tuple[str, str]] = {
    "success": ("✓", "green"),
    "error": ("✗", "red"),
    "warning": ("⚠", "yellow"),
}


def color_disabled_by_env() -> bool:
    """True when NO_COLOR is set (any value, per no-color.org)."""
    return "NO_COLOR" in os.environ


def create_console(no_color: bool = False) -> Console:
    """Create the CLI console.

    Args:
        no_color: Disable colors regardless of NO_COLOR.
    """
    plain = no_color or color_disabled_by_env()
    return Console(force_terminal=False if plain else None, no_color=plain)


console = create_console()


def get_console() -> Console:
    """Return the console currently used by the CLI."""
    return console


def set_no_color(no_color: bool) -> None:
    """Replace the shared console (used by the --no-color option)."""
    global console
    console = create_console(no_color=no_color)


def _emit(kind: str, message: str, **kwargs: Any) -> None:
    icon, color = MESSAGE_STYLES[kind]
    console.print(f"[{color}]{icon}[/{color}] {message}", **kwargs)


def success(message: str, **kwargs: Any) -> None:
    """Print a success line, e.g. "✓ Built 9 target(s) in build"."""
    _emit("success", message, **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print an error line. Escape untrusted text with rich.markup.escape."""
    _emit("error", message, **kwargs)


def warning(message: str, **kwargs: Any) -> None:
    """Print a warning line, e.g. "⚠ Nothing was built"."""
    _emit("warning", message, **kwargs)


def info(message: str, **kwargs: Any) -> None:
    console.print(message, **kwargs)


def create_progress(transient: bool = True) -> Progress:
    """Progress bar advanced once per finished target.

    Args:
        transient: Clear the bar when the run completes.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=transient,
    )
