"""gogogo version command - Show version and host information."""

from __future__ import annotations

import platform as host_platform

import click
from rich.markup import escape

from gogogo import __version__
from gogogo.cli.output import info, warning
from gogogo.config import detect_host_platform
from gogogo.errors import ToolNotFoundError
from gogogo.toolchain import GoToolchain


@click.command("version")
def version() -> None:
    """Show the gogogo version, host platform and Go toolchain."""
    host = detect_host_platform()

    info(f"gogogo {__version__}")
    click.echo(f"  Host:   {host.label}")
    click.echo(f"  Python: {host_platform.python_version()}")

    try:
        go_version = GoToolchain(host_os=host.os).version()
    except ToolNotFoundError as e:
        warning(escape(f"Go: {e}"))
        return
    click.echo(f"  Go:     {go_version}")
