"""gogogo list command - Show the platforms the Go toolchain supports."""

from __future__ import annotations

import json

import click
from rich.markup import escape

from gogogo.cli.output import info, success, warning
from gogogo.platforms import CatalogProvider
from gogogo.toolchain import GoToolchain


@click.command("list")
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Output as JSON",
)
def list_cmd(as_json: bool) -> None:
    """List every platform supported by the installed Go toolchain.

    Platforms are grouped by operating system. When `go tool dist list`
    cannot be run, a built-in list of well-known platforms is shown.

    Examples:

        gogogo list

        gogogo list --json
    """
    provider = CatalogProvider(GoToolchain())
    catalog = provider.get()
    by_os = catalog.by_os()

    if as_json:
        click.echo(
            json.dumps(
                {"source": catalog.source, "platforms": {k: list(v) for k, v in by_os.items()}},
                indent=2,
            )
        )
        return

    if catalog.is_fallback:
        warning(escape(f"Could not query the Go toolchain ({provider.discovery_error})"))
        info("Showing the built-in platform list")

    info("Supported platforms:")
    click.echo()
    for os_name in sorted(by_os):
        click.echo(f"  {os_name}:")
        click.echo(f"    {', '.join(by_os[os_name])}")

    click.echo()
    success(f"{len(catalog.targets)} platforms across {len(by_os)} operating systems")
