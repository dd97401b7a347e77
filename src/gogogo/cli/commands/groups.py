"""gogogo groups command - Show the named platform groups."""

from __future__ import annotations

import json

import click
from rich.markup import escape

from gogogo.cli.output import info, warning
from gogogo.platforms import (
    ALL_PLATFORMS_TOKEN,
    GROUP_DESCRIPTIONS,
    PLATFORM_GROUPS,
    CatalogProvider,
)
from gogogo.toolchain import GoToolchain

# Platforms of the dynamic "all" entry shown before truncating
ALL_PREVIEW_COUNT = 10


@click.command("groups")
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Output as JSON",
)
def groups(as_json: bool) -> None:
    """List the platform groups usable with `build -p`.

    The `all` entry is resolved from the installed Go toolchain.

    Examples:

        gogogo groups

        gogogo build -s main.go -p server,web
    """
    provider = CatalogProvider(GoToolchain())
    catalog = provider.get()

    if as_json:
        data = {name: list(labels) for name, labels in PLATFORM_GROUPS.items()}
        data[ALL_PLATFORMS_TOKEN] = list(catalog.labels)
        click.echo(json.dumps(data, indent=2))
        return

    if catalog.is_fallback:
        warning(escape(f"Could not query the Go toolchain ({provider.discovery_error})"))
        info("The all entry shows the built-in platform list")

    info("Platform groups:")
    for name, labels in PLATFORM_GROUPS.items():
        click.echo()
        click.echo(f"  {name} - {GROUP_DESCRIPTIONS.get(name, '')}")
        click.echo(f"    {', '.join(labels)}")

    click.echo()
    click.echo(f"  {ALL_PLATFORMS_TOKEN} - every platform supported by the Go toolchain")
    preview = catalog.labels[:ALL_PREVIEW_COUNT]
    remaining = len(catalog.labels) - len(preview)
    line = ", ".join(preview)
    if remaining > 0:
        line += f" ... and {remaining} more"
    click.echo(f"    {line}")
