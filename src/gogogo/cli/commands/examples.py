"""gogogo examples command - Show usage examples."""

from __future__ import annotations

import click

from gogogo.cli.output import info

EXAMPLES: tuple[tuple[str, str], ...] = (
    ("Build for the default platforms", "gogogo build -s main.go"),
    ("Build for desktop platforms", "gogogo build -s main.go -p desktop"),
    ("Build specific targets", "gogogo build -s main.go -p linux/amd64,windows/amd64"),
    ("Build every Linux architecture", "gogogo build -s main.go -p linux --all"),
    ("Build everything the toolchain supports", "gogogo build -s main.go -p all"),
    ("Compressed release build", 'gogogo build -s main.go -c --ldflags "-s -w"'),
    ("Skip cgo-dependent mobile targets", "gogogo build -s main.go -p mobile --skip-cgo"),
    ("Try iOS on a non-macOS host", "gogogo build -s main.go -p ios --all --force"),
    ("Sequential, detailed, no retries", "gogogo build -s main.go --no-parallel -v 2 --no-retry"),
    ("Machine-readable report", "gogogo build -s main.go --json --no-prompt"),
    ("Use a config file", "gogogo build --config gogogo.yaml"),
)


@click.command("examples")
def examples() -> None:
    """Show common gogogo invocations."""
    info("Examples:")
    for description, command in EXAMPLES:
        click.echo()
        click.echo(f"  # {description}")
        click.echo(f"  {command}")
