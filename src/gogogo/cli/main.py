"""CLI entry point for gogogo.

Subcommand modules are imported on first use; running one command never
imports the others.
"""

from __future__ import annotations

import importlib
from typing import Any, NamedTuple

import click
import rich_click as rclick

from gogogo import __version__
from gogogo.cli.output import set_no_color
from gogogo.observability import configure_logging

rclick.rich_click.TEXT_MARKUP = "markdown"
rclick.rich_click.SHOW_ARGUMENTS = True
rclick.rich_click.GROUP_ARGUMENTS_OPTIONS = True

# Log level of every command until a command chooses its own
DEFAULT_LOG_LEVEL = "WARNING"


class CommandRef(NamedTuple):
    """Module and attribute of a subcommand."""

    module: str
    attr: str


LAZY_COMMANDS: dict[str, CommandRef] = {
    "build": CommandRef("gogogo.cli.commands.build", "build"),
    "list": CommandRef("gogogo.cli.commands.list_platforms", "list_cmd"),
    "groups": CommandRef("gogogo.cli.commands.groups", "groups"),
    "version": CommandRef("gogogo.cli.commands.version", "version"),
    "examples": CommandRef("gogogo.cli.commands.examples", "examples"),
}


class LazyGroup(rclick.RichGroup):
    """Rich command group whose subcommands are imported on demand.

    Attributes:
        lazy_subcommands: Command name -> CommandRef.
    """

    def __init__(
        self,
        *args: Any,
        lazy_subcommands: dict[str, CommandRef] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.lazy_subcommands = dict(lazy_subcommands or {})
        self._loaded: dict[str, click.Command] = {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted({*super().list_commands(ctx), *self.lazy_subcommands})

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Return a registered command, importing it on first request."""
        cmd = super().get_command(ctx, cmd_name)  # type: ignore[arg-type]
        if cmd is not None:
            return cmd
        if cmd_name in self._loaded:
            return self._loaded[cmd_name]

        ref = self.lazy_subcommands.get(cmd_name)
        if ref is None:
            return None
        loaded = getattr(importlib.import_module(ref.module), ref.attr)
        if not isinstance(loaded, click.Command):
            msg = f"{ref.module}.{ref.attr} is not a click command"
            raise TypeError(msg)
        self._loaded[cmd_name] = loaded
        return loaded


def _disable_color(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    if value:
        set_no_color(True)


@click.command(cls=LazyGroup, lazy_subcommands=LAZY_COMMANDS)
@click.version_option(version=__version__, prog_name="gogogo")
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    is_eager=True,
    expose_value=False,
    callback=_disable_color,
    help="Disable colored output (NO_COLOR is honoured too).",
)
def cli() -> None:
    """gogogo - Go cross-platform build tool.

    Compile one Go program for many operating systems and architectures.

    **Getting Started:**

    - `gogogo build -s main.go` - Build for the default platforms
    - `gogogo build -s main.go -p desktop,js/wasm` - Build a custom set
    - `gogogo list` - Show every platform the Go toolchain supports
    - `gogogo groups` - Show the named platform groups
    - `gogogo examples` - More usage examples
    """
    # Logs go to stderr through stdlib logging; stdout carries command output.
    # build reconfigures the level from its -v option.
    configure_logging(log_level=DEFAULT_LOG_LEVEL, add_timestamp=False)


if __name__ == "__main__":
    cli()
