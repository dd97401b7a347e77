"""gogogo build command - Cross-compile a Go program for many platforms."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import yaml
from click.core import ParameterSource
from pydantic import ValidationError
from rich.markup import escape

from gogogo.cli import output
from gogogo.cli.errors import (
    EXIT_SUCCESS,
    EXIT_SYSTEM_ERROR,
    EXIT_USER_ERROR,
    CLIError,
    handle_gogogo_error,
    handle_validation_error,
    handle_yaml_error,
)
from gogogo.cli.output import error, info, success, warning
from gogogo.config import CONFIG_FILE_NAME, BuildConfig
from gogogo.errors import GogogoError
from gogogo.observability import configure_logging, log_level_for_verbosity

if TYPE_CHECKING:
    from gogogo.policy import ConfirmCallback
    from gogogo.session import BuildSession

# CLI parameter name -> (config section or None, config key)
_CONFIG_KEYS: dict[str, tuple[str | None, str]] = {
    "source": (None, "source"),
    "output": (None, "output_dir"),
    "name": (None, "binary_name"),
    "platforms": (None, "platforms"),
    "verbose": (None, "verbose"),
    "parallel": (None, "parallel"),
    "compress": (None, "compress"),
    "clean": (None, "clean"),
    "progress": (None, "progress"),
    "all_archs": (None, "all_archs"),
    "retry": ("retry", "enabled"),
    "max_retries": ("retry", "max_retries"),
    "ldflags": ("policy", "ldflags"),
    "tags": ("policy", "tags"),
    "skip_cgo": ("policy", "skip_cgo"),
    "force": ("policy", "force"),
    "no_prompt": ("policy", "no_prompt"),
}


@dataclass
class BuildOptions:
    """Presentation options of the build command."""

    verbose: int
    progress: bool
    as_json: bool

    @property
    def chatty(self) -> bool:
        """Human-readable messages are printed."""
        return self.verbose >= 1 and not self.as_json


def explicit_overrides(ctx: click.Context, params: dict[str, Any]) -> dict[str, Any]:
    """Collect the options given on the command line as config overrides.

    Options left at their defaults are omitted so that config file values
    are not overwritten by them.

    Args:
        ctx: Click context of the build command.
        params: Parameter values keyed by parameter name.

    Returns:
        Nested settings dict in BuildConfig shape.
    """
    overrides: dict[str, Any] = {}
    for param, (section, key) in _CONFIG_KEYS.items():
        if ctx.get_parameter_source(param) in (None, ParameterSource.DEFAULT):
            continue
        value = params[param]
        if param == "platforms":
            value = ",".join(value)
        if section is None:
            overrides[key] = value
        else:
            overrides.setdefault(section, {})[key] = value
    return overrides


def load_config(config_file: str | None, overrides: dict[str, Any]) -> BuildConfig:
    """Build the BuildConfig from an optional config file plus overrides.

    Args:
        config_file: Explicit --config path, or None to look for ./gogogo.yaml.
        overrides: Settings given on the command line.

    Raises:
        CLIError: On a missing or unreadable file, or invalid settings.
    """
    path = Path(config_file) if config_file else None
    if path is None and Path(CONFIG_FILE_NAME).exists():
        path = Path(CONFIG_FILE_NAME)

    if path is None and "source" not in overrides:
        raise CLIError("Missing option '-s' / '--source': the Go source file to build")

    try:
        if path is None:
            return BuildConfig.model_validate(overrides)
        return BuildConfig.from_yaml(path, **overrides)
    except FileNotFoundError:
        raise CLIError(f"File not found: {path}", exit_code=EXIT_SYSTEM_ERROR) from None
    except yaml.YAMLError as e:
        handle_yaml_error(e, str(path))
    except ValidationError as e:
        handle_validation_error(e, str(path) if path else "options")
    except ValueError as e:
        raise CLIError(str(e)) from None


def confirm_prompt() -> ConfirmCallback:
    """Interactive confirmation callback; one question at a time."""
    lock = threading.Lock()

    def _confirm(question: str) -> bool:
        with lock:
            try:
                return click.confirm(question, default=False, err=True)
            except click.Abort:
                return False

    return _confirm


def _print_warnings(session: BuildSession, opts: BuildOptions) -> None:
    if not opts.chatty:
        return
    for w in session.warnings:
        warning(escape(w.message))


def _run_build(config: BuildConfig, opts: BuildOptions) -> None:
    """Run the build session and display the report.

    Raises:
        SystemExit: 0 on success or nothing built, 1 when a target failed.
        CLIError: On a fatal precondition.
    """
    # Import here to keep `gogogo --help` fast
    from gogogo.models import ReportStatus
    from gogogo.report import format_report_json, format_report_table
    from gogogo.session import BuildSession

    session = BuildSession(config, confirm=confirm_prompt())

    try:
        targets = session.prepare()
    except GogogoError as e:
        _print_warnings(session, opts)
        handle_gogogo_error(e)

    _print_warnings(session, opts)
    if opts.chatty:
        info(f"Building {config.resolved_binary_name} for {len(targets)} platform(s)")
        if opts.verbose >= 2:
            info("  " + ", ".join(t.label for t in targets), markup=False)

    if opts.progress and opts.chatty:
        with output.create_progress() as progress:
            task = progress.add_task("Building", total=len(targets))
            session.on_outcome = lambda _outcome: progress.advance(task)
            report = session.execute(targets)
    else:
        report = session.execute(targets)

    if opts.as_json:
        click.echo(format_report_json(report))
    elif opts.verbose >= 1:
        format_report_table(report, output.get_console(), show_outcomes=opts.verbose >= 2)

    if report.status == ReportStatus.FAILED:
        if opts.chatty:
            error(f"{len(report.failed)} target(s) failed")
        raise SystemExit(EXIT_USER_ERROR)

    if opts.chatty:
        if report.status == ReportStatus.NOTHING_BUILT:
            warning("Nothing was built")
        else:
            success(f"Built {len(report.successful)} target(s) in {config.output_dir}")
    raise SystemExit(EXIT_SUCCESS)


@click.command("build")
@click.option(
    "-s",
    "--source",
    "source",
    type=click.Path(),
    default=None,
    help="Go source file to build",
)
@click.option(
    "-o",
    "--output",
    "output",
    type=click.Path(),
    default="./build",
    help="Output directory [default: ./build]",
)
@click.option(
    "-n",
    "--name",
    "name",
    default=None,
    help="Binary name [default: source file name]",
)
@click.option(
    "-p",
    "--platforms",
    "platforms",
    multiple=True,
    default=("default",),
    help="Platforms, groups or OS names, comma separated [default: default]",
)
@click.option(
    "-v",
    "--verbose",
    "verbose",
    type=click.IntRange(0, 3),
    default=1,
    help="Verbosity: 0=quiet, 1=normal, 2=detailed, 3=debug [default: 1]",
)
@click.option("--parallel/--no-parallel", default=True, help="Build targets in parallel")
@click.option("-c", "--compress", is_flag=True, default=False, help="gzip the binaries")
@click.option("--clean", is_flag=True, default=False, help="Clean the output directory first")
@click.option("--retry/--no-retry", default=True, help="Retry failed builds")
@click.option(
    "--max-retries",
    "max_retries",
    type=click.IntRange(0, 10),
    default=2,
    help="Maximum retries per target [default: 2]",
)
@click.option("--progress/--no-progress", default=True, help="Show a progress bar")
@click.option(
    "--all",
    "all_archs",
    is_flag=True,
    default=False,
    help="Build every architecture of a bare OS name",
)
@click.option("--ldflags", default="", help='Linker flags, e.g. "-s -w"')
@click.option("--tags", default="", help="Build tags")
@click.option("--skip-cgo", "skip_cgo", is_flag=True, default=False, help="Skip cgo targets")
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Build host-restricted targets (e.g. iOS) on any host",
)
@click.option(
    "--no-prompt",
    "no_prompt",
    is_flag=True,
    default=False,
    help="Do not ask for confirmations",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(),
    default=None,
    help="Path to gogogo.yaml [default: ./gogogo.yaml if present]",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Output report as JSON")
@click.pass_context
def build(ctx: click.Context, config_file: str | None, as_json: bool, **params: Any) -> None:
    """Cross-compile a Go program for multiple platforms.

    Platforms accept `os/arch` pairs, group names (`default`, `desktop`,
    `server`, `mobile`, `web`, `embedded`), `all`, or a bare OS name.

    Examples:

        gogogo build -s main.go

        gogogo build -s main.go -p desktop,js/wasm --compress

        gogogo build -s main.go -p linux --all -v 2

        gogogo build -s main.go -p mobile --skip-cgo --json
    """
    config = load_config(config_file, explicit_overrides(ctx, params))
    configure_logging(log_level=log_level_for_verbosity(config.verbose), add_timestamp=False)

    _run_build(
        config,
        BuildOptions(verbose=config.verbose, progress=config.progress, as_json=as_json),
    )
