"""CLI error handling for gogogo.

Engine and configuration errors become a CLIError carrying the process
exit status:

- 0  the run succeeded or nothing needed building
- 1  a target failed, an option or config value is invalid, or a
     precondition (go toolchain, platforms, output directory) failed
- 2  an input file (source or --config) does not exist
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import click
from pydantic import ValidationError as PydanticValidationError
from rich.markup import escape

from gogogo.cli.output import error
from gogogo.errors import GogogoError, SourceNotFoundError

if TYPE_CHECKING:
    from yaml import YAMLError

EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1
EXIT_SYSTEM_ERROR = 2

# Engine errors that do not exit with EXIT_USER_ERROR
_EXIT_CODES: dict[type[GogogoError], int] = {
    SourceNotFoundError: EXIT_SYSTEM_ERROR,
}


class CLIError(click.ClickException):
    """A user-facing failure that ends the command.

    Attributes:
        exit_code: Process exit status.
    """

    def __init__(self, message: str, exit_code: int = EXIT_USER_ERROR) -> None:
        super().__init__(message)
        self.exit_code = exit_code

    def show(self, file: object = None) -> None:
        """Print the message on the shared console instead of stderr."""
        error(escape(self.format_message()))


def format_pydantic_error(err: PydanticValidationError) -> str:
    """One line per invalid field, dotted location first.

    Example:
        >>> print(format_pydantic_error(err))
        Validation failed:
          - retry.max_retries: Input should be less than or equal to 10
    """
    lines = ["Validation failed:"]
    lines.extend(
        f"  - {'.'.join(str(part) for part in detail['loc'])}: {detail['msg']}"
        for detail in err.errors()
    )
    return "\n".join(lines)


def handle_yaml_error(err: YAMLError, file_path: str) -> NoReturn:
    """Raise a CLIError pointing at the line and column of a YAML error."""
    mark = getattr(err, "problem_mark", None)
    problem = getattr(err, "problem", None)
    if mark is not None and problem:
        detail = f"YAML syntax error at line {mark.line + 1}, column {mark.column + 1}: {problem}"
    else:
        detail = str(err)
    raise CLIError(f"Invalid YAML in {file_path}: {detail}")


def handle_validation_error(err: PydanticValidationError, source: str) -> NoReturn:
    """Raise a CLIError listing invalid settings.

    Args:
        err: Validation error from BuildConfig.
        source: Config file path, or "options" for command-line values.
    """
    raise CLIError(f"Invalid configuration in {source}:\n{format_pydantic_error(err)}")


def handle_gogogo_error(err: GogogoError) -> NoReturn:
    """Raise a CLIError for a fatal engine error."""
    exit_code = next(
        (code for cls, code in _EXIT_CODES.items() if isinstance(err, cls)),
        EXIT_USER_ERROR,
    )
    raise CLIError(str(err), exit_code=exit_code)
