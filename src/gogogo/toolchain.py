"""Go toolchain adapter.

Thin wrapper over the `go` executable:
- locate the binary and report its version
- discover the supported platforms (`go tool dist list`)
- run `go build` with a prepared argument list and environment

Everything above this module treats the compiler as an opaque command that
takes arguments plus environment and returns an exit status and output text.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import structlog

from gogogo.errors import ToolNotFoundError

logger = structlog.get_logger(__name__)

# Default compiler executable
GO_BINARY = "go"

# GOENV file installed by the Android module
ANDROID_GOENV_PATH = Path("/data/adb/modules/gogogo/go.env")


@dataclass(frozen=True)
class CommandResult:
    """Exit status and combined stdout/stderr of a finished command."""

    returncode: int
    output: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class GoToolchain:
    """Runs the Go toolchain as a subprocess.

    Attributes:
        binary: Name or path of the go executable.

    Example:
        >>> toolchain = GoToolchain()
        >>> toolchain.ensure_available()
        >>> print(toolchain.version())
        go version go1.22.1 linux/amd64
    """

    def __init__(self, binary: str = GO_BINARY, host_os: str | None = None) -> None:
        """Initialize the toolchain adapter.

        Args:
            binary: Name or path of the go executable.
            host_os: Host GOOS; on "android" a GOENV override is applied
                when the module's go.env file exists.
        """
        self.binary = binary
        self.host_os = host_os
        self._log = logger.bind(binary=binary)

    def locate(self) -> str | None:
        """Return the resolved path of the go binary, or None."""
        return shutil.which(self.binary)

    def ensure_available(self) -> str:
        """Check that the go binary can be found.

        Returns:
            Resolved path of the binary.

        Raises:
            ToolNotFoundError: If go is not on PATH.
        """
        path = self.locate()
        if path is None:
            raise ToolNotFoundError(
                self.binary,
                "go command not found; make sure Go is installed and on PATH",
            )
        return path

    def environment(self) -> dict[str, str]:
        """Base environment for toolchain invocations."""
        env = dict(os.environ)
        if self.host_os == "android" and ANDROID_GOENV_PATH.exists():
            env["GOENV"] = str(ANDROID_GOENV_PATH)
            self._log.info("android_goenv_applied", goenv=str(ANDROID_GOENV_PATH))
        return env

    def version(self) -> str:
        """Return the `go version` line.

        Raises:
            ToolNotFoundError: If go is missing or the version cannot be read.
        """
        self.ensure_available()
        result = self.run(["version"])
        if not result.ok:
            raise ToolNotFoundError(
                self.binary,
                "Unable to determine Go version",
            )
        return result.output.strip()

    def list_platforms(self) -> str:
        """Return the raw newline-delimited output of `go tool dist list`.

        Raises:
            OSError: If the binary cannot be executed.
            subprocess.CalledProcessError: If the command exits non-zero.
        """
        completed = subprocess.run(  # noqa: S603
            [self.binary, "tool", "dist", "list"],
            capture_output=True,
            text=True,
            check=True,
            env=self.environment(),
        )
        return completed.stdout

    def run(
        self,
        args: Sequence[str],
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run the go binary with the given arguments.

        Args:
            args: Arguments after the binary name (e.g. ["build", "-o", ...]).
            env: Full process environment; defaults to environment().

        Returns:
            CommandResult with exit status and combined output.

        Raises:
            OSError: If the binary cannot be executed.
        """
        cmd = [self.binary, *args]
        self._log.debug("toolchain_command", command=" ".join(cmd))
        completed = subprocess.run(  # noqa: S603
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            env=dict(env) if env is not None else self.environment(),
            check=False,
        )
        return CommandResult(returncode=completed.returncode, output=completed.stdout or "")

    def build(self, args: Sequence[str], env: Mapping[str, str]) -> CommandResult:
        """Run `go build` with prepared arguments.

        Args:
            args: Full argument list starting with "build".
            env: Full process environment including GOOS/GOARCH.
        """
        return self.run(args, env)
