"""Shared pytest fixtures for gogogo tests.

Provides structlog configuration for capture, an in-memory Go toolchain
fake and a sleep recorder for retry tests.
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Callable, Generator, Mapping, Sequence
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from gogogo.config import BuildConfig, HostPlatform, PolicyConfig, RetryConfig
from gogogo.toolchain import CommandResult

# Output of `go tool dist list` used by default in tests
DIST_LIST = """\
aix/ppc64
android/arm
android/arm64
darwin/amd64
darwin/arm64
freebsd/amd64
freebsd/arm64
illumos/amd64
ios/amd64
ios/arm64
js/wasm
linux/386
linux/amd64
linux/arm
linux/arm64
linux/mips
linux/mips64
linux/riscv64
solaris/amd64
windows/386
windows/amd64
windows/arm64
"""

LINUX_HOST = HostPlatform(os="linux", arch="amd64")

# gogogo.yaml written by isolated_runner
HOST_PINNED_CONFIG = """\
policy:
  host:
    os: linux
    arch: amd64
"""

BuildResult = CommandResult | Exception


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


class FakeToolchain:
    """In-memory stand-in for GoToolchain.

    Build results are scripted per target label. Each attempt consumes the
    next scripted result; the last one repeats. Unscripted targets succeed.
    Successful builds write a small artifact at the "-o" path.
    """

    def __init__(
        self,
        platforms: str = DIST_LIST,
        *,
        results: Mapping[str, Sequence[BuildResult]] | None = None,
        discovery_error: Exception | None = None,
        go_version: str = "go version go1.22.1 linux/amd64",
    ) -> None:
        self.platforms_output = platforms
        self.discovery_error = discovery_error
        self.go_version = go_version
        self.list_calls = 0
        self.builds: list[tuple[list[str], dict[str, str]]] = []
        self._results = {label: list(seq) for label, seq in (results or {}).items()}
        self._lock = threading.Lock()

    def version(self) -> str:
        return self.go_version

    def list_platforms(self) -> str:
        with self._lock:
            self.list_calls += 1
        if self.discovery_error is not None:
            raise self.discovery_error
        return self.platforms_output

    def environment(self) -> dict[str, str]:
        return {"PATH": "/usr/bin", "HOME": "/home/gopher"}

    def build(self, args: Sequence[str], env: Mapping[str, str]) -> CommandResult:
        label = f"{env['GOOS']}/{env['GOARCH']}"
        with self._lock:
            self.builds.append((list(args), dict(env)))
            scripted = self._results.get(label)
            if scripted and len(scripted) > 1:
                result = scripted.pop(0)
            elif scripted:
                result = scripted[0]
            else:
                result = CommandResult(returncode=0, output="")

        if isinstance(result, Exception):
            raise result
        if result.ok:
            output_path = Path(args[list(args).index("-o") + 1])
            output_path.write_bytes(b"\x7fELF fake binary")
        return result

    def built_labels(self) -> list[str]:
        """Labels passed to the compiler, one entry per attempt."""
        with self._lock:
            return [f"{env['GOOS']}/{env['GOARCH']}" for _, env in self.builds]

    def attempts_for(self, label: str) -> int:
        return self.built_labels().count(label)


class SleepRecorder:
    """Records requested sleeps instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self._lock = threading.Lock()

    def __call__(self, seconds: float) -> None:
        with self._lock:
            self.delays.append(seconds)


def failing(returncode: int = 1, output: str = "build failed") -> CommandResult:
    """A failed compiler invocation."""
    return CommandResult(returncode=returncode, output=output)


@pytest.fixture
def fake_toolchain() -> FakeToolchain:
    """Fake toolchain with the default platform list and no scripted failures."""
    return FakeToolchain()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    """A Go source file on disk."""
    path = tmp_path / "main.go"
    path.write_text('package main\n\nfunc main() { println("hi") }\n')
    return path


@pytest.fixture
def make_config(tmp_path: Path, source_file: Path) -> Callable[..., BuildConfig]:
    """Factory for BuildConfig on a Linux/amd64 host with an isolated output dir."""

    def _make(
        *,
        platforms: str = "linux/amd64",
        policy: dict[str, object] | None = None,
        retry: RetryConfig | None = None,
        **kwargs: object,
    ) -> BuildConfig:
        policy_settings: dict[str, object] = {"host": LINUX_HOST, "no_prompt": True}
        policy_settings.update(policy or {})
        return BuildConfig(
            source=source_file,
            output_dir=tmp_path / "build",
            platforms=platforms,  # type: ignore[arg-type]
            retry=retry or RetryConfig(backoff_seconds=1.0),
            policy=PolicyConfig(**policy_settings),  # type: ignore[arg-type]
            **kwargs,  # type: ignore[arg-type]
        )

    return _make


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def isolated_runner(cli_runner: CliRunner) -> Generator[CliRunner, None, None]:
    """Click test runner inside a temporary working directory.

    The directory holds a main.go and a gogogo.yaml pinning the host to
    linux/amd64 so host-affinity rules do not depend on the machine.
    """
    with cli_runner.isolated_filesystem():
        Path("main.go").write_text('package main\n\nfunc main() {}\n')
        Path("gogogo.yaml").write_text(HOST_PINNED_CONFIG)
        yield cli_runner
