"""Build session - wires configuration to the build engine.

A BuildSession runs one invocation end-to-end:

1. Check fatal preconditions (go toolchain, source file)
2. Optionally clean the output directory
3. Resolve the platform specification (empty result is fatal)
4. Create the output root
5. Ask pending confirmation questions (once per OS)
6. Dispatch every target through the orchestrator

Any FatalPreconditionError aborts the run before a target is dispatched.
"""

from __future__ import annotations

import shutil
import time
from collections.abc import Callable

import structlog

from gogogo.config import BuildConfig
from gogogo.errors import OutputDirectoryError, SourceNotFoundError
from gogogo.executor import JobExecutor
from gogogo.models import BuildReport, BuildTarget, ResolutionWarning
from gogogo.orchestrator import (
    BuildJob,
    BuildOrchestrator,
    OutcomeCallback,
    default_concurrency,
)
from gogogo.platforms import CatalogProvider
from gogogo.policy import ConfirmCallback, TargetPolicy, decline
from gogogo.resolver import PlatformResolver, ensure_targets
from gogogo.toolchain import GoToolchain

logger = structlog.get_logger(__name__)


class BuildSession:
    """One configured build run.

    Attributes:
        config: Build configuration.
        toolchain: Go toolchain adapter.
        catalog: Platform catalog provider (discovered at most once).
        on_outcome: Called once per finished target (progress display).

    Example:
        >>> session = BuildSession(BuildConfig(source=Path("main.go")))
        >>> report = session.run()
        >>> report.status
        <ReportStatus.SUCCESS: 'success'>
    """

    def __init__(
        self,
        config: BuildConfig,
        *,
        toolchain: GoToolchain | None = None,
        confirm: ConfirmCallback = decline,
        on_outcome: OutcomeCallback | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.toolchain = toolchain or GoToolchain(host_os=config.policy.host.os)
        self.catalog = CatalogProvider(self.toolchain)
        self.resolver = PlatformResolver(
            self.catalog,
            host_arch=config.policy.host.arch,
            all_archs=config.all_archs,
        )
        self.policy = TargetPolicy(config.policy, confirm=confirm)
        self.executor = JobExecutor(self.policy, self.toolchain, compress=config.compress)
        self.on_outcome = on_outcome
        self._sleep = sleep
        self._log = logger.bind(component="build_session")

    @property
    def warnings(self) -> list[ResolutionWarning]:
        """Resolution diagnostics from the last resolve()."""
        return self.resolver.warnings

    def check_preconditions(self) -> str:
        """Verify the toolchain and the source file.

        Returns:
            The `go version` line.

        Raises:
            ToolNotFoundError: If go is missing.
            SourceNotFoundError: If the source file does not exist.
        """
        version = self.toolchain.version()
        self._log.info("toolchain_found", version=version)
        if not self.config.source.exists():
            raise SourceNotFoundError(str(self.config.source))
        return version

    def clean_output(self) -> None:
        """Remove the output directory if it exists.

        Raises:
            OutputDirectoryError: If removal fails.
        """
        output_dir = self.config.output_dir
        if not output_dir.exists():
            return
        self._log.info("output_dir_cleaning", path=str(output_dir))
        try:
            shutil.rmtree(output_dir)
        except OSError as e:
            raise OutputDirectoryError(str(output_dir), str(e)) from e

    def resolve(self) -> list[BuildTarget]:
        """Resolve the configured platforms.

        Raises:
            NoTargetsError: If nothing resolved.
        """
        spec = self.config.platform_spec
        return ensure_targets(self.resolver.resolve(spec), spec)

    def prepare_output(self) -> None:
        """Create the output root.

        Raises:
            OutputDirectoryError: If the directory cannot be created.
        """
        try:
            self.config.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(str(self.config.output_dir), str(e)) from e

    def prepare(self) -> list[BuildTarget]:
        """Run every pre-dispatch step and return the targets to build.

        Raises:
            FatalPreconditionError: If the run cannot start.
        """
        self.check_preconditions()
        if self.config.clean:
            self.clean_output()
        targets = self.resolve()
        self.prepare_output()
        self.policy.ask_confirmations(targets)
        return targets

    def run(self) -> BuildReport:
        """Prepare and build every configured target."""
        return self.execute(self.prepare())

    def execute(self, targets: list[BuildTarget]) -> BuildReport:
        """Dispatch already-resolved targets.

        Returns:
            Frozen BuildReport.
        """
        orchestrator = BuildOrchestrator(
            self.executor,
            BuildJob(
                source=self.config.source,
                output_root=self.config.output_dir,
                binary_name=self.config.resolved_binary_name,
            ),
            on_outcome=self.on_outcome,
            sleep=self._sleep,
        )
        return orchestrator.run(
            targets,
            max_concurrency=default_concurrency(self.config.parallel),
            retry=self.config.retry,
        )
