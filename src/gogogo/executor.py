"""Job executor - builds one target.

The executor runs exactly one compiler invocation for one target and
classifies the result:

1. Policy says skip       -> Skipped(reason), compiler never invoked
2. Helper tool missing    -> Failed (not retryable)
3. Output dir not created -> Failed
4. Non-zero exit / OSError -> Failed(label, exit detail, captured output)
5. Zero exit              -> Success, optionally compressed

Compression failures are logged and never turn a Success into a Failed.
Each target writes only below output_root/<os>/<arch>/.
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

import structlog

from gogogo.compress import compress_artifact
from gogogo.errors import ToolchainRequirementError
from gogogo.models import BuildOutcome, BuildTarget
from gogogo.observability import span
from gogogo.policy import TargetPolicy
from gogogo.toolchain import CommandResult

logger = structlog.get_logger(__name__)


class BuildRunner(Protocol):
    """The external compiler as seen by the executor (GoToolchain in production)."""

    def environment(self) -> dict[str, str]: ...

    def build(self, args: Sequence[str], env: Mapping[str, str]) -> CommandResult: ...


def artifact_path(
    output_root: Path,
    target: BuildTarget,
    binary_name: str,
) -> Path:
    """Output path of a target's artifact.

    Layout is output_root/<os>/<arch>/<binary_name>[.exe]; distinct
    targets therefore never share a path.
    """
    return output_root / target.os / target.arch / f"{binary_name}{target.executable_suffix}"


class JobExecutor:
    """Builds a single target with the external compiler.

    Attributes:
        policy: Skip rules and invocation parameters.
        compress: gzip successful artifacts.

    Example:
        >>> executor = JobExecutor(TargetPolicy(PolicyConfig()), GoToolchain())
        >>> outcome = executor.execute(
        ...     BuildTarget.parse("linux/amd64"), Path("main.go"), Path("build"), "main"
        ... )
        >>> outcome.status
        <OutcomeStatus.SUCCESS: 'success'>
    """

    def __init__(
        self,
        policy: TargetPolicy,
        runner: BuildRunner,
        *,
        compress: bool = False,
    ) -> None:
        self.policy = policy
        self.compress = compress
        self._runner = runner

    def base_args(self, output_path: Path, source: Path) -> list[str]:
        """Arguments shared by every target before policy adjustments."""
        args = ["build"]
        if self.policy.config.ldflags:
            args += ["-ldflags", self.policy.config.ldflags]
        if self.policy.config.tags:
            args += ["-tags", self.policy.config.tags]
        args += ["-o", str(output_path), str(source)]
        return args

    def execute(
        self,
        target: BuildTarget,
        source: Path,
        output_root: Path,
        binary_name: str,
    ) -> BuildOutcome:
        """Build one target and classify the result.

        Args:
            target: Target to build.
            source: Go source file or package to compile.
            output_root: Root of the artifact tree.
            binary_name: Artifact base name (suffix added per OS).

        Returns:
            Exactly one BuildOutcome.
        """
        log = logger.bind(target=target.label)

        with span("gogogo.build_target", attributes={"gogogo.target": target.label}):
            decision = self.policy.should_skip(target)
            if decision.skip:
                log.info("target_skipped", reason=decision.reason)
                return BuildOutcome.skipped(target, decision.reason)

            try:
                self.policy.check_requirements(target)
            except ToolchainRequirementError as e:
                log.error("target_requirement_missing", tool=e.tool)
                return BuildOutcome.failed(target, f"[{target.label}] {e}", retryable=False)

            output_path = artifact_path(output_root, target, binary_name)
            try:
                output_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                log.error("output_dir_failed", path=str(output_path.parent), error=str(e))
                return BuildOutcome.failed(
                    target, f"[{target.label}] cannot create output directory: {e}"
                )

            prepared = self.policy.prepare(
                target,
                self.base_args(output_path, source),
                self._runner.environment(),
            )
            log.debug("target_build_started", args=prepared.args)

            start = time.monotonic()
            try:
                result = self._runner.build(prepared.args, prepared.env)
            except OSError as e:
                duration_ms = int((time.monotonic() - start) * 1000)
                log.error("target_invocation_failed", error=str(e))
                return BuildOutcome.failed(
                    target,
                    f"[{target.label}] compiler invocation failed: {e}",
                    duration_ms=duration_ms,
                )
            duration_ms = int((time.monotonic() - start) * 1000)

            if not result.ok:
                log.warning("target_build_failed", exit_code=result.returncode)
                return BuildOutcome.failed(
                    target,
                    f"[{target.label}] exit status {result.returncode}\n"
                    f"output: {result.output.strip()}",
                    duration_ms=duration_ms,
                )

            final_path = self._post_process(output_path, log)
            log.info("target_built", artifact=str(final_path), duration_ms=duration_ms)
            return BuildOutcome.success(target, final_path, duration_ms=duration_ms)

    def _post_process(self, output_path: Path, log: structlog.stdlib.BoundLogger) -> Path:
        if not self.compress:
            return output_path
        try:
            return compress_artifact(output_path)
        except OSError as e:
            log.warning("artifact_compression_failed", error=str(e))
            return output_path
