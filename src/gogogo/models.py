"""Build engine data models.

Models for build targets, per-target outcomes and the aggregate run report.

- BuildTarget: one GOOS/GOARCH pair
- BuildOutcome: terminal classification of one target (success/skipped/failed)
- BuildReport: frozen aggregate of all outcomes of a run
- ResolutionWarning: non-fatal diagnostic emitted while resolving platforms
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field

# Separator between OS and architecture in a platform label
LABEL_SEPARATOR = "/"


class BuildTarget(BaseModel):
    """A single (operating system, architecture) pair to build for.

    Equality and hashing are by (os, arch); the label is derived.

    Attributes:
        os: Target operating system (GOOS), e.g. "linux"
        arch: Target architecture (GOARCH), e.g. "arm64"

    Example:
        >>> target = BuildTarget.parse("linux/arm64")
        >>> target.label
        'linux/arm64'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    os: str = Field(..., min_length=1, description="Target operating system (GOOS)")
    arch: str = Field(..., min_length=1, description="Target architecture (GOARCH)")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def label(self) -> str:
        """Canonical "os/arch" label."""
        return f"{self.os}{LABEL_SEPARATOR}{self.arch}"

    @property
    def key(self) -> tuple[str, str]:
        """Identity used for de-duplication."""
        return (self.os, self.arch)

    @property
    def executable_suffix(self) -> str:
        """File suffix the Go toolchain expects for executables on this OS."""
        return ".exe" if self.os == "windows" else ""

    @classmethod
    def parse(cls, label: str) -> BuildTarget:
        """Parse an "os/arch" label.

        Args:
            label: Platform label with exactly one separator.

        Returns:
            BuildTarget for the label.

        Raises:
            ValueError: If the label does not have exactly two non-empty segments.
        """
        parts = label.strip().split(LABEL_SEPARATOR)
        if len(parts) != 2 or not all(parts):
            msg = f"Invalid platform '{label}': expected OS{LABEL_SEPARATOR}ARCH"
            raise ValueError(msg)
        return cls(os=parts[0], arch=parts[1])

    def __str__(self) -> str:
        return self.label


class ResolutionWarning(BaseModel):
    """A platform token that contributed no targets.

    Attributes:
        token: The platform token that could not be resolved
        message: Human-readable explanation
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    token: str = Field(..., description="Specification token")
    message: str = Field(..., min_length=1, description="Diagnostic message")


class OutcomeStatus(str, Enum):
    """Terminal classification of a target build.

    Attributes:
        SUCCESS: The compiler produced an artifact
        SKIPPED: Policy decided not to attempt the target (not a failure)
        FAILED: The compiler invocation failed after all retries
    """

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class BuildOutcome(BaseModel):
    """Outcome of building one target.

    Attributes:
        target: The target this outcome belongs to
        status: Success, skipped or failed
        detail: Skip reason or failure detail (empty on success)
        attempts: Number of executor attempts made
        duration_ms: Wall-clock duration of the last attempt
        artifact_path: Path of the produced artifact on success
        retryable: Whether a failure may be retried

    Example:
        >>> outcome = BuildOutcome.skipped(target, "requires cgo")
        >>> outcome.was_skipped
        True
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    target: BuildTarget = Field(..., description="Build target")
    status: OutcomeStatus = Field(..., description="Outcome status")
    detail: str = Field(default="", description="Skip reason or failure detail")
    attempts: int = Field(default=1, ge=1, description="Attempts made")
    duration_ms: int = Field(default=0, ge=0, description="Duration in milliseconds")
    artifact_path: Path | None = Field(default=None, description="Produced artifact")
    retryable: bool = Field(default=True, description="Failure may be retried")

    @classmethod
    def success(
        cls,
        target: BuildTarget,
        artifact_path: Path | None = None,
        duration_ms: int = 0,
    ) -> BuildOutcome:
        """Create a Success outcome."""
        return cls(
            target=target,
            status=OutcomeStatus.SUCCESS,
            artifact_path=artifact_path,
            duration_ms=duration_ms,
        )

    @classmethod
    def skipped(cls, target: BuildTarget, reason: str) -> BuildOutcome:
        """Create a Skipped outcome."""
        return cls(target=target, status=OutcomeStatus.SKIPPED, detail=reason)

    @classmethod
    def failed(
        cls,
        target: BuildTarget,
        detail: str,
        *,
        retryable: bool = True,
        duration_ms: int = 0,
    ) -> BuildOutcome:
        """Create a Failed outcome."""
        return cls(
            target=target,
            status=OutcomeStatus.FAILED,
            detail=detail,
            retryable=retryable,
            duration_ms=duration_ms,
        )

    @property
    def succeeded(self) -> bool:
        """Check if the target was built."""
        return self.status == OutcomeStatus.SUCCESS

    @property
    def was_skipped(self) -> bool:
        """Check if the target was skipped by policy."""
        return self.status == OutcomeStatus.SKIPPED

    @property
    def has_failed(self) -> bool:
        """Check if the target failed."""
        return self.status == OutcomeStatus.FAILED

    @property
    def should_retry(self) -> bool:
        """Check if another attempt may change this outcome."""
        return self.has_failed and self.retryable

    def with_attempts(self, attempts: int) -> BuildOutcome:
        """Return a copy stamped with the number of attempts made."""
        return self.model_copy(update={"attempts": attempts})


class ReportStatus(str, Enum):
    """Overall status of a build run.

    Attributes:
        SUCCESS: At least one target built and none failed
        NOTHING_BUILT: Every target was skipped; nothing failed
        FAILED: At least one target failed after retries
    """

    SUCCESS = "success"
    NOTHING_BUILT = "nothing_built"
    FAILED = "failed"


class BuildReport(BaseModel):
    """Aggregated result of a build run.

    Label lists are in completion order, which is not deterministic when
    the run is parallel; compare them as sets.

    Attributes:
        successful: Labels of targets that built
        skipped: Labels of targets skipped by policy
        failed: Labels of targets that failed
        outcomes: Every outcome, in completion order
        started_at: When the run started
        finished_at: When the run finished
        total_duration_ms: Total run duration in milliseconds
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    successful: tuple[str, ...] = Field(default=(), description="Built targets")
    skipped: tuple[str, ...] = Field(default=(), description="Skipped targets")
    failed: tuple[str, ...] = Field(default=(), description="Failed targets")
    outcomes: tuple[BuildOutcome, ...] = Field(default=(), description="All outcomes")
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Run start timestamp"
    )
    finished_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Run end timestamp"
    )
    total_duration_ms: int = Field(default=0, ge=0, description="Run duration in milliseconds")

    @property
    def fully_successful(self) -> bool:
        """Check that no target failed. Skips are not failures."""
        return not self.failed

    @property
    def nothing_built(self) -> bool:
        """Check whether every target was skipped."""
        return not self.successful and bool(self.skipped) and not self.failed

    @property
    def status(self) -> ReportStatus:
        """Overall run status."""
        if self.failed:
            return ReportStatus.FAILED
        if self.nothing_built:
            return ReportStatus.NOTHING_BUILT
        return ReportStatus.SUCCESS

    @property
    def failures(self) -> list[BuildOutcome]:
        """Outcomes of failed targets."""
        return [o for o in self.outcomes if o.has_failed]

    def outcome_for(self, label: str) -> BuildOutcome | None:
        """Look up the outcome recorded for a target label."""
        for outcome in self.outcomes:
            if outcome.target.label == label:
                return outcome
        return None
