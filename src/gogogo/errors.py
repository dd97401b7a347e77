"""Custom exception hierarchy for gogogo.

This module defines the exception classes raised by the build engine:
- GogogoError: Base exception for all gogogo errors
- FatalPreconditionError: Aborts a run before any target is dispatched
- ToolNotFoundError, SourceNotFoundError, NoTargetsError, OutputDirectoryError
- ToolchainRequirementError: A single target cannot be attempted

Per-target compiler failures and policy skips are NOT exceptions. They are
recorded as BuildOutcome values (see gogogo.models) so that retry and
aggregation never have to distinguish a skip from an error channel.
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(__name__)


class GogogoError(Exception):
    """Base exception for gogogo.

    User-facing messages are safe to display; technical details are
    logged internally.

    Attributes:
        message: Human-readable error description.
        details: Optional additional context about the error.

    Example:
        >>> raise GogogoError(
        ...     "Build setup failed",
        ...     details={"source": "main.go"},
        ...     internal_details="stat main.go: no such file or directory",
        ... )
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, str] | None = None,
        internal_details: str | None = None,
    ) -> None:
        """Initialize GogogoError.

        Args:
            message: Safe message to display to the user.
            details: Optional additional context about the error.
            internal_details: Technical details for internal logging only.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

        if internal_details:
            logger.error(
                "gogogo_error",
                error_type=self.__class__.__name__,
                user_message=message,
                internal_details=internal_details,
            )

    def __str__(self) -> str:
        """Return string representation with details if present."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class FatalPreconditionError(GogogoError):
    """A run cannot start.

    Raised before dispatch; no target is attempted once one of these
    surfaces.
    """


class ToolNotFoundError(FatalPreconditionError):
    """A required external tool is missing from PATH.

    Example:
        >>> raise ToolNotFoundError("go")
        # User sees: "Required tool not found: go"
    """

    def __init__(self, tool: str, message: str | None = None) -> None:
        """Initialize ToolNotFoundError.

        Args:
            tool: Name of the missing executable.
            message: Optional custom error message.
        """
        msg = message or f"Required tool not found: {tool}"
        super().__init__(msg, details={"tool": tool})
        self.tool = tool


class SourceNotFoundError(FatalPreconditionError):
    """The source unit to compile does not exist."""

    def __init__(self, source: str) -> None:
        """Initialize SourceNotFoundError.

        Args:
            source: Path of the missing source file.
        """
        super().__init__(f"Source file not found: {source}", details={"source": source})
        self.source = source


class NoTargetsError(FatalPreconditionError):
    """The platform specification resolved to zero targets."""

    def __init__(self, spec: str) -> None:
        """Initialize NoTargetsError.

        Args:
            spec: The platform specification that resolved to nothing.
        """
        super().__init__(
            "No valid target platforms found",
            details={"platforms": spec},
        )
        self.spec = spec


class OutputDirectoryError(FatalPreconditionError):
    """The output directory cannot be created or cleaned."""

    def __init__(self, path: str, cause: str | None = None) -> None:
        """Initialize OutputDirectoryError.

        Args:
            path: The output directory.
            cause: Underlying OS error message.
        """
        details = {"path": path}
        if cause:
            details["cause"] = cause
        super().__init__("Cannot prepare output directory", details=details)
        self.path = path
        self.cause = cause


class ToolchainRequirementError(GogogoError):
    """A target needs a helper tool that is not installed.

    Raised by TargetPolicy.check_requirements and turned into a
    non-retryable Failed outcome by the executor.

    Example:
        >>> raise ToolchainRequirementError("ios", "xcodebuild")
    """

    def __init__(self, target_os: str, tool: str) -> None:
        """Initialize ToolchainRequirementError.

        Args:
            target_os: Target operating system that needs the tool.
            tool: Name of the missing helper executable.
        """
        super().__init__(
            f"Building for {target_os} requires '{tool}' on PATH",
            details={"os": target_os, "tool": tool},
        )
        self.target_os = target_os
        self.tool = tool
