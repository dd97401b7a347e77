"""gogogo: cross-platform build orchestration for Go programs.

This package compiles one Go source file for many GOOS/GOARCH targets:
- Platform specifications ("desktop,js/wasm,illumos") resolved into targets
- Per-target skip policy and compiler environment
- Bounded-concurrency builds with retry and linear backoff
- Structured logging via structlog and OpenTelemetry span tracing

Example:
    >>> from gogogo import BuildConfig, BuildSession
    >>> config = BuildConfig(source=Path("main.go"), platforms=("desktop",))
    >>> report = BuildSession(config).run()
    >>> report.status
    <ReportStatus.SUCCESS: 'success'>
"""

from __future__ import annotations

__version__ = "2.0.0"

# Public API exports
__all__ = [
    # Session
    "BuildSession",
    # Configuration models
    "BuildConfig",
    "PolicyConfig",
    "RetryConfig",
    # Data models
    "BuildTarget",
    "BuildOutcome",
    "BuildReport",
    "OutcomeStatus",
    "ReportStatus",
    # Engine components
    "PlatformResolver",
    "TargetPolicy",
    "JobExecutor",
    "BuildOrchestrator",
    # Exceptions
    "GogogoError",
    "FatalPreconditionError",
    "ToolNotFoundError",
    "SourceNotFoundError",
    "NoTargetsError",
    "OutputDirectoryError",
    "ToolchainRequirementError",
]

_MODULES = {
    "BuildSession": "gogogo.session",
    "BuildConfig": "gogogo.config",
    "PolicyConfig": "gogogo.config",
    "RetryConfig": "gogogo.config",
    "BuildTarget": "gogogo.models",
    "BuildOutcome": "gogogo.models",
    "BuildReport": "gogogo.models",
    "OutcomeStatus": "gogogo.models",
    "ReportStatus": "gogogo.models",
    "PlatformResolver": "gogogo.resolver",
    "TargetPolicy": "gogogo.policy",
    "JobExecutor": "gogogo.executor",
    "BuildOrchestrator": "gogogo.orchestrator",
    "GogogoError": "gogogo.errors",
    "FatalPreconditionError": "gogogo.errors",
    "ToolNotFoundError": "gogogo.errors",
    "SourceNotFoundError": "gogogo.errors",
    "NoTargetsError": "gogogo.errors",
    "OutputDirectoryError": "gogogo.errors",
    "ToolchainRequirementError": "gogogo.errors",
}


def __getattr__(name: str) -> object:
    """Lazy import of public API members."""
    module_name = _MODULES.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    import importlib

    return getattr(importlib.import_module(module_name), name)
