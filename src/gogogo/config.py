"""Pydantic configuration models for gogogo.

This module provides:
- RetryConfig: Per-target retry policy with linear backoff
- HostPlatform: The OS/architecture gogogo itself runs on
- PolicyConfig: Static inputs of the per-target skip/prepare policy
- BuildConfig: Complete configuration of one build run

Configuration is passed explicitly into every component; nothing here is
read from module-level state after construction.
"""

from __future__ import annotations

import os
import platform
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Config file picked up from the working directory when --config is not given
CONFIG_FILE_NAME = "gogogo.yaml"

# platform.machine() values mapped to GOARCH
_MACHINE_TO_GOARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "i386": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv8l": "arm",
    "armv7l": "arm",
    "armv6l": "arm",
    "riscv64": "riscv64",
    "ppc64le": "ppc64le",
    "ppc64": "ppc64",
    "s390x": "s390x",
    "mips": "mips",
    "mips64": "mips64",
    "loongarch64": "loong64",
}


class RetryConfig(BaseModel):
    """Retry policy for failed target builds.

    The delay before retry n (1-based) is backoff_seconds * n, so delays
    strictly increase with the attempt number.

    Attributes:
        enabled: Retry failed targets (default True).
        max_retries: Additional attempts after the first (0-10, default 2).
        backoff_seconds: Backoff unit in seconds (0-60, default 1.0).

    Example:
        >>> config = RetryConfig(max_retries=3, backoff_seconds=0.5)
        >>> config.max_attempts
        4
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = Field(default=True, description="Retry failed targets")
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Additional attempts after the first one",
    )
    backoff_seconds: float = Field(
        default=1.0,
        gt=0.0,
        le=60.0,
        description="Linear backoff unit in seconds",
    )

    @property
    def max_attempts(self) -> int:
        """Total attempts allowed per target."""
        return self.max_retries + 1 if self.enabled else 1

    def delay_before_retry(self, retry_number: int) -> float:
        """Delay before the given retry (1-based)."""
        return self.backoff_seconds * retry_number


class HostPlatform(BaseModel):
    """Operating system and architecture of the invoking host, in Go naming.

    Attributes:
        os: Host GOOS, e.g. "linux"
        arch: Host GOARCH, e.g. "amd64"
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    os: str = Field(..., min_length=1, description="Host operating system")
    arch: str = Field(..., min_length=1, description="Host architecture")

    @property
    def label(self) -> str:
        """Host platform as an "os/arch" label."""
        return f"{self.os}/{self.arch}"


def detect_host_platform() -> HostPlatform:
    """Detect the host platform using Go's naming.

    Returns:
        HostPlatform for the running interpreter.
    """
    system = platform.system().lower()
    if sys.platform == "android" or "ANDROID_ROOT" in os.environ:
        system = "android"
    elif system.startswith(("cygwin", "msys")):
        system = "windows"
    elif system == "sunos":
        system = "solaris"

    machine = platform.machine().lower()
    arch = _MACHINE_TO_GOARCH.get(machine, machine or "amd64")
    return HostPlatform(os=system or "linux", arch=arch)


class PolicyConfig(BaseModel):
    """Static configuration of the per-target build policy.

    Attributes:
        skip_cgo: Skip targets that need cgo (cgo_targets).
        force: Attempt host-affinity targets on a non-matching host.
        no_prompt: Treat every confirmation question as approved.
        host: Host platform the build runs on.
        ldflags: User linker flags passed to every build.
        tags: User build tags passed to every build.
        cgo_targets: Operating systems that need cgo.
        host_affinity: Target OS -> the only host OS able to build it.
        helper_tools: Target OS -> helper executable that must be on PATH.
        confirm_targets: Operating systems that need explicit confirmation.

    Example:
        >>> config = PolicyConfig(skip_cgo=True, host=HostPlatform(os="linux", arch="amd64"))
        >>> "android" in config.cgo_targets
        True
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    skip_cgo: bool = Field(default=False, description="Skip cgo-dependent targets")
    force: bool = Field(default=False, description="Force host-affinity targets")
    no_prompt: bool = Field(default=False, description="Pre-approve confirmations")
    host: HostPlatform = Field(
        default_factory=detect_host_platform, description="Host platform"
    )
    ldflags: str = Field(default="", description="Linker flags")
    tags: str = Field(default="", description="Build tags")
    cgo_targets: frozenset[str] = Field(
        default=frozenset({"android", "ios"}),
        description="Target operating systems requiring cgo",
    )
    host_affinity: dict[str, str] = Field(
        default_factory=lambda: {"ios": "darwin"},
        description="Target OS that can only be built on a specific host OS",
    )
    helper_tools: dict[str, str] = Field(
        default_factory=lambda: {"ios": "xcodebuild"},
        description="Helper executable required per target OS",
    )
    confirm_targets: frozenset[str] = Field(
        default=frozenset({"android"}),
        description="Target operating systems requiring confirmation",
    )


class BuildConfig(BaseModel):
    """Complete configuration of one build run.

    Attributes:
        source: Go source file or package directory to build.
        output_dir: Root directory for artifacts (default ./build).
        binary_name: Artifact base name (default: source file stem).
        platforms: Platform specification tokens (default "default").
        verbose: Verbosity 0=quiet, 1=normal, 2=detailed, 3=debug.
        parallel: Build targets concurrently.
        compress: gzip artifacts and remove the originals.
        clean: Remove output_dir before building.
        progress: Show a progress bar.
        all_archs: Expand a bare OS name to all of its architectures.
        retry: Retry policy.
        policy: Per-target policy configuration.

    Example:
        >>> config = BuildConfig(source=Path("main.go"), platforms=("linux/amd64",))
        >>> config.resolved_binary_name
        'main'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    source: Path = Field(..., description="Source file to compile")
    output_dir: Path = Field(default=Path("build"), description="Output directory")
    binary_name: str | None = Field(default=None, description="Artifact base name")
    platforms: tuple[str, ...] = Field(default=("default",), description="Platform tokens")
    verbose: int = Field(default=1, ge=0, le=3, description="Verbosity level")
    parallel: bool = Field(default=True, description="Parallel builds")
    compress: bool = Field(default=False, description="Compress artifacts")
    clean: bool = Field(default=False, description="Clean output directory first")
    progress: bool = Field(default=True, description="Show progress bar")
    all_archs: bool = Field(default=False, description="All architectures for bare OS names")
    retry: RetryConfig = Field(default_factory=RetryConfig, description="Retry policy")
    policy: PolicyConfig = Field(default_factory=PolicyConfig, description="Target policy")

    @field_validator("platforms", mode="before")
    @classmethod
    def split_platform_tokens(cls, v: Any) -> Any:
        """Accept a comma-separated string as well as a list of tokens."""
        if isinstance(v, str):
            return tuple(p.strip() for p in v.split(",") if p.strip())
        return v

    @property
    def resolved_binary_name(self) -> str:
        """Binary name, defaulting to the source file stem."""
        return self.binary_name or self.source.stem

    @property
    def platform_spec(self) -> str:
        """Platform tokens joined into a single specification string."""
        return ",".join(self.platforms)

    @classmethod
    def from_yaml(cls, path: str | Path, **overrides: Any) -> BuildConfig:
        """Load and validate BuildConfig from a YAML file.

        Values passed as keyword overrides take precedence over the file;
        nested retry/policy mappings are merged key by key.

        Args:
            path: Path to gogogo.yaml.
            **overrides: Explicit values, e.g. from the command line.

        Returns:
            Validated BuildConfig instance.

        Raises:
            FileNotFoundError: If file doesn't exist.
            yaml.YAMLError: If YAML syntax is invalid.
            pydantic.ValidationError: If schema validation fails.

        Example:
            >>> config = BuildConfig.from_yaml("gogogo.yaml", verbose=2)
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        with path.open("r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            msg = f"{path}: expected a mapping at the top level"
            raise ValueError(msg)

        return cls.model_validate(merge_settings(data, overrides))


def merge_settings(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge override values into base settings, one level deep for mappings.

    Args:
        base: Settings loaded from a file.
        overrides: Explicit settings that win over base.

    Returns:
        New merged dictionary; neither input is modified.
    """
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged
