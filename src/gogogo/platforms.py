"""Platform groups and the platform catalog.

This module holds:
- PLATFORM_GROUPS: curated, read-only named sets of platform labels
- FALLBACK_PLATFORMS: well-known platforms used when discovery fails
- PlatformCatalog: immutable set of supported (os, arch) pairs
- CatalogProvider: fetches the catalog from the toolchain at most once
"""

from __future__ import annotations

import subprocess
import threading
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Literal, Protocol

import structlog
from pydantic import BaseModel, ConfigDict, Field

from gogogo.models import LABEL_SEPARATOR, BuildTarget

logger = structlog.get_logger(__name__)

# Reserved token expanding to the whole catalog
ALL_PLATFORMS_TOKEN = "all"

PLATFORM_GROUPS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "default": (
            "windows/amd64", "windows/386", "windows/arm64",
            "linux/amd64", "linux/386", "linux/arm64", "linux/arm",
            "darwin/amd64", "darwin/arm64",
            "android/arm64",
        ),
        "desktop": (
            "windows/amd64", "windows/386", "windows/arm64",
            "linux/amd64", "linux/386", "linux/arm64", "linux/arm",
            "darwin/amd64", "darwin/arm64",
        ),
        "server": (
            "linux/amd64", "linux/arm64",
            "freebsd/amd64", "freebsd/arm64",
        ),
        "mobile": (
            "android/arm64", "android/arm",
            "ios/amd64", "ios/arm64",
        ),
        "web": ("js/wasm",),
        "embedded": (
            "linux/arm", "linux/arm64",
            "linux/mips", "linux/mips64",
            "linux/riscv64",
        ),
    }
)  # fmt: skip

GROUP_DESCRIPTIONS: Mapping[str, str] = MappingProxyType(
    {
        "default": "Desktop platforms plus android/arm64",
        "desktop": "Windows, Linux, macOS",
        "server": "Linux, FreeBSD",
        "mobile": "Android, iOS (needs a cgo-capable toolchain)",
        "web": "WebAssembly",
        "embedded": "ARM, MIPS, RISC-V",
    }
)

FALLBACK_PLATFORMS: tuple[str, ...] = (
    "windows/amd64", "windows/386", "windows/arm64",
    "linux/amd64", "linux/386", "linux/arm64", "linux/arm",
    "darwin/amd64", "darwin/arm64",
    "freebsd/amd64", "freebsd/arm64",
    "android/arm64", "android/arm",
    "ios/amd64", "ios/arm64",
    "js/wasm",
    "linux/mips", "linux/mips64",
    "linux/riscv64",
    "openbsd/amd64", "netbsd/amd64",
    "dragonfly/amd64", "solaris/amd64",
)  # fmt: skip


class PlatformCatalog(BaseModel):
    """The authoritative set of supported build targets.

    Attributes:
        targets: Supported targets in discovery order
        source: "toolchain" when discovered, "fallback" for the static list

    Example:
        >>> catalog = PlatformCatalog.from_lines("linux/amd64\\nlinux/arm64\\n")
        >>> catalog.archs_for("linux")
        ('amd64', 'arm64')
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    targets: tuple[BuildTarget, ...] = Field(default=(), description="Supported targets")
    source: Literal["toolchain", "fallback"] = Field(
        default="toolchain", description="Where the catalog came from"
    )

    @classmethod
    def from_labels(
        cls,
        labels: Iterable[str],
        source: Literal["toolchain", "fallback"] = "toolchain",
    ) -> PlatformCatalog:
        """Build a catalog from "os/arch" labels, skipping malformed ones."""
        seen: set[tuple[str, str]] = set()
        targets: list[BuildTarget] = []
        for label in labels:
            label = label.strip()
            if not label or LABEL_SEPARATOR not in label:
                continue
            try:
                target = BuildTarget.parse(label)
            except ValueError:
                logger.debug("catalog_entry_ignored", entry=label)
                continue
            if target.key not in seen:
                seen.add(target.key)
                targets.append(target)
        return cls(targets=tuple(targets), source=source)

    @classmethod
    def from_lines(cls, text: str) -> PlatformCatalog:
        """Parse newline-delimited discovery output."""
        return cls.from_labels(text.splitlines())

    @classmethod
    def fallback(cls) -> PlatformCatalog:
        """The static catalog of well-known platforms."""
        return cls.from_labels(FALLBACK_PLATFORMS, source="fallback")

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(t.label for t in self.targets)

    def archs_for(self, target_os: str) -> tuple[str, ...]:
        """Architectures the catalog lists for an operating system."""
        return tuple(t.arch for t in self.targets if t.os == target_os)

    def has_os(self, target_os: str) -> bool:
        return any(t.os == target_os for t in self.targets)

    def supports(self, target_os: str, arch: str) -> bool:
        return any(t.os == target_os and t.arch == arch for t in self.targets)

    def by_os(self) -> dict[str, tuple[str, ...]]:
        """Group architectures by operating system, in catalog order."""
        grouped: dict[str, list[str]] = {}
        for t in self.targets:
            grouped.setdefault(t.os, []).append(t.arch)
        return {os_name: tuple(archs) for os_name, archs in grouped.items()}


class PlatformLister(Protocol):
    """Anything that can list toolchain platforms (GoToolchain in production)."""

    def list_platforms(self) -> str: ...


class CatalogProvider:
    """Fetches the platform catalog once and caches it for the run.

    Discovery failures are not fatal: the static fallback catalog is
    substituted and `discovery_error` records why.

    Example:
        >>> provider = CatalogProvider(GoToolchain())
        >>> catalog = provider.get()
        >>> catalog.is_fallback
        False
    """

    def __init__(self, lister: PlatformLister | None) -> None:
        """Initialize the provider.

        Args:
            lister: Source of `go tool dist list` output. None means
                discovery is unavailable and the fallback is always used.
        """
        self._lister = lister
        self._catalog: PlatformCatalog | None = None
        self._lock = threading.Lock()
        self.discovery_error: str | None = None

    def get(self) -> PlatformCatalog:
        """Return the catalog, discovering it on first use."""
        with self._lock:
            if self._catalog is None:
                self._catalog = self._discover()
            return self._catalog

    def _discover(self) -> PlatformCatalog:
        if self._lister is None:
            self.discovery_error = "platform discovery unavailable"
            return PlatformCatalog.fallback()

        try:
            catalog = PlatformCatalog.from_lines(self._lister.list_platforms())
        except (OSError, subprocess.SubprocessError) as e:
            self.discovery_error = str(e) or type(e).__name__
            logger.warning("catalog_discovery_failed", error=self.discovery_error)
            return PlatformCatalog.fallback()

        if not catalog.targets:
            self.discovery_error = "platform discovery returned no platforms"
            logger.warning("catalog_discovery_empty")
            return PlatformCatalog.fallback()

        logger.debug("catalog_discovered", count=len(catalog.targets))
        return catalog
