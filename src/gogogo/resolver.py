"""Platform specification resolver.

Expands a comma-separated platform specification into an ordered,
de-duplicated list of BuildTarget values. Tokens are resolved in order:

1. "all"            -> every catalog platform (or the static fallback)
2. group name       -> the group's labels (groups do not nest)
3. "os/arch"        -> one explicit target
4. bare OS name     -> host architecture only, or every architecture
                       the catalog lists when all_archs is set

A token that cannot be resolved contributes zero targets and records a
ResolutionWarning; resolution itself never raises.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from gogogo.errors import NoTargetsError
from gogogo.models import LABEL_SEPARATOR, BuildTarget, ResolutionWarning
from gogogo.platforms import ALL_PLATFORMS_TOKEN, PLATFORM_GROUPS, CatalogProvider

logger = structlog.get_logger(__name__)


class PlatformResolver:
    """Resolves platform specifications into build targets.

    Attributes:
        all_archs: Expand a bare OS name to every catalog architecture.
        host_arch: Native architecture used for bare OS names otherwise.
        warnings: Diagnostics recorded by the most recent resolve() call.

    Example:
        >>> resolver = PlatformResolver(CatalogProvider(GoToolchain()), host_arch="amd64")
        >>> [t.label for t in resolver.resolve("linux/amd64,server")]
        ['linux/amd64', 'linux/arm64', 'freebsd/amd64', 'freebsd/arm64']
    """

    def __init__(
        self,
        catalog: CatalogProvider,
        *,
        host_arch: str,
        all_archs: bool = False,
    ) -> None:
        """Initialize the resolver.

        Args:
            catalog: Provider of the platform catalog (fetched lazily, once).
            host_arch: Native architecture of the invoking host.
            all_archs: Expand bare OS names to all supported architectures.
        """
        self._catalog = catalog
        self.host_arch = host_arch
        self.all_archs = all_archs
        self.warnings: list[ResolutionWarning] = []

    def resolve(self, spec: str) -> list[BuildTarget]:
        """Resolve a specification string into ordered, unique targets.

        Args:
            spec: Comma-separated tokens, e.g. "desktop,js/wasm,illumos".

        Returns:
            Targets in first-seen order. May be empty; see ensure_targets().
        """
        self.warnings = []
        resolved: list[BuildTarget] = []
        for token in (t.strip() for t in spec.split(",")):
            if token:
                resolved.extend(self._resolve_token(token))
        return _dedupe(resolved)

    def _resolve_token(self, token: str) -> list[BuildTarget]:
        if token == ALL_PLATFORMS_TOKEN:
            return self._resolve_all()
        if token in PLATFORM_GROUPS:
            return self._resolve_labels(token, PLATFORM_GROUPS[token])
        if LABEL_SEPARATOR in token:
            return self._resolve_labels(token, (token,))
        return self._resolve_os(token)

    def _resolve_all(self) -> list[BuildTarget]:
        catalog = self._catalog.get()
        if catalog.is_fallback:
            self._warn(
                ALL_PLATFORMS_TOKEN,
                f"Failed to list all platforms ({self._catalog.discovery_error}), "
                "using the static list",
            )
        return list(catalog.targets)

    def _resolve_labels(self, token: str, labels: Iterable[str]) -> list[BuildTarget]:
        targets: list[BuildTarget] = []
        for label in labels:
            try:
                targets.append(BuildTarget.parse(label))
            except ValueError as e:
                self._warn(token, str(e))
        return targets

    def _resolve_os(self, target_os: str) -> list[BuildTarget]:
        catalog = self._catalog.get()
        if catalog.is_fallback:
            self._warn(
                target_os,
                f"Failed to list platforms for '{target_os}' "
                f"({self._catalog.discovery_error}), using the static list",
            )
        supported = catalog.archs_for(target_os)

        if not supported:
            self._warn(target_os, f"Operating system '{target_os}' is not supported or unknown")
            return []

        if self.all_archs:
            return [BuildTarget(os=target_os, arch=arch) for arch in supported]

        if self.host_arch in supported:
            return [BuildTarget(os=target_os, arch=self.host_arch)]

        self._warn(
            target_os,
            f"Operating system '{target_os}' does not support the native architecture "
            f"'{self.host_arch}'; supported architectures: {', '.join(supported)} "
            "(use --all to build every architecture)",
        )
        return []

    def _warn(self, token: str, message: str) -> None:
        warning = ResolutionWarning(token=token, message=message)
        self.warnings.append(warning)
        logger.warning("resolution_warning", token=token, message=message)


def _dedupe(targets: Iterable[BuildTarget]) -> list[BuildTarget]:
    """Drop repeated (os, arch) pairs, keeping the first occurrence."""
    seen: set[tuple[str, str]] = set()
    unique: list[BuildTarget] = []
    for target in targets:
        if target.key not in seen:
            seen.add(target.key)
            unique.append(target)
    return unique


def ensure_targets(targets: list[BuildTarget], spec: str) -> list[BuildTarget]:
    """Reject an empty resolution.

    Raises:
        NoTargetsError: If targets is empty.
    """
    if not targets:
        raise NoTargetsError(spec)
    return targets
