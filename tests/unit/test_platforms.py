"""Unit tests for platform groups, the catalog and its provider."""

from __future__ import annotations

import subprocess
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import DIST_LIST, FakeToolchain
from gogogo.models import BuildTarget
from gogogo.platforms import (
    ALL_PLATFORMS_TOKEN,
    FALLBACK_PLATFORMS,
    GROUP_DESCRIPTIONS,
    PLATFORM_GROUPS,
    CatalogProvider,
    PlatformCatalog,
)


class TestPlatformGroups:
    """Tests for the static platform groups."""

    def test_group_names(self) -> None:
        assert set(PLATFORM_GROUPS) == {
            "default",
            "desktop",
            "server",
            "mobile",
            "web",
            "embedded",
        }
        assert set(GROUP_DESCRIPTIONS) == set(PLATFORM_GROUPS)

    def test_all_is_reserved(self) -> None:
        assert ALL_PLATFORMS_TOKEN not in PLATFORM_GROUPS

    def test_groups_are_read_only(self) -> None:
        with pytest.raises(TypeError):
            PLATFORM_GROUPS["custom"] = ("linux/amd64",)  # type: ignore[index]

    def test_group_members_are_valid_labels(self) -> None:
        for labels in PLATFORM_GROUPS.values():
            for label in labels:
                BuildTarget.parse(label)

    def test_web_group(self) -> None:
        assert PLATFORM_GROUPS["web"] == ("js/wasm",)


class TestPlatformCatalog:
    """Tests for PlatformCatalog."""

    def test_from_lines(self) -> None:
        catalog = PlatformCatalog.from_lines("linux/amd64\n\nlinux/arm64\nnot-a-platform\n")

        assert catalog.labels == ("linux/amd64", "linux/arm64")
        assert catalog.is_fallback is False

    def test_from_lines_drops_duplicates(self) -> None:
        catalog = PlatformCatalog.from_lines("linux/amd64\nlinux/amd64\n")
        assert catalog.labels == ("linux/amd64",)

    def test_archs_for(self) -> None:
        catalog = PlatformCatalog.from_lines(DIST_LIST)

        assert catalog.archs_for("windows") == ("386", "amd64", "arm64")
        assert catalog.archs_for("illumos") == ("amd64",)
        assert catalog.archs_for("plan10") == ()

    def test_membership(self) -> None:
        catalog = PlatformCatalog.from_lines(DIST_LIST)

        assert catalog.has_os("js")
        assert not catalog.has_os("beos")
        assert catalog.supports("js", "wasm")
        assert not catalog.supports("illumos", "arm64")

    def test_by_os(self) -> None:
        catalog = PlatformCatalog.from_lines("linux/amd64\ndarwin/arm64\nlinux/arm64\n")
        assert catalog.by_os() == {"linux": ("amd64", "arm64"), "darwin": ("arm64",)}

    def test_fallback(self) -> None:
        catalog = PlatformCatalog.fallback()

        assert catalog.is_fallback is True
        assert catalog.labels == FALLBACK_PLATFORMS


class TestCatalogProvider:
    """Tests for CatalogProvider."""

    def test_discovers_from_toolchain(self) -> None:
        toolchain = FakeToolchain()
        provider = CatalogProvider(toolchain)

        catalog = provider.get()

        assert catalog.source == "toolchain"
        assert len(catalog.targets) == len(DIST_LIST.split())
        assert provider.discovery_error is None

    def test_discovers_at_most_once(self) -> None:
        """Test concurrent callers share one discovery call."""
        toolchain = FakeToolchain()
        provider = CatalogProvider(toolchain)

        with ThreadPoolExecutor(max_workers=8) as pool:
            catalogs = list(pool.map(lambda _: provider.get(), range(16)))

        assert toolchain.list_calls == 1
        assert all(c is catalogs[0] for c in catalogs)

    @pytest.mark.parametrize(
        "error",
        [
            FileNotFoundError("go"),
            subprocess.CalledProcessError(2, ["go", "tool", "dist", "list"]),
        ],
    )
    def test_falls_back_on_failure(self, error: Exception) -> None:
        provider = CatalogProvider(FakeToolchain(discovery_error=error))

        catalog = provider.get()

        assert catalog.is_fallback is True
        assert catalog.labels == FALLBACK_PLATFORMS
        assert provider.discovery_error

    def test_falls_back_on_empty_output(self) -> None:
        provider = CatalogProvider(FakeToolchain(platforms="\n"))

        assert provider.get().is_fallback is True
        assert provider.discovery_error == "platform discovery returned no platforms"

    def test_no_lister(self) -> None:
        assert CatalogProvider(None).get().is_fallback is True
