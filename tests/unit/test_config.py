"""Unit tests for gogogo configuration models."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from pydantic import ValidationError

from gogogo.config import (
    BuildConfig,
    HostPlatform,
    PolicyConfig,
    RetryConfig,
    detect_host_platform,
    merge_settings,
)


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_defaults(self) -> None:
        config = RetryConfig()

        assert config.enabled is True
        assert config.max_retries == 2
        assert config.max_attempts == 3

    def test_disabled_means_single_attempt(self) -> None:
        assert RetryConfig(enabled=False, max_retries=5).max_attempts == 1

    def test_linear_backoff(self) -> None:
        """Test delays grow linearly with the retry number."""
        config = RetryConfig(backoff_seconds=0.5)

        assert [config.delay_before_retry(n) for n in (1, 2, 3)] == [0.5, 1.0, 1.5]

    @pytest.mark.parametrize("backoff", [0.0, -1.0])
    def test_backoff_must_be_positive(self, backoff: float) -> None:
        """Test a zero unit is rejected so delays strictly increase."""
        with pytest.raises(ValidationError):
            RetryConfig(backoff_seconds=backoff)

    def test_max_retries_bounds(self) -> None:
        with pytest.raises(ValidationError):
            RetryConfig(max_retries=11)
        with pytest.raises(ValidationError):
            RetryConfig(max_retries=-1)

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            RetryConfig(attempts=3)  # type: ignore[call-arg]


class TestHostPlatform:
    """Tests for host platform detection."""

    @pytest.mark.parametrize(
        ("system", "machine", "expected"),
        [
            ("Linux", "x86_64", "linux/amd64"),
            ("Darwin", "arm64", "darwin/arm64"),
            ("Windows", "AMD64", "windows/amd64"),
            ("Linux", "aarch64", "linux/arm64"),
            ("SunOS", "i86pc", "solaris/i86pc"),
            ("FreeBSD", "riscv64", "freebsd/riscv64"),
        ],
    )
    def test_detect_host_platform(self, system: str, machine: str, expected: str) -> None:
        with (
            patch("gogogo.config.platform.system", return_value=system),
            patch("gogogo.config.platform.machine", return_value=machine),
            patch("gogogo.config.sys.platform", "linux"),
            patch.dict("gogogo.config.os.environ", {}, clear=True),
        ):
            assert detect_host_platform().label == expected

    def test_detect_android(self) -> None:
        with (
            patch("gogogo.config.platform.system", return_value="Linux"),
            patch("gogogo.config.platform.machine", return_value="aarch64"),
            patch.dict("gogogo.config.os.environ", {"ANDROID_ROOT": "/system"}),
        ):
            assert detect_host_platform() == HostPlatform(os="android", arch="arm64")


class TestPolicyConfig:
    """Tests for PolicyConfig defaults."""

    def test_go_rules(self) -> None:
        config = PolicyConfig(host=HostPlatform(os="linux", arch="amd64"))

        assert config.cgo_targets == frozenset({"android", "ios"})
        assert config.host_affinity == {"ios": "darwin"}
        assert config.helper_tools == {"ios": "xcodebuild"}
        assert config.confirm_targets == frozenset({"android"})
        assert config.skip_cgo is False
        assert config.force is False


class TestBuildConfig:
    """Tests for BuildConfig."""

    def test_defaults(self) -> None:
        config = BuildConfig(source=Path("cmd/app/main.go"))

        assert config.output_dir == Path("build")
        assert config.platforms == ("default",)
        assert config.verbose == 1
        assert config.parallel is True
        assert config.resolved_binary_name == "main"
        assert config.platform_spec == "default"

    def test_comma_separated_platforms(self) -> None:
        config = BuildConfig(source=Path("main.go"), platforms="desktop, js/wasm,,")  # type: ignore[arg-type]

        assert config.platforms == ("desktop", "js/wasm")
        assert config.platform_spec == "desktop,js/wasm"

    def test_binary_name_override(self) -> None:
        config = BuildConfig(source=Path("main.go"), binary_name="tool")
        assert config.resolved_binary_name == "tool"

    def test_verbose_range(self) -> None:
        with pytest.raises(ValidationError):
            BuildConfig(source=Path("main.go"), verbose=4)

    def test_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "gogogo.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "source": "main.go",
                    "platforms": ["server", "web"],
                    "retry": {"max_retries": 4, "backoff_seconds": 0.5},
                    "policy": {"skip_cgo": True, "ldflags": "-s -w"},
                }
            )
        )

        config = BuildConfig.from_yaml(path)

        assert config.platforms == ("server", "web")
        assert config.retry.max_retries == 4
        assert config.policy.skip_cgo is True
        assert config.policy.ldflags == "-s -w"

    def test_from_yaml_overrides_win(self, tmp_path: Path) -> None:
        """Test explicit overrides take precedence, nested keys merge."""
        path = tmp_path / "gogogo.yaml"
        path.write_text("source: main.go\nverbose: 0\nretry:\n  max_retries: 4\n")

        config = BuildConfig.from_yaml(path, verbose=2, retry={"enabled": False})

        assert config.verbose == 2
        assert config.retry.max_retries == 4
        assert config.retry.enabled is False

    def test_from_yaml_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            BuildConfig.from_yaml(tmp_path / "missing.yaml")

    def test_from_yaml_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "gogogo.yaml"
        path.write_text("- linux/amd64\n")

        with pytest.raises(ValueError, match="expected a mapping"):
            BuildConfig.from_yaml(path)

    def test_from_yaml_unknown_key(self, tmp_path: Path) -> None:
        path = tmp_path / "gogogo.yaml"
        path.write_text("source: main.go\nthreads: 8\n")

        with pytest.raises(ValidationError):
            BuildConfig.from_yaml(path)


class TestMergeSettings:
    """Tests for merge_settings."""

    def test_merge_does_not_modify_inputs(self) -> None:
        base = {"retry": {"max_retries": 1}, "verbose": 1}
        overrides = {"retry": {"enabled": False}}

        merged = merge_settings(base, overrides)

        assert merged == {"retry": {"max_retries": 1, "enabled": False}, "verbose": 1}
        assert base == {"retry": {"max_retries": 1}, "verbose": 1}
