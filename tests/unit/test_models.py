"""Unit tests for build targets, outcomes and reports."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from gogogo.models import (
    BuildOutcome,
    BuildReport,
    BuildTarget,
    OutcomeStatus,
    ReportStatus,
)


class TestBuildTarget:
    """Tests for BuildTarget."""

    def test_parse_label(self) -> None:
        """Test parsing a well-formed label."""
        target = BuildTarget.parse("linux/arm64")

        assert target.os == "linux"
        assert target.arch == "arm64"
        assert target.label == "linux/arm64"
        assert str(target) == "linux/arm64"

    @pytest.mark.parametrize("label", ["linux", "linux/arm/v7", "/amd64", "linux/", ""])
    def test_parse_rejects_malformed_label(self, label: str) -> None:
        """Test malformed labels raise ValueError."""
        with pytest.raises(ValueError, match="expected OS/ARCH"):
            BuildTarget.parse(label)

    def test_equality_by_os_and_arch(self) -> None:
        """Test targets compare and hash by (os, arch)."""
        a = BuildTarget(os="linux", arch="amd64")
        b = BuildTarget.parse("linux/amd64")

        assert a == b
        assert len({a, b}) == 1
        assert a.key == ("linux", "amd64")

    def test_executable_suffix(self) -> None:
        """Test only Windows targets get the .exe suffix."""
        assert BuildTarget.parse("windows/amd64").executable_suffix == ".exe"
        assert BuildTarget.parse("linux/amd64").executable_suffix == ""
        assert BuildTarget.parse("js/wasm").executable_suffix == ""

    def test_immutable(self) -> None:
        """Test targets are frozen."""
        target = BuildTarget.parse("linux/amd64")
        with pytest.raises(ValidationError):
            target.os = "darwin"  # type: ignore[misc]

    def test_label_serialized(self) -> None:
        """Test the derived label is part of the dumped model."""
        assert BuildTarget.parse("js/wasm").model_dump()["label"] == "js/wasm"


class TestBuildOutcome:
    """Tests for BuildOutcome constructors and predicates."""

    target = BuildTarget(os="linux", arch="amd64")

    def test_success(self) -> None:
        outcome = BuildOutcome.success(self.target, Path("build/linux/amd64/app"), 12)

        assert outcome.status == OutcomeStatus.SUCCESS
        assert outcome.succeeded is True
        assert outcome.should_retry is False
        assert outcome.duration_ms == 12

    def test_skipped_is_never_retried(self) -> None:
        outcome = BuildOutcome.skipped(self.target, "requires cgo")

        assert outcome.was_skipped is True
        assert outcome.detail == "requires cgo"
        assert outcome.should_retry is False

    def test_failed_retryable_by_default(self) -> None:
        outcome = BuildOutcome.failed(self.target, "exit status 1")

        assert outcome.has_failed is True
        assert outcome.should_retry is True

    def test_failed_not_retryable(self) -> None:
        outcome = BuildOutcome.failed(self.target, "missing tool", retryable=False)

        assert outcome.should_retry is False

    def test_with_attempts_returns_copy(self) -> None:
        """Test stamping attempts does not mutate the original."""
        outcome = BuildOutcome.failed(self.target, "boom")
        stamped = outcome.with_attempts(3)

        assert stamped.attempts == 3
        assert outcome.attempts == 1


class TestBuildReport:
    """Tests for BuildReport status derivation."""

    def test_success(self) -> None:
        report = BuildReport(successful=("linux/amd64",), skipped=("ios/arm64",))

        assert report.fully_successful is True
        assert report.nothing_built is False
        assert report.status == ReportStatus.SUCCESS

    def test_failed_even_with_successes(self) -> None:
        report = BuildReport(successful=("linux/amd64",), failed=("windows/amd64",))

        assert report.fully_successful is False
        assert report.status == ReportStatus.FAILED

    def test_nothing_built(self) -> None:
        """Test a fully skipped run is distinct from success and failure."""
        report = BuildReport(skipped=("android/arm64", "ios/arm64"))

        assert report.fully_successful is True
        assert report.nothing_built is True
        assert report.status == ReportStatus.NOTHING_BUILT

    def test_outcome_lookup(self) -> None:
        target = BuildTarget.parse("js/wasm")
        outcome = BuildOutcome.success(target)
        report = BuildReport(successful=("js/wasm",), outcomes=(outcome,))

        assert report.outcome_for("js/wasm") == outcome
        assert report.outcome_for("linux/amd64") is None
        assert report.failures == []
