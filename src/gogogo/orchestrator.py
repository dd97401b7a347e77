"""Build orchestrator - bounded-concurrency fan-out with retries.

Runs the JobExecutor once per target on a fixed-size thread pool. Each
worker owns one target end-to-end, including its retry loop:

- Skipped outcomes are terminal and never retried
- Retryable Failed outcomes are retried with a linearly increasing delay
- The last attempt's outcome is recorded once retries are exhausted

Outcomes are appended to a lock-guarded collector and frozen into a
BuildReport after every worker has finished.
"""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_incrementing,
)

from gogogo.config import RetryConfig
from gogogo.executor import JobExecutor
from gogogo.models import BuildOutcome, BuildReport, BuildTarget, OutcomeStatus
from gogogo.observability import log_retry_attempt

logger = structlog.get_logger(__name__)

OutcomeCallback = Callable[[BuildOutcome], None]


@dataclass(frozen=True)
class BuildJob:
    """What every target of a run is built from, and where it goes."""

    source: Path
    output_root: Path
    binary_name: str


def default_concurrency(parallel: bool) -> int:
    """Worker count: 1 when parallelism is disabled, else the CPU count."""
    if not parallel:
        return 1
    return max(1, os.cpu_count() or 1)


def build_retrying(
    retry: RetryConfig,
    *,
    target: BuildTarget,
    sleep: Callable[[float], None] = time.sleep,
) -> Retrying:
    """Create the tenacity retry loop for one target.

    Args:
        retry: Retry policy.
        target: Target being built (for logging).
        sleep: Sleep function used between attempts.

    Returns:
        Retrying controller that returns the last outcome when exhausted.
    """

    def _before_sleep(state: RetryCallState) -> None:
        outcome: BuildOutcome = state.outcome.result()  # type: ignore[union-attr]
        log_retry_attempt(
            target=target.label,
            attempt=state.attempt_number,
            max_attempts=retry.max_attempts,
            wait_seconds=state.next_action.sleep if state.next_action else 0.0,
            error=outcome.detail,
        )

    return Retrying(
        stop=stop_after_attempt(retry.max_attempts),
        wait=wait_incrementing(start=retry.backoff_seconds, increment=retry.backoff_seconds),
        retry=retry_if_result(lambda outcome: outcome.should_retry),
        before_sleep=_before_sleep,
        retry_error_callback=lambda state: state.outcome.result(),  # type: ignore[union-attr]
        sleep=sleep,
    )


class OutcomeCollector:
    """Thread-safe accumulator of per-target outcomes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._outcomes: list[BuildOutcome] = []
        self._labels: dict[OutcomeStatus, list[str]] = {status: [] for status in OutcomeStatus}

    def add(self, outcome: BuildOutcome) -> None:
        with self._lock:
            self._outcomes.append(outcome)
            self._labels[outcome.status].append(outcome.target.label)

    def __len__(self) -> int:
        with self._lock:
            return len(self._outcomes)

    def freeze(self, started_at: datetime, total_duration_ms: int) -> BuildReport:
        """Snapshot the collected outcomes into an immutable report."""
        with self._lock:
            return BuildReport(
                successful=tuple(self._labels[OutcomeStatus.SUCCESS]),
                skipped=tuple(self._labels[OutcomeStatus.SKIPPED]),
                failed=tuple(self._labels[OutcomeStatus.FAILED]),
                outcomes=tuple(self._outcomes),
                started_at=started_at,
                finished_at=datetime.now(UTC),
                total_duration_ms=total_duration_ms,
            )


class BuildOrchestrator:
    """Runs a build job for many targets under bounded concurrency.

    Attributes:
        executor: Builds one target per call.
        job: Source, output root and binary name shared by all targets.

    Example:
        >>> orchestrator = BuildOrchestrator(executor, BuildJob(source, Path("build"), "app"))
        >>> report = orchestrator.run(targets, max_concurrency=4, retry=RetryConfig())
        >>> report.fully_successful
        True
    """

    def __init__(
        self,
        executor: JobExecutor,
        job: BuildJob,
        *,
        on_outcome: OutcomeCallback | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            executor: Job executor used for every attempt.
            job: Shared build inputs.
            on_outcome: Called once per target after its outcome is recorded.
            sleep: Sleep function for retry backoff.
        """
        self.executor = executor
        self.job = job
        self._on_outcome = on_outcome
        self._sleep = sleep
        self._log = logger.bind(component="build_orchestrator")

    def run(
        self,
        targets: Sequence[BuildTarget],
        max_concurrency: int = 1,
        retry: RetryConfig | None = None,
    ) -> BuildReport:
        """Build every target and aggregate the outcomes.

        Blocks until all targets have completed; there is no cancellation.

        Args:
            targets: Resolved targets.
            max_concurrency: Maximum number of simultaneous builds (>= 1).
            retry: Retry policy; defaults to RetryConfig().

        Returns:
            Frozen BuildReport.

        Raises:
            ValueError: If max_concurrency is less than 1.
        """
        if max_concurrency < 1:
            msg = f"max_concurrency must be >= 1, got {max_concurrency}"
            raise ValueError(msg)

        retry = retry or RetryConfig()
        collector = OutcomeCollector()
        start_time = time.monotonic()
        started_at = datetime.now(UTC)

        self._log.info(
            "run_started",
            targets=len(targets),
            max_concurrency=max_concurrency,
            max_attempts=retry.max_attempts,
        )

        with ThreadPoolExecutor(
            max_workers=max_concurrency, thread_name_prefix="gogogo-build"
        ) as pool:
            futures = [pool.submit(self._work, target, retry, collector) for target in targets]
        for future in futures:
            future.result()

        total_duration_ms = int((time.monotonic() - start_time) * 1000)
        report = collector.freeze(started_at, total_duration_ms)

        self._log.info(
            "run_completed",
            status=report.status.value,
            successful=len(report.successful),
            skipped=len(report.skipped),
            failed=len(report.failed),
            total_duration_ms=total_duration_ms,
        )
        return report

    def build_target(self, target: BuildTarget, retry: RetryConfig) -> BuildOutcome:
        """Build one target through its retry loop.

        Returns:
            The terminal outcome, stamped with the number of attempts.
        """
        attempts = 0

        def attempt() -> BuildOutcome:
            nonlocal attempts
            attempts += 1
            return self._attempt(target)

        outcome: BuildOutcome = build_retrying(retry, target=target, sleep=self._sleep)(attempt)
        return outcome.with_attempts(attempts)

    def _attempt(self, target: BuildTarget) -> BuildOutcome:
        try:
            return self.executor.execute(
                target,
                self.job.source,
                self.job.output_root,
                self.job.binary_name,
            )
        except Exception as e:
            self._log.error("target_attempt_error", target=target.label, error=str(e))
            return BuildOutcome.failed(target, f"[{target.label}] {type(e).__name__}: {e}")

    def _work(
        self,
        target: BuildTarget,
        retry: RetryConfig,
        collector: OutcomeCollector,
    ) -> None:
        outcome = self.build_target(target, retry)
        collector.add(outcome)
        if self._on_outcome is not None:
            try:
                self._on_outcome(outcome)
            except Exception as e:
                self._log.warning("outcome_callback_failed", target=target.label, error=str(e))
