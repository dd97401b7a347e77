"""Logging and tracing for gogogo.

- configure_logging: structlog on top of stdlib logging, console or JSON
- log_level_for_verbosity: the CLI's -v 0..3 mapped onto log levels
- span: OpenTelemetry span around one unit of work (no-op without an SDK)
- log_retry_attempt: the warning emitted before a target is rebuilt
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

if TYPE_CHECKING:
    from opentelemetry.trace import Span

TRACER_NAME = "gogogo"

# Index is the CLI verbosity; higher values clamp to the last entry
VERBOSITY_LEVELS = ("ERROR", "WARNING", "INFO", "DEBUG")

logger = structlog.get_logger(TRACER_NAME)


def log_level_for_verbosity(verbose: int) -> str:
    """Log level name for a CLI verbosity (0=quiet ... 3=debug)."""
    return VERBOSITY_LEVELS[max(0, min(verbose, len(VERBOSITY_LEVELS) - 1))]


def _processors(*, json_format: bool, add_timestamp: bool) -> list[Any]:
    processors: list[Any] = [structlog.stdlib.filter_by_level, structlog.stdlib.add_log_level]
    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors += [
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    processors.append(
        structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()
    )
    return processors


def configure_logging(
    *,
    log_level: str = "INFO",
    json_format: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Route structlog through stdlib logging at the given level.

    Loggers are not cached, so module-level loggers pick up a later
    reconfiguration (each CLI invocation configures logging anew).

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (any case).
        json_format: Render JSON lines instead of the console format.
        add_timestamp: Add an ISO timestamp to every entry.
    """
    level = logging.getLevelName(log_level.upper())
    structlog.configure(
        processors=_processors(json_format=json_format, add_timestamp=add_timestamp),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    logging.basicConfig(format="%(message)s", level=level, force=True)


@contextmanager
def span(name: str, *, attributes: dict[str, Any] | None = None) -> Iterator[Span]:
    """Run a block inside an OpenTelemetry span.

    The span is marked OK when the block completes, ERROR with the
    exception recorded when it raises; the exception still propagates.

    Example:
        >>> with span("gogogo.build_target", attributes={"gogogo.target": "js/wasm"}):
        ...     executor.execute(target, source, output_root, "app")
    """
    tracer = trace.get_tracer(TRACER_NAME)
    with tracer.start_as_current_span(
        name, kind=SpanKind.INTERNAL, attributes=attributes or {}
    ) as current:
        try:
            yield current
        except Exception as exc:
            current.set_status(Status(StatusCode.ERROR, str(exc)))
            current.record_exception(exc)
            raise
        current.set_status(Status(StatusCode.OK))


def log_retry_attempt(
    target: str,
    attempt: int,
    max_attempts: int,
    wait_seconds: float,
    error: str,
) -> None:
    """Warn that a failed target is about to be rebuilt.

    Args:
        target: Target label, e.g. "linux/arm64".
        attempt: Attempt that just failed (1-based).
        max_attempts: Attempts allowed in total.
        wait_seconds: Delay before the next attempt.
        error: Failure detail of the attempt.
    """
    logger.warning(
        "target_retry",
        target=target,
        attempt=attempt,
        max_attempts=max_attempts,
        wait_seconds=wait_seconds,
        error=error,
    )
