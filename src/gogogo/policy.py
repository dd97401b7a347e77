"""Per-target build policy.

Decides whether a target is attempted at all, and which extra compiler
arguments and environment variables it needs. Inputs are the target and a
frozen PolicyConfig; the only side channel is the injected confirmation
callback, whose answers are remembered per OS for the lifetime of the policy.
"""

from __future__ import annotations

import os
import shutil
import threading
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass

import structlog

from gogogo.config import PolicyConfig
from gogogo.errors import ToolchainRequirementError
from gogogo.models import BuildTarget

logger = structlog.get_logger(__name__)

# Linker flags trying a fully static link for Android
ANDROID_STATIC_LDFLAGS = "-linkmode=external -extldflags=-static"

ConfirmCallback = Callable[[str], bool]
ToolLookup = Callable[[str], str | None]


@dataclass(frozen=True)
class SkipDecision:
    """Whether to skip a target, and why."""

    skip: bool
    reason: str = ""


@dataclass(frozen=True)
class PreparedBuild:
    """Final compiler arguments and environment for one target."""

    args: list[str]
    env: dict[str, str]


PROCEED = SkipDecision(skip=False)


def decline(question: str) -> bool:
    """Confirmation callback for non-interactive runs: always no."""
    return False


class TargetPolicy:
    """Skip rules and invocation parameters for build targets.

    Rules, in priority order:
    1. skip_cgo set and the target OS needs cgo -> skip
    2. target OS can only be built on another host OS -> skip unless forced
    3. target OS needs confirmation and confirmation is not pre-approved ->
       ask; a negative or empty answer -> skip

    Example:
        >>> policy = TargetPolicy(PolicyConfig(skip_cgo=True))
        >>> policy.should_skip(BuildTarget(os="android", arch="arm64")).skip
        True
    """

    def __init__(
        self,
        config: PolicyConfig,
        *,
        confirm: ConfirmCallback = decline,
        which: ToolLookup = shutil.which,
    ) -> None:
        """Initialize the policy.

        Args:
            config: Static policy configuration.
            confirm: Asks the user a yes/no question. Called at most once per
                target OS, possibly from worker threads.
            which: Looks up an executable on PATH.
        """
        self.config = config
        self._confirm = confirm
        self._which = which
        self._answers: dict[str, bool] = {}
        self._confirm_lock = threading.Lock()

    def should_skip(self, target: BuildTarget) -> SkipDecision:
        """Decide whether a target must not be attempted."""
        config = self.config

        if config.skip_cgo and target.os in config.cgo_targets:
            return SkipDecision(
                skip=True,
                reason=f"{target.label} requires cgo (disable --skip-cgo to build it)",
            )

        required_host = config.host_affinity.get(target.os)
        if required_host is not None and config.host.os != required_host:
            if not config.force:
                return SkipDecision(
                    skip=True,
                    reason=(
                        f"{target.os} can only be built on {required_host} "
                        "(use --force to try anyway)"
                    ),
                )
            logger.warning(
                "forced_host_affinity_build",
                target=target.label,
                required_host=required_host,
                host=config.host.os,
            )

        if target.os in config.confirm_targets and not config.no_prompt:
            if not self._confirmed(target.os):
                return SkipDecision(
                    skip=True,
                    reason=f"{target.os} build not confirmed",
                )

        return PROCEED

    def _confirmed(self, target_os: str) -> bool:
        with self._confirm_lock:
            if target_os not in self._answers:
                question = (
                    f"Continue building {target_os} with the standard Go toolchain "
                    "(gomobile is recommended)?"
                )
                self._answers[target_os] = bool(self._confirm(question))
            return self._answers[target_os]

    def ask_confirmations(self, targets: Iterable[BuildTarget]) -> None:
        """Ask every pending confirmation question before dispatch.

        Answers are cached, so workers never prompt while builds run.
        """
        asked: set[str] = set()
        for target in targets:
            if target.os in self.config.confirm_targets and target.os not in asked:
                asked.add(target.os)
                self.should_skip(target)

    def check_requirements(self, target: BuildTarget) -> None:
        """Verify helper tools a proceeding target depends on.

        Raises:
            ToolchainRequirementError: If the target's helper tool is missing.
        """
        tool = self.config.helper_tools.get(target.os)
        if tool is not None and self._which(tool) is None:
            raise ToolchainRequirementError(target.os, tool)

    def prepare(
        self,
        target: BuildTarget,
        base_args: Sequence[str],
        base_env: Mapping[str, str] | None = None,
    ) -> PreparedBuild:
        """Compute final compiler arguments and environment for a target.

        Args:
            target: Target being built.
            base_args: Arguments shared by every target, ending with
                "-o <output> <source>". Not modified.
            base_env: Process environment to extend (default os.environ).

        Returns:
            PreparedBuild with a new argument list and environment mapping.
        """
        args = list(base_args)
        env = dict(os.environ if base_env is None else base_env)
        env["GOOS"] = target.os
        env["GOARCH"] = target.arch
        env["CGO_ENABLED"] = "1" if target.os in self.config.cgo_targets else "0"

        if target.os == "android" and not self.config.ldflags:
            args = _insert_before_output(args, ["-ldflags", ANDROID_STATIC_LDFLAGS])

        return PreparedBuild(args=args, env=env)


def _insert_before_output(args: list[str], extra: list[str]) -> list[str]:
    """Insert extra arguments before the "-o" flag (or append if absent)."""
    if "-o" not in args:
        return [*args, *extra]
    i = args.index("-o")
    return [*args[:i], *extra, *args[i:]]
