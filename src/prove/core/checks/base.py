"""Check contract: results, definitions, gating and the shared tool runner."""
from __future__ import annotations

import asyncio
import logging
import subprocess
from contextvars import ContextVar
from dataclasses import dataclass, replace
from enum import Enum
from time import monotonic, perf_counter
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Mapping, Optional

from prove.core.utils.subprocess import run_ci_command_from_string
from prove.core.utils.time import elapsed_ms

if TYPE_CHECKING:
    from prove.core.context import ExecutionContext

logger = logging.getLogger(__name__)

SKIPPED = "skipped"
NOT_RUN = "not-run"

# Monotonic deadline of the check running in the current task; set by the runner.
check_deadline: ContextVar[Optional[float]] = ContextVar("prove_check_deadline", default=None)


class CheckCategory(str, Enum):
    CRITICAL = "critical"
    PARALLEL = "parallel"
    MODE_SPECIFIC = "mode-specific"
    OPTIONAL = "optional"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one check. ``ms`` is filled in by the runner."""

    id: str
    ok: bool
    ms: int = 0
    reason: Optional[str] = None
    details: Optional[Mapping[str, Any]] = None

    @property
    def status(self) -> str:
        if self.details and self.details.get("status"):
            return str(self.details["status"])
        return "passed" if self.ok else "failed"

    @property
    def skipped(self) -> bool:
        return self.status == SKIPPED

    def with_ms(self, ms: int) -> "CheckResult":
        return replace(self, ms=int(ms))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "ok": self.ok, "ms": self.ms}
        if self.reason is not None:
            out["reason"] = self.reason
        if self.details is not None:
            out["details"] = dict(self.details)
        return out


def passed(check_id: str, reason: Optional[str] = None, details: Optional[Mapping[str, Any]] = None) -> CheckResult:
    return CheckResult(id=check_id, ok=True, reason=reason, details=details)


def failed(check_id: str, reason: str, details: Optional[Mapping[str, Any]] = None) -> CheckResult:
    return CheckResult(id=check_id, ok=False, reason=reason, details=details)


def skipped(check_id: str, reason: str, details: Optional[Mapping[str, Any]] = None) -> CheckResult:
    """A passing result marked ``details.status == "skipped"``."""
    return CheckResult(id=check_id, ok=True, reason=reason, details={**(details or {}), "status": SKIPPED})


def not_run(check_id: str) -> CheckResult:
    return CheckResult(
        id=check_id,
        ok=False,
        reason="not run due to critical failure",
        details={"status": NOT_RUN},
    )


CheckFn = Callable[["ExecutionContext"], Awaitable[CheckResult]]


@dataclass(frozen=True)
class CheckDefinition:
    id: str
    name: str
    description: str
    category: CheckCategory
    fn: CheckFn
    quick_mode: bool = True
    toggle: Optional[str] = None
    functional_only: bool = False
    timeout_key: Optional[str] = None

    @property
    def is_critical(self) -> bool:
        return self.category is CheckCategory.CRITICAL

    def gate(self, ctx: "ExecutionContext") -> Optional[CheckResult]:
        """Return the skip result for this run, or None when the check should execute."""
        if ctx.quick and not self.quick_mode:
            return skipped(self.id, "skipped (quick mode)")
        if self.toggle and not ctx.config.toggle_enabled(self.toggle):
            return skipped(self.id, f"skipped: disabled by toggle '{self.toggle}'", {"toggle": self.toggle})
        if self.functional_only and not ctx.is_functional:
            return skipped(self.id, "skipped: non-functional mode", {"mode": ctx.mode.value})
        return None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "quickMode": self.quick_mode,
            "functionalOnly": self.functional_only,
        }
        if self.toggle:
            out["toggle"] = self.toggle
        if self.timeout_key:
            out["timeoutKey"] = self.timeout_key
        return out


# ---------- external tools ----------

@dataclass(frozen=True)
class ToolRun:
    command: str
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    timed_out: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out and self.error is None

    @property
    def output(self) -> str:
        return "\n".join(p for p in (self.stdout.strip(), self.stderr.strip()) if p)

    def tail(self, lines: int = 40) -> str:
        return "\n".join(self.output.splitlines()[-lines:])

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "command": self.command,
            "exitCode": self.returncode,
            "durationMs": self.duration_ms,
        }
        if not self.ok:
            out["output"] = self.tail()
        if self.timed_out:
            out["timedOut"] = True
        if self.error:
            out["error"] = self.error
        return out


def _timeout_seconds(ctx: "ExecutionContext", timeout_type: str) -> Optional[float]:
    """The bucket limit, cut down to whatever is left of the check's own budget."""
    value = ctx.config.timeouts.get(f"{timeout_type}_seconds")
    limit = float(value) if value is not None else None
    deadline = check_deadline.get()
    if deadline is None:
        return limit
    remaining = max(deadline - monotonic(), 0.001)
    return remaining if limit is None else min(limit, remaining)


def _run_tool_sync(ctx: "ExecutionContext", command: str, timeout_type: str) -> ToolRun:
    start = perf_counter()
    try:
        proc = run_ci_command_from_string(
            command,
            cwd=ctx.repo_root,
            env=dict(ctx.env),
            timeout=_timeout_seconds(ctx, timeout_type),
            capture_output=True,
        )
    except subprocess.TimeoutExpired:
        return ToolRun(command, -1, duration_ms=elapsed_ms(start), timed_out=True)
    except (FileNotFoundError, PermissionError) as exc:
        return ToolRun(command, 127, duration_ms=elapsed_ms(start), error=f"command not runnable: {exc}")
    except ValueError as exc:
        return ToolRun(command, 2, duration_ms=elapsed_ms(start), error=f"invalid command: {exc}")
    return ToolRun(
        command,
        proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        duration_ms=elapsed_ms(start),
    )


async def run_tool(ctx: "ExecutionContext", command: str, *, timeout_type: str = "default") -> ToolRun:
    """Run a configured tool command off the event loop (no shell).

    The worker thread inherits :data:`check_deadline`, so the process group is
    killed no later than the runner gives up on the check.
    """
    logger.debug("Running %s", command)
    return await asyncio.to_thread(_run_tool_sync, ctx, command, timeout_type)


def tool_failure_reason(label: str, run: ToolRun) -> str:
    if run.timed_out:
        return "timeout"
    if run.error:
        return f"{label} failed: {run.error}"
    return f"{label} failed (exit code {run.returncode})"


__all__ = [
    "CheckCategory",
    "check_deadline",
    "CheckResult",
    "CheckDefinition",
    "CheckFn",
    "ToolRun",
    "SKIPPED",
    "NOT_RUN",
    "passed",
    "failed",
    "skipped",
    "not_run",
    "run_tool",
    "tool_failure_reason",
]
