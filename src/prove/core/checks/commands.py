"""Checks that run one configured tool command and judge its exit code."""
from __future__ import annotations

import re
from typing import Optional

from prove.core.context import ExecutionContext

from .base import CheckFn, CheckResult, ToolRun, failed, passed, run_tool, skipped, tool_failure_reason

_WARNINGS_RE = re.compile(r"(\d+)\s+warnings?\b", re.IGNORECASE)


def count_warnings(output: str) -> int:
    """Largest ``N warning(s)`` count reported in ``output`` (0 when none)."""
    counts = [int(m.group(1)) for m in _WARNINGS_RE.finditer(output)]
    return max(counts) if counts else 0


def make_command_check(
    check_id: str,
    *,
    label: str,
    command_name: Optional[str] = None,
    timeout_type: str = "default",
    enforce_warnings: bool = False,
) -> CheckFn:
    """Build a check running ``ci.commands[command_name]``.

    A missing command gives a skipped result; a non-zero exit fails with the
    output tail in ``details.run.output``.
    """
    name = command_name or check_id

    async def _check(ctx: ExecutionContext) -> CheckResult:
        command = ctx.config.ci.command(name)
        if not command:
            return skipped(check_id, f"skipped: no '{name}' command configured")

        run: ToolRun = await run_tool(ctx, command, timeout_type=timeout_type)
        details = {"run": run.to_dict()}
        if not run.ok:
            return failed(check_id, tool_failure_reason(label, run), details)

        if enforce_warnings:
            warnings = count_warnings(run.output)
            limit = ctx.config.thresholds.max_warnings
            details["warnings"] = warnings
            details["maxWarnings"] = limit
            if warnings > limit:
                return failed(check_id, f"{label} reported {warnings} warnings (max {limit})", details)

        return passed(check_id, f"{label} passed", details)

    _check.__name__ = f"check_{check_id.replace('-', '_')}"
    return _check


check_lint = make_command_check("lint", label="Lint", enforce_warnings=True)
check_typecheck = make_command_check("typecheck", label="Type check")
check_build_web = make_command_check("build-web", label="Web build", timeout_type="build_operations")
check_build_api = make_command_check("build-api", label="API build", timeout_type="build_operations")
check_size_budget = make_command_check("size-budget", label="Size budget", timeout_type="build_operations")
check_security = make_command_check("security", label="Security audit")
check_contracts = make_command_check("contracts", label="Contracts")
check_db_migrations = make_command_check("db-migrations", label="Database migrations", timeout_type="build_operations")


__all__ = [
    "make_command_check",
    "count_warnings",
    "check_lint",
    "check_typecheck",
    "check_build_web",
    "check_build_api",
    "check_size_budget",
    "check_security",
    "check_contracts",
    "check_db_migrations",
]
