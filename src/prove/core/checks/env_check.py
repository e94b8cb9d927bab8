"""Environment variable validation through the project's env-check command."""
from __future__ import annotations

from prove.core.context import ExecutionContext

from .base import CheckResult, failed, passed, run_tool, skipped, tool_failure_reason

CHECK_ID = "env-check"
COMMAND_NAME = "env-check"


async def check_env(ctx: ExecutionContext) -> CheckResult:
    secret_vars = ctx.config.ci.secret_env_vars
    present = [name for name in secret_vars if ctx.env.get(name)]
    missing = [name for name in secret_vars if not ctx.env.get(name)]
    details = {"isCI": ctx.is_ci, "present": present, "missing": missing}

    if ctx.is_ci and secret_vars and not present:
        return skipped(CHECK_ID, "skipped: no secrets available in CI", details)

    command = ctx.config.ci.command(COMMAND_NAME)
    if not command:
        return skipped(CHECK_ID, "skipped: no env-check command configured", details)

    run = await run_tool(ctx, command)
    details["run"] = run.to_dict()
    if run.ok:
        return passed(CHECK_ID, "Environment variables valid", details)
    if ctx.is_ci:
        return passed(CHECK_ID, "env-check failed in CI (tolerated)", details)
    return failed(CHECK_ID, tool_failure_reason("env-check", run), details)


__all__ = ["check_env", "CHECK_ID"]
