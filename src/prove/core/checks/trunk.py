"""Trunk-based development: work happens on the trunk branch only."""
from __future__ import annotations

from prove.core.context import ExecutionContext

from .base import CheckResult, failed, passed

CHECK_ID = "trunk"


async def check_trunk(ctx: ExecutionContext) -> CheckResult:
    trunk = ctx.config.git.trunk_branch
    branch = ctx.git.current_branch
    details = {"currentBranch": branch, "trunkBranch": trunk}

    if not ctx.config.git.require_main_branch:
        return passed(CHECK_ID, "Trunk branch requirement disabled", details)
    if ctx.git.error:
        return failed(CHECK_ID, f"Unable to determine current branch: {ctx.git.error}", details)
    if branch != trunk:
        return failed(
            CHECK_ID,
            f"Not on {trunk} branch. Current branch: {branch}. "
            f"Trunk-based development requires work on {trunk} branch only.",
            details,
        )
    return passed(CHECK_ID, f"On {trunk} branch", details)


__all__ = ["check_trunk", "CHECK_ID"]
