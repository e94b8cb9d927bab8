"""Keep commits small: added plus deleted lines against the base ref."""
from __future__ import annotations

import asyncio

from prove.core.context import ExecutionContext
from prove.core.exceptions import GitError

from .base import CheckResult, failed, passed, skipped

CHECK_ID = "commit-size"


async def check_commit_size(ctx: ExecutionContext) -> CheckResult:
    if ctx.repo is None or ctx.git.error:
        return skipped(CHECK_ID, "skipped: git repository unavailable")
    limit = ctx.config.thresholds.max_commit_size
    try:
        stats = await asyncio.to_thread(ctx.repo.get_diff_stats, ctx.git.base_ref)
    except GitError as exc:
        return failed(CHECK_ID, f"Unable to compute diff stats: {exc}")

    details = {**stats.to_dict(), "maxCommitSize": limit, "baseRef": ctx.git.base_ref}
    if stats.total > limit:
        return failed(CHECK_ID, f"Commit too large: {stats.total} lines changed (max {limit})", details)
    return passed(CHECK_ID, f"{stats.total} lines changed (max {limit})", details)


__all__ = ["check_commit_size", "CHECK_ID"]
