"""Merge rehearsal against the remote trunk.

The rehearsal runs inside the working repository; :meth:`GitFacade.dry_merge`
aborts it on every exit path.
"""
from __future__ import annotations

import asyncio
import logging

from prove.core.context import ExecutionContext
from prove.core.exceptions import GitError
from prove.core.git import GitFacade

from .base import CheckResult, failed, passed, skipped

logger = logging.getLogger(__name__)

CHECK_ID = "pre-conflict"


def rehearse_merge(repo: GitFacade, remote: str, trunk: str) -> CheckResult:
    target = f"{remote}/{trunk}"
    details = {"remote": remote, "target": target}
    try:
        if not repo.has_remote(remote):
            return skipped(CHECK_ID, f"skipped: remote '{remote}' not configured", details)
        repo.fetch(remote, prune=True)
        if not repo.ref_exists(target):
            return skipped(CHECK_ID, f"skipped: {target} does not exist", details)
        if repo.has_uncommitted_changes():
            return skipped(CHECK_ID, "skipped: working tree has uncommitted changes", details)

        with repo.dry_merge(target) as rehearsal:
            if rehearsal.clean:
                return passed(CHECK_ID, f"No merge conflicts with {target}", details)
            conflicts = list(rehearsal.conflicts)
            reason = (
                f"Merge conflicts with {target}: {', '.join(conflicts)}"
                if conflicts
                else f"Merge rehearsal with {target} failed: {rehearsal.output or 'unknown error'}"
            )
            return failed(CHECK_ID, reason, {**details, "conflicts": conflicts})
    except GitError as exc:
        logger.warning("Pre-conflict check failed: %s", exc)
        return failed(CHECK_ID, f"Pre-conflict check failed: {exc}", details)


async def check_pre_conflict(ctx: ExecutionContext) -> CheckResult:
    git = ctx.config.git
    if not git.enable_pre_conflict_check:
        return skipped(CHECK_ID, "skipped: pre-conflict check disabled")
    if ctx.repo is None or ctx.git.error:
        return skipped(CHECK_ID, "skipped: git repository unavailable")
    return await asyncio.to_thread(rehearse_merge, ctx.repo, git.remote, git.trunk_branch)


__all__ = ["check_pre_conflict", "rehearse_merge", "CHECK_ID"]
