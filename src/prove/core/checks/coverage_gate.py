"""Global and diff coverage gates."""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from prove.core.context import ExecutionContext
from prove.core.coverage import CoverageError, compute_diff_coverage, load_coverage
from prove.core.exceptions import GitError
from prove.core.git import ChangedLine
from prove.core.tdd import TddPhase

from .base import CheckResult, failed, passed, skipped

COVERAGE_ID = "coverage"
DIFF_COVERAGE_ID = "diff-coverage"


async def check_coverage(ctx: ExecutionContext) -> CheckResult:
    path = ctx.config.paths.coverage_file
    threshold = ctx.config.thresholds.global_coverage
    try:
        report = await asyncio.to_thread(load_coverage, ctx.repo_root / path)
    except CoverageError as exc:
        return failed(COVERAGE_ID, str(exc), {"coverageFile": path})

    average = report.summary.average()
    details: Dict[str, Any] = {
        "coverageFile": path,
        "format": report.format,
        "summary": report.summary.to_dict(),
        "threshold": threshold,
    }
    if average is None:
        return failed(COVERAGE_ID, "Coverage file reports no metrics", details)
    details["average"] = round(average, 2)
    if average < threshold:
        return failed(COVERAGE_ID, f"Global coverage {average:.2f}% below threshold {threshold}%", details)
    return passed(COVERAGE_ID, f"Global coverage {average:.2f}% meets threshold {threshold}%", details)


def _changed_source_lines(ctx: ExecutionContext) -> List[ChangedLine]:
    if ctx.repo is None:
        return []
    classifier = ctx.classifier
    return [c for c in ctx.repo.get_changed_lines(ctx.git.base_ref) if classifier.is_source(c.path)]


def diff_coverage_threshold(ctx: ExecutionContext) -> float:
    thresholds = ctx.config.thresholds
    if ctx.tdd_phase is TddPhase.REFACTOR:
        return thresholds.diff_coverage_functional_refactor
    return thresholds.diff_coverage_functional


def _measure(ctx: ExecutionContext) -> Dict[str, Any]:
    """Diff-coverage figures for the changed source lines (blocking)."""
    lines = _changed_source_lines(ctx)
    if not lines:
        return {"totalLines": 0, "percentage": 100.0}
    report = load_coverage(ctx.repo_root / ctx.config.paths.coverage_file)
    return compute_diff_coverage(lines, report, ctx.repo_root).to_dict()


async def diff_coverage_snapshot(ctx: ExecutionContext) -> Dict[str, Any]:
    """Informational diff coverage for phase checks; never raises."""
    threshold = diff_coverage_threshold(ctx)
    try:
        figures = await asyncio.to_thread(_measure, ctx)
    except (CoverageError, GitError) as exc:
        return {"available": False, "reason": str(exc), "threshold": threshold}
    return {
        "available": True,
        **figures,
        "threshold": threshold,
        "meetsThreshold": figures["percentage"] >= threshold,
    }


async def check_diff_coverage(ctx: ExecutionContext) -> CheckResult:
    if not ctx.config.modes.require_diff_coverage:
        return skipped(DIFF_COVERAGE_ID, "skipped: diff coverage not required")

    threshold = diff_coverage_threshold(ctx)
    try:
        figures = await asyncio.to_thread(_measure, ctx)
    except CoverageError as exc:
        return failed(DIFF_COVERAGE_ID, str(exc), {"threshold": threshold})
    except GitError as exc:
        return failed(DIFF_COVERAGE_ID, f"Unable to read changed lines: {exc}", {"threshold": threshold})

    details = {**figures, "threshold": threshold, "phase": ctx.tdd_phase.value}
    if figures["totalLines"] == 0:
        return passed(DIFF_COVERAGE_ID, "No changed source lines", details)
    pct = figures["percentage"]
    if pct < threshold:
        return failed(DIFF_COVERAGE_ID, f"Diff coverage {pct:.2f}% below threshold {threshold}%", details)
    return passed(DIFF_COVERAGE_ID, f"Diff coverage {pct:.2f}% meets threshold {threshold}%", details)


__all__ = [
    "check_coverage",
    "check_diff_coverage",
    "diff_coverage_snapshot",
    "diff_coverage_threshold",
    "COVERAGE_ID",
    "DIFF_COVERAGE_ID",
]
