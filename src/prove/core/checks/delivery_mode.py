"""Delivery mode: report the resolved mode and enforce its paperwork.

Non-functional work must ship a problem analysis with the four required
sections and enough real content.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Tuple

from prove.core.context import ExecutionContext
from prove.core.mode import DeliveryMode
from prove.core.utils.io import read_text_or_none

from .base import CheckResult, failed, passed

CHECK_ID = "delivery-mode"

PLACEHOLDER_MARKERS = (
    "[REPLACE:",
    "Test problem description",
    "Test root cause analysis",
    "Test fix description",
    "Test validation steps",
)


def validate_problem_analysis(
    path: Path,
    required_sections: Sequence[str],
    min_length: int,
) -> Tuple[bool, Optional[str]]:
    """Return ``(ok, reason)`` for the problem-analysis document at ``path``."""
    try:
        content = read_text_or_none(path)
    except OSError as exc:
        return False, f"Failed to read problem analysis file: {exc}"
    if content is None:
        return False, f"Problem analysis file not found: {path.name}"

    for section in required_sections:
        if section not in content:
            return False, f"Missing required section: {section}"
    if any(marker in content for marker in PLACEHOLDER_MARKERS):
        return False, "Problem analysis contains placeholder content"
    length = len(content.strip())
    if length < min_length:
        return False, f"Insufficient content length: {length} chars (minimum {min_length})"
    return True, None


async def check_delivery_mode(ctx: ExecutionContext) -> CheckResult:
    task_file = ctx.config.paths.task_file
    details = {"mode": ctx.mode.value, "source": ctx.mode_source}

    if ctx.task_errors:
        return failed(
            CHECK_ID,
            f"Invalid task file {task_file}: {'; '.join(ctx.task_errors)}",
            {**details, "taskErrors": list(ctx.task_errors)},
        )

    modes = ctx.config.modes
    if ctx.mode is DeliveryMode.NON_FUNCTIONAL and modes.require_problem_analysis:
        analysis = ctx.config.paths.problem_analysis_file
        ok, reason = validate_problem_analysis(
            ctx.repo_root / analysis,
            modes.required_sections,
            modes.min_analysis_length,
        )
        details["problemAnalysisFile"] = analysis
        if not ok:
            return failed(CHECK_ID, f"Non-functional mode requires a problem analysis: {reason}", details)

    return passed(CHECK_ID, f"Delivery mode: {ctx.mode.value} (from {ctx.mode_source})", details)


__all__ = ["check_delivery_mode", "validate_problem_analysis", "CHECK_ID"]
