"""TDD discipline checks.

Each phase check only judges the run when the detected phase is its own; in
any other phase it passes without inspecting anything.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from prove.core.context import ExecutionContext
from prove.core.exceptions import GitError
from prove.core.tdd import EvidenceAnalyzer, TddPhase, validate_sequence
from prove.core.utils.io import read_text_or_none

from .base import CheckResult, failed, passed, skipped
from .coverage_gate import diff_coverage_snapshot
from .suite import run_test_suite

logger = logging.getLogger(__name__)

DETECTION_ID = "tdd-phase-detection"
RED_ID = "tdd-red-phase"
GREEN_ID = "tdd-green-phase"
REFACTOR_ID = "tdd-refactor-phase"
SEQUENCE_ID = "tdd-process-sequence"
CHANGED_HAS_TESTS_ID = "tdd-changed-has-tests"


def _tdd_disabled(ctx: ExecutionContext, check_id: str) -> Optional[CheckResult]:
    if not ctx.config.modes.require_tdd:
        return skipped(check_id, "skipped: TDD not required")
    return None


def _not_in_phase(ctx: ExecutionContext, check_id: str, phase: TddPhase) -> Optional[CheckResult]:
    if ctx.tdd_phase is phase:
        return None
    label = phase.value.capitalize()
    return passed(
        check_id,
        f"Not in {label} phase - skipping validation",
        {"phase": ctx.tdd_phase.value, "source": ctx.phase_source},
    )


def tests_without_assertions(ctx: ExecutionContext, test_files: List[str]) -> List[str]:
    """Changed test files that exist but contain none of the assertion patterns."""
    patterns = ctx.config.tdd.assertion_patterns
    weak: List[str] = []
    for path in test_files:
        content = read_text_or_none(ctx.repo_root / path)
        if content is None:
            continue
        if not any(p in content for p in patterns):
            weak.append(path)
    return weak


def find_refactor_indicator(message: str, indicators: Sequence[str]) -> Optional[str]:
    lowered = (message or "").lower()
    for word in indicators:
        if word and word in lowered:
            return word
    return None


def _changed_lines_in_existing_sources(ctx: ExecutionContext) -> Dict[str, int]:
    """Added-line counts per source file that already existed at the base ref."""
    if ctx.repo is None:
        return {}
    classifier = ctx.classifier
    counts: Dict[str, int] = {}
    existed: Dict[str, bool] = {}
    for change in ctx.repo.get_changed_lines(ctx.git.base_ref):
        if not classifier.is_source(change.path):
            continue
        if change.path not in existed:
            existed[change.path] = ctx.repo.show_file(ctx.git.base_ref, change.path) is not None
        if existed[change.path]:
            counts[change.path] = counts.get(change.path, 0) + 1
    return counts


# ---------- checks ----------

async def check_tdd_phase_detection(ctx: ExecutionContext) -> CheckResult:
    analysis = EvidenceAnalyzer().analyze_patterns(ctx.evidence)
    details: Dict[str, Any] = {
        "phase": ctx.tdd_phase.value,
        "source": ctx.phase_source,
        "confidence": ctx.phase_confidence,
        "analysis": analysis,
    }
    return passed(
        DETECTION_ID,
        f"Detected TDD phase: {ctx.tdd_phase.value} ({ctx.phase_source}, {ctx.phase_confidence} confidence)",
        details,
    )


async def check_tdd_changed_has_tests(ctx: ExecutionContext) -> CheckResult:
    gate = _tdd_disabled(ctx, CHANGED_HAS_TESTS_ID)
    if gate:
        return gate
    changed = ctx.git.changed_files
    if not changed:
        return passed(CHANGED_HAS_TESTS_ID, "No files changed")
    classifier = ctx.classifier
    sources = classifier.sources(changed)
    tests = classifier.tests(changed)
    details = {"changedSourceFiles": sources, "changedTestFiles": tests}
    if not sources:
        return passed(CHANGED_HAS_TESTS_ID, "No source files changed", details)
    if not tests:
        return failed(
            CHANGED_HAS_TESTS_ID,
            f"TDD violation: {len(sources)} source file(s) changed without corresponding test changes",
            details,
        )
    return passed(CHANGED_HAS_TESTS_ID, "Source changes are accompanied by test changes", details)


async def check_tdd_red_phase(ctx: ExecutionContext) -> CheckResult:
    gate = _tdd_disabled(ctx, RED_ID) or _not_in_phase(ctx, RED_ID, TddPhase.RED)
    if gate:
        return gate

    classifier = ctx.classifier
    sources = classifier.sources(ctx.git.changed_files)
    tests = classifier.tests(ctx.git.changed_files)
    details: Dict[str, Any] = {"phase": "red", "changedSourceFiles": sources, "changedTestFiles": tests}

    if not tests:
        return failed(RED_ID, "tests must be written before implementation", details)

    weak = tests_without_assertions(ctx, tests)
    if weak:
        details["testsWithoutAssertions"] = weak
        return failed(RED_ID, f"Test quality requirements not met: no assertions in {', '.join(weak)}", details)

    suite = await run_test_suite(ctx)
    if suite is None:
        details["testRun"] = "no test command configured"
    else:
        details["testResults"] = suite.results.to_dict()
        if suite.run.timed_out:
            return failed(RED_ID, "timeout", details)
        if suite.results.total == 0:
            return failed(RED_ID, "Red phase requires tests to run", details)
        if suite.results.failed == 0:
            return failed(RED_ID, "Tests must fail initially in Red phase", details)

    details["diffCoverage"] = await diff_coverage_snapshot(ctx)
    return passed(RED_ID, "TDD Red phase validation passed", details)


async def check_tdd_green_phase(ctx: ExecutionContext) -> CheckResult:
    gate = _tdd_disabled(ctx, GREEN_ID) or _not_in_phase(ctx, GREEN_ID, TddPhase.GREEN)
    if gate:
        return gate

    details: Dict[str, Any] = {"phase": "green"}
    suite = await run_test_suite(ctx)
    if suite is None:
        return failed(GREEN_ID, "Tests must pass in Green phase: no test command configured", details)
    details["testResults"] = suite.results.to_dict()
    if suite.run.timed_out:
        return failed(GREEN_ID, "timeout", details)
    if not suite.all_passed:
        return failed(GREEN_ID, "Tests must pass in Green phase", details)

    implementation = ctx.classifier.sources(ctx.git.changed_files)
    details["implementationFiles"] = implementation
    if not implementation:
        return failed(GREEN_ID, "Implementation must be complete in Green phase: no implementation files changed", details)

    # Coverage artifacts may lag the test run, so the threshold is reported only.
    details["diffCoverage"] = await diff_coverage_snapshot(ctx)
    return passed(GREEN_ID, "TDD Green phase validation passed", details)


async def check_tdd_refactor_phase(ctx: ExecutionContext) -> CheckResult:
    gate = _tdd_disabled(ctx, REFACTOR_ID) or _not_in_phase(ctx, REFACTOR_ID, TddPhase.REFACTOR)
    if gate:
        return gate

    details: Dict[str, Any] = {"phase": "refactor"}
    indicator = find_refactor_indicator(ctx.git.commit_message, ctx.config.tdd.refactor_indicators)
    if indicator is None:
        return failed(
            REFACTOR_ID,
            "Refactoring must have occurred in Refactor phase: commit message has no refactor indicator",
            details,
        )
    details["indicator"] = indicator

    suite = await run_test_suite(ctx)
    if suite is None:
        return failed(REFACTOR_ID, "Behavior must be preserved in Refactor phase: no test command configured", details)
    details["testResults"] = suite.results.to_dict()
    if suite.run.timed_out:
        return failed(REFACTOR_ID, "timeout", details)
    if not suite.all_passed:
        return failed(REFACTOR_ID, "Behavior must be preserved in Refactor phase", details)

    try:
        touched = await asyncio.to_thread(_changed_lines_in_existing_sources, ctx)
    except GitError as exc:
        return failed(REFACTOR_ID, f"Unable to inspect refactored code: {exc}", details)
    details["changedLinesInExistingSources"] = touched
    if not touched:
        return failed(
            REFACTOR_ID,
            "Code quality must improve in Refactor phase: no changes to existing source code",
            details,
        )
    return passed(REFACTOR_ID, "TDD Refactor phase validation passed", details)


async def check_tdd_process_sequence(ctx: ExecutionContext) -> CheckResult:
    gate = _tdd_disabled(ctx, SEQUENCE_ID)
    if gate:
        return gate

    validation = validate_sequence(
        [record.phase for record in ctx.evidence],
        ctx.tdd_phase,
        window=ctx.config.tdd.sequence_window,
    )
    details = validation.to_dict()
    if validation.insufficient_evidence:
        return passed(SEQUENCE_ID, "Insufficient evidence: no TDD history yet", details)
    if not validation.ok:
        first = validation.violations[0]
        return failed(
            SEQUENCE_ID,
            f"TDD sequence violation: {first.describe()}; expected {first.expected_phase.value}",
            details,
        )
    return passed(SEQUENCE_ID, "TDD sequence valid", details)


__all__ = [
    "check_tdd_phase_detection",
    "check_tdd_changed_has_tests",
    "check_tdd_red_phase",
    "check_tdd_green_phase",
    "check_tdd_refactor_phase",
    "check_tdd_process_sequence",
    "tests_without_assertions",
    "find_refactor_indicator",
]
