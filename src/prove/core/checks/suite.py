"""Test suite execution and evidence capture."""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional

from prove.core.context import ExecutionContext
from prove.core.exceptions import ProveError
from prove.core.tdd import EvidenceAnalyzer, TestResults

from .base import CheckResult, ToolRun, failed, passed, run_tool, skipped, tool_failure_reason

logger = logging.getLogger(__name__)

CHECK_ID = "tests"
COMMAND_NAME = "test"

_COUNT_RE = re.compile(r"(\d+)\s+(passed|failed|skipped|errors?)\b", re.IGNORECASE)


def parse_test_output(stdout: str, stderr: str = "", *, duration_ms: Optional[int] = None) -> TestResults:
    """Parse ``N passed`` / ``N failed`` / ``N skipped`` / ``N error(s)`` summaries.

    The last count of each kind wins so that per-file lines are superseded by
    the final summary. Errors count as failures.
    """
    counts: Dict[str, int] = {}
    for match in _COUNT_RE.finditer(f"{stdout}\n{stderr}"):
        kind = match.group(2).lower()
        kind = "error" if kind.startswith("error") else kind
        counts[kind] = int(match.group(1))
    passed_n = counts.get("passed", 0)
    failed_n = counts.get("failed", 0) + counts.get("error", 0)
    total = passed_n + failed_n + counts.get("skipped", 0)
    return TestResults(passed=passed_n, failed=failed_n, total=total, duration_ms=duration_ms)


@dataclass(frozen=True)
class SuiteRun:
    run: ToolRun
    results: TestResults

    @property
    def all_passed(self) -> bool:
        return self.run.ok and self.results.failed == 0


async def _execute_suite(ctx: ExecutionContext, command: str) -> SuiteRun:
    run = await run_tool(ctx, command, timeout_type="test_execution")
    return SuiteRun(run, parse_test_output(run.stdout, run.stderr, duration_ms=run.duration_ms))


async def run_test_suite(ctx: ExecutionContext) -> Optional[SuiteRun]:
    """Run the configured test command; None when no command is configured.

    Within one event loop the suite runs once per context: the ``tests`` check
    and the active TDD phase check await the same run. A caller that times out
    does not cancel the run for the others.
    """
    command = ctx.config.ci.command(COMMAND_NAME)
    if not command:
        return None
    loop = asyncio.get_running_loop()
    key = (CHECK_ID, command)
    pending = ctx.shared.get(key)
    if pending is None or pending.get_loop() is not loop or pending.cancelled():
        pending = loop.create_task(_execute_suite(ctx, command))
        ctx.shared[key] = pending
    return await asyncio.shield(pending)


def capture_evidence(ctx: ExecutionContext, results: TestResults) -> Optional[str]:
    """Append an evidence record for this run; returns its id.

    The phase is the detected phase, or the one implied by the results when
    detection came back unknown. Runs without tests are not recorded.
    """
    if ctx.store is None or results.total == 0:
        return None
    phase = ctx.tdd_phase if ctx.tdd_phase.is_concrete else EvidenceAnalyzer.phase_from_results(results)
    if phase is None:
        return None
    record = ctx.store.record_test_run(phase, results, ctx.git.changed_files)
    return record.id


async def check_tests(ctx: ExecutionContext) -> CheckResult:
    suite = await run_test_suite(ctx)
    if suite is None:
        if ctx.is_functional and ctx.config.modes.require_tests:
            return failed(CHECK_ID, "No test command configured (ci.commands.test)")
        return skipped(CHECK_ID, "skipped: no test command configured")

    details = {"testResults": suite.results.to_dict(), "run": suite.run.to_dict()}
    try:
        evidence_id = await asyncio.to_thread(capture_evidence, ctx, suite.results)
    except (OSError, ValueError, ProveError) as exc:
        logger.warning("Failed to capture test evidence: %s", exc)
        details["evidenceError"] = str(exc)
    else:
        if evidence_id:
            details["evidenceId"] = evidence_id

    if not suite.run.ok:
        return failed(CHECK_ID, tool_failure_reason("Tests", suite.run), details)
    if suite.results.failed:
        return failed(CHECK_ID, f"{suite.results.failed} test(s) failed", details)
    return passed(CHECK_ID, f"{suite.results.passed} test(s) passed", details)


__all__ = ["check_tests", "run_test_suite", "parse_test_output", "capture_evidence", "SuiteRun", "CHECK_ID"]
