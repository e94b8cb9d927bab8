"""Run report: JSON artifact and console rendering."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from prove.core.checks import CheckResult
from prove.core.runner import RunOutcome
from prove.core.utils.io import write_json_atomic

logger = logging.getLogger(__name__)

PASS_MARK = "✓"
FAIL_MARK = "✗"
SKIP_MARK = "-"


@dataclass(frozen=True)
class Report:
    mode: str
    checks: Tuple[CheckResult, ...]
    total_ms: int = 0
    first_failure: Optional[str] = None

    @property
    def success(self) -> bool:
        """True iff every check in the report is ok."""
        return all(c.ok for c in self.checks)

    @property
    def failures(self) -> List[CheckResult]:
        return [c for c in self.checks if not c.ok]

    @classmethod
    def from_outcome(cls, outcome: RunOutcome, mode: str) -> "Report":
        return cls(mode=mode, checks=outcome.results, total_ms=outcome.total_ms, first_failure=outcome.first_failure)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "mode": self.mode,
            "checks": [c.to_dict() for c in self.checks],
            "totalMs": self.total_ms,
            "success": self.success,
        }
        if self.first_failure:
            out["firstFailure"] = self.first_failure
        return out

    def write(self, path: Path) -> Path:
        """Atomically write the JSON report (key order preserved)."""
        write_json_atomic(path, self.to_dict(), sort_keys=False)
        logger.info("Report written to %s", path)
        return path


def _mark(result: CheckResult) -> str:
    if result.skipped:
        return SKIP_MARK
    return PASS_MARK if result.ok else FAIL_MARK


def render_console(report: Report) -> str:
    """One line per check plus a summary line."""
    lines: List[str] = [f"Prove ({report.mode} mode)"]
    for result in report.checks:
        line = f"  {_mark(result)} {result.id} ({result.ms}ms)"
        if result.reason and (not result.ok or result.skipped):
            line += f": {result.reason}"
        lines.append(line)

    total = len(report.checks)
    skipped_n = sum(1 for c in report.checks if c.skipped)
    failed_n = len(report.failures)
    passed_n = total - skipped_n - failed_n
    status = "PASSED" if report.success else "FAILED"
    summary = f"{status}: {passed_n} passed, {failed_n} failed, {skipped_n} skipped in {report.total_ms}ms"
    if report.first_failure and not report.success:
        summary += f" (first failure: {report.first_failure})"
    lines.append(summary)
    return "\n".join(lines)


__all__ = ["Report", "render_console", "PASS_MARK", "FAIL_MARK", "SKIP_MARK"]
