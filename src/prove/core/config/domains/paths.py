"""Domain-specific configuration for project paths and file classification globs."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class PathsConfig(BaseDomainConfig):
    """Glob sets and well-known file locations (repo-relative)."""

    SECTION = "paths"

    def _path(self, key: str, default: str) -> str:
        value = self.section.get(key)
        return str(value).strip() if isinstance(value, str) and value.strip() else default

    @cached_property
    def src_globs(self) -> list[str]:
        return self._str_list("srcGlobs")

    @cached_property
    def test_globs(self) -> list[str]:
        return self._str_list("testGlobs")

    @cached_property
    def coverage_file(self) -> str:
        return self._path("coverageFile", "coverage/coverage-final.json")

    @cached_property
    def prove_report_file(self) -> str:
        return self._path("proveReportFile", "prove-report.json")

    @cached_property
    def task_file(self) -> str:
        return self._path("taskFile", "tasks/TASK.json")

    @cached_property
    def problem_analysis_file(self) -> str:
        return self._path("problemAnalysisFile", "tasks/PROBLEM_ANALYSIS.md")

    @cached_property
    def tdd_phase_file(self) -> str:
        return self._path("tddPhaseFile", ".tdd-phase")

    @cached_property
    def evidence_file(self) -> str:
        return self._path("evidenceFile", ".prove/evidence.json")


__all__ = ["PathsConfig"]
