"""Domain-specific configuration for quality thresholds."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class ThresholdsConfig(BaseDomainConfig):
    """Coverage percentages, warning budget and commit size limit."""

    SECTION = "thresholds"

    @cached_property
    def diff_coverage_functional(self) -> float:
        return float(self.section.get("diffCoverageFunctional", 85))

    @cached_property
    def diff_coverage_functional_refactor(self) -> float:
        """Diff coverage required while in the refactor phase."""
        return float(self.section.get("diffCoverageFunctionalRefactor", 60))

    @cached_property
    def global_coverage(self) -> float:
        return float(self.section.get("globalCoverage", 25))

    @cached_property
    def max_warnings(self) -> int:
        return int(self.section.get("maxWarnings", 0))

    @cached_property
    def max_commit_size(self) -> int:
        """Maximum added+deleted lines in the diff against the base ref."""
        return int(self.section.get("maxCommitSize", 300))


__all__ = ["ThresholdsConfig"]
