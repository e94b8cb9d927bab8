"""Domain-specific configuration for delivery-mode requirements."""
from __future__ import annotations

from functools import cached_property
from typing import Any, Dict

from ..base import BaseDomainConfig

DEFAULT_REQUIRED_SECTIONS = (
    "## Analyze",
    "## Identify Root Cause",
    "## Fix Directly",
    "## Validate",
)


class ModesConfig(BaseDomainConfig):
    """Requirements for functional and non-functional delivery."""

    SECTION = "modes"

    def _sub(self, key: str) -> Dict[str, Any]:
        value = self.section.get(key)
        return value if isinstance(value, dict) else {}

    @cached_property
    def require_tdd(self) -> bool:
        return bool(self._sub("functional").get("requireTdd", True))

    @cached_property
    def require_diff_coverage(self) -> bool:
        return bool(self._sub("functional").get("requireDiffCoverage", True))

    @cached_property
    def require_tests(self) -> bool:
        return bool(self._sub("functional").get("requireTests", True))

    @cached_property
    def require_problem_analysis(self) -> bool:
        return bool(self._sub("nonFunctional").get("requireProblemAnalysis", True))

    @cached_property
    def min_analysis_length(self) -> int:
        return int(self._sub("nonFunctional").get("minAnalysisLength", 200))

    @cached_property
    def required_sections(self) -> list[str]:
        raw = self._sub("nonFunctional").get("requiredSections")
        if not isinstance(raw, list):
            return list(DEFAULT_REQUIRED_SECTIONS)
        return [str(s) for s in raw if str(s).strip()]


__all__ = ["ModesConfig", "DEFAULT_REQUIRED_SECTIONS"]
