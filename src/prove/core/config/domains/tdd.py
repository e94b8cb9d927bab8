"""Domain-specific configuration for TDD enforcement."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class TDDConfig(BaseDomainConfig):
    """Evidence retention, sequence window and the text heuristics used by TDD checks."""

    SECTION = "tdd"

    @cached_property
    def max_evidence_history(self) -> int:
        return max(1, int(self.section.get("maxEvidenceHistory", 100)))

    @cached_property
    def sequence_window(self) -> int:
        return max(2, int(self.section.get("sequenceWindow", 5)))

    @cached_property
    def refactor_indicators(self) -> list[str]:
        return [s.lower() for s in self._str_list("refactorIndicators")]

    @cached_property
    def assertion_patterns(self) -> list[str]:
        return self._str_list("assertionPatterns")


__all__ = ["TDDConfig"]
