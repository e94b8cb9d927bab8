"""Read-only analysis of the evidence history."""
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from .models import TestEvidence, TestResults
from .phases import CONCRETE_PHASES, NEXT_PHASE, TddPhase


class EvidenceAnalyzer:
    """Derive phases and transition statistics from test evidence."""

    @staticmethod
    def phase_from_results(results: TestResults) -> Optional[TddPhase]:
        """Failing tests mean red, a fully passing suite means green, no tests means None."""
        if results.total == 0:
            return None
        if results.has_failures:
            return TddPhase.RED
        return TddPhase.GREEN

    def analyze_patterns(self, history: Sequence[TestEvidence]) -> Dict[str, Any]:
        """Count phases and adjacent phase transitions in ``history`` (oldest first).

        Consecutive records with the same phase are re-runs, not transitions.

        Returns:
            ``{"records", "phaseCounts", "transitions": {"redToGreen",
            "greenToRefactor", "refactorToRed"}, "invalidTransitions",
            "testFailurePattern", "testSuccessPattern", "lastPhase"}``
        """
        phase_counts = {p.value: 0 for p in CONCRETE_PHASES}
        transitions = {"redToGreen": 0, "greenToRefactor": 0, "refactorToRed": 0}
        names = {
            TddPhase.RED: "redToGreen",
            TddPhase.GREEN: "greenToRefactor",
            TddPhase.REFACTOR: "refactorToRed",
        }
        invalid = 0
        previous: Optional[TddPhase] = None
        for record in history:
            phase_counts[record.phase.value] += 1
            if previous is not None and record.phase != previous:
                if NEXT_PHASE[previous] == record.phase:
                    transitions[names[previous]] += 1
                else:
                    invalid += 1
            previous = record.phase

        return {
            "records": len(history),
            "phaseCounts": phase_counts,
            "transitions": transitions,
            "invalidTransitions": invalid,
            "testFailurePattern": any(r.test_results.has_failures for r in history),
            "testSuccessPattern": any(r.test_results.all_passed for r in history),
            "lastPhase": previous.value if previous is not None else None,
        }


__all__ = ["EvidenceAnalyzer"]
