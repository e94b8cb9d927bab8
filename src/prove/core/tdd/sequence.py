"""Validation of the red -> green -> refactor cycle over recent evidence."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .phases import NEXT_PHASE, TddPhase, coerce_phase


@dataclass(frozen=True)
class SequenceViolation:
    from_phase: TddPhase
    to_phase: TddPhase
    skipped_phases: Tuple[TddPhase, ...]
    expected_phase: TddPhase

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_phase.value,
            "to": self.to_phase.value,
            "skippedPhases": [p.value for p in self.skipped_phases],
            "expectedPhase": self.expected_phase.value,
        }

    def describe(self) -> str:
        skipped = ", ".join(p.value for p in self.skipped_phases)
        return f"{self.from_phase.value} -> {self.to_phase.value} (skipped: {skipped})"


@dataclass(frozen=True)
class SequenceValidation:
    ok: bool
    observed: Tuple[TddPhase, ...] = ()
    violations: Tuple[SequenceViolation, ...] = ()
    insufficient_evidence: bool = False
    expected: Tuple[TddPhase, ...] = field(default=())

    @property
    def skipped_phases(self) -> List[TddPhase]:
        """Every phase skipped by any violation, without duplicates."""
        seen: Dict[TddPhase, None] = {}
        for v in self.violations:
            for p in v.skipped_phases:
                seen.setdefault(p, None)
        return list(seen)

    @property
    def expected_phase(self) -> Optional[TddPhase]:
        return self.violations[0].expected_phase if self.violations else None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "observed": [p.value for p in self.observed],
            "expected": [p.value for p in self.expected],
            "violations": [v.to_dict() for v in self.violations],
            "skippedPhases": [p.value for p in self.skipped_phases],
            "insufficientEvidence": self.insufficient_evidence,
        }
        if self.expected_phase is not None:
            out["expectedPhase"] = self.expected_phase.value
        return out


def collapse_repeats(phases: Iterable[TddPhase]) -> List[TddPhase]:
    """Drop consecutive duplicates: re-running tests within a phase is not a transition."""
    out: List[TddPhase] = []
    for phase in phases:
        if not out or out[-1] != phase:
            out.append(phase)
    return out


def skipped_between(from_phase: TddPhase, to_phase: TddPhase) -> Tuple[TddPhase, ...]:
    """Phases passed over when jumping from ``from_phase`` to ``to_phase`` along the cycle."""
    skipped: List[TddPhase] = []
    cursor = NEXT_PHASE[from_phase]
    while cursor != to_phase:
        skipped.append(cursor)
        cursor = NEXT_PHASE[cursor]
    return tuple(skipped)


def expected_sequence(start: TddPhase, length: int) -> Tuple[TddPhase, ...]:
    """The canonical cycle of ``length`` phases beginning at ``start``."""
    out: List[TddPhase] = []
    cursor = start
    for _ in range(max(0, length)):
        out.append(cursor)
        cursor = NEXT_PHASE[cursor]
    return tuple(out)


def validate_sequence(
    phases: Sequence[Any],
    current: Any = None,
    *,
    window: int = 5,
) -> SequenceValidation:
    """Validate the last ``window`` phases plus ``current`` against the allowed edges.

    Allowed edges are red->green, green->refactor and refactor->red. An empty
    history passes with ``insufficient_evidence`` set.

    Args:
        phases: Evidence phases, oldest first (strings or :class:`TddPhase`).
        current: The detected phase for this run; ignored unless concrete.
        window: How many trailing evidence phases to inspect.
    """
    recent = [p for p in (coerce_phase(x) for x in list(phases)[-window:] if window > 0) if p is not None]
    if not recent:
        return SequenceValidation(ok=True, insufficient_evidence=True)

    current_phase = coerce_phase(current)
    if current_phase is not None:
        recent.append(current_phase)

    observed = tuple(collapse_repeats(recent))
    violations: List[SequenceViolation] = []
    for prev, nxt in zip(observed, observed[1:]):
        if NEXT_PHASE[prev] == nxt:
            continue
        violations.append(
            SequenceViolation(
                from_phase=prev,
                to_phase=nxt,
                skipped_phases=skipped_between(prev, nxt),
                expected_phase=NEXT_PHASE[prev],
            )
        )

    return SequenceValidation(
        ok=not violations,
        observed=observed,
        violations=tuple(violations),
        expected=expected_sequence(observed[0], len(observed)),
    )


__all__ = [
    "SequenceViolation",
    "SequenceValidation",
    "collapse_repeats",
    "skipped_between",
    "expected_sequence",
    "validate_sequence",
]
