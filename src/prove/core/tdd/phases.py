"""TDD phase vocabulary."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from prove.core.exceptions import InvalidPhaseError


class TddPhase(str, Enum):
    RED = "red"
    GREEN = "green"
    REFACTOR = "refactor"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value

    @property
    def is_concrete(self) -> bool:
        return self is not TddPhase.UNKNOWN


# The only phases that may be persisted or appear in evidence.
CONCRETE_PHASES: Tuple[TddPhase, ...] = (TddPhase.RED, TddPhase.GREEN, TddPhase.REFACTOR)

# Allowed transitions of the cycle: red -> green -> refactor -> red.
NEXT_PHASE: Dict[TddPhase, TddPhase] = {
    TddPhase.RED: TddPhase.GREEN,
    TddPhase.GREEN: TddPhase.REFACTOR,
    TddPhase.REFACTOR: TddPhase.RED,
}

PHASE_GUIDANCE: Dict[TddPhase, str] = {
    TddPhase.RED: "Write failing tests before implementation",
    TddPhase.GREEN: "Make tests pass with minimal implementation",
    TddPhase.REFACTOR: "Improve code quality while preserving behavior",
}


def coerce_phase(value: Any) -> Optional[TddPhase]:
    """Return the concrete phase named by ``value`` (case-insensitive), else None."""
    if isinstance(value, TddPhase):
        return value if value.is_concrete else None
    if not isinstance(value, str):
        return None
    try:
        phase = TddPhase(value.strip().lower())
    except ValueError:
        return None
    return phase if phase.is_concrete else None


def require_phase(value: Any) -> TddPhase:
    """Return the concrete phase for ``value``.

    Raises:
        InvalidPhaseError: If ``value`` is not red, green or refactor.
    """
    phase = coerce_phase(value)
    if phase is None:
        raise InvalidPhaseError(
            f"Invalid TDD phase: {value!r}. Expected one of: red, green, refactor",
            context={"phase": str(value)},
        )
    return phase


__all__ = [
    "TddPhase",
    "CONCRETE_PHASES",
    "NEXT_PHASE",
    "PHASE_GUIDANCE",
    "coerce_phase",
    "require_phase",
]
