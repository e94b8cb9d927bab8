"""TDD state records: test results, evidence and the current-phase marker.

JSON field names are camelCase on disk; attributes are snake_case.
"""
from __future__ import annotations

import math
import secrets
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from prove.core.utils.time import now_ms

from .phases import TddPhase, coerce_phase


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def is_valid_timestamp(value: Any) -> bool:
    """A timestamp is a non-negative finite number (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def new_evidence_id(timestamp_ms: Optional[int] = None) -> str:
    """Return an id of the form ``evidence_<ms>_<6 hex>``."""
    ts = now_ms() if timestamp_ms is None else int(timestamp_ms)
    return f"evidence_{ts}_{secrets.token_hex(3)}"


@dataclass(frozen=True)
class TestResults:
    """Counts from one test run. ``passed + failed <= total``; all non-negative."""

    __test__ = False  # not a pytest test class

    passed: int = 0
    failed: int = 0
    total: int = 0
    duration_ms: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("passed", "failed", "total"):
            if not _is_count(getattr(self, name)):
                raise ValueError(f"{name} must be a non-negative integer")
        if self.passed + self.failed > self.total:
            raise ValueError("passed + failed must not exceed total")

    @property
    def all_passed(self) -> bool:
        return self.total > 0 and self.failed == 0

    @property
    def has_failures(self) -> bool:
        return self.failed > 0

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"passed": self.passed, "failed": self.failed, "total": self.total}
        if self.duration_ms is not None:
            out["durationMs"] = self.duration_ms
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TestResults":
        duration = data.get("durationMs")
        return cls(
            passed=data.get("passed", 0),
            failed=data.get("failed", 0),
            total=data.get("total", 0),
            duration_ms=int(duration) if isinstance(duration, (int, float)) and not isinstance(duration, bool) else None,
        )


@dataclass(frozen=True)
class TestEvidence:
    """One captured test run, tagged with the phase it belongs to."""

    __test__ = False

    phase: TddPhase
    test_results: TestResults
    timestamp: int = field(default_factory=now_ms)
    changed_files: Tuple[str, ...] = ()
    commit_hash: Optional[str] = None
    id: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.phase, TddPhase) or not self.phase.is_concrete:
            raise ValueError(f"evidence phase must be red, green or refactor, got {self.phase!r}")
        if not is_valid_timestamp(self.timestamp):
            raise ValueError("timestamp must be a non-negative finite number")
        if not self.id:
            object.__setattr__(self, "id", new_evidence_id(int(self.timestamp)))
        object.__setattr__(self, "changed_files", tuple(dict.fromkeys(self.changed_files)))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "phase": self.phase.value,
            "timestamp": self.timestamp,
            "testResults": self.test_results.to_dict(),
            "changedFiles": list(self.changed_files),
        }
        if self.commit_hash:
            out["commitHash"] = self.commit_hash
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TestEvidence":
        """Build from a schema-valid mapping.

        Raises:
            ValueError: If the phase or counts are invalid.
        """
        phase = coerce_phase(data.get("phase"))
        if phase is None:
            raise ValueError(f"invalid phase: {data.get('phase')!r}")
        changed = data.get("changedFiles") or []
        return cls(
            id=str(data.get("id") or ""),
            phase=phase,
            timestamp=data.get("timestamp"),  # type: ignore[arg-type]
            test_results=TestResults.from_dict(data.get("testResults") or {}),
            changed_files=tuple(str(f) for f in changed),
            commit_hash=data.get("commitHash") if isinstance(data.get("commitHash"), str) else None,
        )


@dataclass(frozen=True)
class TddPhaseMarker:
    """The persisted current phase. Never ``unknown``."""

    phase: TddPhase
    timestamp: int = field(default_factory=now_ms)
    commit_hash: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.phase, TddPhase) or not self.phase.is_concrete:
            raise ValueError(f"marker phase must be red, green or refactor, got {self.phase!r}")
        if not is_valid_timestamp(self.timestamp):
            raise ValueError("timestamp must be a non-negative finite number")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"phase": self.phase.value, "timestamp": self.timestamp}
        if self.commit_hash:
            out["commitHash"] = self.commit_hash
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TddPhaseMarker":
        phase = coerce_phase(data.get("phase"))
        if phase is None:
            raise ValueError(f"invalid phase: {data.get('phase')!r}")
        return cls(
            phase=phase,
            timestamp=data.get("timestamp"),  # type: ignore[arg-type]
            commit_hash=data.get("commitHash") if isinstance(data.get("commitHash"), str) else None,
        )


__all__ = [
    "TestResults",
    "TestEvidence",
    "TddPhaseMarker",
    "is_valid_timestamp",
    "new_evidence_id",
]
