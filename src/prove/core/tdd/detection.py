"""TDD phase detection as an ordered chain of strategies.

Priority (first strategy that returns a signal wins):

1. ``[TDD:red|green|refactor]`` tag in the last commit message
2. The persisted phase marker file
3. Inference from the two most recent evidence records
4. ``unknown``

Detection never raises. A failing strategy is logged and skipped.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from prove.core.files import FileClassifier

from .evidence import EvidenceStore
from .models import TestEvidence
from .phases import TddPhase, coerce_phase

logger = logging.getLogger(__name__)

HIGH = "high"
MEDIUM = "medium"
LOW = "low"

# Bounded character classes with no nested quantifiers: matching is linear.
TDD_TAG_RE = re.compile(r"\[\s*TDD\s*:\s*([A-Za-z]*)\s*\]", re.IGNORECASE)


@dataclass(frozen=True)
class PhaseSignal:
    phase: TddPhase
    source: str
    confidence: str = HIGH


@dataclass(frozen=True)
class DetectionResult:
    phase: TddPhase
    source: str
    confidence: str
    sources_checked: Tuple[str, ...] = ()

    @property
    def is_known(self) -> bool:
        return self.phase.is_concrete

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "source": self.source,
            "confidence": self.confidence,
            "sourcesChecked": list(self.sources_checked),
        }


@dataclass(frozen=True)
class DetectionInput:
    commit_message: str = ""
    evidence: Tuple[TestEvidence, ...] = field(default=())


class PhaseStrategy(Protocol):
    name: str

    def detect(self, inputs: DetectionInput) -> Optional[PhaseSignal]:
        ...


def extract_phase_tag(message: str) -> Optional[TddPhase]:
    """Return the phase of the first well-formed ``[TDD:...]`` tag, ignoring malformed ones."""
    for match in TDD_TAG_RE.finditer(message or ""):
        phase = coerce_phase(match.group(1))
        if phase is not None:
            return phase
    return None


class CommitTagStrategy:
    name = "commit_message"

    def detect(self, inputs: DetectionInput) -> Optional[PhaseSignal]:
        phase = extract_phase_tag(inputs.commit_message)
        if phase is None:
            return None
        return PhaseSignal(phase, self.name, HIGH)


class MarkerFileStrategy:
    name = "marker_file"

    def __init__(self, store: EvidenceStore) -> None:
        self.store = store

    def detect(self, inputs: DetectionInput) -> Optional[PhaseSignal]:
        marker = self.store.read_marker()
        if marker is None:
            return None
        return PhaseSignal(marker.phase, self.name, HIGH)


class EvidenceInferenceStrategy:
    """Infer the phase from the latest test run and the one before it."""

    name = "test_evidence"

    def __init__(self, classifier: FileClassifier) -> None:
        self.classifier = classifier

    def _implementation_changed(self, record: TestEvidence) -> bool:
        return bool(self.classifier.sources(record.changed_files))

    def detect(self, inputs: DetectionInput) -> Optional[PhaseSignal]:
        if not inputs.evidence:
            return None
        latest = inputs.evidence[-1]
        previous = inputs.evidence[-2] if len(inputs.evidence) > 1 else None
        results = latest.test_results

        if results.total == 0:
            return None
        if results.has_failures:
            confidence = MEDIUM if self._implementation_changed(latest) else HIGH
            return PhaseSignal(TddPhase.RED, self.name, confidence)
        if previous is not None and previous.test_results.has_failures:
            return PhaseSignal(TddPhase.GREEN, self.name, HIGH)
        if (
            previous is not None
            and previous.test_results.all_passed
            and previous.test_results.total == results.total
            and self._implementation_changed(latest)
        ):
            return PhaseSignal(TddPhase.REFACTOR, self.name, MEDIUM)
        return PhaseSignal(TddPhase.GREEN, self.name, LOW)


class PhaseDetector:
    """Run the strategies in order and return the first signal."""

    def __init__(self, strategies: Sequence[PhaseStrategy]) -> None:
        self.strategies = list(strategies)

    @classmethod
    def default(cls, store: EvidenceStore, classifier: FileClassifier) -> "PhaseDetector":
        return cls(
            [
                CommitTagStrategy(),
                MarkerFileStrategy(store),
                EvidenceInferenceStrategy(classifier),
            ]
        )

    def detect(
        self,
        commit_message: str,
        evidence: Optional[Sequence[TestEvidence]] = None,
    ) -> DetectionResult:
        inputs = DetectionInput(commit_message or "", tuple(evidence or ()))
        checked: List[str] = []
        for strategy in self.strategies:
            checked.append(strategy.name)
            try:
                signal = strategy.detect(inputs)
            except Exception as exc:  # detection must degrade, never fail the run
                logger.warning("TDD phase strategy %s failed: %s", strategy.name, exc)
                continue
            if signal is not None:
                return DetectionResult(signal.phase, signal.source, signal.confidence, tuple(checked))
        return DetectionResult(TddPhase.UNKNOWN, "none", LOW, tuple(checked))


__all__ = [
    "PhaseSignal",
    "DetectionResult",
    "DetectionInput",
    "PhaseStrategy",
    "CommitTagStrategy",
    "MarkerFileStrategy",
    "EvidenceInferenceStrategy",
    "PhaseDetector",
    "extract_phase_tag",
    "TDD_TAG_RE",
]
