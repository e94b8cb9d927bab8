"""TDD phase tracking: marker, evidence history, detection and sequence rules."""
from __future__ import annotations

from .analysis import EvidenceAnalyzer
from .detection import DetectionResult, PhaseDetector, extract_phase_tag
from .evidence import EvidenceStore
from .models import TddPhaseMarker, TestEvidence, TestResults
from .phases import CONCRETE_PHASES, PHASE_GUIDANCE, TddPhase, coerce_phase, require_phase
from .sequence import SequenceValidation, validate_sequence
from .storage import FileStorage, MemoryStorage, StorageBackend

__all__ = [
    "TddPhase",
    "CONCRETE_PHASES",
    "PHASE_GUIDANCE",
    "coerce_phase",
    "require_phase",
    "TestResults",
    "TestEvidence",
    "TddPhaseMarker",
    "StorageBackend",
    "FileStorage",
    "MemoryStorage",
    "EvidenceStore",
    "EvidenceAnalyzer",
    "PhaseDetector",
    "DetectionResult",
    "extract_phase_tag",
    "SequenceValidation",
    "validate_sequence",
]
