"""EvidenceStore: the single owner of the TDD marker and evidence files.

Every read validates what it finds. A missing, unparsable or schema-invalid
file is treated as absent and logged; reads never raise.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional

from prove.core.exceptions import ProveError
from prove.core.schemas.validation import validate_payload_safe
from prove.core.utils.io import dumps_json

from .models import TddPhaseMarker, TestEvidence, TestResults, is_valid_timestamp
from .phases import TddPhase, require_phase
from .storage import FileStorage, StorageBackend

logger = logging.getLogger(__name__)

MARKER_SCHEMA = "tdd-marker.schema.yaml"
EVIDENCE_SCHEMA = "test-evidence.schema.yaml"

DEFAULT_MARKER_KEY = ".tdd-phase"
DEFAULT_EVIDENCE_KEY = ".prove/evidence.json"
DEFAULT_MAX_HISTORY = 100

CommitHashProvider = Callable[[], Optional[str]]


class EvidenceStore:
    """Persist the current phase marker and the bounded evidence history.

    Args:
        backend: Where files live (:class:`FileStorage` or :class:`MemoryStorage`).
        marker_key: Marker file location (repo-relative).
        evidence_key: Evidence history location (repo-relative).
        max_history: Oldest records beyond this count are pruned on append.
        commit_hash_provider: Best-effort source of the current commit hash.
    """

    def __init__(
        self,
        backend: StorageBackend,
        *,
        marker_key: str = DEFAULT_MARKER_KEY,
        evidence_key: str = DEFAULT_EVIDENCE_KEY,
        max_history: int = DEFAULT_MAX_HISTORY,
        commit_hash_provider: Optional[CommitHashProvider] = None,
    ) -> None:
        self.backend = backend
        self.marker_key = marker_key
        self.evidence_key = evidence_key
        self.max_history = max(1, int(max_history))
        self._commit_hash_provider = commit_hash_provider

    @classmethod
    def for_repo(
        cls,
        repo_root: Path,
        settings: Any = None,
        *,
        commit_hash_provider: Optional[CommitHashProvider] = None,
    ) -> "EvidenceStore":
        """Build a filesystem store using the configured paths and history cap."""
        if settings is None:
            return cls(FileStorage(repo_root), commit_hash_provider=commit_hash_provider)
        return cls(
            FileStorage(repo_root),
            marker_key=settings.paths.tdd_phase_file,
            evidence_key=settings.paths.evidence_file,
            max_history=settings.tdd.max_evidence_history,
            commit_hash_provider=commit_hash_provider,
        )

    def _current_commit_hash(self) -> Optional[str]:
        if self._commit_hash_provider is None:
            return None
        try:
            value = self._commit_hash_provider()
        except (ProveError, OSError) as exc:
            logger.debug("Commit hash unavailable: %s", exc)
            return None
        return value or None

    def _load_json(self, key: str, label: str) -> Any:
        text = self.backend.read_text(key)
        if text is None:
            return None
        try:
            return json.loads(text)
        except (ValueError, RecursionError) as exc:
            logger.warning("Ignoring corrupt %s %s: %s", label, key, exc)
            return None

    # ---------- marker ----------

    def write_marker(self, phase: TddPhase | str) -> TddPhaseMarker:
        """Overwrite the marker with ``phase``.

        Raises:
            InvalidPhaseError: If ``phase`` is not red, green or refactor.
        """
        marker = TddPhaseMarker(
            phase=require_phase(phase),
            commit_hash=self._current_commit_hash(),
        )
        self.backend.write_text(self.marker_key, dumps_json(marker.to_dict()) + "\n")
        logger.info("TDD phase marker set to %s", marker.phase.value)
        return marker

    def read_marker(self) -> Optional[TddPhaseMarker]:
        """Return the persisted marker, or None when missing or invalid."""
        data = self._load_json(self.marker_key, "TDD phase marker")
        if data is None:
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring TDD phase marker %s: not a JSON object", self.marker_key)
            return None
        errors = validate_payload_safe(data, MARKER_SCHEMA)
        if errors or not is_valid_timestamp(data.get("timestamp")):
            logger.warning(
                "Ignoring invalid TDD phase marker %s: %s",
                self.marker_key,
                "; ".join(errors) or "timestamp must be finite",
            )
            return None
        try:
            return TddPhaseMarker.from_dict(data)
        except ValueError as exc:
            logger.warning("Ignoring invalid TDD phase marker %s: %s", self.marker_key, exc)
            return None

    def delete_marker(self) -> bool:
        return self.backend.delete(self.marker_key)

    # ---------- evidence ----------

    def _parse_record(self, raw: Any, index: int) -> Optional[TestEvidence]:
        errors = validate_payload_safe(raw, EVIDENCE_SCHEMA)
        if not errors and isinstance(raw, dict) and not is_valid_timestamp(raw.get("timestamp")):
            errors = ["timestamp must be finite"]
        if errors:
            logger.warning("Skipping invalid evidence record #%d: %s", index, "; ".join(errors))
            return None
        try:
            return TestEvidence.from_dict(raw)
        except ValueError as exc:
            logger.warning("Skipping invalid evidence record #%d: %s", index, exc)
            return None

    def read_evidence_history(self) -> List[TestEvidence]:
        """Return valid records, oldest first. A corrupt file reads as empty."""
        data = self._load_json(self.evidence_key, "evidence history")
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring evidence history %s: not a JSON array", self.evidence_key)
            return []
        records: List[TestEvidence] = []
        for index, raw in enumerate(data):
            record = self._parse_record(raw, index)
            if record is not None:
                records.append(record)
        return records

    def latest_evidence(self) -> Optional[TestEvidence]:
        history = self.read_evidence_history()
        return history[-1] if history else None

    def append_evidence(self, record: TestEvidence) -> TestEvidence:
        """Append ``record`` and prune the oldest entries beyond ``max_history``.

        Raises:
            ValueError: If the record does not satisfy the evidence schema.
        """
        payload = record.to_dict()
        errors = validate_payload_safe(payload, EVIDENCE_SCHEMA)
        if errors:
            raise ValueError("Invalid evidence record: " + "; ".join(errors))

        history = [r.to_dict() for r in self.read_evidence_history()]
        history.append(payload)
        if len(history) > self.max_history:
            history = history[-self.max_history:]
        self.backend.write_text(self.evidence_key, dumps_json(history) + "\n")
        logger.debug("Appended evidence %s (%s)", record.id, record.phase.value)
        return record

    def record_test_run(
        self,
        phase: TddPhase | str,
        results: TestResults,
        changed_files: tuple[str, ...] | list[str] = (),
    ) -> TestEvidence:
        """Create and append evidence for one test run."""
        record = TestEvidence(
            phase=require_phase(phase),
            test_results=results,
            changed_files=tuple(changed_files),
            commit_hash=self._current_commit_hash(),
        )
        return self.append_evidence(record)

    def clear_evidence(self) -> int:
        """Remove the evidence history; returns how many valid records it held."""
        count = len(self.read_evidence_history())
        self.backend.delete(self.evidence_key)
        return count


__all__ = ["EvidenceStore", "MARKER_SCHEMA", "EVIDENCE_SCHEMA"]
