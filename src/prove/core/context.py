"""Read-only execution context shared by every check of one run."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from prove.core.config import ConfigStore, ProveSettings
from prove.core.exceptions import GitError
from prove.core.files import FileClassifier
from prove.core.git import EMPTY_TREE_SHA, GitFacade
from prove.core.mode import DeliveryMode, ModeResolution, resolve_mode
from prove.core.tdd import EvidenceStore, PhaseDetector, TddPhase, TestEvidence
from prove.core.tdd.detection import DetectionResult

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}
# CI providers that export a URL rather than a boolean flag.
_PRESENCE_VARS = frozenset({"JENKINS_URL"})


def detect_ci(env: Mapping[str, str], names: Sequence[str]) -> bool:
    """True when any CI indicator variable is set to a truthy value."""
    for name in names:
        value = (env.get(name) or "").strip()
        if not value:
            continue
        if name in _PRESENCE_VARS or value.lower() in _TRUTHY:
            return True
    return False


@dataclass(frozen=True)
class GitSnapshot:
    current_branch: str = "unknown"
    base_ref: str = EMPTY_TREE_SHA
    changed_files: Tuple[str, ...] = ()
    has_uncommitted_changes: bool = False
    commit_hash: Optional[str] = None
    commit_message: str = ""
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "currentBranch": self.current_branch,
            "baseRef": self.base_ref,
            "changedFiles": list(self.changed_files),
            "hasUncommittedChanges": self.has_uncommitted_changes,
        }
        if self.commit_hash:
            out["commitHash"] = self.commit_hash
        if self.error:
            out["error"] = self.error
        return out


@dataclass(frozen=True)
class ExecutionContext:
    """Snapshot handed to every check. Checks must treat it as read-only."""

    repo_root: Path
    mode: DeliveryMode
    git: GitSnapshot
    config: ProveSettings
    tdd_phase: TddPhase = TddPhase.UNKNOWN
    phase_source: str = "none"
    phase_confidence: str = "low"
    evidence: Tuple[TestEvidence, ...] = ()
    env: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    is_ci: bool = False
    quick: bool = False
    mode_source: str = "default"
    task_errors: Tuple[str, ...] = ()
    store: Optional[EvidenceStore] = None
    repo: Optional[GitFacade] = None
    # Work shared between checks of one run, such as the test suite run.
    shared: Dict[Any, Any] = field(default_factory=dict, init=False, repr=False, compare=False)

    @property
    def is_functional(self) -> bool:
        return self.mode is DeliveryMode.FUNCTIONAL

    @property
    def classifier(self) -> FileClassifier:
        return FileClassifier.from_settings(self.config)

    def summary(self) -> str:
        return " | ".join(
            [
                f"Mode: {self.mode.value}",
                f"Branch: {self.git.current_branch}",
                f"Files: {len(self.git.changed_files)} changed",
                f"Uncommitted: {'yes' if self.git.has_uncommitted_changes else 'no'}",
                f"CI: {'yes' if self.is_ci else 'no'}",
                f"TDD: {self.tdd_phase.value} ({self.phase_source})",
            ]
        )


class ContextBuilder:
    """Assemble an :class:`ExecutionContext` for one run.

    Every collaborator is injectable so tests can run without a repository
    or with an in-memory evidence store.
    """

    def __init__(
        self,
        repo_root: Path,
        *,
        env: Optional[Mapping[str, str]] = None,
        store: Optional[EvidenceStore] = None,
        git: Optional[GitFacade] = None,
        config_store: Optional[ConfigStore] = None,
    ) -> None:
        self.repo_root = Path(repo_root)
        self.env = dict(os.environ if env is None else env)
        self._store = store
        self._git = git
        self._config_store = config_store or ConfigStore(self.repo_root, env=env)

    def _snapshot(self, git: GitFacade) -> GitSnapshot:
        try:
            branch = git.get_current_branch()
            base_ref = git.resolve_base_ref()
            changed = tuple(git.get_changed_files(base_ref))
        except GitError as exc:
            logger.warning("Git information unavailable: %s", exc)
            return GitSnapshot(error=str(exc))

        try:
            commit_hash: Optional[str] = git.get_last_commit_hash()
            message = git.get_last_commit_message()
            dirty = git.has_uncommitted_changes()
        except GitError as exc:
            logger.warning("Commit information unavailable: %s", exc)
            commit_hash, message, dirty = None, "", False

        return GitSnapshot(
            current_branch=branch,
            base_ref=base_ref,
            changed_files=changed,
            has_uncommitted_changes=dirty,
            commit_hash=commit_hash,
            commit_message=message,
        )

    def build(self, *, quick: bool = False) -> ExecutionContext:
        """Collect config, git state, mode, evidence and the detected phase.

        Raises:
            ConfigError: If configuration is invalid.
        """
        settings = self._config_store.load()
        git = self._git or GitFacade(
            self.repo_root,
            timeout=settings.timeouts.get("git_operations_seconds"),
            base_ref_candidate=settings.git.base_ref_fallback,
        )
        snapshot = self._snapshot(git)

        store = self._store or EvidenceStore.for_repo(
            self.repo_root, settings, commit_hash_provider=git.get_last_commit_hash
        )
        evidence = tuple(store.read_evidence_history())

        resolution: ModeResolution = resolve_mode(self.repo_root, self.env, settings)
        detector = PhaseDetector.default(store, FileClassifier.from_settings(settings))
        detection: DetectionResult = detector.detect(snapshot.commit_message, evidence)

        ctx = ExecutionContext(
            repo_root=self.repo_root,
            mode=resolution.mode,
            mode_source=resolution.source,
            task_errors=resolution.task_errors,
            git=snapshot,
            config=settings,
            tdd_phase=detection.phase,
            phase_source=detection.source,
            phase_confidence=detection.confidence,
            evidence=evidence,
            env=MappingProxyType(dict(self.env)),
            is_ci=detect_ci(self.env, settings.ci.env_vars),
            quick=quick,
            store=store,
            repo=git,
        )
        logger.info("Context built: %s", ctx.summary())
        return ctx


__all__ = ["ExecutionContext", "GitSnapshot", "ContextBuilder", "detect_ci"]
