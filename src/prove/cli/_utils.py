"""Shared CLI utilities."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from prove.core.config import ConfigStore, ProveSettings
from prove.core.git import GitFacade
from prove.core.tdd import EvidenceStore
from prove.core.utils.log_config import configure_logging
from prove.core.utils.paths import resolve_project_root


def get_repo_root(args: argparse.Namespace) -> Path:
    """``--repo-root`` when given, else auto-detected."""
    if getattr(args, "repo_root", None):
        return Path(args.repo_root).resolve()
    return resolve_project_root()


def setup_logging(args: argparse.Namespace) -> None:
    log_file = getattr(args, "log_file", None)
    configure_logging(
        verbose=bool(getattr(args, "verbose", False)),
        log_file=Path(log_file) if log_file else None,
    )


def load_settings(repo_root: Path) -> ProveSettings:
    """Load settings for ``repo_root``; raises ConfigError when invalid."""
    return ConfigStore(repo_root).load()


def open_evidence_store(repo_root: Path, settings: Optional[ProveSettings] = None) -> EvidenceStore:
    """Filesystem evidence store with best-effort commit hashes."""
    settings = settings or load_settings(repo_root)
    git = GitFacade(repo_root, timeout=settings.timeouts.get("git_operations_seconds"))
    return EvidenceStore.for_repo(repo_root, settings, commit_hash_provider=git.get_last_commit_hash)


__all__ = ["get_repo_root", "setup_logging", "load_settings", "open_evidence_store"]
