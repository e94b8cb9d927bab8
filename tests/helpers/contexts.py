"""Builders for ExecutionContext and settings used by check and runner tests."""
from __future__ import annotations

import dataclasses
import os
import shlex
import sys
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from prove.core.config import ConfigStore, ProveSettings
from prove.core.context import ExecutionContext, GitSnapshot
from prove.core.git import ChangedLine, DiffStats
from prove.core.mode import DeliveryMode
from prove.core.tdd import EvidenceStore, MemoryStorage, TddPhase, TestEvidence


def load_settings(repo_root: Path, env: Optional[Mapping[str, str]] = None) -> ProveSettings:
    """Bundled defaults plus any ``.prove/config`` layers, isolated from os.environ."""
    return ConfigStore(repo_root, env=dict(env or {})).load()


def with_settings(settings: ProveSettings, **sections: Dict[str, Any]) -> ProveSettings:
    """Replace fields inside settings sections.

    Example:
        with_settings(s, git={"trunk_branch": "develop"}, toggles={"commitSize": True})
    """
    changes: Dict[str, Any] = {}
    for name, values in sections.items():
        current = getattr(settings, name)
        if dataclasses.is_dataclass(current):
            changes[name] = dataclasses.replace(current, **values)
        else:
            changes[name] = MappingProxyType({**dict(current), **values})
    return dataclasses.replace(settings, **changes)


def python_command(code: str) -> str:
    """A configured-command string that runs ``code`` with the current interpreter."""
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"


def without_commands(settings: ProveSettings, *names: str) -> ProveSettings:
    commands = {k: v for k, v in settings.ci.commands.items() if k not in names}
    return dataclasses.replace(settings, ci=dataclasses.replace(settings.ci, commands=MappingProxyType(commands)))


def with_commands(settings: ProveSettings, **commands: str) -> ProveSettings:
    merged = {**dict(settings.ci.commands), **{k.replace("_", "-"): v for k, v in commands.items()}}
    return dataclasses.replace(settings, ci=dataclasses.replace(settings.ci, commands=MappingProxyType(merged)))


class FakeRepo:
    """Stand-in for GitFacade exposing the calls checks make after context build."""

    def __init__(
        self,
        changed_lines: Iterable[ChangedLine] = (),
        base_files: Optional[Dict[str, str]] = None,
        stats: Optional[DiffStats] = None,
    ) -> None:
        self.changed_lines: List[ChangedLine] = list(changed_lines)
        self.base_files = dict(base_files or {})
        self.stats = stats or DiffStats()

    def get_changed_lines(self, base_ref: str) -> List[ChangedLine]:
        return list(self.changed_lines)

    def show_file(self, ref: str, path: str) -> Optional[str]:
        return self.base_files.get(path)

    def get_diff_stats(self, base_ref: str) -> DiffStats:
        return self.stats


def make_context(
    repo_root: Path,
    *,
    settings: Optional[ProveSettings] = None,
    mode: DeliveryMode = DeliveryMode.FUNCTIONAL,
    branch: str = "main",
    changed_files: Sequence[str] = (),
    commit_message: str = "",
    phase: TddPhase = TddPhase.UNKNOWN,
    phase_source: str = "none",
    evidence: Sequence[TestEvidence] = (),
    env: Optional[Mapping[str, str]] = None,
    store: Optional[EvidenceStore] = None,
    repo: Any = None,
    quick: bool = False,
    is_ci: bool = False,
    task_errors: Sequence[str] = (),
    git_error: Optional[str] = None,
) -> ExecutionContext:
    """ExecutionContext with sensible defaults and an in-memory evidence store."""
    return ExecutionContext(
        repo_root=Path(repo_root),
        mode=mode,
        git=GitSnapshot(
            current_branch=branch,
            base_ref="origin/main",
            changed_files=tuple(changed_files),
            commit_message=commit_message,
            error=git_error,
        ),
        config=settings or load_settings(repo_root),
        tdd_phase=phase,
        phase_source=phase_source,
        evidence=tuple(evidence),
        env=MappingProxyType(dict(os.environ if env is None else env)),
        is_ci=is_ci,
        quick=quick,
        task_errors=tuple(task_errors),
        store=store if store is not None else EvidenceStore(MemoryStorage()),
        repo=repo,
    )


__all__ = [
    "load_settings",
    "with_settings",
    "with_commands",
    "python_command",
    "without_commands",
    "FakeRepo",
    "make_context",
]
