"""Immutable settings snapshot shared by every check in a run.

``ConfigStore`` loads the layered configuration once, validates it, and
composes the domain accessors into frozen dataclasses so that checks running
concurrently read the same values and cannot mutate them.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .domains import (
    CheckTimeoutsConfig,
    CIConfig,
    GitConfig,
    ModesConfig,
    PathsConfig,
    RunnerConfig,
    TDDConfig,
    ThresholdsConfig,
    TimeoutsConfig,
    TogglesConfig,
)
from .manager import ConfigManager

logger = logging.getLogger(__name__)


def _frozen_map(data: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(data))


def _plain(value: Any) -> Any:
    # asdict() cannot deep-copy MappingProxyType, so convert by hand.
    if is_dataclass(value):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class Thresholds:
    diff_coverage_functional: float = 85.0
    diff_coverage_functional_refactor: float = 60.0
    global_coverage: float = 25.0
    max_warnings: int = 0
    max_commit_size: int = 300


@dataclass(frozen=True)
class PathSettings:
    src_globs: Tuple[str, ...] = ()
    test_globs: Tuple[str, ...] = ()
    coverage_file: str = "coverage/coverage-final.json"
    prove_report_file: str = "prove-report.json"
    task_file: str = "tasks/TASK.json"
    problem_analysis_file: str = "tasks/PROBLEM_ANALYSIS.md"
    tdd_phase_file: str = ".tdd-phase"
    evidence_file: str = ".prove/evidence.json"


@dataclass(frozen=True)
class GitSettings:
    trunk_branch: str = "main"
    remote: str = "origin"
    base_ref_fallback: str = "origin/main"
    require_main_branch: bool = True
    enable_pre_conflict_check: bool = True


@dataclass(frozen=True)
class RunnerSettings:
    concurrency: int = 4
    timeout_ms: int = 300000
    report_skipped_on_critical_failure: bool = False


@dataclass(frozen=True)
class ModeSettings:
    require_tdd: bool = True
    require_diff_coverage: bool = True
    require_tests: bool = True
    require_problem_analysis: bool = True
    min_analysis_length: int = 200
    required_sections: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TddSettings:
    max_evidence_history: int = 100
    sequence_window: int = 5
    refactor_indicators: Tuple[str, ...] = ()
    assertion_patterns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CiSettings:
    env_vars: Tuple[str, ...] = ()
    secret_env_vars: Tuple[str, ...] = ()
    commands: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def command(self, name: str) -> Optional[str]:
        return self.commands.get(name)


@dataclass(frozen=True)
class ProveSettings:
    """Validated, read-only configuration for one run."""

    thresholds: Thresholds = field(default_factory=Thresholds)
    paths: PathSettings = field(default_factory=PathSettings)
    git: GitSettings = field(default_factory=GitSettings)
    runner: RunnerSettings = field(default_factory=RunnerSettings)
    toggles: Mapping[str, bool] = field(default_factory=lambda: MappingProxyType({}))
    modes: ModeSettings = field(default_factory=ModeSettings)
    check_timeouts: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    timeouts: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    tdd: TddSettings = field(default_factory=TddSettings)
    ci: CiSettings = field(default_factory=CiSettings)

    def toggle_enabled(self, name: str) -> bool:
        return bool(self.toggles.get(name, False))

    def check_timeout_ms(self, key: Optional[str]) -> int:
        """Timeout for a check bucket, falling back to ``runner.timeoutMs``."""
        if key and key in self.check_timeouts:
            return int(self.check_timeouts[key])
        return self.runner.timeout_ms

    def to_dict(self) -> Dict[str, Any]:
        return _plain(self)


class ConfigStore:
    """Load and validate configuration, then freeze it into :class:`ProveSettings`.

    Args:
        repo_root: Project root containing ``.prove/config``.
        env: Environment used for ``PROVE_*`` overrides (defaults to ``os.environ``).
    """

    def __init__(self, repo_root: Path, *, env: Optional[Mapping[str, str]] = None) -> None:
        self.repo_root = Path(repo_root)
        self.manager = ConfigManager(self.repo_root, env=env)

    def load_raw(self) -> Dict[str, Any]:
        """Return the merged, validated configuration dict.

        Raises:
            ConfigError: If a layer is unreadable or the result fails validation.
        """
        return self.manager.load_config(validate=True)

    def load(self) -> ProveSettings:
        """Return the frozen settings snapshot.

        Raises:
            ConfigError: If a layer is unreadable or the result fails validation.
        """
        raw = self.load_raw()
        root = self.repo_root

        thresholds = ThresholdsConfig(root, config=raw)
        paths = PathsConfig(root, config=raw)
        git = GitConfig(root, config=raw)
        runner = RunnerConfig(root, config=raw)
        modes = ModesConfig(root, config=raw)
        tdd = TDDConfig(root, config=raw)
        ci = CIConfig(root, config=raw)

        settings = ProveSettings(
            thresholds=Thresholds(
                diff_coverage_functional=thresholds.diff_coverage_functional,
                diff_coverage_functional_refactor=thresholds.diff_coverage_functional_refactor,
                global_coverage=thresholds.global_coverage,
                max_warnings=thresholds.max_warnings,
                max_commit_size=thresholds.max_commit_size,
            ),
            paths=PathSettings(
                src_globs=tuple(paths.src_globs),
                test_globs=tuple(paths.test_globs),
                coverage_file=paths.coverage_file,
                prove_report_file=paths.prove_report_file,
                task_file=paths.task_file,
                problem_analysis_file=paths.problem_analysis_file,
                tdd_phase_file=paths.tdd_phase_file,
                evidence_file=paths.evidence_file,
            ),
            git=GitSettings(
                trunk_branch=git.trunk_branch,
                remote=git.remote,
                base_ref_fallback=git.base_ref_fallback,
                require_main_branch=git.require_main_branch,
                enable_pre_conflict_check=git.enable_pre_conflict_check,
            ),
            runner=RunnerSettings(
                concurrency=runner.concurrency,
                timeout_ms=runner.timeout_ms,
                report_skipped_on_critical_failure=runner.report_skipped_on_critical_failure,
            ),
            toggles=_frozen_map(TogglesConfig(root, config=raw).values),
            modes=ModeSettings(
                require_tdd=modes.require_tdd,
                require_diff_coverage=modes.require_diff_coverage,
                require_tests=modes.require_tests,
                require_problem_analysis=modes.require_problem_analysis,
                min_analysis_length=modes.min_analysis_length,
                required_sections=tuple(modes.required_sections),
            ),
            check_timeouts=_frozen_map(CheckTimeoutsConfig(root, config=raw).values),
            timeouts=_frozen_map(TimeoutsConfig(root, config=raw).buckets),
            tdd=TddSettings(
                max_evidence_history=tdd.max_evidence_history,
                sequence_window=tdd.sequence_window,
                refactor_indicators=tuple(tdd.refactor_indicators),
                assertion_patterns=tuple(tdd.assertion_patterns),
            ),
            ci=CiSettings(
                env_vars=tuple(ci.env_vars),
                secret_env_vars=tuple(ci.secret_env_vars),
                commands=_frozen_map(ci.commands),
            ),
        )
        logger.debug("Loaded settings for %s", root)
        return settings


__all__ = [
    "ConfigStore",
    "ProveSettings",
    "Thresholds",
    "PathSettings",
    "GitSettings",
    "RunnerSettings",
    "ModeSettings",
    "TddSettings",
    "CiSettings",
]
