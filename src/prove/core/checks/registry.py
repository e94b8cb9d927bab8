"""The check catalog: an ordered ``id -> CheckDefinition`` map built at startup."""
from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional

from .base import CheckCategory, CheckDefinition
from .commands import (
    check_build_api,
    check_build_web,
    check_contracts,
    check_db_migrations,
    check_lint,
    check_security,
    check_size_budget,
    check_typecheck,
)
from .commit_convention import check_commit_convention
from .commit_size import check_commit_size
from .coverage_gate import check_coverage, check_diff_coverage
from .delivery_mode import check_delivery_mode
from .env_check import check_env
from .killswitch import check_killswitch
from .pre_conflict import check_pre_conflict
from .suite import check_tests
from .tdd import (
    check_tdd_changed_has_tests,
    check_tdd_green_phase,
    check_tdd_phase_detection,
    check_tdd_process_sequence,
    check_tdd_red_phase,
    check_tdd_refactor_phase,
)
from .trunk import check_trunk

CRITICAL_ORDER = (
    "trunk",
    "delivery-mode",
    "commit-msg-convention",
    "killswitch-required",
    "pre-conflict",
)


class CheckRegistry:
    """Read-only lookup over check definitions, preserving declaration order."""

    def __init__(self, definitions: Iterable[CheckDefinition]) -> None:
        self._checks: Dict[str, CheckDefinition] = {}
        for definition in definitions:
            if definition.id in self._checks:
                raise ValueError(f"Duplicate check id: {definition.id}")
            self._checks[definition.id] = definition

    def __iter__(self) -> Iterator[CheckDefinition]:
        return iter(self._checks.values())

    def __len__(self) -> int:
        return len(self._checks)

    def __contains__(self, check_id: object) -> bool:
        return check_id in self._checks

    def get(self, check_id: str) -> Optional[CheckDefinition]:
        return self._checks.get(check_id)

    def ids(self) -> List[str]:
        return list(self._checks)

    def critical(self) -> List[CheckDefinition]:
        """Critical checks in declared (execution) order."""
        return [c for c in self if c.is_critical]

    def parallel(self) -> List[CheckDefinition]:
        """Every non-critical check."""
        return [c for c in self if not c.is_critical]

    def by_category(self, category: CheckCategory | str) -> List[CheckDefinition]:
        wanted = CheckCategory(category)
        return [c for c in self if c.category is wanted]

    def quick_mode_checks(self) -> List[CheckDefinition]:
        return [c for c in self if c.quick_mode]

    def toggled(self, toggle: str) -> List[CheckDefinition]:
        return [c for c in self if c.toggle == toggle]


def _define(
    check_id: str,
    name: str,
    description: str,
    category: CheckCategory,
    fn,
    **kwargs,
) -> CheckDefinition:
    return CheckDefinition(id=check_id, name=name, description=description, category=category, fn=fn, **kwargs)


def build_default_registry() -> CheckRegistry:
    critical = CheckCategory.CRITICAL
    parallel = CheckCategory.PARALLEL
    mode = CheckCategory.MODE_SPECIFIC
    optional = CheckCategory.OPTIONAL

    return CheckRegistry(
        [
            # Critical: serial, fail-fast, fixed order.
            _define("trunk", "Trunk-Based Development",
                    "Verify work happens on the trunk branch", critical, check_trunk),
            _define("delivery-mode", "Delivery Mode",
                    "Resolve functional vs non-functional mode; non-functional requires a problem analysis",
                    critical, check_delivery_mode),
            _define("commit-msg-convention", "Commit Message Convention",
                    "Validate commit type, task id and mode tags", critical, check_commit_convention),
            _define("killswitch-required", "Kill-switch Required",
                    "Feature commits touching production code must add a kill-switch",
                    critical, check_killswitch),
            _define("pre-conflict", "Pre-conflict Merge Check",
                    "Rehearse a merge with the remote trunk and report conflicts",
                    critical, check_pre_conflict, quick_mode=False),
            # Parallel.
            _define("env-check", "Environment Variable Validation",
                    "Run the project's env-check command", parallel, check_env),
            _define("lint", "Lint", "Run the lint command with the warnings budget",
                    parallel, check_lint, timeout_key="lint"),
            _define("typecheck", "Type Check", "Run the type checker",
                    parallel, check_typecheck, timeout_key="typecheck"),
            _define("tests", "Test Suite", "Run the test suite and capture TDD evidence",
                    parallel, check_tests, timeout_key="tests"),
            _define("commit-size", "Commit Size", "Added plus deleted lines within the budget",
                    parallel, check_commit_size, toggle="commitSize"),
            # Mode-specific.
            _define("tdd-changed-has-tests", "TDD Changed Files Have Tests",
                    "Source changes must come with test changes",
                    mode, check_tdd_changed_has_tests, functional_only=True),
            _define("diff-coverage", "Diff Coverage", "Changed lines meet the coverage threshold",
                    mode, check_diff_coverage, toggle="diffCoverage", functional_only=True,
                    timeout_key="coverage"),
            _define("tdd-phase-detection", "TDD Phase Detection",
                    "Record the detected TDD phase and evidence analysis", mode, check_tdd_phase_detection),
            _define("tdd-red-phase", "TDD Red Phase", "Tests written first and failing",
                    mode, check_tdd_red_phase, quick_mode=False, functional_only=True, timeout_key="tests"),
            _define("tdd-green-phase", "TDD Green Phase", "Tests pass with implementation changes",
                    mode, check_tdd_green_phase, quick_mode=False, functional_only=True, timeout_key="tests"),
            _define("tdd-refactor-phase", "TDD Refactor Phase",
                    "Refactor commit keeps tests green and changes existing code",
                    mode, check_tdd_refactor_phase, quick_mode=False, functional_only=True,
                    timeout_key="tests"),
            _define("tdd-process-sequence", "TDD Process Sequence",
                    "Recent phases follow red -> green -> refactor",
                    mode, check_tdd_process_sequence, functional_only=True),
            # Optional, behind toggles.
            _define("coverage", "Global Coverage", "Overall coverage meets the threshold",
                    optional, check_coverage, quick_mode=False, toggle="coverage", timeout_key="coverage"),
            _define("build-web", "Web Build", "Build the web application",
                    optional, check_build_web, quick_mode=False, toggle="buildWeb", timeout_key="build"),
            _define("build-api", "API Build", "Build the API",
                    optional, check_build_api, quick_mode=False, toggle="buildApi", timeout_key="build"),
            _define("size-budget", "Size Budget", "Bundle size within limits",
                    optional, check_size_budget, quick_mode=False, toggle="sizeBudget", timeout_key="build"),
            _define("security", "Security Audit", "Dependency vulnerability audit",
                    optional, check_security, quick_mode=False, toggle="security"),
            _define("contracts", "API Contracts", "Validate API specifications",
                    optional, check_contracts, quick_mode=False, toggle="contracts"),
            _define("db-migrations", "Database Migrations", "Apply migrations to a scratch database",
                    optional, check_db_migrations, quick_mode=False, toggle="dbMigrations", timeout_key="build"),
        ]
    )


__all__ = ["CheckRegistry", "build_default_registry", "CRITICAL_ORDER"]
