"""Checks that shell out to configured tools or read coverage artifacts."""
from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from helpers.contexts import (
    FakeRepo,
    load_settings,
    make_context,
    python_command,
    with_commands,
    with_settings,
    without_commands,
)
from helpers.io_utils import write_json
from prove.core.checks.commands import check_lint, check_typecheck, count_warnings, make_command_check
from prove.core.checks.commit_size import check_commit_size
from prove.core.checks.coverage_gate import check_coverage, check_diff_coverage
from prove.core.checks.env_check import check_env
from prove.core.checks.suite import check_tests, parse_test_output
from prove.core.git import ChangedLine, DiffStats
from prove.core.mode import DeliveryMode
from prove.core.tdd import EvidenceStore, MemoryStorage, TddPhase

PYTEST_FAIL = "print('2 failed, 3 passed in 0.12s'); raise SystemExit(1)"
PYTEST_PASS = "print('5 passed in 0.10s')"


def _settings(tmp_path: Path, **commands: str):
    return with_commands(load_settings(tmp_path), **commands)


class TestParsing:
    @pytest.mark.parametrize(
        "stdout, expected",
        [
            ("===== 3 passed in 0.1s =====", (3, 0, 3)),
            ("== 1 failed, 4 passed, 2 skipped in 1s ==", (4, 1, 7)),
            ("== 1 passed, 2 errors in 1s ==", (1, 2, 3)),
            ("Tests: 2 failed, 8 passed, 10 total", (8, 2, 10)),
            ("no summary here", (0, 0, 0)),
        ],
    )
    def test_parse_test_output(self, stdout: str, expected) -> None:
        results = parse_test_output(stdout)

        assert (results.passed, results.failed, results.total) == expected

    def test_last_summary_wins(self) -> None:
        results = parse_test_output("file_a: 1 passed\nfile_b: 2 passed\n== 7 passed in 2s ==")

        assert results.passed == 7

    def test_stderr_is_included(self) -> None:
        assert parse_test_output("", "3 passed").passed == 3

    def test_count_warnings(self) -> None:
        assert count_warnings("Found 3 warnings") == 3
        assert count_warnings("1 warning\n12 warnings total") == 12
        assert count_warnings("all clean") == 0


class TestCommandChecks:
    def test_missing_command_is_skipped(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path, settings=without_commands(load_settings(tmp_path), "lint"))

        result = asyncio.run(check_lint(ctx))

        assert result.skipped
        assert result.reason == "skipped: no 'lint' command configured"

    def test_successful_command(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path, settings=_settings(tmp_path, typecheck=python_command("print('ok')")))

        result = asyncio.run(check_typecheck(ctx))

        assert result.ok
        assert result.details["run"]["exitCode"] == 0

    def test_failing_command_includes_output_tail(self, tmp_path: Path) -> None:
        code = "import sys; print('src/a.py:1: error'); sys.exit(3)"
        ctx = make_context(tmp_path, settings=_settings(tmp_path, typecheck=python_command(code)))

        result = asyncio.run(check_typecheck(ctx))

        assert not result.ok
        assert result.reason == "Type check failed (exit code 3)"
        assert "src/a.py:1: error" in result.details["run"]["output"]

    def test_unrunnable_command(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path, settings=_settings(tmp_path, typecheck="definitely-not-a-real-binary-xyz"))

        result = asyncio.run(check_typecheck(ctx))

        assert not result.ok
        assert "command not runnable" in result.reason

    def test_lint_warnings_over_budget_fail(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path, settings=_settings(tmp_path, lint=python_command("print('Found 2 warnings')")))

        result = asyncio.run(check_lint(ctx))

        assert not result.ok
        assert result.details["warnings"] == 2
        assert result.details["maxWarnings"] == 0

    def test_lint_warnings_within_budget(self, tmp_path: Path) -> None:
        settings = with_settings(
            _settings(tmp_path, lint=python_command("print('Found 2 warnings')")),
            thresholds={"max_warnings": 5},
        )

        assert asyncio.run(check_lint(make_context(tmp_path, settings=settings))).ok

    def test_factory_names_the_check(self) -> None:
        fn = make_command_check("db-migrations", label="Migrations")

        assert fn.__name__ == "check_db_migrations"


class TestSuiteCheck:
    def test_failing_tests_fail_and_record_red_evidence(self, tmp_path: Path) -> None:
        store = EvidenceStore(MemoryStorage())
        ctx = make_context(
            tmp_path,
            settings=_settings(tmp_path, test=python_command(PYTEST_FAIL)),
            store=store,
            changed_files=["tests/test_cart.py"],
        )

        result = asyncio.run(check_tests(ctx))

        assert not result.ok
        assert result.reason == "Tests failed (exit code 1)"
        assert (result.details["testResults"]["passed"], result.details["testResults"]["failed"]) == (3, 2)
        record = store.latest_evidence()
        assert record.phase is TddPhase.RED
        assert record.changed_files == ("tests/test_cart.py",)
        assert result.details["evidenceId"] == record.id

    def test_passing_tests_use_detected_phase(self, tmp_path: Path) -> None:
        store = EvidenceStore(MemoryStorage())
        ctx = make_context(
            tmp_path,
            settings=_settings(tmp_path, test=python_command(PYTEST_PASS)),
            store=store,
            phase=TddPhase.REFACTOR,
        )

        result = asyncio.run(check_tests(ctx))

        assert result.ok
        assert result.reason == "5 test(s) passed"
        assert store.latest_evidence().phase is TddPhase.REFACTOR

    def test_no_tests_collected_records_nothing(self, tmp_path: Path) -> None:
        store = EvidenceStore(MemoryStorage())
        ctx = make_context(tmp_path, settings=_settings(tmp_path, test=python_command("print('nothing')")), store=store)

        asyncio.run(check_tests(ctx))

        assert store.read_evidence_history() == []

    def test_missing_command_fails_in_functional_mode(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path, settings=without_commands(load_settings(tmp_path), "test"))

        result = asyncio.run(check_tests(ctx))

        assert not result.ok
        assert "No test command configured" in result.reason

    def test_missing_command_is_skipped_in_non_functional_mode(self, tmp_path: Path) -> None:
        ctx = make_context(
            tmp_path,
            settings=without_commands(load_settings(tmp_path), "test"),
            mode=DeliveryMode.NON_FUNCTIONAL,
        )

        assert asyncio.run(check_tests(ctx)).skipped


class TestEnvCheck:
    def test_no_command_is_skipped(self, tmp_path: Path) -> None:
        result = asyncio.run(check_env(make_context(tmp_path, env={})))

        assert result.skipped
        assert result.details["missing"] == ["DATABASE_URL", "HMAC_SECRET", "STRIPE_SECRET_KEY"]

    def test_ci_without_secrets_is_skipped(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path, env_check=python_command("raise SystemExit(1)"))

        result = asyncio.run(check_env(make_context(tmp_path, settings=settings, env={}, is_ci=True)))

        assert result.skipped
        assert "no secrets available in CI" in result.reason

    def test_local_failure_fails(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path, env_check=python_command("raise SystemExit(1)"))

        result = asyncio.run(check_env(make_context(tmp_path, settings=settings)))

        assert not result.ok
        assert result.reason == "env-check failed (exit code 1)"

    def test_ci_failure_with_secrets_is_tolerated(self, tmp_path: Path) -> None:
        settings = _settings(tmp_path, env_check=python_command("raise SystemExit(1)"))
        env = {"DATABASE_URL": "postgres://x"}

        result = asyncio.run(check_env(make_context(tmp_path, settings=settings, env=env, is_ci=True)))

        assert result.ok
        assert result.details["present"] == ["DATABASE_URL"]


class TestCommitSize:
    def test_within_budget(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path, repo=FakeRepo(stats=DiffStats(2, 100, 20)))

        result = asyncio.run(check_commit_size(ctx))

        assert result.ok
        assert result.details["total"] == 120

    def test_over_budget(self, tmp_path: Path) -> None:
        ctx = make_context(tmp_path, repo=FakeRepo(stats=DiffStats(9, 280, 40)))

        result = asyncio.run(check_commit_size(ctx))

        assert not result.ok
        assert result.reason == "Commit too large: 320 lines changed (max 300)"

    def test_without_repository(self, tmp_path: Path) -> None:
        assert asyncio.run(check_commit_size(make_context(tmp_path))).skipped


COVERAGEPY = {
    "files": {"src/cart.py": {"executed_lines": [1, 2, 3], "missing_lines": [4]}},
    "totals": {"covered_lines": 3, "num_statements": 4, "covered_branches": 0, "num_branches": 0},
}


class TestCoverageChecks:
    def test_global_coverage_passes(self, tmp_path: Path) -> None:
        write_json(tmp_path / "coverage" / "coverage-final.json", COVERAGEPY)

        result = asyncio.run(check_coverage(make_context(tmp_path)))

        assert result.ok
        assert result.details["average"] == 75.0

    def test_global_coverage_below_threshold(self, tmp_path: Path) -> None:
        write_json(tmp_path / "coverage" / "coverage-final.json", COVERAGEPY)
        settings = with_settings(load_settings(tmp_path), thresholds={"global_coverage": 90})

        result = asyncio.run(check_coverage(make_context(tmp_path, settings=settings)))

        assert not result.ok
        assert "below threshold 90" in result.reason

    def test_missing_artifact_fails(self, tmp_path: Path) -> None:
        result = asyncio.run(check_coverage(make_context(tmp_path)))

        assert not result.ok
        assert "Coverage file not found" in result.reason

    def test_diff_coverage_below_threshold(self, tmp_path: Path) -> None:
        write_json(tmp_path / "coverage" / "coverage-final.json", COVERAGEPY)
        repo = FakeRepo(changed_lines=[ChangedLine("src/cart.py", n) for n in (3, 4)])

        result = asyncio.run(check_diff_coverage(make_context(tmp_path, repo=repo)))

        assert not result.ok
        assert result.details["percentage"] == 50.0
        assert result.details["threshold"] == 85

    def test_refactor_phase_uses_lower_threshold(self, tmp_path: Path) -> None:
        write_json(tmp_path / "coverage" / "coverage-final.json", COVERAGEPY)
        repo = FakeRepo(changed_lines=[ChangedLine("src/cart.py", n) for n in (1, 2, 4)])

        result = asyncio.run(check_diff_coverage(make_context(tmp_path, repo=repo, phase=TddPhase.REFACTOR)))

        assert result.ok
        assert result.details["threshold"] == 60

    def test_only_source_lines_count(self, tmp_path: Path) -> None:
        repo = FakeRepo(changed_lines=[ChangedLine("tests/test_cart.py", 1), ChangedLine("README.md", 2)])

        result = asyncio.run(check_diff_coverage(make_context(tmp_path, repo=repo)))

        assert result.ok
        assert result.reason == "No changed source lines"

    def test_diff_coverage_not_required(self, tmp_path: Path) -> None:
        settings = with_settings(load_settings(tmp_path), modes={"require_diff_coverage": False})

        assert asyncio.run(check_diff_coverage(make_context(tmp_path, settings=settings))).skipped
