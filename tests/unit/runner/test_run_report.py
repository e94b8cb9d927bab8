from __future__ import annotations

import json
from pathlib import Path

from prove.core.checks import failed, not_run, passed, skipped
from prove.core.report import FAIL_MARK, PASS_MARK, SKIP_MARK, Report, render_console
from prove.core.runner import RunOutcome, RunState


def _outcome() -> RunOutcome:
    return RunOutcome(
        results=(
            passed("trunk", "on main").with_ms(3),
            failed("lint", "Lint failed (exit code 1)").with_ms(40),
            skipped("security", "skipped: disabled by toggle 'security'").with_ms(0),
        ),
        state=RunState.DONE,
        first_failure="lint",
        total_ms=51,
    )


def test_from_outcome_and_to_dict() -> None:
    report = Report.from_outcome(_outcome(), "functional")

    payload = report.to_dict()

    assert list(payload) == ["mode", "checks", "totalMs", "success", "firstFailure"]
    assert payload["mode"] == "functional"
    assert payload["success"] is False
    assert payload["firstFailure"] == "lint"
    assert [c["id"] for c in payload["checks"]] == ["trunk", "lint", "security"]
    assert [c.id for c in report.failures] == ["lint"]


def test_success_iff_all_checks_ok() -> None:
    report = Report("non-functional", (passed("a"), skipped("b", "skipped: x")))

    assert report.success
    assert "firstFailure" not in report.to_dict()


def test_not_run_results_fail_the_report() -> None:
    assert not Report("functional", (failed("trunk", "no"), not_run("lint"))).success


def test_write_preserves_check_order(tmp_path: Path) -> None:
    path = Report.from_outcome(_outcome(), "functional").write(tmp_path / "out" / "prove-report.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert [c["id"] for c in data["checks"]] == ["trunk", "lint", "security"]
    assert data["checks"][1]["reason"] == "Lint failed (exit code 1)"


def test_render_console() -> None:
    text = render_console(Report.from_outcome(_outcome(), "functional"))
    lines = text.splitlines()

    assert lines[0] == "Prove (functional mode)"
    assert lines[1] == f"  {PASS_MARK} trunk (3ms)"
    assert lines[2] == f"  {FAIL_MARK} lint (40ms): Lint failed (exit code 1)"
    assert lines[3].startswith(f"  {SKIP_MARK} security (0ms): skipped")
    assert lines[-1] == "FAILED: 1 passed, 1 failed, 1 skipped in 51ms (first failure: lint)"
