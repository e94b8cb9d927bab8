"""Coverage artifact parsing and diff coverage."""
from __future__ import annotations

from pathlib import Path

import pytest

from helpers.io_utils import write_text
from prove.core.coverage import (
    CoverageError,
    compute_diff_coverage,
    load_coverage,
    parse_coverage,
)
from prove.core.git import ChangedLine


def _stmt(start: int, end: int | None = None) -> dict:
    return {"start": {"line": start, "column": 0}, "end": {"line": end or start, "column": 10}}


ISTANBUL = {
    "/repo/src/cart.ts": {
        "path": "/repo/src/cart.ts",
        "statementMap": {"0": _stmt(1), "1": _stmt(2), "2": _stmt(5, 6), "3": _stmt(8)},
        "s": {"0": 1, "1": 3, "2": 0, "3": 0},
        "b": {"0": [1, 0], "1": [0, 0]},
        "f": {"0": 2, "1": 0},
    }
}

COVERAGEPY = {
    "meta": {"version": "7.4.0"},
    "files": {
        "src/cart.py": {"executed_lines": [1, 2, 4], "missing_lines": [5, 6]},
    },
    "totals": {"covered_lines": 3, "num_statements": 5, "covered_branches": 1, "num_branches": 4},
}


class TestIstanbul:
    def test_summary_percentages(self) -> None:
        report = parse_coverage(ISTANBUL)

        assert report.format == "istanbul"
        assert report.summary.to_dict() == {
            "statements": 50.0,
            "branches": 50.0,
            "functions": 50.0,
            "lines": 40.0,
        }

    def test_line_hits_from_statement_map(self) -> None:
        cov = parse_coverage(ISTANBUL).find("src/cart.ts")

        assert cov is not None
        assert cov.is_covered(2)
        assert not cov.is_covered(6)
        assert cov.is_executable(6)
        assert not cov.is_executable(3)

    def test_explicit_line_map_wins(self) -> None:
        payload = {"a.ts": {"s": {"0": 1}, "statementMap": {"0": _stmt(1)}, "l": {"1": 1, "2": 0}}}

        cov = parse_coverage(payload).find("a.ts")

        assert cov.is_executable(2) and not cov.is_covered(2)

    def test_empty_report_has_no_average(self) -> None:
        assert parse_coverage({}).summary.average() is None


class TestCoveragePy:
    def test_summary_and_lines(self) -> None:
        report = parse_coverage(COVERAGEPY)

        assert report.format == "coverage.py"
        assert report.summary.statements == pytest.approx(60.0)
        assert report.summary.branches == pytest.approx(25.0)
        assert report.summary.functions is None
        assert report.summary.average() == pytest.approx((60.0 + 25.0 + 60.0) / 3)

        cov = report.find("src/cart.py")
        assert cov.is_covered(4) and not cov.is_covered(5)


class TestLoading:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CoverageError) as exc:
            load_coverage(tmp_path / "coverage" / "coverage-final.json")
        assert "not found" in str(exc.value)

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = write_text(tmp_path / "coverage.json", "{nope")

        with pytest.raises(CoverageError):
            load_coverage(path)

    def test_non_object(self) -> None:
        with pytest.raises(CoverageError):
            parse_coverage([1, 2])


class TestDiffCoverage:
    def test_counts_only_executable_lines(self) -> None:
        report = parse_coverage(COVERAGEPY)
        changed = [ChangedLine("src/cart.py", n) for n in (2, 3, 4, 5)]

        diff = compute_diff_coverage(changed, report)

        assert (diff.total, diff.covered) == (3, 2)
        assert diff.percentage == pytest.approx(200 / 3)
        assert diff.to_dict()["uncoveredLines"] == ["src/cart.py:5"]

    def test_files_missing_from_report_are_uncovered(self) -> None:
        report = parse_coverage(COVERAGEPY)
        changed = [ChangedLine("src/new.py", 1), ChangedLine("src/new.py", 2), ChangedLine("src/cart.py", 1)]

        diff = compute_diff_coverage(changed, report)

        assert (diff.total, diff.covered) == (3, 1)
        assert diff.missing_files == ("src/new.py",)

    def test_no_changed_lines_is_fully_covered(self) -> None:
        diff = compute_diff_coverage([], parse_coverage(COVERAGEPY))

        assert diff.total == 0
        assert diff.percentage == 100.0

    def test_absolute_report_paths_match_by_suffix(self) -> None:
        diff = compute_diff_coverage([ChangedLine("src/cart.ts", 1)], parse_coverage(ISTANBUL), Path("/elsewhere"))

        assert diff.covered == 1

    def test_uncovered_list_is_truncated(self) -> None:
        changed = [ChangedLine("src/big.py", n) for n in range(1, 51)]

        payload = compute_diff_coverage(changed, parse_coverage(COVERAGEPY)).to_dict(limit=5)

        assert len(payload["uncoveredLines"]) == 5
        assert payload["totalLines"] == 50
