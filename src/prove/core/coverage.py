"""Coverage artifact parsing and diff-coverage computation.

Two formats are understood:

* Istanbul ``coverage-final.json``: ``{path: {statementMap, s, b, f, l?}}``
* coverage.py ``coverage json``: ``{"files": {path: {executed_lines, missing_lines}}, "totals": {...}}``
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from prove.core.exceptions import ProveError
from prove.core.git.diff import ChangedLine, group_by_file
from prove.core.utils.io import read_text_or_none

logger = logging.getLogger(__name__)


class CoverageError(ProveError, ValueError):
    """Coverage artifact missing, unreadable or in an unknown format."""


def _pct(covered: int, total: int) -> Optional[float]:
    if total <= 0:
        return None
    return covered / total * 100.0


@dataclass(frozen=True)
class CoverageSummary:
    statements: Optional[float] = None
    branches: Optional[float] = None
    functions: Optional[float] = None
    lines: Optional[float] = None

    def available(self) -> Dict[str, float]:
        return {
            k: v
            for k, v in (
                ("statements", self.statements),
                ("branches", self.branches),
                ("functions", self.functions),
                ("lines", self.lines),
            )
            if v is not None
        }

    def average(self) -> Optional[float]:
        """Mean of the metrics the artifact reports; None when it reports none."""
        values = list(self.available().values())
        if not values:
            return None
        return sum(values) / len(values)

    def to_dict(self) -> Dict[str, Any]:
        return {k: round(v, 2) for k, v in self.available().items()}


@dataclass(frozen=True)
class FileCoverage:
    """Hit counts for the executable lines of one file."""

    path: str
    line_hits: Mapping[int, int] = field(default_factory=dict)

    def is_executable(self, line: int) -> bool:
        return line in self.line_hits

    def is_covered(self, line: int) -> bool:
        return self.line_hits.get(line, 0) > 0


@dataclass(frozen=True)
class CoverageReport:
    format: str
    files: Mapping[str, FileCoverage]
    summary: CoverageSummary

    def find(self, rel_path: str, repo_root: Optional[Path] = None) -> Optional[FileCoverage]:
        """Look a repo-relative path up by exact key, absolute key or path suffix."""
        if rel_path in self.files:
            return self.files[rel_path]
        if repo_root is not None:
            absolute = str((Path(repo_root) / rel_path).resolve())
            if absolute in self.files:
                return self.files[absolute]
        suffix = PurePosixPath(rel_path).parts
        for key, cov in self.files.items():
            parts = PurePosixPath(key.replace("\\", "/")).parts
            if len(parts) >= len(suffix) and parts[-len(suffix):] == suffix:
                return cov
        return None


@dataclass(frozen=True)
class DiffCoverage:
    total: int
    covered: int
    uncovered: Tuple[ChangedLine, ...] = ()
    missing_files: Tuple[str, ...] = ()

    @property
    def percentage(self) -> float:
        # No executable changed lines means nothing to cover.
        if self.total == 0:
            return 100.0
        return self.covered / self.total * 100.0

    def to_dict(self, limit: int = 20) -> Dict[str, Any]:
        return {
            "totalLines": self.total,
            "coveredLines": self.covered,
            "percentage": round(self.percentage, 2),
            "uncoveredLines": [f"{c.path}:{c.line}" for c in self.uncovered[:limit]],
            "filesWithoutCoverage": list(self.missing_files),
        }


# ---------- Istanbul ----------

def _istanbul_line_hits(data: Mapping[str, Any]) -> Dict[int, int]:
    explicit = data.get("l")
    if isinstance(explicit, Mapping):
        return {int(k): int(v or 0) for k, v in explicit.items()}
    hits: Dict[int, int] = {}
    counts = data.get("s") or {}
    for sid, loc in (data.get("statementMap") or {}).items():
        try:
            start, end = int(loc["start"]["line"]), int(loc["end"]["line"])
        except (KeyError, TypeError, ValueError):
            continue
        count = int(counts.get(sid, 0) or 0)
        for line in range(start, end + 1):
            hits[line] = max(hits.get(line, 0), count)
    return hits


def _parse_istanbul(payload: Mapping[str, Any]) -> CoverageReport:
    files: Dict[str, FileCoverage] = {}
    st_total = st_cov = br_total = br_cov = fn_total = fn_cov = ln_total = ln_cov = 0
    for path, data in payload.items():
        if not isinstance(data, Mapping):
            continue
        s = data.get("s") or {}
        st_total += len(s)
        st_cov += sum(1 for v in s.values() if (v or 0) > 0)
        b = data.get("b") or {}
        br_total += len(b)
        br_cov += sum(1 for hits in b.values() if any((h or 0) > 0 for h in (hits or [])))
        f = data.get("f") or {}
        fn_total += len(f)
        fn_cov += sum(1 for v in f.values() if (v or 0) > 0)
        line_hits = _istanbul_line_hits(data)
        ln_total += len(line_hits)
        ln_cov += sum(1 for v in line_hits.values() if v > 0)
        files[str(data.get("path") or path)] = FileCoverage(str(data.get("path") or path), line_hits)

    summary = CoverageSummary(
        statements=_pct(st_cov, st_total),
        branches=_pct(br_cov, br_total),
        functions=_pct(fn_cov, fn_total),
        lines=_pct(ln_cov, ln_total),
    )
    return CoverageReport("istanbul", files, summary)


# ---------- coverage.py ----------

def _parse_coveragepy(payload: Mapping[str, Any]) -> CoverageReport:
    files: Dict[str, FileCoverage] = {}
    for path, data in (payload.get("files") or {}).items():
        hits = {int(n): 1 for n in data.get("executed_lines") or []}
        hits.update({int(n): 0 for n in data.get("missing_lines") or []})
        files[path] = FileCoverage(path, hits)

    totals = payload.get("totals") or {}
    statements = _pct(int(totals.get("covered_lines", 0)), int(totals.get("num_statements", 0)))
    branches = _pct(int(totals.get("covered_branches", 0)), int(totals.get("num_branches", 0)))
    summary = CoverageSummary(statements=statements, branches=branches, lines=statements)
    return CoverageReport("coverage.py", files, summary)


def parse_coverage(payload: Any) -> CoverageReport:
    """Detect the artifact format and parse it.

    Raises:
        CoverageError: If ``payload`` is in neither known format.
    """
    if not isinstance(payload, Mapping):
        raise CoverageError("Coverage data must be a JSON object")
    if isinstance(payload.get("files"), Mapping) and "totals" in payload:
        return _parse_coveragepy(payload)
    return _parse_istanbul(payload)


def load_coverage(path: Path) -> CoverageReport:
    """Read and parse the coverage artifact at ``path``.

    Raises:
        CoverageError: If the file is missing or not valid JSON.
    """
    text = read_text_or_none(path)
    if text is None:
        raise CoverageError(f"Coverage file not found: {path}", context={"path": str(path)})
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, ValueError) as exc:
        raise CoverageError(f"Coverage file is not valid JSON: {exc}", context={"path": str(path)}) from exc
    return parse_coverage(payload)


def compute_diff_coverage(
    changed: Iterable[ChangedLine],
    report: CoverageReport,
    repo_root: Optional[Path] = None,
) -> DiffCoverage:
    """Coverage of added lines.

    Lines in files absent from the report count as uncovered. Non-executable
    lines (comments, blank lines) of instrumented files are not counted.
    """
    total = covered = 0
    uncovered: List[ChangedLine] = []
    missing: List[str] = []
    for path, numbers in group_by_file(changed).items():
        cov = report.find(path, repo_root)
        if cov is None:
            logger.debug("No coverage data for %s", path)
            missing.append(path)
            total += len(numbers)
            uncovered.extend(ChangedLine(path, n) for n in numbers)
            continue
        for n in numbers:
            if not cov.is_executable(n):
                continue
            total += 1
            if cov.is_covered(n):
                covered += 1
            else:
                uncovered.append(ChangedLine(path, n))
    return DiffCoverage(total, covered, tuple(uncovered), tuple(missing))


__all__ = [
    "CoverageError",
    "CoverageSummary",
    "FileCoverage",
    "CoverageReport",
    "DiffCoverage",
    "parse_coverage",
    "load_coverage",
    "compute_diff_coverage",
]
