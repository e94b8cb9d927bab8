"""Parsers for git diff output."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

_HUNK_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+(\d+)(?:,(\d+))? @@")
_SHORTSTAT_FILES_RE = re.compile(r"(\d+) files? changed")
_SHORTSTAT_ADDED_RE = re.compile(r"(\d+) insertions?\(\+\)")
_SHORTSTAT_DELETED_RE = re.compile(r"(\d+) deletions?\(-\)")


@dataclass(frozen=True)
class ChangedLine:
    """An added or modified line in the new version of ``path`` (1-based)."""

    path: str
    line: int


@dataclass(frozen=True)
class DiffStats:
    files_changed: int = 0
    added: int = 0
    deleted: int = 0

    @property
    def total(self) -> int:
        return self.added + self.deleted

    def to_dict(self) -> Dict[str, int]:
        return {
            "filesChanged": self.files_changed,
            "added": self.added,
            "deleted": self.deleted,
            "total": self.total,
        }


def parse_name_only(output: str) -> List[str]:
    """Return unique paths from ``git diff --name-only`` output, keeping diff order."""
    seen: set[str] = set()
    files: List[str] = []
    for raw in output.splitlines():
        path = raw.strip()
        if not path or path in seen:
            continue
        seen.add(path)
        files.append(path)
    return files


def parse_unified_zero(output: str) -> List[ChangedLine]:
    """Parse ``git diff --unified=0`` output into added line numbers.

    Deleted files contribute nothing. Renames without content changes have
    no hunks and therefore contribute nothing either.
    """
    lines: List[ChangedLine] = []
    current: Optional[str] = None
    for raw in output.splitlines():
        if raw.startswith("+++ "):
            target = raw[4:].strip()
            if target == "/dev/null":
                current = None
            else:
                current = target[2:] if target.startswith("b/") else target
            continue
        if current is None or not raw.startswith("@@"):
            continue
        match = _HUNK_RE.match(raw)
        if match is None:
            continue
        start = int(match.group(1))
        count = int(match.group(2)) if match.group(2) is not None else 1
        lines.extend(ChangedLine(current, n) for n in range(start, start + count))
    return lines


def group_by_file(lines: Iterable[ChangedLine]) -> Dict[str, List[int]]:
    grouped: Dict[str, List[int]] = {}
    for entry in lines:
        grouped.setdefault(entry.path, []).append(entry.line)
    return grouped


def parse_shortstat(output: str) -> DiffStats:
    """Parse ``git diff --shortstat`` (empty output means no changes)."""
    text = output.strip()

    def _num(pattern: re.Pattern[str]) -> int:
        m = pattern.search(text)
        return int(m.group(1)) if m else 0

    return DiffStats(
        files_changed=_num(_SHORTSTAT_FILES_RE),
        added=_num(_SHORTSTAT_ADDED_RE),
        deleted=_num(_SHORTSTAT_DELETED_RE),
    )


__all__ = [
    "ChangedLine",
    "DiffStats",
    "parse_name_only",
    "parse_unified_zero",
    "group_by_file",
    "parse_shortstat",
]
