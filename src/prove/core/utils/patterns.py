"""Repository path pattern matching.

All classification of changed files into "source" and "test" goes through
this module. Patterns are repo-relative POSIX globs:

- ``*`` matches within one path segment
- ``?`` matches one character within a segment
- ``**`` matches zero or more whole segments
- ``{a,b}`` expands to alternatives (nesting allowed)

Example:
    from prove.core.utils.patterns import match_patterns, matches_any_pattern

    matched = match_patterns(["src/app.py", "README.md"], ["src/**/*.{py,ts}"])
    if matches_any_pattern("tests/test_app.py", ["**/test_*.py"]):
        ...
"""
from __future__ import annotations

import re
from functools import lru_cache
from pathlib import PurePosixPath
from typing import Iterable, Optional, Pattern


def match_patterns(files: Iterable[str], patterns: list[str]) -> list[str]:
    """Return the files that match at least one pattern, in input order."""
    if not patterns:
        return []
    return [f for f in files if matches_any_pattern(f, patterns)]


def matches_any_pattern(file_path: str, patterns: Iterable[str]) -> bool:
    """Check if ``file_path`` matches any of ``patterns``."""
    return find_matching_pattern(file_path, patterns) is not None


def find_matching_pattern(file_path: str, patterns: Iterable[str]) -> Optional[str]:
    """Return the first pattern matching ``file_path``, or None."""
    normalized = _normalize_path(file_path)
    for pattern in patterns:
        if _compile(pattern).fullmatch(normalized):
            return pattern
    return None


def _normalize_path(file_path: str) -> str:
    posix = str(PurePosixPath(file_path.replace("\\", "/")))
    if posix.startswith("./"):
        posix = posix[2:]
    return posix.lstrip("/")


@lru_cache(maxsize=256)
def _compile(pattern: str) -> Pattern[str]:
    alternatives = [_translate(p.lstrip("/")) for p in expand_braces(pattern)]
    return re.compile("|".join(f"(?:{a})" for a in alternatives))


def _translate(pattern: str) -> str:
    """Translate one brace-free glob into a regular expression body."""
    out: list[str] = []
    segments = pattern.split("/")
    last = len(segments) - 1
    for idx, segment in enumerate(segments):
        if segment == "**":
            # Zero or more whole segments, including their trailing slash.
            out.append(".*" if idx == last else "(?:[^/]*/)*")
            continue
        for ch in segment:
            if ch == "*":
                out.append("[^/]*")
            elif ch == "?":
                out.append("[^/]")
            else:
                out.append(re.escape(ch))
        if idx != last:
            out.append("/")
    return "".join(out)


def expand_braces(pattern: str) -> list[str]:
    """Expand brace groups like ``*.{ts,tsx}`` into every alternative.

    Unbalanced braces and single-item groups are kept literally.
    """
    start = pattern.find("{")
    if start == -1:
        return [pattern]

    depth = 0
    for pos in range(start, len(pattern)):
        ch = pattern[pos]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                end = pos
                break
    else:
        return [pattern]

    parts = _split_top_level(pattern[start + 1 : end])
    before, after = pattern[:start], pattern[end + 1 :]
    if len(parts) <= 1:
        return [before + "{" + pattern[start + 1 : end] + "}" + a for a in expand_braces(after)]

    out: list[str] = []
    for part in parts:
        out.extend(expand_braces(f"{before}{part}{after}"))
    return out


def _split_top_level(inside: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in inside:
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        current.append(ch)
    parts.append("".join(current))
    return parts


__all__ = [
    "match_patterns",
    "matches_any_pattern",
    "find_matching_pattern",
    "expand_braces",
]
