"""Glob matching used to classify changed files."""
from __future__ import annotations

import pytest

from prove.core.utils.patterns import (
    expand_braces,
    find_matching_pattern,
    match_patterns,
    matches_any_pattern,
)


@pytest.mark.parametrize(
    "path, pattern",
    [
        ("src/app.py", "src/**/*.py"),
        ("src/a/b/c/app.py", "src/**/*.py"),
        ("tests/unit/test_x.py", "tests/**/*"),
        ("pkg/test_thing.py", "**/test_*.py"),
        ("test_root.py", "**/test_*.py"),
        ("web/cart.test.ts", "**/*.test.*"),
        ("web/__tests__/cart.js", "**/__tests__/**"),
        ("lib/x.tsx", "{src,lib,app}/**/*.{py,ts,tsx,js,jsx}"),
        ("a/b.c", "a/?.c"),
        ("./src/app.py", "src/**/*.py"),
        ("src\\win\\app.py", "src/**/*.py"),
    ],
)
def test_matches(path: str, pattern: str) -> None:
    assert matches_any_pattern(path, [pattern])


@pytest.mark.parametrize(
    "path, pattern",
    [
        ("src/app.pyc", "src/**/*.py"),
        ("other/app.py", "src/**/*.py"),
        ("src/app.py", "src/*.ts"),
        ("a/bb.c", "a/?.c"),
        ("src/nested/app.py", "src/*.py"),
        ("docs/cart.md", "{src,lib}/**/*"),
    ],
)
def test_does_not_match(path: str, pattern: str) -> None:
    assert not matches_any_pattern(path, [pattern])


def test_regex_metacharacters_are_literal() -> None:
    assert matches_any_pattern("src/a+b(1).py", ["src/a+b(1).py"])
    assert not matches_any_pattern("src/aab1.py", ["src/a+b(1).py"])


def test_match_patterns_preserves_input_order() -> None:
    files = ["tests/test_b.py", "README.md", "src/a.py", "tests/test_a.py"]

    assert match_patterns(files, ["tests/**/*", "src/**/*.py"]) == [
        "tests/test_b.py",
        "src/a.py",
        "tests/test_a.py",
    ]
    assert match_patterns(files, []) == []


def test_find_matching_pattern_returns_first_hit() -> None:
    patterns = ["docs/**/*", "**/*.py", "src/**/*.py"]

    assert find_matching_pattern("src/a.py", patterns) == "**/*.py"
    assert find_matching_pattern("image.png", patterns) is None


class TestExpandBraces:
    def test_simple_group(self) -> None:
        assert expand_braces("*.{ts,tsx}") == ["*.ts", "*.tsx"]

    def test_multiple_groups(self) -> None:
        assert expand_braces("{a,b}/{c,d}") == ["a/c", "a/d", "b/c", "b/d"]

    def test_nested_group(self) -> None:
        assert expand_braces("x.{a,{b,c}}") == ["x.a", "x.b", "x.c"]

    def test_unbalanced_and_single_item_groups_stay_literal(self) -> None:
        assert expand_braces("x.{a,b") == ["x.{a,b"]
        assert expand_braces("x.{a}") == ["x.{a}"]

    def test_no_braces(self) -> None:
        assert expand_braces("src/**/*.py") == ["src/**/*.py"]
