from __future__ import annotations

from pathlib import Path

from helpers.contexts import load_settings
from prove.core.files import FileClassifier, is_code_file


def test_default_globs_from_settings(tmp_path: Path) -> None:
    classifier = FileClassifier.from_settings(load_settings(tmp_path))

    assert classifier.is_source("src/cart.py")
    assert classifier.is_source("app/components/Cart.tsx")
    assert classifier.is_test("tests/unit/test_cart.py")
    assert classifier.is_test("web/cart.spec.ts")
    assert classifier.is_test("lib/__tests__/cart.js")
    assert not classifier.is_source("README.md")


def test_test_globs_win_over_source_globs() -> None:
    classifier = FileClassifier(src_globs=("src/**/*.py",), test_globs=("**/test_*.py",))

    assert classifier.is_test("src/test_cart.py")
    assert not classifier.is_source("src/test_cart.py")


def test_without_source_globs_any_code_file_is_source() -> None:
    classifier = FileClassifier(test_globs=("tests/**/*",))

    assert classifier.is_source("scripts/deploy.py")
    assert not classifier.is_source("docs/index.md")
    assert not classifier.is_source("tests/helper.py")


def test_production_code_ignores_source_globs() -> None:
    classifier = FileClassifier(src_globs=("src/**/*.py",), test_globs=("tests/**/*",))

    assert classifier.is_production_code("tools/build.go")
    assert not classifier.is_production_code("tests/test_x.py")
    assert not classifier.is_production_code("notes.txt")


def test_partition_helpers_keep_order() -> None:
    classifier = FileClassifier(src_globs=("src/**/*",), test_globs=("tests/**/*",))
    files = ["tests/b.py", "src/a.py", "README.md", "tests/a.py"]

    assert classifier.sources(files) == ["src/a.py"]
    assert classifier.tests(files) == ["tests/b.py", "tests/a.py"]


def test_code_extensions() -> None:
    assert is_code_file("x.PY")
    assert is_code_file("pkg/mod.mjs")
    assert not is_code_file("Makefile")
