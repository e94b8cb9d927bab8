"""Classification of changed paths into source, test and other files."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterable, List, Tuple

from prove.core.utils.patterns import matches_any_pattern

CODE_EXTENSIONS = frozenset(
    {".py", ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".go", ".rs", ".java", ".kt", ".rb", ".php", ".cs"}
)


def is_code_file(path: str) -> bool:
    return PurePosixPath(path).suffix.lower() in CODE_EXTENSIONS


@dataclass(frozen=True)
class FileClassifier:
    """Classify repo-relative paths with the configured glob sets.

    Test globs win over source globs. With no source globs configured, any
    non-test code file counts as source.
    """

    src_globs: Tuple[str, ...] = ()
    test_globs: Tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, settings) -> "FileClassifier":
        return cls(tuple(settings.paths.src_globs), tuple(settings.paths.test_globs))

    def is_test(self, path: str) -> bool:
        return matches_any_pattern(path, self.test_globs)

    def is_source(self, path: str) -> bool:
        if self.is_test(path):
            return False
        if self.src_globs:
            return matches_any_pattern(path, self.src_globs)
        return is_code_file(path)

    def is_production_code(self, path: str) -> bool:
        """Non-test code file, regardless of source globs."""
        return is_code_file(path) and not self.is_test(path)

    def sources(self, files: Iterable[str]) -> List[str]:
        return [f for f in files if self.is_source(f)]

    def tests(self, files: Iterable[str]) -> List[str]:
        return [f for f in files if self.is_test(f)]


__all__ = ["FileClassifier", "CODE_EXTENSIONS", "is_code_file"]
