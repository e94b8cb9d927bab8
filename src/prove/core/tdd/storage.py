"""Storage backends for TDD state files.

The evidence store only needs text get/put/delete keyed by a repo-relative
path, so tests can swap the filesystem for an in-memory dict.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

from prove.core.utils.io import read_text_or_none, write_text_atomic


@runtime_checkable
class StorageBackend(Protocol):
    def read_text(self, key: str) -> Optional[str]:
        """Return the stored text, or None when absent or unreadable."""
        ...

    def write_text(self, key: str, content: str) -> None:
        ...

    def delete(self, key: str) -> bool:
        """Delete ``key``; True if something was removed."""
        ...


class FileStorage:
    """Files under ``root``; writes are atomic (temp file + fsync + rename)."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        p = Path(key)
        return p if p.is_absolute() else self.root / p

    def read_text(self, key: str) -> Optional[str]:
        return read_text_or_none(self.path_for(key))

    def write_text(self, key: str, content: str) -> None:
        write_text_atomic(self.path_for(key), content)

    def delete(self, key: str) -> bool:
        try:
            self.path_for(key).unlink()
        except FileNotFoundError:
            return False
        return True


class MemoryStorage:
    """Dict-backed storage for tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.files: Dict[str, str] = dict(initial or {})

    def read_text(self, key: str) -> Optional[str]:
        return self.files.get(key)

    def write_text(self, key: str, content: str) -> None:
        self.files[key] = content

    def delete(self, key: str) -> bool:
        return self.files.pop(key, None) is not None


__all__ = ["StorageBackend", "FileStorage", "MemoryStorage"]
