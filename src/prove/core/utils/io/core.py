"""Text file primitives shared by the JSON and YAML helpers.

Writes go through a sibling temp file that is fsync'd and then renamed over
the target, so a reader sees either the old report or the new one.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable, Optional, TextIO, Union

PathLike = Union[str, Path]

# Failures that mean "no usable text here" rather than a bug in the caller.
_UNREADABLE = (FileNotFoundError, IsADirectoryError, PermissionError, UnicodeDecodeError)


def ensure_directory(path: PathLike, create: bool = True) -> Path:
    """Return ``path`` as a directory, creating it unless ``create`` is False.

    Raises:
        NotADirectoryError: ``path`` exists and is a file.
        FileNotFoundError: ``path`` is missing and ``create`` is False.
    """
    directory = Path(path)
    if directory.is_dir():
        return directory
    if directory.exists():
        raise NotADirectoryError(f"Not a directory: {directory}")
    if not create:
        raise FileNotFoundError(f"Missing directory: {directory}")
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def atomic_write(path: PathLike, write_fn: Callable[[TextIO], None], *, encoding: str = "utf-8") -> None:
    target = Path(path)
    ensure_directory(target.parent)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as handle:
            write_fn(handle)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp, target)
    finally:
        tmp.unlink(missing_ok=True)


def write_text_atomic(path: PathLike, content: str, *, encoding: str = "utf-8") -> None:
    atomic_write(path, lambda handle: handle.write(content), encoding=encoding)


def read_text_or_none(path: PathLike) -> Optional[str]:
    """UTF-8 contents of ``path``, or None when it cannot be read as text."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except _UNREADABLE:
        return None


__all__ = [
    "PathLike",
    "ensure_directory",
    "atomic_write",
    "write_text_atomic",
    "read_text_or_none",
]
