"""JSON reports and evidence payloads.

Everything Prove writes as JSON is indented by two spaces, keeps non-ASCII
text readable, and ends with a newline.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .core import PathLike, atomic_write

INDENT = 2

_NO_DEFAULT = object()


def dumps_json(data: Any, *, sort_keys: bool = True) -> str:
    return json.dumps(data, indent=INDENT, sort_keys=sort_keys, ensure_ascii=False)


def read_json(file_path: PathLike, *, default: Any = _NO_DEFAULT) -> Any:
    """Load ``file_path``; a missing file yields ``default`` when one is given.

    Raises:
        FileNotFoundError: Missing file and no ``default``.
        json.JSONDecodeError: The file is not valid JSON.
    """
    path = Path(file_path)
    if path.is_file():
        return json.loads(path.read_text(encoding="utf-8"))
    if default is _NO_DEFAULT:
        raise FileNotFoundError(f"JSON file not found: {path}")
    return default


def write_json_atomic(file_path: PathLike, data: Any, *, sort_keys: bool = True) -> None:
    payload = dumps_json(data, sort_keys=sort_keys) + "\n"
    atomic_write(file_path, lambda handle: handle.write(payload))


__all__ = ["INDENT", "dumps_json", "read_json", "write_json_atomic"]
