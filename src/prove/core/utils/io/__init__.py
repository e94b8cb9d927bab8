"""File I/O helpers: atomic text and JSON writes, tolerant YAML reads."""
from __future__ import annotations

from .core import PathLike, atomic_write, ensure_directory, read_text_or_none, write_text_atomic
from .json import dumps_json, read_json, write_json_atomic
from .yaml import iter_yaml_files, parse_yaml_string, read_yaml

__all__ = [
    "PathLike",
    "atomic_write",
    "ensure_directory",
    "read_text_or_none",
    "write_text_atomic",
    "dumps_json",
    "read_json",
    "write_json_atomic",
    "iter_yaml_files",
    "parse_yaml_string",
    "read_yaml",
]
