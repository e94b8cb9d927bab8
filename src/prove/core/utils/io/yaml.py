"""YAML loading for project overlays and bundled data."""
from __future__ import annotations

from pathlib import Path
from typing import Any, List

import yaml

from .core import PathLike

YAML_SUFFIXES = (".yaml", ".yml")


def parse_yaml_string(content: str, default: Any = None) -> Any:
    """``yaml.safe_load`` that maps empty or malformed documents to ``default``."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError:
        return default
    return default if data is None else data


def read_yaml(path: PathLike, default: Any = None, raise_on_error: bool = False) -> Any:
    """Load a YAML file.

    Unless ``raise_on_error`` is set, a missing, unreadable or malformed file
    gives back ``default``. An empty document always gives back ``default``.
    """
    source = Path(path)
    if not source.is_file():
        if raise_on_error:
            raise FileNotFoundError(f"File not found: {source}")
        return default
    try:
        data = yaml.safe_load(source.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError):
        if raise_on_error:
            raise
        return default
    return default if data is None else data


def iter_yaml_files(dir_path: PathLike) -> List[Path]:
    """YAML files directly under ``dir_path``, sorted by stem.

    ``name.yaml`` shadows ``name.yml``.
    """
    directory = Path(dir_path)
    if not directory.is_dir():
        return []
    by_stem: dict[str, Path] = {}
    # .yml first so a .yaml sibling overwrites it
    for suffix in reversed(YAML_SUFFIXES):
        for candidate in directory.glob(f"*{suffix}"):
            by_stem[candidate.stem] = candidate
    return [by_stem[stem] for stem in sorted(by_stem)]


__all__ = ["YAML_SUFFIXES", "parse_yaml_string", "read_yaml", "iter_yaml_files"]
