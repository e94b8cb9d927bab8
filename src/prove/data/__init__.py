"""
Files shipped inside the wheel.

``config/`` holds the bundled defaults merged under every project overlay and
``schemas/`` holds JSON Schemas written as YAML. Both are looked up through
:mod:`importlib.resources`, so an installed package and a source checkout
behave the same.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """Filesystem path of ``prove/data/<subpackage>[/<filename>]``."""
    directory = Path(str(resources.files(__name__).joinpath(subpackage)))
    return directory / filename if filename else directory


@lru_cache(maxsize=None)
def read_yaml(subpackage: str, filename: str) -> dict[str, Any]:
    """Parsed bundled YAML document; shared between callers, do not mutate."""
    text = get_data_path(subpackage, filename).read_text(encoding="utf-8")
    loaded = yaml.safe_load(text)
    return loaded if isinstance(loaded, dict) else {}


__all__ = ["get_data_path", "read_yaml"]
