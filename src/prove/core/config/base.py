"""Shared plumbing for the typed configuration sections (``config.domains``)."""
from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import Any, Dict, List, Optional

from .cache import get_cached_config


class BaseDomainConfig:
    """Read-only view over one top-level section of the merged configuration.

    Subclasses set ``SECTION`` and expose typed ``cached_property``
    accessors over :attr:`section`. Pass ``config`` to wrap an already loaded
    mapping; otherwise the cached merge for ``repo_root`` is used.
    """

    SECTION: str = ""

    def __init__(self, repo_root: Optional[Path] = None, *, config: Optional[Dict[str, Any]] = None) -> None:
        self._config = get_cached_config(repo_root=repo_root) if config is None else config

    @cached_property
    def section(self) -> Dict[str, Any]:
        value = self._config.get(self.SECTION)
        return value if isinstance(value, dict) else {}

    def _str_list(self, key: str) -> List[str]:
        """Non-blank entries of a list setting, stringified and stripped."""
        raw = self.section.get(key)
        if not isinstance(raw, list):
            return []
        items = (str(v).strip() for v in raw if v is not None)
        return [item for item in items if item]


__all__ = ["BaseDomainConfig"]
