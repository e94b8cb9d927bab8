"""
Prove configuration.

Layered YAML (bundled defaults, ``.prove/config``, ``.prove/config.local``)
plus ``PROVE_*`` environment overrides, validated with JSON Schema and exposed
through domain accessors and the frozen :class:`ProveSettings` snapshot.
"""
from __future__ import annotations

from .cache import clear_all_caches, get_cached_config
from .manager import ConfigManager
from .store import (
    CiSettings,
    ConfigStore,
    GitSettings,
    ModeSettings,
    PathSettings,
    ProveSettings,
    RunnerSettings,
    TddSettings,
    Thresholds,
)

__all__ = [
    "ConfigManager",
    "ConfigStore",
    "ProveSettings",
    "Thresholds",
    "PathSettings",
    "GitSettings",
    "RunnerSettings",
    "ModeSettings",
    "TddSettings",
    "CiSettings",
    "clear_all_caches",
    "get_cached_config",
]
