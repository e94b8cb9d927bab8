"""Domain-specific configuration accessors.

Each accessor reads one top-level section of the merged configuration.
"""
from __future__ import annotations

from .check_timeouts import CheckTimeoutsConfig
from .ci import CIConfig
from .git import GitConfig
from .modes import ModesConfig
from .paths import PathsConfig
from .runner import RunnerConfig
from .tdd import TDDConfig
from .thresholds import ThresholdsConfig
from .timeouts import TimeoutsConfig
from .toggles import TogglesConfig

__all__ = [
    "CheckTimeoutsConfig",
    "CIConfig",
    "GitConfig",
    "ModesConfig",
    "PathsConfig",
    "RunnerConfig",
    "TDDConfig",
    "ThresholdsConfig",
    "TimeoutsConfig",
    "TogglesConfig",
]
