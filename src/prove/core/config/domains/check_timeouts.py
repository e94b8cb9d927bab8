"""Domain-specific configuration for per-check timeouts (milliseconds)."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class CheckTimeoutsConfig(BaseDomainConfig):
    SECTION = "checkTimeouts"

    @cached_property
    def values(self) -> dict[str, int]:
        return {str(k): int(v) for k, v in self.section.items() if v is not None}


__all__ = ["CheckTimeoutsConfig"]
