"""Domain-specific configuration for named feature toggles."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class TogglesConfig(BaseDomainConfig):
    """Named boolean switches that enable optional checks.

    Unknown toggles are treated as disabled.
    """

    SECTION = "toggles"

    @cached_property
    def values(self) -> dict[str, bool]:
        return {str(k): bool(v) for k, v in self.section.items()}

    def is_enabled(self, name: str) -> bool:
        return self.values.get(name, False)


__all__ = ["TogglesConfig"]
