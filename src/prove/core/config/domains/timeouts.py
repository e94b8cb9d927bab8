"""Wall-clock limits (seconds) for the subprocesses Prove spawns."""
from __future__ import annotations

from functools import cached_property
from typing import Dict

from ..base import BaseDomainConfig

BUCKETS = ("git_operations", "test_execution", "build_operations", "default")


class TimeoutsConfig(BaseDomainConfig):
    """``timeouts.<bucket>_seconds``; every bucket must be present after the merge."""

    SECTION = "timeouts"

    @cached_property
    def buckets(self) -> Dict[str, float]:
        limits: Dict[str, float] = {}
        for bucket in BUCKETS:
            key = f"{bucket}_seconds"
            if key not in self.section:
                raise RuntimeError(f"timeouts.{key} missing from configuration")
            limits[key] = float(self.section[key])
        return limits

    def seconds(self, bucket: str) -> float:
        """Limit for ``bucket``, falling back to the default bucket for unknown names."""
        return self.buckets.get(f"{bucket}_seconds", self.buckets["default_seconds"])


__all__ = ["BUCKETS", "TimeoutsConfig"]
