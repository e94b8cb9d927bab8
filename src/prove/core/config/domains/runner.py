"""Domain-specific configuration for the check runner."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class RunnerConfig(BaseDomainConfig):
    """Parallel concurrency, default per-check timeout and critical-failure reporting."""

    SECTION = "runner"

    @cached_property
    def concurrency(self) -> int:
        return max(1, int(self.section.get("concurrency", 4)))

    @cached_property
    def timeout_ms(self) -> int:
        """Timeout applied to checks without a ``checkTimeouts`` bucket."""
        return int(self.section.get("timeoutMs", 300000))

    @cached_property
    def report_skipped_on_critical_failure(self) -> bool:
        """List checks that never ran after a critical failure instead of omitting them."""
        return bool(self.section.get("reportSkippedOnCriticalFailure", False))


__all__ = ["RunnerConfig"]
