"""Quality-gate checks and their registry."""
from __future__ import annotations

from .base import (
    CheckCategory,
    CheckDefinition,
    CheckFn,
    CheckResult,
    check_deadline,
    failed,
    not_run,
    passed,
    skipped,
)
from .registry import CRITICAL_ORDER, CheckRegistry, build_default_registry

__all__ = [
    "CheckCategory",
    "CheckDefinition",
    "CheckFn",
    "CheckResult",
    "CheckRegistry",
    "check_deadline",
    "CRITICAL_ORDER",
    "build_default_registry",
    "passed",
    "failed",
    "skipped",
    "not_run",
]
