"""Feature commits that touch production code must ship a kill-switch."""
from __future__ import annotations

import re
from typing import Dict, List, Tuple

from prove.core.context import ExecutionContext
from prove.core.utils.io import read_text_or_none

from .base import CheckResult, failed, passed
from .commit_convention import commit_subject

CHECK_ID = "killswitch-required"

_FEATURE_RE = re.compile(r"^feat(?:\([^()]*\))?:")

KILL_SWITCH_PATTERNS: Tuple[Tuple[str, re.Pattern[str]], ...] = (
    (
        "feature-flag-call",
        re.compile(r"(?<![\w])(?:useFeatureFlag|isEnabled|isFeatureEnabled|is_enabled|feature_enabled)\s*\(\s*['\"`]"),
    ),
    ("kill-switch-constant", re.compile(r"(?<![\w])KILL_SWITCH_[A-Z0-9_]+")),
    (
        "enabled-env-var",
        re.compile(
            r"(?:process\.env\.|os\.environ(?:\.get)?\s*[\[(]\s*['\"]|os\.getenv\s*\(\s*['\"])"
            r"[A-Z0-9_]*_ENABLED"
        ),
    ),
    ("config-enabled", re.compile(r"(?<![\w])config\s*[=:][^\n]*enabled", re.IGNORECASE)),
    ("toggle-assignment", re.compile(r"(?<![\w])toggle\s*[=:]")),
    ("rollout-percentage", re.compile(r"(?<![\w])rollout_?percentage\s*[:=]\s*\d+", re.IGNORECASE)),
)


def is_feature_commit(message: str) -> bool:
    return _FEATURE_RE.match(commit_subject(message)) is not None


def detect_kill_switches(content: str) -> List[str]:
    """Names of the kill-switch patterns present in ``content``."""
    return [name for name, pattern in KILL_SWITCH_PATTERNS if pattern.search(content)]


async def check_killswitch(ctx: ExecutionContext) -> CheckResult:
    message = ctx.git.commit_message
    classifier = ctx.classifier
    production = [f for f in ctx.git.changed_files if classifier.is_production_code(f)]
    details: Dict[str, object] = {
        "isFeatureCommit": False,
        "touchesProductionCode": bool(production),
        "productionFiles": production,
    }

    if not is_feature_commit(message):
        return passed(CHECK_ID, "Not a feature commit", details)
    details["isFeatureCommit"] = True
    if not production:
        return passed(CHECK_ID, "Feature commit does not touch production code", details)

    found: Dict[str, List[str]] = {}
    for path in production:
        content = read_text_or_none(ctx.repo_root / path)
        if not content:
            continue
        hits = detect_kill_switches(content)
        if hits:
            found[path] = hits

    details["detectedPatterns"] = found
    if not found:
        return failed(
            CHECK_ID,
            "Feature commit touches production code without a kill-switch "
            "(feature flag, KILL_SWITCH_* constant, *_ENABLED env var, toggle or rollout percentage)",
            details,
        )
    return passed(CHECK_ID, "Kill-switch present for feature commit", details)


__all__ = ["check_killswitch", "detect_kill_switches", "is_feature_commit", "KILL_SWITCH_PATTERNS", "CHECK_ID"]
