"""Commit subject convention.

Format: ``<type>(<scope>)?: <description> [T-YYYY-MM-DD-N] [MODE:F|NF]``
optionally followed by ``[TDD:red|green|refactor]``.
"""
from __future__ import annotations

import re
from typing import Any, Dict, Optional

from prove.core.context import ExecutionContext

from .base import CheckResult, failed, passed

CHECK_ID = "commit-msg-convention"

COMMIT_TYPES = ("feat", "fix", "chore", "refactor", "revert")

COMMIT_SUBJECT_RE = re.compile(
    r"^(?P<type>feat|fix|chore|refactor|revert)"
    r"(?:\((?P<scope>[^()\s]+)\))?"
    r":\s+(?P<description>\S.*?)"
    r"\s+\[(?P<task>T-\d{4}-\d{2}-\d{2}-\d+)\]"
    r"\s+\[MODE:(?P<mode>F|NF)\]"
    r"(?:\s+\[\s*(?i:TDD)\s*:\s*(?P<tdd>(?i:red|green|refactor))\s*\])?"
    r"\s*$"
)


def commit_subject(message: str) -> str:
    normalized = (message or "").strip().replace("\r\n", "\n").replace("\r", "\n")
    return normalized.split("\n", 1)[0]


def parse_commit_subject(message: str) -> Optional[Dict[str, Any]]:
    """Return the parsed parts of a conforming subject, else None."""
    match = COMMIT_SUBJECT_RE.match(commit_subject(message))
    if match is None:
        return None
    parts = {k: v for k, v in match.groupdict().items() if v is not None}
    if "tdd" in parts:
        parts["tdd"] = parts["tdd"].lower()
    return parts


async def check_commit_convention(ctx: ExecutionContext) -> CheckResult:
    message = ctx.git.commit_message
    subject = commit_subject(message)
    if not subject:
        return failed(CHECK_ID, "No commit message found", {"commitMessage": ""})

    parsed = parse_commit_subject(message)
    if parsed is None:
        return failed(
            CHECK_ID,
            "Commit message does not follow convention: "
            "<feat|fix|chore|refactor|revert>(scope)?: description [T-YYYY-MM-DD-N] [MODE:F|NF]",
            {"commitMessage": subject},
        )
    return passed(CHECK_ID, "Commit message follows convention", {"commitMessage": subject, "parsed": parsed})


__all__ = [
    "check_commit_convention",
    "parse_commit_subject",
    "commit_subject",
    "COMMIT_SUBJECT_RE",
    "COMMIT_TYPES",
    "CHECK_ID",
]
