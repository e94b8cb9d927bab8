"""
Prove tdd status command.

SUMMARY: Show the marked and detected TDD phase
"""

from __future__ import annotations

import argparse
import sys
from typing import Any, Dict

from prove.cli import (
    OutputFormatter,
    add_standard_flags,
    get_repo_root,
    load_settings,
    open_evidence_store,
)
from prove.core.exceptions import GitError
from prove.core.files import FileClassifier
from prove.core.git import GitFacade
from prove.core.tdd import PhaseDetector
from prove.core.utils.time import format_ms

SUMMARY = "Show the marked and detected TDD phase"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    repo_root = get_repo_root(args)
    settings = load_settings(repo_root)
    store = open_evidence_store(repo_root, settings)

    try:
        message = GitFacade(repo_root, timeout=settings.timeouts.get("git_operations_seconds")).get_last_commit_message()
    except GitError:
        message = ""

    marker = store.read_marker()
    detector = PhaseDetector.default(store, FileClassifier.from_settings(settings))
    detection = detector.detect(message, store.read_evidence_history())

    if formatter.json_mode:
        payload: Dict[str, Any] = {
            "marker": marker.to_dict() if marker else None,
            "detection": detection.to_dict(),
        }
        formatter.json_output(payload)
        return 0

    if marker is None:
        formatter.text("No TDD phase marked")
    else:
        formatter.text(f"Current TDD phase: {marker.phase.value}")
        formatter.text(f"Timestamp: {format_ms(marker.timestamp)}")
        formatter.text(f"Commit: {marker.commit_hash or 'unknown'}")
    formatter.text(
        f"Detected phase: {detection.phase.value} (source: {detection.source}, confidence: {detection.confidence})"
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
