"""
Prove tdd history command.

SUMMARY: Show recent test evidence and whether the phase sequence is valid
"""

from __future__ import annotations

import argparse
import sys

from prove.cli import (
    OutputFormatter,
    add_standard_flags,
    get_repo_root,
    load_settings,
    open_evidence_store,
)
from prove.core.tdd import validate_sequence
from prove.core.utils.time import format_ms

SUMMARY = "Show recent test evidence and whether the phase sequence is valid"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Number of most recent records to show (default: 10)",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    repo_root = get_repo_root(args)
    settings = load_settings(repo_root)
    store = open_evidence_store(repo_root, settings)

    history = store.read_evidence_history()
    recent = history[-args.limit:] if args.limit > 0 else []
    verdict = validate_sequence([e.phase for e in history], window=settings.tdd.sequence_window)

    if formatter.json_mode:
        formatter.json_output(
            {
                "total": len(history),
                "evidence": [e.to_dict() for e in recent],
                "sequence": {"ok": verdict.ok, **verdict.to_dict()},
            }
        )
        return 0

    if not history:
        formatter.text("No test evidence recorded")
        return 0

    for record in recent:
        results = record.test_results
        formatter.text(
            f"{format_ms(record.timestamp)}  {record.phase.value:<8} "
            f"{results.passed}/{results.total} passed, {results.failed} failed"
        )
    if verdict.ok:
        formatter.text("Sequence: OK")
    else:
        formatter.text(f"Sequence: invalid ({verdict.violations[0].describe()})")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
