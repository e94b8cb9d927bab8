"""
Prove tdd reset command.

SUMMARY: Remove the TDD phase marker (and optionally the evidence history)
"""

from __future__ import annotations

import argparse
import sys

from prove.cli import OutputFormatter, add_standard_flags, get_repo_root, open_evidence_store

SUMMARY = "Remove the TDD phase marker (and optionally the evidence history)"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--evidence",
        action="store_true",
        help="Also clear the recorded test evidence",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    store = open_evidence_store(get_repo_root(args))

    marker_removed = store.delete_marker()
    cleared = store.clear_evidence() if args.evidence else 0

    message = "TDD phase marker removed" if marker_removed else "No TDD phase marker to remove"
    if args.evidence:
        message += f"; cleared {cleared} evidence record(s)"
    formatter.success({"markerRemoved": marker_removed, "evidenceCleared": cleared}, message)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
