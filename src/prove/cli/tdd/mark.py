"""
Prove tdd mark command.

SUMMARY: Set the current TDD phase marker (red, green or refactor)
"""

from __future__ import annotations

import argparse
import sys

from prove.cli import OutputFormatter, add_standard_flags, get_repo_root, open_evidence_store
from prove.core.tdd import PHASE_GUIDANCE, require_phase

SUMMARY = "Set the current TDD phase marker (red, green or refactor)"


def register_args(parser: argparse.ArgumentParser) -> None:
    # Validated by require_phase so the error names the allowed phases.
    parser.add_argument("phase", help="Phase to mark: red, green or refactor")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    phase = require_phase(args.phase)
    store = open_evidence_store(get_repo_root(args))
    marker = store.write_marker(phase)

    guidance = PHASE_GUIDANCE[marker.phase]
    formatter.success(
        {"marker": marker.to_dict(), "guidance": guidance},
        f"TDD {marker.phase.value.capitalize()} phase marked - {guidance}",
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
