"""
Prove run command.

SUMMARY: Run the quality gate and write the JSON report
"""

from __future__ import annotations

import argparse
import logging
import sys

from prove.cli import (
    OutputFormatter,
    add_quick_flag,
    add_standard_flags,
    get_repo_root,
)
from prove.core.checks import build_default_registry
from prove.core.context import ContextBuilder
from prove.core.report import Report, render_console
from prove.core.runner import Runner

SUMMARY = "Run the quality gate and write the JSON report"

logger = logging.getLogger(__name__)


def register_args(parser: argparse.ArgumentParser) -> None:
    add_quick_flag(parser)
    parser.add_argument(
        "--no-report",
        action="store_true",
        help="Do not write the report file",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    """Exit 0 when every check passed, 1 otherwise."""
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    repo_root = get_repo_root(args)

    ctx = ContextBuilder(repo_root).build(quick=bool(getattr(args, "quick", False)))
    formatter.text(ctx.summary())

    outcome = Runner(build_default_registry()).run_sync(ctx)
    report = Report.from_outcome(outcome, ctx.mode.value)

    if not getattr(args, "no_report", False):
        report.write(repo_root / ctx.config.paths.prove_report_file)

    if formatter.json_mode:
        formatter.json_output(report.to_dict())
    else:
        formatter.text(render_console(report))

    return 0 if report.success else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
