"""Common CLI argument registration helpers."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--json", action="store_true", help="Output as JSON")


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--repo-root", type=str, help="Override repository root path")


def add_quick_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--quick",
        action="store_true",
        help="Run the reduced quick-mode check set",
    )


def add_logging_flags(parser: argparse.ArgumentParser) -> None:
    """Add --verbose and --log-file."""
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress at INFO level")
    parser.add_argument("--log-file", type=str, help="Also append log records to this file")


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Add --json, --repo-root, --verbose and --log-file."""
    add_json_flag(parser)
    add_repo_root_flag(parser)
    add_logging_flags(parser)


__all__ = [
    "add_json_flag",
    "add_repo_root_flag",
    "add_quick_flag",
    "add_logging_flags",
    "add_standard_flags",
]
