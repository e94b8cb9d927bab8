"""
Prove checks command.

SUMMARY: List the check catalog and which checks are enabled
"""

from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, List

from prove.cli import OutputFormatter, add_standard_flags, get_repo_root, load_settings
from prove.core.checks import CheckCategory, build_default_registry

SUMMARY = "List the check catalog and which checks are enabled"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--category",
        choices=[c.value for c in CheckCategory],
        help="Only list checks in this category",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    settings = load_settings(get_repo_root(args))
    registry = build_default_registry()

    definitions = registry.by_category(args.category) if args.category else list(registry)
    rows: List[Dict[str, Any]] = []
    for definition in definitions:
        row = definition.to_dict()
        row["enabled"] = definition.toggle is None or settings.toggle_enabled(definition.toggle)
        rows.append(row)

    if formatter.json_mode:
        formatter.json_output({"checks": rows})
        return 0

    for row in rows:
        flags = [row["category"]]
        if row.get("quickMode"):
            flags.append("quick")
        if row.get("toggle"):
            flags.append(f"toggle={row['toggle']}")
        if not row["enabled"]:
            flags.append("disabled")
        formatter.text(f"{row['id']:<24} {', '.join(flags)}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
