"""
Prove CLI package.

Commands are auto-discovered: top-level commands live in ``cli/commands``,
domain commands in subfolders such as ``cli/tdd``.

Framework utilities for building commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Shared CLI utilities
"""
from ._output import OutputFormatter
from ._args import (
    add_json_flag,
    add_logging_flags,
    add_quick_flag,
    add_repo_root_flag,
    add_standard_flags,
)
from ._utils import get_repo_root, load_settings, open_evidence_store, setup_logging

__all__ = [
    # Output formatting
    "OutputFormatter",
    # Argument helpers
    "add_json_flag",
    "add_repo_root_flag",
    "add_quick_flag",
    "add_logging_flags",
    "add_standard_flags",
    # Utilities
    "get_repo_root",
    "setup_logging",
    "load_settings",
    "open_evidence_store",
]
