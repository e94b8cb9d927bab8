"""Git access for Prove."""
from __future__ import annotations

from .diff import ChangedLine, DiffStats, group_by_file
from .facade import EMPTY_TREE_SHA, GitFacade, MergeRehearsal

__all__ = [
    "GitFacade",
    "MergeRehearsal",
    "ChangedLine",
    "DiffStats",
    "group_by_file",
    "EMPTY_TREE_SHA",
]
