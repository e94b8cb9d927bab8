"""Exception hierarchy.

Check outcomes are never exceptions: a failing gate is a ``CheckResult``.
These types cover the cases where Prove itself cannot do its job. The CLI
maps :class:`ConfigError` and :class:`OrchestrationError` to exit code 2 and
any other :class:`ProveError` to exit code 1.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class ProveError(Exception):
    """Base class; ``context`` carries structured detail for ``--json`` output."""

    def __init__(self, message: str = "", *, context: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.context: Dict[str, Any] = dict(context or {})

    def to_json_error(self) -> Dict[str, Any]:
        return {"message": str(self), "code": type(self).__name__, "context": self.context}


class GitError(ProveError, RuntimeError):
    """git is missing, the directory is not a repository, or a git call failed."""


class ConfigError(ProveError, ValueError):
    """Configuration could not be loaded or does not match the schema."""


class InvalidPhaseError(ProveError, ValueError):
    """A TDD phase argument other than red, green or refactor."""


class OrchestrationError(ProveError, RuntimeError):
    """The runner's own bookkeeping went wrong; fatal for the whole run."""


__all__ = [
    "ProveError",
    "GitError",
    "ConfigError",
    "InvalidPhaseError",
    "OrchestrationError",
]
