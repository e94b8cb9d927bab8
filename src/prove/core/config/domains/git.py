"""Domain-specific configuration for git and trunk-based workflow settings."""
from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class GitConfig(BaseDomainConfig):
    SECTION = "git"

    @cached_property
    def trunk_branch(self) -> str:
        return str(self.section.get("trunkBranch") or "main")

    @cached_property
    def remote(self) -> str:
        return str(self.section.get("remote") or "origin")

    @cached_property
    def base_ref_fallback(self) -> str:
        """First candidate tried when resolving the diff base (``origin/main``)."""
        return str(self.section.get("baseRefFallback") or f"{self.remote}/{self.trunk_branch}")

    @cached_property
    def require_main_branch(self) -> bool:
        return bool(self.section.get("requireMainBranch", True))

    @cached_property
    def enable_pre_conflict_check(self) -> bool:
        return bool(self.section.get("enablePreConflictCheck", True))


__all__ = ["GitConfig"]
