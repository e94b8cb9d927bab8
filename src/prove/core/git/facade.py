"""Git plumbing used by Prove.

All repository access goes through :class:`GitFacade`. Every operation is
read-only except :meth:`GitFacade.fetch` and the :meth:`GitFacade.dry_merge`
rehearsal, which always aborts the merge it started.
"""
from __future__ import annotations

import logging
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from prove.core.exceptions import GitError
from prove.core.utils.subprocess import run_git_command

from .diff import (
    ChangedLine,
    DiffStats,
    parse_name_only,
    parse_shortstat,
    parse_unified_zero,
)

logger = logging.getLogger(__name__)

# Object id of the empty tree; a valid diff base in every repository.
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

_CONFLICT_CODES = frozenset({"UU", "AA", "DD", "AU", "UA", "DU", "UD"})


@dataclass(frozen=True)
class MergeRehearsal:
    """Outcome of a dry merge: ``clean`` when git merged without conflicts."""

    clean: bool
    conflicts: Tuple[str, ...] = ()
    output: str = ""


class GitFacade:
    """Run git commands against one repository.

    Args:
        repo_root: Working tree root.
        timeout: Seconds per git command. Defaults to ``timeouts.git_operations_seconds``.
        base_ref_candidate: First ref tried by :meth:`resolve_base_ref`.
    """

    def __init__(
        self,
        repo_root: Path,
        *,
        timeout: Optional[float] = None,
        base_ref_candidate: str = "origin/main",
    ) -> None:
        self.repo_root = Path(repo_root)
        self.timeout = timeout
        self.base_ref_candidate = base_ref_candidate

    def _run(self, args: Sequence[str], *, check: bool = True) -> subprocess.CompletedProcess:
        cmd = ["git", *args]
        try:
            result = run_git_command(
                cmd,
                cwd=self.repo_root,
                timeout=self.timeout,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise GitError(
                f"git executable not found or missing working directory: {self.repo_root}",
                context={"cmd": cmd},
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise GitError(
                f"git command timed out: {' '.join(cmd)}", context={"cmd": cmd}
            ) from exc
        except NotADirectoryError as exc:
            raise GitError(
                f"Not a directory: {self.repo_root}", context={"cmd": cmd}
            ) from exc

        if check and result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise GitError(
                stderr or f"git {' '.join(args)} failed with exit code {result.returncode}",
                context={"cmd": cmd, "returncode": result.returncode},
            )
        return result

    def _out(self, *args: str) -> str:
        return (self._run(args).stdout or "").strip()

    # ---------- refs and branches ----------

    def get_current_branch(self) -> str:
        """Return the checked-out branch name (``HEAD`` when detached).

        Raises:
            GitError: If git is unavailable or the path is not a repository.
        """
        return self._out("rev-parse", "--abbrev-ref", "HEAD")

    def ref_exists(self, ref: str) -> bool:
        try:
            result = self._run(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], check=False)
        except GitError:
            return False
        return result.returncode == 0

    def resolve_base_ref(self) -> str:
        """Return the diff base: the trunk ref, else ``HEAD~1``, else the empty tree.

        Never fails; the empty tree is valid in every repository.
        """
        for candidate in (self.base_ref_candidate, "HEAD~1"):
            if candidate and self.ref_exists(candidate):
                return candidate
        return EMPTY_TREE_SHA

    # ---------- diffs ----------

    def get_changed_files(self, base_ref: str) -> List[str]:
        """Return files changed between ``base_ref`` and ``HEAD`` (unique, diff order).

        Raises:
            GitError: If the diff cannot be computed.
        """
        return parse_name_only(self._out("diff", "--name-only", base_ref, "HEAD"))

    def get_changed_lines(self, base_ref: str) -> List[ChangedLine]:
        """Return added/modified lines between ``base_ref`` and ``HEAD``."""
        result = self._run(["diff", "--unified=0", "-M", "--no-color", base_ref, "HEAD"])
        return parse_unified_zero(result.stdout or "")

    def get_diff_stats(self, base_ref: str) -> DiffStats:
        """Return added/deleted line counts against the merge base of ``base_ref``.

        Falls back to a direct diff when there is no merge base (empty tree,
        unrelated histories).
        """
        result = self._run(["diff", "--shortstat", f"{base_ref}...HEAD"], check=False)
        if result.returncode != 0:
            result = self._run(["diff", "--shortstat", base_ref, "HEAD"])
        return parse_shortstat(result.stdout or "")

    def has_uncommitted_changes(self) -> bool:
        """Return True when the working tree or index differs from HEAD.

        Informational only; enforcement always uses committed diffs.
        """
        return bool(self._out("status", "--porcelain"))

    def get_last_commit_message(self) -> str:
        return self._out("log", "-1", "--pretty=%B")

    def get_last_commit_hash(self) -> str:
        return self._out("rev-parse", "HEAD")

    def show_file(self, ref: str, path: str) -> Optional[str]:
        """Return ``path`` as of ``ref``, or None when it does not exist there."""
        result = self._run(["show", f"{ref}:{path}"], check=False)
        return result.stdout if result.returncode == 0 else None

    # ---------- remotes and merges ----------

    def has_remote(self, name: str) -> bool:
        remotes = self._out("remote").splitlines()
        return name in {r.strip() for r in remotes}

    def fetch(self, remote: str, *, prune: bool = True) -> None:
        args = ["fetch", "--quiet"]
        if prune:
            args.append("--prune")
        args.append(remote)
        self._run(args)

    def merge_in_progress(self) -> bool:
        result = self._run(["rev-parse", "-q", "--verify", "MERGE_HEAD"], check=False)
        return result.returncode == 0

    def get_conflicted_files(self) -> List[str]:
        conflicts: List[str] = []
        for raw in (self._run(["status", "--porcelain"]).stdout or "").splitlines():
            if len(raw) > 3 and raw[:2] in _CONFLICT_CODES:
                conflicts.append(raw[3:].strip())
        return conflicts

    def abort_merge(self) -> None:
        self._run(["merge", "--abort"])

    @contextmanager
    def dry_merge(self, ref: str) -> Iterator[MergeRehearsal]:
        """Rehearse merging ``ref`` into the working tree without committing.

        The merge is aborted on every exit path (clean merge, conflicts or an
        exception raised by the caller) whenever a merge is left in progress.
        """
        try:
            result = self._run(["merge", "--no-commit", "--no-ff", ref], check=False)
            output = "\n".join(
                part for part in ((result.stdout or "").strip(), (result.stderr or "").strip()) if part
            )
            if result.returncode == 0:
                yield MergeRehearsal(clean=True, output=output)
            else:
                yield MergeRehearsal(
                    clean=False,
                    conflicts=tuple(self.get_conflicted_files()),
                    output=output,
                )
        finally:
            if self.merge_in_progress():
                logger.debug("Aborting dry merge of %s", ref)
                self.abort_merge()


__all__ = ["GitFacade", "MergeRehearsal", "EMPTY_TREE_SHA"]
