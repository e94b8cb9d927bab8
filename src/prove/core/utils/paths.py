"""Project root and project config directory resolution.

Resolution priority for the project root:
1. ``PROVE_PROJECT_ROOT`` environment variable
2. Git repository root via ``git rev-parse --show-toplevel``
3. The current working directory
"""
from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Optional

from prove.core.exceptions import ProveError

PROJECT_ROOT_ENV = "PROVE_PROJECT_ROOT"
PROJECT_CONFIG_DIR = ".prove"


class ProvePathError(ProveError, ValueError):
    """Raised when the project root cannot be resolved."""


def _git_toplevel(cwd: Path) -> Optional[Path]:
    # Plain subprocess here: the timeout config itself depends on the root.
    try:
        proc = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError):
        return None
    if proc.returncode != 0:
        return None
    out = proc.stdout.strip()
    return Path(out).resolve() if out else None


def resolve_project_root(start: Optional[Path] = None) -> Path:
    """Resolve the project root.

    Args:
        start: Directory to start from (defaults to the current directory)

    Returns:
        Absolute path to the project root

    Raises:
        ProvePathError: If PROVE_PROJECT_ROOT points at a missing path
    """
    env_root = os.environ.get(PROJECT_ROOT_ENV)
    if env_root:
        env_path = Path(env_root).expanduser().resolve()
        if not env_path.is_dir():
            raise ProvePathError(
                f"{PROJECT_ROOT_ENV} points at missing path: {env_path}",
                context={"path": str(env_path)},
            )
        return env_path

    cwd = Path(start or Path.cwd()).resolve()
    return _git_toplevel(cwd) or cwd


def get_project_config_dir(repo_root: Path) -> Path:
    """Return ``<repo_root>/.prove`` (not created)."""
    return Path(repo_root) / PROJECT_CONFIG_DIR


def resolve_repo_path(repo_root: Path, relative: str | Path) -> Path:
    """Resolve a configured path relative to the repo root (absolute paths kept)."""
    p = Path(relative)
    return p if p.is_absolute() else Path(repo_root) / p


__all__ = [
    "PROJECT_ROOT_ENV",
    "PROJECT_CONFIG_DIR",
    "ProvePathError",
    "resolve_project_root",
    "get_project_config_dir",
    "resolve_repo_path",
]
