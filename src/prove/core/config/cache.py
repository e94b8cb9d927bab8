"""Process-wide cache of merged (unvalidated) configuration.

An entry is keyed on the project root plus a fingerprint of everything that
can change the merge result: ``PROVE_*`` variables and the size and mtime of
each overlay file. Editing ``.prove/config/*.yaml`` or exporting a new
``PROVE_*`` value therefore misses the cache without an explicit clear.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

_CONFIGS: Dict[Tuple[str, str], Dict[str, Any]] = {}


def _overlay_stats(directory: Path) -> List[Tuple[str, int, int]]:
    from prove.core.utils.io import iter_yaml_files

    stats: List[Tuple[str, int, int]] = []
    for overlay in iter_yaml_files(directory):
        try:
            st = overlay.stat()
        except OSError:
            stats.append((overlay.name, -1, -1))
        else:
            stats.append((overlay.name, st.st_mtime_ns, st.st_size))
    return stats


def _fingerprint(root: Path) -> str:
    from prove.core.utils.paths import get_project_config_dir

    project_dir = get_project_config_dir(root)
    material = (
        sorted((k, v) for k, v in os.environ.items() if k.startswith("PROVE_")),
        _overlay_stats(project_dir / "config"),
        _overlay_stats(project_dir / "config.local"),
    )
    return hashlib.sha256(repr(material).encode("utf-8")).hexdigest()[:16]


def get_cached_config(repo_root: Optional[Path] = None) -> Dict[str, Any]:
    """Merged configuration for ``repo_root``; treat the result as read-only."""
    if repo_root is None:
        from prove.core.utils.paths import resolve_project_root

        root = resolve_project_root()
    else:
        root = Path(repo_root).expanduser().resolve()

    key = (str(root), _fingerprint(root))
    cached = _CONFIGS.get(key)
    if cached is None:
        from .manager import ConfigManager

        cached = ConfigManager(root)._load_config_uncached(validate=False)
        _CONFIGS[key] = cached
    return cached


def clear_all_caches() -> None:
    _CONFIGS.clear()


__all__ = ["get_cached_config", "clear_all_caches"]
