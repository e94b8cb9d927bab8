"""
Prove configuration management (YAML layers + PROVE_* environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from prove.core.exceptions import ConfigError
from prove.core.utils.merge import deep_merge as _deep_merge
from prove.data import get_data_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "PROVE_"
ENV_PATH_SEPARATOR = "__"
CONFIG_SCHEMA = "config.schema.yaml"

# Documented single-purpose variables mapped onto config keys.
ENV_ALIASES: Dict[str, Tuple[str, ...]] = {
    "PROVE_DIFF_COVERAGE_FUNCTIONAL": ("thresholds", "diffCoverageFunctional"),
    "PROVE_GLOBAL_COVERAGE": ("thresholds", "globalCoverage"),
    "PROVE_MAX_COMMIT_SIZE": ("thresholds", "maxCommitSize"),
    "PROVE_ENABLE_COVERAGE": ("toggles", "coverage"),
    "PROVE_ENABLE_DIFF_COVERAGE": ("toggles", "diffCoverage"),
    "PROVE_ENABLE_SECURITY": ("toggles", "security"),
    "PROVE_ENABLE_CONTRACTS": ("toggles", "contracts"),
    "PROVE_ENABLE_DB_MIGRATIONS": ("toggles", "dbMigrations"),
    "PROVE_ENABLE_SIZE_BUDGET": ("toggles", "sizeBudget"),
    "PROVE_ENABLE_COMMIT_SIZE": ("toggles", "commitSize"),
    "PROVE_CONCURRENCY": ("runner", "concurrency"),
}

_BOOL_WORDS = {"true": True, "false": False, "yes": True, "no": False, "on": True, "off": False}


class ConfigManager:
    """Load, merge, and validate Prove configuration.

    Configuration sources (highest to lowest priority):
    1. Named environment aliases (``PROVE_GLOBAL_COVERAGE``, ...)
    2. Generic environment overrides: ``PROVE_<section>__<key>[__<key>]``
    3. Project-local config: ``.prove/config.local/*.yaml`` (alphabetical, uncommitted)
    4. Project config: ``.prove/config/*.yaml`` (alphabetical)
    5. Bundled defaults: ``prove.data/config/*.yaml`` (alphabetical)

    ``PROVE_MODE`` is deliberately not a config override; it selects the
    delivery mode (see :mod:`prove.core.mode`).
    """

    def __init__(self, repo_root: Path, *, env: Optional[Mapping[str, str]] = None) -> None:
        from prove.core.utils.paths import get_project_config_dir

        self.repo_root = Path(repo_root)
        self._explicit_env = env is not None
        self.env: Mapping[str, str] = env if env is not None else os.environ

        project_dir = get_project_config_dir(self.repo_root)
        self.core_config_dir = get_data_path("config")
        self.project_config_dir = project_dir / "config"
        self.project_local_config_dir = project_dir / "config.local"

    def deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge dictionaries. Delegates to shared implementation."""
        return _deep_merge(base, override)

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        from prove.core.utils.io import read_yaml

        # Fail closed: configuration must never silently ignore invalid YAML.
        try:
            data = read_yaml(path, default={}, raise_on_error=True)
        except Exception as exc:
            raise ConfigError(
                f"Invalid YAML in {path}: {exc}", context={"file": str(path)}
            ) from exc
        if not isinstance(data, dict):
            raise ConfigError(
                f"Config file must contain a mapping: {path}", context={"file": str(path)}
            )
        return data

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        from prove.core.utils.io import iter_yaml_files

        for path in iter_yaml_files(directory):
            cfg = self.deep_merge(cfg, self.load_yaml(path))
        return cfg

    # ---------- environment coercion ----------

    def _as_bool(self, v: str) -> Optional[bool]:
        return _BOOL_WORDS.get(v.strip().lower())

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except json.JSONDecodeError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str) -> List[Union[str, int]]:
        processed: List[Union[str, int]] = []
        for seg in raw.split(ENV_PATH_SEPARATOR):
            if seg == "":
                raise ConfigError(
                    f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'",
                    context={"key": f"{ENV_PREFIX}{raw}"},
                )
            processed.append(int(seg) if seg.isdigit() else seg)
        return processed

    def iter_env_overrides(self) -> Iterator[Tuple[List[Union[str, int]], Any]]:
        """Yield ``(path, typed_value)`` for each generic ``PROVE_a__b`` variable."""
        for key in sorted(self.env.keys()):
            if not key.startswith(ENV_PREFIX) or key in ENV_ALIASES:
                continue
            raw = key[len(ENV_PREFIX):]
            if ENV_PATH_SEPARATOR not in raw:
                continue
            yield self._parse_env_key(raw), self._coerce_type(self.env[key])

    def _set_nested(self, root: Dict[str, Any], path: List[Union[str, int]], value: Any) -> None:
        cur: Any = root
        for i, part in enumerate(path):
            is_last = i == len(path) - 1
            if isinstance(part, int):
                if not isinstance(cur, list):
                    raise ConfigError(f"Index {part} requires a list at {path[:i]}")
                while len(cur) <= part:
                    cur.append(None)
                if is_last:
                    cur[part] = value
                    return
                if not isinstance(cur[part], (dict, list)):
                    cur[part] = {}
                cur = cur[part]
                continue

            if not isinstance(cur, dict):
                raise ConfigError(f"Path traverses a non-mapping at {path[:i]}")
            # Match existing keys case-insensitively so PROVE_runner__CONCURRENCY works.
            lower_map = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
            use_key = lower_map.get(part.lower(), part)
            if is_last:
                cur[use_key] = value
                return
            nxt = path[i + 1]
            if use_key not in cur or not isinstance(cur[use_key], (dict, list)):
                cur[use_key] = [] if isinstance(nxt, int) else {}
            cur = cur[use_key]

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, typed_value in self.iter_env_overrides():
            logger.debug("Config override from environment: %s", ".".join(map(str, path)))
            self._set_nested(cfg, path, typed_value)

    def apply_env_aliases(self, cfg: Dict[str, Any]) -> None:
        for env_key, path in ENV_ALIASES.items():
            raw = self.env.get(env_key)
            if raw is None or not str(raw).strip():
                continue
            if path[0] == "toggles":
                value: Any = str(raw).strip().lower() in {"1", "true", "yes", "on"}
            else:
                value = self._coerce_type(str(raw))
            self._set_nested(cfg, list(path), value)

    # ---------- loading ----------

    def validate_schema(self, cfg: Dict[str, Any]) -> None:
        from prove.core.schemas.validation import validate_payload_safe

        errors = validate_payload_safe(cfg, CONFIG_SCHEMA)
        if errors:
            raise ConfigError(
                "Invalid configuration: " + "; ".join(errors),
                context={"errors": errors, "repo_root": str(self.repo_root)},
            )

    def _load_config_uncached(self, validate: bool = True) -> Dict[str, Any]:
        """Load and merge configuration from every layer (UNCACHED)."""
        cfg: Dict[str, Any] = {}
        cfg = self._load_directory(self.core_config_dir, cfg)
        cfg = self._load_directory(self.project_config_dir, cfg)
        cfg = self._load_directory(self.project_local_config_dir, cfg)
        self.apply_env_overrides(cfg)
        self.apply_env_aliases(cfg)
        if validate:
            self.validate_schema(cfg)
        return cfg

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Load configuration, cached per repo root, environment and file mtimes.

        A manager built with an explicit ``env`` mapping bypasses the
        process-wide cache. Returned dicts must be treated as immutable.
        """
        if self._explicit_env:
            return self._load_config_uncached(validate=validate)

        from prove.core.config.cache import get_cached_config

        cfg = get_cached_config(repo_root=self.repo_root)
        if validate:
            self.validate_schema(cfg)
        return cfg

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-notation key.

        Example:
            >>> manager.get('thresholds.globalCoverage')
            25
        """
        current: Any = self.load_config(validate=False)
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current


__all__ = ["ConfigManager", "ENV_ALIASES", "ENV_PREFIX"]
