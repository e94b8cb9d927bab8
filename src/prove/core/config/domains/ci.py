"""Domain-specific configuration for CI detection and tool commands.

``ci.commands`` maps a tool name (``test``, ``lint``, ``typecheck``,
``build-web``, ...) to the command string the matching check runs.
"""

from __future__ import annotations

from functools import cached_property

from ..base import BaseDomainConfig


class CIConfig(BaseDomainConfig):
    """CI configuration accessor.

    Reads the top-level `ci` section from merged config.
    """

    SECTION = "ci"

    @cached_property
    def commands(self) -> dict[str, str]:
        """Return configured commands (name -> command string); blank entries are dropped."""
        raw = self.section.get("commands")
        if not isinstance(raw, dict):
            return {}
        out: dict[str, str] = {}
        for k, v in raw.items():
            key = str(k).strip()
            if not key:
                continue
            cmd = str(v).strip() if v is not None else ""
            if not cmd:
                continue
            out[key] = cmd
        return out

    @cached_property
    def env_vars(self) -> list[str]:
        """Variables whose truthy presence marks a CI environment."""
        return self._str_list("envVars")

    @cached_property
    def secret_env_vars(self) -> list[str]:
        return self._str_list("secretEnvVars")


__all__ = ["CIConfig"]
