"""Delivery-mode resolution (functional vs non-functional work)."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from prove.core.schemas import validate_payload_safe
from prove.core.utils.io import read_text_or_none

logger = logging.getLogger(__name__)

MODE_ENV = "PROVE_MODE"
TASK_SCHEMA = "task.schema.yaml"
LABEL_ENVS = ("GITHUB_PR_LABELS", "PR_LABELS")
TITLE_ENVS = ("GITHUB_PR_TITLE", "PR_TITLE")

_TITLE_TAG_RE = re.compile(r"\[MODE:(F|NF)\]", re.IGNORECASE)


class DeliveryMode(str, Enum):
    FUNCTIONAL = "functional"
    NON_FUNCTIONAL = "non-functional"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Any) -> Optional["DeliveryMode"]:
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class ModeResolution:
    """Resolved mode with the source that decided it.

    ``task_errors`` is non-empty when the task file exists but is invalid; the
    resolver still falls through to the remaining sources in that case.
    """

    mode: DeliveryMode
    source: str
    task_errors: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"mode": self.mode.value, "source": self.source}
        if self.task_errors:
            out["taskErrors"] = list(self.task_errors)
        return out


def read_task_mode(task_path: Path) -> Tuple[Optional[DeliveryMode], Tuple[str, ...]]:
    """Return ``(mode, errors)`` for the task file; ``(None, ())`` when it does not exist."""
    text = read_text_or_none(task_path)
    if text is None:
        return None, ()
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, ValueError) as exc:
        return None, (f"{task_path.name} is not valid JSON: {exc}",)
    errors = validate_payload_safe(payload, TASK_SCHEMA)
    if errors:
        return None, tuple(errors)
    return DeliveryMode(payload["mode"]), ()


def _mode_from_labels(env: Mapping[str, str]) -> Optional[DeliveryMode]:
    for name in LABEL_ENVS:
        raw = env.get(name) or ""
        labels = {part.strip().lower() for part in re.split(r"[,\s]+", raw) if part.strip()}
        if "mode:non-functional" in labels:
            return DeliveryMode.NON_FUNCTIONAL
        if "mode:functional" in labels:
            return DeliveryMode.FUNCTIONAL
    return None


def _mode_from_title(env: Mapping[str, str]) -> Optional[DeliveryMode]:
    for name in TITLE_ENVS:
        match = _TITLE_TAG_RE.search(env.get(name) or "")
        if match:
            return DeliveryMode.NON_FUNCTIONAL if match.group(1).upper() == "NF" else DeliveryMode.FUNCTIONAL
    return None


def resolve_mode(repo_root: Path, env: Mapping[str, str], settings: Any) -> ModeResolution:
    """Resolve the delivery mode.

    Priority: ``PROVE_MODE`` → task file ``mode`` → PR labels → PR title tag
    → ``functional``.
    """
    explicit = DeliveryMode.parse(env.get(MODE_ENV))
    if explicit is not None:
        return ModeResolution(explicit, "env")
    if env.get(MODE_ENV):
        logger.warning("Ignoring invalid %s=%r", MODE_ENV, env.get(MODE_ENV))

    task_mode, task_errors = read_task_mode(Path(repo_root) / settings.paths.task_file)
    if task_mode is not None:
        return ModeResolution(task_mode, "task_file")
    if task_errors:
        logger.warning("Invalid task file %s: %s", settings.paths.task_file, "; ".join(task_errors))

    label_mode = _mode_from_labels(env)
    if label_mode is not None:
        return ModeResolution(label_mode, "pr_labels", task_errors)

    title_mode = _mode_from_title(env)
    if title_mode is not None:
        return ModeResolution(title_mode, "pr_title", task_errors)

    return ModeResolution(DeliveryMode.FUNCTIONAL, "default", task_errors)


__all__ = ["DeliveryMode", "ModeResolution", "resolve_mode", "read_task_mode", "MODE_ENV"]
