"""Stdlib logging setup for the Prove CLI.

Log records go to stderr (and optionally a file) on the ``prove`` logger only,
so stdout stays reserved for command output and ``--json`` payloads.
"""
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from prove.core.utils.io import ensure_directory

LOGGER_NAME = "prove"
LOG_LEVEL_ENV = "PROVE_LOG_LEVEL"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_installed_handlers: list[logging.Handler] = []


def _level_from_name(name: str, fallback: int) -> int:
    value = logging.getLevelName(str(name).strip().upper())
    return value if isinstance(value, int) else fallback


def resolve_level(*, verbose: bool = False) -> int:
    """Return the effective level: PROVE_LOG_LEVEL, else INFO when verbose, else WARNING."""
    default = logging.INFO if verbose else logging.WARNING
    env_level = os.environ.get(LOG_LEVEL_ENV)
    if env_level:
        return _level_from_name(env_level, default)
    return default


def configure_logging(*, verbose: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    """Configure the ``prove`` logger.

    Idempotent: handlers installed by a previous call are replaced.

    Args:
        verbose: Lower the stderr threshold to INFO.
        log_file: Optional file that receives the same records.

    Returns:
        The configured ``prove`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    reset_logging()

    level = resolve_level(verbose=verbose)
    logger.setLevel(level)
    logger.propagate = False

    formatter = logging.Formatter(_FORMAT)
    stream = logging.StreamHandler(sys.stderr)
    stream.setLevel(level)
    stream.setFormatter(formatter)
    logger.addHandler(stream)
    _installed_handlers.append(stream)

    if log_file is not None:
        path = Path(log_file).expanduser().resolve()
        ensure_directory(path.parent)
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)
        _installed_handlers.append(fh)

    return logger


def reset_logging() -> None:
    """Remove handlers installed by :func:`configure_logging`."""
    logger = logging.getLogger(LOGGER_NAME)
    while _installed_handlers:
        handler = _installed_handlers.pop()
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


__all__ = ["configure_logging", "reset_logging", "resolve_level", "LOGGER_NAME", "LOG_LEVEL_ENV"]
