"""Prove core library: configuration, git access, TDD tracking, checks and the runner."""

from . import exceptions  # noqa: F401

__all__ = ["exceptions"]
