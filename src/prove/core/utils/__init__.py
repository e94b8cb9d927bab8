"""Shared utilities for Prove core (I/O, subprocess, patterns, paths, time)."""
from __future__ import annotations
