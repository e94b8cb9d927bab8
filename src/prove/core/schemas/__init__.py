"""Bundled JSON Schemas (stored as YAML) and the validator used for config and local state."""
from __future__ import annotations

from .validation import load_schema, validate_payload_safe

__all__ = ["load_schema", "validate_payload_safe"]
