"""Shared schema validation utilities.

Prove validates configuration and its local state files (phase marker,
evidence history, TASK.json) with JSON Schema. Schemas are stored as YAML
files bundled in ``prove.data/schemas/`` and loaded in one consistent way.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from prove.data import read_yaml as read_bundled_yaml


def _normalize_name(schema_name: str) -> str:
    lowered = schema_name.lower()
    if lowered.endswith(".json"):
        raise ValueError(
            f"JSON schemas are not supported: {schema_name}. Use YAML schemas (*.schema.yaml)."
        )
    if not (lowered.endswith(".yaml") or lowered.endswith(".yml")):
        schema_name = f"{schema_name}.yaml"
    return schema_name


def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a bundled schema dict.

    Args:
        schema_name: Schema file name under ``prove/data/schemas``
            (e.g., "tdd-marker.schema.yaml" or "config.schema").

    Returns:
        Parsed schema dictionary (treat as read-only).

    Raises:
        FileNotFoundError: If the schema file doesn't exist.
        ValueError: If the schema is not a YAML mapping.
    """
    schema = read_bundled_yaml("schemas", _normalize_name(schema_name))
    if not schema:
        raise ValueError(f"Schema must be a non-empty YAML mapping: {schema_name}")
    return schema


@lru_cache(maxsize=16)
def _validator(schema_name: str) -> Draft202012Validator:
    schema = load_schema(schema_name)
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def _format_error(error: Any) -> str:
    if error.path:
        path_str = ".".join(str(p) for p in error.path)
        return f"{path_str}: {error.message}"
    return str(error.message)


def validate_payload_safe(payload: Any, schema_name: str) -> List[str]:
    """Validate a payload and return error messages (empty if valid).

    Never raises for invalid payloads. A broken bundled schema is reported
    as a single error message.
    """
    try:
        validator = _validator(_normalize_name(schema_name))
    except (FileNotFoundError, ValueError, SchemaError) as exc:
        return [f"Schema loading failed: {exc}"]

    errors = sorted(validator.iter_errors(payload), key=lambda e: [str(p) for p in e.path])
    return [_format_error(e) for e in errors]


__all__ = [
    "load_schema",
    "validate_payload_safe",
]
