"""Output formatting for Prove CLI commands (JSON or text)."""
from __future__ import annotations

import json
import sys
from typing import Any, Dict, Optional


class OutputFormatter:
    """Print command results either as JSON (stdout) or human text."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        self.json_mode = json_mode
        self.indent = indent

    def success(self, data: Dict[str, Any], message: str, *, status: str = "success") -> None:
        """Print ``data`` in JSON mode, ``message`` otherwise."""
        if self.json_mode:
            print(json.dumps({"status": status, **data}, indent=self.indent, default=str, ensure_ascii=False))
        else:
            print(message)

    def error(self, error: Exception | str, message: Optional[str] = None, *, error_code: str = "error") -> None:
        """Print an error to stderr."""
        msg = message or str(error)
        if self.json_mode:
            to_json = getattr(error, "to_json_error", None)
            payload: Dict[str, Any] = to_json() if callable(to_json) else {"message": msg, "code": error_code}
            print(json.dumps(payload, indent=self.indent, default=str), file=sys.stderr)
        else:
            print(f"Error: {msg}", file=sys.stderr)

    def json_output(self, data: Any) -> None:
        print(json.dumps(data, indent=self.indent, default=str, ensure_ascii=False))

    def text(self, message: str) -> None:
        if not self.json_mode:
            print(message)


__all__ = ["OutputFormatter"]
