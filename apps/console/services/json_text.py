"""
apps.console.services.json_text
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Parsing of hand-typed JSON from the console's raw JSON mode.

Invalid text is reported with a line/column diagnostic instead of raising,
so the caller can keep the text on screen without committing it.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class JsonParseResult:
    valid: bool
    value: Any = None
    error: str | None = None
    line: int | None = None
    column: int | None = None

    @property
    def diagnostic(self) -> str | None:
        """Human-readable message, e.g. ``"Expecting ',' delimiter (line 3, column 5)"``."""
        if self.valid:
            return None
        return f"{self.error} (line {self.line}, column {self.column})"


def parse_json_text(text: str) -> JsonParseResult:
    try:
        value = json.loads(text)
    except json.JSONDecodeError as exc:
        return JsonParseResult(
            valid=False,
            error=exc.msg,
            line=exc.lineno,
            column=exc.colno,
        )
    return JsonParseResult(valid=True, value=value)


def format_json(value: Any) -> str:
    """Pretty-print *value* the way the JSON editor displays it."""
    return json.dumps(value, indent=2, ensure_ascii=False)
