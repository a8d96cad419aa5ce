"""
apps.console.services.field_types
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Structural classification of JSON values into editor field kinds, and the
key -> label transform used for every field and tab title.

This module is **pure Python** with no Django imports.

Public API
----------
FieldKind                 – closed set of editor field kinds
classify(key, value)      – pure classification function
empty_default(kind)       – value used when a path is absent
humanize_key(key)         – deterministic label for a JSON key
has_template_variable(v)  – True for strings containing ``{{ ... }}``
"""
from __future__ import annotations

import enum
import re

#: Substrings of a key name that make a string field multi-line.
LONG_TEXT_HINTS: tuple[str, ...] = ("desc", "description", "message", "body", "text")

#: Strings longer than this are always multi-line.
LONG_TEXT_MIN_LENGTH = 100

_SEPARATORS = re.compile(r"[_-]")
_CASE_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_WORD_START = re.compile(r"\b\w")
_TEMPLATE_VARIABLE = re.compile(r"\{\{.*?\}\}")

#: Whole-word corrections applied after capitalisation.
_LABEL_CORRECTIONS: tuple[tuple[re.Pattern, str], ...] = tuple(
    (re.compile(rf"\b{word}\b"), replacement)
    for word, replacement in (
        ("Id", "ID"),
        ("Url", "URL"),
        ("Cta", "CTA"),
        ("Faq", "FAQ"),
    )
)


class FieldKind(str, enum.Enum):
    """The editor widget family a JSON value maps to."""

    BOOL = "bool"
    NUMBER = "number"
    TEXT = "text"
    LONG_TEXT = "long_text"
    ARRAY = "array"
    OBJECT = "object"


_EMPTY_DEFAULTS = {
    FieldKind.BOOL: False,
    FieldKind.NUMBER: 0,
    FieldKind.TEXT: "",
    FieldKind.LONG_TEXT: "",
    FieldKind.ARRAY: list,
    FieldKind.OBJECT: dict,
}


def classify(key: str | int | None, value: object) -> FieldKind:
    """
    Return the :class:`FieldKind` for *value* stored under *key*.

    ``bool`` is tested before numbers because it is a subclass of ``int``.
    ``None`` (an absent or null value) is treated as empty text.

    Raises:
        TypeError: *value* is not a JSON-compatible type.
    """
    if isinstance(value, bool):
        return FieldKind.BOOL
    if isinstance(value, (int, float)):
        return FieldKind.NUMBER
    if isinstance(value, list):
        return FieldKind.ARRAY
    if isinstance(value, dict):
        return FieldKind.OBJECT
    if value is None:
        return FieldKind.TEXT
    if isinstance(value, str):
        if is_long_text_key(key) or len(value) > LONG_TEXT_MIN_LENGTH:
            return FieldKind.LONG_TEXT
        return FieldKind.TEXT
    raise TypeError(f"Cannot classify non-JSON value of type {type(value).__name__}.")


def is_long_text_key(key: str | int | None) -> bool:
    """True when the key name suggests prose rather than a short label."""
    if key is None:
        return False
    name = str(key).lower()
    return any(hint in name for hint in LONG_TEXT_HINTS)


def empty_default(kind: FieldKind):
    """Return a fresh empty value for *kind* (``""``, ``0``, ``False``, ``[]``, ``{}``)."""
    default = _EMPTY_DEFAULTS[kind]
    return default() if callable(default) else default


def humanize_key(key: str | int) -> str:
    """
    Turn a JSON key into a display label.

    ``"copy_code_cta"`` -> ``"Copy Code CTA"``,
    ``"appStoreUrl"`` -> ``"App Store URL"``.
    """
    label = _SEPARATORS.sub(" ", str(key))
    label = _CASE_BOUNDARY.sub(r"\1 \2", label)
    label = _WORD_START.sub(lambda m: m.group(0).upper(), label)
    for pattern, replacement in _LABEL_CORRECTIONS:
        label = pattern.sub(replacement, label)
    return label


def has_template_variable(value: object) -> bool:
    """True for strings carrying a ``{{placeholder}}`` substituted at runtime."""
    return isinstance(value, str) and bool(_TEMPLATE_VARIABLE.search(value))
