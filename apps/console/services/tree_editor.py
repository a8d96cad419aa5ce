"""
apps.console.services.tree_editor
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Schema-less form engine for arbitrary nested JSON.

:func:`render` walks a JSON value and produces a :class:`FormNode` tree that a
front-end turns into widgets; :func:`apply_edit` writes a new value at an
:data:`EditPath` and returns a modified **copy** of the root.

An edit path is a dot-delimited sequence of mapping keys and list indices,
e.g. ``"hero.title"`` or ``"benefits.0.desc"``.  The empty path addresses the
root itself.

Nothing here touches the database or the request cycle.  Inputs are never
mutated.

Public API
----------
render(value, path, *, key, locked, depth) -> FormNode
apply_edit(root, path, new_value) -> new root
read_path(root, path, default) -> value at path
parse_path(path) / join_path(*parts)
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from common.exceptions import ValidationError
from .field_types import (
    FieldKind,
    classify,
    empty_default,
    has_template_variable,
    humanize_key,
)

PATH_SEPARATOR = "."

#: Widget rendered for each field kind.  Must cover every FieldKind member.
WIDGETS: dict[FieldKind, str] = {
    FieldKind.BOOL: "checkbox",
    FieldKind.NUMBER: "number",
    FieldKind.TEXT: "text",
    FieldKind.LONG_TEXT: "textarea",
    FieldKind.ARRAY: "list",
    FieldKind.OBJECT: "section",
}


class EditPathError(ValidationError):
    """The edit path cannot be resolved against the tree."""

    default_code = "invalid_edit_path"
    default_detail = "The edit path does not address a writable location."


# ---------------------------------------------------------------------------
# Form tree
# ---------------------------------------------------------------------------

@dataclass
class FormNode:
    """
    One rendered field.

    Leaves (checkbox, number, text, textarea) carry ``value``; containers
    (list, section) carry ``children`` instead.  ``depth`` is the nesting
    level of sections and drives indentation.
    """

    path: str
    key: str | int | None
    label: str
    kind: FieldKind
    widget: str
    value: Any = None
    disabled: bool = False
    depth: int = 0
    templated: bool = False
    children: list[FormNode] = field(default_factory=list)

    @property
    def is_container(self) -> bool:
        return self.kind in (FieldKind.ARRAY, FieldKind.OBJECT)

    def iter_leaves(self):
        """Yield every leaf node below (and including) this one, depth-first."""
        if not self.is_container:
            yield self
            return
        for child in self.children:
            yield from child.iter_leaves()

    def to_dict(self) -> dict:
        data = {
            "path": self.path,
            "key": self.key,
            "label": self.label,
            "kind": self.kind.value,
            "widget": self.widget,
            "disabled": self.disabled,
            "depth": self.depth,
        }
        if self.is_container:
            data["children"] = [child.to_dict() for child in self.children]
        else:
            data["value"] = self.value
            data["templated"] = self.templated
        return data


def render(
    value: Any,
    path: str = "",
    *,
    key: str | int | None = None,
    locked: bool = False,
    depth: int = 0,
) -> FormNode:
    """
    Render *value* (found at *path*) as a form tree.

    Args:
        value: Any JSON value.  ``None`` renders as an empty text field.
        path: Edit path of *value* inside its root; children extend it.
        key: Key of *value* in its parent, used for the label and the
            long-text heuristic.  Defaults to the last path segment.
        locked: Disable every control.  The tree shape is unaffected.
        depth: Nesting level of *value*.
    """
    if key is None:
        segments = parse_path(path)
        if segments:
            key = int(segments[-1]) if segments[-1].isdigit() else segments[-1]
    return _render_node(value, path, key, _label_for(key), locked, depth, hint_key=key)


def _render_node(value, path, key, label, locked, depth, *, hint_key) -> FormNode:
    kind = classify(hint_key, value)
    if value is None:
        value = empty_default(kind)

    node = FormNode(
        path=path,
        key=key,
        label=label,
        kind=kind,
        widget=WIDGETS[kind],
        disabled=locked,
        depth=depth,
    )

    if kind is FieldKind.OBJECT:
        for child_key, child_value in value.items():
            node.children.append(
                _render_node(
                    child_value,
                    join_path(path, child_key),
                    child_key,
                    _label_for(child_key),
                    locked,
                    depth + 1,
                    hint_key=child_key,
                )
            )
    elif kind is FieldKind.ARRAY:
        # Items inherit the list's key for the long-text heuristic.
        for index, item in enumerate(value):
            node.children.append(
                _render_node(
                    item,
                    join_path(path, index),
                    index,
                    _label_for(index),
                    locked,
                    depth + 1,
                    hint_key=key,
                )
            )
    else:
        node.value = value
        node.templated = has_template_variable(value)
    return node


def _label_for(key: str | int | None) -> str:
    if key is None:
        return ""
    if isinstance(key, int):
        return f"Item {key + 1}"
    return humanize_key(key)


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

def parse_path(path: str) -> list[str]:
    """Split an edit path into its segments.  ``""`` -> ``[]``."""
    if not path:
        return []
    return path.split(PATH_SEPARATOR)


def join_path(*parts: str | int | None) -> str:
    """Join path fragments, skipping empty ones.  ``join_path("", "a", 0)`` -> ``"a.0"``."""
    return PATH_SEPARATOR.join(
        str(part) for part in parts if part is not None and part != ""
    )


def read_path(root: Any, path: str, default: Any = None) -> Any:
    """
    Return the value at *path* inside *root*, or *default* when any segment
    is absent.  The returned value is not copied.
    """
    node = root
    for segment in parse_path(path):
        if isinstance(node, dict):
            if segment not in node:
                return default
            node = node[segment]
        elif isinstance(node, list):
            if not segment.isdigit() or int(segment) >= len(node):
                return default
            node = node[int(segment)]
        else:
            return default
    return node


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------

def apply_edit(root: Any, path: str, new_value: Any) -> Any:
    """
    Return a deep copy of *root* with *new_value* written at *path*.

    Missing intermediate mappings are created.  A list index equal to the
    list's length appends.  *root* and *new_value* are never aliased by the
    result.

    Raises:
        EditPathError: The path walks through a scalar, or uses a
            non-integer or out-of-range index on a list.
    """
    segments = parse_path(path)
    if not segments:
        return copy.deepcopy(new_value)

    new_root = {} if root is None else copy.deepcopy(root)
    node = new_root
    for segment in segments[:-1]:
        node = _descend(node, segment, path)
    _assign(node, segments[-1], copy.deepcopy(new_value), path)
    return new_root


def _descend(node: Any, segment: str, path: str) -> Any:
    if isinstance(node, dict):
        if node.get(segment) is None:
            node[segment] = {}
        child = node[segment]
    elif isinstance(node, list):
        index = _list_index(node, segment, path)
        if index == len(node):
            node.append({})
        child = node[index]
    else:
        raise EditPathError(f"Cannot descend into a scalar at '{segment}' of '{path}'.")

    if not isinstance(child, (dict, list)):
        raise EditPathError(f"Cannot descend into a scalar at '{segment}' of '{path}'.")
    return child


def _assign(node: Any, segment: str, value: Any, path: str) -> None:
    if isinstance(node, dict):
        node[segment] = value
    elif isinstance(node, list):
        index = _list_index(node, segment, path)
        if index == len(node):
            node.append(value)
        else:
            node[index] = value
    else:
        raise EditPathError(f"Cannot assign '{segment}' on a scalar in '{path}'.")


def _list_index(node: list, segment: str, path: str) -> int:
    if not segment.isdigit():
        raise EditPathError(f"'{segment}' is not a list index in '{path}'.")
    index = int(segment)
    if index > len(node):
        raise EditPathError(
            f"Index {index} is out of range for a list of {len(node)} in '{path}'."
        )
    return index
