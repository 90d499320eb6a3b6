"""Source-literal rendering.

Produces literal text that can be pasted into generated script source,
e.g.::

    const crate = {
      vertices: new Float32Array([0, 0, 0, 1, 0, 0]),
      name: "crate",
    };
"""

from __future__ import annotations
from typing import Callable, Dict
import json
import math
import re

import numpy as np

from ..errors import invalid_name
from ..values import ElementKind, Value, ValueKind, sorted_entries
from .manifest import check_typed_array

__all__ = ["check_name", "render_source", "render_source_module"]

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
# Whitespace, control characters, quotes and backslashes.
_DISALLOWED = re.compile(r"[\s\x00-\x1f\x7f\"'`\\]")

_FLOAT_KINDS = (ElementKind.FLOAT32, ElementKind.FLOAT64)


def check_name(name: str, path: str = "") -> str:
    if not name or _DISALLOWED.search(name):
        raise invalid_name(
            f"Name {name!r} at '{path or '<root>'}' cannot be used in source output",
            {"name": name, "path": path},
        )
    return name


def _key(name: str, path: str) -> str:
    check_name(name, path)
    return name if _IDENTIFIER.match(name) else json.dumps(name)


def _float_text(value) -> str:
    # numpy scalars print the shortest text that round-trips at their width
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return str(value)


def _render_null(node: Value, path: str, depth: int, indent: int) -> str:
    return "null"


def _render_string(node: Value, path: str, depth: int, indent: int) -> str:
    return json.dumps(node.data)


def _render_integer(node: Value, path: str, depth: int, indent: int) -> str:
    return str(int(node.data))


def _render_float(node: Value, path: str, depth: int, indent: int) -> str:
    return _float_text(float(node.data))


def _render_typed_array(node: Value, path: str, depth: int, indent: int) -> str:
    check_typed_array(node, path)
    element = node.element
    assert element is not None
    values = np.frombuffer(node.data, dtype=element.dtype)
    if element in _FLOAT_KINDS:
        items = [_float_text(v) for v in values]
    else:
        items = [str(int(v)) for v in values]
    return f"new {element.constructor}([{', '.join(items)}])"


def _block(open_: str, close: str, lines, depth: int, indent: int) -> str:
    if not lines:
        return open_ + close
    pad = " " * (indent * (depth + 1))
    body = "".join(f"{pad}{line},\n" for line in lines)
    return f"{open_}\n{body}{' ' * (indent * depth)}{close}"


def _render_object(node: Value, path: str, depth: int, indent: int) -> str:
    lines = []
    for key, child in sorted_entries(node):
        child_path = f"{path}.{key}" if path else key
        text = _render(child, child_path, depth + 1, indent)
        lines.append(f"{_key(key, child_path)}: {text}")
    return _block("{", "}", lines, depth, indent)


def _render_array(node: Value, path: str, depth: int, indent: int) -> str:
    lines = [
        _render(child, f"{path}[{i}]", depth + 1, indent)
        for i, child in enumerate(node.data)
    ]
    return _block("[", "]", lines, depth, indent)


_RENDERERS: Dict[ValueKind, Callable[[Value, str, int, int], str]] = {
    ValueKind.NULL: _render_null,
    ValueKind.STRING: _render_string,
    ValueKind.INTEGER: _render_integer,
    ValueKind.FLOAT: _render_float,
    ValueKind.TYPED_ARRAY: _render_typed_array,
    ValueKind.OBJECT: _render_object,
    ValueKind.ARRAY: _render_array,
}


def _render(node: Value, path: str, depth: int, indent: int) -> str:
    return _RENDERERS[node.kind](node, path, depth, indent)


def render_source(tree: Value, *, indent: int = 2) -> str:
    return _render(tree, "", 0, indent)


def render_source_module(name: str, tree: Value, *, indent: int = 2) -> str:
    """``const <name> = <literal>;`` for embedding in generated source."""
    if not _IDENTIFIER.match(name or ""):
        raise invalid_name(
            f"{name!r} is not a valid source identifier", {"name": name}
        )
    return f"const {name} = {render_source(tree, indent=indent)};\n"
