"""Structured manifest rendering.

Objects become mappings (entries in descending name order), arrays become
lists and typed arrays are moved out of the document into a binary payload;
the document keeps only their type/size/offset/count.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List
import json
import math

import yaml

from ..errors import scene_error, typed_array_encoding
from ..values import ElementKind, Value, ValueKind, sorted_entries

__all__ = [
    "MANIFEST_FORMATS",
    "BufferView",
    "RenderedManifest",
    "check_typed_array",
    "render_manifest",
    "dump_manifest",
]

MANIFEST_FORMATS = ("json", "yaml")


@dataclass(slots=True)
class BufferView:
    path: str
    element: ElementKind
    offset: int
    size: int  # bytes
    count: int


@dataclass(slots=True)
class RenderedManifest:
    document: Any
    payload: bytes
    views: List[BufferView] = field(default_factory=list)

    def view(self, path: str) -> BufferView:
        for v in self.views:
            if v.path == path:
                return v
        raise KeyError(path)


def check_typed_array(node: Value, path: str) -> int:
    """Element count of a typed array; rejects partial trailing elements."""
    assert node.element is not None
    size = node.element.size
    if len(node.data) % size:
        raise typed_array_encoding(
            f"Typed array at '{path}' has {len(node.data)} bytes, not a "
            f"multiple of {node.element.value} ({size} bytes)",
            {
                "path": path,
                "element": node.element.value,
                "byte_length": len(node.data),
            },
        )
    return len(node.data) // size


class _State:
    def __init__(self) -> None:
        self.payload = bytearray()
        self.views: List[BufferView] = []


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _render_scalar(state: _State, node: Value, path: str) -> Any:
    return node.data


def _render_float(state: _State, node: Value, path: str) -> Any:
    if not math.isfinite(node.data):
        raise scene_error(
            f"Non-finite value {node.data!r} at '{path}' cannot be written to a manifest",
            {"path": path, "value": repr(node.data)},
        )
    return node.data


def _render_typed_array(state: _State, node: Value, path: str) -> Any:
    count = check_typed_array(node, path)
    element = node.element
    assert element is not None
    state.payload.extend(b"\x00" * (-len(state.payload) % element.size))
    offset = len(state.payload)
    state.payload.extend(node.data)
    state.views.append(
        BufferView(path, element, offset, len(node.data), count)
    )
    return {
        "type": element.value,
        "size": len(node.data),
        "offset": offset,
        "count": count,
    }


def _render_object(state: _State, node: Value, path: str) -> Any:
    return {
        key: _render(state, child, _join(path, key))
        for key, child in sorted_entries(node)
    }


def _render_array(state: _State, node: Value, path: str) -> Any:
    return [
        _render(state, child, f"{path}[{i}]") for i, child in enumerate(node.data)
    ]


_RENDERERS: Dict[ValueKind, Callable[[_State, Value, str], Any]] = {
    ValueKind.NULL: _render_scalar,
    ValueKind.STRING: _render_scalar,
    ValueKind.INTEGER: _render_scalar,
    ValueKind.FLOAT: _render_float,
    ValueKind.TYPED_ARRAY: _render_typed_array,
    ValueKind.OBJECT: _render_object,
    ValueKind.ARRAY: _render_array,
}


def _render(state: _State, node: Value, path: str) -> Any:
    return _RENDERERS[node.kind](state, node, path)


def render_manifest(tree: Value) -> RenderedManifest:
    state = _State()
    document = _render(state, tree, "")
    return RenderedManifest(document, bytes(state.payload), state.views)


def dump_manifest(document: Any, fmt: str = "json") -> str:
    """Manifest text; key order of the document is preserved."""
    if fmt == "json":
        return json.dumps(document, indent=4, allow_nan=False) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(document, sort_keys=False, default_flow_style=False)
    raise ValueError(f"Unknown manifest format: {fmt}")
