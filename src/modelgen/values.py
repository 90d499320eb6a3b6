"""Tagged value tree all manifest and source output is rendered from.

A :class:`Value` is one of a closed set of kinds. Objects keep insertion
order for iteration; renderers visit their entries in descending name order.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

from .errors import Diagnostic, Diagnostics, W_NAME_COLLISION
from .logging import get_logger

__all__ = [
    "ValueKind",
    "ElementKind",
    "Value",
    "null",
    "string",
    "integer",
    "real",
    "typed_array",
    "array",
    "obj",
    "put",
    "append",
    "from_python",
    "sorted_entries",
]


class ValueKind(Enum):
    NULL = "null"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    TYPED_ARRAY = "typed_array"
    OBJECT = "object"
    ARRAY = "array"


class ElementKind(Enum):
    INT8 = "int8"
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    INT32 = "int32"
    UINT32 = "uint32"
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(_ELEMENT_DTYPES[self])

    @property
    def size(self) -> int:
        return self.dtype.itemsize

    @property
    def constructor(self) -> str:
        return _ELEMENT_CONSTRUCTORS[self]

    @classmethod
    def for_dtype(cls, dtype: Any) -> "ElementKind":
        dt = np.dtype(dtype).newbyteorder("<")
        for kind, code in _ELEMENT_DTYPES.items():
            if np.dtype(code) == dt:
                return kind
        raise ValueError(f"No typed-array element kind for dtype {dtype}")

    @classmethod
    def for_index_width(cls, width: int) -> "ElementKind":
        return {1: cls.UINT8, 2: cls.UINT16, 4: cls.UINT32}[width]


_ELEMENT_DTYPES = {
    ElementKind.INT8: "<i1",
    ElementKind.UINT8: "<u1",
    ElementKind.INT16: "<i2",
    ElementKind.UINT16: "<u2",
    ElementKind.INT32: "<i4",
    ElementKind.UINT32: "<u4",
    ElementKind.FLOAT32: "<f4",
    ElementKind.FLOAT64: "<f8",
}

_ELEMENT_CONSTRUCTORS = {
    ElementKind.INT8: "Int8Array",
    ElementKind.UINT8: "Uint8Array",
    ElementKind.INT16: "Int16Array",
    ElementKind.UINT16: "Uint16Array",
    ElementKind.INT32: "Int32Array",
    ElementKind.UINT32: "Uint32Array",
    ElementKind.FLOAT32: "Float32Array",
    ElementKind.FLOAT64: "Float64Array",
}


@dataclass(slots=True)
class Value:
    """One node of the tree.

    ``data`` holds: None (NULL), str, int, float, bytes (TYPED_ARRAY),
    dict[str, Value] (OBJECT) or list[Value] (ARRAY). ``element`` is only
    set for typed arrays.
    """

    kind: ValueKind
    data: Any = None
    element: Optional[ElementKind] = None

    def __getitem__(self, key):
        if self.kind in (ValueKind.OBJECT, ValueKind.ARRAY):
            return self.data[key]
        raise TypeError(f"{self.kind.value} value is not subscriptable")


def null() -> Value:
    return Value(ValueKind.NULL)


def string(text: str) -> Value:
    return Value(ValueKind.STRING, str(text))


def integer(number: int) -> Value:
    return Value(ValueKind.INTEGER, int(number))


def real(number: float) -> Value:
    return Value(ValueKind.FLOAT, float(number))


def typed_array(element: ElementKind, data: bytes) -> Value:
    # Byte length is validated by the renderers.
    return Value(ValueKind.TYPED_ARRAY, bytes(data), element)


def array(items: Iterable[Value] = ()) -> Value:
    return Value(ValueKind.ARRAY, list(items))


def obj() -> Value:
    return Value(ValueKind.OBJECT, {})


def put(
    target: Value,
    name: str,
    value: Value,
    diagnostics: Optional[Diagnostics] = None,
) -> bool:
    """Insert ``value`` under ``name``; returns True if it evicted an entry.

    Collisions are appended to ``diagnostics``, or logged as warnings when
    no collector is given.
    """
    if target.kind is not ValueKind.OBJECT:
        raise TypeError(f"put() needs an object value, got {target.kind.value}")
    entries: Dict[str, Value] = target.data
    collided = name in entries
    if collided:
        diag = Diagnostic(
            W_NAME_COLLISION,
            f"Duplicate name '{name}': previous entry replaced",
            {"name": name},
        )
        if diagnostics is not None:
            diagnostics.append(diag)
        else:
            get_logger().warning("%s: %s", diag.code, diag.message)
        del entries[name]
    entries[name] = value
    return collided


def append(target: Value, value: Value) -> None:
    if target.kind is not ValueKind.ARRAY:
        raise TypeError(
            f"append() needs an array value, got {target.kind.value}"
        )
    target.data.append(value)


def from_python(data: Any, diagnostics: Optional[Diagnostics] = None) -> Value:
    """Convert plain Python / numpy data into a value tree."""
    if isinstance(data, Value):
        return data
    if data is None:
        return null()
    if isinstance(data, bool):
        return integer(int(data))
    if isinstance(data, (int, np.integer)):
        return integer(int(data))
    if isinstance(data, (float, np.floating)):
        return real(float(data))
    if isinstance(data, str):
        return string(data)
    if isinstance(data, np.ndarray):
        arr = np.ascontiguousarray(data)
        element = ElementKind.for_dtype(arr.dtype)
        return typed_array(element, arr.astype(element.dtype).tobytes())
    if isinstance(data, dict):
        node = obj()
        for key, item in data.items():
            put(node, str(key), from_python(item, diagnostics), diagnostics)
        return node
    if isinstance(data, (list, tuple)):
        return array(from_python(item, diagnostics) for item in data)
    raise TypeError(f"Cannot convert {type(data).__name__} to a value")


def sorted_entries(node: Value) -> List[Tuple[str, Value]]:
    """Object entries in render order (descending by name)."""
    return sorted(node.data.items(), key=lambda kv: kv[0], reverse=True)

