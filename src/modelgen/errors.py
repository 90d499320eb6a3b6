"""Error and diagnostic definitions for modelgen.

Fatal conditions are raised as :class:`ModelError` subclasses and abort the
compilation of the current model. Recoverable anomalies are collected as
:class:`Diagnostic` records and handed back to the caller.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

E_LAYOUT_MISMATCH = "E_LAYOUT_MISMATCH"
E_INDEX_OVERFLOW = "E_INDEX_OVERFLOW"
E_INVALID_NAME = "E_INVALID_NAME"
E_TYPED_ARRAY_ENCODING = "E_TYPED_ARRAY_ENCODING"
E_SCENE = "E_SCENE"
E_INTERNAL = "E_INTERNAL"

W_NAME_COLLISION = "W_NAME_COLLISION"
W_UNKNOWN_TEXTURE_SLOT = "W_UNKNOWN_TEXTURE_SLOT"


@dataclass
class ModelError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class LayoutMismatchError(ModelError):
    pass


class IndexOverflowError(ModelError):
    pass


class InvalidNameError(ModelError):
    pass


class UnsupportedTypedArrayEncodingError(ModelError):
    pass


class SceneError(ModelError):
    pass


@dataclass(slots=True)
class Diagnostic:
    """Non-fatal anomaly; never changes the emitted output."""

    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


Diagnostics = List[Diagnostic]


def layout_mismatch(
    message: str, context: Optional[Dict[str, Any]] = None
) -> LayoutMismatchError:
    return LayoutMismatchError(
        code=E_LAYOUT_MISMATCH, message=message, context=context
    )


def index_overflow(
    message: str, context: Optional[Dict[str, Any]] = None
) -> IndexOverflowError:
    return IndexOverflowError(
        code=E_INDEX_OVERFLOW, message=message, context=context
    )


def invalid_name(
    message: str, context: Optional[Dict[str, Any]] = None
) -> InvalidNameError:
    return InvalidNameError(code=E_INVALID_NAME, message=message, context=context)


def typed_array_encoding(
    message: str, context: Optional[Dict[str, Any]] = None
) -> UnsupportedTypedArrayEncodingError:
    return UnsupportedTypedArrayEncodingError(
        code=E_TYPED_ARRAY_ENCODING, message=message, context=context
    )


def scene_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> SceneError:
    return SceneError(code=E_SCENE, message=message, context=context)


def internal_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> ModelError:
    return ModelError(code=E_INTERNAL, message=message, context=context)


__all__ = [
    "ModelError",
    "LayoutMismatchError",
    "IndexOverflowError",
    "InvalidNameError",
    "UnsupportedTypedArrayEncodingError",
    "SceneError",
    "Diagnostic",
    "Diagnostics",
    "layout_mismatch",
    "index_overflow",
    "invalid_name",
    "typed_array_encoding",
    "scene_error",
    "internal_error",
    "E_LAYOUT_MISMATCH",
    "E_INDEX_OVERFLOW",
    "E_INVALID_NAME",
    "E_TYPED_ARRAY_ENCODING",
    "E_SCENE",
    "E_INTERNAL",
    "W_NAME_COLLISION",
    "W_UNKNOWN_TEXTURE_SLOT",
]
