"""Vertex attribute layout planning.

Attributes are laid out in a fixed canonical order, skipping absent kinds.
Offsets are byte offsets into one interleaved float32 vertex; the layout
stride is counted in components.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from ..errors import layout_mismatch
from ..scene.models import LayoutFlags, SceneMesh

__all__ = [
    "COMPONENT_SIZE",
    "Attribute",
    "VertexLayout",
    "plan_layout",
    "plan_model_layout",
]

COMPONENT_SIZE = 4  # float32

# (presence flag, [(attribute name, component count, scene array)])
_CANONICAL_ORDER: Tuple[Tuple[str, Tuple[Tuple[str, int, str], ...]], ...] = (
    ("positions", (("Position", 3, "positions"),)),
    ("normals", (("Normal", 3, "normals"),)),
    (
        "tangents",
        (("Tangent", 3, "tangents"), ("Bitangent", 3, "bitangents")),
    ),
    ("uv0", (("UV0", 2, "uv0"),)),
    ("color0", (("Color0", 4, "color0"),)),
)


@dataclass(frozen=True, slots=True)
class Attribute:
    name: str
    size: int  # components
    offset: int  # bytes from the start of the vertex
    index: int = field(default=0, compare=False)
    source: str = field(default="", compare=False, repr=False)

    @property
    def component_offset(self) -> int:
        return self.offset // COMPONENT_SIZE

    def describe(self) -> str:
        return f"{self.name}@{self.offset}x{self.size}"


@dataclass(frozen=True, slots=True)
class VertexLayout:
    attributes: Tuple[Attribute, ...] = ()
    stride: int = 0  # components per vertex

    @property
    def stride_bytes(self) -> int:
        return self.stride * COMPONENT_SIZE

    def names(self) -> List[str]:
        return [a.name for a in self.attributes]

    def first_difference(
        self, other: "VertexLayout"
    ) -> Optional[Tuple[Optional[Attribute], Optional[Attribute]]]:
        """First (expected, actual) attribute pair that differs, if any."""
        count = max(len(self.attributes), len(other.attributes))
        for i in range(count):
            mine = self.attributes[i] if i < len(self.attributes) else None
            theirs = other.attributes[i] if i < len(other.attributes) else None
            if mine != theirs:
                return mine, theirs
        return None


def plan_layout(flags: LayoutFlags) -> VertexLayout:
    attributes: List[Attribute] = []
    stride = 0
    for flag, kinds in _CANONICAL_ORDER:
        if not getattr(flags, flag):
            continue
        for name, size, source in kinds:
            attributes.append(
                Attribute(
                    name=name,
                    size=size,
                    offset=stride * COMPONENT_SIZE,
                    index=len(attributes),
                    source=source,
                )
            )
            stride += size
    return VertexLayout(tuple(attributes), stride)


def plan_model_layout(meshes: Sequence[SceneMesh] | Iterable[SceneMesh]) -> VertexLayout:
    """Canonical layout of a model: the first mesh's, shared by all others."""
    canonical: Optional[VertexLayout] = None
    for mesh in meshes:
        layout = plan_layout(mesh.flags())
        if canonical is None:
            canonical = layout
            continue
        diff = canonical.first_difference(layout)
        if diff is None:
            continue
        expected, actual = diff
        exp = expected.describe() if expected else "<none>"
        act = actual.describe() if actual else "<none>"
        raise layout_mismatch(
            f"Mesh '{mesh.name}' vertex layout differs from the model layout: "
            f"expected {exp}, found {act}",
            {
                "mesh": mesh.name,
                "attribute": (expected or actual).name,  # type: ignore[union-attr]
                "expected": exp,
                "actual": act,
                "model_layout": canonical.names(),
                "mesh_layout": layout.names(),
            },
        )
    return canonical if canonical is not None else VertexLayout()
