"""Read-only scene records handed to the compiler by a scene loader."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

IDENTITY_TRANSFORM: Tuple[float, ...] = (
    1.0, 0.0, 0.0, 0.0,
    0.0, 1.0, 0.0, 0.0,
    0.0, 0.0, 1.0, 0.0,
    0.0, 0.0, 0.0, 1.0,
)  # fmt: skip


@dataclass(slots=True)
class LayoutFlags:
    positions: bool = False
    normals: bool = False
    tangents: bool = False  # tangent + bitangent pair
    uv0: bool = False
    color0: bool = False


@dataclass(slots=True)
class SceneMesh:
    name: str
    faces: np.ndarray  # (F, 3) local vertex indices
    material: int = 0
    positions: Optional[np.ndarray] = None
    normals: Optional[np.ndarray] = None
    tangents: Optional[np.ndarray] = None
    bitangents: Optional[np.ndarray] = None
    uv0: Optional[np.ndarray] = None
    color0: Optional[np.ndarray] = None

    @property
    def vertex_count(self) -> int:
        for arr in self.attribute_arrays().values():
            return int(arr.shape[0])
        return 0

    def attribute_arrays(self) -> Dict[str, np.ndarray]:
        arrays = {
            "positions": self.positions,
            "normals": self.normals,
            "tangents": self.tangents,
            "bitangents": self.bitangents,
            "uv0": self.uv0,
            "color0": self.color0,
        }
        return {k: v for k, v in arrays.items() if v is not None}

    @property
    def face_count(self) -> int:
        return int(self.faces.shape[0])

    def flags(self) -> LayoutFlags:
        return LayoutFlags(
            positions=self.positions is not None,
            normals=self.normals is not None,
            tangents=self.tangents is not None and self.bitangents is not None,
            uv0=self.uv0 is not None,
            color0=self.color0 is not None,
        )


Color = Tuple[float, float, float]


@dataclass(slots=True)
class SceneMaterial:
    name: str
    # Numeric source shading-mode code or a mode name.
    shading: Union[int, str, None] = None
    colors: Dict[str, Color] = field(default_factory=dict)
    scalars: Dict[str, float] = field(default_factory=dict)
    # slot name (optionally index-suffixed, e.g. "diffuse1") -> path
    textures: Dict[str, str] = field(default_factory=dict)

    def color(self, name: str) -> Optional[Color]:
        return self.colors.get(name)

    def scalar(self, name: str) -> Optional[float]:
        return self.scalars.get(name)

    def texture(self, slot: str, index: int = 0) -> Optional[str]:
        key = slot if index == 0 else f"{slot}{index}"
        path = self.textures.get(key)
        return path or None


@dataclass(slots=True)
class SceneNode:
    name: str
    transform: Sequence[float] = IDENTITY_TRANSFORM  # row-major 4x4
    meshes: List[int] = field(default_factory=list)
    children: List["SceneNode"] = field(default_factory=list)

    def walk(self) -> Iterator["SceneNode"]:
        """Depth-first, parent before children."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(slots=True)
class Scene:
    name: str
    meshes: List[SceneMesh] = field(default_factory=list)
    materials: List[SceneMaterial] = field(default_factory=list)
    root: Optional[SceneNode] = None
