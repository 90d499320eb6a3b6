"""Vertex/index buffer compilation.

All meshes of a model share one interleaved float32 vertex buffer and one
index buffer. Face indices are remapped to global indices by adding the
mesh's first vertex (cumulative vertex count of the meshes written before
it) and encoded at a single model-wide width chosen from the final merged
vertex count.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

import numpy as np

from ..errors import index_overflow, internal_error, scene_error
from ..scene.models import SceneMesh
from .layout import VertexLayout

__all__ = [
    "INDEX_LIMITS",
    "index_width",
    "MeshRange",
    "CompiledBuffers",
    "BufferBuilder",
    "interleave",
    "write_vertices",
    "write_indices",
    "compile_buffers",
]

INDEX_LIMITS = {1: 0xFF, 2: 0xFFFF, 4: 0xFFFFFFFF}
_INDEX_DTYPES = {1: np.dtype("<u1"), 2: np.dtype("<u2"), 4: np.dtype("<u4")}
_VERTEX_DTYPE = np.dtype("<f4")


def index_width(vertex_count: int) -> int:
    """Bytes per index able to address ``vertex_count`` merged vertices."""
    if vertex_count <= INDEX_LIMITS[1]:
        return 1
    if vertex_count <= INDEX_LIMITS[2]:
        return 2
    return 4


@dataclass(slots=True)
class MeshRange:
    name: str
    first_vertex: int
    vertex_count: int
    index_offset: int  # bytes into the index section
    index_count: int


@dataclass(slots=True)
class CompiledBuffers:
    vertices: bytes
    indices: bytes
    vertex_count: int
    index_count: int
    index_width: int
    stride: int
    meshes: List[MeshRange] = field(default_factory=list)

    def vertex_array(self) -> np.ndarray:
        return np.frombuffer(self.vertices, dtype=_VERTEX_DTYPE).reshape(
            (self.vertex_count, self.stride)
        )

    def index_array(self) -> np.ndarray:
        return np.frombuffer(self.indices, dtype=_INDEX_DTYPES[self.index_width])


class BufferBuilder:
    """Accumulates vertex and index data for one model."""

    def __init__(self, layout: VertexLayout, index_width: int):
        if index_width not in INDEX_LIMITS:
            raise ValueError(f"Unsupported index width: {index_width}")
        self.layout = layout
        self.index_width = index_width
        self.vertex_count = 0
        self.index_count = 0
        self._vertex_chunks: List[np.ndarray] = []
        self._index_chunks: List[bytes] = []

    @property
    def index_bytes_written(self) -> int:
        return self.index_count * self.index_width

    def vertex_bytes(self) -> bytes:
        if not self._vertex_chunks:
            return b""
        return np.concatenate(self._vertex_chunks).astype(_VERTEX_DTYPE).tobytes()

    def index_bytes(self) -> bytes:
        return b"".join(self._index_chunks)

    def finish(self, meshes: List[MeshRange]) -> CompiledBuffers:
        return CompiledBuffers(
            vertices=self.vertex_bytes(),
            indices=self.index_bytes(),
            vertex_count=self.vertex_count,
            index_count=self.index_count,
            index_width=self.index_width,
            stride=self.layout.stride,
            meshes=meshes,
        )


def interleave(mesh: SceneMesh, layout: VertexLayout) -> np.ndarray:
    """(vertex_count, stride) float32 array of the mesh's vertices."""
    count = mesh.vertex_count
    out = np.zeros((count, layout.stride), dtype=_VERTEX_DTYPE)
    arrays = mesh.attribute_arrays()
    for attr in layout.attributes:
        data = arrays.get(attr.source)
        if data is None or data.shape != (count, attr.size):
            raise scene_error(
                f"Mesh '{mesh.name}': attribute {attr.name} must be "
                f"{count}x{attr.size}",
                {
                    "mesh": mesh.name,
                    "attribute": attr.name,
                    "shape": None if data is None else list(data.shape),
                },
            )
        start = attr.component_offset
        out[:, start : start + attr.size] = data
    return out


def write_vertices(builder: BufferBuilder, mesh: SceneMesh) -> int:
    """Append a mesh's vertices; returns its first (global) vertex."""
    first = builder.vertex_count
    chunk = interleave(mesh, builder.layout)
    builder._vertex_chunks.append(chunk)
    builder.vertex_count += chunk.shape[0]
    return first


def write_indices(builder: BufferBuilder, mesh: SceneMesh, base_vertex: int) -> int:
    """Append a mesh's faces as global indices; returns the byte offset."""
    faces = np.asarray(mesh.faces, dtype=np.int64)
    if faces.size and (faces.ndim != 2 or faces.shape[1] != 3):
        raise scene_error(
            f"Mesh '{mesh.name}': faces must be index triples",
            {"mesh": mesh.name, "shape": list(faces.shape)},
        )
    local = faces.reshape(-1)
    vcount = mesh.vertex_count
    if local.size and (local.min() < 0 or local.max() >= vcount):
        raise scene_error(
            f"Mesh '{mesh.name}': face index out of range [0, {vcount})",
            {
                "mesh": mesh.name,
                "min": int(local.min()),
                "max": int(local.max()),
                "vertex_count": vcount,
            },
        )
    global_indices = local + base_vertex
    limit = INDEX_LIMITS[builder.index_width]
    if global_indices.size and int(global_indices.max()) > limit:
        raise index_overflow(
            f"Mesh '{mesh.name}': global index {int(global_indices.max())} "
            f"does not fit {builder.index_width}-byte indices (max {limit})",
            {
                "mesh": mesh.name,
                "index_width": builder.index_width,
                "max_index": int(global_indices.max()),
                "limit": limit,
            },
        )
    offset = builder.index_bytes_written
    dtype = _INDEX_DTYPES[builder.index_width]
    builder._index_chunks.append(global_indices.astype(dtype).tobytes())
    builder.index_count += int(local.size)
    return offset


def compile_buffers(
    meshes: Sequence[SceneMesh],
    layout: VertexLayout,
    *,
    progress: Optional[Callable[[MeshRange], None]] = None,
) -> CompiledBuffers:
    # Prefix pass: base vertices and the final merged count fix the width
    # before any index is encoded.
    bases: List[int] = []
    total = 0
    for mesh in meshes:
        bases.append(total)
        total += mesh.vertex_count
    builder = BufferBuilder(layout, index_width(total))

    ranges: List[MeshRange] = []
    for mesh, base in zip(meshes, bases):
        first = write_vertices(builder, mesh)
        if first != base:
            raise internal_error(
                f"Mesh '{mesh.name}' written at vertex {first}, planned {base}"
            )
        offset = write_indices(builder, mesh, first)
        rng = MeshRange(
            name=mesh.name,
            first_vertex=first,
            vertex_count=mesh.vertex_count,
            index_offset=offset,
            index_count=mesh.face_count * 3,
        )
        ranges.append(rng)
        if progress is not None:
            progress(rng)
    return builder.finish(ranges)
