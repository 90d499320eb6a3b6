import numpy as np
import pytest

from modelgen.compiler.buffers import (
    BufferBuilder,
    compile_buffers,
    index_width,
    write_indices,
    write_vertices,
)
from modelgen.compiler.layout import plan_layout, plan_model_layout
from modelgen.errors import IndexOverflowError, SceneError
from modelgen.scene.models import LayoutFlags, SceneMesh


def positions_mesh(name: str, count: int, faces, normals: bool = False) -> SceneMesh:
    positions = np.arange(count * 3, dtype=np.float32).reshape(count, 3)
    mesh = SceneMesh(name=name, faces=np.asarray(faces), positions=positions)
    if normals:
        mesh.normals = np.tile(np.array([0, 0, 1], dtype=np.float32), (count, 1))
    return mesh


@pytest.mark.parametrize(
    "count,width",
    [(0, 1), (3, 1), (255, 1), (256, 2), (65535, 2), (65536, 4), (10**6, 4)],
)
def test_index_width_thresholds(count, width):
    assert index_width(count) == width


def test_index_width_is_monotonic():
    counts = [0, 1, 254, 255, 256, 257, 65534, 65535, 65536, 65537]
    widths = [index_width(n) for n in counts]
    assert widths == sorted(widths)


def test_second_mesh_indices_are_offset_by_first_vertex_count():
    meshes = [
        positions_mesh("A", 200, [[0, 1, 2]], normals=True),
        positions_mesh("B", 200, [[0, 1, 2]], normals=True),
    ]
    buffers = compile_buffers(meshes, plan_model_layout(meshes))
    assert buffers.vertex_count == 400
    assert buffers.stride == 6
    assert buffers.index_width == 2
    assert buffers.index_array().tolist() == [0, 1, 2, 200, 201, 202]
    b = buffers.meshes[1]
    assert b.first_vertex == 200
    assert b.index_offset == 6
    assert b.index_count == 3
    assert len(buffers.indices) == 12


def test_single_triangle_uses_one_byte_indices():
    meshes = [positions_mesh("Tri", 3, [[0, 1, 2]])]
    buffers = compile_buffers(meshes, plan_model_layout(meshes))
    assert buffers.index_width == 1
    assert buffers.indices == bytes([0, 1, 2])
    assert len(buffers.vertices) == 9 * 4


def test_vertices_are_interleaved_in_layout_order():
    positions = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0]], dtype=np.float32)
    uv0 = np.array([[0, 0], [1, 0], [0, 1]], dtype=np.float32)
    m = SceneMesh(name="UV", faces=np.array([[0, 1, 2]]), positions=positions, uv0=uv0)
    buffers = compile_buffers([m], plan_model_layout([m]))
    rows = buffers.vertex_array()
    assert rows.shape == (3, 5)
    assert rows[1].tolist() == [1.0, 0.0, 0.0, 1.0, 0.0]


def test_progress_callback_sees_each_mesh_in_order():
    meshes = [positions_mesh("A", 3, [[0, 1, 2]]), positions_mesh("B", 3, [[2, 1, 0]])]
    seen = []
    compile_buffers(meshes, plan_model_layout(meshes), progress=lambda r: seen.append(r.name))
    assert seen == ["A", "B"]


def test_forced_narrow_width_overflows():
    builder = BufferBuilder(plan_layout(LayoutFlags(positions=True)), 1)
    m = positions_mesh("Big", 10, [[0, 1, 9]])
    assert write_indices(builder, m, 0) == 0
    assert write_indices(builder, m, 3) == 3
    with pytest.raises(IndexOverflowError) as exc:
        write_indices(builder, m, 250)
    assert exc.value.context["max_index"] == 259
    assert exc.value.context["limit"] == 255


def test_write_vertices_returns_running_first_vertex():
    builder = BufferBuilder(plan_layout(LayoutFlags(positions=True)), 2)
    assert write_vertices(builder, positions_mesh("A", 4, [])) == 0
    assert write_vertices(builder, positions_mesh("B", 2, [])) == 4
    assert builder.vertex_count == 6


def test_face_index_outside_mesh_is_rejected():
    m = positions_mesh("Bad", 3, [[0, 1, 3]])
    with pytest.raises(SceneError):
        compile_buffers([m], plan_model_layout([m]))


def test_attribute_row_count_mismatch_is_rejected():
    m = SceneMesh(
        name="Ragged",
        faces=np.array([[0, 1, 2]]),
        positions=np.zeros((3, 3), dtype=np.float32),
        normals=np.zeros((2, 3), dtype=np.float32),
    )
    with pytest.raises(SceneError):
        compile_buffers([m], plan_model_layout([m]))


def test_unsupported_builder_width():
    with pytest.raises(ValueError):
        BufferBuilder(plan_layout(LayoutFlags(positions=True)), 3)


def test_every_mesh_indexes_only_its_own_vertices():
    meshes = [
        positions_mesh("A", 5, [[0, 1, 4], [2, 3, 4]]),
        positions_mesh("B", 7, [[6, 0, 1]]),
        positions_mesh("C", 3, [[0, 1, 2], [2, 1, 0]]),
    ]
    buffers = compile_buffers(meshes, plan_model_layout(meshes))
    indices = buffers.index_array()
    for rng in buffers.meshes:
        start = rng.index_offset // buffers.index_width
        own = indices[start : start + rng.index_count]
        assert own.min() >= rng.first_vertex
        assert own.max() < rng.first_vertex + rng.vertex_count
