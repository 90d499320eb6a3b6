import numpy as np
import pytest

from modelgen.compiler.layout import plan_layout, plan_model_layout
from modelgen.errors import E_LAYOUT_MISMATCH, LayoutMismatchError
from modelgen.scene.models import LayoutFlags, SceneMesh


def mesh(name: str, count: int = 3, **arrays) -> SceneMesh:
    widths = {"positions": 3, "normals": 3, "tangents": 3, "bitangents": 3,
              "uv0": 2, "color0": 4}
    data = {
        key: np.zeros((count, widths[key]), dtype=np.float32)
        for key, present in arrays.items()
        if present
    }
    return SceneMesh(name=name, faces=np.array([[0, 1, 2]]), **data)


def test_positions_only_layout():
    layout = plan_layout(LayoutFlags(positions=True))
    assert layout.names() == ["Position"]
    assert layout.attributes[0].offset == 0
    assert layout.attributes[0].size == 3
    assert layout.stride == 3
    assert layout.stride_bytes == 12


def test_full_layout_is_canonical_order_with_byte_offsets():
    layout = plan_layout(
        LayoutFlags(positions=True, normals=True, tangents=True, uv0=True, color0=True)
    )
    assert [(a.name, a.size, a.offset, a.index) for a in layout.attributes] == [
        ("Position", 3, 0, 0),
        ("Normal", 3, 12, 1),
        ("Tangent", 3, 24, 2),
        ("Bitangent", 3, 36, 3),
        ("UV0", 2, 48, 4),
        ("Color0", 4, 56, 5),
    ]
    assert layout.stride == 18


def test_absent_kinds_are_skipped_without_gaps():
    layout = plan_layout(LayoutFlags(positions=True, uv0=True))
    assert layout.names() == ["Position", "UV0"]
    assert layout.attributes[1].offset == 12
    assert layout.stride == 5


def test_tangents_need_bitangents():
    m = mesh("T", positions=True, tangents=True)
    assert plan_layout(m.flags()).names() == ["Position"]
    m = mesh("TB", positions=True, tangents=True, bitangents=True)
    assert plan_layout(m.flags()).names() == ["Position", "Tangent", "Bitangent"]


def test_empty_mesh_list_gives_empty_layout():
    layout = plan_model_layout([])
    assert layout.attributes == ()
    assert layout.stride == 0


def test_matching_meshes_share_first_layout():
    meshes = [
        mesh("A", positions=True, normals=True),
        mesh("B", count=5, positions=True, normals=True),
    ]
    layout = plan_model_layout(meshes)
    assert layout.names() == ["Position", "Normal"]
    assert layout.stride == 6


def test_layout_mismatch_reports_mesh_and_attribute():
    meshes = [
        mesh("A", positions=True, normals=True),
        mesh("B", positions=True),
    ]
    with pytest.raises(LayoutMismatchError) as exc:
        plan_model_layout(meshes)
    err = exc.value
    assert err.code == E_LAYOUT_MISMATCH
    assert err.context["mesh"] == "B"
    assert err.context["attribute"] == "Normal"
    assert err.context["mesh_layout"] == ["Position"]
    assert "E_LAYOUT_MISMATCH" in str(err)


def test_equal_flags_give_equal_layouts_regardless_of_counts():
    small = mesh("S", count=3, positions=True, uv0=True)
    large = mesh("L", count=900, positions=True, uv0=True)
    assert plan_layout(small.flags()) == plan_layout(large.flags())
