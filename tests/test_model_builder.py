import numpy as np
import pytest

from modelgen.compiler.model import compile_model, serialize_model
from modelgen.errors import W_NAME_COLLISION, SceneError
from modelgen.scene.loader import parse_scene_dict

TRIANGLE = [[0, 0, 0], [1, 0, 0], [0, 1, 0]]


def triangle_scene(**extra):
    data = {
        "name": "tri",
        "meshes": [{"name": "Tri", "positions": TRIANGLE, "faces": [[0, 1, 2]]}],
    }
    data.update(extra)
    return parse_scene_dict(data)


def test_single_triangle_model():
    model = compile_model(triangle_scene())
    assert model.name == "tri"
    assert model.vertex_count == 3
    assert model.vertex_size == 3
    assert model.index_size == 1
    assert np.frombuffer(model.buffers.vertices, dtype="<f4").tolist() == [
        0, 0, 0, 1, 0, 0, 0, 1, 0
    ]
    assert model.buffers.indices == bytes([0, 1, 2])
    assert model.bounds.center == pytest.approx([0.5, 0.5, 0.0])


def test_serialized_manifest_shape():
    model = compile_model(triangle_scene())
    tree, rendered = serialize_model(model)
    doc = rendered.document
    assert list(doc)[:3] == ["vertexSize", "vertexOffset", "vertexCount"]
    assert doc["name"] == "tri"
    assert doc["data"] == "tri.modeldata"
    assert doc["vertexOffset"] == 0
    assert doc["indexOffset"] == 36
    assert doc["indexSize"] == 1
    assert doc["buffers"]["vertices"] == {
        "type": "float32",
        "size": 36,
        "offset": 0,
        "count": 9,
    }
    assert doc["buffers"]["indices"] == {
        "type": "uint8",
        "size": 3,
        "offset": 36,
        "count": 3,
    }
    assert doc["attributes"] == {"Position": {"index": 0, "size": 3, "offset": 0}}
    assert doc["meshes"][0]["firstVertex"] == 0
    assert doc["meshes"][0]["indexCount"] == 3
    assert "material" not in doc["meshes"][0]
    assert doc["objects"]["tri"]["meshes"] == [0]
    assert rendered.payload == model.buffers.vertices + model.buffers.indices


def test_materials_and_objects():
    scene = parse_scene_dict(
        {
            "name": "pair",
            "materials": [
                {"name": "Wood", "shading": 3, "textures": {"diffuse": "wood.png"}},
                {"name": "Steel"},
            ],
            "meshes": [
                {"name": "A", "material": 1, "positions": TRIANGLE, "faces": [[0, 1, 2]]},
                {
                    "name": "B",
                    "material": 0,
                    "positions": [[2, 0, 0], [3, 0, 0], [2, 1, 0]],
                    "faces": [[0, 1, 2]],
                },
            ],
            "root": {
                "name": "Root",
                "children": [
                    {"name": "Left", "meshes": [0]},
                    {"name": "Right", "meshes": [1]},
                ],
            },
        }
    )
    model = compile_model(scene)
    assert [o.name for o in model.objects] == ["Root", "Left", "Right"]
    assert model.objects[0].bounds is None
    assert model.objects[2].bounds.center == pytest.approx([2.5, 0.5, 0.0])
    assert model.bounds.minimum == pytest.approx([0, 0, 0])
    assert model.bounds.maximum == pytest.approx([3, 1, 0])

    _, rendered = serialize_model(model)
    doc = rendered.document
    assert doc["meshes"][0]["material"] == "Steel"
    assert doc["meshes"][1]["material"] == "Wood"
    assert doc["meshes"][1]["firstVertex"] == 3
    wood = doc["materials"]["Wood"]
    assert wood["shadingModel"] == "phong"
    assert wood["textures"] == {"diffuse": "wood.png"}
    assert wood["diffuseColor"] == [1.0, 1.0, 1.0]
    assert doc["materials"]["Steel"]["index"] == 1


def test_duplicate_material_names_collide_last_wins():
    scene = triangle_scene(
        materials=[
            {"name": "Same", "shading": "flat"},
            {"name": "Same", "shading": "pbr"},
        ]
    )
    diagnostics = []
    model = compile_model(scene, diagnostics=diagnostics)
    _, rendered = serialize_model(model, diagnostics)
    assert list(rendered.document["materials"]) == ["Same"]
    assert rendered.document["materials"]["Same"]["shadingModel"] == "pbr"
    assert [d.code for d in diagnostics] == [W_NAME_COLLISION]


def test_missing_references_are_scene_errors():
    with pytest.raises(SceneError):
        compile_model(triangle_scene(materials=[{"name": "Only"}], meshes=[
            {"name": "Tri", "material": 4, "positions": TRIANGLE, "faces": [[0, 1, 2]]}
        ]))
    with pytest.raises(SceneError):
        compile_model(triangle_scene(root={"name": "R", "meshes": [7]}))


def test_name_override():
    model = compile_model(triangle_scene(), name="custom")
    assert model.name == "custom"
    assert model.data == "custom.modeldata"
