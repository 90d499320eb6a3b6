import hashlib
import json
from pathlib import Path

import numpy as np
import pytest

from modelgen.api import BuildOptions, build_model, plan_dry_run
from modelgen.errors import LayoutMismatchError, SceneError, W_NAME_COLLISION
from modelgen.utils.io import OutputExistsError
from modelgen.validate import load_manifest, validate_model
from snapshot_helper import assert_matches_snapshot

CRATE = {
    "name": "crate",
    "materials": [
        {
            "name": "Wood",
            "shading": "phong",
            "colors": {"diffuse": [0.8, 0.6, 0.4]},
            "textures": {"diffuse": "wood.png"},
        }
    ],
    "meshes": [
        {
            "name": "Lid",
            "positions": [[0, 0, 0], [1, 0, 0], [0, 1, 0]],
            "normals": [[0, 0, 1], [0, 0, 1], [0, 0, 1]],
            "faces": [[0, 1, 2]],
        },
        {
            "name": "Body",
            "positions": [[0, 0, 1], [1, 0, 1], [1, 1, 1], [0, 1, 1]],
            "normals": [[0, 0, 1], [0, 0, 1], [0, 0, 1], [0, 0, 1]],
            "faces": [[0, 1, 2], [0, 2, 3]],
        },
    ],
}

QUAD = {
    "name": "quad",
    "meshes": [
        {
            "name": "Quad",
            "positions": [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]],
            "uv0": [[0, 0], [1, 0], [1, 1], [0, 1]],
            "faces": [[0, 1, 2], [0, 2, 3]],
        }
    ],
}


def write_scene(path: Path, data: dict) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_build_writes_coherent_pair(tmp_path: Path):
    scene = write_scene(tmp_path / "crate.json", CRATE)
    out = tmp_path / "out"
    res = build_model(BuildOptions(input_scene=scene, output_dir=out))
    assert res.manifest_path == out / "crate.model"
    assert res.payload_path == out / "crate.modeldata"
    assert res.manifest_path.exists() and res.payload_path.exists()
    assert validate_model(res.manifest_path) == []

    doc = load_manifest(res.manifest_path)
    assert doc["vertexCount"] == 7
    assert doc["indexCount"] == 9
    assert doc["vertexSize"] == 6
    payload = res.payload_path.read_bytes()
    assert len(payload) == 7 * 6 * 4 + 9
    indices = np.frombuffer(payload[doc["indexOffset"]:], dtype="<u1")
    assert indices.tolist() == [0, 1, 2, 3, 4, 5, 3, 5, 6]
    assert res.bytes_written == len(payload) + len(res.manifest_path.read_bytes())


def test_yaml_manifest_validates(tmp_path: Path):
    scene = write_scene(tmp_path / "crate.json", CRATE)
    res = build_model(
        BuildOptions(input_scene=scene, output_dir=tmp_path, manifest_format="yaml")
    )
    assert not res.manifest_path.read_text().lstrip().startswith("{")
    assert validate_model(res.manifest_path) == []


def test_source_output(tmp_path: Path):
    scene = write_scene(tmp_path / "crate.json", CRATE)
    src = tmp_path / "crate.js"
    res = build_model(
        BuildOptions(input_scene=scene, output_dir=tmp_path, source_path=src)
    )
    assert res.source_path == src
    text = src.read_text()
    assert text.startswith("const crate = {\n")
    assert "new Float32Array([" in text
    assert "new Uint8Array([0, 1, 2, 3, 4, 5, 3, 5, 6])" in text

    named = tmp_path / "named.js"
    build_model(
        BuildOptions(
            input_scene=scene,
            output_dir=tmp_path,
            source_path=named,
            source_name="crateModel",
            force=True,
        )
    )
    assert named.read_text().startswith("const crateModel = {")


def test_source_output_default_path(tmp_path: Path):
    scene = write_scene(tmp_path / "crate.json", CRATE)
    res = build_model(
        BuildOptions(input_scene=scene, output_dir=tmp_path / "out", emit_source=True)
    )
    assert res.source_path == tmp_path / "out" / "crate.model.js"
    assert res.source_path.exists()


def test_failed_build_writes_nothing(tmp_path: Path):
    bad = json.loads(json.dumps(CRATE))
    del bad["meshes"][1]["normals"]
    scene = write_scene(tmp_path / "bad.json", bad)
    out = tmp_path / "out"
    with pytest.raises(LayoutMismatchError):
        build_model(BuildOptions(input_scene=scene, output_dir=out))
    assert not out.exists()


def test_existing_outputs_need_force(tmp_path: Path):
    scene = write_scene(tmp_path / "crate.json", CRATE)
    opts = BuildOptions(input_scene=scene, output_dir=tmp_path / "out")
    build_model(opts)
    with pytest.raises(OutputExistsError):
        build_model(opts)
    opts.force = True
    build_model(opts)


def test_two_builds_are_identical(tmp_path: Path):
    scene = write_scene(tmp_path / "crate.json", CRATE)
    a = build_model(BuildOptions(input_scene=scene, output_dir=tmp_path / "a"))
    b = build_model(BuildOptions(input_scene=scene, output_dir=tmp_path / "b"))
    for left, right in [
        (a.manifest_path, b.manifest_path),
        (a.payload_path, b.payload_path),
    ]:
        assert (
            hashlib.sha256(left.read_bytes()).hexdigest()
            == hashlib.sha256(right.read_bytes()).hexdigest()
        )


def test_collisions_come_back_as_diagnostics(tmp_path: Path):
    data = json.loads(json.dumps(CRATE))
    data["materials"].append({"name": "Wood"})
    scene = write_scene(tmp_path / "crate.json", data)
    res = build_model(BuildOptions(input_scene=scene, output_dir=tmp_path / "out"))
    assert [d.code for d in res.diagnostics] == [W_NAME_COLLISION]
    doc = load_manifest(res.manifest_path)
    assert list(doc["materials"]) == ["Wood"]
    assert doc["materials"]["Wood"]["index"] == 1


def test_corrupted_payload_is_reported(tmp_path: Path):
    scene = write_scene(tmp_path / "crate.json", CRATE)
    res = build_model(BuildOptions(input_scene=scene, output_dir=tmp_path))
    res.payload_path.write_bytes(res.payload_path.read_bytes()[:-2])
    problems = validate_model(res.manifest_path)
    assert problems and "payload size" in problems[0]


def test_plan_dry_run_snapshot(tmp_path: Path):
    scene = write_scene(tmp_path / "quad.json", QUAD)
    plan = plan_dry_run(scene)
    assert not any(p.suffix in {".model", ".modeldata"} for p in tmp_path.iterdir())
    assert_matches_snapshot(plan, "plan_quad.json")


def test_unwritable_manifest_leaves_no_payload(tmp_path: Path):
    scene = write_scene(tmp_path / "crate.json", CRATE)
    out = tmp_path / "out"
    (out / "crate.model").mkdir(parents=True)
    with pytest.raises(OSError):
        build_model(BuildOptions(input_scene=scene, output_dir=out, force=True))
    assert sorted(p.name for p in out.iterdir()) == ["crate.model"]


def test_non_finite_parameter_is_rejected(tmp_path: Path):
    data = json.loads(json.dumps(CRATE))
    data["materials"][0]["scalars"] = {"roughness": float("nan")}
    scene = write_scene(tmp_path / "crate.json", data)
    out = tmp_path / "out"
    with pytest.raises(SceneError) as exc:
        build_model(BuildOptions(input_scene=scene, output_dir=out))
    assert exc.value.context["path"] == "materials.Wood.roughness"
    assert not out.exists()
