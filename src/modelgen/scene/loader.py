"""Scene description loading (JSON/YAML) for modelgen.

The description mirrors the scene records one-to-one::

    name: Crate
    materials:
      - name: Wood
        shading: phong
        colors: {diffuse: [0.8, 0.6, 0.4]}
        scalars: {roughness: 0.5}
        textures: {diffuse: wood.png}
    meshes:
      - name: Box
        material: 0
        positions: [[0, 0, 0], [1, 0, 0], [0, 1, 0]]
        faces: [[0, 1, 2]]
    root:
      name: Crate
      meshes: [0]
      children: []
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Optional
import json

import numpy as np
import yaml

from ..errors import scene_error
from .models import IDENTITY_TRANSFORM, Scene, SceneMaterial, SceneMesh, SceneNode

__all__ = ["load_scene", "parse_scene_dict"]

# attribute key -> accepted component counts (first is the stored width)
_ATTRIBUTE_WIDTHS = {
    "positions": (3,),
    "normals": (3,),
    "tangents": (3, 4),
    "bitangents": (3,),
    "uv0": (2, 3),
    "color0": (4, 3),
}


def load_scene(path: str | Path) -> Scene:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        data: Any = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise scene_error(
            "Root of scene description must be an object", {"path": str(p)}
        )
    data.setdefault("name", p.stem)
    return parse_scene_dict(data)


def _attribute(mesh_name: str, key: str, raw: Any) -> Optional[np.ndarray]:
    if raw is None:
        return None
    widths = _ATTRIBUTE_WIDTHS[key]
    arr = np.asarray(raw, dtype=np.float32)
    if arr.size == 0:
        arr = arr.reshape((0, widths[0]))
    if arr.ndim != 2 or arr.shape[1] not in widths:
        raise scene_error(
            f"Mesh '{mesh_name}': '{key}' must be a list of "
            f"{'/'.join(map(str, widths))}-component vectors",
            {"mesh": mesh_name, "attribute": key, "shape": list(arr.shape)},
        )
    if key == "color0" and arr.shape[1] == 3:
        alpha = np.ones((arr.shape[0], 1), dtype=np.float32)
        arr = np.concatenate([arr, alpha], axis=1)
    elif arr.shape[1] > widths[0]:
        # Source UVs may carry a third (w) component; tangents a handedness.
        arr = np.ascontiguousarray(arr[:, : widths[0]])
    return arr


def _faces(mesh_name: str, raw: Any) -> np.ndarray:
    arr = np.asarray(raw if raw is not None else [], dtype=np.int64)
    if arr.size == 0:
        return arr.reshape((0, 3))
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise scene_error(
            f"Mesh '{mesh_name}': faces must be index triples",
            {"mesh": mesh_name, "shape": list(arr.shape)},
        )
    return arr


def _parse_mesh(i: int, entry: Dict[str, Any]) -> SceneMesh:
    name = str(entry.get("name") or f"Mesh_{i}")
    arrays = {
        key: _attribute(name, key, entry.get(key)) for key in _ATTRIBUTE_WIDTHS
    }
    return SceneMesh(
        name=name,
        faces=_faces(name, entry.get("faces")),
        material=int(entry.get("material", 0)),
        **arrays,
    )


def _parse_material(i: int, entry: Dict[str, Any]) -> SceneMaterial:
    name = str(entry.get("name") or f"Material_{i}")
    colors = {
        k: tuple(float(c) for c in v[:3])
        for k, v in (entry.get("colors") or {}).items()
        if v is not None
    }
    scalars = {
        k: float(v) for k, v in (entry.get("scalars") or {}).items() if v is not None
    }
    textures = {
        str(k).lower(): str(v)
        for k, v in (entry.get("textures") or {}).items()
        if v
    }
    return SceneMaterial(
        name=name,
        shading=entry.get("shading"),
        colors=colors,  # type: ignore[arg-type]
        scalars=scalars,
        textures=textures,
    )


def _parse_node(entry: Dict[str, Any], fallback_name: str) -> SceneNode:
    name = str(entry.get("name") or fallback_name)
    transform = entry.get("transform")
    if transform is None:
        transform = IDENTITY_TRANSFORM
    flat = tuple(float(v) for v in np.asarray(transform, dtype=np.float64).reshape(-1))
    if len(flat) != 16:
        raise scene_error(
            f"Node '{name}': transform must have 16 values",
            {"node": name, "count": len(flat)},
        )
    children = [
        _parse_node(child, f"{name}_{j}")
        for j, child in enumerate(entry.get("children") or [])
    ]
    return SceneNode(
        name=name,
        transform=flat,
        meshes=[int(m) for m in entry.get("meshes") or []],
        children=children,
    )


def parse_scene_dict(data: Dict[str, Any]) -> Scene:
    name = str(data.get("name") or "model")
    meshes = [_parse_mesh(i, m) for i, m in enumerate(data.get("meshes") or [])]
    materials = [
        _parse_material(i, m) for i, m in enumerate(data.get("materials") or [])
    ]
    root_entry = data.get("root")
    if root_entry is None:
        root = SceneNode(name=name, meshes=list(range(len(meshes))))
    else:
        root = _parse_node(root_entry, name)
    return Scene(name=name, meshes=meshes, materials=materials, root=root)
