"""Structural validation of an emitted manifest/payload pair."""

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List
import json

import numpy as np
import yaml

from .compiler.buffers import INDEX_LIMITS

__all__ = ["load_manifest", "validate_model"]

_INDEX_DTYPES = {1: "<u1", 2: "<u2", 4: "<u4"}


def load_manifest(path: str | Path) -> Dict[str, Any]:
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError(f"Manifest root must be an object: {path}")
    return data


def _check_view(
    problems: List[str], doc: Dict[str, Any], key: str, offset: int, size: int
) -> None:
    view = (doc.get("buffers") or {}).get(key)
    if not isinstance(view, dict):
        problems.append(f"buffers.{key}: missing")
        return
    if view.get("offset") != offset:
        problems.append(
            f"buffers.{key}: offset {view.get('offset')} != section offset {offset}"
        )
    if view.get("size") != size:
        problems.append(f"buffers.{key}: size {view.get('size')} != {size}")


def validate_model(manifest_path: str | Path) -> List[str]:
    """Problems found in the pair; an empty list means it is coherent."""
    manifest_path = Path(manifest_path)
    doc = load_manifest(manifest_path)
    problems: List[str] = []

    payload_path = manifest_path.parent / str(doc.get("data", ""))
    if not payload_path.is_file():
        return [f"payload not found: {payload_path.name}"]
    payload = payload_path.read_bytes()

    vertex_count = int(doc.get("vertexCount", 0))
    vertex_size = int(doc.get("vertexSize", 0))
    index_count = int(doc.get("indexCount", 0))
    index_size = int(doc.get("indexSize", 0))
    if index_size not in INDEX_LIMITS:
        return [f"indexSize {index_size} is not one of 1, 2, 4"]

    vertex_bytes = vertex_count * vertex_size * 4
    index_bytes = index_count * index_size
    vertex_offset = int(doc.get("vertexOffset", 0))
    index_offset = int(doc.get("indexOffset", 0))
    if vertex_offset != 0 or index_offset != vertex_bytes:
        problems.append(
            f"section offsets ({vertex_offset}, {index_offset}) != (0, {vertex_bytes})"
        )
    if len(payload) != vertex_bytes + index_bytes:
        problems.append(
            f"payload size {len(payload)} != {vertex_bytes + index_bytes}"
        )
        return problems
    _check_view(problems, doc, "vertices", vertex_offset, vertex_bytes)
    _check_view(problems, doc, "indices", index_offset, index_bytes)

    for name, attr in (doc.get("attributes") or {}).items():
        end = int(attr.get("offset", 0)) + int(attr.get("size", 0)) * 4
        if end > vertex_size * 4:
            problems.append(f"attribute {name}: ends at byte {end} past the vertex")

    indices = np.frombuffer(
        payload[index_offset : index_offset + index_bytes],
        dtype=_INDEX_DTYPES[index_size],
    )
    if indices.size and int(indices.max()) >= vertex_count:
        problems.append(
            f"index {int(indices.max())} out of range for {vertex_count} vertices"
        )
    for i, mesh in enumerate(doc.get("meshes") or []):
        start = int(mesh.get("indexOffset", 0))
        count = int(mesh.get("indexCount", 0))
        if start % index_size or start + count * index_size > index_bytes:
            problems.append(f"meshes[{i}]: index range outside the index section")
            continue
        first = int(mesh.get("firstVertex", 0))
        end = first + int(mesh.get("vertexCount", 0))
        own = indices[start // index_size : start // index_size + count]
        if own.size and (int(own.min()) < first or int(own.max()) >= end):
            problems.append(
                f"meshes[{i}]: indices outside its vertex range [{first}, {end})"
            )
    return problems
