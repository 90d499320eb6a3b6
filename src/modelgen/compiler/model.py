"""Model compilation: scene -> layout -> buffers -> metadata -> value tree.

Meshes and materials are indexed in discovery order. The same mesh order is
used for the vertex prefix sums of the index remap, so a mesh's index range
always addresses its own vertices in the merged buffer.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..errors import Diagnostics, internal_error, scene_error
from ..logging import get_logger
from ..reporting import get_reporter, task
from ..scene.models import Scene
from ..values import (
    ElementKind,
    Value,
    append,
    array,
    integer,
    obj,
    put,
    real,
    string,
    typed_array,
)
from ..render.manifest import RenderedManifest, render_manifest
from .bounds import BoundingVolume, mesh_bounds, union_all
from .buffers import CompiledBuffers, compile_buffers
from .layout import Attribute, VertexLayout, plan_model_layout
from .materials import CompiledMaterial, compile_materials

__all__ = [
    "DATA_SUFFIX",
    "MANIFEST_SUFFIX",
    "SOURCE_SUFFIX",
    "CompiledMesh",
    "CompiledObject",
    "Model",
    "compile_model",
    "finalize_offsets",
    "manifest_tree",
    "serialize_model",
]

MANIFEST_SUFFIX = ".model"
DATA_SUFFIX = ".modeldata"
SOURCE_SUFFIX = ".model.js"


@dataclass(slots=True)
class CompiledMesh:
    name: str
    index: int
    material: int
    first_vertex: int
    vertex_count: int
    index_offset: int  # bytes into the index section
    index_count: int
    bounds: Optional[BoundingVolume] = None


@dataclass(slots=True)
class CompiledObject:
    name: str
    transform: Tuple[float, ...]
    meshes: List[int] = field(default_factory=list)
    bounds: Optional[BoundingVolume] = None


@dataclass(slots=True)
class Model:
    name: str
    layout: VertexLayout
    buffers: CompiledBuffers
    meshes: List[CompiledMesh] = field(default_factory=list)
    materials: List[CompiledMaterial] = field(default_factory=list)
    objects: List[CompiledObject] = field(default_factory=list)
    bounds: Optional[BoundingVolume] = None
    # Section offsets inside the payload; set by finalize_offsets().
    vertex_offset: int = 0
    index_offset: int = 0

    @property
    def data(self) -> str:
        return self.name + DATA_SUFFIX

    @property
    def attributes(self) -> Tuple[Attribute, ...]:
        return self.layout.attributes

    @property
    def vertex_count(self) -> int:
        return self.buffers.vertex_count

    @property
    def index_count(self) -> int:
        return self.buffers.index_count

    @property
    def index_size(self) -> int:
        return self.buffers.index_width

    @property
    def vertex_size(self) -> int:
        return self.layout.stride


def _union(volumes: Sequence[Optional[BoundingVolume]]) -> Optional[BoundingVolume]:
    present = [v for v in volumes if v is not None]
    return union_all(present) if present else None


def _check_references(scene: Scene) -> None:
    for mesh in scene.meshes:
        if scene.materials and not 0 <= mesh.material < len(scene.materials):
            raise scene_error(
                f"Mesh '{mesh.name}' references missing material {mesh.material}",
                {"mesh": mesh.name, "material": mesh.material},
            )
    if scene.root is None:
        return
    for node in scene.root.walk():
        for ref in node.meshes:
            if not 0 <= ref < len(scene.meshes):
                raise scene_error(
                    f"Node '{node.name}' references missing mesh {ref}",
                    {"node": node.name, "mesh": ref},
                )


def compile_model(
    scene: Scene,
    *,
    name: Optional[str] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> Model:
    logger = get_logger()
    rep = get_reporter()
    _check_references(scene)
    model_name = name or scene.name

    with task("compile.layout", "Plan vertex layout") as stats:
        layout = plan_model_layout(scene.meshes)
        stats["meshes"] = len(scene.meshes)
    rep.status(
        "Layout summary: "
        + f"attributes={','.join(layout.names()) or '-'} stride={layout.stride}"
    )

    with task(
        "compile.buffers", "Compile vertex/index buffers", total=len(scene.meshes)
    ) as stats:
        buffers = compile_buffers(
            scene.meshes,
            layout,
            progress=lambda r: rep.advance("compile.buffers", current_item=r.name),
        )
        stats.update(
            vertices=buffers.vertex_count,
            indices=buffers.index_count,
            bytes=len(buffers.vertices) + len(buffers.indices),
        )
    rep.status(
        "Buffer summary: "
        + f"vertices={buffers.vertex_count} indices={buffers.index_count} "
        + f"index_size={buffers.index_width}"
    )

    materials = compile_materials(scene.materials, diagnostics)
    meshes: List[CompiledMesh] = []
    for i, (src, rng) in enumerate(zip(scene.meshes, buffers.meshes)):
        meshes.append(
            CompiledMesh(
                name=src.name,
                index=i,
                material=src.material,
                first_vertex=rng.first_vertex,
                vertex_count=rng.vertex_count,
                index_offset=rng.index_offset,
                index_count=rng.index_count,
                bounds=mesh_bounds(src.positions),
            )
        )

    objects: List[CompiledObject] = []
    if scene.root is not None:
        for node in scene.root.walk():
            refs = list(node.meshes)
            objects.append(
                CompiledObject(
                    name=node.name,
                    transform=tuple(float(v) for v in node.transform),
                    meshes=refs,
                    bounds=_union([meshes[r].bounds for r in refs]),
                )
            )
    logger.debug(
        "compiled model %s: meshes=%d materials=%d objects=%d",
        model_name,
        len(meshes),
        len(materials),
        len(objects),
    )
    return Model(
        name=model_name,
        layout=layout,
        buffers=buffers,
        meshes=meshes,
        materials=materials,
        objects=objects,
        bounds=_union([m.bounds for m in meshes]),
    )


def finalize_offsets(model: Model) -> None:
    """Fix section offsets: vertex section first, index section after it."""
    model.vertex_offset = 0
    model.index_offset = len(model.buffers.vertices)


def _vec3(values) -> Value:
    return array(real(v) for v in values)


def _bounds_value(bounds: BoundingVolume) -> Value:
    node = obj()
    put(node, "center", _vec3(bounds.center))
    put(node, "extents", _vec3(bounds.extents))
    return node


def _material_value(mat: CompiledMaterial) -> Value:
    node = obj()
    put(node, "name", string(mat.name))
    put(node, "index", integer(mat.index))
    put(node, "shadingModel", string(mat.shading_model))
    put(node, "ambientColor", _vec3(mat.colors["ambient"]))
    put(node, "diffuseColor", _vec3(mat.colors["diffuse"]))
    put(node, "specularColor", _vec3(mat.colors["specular"]))
    put(node, "roughness", real(mat.scalars["roughness"]))
    put(node, "specularPower", real(mat.scalars["specular_power"]))
    put(node, "ambientCoeff", real(mat.scalars["ambient_coeff"]))
    put(node, "diffuseCoeff", real(mat.scalars["diffuse_coeff"]))
    put(node, "fresnelPower", real(mat.scalars["fresnel_power"]))
    textures = obj()
    for slot, path in mat.textures.items():
        put(textures, slot, string(path))
    put(node, "textures", textures)
    return node


def _attribute_value(attr: Attribute) -> Value:
    node = obj()
    put(node, "index", integer(attr.index))
    put(node, "size", integer(attr.size))
    put(node, "offset", integer(attr.offset))
    return node


def _object_value(o: CompiledObject) -> Value:
    node = obj()
    put(node, "transform", array(real(v) for v in o.transform))
    put(node, "meshes", array(integer(m) for m in o.meshes))
    if o.bounds is not None:
        put(node, "bounds", _bounds_value(o.bounds))
    return node


def _mesh_value(mesh: CompiledMesh, materials: List[CompiledMaterial]) -> Value:
    node = obj()
    put(node, "name", string(mesh.name))
    put(node, "indexOffset", integer(mesh.index_offset))
    put(node, "indexCount", integer(mesh.index_count))
    put(node, "firstVertex", integer(mesh.first_vertex))
    put(node, "vertexCount", integer(mesh.vertex_count))
    if materials:
        put(node, "material", string(materials[mesh.material].name))
    if mesh.bounds is not None:
        put(node, "bounds", _bounds_value(mesh.bounds))
    return node


def manifest_tree(model: Model, diagnostics: Optional[Diagnostics] = None) -> Value:
    root = obj()
    put(root, "name", string(model.name))
    put(root, "data", string(model.data))
    put(root, "vertexCount", integer(model.vertex_count))
    put(root, "indexCount", integer(model.index_count))
    put(root, "indexSize", integer(model.index_size))
    put(root, "vertexOffset", integer(model.vertex_offset))
    put(root, "indexOffset", integer(model.index_offset))
    put(root, "vertexSize", integer(model.vertex_size))
    if model.bounds is not None:
        put(root, "bounds", _bounds_value(model.bounds))

    buffers = obj()
    put(buffers, "vertices", typed_array(ElementKind.FLOAT32, model.buffers.vertices))
    put(
        buffers,
        "indices",
        typed_array(
            ElementKind.for_index_width(model.index_size), model.buffers.indices
        ),
    )
    put(root, "buffers", buffers)

    meshes = array()
    for mesh in model.meshes:
        append(meshes, _mesh_value(mesh, model.materials))
    put(root, "meshes", meshes)

    materials = obj()
    for mat in model.materials:
        put(materials, mat.name, _material_value(mat), diagnostics)
    put(root, "materials", materials)

    attributes = obj()
    for attr in model.attributes:
        put(attributes, attr.name, _attribute_value(attr), diagnostics)
    put(root, "attributes", attributes)

    objects = obj()
    for o in model.objects:
        put(objects, o.name, _object_value(o), diagnostics)
    put(root, "objects", objects)
    return root


def serialize_model(
    model: Model, diagnostics: Optional[Diagnostics] = None
) -> Tuple[Value, RenderedManifest]:
    """Finalize offsets, build the tree and render the manifest + payload."""
    finalize_offsets(model)
    tree = manifest_tree(model, diagnostics)
    with task("render.manifest", "Render manifest") as stats:
        rendered = render_manifest(tree)
        stats["bytes"] = len(rendered.payload)
    vertices = rendered.view("buffers.vertices")
    indices = rendered.view("buffers.indices")
    if (vertices.offset, indices.offset) != (model.vertex_offset, model.index_offset):
        raise internal_error(
            "Rendered payload sections disagree with model offsets",
            {
                "vertex_offset": [vertices.offset, model.vertex_offset],
                "index_offset": [indices.offset, model.index_offset],
            },
        )
    return tree, rendered
