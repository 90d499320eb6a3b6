from .layout import Attribute, VertexLayout, plan_layout, plan_model_layout
from .buffers import CompiledBuffers, MeshRange, compile_buffers, index_width
from .bounds import BoundingVolume, mesh_bounds, union_all
from .materials import CompiledMaterial, compile_material, compile_materials
from .model import Model, compile_model, manifest_tree, serialize_model

__all__ = [
    "Attribute",
    "VertexLayout",
    "plan_layout",
    "plan_model_layout",
    "CompiledBuffers",
    "MeshRange",
    "compile_buffers",
    "index_width",
    "BoundingVolume",
    "mesh_bounds",
    "union_all",
    "CompiledMaterial",
    "compile_material",
    "compile_materials",
    "Model",
    "compile_model",
    "manifest_tree",
    "serialize_model",
]
