from .models import (
    IDENTITY_TRANSFORM,
    LayoutFlags,
    Scene,
    SceneMaterial,
    SceneMesh,
    SceneNode,
)
from .loader import load_scene, parse_scene_dict

__all__ = [
    "IDENTITY_TRANSFORM",
    "LayoutFlags",
    "Scene",
    "SceneMaterial",
    "SceneMesh",
    "SceneNode",
    "load_scene",
    "parse_scene_dict",
]
