"""Material normalization: shading model, parameters with neutral defaults,
and the map of texture slots actually supplied by the source."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from ..errors import Diagnostics, Diagnostic, W_UNKNOWN_TEXTURE_SLOT
from ..scene.models import SceneMaterial

__all__ = [
    "SHADING_MODELS",
    "TEXTURE_SLOTS",
    "DEFAULT_COLORS",
    "DEFAULT_SCALARS",
    "CompiledMaterial",
    "shading_model_name",
    "compile_material",
    "compile_materials",
]

Color = Tuple[float, float, float]

# Source shading-mode codes (assimp aiShadingMode numbering).
SHADING_MODELS: Dict[int, str] = {
    0x1: "flat",
    0x2: "gouraud",
    0x3: "phong",
    0x4: "blinn",
    0x5: "toon",
    0x6: "oren_nayar",
    0x7: "minnaert",
    0x8: "cook_torrance",
    0x9: "none",
    0xA: "fresnel",
    0xB: "pbr",
}
UNKNOWN_SHADING = "unknown"

TEXTURE_SLOTS: Tuple[str, ...] = (
    "diffuse",
    "specular",
    "ambient",
    "emissive",
    "height",
    "normals",
    "shininess",
    "opacity",
    "displacement",
    "lightmap",
    "reflection",
    "base_color",
)

DEFAULT_COLORS: Dict[str, Color] = {
    "ambient": (0.2, 0.2, 0.2),
    "diffuse": (1.0, 1.0, 1.0),
    "specular": (0.0, 0.0, 0.0),
}

DEFAULT_SCALARS: Dict[str, float] = {
    "roughness": 0.0,
    "specular_power": 0.0,
    "ambient_coeff": 1.0,
    "diffuse_coeff": 1.0,
    "fresnel_power": 0.0,
}


@dataclass(slots=True)
class CompiledMaterial:
    name: str
    index: int
    shading_model: str
    colors: Dict[str, Color] = field(default_factory=dict)
    scalars: Dict[str, float] = field(default_factory=dict)
    textures: Dict[str, str] = field(default_factory=dict)


def shading_model_name(mode: Union[int, str, None]) -> str:
    if isinstance(mode, bool) or mode is None:
        return UNKNOWN_SHADING
    if isinstance(mode, int):
        return SHADING_MODELS.get(mode, UNKNOWN_SHADING)
    name = str(mode).strip().lower().replace("-", "_")
    return name if name in SHADING_MODELS.values() else UNKNOWN_SHADING


def _textures(material: SceneMaterial) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for slot in TEXTURE_SLOTS:
        path = material.texture(slot, 0)
        if path is None:
            continue
        out[slot] = path
        # Extra layers only when the source names them with an index suffix.
        index = 1
        layer = material.texture(slot, index)
        while layer is not None:
            out[f"{slot}{index}"] = layer
            index += 1
            layer = material.texture(slot, index)
    return out


def _ignored_slots(material: SceneMaterial, textures: Dict[str, str]) -> List[str]:
    """Supplied texture keys that did not make it into ``textures``.

    Covers unknown slot names as well as layer keys that are not part of the
    consecutive run (``diffuse0``, ``diffuse3`` without ``diffuse2``).
    """
    return sorted(
        key for key, path in material.textures.items() if path and key not in textures
    )


def compile_material(
    material: SceneMaterial,
    index: int,
    diagnostics: Optional[Diagnostics] = None,
) -> CompiledMaterial:
    colors: Dict[str, Color] = {}
    for name, default in DEFAULT_COLORS.items():
        value = material.color(name)
        if value is None:
            colors[name] = default
        else:
            colors[name] = (float(value[0]), float(value[1]), float(value[2]))
    scalars: Dict[str, float] = {}
    for name, default in DEFAULT_SCALARS.items():
        value = material.scalar(name)
        scalars[name] = default if value is None else float(value)
    textures = _textures(material)
    if diagnostics is not None:
        for key in _ignored_slots(material, textures):
            diagnostics.append(
                Diagnostic(
                    W_UNKNOWN_TEXTURE_SLOT,
                    f"Material '{material.name}': ignoring texture slot '{key}'",
                    {"material": material.name, "slot": key},
                )
            )
    return CompiledMaterial(
        name=material.name,
        index=index,
        shading_model=shading_model_name(material.shading),
        colors=colors,
        scalars=scalars,
        textures=textures,
    )


def compile_materials(
    materials: List[SceneMaterial], diagnostics: Optional[Diagnostics] = None
) -> List[CompiledMaterial]:
    return [
        compile_material(mat, i, diagnostics) for i, mat in enumerate(materials)
    ]
