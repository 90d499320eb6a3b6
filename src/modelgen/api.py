"""High-level API for modelgen: compile a scene and emit its outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .compiler.model import (
    DATA_SUFFIX,
    MANIFEST_SUFFIX,
    SOURCE_SUFFIX,
    Model,
    compile_model,
    serialize_model,
)
from .errors import Diagnostic, Diagnostics
from .logging import get_logger, log_diagnostic
from .render.manifest import MANIFEST_FORMATS, RenderedManifest, dump_manifest
from .render.source import render_source_module
from .reporting import get_reporter, task
from .scene.loader import load_scene
from .scene.models import Scene
from .utils.io import write_files_atomically
from .validate import validate_model
from .values import Value

__all__ = [
    "BuildOptions",
    "BuildResult",
    "CompiledOutputs",
    "build_model",
    "compile_scene",
    "plan_dry_run",
    "validate_outputs",
    "load_scene",
]


@dataclass(slots=True)
class BuildOptions:
    input_scene: Path
    output_dir: Path
    # Model name; defaults to the scene name. Output files are named after it.
    name: Optional[str] = None
    manifest_format: str = "json"
    # Source-literal output: written to source_path, or to
    # <output_dir>/<name>.model.js when only emit_source is set.
    emit_source: bool = False
    source_path: Optional[Path] = None
    source_name: Optional[str] = None
    force: bool = False


@dataclass(slots=True)
class CompiledOutputs:
    model: Model
    tree: Value
    rendered: RenderedManifest
    manifest_text: str
    source_text: Optional[str] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass(slots=True)
class BuildResult:
    manifest_path: Path
    payload_path: Path
    bytes_written: int
    source_path: Optional[Path] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)


def compile_scene(
    scene: Scene,
    *,
    name: Optional[str] = None,
    manifest_format: str = "json",
    source_name: Optional[str] = None,
    emit_source: bool = False,
) -> CompiledOutputs:
    """Compile and render everything in memory; nothing touches the disk."""
    if manifest_format not in MANIFEST_FORMATS:
        raise ValueError(f"Unknown manifest format: {manifest_format}")
    diagnostics: Diagnostics = []
    model = compile_model(scene, name=name, diagnostics=diagnostics)
    tree, rendered = serialize_model(model, diagnostics)
    manifest_text = dump_manifest(rendered.document, manifest_format)
    source_text = None
    if emit_source:
        with task("render.source", "Render source literal"):
            source_text = render_source_module(source_name or model.name, tree)
    for diag in diagnostics:
        log_diagnostic(diag)
    return CompiledOutputs(
        model=model,
        tree=tree,
        rendered=rendered,
        manifest_text=manifest_text,
        source_text=source_text,
        diagnostics=diagnostics,
    )


def build_model(options: BuildOptions) -> BuildResult:
    logger = get_logger()
    rep = get_reporter()
    scene = load_scene(options.input_scene)
    rep.status(
        "Scene summary: "
        + f"name={scene.name} meshes={len(scene.meshes)} "
        + f"materials={len(scene.materials)}"
    )
    out = compile_scene(
        scene,
        name=options.name,
        manifest_format=options.manifest_format,
        source_name=options.source_name,
        emit_source=options.emit_source or options.source_path is not None,
    )
    model = out.model
    manifest_path = options.output_dir / (model.name + MANIFEST_SUFFIX)
    payload_path = options.output_dir / (model.name + DATA_SUFFIX)
    files: Dict[Path, bytes] = {
        payload_path: out.rendered.payload,
        manifest_path: out.manifest_text.encode("utf-8"),
    }
    source_path = None
    if out.source_text is not None:
        source_path = options.source_path or (
            options.output_dir / (model.name + SOURCE_SUFFIX)
        )
        files[source_path] = out.source_text.encode("utf-8")

    with task("write.outputs", "Write outputs") as stats:
        written = write_files_atomically(files, force=options.force)
        stats["bytes"] = written
    rep.status(
        "Manifest summary: "
        + f"file={manifest_path.name} format={options.manifest_format} "
        + f"diagnostics={len(out.diagnostics)}"
    )
    logger.info(
        "Built model: %s (%d bytes, meshes=%d materials=%d objects=%d)",
        model.name,
        written,
        len(model.meshes),
        len(model.materials),
        len(model.objects),
    )
    rep.status(
        "Build summary: "
        + f"model={model.name} bytes={written} vertices={model.vertex_count} "
        + f"indices={model.index_count} index_size={model.index_size}"
    )
    return BuildResult(
        manifest_path=manifest_path,
        payload_path=payload_path,
        bytes_written=written,
        source_path=source_path,
        diagnostics=out.diagnostics,
    )


def plan_dry_run(scene_path: str | Path, *, name: Optional[str] = None) -> Dict[str, Any]:
    """Layout, index width and per-mesh ranges without writing anything."""
    scene = load_scene(scene_path)
    model = compile_model(scene, name=name)
    return {
        "name": model.name,
        "attributes": [
            {"name": a.name, "size": a.size, "offset": a.offset}
            for a in model.attributes
        ],
        "vertex_size": model.vertex_size,
        "vertex_count": model.vertex_count,
        "index_count": model.index_count,
        "index_size": model.index_size,
        "payload_size": len(model.buffers.vertices) + len(model.buffers.indices),
        "meshes": [
            {
                "name": m.name,
                "first_vertex": m.first_vertex,
                "vertex_count": m.vertex_count,
                "index_offset": m.index_offset,
                "index_count": m.index_count,
            }
            for m in model.meshes
        ],
    }


def validate_outputs(manifest_path: str | Path) -> List[str]:
    problems = validate_model(manifest_path)
    get_reporter().status(
        "Validate summary: "
        + f"file={Path(manifest_path).name} problems={len(problems)}"
    )
    return problems
