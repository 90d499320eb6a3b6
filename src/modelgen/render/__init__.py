from .manifest import (
    MANIFEST_FORMATS,
    BufferView,
    RenderedManifest,
    dump_manifest,
    render_manifest,
)
from .source import render_source, render_source_module

__all__ = [
    "MANIFEST_FORMATS",
    "BufferView",
    "RenderedManifest",
    "dump_manifest",
    "render_manifest",
    "render_source",
    "render_source_module",
]
