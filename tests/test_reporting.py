import io
import json

import numpy as np
from rich.console import Console

from modelgen.compiler.model import compile_model
from modelgen.reporting import (
    JsonLinesReporter,
    PlainReporter,
    RichReporter,
    SilentReporter,
    TaskStatus,
    set_reporter,
    task,
)
from modelgen.reporting.jsonl import parse_summary
from modelgen.scene.models import Scene, SceneMesh


def tri_scene() -> Scene:
    mesh = SceneMesh(
        name="Tri",
        faces=np.array([[0, 1, 2]]),
        positions=np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0]], dtype=np.float32),
    )
    return Scene(name="tri", meshes=[mesh])


def test_parse_summary():
    assert parse_summary("Buffer summary: vertices=3 index_size=1") == (
        "buffers",
        {"vertices": "3", "index_size": "1"},
    )
    assert parse_summary("nothing to see") is None


def test_jsonl_events_for_compile():
    stream = io.StringIO()
    set_reporter(JsonLinesReporter(stream=stream))
    try:
        compile_model(tri_scene())
    finally:
        set_reporter(SilentReporter())
    events = [json.loads(line) for line in stream.getvalue().splitlines()]
    summaries = {e["summary_type"]: e for e in events if e["event"] == "summary"}
    assert summaries["layout"]["stride"] == "3"
    assert summaries["buffers"]["index_size"] == "1"
    ends = [e for e in events if e["event"] == "task_end"]
    assert [e["id"] for e in ends] == ["compile.layout", "compile.buffers"]
    assert ends[1]["completed"] == 1
    assert ends[1]["vertices"] == 3


def test_failed_task_is_marked():
    stream = io.StringIO()
    rep = JsonLinesReporter(stream=stream)
    set_reporter(rep)
    try:
        with task("boom", "Explode"):
            raise RuntimeError("x")
    except RuntimeError:
        pass
    finally:
        set_reporter(SilentReporter())
    end = json.loads(stream.getvalue().splitlines()[-1])
    assert end["status"] == TaskStatus.FAILED.name.lower()


def test_plain_reporter_completion_line():
    stream = io.StringIO()
    set_reporter(PlainReporter(stream=stream, use_color=False))
    try:
        with task("write", "Write outputs") as stats:
            stats["bytes"] = 42
    finally:
        set_reporter(SilentReporter())
    assert "Write outputs" in stream.getvalue()
    assert "bytes=42" in stream.getvalue()


def test_rich_reporter_prints_completions(monkeypatch):
    monkeypatch.setenv("MODELGEN_PROGRESS_TRANSIENT", "1")
    stream = io.StringIO()
    rep = RichReporter(console=Console(file=stream, force_terminal=False, width=120))
    set_reporter(rep)
    try:
        compile_model(tri_scene())
        rep.flush()
    finally:
        set_reporter(SilentReporter())
    text = stream.getvalue()
    assert "Plan vertex layout" in text
    assert "Compile vertex/index buffers 1/1" in text
    assert "[meshes=1]" in text
