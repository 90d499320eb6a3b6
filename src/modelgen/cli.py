"""Command line interface for modelgen."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .api import BuildOptions, build_model, plan_dry_run, validate_outputs
from .errors import ModelError
from .logging import configure_logging, get_logger, section, step
from .render.manifest import MANIFEST_FORMATS
from .reporting import (
    JsonLinesReporter,
    PlainReporter,
    RichReporter,
    SilentReporter,
    get_reporter,
    set_reporter,
    set_verbosity,
)
from .utils.io import OutputExistsError


def _build_cmd(args: argparse.Namespace) -> int:
    opts = BuildOptions(
        input_scene=args.scene,
        output_dir=args.output_dir,
        name=args.name,
        manifest_format=args.format,
        emit_source=args.emit_source is not None,
        source_path=Path(args.emit_source) if args.emit_source else None,
        source_name=args.source_name,
        force=args.force,
    )
    result = build_model(opts)
    step(f"wrote {result.manifest_path.name} and {result.payload_path.name}")
    return 0


def _plan_cmd(args: argparse.Namespace) -> int:
    plan = plan_dry_run(args.scene, name=args.name)
    rep = get_reporter()
    rep.flush()
    if args.json:
        print(json.dumps(plan, indent=2, sort_keys=True))
    else:
        attrs = ",".join(f"{a['name']}@{a['offset']}" for a in plan["attributes"])
        rep.status(
            f"Plan summary: model={plan['name']} attributes={attrs or '-'} "
            + f"vertices={plan['vertex_count']} indices={plan['index_count']} "
            + f"index_size={plan['index_size']} payload={plan['payload_size']}"
        )
    return 0


def _validate_cmd(args: argparse.Namespace) -> int:
    with section("Validate outputs") as logger:
        problems = validate_outputs(args.manifest)
        for problem in problems:
            logger.error("%s", problem)
    return 1 if problems else 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="modelgen", description="Scene to model buffer compiler"
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    p.add_argument(
        "-r",
        "--reporter",
        choices=["plain", "rich", "json", "silent"],
        default="plain",
        help="Select reporter backend: plain (default), rich, json (JSONL events), silent",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    b = sub.add_parser("build", help="Compile a scene into a model")
    b.add_argument("scene", type=Path)
    b.add_argument("output_dir", type=Path)
    b.add_argument("--name", help="Model name (defaults to the scene name)")
    b.add_argument(
        "--format",
        choices=MANIFEST_FORMATS,
        default="json",
        help="Manifest text format",
    )
    b.add_argument(
        "--emit-source",
        dest="emit_source",
        nargs="?",
        const="",
        metavar="PATH",
        help="Also write the model as a source literal (default: <output_dir>/<name>.model.js)",
    )
    b.add_argument(
        "--source-name",
        dest="source_name",
        help="Variable name for --emit-source (defaults to the model name)",
    )
    b.add_argument(
        "--force", action="store_true", help="Overwrite existing outputs"
    )
    b.set_defaults(func=_build_cmd)

    pl = sub.add_parser("plan", help="Compute layout and buffers (dry run, no write)")
    pl.add_argument("scene", type=Path)
    pl.add_argument("--name", help="Model name (defaults to the scene name)")
    pl.add_argument("--json", action="store_true", help="Emit JSON plan")
    pl.set_defaults(func=_plan_cmd)

    v = sub.add_parser("validate", help="Validate a manifest and its payload")
    v.add_argument("manifest", type=Path)
    v.set_defaults(func=_validate_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    requested = args.reporter
    if requested == "json":
        set_reporter(JsonLinesReporter())
    elif requested == "silent":
        set_reporter(SilentReporter())
    elif requested == "rich":
        if sys.stderr.isatty():
            set_reporter(RichReporter())
        else:
            # Fallback quietly to plain if no TTY
            set_reporter(PlainReporter())
    else:  # plain
        set_reporter(PlainReporter())
    set_verbosity(args.verbose)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except (ModelError, OutputExistsError) as exc:
        get_logger().error("%s", exc)
        return 1
    finally:
        get_reporter().flush()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
