#!/usr/bin/env python3
"""Diagram engine CLI - lint, lay out, export and generate diagram documents."""

import argparse
import json
import logging
import sys
from pathlib import Path

from .errors import DiagramError
from .exchange import export_json, import_json
from .generation import HttpGenerationClient
from .layout import apply_layered_layout, grid_layout, tree_layout
from .render import render_png, render_svg
from .validation import validate_document, validation_summary

logger = logging.getLogger(__name__)


def _json_out(data, code=0):
    print(json.dumps(data))
    sys.exit(code)


def _fail(message):
    _json_out({"success": False, "error": message}, code=1)


def _load(path):
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        _fail(f"Cannot read {path}: {e.strerror}")
    return import_json(text)


def _write(path, content):
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        output.write_bytes(content)
    else:
        output.write_text(content, encoding="utf-8")
    logger.info("Wrote %s", output)


# ── Commands ─────────────────────────────────────────────────────────────────

def cmd_validate(args):
    document = _load(args.file)
    issues = validate_document(document)
    summary = validation_summary(issues)

    _json_out({
        "success": True,
        "issues": [issue.to_dict() for issue in issues],
        "summary": summary
    })


def cmd_layout(args):
    document = _load(args.file)
    if args.strategy == "layered":
        document = apply_layered_layout(document)
    elif args.strategy == "grid":
        document = document.model_copy(update={"nodes": grid_layout(document.nodes)})
    else:
        document = document.model_copy(
            update={"nodes": tree_layout(document.nodes, document.links)}
        )

    output = args.output or args.file
    _write(output, export_json(document))
    _json_out({"success": True, "strategy": args.strategy, "output": str(output),
               "node_count": len(document.nodes)})


def cmd_export(args):
    document = _load(args.file)
    if args.format == "svg":
        content = render_svg(document)
    elif args.format == "png":
        content = render_png(document, scale=args.scale)
    else:
        content = export_json(document)

    _write(args.output, content)
    _json_out({"success": True, "format": args.format, "output": args.output})


def cmd_generate(args):
    client = HttpGenerationClient(
        base_url=args.api_base,
        api_key=args.api_key,
        neural=args.neural,
    )
    result = client.request(args.prompt)
    document = result.document

    if args.output:
        _write(args.output, export_json(document))
        _json_out({
            "success": True,
            "output": args.output,
            "node_count": len(document.nodes),
            "link_count": len(document.links),
            "generation_count": result.generation_count,
        })
    print(export_json(document))
    sys.exit(0)


# ── Main ─────────────────────────────────────────────────────────────────────

def build_parser():
    from .config import GENERATION_API_BASE

    parser = argparse.ArgumentParser(prog="diagram-engine", description="Diagram engine CLI")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("validate", help="Lint a diagram document")
    p.add_argument("file")

    p = sub.add_parser("layout", help="Re-position nodes with an auto-layout")
    p.add_argument("file")
    p.add_argument("--strategy", choices=["layered", "grid", "tree"], default="layered")
    p.add_argument("-o", "--output", default=None, help="Output file (default: overwrite input)")

    p = sub.add_parser("export", help="Export a diagram as SVG, PNG or JSON")
    p.add_argument("file")
    p.add_argument("--format", choices=["svg", "png", "json"], default="svg")
    p.add_argument("--scale", type=int, default=2, help="PNG supersampling factor")
    p.add_argument("-o", "--output", required=True)

    p = sub.add_parser("generate", help="Generate a diagram from a prompt")
    p.add_argument("prompt")
    p.add_argument("--neural", action="store_true", help="Generate a neural network diagram")
    p.add_argument("--api-base", default=GENERATION_API_BASE)
    p.add_argument("--api-key", default=None)
    p.add_argument("-o", "--output", default=None)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    cmd_map = {
        "validate": cmd_validate,
        "layout": cmd_layout,
        "export": cmd_export,
        "generate": cmd_generate,
    }
    try:
        cmd_map[args.command](args)
    except DiagramError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        _fail(str(e))


if __name__ == "__main__":
    main()
