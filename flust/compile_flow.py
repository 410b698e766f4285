"""
compile_flow.py — CLI for the Flust flow compiler
=================================================
Compiles a YAML or JSON flow file into a Cargo project (or prints the
generated Rust source).

Usage
-----
    flust compile -i <flow.yaml> -o <dir> [options]
    python -m flust.compile_flow compile -i <flow.yaml> -o <dir> [options]

Options
-------
    -i, --input   <file>   Flow file (YAML or JSON)
    -o, --output  <dir>    Output Cargo project directory
    --print                Print the generated source to stdout instead of writing a project
    --strict               Treat unknown plugin types as parse errors (default: FLUST_STRICT)
    -v, --verbose          Debug logging

Examples
--------
    # Compile into ./pow_project (Cargo.toml is created on first run):
    flust compile -i flust/examples/pow_flow.yaml -o pow_project

    # Print the generated source without writing a project:
    flust compile -i flust/examples/pow_flow.yaml --print
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from flust.compiler import generate
from flust.config import Settings, configure_logging
from flust.core.errors import GenerationError, ParseError
from flust.core.parser import parse_file
from flust.project import write_project


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="flust",
        description="Compile a Flust flow graph to async Rust.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = p.add_subparsers(dest="command", required=True)

    c = sub.add_parser("compile", help="Compile a flow file.")
    c.add_argument(
        "-i", "--input",
        required=True,
        metavar="FLOW",
        help="Input flow file (YAML/JSON).",
    )
    c.add_argument(
        "-o", "--output",
        metavar="DIR",
        help="Output directory for the generated Cargo project.",
    )
    c.add_argument(
        "--print",
        dest="print_only",
        action="store_true",
        help="Print generated source to stdout instead of writing a project.",
    )
    c.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Treat unknown plugin types as parse errors rather than warnings.",
    )
    c.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return p


def _compile(args: argparse.Namespace, settings: Settings) -> int:
    if not args.print_only and not args.output:
        print("[error] --output is required unless --print is given", file=sys.stderr)
        return 2

    flow_path = Path(args.input)
    if not flow_path.exists():
        print(f"[error] File not found: {flow_path}", file=sys.stderr)
        return 1

    strict = settings.strict if args.strict is None else args.strict

    # ── Parse ────────────────────────────────────────────────────────────────
    try:
        flow = parse_file(flow_path, strict=strict)
    except ParseError as exc:
        print(f"[error] {exc.kind}: {exc}", file=sys.stderr)
        return 1

    print(f"[flust] input       : {flow_path}", file=sys.stderr)
    print(f"[flust] nodes       : {len(flow.nodes)}", file=sys.stderr)
    print(f"[flust] connections : {len(flow.connections)}", file=sys.stderr)

    # ── Generate ─────────────────────────────────────────────────────────────
    try:
        source = generate(flow)
    except GenerationError as exc:
        print(f"[error] {exc.kind}: {exc}", file=sys.stderr)
        return 1

    # ── Output ───────────────────────────────────────────────────────────────
    if args.print_only:
        sys.stdout.write(source)
        return 0

    main_rs = write_project(args.output, source)
    print(f"[flust] wrote       : {main_rs}", file=sys.stderr)
    return 0


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    if args.command == "compile":
        return _compile(args, settings)
    parser.error(f"unknown command {args.command!r}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
