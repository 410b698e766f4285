"""
Flust Compiler
==============
Converts a Flow into standalone Rust (tokio) source.

Pipeline:
    flow document  →  [core.parser]             →  Flow
    Flow           →  [core.topological_sort]   →  ordered scopes
    ordered scopes →  [templates + generator]   →  Rust source str

Public API
----------
    from flust.compiler import compile_source, generate

    source = compile_source(open("flow.yaml").read())
    # or
    source = generate(flow)
"""

from __future__ import annotations

from flust.core.ir import Flow
from flust.core.parser import parse_str

from .generator import EMPTY_PROGRAM, generate
from .template_engine import Template, render


def compile_source(content: str, *, strict: bool = False) -> str:
    """
    Parse a YAML/JSON flow document and compile it.

    Raises:
        ParseError:      The document is malformed.
        GenerationError: The flow cannot be compiled.
    """
    flow: Flow = parse_str(content, strict=strict)
    return generate(flow)


__all__ = ["EMPTY_PROGRAM", "Template", "compile_source", "generate", "render"]
