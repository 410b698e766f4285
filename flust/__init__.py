"""
Flust — compile visual flow graphs into async Rust.

    from flust import parse_file, generate

    source = generate(parse_file("my_flow.yaml"))
"""

from flust.compiler import compile_source, generate, render
from flust.core import (
    Connection,
    ConnectionType,
    Flow,
    FlustError,
    GenerationError,
    Node,
    ParseError,
    flow_from_dict,
    parse_file,
    parse_str,
)

__version__ = "0.1.0"

__all__ = [
    "Connection",
    "ConnectionType",
    "Flow",
    "FlustError",
    "GenerationError",
    "Node",
    "ParseError",
    "compile_source",
    "flow_from_dict",
    "generate",
    "parse_file",
    "parse_str",
    "render",
]
