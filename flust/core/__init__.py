"""
Flust Core
==========
Data model, error taxonomy, dependency sorter and flow-document parser.
Nothing in this package knows how Rust is emitted.
"""

from .errors import (
    CycleDetectedError,
    DuplicateFunctionError,
    FlustError,
    GenerationError,
    MissingPropertyError,
    NodeNotFoundError,
    ParseError,
    TemplateError,
    UnknownPluginTypeError,
    UnmappedArgumentError,
)
from .ir import Connection, ConnectionType, Flow, Node
from .parser import flow_from_dict, parse_file, parse_str
from .topological_sort import TopologicalSort, topological_sort

__all__ = [
    "Connection",
    "ConnectionType",
    "CycleDetectedError",
    "DuplicateFunctionError",
    "Flow",
    "FlustError",
    "GenerationError",
    "MissingPropertyError",
    "Node",
    "NodeNotFoundError",
    "ParseError",
    "TemplateError",
    "TopologicalSort",
    "UnknownPluginTypeError",
    "UnmappedArgumentError",
    "flow_from_dict",
    "parse_file",
    "parse_str",
    "topological_sort",
]
