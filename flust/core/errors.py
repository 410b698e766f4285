"""
Flust Core — Error taxonomy
===========================
Every failure aborts the whole compilation; nothing is retried and no partial
source is returned.  Each exception exposes ``kind`` (the stable name shown to
users by the CLI and the HTTP service) plus the identifiers needed to locate
the problem in the flow.

    FlustError
    ├── ParseError                 malformed flow document (also a ValueError)
    └── GenerationError
        ├── NodeNotFoundError      connection / parent / sort result references an unknown id
        ├── CycleDetectedError     a scope's connections are not a DAG
        ├── MissingPropertyError   required property absent for a plugin type
        ├── UnmappedArgumentError  call-function argument without a mapped value
        ├── UnknownPluginTypeError no template registered for the tag
        ├── DuplicateFunctionError two function-definition nodes share a name
        └── TemplateError          malformed template text
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Tuple


class FlustError(Exception):
    kind = "FlustError"

    def details(self) -> Dict[str, Any]:
        """Identifiers surfaced verbatim by the CLI / HTTP boundaries."""
        return {}


class ParseError(FlustError, ValueError):
    """Raised when a flow document fails to load or validate."""

    kind = "ParseError"


class GenerationError(FlustError):
    kind = "GenerationError"


class NodeNotFoundError(GenerationError):
    kind = "NodeNotFound"

    def __init__(self, node_id: str, referenced_by: Optional[str] = None):
        self.node_id = node_id
        self.referenced_by = referenced_by
        where = f" (referenced by {referenced_by})" if referenced_by else ""
        super().__init__(f"Node '{node_id}' not found{where}")

    def details(self) -> Dict[str, Any]:
        return {"node_id": self.node_id}


class CycleDetectedError(GenerationError):
    kind = "CycleDetected"

    def __init__(self, node_ids: Iterable[str]):
        self.node_ids: Tuple[str, ...] = tuple(node_ids)
        super().__init__(f"Cycle detected in flow graph between nodes: {', '.join(self.node_ids)}")

    def details(self) -> Dict[str, Any]:
        return {"node_ids": list(self.node_ids)}


class MissingPropertyError(GenerationError):
    kind = "MissingProperty"

    def __init__(self, node_id: str, property_name: str):
        self.node_id = node_id
        self.property_name = property_name
        super().__init__(f"Node '{node_id}' is missing required property '{property_name}'")

    def details(self) -> Dict[str, Any]:
        return {"node_id": self.node_id, "property": self.property_name}


class UnmappedArgumentError(GenerationError):
    kind = "UnmappedArgument"

    def __init__(self, node_id: str, argument: str):
        self.node_id = node_id
        self.argument = argument
        super().__init__(f"Node '{node_id}': no variable mapping for argument '{argument}'")

    def details(self) -> Dict[str, Any]:
        return {"node_id": self.node_id, "argument": self.argument}


class UnknownPluginTypeError(GenerationError):
    kind = "UnknownPluginType"

    def __init__(self, node_id: str, plugin_type: str):
        self.node_id = node_id
        self.plugin_type = plugin_type
        super().__init__(f"Unknown plugin type '{plugin_type}' on node '{node_id}'")

    def details(self) -> Dict[str, Any]:
        return {"node_id": self.node_id, "plugin_type": self.plugin_type}


class DuplicateFunctionError(GenerationError):
    kind = "DuplicateFunction"

    def __init__(self, function_name: str, node_ids: Iterable[str]):
        self.function_name = function_name
        self.node_ids: Tuple[str, ...] = tuple(node_ids)
        super().__init__(
            f"Function '{function_name}' is defined more than once (nodes: {', '.join(self.node_ids)})"
        )

    def details(self) -> Dict[str, Any]:
        return {"function_name": self.function_name, "node_ids": list(self.node_ids)}


class TemplateError(GenerationError):
    kind = "TemplateError"

    def __init__(self, message: str, position: int):
        self.position = position
        super().__init__(f"{message} at offset {position}")

    def details(self) -> Dict[str, Any]:
        return {"position": self.position}


__all__ = [
    "CycleDetectedError",
    "DuplicateFunctionError",
    "FlustError",
    "GenerationError",
    "MissingPropertyError",
    "NodeNotFoundError",
    "ParseError",
    "TemplateError",
    "UnknownPluginTypeError",
    "UnmappedArgumentError",
]
