"""
Flust Core — Intermediate Representation
========================================
A Flow is the decoupled, read-only snapshot of a visual flow that every
compiler phase shares:

    flow document  →  [parser]     →  Flow
    Flow           →  [generator]  →  Rust source str

Design goals:
  - Pure data: frozen dataclasses holding tuples, no behaviour beyond queries.
  - Declaration order is preserved everywhere; it drives deterministic output.
  - Nodes form a two-level tree through ``parent_id`` (flat arena indexed by id).
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


FUNCTION_DEFINITION = "function-definition"
START_NODE          = "start-node"
CALL_FUNCTION       = "call-function"
LEGACY_CODE         = "legacy-code"
LEGACY_CODE_ALIAS   = "legacy_code"
DEBUG               = "debug"

MAIN_FUNCTION = "main"


def _frozen_mapping(value: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


# ── Connection type ──────────────────────────────────────────────────────────

class ConnectionType(Enum):
    SIMPLE        = "Simple"
    FUNCTION_CALL = "FunctionCall"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ConnectionType":
        """Accept both the IR spelling (``FunctionCall``) and the editor one (``function_call``)."""
        if raw is None:
            return cls.SIMPLE
        key = str(raw).replace("_", "").replace("-", "").lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        raise ValueError(f"Unknown connection type '{raw}'")


# ── Node ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Node:
    id: str
    plugin_type: str
    label: Optional[str]            = None
    properties: Mapping[str, Any]   = field(default_factory=dict)
    parent_id: Optional[str]        = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", _frozen_mapping(self.properties))

    @property
    def is_function_definition(self) -> bool:
        return self.plugin_type == FUNCTION_DEFINITION

    def get(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)


# ── Connection ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Connection:
    from_id: str
    to_id: str
    connection_type: ConnectionType                  = ConnectionType.SIMPLE
    variable_mapping: Optional[Mapping[str, str]]    = None

    def __post_init__(self) -> None:
        if self.variable_mapping is not None:
            object.__setattr__(self, "variable_mapping", _frozen_mapping(self.variable_mapping))


# ── Flow ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Flow:
    nodes: Tuple[Node, ...]             = ()
    connections: Tuple[Connection, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "connections", tuple(self.connections))

    # ── Convenience queries ────────────────────────────────────────────────
    # Indices are rebuilt on every call; the generator builds them once per
    # compilation and passes them around.

    def node_map(self) -> Dict[str, Node]:
        return {n.id: n for n in self.nodes}

    def get_node(self, node_id: str) -> Optional[Node]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def children_by_parent(self) -> Dict[Optional[str], List[Node]]:
        children: Dict[Optional[str], List[Node]] = defaultdict(list)
        for node in self.nodes:
            children[node.parent_id].append(node)
        return children

    def incoming_by_target(self) -> Dict[str, List[Connection]]:
        incoming: Dict[str, List[Connection]] = defaultdict(list)
        for conn in self.connections:
            incoming[conn.to_id].append(conn)
        return incoming

    def function_definitions(self) -> List[Node]:
        return [n for n in self.nodes if n.is_function_definition]


__all__ = [
    "CALL_FUNCTION",
    "Connection",
    "ConnectionType",
    "DEBUG",
    "FUNCTION_DEFINITION",
    "Flow",
    "LEGACY_CODE",
    "LEGACY_CODE_ALIAS",
    "MAIN_FUNCTION",
    "Node",
    "START_NODE",
]
