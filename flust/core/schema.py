"""
Flust Core — Flow document schema + validator
=============================================
Defines the serialisation format of a flow and validates a parsed document
without any third-party JSON Schema library.

Canonical format (YAML shown; JSON with the same keys is equivalent)
--------------------------------------------------------------------

    nodes:
      - id: f1                              # unique within the flow (str, required)
        plugin_type: function-definition    # or "type" (str, required)
        label: Power                        # display name (str, optional)
        parent_id: null                     # containing function-definition (str, optional)
        properties:                         # plugin-specific values (mapping, optional)
          function_name: pow
          arguments: [{name: num, type: i8}]
        return_type: i32                    # unknown keys are merged into properties
    connections:                            # optional
      - from: s1                            # source node id (str, required)
        to: c1                              # target node id (str, required)
        connection_type: FunctionCall       # Simple | FunctionCall (optional)
        variable_mapping: {num: a}          # argument → caller variable (mapping, optional)

Known plugin types
------------------
  function-definition ─ container; children form an async fn body
  start-node          ─ scope-entry marker, emits nothing
  call-function       ─ awaits a call to another generated function
  legacy-code         ─ raw Rust passthrough (alias: legacy_code)
  debug               ─ println! of a variable
"""

from __future__ import annotations

import warnings
from typing import Any, Dict, List

from .errors import ParseError
from .ir import (
    CALL_FUNCTION,
    DEBUG,
    FUNCTION_DEFINITION,
    LEGACY_CODE,
    LEGACY_CODE_ALIAS,
    START_NODE,
)


KNOWN_PLUGIN_TYPES: frozenset[str] = frozenset({
    FUNCTION_DEFINITION,
    START_NODE,
    CALL_FUNCTION,
    LEGACY_CODE,
    LEGACY_CODE_ALIAS,
    DEBUG,
})

NODE_FIELDS: frozenset[str] = frozenset({"id", "plugin_type", "type", "label", "parent_id", "properties"})

CONNECTION_TYPES: frozenset[str] = frozenset({"Simple", "FunctionCall", "simple", "function_call"})


# ── Validation helpers ────────────────────────────────────────────────────────

def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ParseError(message)


def _require_keys(obj: Dict, keys: List[str], context: str) -> None:
    for key in keys:
        _require(key in obj, f"{context}: missing required field '{key}'")


def _optional_str(obj: Dict, key: str, context: str) -> None:
    if obj.get(key) is not None:
        _require(isinstance(obj[key], str), f"{context}.{key} must be a string")


def plugin_type_of(node: Dict[str, Any]) -> Any:
    """``plugin_type`` wins over the ``type`` alias when both are present."""
    return node["plugin_type"] if "plugin_type" in node else node.get("type")


# ── Public validator ─────────────────────────────────────────────────────────

def validate(data: Any, *, strict: bool = False) -> None:
    """
    Validate a parsed flow document.

    Args:
        data:   The result of ``yaml.safe_load`` / ``json.loads``.
        strict: When True, raise ParseError for unknown plugin types.
                When False (default), unknown types produce a warning and
                are left for the generator to reject.

    Raises:
        ParseError: On any structural violation.
    """
    _require(isinstance(data, dict), "flow document must be a mapping at the top level")
    _require_keys(data, ["nodes"], "flow root")
    _require(isinstance(data["nodes"], list), "nodes must be a list")

    connections = data.get("connections")
    _require(connections is None or isinstance(connections, list), "connections must be a list")

    # ── Validate nodes ──────────────────────────────────────────────────────

    node_ids: set[str] = set()

    for i, node in enumerate(data["nodes"]):
        ctx = f"nodes[{i}]"
        _require(isinstance(node, dict), f"{ctx}: each node must be a mapping")
        _require_keys(node, ["id"], ctx)
        _require("plugin_type" in node or "type" in node, f"{ctx}: missing required field 'plugin_type'")
        _require(isinstance(node["id"], str), f"{ctx}.id must be a string")
        _require(isinstance(plugin_type_of(node), str), f"{ctx}.plugin_type must be a string")
        _require(
            node["id"] not in node_ids,
            f"{ctx}: duplicate node id '{node['id']}'",
        )
        node_ids.add(node["id"])

        _optional_str(node, "label", ctx)
        _optional_str(node, "parent_id", ctx)
        if node.get("properties") is not None:
            _require(isinstance(node["properties"], dict), f"{ctx}.properties must be a mapping")

        plugin_type = plugin_type_of(node)
        if plugin_type not in KNOWN_PLUGIN_TYPES:
            msg = f"{ctx}: unknown plugin type '{plugin_type}'"
            if strict:
                raise ParseError(msg)
            warnings.warn(msg + " (generation will fail for this node)", stacklevel=3)

    # ── Validate connections ────────────────────────────────────────────────

    for i, conn in enumerate(connections or []):
        ctx = f"connections[{i}]"
        _require(isinstance(conn, dict), f"{ctx}: each connection must be a mapping")
        _require_keys(conn, ["from", "to"], ctx)

        for key in ("from", "to"):
            _require(isinstance(conn[key], str), f"{ctx}.{key} must be a string")
            _require(
                conn[key] in node_ids,
                f"{ctx}: {key} '{conn[key]}' not found in nodes",
            )

        if conn.get("connection_type") is not None:
            _require(
                isinstance(conn["connection_type"], str) and conn["connection_type"] in CONNECTION_TYPES,
                f"{ctx}.connection_type must be one of Simple, FunctionCall",
            )

        mapping = conn.get("variable_mapping")
        if mapping is not None:
            _require(isinstance(mapping, dict), f"{ctx}.variable_mapping must be a mapping")
            for arg, value in mapping.items():
                _require(
                    isinstance(arg, str) and isinstance(value, (str, int, float, bool)),
                    f"{ctx}.variable_mapping entries must map names to scalar values",
                )


__all__ = ["KNOWN_PLUGIN_TYPES", "NODE_FIELDS", "plugin_type_of", "validate"]
