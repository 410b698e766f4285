"""
Flust Core — Flow document parser
=================================
Converts a YAML or JSON flow description (text, file, or pre-parsed dict)
into a :class:`~flust.core.ir.Flow`.

Pipeline
--------
    flow.yaml / flow.json  →  [parser.parse_file]  →  Flow
    Flow                   →  [generator.generate] →  Rust source str

The document is validated by :mod:`flust.core.schema` first, so every
structural problem surfaces as a ``ParseError`` before generation starts.
Node keys outside the known set (id, plugin_type/type, label, parent_id,
properties) are folded into the node's properties, which is how flows saved
with flattened properties keep loading.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .errors import ParseError
from .ir import Connection, ConnectionType, Flow, Node
from .schema import NODE_FIELDS, plugin_type_of, validate

logger = logging.getLogger(__name__)


def _mapping_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# ── Element parsing ───────────────────────────────────────────────────────────

def _parse_node(node_spec: Dict[str, Any]) -> Node:
    properties = dict(node_spec.get("properties") or {})
    for key, value in node_spec.items():
        if key not in NODE_FIELDS:
            properties.setdefault(key, value)

    return Node(
        id=node_spec["id"],
        plugin_type=plugin_type_of(node_spec),
        label=node_spec.get("label"),
        properties=properties,
        parent_id=node_spec.get("parent_id"),
    )


def _parse_connection(conn_spec: Dict[str, Any]) -> Connection:
    mapping = conn_spec.get("variable_mapping")
    return Connection(
        from_id=conn_spec["from"],
        to_id=conn_spec["to"],
        connection_type=ConnectionType.parse(conn_spec.get("connection_type")),
        variable_mapping=(
            {arg: _mapping_value(value) for arg, value in mapping.items()}
            if mapping is not None else None
        ),
    )


# ── Public entry points ───────────────────────────────────────────────────────

def flow_from_dict(data: Any, *, strict: bool = False) -> Flow:
    """
    Build a Flow from an already-decoded document.

    Raises:
        ParseError: If the document fails validation.
    """
    validate(data, strict=strict)
    flow = Flow(
        nodes=tuple(_parse_node(n) for n in data["nodes"]),
        connections=tuple(_parse_connection(c) for c in data.get("connections") or []),
    )
    logger.debug(f"Parsed flow with {len(flow.nodes)} nodes and {len(flow.connections)} connections")
    return flow


def parse_str(content: str, *, strict: bool = False) -> Flow:
    """Parse YAML text.  JSON documents are accepted too (YAML is a superset)."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ParseError(f"Invalid flow document: {exc}") from exc
    return flow_from_dict(data, strict=strict)


def parse_file(path: Union[str, Path], *, strict: bool = False) -> Flow:
    """
    Load a flow file.  ``.json`` files are decoded with :mod:`json`, anything
    else with the YAML loader.

    Raises:
        FileNotFoundError: If the file does not exist.
        ParseError:        If the file is not a valid flow document.
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as fh:
            content = fh.read()
    except UnicodeDecodeError as exc:
        raise ParseError(f"{path}: not valid UTF-8: {exc}") from exc

    if path.suffix.lower() == ".json":
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ParseError(f"{path}: invalid JSON: {exc}") from exc
        return flow_from_dict(data, strict=strict)

    return parse_str(content, strict=strict)


__all__ = ["flow_from_dict", "parse_file", "parse_str"]
