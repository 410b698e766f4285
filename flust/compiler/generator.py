"""
Flust Compiler — Rust Source Generator
======================================
Converts a Flow into one Rust program built around tokio.

Output structure
----------------
    async fn helper(x: i32) -> i32 {          one per function-definition node
        <scope code of its direct children>   except the one named "main"
    }

    #[tokio::main]
    async fn main() {
        <scope code of the "main" container, or of every top-level
         node that is not a function-definition when there is none>
    }

Scope code
----------
For a set of sibling nodes:
  1. keep only the connections internal to the set,
  2. order the set with the dependency sorter (declaration-order tie-break),
  3. skip structural nodes (start-node, function-definition),
  4. render each remaining node through its registered template, passing the
     node's incoming connections,
  5. indent the rendered text one level (blank lines stay empty).

Every generated function is async, so every call site is ``.await``ed and
the entry point is always the tokio main.  Any error aborts the whole
compilation; no partial source is returned.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from flust.core.errors import (
    DuplicateFunctionError,
    MissingPropertyError,
    NodeNotFoundError,
    UnknownPluginTypeError,
)
from flust.core.ir import MAIN_FUNCTION, Connection, Flow, Node
from flust.core.topological_sort import scope_connections, topological_sort

from .template_engine import stringify
from .templates import CodeWriter, FunctionDefinitionTemplate, get_template

logger = logging.getLogger(__name__)

EMPTY_PROGRAM = "fn main() {\n    // Empty flow\n}\n"

ENTRY_POINT_SIGNATURE = ("#[tokio::main]", "async fn main() {")

_SIGNATURES = FunctionDefinitionTemplate()


def node_context(node: Node) -> Dict[str, str]:
    """Template context for a node: every property stringified."""
    return {key: stringify(value) for key, value in node.properties.items()}


class Generator:
    """
    One compilation of one Flow.  All indices are built in ``__init__`` and
    never shared between instances, so independent flows can be compiled
    concurrently.
    """

    def __init__(self, flow: Flow):
        self.flow = flow
        self.nodes: Dict[str, Node] = flow.node_map()
        self._check_references()

        self.children: Dict[Optional[str], List[Node]] = flow.children_by_parent()
        self.incoming: Dict[str, List[Connection]] = flow.incoming_by_target()

    # ── Validation ────────────────────────────────────────────────────────

    def _check_references(self) -> None:
        for conn in self.flow.connections:
            edge = f"connection {conn.from_id} -> {conn.to_id}"
            for node_id in (conn.from_id, conn.to_id):
                if node_id not in self.nodes:
                    raise NodeNotFoundError(node_id, referenced_by=edge)
        for node in self.flow.nodes:
            if node.parent_id is not None and node.parent_id not in self.nodes:
                raise NodeNotFoundError(node.parent_id, referenced_by=f"parent_id of '{node.id}'")

    def _function_containers(self) -> List[Node]:
        containers = self.flow.function_definitions()
        by_name: Dict[str, List[str]] = defaultdict(list)
        for container in containers:
            name = container.get("function_name")
            if name is None or name == "":
                raise MissingPropertyError(container.id, "function_name")
            by_name[str(name)].append(container.id)
        for name, node_ids in by_name.items():
            if len(node_ids) > 1:
                raise DuplicateFunctionError(name, node_ids)
        return containers

    # ── Node / scope emission ─────────────────────────────────────────────

    def generate_scope(self, scope_nodes: Sequence[Node], writer: CodeWriter) -> None:
        """Append the code of ``scope_nodes`` to ``writer`` at one extra indent level."""
        ids = [n.id for n in scope_nodes]
        ordered = topological_sort(ids, scope_connections(ids, self.flow.connections))
        logger.debug(f"Scope order: {ordered}")

        writer.push()
        for node_id in ordered:
            node = self.nodes.get(node_id)
            if node is None:
                raise NodeNotFoundError(node_id)

            template = get_template(node.plugin_type)
            if template is None:
                raise UnknownPluginTypeError(node.id, node.plugin_type)
            if not template.emits_inline:
                continue

            incoming = self.incoming.get(node.id, [])
            writer.block(template.render(node, incoming, node_context(node)))
        writer.pop()

    def generate_function(self, container: Node, writer: CodeWriter) -> None:
        writer.writeln(_SIGNATURES.signature(container, node_context(container)))
        self.generate_scope(self.children.get(container.id, []), writer)
        writer.writeln("}")

    def entry_nodes(self, main: Optional[Node]) -> List[Node]:
        top_level = [n for n in self.children.get(None, []) if not n.is_function_definition]
        if main is None:
            return top_level
        if top_level:
            logger.warning(
                f"Ignoring {len(top_level)} top-level node(s) outside any function because "
                f"'{MAIN_FUNCTION}' is defined: {[n.id for n in top_level]}"
            )
        return self.children.get(main.id, [])

    # ── Public API ────────────────────────────────────────────────────────

    def generate(self) -> str:
        containers = self._function_containers()
        main = next((c for c in containers if c.get("function_name") == MAIN_FUNCTION), None)

        writer = CodeWriter()
        for container in containers:
            if container is main:
                continue
            logger.debug(f"Generating function '{container.get('function_name')}' ({container.id})")
            self.generate_function(container, writer)
            writer.blank()

        writer.extend(ENTRY_POINT_SIGNATURE)
        self.generate_scope(self.entry_nodes(main), writer)
        writer.writeln("}")

        return writer.result() + "\n"


def generate(flow: Flow) -> str:
    """
    Compile a Flow into Rust source.

    Args:
        flow: The parsed flow.  It is only read.

    Returns:
        Complete program text.

    Raises:
        GenerationError: Any subclass; the first error met in sorted order.
    """
    if not flow.nodes:
        return EMPTY_PROGRAM

    source = Generator(flow).generate()
    logger.info(f"Generated {len(source.splitlines())} lines from {len(flow.nodes)} nodes")
    return source


__all__ = ["EMPTY_PROGRAM", "Generator", "generate", "node_context"]
