"""
Flust Compiler — Node Code Templates
====================================
A NodeTemplate turns one node into the Rust statements it contributes to the
scope it lives in:

  render(node, incoming, context) -> str
      ``incoming`` are the connections whose ``to`` is this node, in flow
      declaration order.  ``context`` is the node's properties stringified
      for the template engine (lists/dicts JSON-encoded).

Adding a new node type
----------------------
1. Subclass NodeTemplate and implement ``render``.
2. Decorate it:  @register_template("my-node-type")

Unregistered types are rejected by the generator with UnknownPluginTypeError;
there is no silent fallback.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Type

from flust.core.errors import MissingPropertyError, UnmappedArgumentError
from flust.core.ir import (
    CALL_FUNCTION,
    DEBUG,
    FUNCTION_DEFINITION,
    LEGACY_CODE,
    LEGACY_CODE_ALIAS,
    START_NODE,
    Connection,
    Node,
)

from .template_engine import Template

logger = logging.getLogger(__name__)

INDENT = "    "


# ── Code writer ───────────────────────────────────────────────────────────────

class CodeWriter:
    """Simple indented string accumulator.  Blank lines are never indented."""

    def __init__(self, indent: int = 0):
        self._lines: List[str] = []
        self._indent = indent

    def writeln(self, line: str = "") -> "CodeWriter":
        if line.strip():
            self._lines.append(INDENT * self._indent + line)
        else:
            self._lines.append("")
        return self

    def blank(self) -> "CodeWriter":
        return self.writeln()

    def comment(self, text: str) -> "CodeWriter":
        return self.writeln(f"// {text}")

    def push(self) -> "CodeWriter":
        self._indent += 1
        return self

    def pop(self) -> "CodeWriter":
        self._indent = max(0, self._indent - 1)
        return self

    def extend(self, lines: Sequence[str]) -> "CodeWriter":
        for line in lines:
            self.writeln(line)
        return self

    def block(self, text: str) -> "CodeWriter":
        """Write multi-line text, one writer line per source line."""
        return self.extend(text.splitlines())

    def lines(self) -> List[str]:
        return self._lines

    def result(self) -> str:
        return "\n".join(self._lines)


# ── Property helpers ──────────────────────────────────────────────────────────

def require_property(node: Node, key: str) -> Any:
    value = node.get(key)
    if value is None or value == "":
        raise MissingPropertyError(node.id, key)
    return value


def flag(node: Node, key: str, default: bool) -> bool:
    """Boolean property; accepts real booleans or "true"/"false" strings."""
    value = node.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def format_literal(text: str) -> str:
    """Escape ``text`` for the inside of a Rust ``format!``-style string literal."""
    text = text.replace("\\", "\\\\").replace('"', '\\"')
    return text.replace("{", "{{").replace("}", "}}")


def argument_list(node: Node) -> List[Dict[str, Any]]:
    """
    The ordered ``arguments`` property as a list of ``{name, type}`` dicts.
    Editors may store it JSON-encoded; both forms are accepted.
    """
    raw = node.get("arguments")
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise MissingPropertyError(node.id, "arguments") from None
    if not isinstance(raw, list):
        raise MissingPropertyError(node.id, "arguments")

    args: List[Dict[str, Any]] = []
    for i, arg in enumerate(raw):
        if not isinstance(arg, Mapping) or not arg.get("name"):
            raise MissingPropertyError(node.id, f"arguments[{i}].name")
        args.append(dict(arg))
    return args


# ── Base template + registry ──────────────────────────────────────────────────

class NodeTemplate:
    """
    Base class — subclass and implement ``render``.

    Structural templates (scope markers, containers) set ``emits_inline`` to
    False; the generator never calls ``render`` on them inside a scope.
    """

    emits_inline = True

    def render(self, node: Node, incoming: Sequence[Connection], context: Mapping[str, str]) -> str:
        raise NotImplementedError(f"{type(self).__name__} does not emit code")


TEMPLATE_REGISTRY: Dict[str, NodeTemplate] = {}


def register_template(*type_names: str) -> Callable[[Type[NodeTemplate]], Type[NodeTemplate]]:
    """Decorator to register a template class for one or more plugin types."""
    def decorator(template_cls: Type[NodeTemplate]) -> Type[NodeTemplate]:
        instance = template_cls()
        for type_name in type_names:
            if type_name in TEMPLATE_REGISTRY:
                raise ValueError(f"Plugin type '{type_name}' is already registered.")
            TEMPLATE_REGISTRY[type_name] = instance
        return template_cls
    return decorator


def get_template(type_name: str) -> Optional[NodeTemplate]:
    return TEMPLATE_REGISTRY.get(type_name)


def registered_plugin_types() -> List[str]:
    return sorted(TEMPLATE_REGISTRY)


# ── Structural nodes ──────────────────────────────────────────────────────────

@register_template(START_NODE)
class StartNodeTemplate(NodeTemplate):
    """Scope-entry marker; contributes no text."""

    emits_inline = False


@register_template(FUNCTION_DEFINITION)
class FunctionDefinitionTemplate(NodeTemplate):
    """
    Containers are emitted by the generator at the outer level only.  This
    template supplies the signature line for them.
    """

    emits_inline = False

    SIGNATURE = Template(
        "async fn {{function_name}}("
        "{{#each arguments}}{{name}}: {{type}}{{#unless @last}}, {{/unless}}{{/each}}"
        "){{return_annotation}} {"
    )

    def signature(self, node: Node, context: Mapping[str, str]) -> str:
        name = require_property(node, "function_name")
        args = argument_list(node)
        for i, arg in enumerate(args):
            if not arg.get("type"):
                raise MissingPropertyError(node.id, f"arguments[{i}].type")

        return_type = context.get("return_type", "").strip()
        scope = dict(context)
        scope["function_name"] = str(name)
        scope["arguments"] = json.dumps(args, default=str)
        scope["return_annotation"] = f" -> {return_type}" if return_type else ""
        return self.SIGNATURE.render(scope)


# ── legacy-code ───────────────────────────────────────────────────────────────

@register_template(LEGACY_CODE, LEGACY_CODE_ALIAS)
class LegacyCodeTemplate(NodeTemplate):
    """Raw Rust passthrough; embedded line breaks are preserved."""

    TEMPLATE = Template("{{code}}")

    def render(self, node: Node, incoming: Sequence[Connection], context: Mapping[str, str]) -> str:
        scope = dict(context)
        scope.setdefault("code", "")
        return self.TEMPLATE.render(scope)


# ── debug ─────────────────────────────────────────────────────────────────────

@register_template(DEBUG)
class DebugTemplate(NodeTemplate):
    """println! of a variable, prefixed with its label when one is set."""

    TEMPLATE = Template(
        '{{#if label}}println!("{{label}}: {:?}", {{variable}});\n'
        '{{else}}println!("{:?}", {{variable}});\n'
        "{{/if}}"
    )

    def render(self, node: Node, incoming: Sequence[Connection], context: Mapping[str, str]) -> str:
        require_property(node, "variable")
        scope = dict(context)
        if scope.get("label"):
            scope["label"] = format_literal(scope["label"])
        return self.TEMPLATE.render(scope)


# ── call-function ─────────────────────────────────────────────────────────────

@register_template(CALL_FUNCTION)
class CallFunctionTemplate(NodeTemplate):
    """
    Awaited call to a generated async function.

        let [mut ]var[: Type] = target(args).await;    declare_variable (default)
        var = target(args).await;                       declare_variable: false
        target(args).await;                             no return_variable

    Argument values come from the ``variable_mapping`` of the first incoming
    connection only; fan-in mappings are not merged.
    """

    def _argument_values(self, node: Node, incoming: Sequence[Connection]) -> List[str]:
        args = argument_list(node)
        if not args:
            return []

        mapping: Mapping[str, str] = {}
        if incoming:
            mapping = incoming[0].variable_mapping or {}
            if len(incoming) > 1:
                logger.debug(
                    f"Node '{node.id}' has {len(incoming)} incoming connections; "
                    f"using the mapping from '{incoming[0].from_id}'"
                )

        values: List[str] = []
        for arg in args:
            name = str(arg["name"])
            value = mapping.get(name)
            if value is None or value == "":
                raise UnmappedArgumentError(node.id, name)
            values.append(value)
        return values

    def render(self, node: Node, incoming: Sequence[Connection], context: Mapping[str, str]) -> str:
        target = require_property(node, "target_function")
        call = f"{target}({', '.join(self._argument_values(node, incoming))}).await"

        return_variable = context.get("return_variable", "").strip()
        if not return_variable:
            return f"{call};"

        if not flag(node, "declare_variable", True):
            return f"{return_variable} = {call};"

        mutability = "mut " if flag(node, "is_mutable", False) else ""
        return_type = context.get("return_type", "").strip()
        annotation = f": {return_type}" if return_type else ""
        return f"let {mutability}{return_variable}{annotation} = {call};"


__all__ = [
    "CodeWriter",
    "NodeTemplate",
    "TEMPLATE_REGISTRY",
    "argument_list",
    "flag",
    "format_literal",
    "get_template",
    "register_template",
    "registered_plugin_types",
    "require_property",
]
