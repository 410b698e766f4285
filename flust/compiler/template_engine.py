"""
Flust Compiler — Template Engine
================================
A small Handlebars-flavoured text templating language used to materialise
per-node Rust snippets.

    render("{{#if label}}println!(\"{{label}}: {:?}\", {{variable}});{{/if}}",
           {"label": "Value", "variable": "x"})
    → 'println!("Value: {:?}", x);'

Syntax
------
    {{name}}                           variable; left as literal text when unresolved.
                                       Only the exact tag matches: {{ name }} is
                                       never substituted
    {{#if KEY}} … {{else}} … {{/if}}   KEY truthy = resolves to a non-empty string;
                                       the chosen branch is whitespace-trimmed
    {{#unless KEY}} … {{/unless}}      inverse of #if, body kept verbatim
    {{#each NAME}} … {{/each}}         NAME holds a JSON-encoded array of objects;
                                       body sees each object's properties plus
                                       @index, @first and @last

A template is parsed once into an immutable tree (memoised per source text)
and rendered by a separate pure pass.  Malformed templates raise
``TemplateError`` instead of being emitted half-substituted.

Lookup order inside a loop body is: loop variables, the element's own
properties, then the outer context.  This reproduces the classic
"loops first, then flat substitution, then conditionals" scan order.
"""

from __future__ import annotations

import functools
import json
from collections import ChainMap
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from flust.core.errors import TemplateError


def _tag(body: str) -> str:
    return "{{" + body + "}}"


def stringify(value: Any) -> str:
    """
    Context text for a property value: strings verbatim, bools lowercase,
    JSON for lists and mappings.  Other YAML scalars (dates, timestamps)
    use ``str()``, including when nested inside a container.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


# ── Syntax tree ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Text:
    value: str

    def render(self, scope: Mapping[str, str]) -> str:
        return self.value


@dataclass(frozen=True)
class Variable:
    name: str
    source: str   # original tag text, emitted when the name is unresolved

    def render(self, scope: Mapping[str, str]) -> str:
        value = scope.get(self.name)
        return self.source if value is None else value


@dataclass(frozen=True)
class If:
    key: str
    then_body: Tuple["TemplateNode", ...]
    else_body: Tuple["TemplateNode", ...] = ()

    def render(self, scope: Mapping[str, str]) -> str:
        branch = self.then_body if scope.get(self.key) else self.else_body
        return _render_all(branch, scope).strip()


@dataclass(frozen=True)
class Unless:
    key: str
    body: Tuple["TemplateNode", ...]

    def render(self, scope: Mapping[str, str]) -> str:
        return "" if scope.get(self.key) else _render_all(self.body, scope)


@dataclass(frozen=True)
class Each:
    name: str
    body: Tuple["TemplateNode", ...]

    def render(self, scope: Mapping[str, str]) -> str:
        raw = scope.get(self.name)
        if raw is None:
            return ""
        try:
            items = json.loads(raw)
        except (TypeError, ValueError):
            return ""
        if not isinstance(items, list):
            return ""

        last = len(items) - 1
        parts: List[str] = []
        for index, item in enumerate(items):
            loop_vars = {
                "@index": str(index),
                "@first": "true" if index == 0 else "",
                "@last":  "true" if index == last else "",
            }
            props = {k: stringify(v) for k, v in item.items()} if isinstance(item, dict) else {}
            parts.append(_render_all(self.body, ChainMap(loop_vars, props, scope)))
        return "".join(parts)


TemplateNode = Text | Variable | If | Unless | Each


def _render_all(nodes: Tuple[TemplateNode, ...], scope: Mapping[str, str]) -> str:
    return "".join(node.render(scope) for node in nodes)


# ── Tokenizer ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class _Token:
    kind: str       # "text" | "tag"
    value: str      # text, or the stripped tag body
    position: int
    source: str = ""


def _tokenize(template: str) -> List[_Token]:
    tokens: List[_Token] = []
    pos = 0
    while pos < len(template):
        start = template.find("{{", pos)
        if start == -1:
            tokens.append(_Token("text", template[pos:], pos))
            break
        if start > pos:
            tokens.append(_Token("text", template[pos:start], pos))
        end = template.find("}}", start + 2)
        if end == -1:
            raise TemplateError("Unterminated '{{' tag", start)
        source = template[start:end + 2]
        tokens.append(_Token("tag", template[start + 2:end].strip(), start, source))
        pos = end + 2
    return tokens


# ── Recursive-descent parser ──────────────────────────────────────────────────

_BLOCK_OPENERS = ("#if", "#unless", "#each")
_CLOSERS = ("else", "/if", "/unless", "/each")


class _Parser:
    def __init__(self, tokens: List[_Token]):
        self._tokens = tokens
        self._index = 0

    def parse(self) -> Tuple[TemplateNode, ...]:
        body, _ = self._parse_until((), opener=None)
        return body

    def _parse_until(
        self,
        closers: Tuple[str, ...],
        opener: Optional[_Token],
    ) -> Tuple[Tuple[TemplateNode, ...], Optional[_Token]]:
        nodes: List[TemplateNode] = []

        while self._index < len(self._tokens):
            token = self._tokens[self._index]
            self._index += 1

            if token.kind == "text":
                nodes.append(Text(token.value))
                continue

            if token.value in closers:
                return tuple(nodes), token
            if token.value in _CLOSERS:
                raise TemplateError(f"Unexpected '{_tag(token.value)}'", token.position)

            keyword, _, argument = token.value.partition(" ")
            argument = argument.strip()

            if keyword not in _BLOCK_OPENERS:
                # Variables match only the exact, unpadded name.
                nodes.append(Variable(token.source[2:-2], token.source))
                continue

            if not argument:
                raise TemplateError(f"'{_tag(keyword)}' requires a name", token.position)

            if keyword == "#if":
                then_body, closer = self._parse_until(("else", "/if"), opener=token)
                else_body: Tuple[TemplateNode, ...] = ()
                if closer is not None and closer.value == "else":
                    else_body, _ = self._parse_until(("/if",), opener=token)
                nodes.append(If(argument, then_body, else_body))
            elif keyword == "#unless":
                body, _ = self._parse_until(("/unless",), opener=token)
                nodes.append(Unless(argument, body))
            else:
                body, _ = self._parse_until(("/each",), opener=token)
                nodes.append(Each(argument, body))

        if opener is not None:
            raise TemplateError(f"Unclosed '{_tag(opener.value)}' block", opener.position)
        return tuple(nodes), None


# ── Public API ────────────────────────────────────────────────────────────────

class Template:
    """A parsed template; ``render`` may be called any number of times."""

    def __init__(self, source: str):
        self.source = source
        self.nodes = parse(source)

    def render(self, context: Mapping[str, str]) -> str:
        return _render_all(self.nodes, context)

    def __repr__(self) -> str:
        return f"Template({self.source!r})"


@functools.lru_cache(maxsize=256)
def parse(template: str) -> Tuple[TemplateNode, ...]:
    """Parse template text into its syntax tree.  Raises TemplateError."""
    return _Parser(_tokenize(template)).parse()


def render(template: str, context: Mapping[str, str]) -> str:
    """Render ``template`` against ``context``.  Pure: same inputs, same output."""
    return _render_all(parse(template), context)


__all__ = ["Each", "If", "Template", "Text", "Unless", "Variable", "parse", "render", "stringify"]
