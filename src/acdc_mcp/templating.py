"""Prompt template compiler.

Prompt bodies use the ``{{.Name}}`` action syntax:

- ``{{.topic}}`` substitutes an argument (missing keys render as ``""``)
- ``{{if .topic}}...{{else if .other}}...{{else}}...{{end}}`` conditionals
- ``not``, ``and``, ``or``, ``eq`` and ``ne`` in conditions and substitutions
- ``{{/* comment */}}`` comments
- ``{{-`` and ``-}}`` trim the whitespace on that side of the action

Templates are compiled once at discovery time; syntax errors raise
``TemplateSyntaxError`` so the prompt file can be skipped.
"""

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import TemplateSyntaxError

_ACTION_RE = re.compile(r"\{\{(-\s)?(.*?)(\s-)?\}\}", re.DOTALL)
_TOKEN_RE = re.compile(r'\s*(\.[A-Za-z_][A-Za-z0-9_]*|"(?:[^"\\]|\\.)*"|[A-Za-z_][A-Za-z0-9_]*|\S)')
_FUNCTIONS = {"not", "and", "or", "eq", "ne"}


def _truthy(value: Any) -> bool:
    return bool(value)


def _format(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# Expressions

@dataclass
class _Field:
    name: str

    def evaluate(self, data: Mapping[str, Any]) -> Any:
        return data.get(self.name, "")


@dataclass
class _Literal:
    value: str

    def evaluate(self, data: Mapping[str, Any]) -> Any:
        return self.value


@dataclass
class _Call:
    function: str
    args: list

    def evaluate(self, data: Mapping[str, Any]) -> Any:
        values = [arg.evaluate(data) for arg in self.args]
        if self.function == "not":
            return not _truthy(values[0])
        if self.function == "and":
            for value in values:
                if not _truthy(value):
                    return value
            return values[-1]
        if self.function == "or":
            for value in values:
                if _truthy(value):
                    return value
            return values[-1]
        if self.function == "eq":
            return any(values[0] == other for other in values[1:])
        return values[0] != values[1]


# Nodes

@dataclass
class _Text:
    text: str

    def render(self, data: Mapping[str, Any], out: list[str]) -> None:
        out.append(self.text)


@dataclass
class _Value:
    expr: Any

    def render(self, data: Mapping[str, Any], out: list[str]) -> None:
        out.append(_format(self.expr.evaluate(data)))


@dataclass
class _If:
    condition: Any
    body: list = field(default_factory=list)
    orelse: list = field(default_factory=list)

    def render(self, data: Mapping[str, Any], out: list[str]) -> None:
        branch = self.body if _truthy(self.condition.evaluate(data)) else self.orelse
        for node in branch:
            node.render(data, out)


class Template:
    """A compiled prompt template."""

    def __init__(self, name: str, source: str, nodes: list) -> None:
        self.name = name
        self.source = source
        self._nodes = nodes

    def render(self, data: Mapping[str, Any] | None = None) -> str:
        out: list[str] = []
        for node in self._nodes:
            node.render(data or {}, out)
        return "".join(out)

    def __repr__(self) -> str:
        return f"Template({self.name!r})"


def _parse_expression(body: str, template_name: str) -> Any:
    tokens = _TOKEN_RE.findall(body)
    if not tokens:
        raise TemplateSyntaxError(f"template {template_name!r}: missing value for command")

    def operand(token: str) -> Any:
        if token.startswith("."):
            return _Field(token[1:])
        if token.startswith('"'):
            try:
                return _Literal(json.loads(token))
            except ValueError as e:
                raise TemplateSyntaxError(f"template {template_name!r}: bad string literal {token}") from e
        raise TemplateSyntaxError(f"template {template_name!r}: unexpected {token!r} in command")

    head, rest = tokens[0], tokens[1:]
    if head in _FUNCTIONS:
        args = [operand(token) for token in rest]
        if head == "not" and len(args) != 1:
            raise TemplateSyntaxError(f"template {template_name!r}: wrong number of args for not")
        if head in ("eq", "ne") and len(args) < 2:
            raise TemplateSyntaxError(f"template {template_name!r}: wrong number of args for {head}")
        if head == "ne" and len(args) != 2:
            raise TemplateSyntaxError(f"template {template_name!r}: wrong number of args for ne")
        if head in ("and", "or") and not args:
            raise TemplateSyntaxError(f"template {template_name!r}: wrong number of args for {head}")
        return _Call(head, args)
    if head.isidentifier():
        raise TemplateSyntaxError(f"template {template_name!r}: function {head!r} not defined")
    if rest:
        raise TemplateSyntaxError(f"template {template_name!r}: unexpected {rest[0]!r} in operand")
    return operand(head)


def _tokenize(source: str, name: str) -> list[tuple]:
    """Split source into text and action tokens, applying trim markers."""
    tokens: list[tuple] = []
    pos = 0
    for match in _ACTION_RE.finditer(source):
        tokens.append(("text", source[pos:match.start()]))
        trim_left, body, trim_right = match.group(1), match.group(2), match.group(3)
        tokens.append(("action", body.strip(), bool(trim_left), bool(trim_right)))
        pos = match.end()
    tokens.append(("text", source[pos:]))

    for i, token in enumerate(tokens):
        if token[0] != "action":
            continue
        if token[2]:
            tokens[i - 1] = ("text", tokens[i - 1][1].rstrip())
        if token[3]:
            tokens[i + 1] = ("text", tokens[i + 1][1].lstrip())

    for token in tokens:
        if token[0] == "text" and "{{" in token[1]:
            raise TemplateSyntaxError(f"template {name!r}: unclosed action")
    return tokens


def compile_template(source: str, name: str = "") -> Template:
    """Compile template source, raising ``TemplateSyntaxError`` on bad syntax."""
    root: list = []
    # Each frame: (node list being filled, owning _If or None)
    stack: list[tuple[list, _If | None]] = [(root, None)]
    # Frames each pending {{end}} must close
    depth: list[int] = []

    for token in _tokenize(source, name):
        current, owner = stack[-1]
        if token[0] == "text":
            if token[1]:
                current.append(_Text(token[1]))
            continue

        body = token[1]
        if body.startswith("/*"):
            if not body.endswith("*/"):
                raise TemplateSyntaxError(f"template {name!r}: unclosed comment")
            continue

        keyword, _, remainder = body.partition(" ")
        if keyword == "if":
            node = _If(_parse_expression(remainder, name))
            current.append(node)
            stack.append((node.body, node))
            depth.append(1)
        elif keyword == "else":
            if owner is None or current is owner.orelse:
                raise TemplateSyntaxError(f"template {name!r}: unexpected {{{{else}}}}")
            stack.pop()
            remainder = remainder.strip()
            if remainder.startswith("if ") or remainder == "if":
                nested = _If(_parse_expression(remainder[2:], name))
                owner.orelse.append(nested)
                stack.append((owner.orelse, owner))
                stack.append((nested.body, nested))
                depth[-1] += 1
            elif remainder:
                raise TemplateSyntaxError(f"template {name!r}: unexpected {remainder!r} after else")
            else:
                stack.append((owner.orelse, owner))
        elif keyword == "end":
            if not depth:
                raise TemplateSyntaxError(f"template {name!r}: unexpected {{{{end}}}}")
            # One frame for the if plus one per chained "else if".
            del stack[-depth.pop():]
        elif keyword in ("range", "with", "define", "template", "block"):
            raise TemplateSyntaxError(f"template {name!r}: unsupported action {keyword!r}")
        else:
            current.append(_Value(_parse_expression(body, name)))

    if depth:
        raise TemplateSyntaxError(f"template {name!r}: unexpected EOF, missing {{{{end}}}}")
    return Template(name, source, root)
