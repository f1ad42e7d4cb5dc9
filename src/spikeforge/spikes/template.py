"""Minimal template grammar for spike files.

The grammar is closed on purpose; nothing outside it is evaluated:

    {{ name }}                     substitute a parameter value
    {{#if name}} … {{else}} … {{/if}}
    {{#unless name}} … {{/unless}} inverse conditional
    {{#each name}} … {{/each}}     iterate a list; {{this}} and {{@index}} inside
    \\{{                           literal "{{"

Block tags that sit alone on a line drop that line from the output, so
conditionals do not leave blank lines behind.

Truthiness: booleans as is, numbers non-zero, lists non-empty, strings
non-empty, None false.

A reference to a name missing from the render context raises TemplateError:
a rendered file never contains a literal placeholder.
"""


import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from spikeforge.foundation.errors import ErrorCode, TemplateError, template_error

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_TOKEN_RE = re.compile(r"(?P<escape>\\\{\{)|\{\{(?P<tag>.*?)\}\}", re.DOTALL)
_LOOP_NAMES = frozenset({"this", "@index"})
_BLOCKS = frozenset({"if", "unless", "each"})


# =============================================================================
# AST
# =============================================================================


@dataclass(frozen=True, slots=True)
class Text:
    value: str


@dataclass(frozen=True, slots=True)
class Var:
    name: str
    line: int


@dataclass(frozen=True, slots=True)
class Conditional:
    name: str
    negate: bool
    body: tuple["Node", ...]
    otherwise: tuple["Node", ...]
    line: int


@dataclass(frozen=True, slots=True)
class Each:
    name: str
    body: tuple["Node", ...]
    line: int


Node = Text | Var | Conditional | Each


# =============================================================================
# Tokenizer
# =============================================================================


@dataclass(slots=True)
class _Token:
    kind: str  # "text" | "tag"
    value: str
    line: int = 0
    block: bool = False


def _tokenize(source: str, source_name: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    for match in _TOKEN_RE.finditer(source):
        if match.start() > pos:
            tokens.append(_Token("text", source[pos:match.start()]))
        if match.group("escape") is not None:
            tokens.append(_Token("text", "{{"))
        else:
            body = match.group("tag").strip()
            line = source.count("\n", 0, match.start()) + 1
            block = body.startswith(("#", "/")) or body == "else"
            tokens.append(_Token("tag", body, line=line, block=block))
        pos = match.end()

    tail = source[pos:]
    if "{{" in tail:
        line = source.count("\n", 0, pos + tail.index("{{")) + 1
        raise template_error(
            ErrorCode.TEMPLATE_SYNTAX,
            source=source_name,
            detail=f"line {line}: unclosed '{{{{' tag",
        )
    if tail:
        tokens.append(_Token("text", tail))

    _strip_standalone_lines(tokens)
    return tokens


_LEADING_LINE = re.compile(r"^[ \t]*(\r?\n|$)")
_TRAILING_INDENT = re.compile(r"[ \t]*$")


def _strip_standalone_lines(tokens: list[_Token]) -> None:
    """Remove the line of every block tag that is alone on its line."""
    standalone: list[int] = []
    for i, tok in enumerate(tokens):
        if tok.kind != "tag" or not tok.block:
            continue
        prev = tokens[i - 1] if i > 0 else None
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None

        if prev is None:
            prev_ok = True
        elif prev.kind == "text":
            prev_ok = bool(re.search(r"\n[ \t]*$", prev.value)) or (
                i - 1 == 0 and re.fullmatch(r"[ \t]*", prev.value) is not None
            )
        else:
            prev_ok = False

        if nxt is None:
            next_ok = True
        elif nxt.kind == "text":
            m = _LEADING_LINE.match(nxt.value)
            next_ok = m is not None and (m.group(1) != "" or i + 1 == len(tokens) - 1)
        else:
            next_ok = False

        if prev_ok and next_ok:
            standalone.append(i)

    for i in standalone:
        if i > 0 and tokens[i - 1].kind == "text":
            tokens[i - 1].value = _TRAILING_INDENT.sub("", tokens[i - 1].value)
        if i + 1 < len(tokens) and tokens[i + 1].kind == "text":
            tokens[i + 1].value = _LEADING_LINE.sub("", tokens[i + 1].value, count=1)


# =============================================================================
# Parser
# =============================================================================


@dataclass(frozen=True, slots=True)
class Template:
    """A parsed template. Parse once, render many times."""

    source_name: str
    nodes: tuple[Node, ...]

    @property
    def variables(self) -> frozenset[str]:
        """Names the template reads from the render context."""
        found: set[str] = set()
        _collect_names(self.nodes, found)
        return frozenset(found)

    def render(self, context: dict[str, Any]) -> str:
        """Render against a context of resolved parameter values.

        Raises:
            TemplateError: A referenced name has no value, or an each block
                targets a value that is not a list.
        """
        out: list[str] = []
        _render_nodes(self.nodes, context, [], out, self.source_name)
        return "".join(out)


def _collect_names(nodes: tuple[Node, ...], found: set[str]) -> None:
    for node in nodes:
        if isinstance(node, Var):
            if node.name not in _LOOP_NAMES:
                found.add(node.name)
        elif isinstance(node, Conditional):
            if node.name not in _LOOP_NAMES:
                found.add(node.name)
            _collect_names(node.body, found)
            _collect_names(node.otherwise, found)
        elif isinstance(node, Each):
            found.add(node.name)
            _collect_names(node.body, found)


class _Parser:
    def __init__(self, tokens: list[_Token], source_name: str) -> None:
        self.tokens = tokens
        self.source_name = source_name
        self.pos = 0

    def error(self, line: int, detail: str) -> TemplateError:
        return template_error(
            ErrorCode.TEMPLATE_SYNTAX,
            source=self.source_name,
            detail=f"line {line}: {detail}",
        )

    def parse(self) -> tuple[Node, ...]:
        nodes, closer = self._parse_until(frozenset(), depth_each=0)
        if closer is not None:
            raise self.error(closer.line, f"unexpected '{{{{{closer.value}}}}}'")
        return nodes

    def _parse_until(
        self, closers: frozenset[str], depth_each: int
    ) -> tuple[tuple[Node, ...], _Token | None]:
        nodes: list[Node] = []
        while self.pos < len(self.tokens):
            tok = self.tokens[self.pos]
            self.pos += 1

            if tok.kind == "text":
                if tok.value:
                    nodes.append(Text(tok.value))
                continue

            body = tok.value
            if body == "else" or body.startswith("/"):
                if body in closers:
                    return tuple(nodes), tok
                raise self.error(tok.line, f"unexpected '{{{{{body}}}}}'")

            if body.startswith("#"):
                nodes.append(self._parse_block(tok, depth_each))
                continue

            if body in _LOOP_NAMES:
                if depth_each == 0:
                    raise self.error(tok.line, f"'{body}' used outside an each block")
            elif not _NAME_RE.match(body):
                raise self.error(tok.line, f"invalid placeholder '{body}'")
            nodes.append(Var(body, tok.line))

        return tuple(nodes), None

    def _parse_block(self, tok: _Token, depth_each: int) -> Node:
        parts = tok.value[1:].split()
        if len(parts) != 2 or parts[0] not in _BLOCKS:
            raise self.error(tok.line, f"invalid block tag '{{{{{tok.value}}}}}'")
        keyword, name = parts
        if name in _LOOP_NAMES:
            if depth_each == 0 or keyword == "each":
                raise self.error(tok.line, f"'{name}' cannot be used here")
        elif not _NAME_RE.match(name):
            raise self.error(tok.line, f"invalid name '{name}' in block tag")

        end_tag = f"/{keyword}"
        if keyword == "each":
            body, closer = self._parse_until(frozenset({end_tag}), depth_each + 1)
            if closer is None:
                raise self.error(tok.line, f"unclosed '{{{{#each {name}}}}}'")
            return Each(name, body, tok.line)

        body, closer = self._parse_until(frozenset({end_tag, "else"}), depth_each)
        otherwise: tuple[Node, ...] = ()
        if closer is not None and closer.value == "else":
            otherwise, closer = self._parse_until(frozenset({end_tag}), depth_each)
        if closer is None:
            raise self.error(tok.line, f"unclosed '{{{{#{keyword} {name}}}}}'")
        return Conditional(name, keyword == "unless", body, otherwise, tok.line)


@lru_cache(maxsize=1024)
def parse_template(source: str, source_name: str = "<template>") -> Template:
    """Parse template source into a reusable Template.

    Raises:
        TemplateError: On malformed or unbalanced tags.
    """
    tokens = _tokenize(source, source_name)
    return Template(source_name=source_name, nodes=_Parser(tokens, source_name).parse())


def render_string(source: str, context: dict[str, Any], source_name: str = "<template>") -> str:
    """Parse and render in one step."""
    return parse_template(source, source_name).render(context)


# =============================================================================
# Rendering
# =============================================================================


def format_value(value: Any) -> str:
    """String form of a resolved parameter value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ", ".join(format_value(v) for v in value)
    return str(value)


def is_truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return len(value) > 0


def _lookup(
    name: str,
    context: dict[str, Any],
    scopes: list[dict[str, Any]],
    line: int,
    source_name: str,
) -> Any:
    if name in _LOOP_NAMES:
        return scopes[-1][name]
    if name not in context:
        raise template_error(
            ErrorCode.TEMPLATE_UNRESOLVED,
            source=f"{source_name} line {line}",
            name=name,
        )
    return context[name]


def _render_nodes(
    nodes: tuple[Node, ...],
    context: dict[str, Any],
    scopes: list[dict[str, Any]],
    out: list[str],
    source_name: str,
) -> None:
    for node in nodes:
        if isinstance(node, Text):
            out.append(node.value)
        elif isinstance(node, Var):
            value = _lookup(node.name, context, scopes, node.line, source_name)
            if value is None:
                raise template_error(
                    ErrorCode.TEMPLATE_UNRESOLVED,
                    source=f"{source_name} line {node.line}",
                    name=node.name,
                )
            out.append(format_value(value))
        elif isinstance(node, Conditional):
            value = _lookup(node.name, context, scopes, node.line, source_name)
            if is_truthy(value) != node.negate:
                _render_nodes(node.body, context, scopes, out, source_name)
            else:
                _render_nodes(node.otherwise, context, scopes, out, source_name)
        else:
            value = _lookup(node.name, context, scopes, node.line, source_name)
            if value is None:
                continue
            if not isinstance(value, (list, tuple)):
                raise template_error(
                    ErrorCode.TEMPLATE_SYNTAX,
                    source=f"{source_name} line {node.line}",
                    detail=f"each requires a list, '{node.name}' is {type(value).__name__}",
                )
            for index, item in enumerate(value):
                scopes.append({"this": item, "@index": index})
                try:
                    _render_nodes(node.body, context, scopes, out, source_name)
                finally:
                    scopes.pop()
