"""Template parser producing a small tagged-variant syntax tree.

Supported syntax:
    - ``{{expr}}``: variable placeholder
    - ``{{#if expr}}...{{else}}...{{/if}}``: conditional, ``else`` optional
    - ``{{#each item in expr}}...{{/each}}``: loop over a sequence

Directives nest to any depth. Tags that do not pair up (a closing tag with
no opener, an opener never closed) are kept as literal text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache

EXPR = r"[\w.\[\]]+"

TAG_PATTERN = re.compile(
    r"\{\{(?:"
    rf"#each\s+(?P<item>\w+)\s+in\s+(?P<source>{EXPR})"
    rf"|#if\s+(?P<condition>{EXPR})"
    r"|(?P<otherwise>else)"
    r"|/(?P<close>each|if)"
    rf"|(?P<expr>{EXPR})"
    r")\}\}"
)


@dataclass(frozen=True, slots=True)
class Text:
    """Literal text copied to the output unchanged."""

    value: str


@dataclass(frozen=True, slots=True)
class Variable:
    """A ``{{expr}}`` placeholder; ``raw`` is the tag as written."""

    expr: str
    raw: str


@dataclass(frozen=True, slots=True)
class Conditional:
    condition: str
    then: tuple[Node, ...]
    otherwise: tuple[Node, ...] = ()


@dataclass(frozen=True, slots=True)
class Loop:
    item: str
    source: str
    body: tuple[Node, ...]


Node = Text | Variable | Conditional | Loop


@dataclass(slots=True)
class _Frame:
    kind: str
    raw: str = ""
    item: str = ""
    expr: str = ""
    nodes: list[Node] = field(default_factory=list)
    then: list[Node] | None = None
    else_raw: str = ""

    def unwind(self) -> list[Node]:
        """Flatten an unclosed directive back into literal text and children."""
        if self.then is not None:
            return [Text(self.raw), *self.then, Text(self.else_raw), *self.nodes]
        return [Text(self.raw), *self.nodes]


def _append(nodes: list[Node], node: Node) -> None:
    if isinstance(node, Text) and nodes and isinstance(nodes[-1], Text):
        nodes[-1] = Text(nodes[-1].value + node.value)
    elif not isinstance(node, Text) or node.value:
        nodes.append(node)


@lru_cache(maxsize=512)
def parse(template: str) -> tuple[Node, ...]:
    """Parse template text into a tuple of nodes.

    Results are cached by template text; nodes are immutable so a cached
    tree is safe to share between concurrent renders.
    """
    stack = [_Frame("root")]
    position = 0

    for match in TAG_PATTERN.finditer(template):
        frame = stack[-1]
        _append(frame.nodes, Text(template[position : match.start()]))
        position = match.end()
        raw = match.group(0)

        if match.group("source"):
            frame = _Frame("each", raw=raw, item=match.group("item"), expr=match.group("source"))
            stack.append(frame)
        elif match.group("condition"):
            stack.append(_Frame("if", raw=raw, expr=match.group("condition")))
        elif match.group("otherwise"):
            if frame.kind == "if" and frame.then is None:
                frame.then, frame.nodes, frame.else_raw = frame.nodes, [], raw
            else:
                _append(frame.nodes, Text(raw))
        elif match.group("close"):
            if frame.kind != match.group("close"):
                _append(frame.nodes, Text(raw))
                continue
            stack.pop()
            if frame.kind == "each":
                node: Node = Loop(frame.item, frame.expr, tuple(frame.nodes))
            elif frame.then is None:
                node = Conditional(frame.expr, tuple(frame.nodes))
            else:
                node = Conditional(frame.expr, tuple(frame.then), tuple(frame.nodes))
            _append(stack[-1].nodes, node)
        else:
            _append(frame.nodes, Variable(match.group("expr"), raw))

    _append(stack[-1].nodes, Text(template[position:]))
    while len(stack) > 1:
        frame = stack.pop()
        for node in frame.unwind():
            _append(stack[-1].nodes, node)

    return tuple(stack[0].nodes)
