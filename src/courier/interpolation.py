"""Template rendering over nested data scopes.

Replaces ``{{expr}}`` placeholders and expands ``{{#each}}`` and ``{{#if}}``
directives against a data context. Unresolved placeholders are left in the
output unchanged so partially-filled templates can be rendered again later.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable, Mapping, Sequence
from typing import Any
from urllib.parse import quote

from courier.expression import UNDEFINED, Scope, evaluate
from courier.parser import Conditional, Loop, Node, Text, Variable, parse

logger = logging.getLogger(__name__)

Formatter = Callable[[Any], str]

# Characters left unescaped by JavaScript's encodeURIComponent.
URI_COMPONENT_SAFE = "-_.!~*'()"


def to_text(value: Any) -> str:
    """Return the plain string form used when substituting a value."""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Mapping | list | tuple):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def is_truthy(value: Any) -> bool:
    """Return whether a condition value selects the true branch.

    Mappings and sequences are true even when empty; null, missing values,
    empty strings, zero, NaN and false are not.
    """
    if value is UNDEFINED or value is None:
        return False
    if isinstance(value, Mapping | list | tuple):
        return True
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def quote_component(value: Any) -> str:
    """Percent-encode a value for use inside a URL path or query."""
    return quote(to_text(value), safe=URI_COMPONENT_SAFE)


def _nodes(block: str | Sequence[Node] | None) -> Sequence[Node]:
    if block is None:
        return ()
    return parse(block) if isinstance(block, str) else block


def process_conditional(
    condition: str,
    true_block: str | Sequence[Node],
    false_block: str | Sequence[Node] | None,
    scope: Scope | Any,
) -> str | Sequence[Node]:
    """Pick the branch of an ``#if`` directive.

    The chosen block is returned unrendered; the caller renders it so that
    directives and variables inside the discarded branch are never evaluated.
    """
    if is_truthy(evaluate(condition, scope)):
        return true_block
    return false_block if false_block is not None else ""


def process_loop(
    item_name: str,
    array_expr: str,
    loop_body: str | Sequence[Node],
    scope: Scope | Any,
    formatter: Formatter | None = None,
    _missing: list[str] | None = None,
) -> str:
    """Expand an ``#each`` directive.

    Args:
        item_name: Name bound to each element inside the body.
        array_expr: Expression that should resolve to a sequence.
        loop_body: Template text or parsed nodes rendered once per element.
        scope: Enclosing scope.
        formatter: Optional value formatter passed through to the body.

    Returns:
        The concatenated renderings, or an empty string when the source
        is not a sequence.
    """
    items = evaluate(array_expr, scope)
    if not isinstance(items, list | tuple):
        logger.warning("Expression %r did not evaluate to an array", array_expr)
        return ""

    scope = Scope.of(scope)
    body = _nodes(loop_body)
    return "".join(
        _render(body, scope.child(**{item_name: item, ".": item}), formatter, _missing)
        for item in items
    )


def _render(
    nodes: Sequence[Node],
    scope: Scope,
    formatter: Formatter | None,
    missing: list[str] | None,
) -> str:
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, Text):
            parts.append(node.value)
        elif isinstance(node, Variable):
            value = evaluate(node.expr, scope)
            if value is UNDEFINED or (value is None and missing is not None):
                if missing is not None:
                    missing.append(node.expr)
                parts.append(node.raw)
            else:
                parts.append(formatter(value) if formatter else to_text(value))
        elif isinstance(node, Conditional):
            branch = process_conditional(node.condition, node.then, node.otherwise, scope)
            parts.append(_render(_nodes(branch), scope, formatter, missing))
        elif isinstance(node, Loop):
            parts.append(process_loop(node.item, node.source, node.body, scope, formatter, missing))
    return "".join(parts)


def interpolate(template: str, scope: Scope | Any, formatter: Formatter | None = None) -> str:
    """Render a template string against a data context.

    Args:
        template: Text with ``{{expr}}`` placeholders and directives.
        scope: A Scope or any data context (mapping, sequence, scalar).
        formatter: Optional callable turning each substituted value into text,
            e.g. a URL encoder. Defaults to the plain string form.

    Returns:
        The rendered text. Placeholders whose expression does not resolve
        are preserved verbatim.
    """
    return _render(parse(template), Scope.of(scope), formatter, None)


def interpolate_strict(template: str | None, scope: Scope | Any) -> str | None:
    """Render a template, or return None if any variable is unresolved or null.

    Used for values such as headers that should be dropped entirely when
    their data is absent instead of being sent with a literal placeholder.
    """
    if template is None:
        return None
    missing: list[str] = []
    rendered = _render(parse(template), Scope.of(scope), None, missing)
    if missing:
        logger.debug("Dropping value with unresolved expressions: %s", ", ".join(missing))
        return None
    return rendered


def interpolate_object(value: Any, scope: Scope | Any) -> Any:
    """Render every string inside a nested structure, preserving its shape.

    Mapping keys are never templated; non-string scalars pass through.
    """
    if value is None or value is UNDEFINED:
        return None
    scope = Scope.of(scope)
    if isinstance(value, str):
        return interpolate(value, scope)
    if isinstance(value, list | tuple):
        return [interpolate_object(item, scope) for item in value]
    if isinstance(value, Mapping):
        return {key: interpolate_object(item, scope) for key, item in value.items()}
    return value
