"""Path expression evaluation against nested data scopes.

Expressions are dotted paths with optional bracketed indices, for example
``user.name``, ``choices[0].message.content`` or ``.`` for the current value.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

logger = logging.getLogger(__name__)

CURRENT = "."

INDEX_PATTERN = re.compile(r"^(\w*)((?:\[\d+\])+)$")

SCALARS = (str, bytes, int, float, bool)


class _Undefined:
    """Marker for an expression that did not resolve to any value."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED: Any = _Undefined()


class Scope:
    """Immutable bindings layered over an optional parent scope.

    Lookups that miss the local bindings fall through to the parent, so a
    loop iteration only stores its item instead of copying the full context.
    The root scope wraps the caller's data context, which may be any value.
    """

    __slots__ = ("_bindings", "_parent", "_root")

    def __init__(
        self,
        root: Any = None,
        bindings: Mapping[str, Any] | None = None,
        parent: Scope | None = None,
    ) -> None:
        self._root = root
        self._bindings = dict(bindings) if bindings else {}
        self._parent = parent

    @classmethod
    def of(cls, data: Any) -> Scope:
        """Return ``data`` as a scope, wrapping it if needed."""
        return data if isinstance(data, Scope) else cls(root=data)

    def child(self, **bindings: Any) -> Scope:
        """Create a nested scope whose bindings shadow this one."""
        return Scope(bindings=bindings, parent=self)

    @property
    def root(self) -> Any:
        scope = self
        while scope._parent is not None:
            scope = scope._parent
        return scope._root

    def lookup(self, name: str) -> Any:
        """Resolve a top-level name, returning UNDEFINED on miss."""
        scope: Scope | None = self
        while scope is not None:
            if name in scope._bindings:
                return scope._bindings[name]
            if scope._parent is None:
                return _project(scope._root, name)
            scope = scope._parent
        return UNDEFINED

    def current(self) -> Any:
        """Return the innermost ``.`` binding, or the root value."""
        value = self.lookup(CURRENT)
        return self.root if value is UNDEFINED else value

    def __repr__(self) -> str:
        return f"Scope(bindings={self._bindings!r}, parent={self._parent!r})"


def _project(value: Any, key: str) -> Any:
    if value is None or value is UNDEFINED:
        return UNDEFINED
    if isinstance(value, Mapping):
        return value.get(key, UNDEFINED)
    if isinstance(value, Sequence) and not isinstance(value, str | bytes):
        if key.isdigit():
            return _index(value, int(key))
        return UNDEFINED
    if isinstance(value, SCALARS) or key.startswith("_"):
        return UNDEFINED
    attr = getattr(value, key, UNDEFINED)
    return UNDEFINED if callable(attr) else attr


def _index(value: Any, index: int) -> Any:
    if isinstance(value, Mapping):
        return value.get(index, value.get(str(index), UNDEFINED))
    if isinstance(value, Sequence) and not isinstance(value, str | bytes):
        return value[index] if 0 <= index < len(value) else UNDEFINED
    return UNDEFINED


def _resolve(expr: str, scope: Scope) -> Any:
    value: Any = scope
    for segment in expr.split("."):
        if value is None or value is UNDEFINED:
            return UNDEFINED
        match = INDEX_PATTERN.match(segment)
        name = match.group(1) if match else segment
        if name:
            value = value.lookup(name) if isinstance(value, Scope) else _project(value, name)
        elif isinstance(value, Scope):
            value = value.root
        if match:
            for raw in re.findall(r"\d+", match.group(2)):
                if value is None or value is UNDEFINED:
                    return UNDEFINED
                value = _index(value, int(raw))
    return value.root if isinstance(value, Scope) else value


def evaluate(expr: str, scope: Scope | Any) -> Any:
    """Evaluate a path expression against a scope.

    Args:
        expr: Dotted path such as ``items[0].name``, or ``.`` for the
            current value.
        scope: A Scope or a raw data context.

    Returns:
        The resolved value, or UNDEFINED when any step of the path is
        missing. Evaluation never raises.
    """
    scope = Scope.of(scope)
    if expr == CURRENT:
        return scope.current()
    try:
        return _resolve(expr, scope)
    except Exception as exc:
        logger.debug("Error evaluating expression %r: %s", expr, exc)
        return UNDEFINED
