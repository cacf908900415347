"""Name resolution for function bodies.

A name is local to a function if it is a parameter, or if the body binds
it anywhere: as an assignment target, a `for` target, or the name of a
nested `def`. Bodies of nested functions and lambdas are not entered;
their bindings belong to them. Everything else is free and is looked up
through the closure chain when the function runs.
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, List, Set

from .ast import (
    Node, Param, FuncDef, Assign, AugAssign, If, For, Ident, Index, TupleLit, ListLit,
)


def _target_names(target: Node, out: Set[str]):
    if isinstance(target, Ident):
        out.add(target.name)
    elif isinstance(target, (TupleLit, ListLit)):
        for el in target.elements:
            _target_names(el, out)
    # subscript targets bind no name


def _collect(statements: Iterable[Node], out: Set[str]):
    for stmt in statements:
        if isinstance(stmt, (Assign, AugAssign)):
            _target_names(stmt.target, out)
        elif isinstance(stmt, FuncDef):
            out.add(stmt.name)
        elif isinstance(stmt, For):
            _target_names(stmt.target, out)
            _collect(stmt.body, out)
        elif isinstance(stmt, If):
            _collect(stmt.then_body, out)
            _collect(stmt.else_body, out)


def resolve_locals(params: List[Param], body: List[Node]) -> FrozenSet[str]:
    names: Set[str] = {p.name for p in params if p.name}
    _collect(body, names)
    return frozenset(names)
