"""Syntax tree definitions consumed by the Starling evaluator.

Starling does not parse source text itself. A front end builds these
nodes (and, optionally, the local-name table of every function) and hands
the resulting `Module` to the interpreter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, List, Optional, Tuple


PARAM_NORMAL = 'normal'
PARAM_ARGS = 'args'
PARAM_KWARGS = 'kwargs'


@dataclass
class Node:
    """Base class for all tree nodes."""
    pass


@dataclass
class Param:
    """A declared function parameter.

    `kind` is PARAM_NORMAL for ordinary parameters (required unless
    `default` is set), PARAM_ARGS for `*name` (a nameless PARAM_ARGS entry
    is a bare `*`), and PARAM_KWARGS for `**name`.
    """
    name: Optional[str]
    default: Optional[Node] = None
    kind: str = PARAM_NORMAL


@dataclass
class Module(Node):
    body: List[Node]


@dataclass
class FuncDef(Node):
    name: str
    params: List[Param]
    body: List[Node]
    # names local to the body; computed by starling.resolve when absent
    local_names: Optional[FrozenSet[str]] = None


@dataclass
class Lambda(Node):
    params: List[Param]
    body: Node
    local_names: Optional[FrozenSet[str]] = None


@dataclass
class Return(Node):
    value: Optional[Node] = None


@dataclass
class ExprStmt(Node):
    expr: Node


@dataclass
class Assign(Node):
    target: Node  # Ident, Index or TupleLit of those
    value: Node


@dataclass
class AugAssign(Node):
    target: Node  # Ident or Index
    op: str
    value: Node


@dataclass
class If(Node):
    condition: Node
    then_body: List[Node]
    else_body: List[Node] = field(default_factory=list)


@dataclass
class For(Node):
    target: Node
    iterable: Node
    body: List[Node]


@dataclass
class Pass(Node):
    pass


@dataclass
class Literal(Node):
    value: Any


@dataclass
class Ident(Node):
    name: str


@dataclass
class ListLit(Node):
    elements: List[Node]


@dataclass
class TupleLit(Node):
    elements: List[Node]


@dataclass
class DictLit(Node):
    entries: List[Tuple[Node, Node]]


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass
class BoolOp(Node):
    op: str  # 'and' or 'or'
    left: Node
    right: Node


@dataclass
class UnaryOp(Node):
    op: str  # 'not' or '-'
    operand: Node


@dataclass
class Conditional(Node):
    condition: Node
    then_expr: Node
    else_expr: Node


@dataclass
class Index(Node):
    target: Node
    index: Node


@dataclass
class Member(Node):
    target: Node
    name: str


@dataclass
class Call(Node):
    func: Node
    args: List[Node] = field(default_factory=list)
    kwargs: List[Tuple[str, Node]] = field(default_factory=list)
    star_args: Optional[Node] = None
    star_kwargs: Optional[Node] = None
