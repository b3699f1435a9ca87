"""Expression tree node types.

The node set is closed: Number, Variable, BinaryOp, Function, Equation and
Assignment. Nodes are frozen dataclasses; every transformation (clone,
substitute, derivative) builds a new tree and never touches its input.
Consumers dispatch with isinstance chains that end in a TypeError, so a
new node kind has to be handled everywhere before it can be used.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .config import BINARY_OPERATORS, FUNCTION_NAMES
from .types import UnknownFunctionError, UnknownOperatorError


class Node:
    """Base class of all expression tree nodes."""

    def evaluate(self, context: dict[str, float] | None = None) -> float:
        from .evaluator import evaluate

        return evaluate(self, {} if context is None else context)

    def derivative(self, variable: str) -> Node:
        from .calculus import derivative

        return derivative(self, variable)

    def clone(self) -> Node:
        return clone(self)

    def collect_variables(self) -> set[str]:
        return collect_variables(self)


@dataclass(frozen=True)
class Number(Node):
    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", float(self.value))


@dataclass(frozen=True)
class Variable(Node):
    name: str


@dataclass(frozen=True)
class BinaryOp(Node):
    op: str
    left: Node
    right: Node

    def __post_init__(self) -> None:
        if self.op not in BINARY_OPERATORS:
            raise UnknownOperatorError(self.op)


@dataclass(frozen=True)
class Function(Node):
    name: str
    arg: Node

    def __post_init__(self) -> None:
        if self.name not in FUNCTION_NAMES:
            raise UnknownFunctionError(self.name)


@dataclass(frozen=True)
class Equation(Node):
    lhs: Node
    rhs: Node


@dataclass(frozen=True)
class Assignment(Node):
    """``name = expr`` as a statement; evaluation stores the value in the context."""

    name: str
    expr: Node


def clone(node: Node) -> Node:
    """Return a deep structural copy of *node*."""
    if isinstance(node, Number):
        return Number(node.value)
    if isinstance(node, Variable):
        return Variable(node.name)
    if isinstance(node, BinaryOp):
        return BinaryOp(node.op, clone(node.left), clone(node.right))
    if isinstance(node, Function):
        return Function(node.name, clone(node.arg))
    if isinstance(node, Equation):
        return Equation(clone(node.lhs), clone(node.rhs))
    if isinstance(node, Assignment):
        return Assignment(node.name, clone(node.expr))
    raise TypeError(f"Not an expression tree node: {node!r}")


def collect_variables(node: Node) -> set[str]:
    """Return the names of all variables referenced by *node*.

    The target of an Assignment is written, not read, so it is not included.
    """
    if isinstance(node, Number):
        return set()
    if isinstance(node, Variable):
        return {node.name}
    if isinstance(node, BinaryOp):
        return collect_variables(node.left) | collect_variables(node.right)
    if isinstance(node, Function):
        return collect_variables(node.arg)
    if isinstance(node, Equation):
        return collect_variables(node.lhs) | collect_variables(node.rhs)
    if isinstance(node, Assignment):
        return collect_variables(node.expr)
    raise TypeError(f"Not an expression tree node: {node!r}")


def is_constant(node: Node) -> bool:
    return not collect_variables(node)


def substitute(node: Node, bindings: Mapping[str, float]) -> Node:
    """Return a copy of *node* with every bound variable replaced by a Number."""
    if isinstance(node, Number):
        return Number(node.value)
    if isinstance(node, Variable):
        if node.name in bindings:
            return Number(bindings[node.name])
        return Variable(node.name)
    if isinstance(node, BinaryOp):
        return BinaryOp(
            node.op, substitute(node.left, bindings), substitute(node.right, bindings)
        )
    if isinstance(node, Function):
        return Function(node.name, substitute(node.arg, bindings))
    if isinstance(node, Equation):
        return Equation(substitute(node.lhs, bindings), substitute(node.rhs, bindings))
    if isinstance(node, Assignment):
        return Assignment(node.name, substitute(node.expr, bindings))
    raise TypeError(f"Not an expression tree node: {node!r}")
