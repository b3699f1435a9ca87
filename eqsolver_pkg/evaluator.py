"""Numeric evaluation of expression trees against a binding context."""

from __future__ import annotations

import math

from .tree import Assignment, BinaryOp, Equation, Function, Node, Number, Variable
from .types import DivisionByZeroError, DomainError, UndefinedVariableError


def real_power(base: float, exponent: float) -> float:
    """Real-valued ``base ** exponent``: NaN when undefined, infinite on overflow."""
    try:
        return math.pow(base, exponent)
    except ValueError:
        if base == 0:
            return math.inf
        # Negative base with a fractional exponent has no real value
        return math.nan
    except OverflowError:
        if base < 0 and exponent.is_integer() and int(exponent) % 2:
            return -math.inf
        return math.inf


def _apply_binary(op: str, lval: float, rval: float) -> float:
    if op == "+":
        return lval + rval
    if op == "-":
        return lval - rval
    if op == "*":
        return lval * rval
    if op == "/":
        if rval == 0:
            raise DivisionByZeroError()
        return lval / rval
    if op == "^":
        return real_power(lval, rval)
    raise AssertionError(f"unreachable operator {op!r}")


def _apply_function(name: str, value: float) -> float:
    if name == "sin":
        return math.sin(value) if math.isfinite(value) else math.nan
    if name == "cos":
        return math.cos(value) if math.isfinite(value) else math.nan
    if name == "log":
        if value <= 0:
            raise DomainError(f"Logarithm of non-positive number: {value}")
        return math.log(value)
    if name == "sqrt":
        if value < 0:
            raise DomainError(f"Square root of negative number: {value}")
        return math.sqrt(value)
    raise AssertionError(f"unreachable function {name!r}")


def evaluate(node: Node, context: dict[str, float]) -> float:
    """Evaluate *node* with variables looked up in *context*.

    An Equation evaluates to its residual ``lhs - rhs``. An Assignment stores
    its value in *context*; nothing else mutates it.

    Raises:
        UndefinedVariableError: a referenced variable is not bound
        DivisionByZeroError: a divisor evaluates to exactly 0
        DomainError: log of a non-positive or sqrt of a negative argument
    """
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Variable):
        try:
            return float(context[node.name])
        except KeyError:
            raise UndefinedVariableError(node.name) from None
    if isinstance(node, BinaryOp):
        lval = evaluate(node.left, context)
        rval = evaluate(node.right, context)
        return _apply_binary(node.op, lval, rval)
    if isinstance(node, Function):
        return _apply_function(node.name, evaluate(node.arg, context))
    if isinstance(node, Equation):
        return evaluate(node.lhs, context) - evaluate(node.rhs, context)
    if isinstance(node, Assignment):
        value = evaluate(node.expr, context)
        context[node.name] = value
        return value
    raise TypeError(f"Not an expression tree node: {node!r}")


def as_function(node: Node, variable: str, context: dict[str, float] | None = None):
    """Wrap *node* as a one-argument callable ``f(x)``.

    For an Equation this is the residual ``lhs(x) - rhs(x)``.

    Every call evaluates against a fresh copy of *context* with *variable*
    bound to ``x``, so the caller's context is never written.
    """
    base = dict(context or {})

    def f(x: float) -> float:
        return evaluate(node, {**base, variable: x})

    return f
