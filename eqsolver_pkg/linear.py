"""Linear form extraction and linear equation solving."""

from __future__ import annotations

from dataclasses import dataclass, field

from .tree import Assignment, BinaryOp, Equation, Function, Node, Number, Variable
from .types import (
    DivisionByZeroError,
    MultipleVariablesError,
    NonLinearError,
    NoVariablesError,
    ZeroCoefficientError,
)

ZERO_TOL = 1e-12


@dataclass
class LinearForm:
    """``sum(coefficients[v] * v) + constant``; a missing key means coefficient 0.

    ``magnitudes`` keeps, per variable, the largest absolute coefficient that
    went into its sum. A coefficient counts as zero only when it is small
    relative to that magnitude, so rounding residue like ``0.1*3*x - 0.3*x``
    is treated as cancelled while a small coefficient like ``1e-13*x`` is not.
    """

    coefficients: dict[str, float] = field(default_factory=dict)
    constant: float = 0.0
    magnitudes: dict[str, float] = field(
        default_factory=dict, compare=False, repr=False
    )

    @property
    def is_constant(self) -> bool:
        return not self.coefficients

    def magnitude(self, name: str) -> float:
        return self.magnitudes.get(name, abs(self.coefficients.get(name, 0.0)))

    def combine(self, other: LinearForm, sign: float = 1.0) -> LinearForm:
        """Return ``self + sign * other``; coefficients that cancel to 0 are dropped."""
        coefficients = dict(self.coefficients)
        magnitudes = {name: self.magnitude(name) for name in self.coefficients}
        for name, coeff in other.coefficients.items():
            total = coefficients.get(name, 0.0) + sign * coeff
            if total == 0:
                coefficients.pop(name, None)
                magnitudes.pop(name, None)
            else:
                coefficients[name] = total
                magnitudes[name] = max(magnitudes.get(name, 0.0), other.magnitude(name))
        return LinearForm(coefficients, self.constant + sign * other.constant, magnitudes)

    def scale(self, factor: float) -> LinearForm:
        if factor == 0:
            return LinearForm({}, 0.0)
        return LinearForm(
            {name: coeff * factor for name, coeff in self.coefficients.items()},
            self.constant * factor,
            {name: self.magnitude(name) * abs(factor) for name in self.coefficients},
        )


def extract_linear(node: Node) -> LinearForm:
    """Reduce *node* to a LinearForm.

    Raises:
        NonLinearError: products of variables, variable divisors, powers,
            function applications, equations or assignments
        DivisionByZeroError: division by a constant that is exactly 0
    """
    if isinstance(node, Number):
        return LinearForm({}, node.value)
    if isinstance(node, Variable):
        return LinearForm({node.name: 1.0}, 0.0)
    if isinstance(node, BinaryOp):
        return _extract_binary(node)
    if isinstance(node, Function):
        raise NonLinearError(f"Non-linear function in linear solver: {node.name}")
    if isinstance(node, (Equation, Assignment)):
        raise NonLinearError(
            f"Unsupported node in linear solver: {type(node).__name__}"
        )
    raise TypeError(f"Not an expression tree node: {node!r}")


def _extract_binary(node: BinaryOp) -> LinearForm:
    if node.op == "^":
        raise NonLinearError("Power in linear solver")

    left = extract_linear(node.left)
    right = extract_linear(node.right)

    if node.op == "+":
        return left.combine(right)
    if node.op == "-":
        return left.combine(right, sign=-1.0)
    if node.op == "*":
        if left.is_constant:
            return right.scale(left.constant)
        if right.is_constant:
            return left.scale(right.constant)
        raise NonLinearError("Non-linear multiplication detected")
    if node.op == "/":
        if not right.is_constant:
            raise NonLinearError("Non-linear division detected")
        if right.constant == 0:
            raise DivisionByZeroError()
        return left.scale(1.0 / right.constant)
    raise NonLinearError(f"Unsupported operator in linear solver: {node.op!r}")


def solve_linear(equation: Equation) -> dict[str, float]:
    """Solve ``lhs = rhs`` when ``lhs - rhs`` is linear in exactly one variable.

    Returns:
        ``{variable: -constant / coefficient}``
    """
    form = extract_linear(equation.lhs).combine(extract_linear(equation.rhs), sign=-1.0)

    if not form.coefficients:
        raise NoVariablesError("No variables to solve for")
    if len(form.coefficients) > 1:
        raise MultipleVariablesError(sorted(form.coefficients))

    (name, coeff), = form.coefficients.items()
    if abs(coeff) < ZERO_TOL * form.magnitude(name):
        raise ZeroCoefficientError("Coefficient zero, no solution")
    return {name: -form.constant / coeff}
