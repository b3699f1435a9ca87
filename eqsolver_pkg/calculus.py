"""Symbolic differentiation of expression trees."""

from __future__ import annotations

from .logging_config import get_logger
from .tree import (
    Assignment,
    BinaryOp,
    Equation,
    Function,
    Node,
    Number,
    Variable,
    clone,
    collect_variables,
)
from .types import (
    EngineError,
    EvalResult,
    ParseError,
    UnsupportedDerivativeError,
    ValidationError,
)

logger = get_logger("calculus")


def _binary_derivative(node: BinaryOp, variable: str) -> Node:
    f, g = node.left, node.right

    if node.op in ("+", "-"):
        return BinaryOp(node.op, derivative(f, variable), derivative(g, variable))
    if node.op == "*":
        # Product rule: (f*g)' = f'*g + f*g'
        return BinaryOp(
            "+",
            BinaryOp("*", derivative(f, variable), clone(g)),
            BinaryOp("*", clone(f), derivative(g, variable)),
        )
    if node.op == "/":
        # Quotient rule: (f/g)' = (f'*g - f*g') / g^2
        numerator = BinaryOp(
            "-",
            BinaryOp("*", derivative(f, variable), clone(g)),
            BinaryOp("*", clone(f), derivative(g, variable)),
        )
        return BinaryOp("/", numerator, BinaryOp("^", clone(g), Number(2.0)))
    if node.op == "^":
        if variable in collect_variables(g):
            raise UnsupportedDerivativeError(
                "Power rule only implemented for constant exponents"
            )
        # Power rule: (u^n)' = n * u^(n-1) * u'
        if isinstance(g, Number):
            reduced: Node = Number(g.value - 1)
        else:
            reduced = BinaryOp("-", clone(g), Number(1.0))
        return BinaryOp(
            "*",
            BinaryOp("*", clone(g), BinaryOp("^", clone(f), reduced)),
            derivative(f, variable),
        )
    raise UnsupportedDerivativeError(f"Unknown operator in derivative: {node.op!r}")


def _function_derivative(node: Function, variable: str) -> Node:
    u = node.arg
    du = derivative(u, variable)

    if node.name == "sin":
        return BinaryOp("*", Function("cos", clone(u)), du)
    if node.name == "cos":
        neg_sin = BinaryOp("*", Number(-1.0), Function("sin", clone(u)))
        return BinaryOp("*", neg_sin, du)
    if node.name == "log":
        return BinaryOp("/", du, clone(u))
    if node.name == "sqrt":
        return BinaryOp(
            "/", du, BinaryOp("*", Number(2.0), Function("sqrt", clone(u)))
        )
    raise UnsupportedDerivativeError(f"Unknown function in derivative: {node.name!r}")


def derivative(node: Node, variable: str) -> Node:
    """Return a new tree for the derivative of *node* with respect to *variable*.

    The derivative of an Equation is the Equation of the side derivatives,
    so evaluating it gives f'(x) for the residual f(x) = lhs - rhs.

    Raises:
        UnsupportedDerivativeError: exponent depends on *variable*, or the
            node is an Assignment
    """
    if isinstance(node, Number):
        return Number(0.0)
    if isinstance(node, Variable):
        return Number(1.0 if node.name == variable else 0.0)
    if isinstance(node, BinaryOp):
        return _binary_derivative(node, variable)
    if isinstance(node, Function):
        return _function_derivative(node, variable)
    if isinstance(node, Equation):
        return Equation(derivative(node.lhs, variable), derivative(node.rhs, variable))
    if isinstance(node, Assignment):
        raise UnsupportedDerivativeError("Cannot differentiate an assignment")
    raise TypeError(f"Not an expression tree node: {node!r}")


def differentiate(expression: str | Node, variable: str | None = None) -> EvalResult:
    """Differentiate an expression with respect to a variable.

    Args:
        expression: Expression string (e.g., "x^3") or expression tree
        variable: Variable to differentiate with respect to (default: first variable found)

    Returns:
        EvalResult with the derivative rendered through SymPy as result
    """
    from .parser import parse_expression, to_sympy

    try:
        tree = parse_expression(expression) if isinstance(expression, str) else expression
        free_vars = sorted(collect_variables(tree))

        if not free_vars:
            return EvalResult(
                ok=False, error="No variables found in expression", error_code="NO_VARIABLES"
            )
        if variable and variable not in free_vars:
            return EvalResult(
                ok=False,
                error=f"Variable '{variable}' not found in expression",
                error_code="UNDEFINED_VARIABLE",
            )

        result = derivative(tree, variable or free_vars[0])
        return EvalResult(
            ok=True,
            result=str(to_sympy(result)),
            free_symbols=sorted(collect_variables(result)),
        )
    except (EngineError, ValidationError, ParseError) as e:
        return EvalResult(ok=False, error=f"Differentiation error: {e}", error_code=e.code)
    except Exception:
        logger.error("Unexpected differentiation error", exc_info=True)
        return EvalResult(
            ok=False,
            error="Differentiation failed unexpectedly",
            error_code="INTERNAL_ERROR",
        )
