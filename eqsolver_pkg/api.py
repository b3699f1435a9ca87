"""Public API for eqsolver - returns structured objects without side effects.

Core functions (evaluator.evaluate, solver.solve, calculus.derivative)
raise typed errors. The functions here accept text or trees, never raise
for bad input, and report failures through the result objects.
"""

from __future__ import annotations

from .calculus import differentiate
from .evaluator import evaluate as _evaluate
from .logging_config import get_logger
from .parser import parse_expression, preprocess
from .solver import solve_detailed
from .tree import Node, collect_variables
from .types import (
    EngineError,
    EvalResult,
    NoRootsFoundError,
    ParseError,
    SolveResult,
    ValidationError,
)

logger = get_logger("api")


def _as_tree(expression: str | Node) -> Node:
    return parse_expression(expression) if isinstance(expression, str) else expression


def evaluate(
    expression: str | Node, context: dict[str, float] | None = None
) -> EvalResult:
    """Evaluate a mathematical expression.

    Args:
        expression: Expression string (e.g., "2+2", "sin(x)") or tree
        context: Variable bindings; an assignment ("y := 2x") writes into it

    Returns:
        EvalResult with the value and the referenced variable names

    Example:
        >>> from eqsolver_pkg.api import evaluate
        >>> evaluate("2 * x + 1", {"x": 3}).value
        7.0
    """
    try:
        tree = _as_tree(expression)
        value = _evaluate(tree, context if context is not None else {})
    except (EngineError, ValidationError, ParseError) as e:
        return EvalResult(ok=False, error=str(e), error_code=e.code)
    except Exception:
        logger.error("Unexpected evaluation error", exc_info=True)
        return EvalResult(
            ok=False, error="Evaluation failed unexpectedly", error_code="INTERNAL_ERROR"
        )
    return EvalResult(
        ok=True,
        result=repr(value),
        value=value,
        free_symbols=sorted(collect_variables(tree)),
    )


def solve_equation(
    equation: str | Node, context: dict[str, float] | None = None
) -> SolveResult:
    """Solve a single-variable equation.

    Args:
        equation: Equation string (e.g., "2x + 1 = 7", "x^2 = 4") or Equation tree
        context: Values of variables to treat as known constants

    Returns:
        SolveResult with the solution map and the strategy that produced it

    Example:
        >>> from eqsolver_pkg.api import solve_equation
        >>> solve_equation("x^2 = 4").solutions
        {'x': 2.0, 'x_neg': -2.0}
    """
    try:
        outcome = solve_detailed(_as_tree(equation), context)
    except NoRootsFoundError as e:
        return SolveResult(
            ok=False,
            error=str(e),
            error_code=e.code,
            failures={name: err.code for name, err in e.failures.items()},
        )
    except (EngineError, ValidationError, ParseError) as e:
        return SolveResult(ok=False, error=str(e), error_code=e.code)
    except Exception:
        logger.error("Unexpected solver error", exc_info=True)
        return SolveResult(
            ok=False, error="Solving failed unexpectedly", error_code="INTERNAL_ERROR"
        )
    return SolveResult(ok=True, solutions=outcome.solutions, strategy=outcome.strategy)


def diff(expression: str | Node, variable: str | None = None) -> EvalResult:
    """Differentiate an expression.

    Example:
        >>> from eqsolver_pkg.api import diff
        >>> diff("x^3", "x").result
        '3*x**2'
    """
    return differentiate(expression, variable)


def validate_expression(expression: str) -> EvalResult:
    """Check that text passes input validation without parsing it."""
    try:
        return EvalResult(ok=True, result=preprocess(expression))
    except ValidationError as e:
        return EvalResult(ok=False, error=str(e), error_code=e.code)
