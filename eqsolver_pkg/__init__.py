"""eqsolver package: expression trees, symbolic differentiation and equation solving."""

from .api import diff, evaluate, solve_equation, validate_expression
from .calculus import derivative
from .solver import solve
from .tree import Assignment, BinaryOp, Equation, Function, Number, Variable

__all__ = [
    "config",
    "tree",
    "evaluator",
    "calculus",
    "linear",
    "numeric",
    "solver",
    "parser",
    "api",
    "cli",
    "types",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "evaluate",
    "solve_equation",
    "diff",
    "validate_expression",
    "solve",
    "derivative",
]
