"""Centralized configuration for eqsolver.

This module defines:
- Numeric tolerances shared by the root finders
- Newton-Raphson seeds and iteration caps
- Bisection scan interval and step
- Parallel seed evaluation settings
- Input validation limits for the text front end
- SymPy parse transformations and the allowed function names

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with EQSOLVER_)
"""

import importlib.metadata
import os

import sympy as sp
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_application,
    implicit_multiplication,
    standard_transformations,
)

# Version is defined in pyproject.toml [project] section
try:
    VERSION = importlib.metadata.version("eqsolver")
except importlib.metadata.PackageNotFoundError:
    # Running from a source checkout
    VERSION = "1.0.0"


def _float_tuple(raw: str) -> tuple[float, ...]:
    return tuple(float(part) for part in raw.split(",") if part.strip())


# Numeric tolerance constants
EPSILON = float(
    os.getenv("EQSOLVER_EPSILON", "1e-10")
)  # Root de-duplication and flat-derivative threshold
NEWTON_TOLERANCE = float(
    os.getenv("EQSOLVER_NEWTON_TOLERANCE", "1e-10")
)  # Step / residual size accepted as converged
NEWTON_MAX_ITERATIONS = int(os.getenv("EQSOLVER_NEWTON_MAX_ITERATIONS", "100"))
NEWTON_SEEDS = _float_tuple(
    os.getenv("EQSOLVER_NEWTON_SEEDS", "-10,-5,-1,0,1,5,10")
)  # Tried in this order; discovery order names the results

BISECTION_TOLERANCE = float(os.getenv("EQSOLVER_BISECTION_TOLERANCE", "1e-10"))
BISECTION_MAX_ITERATIONS = int(
    os.getenv("EQSOLVER_BISECTION_MAX_ITERATIONS", "200")
)  # Hard cap, the bracket width test normally stops much earlier

# Bisection scan configuration
SCAN_START = float(os.getenv("EQSOLVER_SCAN_START", "-10"))
SCAN_END = float(os.getenv("EQSOLVER_SCAN_END", "10"))
SCAN_STEP = float(os.getenv("EQSOLVER_SCAN_STEP", "0.1"))

# Parallel seed evaluation
PARALLEL_SEEDS = os.getenv("EQSOLVER_PARALLEL_SEEDS", "false").lower() == "true"
WORKER_POOL_SIZE = int(
    os.getenv("EQSOLVER_WORKER_POOL_SIZE", "4")
)  # Threads used when PARALLEL_SEEDS is on

OUTPUT_PRECISION = int(os.getenv("EQSOLVER_OUTPUT_PRECISION", "10"))

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("EQSOLVER_MAX_INPUT_LENGTH", "10000"))  # characters
MAX_EXPRESSION_DEPTH = int(
    os.getenv("EQSOLVER_MAX_EXPRESSION_DEPTH", "100")
)  # tree depth
MAX_EXPRESSION_NODES = int(
    os.getenv("EQSOLVER_MAX_EXPRESSION_NODES", "5000")
)  # total nodes

BINARY_OPERATORS = frozenset({"+", "-", "*", "/", "^"})
FUNCTION_NAMES = frozenset({"sin", "cos", "log", "sqrt"})

ALLOWED_SYMPY_NAMES = {
    "pi": sp.pi,
    "E": sp.E,
    "sqrt": sp.sqrt,
    "sin": sp.sin,
    "cos": sp.cos,
    "log": sp.log,
    "ln": sp.log,
}

# Multi-letter names stay whole: "rate" is one variable, not r*a*t*e
TRANSFORMATIONS = standard_transformations + (
    implicit_multiplication,
    implicit_application,
    convert_xor,
)
