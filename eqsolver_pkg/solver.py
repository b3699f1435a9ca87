"""Equation solving dispatcher.

This module provides:
- Power-equation shortcut for ``x^n = c``
- Linear solving through the linear extractor
- Newton-Raphson from a fixed list of seeds, optionally on a thread pool
- Bisection scan over a fixed interval as the last resort

The strategies are tried in that order and the first success wins. Each
strategy reports a StrategyOutcome; the dispatcher inspects the outcome
and moves on to the next strategy when it failed. Only exhaustion of
every strategy reaches the caller, as NoRootsFoundError.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable

from . import config
from .calculus import derivative
from .evaluator import as_function, evaluate, real_power
from .linear import solve_linear
from .logging_config import get_logger
from .numeric import RootSet, find_all_roots, newton_raphson
from .tree import (
    BinaryOp,
    Equation,
    Node,
    Number,
    Variable,
    collect_variables,
    is_constant,
    substitute,
)
from .types import (
    DivisionByZeroError,
    DomainError,
    EngineError,
    NoConvergenceError,
    NoRootsFoundError,
    NotAnEquationError,
    SolverError,
    UnsupportedArityError,
)

logger = get_logger("solver")


@dataclass
class StrategyOutcome:
    """What one solving strategy produced: solutions on success, the error otherwise."""

    strategy: str
    solutions: dict[str, float] | None = None
    error: EngineError | None = None

    @property
    def ok(self) -> bool:
        return self.solutions is not None


def name_roots(variable: str, roots: list[float]) -> dict[str, float]:
    """Name roots ``x``, ``x_1``, ``x_2``, ... in discovery order."""
    return {
        variable if index == 0 else f"{variable}_{index}": root
        for index, root in enumerate(roots)
    }


def _single_variable(equation: Equation) -> str:
    names = sorted(collect_variables(equation))
    if len(names) != 1:
        raise UnsupportedArityError(names)
    return names[0]


# Strategy 1: x^n = c


def _match_power(side: Node, other: Node) -> tuple[str, float, Node] | None:
    if (
        isinstance(side, BinaryOp)
        and side.op == "^"
        and isinstance(side.left, Variable)
        and isinstance(side.right, Number)
        and is_constant(other)
    ):
        return side.left.name, side.right.value, other
    return None


def _solve_power(equation: Equation) -> dict[str, float]:
    match = _match_power(equation.lhs, equation.rhs) or _match_power(
        equation.rhs, equation.lhs
    )
    if match is None:
        raise SolverError("Not a pure power equation", "NOT_POWER_EQUATION")

    name, exponent, constant_node = match
    constant = evaluate(constant_node, {})
    if exponent == 0 or not math.isfinite(constant):
        raise SolverError(
            f"Power equation {name}^{exponent} = {constant} has no direct solution",
            "NOT_POWER_EQUATION",
        )

    is_integer = exponent.is_integer()
    is_even = is_integer and int(exponent) % 2 == 0
    if constant < 0:
        if not is_integer or is_even:
            raise DomainError(
                f"{name}^{exponent} = {constant} has no real solution"
            )
        root = -real_power(-constant, 1.0 / exponent)
    elif constant == 0 and exponent < 0:
        raise DomainError(f"{name}^{exponent} never equals 0")
    else:
        root = real_power(constant, 1.0 / exponent)

    if not math.isfinite(root):
        raise DomainError(f"{name}^{exponent} = {constant} overflows")

    solutions = {name: root}
    if is_even and root != 0:
        solutions[f"{name}_neg"] = -root
    return solutions


# Strategy 2: linear


def _solve_linear(equation: Equation) -> dict[str, float]:
    return solve_linear(equation)


# Strategy 3: Newton-Raphson from fixed seeds


def _newton_from_seeds(
    f: Callable[[float], float], df: Callable[[float], float]
) -> list[float]:
    def attempt(seed: float) -> float | None:
        try:
            return newton_raphson(
                f,
                df,
                seed,
                tolerance=config.NEWTON_TOLERANCE,
                max_iterations=config.NEWTON_MAX_ITERATIONS,
            )
        except EngineError as e:
            logger.debug(
                f"Newton-Raphson seed skipped: {e}",
                extra={"seed": seed, "code": e.code},
            )
            return None

    seeds = config.NEWTON_SEEDS
    if config.PARALLEL_SEEDS and len(seeds) > 1:
        with ThreadPoolExecutor(max_workers=config.WORKER_POOL_SIZE) as executor:
            # map() yields in seed order, which keeps result naming stable
            results = list(executor.map(attempt, seeds))
    else:
        results = [attempt(seed) for seed in seeds]

    candidates = RootSet(tolerance=config.EPSILON)
    for root in results:
        if root is not None:
            candidates.add(root)
    return candidates.as_list()


def _solve_newton(equation: Equation) -> dict[str, float]:
    variable = _single_variable(equation)
    f = as_function(equation, variable)
    df = as_function(derivative(equation, variable), variable)

    roots = _newton_from_seeds(f, df)
    if not roots:
        raise NoConvergenceError("No Newton-Raphson seed converged")
    return name_roots(variable, roots)


# Strategy 4: bisection scan


def _solve_bisection_scan(equation: Equation) -> dict[str, float]:
    variable = _single_variable(equation)
    roots = find_all_roots(
        as_function(equation, variable),
        config.SCAN_START,
        config.SCAN_END,
        config.SCAN_STEP,
        config.BISECTION_TOLERANCE,
    )
    if not roots:
        raise NoRootsFoundError(
            f"No sign change of the residual in [{config.SCAN_START}, {config.SCAN_END}]"
        )
    return name_roots(variable, roots)


STRATEGIES: tuple[tuple[str, Callable[[Equation], dict[str, float]]], ...] = (
    ("power", _solve_power),
    ("linear", _solve_linear),
    ("newton", _solve_newton),
    ("bisection", _solve_bisection_scan),
)

# Failures that settle the answer instead of handing over to the next strategy.
# Linear extraction only divides by zero when a divisor is identically zero,
# which makes the equation undefined for every value of the variable.
TERMINAL_ERRORS: dict[str, tuple[type[EngineError], ...]] = {
    "linear": (DivisionByZeroError,),
}


def run_strategy(
    name: str, strategy: Callable[[Equation], dict[str, float]], equation: Equation
) -> StrategyOutcome:
    """Run one strategy and report its result as a StrategyOutcome."""
    try:
        return StrategyOutcome(name, solutions=strategy(equation))
    except EngineError as e:
        return StrategyOutcome(name, error=e)


def solve_detailed(
    equation: Node, context: dict[str, float] | None = None
) -> StrategyOutcome:
    """Solve *equation* and report which strategy produced the solutions.

    Variables bound in *context* are treated as constants. Neither the tree
    nor the context is modified.

    Raises:
        NotAnEquationError: *equation* is not an Equation node
        DivisionByZeroError: the linear strategy met a divisor that is
            identically zero. A zero divisor met only by the numeric
            strategies is recorded in ``failures`` and the solve goes on.
        NoRootsFoundError: every strategy failed; ``failures`` holds the reasons
    """
    if not isinstance(equation, Equation):
        raise NotAnEquationError()

    if context:
        equation = substitute(equation, context)

    failures: dict[str, EngineError] = {}
    for name, strategy in STRATEGIES:
        logger.debug("Trying strategy", extra={"strategy": name})
        outcome = run_strategy(name, strategy, equation)
        if outcome.ok:
            logger.debug(
                f"Strategy solved equation: {outcome.solutions}",
                extra={"strategy": name},
            )
            return outcome

        logger.debug(
            f"Strategy failed: {outcome.error}",
            extra={"strategy": name, "code": outcome.error.code},
        )
        failures[name] = outcome.error
        if isinstance(outcome.error, TERMINAL_ERRORS.get(name, ())):
            raise outcome.error

    logger.info("All solving strategies failed")
    raise NoRootsFoundError(failures=failures)


def solve(equation: Node, context: dict[str, float] | None = None) -> dict[str, float]:
    """Solve a single-variable equation tree.

    Returns:
        Solution map from result name (``x``, ``x_neg``, ``x_1``, ...) to value
    """
    return solve_detailed(equation, context).solutions
