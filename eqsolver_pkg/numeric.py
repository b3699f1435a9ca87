"""Numerical root finding: Newton-Raphson, bisection and interval root scan.

The functions here work on plain ``float -> float`` callables. Evaluation
errors raised by those callables propagate out of newton_raphson and
bisection unchanged; find_all_roots recovers from them per bracket.
"""

from __future__ import annotations

import math
import threading
from typing import Callable, Iterable, Iterator

import numpy as np

from .config import (
    BISECTION_MAX_ITERATIONS,
    BISECTION_TOLERANCE,
    EPSILON,
    NEWTON_MAX_ITERATIONS,
    NEWTON_TOLERANCE,
    SCAN_END,
    SCAN_START,
    SCAN_STEP,
)
from .logging_config import get_logger
from .types import (
    EngineError,
    FlatDerivativeError,
    NoConvergenceError,
    SameSignEndpointsError,
)

logger = get_logger("numeric")

RealFunction = Callable[[float], float]


class RootSet:
    """Ordered collection of roots where no two entries are within ``tolerance``.

    ``add`` is serialized with a lock so several producers can share one set.
    """

    def __init__(self, roots: Iterable[float] = (), tolerance: float = EPSILON):
        self.tolerance = tolerance
        self._roots: list[float] = []
        self._lock = threading.Lock()
        for root in roots:
            self.add(root)

    def add(self, root: float) -> bool:
        """Insert *root* unless it duplicates an existing entry; return True if inserted."""
        with self._lock:
            if any(abs(existing - root) < self.tolerance for existing in self._roots):
                return False
            self._roots.append(root)
            return True

    def __contains__(self, value: float) -> bool:
        return any(abs(existing - value) < self.tolerance for existing in self._roots)

    def __iter__(self) -> Iterator[float]:
        return iter(list(self._roots))

    def __len__(self) -> int:
        return len(self._roots)

    def __repr__(self) -> str:
        return f"RootSet({self._roots!r})"

    def as_list(self) -> list[float]:
        return list(self._roots)


def newton_raphson(
    f: RealFunction,
    df: RealFunction,
    initial_guess: float,
    tolerance: float = NEWTON_TOLERANCE,
    max_iterations: int = NEWTON_MAX_ITERATIONS,
) -> float:
    """Find a root of *f* by Newton-Raphson iteration from *initial_guess*.

    Returns as soon as the residual ``|f(x)|`` or the step ``|f(x)/f'(x)|``
    drops below *tolerance*.

    Raises:
        FlatDerivativeError: ``|f'(x)| < EPSILON`` at some iterate
        NoConvergenceError: *max_iterations* exhausted, or the iterate left
            the finite reals
    """
    x = float(initial_guess)
    for _ in range(max_iterations):
        fx = f(x)
        if abs(fx) < tolerance:
            return x
        dfx = df(x)
        if abs(dfx) < EPSILON:
            raise FlatDerivativeError(f"Derivative too close to zero at x={x}")
        step = fx / dfx
        x -= step
        if not math.isfinite(x):
            raise NoConvergenceError(
                f"Newton-Raphson diverged from initial guess {initial_guess}"
            )
        if abs(step) < tolerance:
            return x
    raise NoConvergenceError(
        f"Newton-Raphson did not converge within {max_iterations} iterations "
        f"from initial guess {initial_guess}"
    )


def bisection(
    f: RealFunction,
    a: float,
    b: float,
    tolerance: float = BISECTION_TOLERANCE,
    max_iterations: int = BISECTION_MAX_ITERATIONS,
) -> float:
    """Find a root of *f* in the bracket ``[a, b]`` by repeated halving.

    Raises:
        SameSignEndpointsError: ``f(a)`` and ``f(b)`` share a strict sign
    """
    a, b = float(min(a, b)), float(max(a, b))
    fa = f(a)
    fb = f(b)

    if fa * fb > 0:
        raise SameSignEndpointsError(
            f"Function values at endpoints must have opposite signs: "
            f"f({a})={fa}, f({b})={fb}"
        )
    if fa == 0:
        return a
    if fb == 0:
        return b

    for _ in range(max_iterations):
        if b - a <= tolerance:
            break
        c = (a + b) / 2
        if c in (a, b):
            # Bracket is down to adjacent floats
            break
        fc = f(c)
        if abs(fc) < tolerance:
            return c
        if fa * fc < 0:
            b = c
        else:
            a, fa = c, fc

    return (a + b) / 2


def _sample_grid(start: float, end: float, step: float) -> np.ndarray:
    count = max(1, int(round((end - start) / step)))
    return np.linspace(start, end, count + 1)


def find_all_roots(
    f: RealFunction,
    start: float = SCAN_START,
    end: float = SCAN_END,
    step: float = SCAN_STEP,
    tolerance: float = BISECTION_TOLERANCE,
) -> list[float]:
    """Scan ``[start, end]`` in steps of *step* and bisect every sign change.

    A bracket whose bisection fails is skipped, and so is one whose bisection
    result has a larger residual than either endpoint (a pole, not a root).
    A sample that cannot be evaluated breaks the walk, so no bracket spans
    it. Roots are returned in ascending discovery order with near-duplicates
    removed.
    """
    if step <= 0:
        raise ValueError("step must be positive")

    roots = RootSet()
    prev_x: float | None = None
    prev_fx: float | None = None

    for x in _sample_grid(start, end, step):
        x = float(x)
        try:
            fx = f(x)
        except EngineError as e:
            logger.debug(f"Scan sample at x={x} failed: {e}")
            prev_x = prev_fx = None
            continue

        if prev_fx is not None and prev_fx * fx <= 0:
            try:
                root = bisection(f, prev_x, x, tolerance)
                residual = abs(f(root))
            except EngineError as e:
                logger.debug(f"Skipping bracket [{prev_x}, {x}]: {e}")
            else:
                # A sign change across a pole bisects to a point where |f| blows up
                if residual > max(abs(prev_fx), abs(fx)):
                    logger.debug(f"Skipping pole near x={root}")
                else:
                    roots.add(root)

        prev_x, prev_fx = x, fx

    return roots.as_list()
