"""Unit tests for Newton-Raphson, bisection and the root scan."""

import math
import unittest
from concurrent.futures import ThreadPoolExecutor

import pytest

from eqsolver_pkg.calculus import derivative
from eqsolver_pkg.evaluator import as_function
from eqsolver_pkg.numeric import RootSet, bisection, find_all_roots, newton_raphson
from eqsolver_pkg.tree import BinaryOp, Equation, Function, Number, Variable
from eqsolver_pkg.types import (
    DomainError,
    FlatDerivativeError,
    NoConvergenceError,
    SameSignEndpointsError,
)

x = Variable("x")


def cube_root(v):
    return math.copysign(abs(v) ** (1 / 3), v)


def cube_root_slope(v):
    return abs(v) ** (-2 / 3) / 3


class TestNewtonRaphson(unittest.TestCase):
    """Test newton_raphson."""

    def test_square_root_of_four(self):
        root = newton_raphson(lambda v: v * v - 4, lambda v: 2 * v, 1.0)
        self.assertAlmostEqual(root, 2.0, delta=1e-6)

    def test_negative_seed_finds_negative_root(self):
        root = newton_raphson(lambda v: v * v - 4, lambda v: 2 * v, -3.0)
        self.assertAlmostEqual(root, -2.0, delta=1e-6)

    def test_with_tree_derivative(self):
        equation = Equation(BinaryOp("^", x, Number(3)), BinaryOp("+", x, Number(1)))
        f = as_function(equation, "x")
        df = as_function(derivative(equation, "x"), "x")
        root = newton_raphson(f, df, 1.5)
        self.assertAlmostEqual(root**3, root + 1, delta=1e-8)

    def test_returns_seed_that_is_already_a_root(self):
        def df(_):
            raise AssertionError("derivative should not be evaluated")

        self.assertEqual(newton_raphson(lambda v: v - 2, df, 2.0), 2.0)

    def test_flat_derivative(self):
        with self.assertRaises(FlatDerivativeError):
            newton_raphson(lambda v: v * v + 1, lambda v: 2 * v, 0.0)

    def test_no_convergence(self):
        # Newton on a cube root doubles the distance from the root every step
        with self.assertRaises(NoConvergenceError):
            newton_raphson(cube_root, cube_root_slope, 1.0, max_iterations=20)

    def test_divergence_to_infinity(self):
        with self.assertRaises(NoConvergenceError):
            newton_raphson(cube_root, cube_root_slope, 1.0, max_iterations=2000)

    def test_evaluation_errors_propagate(self):
        f = as_function(BinaryOp("-", Function("log", x), Number(1)), "x")
        with self.assertRaises(DomainError):
            newton_raphson(f, lambda v: 1 / v, -1.0)


class TestBisection(unittest.TestCase):
    """Test bisection."""

    def test_square_root_of_two(self):
        root = bisection(lambda v: v * v - 2, 1.0, 2.0)
        self.assertAlmostEqual(root, math.sqrt(2), delta=1e-9)

    def test_reversed_bracket(self):
        root = bisection(lambda v: v * v - 2, 2.0, 1.0)
        self.assertAlmostEqual(root, math.sqrt(2), delta=1e-9)

    def test_same_sign_endpoints(self):
        with self.assertRaises(SameSignEndpointsError):
            bisection(lambda v: v * v, 1.0, 2.0)

    def test_endpoint_root(self):
        self.assertEqual(bisection(lambda v: v - 1, 1.0, 3.0), 1.0)
        self.assertEqual(bisection(lambda v: v - 3, 1.0, 3.0), 3.0)

    def test_loose_tolerance(self):
        root = bisection(lambda v: v - 0.3, 0.0, 1.0, tolerance=1e-3)
        self.assertAlmostEqual(root, 0.3, delta=1e-3)

    def test_terminates_at_float_resolution(self):
        # The sign change sits between two adjacent floats
        root = bisection(lambda v: -1.0 if v < 1e15 else 1.0, 0.0, 2e15, tolerance=0.0)
        self.assertAlmostEqual(root, 1e15, delta=1.0)


class TestFindAllRoots:
    """Test find_all_roots."""

    def test_sine_roots(self):
        roots = find_all_roots(math.sin, -10, 10, 0.1)
        expected = [k * math.pi for k in range(-3, 4)]
        assert len(roots) == len(expected)
        for root, target in zip(roots, expected):
            assert root == pytest.approx(target, abs=1e-8)

    def test_roots_ascending(self):
        roots = find_all_roots(lambda v: (v - 1) * (v + 2) * (v - 4))
        assert roots == sorted(roots)
        assert [round(r, 8) for r in roots] == [-2.0, 1.0, 4.0]

    def test_no_sign_change(self):
        assert find_all_roots(lambda v: v * v + 1) == []

    def test_failing_samples_are_skipped(self):
        f = as_function(Equation(Function("log", x), Number(1)), "x")
        roots = find_all_roots(f)
        assert roots == [pytest.approx(math.e, abs=1e-8)]

    def test_failing_sample_breaks_bracket(self):
        f = as_function(BinaryOp("/", Number(1), x), "x")
        assert find_all_roots(f) == []

    def test_pole_is_not_a_root(self):
        # 1/(x - 0.05) changes sign between the samples 0.0 and 0.1
        assert find_all_roots(lambda v: 1 / (v - 0.05)) == []

    def test_tan_roots_skip_poles(self):
        roots = find_all_roots(math.tan, -2, 2, 0.1)
        assert roots == [pytest.approx(0.0, abs=1e-12)]

    def test_custom_interval(self):
        roots = find_all_roots(lambda v: v - 42.5, 40, 50, 1.0)
        assert roots == [pytest.approx(42.5)]

    def test_invalid_step(self):
        with pytest.raises(ValueError):
            find_all_roots(math.sin, -1, 1, 0)


class TestRootSet:
    """Test RootSet de-duplication."""

    def test_near_duplicates_rejected(self):
        roots = RootSet(tolerance=1e-10)
        assert roots.add(1.0)
        assert not roots.add(1.0 + 5e-11)
        assert roots.add(1.0 + 1e-9)
        assert len(roots) == 2

    def test_insertion_order_kept(self):
        roots = RootSet([3.0, -1.0, 3.0, 2.0])
        assert roots.as_list() == [3.0, -1.0, 2.0]
        assert list(roots) == [3.0, -1.0, 2.0]

    def test_contains(self):
        roots = RootSet([2.0])
        assert 2.0 + 1e-12 in roots
        assert 2.1 not in roots

    def test_concurrent_adds(self):
        roots = RootSet()
        values = [0.5] * 50 + [1.5] * 50
        with ThreadPoolExecutor(max_workers=8) as executor:
            inserted = list(executor.map(roots.add, values))
        assert sum(inserted) == 2
        assert sorted(roots.as_list()) == [0.5, 1.5]


if __name__ == "__main__":
    unittest.main()
