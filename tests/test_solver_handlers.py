"""Unit tests for individual solving strategies."""

import pytest

from eqsolver_pkg import config
from eqsolver_pkg.solver import (
    STRATEGIES,
    _solve_bisection_scan,
    _solve_linear,
    _solve_newton,
    _solve_power,
    name_roots,
    run_strategy,
)
from eqsolver_pkg.tree import BinaryOp, Equation, Function, Number, Variable
from eqsolver_pkg.types import (
    DomainError,
    NoConvergenceError,
    NonLinearError,
    NoRootsFoundError,
    SolverError,
    UnsupportedArityError,
)

x = Variable("x")
y = Variable("y")


def power(n):
    return BinaryOp("^", x, Number(n))


class TestPowerStrategy:
    """Test the x^n = c shortcut."""

    def test_even_exponent(self):
        assert _solve_power(Equation(power(2), Number(16))) == {"x": 4.0, "x_neg": -4.0}

    def test_odd_exponent(self):
        assert _solve_power(Equation(power(3), Number(-27)))["x"] == pytest.approx(-3.0)

    def test_constant_expression_side(self):
        rhs = BinaryOp("+", Number(1), Function("sqrt", Number(9)))
        assert _solve_power(Equation(power(2), rhs)) == {"x": 2.0, "x_neg": -2.0}

    def test_negative_exponent(self):
        assert _solve_power(Equation(power(-1), Number(4))) == {"x": 0.25}

    def test_not_a_power(self):
        with pytest.raises(SolverError) as exc_info:
            _solve_power(Equation(BinaryOp("+", x, Number(1)), Number(2)))
        assert exc_info.value.code == "NOT_POWER_EQUATION"

    def test_variable_on_other_side(self):
        with pytest.raises(SolverError):
            _solve_power(Equation(power(2), y))

    def test_zero_exponent(self):
        with pytest.raises(SolverError):
            _solve_power(Equation(power(0), Number(1)))

    @pytest.mark.parametrize("exponent", [2, 0.5])
    def test_negative_constant_without_real_root(self, exponent):
        with pytest.raises(DomainError):
            _solve_power(Equation(power(exponent), Number(-4)))

    def test_zero_with_negative_exponent(self):
        with pytest.raises(DomainError):
            _solve_power(Equation(power(-2), Number(0)))


class TestOtherStrategies:
    """Test the linear, Newton and scan strategies in isolation."""

    def test_linear(self):
        equation = Equation(BinaryOp("*", Number(4), x), Number(2))
        assert _solve_linear(equation) == {"x": 0.5}

    def test_linear_rejects_power(self):
        with pytest.raises(NonLinearError):
            _solve_linear(Equation(power(2), Number(4)))

    def test_newton(self):
        equation = Equation(BinaryOp("-", power(2), Number(9)), Number(0))
        result = _solve_newton(equation)
        assert sorted(result.values()) == [pytest.approx(-3.0), pytest.approx(3.0)]

    def test_newton_without_convergence(self):
        equation = Equation(BinaryOp("+", power(2), Number(1)), Number(0))
        with pytest.raises(NoConvergenceError):
            _solve_newton(equation)

    def test_newton_requires_single_variable(self):
        with pytest.raises(UnsupportedArityError) as exc_info:
            _solve_newton(Equation(BinaryOp("*", x, y), Number(1)))
        assert exc_info.value.names == ["x", "y"]

    def test_newton_uses_configured_seeds(self, monkeypatch):
        monkeypatch.setattr(config, "NEWTON_SEEDS", (3.0,))
        equation = Equation(BinaryOp("-", power(2), Number(9)), Number(0))
        assert _solve_newton(equation) == {"x": pytest.approx(3.0)}

    def test_parallel_newton(self, monkeypatch):
        monkeypatch.setattr(config, "PARALLEL_SEEDS", True)
        monkeypatch.setattr(config, "WORKER_POOL_SIZE", 3)
        equation = Equation(BinaryOp("-", power(2), Number(9)), Number(0))
        result = _solve_newton(equation)
        assert list(result) == ["x", "x_1"]
        assert result["x"] == pytest.approx(-3.0)

    def test_scan(self):
        equation = Equation(Function("cos", x), Number(0))
        result = _solve_bisection_scan(equation)
        assert len(result) == 6
        assert list(result)[:3] == ["x", "x_1", "x_2"]

    def test_scan_without_roots(self):
        with pytest.raises(NoRootsFoundError):
            _solve_bisection_scan(Equation(power(2), Number(-1)))


class TestDispatchHelpers:
    """Test strategy ordering, outcome reporting and result naming."""

    def test_strategy_order(self):
        assert [name for name, _ in STRATEGIES] == ["power", "linear", "newton", "bisection"]

    def test_run_strategy_success(self):
        outcome = run_strategy("linear", _solve_linear, Equation(x, Number(1)))
        assert outcome.ok
        assert outcome.solutions == {"x": 1.0}
        assert outcome.error is None

    def test_run_strategy_failure(self):
        outcome = run_strategy("power", _solve_power, Equation(x, Number(1)))
        assert not outcome.ok
        assert outcome.strategy == "power"
        assert outcome.error.code == "NOT_POWER_EQUATION"

    def test_name_roots(self):
        assert name_roots("t", [1.0, 2.0, 3.0]) == {"t": 1.0, "t_1": 2.0, "t_2": 3.0}
        assert name_roots("t", []) == {}
