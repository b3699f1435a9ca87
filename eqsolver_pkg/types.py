"""Error taxonomy and result dataclasses for consistent API responses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class EvalResult:
    """Result of evaluating or differentiating an expression."""

    ok: bool
    result: str | None = None
    value: float | None = None
    free_symbols: list[str] | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict = {"ok": self.ok}
        if self.result is not None:
            result_dict["result"] = self.result
        if self.value is not None:
            result_dict["value"] = self.value
        if self.free_symbols is not None:
            result_dict["free_symbols"] = self.free_symbols
        if self.error is not None:
            result_dict["error"] = self.error
        if self.error_code is not None:
            result_dict["error_code"] = self.error_code
        return result_dict

    def __repr__(self) -> str:
        """Return string representation of the result."""
        if not self.ok:
            return f"EvalResult(ok=False, error={self.error!r}, error_code={self.error_code!r})"
        parts = [f"ok={self.ok}"]
        if self.result is not None:
            parts.append(f"result={self.result!r}")
        if self.value is not None:
            parts.append(f"value={self.value!r}")
        if self.free_symbols is not None:
            parts.append(f"free_symbols={self.free_symbols!r}")
        return f"EvalResult({', '.join(parts)})"


@dataclass
class SolveResult:
    """Result of solving an equation."""

    ok: bool
    solutions: dict[str, float] | None = None
    strategy: str | None = None  # "power", "linear", "newton", "bisection"
    error: str | None = None
    error_code: str | None = None
    # Per-strategy failure codes, filled when every strategy failed
    failures: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.solutions is not None:
            result_dict["solutions"] = self.solutions
        if self.strategy is not None:
            result_dict["strategy"] = self.strategy
        if self.error is not None:
            result_dict["error"] = self.error
        if self.error_code is not None:
            result_dict["error_code"] = self.error_code
        if self.failures is not None:
            result_dict["failures"] = self.failures
        return result_dict

    def __repr__(self) -> str:
        """Return string representation of the result."""
        if not self.ok:
            return f"SolveResult(ok=False, error={self.error!r}, error_code={self.error_code!r})"
        return (
            f"SolveResult(ok=True, solutions={self.solutions!r}, "
            f"strategy={self.strategy!r})"
        )


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ParseError(Exception):
    """Raised when parsing fails."""

    def __init__(self, message: str, code: str = "PARSE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class EngineError(Exception):
    """Base class for every evaluation, differentiation and solving failure."""

    default_code = "ENGINE_ERROR"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# Evaluation


class EvaluationError(EngineError):
    default_code = "EVALUATION_ERROR"


class UndefinedVariableError(EvaluationError):
    """Raised when a variable is missing from the binding context."""

    default_code = "UNDEFINED_VARIABLE"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Undefined variable: {name}")


class DivisionByZeroError(EvaluationError):
    default_code = "DIVISION_BY_ZERO"

    def __init__(self, message: str = "Division by zero"):
        super().__init__(message)


class DomainError(EvaluationError):
    """Raised when log or sqrt receives an argument outside its real domain."""

    default_code = "DOMAIN_ERROR"


# Tree construction


class UnknownOperatorError(EngineError):
    default_code = "UNKNOWN_OPERATOR"

    def __init__(self, op: str):
        self.op = op
        super().__init__(f"Unknown binary operator: {op!r}")


class UnknownFunctionError(EngineError):
    default_code = "UNKNOWN_FUNCTION"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown function: {name!r}")


class UnsupportedDerivativeError(EngineError):
    default_code = "UNSUPPORTED_DERIVATIVE"


# Solving


class SolverError(EngineError):
    """Raised when a solving strategy cannot produce a solution."""

    default_code = "SOLVER_ERROR"


class NotAnEquationError(SolverError):
    default_code = "NOT_AN_EQUATION"

    def __init__(self, message: str = "Node is not an equation"):
        super().__init__(message)


class NonLinearError(SolverError):
    default_code = "NON_LINEAR"


class ZeroCoefficientError(SolverError):
    default_code = "ZERO_COEFFICIENT"


class NoVariablesError(SolverError):
    default_code = "NO_VARIABLES"


class MultipleVariablesError(SolverError):
    default_code = "MULTIPLE_VARIABLES"

    def __init__(self, names: list[str]):
        self.names = names
        super().__init__(f"Multiple variables not supported: {', '.join(names)}")


class UnsupportedArityError(SolverError):
    """Raised when numeric solving sees anything but exactly one variable."""

    default_code = "UNSUPPORTED_ARITY"

    def __init__(self, names: list[str]):
        self.names = names
        super().__init__(
            f"Can only solve single-variable equations numerically, got {len(names)}"
        )


class RootFindingError(SolverError):
    default_code = "ROOT_FINDING_ERROR"


class FlatDerivativeError(RootFindingError):
    default_code = "FLAT_DERIVATIVE"


class NoConvergenceError(RootFindingError):
    default_code = "NO_CONVERGENCE"


class SameSignEndpointsError(RootFindingError):
    default_code = "SAME_SIGN_ENDPOINTS"


class NoRootsFoundError(SolverError):
    """Raised when every solving strategy failed.

    ``failures`` maps each attempted strategy name to the error it failed with.
    """

    default_code = "NO_ROOTS_FOUND"

    def __init__(
        self,
        message: str = "No roots found in the search interval",
        failures: dict[str, EngineError] | None = None,
    ):
        self.failures = failures or {}
        super().__init__(message)
