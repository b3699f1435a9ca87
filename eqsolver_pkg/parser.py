"""Text front end and SymPy bridge.

This module handles:
- Input sanitization and validation
- SymPy expression parsing with structure-preserving (unevaluated) output
- Conversion between SymPy expressions and engine expression trees
- Number formatting for results
"""

from __future__ import annotations

import math
import re
from tokenize import TokenError
from typing import Any

import sympy as sp
from sympy import parse_expr

from .config import (
    ALLOWED_SYMPY_NAMES,
    MAX_EXPRESSION_DEPTH,
    MAX_EXPRESSION_NODES,
    MAX_INPUT_LENGTH,
    OUTPUT_PRECISION,
    TRANSFORMATIONS,
)
from .logging_config import get_logger
from .tree import Assignment, BinaryOp, Equation, Function, Node, Number, Variable
from .types import ParseError, ValidationError

logger = get_logger("parser")

VAR_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Basic denylist to avoid dangerous tokens before SymPy parsing
FORBIDDEN_TOKENS = (
    "__",
    "import",
    "lambda",
    "eval",
    "exec",
    "open",
    "os.",
    "sys.",
    "subprocess",
    "builtins",
    "getattr",
    "setattr",
    "delattr",
    "compile",
    "globals",
    "locals",
)

SYMPY_FUNCTIONS = {
    sp.sin: "sin",
    sp.cos: "cos",
    sp.log: "log",
}

TREE_FUNCTIONS = {
    "sin": sp.sin,
    "cos": sp.cos,
    "log": sp.log,
    "sqrt": sp.sqrt,
}


def format_number(val: Any, precision: int = OUTPUT_PRECISION) -> str:
    """Format a numeric value with specified precision.

    Args:
        val: Numeric value to format
        precision: Number of significant digits (default: OUTPUT_PRECISION)

    Returns:
        Formatted string representation of the number
    """
    try:
        fmt = "{:." + str(int(precision)) + "g}"
        return fmt.format(float(val))
    except (ValueError, TypeError, OverflowError):
        return str(val)


def is_balanced(input_str: str) -> tuple[bool, int | None]:
    """Check if parentheses/brackets are balanced. Returns (is_balanced, error_position)."""
    pairs = {"(": ")", "[": "]", "{": "}"}
    stack: list[tuple[str, int]] = []  # (char, position)
    for i, char in enumerate(input_str):
        if char in pairs:
            stack.append((char, i))
        elif char in pairs.values():
            if not stack:
                return False, i
            opening, pos = stack.pop()
            if pairs[opening] != char:
                return False, i
    if stack:
        return False, stack[0][1]  # Return position of first unmatched
    return True, None


def preprocess(input_str: str) -> str:
    """Validate and normalize raw input before SymPy parsing.

    Raises:
        ValidationError: empty, too long, forbidden tokens, unbalanced
            brackets or a malformed ``=``
    """
    input_str = input_str.strip() if input_str else ""

    if not input_str:
        raise ValidationError("Input cannot be empty", "EMPTY_INPUT")
    if len(input_str) > MAX_INPUT_LENGTH:
        raise ValidationError(
            f"Input too long (>{MAX_INPUT_LENGTH} characters)", "TOO_LONG"
        )

    lowered = input_str.lower()
    for tok in FORBIDDEN_TOKENS:
        if tok in lowered:
            logger.warning(f"Blocked input containing forbidden token {tok!r}")
            raise ValidationError(
                f"Input contains forbidden token: {tok}", "FORBIDDEN_TOKEN"
            )

    balanced, position = is_balanced(input_str)
    if not balanced:
        raise ValidationError(
            f"Unbalanced parentheses or brackets at position {position}", "UNBALANCED"
        )

    processed = input_str.replace("−", "-").replace("–", "-")
    processed = processed.replace("π", "pi").replace("×", "*").replace("√", "sqrt")
    processed = processed.replace("[", "(").replace("]", ")")
    processed = processed.replace("{", "(").replace("}", ")")
    processed = processed.replace("^", "**")

    body = processed.replace(":=", "")
    if re.search(r"==|<=|>=|!=", body) or body.count("=") > 1:
        raise ValidationError(
            "Invalid equation format: use a single '=' between two expressions",
            "INVALID_FORMAT",
        )
    return processed


def _validate_expression_tree(expr: Any, depth: int = 0, node_count: list[int] | None = None) -> None:
    if node_count is None:
        node_count = [0]
    node_count[0] += 1
    if node_count[0] > MAX_EXPRESSION_NODES:
        raise ValidationError(
            f"Expression too complex (>{MAX_EXPRESSION_NODES} nodes)", "TOO_COMPLEX"
        )
    if depth > MAX_EXPRESSION_DEPTH:
        raise ValidationError(
            f"Expression too deeply nested (>{MAX_EXPRESSION_DEPTH} levels)", "TOO_DEEP"
        )
    if not isinstance(expr, sp.Basic):
        raise ValidationError(
            f"Expression type '{type(expr).__name__}' not allowed", "FORBIDDEN_TYPE"
        )
    for arg in expr.args:
        _validate_expression_tree(arg, depth + 1, node_count)


def _parse_side(text: str) -> sp.Basic:
    text = text.strip()
    if not text:
        raise ValidationError(
            "Both sides of the equation must have expressions", "INVALID_FORMAT"
        )
    try:
        expr = parse_expr(
            text,
            local_dict=dict(ALLOWED_SYMPY_NAMES),
            transformations=TRANSFORMATIONS,
            evaluate=False,
        )
    except (
        SyntaxError,
        TokenError,
        TypeError,
        ValueError,
        AttributeError,
        sp.SympifyError,
    ) as e:
        raise ParseError(f"Could not parse expression '{text}': {e}", "PARSE_ERROR") from e
    _validate_expression_tree(expr)
    return expr


def _product(factors: list[Node]) -> Node:
    node = factors[0]
    for factor in factors[1:]:
        node = BinaryOp("*", node, factor)
    return node


def from_sympy(expr: Any) -> Node:
    """Convert a SymPy expression (ideally parsed with ``evaluate=False``) to a tree.

    Raises:
        ParseError: functions other than sin/cos/log/sqrt, relations,
            complex numbers or anything else without a tree form
    """
    if isinstance(expr, sp.Symbol):
        return Variable(expr.name)
    if isinstance(expr, (sp.Number, sp.NumberSymbol)):
        try:
            return Number(float(expr))
        except TypeError as e:
            raise ParseError(f"Not a real number: {expr}", "UNSUPPORTED_EXPRESSION") from e
    if expr is sp.I:
        raise ParseError("Complex numbers are not supported", "UNSUPPORTED_EXPRESSION")

    if isinstance(expr, sp.Add):
        terms = list(expr.args)
        node = from_sympy(terms[0])
        for term in terms[1:]:
            if term.could_extract_minus_sign():
                node = BinaryOp("-", node, from_sympy(-term))
            else:
                node = BinaryOp("+", node, from_sympy(term))
        return node

    if isinstance(expr, sp.Mul):
        numerator: list[Node] = []
        denominator: list[Node] = []
        for factor in expr.args:
            if isinstance(factor, sp.Pow) and factor.exp == -1:
                denominator.append(from_sympy(factor.base))
            else:
                numerator.append(from_sympy(factor))
        node = _product(numerator) if numerator else Number(1.0)
        if denominator:
            node = BinaryOp("/", node, _product(denominator))
        return node

    if isinstance(expr, sp.Pow):
        base, exp = expr.args
        if exp == sp.S.Half:
            return Function("sqrt", from_sympy(base))
        if exp == -1:
            return BinaryOp("/", Number(1.0), from_sympy(base))
        return BinaryOp("^", from_sympy(base), from_sympy(exp))

    if isinstance(expr, sp.Function):
        name = SYMPY_FUNCTIONS.get(expr.func)
        if name is None or len(expr.args) != 1:
            raise ParseError(
                f"Function '{expr.func}' is not supported", "UNSUPPORTED_FUNCTION"
            )
        return Function(name, from_sympy(expr.args[0]))

    raise ParseError(
        f"Expression '{expr}' has no expression tree form", "UNSUPPORTED_EXPRESSION"
    )


def parse_expression(text: str) -> Node:
    """Parse text into an expression tree.

    ``lhs = rhs`` becomes an Equation and ``name := expr`` an Assignment;
    anything else is a plain expression.

    Raises:
        ValidationError: input rejected by preprocess or size limits
        ParseError: SymPy could not parse the input or it has no tree form
    """
    processed = preprocess(text)

    if ":=" in processed:
        name, _, body = processed.partition(":=")
        name = name.strip()
        if not VAR_NAME_RE.match(name):
            raise ValidationError(f"Invalid variable name: '{name}'", "INVALID_NAME")
        return Assignment(name, from_sympy(_parse_side(body)))

    if "=" in processed:
        lhs, _, rhs = processed.partition("=")
        return Equation(from_sympy(_parse_side(lhs)), from_sympy(_parse_side(rhs)))

    return from_sympy(_parse_side(processed))


def _sympy_number(value: float) -> sp.Expr:
    if math.isnan(value):
        return sp.nan
    if math.isinf(value):
        return sp.oo if value > 0 else -sp.oo
    if value.is_integer():
        return sp.Integer(int(value))
    return sp.Float(value)


def to_sympy(node: Node) -> sp.Basic:
    """Convert a tree to an (evaluated) SymPy expression; an Equation becomes ``sp.Eq``."""
    if isinstance(node, Number):
        return _sympy_number(node.value)
    if isinstance(node, Variable):
        return sp.Symbol(node.name)
    if isinstance(node, BinaryOp):
        left, right = to_sympy(node.left), to_sympy(node.right)
        if node.op == "+":
            return left + right
        if node.op == "-":
            return left - right
        if node.op == "*":
            return left * right
        if node.op == "/":
            return left / right
        return left**right
    if isinstance(node, Function):
        return TREE_FUNCTIONS[node.name](to_sympy(node.arg))
    if isinstance(node, Equation):
        return sp.Eq(to_sympy(node.lhs), to_sympy(node.rhs), evaluate=False)
    if isinstance(node, Assignment):
        raise ParseError(
            "Assignments have no SymPy expression form", "UNSUPPORTED_EXPRESSION"
        )
    raise TypeError(f"Not an expression tree node: {node!r}")
