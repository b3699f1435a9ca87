"""Unit tests for parser module."""

import math
import unittest

import sympy as sp

from eqsolver_pkg.parser import (
    format_number,
    from_sympy,
    is_balanced,
    parse_expression,
    preprocess,
    to_sympy,
)
from eqsolver_pkg.tree import (
    Assignment,
    BinaryOp,
    Equation,
    Function,
    Number,
    Variable,
)
from eqsolver_pkg.types import ParseError, ValidationError

x = Variable("x")


class TestPreprocess(unittest.TestCase):
    """Test input preprocessing."""

    def test_basic_expression(self):
        self.assertEqual(preprocess("2 + 2"), "2 + 2")

    def test_caret_becomes_power(self):
        self.assertEqual(preprocess("x^2"), "x**2")

    def test_unicode_normalization(self):
        self.assertEqual(preprocess("2×π − 1"), "2*pi - 1")

    def test_brackets_become_parentheses(self):
        self.assertEqual(preprocess("[x + 1]*{2}"), "(x + 1)*(2)")

    def test_empty_input(self):
        with self.assertRaises(ValidationError) as ctx:
            preprocess("   ")
        self.assertEqual(ctx.exception.code, "EMPTY_INPUT")

    def test_too_long(self):
        with self.assertRaises(ValidationError) as ctx:
            preprocess("1+" * 6000 + "1")
        self.assertEqual(ctx.exception.code, "TOO_LONG")

    def test_forbidden_tokens(self):
        for text in ("__class__", "import os", "lambda: 1", "eval(1)"):
            with self.subTest(text=text):
                with self.assertRaises(ValidationError) as ctx:
                    preprocess(text)
                self.assertEqual(ctx.exception.code, "FORBIDDEN_TOKEN")

    def test_unbalanced(self):
        with self.assertRaises(ValidationError) as ctx:
            preprocess("(x + 1))")
        self.assertEqual(ctx.exception.code, "UNBALANCED")

    def test_relations_rejected(self):
        for text in ("x == 1", "x <= 1", "x >= 1", "x != 1", "x = 1 = 2"):
            with self.subTest(text=text):
                with self.assertRaises(ValidationError) as ctx:
                    preprocess(text)
                self.assertEqual(ctx.exception.code, "INVALID_FORMAT")

    def test_assignment_allowed(self):
        self.assertEqual(preprocess("y := 2*x"), "y := 2*x")


class TestBalanceAndFormatting(unittest.TestCase):
    """Test helper functions."""

    def test_is_balanced(self):
        self.assertEqual(is_balanced("(a[b]{c})"), (True, None))
        self.assertEqual(is_balanced("(]"), (False, 1))
        self.assertEqual(is_balanced("((x)"), (False, 0))

    def test_format_number(self):
        self.assertEqual(format_number(2.0), "2")
        self.assertEqual(format_number(1 / 3, 4), "0.3333")
        self.assertEqual(format_number(-2.5), "-2.5")
        self.assertEqual(format_number("abc"), "abc")


class TestParseExpression(unittest.TestCase):
    """Test conversion of text into expression trees."""

    def test_power_equation_shape(self):
        tree = parse_expression("x^2 = 4")
        self.assertEqual(tree, Equation(BinaryOp("^", x, Number(2)), Number(4)))

    def test_implicit_multiplication(self):
        self.assertEqual(parse_expression("2x + 3").evaluate({"x": 2}), 7.0)
        self.assertEqual(parse_expression("2(x + 1)").evaluate({"x": 2}), 6.0)

    def test_multi_letter_names(self):
        tree = parse_expression("rate*time")
        self.assertEqual(tree.collect_variables(), {"rate", "time"})

    def test_subtraction_and_division(self):
        self.assertEqual(parse_expression("x - 3").evaluate({"x": 5}), 2.0)
        self.assertEqual(parse_expression("x/2 - 1/4").evaluate({"x": 6}), 2.75)
        self.assertEqual(parse_expression("-x").evaluate({"x": 5}), -5.0)

    def test_functions(self):
        self.assertIsInstance(parse_expression("sin(x)"), Function)
        self.assertEqual(parse_expression("sqrt(x)"), Function("sqrt", x))
        self.assertEqual(parse_expression("ln(x)"), Function("log", x))

    def test_constants(self):
        self.assertAlmostEqual(parse_expression("pi").evaluate(), math.pi)
        self.assertAlmostEqual(parse_expression("E").evaluate(), math.e)

    def test_assignment(self):
        tree = parse_expression("y := 2*x")
        self.assertIsInstance(tree, Assignment)
        self.assertEqual(tree.name, "y")
        context = {"x": 2.0}
        tree.evaluate(context)
        self.assertEqual(context["y"], 4.0)

    def test_invalid_assignment_name(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_expression("2y := 3")
        self.assertEqual(ctx.exception.code, "INVALID_NAME")

    def test_empty_equation_side(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_expression("x = ")
        self.assertEqual(ctx.exception.code, "INVALID_FORMAT")

    def test_unsupported_function(self):
        with self.assertRaises(ParseError) as ctx:
            parse_expression("tan(x)")
        self.assertEqual(ctx.exception.code, "UNSUPPORTED_FUNCTION")

    def test_syntax_error(self):
        with self.assertRaises(ParseError):
            parse_expression("2 +")


class TestSympyBridge(unittest.TestCase):
    """Test from_sympy and to_sympy."""

    def test_from_sympy_basic(self):
        s = sp.Symbol("x")
        self.assertEqual(from_sympy(s), x)
        self.assertEqual(from_sympy(sp.Integer(3)), Number(3))
        self.assertEqual(from_sympy(sp.sin(s)), Function("sin", x))

    def test_from_sympy_rejects_complex(self):
        with self.assertRaises(ParseError):
            from_sympy(sp.I)

    def test_to_sympy(self):
        s = sp.Symbol("x")
        self.assertEqual(to_sympy(parse_expression("x^2 + 1")), s**2 + 1)
        self.assertEqual(to_sympy(Number(2)), sp.Integer(2))

    def test_equation_to_sympy(self):
        result = to_sympy(parse_expression("2x = 4"))
        self.assertIsInstance(result, sp.Eq)

    def test_assignment_has_no_sympy_form(self):
        with self.assertRaises(ParseError):
            to_sympy(Assignment("y", x))

    def test_values_agree(self):
        s = sp.Symbol("x")
        for text in ("x^3 - 2x + 1", "sin(x)/x", "sqrt(x + 1)*log(x)", "(x - 1)/(x + 2)^2"):
            with self.subTest(text=text):
                tree = parse_expression(text)
                expected = float(to_sympy(tree).subs(s, 1.7))
                self.assertAlmostEqual(tree.evaluate({"x": 1.7}), expected, places=12)


if __name__ == "__main__":
    unittest.main()
