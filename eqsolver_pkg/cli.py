"""Command-line driver for eqsolver."""

from __future__ import annotations

import argparse
import json
import sys

from . import config as _config
from .api import diff, evaluate, solve_equation
from .config import VERSION
from .logging_config import setup_logging
from .parser import format_number, parse_expression
from .tree import Assignment, Equation
from .types import EvalResult, ParseError, SolveResult, ValidationError


def _parse_binding(text: str) -> tuple[str, float]:
    name, sep, value = text.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {text!r}")
    try:
        return name.strip(), float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None


def _print_result(
    result: EvalResult | SolveResult, output_format: str, name: str | None = None
) -> None:
    if output_format == "json":
        print(json.dumps(result.to_dict()))
        return
    if not result.ok:
        print(f"Error: {result.error}")
        if isinstance(result, SolveResult) and result.failures:
            for strategy, code in result.failures.items():
                print(f"  {strategy}: {code}")
        return
    if isinstance(result, SolveResult):
        for root_name, value in result.solutions.items():
            print(f"{root_name} = {format_number(value, _config.OUTPUT_PRECISION)}")
    elif result.value is not None:
        value = format_number(result.value, _config.OUTPUT_PRECISION)
        print(f"{name} = {value}" if name else value)
    else:
        print(result.result)


def split_statements(text: str) -> list[str]:
    """Split ``a := 2; a*x = 6`` into its non-empty statements."""
    return [part.strip() for part in text.split(";") if part.strip()]


def run_statement(
    text: str, context: dict[str, float], output_format: str = "human"
) -> bool:
    """Run one statement against *context* and print its result.

    An assignment stores its value in *context*, so later statements see it.
    An equation is solved with the bound variables treated as constants.
    Anything else is evaluated.

    Returns:
        True if the statement succeeded
    """
    name = None
    try:
        tree = parse_expression(text)
    except (ValidationError, ParseError) as e:
        result: EvalResult | SolveResult = EvalResult(
            ok=False, error=str(e), error_code=e.code
        )
    else:
        if isinstance(tree, Equation):
            result = solve_equation(tree, context)
        else:
            if isinstance(tree, Assignment):
                name = tree.name
            result = evaluate(tree, context)
    _print_result(result, output_format, name)
    return result.ok


def print_help_text() -> None:
    """Print help text for REPL commands."""
    print(
        f"""eqsolver version {VERSION}

  2*x + 3 = 7          solve an equation for its one free variable
  a := 2               bind a variable for the rest of the session
  a*x = 6              bound variables are treated as constants
  sqrt(a) + 1          evaluate an expression
  a := 2; a*x = 6      several statements on one line
  help                 show this text
  quit, exit           leave"""
    )


def repl_loop(
    context: dict[str, float] | None = None, output_format: str = "human"
) -> None:
    """Read statements from stdin until EOF, sharing one variable context."""
    interactive = sys.stdin.isatty()
    context = {} if context is None else context
    if interactive:
        try:
            import readline  # noqa: F401
        except ImportError:
            # readline not available on Windows - that's fine
            pass
        print("eqsolver - type 'help' for commands, 'quit' to exit.")

    while True:
        try:
            raw = input(">>> " if interactive else "").strip()
        except (EOFError, KeyboardInterrupt):
            if interactive:
                print("\nGoodbye.")
            break
        if not raw:
            continue
        cmd = raw.lower()
        if cmd in ("quit", "exit"):
            break
        if cmd in ("help", "?"):
            print_help_text()
            continue
        for statement in split_statements(raw):
            run_statement(statement, context, output_format)


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for eqsolver CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, 1 for evaluation/solving errors, 2 for usage errors)
    """
    parser = argparse.ArgumentParser(prog="eqsolver")
    parser.add_argument(
        "-e",
        "--eval",
        type=str,
        help="Run statements separated by ';' and exit (default: read them from stdin)",
        dest="eval_expr",
    )
    parser.add_argument(
        "--diff",
        type=str,
        metavar="VAR",
        help="Differentiate the --eval expression with respect to VAR",
    )
    parser.add_argument(
        "--let",
        type=_parse_binding,
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Bind a variable (repeatable)",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "-p", "--precision", type=int, help="Set output precision (significant digits)"
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Run Newton-Raphson seeds on a thread pool",
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file)

    if args.precision and args.precision > 0:
        _config.OUTPUT_PRECISION = int(args.precision)
    if args.parallel:
        _config.PARALLEL_SEEDS = True

    if args.version:
        print(VERSION)
        return 0

    context = dict(args.let)
    if args.eval_expr is None:
        if args.diff:
            parser.print_usage()
            return 2
        repl_loop(context, args.format)
        return 0

    if args.diff:
        result = diff(args.eval_expr, args.diff)
        _print_result(result, args.format)
        return 0 if result.ok else 1

    statements = split_statements(args.eval_expr)
    if not statements:
        parser.print_usage()
        return 2
    ok = True
    for statement in statements:
        ok = run_statement(statement, context, args.format) and ok
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main_entry())
