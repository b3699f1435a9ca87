"""Main entry point for running eqsolver_pkg as a module.

This allows running eqsolver with:
    python -m eqsolver_pkg                 (statements from stdin)
    python -m eqsolver_pkg -e "a := 2; a*x = 6"
    python -m eqsolver_pkg -e "x^2 = 4"
    python -m eqsolver_pkg -e "2*x + y" --let x=1 --let y=3
    python -m eqsolver_pkg -e "sin(x)" --diff x
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())
