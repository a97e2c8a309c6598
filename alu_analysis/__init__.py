"""alu_analysis — static analysis and pruned search for the four-register ALU.

The package answers one question about an ALU program that reads fourteen
digits: which fourteen-digit numbers (digits 1..9) leave ``z`` at zero, and
what are the largest and smallest of them.

Submodules
----------
instructions
    Registers, operators, the two instruction kinds and the line parser.

interpreter
    Concrete execution; the reference semantics for everything else.

value_range
    ``ValueRange`` intervals with forward and backward transfer functions.

polynomial, expression, symbolic
    Linear fast path, interned expression arena with a bounded
    fixed-point simplifier, and symbolic execution over registers.

limits
    Forward ranges and backward limits per instruction.

search
    Depth-first digit search pruned by those limits.

driver, main
    Two-way solve with answer checking, and the ``alu`` CLI with
    subcommands ``solve``, ``simplify``, ``limits``, ``run``.

Usage
-----
Command-line::

    python -m alu_analysis solve input.txt
    python -m alu_analysis --help

Programmatic::

    from alu_analysis.driver import load_lines, solve

    answers = solve(load_lines("input.txt"))
    print(answers.largest, answers.smallest)
"""

from __future__ import annotations

__version__: str = "0.1.0"
__all__: list[str] = [
    "__version__",
    "config",
    "driver",
    "errors",
    "expression",
    "instructions",
    "interpreter",
    "limits",
    "polynomial",
    "search",
    "symbolic",
    "value_range",
]
