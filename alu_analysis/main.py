#!/usr/bin/env python3
"""alu_analysis/main.py — CLI entry-point for the ALU analyzer.

Usage examples
--------------
    # Largest and smallest accepted model numbers
    python -m alu_analysis solve input.txt

    # Same, failing unless the answers match known values
    python -m alu_analysis solve input.txt --expect-max 65984919997939 \\
        --expect-min 11211619541713

    # Closed form of the final z register
    python -m alu_analysis simplify input.txt --register z --format sexp

    # Forward ranges and backward limits per instruction
    python -m alu_analysis limits input.txt

    # Run the program on one model number
    python -m alu_analysis run input.txt 13579246899999

Exit codes
----------
    0   Success.
    1   Analysis failure: no solution, answer mismatch, or invariant violation.
    2   Infrastructure failure (missing file, malformed program, bad usage).

The module doubles as ``python -m alu_analysis`` via the companion
``alu_analysis/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from termcolor import colored

from alu_analysis import __version__
from alu_analysis.config import AnalysisConfig
from alu_analysis.driver import check_answer, load_lines, solve_program
from alu_analysis.errors import AluError, AnswerMismatchError, ProgramParseError
from alu_analysis.instructions import (
    DIGIT_MAX,
    DIGIT_MIN,
    INPUT_COUNT,
    REGISTERS,
    Program,
    RegisterName,
    parse_program,
)
from alu_analysis.interpreter import run_registers
from alu_analysis.limits import compute_info
from alu_analysis.symbolic import execute_symbolic

_log = logging.getLogger("alu_analysis")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``alu_analysis`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("alu_analysis")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _load(args: argparse.Namespace) -> Program:
    """Read and parse the program named on the command line."""
    path = _resolve_path(args.program, "program")
    try:
        return parse_program(load_lines(path))
    except OSError as exc:
        _log.error("cannot read %s: %s", path, exc)
        raise SystemExit(EXIT_INFRA)
    except ProgramParseError as exc:
        _log.error("%s: %s", path, exc)
        raise SystemExit(EXIT_INFRA)


def _config_from_args(args: argparse.Namespace) -> AnalysisConfig:
    config = AnalysisConfig(required_result=args.required_result)
    if args.rewrite_factor is not None:
        config.rewrite_budget_factor = args.rewrite_factor
    for warning in config.validate():
        _log.warning("config: %s", warning)
    return config


def _digits_arg(raw: str) -> Tuple[int, ...]:
    """argparse type for a fourteen-digit model number."""
    if len(raw) != INPUT_COUNT or not raw.isdigit():
        raise argparse.ArgumentTypeError(f"expected {INPUT_COUNT} digits, got {raw!r}")
    digits = tuple(int(c) for c in raw)
    if any(not DIGIT_MIN <= d <= DIGIT_MAX for d in digits):
        raise argparse.ArgumentTypeError(f"digits must be {DIGIT_MIN}..{DIGIT_MAX}: {raw!r}")
    return digits


def _verdict(ok: bool) -> str:
    return colored("ok", "green") if ok else colored("MISMATCH", "red", attrs=["bold"])


# ===========================================================================
# Subcommands
# ===========================================================================

def cmd_solve(args: argparse.Namespace) -> int:
    """Find both extreme accepted numbers and compare against expectations."""
    program = _load(args)
    answers = solve_program(program, _config_from_args(args))

    status = EXIT_OK
    for label, actual, expected in (
        ("largest", answers.largest, args.expect_max),
        ("smallest", answers.smallest, args.expect_min),
    ):
        line = f"{label:<9} {actual}"
        try:
            check_answer(label, actual, expected)
        except AnswerMismatchError as exc:
            _log.error("%s", exc)
            print(f"{line}  {_verdict(False)} (expected {expected})")
            status = EXIT_ERROR
            continue
        print(f"{line}  {_verdict(True)}" if expected is not None else line)
    return status


def cmd_simplify(args: argparse.Namespace) -> int:
    """Print the simplified closed form of one register."""
    program = _load(args)
    register = RegisterName.parse(args.register)
    if register is None:
        _log.error("unknown register: %s", args.register)
        return EXIT_INFRA
    trace = execute_symbolic(program, _config_from_args(args))
    eid = trace.final(register)
    arena = trace.arena
    if args.format == "sexp":
        print(arena.to_sexp(eid))
    elif args.format == "listing":
        for line in arena.listing(eid):
            print(line)
    else:
        print(arena.render(eid))
    _log.info("%s: %d nodes, depth %d, range %s",
              register, arena.size(eid), arena.depth(eid), arena.value_range(eid))
    return EXIT_OK


def cmd_limits(args: argparse.Namespace) -> int:
    """Print forward ranges and backward limits after each instruction."""
    program = _load(args)
    infos = compute_info(program, _config_from_args(args))
    header = "  ".join(f"{str(r):<28}" for r in REGISTERS)
    print(f"{'#':>4}  {'instruction':<14}{header}")
    for index, info in enumerate(infos):
        cells: List[str] = []
        for register in REGISTERS:
            rng = info.ranges[register.index]
            limit = info.limit(register)
            cell = repr(rng) if limit is None or limit == rng else f"{rng!r} ⊇ {limit!r}"
            cells.append(f"{cell:<28}")
        print(f"{index:>4}  {str(info.instruction):<14}{'  '.join(cells)}")
    return EXIT_OK


def cmd_run(args: argparse.Namespace) -> int:
    """Execute the program on one model number."""
    program = _load(args)
    registers = run_registers(program, args.digits)
    print(" ".join(f"{r}={v}" for r, v in zip(REGISTERS, registers)))
    accepted = registers[RegisterName.Z.index] == args.required_result
    return EXIT_OK if accepted else EXIT_ERROR


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    # --- Top-level parser --------------------------------------------------
    parser = argparse.ArgumentParser(
        prog="alu",
        description=(
            "ALU analyzer — interval limits, symbolic simplification and\n"
            "pruned search over four-register ALU programs."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              alu solve    input.txt --expect-max 65984919997939
              alu simplify input.txt --format sexp
              alu limits   input.txt
              alu run      input.txt 13579246899999
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # Shared argument groups (reusable) ------------------------------------

    def _add_program_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("program", metavar="PROGRAM", help="ALU program text file.")
        g = p.add_argument_group("analysis tuning")
        g.add_argument(
            "--required-result",
            type=int,
            default=0,
            metavar="N",
            help="Value z must hold for a number to be accepted (default: 0).",
        )
        g.add_argument(
            "--rewrite-factor",
            type=int,
            default=None,
            metavar="N",
            help="Simplifier rewrites allowed per expression node (default: 8).",
        )

    # --- solve -------------------------------------------------------------
    p_solve = subparsers.add_parser(
        "solve",
        help="Find the largest and smallest accepted model numbers.",
    )
    _add_program_args(p_solve)
    p_solve.add_argument("--expect-max", type=int, default=None, metavar="N",
                         help="Fail unless the largest answer equals N.")
    p_solve.add_argument("--expect-min", type=int, default=None, metavar="N",
                         help="Fail unless the smallest answer equals N.")
    p_solve.set_defaults(func=cmd_solve)

    # --- simplify ----------------------------------------------------------
    p_simplify = subparsers.add_parser(
        "simplify",
        help="Print the simplified symbolic value of a register.",
    )
    _add_program_args(p_simplify)
    p_simplify.add_argument(
        "-r", "--register",
        choices=[str(r) for r in REGISTERS],
        default="z",
        help="Register to print (default: z).",
    )
    p_simplify.add_argument(
        "-f", "--format",
        choices=["infix", "sexp", "listing"],
        default="infix",
        help="Expression output format (default: infix).",
    )
    p_simplify.set_defaults(func=cmd_simplify)

    # --- limits ------------------------------------------------------------
    p_limits = subparsers.add_parser(
        "limits",
        help="Print forward ranges and backward limits per instruction.",
    )
    _add_program_args(p_limits)
    p_limits.set_defaults(func=cmd_limits)

    # --- run ---------------------------------------------------------------
    p_run = subparsers.add_parser(
        "run",
        help="Execute the program on one fourteen-digit model number.",
    )
    _add_program_args(p_run)
    p_run.add_argument("digits", metavar="DIGITS", type=_digits_arg,
                       help="Fourteen digits, each 1..9.")
    p_run.set_defaults(func=cmd_run)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the ALU CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA

    _configure_logging(args.verbose)

    # No subcommand given → print help.
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130  # Standard UNIX convention for SIGINT
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except AluError as exc:
        _log.error("%s", exc)
        return EXIT_ERROR
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


# ---------------------------------------------------------------------------
# Module execution support
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    raise SystemExit(main())
