"""
alu_analysis/driver.py
══════════════════════

End-to-end puzzle driver: load a program, analyse it once, search both
ways, and optionally check the answers against known values.

    lines ──► parse_program ──► compute_info ──┬──► DESCENDING ──► largest
                                               └──► ASCENDING  ──► smallest
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from alu_analysis.config import AnalysisConfig
from alu_analysis.errors import AnswerMismatchError, InvariantViolation
from alu_analysis.instructions import INPUT_COUNT, Program, count_inputs, parse_program
from alu_analysis.limits import compute_info
from alu_analysis.search import DigitOrder, digits_to_number, find_digits

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Answers:
    largest: int
    smallest: int


def load_lines(path: Union[str, Path]) -> List[str]:
    """Read *path* and return its stripped, non-empty lines."""
    text = Path(path).read_text(encoding="utf-8")
    return [line.strip() for line in text.splitlines() if line.strip()]


def solve(lines: Iterable[str], config: Optional[AnalysisConfig] = None) -> Answers:
    """Largest and smallest accepted fourteen-digit numbers for program text.

    Raises
    ------
    ProgramParseError
        On the first malformed line.
    NoSolutionError
        If no digit sequence is accepted.
    """
    return solve_program(parse_program(lines), config)


def solve_program(program: Program, config: Optional[AnalysisConfig] = None) -> Answers:
    """Like :func:`solve` for an already parsed program."""
    config = config or AnalysisConfig()
    inputs = count_inputs(program)
    if inputs != INPUT_COUNT:
        raise InvariantViolation(f"program reads {inputs} inputs, expected {INPUT_COUNT}")
    infos = compute_info(program, config)
    largest = digits_to_number(find_digits(infos, DigitOrder.DESCENDING, config))
    smallest = digits_to_number(find_digits(infos, DigitOrder.ASCENDING, config))
    _log.info("solved %d instructions: largest=%d smallest=%d", len(program), largest, smallest)
    return Answers(largest, smallest)


def check_answer(label: str, actual: int, expected: Optional[int]) -> None:
    """Raise :class:`AnswerMismatchError` unless *actual* equals *expected*.

    ``expected=None`` means there is nothing to check against.
    """
    if expected is None:
        return
    if actual != expected:
        raise AnswerMismatchError(label, actual, expected)
    _log.debug("%s matches expected %d", label, expected)
