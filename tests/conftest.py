# tests/conftest.py
"""
Shared programs, fixtures and hypothesis strategies for the ALU tests.

The full puzzle program is fourteen copies of one 18-instruction block,
parameterised by ``(divisor, check, offset)``.  A block with divisor 1
pushes ``w + offset`` onto a base-26 stack held in ``z``; a block with
divisor 26 pops the top and only avoids pushing again when
``top + check == w``.
"""

import itertools
from typing import List, Sequence, Tuple

import pytest
from hypothesis import strategies as st

from alu_analysis.instructions import INPUT_COUNT, parse_program
from alu_analysis.interpreter import run_program
from alu_analysis.limits import compute_info
from alu_analysis.value_range import ValueRange

BLOCK_TEMPLATE = """\
inp w
mul x 0
add x z
mod x 26
div z {divisor}
add x {check}
eql x w
eql x 0
mul y 0
add y 25
mul y x
add y 1
mul z y
mul y 0
add y w
add y {offset}
mul y x
add z y"""

PUZZLE_PARAMETERS: List[Tuple[int, int, int]] = [
    (1, 12, 7),
    (1, 11, 15),
    (1, 12, 2),
    (26, -3, 15),
    (1, 10, 14),
    (26, -9, 2),
    (1, 10, 15),
    (26, -7, 1),
    (26, -11, 15),
    (26, -4, 15),
    (1, 14, 12),
    (1, 11, 2),
    (26, -8, 13),
    (26, -10, 13),
]

EXPECTED_LARGEST = 65984919997939
EXPECTED_SMALLEST = 11211619541713


def block_lines(divisor: int, check: int, offset: int) -> List[str]:
    return BLOCK_TEMPLATE.format(divisor=divisor, check=check, offset=offset).splitlines()


def program_lines(parameters: Sequence[Tuple[int, int, int]]) -> List[str]:
    """Blocks for *parameters*, padded with bare ``inp w`` up to 14 inputs."""
    lines: List[str] = []
    for divisor, check, offset in parameters:
        lines.extend(block_lines(divisor, check, offset))
    lines.extend(["inp w"] * (INPUT_COUNT - len(parameters)))
    return lines


PUZZLE_LINES = program_lines(PUZZLE_PARAMETERS)

# Two pushes and two pops: w3 = w2 - 3, w4 = w1 + 5.
SMALL_PARAMETERS: List[Tuple[int, int, int]] = [
    (1, 12, 7),
    (1, 11, 4),
    (26, -7, 1),
    (26, -2, 5),
]
SMALL_LINES = program_lines(SMALL_PARAMETERS)

# The pop needs w2 = w1 - 13, which no digit pair satisfies.
UNSOLVABLE_LINES = program_lines([(1, 12, 7), (26, -20, 3)])

# ── Literal scenarios ─────────────────────────────────────────────────────

ADD_SCENARIO = ["inp w", "add x 7", "add w x"]
MOD_SCENARIO = ["inp w", "mul w 5", "add w 8", "mod w 5"]
EQL_SCENARIO = ["inp w", "mul w 100", "mod w 20", "add x 25", "eql w x"]


def pad_digits(digits: Sequence[int], fill: int = 1) -> List[int]:
    """Extend *digits* to a full fourteen-digit assignment."""
    return list(digits) + [fill] * (INPUT_COUNT - len(digits))


# ── Fixtures ──────────────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def puzzle_program():
    return parse_program(PUZZLE_LINES)


@pytest.fixture(scope="session")
def puzzle_infos(puzzle_program):
    return compute_info(puzzle_program)


@pytest.fixture(scope="session")
def small_program():
    return parse_program(SMALL_LINES)


@pytest.fixture(scope="session")
def small_infos(small_program):
    return compute_info(small_program)


@pytest.fixture(scope="session")
def small_accepted(small_program):
    """Every accepted assignment of the four meaningful digits, by brute force."""
    return [
        digits
        for digits in itertools.product(range(1, 10), repeat=4)
        if run_program(small_program, pad_digits(digits)) == 0
    ]


# ── Strategies ────────────────────────────────────────────────────────────

digit_lists = st.lists(st.integers(1, 9), min_size=INPUT_COUNT, max_size=INPUT_COUNT)


@st.composite
def value_ranges(draw, min_value: int = -60, max_value: int = 60) -> ValueRange:
    a = draw(st.integers(min_value, max_value))
    b = draw(st.integers(min_value, max_value))
    return ValueRange(min(a, b), max(a, b))
