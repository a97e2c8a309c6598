"""
alu_analysis/interpreter.py
═══════════════════════════

Concrete interpreter for ALU programs.

This is the reference semantics: the symbolic engine and the pruned search
are both checked against it.  :func:`step` is the single-instruction
transfer function that the search reuses so the two can never disagree.
"""

from __future__ import annotations

import logging
from typing import List, MutableSequence, Sequence, Tuple

from alu_analysis.errors import InvariantViolation
from alu_analysis.instructions import (
    DIGIT_MAX,
    DIGIT_MIN,
    INPUT_COUNT,
    Constant,
    Input,
    Instruction,
    Operate,
    Register,
    RegisterName,
)

_log = logging.getLogger(__name__)

Registers = Tuple[int, int, int, int]


def operand_value(operate: Operate, registers: Sequence[int]) -> int:
    """Concrete value of the right-hand operand of *operate*."""
    rhs = operate.rhs
    if isinstance(rhs, Register):
        return registers[rhs.name.index]
    if isinstance(rhs, Constant):
        return rhs.value
    raise InvariantViolation(f"not an operand: {rhs!r}")


def step(operate: Operate, registers: MutableSequence[int]) -> int:
    """Apply *operate* to *registers* in place and return the new value."""
    dest = operate.dest.index
    value = operate.op.perform(registers[dest], operand_value(operate, registers))
    registers[dest] = value
    return value


def check_digits(digits: Sequence[int]) -> None:
    """Raise unless *digits* is exactly fourteen values in 1..9."""
    if len(digits) != INPUT_COUNT:
        raise InvariantViolation(
            f"expected {INPUT_COUNT} digits, got {len(digits)}"
        )
    for digit in digits:
        if not DIGIT_MIN <= digit <= DIGIT_MAX:
            raise InvariantViolation(f"digit out of range: {digit}")


def run_registers(program: Sequence[Instruction], digits: Sequence[int]) -> Registers:
    """Execute *program* on *digits* and return all four final registers."""
    check_digits(digits)
    registers: List[int] = [0, 0, 0, 0]
    next_input = 0
    for instruction in program:
        if isinstance(instruction, Input):
            if next_input >= len(digits):
                raise InvariantViolation("program reads more than fourteen inputs")
            registers[instruction.register.index] = digits[next_input]
            next_input += 1
        elif isinstance(instruction, Operate):
            step(instruction, registers)
        else:
            raise InvariantViolation(f"not an instruction: {instruction!r}")
    _log.debug("run %s -> %s", "".join(map(str, digits)), registers)
    return registers[0], registers[1], registers[2], registers[3]


def run_program(
    program: Sequence[Instruction],
    digits: Sequence[int],
    result: RegisterName = RegisterName.Z,
) -> int:
    """Execute *program* on *digits* and return the *result* register."""
    return run_registers(program, digits)[result.index]
