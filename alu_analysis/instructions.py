"""
alu_analysis/instructions.py
════════════════════════════

Instruction model for the four-register ALU.

Program text has one instruction per line::

    inp <reg>
    <op> <reg> <reg-or-int>

where ``<reg>`` is one of ``w x y z`` and ``<op>`` is one of
``add mul div mod eql``.

  Mnemonic   Semantics
  ─────────  ─────────────────────────────────────────────
  inp a      a ← next input digit
  add a b    a ← a + b
  mul a b    a ← a × b
  div a b    a ← a ÷ b, truncated toward zero (b ≠ 0)
  mod a b    a ← a mod b (a ≥ 0, b > 0)
  eql a b    a ← 1 if a = b else 0

Instructions are immutable; a parsed program is a plain tuple of them.
Both instruction kinds and both operand kinds are closed unions of frozen
dataclasses, so consumers dispatch with ``isinstance`` and treat anything
else as an invariant violation.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple, Union

from alu_analysis.errors import InvariantViolation, ParseErrorKind, ProgramParseError

# ---------------------------------------------------------------------------
# Machine constants
# ---------------------------------------------------------------------------

INPUT_COUNT = 14
DIGIT_MIN = 1
DIGIT_MAX = 9

_INTEGER_RE = re.compile(r"^-?\d+$")


# ═══════════════════════════════════════════════════════════════════════════
# 1. NAMES
# ═══════════════════════════════════════════════════════════════════════════


class RegisterName(enum.Enum):
    """The four registers, in storage order."""

    W = "w"
    X = "x"
    Y = "y"
    Z = "z"

    @property
    def index(self) -> int:
        return _REGISTER_INDEX[self]

    @classmethod
    def parse(cls, token: str) -> Optional["RegisterName"]:
        """Return the register named *token*, or ``None``."""
        return _REGISTERS_BY_NAME.get(token)

    def __str__(self) -> str:
        return self.value


REGISTERS: Tuple[RegisterName, ...] = tuple(RegisterName)
_REGISTER_INDEX = {r: i for i, r in enumerate(REGISTERS)}
_REGISTERS_BY_NAME = {r.value: r for r in REGISTERS}


@dataclass(frozen=True, slots=True, order=True)
class InputName:
    """One of the fourteen input reads, by zero-based ordinal."""

    ordinal: int

    def __post_init__(self) -> None:
        if not 0 <= self.ordinal < INPUT_COUNT:
            raise InvariantViolation(f"input ordinal out of range: {self.ordinal}")

    @classmethod
    def first(cls) -> InputName:
        return cls(0)

    @classmethod
    def all(cls) -> Tuple[InputName, ...]:
        return tuple(cls(i) for i in range(INPUT_COUNT))

    def successor(self) -> Optional[InputName]:
        """The next input, or ``None`` after the fourteenth."""
        if self.ordinal + 1 < INPUT_COUNT:
            return InputName(self.ordinal + 1)
        return None

    def __str__(self) -> str:
        return f"i{self.ordinal + 1}"


class OpName(enum.Enum):
    """Binary operators of the ALU."""

    ADD = "add"
    MUL = "mul"
    DIV = "div"
    MOD = "mod"
    EQL = "eql"

    @property
    def symbol(self) -> str:
        return _OP_SYMBOLS[self]

    def perform(self, a: int, b: int) -> int:
        """Apply the operator to two concrete values.

        Raises
        ------
        InvariantViolation
            On division or modulo by zero, or modulo of a negative value.
        """
        if self is OpName.ADD:
            return a + b
        if self is OpName.MUL:
            return a * b
        if self is OpName.DIV:
            if b == 0:
                raise InvariantViolation(f"division by zero: {a} / {b}")
            quotient = abs(a) // abs(b)
            return quotient if (a < 0) == (b < 0) else -quotient
        if self is OpName.MOD:
            if b <= 0 or a < 0:
                raise InvariantViolation(f"modulo outside domain: {a} % {b}")
            return a % b
        if self is OpName.EQL:
            return 1 if a == b else 0
        raise InvariantViolation(f"unknown operator: {self!r}")


_OP_SYMBOLS = {
    OpName.ADD: "+",
    OpName.MUL: "*",
    OpName.DIV: "/",
    OpName.MOD: "%",
    OpName.EQL: "==",
}
_OPS_BY_NAME = {op.value: op for op in OpName}


# ═══════════════════════════════════════════════════════════════════════════
# 2. OPERANDS AND INSTRUCTIONS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Register:
    """Right-hand operand naming a register."""

    name: RegisterName

    def __str__(self) -> str:
        return str(self.name)


@dataclass(frozen=True, slots=True)
class Constant:
    """Right-hand operand holding an integer literal."""

    value: int

    def __str__(self) -> str:
        return str(self.value)


Operand = Union[Register, Constant]


@dataclass(frozen=True, slots=True)
class Input:
    """``inp r`` — store the next input digit in *register*."""

    register: RegisterName

    def __str__(self) -> str:
        return format_instruction(self)


@dataclass(frozen=True, slots=True)
class Operate:
    """``op dest rhs`` — ``dest ← dest ⟨op⟩ rhs``."""

    op: OpName
    dest: RegisterName
    rhs: Operand

    @property
    def rhs_register(self) -> Optional[RegisterName]:
        """The right-hand register, or ``None`` for a constant operand."""
        if isinstance(self.rhs, Register):
            return self.rhs.name
        return None

    def __str__(self) -> str:
        return format_instruction(self)


Instruction = Union[Input, Operate]
Program = Tuple[Instruction, ...]


# ═══════════════════════════════════════════════════════════════════════════
# 3. PARSING
# ═══════════════════════════════════════════════════════════════════════════


def _parse_register(token: str, text: str, line: Optional[int]) -> RegisterName:
    register = RegisterName.parse(token)
    if register is None:
        raise ProgramParseError(ParseErrorKind.REGISTER, token, text, line)
    return register


def _parse_operand(token: str, text: str, line: Optional[int]) -> Operand:
    register = RegisterName.parse(token)
    if register is not None:
        return Register(register)
    if _INTEGER_RE.match(token):
        return Constant(int(token))
    raise ProgramParseError(ParseErrorKind.OPERAND, token, text, line)


def parse_instruction(text: str, line: Optional[int] = None) -> Instruction:
    """Parse one line of program text.

    Parameters
    ----------
    text : str
        The instruction, e.g. ``"add x -7"``.
    line : int, optional
        1-based line number, recorded on any error.

    Raises
    ------
    ProgramParseError
        With ``kind`` naming the invalid part of the line.
    """
    tokens = text.split()
    if not tokens:
        raise ProgramParseError(ParseErrorKind.TOKEN_COUNT, text, text, line)
    opcode = tokens[0]
    if opcode == "inp":
        if len(tokens) != 2:
            raise ProgramParseError(ParseErrorKind.TOKEN_COUNT, text, text, line)
        return Input(_parse_register(tokens[1], text, line))
    op = _OPS_BY_NAME.get(opcode)
    if op is None:
        raise ProgramParseError(ParseErrorKind.OPCODE, opcode, text, line)
    if len(tokens) != 3:
        raise ProgramParseError(ParseErrorKind.TOKEN_COUNT, text, text, line)
    dest = _parse_register(tokens[1], text, line)
    return Operate(op, dest, _parse_operand(tokens[2], text, line))


def parse_program(lines: Iterable[str]) -> Program:
    """Parse every line; the first bad line aborts with no partial result."""
    return tuple(
        parse_instruction(text, line=number)
        for number, text in enumerate(lines, start=1)
    )


def format_instruction(instruction: Instruction) -> str:
    """Render *instruction* back to program text."""
    if isinstance(instruction, Input):
        return f"inp {instruction.register}"
    if isinstance(instruction, Operate):
        return f"{instruction.op.value} {instruction.dest} {instruction.rhs}"
    raise InvariantViolation(f"not an instruction: {instruction!r}")


def count_inputs(program: Sequence[Instruction]) -> int:
    return sum(1 for instruction in program if isinstance(instruction, Input))
