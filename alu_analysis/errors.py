# alu_analysis/errors.py
"""
Error Types for the ALU Analysis Pipeline

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────────────┐
│                          Error Hierarchy                                     │
├─────────────────────────────────────────────────────────────────────────────┤
│  AluError (base)                                                            │
│  ├── ProgramParseError     - Malformed program text                         │
│  ├── EmptyRangeError       - A backward transfer proved no value fits       │
│  ├── NoSolutionError       - Search exhausted every digit assignment        │
│  ├── AnswerMismatchError   - Driver answer differs from expectation         │
│  └── InvariantViolation    - Domain contract broken (fatal)                 │
│      └── RewriteLimitExceeded - Simplifier did not reach a fixed point      │
└─────────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each error has a code following the pattern ALU-XXXX where XXXX is a 4-digit
number in ranges:
  - 1000-1999: Parse errors
  - 3000-3999: Range analysis errors
  - 4000-4999: Search and driver errors
  - 9000-9999: Invariant violations (should never happen on puzzle input)

``InvariantViolation`` is deliberately not meant to be caught by analysis
code: the passes are undefined outside the non-negative, nonzero-divisor
domain and must stop rather than produce wrong bounds.
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Optional


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorPhase(Enum):
    """Pipeline phase in which an error was raised."""

    PARSE = "parse"
    RANGE = "range"
    SEARCH = "search"
    INTERNAL = "internal"


class ErrorCode:
    """
    Structured error code ``ALU-NNNN``.

    Codes compare equal to each other by number and to their string form,
    so tests can write ``err.code == "ALU-1002"``.
    """

    __slots__ = ("number", "phase", "summary")

    def __init__(self, number: int, phase: ErrorPhase, summary: str) -> None:
        self.number = number
        self.phase = phase
        self.summary = summary

    @property
    def code(self) -> str:
        return f"ALU-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.phase.name})"

    def __hash__(self) -> int:
        return hash(self.number)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class AluErrorCodes:
    """Predefined error codes."""

    # PARSE ERRORS (1000-1999)
    TOKEN_COUNT = ErrorCode(1001, ErrorPhase.PARSE, "wrong number of tokens")
    BAD_REGISTER = ErrorCode(1002, ErrorPhase.PARSE, "unknown register")
    BAD_OPCODE = ErrorCode(1003, ErrorPhase.PARSE, "unknown opcode")
    BAD_OPERAND = ErrorCode(1004, ErrorPhase.PARSE, "operand is neither register nor integer")

    # RANGE ERRORS (3000-3999)
    EMPTY_RANGE = ErrorCode(3001, ErrorPhase.RANGE, "no value satisfies the constraint")

    # SEARCH ERRORS (4000-4999)
    NO_SOLUTION = ErrorCode(4001, ErrorPhase.SEARCH, "no digit sequence is accepted")
    ANSWER_MISMATCH = ErrorCode(4002, ErrorPhase.SEARCH, "answer differs from expected")

    # INVARIANT VIOLATIONS (9000-9999)
    INVARIANT = ErrorCode(9001, ErrorPhase.INTERNAL, "domain invariant violated")
    REWRITE_LIMIT = ErrorCode(9002, ErrorPhase.INTERNAL, "rewrite loop did not terminate")


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class AluError(Exception):
    """
    Base exception for all ALU analysis errors.

    Carries a structured :class:`ErrorCode` and, for errors tied to program
    text, the 1-based line number.
    """

    default_code: ErrorCode = AluErrorCodes.INVARIANT

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        line: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.line = line

    def __str__(self) -> str:
        where = f"line {self.line}: " if self.line is not None else ""
        return f"{where}{self.code}: {self.message}"


# ───────────────────────────────────────────────────────────────────────────────
# PARSE ERRORS
# ───────────────────────────────────────────────────────────────────────────────

@unique
class ParseErrorKind(Enum):
    """Which part of an instruction line was invalid."""

    TOKEN_COUNT = "token-count"
    REGISTER = "register"
    OPCODE = "opcode"
    OPERAND = "operand"


_KIND_CODES = {
    ParseErrorKind.TOKEN_COUNT: AluErrorCodes.TOKEN_COUNT,
    ParseErrorKind.REGISTER: AluErrorCodes.BAD_REGISTER,
    ParseErrorKind.OPCODE: AluErrorCodes.BAD_OPCODE,
    ParseErrorKind.OPERAND: AluErrorCodes.BAD_OPERAND,
}


class ProgramParseError(AluError):
    """A program line could not be parsed into an instruction."""

    def __init__(
        self,
        kind: ParseErrorKind,
        token: str,
        text: str = "",
        line: Optional[int] = None,
    ) -> None:
        code = _KIND_CODES[kind]
        super().__init__(
            message=f"{code.summary}: {token!r} in {text!r}",
            code=code,
            line=line,
        )
        self.kind = kind
        self.token = token
        self.text = text


# ───────────────────────────────────────────────────────────────────────────────
# RANGE AND SEARCH ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class EmptyRangeError(AluError):
    """A backward transfer or limit intersection left no admissible value."""

    default_code = AluErrorCodes.EMPTY_RANGE


class NoSolutionError(AluError):
    """No digit assignment drives the result register to the required value."""

    default_code = AluErrorCodes.NO_SOLUTION


class AnswerMismatchError(AluError):
    """The driver computed an answer different from the expected one."""

    default_code = AluErrorCodes.ANSWER_MISMATCH

    def __init__(self, label: str, actual: int, expected: int) -> None:
        super().__init__(f"{label}: got {actual}, expected {expected}")
        self.label = label
        self.actual = actual
        self.expected = expected


# ───────────────────────────────────────────────────────────────────────────────
# INVARIANT VIOLATIONS
# ───────────────────────────────────────────────────────────────────────────────

class InvariantViolation(AluError):
    """
    Fatal contract violation: division or modulo by zero, modulo of a
    negative value, a reversed range, or interval reasoning requested
    outside the non-negative domain it is proven for.
    """

    default_code = AluErrorCodes.INVARIANT


class RewriteLimitExceeded(InvariantViolation):
    """The simplifier's fixed-point loop ran past its iteration budget."""

    default_code = AluErrorCodes.REWRITE_LIMIT
