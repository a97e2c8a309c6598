"""
alu_analysis/polynomial.py
══════════════════════════

Linear combinations of the fourteen inputs plus a constant.

    p = c₁·i1 + c₂·i2 + … + c₁₄·i14 + c

Most register contents stay linear until the first ``mod``/``div``/``eql``
touches them, so the expression engine keeps them in this compact form and
only falls back to general operation nodes when it has to.

Coefficients are stored in a 15-tuple; slot 14 is the constant.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from alu_analysis.errors import InvariantViolation
from alu_analysis.instructions import DIGIT_MAX, DIGIT_MIN, INPUT_COUNT, InputName
from alu_analysis.value_range import ValueRange

_CONSTANT_SLOT = INPUT_COUNT
_ZEROS: Tuple[int, ...] = (0,) * (INPUT_COUNT + 1)


@dataclass(frozen=True, slots=True)
class Polynomial:
    """Fifteen integer coefficients: one per input, then the constant."""

    coefficients: Tuple[int, ...] = _ZEROS

    def __post_init__(self) -> None:
        if len(self.coefficients) != INPUT_COUNT + 1:
            raise InvariantViolation(
                f"polynomial needs {INPUT_COUNT + 1} coefficients, "
                f"got {len(self.coefficients)}"
            )

    # ---- Constructors ----------------------------------------------------

    @classmethod
    def constant(cls, value: int) -> Polynomial:
        coefficients = list(_ZEROS)
        coefficients[_CONSTANT_SLOT] = value
        return cls(tuple(coefficients))

    @classmethod
    def input(cls, name: InputName) -> Polynomial:
        """The polynomial ``1·name``."""
        coefficients = list(_ZEROS)
        coefficients[name.ordinal] = 1
        return cls(tuple(coefficients))

    # ---- Accessors -------------------------------------------------------

    @property
    def constant_term(self) -> int:
        return self.coefficients[_CONSTANT_SLOT]

    def coefficient(self, name: InputName) -> int:
        return self.coefficients[name.ordinal]

    def as_constant(self) -> Optional[int]:
        """The constant term if every input coefficient is zero, else ``None``."""
        if any(self.coefficients[:_CONSTANT_SLOT]):
            return None
        return self.constant_term

    def inputs(self) -> List[InputName]:
        """Inputs with a nonzero coefficient, in order."""
        return [InputName(i) for i, c in enumerate(self.coefficients[:_CONSTANT_SLOT]) if c]

    # ---- Arithmetic ------------------------------------------------------

    def __add__(self, other: Polynomial) -> Polynomial:
        return Polynomial(tuple(a + b for a, b in zip(self.coefficients, other.coefficients)))

    def scale(self, factor: int) -> Polynomial:
        return Polynomial(tuple(c * factor for c in self.coefficients))

    def mod_scalar(self, modulus: int) -> Polynomial:
        """Reduce every coefficient modulo *modulus*.

        The result is congruent to ``self`` modulo *modulus* for every input
        assignment, and has only non-negative coefficients.
        """
        if modulus <= 0:
            raise InvariantViolation(f"modulo outside domain: % {modulus}")
        return Polynomial(tuple(c % modulus for c in self.coefficients))

    def remainder_bound(self, divisor: int) -> int:
        """Largest possible sum of the per-term remainders modulo *divisor*.

        Each input term contributes ``(c mod d) · 9``; the constant
        contributes ``c mod d``.
        """
        terms = self.coefficients[:_CONSTANT_SLOT]
        return sum((c % divisor) * DIGIT_MAX for c in terms) + self.constant_term % divisor

    def floor_div_scalar(self, divisor: int) -> Polynomial:
        """Divide every coefficient by *divisor*, rounding down."""
        if divisor <= 0:
            raise InvariantViolation(f"division outside domain: / {divisor}")
        return Polynomial(tuple(c // divisor for c in self.coefficients))

    # ---- Evaluation ------------------------------------------------------

    def value_range(self) -> ValueRange:
        """Exact range of values assuming every input lies in 1..9."""
        start = end = self.constant_term
        for c in self.coefficients[:_CONSTANT_SLOT]:
            if c >= 0:
                start += c * DIGIT_MIN
                end += c * DIGIT_MAX
            else:
                start += c * DIGIT_MAX
                end += c * DIGIT_MIN
        return ValueRange(start, end)

    def evaluate(self, digits: Sequence[int]) -> int:
        total = self.constant_term
        for c, digit in zip(self.coefficients[:_CONSTANT_SLOT], digits):
            total += c * digit
        return total

    def __str__(self) -> str:
        parts: List[str] = []
        for i, c in enumerate(self.coefficients[:_CONSTANT_SLOT]):
            if c == 0:
                continue
            name = str(InputName(i))
            parts.append(name if c == 1 else f"{c}*{name}")
        if self.constant_term or not parts:
            parts.append(str(self.constant_term))
        return " + ".join(parts).replace("+ -", "- ")
