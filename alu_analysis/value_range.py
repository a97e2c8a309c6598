"""
alu_analysis/value_range.py
═══════════════════════════

Interval abstract domain for the ALU.

A :class:`ValueRange` is a closed, never-empty integer interval:

    γ([a, b]) = { n ∈ ℤ | a ≤ n ≤ b }

Each operator has a **forward** transfer function (the range of all results
given the operand ranges) and, where it can be inverted, a **backward**
transfer function (the narrowest range the unknown operand must lie in for
the result to land in a required range, given the other operand's range):

  Op    Forward                          Backward (unknown operand)
  ────  ───────────────────────────────  ───────────────────────────────────
  add   [a.lo+b.lo, a.hi+b.hi]           [z.lo-b.hi, z.hi-b.lo]
  mul   min/max of corner products       [⌈z.lo/b.hi⌉, ⌊z.hi/b.lo⌋], 0 ∉ b
  div   [a.lo//b.hi, a.hi//b.lo]         [z.lo·b.lo, z.hi·b.hi + b.hi-1]
  mod   a if a.hi < b.lo else [0,b.hi-1] (none)
  eql   {1} / {0} / [0,1]                pin on {1}, trim an endpoint on {0}

Division and modulo are only defined here for non-negative dividends and
positive divisors, and backward multiplication only for non-negative
ranges.  Outside that domain the functions raise
:class:`~alu_analysis.errors.InvariantViolation`; they never guess.

A backward function returns ``None`` when it can extract no information,
and raises :class:`~alu_analysis.errors.EmptyRangeError` when it proves that
no operand value can produce the required result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from alu_analysis.errors import EmptyRangeError, InvariantViolation
from alu_analysis.instructions import DIGIT_MAX, DIGIT_MIN, OpName


@dataclass(frozen=True, slots=True)
class ValueRange:
    """
    Closed integer interval ``[start, end]`` with ``start <= end``.

    Examples
    --------
    >>> add_forward(ValueRange(2, 4), ValueRange(8, 16))
    [10, 20]
    >>> add_backward(ValueRange(8, 16), ValueRange(10, 20))
    [-6, 12]
    """
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvariantViolation(f"ValueRange not in order: {self.start} {self.end}")

    # ---- Constructors ----------------------------------------------------

    @classmethod
    def single(cls, n: int) -> ValueRange:
        """Singleton range [n, n]."""
        return cls(n, n)

    @classmethod
    def digit(cls) -> ValueRange:
        """The range of one input digit."""
        return cls(DIGIT_MIN, DIGIT_MAX)

    # ---- Predicates ------------------------------------------------------

    def is_single(self) -> bool:
        return self.start == self.end

    def single_value(self) -> Optional[int]:
        return self.start if self.start == self.end else None

    def contains(self, n: int) -> bool:
        return self.start <= n <= self.end

    def contains_range(self, other: ValueRange) -> bool:
        return self.start <= other.start and other.end <= self.end

    def excludes_zero(self) -> bool:
        return self.start > 0 or self.end < 0

    def size(self) -> int:
        """Number of integers in the range."""
        return self.end - self.start + 1

    # ---- Lattice ---------------------------------------------------------

    def intersect(self, other: ValueRange) -> Optional[ValueRange]:
        """The overlapping sub-range, or ``None`` if they are disjoint."""
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if end < start:
            return None
        return ValueRange(start, end)

    def is_disjoint(self, other: ValueRange) -> bool:
        return self.end < other.start or other.end < self.start

    def __repr__(self) -> str:
        return f"[{self.start}, {self.end}]"


def intersect(a: ValueRange, b: ValueRange) -> Optional[ValueRange]:
    """Module-level alias of :meth:`ValueRange.intersect`."""
    return a.intersect(b)


def _require_non_negative(*ranges: ValueRange) -> None:
    for r in ranges:
        if r.start < 0:
            raise InvariantViolation(f"range {r} is negative; only non-negative ranges are supported")


def _require_positive_divisor(b: ValueRange) -> None:
    if b.start <= 0:
        raise InvariantViolation(f"divisor range {b} is not strictly positive")


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


def _checked(start: int, end: int) -> ValueRange:
    if end < start:
        raise EmptyRangeError(f"no operand value fits: [{start}, {end}] is empty")
    return ValueRange(start, end)


# ═══════════════════════════════════════════════════════════════════════════
#  FORWARD TRANSFER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════

def add_forward(a: ValueRange, b: ValueRange) -> ValueRange:
    """The range of values possible after adding two inputs with known ranges."""
    return ValueRange(a.start + b.start, a.end + b.end)


def mul_forward(a: ValueRange, b: ValueRange) -> ValueRange:
    """[a,b] × [c,d] = [min(ac,ad,bc,bd), max(ac,ad,bc,bd)]."""
    products = [x * y for x in (a.start, a.end) for y in (b.start, b.end)]
    return ValueRange(min(products), max(products))


def div_forward(a: ValueRange, b: ValueRange) -> ValueRange:
    """Integer division of a non-negative range by a positive range."""
    _require_non_negative(a)
    _require_positive_divisor(b)
    return ValueRange(a.start // b.end, a.end // b.start)


def mod_forward(a: ValueRange, b: ValueRange) -> ValueRange:
    """Modulo of a non-negative range by a positive range.

    When every dividend is already below the smallest divisor the modulus
    is a no-op and the dividend's range is returned unchanged.
    """
    _require_non_negative(a)
    _require_positive_divisor(b)
    if a.end < b.start:
        return a
    return ValueRange(0, b.end - 1)


def eql_forward(a: ValueRange, b: ValueRange) -> ValueRange:
    """{1} when forced equal, {0} when disjoint, otherwise {0, 1}."""
    if a.is_single() and a == b:
        return ValueRange.single(1)
    if a.is_disjoint(b):
        return ValueRange.single(0)
    return ValueRange(0, 1)


# ═══════════════════════════════════════════════════════════════════════════
#  BACKWARD TRANSFER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════
#
#  Each takes the *known* operand's range ``b`` and the required result
#  range ``z`` and returns the range the other operand must lie in.

def add_backward(b: ValueRange, z: ValueRange) -> ValueRange:
    """Range of the unknown addend; add is commutative so either side works."""
    # The lowest possible start combines with b.end to reach z.start, the
    # highest possible end combines with b.start to reach z.end.
    return ValueRange(z.start - b.end, z.end - b.start)


def mul_backward(b: ValueRange, z: ValueRange) -> Optional[ValueRange]:
    """Range of the unknown factor, or ``None`` when ``b`` contains zero."""
    if not b.excludes_zero():
        return None
    _require_non_negative(b, z)
    return _checked(_ceil_div(z.start, b.end), z.end // b.start)


def div_backward(b: ValueRange, z: ValueRange) -> ValueRange:
    """Range of the dividend given the divisor range and the quotient range."""
    _require_positive_divisor(b)
    _require_non_negative(z)
    # Scale the quotient by the divisor and widen by the rounding slack.
    return ValueRange(z.start * b.start, z.end * b.end + b.end - 1)


def eql_backward(
    b: ValueRange, z: ValueRange, current: ValueRange
) -> Optional[ValueRange]:
    """Range of one side of ``eql`` given the other side and the result.

    A forced "equal" pins the unknown side to the known side's range.  A
    forced "not equal" against a single known value trims that value off
    whichever endpoint of the unknown side's *current* range it sits on.
    """
    if z == ValueRange.single(1):
        return b
    if z == ValueRange.single(0) and b.is_single():
        v = b.start
        if current.start == v and current.end == v:
            raise EmptyRangeError(f"value {v} cannot differ from itself")
        if current.start == v:
            return ValueRange(v + 1, current.end)
        if current.end == v:
            return ValueRange(current.start, v - 1)
    return None


# ═══════════════════════════════════════════════════════════════════════════
#  DISPATCH
# ═══════════════════════════════════════════════════════════════════════════

def forward(op: OpName, a: ValueRange, b: ValueRange) -> ValueRange:
    """Forward transfer function for *op*."""
    if op is OpName.ADD:
        return add_forward(a, b)
    if op is OpName.MUL:
        return mul_forward(a, b)
    if op is OpName.DIV:
        return div_forward(a, b)
    if op is OpName.MOD:
        return mod_forward(a, b)
    if op is OpName.EQL:
        return eql_forward(a, b)
    raise InvariantViolation(f"unknown operator: {op!r}")


def backward(
    op: OpName,
    known: ValueRange,
    result: ValueRange,
    current: ValueRange,
    unknown_is_lhs: bool = True,
) -> Optional[ValueRange]:
    """Backward transfer function for *op*.

    Parameters
    ----------
    op : OpName
        The operator.
    known : ValueRange
        Effective range of the operand that is *not* being solved for.
    result : ValueRange
        Required range of the operator's result.
    current : ValueRange
        Effective range of the operand being solved for (used by ``eql``).
    unknown_is_lhs : bool
        Whether the unknown is the left-hand operand.  ``div`` can only be
        inverted for its left operand.

    Returns
    -------
    ValueRange or None
        ``None`` when nothing can be inferred.
    """
    if op is OpName.ADD:
        return add_backward(known, result)
    if op is OpName.MUL:
        return mul_backward(known, result)
    if op is OpName.DIV:
        return div_backward(known, result) if unknown_is_lhs else None
    if op is OpName.MOD:
        return None
    if op is OpName.EQL:
        return eql_backward(known, result, current)
    raise InvariantViolation(f"unknown operator: {op!r}")
