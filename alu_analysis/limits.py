"""
alu_analysis/limits.py
══════════════════════

Forward range and backward limit propagation over an ALU program.

Two strictly sequential linear passes:

    ┌──────────────────┐   ranges after each   ┌──────────────────────┐
    │ forward_ranges   │ ────────────────────► │ backward_limits      │
    │ [0,0]⁴ → … → end │                       │ z=[0,0] at end → …   │
    └──────────────────┘                       └──────────┬───────────┘
                                                          │
                                                 Info per instruction
                                                          ▼
                                                   pruned digit search

**Forward ranges.**  Starting from ``[0, 0]`` in every register, each
instruction's forward transfer function gives the range of every register
*after* it.  ``inp`` yields ``[1, 9]``.

**Backward limits.**  Starting after the last instruction with the result
register pinned to the required value, walk the program in reverse.  For
``op a b`` the limit on ``a`` *before* the instruction is the backward
transfer of ``op`` applied to

  * the effective range of ``b`` (forward range ∩ known limit), and
  * the known limit on ``a`` after the instruction (or its forward range),

intersected with the forward range of ``a`` before.  When ``b`` is a
register it gets the symmetric treatment, intersected with the limit it
already carries.  ``inp`` clears the limit of the register it writes, and
registers an instruction does not touch carry their limit unchanged.

A present limit is always a subset of the forward range, and contains every
value from which the required final value is still reachable.  An empty
intersection therefore proves the program can never be accepted.

The state threaded through both passes is an explicit 4-tuple; nothing is
kept in module globals, so each pass can be tested in isolation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from alu_analysis.config import AnalysisConfig
from alu_analysis.errors import EmptyRangeError, InvariantViolation, NoSolutionError
from alu_analysis.instructions import (
    Constant,
    Input,
    Instruction,
    Operate,
    Register,
    RegisterName,
)
from alu_analysis.value_range import ValueRange, backward, forward

_log = logging.getLogger(__name__)

RangeState = Tuple[ValueRange, ValueRange, ValueRange, ValueRange]
LimitState = Tuple[
    Optional[ValueRange], Optional[ValueRange], Optional[ValueRange], Optional[ValueRange]
]

_ZERO = ValueRange.single(0)
INITIAL_RANGES: RangeState = (_ZERO, _ZERO, _ZERO, _ZERO)
NO_LIMITS: LimitState = (None, None, None, None)


@dataclass(frozen=True, slots=True)
class Info:
    """Analysis facts for one instruction.

    Attributes
    ----------
    instruction : Instruction
        The instruction itself.
    ranges : RangeState
        Forward range of every register *after* the instruction.
    limits : LimitState
        Backward limit of every register *after* the instruction, or
        ``None`` where nothing tighter than the forward range is known.
    """

    instruction: Instruction
    ranges: RangeState
    limits: LimitState

    def limit(self, register: RegisterName) -> Optional[ValueRange]:
        return self.limits[register.index]

    def effective(self, register: RegisterName) -> ValueRange:
        """The limit if present, else the forward range."""
        limit = self.limits[register.index]
        return limit if limit is not None else self.ranges[register.index]


# ═══════════════════════════════════════════════════════════════════════════
#  HELPERS
# ═══════════════════════════════════════════════════════════════════════════

def _effective(rng: ValueRange, limit: Optional[ValueRange]) -> ValueRange:
    if limit is None:
        return rng
    narrowed = rng.intersect(limit)
    if narrowed is None:
        raise EmptyRangeError(f"limit {limit} does not overlap range {rng}")
    return narrowed


def _narrow(
    rng: ValueRange, *limits: Optional[ValueRange]
) -> Optional[ValueRange]:
    """Intersect *rng* with every present limit; ``None`` if none present."""
    present = [limit for limit in limits if limit is not None]
    if not present:
        return None
    result = rng
    for limit in present:
        narrowed = result.intersect(limit)
        if narrowed is None:
            raise EmptyRangeError(f"limit {limit} does not overlap range {result}")
        result = narrowed
    return result


def _rhs_range(operate: Operate, ranges: Sequence[ValueRange]) -> ValueRange:
    rhs = operate.rhs
    if isinstance(rhs, Register):
        return ranges[rhs.name.index]
    if isinstance(rhs, Constant):
        return ValueRange.single(rhs.value)
    raise InvariantViolation(f"not an operand: {rhs!r}")


# ═══════════════════════════════════════════════════════════════════════════
#  PASS 1 — FORWARD RANGES
# ═══════════════════════════════════════════════════════════════════════════

def forward_ranges(program: Sequence[Instruction]) -> Tuple[RangeState, ...]:
    """Register ranges after each instruction."""
    state: List[ValueRange] = list(INITIAL_RANGES)
    snapshots: List[RangeState] = []
    for instruction in program:
        if isinstance(instruction, Input):
            state[instruction.register.index] = ValueRange.digit()
        elif isinstance(instruction, Operate):
            dest = instruction.dest.index
            state[dest] = forward(instruction.op, state[dest], _rhs_range(instruction, state))
        else:
            raise InvariantViolation(f"not an instruction: {instruction!r}")
        snapshots.append((state[0], state[1], state[2], state[3]))
    return tuple(snapshots)


# ═══════════════════════════════════════════════════════════════════════════
#  PASS 2 — BACKWARD LIMITS
# ═══════════════════════════════════════════════════════════════════════════

def _limits_before(
    instruction: Instruction,
    before: RangeState,
    after: RangeState,
    limits_after: LimitState,
) -> LimitState:
    """Limits that must hold before *instruction* given those after it."""
    limits: List[Optional[ValueRange]] = list(limits_after)
    if isinstance(instruction, Input):
        limits[instruction.register.index] = None
        return limits[0], limits[1], limits[2], limits[3]
    if not isinstance(instruction, Operate):
        raise InvariantViolation(f"not an instruction: {instruction!r}")

    op = instruction.op
    dest = instruction.dest.index
    src = instruction.rhs_register.index if instruction.rhs_register is not None else None
    result = limits_after[dest] if limits_after[dest] is not None else after[dest]

    if src is None:
        rhs_effective = _rhs_range(instruction, before)
    elif src == dest:
        rhs_effective = before[src]
    else:
        rhs_effective = _effective(before[src], limits_after[src])

    # The destination is overwritten, so its old limit does not carry over.
    solved = backward(op, rhs_effective, result, before[dest], unknown_is_lhs=True)
    limits[dest] = _narrow(before[dest], solved)

    if src is not None and src != dest:
        lhs_effective = _effective(before[dest], limits[dest])
        solved = backward(op, lhs_effective, result, rhs_effective, unknown_is_lhs=False)
        limits[src] = _narrow(before[src], limits_after[src], solved)

    return limits[0], limits[1], limits[2], limits[3]


def backward_limits(
    program: Sequence[Instruction],
    ranges: Sequence[RangeState],
    config: Optional[AnalysisConfig] = None,
) -> Tuple[LimitState, ...]:
    """Register limits after each instruction.

    Raises
    ------
    EmptyRangeError
        If some limit is empty, i.e. no input can reach the required result.
    """
    config = config or AnalysisConfig()
    n = len(program)
    if len(ranges) != n:
        raise InvariantViolation(f"{len(ranges)} range snapshots for {n} instructions")
    if n == 0:
        return ()

    terminal: List[Optional[ValueRange]] = list(NO_LIMITS)
    required = ValueRange.single(config.required_result)
    terminal[config.result_register.index] = _narrow(
        ranges[-1][config.result_register.index], required
    )
    limits_after: LimitState = (terminal[0], terminal[1], terminal[2], terminal[3])

    result: List[LimitState] = [NO_LIMITS] * n
    for index in range(n - 1, -1, -1):
        result[index] = limits_after
        before = ranges[index - 1] if index > 0 else INITIAL_RANGES
        limits_after = _limits_before(program[index], before, ranges[index], limits_after)
    return tuple(result)


def compute_info(
    program: Sequence[Instruction],
    config: Optional[AnalysisConfig] = None,
) -> Tuple[Info, ...]:
    """Run both passes and bundle the per-instruction facts.

    Raises
    ------
    NoSolutionError
        If the limits prove that no digit assignment is accepted.
    """
    ranges = forward_ranges(program)
    try:
        limits = backward_limits(program, ranges, config)
    except EmptyRangeError as exc:
        raise NoSolutionError(f"range analysis proves the program unsatisfiable: {exc.message}") from exc
    infos = tuple(
        Info(instruction, rng, limit)
        for instruction, rng, limit in zip(program, ranges, limits)
    )
    narrowed = sum(
        1
        for info in infos
        for rng, limit in zip(info.ranges, info.limits)
        if limit is not None and limit != rng
    )
    _log.info("limits: %d instructions, %d narrowed register limits", len(infos), narrowed)
    return infos
