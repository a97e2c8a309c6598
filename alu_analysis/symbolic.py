"""
alu_analysis/symbolic.py
════════════════════════

Symbolic execution of an ALU program.

The symbolic state maps each register to an expression id:

    Σ : {w, x, y, z} → ExprId

It starts with every register holding the zero polynomial.  ``inp r``
binds ``r`` to the next fresh input; ``op a b`` replaces ``a`` with the
simplified ``Σ(a) ⟨op⟩ Σ(b)``.  One snapshot of Σ is kept per instruction,
so the expression for any register at any program point can be inspected.

The analysis never looks at concrete digits; it produces closed forms that
tests compare against :mod:`alu_analysis.interpreter` on sampled inputs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from alu_analysis.config import AnalysisConfig
from alu_analysis.errors import InvariantViolation
from alu_analysis.expression import ExprId, ExpressionArena
from alu_analysis.instructions import (
    Constant,
    Input,
    InputName,
    Instruction,
    Operate,
    Register,
    RegisterName,
)
from alu_analysis.polynomial import Polynomial

_log = logging.getLogger(__name__)

Snapshot = Tuple[ExprId, ExprId, ExprId, ExprId]


@dataclass(frozen=True)
class SymbolicTrace:
    """Result of symbolic execution.

    Attributes
    ----------
    arena : ExpressionArena
        Owner of every expression referenced by the snapshots.
    program : tuple[Instruction, ...]
        The executed program.
    snapshots : tuple[Snapshot, ...]
        Register expressions *after* each instruction, in program order.
    """

    arena: ExpressionArena
    program: Tuple[Instruction, ...]
    snapshots: Tuple[Snapshot, ...]

    def expression_after(self, index: int, register: RegisterName) -> ExprId:
        return self.snapshots[index][register.index]

    def final(self, register: RegisterName = RegisterName.Z) -> ExprId:
        """Expression held by *register* at the end of the program."""
        if not self.snapshots:
            return self.arena.constant(0)
        return self.snapshots[-1][register.index]

    def evaluate(self, digits: Sequence[int], register: RegisterName = RegisterName.Z) -> int:
        return self.arena.evaluate(self.final(register), digits)

    def render(self, register: RegisterName = RegisterName.Z) -> str:
        return self.arena.render(self.final(register))


def execute_symbolic(
    program: Sequence[Instruction],
    config: Optional[AnalysisConfig] = None,
    arena: Optional[ExpressionArena] = None,
) -> SymbolicTrace:
    """Symbolically execute *program* once.

    Parameters
    ----------
    program : sequence of Instruction
        Parsed program.
    config : AnalysisConfig, optional
        Supplies the rewrite budget when a fresh arena is created.
    arena : ExpressionArena, optional
        Arena to build into; a new one is created if omitted.

    Raises
    ------
    InvariantViolation
        If the program reads more than fourteen inputs or an operator is
        applied outside its domain.
    """
    arena = arena or ExpressionArena(config)
    zero = arena.constant(0)
    registers: List[ExprId] = [zero, zero, zero, zero]
    next_input: Optional[InputName] = InputName.first()
    snapshots: List[Snapshot] = []

    for index, instruction in enumerate(program):
        if isinstance(instruction, Input):
            if next_input is None:
                raise InvariantViolation("program reads more than fourteen inputs")
            registers[instruction.register.index] = arena.polynomial(Polynomial.input(next_input))
            next_input = next_input.successor()
        elif isinstance(instruction, Operate):
            rhs = instruction.rhs
            if isinstance(rhs, Register):
                operand = registers[rhs.name.index]
            elif isinstance(rhs, Constant):
                operand = arena.constant(rhs.value)
            else:
                raise InvariantViolation(f"not an operand: {rhs!r}")
            dest = instruction.dest.index
            registers[dest] = arena.operation(instruction.op, registers[dest], operand)
        else:
            raise InvariantViolation(f"not an instruction: {instruction!r}")
        snapshots.append((registers[0], registers[1], registers[2], registers[3]))
        if _log.isEnabledFor(logging.DEBUG):
            written = registers[instruction_dest(instruction)]
            _log.debug("%4d %-12s -> #%d (%d nodes)", index, instruction, written, arena.size(written))

    _log.info(
        "symbolic execution: %d instructions, %d nodes, %d rewrites",
        len(snapshots), len(arena), arena.rewrites,
    )
    return SymbolicTrace(arena, tuple(program), tuple(snapshots))


def instruction_dest(instruction: Instruction) -> int:
    """Index of the register an instruction writes."""
    if isinstance(instruction, Input):
        return instruction.register.index
    if isinstance(instruction, Operate):
        return instruction.dest.index
    raise InvariantViolation(f"not an instruction: {instruction!r}")
