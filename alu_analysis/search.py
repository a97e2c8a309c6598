"""
alu_analysis/search.py
══════════════════════

Depth-first digit search pruned by backward limits.

The program is cut at its ``inp`` instructions into fourteen segments:

    inp ─ op op … op ─ inp ─ op op … op ─ … ─ inp ─ op op … op ─ end
    └──── digit 1 ───┘ └──── digit 2 ───┘     └──── digit 14 ──┘

The search recurses once per segment, so the recursion depth is the number
of inputs.  Within a segment the ``Operate`` instructions are executed
concretely with :func:`alu_analysis.interpreter.step`, and the branch is
abandoned as soon as a destination value falls outside the limit computed
for that instruction.  A branch that reaches the end succeeds iff the result
register holds the required value.

Digits are tried in a fixed order, so the first success is the extreme:

  DigitOrder.DESCENDING   9 → 1   largest accepted number
  DigitOrder.ASCENDING    1 → 9   smallest accepted number

A fixed prefix restricts the first positions; tests use it to show that no
better answer exists by searching above (or below) the one found.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from alu_analysis.config import AnalysisConfig
from alu_analysis.errors import InvariantViolation, NoSolutionError
from alu_analysis.instructions import DIGIT_MAX, DIGIT_MIN, Input, Operate, count_inputs
from alu_analysis.interpreter import step
from alu_analysis.limits import Info

_log = logging.getLogger(__name__)


class DigitOrder(enum.Enum):
    DESCENDING = "descending"
    ASCENDING = "ascending"

    @property
    def digits(self) -> Tuple[int, ...]:
        ascending = tuple(range(DIGIT_MIN, DIGIT_MAX + 1))
        return ascending if self is DigitOrder.ASCENDING else ascending[::-1]


@dataclass
class SearchStats:
    """Counters for one search run."""
    nodes: int = 0      # digits tried
    pruned: int = 0     # branches cut by a limit
    leaves: int = 0     # branches that ran to the end of the program

    def summary_line(self) -> str:
        return f"{self.nodes} nodes, {self.pruned} pruned, {self.leaves} leaves"


@dataclass
class DigitSearch:
    """
    One pruned search over a fixed program.

    Parameters
    ----------
    infos : sequence of Info
        Output of :func:`alu_analysis.limits.compute_info`.
    config : AnalysisConfig
        Acceptance condition and progress interval.
    """
    infos: Sequence[Info]
    config: AnalysisConfig = field(default_factory=AnalysisConfig)
    stats: SearchStats = field(default_factory=SearchStats)

    def __post_init__(self) -> None:
        self._input_positions = [
            i for i, info in enumerate(self.infos) if isinstance(info.instruction, Input)
        ]

    def run(self, order: DigitOrder, prefix: Sequence[int] = ()) -> Tuple[int, ...]:
        """Return the first accepted digit sequence in *order*.

        Raises
        ------
        NoSolutionError
            If every branch is pruned or rejected.
        """
        if len(prefix) > len(self._input_positions):
            raise InvariantViolation(
                f"prefix of {len(prefix)} digits for {len(self._input_positions)} inputs"
            )
        for digit in prefix:
            if not DIGIT_MIN <= digit <= DIGIT_MAX:
                raise InvariantViolation(f"digit out of range: {digit}")

        self.stats = SearchStats()
        digits = self._descend(0, [0, 0, 0, 0], (), order.digits, tuple(prefix))
        _log.info("search %s: %s", order.value, self.stats.summary_line())
        if digits is None:
            raise NoSolutionError(
                f"no {order.value} digit sequence is accepted"
                + (f" with prefix {''.join(map(str, prefix))}" if prefix else "")
            )
        return digits

    # ---- Recursion -------------------------------------------------------

    def _descend(
        self,
        pc: int,
        registers: List[int],
        digits: Tuple[int, ...],
        order: Tuple[int, ...],
        prefix: Tuple[int, ...],
    ) -> Optional[Tuple[int, ...]]:
        infos = self.infos
        if pc == len(infos):
            self.stats.leaves += 1
            accepted = registers[self.config.result_register.index] == self.config.required_result
            return digits if accepted else None

        instruction = infos[pc].instruction
        if not isinstance(instruction, Input):
            # Leading operations before the first input.
            return self._run_segment(pc, registers, digits, order, prefix)

        depth = len(digits)
        candidates = (prefix[depth],) if depth < len(prefix) else order
        log_every = self.config.log_every
        for digit in candidates:
            self.stats.nodes += 1
            if log_every > 0 and self.stats.nodes % log_every == 0:
                _log.debug("search progress: %s at %s", self.stats.summary_line(), digits)
            branch = list(registers)
            branch[instruction.register.index] = digit
            found = self._run_segment(pc + 1, branch, digits + (digit,), order, prefix)
            if found is not None:
                return found
        return None

    def _run_segment(
        self,
        pc: int,
        registers: List[int],
        digits: Tuple[int, ...],
        order: Tuple[int, ...],
        prefix: Tuple[int, ...],
    ) -> Optional[Tuple[int, ...]]:
        """Execute operations up to the next input, pruning on limits."""
        infos = self.infos
        while pc < len(infos):
            info = infos[pc]
            instruction = info.instruction
            if isinstance(instruction, Input):
                break
            if not isinstance(instruction, Operate):
                raise InvariantViolation(f"not an instruction: {instruction!r}")
            value = step(instruction, registers)
            limit = info.limits[instruction.dest.index]
            if limit is not None and not limit.contains(value):
                self.stats.pruned += 1
                return None
            pc += 1
        return self._descend(pc, registers, digits, order, prefix)


# ═══════════════════════════════════════════════════════════════════════════
#  PUBLIC API
# ═══════════════════════════════════════════════════════════════════════════

def digits_to_number(digits: Sequence[int]) -> int:
    """Concatenate *digits* into one decimal integer."""
    number = 0
    for digit in digits:
        number = number * 10 + digit
    return number


def find_digits(
    infos: Sequence[Info],
    order: DigitOrder,
    config: Optional[AnalysisConfig] = None,
    prefix: Sequence[int] = (),
) -> Tuple[int, ...]:
    """First accepted digit sequence for *infos* in *order*."""
    inputs = count_inputs([info.instruction for info in infos])
    if inputs == 0:
        raise InvariantViolation("program reads no inputs")
    search = DigitSearch(infos, config or AnalysisConfig())
    return search.run(order, prefix)


def find_answer(
    infos: Sequence[Info],
    largest: bool = True,
    config: Optional[AnalysisConfig] = None,
) -> int:
    """Largest (or smallest) accepted number, as an integer."""
    order = DigitOrder.DESCENDING if largest else DigitOrder.ASCENDING
    return digits_to_number(find_digits(infos, order, config))
