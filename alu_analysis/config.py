"""
alu_analysis/config.py
══════════════════════

Tuning knobs shared by the analysis passes, the search and the CLI.

The machine itself (four registers, fourteen inputs, digits 1..9) is fixed
in :mod:`alu_analysis.instructions`; only the acceptance condition and the
engine budgets are configurable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from alu_analysis.instructions import RegisterName


@dataclass
class AnalysisConfig:
    """
    Knobs for a single analysis run.

    The defaults describe the puzzle: a program is accepted when ``z``
    ends at zero.
    """
    result_register: RegisterName = RegisterName.Z
    required_result: int = 0
    rewrite_budget_factor: int = 8      # rewrites allowed per expression node
    min_rewrite_budget: int = 64
    log_every: int = 100_000            # search progress interval, in nodes; 0 disables

    def rewrite_budget(self, size: int) -> int:
        """Maximum rewrite iterations for an expression of *size* nodes."""
        return max(self.min_rewrite_budget, self.rewrite_budget_factor * size)

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.rewrite_budget_factor <= 0:
            warnings.append("rewrite_budget_factor must be positive")
        if self.min_rewrite_budget <= 0:
            warnings.append("min_rewrite_budget must be positive")
        if self.log_every < 0:
            warnings.append("log_every must not be negative")
        return warnings
