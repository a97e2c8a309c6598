# tests/test_search.py
"""
Tests for the pruned digit search.
"""

import logging

import pytest

from alu_analysis.config import AnalysisConfig
from alu_analysis.errors import InvariantViolation, NoSolutionError
from alu_analysis.instructions import parse_program
from alu_analysis.interpreter import run_program
from alu_analysis.limits import compute_info
from alu_analysis.search import (
    DigitOrder,
    DigitSearch,
    digits_to_number,
    find_answer,
    find_digits,
)
from tests.conftest import (
    EXPECTED_LARGEST,
    EXPECTED_SMALLEST,
)


def _digits(number):
    return tuple(int(c) for c in str(number))


class TestDigitOrder:

    def test_orders(self):
        assert DigitOrder.DESCENDING.digits == (9, 8, 7, 6, 5, 4, 3, 2, 1)
        assert DigitOrder.ASCENDING.digits == tuple(range(1, 10))

    def test_digits_to_number(self):
        assert digits_to_number((1, 2, 3)) == 123
        assert digits_to_number(()) == 0


class TestSmallProgram:
    """Four meaningful digits followed by ten ignored ones."""

    def test_matches_brute_force(self, small_infos, small_accepted):
        largest = find_digits(small_infos, DigitOrder.DESCENDING)
        smallest = find_digits(small_infos, DigitOrder.ASCENDING)
        assert largest[:4] == max(small_accepted)
        assert smallest[:4] == min(small_accepted)
        assert largest[4:] == (9,) * 10
        assert smallest[4:] == (1,) * 10

    def test_known_values(self, small_infos):
        assert find_answer(small_infos, largest=True) == 49699999999999
        assert find_answer(small_infos, largest=False) == 14161111111111

    def test_prefix_restricts_search(self, small_infos):
        digits = find_digits(small_infos, DigitOrder.DESCENDING, prefix=(2,))
        assert digits[:4] == (2, 9, 6, 7)

    def test_prefix_with_no_solution(self, small_infos):
        with pytest.raises(NoSolutionError):
            find_digits(small_infos, DigitOrder.DESCENDING, prefix=(5,))

    def test_stats(self, small_infos):
        search = DigitSearch(small_infos)
        search.run(DigitOrder.DESCENDING)
        assert search.stats.nodes > 0
        assert search.stats.pruned > 0
        assert search.stats.leaves >= 1

    def test_result_is_unaffected_by_rejected_branches(self, small_infos):
        # The largest answer is only found after 9, 8, 7, 6 and 5 are all
        # rejected in the first position.
        search = DigitSearch(small_infos)
        digits = search.run(DigitOrder.DESCENDING)
        assert isinstance(digits, tuple)
        assert len(digits) == 14
        assert digits[0] == 4
        assert search.run(DigitOrder.DESCENDING) == digits

    @pytest.mark.parametrize("log_every", [0, 1])
    def test_progress_interval(self, small_infos, log_every, caplog):
        config = AnalysisConfig(log_every=log_every)
        assert config.validate() == []
        with caplog.at_level(logging.DEBUG, logger="alu_analysis.search"):
            digits = find_digits(small_infos, DigitOrder.DESCENDING, config)
        assert digits_to_number(digits) == 49699999999999
        progress = [r for r in caplog.records if "search progress" in r.getMessage()]
        assert bool(progress) == (log_every > 0)

    def test_negative_progress_interval_warns(self):
        assert AnalysisConfig(log_every=-1).validate() == ["log_every must not be negative"]


class TestPuzzle:

    def test_largest(self, puzzle_infos):
        assert find_answer(puzzle_infos, largest=True) == EXPECTED_LARGEST

    def test_smallest(self, puzzle_infos):
        assert find_answer(puzzle_infos, largest=False) == EXPECTED_SMALLEST

    @pytest.mark.parametrize("answer", [EXPECTED_LARGEST, EXPECTED_SMALLEST])
    def test_replay_is_accepted(self, puzzle_program, answer):
        assert run_program(puzzle_program, _digits(answer)) == 0

    @pytest.mark.parametrize("position", range(14))
    def test_no_larger_answer(self, puzzle_infos, position):
        best = _digits(EXPECTED_LARGEST)
        for digit in range(best[position] + 1, 10):
            with pytest.raises(NoSolutionError):
                find_digits(
                    puzzle_infos, DigitOrder.DESCENDING,
                    prefix=best[:position] + (digit,),
                )

    @pytest.mark.parametrize("position", range(14))
    def test_no_smaller_answer(self, puzzle_infos, position):
        best = _digits(EXPECTED_SMALLEST)
        for digit in range(1, best[position]):
            with pytest.raises(NoSolutionError):
                find_digits(
                    puzzle_infos, DigitOrder.ASCENDING,
                    prefix=best[:position] + (digit,),
                )


class TestSearchErrors:

    def test_prefix_too_long(self, puzzle_infos):
        with pytest.raises(InvariantViolation):
            find_digits(puzzle_infos, DigitOrder.DESCENDING, prefix=(1,) * 15)

    def test_prefix_digit_out_of_range(self, puzzle_infos):
        with pytest.raises(InvariantViolation):
            find_digits(puzzle_infos, DigitOrder.DESCENDING, prefix=(0,))

    def test_program_without_inputs(self):
        infos = compute_info(parse_program(["add x 1"]))
        with pytest.raises(InvariantViolation):
            find_digits(infos, DigitOrder.ASCENDING)
