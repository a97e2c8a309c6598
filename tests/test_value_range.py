# tests/test_value_range.py
"""
Tests for the interval domain.

Forward transfer functions must be sound (every concrete result lies in
the computed range) and, for add/mul/div, tight (both endpoints are hit).
Backward transfer functions must be sound (every operand value that can
produce a required result is kept) and, for add, div and the eql
endpoint trim, tight.
"""

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from alu_analysis.errors import EmptyRangeError, InvariantViolation
from alu_analysis.instructions import OpName
from alu_analysis.value_range import (
    ValueRange,
    add_backward,
    add_forward,
    backward,
    div_backward,
    div_forward,
    eql_backward,
    eql_forward,
    forward,
    intersect,
    mod_forward,
    mul_backward,
    mul_forward,
)
from tests.conftest import value_ranges


def _members(r):
    return range(r.start, r.end + 1)


small = value_ranges(-12, 12)
non_negative = value_ranges(0, 40)
positive = value_ranges(1, 12)


class TestValueRange:

    def test_reversed_is_invariant_violation(self):
        with pytest.raises(InvariantViolation):
            ValueRange(3, 2)

    def test_repr(self):
        assert repr(ValueRange(2, 4)) == "[2, 4]"

    def test_intersect(self):
        assert intersect(ValueRange(0, 10), ValueRange(5, 20)) == ValueRange(5, 10)
        assert ValueRange(0, 4).intersect(ValueRange(5, 9)) is None

    def test_predicates(self):
        r = ValueRange(-2, 3)
        assert not r.excludes_zero()
        assert r.contains(-2) and not r.contains(4)
        assert r.size() == 6
        assert ValueRange.single(5).single_value() == 5
        assert r.single_value() is None
        assert ValueRange.digit() == ValueRange(1, 9)


class TestForward:

    def test_add_example(self):
        assert add_forward(ValueRange(2, 4), ValueRange(8, 16)) == ValueRange(10, 20)

    def test_mul_with_negatives(self):
        assert mul_forward(ValueRange(-3, 2), ValueRange(-5, 4)) == ValueRange(-12, 15)

    def test_mod_passthrough_below_divisor(self):
        assert mod_forward(ValueRange(3, 20), ValueRange(26, 26)) == ValueRange(3, 20)
        assert mod_forward(ValueRange(3, 30), ValueRange(26, 26)) == ValueRange(0, 25)

    def test_div_and_mod_reject_negative_dividend(self):
        with pytest.raises(InvariantViolation):
            div_forward(ValueRange(-1, 5), ValueRange(2, 2))
        with pytest.raises(InvariantViolation):
            mod_forward(ValueRange(0, 5), ValueRange(0, 2))

    def test_eql(self):
        assert eql_forward(ValueRange.single(4), ValueRange.single(4)) == ValueRange.single(1)
        assert eql_forward(ValueRange(0, 3), ValueRange(4, 9)) == ValueRange.single(0)
        assert eql_forward(ValueRange(0, 4), ValueRange(4, 9)) == ValueRange(0, 1)

    @given(small, small)
    def test_add_mul_eql_sound(self, a, b):
        for op in (OpName.ADD, OpName.MUL, OpName.EQL):
            result = forward(op, a, b)
            for x in _members(a):
                for y in _members(b):
                    assert result.contains(op.perform(x, y))

    @given(non_negative, positive)
    def test_div_mod_sound(self, a, b):
        for op in (OpName.DIV, OpName.MOD):
            result = forward(op, a, b)
            for x in _members(a):
                for y in _members(b):
                    assert result.contains(op.perform(x, y))

    @given(small, small)
    def test_add_mul_tight(self, a, b):
        for op in (OpName.ADD, OpName.MUL):
            result = forward(op, a, b)
            values = {op.perform(x, y) for x in _members(a) for y in _members(b)}
            assert min(values) == result.start
            assert max(values) == result.end

    @given(non_negative, positive)
    def test_div_tight(self, a, b):
        result = div_forward(a, b)
        values = {OpName.DIV.perform(x, y) for x in _members(a) for y in _members(b)}
        assert (min(values), max(values)) == (result.start, result.end)


class TestBackward:

    def test_add_example(self):
        assert add_backward(ValueRange(8, 16), ValueRange(10, 20)) == ValueRange(-6, 12)

    def test_mul_unknown_when_factor_may_be_zero(self):
        assert mul_backward(ValueRange(0, 1), ValueRange(0, 0)) is None

    def test_mul_empty(self):
        with pytest.raises(EmptyRangeError):
            mul_backward(ValueRange(26, 26), ValueRange(1, 25))

    def test_mul_negative_is_invariant_violation(self):
        with pytest.raises(InvariantViolation):
            mul_backward(ValueRange(-3, -1), ValueRange(0, 5))

    def test_div_example(self):
        assert div_backward(ValueRange(26, 26), ValueRange(0, 0)) == ValueRange(0, 25)

    def test_div_rhs_and_mod_are_unknown(self):
        digit = ValueRange.digit()
        assert backward(OpName.DIV, digit, digit, digit, unknown_is_lhs=False) is None
        assert backward(OpName.MOD, digit, digit, digit) is None

    def test_eql_pins_on_equal(self):
        assert eql_backward(ValueRange(1, 9), ValueRange.single(1), ValueRange(-5, 30)) == ValueRange(1, 9)

    def test_eql_trims_endpoint_on_not_equal(self):
        zero = ValueRange.single(0)
        assert eql_backward(ValueRange.single(0), zero, ValueRange(0, 1)) == ValueRange(1, 1)
        assert eql_backward(ValueRange.single(1), zero, ValueRange(0, 1)) == ValueRange(0, 0)
        assert eql_backward(ValueRange.single(5), zero, ValueRange(0, 9)) is None

    def test_eql_cannot_differ_from_itself(self):
        with pytest.raises(EmptyRangeError):
            eql_backward(ValueRange.single(3), ValueRange.single(0), ValueRange.single(3))

    @given(small, small, small)
    def test_add_sound_and_tight(self, b, z, a):
        solved = add_backward(b, z)
        for x in _members(a):
            if any(z.contains(x + y) for y in _members(b)):
                assert solved.contains(x)
        # Both endpoints can actually reach z.
        assert z.contains(solved.start + b.end)
        assert z.contains(solved.end + b.start)

    @settings(max_examples=200)
    @given(value_ranges(1, 12), value_ranges(0, 80), value_ranges(0, 30))
    def test_mul_sound(self, b, z, a):
        witnesses = [x for x in _members(a) if any(z.contains(x * y) for y in _members(b))]
        assume(witnesses)
        solved = mul_backward(b, z)
        assert all(solved.contains(x) for x in witnesses)

    @settings(max_examples=200)
    @given(positive, value_ranges(0, 10), value_ranges(0, 150))
    def test_div_sound(self, b, z, a):
        solved = div_backward(b, z)
        for x in _members(a):
            if any(z.contains(x // y) for y in _members(b)):
                assert solved.contains(x)

    @given(small, st.sampled_from([0, 1]), small)
    def test_eql_sound(self, b, result, current):
        z = ValueRange.single(result)
        witnesses = [
            x for x in _members(current)
            if any(OpName.EQL.perform(x, y) == result for y in _members(b))
        ]
        try:
            solved = eql_backward(b, z, current)
        except EmptyRangeError:
            assert not witnesses
            return
        if solved is not None:
            assert all(solved.contains(x) for x in witnesses)

    @settings(max_examples=200)
    @given(positive, value_ranges(0, 10))
    def test_div_backward_tight(self, b, z):
        solved = div_backward(b, z)

        def reaches(x):
            return any(z.contains(x // y) for y in _members(b))

        assert reaches(solved.start)
        assert reaches(solved.end)
        assert solved.start == 0 or not reaches(solved.start - 1)
        assert not reaches(solved.end + 1)

    @given(small, st.booleans())
    def test_eql_trim_tight(self, current, at_start):
        assume(not current.is_single())
        v = current.start if at_start else current.end
        solved = eql_backward(ValueRange.single(v), ValueRange.single(0), current)

        def reaches(x):
            return current.contains(x) and OpName.EQL.perform(x, v) == 0

        assert reaches(solved.start)
        assert reaches(solved.end)
        assert not reaches(solved.start - 1)
        assert not reaches(solved.end + 1)
