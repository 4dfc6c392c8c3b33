"""Tests for decimal coercion and money rounding."""

from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from payroll_kernel.domain.amounts import CENT, ZERO, or_zero, quantize_money, to_decimal
from payroll_kernel.exceptions import NonFiniteValueError


class TestToDecimal:
    def test_none_passes_through(self):
        assert to_decimal("omnigo_bonus", None) is None

    @pytest.mark.parametrize(
        "value, expected",
        [
            (Decimal("12.50"), Decimal("12.50")),
            (168, Decimal("168")),
            ("  99.9 ", Decimal("99.9")),
            (0.1, Decimal("0.1")),
        ],
    )
    def test_numeric_inputs(self, value, expected):
        assert to_decimal("work_hours", value) == expected

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-inf", float("nan"), Decimal("Infinity")])
    def test_non_finite_rejected(self, value):
        with pytest.raises(NonFiniteValueError) as exc_info:
            to_decimal("equipments_usd", value)
        assert exc_info.value.field_name == "equipments_usd"
        assert exc_info.value.code == "NON_FINITE_VALUE"

    @pytest.mark.parametrize("value", ["abc", "", True])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(ValueError):
            to_decimal("hourly_rate", value)


class TestRounding:
    def test_half_up(self):
        assert quantize_money(Decimal("10.005")) == Decimal("10.01")
        assert quantize_money(Decimal("-10.005")) == Decimal("-10.01")

    def test_custom_quantum(self):
        assert quantize_money(Decimal("10.4"), Decimal("1")) == Decimal("10")

    def test_or_zero(self):
        assert or_zero(None) == ZERO
        assert or_zero(Decimal("3")) == Decimal("3")

    @given(st.decimals(min_value=-10**9, max_value=10**9, places=6, allow_nan=False, allow_infinity=False))
    def test_rounding_moves_at_most_half_a_cent(self, amount):
        rounded = quantize_money(amount)
        assert abs(rounded - amount) <= CENT / 2
        assert rounded == quantize_money(rounded)
