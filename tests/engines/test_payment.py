"""
Tests for the payment calculator.

Covers:
- Payment month resolution (cycle month + 1, year wrap)
- Reference hours vs weekday fallback
- Per-consultant payments and the total transfer
- The no-bonus override
"""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from payroll_engines.aggregation import CycleAggregator
from payroll_engines.payment import (
    HOURS_SOURCE_FALLBACK,
    HOURS_SOURCE_REFERENCE,
    PaymentCalculator,
    PaymentMonth,
)
from payroll_kernel.exceptions import InvalidMonthLabelError

CALCULATED_AT = datetime(2025, 11, 3, 10, 0, tzinfo=UTC)


class TestPaymentMonth:
    def setup_method(self):
        self.calculator = PaymentCalculator()

    def test_next_month(self):
        assert self.calculator.payment_month("October 2025") == PaymentMonth(2025, 11)

    def test_december_wraps_to_january(self):
        month = self.calculator.payment_month("December 2025")
        assert month == PaymentMonth(2026, 1)
        assert month.label == "January 2026"

    @pytest.mark.parametrize("label", ["10/2025", "Oct 2025", "Q4 special"])
    def test_strict_label_required(self, label):
        with pytest.raises(InvalidMonthLabelError):
            self.calculator.payment_month(label)


class TestPaymentWorkHours:
    def setup_method(self):
        self.calculator = PaymentCalculator()

    def test_reference_used_when_positive(self, make_work_hours):
        hours, source = self.calculator.payment_work_hours(
            PaymentMonth(2025, 11), make_work_hours(2025, 11, "152")
        )
        assert (hours, source) == (Decimal("152"), HOURS_SOURCE_REFERENCE)

    def test_missing_reference_falls_back_to_weekdays(self):
        hours, source = self.calculator.payment_work_hours(PaymentMonth(2025, 11), None)
        assert (hours, source) == (Decimal("160"), HOURS_SOURCE_FALLBACK)

    def test_zero_reference_falls_back(self, make_work_hours):
        hours, source = self.calculator.payment_work_hours(
            PaymentMonth(2025, 11), make_work_hours(2025, 11, "0")
        )
        assert (hours, source) == (Decimal("160"), HOURS_SOURCE_FALLBACK)

    def test_hours_per_weekday_configurable(self):
        calculator = PaymentCalculator(hours_per_weekday=Decimal("6"))
        hours, _ = calculator.payment_work_hours(PaymentMonth(2025, 11), None)
        assert hours == Decimal("120")


class TestCalculate:
    def setup_method(self):
        self.aggregator = CycleAggregator()
        self.calculator = PaymentCalculator()

    def _summary(self, cycle, lines):
        return self.aggregator.summarize(cycle=cycle, lines=lines)

    def test_total_transfer(self, make_cycle, make_line, make_work_hours):
        cycle = make_cycle(
            "October 2025",
            global_work_hours="168",
            omnigo_bonus="1000",
            equipments_usd="200",
            payoneer_balance_applied="300",
        )
        lines = [
            make_line("Alice", "50", payoneer_id="PAY-A"),
            make_line(
                "Bob",
                "40",
                work_hours="10",
                adjustment_value="100",
                bonus_advance="50",
                advance_date=date(2025, 9, 1),
                bonus_paydate=date(2025, 12, 1),
            ),
            make_line("Gone", "99", active=False),
        ]

        result = self.calculator.calculate(
            summary=self._summary(cycle, lines),
            reference=make_work_hours(2025, 11, "152"),
            calculated_at=CALCULATED_AT,
        )

        assert result.payment_month.label == "November 2025"
        assert result.work_hours_source == HOURS_SOURCE_REFERENCE
        # Payment hours apply to every line; Bob's 10h override is a cycle-month value
        assert [(d.consultant_name, d.subtotal) for d in result.consultant_payments] == [
            ("Alice", Decimal("7600.00")),
            ("Bob", Decimal("6130.00")),
        ]
        assert result.consultant_payments[0].payoneer_id == "PAY-A"
        assert result.total_consultant_payments == Decimal("13730.00")
        # 13730 + 1000 + 200 - 300
        assert result.total_transfer_amount == Decimal("14630.00")
        assert result.calculated_at == CALCULATED_AT
        assert result.global_work_hours == Decimal("168")

    def test_fallback_hours_when_reference_missing(self, make_cycle, make_line):
        cycle = make_cycle("October 2025", global_work_hours="168")

        result = self.calculator.calculate(
            summary=self._summary(cycle, [make_line("Alice", "10")]),
            reference=None,
            calculated_at=CALCULATED_AT,
        )

        assert result.payment_work_hours == Decimal("160")
        assert result.work_hours_source == HOURS_SOURCE_FALLBACK
        assert result.total_transfer_amount == Decimal("1600.00")

    def test_no_bonus_zeroes_omnigo_in_result_only(self, make_cycle, make_line, make_work_hours):
        cycle = make_cycle("October 2025", global_work_hours="100", omnigo_bonus="500")
        summary = self._summary(cycle, [make_line("Alice", "10")])
        reference = make_work_hours(2025, 11, "100")

        with_bonus = self.calculator.calculate(
            summary=summary, reference=reference, calculated_at=CALCULATED_AT
        )
        without = self.calculator.calculate(
            summary=summary, reference=reference, calculated_at=CALCULATED_AT, no_bonus=True
        )

        assert with_bonus.total_transfer_amount - without.total_transfer_amount == Decimal("500")
        assert without.omnigo_bonus == Decimal("0.00")
        assert without.no_bonus is True
        assert without.payment_usd_total == Decimal("1000.00")
        assert cycle.omnigo_bonus == Decimal("500")

    def test_negative_subtotal_reduces_transfer(self, make_cycle, make_line, make_work_hours):
        cycle = make_cycle("October 2025", global_work_hours="1")
        line = make_line(
            "Alice",
            "1",
            bonus_advance="500",
            advance_date=date(2025, 9, 1),
            bonus_paydate=date(2025, 12, 1),
        )

        result = self.calculator.calculate(
            summary=self._summary(cycle, [line]),
            reference=make_work_hours(2025, 11, "100"),
            calculated_at=CALCULATED_AT,
        )

        assert result.consultant_payments[0].subtotal == Decimal("-400.00")
        assert result.total_transfer_amount == Decimal("-400.00")

    def test_year_wrap(self, make_cycle, make_line, make_work_hours):
        cycle = make_cycle("December 2025", global_work_hours="160")

        result = self.calculator.calculate(
            summary=self._summary(cycle, [make_line("Alice", "10")]),
            reference=make_work_hours(2026, 1, "176"),
            calculated_at=CALCULATED_AT,
        )

        assert result.payment_month == PaymentMonth(2026, 1)
        assert result.total_transfer_amount == Decimal("1760.00")

    def test_anomalies_carried_through(self, make_cycle, make_line):
        cycle = make_cycle("October 2025")

        result = self.calculator.calculate(
            summary=self._summary(cycle, [make_line("Alice", "10")]),
            reference=None,
            calculated_at=CALCULATED_AT,
        )

        assert result.anomalies == ("Global work hours not set",)
