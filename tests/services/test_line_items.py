"""Tests for editing cycle line items."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_kernel.exceptions import (
    ArchivedCycleError,
    LineItemNotFoundError,
    NonFiniteValueError,
    UnknownFieldError,
)


@pytest.fixture
def alice_line(payroll, team):
    cycle = payroll.create_cycle("October 2025")
    return next(line for line in payroll.get_line_items(cycle.id) if line.consultant_name == "Alice")


class TestUpdateLineItem:
    def test_edits_are_coerced(self, payroll, alice_line):
        updated = payroll.update_line_item(
            alice_line.id,
            work_hours="160.5",
            adjustment_value=-25,
            advance_date="2025-10-12T08:30:00",
            comments="half day on the 3rd",
        )

        assert updated.work_hours == Decimal("160.5")
        assert updated.adjustment_value == Decimal("-25")
        assert updated.advance_date == date(2025, 10, 12)
        assert updated.comments == "half day on the 3rd"

    def test_empty_string_clears_date(self, payroll, alice_line):
        payroll.update_line_item(alice_line.id, informed_date=date(2025, 10, 1))
        updated = payroll.update_line_item(alice_line.id, informed_date="")
        assert updated.informed_date is None

    def test_rate_snapshot_not_editable(self, payroll, alice_line):
        with pytest.raises(UnknownFieldError) as exc_info:
            payroll.update_line_item(alice_line.id, rate_per_hour="99")

        assert "rate_per_hour" in str(exc_info.value)
        assert payroll.get_line_items(alice_line.cycle_id)[0].rate_per_hour == Decimal("50")

    def test_rejected_payload_changes_nothing(self, payroll, alice_line):
        with pytest.raises(NonFiniteValueError):
            payroll.update_line_item(alice_line.id, work_hours="100", bonus_advance="Infinity")

        reloaded = payroll.get_line_items(alice_line.cycle_id)[0]
        assert reloaded.work_hours is None

    def test_bad_date(self, payroll, alice_line):
        with pytest.raises(ValueError):
            payroll.update_line_item(alice_line.id, bonus_paydate="next friday")

    def test_unknown_line_item(self, payroll):
        with pytest.raises(LineItemNotFoundError):
            payroll.update_line_item(uuid4(), comments="x")

    def test_archived_cycle_is_read_only(self, payroll, alice_line):
        payroll.archive_cycle(alice_line.cycle_id)

        with pytest.raises(ArchivedCycleError):
            payroll.update_line_item(alice_line.id, comments="late edit")

    def test_logs_changed_fields_only(self, payroll, alice_line, captured_logs):
        payroll.update_line_item(alice_line.id, comments="ok", work_hours=None)

        record = next(r for r in captured_logs() if r["message"] == "line_item_updated")
        assert record["changed_fields"] == ["comments"]
