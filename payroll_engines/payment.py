"""
payroll_engines.payment -- Cross-month payment instruction for a cycle.

Responsibility:
    A cycle describes preparation work; the transfer happens in a later
    calendar month.  This engine computes, for that payment month, each
    active consultant's payment and the total transfer amount.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    PayrollCycleEngine resolves the payment month with ``payment_month``,
    looks up the work-hours reference for it, and passes the row (or None)
    back into ``calculate``.

Invariants enforced:
    - The cycle label is parsed strictly as "<MonthName> <YYYY>".
    - Payment month = cycle month + ``payment_month_offset`` (1 by default),
      wrapping December into January of the next year.
    - Payment hours come from the reference row when it exists and is
      positive, otherwise weekday count x ``hours_per_weekday``.  A missing
      reference is never an error.
    - Per active line: ``base = payment_hours * rate_per_hour``;
      ``subtotal = base + adjustment - advance``.  Line hour overrides
      describe the preparation month and are not used here.
    - ``total_transfer = sum(subtotal) + omnigo_bonus + equipments_usd
      - payoneer_balance_applied``.  ``no_bonus`` zeroes omnigo_bonus in
      the result only.

Failure modes:
    - InvalidMonthLabelError: label not in canonical form.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from payroll_kernel.domain.amounts import CENT, ZERO, or_zero, quantize_money
from payroll_kernel.domain.dtos import CycleInfo, LineItemInfo, WorkHoursInfo
from payroll_kernel.domain.month_labels import (
    fallback_work_hours,
    format_month_label,
    parse_month_label,
    shift_month,
)
from payroll_kernel.logging_config import get_logger
from payroll_engines.aggregation import CycleSummary
from payroll_engines.tracer import traced_engine

logger = get_logger("engines.payment")

HOURS_SOURCE_REFERENCE = "reference"
HOURS_SOURCE_FALLBACK = "fallback"


@dataclass(frozen=True)
class PaymentMonth:
    """The calendar month in which a cycle's transfer happens."""

    year: int
    month: int

    @property
    def label(self) -> str:
        return format_month_label(self.year, self.month)


@dataclass(frozen=True)
class ConsultantPaymentDetail:
    consultant_id: UUID
    consultant_name: str
    payoneer_id: str | None
    rate_per_hour: Decimal
    work_hours: Decimal
    base_amount: Decimal
    adjustment_value: Decimal
    bonus_advance: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class PaymentResult:
    """
    Payment instruction for one cycle.

    ``usd_total`` and ``total_hourly_value`` restate the cycle summary;
    ``payment_usd_total`` recomputes the USD total with the payment
    month's hours.
    """

    cycle_id: UUID
    month_label: str
    calculated_at: datetime
    payment_month: PaymentMonth
    payment_work_hours: Decimal
    work_hours_source: str
    consultant_payments: tuple[ConsultantPaymentDetail, ...]
    total_consultant_payments: Decimal
    omnigo_bonus: Decimal
    equipments_usd: Decimal
    payoneer_balance_applied: Decimal
    total_transfer_amount: Decimal
    global_work_hours: Decimal | None
    total_hourly_value: Decimal
    usd_total: Decimal
    payment_usd_total: Decimal
    anomalies: tuple[str, ...]
    no_bonus: bool = False


class PaymentCalculator:
    """
    Pure calculator for cycle payments.

    Contract:
        No I/O, no database access, fully deterministic.
        All reference data passed as parameters.
    """

    def __init__(
        self,
        payment_month_offset: int = 1,
        hours_per_weekday: Decimal = Decimal("8"),
        money_quantum: Decimal = CENT,
    ):
        self._offset = payment_month_offset
        self._hours_per_weekday = hours_per_weekday
        self._quantum = money_quantum

    def payment_month(self, month_label: str) -> PaymentMonth:
        """
        Raises:
            InvalidMonthLabelError: Label is not "<MonthName> <YYYY>".
        """
        year, month = parse_month_label(month_label)
        return PaymentMonth(*shift_month(year, month, self._offset))

    def payment_work_hours(
        self,
        payment_month: PaymentMonth,
        reference: WorkHoursInfo | None,
    ) -> tuple[Decimal, str]:
        """Hours for the payment month and where they came from."""
        if reference is not None and reference.work_hours > ZERO:
            return reference.work_hours, HOURS_SOURCE_REFERENCE
        hours = fallback_work_hours(payment_month.year, payment_month.month, self._hours_per_weekday)
        logger.info(
            "payment_work_hours_fallback",
            extra={
                "payment_month": payment_month.label,
                "reference_present": reference is not None,
                "fallback_hours": hours,
            },
        )
        return hours, HOURS_SOURCE_FALLBACK

    @traced_engine(
        "payment",
        "1.0",
        fingerprint_fields=("summary", "reference", "no_bonus"),
    )
    def calculate(
        self,
        *,
        summary: CycleSummary,
        reference: WorkHoursInfo | None,
        calculated_at: datetime,
        no_bonus: bool = False,
    ) -> PaymentResult:
        """
        Compute the payment instruction.

        Args:
            summary: The cycle's summary; its lines are the active ones.
            reference: Work-hours row for the payment month, or None.
            calculated_at: Timestamp to record on the result.
            no_bonus: Treat omnigo_bonus as zero for this calculation.

        Raises:
            InvalidMonthLabelError: Label is not canonical.
        """
        cycle = summary.cycle
        payment_month = self.payment_month(cycle.month_label)
        hours, source = self.payment_work_hours(payment_month, reference)

        details = tuple(self._detail(entry.line, hours) for entry in summary.lines)

        total_payments = sum((d.subtotal for d in details), ZERO)
        omnigo = ZERO if no_bonus else or_zero(cycle.omnigo_bonus)
        equipments = or_zero(cycle.equipments_usd)
        applied = or_zero(cycle.payoneer_balance_applied)
        transfer = total_payments + omnigo + equipments - applied

        payment_usd_total = (
            summary.total_hourly_value * hours
            - (or_zero(cycle.pagamento_pix) + or_zero(cycle.pagamento_inter))
            + (omnigo + equipments)
        )

        return PaymentResult(
            cycle_id=cycle.id,
            month_label=cycle.month_label,
            calculated_at=calculated_at,
            payment_month=payment_month,
            payment_work_hours=hours,
            work_hours_source=source,
            consultant_payments=details,
            total_consultant_payments=quantize_money(total_payments, self._quantum),
            omnigo_bonus=quantize_money(omnigo, self._quantum),
            equipments_usd=quantize_money(equipments, self._quantum),
            payoneer_balance_applied=quantize_money(applied, self._quantum),
            total_transfer_amount=quantize_money(transfer, self._quantum),
            global_work_hours=cycle.global_work_hours,
            total_hourly_value=summary.total_hourly_value,
            usd_total=summary.usd_total,
            payment_usd_total=quantize_money(payment_usd_total, self._quantum),
            anomalies=summary.anomalies,
            no_bonus=no_bonus,
        )

    def _detail(self, line: LineItemInfo, hours: Decimal) -> ConsultantPaymentDetail:
        base = hours * line.rate_per_hour
        adjustment = or_zero(line.adjustment_value)
        advance = or_zero(line.bonus_advance)
        return ConsultantPaymentDetail(
            consultant_id=line.consultant_id,
            consultant_name=line.consultant_name,
            payoneer_id=line.payoneer_id,
            rate_per_hour=line.rate_per_hour,
            work_hours=hours,
            base_amount=quantize_money(base, self._quantum),
            adjustment_value=adjustment,
            bonus_advance=advance,
            subtotal=quantize_money(base + adjustment - advance, self._quantum),
        )
