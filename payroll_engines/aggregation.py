"""
payroll_engines.aggregation -- Cycle totals, line subtotals and anomalies.

Responsibility:
    Compute per-line subtotals and the cycle-wide totals shown on every
    cycle read, plus advisory anomalies about incomplete data.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel.domain (DTOs, amounts).

Invariants enforced:
    - Lines whose consultant has since been terminated are excluded from
      totals, subtotals and anomalies.  Their rows stay in storage.
    - ``subtotal = (work_hours ?? global_work_hours ?? 0) * rate_per_hour
      + (adjustment_value ?? 0) - (bonus_advance ?? 0)``.
    - ``usd_total = total_hourly_value * (global_work_hours ?? 0)
      - (pagamento_pix + pagamento_inter) + (omnigo_bonus + equipments_usd)``.
    - Anomalies never raise and never block reads or writes.
    - Monetary outputs are rounded half-up to the configured quantum.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from payroll_kernel.domain.amounts import CENT, ZERO, or_zero, quantize_money
from payroll_kernel.domain.dtos import CycleInfo, LineItemInfo
from payroll_kernel.logging_config import get_logger
from payroll_engines.tracer import traced_engine

logger = get_logger("engines.aggregation")

GLOBAL_WORK_HOURS_NOT_SET = "Global work hours not set"


@dataclass(frozen=True)
class LineSubtotal:
    """A line item with the hours actually applied and its subtotal."""

    line: LineItemInfo
    effective_work_hours: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class CycleSummary:
    """
    Totals for one cycle.

    Guarantees:
        - ``lines`` only contains lines of active consultants.
        - ``anomalies`` is advisory text, in line order, with the
          global-hours anomaly (if any) last.
    """

    cycle: CycleInfo
    lines: tuple[LineSubtotal, ...]
    total_hourly_value: Decimal
    usd_total: Decimal
    anomalies: tuple[str, ...]

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def has_anomalies(self) -> bool:
        return bool(self.anomalies)


def effective_work_hours(line: LineItemInfo, global_work_hours: Decimal | None) -> Decimal:
    """The line's own hours override, else the cycle default, else zero."""
    if line.work_hours is not None:
        return line.work_hours
    return or_zero(global_work_hours)


def line_anomalies(line: LineItemInfo) -> list[str]:
    found = []
    if line.rate_per_hour == ZERO:
        found.append(f"{line.consultant_name} has zero hourly rate")
    if line.bonus_advance:
        if line.advance_date is None:
            found.append(f"{line.consultant_name} has bonus advance without advance date")
        if line.bonus_paydate is None:
            found.append(f"{line.consultant_name} has bonus advance without paydate")
    return found


class CycleAggregator:
    """
    Pure calculator for cycle summaries.

    Contract:
        No I/O, no database access, fully deterministic.
        All reference data passed as parameters.

    Non-goals:
        - Does not compute payment-month figures; see PaymentCalculator.
    """

    def __init__(self, money_quantum: Decimal = CENT):
        self._quantum = money_quantum

    @traced_engine("cycle_aggregation", "1.0", fingerprint_fields=("cycle", "lines"))
    def summarize(self, *, cycle: CycleInfo, lines: Sequence[LineItemInfo]) -> CycleSummary:
        active = [line for line in lines if line.consultant_active]

        subtotals = []
        anomalies: list[str] = []
        for line in active:
            hours = effective_work_hours(line, cycle.global_work_hours)
            amount = (
                hours * line.rate_per_hour
                + or_zero(line.adjustment_value)
                - or_zero(line.bonus_advance)
            )
            subtotals.append(
                LineSubtotal(
                    line=line,
                    effective_work_hours=hours,
                    subtotal=quantize_money(amount, self._quantum),
                )
            )
            anomalies.extend(line_anomalies(line))

        if not cycle.global_work_hours:
            anomalies.append(GLOBAL_WORK_HOURS_NOT_SET)

        total_hourly_value = sum((line.rate_per_hour for line in active), ZERO)
        usd_total = (
            total_hourly_value * or_zero(cycle.global_work_hours)
            - (or_zero(cycle.pagamento_pix) + or_zero(cycle.pagamento_inter))
            + (or_zero(cycle.omnigo_bonus) + or_zero(cycle.equipments_usd))
        )

        if anomalies:
            logger.info(
                "cycle_anomalies_detected",
                extra={"cycle_id": str(cycle.id), "anomaly_count": len(anomalies)},
            )

        return CycleSummary(
            cycle=cycle,
            lines=tuple(subtotals),
            total_hourly_value=total_hourly_value,
            usd_total=quantize_money(usd_total, self._quantum),
            anomalies=tuple(anomalies),
        )
