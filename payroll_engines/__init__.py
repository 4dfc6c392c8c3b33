"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports the pure payroll calculators: cycle
    aggregation, carryover chaining, bonus recipient inference, bonus
    announcement figures and the cross-month payment calculation.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payroll_kernel.domain, payroll_kernel.exceptions and
    payroll_kernel.logging_config.  MUST NOT import payroll_services.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Timestamps and dates are passed in by the caller.
    - Decimal-only arithmetic; floats are forbidden.
    - Determinism: identical inputs always produce identical outputs.
"""

from payroll_engines.aggregation import CycleAggregator, CycleSummary, LineSubtotal
from payroll_engines.bonus_announcement import BonusAnnouncement, build_bonus_announcement
from payroll_engines.bonus_recipient import BonusRecipientResolver
from payroll_engines.carryover import compute_carryover
from payroll_engines.payment import (
    ConsultantPaymentDetail,
    PaymentCalculator,
    PaymentMonth,
    PaymentResult,
)

__all__ = [
    "BonusAnnouncement",
    "BonusRecipientResolver",
    "ConsultantPaymentDetail",
    "CycleAggregator",
    "CycleSummary",
    "LineSubtotal",
    "PaymentCalculator",
    "PaymentMonth",
    "PaymentResult",
    "build_bonus_announcement",
    "compute_carryover",
]
