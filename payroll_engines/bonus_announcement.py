"""
payroll_engines.bonus_announcement -- Figures for the bonus announcement.

Responsibility:
    Compute the gross bonus, the recipient's advance and the net bonus that
    an announcement to the recipient would state.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Rendering the figures
    into text, email or PDF is left to callers.

Invariants enforced:
    - gross bonus is the cycle's ``omnigo_bonus``; it must be positive.
    - net bonus = gross - advance, floored at zero.

Failure modes:
    - RecipientRequiredError: the workflow has no recipient.
    - BonusAmountNotSetError: the cycle's bonus is unset or not positive.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from payroll_kernel.domain.amounts import CENT, ZERO, or_zero, quantize_money
from payroll_kernel.domain.dtos import BonusWorkflowInfo, ConsultantInfo, CycleInfo, LineItemInfo
from payroll_kernel.exceptions import BonusAmountNotSetError, RecipientRequiredError


@dataclass(frozen=True)
class BonusAnnouncement:
    """Figures stated in a bonus announcement."""

    cycle_id: UUID
    month_label: str
    consultant_id: UUID
    consultant_name: str
    gross_bonus: Decimal
    advance_amount: Decimal
    net_bonus: Decimal
    announcement_date: date

    @property
    def has_advance(self) -> bool:
        return self.advance_amount > ZERO


def build_bonus_announcement(
    *,
    cycle: CycleInfo,
    workflow: BonusWorkflowInfo,
    recipient: ConsultantInfo | None,
    recipient_line: LineItemInfo | None,
    today: date,
    money_quantum: Decimal = CENT,
) -> BonusAnnouncement:
    """
    Assemble the announcement figures.

    ``recipient_line`` may be None when the recipient holds no line in the
    cycle; the advance is then zero.  The announcement date is the
    workflow's, else ``today``.
    """
    if workflow.bonus_recipient_consultant_id is None or recipient is None:
        raise RecipientRequiredError(str(cycle.id))

    gross = or_zero(cycle.omnigo_bonus)
    if gross <= ZERO:
        raise BonusAmountNotSetError(str(cycle.id))

    advance = or_zero(recipient_line.bonus_advance) if recipient_line else ZERO
    net = max(gross - advance, ZERO)

    return BonusAnnouncement(
        cycle_id=cycle.id,
        month_label=cycle.month_label,
        consultant_id=recipient.id,
        consultant_name=recipient.name,
        gross_bonus=quantize_money(gross, money_quantum),
        advance_amount=quantize_money(advance, money_quantum),
        net_bonus=quantize_money(net, money_quantum),
        announcement_date=workflow.bonus_announcement_date or today,
    )
