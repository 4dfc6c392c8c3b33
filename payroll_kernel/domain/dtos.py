"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Immutable snapshots of consultants, cycles, line items, bonus workflows
    and work-hours references that flow from the persistence boundary into
    the pure calculators in ``payroll_engines`` and back out to callers.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ``from_model()`` class methods are boundary converters invoked only from
    selectors and services, never from engine logic.

Invariants enforced:
    - Engines accept and return DTOs, never ORM entities.
    - All monetary and hours fields are ``Decimal`` -- NEVER ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from payroll_kernel.models.bonus_workflow import BonusWorkflow as BonusWorkflowModel
    from payroll_kernel.models.consultant import Consultant as ConsultantModel
    from payroll_kernel.models.payroll_cycle import CycleLineItem as CycleLineItemModel
    from payroll_kernel.models.payroll_cycle import PayrollCycle as PayrollCycleModel
    from payroll_kernel.models.work_hours import WorkHoursReference as WorkHoursModel


@dataclass(frozen=True)
class ConsultantInfo:
    """Read-only view of a roster entry."""

    id: UUID
    name: str
    hourly_rate: Decimal
    yearly_bonus: Decimal | None = None
    bonus_month: int | None = None
    payoneer_id: str | None = None
    termination_date: date | None = None

    @property
    def is_active(self) -> bool:
        return self.termination_date is None

    @classmethod
    def from_model(cls, model: ConsultantModel) -> ConsultantInfo:
        return cls(
            id=model.id,
            name=model.name,
            hourly_rate=model.hourly_rate,
            yearly_bonus=model.yearly_bonus,
            bonus_month=model.bonus_month,
            payoneer_id=model.payoneer_id,
            termination_date=model.termination_date,
        )


@dataclass(frozen=True)
class CycleInfo:
    """
    Immutable snapshot of a payroll cycle's stored fields.

    Guarantees:
        - ``is_archived`` is True iff ``archived_at`` is set.
    """

    id: UUID
    month_label: str
    created_at: datetime
    global_work_hours: Decimal | None = None
    omnigo_bonus: Decimal | None = None
    equipments_usd: Decimal | None = None
    pagamento_pix: Decimal | None = None
    pagamento_inter: Decimal | None = None
    invoice_bonus: Decimal | None = None
    payoneer_balance_carryover: Decimal | None = None
    payoneer_balance_applied: Decimal | None = None
    calculated_payment_date: datetime | None = None
    payment_arrival_date: date | None = None
    send_receipt_date: date | None = None
    send_invoice_date: date | None = None
    consultants_paid_date: date | None = None
    archived_at: datetime | None = None

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @classmethod
    def from_model(cls, model: PayrollCycleModel) -> CycleInfo:
        return cls(
            id=model.id,
            month_label=model.month_label,
            created_at=model.created_at,
            global_work_hours=model.global_work_hours,
            omnigo_bonus=model.omnigo_bonus,
            equipments_usd=model.equipments_usd,
            pagamento_pix=model.pagamento_pix,
            pagamento_inter=model.pagamento_inter,
            invoice_bonus=model.invoice_bonus,
            payoneer_balance_carryover=model.payoneer_balance_carryover,
            payoneer_balance_applied=model.payoneer_balance_applied,
            calculated_payment_date=model.calculated_payment_date,
            payment_arrival_date=model.payment_arrival_date,
            send_receipt_date=model.send_receipt_date,
            send_invoice_date=model.send_invoice_date,
            consultants_paid_date=model.consultants_paid_date,
            archived_at=model.archived_at,
        )


@dataclass(frozen=True)
class LineItemInfo:
    """
    Immutable snapshot of a cycle line item, denormalised with the
    consultant's name and current roster status.

    ``consultant_active`` reflects the roster *now*; the aggregator and the
    payment calculator use it to exclude since-terminated consultants.
    """

    id: UUID
    cycle_id: UUID
    consultant_id: UUID
    consultant_name: str
    consultant_active: bool
    rate_per_hour: Decimal
    work_hours: Decimal | None = None
    adjustment_value: Decimal | None = None
    bonus_advance: Decimal | None = None
    advance_date: date | None = None
    informed_date: date | None = None
    bonus_paydate: date | None = None
    comments: str | None = None
    payoneer_id: str | None = None

    @classmethod
    def from_model(cls, model: CycleLineItemModel) -> LineItemInfo:
        consultant = model.consultant
        return cls(
            id=model.id,
            cycle_id=model.cycle_id,
            consultant_id=model.consultant_id,
            consultant_name=consultant.name,
            consultant_active=consultant.termination_date is None,
            rate_per_hour=model.rate_per_hour,
            work_hours=model.work_hours,
            adjustment_value=model.adjustment_value,
            bonus_advance=model.bonus_advance,
            advance_date=model.advance_date,
            informed_date=model.informed_date,
            bonus_paydate=model.bonus_paydate,
            comments=model.comments,
            payoneer_id=consultant.payoneer_id,
        )


@dataclass(frozen=True)
class BonusWorkflowInfo:
    """Immutable snapshot of a cycle's bonus workflow."""

    id: UUID
    cycle_id: UUID
    bonus_recipient_consultant_id: UUID | None = None
    recipient_source: str | None = None
    bonus_announcement_date: date | None = None
    email_generated: bool = False
    paid_with_payroll: bool = False
    bonus_payment_date: date | None = None
    notes: str | None = None

    @property
    def has_recipient(self) -> bool:
        return self.bonus_recipient_consultant_id is not None

    @classmethod
    def from_model(cls, model: BonusWorkflowModel) -> BonusWorkflowInfo:
        return cls(
            id=model.id,
            cycle_id=model.cycle_id,
            bonus_recipient_consultant_id=model.bonus_recipient_consultant_id,
            recipient_source=model.recipient_source,
            bonus_announcement_date=model.bonus_announcement_date,
            email_generated=model.email_generated,
            paid_with_payroll=model.paid_with_payroll,
            bonus_payment_date=model.bonus_payment_date,
            notes=model.notes,
        )


@dataclass(frozen=True)
class WorkHoursInfo:
    """Configured work hours for one (year, month)."""

    year: int
    month_number: int
    month_name: str
    weekdays: int
    work_hours: Decimal

    @classmethod
    def from_model(cls, model: WorkHoursModel) -> WorkHoursInfo:
        return cls(
            year=model.year,
            month_number=model.month_number,
            month_name=model.month_name,
            weekdays=model.weekdays,
            work_hours=model.work_hours,
        )


@dataclass(frozen=True)
class BonusResolution:
    """
    Outcome of bonus recipient inference.

    ``source`` is "month_match" or "line_item", naming the heuristic that
    selected the consultant.
    """

    consultant_id: UUID
    source: str
