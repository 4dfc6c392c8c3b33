"""
Module: payroll_kernel.selectors.cycle_selector
Responsibility: Read-only queries over payroll cycles and their line items.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - "Active" cycles are those with archived_at IS NULL.
    - The carryover chain head is the most recently CREATED active cycle
      (created_at DESC, then creation_seq DESC).  Month labels are free-form
      strings and are never used for ordering.
    - Line items are returned ordered by consultant name, then line id, so
      "first line carrying a bonus date" is deterministic.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import contains_eager

from payroll_kernel.domain.dtos import CycleInfo, LineItemInfo
from payroll_kernel.models.consultant import Consultant
from payroll_kernel.models.payroll_cycle import CycleLineItem, PayrollCycle
from payroll_kernel.selectors.base import BaseSelector


class CycleSelector(BaseSelector[PayrollCycle]):
    """
    Selector for payroll cycle queries.

    Contract:
        All public methods return CycleInfo or LineItemInfo DTOs (or None /
        lists thereof).

    Guarantees:
        - Read-only: No mutations are performed.
        - Archived cycles stay readable by id.

    Non-goals:
        - Does NOT compute totals; see payroll_engines.aggregation.
    """

    def get(self, cycle_id: UUID) -> CycleInfo | None:
        cycle = self.session.get(PayrollCycle, cycle_id)
        if cycle is None:
            return None
        return CycleInfo.from_model(cycle)

    def list_active(self) -> list[CycleInfo]:
        """Non-archived cycles, newest first."""
        stmt = (
            select(PayrollCycle)
            .where(PayrollCycle.archived_at.is_(None))
            .order_by(PayrollCycle.created_at.desc(), PayrollCycle.creation_seq.desc())
        )
        return [CycleInfo.from_model(c) for c in self.session.scalars(stmt)]

    def chain_head(self) -> CycleInfo | None:
        """The most recently created non-archived cycle, if any."""
        stmt = (
            select(PayrollCycle)
            .where(PayrollCycle.archived_at.is_(None))
            .order_by(PayrollCycle.created_at.desc(), PayrollCycle.creation_seq.desc())
            .limit(1)
        )
        cycle = self.session.scalars(stmt).first()
        if cycle is None:
            return None
        return CycleInfo.from_model(cycle)

    def next_creation_seq(self) -> int:
        """One past the highest creation_seq, archived cycles included."""
        stmt = select(func.coalesce(func.max(PayrollCycle.creation_seq), 0))
        return self.session.scalar(stmt) + 1

    def find_active_by_label(self, month_label: str) -> CycleInfo | None:
        """The non-archived cycle using ``month_label``, if any."""
        stmt = select(PayrollCycle).where(
            PayrollCycle.month_label == month_label,
            PayrollCycle.archived_at.is_(None),
        )
        cycle = self.session.scalars(stmt).first()
        if cycle is None:
            return None
        return CycleInfo.from_model(cycle)

    def line_items(self, cycle_id: UUID) -> list[LineItemInfo]:
        """
        All line items of a cycle, including those of since-terminated
        consultants, ordered by consultant name then line id.
        """
        stmt = (
            select(CycleLineItem)
            .join(CycleLineItem.consultant)
            .options(contains_eager(CycleLineItem.consultant))
            .where(CycleLineItem.cycle_id == cycle_id)
            .order_by(Consultant.name, CycleLineItem.id)
        )
        return [LineItemInfo.from_model(line) for line in self.session.scalars(stmt)]
