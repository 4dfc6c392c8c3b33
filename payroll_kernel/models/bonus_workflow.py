"""
Module: payroll_kernel.models.bonus_workflow
Responsibility: ORM persistence for the per-cycle annual bonus workflow.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one workflow per cycle (uq_bonus_workflow_cycle).  Concurrent
      lazy creators collide on this constraint; the loser re-reads.
    - bonus_recipient_consultant_id is write-once for inference: the resolver
      only fills it while it is NULL.  Explicit changes go through
      BonusWorkflowService.set_recipient.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TimestampedBase, UUIDString


class BonusWorkflow(TimestampedBase):
    """Annual bonus bookkeeping attached to one payroll cycle."""

    __tablename__ = "bonus_workflows"

    __table_args__ = (
        UniqueConstraint("cycle_id", name="uq_bonus_workflow_cycle"),
    )

    cycle_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("payroll_cycles.id"), nullable=False
    )

    bonus_recipient_consultant_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("consultants.id"), nullable=True
    )

    # How the recipient was chosen: "month_match", "line_item" or "explicit"
    recipient_source: Mapped[str | None] = mapped_column(String(20), nullable=True)

    bonus_announcement_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    email_generated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    paid_with_payroll: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    bonus_payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<BonusWorkflow cycle={self.cycle_id} recipient={self.bonus_recipient_consultant_id}>"
