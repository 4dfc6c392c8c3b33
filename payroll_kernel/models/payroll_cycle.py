"""
Module: payroll_kernel.models.payroll_cycle
Responsibility: ORM persistence for payroll cycles and their per-consultant
    line items.
Architecture position: Kernel > Models.  May import from db/base.py and
    sibling models only.

Invariants enforced:
    - At most one NON-ARCHIVED cycle per month_label.  Enforced by the partial
      unique index uq_payroll_cycle_active_label (``WHERE archived_at IS NULL``)
      so that concurrent creators are serialised by the database, not by
      application locks.  Archived cycles may share a label with a later
      active cycle.
    - creation_seq is assigned max + 1 at insert and never rewritten; it
      orders cycles created within the same clock reading.
    - One line item per (cycle, consultant) (uq_line_item_cycle_consultant).
    - CycleLineItem.rate_per_hour is a plain scalar copied at creation.  No
      code path writes it afterwards.

Failure modes:
    - IntegrityError on a duplicate active label; CycleService translates it
      into DuplicateCycleError.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import TimestampedBase, UUIDString
from payroll_kernel.models.consultant import Consultant


class PayrollCycle(TimestampedBase):
    """
    One month's payroll preparation period.

    Contract:
        Created with a full set of line items in one transaction.  Mutated
        only via explicit field updates.  ``archived_at`` is set at most
        once; afterwards the cycle is read-only, including its carryover
        and applied balance values.
    """

    __tablename__ = "payroll_cycles"

    __table_args__ = (
        Index(
            "uq_payroll_cycle_active_label",
            "month_label",
            unique=True,
            postgresql_where=text("archived_at IS NULL"),
            sqlite_where=text("archived_at IS NULL"),
        ),
        Index("idx_payroll_cycle_created", "created_at", "creation_seq"),
    )

    # Canonical form "<MonthName> <YYYY>", but free-form labels are allowed
    month_label: Mapped[str] = mapped_column(String(100), nullable=False)

    # Monotonic insert order across all cycles, archived included.  Breaks
    # created_at ties when the clock does not advance between creations.
    creation_seq: Mapped[int] = mapped_column(Integer, nullable=False)

    # Default hours applied to a line item unless overridden
    global_work_hours: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Cycle-level adjustments
    omnigo_bonus: Mapped[Decimal | None] = mapped_column(nullable=True)
    equipments_usd: Mapped[Decimal | None] = mapped_column(nullable=True)
    pagamento_pix: Mapped[Decimal | None] = mapped_column(nullable=True)
    pagamento_inter: Mapped[Decimal | None] = mapped_column(nullable=True)
    invoice_bonus: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Rolling balance: opening value inherited from the predecessor, and the
    # amount consumed by this cycle
    payoneer_balance_carryover: Mapped[Decimal | None] = mapped_column(nullable=True)
    payoneer_balance_applied: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Workflow dates
    calculated_payment_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    payment_arrival_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    send_receipt_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    send_invoice_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    consultants_paid_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    line_items: Mapped[list["CycleLineItem"]] = relationship(
        back_populates="cycle",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        state = "archived" if self.is_archived else "active"
        return f"<PayrollCycle {self.month_label}: {state}>"

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None


class CycleLineItem(TimestampedBase):
    """
    Per-consultant record within a cycle.

    Contract:
        ``rate_per_hour`` and the initial ``bonus_advance`` are snapshots of
        the consultant at cycle creation.  Line items are never created or
        deleted after their cycle is created.
    """

    __tablename__ = "cycle_line_items"

    __table_args__ = (
        UniqueConstraint("cycle_id", "consultant_id", name="uq_line_item_cycle_consultant"),
        Index("idx_line_item_cycle", "cycle_id"),
    )

    cycle_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("payroll_cycles.id"), nullable=False
    )
    consultant_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("consultants.id"), nullable=False
    )

    rate_per_hour: Mapped[Decimal] = mapped_column(nullable=False)

    # Override for cycle.global_work_hours
    work_hours: Mapped[Decimal | None] = mapped_column(nullable=True)

    adjustment_value: Mapped[Decimal | None] = mapped_column(nullable=True)
    bonus_advance: Mapped[Decimal | None] = mapped_column(nullable=True)
    advance_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    informed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    bonus_paydate: Mapped[date | None] = mapped_column(Date, nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    cycle: Mapped[PayrollCycle] = relationship(back_populates="line_items")
    consultant: Mapped[Consultant] = relationship()

    def __repr__(self) -> str:
        return f"<CycleLineItem cycle={self.cycle_id} consultant={self.consultant_id}>"
