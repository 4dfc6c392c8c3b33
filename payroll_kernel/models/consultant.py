"""
Module: payroll_kernel.models.consultant
Responsibility: ORM persistence for the consultant roster -- the reference
    data every payroll cycle snapshots at creation time.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Active <=> termination_date IS NULL.
    - bonus_month, when set, is a calendar month 1-12 (ck_consultant_bonus_month).
    - hourly_rate is live, mutable reference data.  Line items copy it on
      cycle creation and never read it back.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TimestampedBase


class Consultant(TimestampedBase):
    """
    A billable consultant on the roster.

    Contract:
        The engine only reads consultants: cycle creation snapshots
        ``hourly_rate`` and ``yearly_bonus``; the bonus resolver matches on
        ``bonus_month``; the aggregator excludes terminated consultants.

    Guarantees:
        - ``name`` is unique (uq_consultant_name).
        - ``bonus_month`` is NULL or within 1-12.
    """

    __tablename__ = "consultants"

    __table_args__ = (
        UniqueConstraint("name", name="uq_consultant_name"),
        CheckConstraint(
            "bonus_month IS NULL OR (bonus_month >= 1 AND bonus_month <= 12)",
            name="ck_consultant_bonus_month",
        ),
        Index("idx_consultant_termination", "termination_date"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    hourly_rate: Mapped[Decimal] = mapped_column(nullable=False)

    # Pre-fill default for a line item's bonus advance
    yearly_bonus: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Calendar month (1-12) in which the yearly bonus is paid
    bonus_month: Mapped[int | None] = mapped_column(Integer, nullable=True)

    payoneer_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return f"<Consultant {self.name}: {self.hourly_rate}/h>"

    @property
    def is_active(self) -> bool:
        """Check if the consultant is still on the active roster."""
        return self.termination_date is None
