"""
Module: payroll_kernel.models.work_hours
Responsibility: ORM persistence for the monthly work-hours reference table,
    keyed by (year, month_number).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one row per (year, month_number) (uq_work_hours_year_month).
    - month_number is 1-12 (ck_work_hours_month_number).
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TimestampedBase


class WorkHoursReference(TimestampedBase):
    """
    Configured billable hours for one calendar month.

    Contract:
        Rows are upserted by the work-hours import; the payment calculator
        only reads them.  A missing or non-positive row is not an error --
        callers fall back to weekday_count x hours_per_weekday.
    """

    __tablename__ = "monthly_work_hours"

    __table_args__ = (
        UniqueConstraint("year", "month_number", name="uq_work_hours_year_month"),
        CheckConstraint(
            "month_number >= 1 AND month_number <= 12",
            name="ck_work_hours_month_number",
        ),
    )

    year: Mapped[int] = mapped_column(Integer, nullable=False)

    month_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # "January", "February", ...
    month_name: Mapped[str] = mapped_column(String(20), nullable=False)

    weekdays: Mapped[int] = mapped_column(Integer, nullable=False)

    work_hours: Mapped[Decimal] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<WorkHoursReference {self.year}-{self.month_number:02d}: {self.work_hours}h>"
