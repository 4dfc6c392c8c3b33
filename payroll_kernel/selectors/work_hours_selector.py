"""
Module: payroll_kernel.selectors.work_hours_selector
Responsibility: Read-only lookups against the monthly work-hours reference.
Architecture position: Kernel > Selectors.

Failure modes:
    - ``get`` returns None when no row exists.  Absence is not an error: the
      payment calculator falls back to a weekday count.
"""

from sqlalchemy import select

from payroll_kernel.domain.dtos import WorkHoursInfo
from payroll_kernel.models.work_hours import WorkHoursReference
from payroll_kernel.selectors.base import BaseSelector


class WorkHoursSelector(BaseSelector[WorkHoursReference]):
    """Queries over configured work hours."""

    def get(self, year: int, month_number: int) -> WorkHoursInfo | None:
        """Reference row for (year, month_number), or None."""
        row = self.session.scalars(
            select(WorkHoursReference).where(
                WorkHoursReference.year == year,
                WorkHoursReference.month_number == month_number,
            )
        ).one_or_none()
        if row is None:
            return None
        return WorkHoursInfo.from_model(row)

    def for_year(self, year: int) -> list[WorkHoursInfo]:
        """All reference rows of one year, January first."""
        rows = self.session.scalars(
            select(WorkHoursReference)
            .where(WorkHoursReference.year == year)
            .order_by(WorkHoursReference.month_number)
        )
        return [WorkHoursInfo.from_model(row) for row in rows]
