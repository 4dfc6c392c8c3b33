"""
Module: payroll_kernel.selectors.roster_selector
Responsibility: Read-only access to the consultant roster.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - "Active" always means termination_date IS NULL, evaluated against the
      roster as it is now, never as it was when a cycle was created.
    - Results are ordered by name, then id, so snapshot line items and
      heuristic scans see consultants in a stable order.
"""

from uuid import UUID

from sqlalchemy import select

from payroll_kernel.domain.dtos import ConsultantInfo
from payroll_kernel.models.consultant import Consultant
from payroll_kernel.selectors.base import BaseSelector


class RosterSelector(BaseSelector[Consultant]):
    """Queries over consultants."""

    def get(self, consultant_id: UUID) -> ConsultantInfo | None:
        consultant = self.session.get(Consultant, consultant_id)
        if consultant is None:
            return None
        return ConsultantInfo.from_model(consultant)

    def active_consultants(self) -> list[ConsultantInfo]:
        """All consultants without a termination date."""
        stmt = (
            select(Consultant)
            .where(Consultant.termination_date.is_(None))
            .order_by(Consultant.name, Consultant.id)
        )
        return [ConsultantInfo.from_model(c) for c in self.session.scalars(stmt)]

    def all_consultants(self) -> list[ConsultantInfo]:
        stmt = select(Consultant).order_by(Consultant.name, Consultant.id)
        return [ConsultantInfo.from_model(c) for c in self.session.scalars(stmt)]
