"""
RosterService -- consultant roster maintenance.

Responsibility:
    Adds consultants, changes their live hourly rate and bonus settings, and
    terminates them.  The cycle engine only reads the roster; this service
    exists for the import scripts and for tests that need to move the
    roster underneath existing cycles.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.

Invariants enforced:
    - Changing a consultant's rate never touches existing line items: their
      ``rate_per_hour`` is a snapshot taken at cycle creation.
    - bonus_month is None or 1-12.

Failure modes:
    - ConsultantNotFoundError for an unknown consultant id.
    - NonFiniteValueError for NaN/Infinity rates or bonuses.
    - ValueError for an out-of-range bonus month or a blank name.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from payroll_kernel.domain.amounts import to_decimal
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.dtos import ConsultantInfo
from payroll_kernel.exceptions import ConsultantNotFoundError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.consultant import Consultant
from payroll_kernel.services.base import BaseService

logger = get_logger("services.roster")


def _check_bonus_month(bonus_month: int | None) -> None:
    if bonus_month is not None and not 1 <= bonus_month <= 12:
        raise ValueError(f"bonus_month must be 1-12, got {bonus_month}")


class RosterService(BaseService[Consultant]):
    """
    Write access to the consultant roster.

    Non-goals:
        - Does NOT propagate roster changes into existing cycles.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def _load(self, consultant_id: UUID) -> Consultant:
        consultant = self.session.get(Consultant, consultant_id)
        if consultant is None:
            raise ConsultantNotFoundError(str(consultant_id))
        return consultant

    def add_consultant(
        self,
        name: str,
        hourly_rate: Decimal | int | str,
        yearly_bonus: Decimal | int | str | None = None,
        bonus_month: int | None = None,
        payoneer_id: str | None = None,
        start_date: date | None = None,
    ) -> ConsultantInfo:
        if not name or not name.strip():
            raise ValueError("Consultant name must not be blank")
        _check_bonus_month(bonus_month)

        now = self._clock.now()
        consultant = Consultant(
            name=name.strip(),
            hourly_rate=to_decimal("hourly_rate", hourly_rate),
            yearly_bonus=to_decimal("yearly_bonus", yearly_bonus),
            bonus_month=bonus_month,
            payoneer_id=payoneer_id,
            start_date=start_date,
            created_at=now,
            updated_at=now,
        )
        self.session.add(consultant)
        self.session.flush()

        logger.info(
            "consultant_added",
            extra={"consultant_id": str(consultant.id), "consultant_name": consultant.name},
        )
        return ConsultantInfo.from_model(consultant)

    def change_rate(self, consultant_id: UUID, hourly_rate: Decimal | int | str) -> ConsultantInfo:
        """Update the live rate.  Existing cycles keep their snapshot."""
        consultant = self._load(consultant_id)
        previous = consultant.hourly_rate
        consultant.hourly_rate = to_decimal("hourly_rate", hourly_rate)
        self.session.flush()

        logger.info(
            "consultant_rate_changed",
            extra={
                "consultant_id": str(consultant_id),
                "previous_rate": previous,
                "new_rate": consultant.hourly_rate,
            },
        )
        return ConsultantInfo.from_model(consultant)

    def set_bonus_terms(
        self,
        consultant_id: UUID,
        yearly_bonus: Decimal | int | str | None,
        bonus_month: int | None,
    ) -> ConsultantInfo:
        _check_bonus_month(bonus_month)
        consultant = self._load(consultant_id)
        consultant.yearly_bonus = to_decimal("yearly_bonus", yearly_bonus)
        consultant.bonus_month = bonus_month
        self.session.flush()
        return ConsultantInfo.from_model(consultant)

    def terminate(self, consultant_id: UUID, termination_date: date) -> ConsultantInfo:
        """
        Take the consultant off the active roster.  Their line items in
        existing cycles are kept but drop out of totals and payments.
        """
        consultant = self._load(consultant_id)
        consultant.termination_date = termination_date
        self.session.flush()

        logger.info(
            "consultant_terminated",
            extra={
                "consultant_id": str(consultant_id),
                "termination_date": str(termination_date),
            },
        )
        return ConsultantInfo.from_model(consultant)
