"""
payroll_services.cycle_engine -- Public facade of the payroll cycle engine.

Responsibility:
    Exposes the cycle lifecycle to callers (HTTP routes, schedulers, CLI
    scripts, tests): create, read, update, summarize, pay, infer or set the
    bonus recipient, prepare bonus figures, archive, and maintain the
    work-hours reference.  Wires kernel services and selectors to the pure
    engines and to the active configuration.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Composes CycleService, LineItemService, BonusWorkflowService and
    WorkHoursService (kernel, flush-only) with CycleAggregator,
    compute_carryover, BonusRecipientResolver and PaymentCalculator
    (payroll_engines, pure).

Invariants enforced:
    - Transaction boundary: each public write operation commits on success
      and rolls back on any exception, so a failed cycle creation leaves no
      cycle and no line items behind.  With ``auto_commit=False`` the
      caller owns the boundary (e.g. ``session_scope()``).
    - Reads that infer a bonus recipient are writes too and follow the
      same boundary.
    - Every operation runs with ``cycle_id`` bound into LogContext.

Failure modes:
    - Typed PayrollEngineError subclasses propagate unchanged after
      rollback.
    - sqlalchemy.exc.* infrastructure errors propagate after rollback.

Usage:
    from payroll_kernel.db import session_scope
    from payroll_services import PayrollCycleEngine

    with session_scope() as session:
        engine = PayrollCycleEngine(session, auto_commit=False)
        cycle = engine.create_cycle("October 2025", global_work_hours="168")
        payment = engine.calculate_payment(cycle.id)
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from payroll_config import PayrollEngineConfig, get_active_config
from payroll_engines.aggregation import CycleAggregator, CycleSummary
from payroll_engines.bonus_announcement import BonusAnnouncement, build_bonus_announcement
from payroll_engines.bonus_recipient import BonusRecipientResolver
from payroll_engines.carryover import compute_carryover
from payroll_engines.payment import PaymentCalculator, PaymentResult
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.dtos import (
    BonusResolution,
    BonusWorkflowInfo,
    CycleInfo,
    LineItemInfo,
    WorkHoursInfo,
)
from payroll_kernel.exceptions import CycleNotFoundError, RecipientRequiredError
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_kernel.selectors.cycle_selector import CycleSelector
from payroll_kernel.selectors.roster_selector import RosterSelector
from payroll_kernel.selectors.work_hours_selector import WorkHoursSelector
from payroll_kernel.services.bonus_workflow_service import BonusWorkflowService
from payroll_kernel.services.cycle_service import CycleService
from payroll_kernel.services.line_item_service import LineItemService
from payroll_kernel.services.work_hours_service import (
    WorkHoursBounds,
    WorkHoursImportResult,
    WorkHoursService,
)

logger = get_logger("services.cycle_engine")


class PayrollCycleEngine:
    """
    Facade over the payroll cycle lifecycle.

    Contract:
        Accepts and returns frozen DTOs; never hands out ORM entities.
        Owns commit/rollback unless constructed with ``auto_commit=False``.

    Guarantees:
        - ``create_cycle`` is all-or-nothing.
        - ``calculate_payment`` never mutates the stored omnigo bonus, even
          with ``no_bonus=True``.
        - Bonus inference is write-once: a stored recipient is returned as
          is.

    Non-goals:
        - No HTTP, authentication, rendering or audit storage.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: PayrollEngineConfig | None = None,
        auto_commit: bool = True,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._auto_commit = auto_commit

        self._cycles = CycleSelector(session)
        self._roster = RosterSelector(session)
        self._work_hours = WorkHoursSelector(session)

        self._cycle_service = CycleService(session, self._clock)
        self._line_item_service = LineItemService(session)
        self._bonus_service = BonusWorkflowService(session, self._clock)
        self._work_hours_service = WorkHoursService(
            session,
            self._clock,
            WorkHoursBounds(
                year_min=self._config.work_hours_year_min,
                year_max=self._config.work_hours_year_max,
                max_work_hours=self._config.max_monthly_work_hours,
            ),
        )

        self._aggregator = CycleAggregator(money_quantum=self._config.money_quantum)
        self._resolver = BonusRecipientResolver(
            bonus_month_offset=self._config.bonus_month_offset
        )
        self._payments = PaymentCalculator(
            payment_month_offset=self._config.payment_month_offset,
            hours_per_weekday=self._config.hours_per_weekday,
            money_quantum=self._config.money_quantum,
        )

    @contextmanager
    def _unit_of_work(self, cycle_id: UUID | None = None) -> Iterator[None]:
        with LogContext.bind(cycle_id=str(cycle_id) if cycle_id else None):
            try:
                yield
                if self._auto_commit:
                    self._session.commit()
            except Exception:
                if self._auto_commit:
                    self._session.rollback()
                raise

    # =========================================================================
    # Cycles
    # =========================================================================

    def create_cycle(
        self,
        month_label: str,
        *,
        global_work_hours: Decimal | int | str | None = None,
        omnigo_bonus: Decimal | int | str | None = None,
        invoice_bonus: Decimal | int | str | None = None,
    ) -> CycleInfo:
        """
        Create a cycle with a line item per active consultant and the
        carryover chained from the most recently created active cycle.

        Raises:
            DuplicateCycleError: An active cycle already uses the label.
            EmptyRosterError: No active consultants.
            NonFiniteValueError: A seed value is NaN or infinite.
        """
        with self._unit_of_work():
            return self._cycle_service.create_cycle(
                month_label,
                chain_carryover=lambda head: compute_carryover(predecessor=head),
                global_work_hours=global_work_hours,
                omnigo_bonus=omnigo_bonus,
                invoice_bonus=invoice_bonus,
            )

    def get_cycle(self, cycle_id: UUID) -> CycleInfo:
        """Any cycle by id, archived or not."""
        cycle = self._cycles.get(cycle_id)
        if cycle is None:
            raise CycleNotFoundError(str(cycle_id))
        return cycle

    def list_active_cycles(self) -> list[CycleInfo]:
        """Non-archived cycles, most recently created first."""
        return self._cycles.list_active()

    def get_line_items(self, cycle_id: UUID) -> list[LineItemInfo]:
        """All line items of a cycle, including terminated consultants'."""
        self.get_cycle(cycle_id)
        return self._cycles.line_items(cycle_id)

    def update_cycle(self, cycle_id: UUID, **fields: Any) -> CycleInfo:
        """
        Apply explicit field edits.

        Raises:
            ArchivedCycleError, DuplicateCycleError, UnknownFieldError,
            NonFiniteValueError.
        """
        with self._unit_of_work(cycle_id):
            return self._cycle_service.update_cycle(cycle_id, fields)

    def archive_cycle(self, cycle_id: UUID) -> CycleInfo:
        """
        Archive a cycle once.

        Raises:
            AlreadyArchivedError: The cycle is already archived.
        """
        with self._unit_of_work(cycle_id):
            return self._cycle_service.archive_cycle(cycle_id)

    def get_cycle_summary(self, cycle_id: UUID) -> CycleSummary:
        """Totals and advisory anomalies for a cycle."""
        cycle = self.get_cycle(cycle_id)
        with LogContext.bind(cycle_id=str(cycle_id)):
            return self._aggregator.summarize(
                cycle=cycle, lines=self._cycles.line_items(cycle_id)
            )

    def update_line_item(self, line_item_id: UUID, **fields: Any) -> LineItemInfo:
        """
        Edit one line item.  ``rate_per_hour`` is not editable.

        Raises:
            LineItemNotFoundError, ArchivedCycleError, UnknownFieldError,
            NonFiniteValueError.
        """
        with self._unit_of_work():
            return self._line_item_service.update_line_item(line_item_id, fields)

    # =========================================================================
    # Payment
    # =========================================================================

    def calculate_payment(self, cycle_id: UUID, *, no_bonus: bool = False) -> PaymentResult:
        """
        Compute the payment instruction for the month after the cycle and
        stamp ``calculated_payment_date``.

        Raises:
            CycleNotFoundError: Unknown cycle.
            InvalidMonthLabelError: Label is not "<MonthName> <YYYY>".
        """
        with self._unit_of_work(cycle_id):
            summary = self.get_cycle_summary(cycle_id)
            payment_month = self._payments.payment_month(summary.cycle.month_label)
            reference = self._work_hours.get(payment_month.year, payment_month.month)

            calculated_at = self._clock.now()
            stamped = self._cycle_service.stamp_payment_calculated(cycle_id, calculated_at)

            result = self._payments.calculate(
                summary=summary,
                reference=reference,
                calculated_at=calculated_at,
                no_bonus=no_bonus,
            )

            logger.info(
                "payment_calculated",
                extra={
                    "month_label": result.month_label,
                    "payment_month": result.payment_month.label,
                    "work_hours_source": result.work_hours_source,
                    "payment_work_hours": result.payment_work_hours,
                    "total_transfer_amount": result.total_transfer_amount,
                    "no_bonus": no_bonus,
                    "stamped": stamped,
                },
            )
            return result

    # =========================================================================
    # Bonus
    # =========================================================================

    def _infer_recipient(self, cycle_id: UUID) -> BonusResolution | None:
        return self._resolver.resolve(
            cycle=self.get_cycle(cycle_id),
            roster=self._roster.active_consultants(),
            lines=self._cycles.line_items(cycle_id),
        )

    def get_or_infer_bonus_recipient(self, cycle_id: UUID) -> BonusWorkflowInfo:
        """
        The cycle's bonus workflow, created and auto-filled on first use.

        Raises:
            CycleNotFoundError: Unknown cycle.
            InvalidMonthLabelError: Inference needed but the label holds no
                readable month.
        """
        with self._unit_of_work(cycle_id):
            return self._bonus_service.get_or_infer(
                cycle_id, lambda: self._infer_recipient(cycle_id)
            )

    def set_bonus_recipient(self, cycle_id: UUID, consultant_id: UUID) -> BonusWorkflowInfo:
        """
        Explicitly choose the recipient; other lines lose their bonus dates
        when the recipient changes.

        Raises:
            ConsultantNotFoundError, RecipientNotInCycleError,
            ArchivedCycleError.
        """
        with self._unit_of_work(cycle_id):
            return self._bonus_service.set_recipient(cycle_id, consultant_id)

    def update_bonus_workflow(self, cycle_id: UUID, **fields: Any) -> BonusWorkflowInfo:
        """Edit announcement/payment dates, flags and notes."""
        with self._unit_of_work(cycle_id):
            return self._bonus_service.update_workflow(cycle_id, fields)

    def prepare_bonus_announcement(self, cycle_id: UUID) -> BonusAnnouncement:
        """
        Gross, advance and net bonus figures for the cycle's recipient.

        Raises:
            RecipientRequiredError: No recipient stored or inferable.
            BonusAmountNotSetError: The cycle's bonus is unset or <= 0.
        """
        workflow = self.get_or_infer_bonus_recipient(cycle_id)
        if workflow.bonus_recipient_consultant_id is None:
            raise RecipientRequiredError(str(cycle_id))

        recipient_id = workflow.bonus_recipient_consultant_id
        recipient_line = next(
            (
                line
                for line in self._cycles.line_items(cycle_id)
                if line.consultant_id == recipient_id
            ),
            None,
        )
        return build_bonus_announcement(
            cycle=self.get_cycle(cycle_id),
            workflow=workflow,
            recipient=self._roster.get(recipient_id),
            recipient_line=recipient_line,
            today=self._clock.now().date(),
            money_quantum=self._config.money_quantum,
        )

    # =========================================================================
    # Work hours reference
    # =========================================================================

    def import_work_hours(
        self,
        payload: str | Mapping[str, Any] | list[Any],
    ) -> WorkHoursImportResult:
        """
        Validate and upsert one or more years of work hours.

        Raises:
            WorkHoursImportError: Payload malformed or out of bounds; nothing
                is written.
        """
        with self._unit_of_work():
            return self._work_hours_service.import_payload(payload)

    def list_work_hours(self, year: int) -> list[WorkHoursInfo]:
        """Configured months of ``year``, January first."""
        return self._work_hours.for_year(year)

    def get_suggested_work_hours(self, month_label: str) -> Decimal | None:
        """Reference hours for the month a label names, if configured."""
        return self._work_hours_service.suggested_hours(month_label)
