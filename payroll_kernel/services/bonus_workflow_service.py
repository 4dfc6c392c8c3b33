"""
BonusWorkflowService -- per-cycle bonus bookkeeping and recipient writes.

Responsibility:
    Lazily creates a cycle's BonusWorkflow, persists an inferred bonus
    recipient exactly once, records explicit recipient choices, and applies
    edits to the workflow's dates and flags.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.
    Recipient inference itself is a pure function supplied by the caller
    (PayrollCycleEngine passes a closure over payroll_engines'
    BonusRecipientResolver).

Invariants enforced:
    - At most one workflow per cycle.  A lost creation race is absorbed in a
      SAVEPOINT and the winner's row is re-read.
    - Inference never overwrites a stored recipient.  The write-back
      re-reads the row FOR UPDATE and issues
      ``UPDATE ... WHERE bonus_recipient_consultant_id IS NULL``, so an
      explicit choice committed by a concurrent caller wins.
    - An explicit change of recipient clears bonus dates on every other
      line item of the cycle in the same transaction.

Failure modes:
    - CycleNotFoundError / ConsultantNotFoundError: unknown ids.
    - RecipientNotInCycleError: the chosen consultant has no line item in
      the cycle.
    - ArchivedCycleError: explicit recipient change on an archived cycle.
    - UnknownFieldError: invalid workflow update payload.
"""

from collections.abc import Callable, Mapping
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.dtos import BonusResolution, BonusWorkflowInfo
from payroll_kernel.exceptions import (
    ArchivedCycleError,
    ConsultantNotFoundError,
    CycleNotFoundError,
    RecipientNotInCycleError,
)
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.bonus_workflow import BonusWorkflow
from payroll_kernel.models.consultant import Consultant
from payroll_kernel.models.payroll_cycle import CycleLineItem, PayrollCycle
from payroll_kernel.services.base import BaseService
from payroll_kernel.services.field_updates import EditableFields, apply_field_updates
from payroll_kernel.services.line_item_service import LineItemService

logger = get_logger("services.bonus_workflow")

SOURCE_EXPLICIT = "explicit"

BONUS_WORKFLOW_FIELDS = EditableFields(
    entity="BonusWorkflow",
    dates=frozenset({"bonus_announcement_date", "bonus_payment_date"}),
    booleans=frozenset({"email_generated", "paid_with_payroll"}),
    texts=frozenset({"notes"}),
)

RecipientInference = Callable[[], BonusResolution | None]


class BonusWorkflowService(BaseService[BonusWorkflow]):
    """
    Service for bonus workflows.

    Contract:
        ``get_or_infer`` always returns a workflow for an existing cycle,
        creating it if needed.  ``infer`` is only called when no recipient
        is stored.

    Guarantees:
        - A stored recipient is only ever replaced by ``set_recipient``.
        - ``recipient_source`` records how the current recipient was chosen.

    Non-goals:
        - Does NOT decide who the recipient is; the inference is injected.
        - Does NOT call ``session.commit()``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._line_items = LineItemService(session)

    def _load_cycle(self, cycle_id: UUID) -> PayrollCycle:
        cycle = self.session.get(PayrollCycle, cycle_id)
        if cycle is None:
            raise CycleNotFoundError(str(cycle_id))
        return cycle

    def _find(self, cycle_id: UUID, for_update: bool = False) -> BonusWorkflow | None:
        stmt = select(BonusWorkflow).where(BonusWorkflow.cycle_id == cycle_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.scalars(stmt).one_or_none()

    def _insert(
        self,
        cycle_id: UUID,
        recipient_id: UUID | None,
        source: str | None,
    ) -> BonusWorkflow | None:
        """
        Insert a workflow inside a SAVEPOINT.  Returns None when another
        transaction created the cycle's workflow first.
        """
        now = self._clock.now()
        workflow = BonusWorkflow(
            cycle_id=cycle_id,
            bonus_recipient_consultant_id=recipient_id,
            recipient_source=source,
            email_generated=False,
            paid_with_payroll=False,
            created_at=now,
            updated_at=now,
        )
        try:
            with self.session.begin_nested():
                self.session.add(workflow)
                self.session.flush()
        except IntegrityError:
            logger.info("bonus_workflow_insert_raced", extra={"cycle_id": str(cycle_id)})
            return None

        logger.info(
            "bonus_workflow_created",
            extra={
                "cycle_id": str(cycle_id),
                "bonus_recipient_consultant_id": str(recipient_id) if recipient_id else None,
                "recipient_source": source,
            },
        )
        return workflow

    def get_or_infer(self, cycle_id: UUID, infer: RecipientInference) -> BonusWorkflowInfo:
        """
        Return the cycle's workflow, filling in an inferred recipient when
        none is stored.

        Args:
            cycle_id: Cycle whose workflow is requested.
            infer: Runs the recipient heuristics; None means no candidate.

        Raises:
            CycleNotFoundError: Unknown cycle.
            InvalidMonthLabelError: Propagated from ``infer``.
        """
        self._load_cycle(cycle_id)

        workflow = self._find(cycle_id)
        if workflow is not None and workflow.bonus_recipient_consultant_id is not None:
            return BonusWorkflowInfo.from_model(workflow)

        resolution = infer()

        if workflow is None:
            created = self._insert(
                cycle_id,
                resolution.consultant_id if resolution else None,
                resolution.source if resolution else None,
            )
            if created is not None:
                if resolution is not None:
                    self._log_inferred(cycle_id, resolution)
                return BonusWorkflowInfo.from_model(created)
            workflow = self._find(cycle_id)

        if resolution is None:
            return BonusWorkflowInfo.from_model(workflow)

        return self._write_inferred(workflow.id, cycle_id, resolution)

    def _write_inferred(
        self,
        workflow_id: UUID,
        cycle_id: UUID,
        resolution: BonusResolution,
    ) -> BonusWorkflowInfo:
        locked = self.session.get(
            BonusWorkflow, workflow_id, with_for_update=True, populate_existing=True
        )
        if locked.bonus_recipient_consultant_id is not None:
            logger.info(
                "bonus_recipient_inference_skipped",
                extra={
                    "cycle_id": str(cycle_id),
                    "stored_recipient_id": str(locked.bonus_recipient_consultant_id),
                },
            )
            return BonusWorkflowInfo.from_model(locked)

        result = self.session.execute(
            update(BonusWorkflow)
            .where(
                BonusWorkflow.id == workflow_id,
                BonusWorkflow.bonus_recipient_consultant_id.is_(None),
            )
            .values(
                bonus_recipient_consultant_id=resolution.consultant_id,
                recipient_source=resolution.source,
                updated_at=self._clock.now(),
            )
            .execution_options(synchronize_session=False)
        )
        self.session.refresh(locked)
        if result.rowcount:
            self._log_inferred(cycle_id, resolution)
        return BonusWorkflowInfo.from_model(locked)

    def _log_inferred(self, cycle_id: UUID, resolution: BonusResolution) -> None:
        logger.info(
            "bonus_recipient_inferred",
            extra={
                "cycle_id": str(cycle_id),
                "bonus_recipient_consultant_id": str(resolution.consultant_id),
                "recipient_source": resolution.source,
            },
        )

    def set_recipient(self, cycle_id: UUID, consultant_id: UUID) -> BonusWorkflowInfo:
        """
        Explicitly choose the bonus recipient, bypassing inference.

        When the recipient changes (including from unset), bonus dates on
        every other line item of the cycle are cleared.

        Raises:
            CycleNotFoundError: Unknown cycle.
            ConsultantNotFoundError: Unknown consultant.
            RecipientNotInCycleError: Consultant has no line in this cycle.
            ArchivedCycleError: The cycle is archived.
        """
        cycle = self._load_cycle(cycle_id)
        if cycle.is_archived:
            raise ArchivedCycleError(str(cycle_id), "change the bonus recipient")
        if self.session.get(Consultant, consultant_id) is None:
            raise ConsultantNotFoundError(str(consultant_id))

        has_line = self.session.scalars(
            select(CycleLineItem.id).where(
                CycleLineItem.cycle_id == cycle_id,
                CycleLineItem.consultant_id == consultant_id,
            )
        ).first()
        if has_line is None:
            logger.warning(
                "bonus_recipient_rejected",
                extra={"cycle_id": str(cycle_id), "consultant_id": str(consultant_id)},
            )
            raise RecipientNotInCycleError(str(cycle_id), str(consultant_id))

        workflow = self._find(cycle_id, for_update=True)
        if workflow is None:
            workflow = self._insert(cycle_id, None, None) or self._find(cycle_id, for_update=True)

        previous = workflow.bonus_recipient_consultant_id
        workflow.bonus_recipient_consultant_id = consultant_id
        workflow.recipient_source = SOURCE_EXPLICIT
        self.session.flush()

        cleared: list[UUID] = []
        if previous != consultant_id:
            cleared = self._line_items.clear_bonus_dates_for_others(cycle_id, consultant_id)

        logger.info(
            "bonus_recipient_set",
            extra={
                "cycle_id": str(cycle_id),
                "bonus_recipient_consultant_id": str(consultant_id),
                "previous_recipient_id": str(previous) if previous else None,
                "cleared_line_count": len(cleared),
            },
        )
        return BonusWorkflowInfo.from_model(workflow)

    def update_workflow(self, cycle_id: UUID, fields: Mapping[str, Any]) -> BonusWorkflowInfo:
        """
        Edit announcement/payment dates, flags and notes.  A missing
        workflow is created empty; the recipient is changed only through
        ``set_recipient``.
        """
        workflow = self._find(cycle_id)
        if workflow is None:
            self._load_cycle(cycle_id)
            workflow = self._insert(cycle_id, None, None) or self._find(cycle_id)

        changed = apply_field_updates(workflow, fields, BONUS_WORKFLOW_FIELDS)
        self.session.flush()

        if changed:
            logger.info(
                "bonus_workflow_updated",
                extra={"cycle_id": str(cycle_id), "changed_fields": sorted(changed)},
            )
        return BonusWorkflowInfo.from_model(workflow)
