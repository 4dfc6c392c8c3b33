"""
CycleService -- payroll cycle creation, field updates and archival.

Responsibility:
    Builds a new cycle together with its line-item snapshot, applies
    explicit field edits to active cycles, and performs the one-way archive
    transition.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by PayrollCycleEngine, which supplies the carryover chaining rule
    (a pure function from payroll_engines) and owns the transaction.

Invariants enforced:
    - At most one non-archived cycle per month label.  A pre-check gives a
      friendly error; the partial unique index settles races.  The insert
      runs in a SAVEPOINT so a lost race surfaces as DuplicateCycleError
      instead of a poisoned session.
    - Snapshot: each line item copies ``hourly_rate`` into
      ``rate_per_hour`` and ``yearly_bonus`` into ``bonus_advance``.  No
      code path writes ``rate_per_hour`` afterwards.
    - A cycle is never created without line items.
    - Flush-only: never commits or rolls back the session.
    - Archived cycles reject every edit.

Failure modes:
    - DuplicateCycleError: create or rename collides with an active label.
    - EmptyRosterError: no active consultants.
    - CycleNotFoundError: unknown cycle id.
    - AlreadyArchivedError: archive requested twice.
    - ArchivedCycleError: edit requested on an archived cycle.
    - UnknownFieldError / NonFiniteValueError: invalid update payload.
"""

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from payroll_kernel.domain.amounts import to_decimal
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.dtos import CycleInfo
from payroll_kernel.domain.month_labels import normalize_month_label
from payroll_kernel.exceptions import (
    AlreadyArchivedError,
    ArchivedCycleError,
    CycleNotFoundError,
    DuplicateCycleError,
    EmptyRosterError,
    InvalidMonthLabelError,
)
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.payroll_cycle import CycleLineItem, PayrollCycle
from payroll_kernel.selectors.cycle_selector import CycleSelector
from payroll_kernel.selectors.roster_selector import RosterSelector
from payroll_kernel.services.base import BaseService
from payroll_kernel.services.field_updates import EditableFields, apply_field_updates

logger = get_logger("services.cycle")

CYCLE_FIELDS = EditableFields(
    entity="PayrollCycle",
    decimals=frozenset({
        "global_work_hours",
        "omnigo_bonus",
        "equipments_usd",
        "pagamento_pix",
        "pagamento_inter",
        "invoice_bonus",
        "payoneer_balance_carryover",
        "payoneer_balance_applied",
    }),
    dates=frozenset({
        "payment_arrival_date",
        "send_receipt_date",
        "send_invoice_date",
        "consultants_paid_date",
    }),
    datetimes=frozenset({"calculated_payment_date"}),
)

CarryoverRule = Callable[[CycleInfo | None], Decimal | None]


class CycleService(BaseService[PayrollCycle]):
    """
    Service for the payroll cycle lifecycle.

    Contract:
        ``create_cycle`` writes one cycle plus one line item per active
        consultant and returns a CycleInfo.  ``update_cycle`` and
        ``archive_cycle`` load the row, validate, mutate and flush.

    Guarantees:
        - Either the cycle and all of its line items are flushed, or an
          exception is raised and the caller's rollback discards the rest.
        - ``created_at`` and ``archived_at`` come from the injected Clock.
        - ``creation_seq`` is one past the highest existing value, so the
          chain head stays the later insert when two creations share a
          clock reading.

    Non-goals:
        - Does NOT compute the carryover itself; the rule is passed in.
        - Does NOT call ``session.commit()``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._cycles = CycleSelector(session)
        self._roster = RosterSelector(session)

    def _load(self, cycle_id: UUID, for_update: bool = False) -> PayrollCycle:
        if for_update:
            cycle = self.session.get(
                PayrollCycle, cycle_id, with_for_update=True, populate_existing=True
            )
        else:
            cycle = self.session.get(PayrollCycle, cycle_id)
        if cycle is None:
            raise CycleNotFoundError(str(cycle_id))
        return cycle

    @contextmanager
    def _label_guard(self, month_label: str) -> Iterator[None]:
        """Run the enclosed writes in a SAVEPOINT and flush them there."""
        try:
            with self.session.begin_nested():
                yield
                self.session.flush()
        except IntegrityError as e:
            logger.warning(
                "cycle_label_conflict",
                extra={"month_label": month_label, "source": "unique_index"},
            )
            raise DuplicateCycleError(month_label) from e

    def _ensure_label_free(self, month_label: str, exclude_id: UUID | None = None) -> None:
        existing = self._cycles.find_active_by_label(month_label)
        if existing is not None and existing.id != exclude_id:
            logger.warning(
                "cycle_label_conflict",
                extra={
                    "month_label": month_label,
                    "existing_cycle_id": str(existing.id),
                    "source": "precheck",
                },
            )
            raise DuplicateCycleError(month_label, str(existing.id))

    def create_cycle(
        self,
        month_label: str,
        *,
        chain_carryover: CarryoverRule,
        global_work_hours: Decimal | int | str | None = None,
        omnigo_bonus: Decimal | int | str | None = None,
        invoice_bonus: Decimal | int | str | None = None,
    ) -> CycleInfo:
        """
        Create a cycle and snapshot the active roster into line items.

        Args:
            month_label: Cycle label; canonical labels are re-cased.
            chain_carryover: Maps the current chain head (or None) to the
                new cycle's opening carryover.
            global_work_hours: Default hours for every line item.
            omnigo_bonus: Client bonus seed.
            invoice_bonus: Invoice bonus seed.

        Returns:
            The created cycle.

        Raises:
            DuplicateCycleError: An active cycle already uses the label.
            EmptyRosterError: No active consultants.
            NonFiniteValueError: A seed value is NaN or infinite.
        """
        label = normalize_month_label(month_label or "")
        if not label:
            raise InvalidMonthLabelError(month_label, expected="a non-empty label")

        seed_hours = to_decimal("global_work_hours", global_work_hours)
        seed_omnigo = to_decimal("omnigo_bonus", omnigo_bonus)
        seed_invoice = to_decimal("invoice_bonus", invoice_bonus)

        self._ensure_label_free(label)

        roster = self._roster.active_consultants()
        if not roster:
            logger.warning("cycle_create_rejected_empty_roster", extra={"month_label": label})
            raise EmptyRosterError(label)

        predecessor = self._cycles.chain_head()
        carryover = chain_carryover(predecessor)

        now = self._clock.now()
        cycle = PayrollCycle(
            month_label=label,
            creation_seq=self._cycles.next_creation_seq(),
            global_work_hours=seed_hours,
            omnigo_bonus=seed_omnigo,
            invoice_bonus=seed_invoice,
            payoneer_balance_carryover=carryover,
            payoneer_balance_applied=None,
            created_at=now,
            updated_at=now,
        )
        with self._label_guard(label):
            self.session.add(cycle)

        for consultant in roster:
            self.session.add(
                CycleLineItem(
                    cycle_id=cycle.id,
                    consultant_id=consultant.id,
                    rate_per_hour=consultant.hourly_rate,
                    bonus_advance=consultant.yearly_bonus,
                    created_at=now,
                    updated_at=now,
                )
            )
        self.session.flush()

        logger.info(
            "cycle_created",
            extra={
                "cycle_id": str(cycle.id),
                "month_label": label,
                "line_item_count": len(roster),
                "predecessor_cycle_id": str(predecessor.id) if predecessor else None,
                "payoneer_balance_carryover": carryover,
            },
        )
        return CycleInfo.from_model(cycle)

    def update_cycle(self, cycle_id: UUID, fields: Mapping[str, Any]) -> CycleInfo:
        """
        Apply explicit field edits to an active cycle.

        ``month_label`` may be renamed; every other editable field is a
        decimal, a date or the calculated payment timestamp.

        Raises:
            ArchivedCycleError: The cycle is archived.
            DuplicateCycleError: The new label is held by another active cycle.
            UnknownFieldError: A field is not editable.
            NonFiniteValueError: A numeric value is NaN or infinite.
        """
        cycle = self._load(cycle_id)
        if cycle.is_archived:
            logger.warning("cycle_update_rejected_archived", extra={"cycle_id": str(cycle_id)})
            raise ArchivedCycleError(str(cycle_id), "update fields")

        values = dict(fields)
        new_label = None
        if "month_label" in values:
            raw_label = values.pop("month_label")
            new_label = normalize_month_label(raw_label or "")
            if not new_label:
                raise InvalidMonthLabelError(raw_label, expected="a non-empty label")

        CYCLE_FIELDS.check_known(values)

        rename = new_label is not None and new_label != cycle.month_label
        if rename:
            self._ensure_label_free(new_label, exclude_id=cycle.id)

        with self._label_guard(new_label if rename else cycle.month_label):
            changed = apply_field_updates(cycle, values, CYCLE_FIELDS)
            if rename:
                cycle.month_label = new_label
                changed.append("month_label")

        if changed:
            logger.info(
                "cycle_updated",
                extra={"cycle_id": str(cycle_id), "changed_fields": sorted(changed)},
            )
        return CycleInfo.from_model(cycle)

    def archive_cycle(self, cycle_id: UUID) -> CycleInfo:
        """
        Archive a cycle.  One-way; frees its label for reuse.

        Raises:
            AlreadyArchivedError: The cycle was archived before.
        """
        cycle = self._load(cycle_id, for_update=True)
        if cycle.archived_at is not None:
            logger.warning(
                "cycle_archive_rejected",
                extra={"cycle_id": str(cycle_id), "archived_at": cycle.archived_at},
            )
            raise AlreadyArchivedError(str(cycle_id), cycle.archived_at.isoformat())

        cycle.archived_at = self._clock.now()
        self.session.flush()

        logger.info(
            "cycle_archived",
            extra={
                "cycle_id": str(cycle_id),
                "month_label": cycle.month_label,
                "archived_at": cycle.archived_at,
            },
        )
        return CycleInfo.from_model(cycle)

    def stamp_payment_calculated(self, cycle_id: UUID, calculated_at: datetime) -> bool:
        """
        Record when a payment was last calculated.  Archived cycles are
        frozen and keep their previous stamp.  Returns whether the stamp
        was written.
        """
        cycle = self._load(cycle_id)
        if cycle.is_archived:
            return False
        cycle.calculated_payment_date = calculated_at
        self.session.flush()
        return True
