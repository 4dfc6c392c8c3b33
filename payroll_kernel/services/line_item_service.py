"""
LineItemService -- per-consultant edits inside a cycle.

Responsibility:
    Applies explicit edits to a cycle line item (hours override, adjustment,
    bonus advance and its dates, comments) and performs the bonus-date
    clearing step that accompanies a change of bonus recipient.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.

Invariants enforced:
    - ``rate_per_hour`` is not editable.  It is the creation-time snapshot.
    - Line items of archived cycles are read-only.
    - ``clear_bonus_dates_for_others`` leaves the designated recipient's
      line untouched and only nulls ``informed_date`` / ``bonus_paydate``.

Failure modes:
    - LineItemNotFoundError: unknown line item id.
    - ArchivedCycleError: the owning cycle is archived.
    - UnknownFieldError / NonFiniteValueError: invalid update payload.
"""

from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy import select

from payroll_kernel.domain.dtos import LineItemInfo
from payroll_kernel.exceptions import ArchivedCycleError, LineItemNotFoundError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.payroll_cycle import CycleLineItem
from payroll_kernel.services.base import BaseService
from payroll_kernel.services.field_updates import EditableFields, apply_field_updates

logger = get_logger("services.line_item")

LINE_ITEM_FIELDS = EditableFields(
    entity="CycleLineItem",
    decimals=frozenset({"work_hours", "adjustment_value", "bonus_advance"}),
    dates=frozenset({"advance_date", "informed_date", "bonus_paydate"}),
    texts=frozenset({"comments"}),
)


class LineItemService(BaseService[CycleLineItem]):
    """Write access to cycle line items."""

    def update_line_item(self, line_item_id: UUID, fields: Mapping[str, Any]) -> LineItemInfo:
        """
        Apply explicit edits to one line item.

        Raises:
            LineItemNotFoundError: Unknown line item.
            ArchivedCycleError: The cycle is archived.
            UnknownFieldError: A field is not editable (including
                ``rate_per_hour``).
        """
        line = self.session.get(CycleLineItem, line_item_id)
        if line is None:
            raise LineItemNotFoundError(str(line_item_id))
        if line.cycle.is_archived:
            logger.warning(
                "line_item_update_rejected_archived",
                extra={"cycle_id": str(line.cycle_id), "line_item_id": str(line_item_id)},
            )
            raise ArchivedCycleError(str(line.cycle_id), "edit line items")

        changed = apply_field_updates(line, fields, LINE_ITEM_FIELDS)
        self.session.flush()

        if changed:
            logger.info(
                "line_item_updated",
                extra={
                    "cycle_id": str(line.cycle_id),
                    "line_item_id": str(line_item_id),
                    "changed_fields": sorted(changed),
                },
            )
        return LineItemInfo.from_model(line)

    def clear_bonus_dates_for_others(self, cycle_id: UUID, recipient_id: UUID) -> list[UUID]:
        """
        Null ``informed_date`` and ``bonus_paydate`` on every line of the
        cycle except the recipient's.  Returns the ids of lines that held
        a date and were cleared.
        """
        lines = self.session.scalars(
            select(CycleLineItem).where(
                CycleLineItem.cycle_id == cycle_id,
                CycleLineItem.consultant_id != recipient_id,
            )
        )
        cleared = []
        for line in lines:
            if line.informed_date is None and line.bonus_paydate is None:
                continue
            line.informed_date = None
            line.bonus_paydate = None
            cleared.append(line.id)
        self.session.flush()

        if cleared:
            logger.info(
                "bonus_dates_cleared",
                extra={
                    "cycle_id": str(cycle_id),
                    "recipient_consultant_id": str(recipient_id),
                    "cleared_line_count": len(cleared),
                },
            )
        return cleared
