"""Services for the payroll kernel (write side)."""

from payroll_kernel.services.bonus_workflow_service import BonusWorkflowService
from payroll_kernel.services.cycle_service import CycleService
from payroll_kernel.services.line_item_service import LineItemService
from payroll_kernel.services.roster_service import RosterService
from payroll_kernel.services.work_hours_service import (
    WorkHoursBounds,
    WorkHoursImportResult,
    WorkHoursService,
    parse_work_hours_payload,
)

__all__ = [
    "BonusWorkflowService",
    "CycleService",
    "LineItemService",
    "RosterService",
    "WorkHoursBounds",
    "WorkHoursImportResult",
    "WorkHoursService",
    "parse_work_hours_payload",
]
