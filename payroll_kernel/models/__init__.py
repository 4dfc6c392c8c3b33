"""ORM models for the payroll kernel."""

from payroll_kernel.models.bonus_workflow import BonusWorkflow
from payroll_kernel.models.consultant import Consultant
from payroll_kernel.models.payroll_cycle import CycleLineItem, PayrollCycle
from payroll_kernel.models.work_hours import WorkHoursReference

__all__ = [
    "BonusWorkflow",
    "Consultant",
    "CycleLineItem",
    "PayrollCycle",
    "WorkHoursReference",
]
