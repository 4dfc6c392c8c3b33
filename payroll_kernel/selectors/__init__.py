"""Selectors for the payroll kernel (read side)."""

from payroll_kernel.selectors.cycle_selector import CycleSelector
from payroll_kernel.selectors.roster_selector import RosterSelector
from payroll_kernel.selectors.work_hours_selector import WorkHoursSelector

__all__ = [
    "CycleSelector",
    "RosterSelector",
    "WorkHoursSelector",
]
