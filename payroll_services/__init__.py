"""
payroll_services -- orchestration layer over the payroll kernel and engines.

Usage:
    from payroll_services import PayrollCycleEngine
"""

from payroll_services.cycle_engine import PayrollCycleEngine

__all__ = ["PayrollCycleEngine"]
