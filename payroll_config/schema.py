"""
Configuration schema (``payroll_config.schema``).

Responsibility
--------------
Frozen dataclass describing the tunable business constants of the payroll
cycle engine.  Every value the engine would otherwise hardcode (the bonus
month offset, the payment month offset, hours per weekday, rounding
quantum, import bounds) lives here.

Architecture position
---------------------
**Config layer** -- pure data.  No I/O; parsing happens in ``loader.py``.

Invariants enforced
-------------------
* ``validate()`` rejects values that would make the calculators
  meaningless (offsets outside 0-11, non-positive hours or quantum,
  an empty year range).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PayrollEngineConfig:
    """
    Business constants for the payroll cycle engine.

    Contract:
        Defaults reproduce the established business rules: a cycle's bonus
        is paid two months after it, its transfer one month after it, and a
        weekday counts eight hours when no reference exists.
    """

    bonus_month_offset: int = 2
    payment_month_offset: int = 1
    hours_per_weekday: Decimal = Decimal("8")
    money_quantum: Decimal = Decimal("0.01")
    max_monthly_work_hours: Decimal = Decimal("250")
    work_hours_year_min: int = 2000
    work_hours_year_max: int = 2100
    checksum: str = ""

    def validate(self) -> list[str]:
        """Return human-readable problems; empty means valid."""
        errors = []
        if not 0 <= self.bonus_month_offset <= 11:
            errors.append(f"bonus_month_offset must be 0-11, got {self.bonus_month_offset}")
        if not 0 <= self.payment_month_offset <= 11:
            errors.append(f"payment_month_offset must be 0-11, got {self.payment_month_offset}")
        if self.hours_per_weekday <= 0:
            errors.append(f"hours_per_weekday must be positive, got {self.hours_per_weekday}")
        if self.money_quantum <= 0:
            errors.append(f"money_quantum must be positive, got {self.money_quantum}")
        if self.max_monthly_work_hours <= 0:
            errors.append(
                f"max_monthly_work_hours must be positive, got {self.max_monthly_work_hours}"
            )
        if self.work_hours_year_min > self.work_hours_year_max:
            errors.append(
                "work_hours_year_min must not exceed work_hours_year_max "
                f"({self.work_hours_year_min} > {self.work_hours_year_max})"
            )
        return errors
