"""
Amounts -- Decimal coercion and rounding for money and hours.

Responsibility:
    Convert caller-supplied numbers into ``Decimal`` at the service boundary
    and round monetary results.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - Floats are converted through ``str`` so 0.1 stays 0.1.
    - NaN and +/-Infinity never reach storage: they raise
      NonFiniteValueError naming the offending field.
    - Monetary rounding is ROUND_HALF_UP to the configured quantum.

Failure modes:
    - NonFiniteValueError for NaN/Infinity input.
    - ValueError for input that is not a number at all (including bools).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from payroll_kernel.exceptions import NonFiniteValueError

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(field_name: str, value: Any) -> Decimal | None:
    """
    Coerce ``value`` to a finite Decimal; None passes through unchanged.

    Raises:
        NonFiniteValueError: If the value is NaN or infinite.
        ValueError: If the value is not numeric.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"{field_name} must be a number, got {value!r}") from e
    if not amount.is_finite():
        raise NonFiniteValueError(field_name, str(value))
    return amount


def or_zero(value: Decimal | None) -> Decimal:
    return ZERO if value is None else value


def quantize_money(amount: Decimal, quantum: Decimal = CENT) -> Decimal:
    """Round ``amount`` half-up to ``quantum`` (cents by default)."""
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)
