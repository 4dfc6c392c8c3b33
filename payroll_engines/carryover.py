"""
payroll_engines.carryover -- Rolling Payoneer balance between cycles.

Responsibility:
    Compute a new cycle's opening ``payoneer_balance_carryover`` from the
    current chain head, i.e. the most recently created non-archived cycle.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Called by CycleService.create_cycle through PayrollCycleEngine, which
    looks up the chain head and passes it in.

Invariants enforced:
    - No predecessor means no chain yet: the result is None, not zero.
    - Unset carryover or applied values on the predecessor count as zero.
    - Deterministic: the result depends only on the predecessor snapshot.
      Archived cycles are never passed in, so their stored values stay
      frozen.
"""

from __future__ import annotations

from decimal import Decimal

from payroll_kernel.domain.amounts import or_zero
from payroll_kernel.domain.dtos import CycleInfo
from payroll_engines.tracer import traced_engine


@traced_engine("carryover", "1.0", fingerprint_fields=("predecessor",))
def compute_carryover(*, predecessor: CycleInfo | None) -> Decimal | None:
    """
    Opening balance for the next cycle.

    ``predecessor.payoneer_balance_carryover - predecessor.payoneer_balance_applied``
    or None when there is no predecessor.
    """
    if predecessor is None:
        return None
    return or_zero(predecessor.payoneer_balance_carryover) - or_zero(
        predecessor.payoneer_balance_applied
    )
