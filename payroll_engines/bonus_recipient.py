"""
payroll_engines.bonus_recipient -- Annual bonus recipient inference.

Responsibility:
    Decide which consultant is owed the annual bonus for a cycle when no
    recipient has been stored, using two heuristics in strict precedence.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Invoked lazily by BonusWorkflowService.get_or_infer through
    PayrollCycleEngine, which supplies the roster and line snapshots.

Invariants enforced:
    - Month match first: the cycle label's calendar month is shifted by
      ``bonus_month_offset`` (2 by default: an October cycle's bonus is paid
      in December) with 12 -> 1 wrap-around, and exactly one ACTIVE
      consultant with that ``bonus_month`` is selected.
    - Line-item fallback only when the month match selects nobody: the
      first line, ordered by consultant name then line id, carrying an
      ``informed_date`` or a ``bonus_paydate``.
    - Several month matches are ambiguous and select nobody.

Failure modes:
    - InvalidMonthLabelError if no calendar month can be read from the
      cycle label.  The resolver never guesses.
"""

from __future__ import annotations

from collections.abc import Sequence

from payroll_kernel.domain.dtos import BonusResolution, ConsultantInfo, CycleInfo, LineItemInfo
from payroll_kernel.domain.month_labels import extract_label_month, wrap_month
from payroll_kernel.logging_config import get_logger
from payroll_engines.tracer import traced_engine

logger = get_logger("engines.bonus_recipient")

DEFAULT_BONUS_MONTH_OFFSET = 2

SOURCE_MONTH_MATCH = "month_match"
SOURCE_LINE_ITEM = "line_item"


class BonusRecipientResolver:
    """
    Pure resolver for the bonus recipient.

    Contract:
        ``resolve`` returns a BonusResolution or None; it never persists.

    Non-goals:
        - Does not honour a stored recipient; callers only invoke it when
          none is stored.
    """

    def __init__(self, bonus_month_offset: int = DEFAULT_BONUS_MONTH_OFFSET):
        self._offset = bonus_month_offset

    def target_bonus_month(self, month_label: str) -> int:
        """Calendar month (1-12) in which a cycle's bonus is paid."""
        return wrap_month(extract_label_month(month_label), self._offset)

    def match_by_month(
        self,
        target_month: int,
        roster: Sequence[ConsultantInfo],
    ) -> ConsultantInfo | None:
        matches = [c for c in roster if c.is_active and c.bonus_month == target_month]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            logger.warning(
                "bonus_recipient_month_match_ambiguous",
                extra={
                    "target_bonus_month": target_month,
                    "candidate_ids": sorted(str(c.id) for c in matches),
                },
            )
        return None

    @staticmethod
    def match_by_line_dates(lines: Sequence[LineItemInfo]) -> LineItemInfo | None:
        ordered = sorted(lines, key=lambda line: (line.consultant_name, str(line.id)))
        for line in ordered:
            if line.informed_date is not None or line.bonus_paydate is not None:
                return line
        return None

    @traced_engine("bonus_recipient", "1.0", fingerprint_fields=("cycle", "roster", "lines"))
    def resolve(
        self,
        *,
        cycle: CycleInfo,
        roster: Sequence[ConsultantInfo],
        lines: Sequence[LineItemInfo],
    ) -> BonusResolution | None:
        """
        Infer the recipient for ``cycle``.

        Raises:
            InvalidMonthLabelError: The label holds no readable month.
        """
        target_month = self.target_bonus_month(cycle.month_label)

        consultant = self.match_by_month(target_month, roster)
        if consultant is not None:
            return BonusResolution(consultant_id=consultant.id, source=SOURCE_MONTH_MATCH)

        line = self.match_by_line_dates(lines)
        if line is not None:
            return BonusResolution(consultant_id=line.consultant_id, source=SOURCE_LINE_ITEM)

        logger.info(
            "bonus_recipient_unresolved",
            extra={"cycle_id": str(cycle.id), "target_bonus_month": target_month},
        )
        return None
