"""
Month-label calendar arithmetic.

Responsibility:
    Parse and format cycle month labels, shift (year, month) pairs across
    year boundaries, and count weekdays for the work-hours fallback.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - Canonical label form is "<MonthName> <YYYY>" (e.g. "October 2025").
    - ``parse_month_label`` is strict: anything else raises
      InvalidMonthLabelError instead of being guessed at.
    - ``extract_label_month`` is the lenient variant used by the bonus
      resolver: full month name anywhere, or a leading/trailing 1-2 digit
      month token.
"""

from __future__ import annotations

import calendar
import re
from decimal import Decimal

from payroll_kernel.exceptions import InvalidMonthLabelError

MONTH_NAMES: tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_MONTH_BY_NAME = {name.lower(): number for number, name in enumerate(MONTH_NAMES, start=1)}

_CANONICAL_RE = re.compile(r"^([A-Za-z]+) (\d{4})$")
_MONTH_NAME_RE = re.compile(r"\b(" + "|".join(MONTH_NAMES) + r")\b", re.IGNORECASE)
_LEADING_NUMBER_RE = re.compile(r"^(\d{1,2})\b")
_TRAILING_NUMBER_RE = re.compile(r"\b(\d{1,2})$")


def _collapse(label: str) -> str:
    return " ".join(label.split())


def month_number(name: str) -> int | None:
    """Return 1-12 for a full English month name (any case), else None."""
    return _MONTH_BY_NAME.get(name.strip().lower())


def format_month_label(year: int, month: int) -> str:
    """Format the canonical label, e.g. (2025, 10) -> "October 2025"."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1-12, got {month}")
    return f"{MONTH_NAMES[month - 1]} {year:04d}"


def parse_month_label(label: str) -> tuple[int, int]:
    """
    Strictly parse a canonical month label into (year, month).

    Month names are matched case-insensitively and surrounding whitespace
    is ignored; nothing else is accepted.

    Raises:
        InvalidMonthLabelError: If the label is not "<MonthName> <YYYY>".
    """
    match = _CANONICAL_RE.match(_collapse(label or ""))
    if match is None:
        raise InvalidMonthLabelError(label)
    month = month_number(match.group(1))
    if month is None:
        raise InvalidMonthLabelError(label)
    return int(match.group(2)), month


def normalize_month_label(label: str) -> str:
    """
    Collapse whitespace and, when the label is canonical in any casing,
    rewrite it to canonical casing.  Free-form labels are kept as given.
    """
    collapsed = _collapse(label)
    try:
        year, month = parse_month_label(collapsed)
    except InvalidMonthLabelError:
        return collapsed
    return format_month_label(year, month)


def extract_label_month(label: str) -> int:
    """
    Leniently extract the calendar month (1-12) from a label.

    Accepts a full month name anywhere in the label, or a leading or
    trailing 1-2 digit token ("10/2025", "2025-10").

    Raises:
        InvalidMonthLabelError: If no month can be extracted.
    """
    collapsed = _collapse(label or "")
    name_match = _MONTH_NAME_RE.search(collapsed)
    if name_match is not None:
        return _MONTH_BY_NAME[name_match.group(1).lower()]

    for pattern in (_LEADING_NUMBER_RE, _TRAILING_NUMBER_RE):
        number_match = pattern.search(collapsed)
        if number_match is not None:
            value = int(number_match.group(1))
            if 1 <= value <= 12:
                return value

    raise InvalidMonthLabelError(label, expected="a month name or a 1-2 digit month number")


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Shift (year, month) by ``offset`` months, wrapping across years."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def wrap_month(month: int, offset: int) -> int:
    """Calendar month ``offset`` months after ``month`` (13 wraps to 1)."""
    return (month - 1 + offset) % 12 + 1


def count_weekdays(year: int, month: int) -> int:
    """Number of Monday-Friday days in the month."""
    _, days_in_month = calendar.monthrange(year, month)
    return sum(
        1
        for day in range(1, days_in_month + 1)
        if calendar.weekday(year, month, day) < 5
    )


def fallback_work_hours(year: int, month: int, hours_per_weekday: Decimal) -> Decimal:
    """Computed work hours when no reference row exists: weekdays x hours/day."""
    return Decimal(count_weekdays(year, month)) * hours_per_weekday


_ISO_YEAR_MONTH_RE = re.compile(r"(\d{4})[/-](\d{1,2})")
_MONTH_SLASH_YEAR_RE = re.compile(r"(\d{1,2})[/-](\d{4})")


def parse_year_month(label: str, default_year: int) -> tuple[int, int] | None:
    """
    Best-effort (year, month) for work-hours suggestions.

    Understands "March 2025", "2025-03", "03/2025" and a bare "March"
    (which takes ``default_year``).  Returns None instead of raising.
    """
    collapsed = _collapse(label or "")
    if not collapsed:
        return None

    match = _ISO_YEAR_MONTH_RE.search(collapsed)
    if match is not None:
        year, month = int(match.group(1)), int(match.group(2))
        return (year, month) if 1 <= month <= 12 else None

    match = _MONTH_SLASH_YEAR_RE.search(collapsed)
    if match is not None:
        month, year = int(match.group(1)), int(match.group(2))
        return (year, month) if 1 <= month <= 12 else None

    parts = collapsed.split(" ")
    if len(parts) == 2 and re.fullmatch(r"\d{4}", parts[1]):
        month = month_number(parts[0])
        return (int(parts[1]), month) if month else None
    if len(parts) == 1:
        month = month_number(parts[0])
        return (default_year, month) if month else None
    return None
