"""
WorkHoursService -- import and upsert of the monthly work-hours reference.

Responsibility:
    Validates yearly work-hours payloads (a JSON document or the equivalent
    Python structure), upserts them keyed by (year, month_number), deletes
    a year, and suggests hours for a month label.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.
    The payment calculator only reads the rows this service writes.

Invariants enforced:
    - The whole payload is validated before any row is written.
    - At most one row per (year, month_number); re-importing a month
      updates it in place.
    - month_name is stored in canonical casing.

Failure modes:
    - WorkHoursImportError: malformed JSON, missing keys, unknown month
      names, or values outside the configured bounds.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from payroll_kernel.domain.amounts import to_decimal
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.month_labels import MONTH_NAMES, month_number, parse_year_month
from payroll_kernel.exceptions import NonFiniteValueError, WorkHoursImportError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.models.work_hours import WorkHoursReference
from payroll_kernel.selectors.work_hours_selector import WorkHoursSelector
from payroll_kernel.services.base import BaseService

logger = get_logger("services.work_hours")


@dataclass(frozen=True)
class WorkHoursBounds:
    """Acceptance limits for imported values."""

    year_min: int = 2000
    year_max: int = 2100
    max_work_hours: Decimal = Decimal("250")


@dataclass(frozen=True)
class WorkHoursMonth:
    month_number: int
    month_name: str
    weekdays: int
    work_hours: Decimal


@dataclass(frozen=True)
class WorkHoursYear:
    year: int
    months: tuple[WorkHoursMonth, ...]


@dataclass(frozen=True)
class WorkHoursImportResult:
    """Counts of inserted and updated reference rows."""

    imported: int
    updated: int

    @property
    def total(self) -> int:
        return self.imported + self.updated


def _require_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise WorkHoursImportError(f"{what} must be an integer, got {value!r}")
    return value


def _parse_month(raw: Any, bounds: WorkHoursBounds) -> WorkHoursMonth:
    if not isinstance(raw, Mapping):
        raise WorkHoursImportError(f"each month must be an object, got {raw!r}")

    name = raw.get("month")
    if not isinstance(name, str) or not name.strip():
        raise WorkHoursImportError('each month must have a "month" name')

    number = raw.get("monthNumber")
    if number is None:
        number = month_number(name)
        if number is None:
            raise WorkHoursImportError(f"invalid month name: {name}")
    number = _require_int(number, f"monthNumber for {name}")
    if not 1 <= number <= 12:
        raise WorkHoursImportError(f"invalid month number for {name}: {number}")

    weekdays = _require_int(raw.get("weekdays"), f"weekdays for {name}")
    if not 1 <= weekdays <= 31:
        raise WorkHoursImportError(f"invalid weekdays for {name}: {weekdays}")

    raw_hours = raw.get("workHours")
    if raw_hours is None:
        raise WorkHoursImportError(f'"workHours" missing for {name}')
    try:
        hours = to_decimal("workHours", raw_hours)
    except (NonFiniteValueError, ValueError) as e:
        raise WorkHoursImportError(f"invalid work hours for {name}: {raw_hours!r}") from e
    if not Decimal("0") <= hours <= bounds.max_work_hours:
        raise WorkHoursImportError(f"invalid work hours for {name}: {hours}")

    return WorkHoursMonth(
        month_number=number,
        month_name=MONTH_NAMES[number - 1],
        weekdays=weekdays,
        work_hours=hours,
    )


def parse_work_hours_payload(
    payload: str | Mapping[str, Any] | list[Any],
    bounds: WorkHoursBounds | None = None,
) -> list[WorkHoursYear]:
    """
    Validate a work-hours payload: one year object or a list of them, each
    ``{"year": 2025, "months": [{"month": "January", "monthNumber": 1,
    "weekdays": 23, "workHours": 184}, ...]}``.  ``monthNumber`` is
    optional when ``month`` is a full month name.

    Raises:
        WorkHoursImportError: On any structural or range problem.
    """
    bounds = bounds or WorkHoursBounds()
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise WorkHoursImportError(f"invalid JSON format: {e.msg}") from e

    year_objects = payload if isinstance(payload, list) else [payload]
    if not year_objects:
        raise WorkHoursImportError("no years provided")

    years = []
    for raw_year in year_objects:
        if not isinstance(raw_year, Mapping) or "year" not in raw_year:
            raise WorkHoursImportError('each year object must have a "year" property')
        year = _require_int(raw_year["year"], "year")
        if not bounds.year_min <= year <= bounds.year_max:
            raise WorkHoursImportError(
                f"year must be between {bounds.year_min} and {bounds.year_max}, got {year}"
            )

        raw_months = raw_year.get("months")
        if not isinstance(raw_months, list):
            raise WorkHoursImportError(f'year {year} must have a "months" array')
        if not raw_months:
            raise WorkHoursImportError(f"no months provided for {year}")

        months = tuple(_parse_month(raw, bounds) for raw in raw_months)
        numbers = [m.month_number for m in months]
        if len(set(numbers)) != len(numbers):
            raise WorkHoursImportError(f"duplicate month in {year}")
        years.append(WorkHoursYear(year=year, months=months))
    return years


class WorkHoursService(BaseService[WorkHoursReference]):
    """
    Write access to the work-hours reference.

    Contract:
        ``import_payload`` validates then upserts, returning counts.

    Non-goals:
        - Does NOT compute fallback hours; that is the payment calculator's
          concern.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        bounds: WorkHoursBounds | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._bounds = bounds or WorkHoursBounds()
        self._selector = WorkHoursSelector(session)

    def import_payload(self, payload: str | Mapping[str, Any] | list[Any]) -> WorkHoursImportResult:
        years = parse_work_hours_payload(payload, self._bounds)
        return self.upsert_years(years)

    def upsert_years(self, years: list[WorkHoursYear]) -> WorkHoursImportResult:
        imported = 0
        updated = 0
        now = self._clock.now()

        for year in years:
            existing = {
                row.month_number: row
                for row in self.session.scalars(
                    select(WorkHoursReference).where(WorkHoursReference.year == year.year)
                )
            }
            for month in year.months:
                row = existing.get(month.month_number)
                if row is None:
                    self.session.add(
                        WorkHoursReference(
                            year=year.year,
                            month_number=month.month_number,
                            month_name=month.month_name,
                            weekdays=month.weekdays,
                            work_hours=month.work_hours,
                            created_at=now,
                            updated_at=now,
                        )
                    )
                    imported += 1
                else:
                    row.month_name = month.month_name
                    row.weekdays = month.weekdays
                    row.work_hours = month.work_hours
                    updated += 1
        self.session.flush()

        logger.info(
            "work_hours_imported",
            extra={
                "years": [y.year for y in years],
                "imported": imported,
                "updated": updated,
            },
        )
        return WorkHoursImportResult(imported=imported, updated=updated)

    def delete_year(self, year: int) -> int:
        result = self.session.execute(
            delete(WorkHoursReference).where(WorkHoursReference.year == year)
        )
        self.session.flush()
        logger.info("work_hours_year_deleted", extra={"year": year, "deleted": result.rowcount})
        return result.rowcount

    def suggested_hours(self, month_label: str) -> Decimal | None:
        """
        Reference hours for the month a label names, or None when the label
        cannot be read or no row exists.  A bare month name means the
        current year.
        """
        parsed = parse_year_month(month_label, default_year=self._clock.now().year)
        if parsed is None:
            return None
        row = self._selector.get(*parsed)
        return row.work_hours if row is not None else None
