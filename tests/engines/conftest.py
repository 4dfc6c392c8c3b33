"""DTO factories for pure engine tests (no database)."""

from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_kernel.domain.dtos import ConsultantInfo, CycleInfo, LineItemInfo, WorkHoursInfo
from payroll_kernel.domain.month_labels import MONTH_NAMES

CREATED_AT = datetime(2025, 10, 1, 9, 0, tzinfo=UTC)


_TEXT_FIELDS = {"comments", "payoneer_id"}


def _dec(key, value):
    if key in _TEXT_FIELDS or not isinstance(value, str):
        return value
    return Decimal(value)


@pytest.fixture
def make_cycle():
    def _make(month_label: str = "October 2025", **fields) -> CycleInfo:
        values = {k: _dec(k, v) for k, v in fields.items()}
        values.setdefault("id", uuid4())
        values.setdefault("created_at", CREATED_AT)
        return CycleInfo(month_label=month_label, **values)

    return _make


@pytest.fixture
def make_line():
    def _make(
        name: str,
        rate: str = "50",
        *,
        active: bool = True,
        cycle_id=None,
        consultant_id=None,
        **fields,
    ) -> LineItemInfo:
        values = {k: _dec(k, v) for k, v in fields.items()}
        return LineItemInfo(
            id=uuid4(),
            cycle_id=cycle_id or uuid4(),
            consultant_id=consultant_id or uuid4(),
            consultant_name=name,
            consultant_active=active,
            rate_per_hour=Decimal(rate),
            **values,
        )

    return _make


@pytest.fixture
def make_consultant():
    def _make(name: str, rate: str = "50", **fields) -> ConsultantInfo:
        return ConsultantInfo(id=uuid4(), name=name, hourly_rate=Decimal(rate), **fields)

    return _make


@pytest.fixture
def make_work_hours():
    def _make(year: int, month: int, hours: str, weekdays: int = 21) -> WorkHoursInfo:
        return WorkHoursInfo(
            year=year,
            month_number=month,
            month_name=MONTH_NAMES[month - 1],
            weekdays=weekdays,
            work_hours=Decimal(hours),
        )

    return _make
