"""
Partial field updates for ORM rows.

Each editable entity declares which of its columns are decimals, dates,
datetimes, booleans or free text.  ``apply_field_updates`` validates a
caller-supplied mapping against that declaration and assigns the coerced
values, so every update path rejects unknown fields and non-finite numbers
the same way.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from payroll_kernel.domain.amounts import to_decimal
from payroll_kernel.exceptions import UnknownFieldError


@dataclass(frozen=True)
class EditableFields:
    """Editable columns of one entity, grouped by value type."""

    entity: str
    decimals: frozenset[str] = field(default_factory=frozenset)
    dates: frozenset[str] = field(default_factory=frozenset)
    datetimes: frozenset[str] = field(default_factory=frozenset)
    booleans: frozenset[str] = field(default_factory=frozenset)
    texts: frozenset[str] = field(default_factory=frozenset)

    @property
    def names(self) -> frozenset[str]:
        return self.decimals | self.dates | self.datetimes | self.booleans | self.texts

    def check_known(self, names: Iterable[str]) -> None:
        unknown = [name for name in names if name not in self.names]
        if unknown:
            raise UnknownFieldError(self.entity, unknown)

    def coerce(self, name: str, value: Any) -> Any:
        if name in self.decimals:
            return to_decimal(name, value)
        if name in self.dates:
            return _to_date(name, value)
        if name in self.datetimes:
            return _to_datetime(name, value)
        if name in self.booleans:
            if not isinstance(value, bool):
                raise ValueError(f"{name} must be a boolean, got {value!r}")
            return value
        if value is not None and not isinstance(value, str):
            raise ValueError(f"{name} must be text, got {value!r}")
        return value


def _to_date(name: str, value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError as e:
            raise ValueError(f"{name} must be an ISO date, got {value!r}") from e
    raise ValueError(f"{name} must be a date, got {value!r}")


def _to_datetime(name: str, value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError as e:
            raise ValueError(f"{name} must be an ISO datetime, got {value!r}") from e
    raise ValueError(f"{name} must be a datetime, got {value!r}")


def apply_field_updates(
    model: Any,
    fields: Mapping[str, Any],
    editable: EditableFields,
) -> list[str]:
    """
    Validate every field first, then assign.  Returns the names whose
    stored value actually changed.

    Raises:
        UnknownFieldError: A field is not editable on this entity.
        NonFiniteValueError: A numeric field is NaN or infinite.
        ValueError: A value has the wrong type.
    """
    editable.check_known(fields)
    coerced = {name: editable.coerce(name, value) for name, value in fields.items()}

    changed = []
    for name, value in coerced.items():
        if getattr(model, name) != value:
            setattr(model, name, value)
            changed.append(name)
    return changed
