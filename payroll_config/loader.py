"""
Configuration Loader (``payroll_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into a
``PayrollEngineConfig``.  Runtime callers go through
``payroll_config.get_active_config()`` instead of calling this directly.

Invariants enforced
-------------------
* Unknown keys are rejected rather than ignored.
* Numbers are read into ``Decimal`` via ``str`` so YAML floats keep the
  value they were written with.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  parsed document for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or wrong types -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import PayrollEngineConfig

_INT_FIELDS = frozenset({
    "bonus_month_offset",
    "payment_month_offset",
    "work_hours_year_min",
    "work_hours_year_max",
})
_DECIMAL_FIELDS = frozenset({
    "hours_per_weekday",
    "money_quantum",
    "max_monthly_work_hours",
})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top-level YAML must be a mapping")
    return data


def _parse_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{key} must be a number, got {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"{key} must be a number, got {value!r}") from e


def parse_engine_config(data: dict[str, Any]) -> PayrollEngineConfig:
    """
    Build a PayrollEngineConfig from a parsed YAML mapping.  The mapping
    may hold the settings at top level or under a ``payroll_engine`` key.
    """
    section = data.get("payroll_engine", data)
    if not isinstance(section, dict):
        raise ValueError("payroll_engine section must be a mapping")

    known = {f.name for f in fields(PayrollEngineConfig)} - {"checksum"}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for key, value in section.items():
        if key in _INT_FIELDS:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{key} must be an integer, got {value!r}")
            values[key] = value
        elif key in _DECIMAL_FIELDS:
            values[key] = _parse_decimal(key, value)

    return PayrollEngineConfig(checksum=compute_checksum(section), **values)


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
