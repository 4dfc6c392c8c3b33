#!/usr/bin/env python3
"""
Import yearly work-hours reference data from a JSON file.

The file holds one year object or a list of them:

    {"year": 2025, "months": [
        {"month": "January", "monthNumber": 1, "weekdays": 23, "workHours": 184},
        ...
    ]}

Usage:
    python3 scripts/import_work_hours.py --file work_hours_2025.json
    python3 scripts/import_work_hours.py --file hours.json --db-url sqlite:///payroll.db --create-tables
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

DB_URL = os.environ.get("DATABASE_URL", "sqlite:///payroll.db")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Validate and upsert work-hours reference data.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--file",
        required=True,
        type=Path,
        help="Path to the JSON payload.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Engine config YAML (default: $PAYROLL_ENGINE_CONFIG or built-in defaults).",
    )
    parser.add_argument(
        "--db-url",
        default=DB_URL,
        help=f"Database URL (default: $DATABASE_URL or {DB_URL!r}).",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before importing.",
    )
    return parser.parse_args()


def main() -> int:
    args = _parse_args()

    source_path = args.file.resolve()
    if not source_path.is_file():
        print(f"ERROR: File not found: {source_path}", file=sys.stderr)
        return 1

    from payroll_config import get_active_config
    from payroll_kernel.db.engine import create_tables, init_engine_from_url, session_scope
    from payroll_kernel.exceptions import WorkHoursImportError
    from payroll_kernel.logging_config import configure_logging
    from payroll_services import PayrollCycleEngine

    configure_logging()

    try:
        config = get_active_config(args.config)
    except (OSError, ValueError) as e:
        print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
        return 1

    init_engine_from_url(args.db_url)
    if args.create_tables:
        create_tables()

    try:
        with session_scope() as session:
            engine = PayrollCycleEngine(session, config=config, auto_commit=False)
            result = engine.import_work_hours(source_path.read_text(encoding="utf-8"))
    except WorkHoursImportError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"Imported: {result.imported}")
    print(f"Updated:  {result.updated}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
