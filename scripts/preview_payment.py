#!/usr/bin/env python3
"""
Print the cycle summary and payment instruction for an active cycle.

Running this stamps the cycle's calculated payment date, as the engine
does for every payment calculation.

Usage:
    python3 scripts/preview_payment.py --month "October 2025"
    python3 scripts/preview_payment.py --month "October 2025" --no-bonus
"""

from __future__ import annotations

import argparse
import os
import sys
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

DB_URL = os.environ.get("DATABASE_URL", "sqlite:///payroll.db")

W = 72


def _fmt(v: Decimal | None) -> str:
    if v is None:
        return "-"
    return f"${v:,.2f}"


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Preview the payment for an active payroll cycle.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--month",
        required=True,
        help='Month label of an active cycle, e.g. "October 2025".',
    )
    parser.add_argument(
        "--no-bonus",
        action="store_true",
        help="Treat the client bonus as zero for this calculation only.",
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
    return parser.parse_args()


def main() -> int:
    args = _parse_args()

    from payroll_config import get_active_config
    from payroll_kernel.db.engine import init_engine_from_url, session_scope
    from payroll_kernel.exceptions import PayrollEngineError
    from payroll_kernel.selectors.cycle_selector import CycleSelector
    from payroll_services import PayrollCycleEngine

    try:
        config = get_active_config(args.config)
    except (OSError, ValueError) as e:
        print(f"ERROR: Failed to load config: {e}", file=sys.stderr)
        return 1

    init_engine_from_url(args.db_url)

    try:
        with session_scope() as session:
            cycle = CycleSelector(session).find_active_by_label(args.month)
            if cycle is None:
                print(f"ERROR: No active cycle labelled {args.month!r}", file=sys.stderr)
                return 1
            engine = PayrollCycleEngine(session, config=config, auto_commit=False)
            summary = engine.get_cycle_summary(cycle.id)
            payment = engine.calculate_payment(cycle.id, no_bonus=args.no_bonus)
    except PayrollEngineError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print("=" * W)
    print(f"  {payment.month_label}  ->  paid in {payment.payment_month.label}")
    print("=" * W)
    for item in summary.lines:
        print(
            f"  {item.line.consultant_name:<30} "
            f"{item.effective_work_hours:>8} h  {_fmt(item.subtotal):>14}"
        )
    print("-" * W)
    print(f"  Total hourly value       {_fmt(summary.total_hourly_value):>20}")
    print(f"  USD total                {_fmt(summary.usd_total):>20}")
    print()
    print(f"  Payment hours ({payment.work_hours_source}): {payment.payment_work_hours}")
    for detail in payment.consultant_payments:
        print(f"  {detail.consultant_name:<30} {_fmt(detail.subtotal):>20}")
    print(f"  Consultant payments      {_fmt(payment.total_consultant_payments):>20}")
    print(f"  Client bonus             {_fmt(payment.omnigo_bonus):>20}")
    print(f"  Equipment                {_fmt(payment.equipments_usd):>20}")
    print(f"  Payoneer applied         {_fmt(payment.payoneer_balance_applied):>20}")
    print(f"  TOTAL TRANSFER           {_fmt(payment.total_transfer_amount):>20}")

    if summary.anomalies:
        print()
        print("  Anomalies:")
        for message in summary.anomalies:
            print(f"    - {message}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
