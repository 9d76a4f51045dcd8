#!/usr/bin/env python3
"""Show an owner's dashboard figures, spending insights and suggestions."""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from finance_tracker import config
from finance_tracker.aggregation import export_records_csv
from finance_tracker.formatting import format_currency, format_percent
from finance_tracker.models import to_date
from finance_tracker.service import FinanceService
from finance_tracker.store import SQLiteStore


def main(owner_id: str, db_path: str, today: date, timeframe: str, export: bool = False) -> None:
    store = SQLiteStore(db_path)
    service = FinanceService(store)

    stats = service.dashboard(owner_id, today)
    print(f"Balance:       {format_currency(stats.total_balance)}")
    print(f"Month income:  {format_currency(stats.monthly_income)}")
    print(f"Month spend:   {format_currency(stats.monthly_expenses)}")
    print(f"Savings rate:  {format_percent(stats.savings_rate_percent)}")

    insights = service.insights(owner_id, today)
    if insights:
        print("\nSpending by category:")
        for item in insights:
            print(f"  [{item.trend.value:>6}] {item.name}: {format_currency(item.amount)} - {item.recommendation}")

    print("\nSuggestions:")
    for suggestion in service.suggestions(owner_id, today):
        print(f"  ({suggestion.type.value}) {suggestion.title}: {suggestion.description}")

    upcoming = service.upcoming_recurring(owner_id, today)
    if upcoming:
        print("\nUpcoming recurring payments:")
        for item in upcoming:
            print(f"  {item.due_on.isoformat()}  {item.schedule.description}  {format_currency(item.schedule.amount)}")

    chart = service.chart(owner_id, timeframe, today)
    if not chart.empty:
        print(f"\nIncome vs expenses ({timeframe}):")
        print(chart.to_string(index=False))

    if export:
        config.ensure_data_directories()
        path = export_records_csv(store.list(owner_id), config.EXPORTS_DIR / f"{owner_id}_transactions.csv")
        print(f"\nExported transactions to {path}")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show finance summary for one owner.')
    parser.add_argument('owner_id', help='Owner (user) id to report on')
    parser.add_argument('--db', default=config.get_db_path(), help='SQLite database path')
    parser.add_argument('--today', default=None, help='Reference date (YYYY-MM-DD), defaults to today')
    parser.add_argument('--timeframe', default='month', choices=['week', 'month', 'year'])
    parser.add_argument('--log-level', default=None, help='Logging level, e.g. DEBUG')
    parser.add_argument('--export', action='store_true', help='Also write all transactions to a CSV export')
    args = parser.parse_args()
    config.configure_logging(args.log_level)
    main(
        owner_id=args.owner_id,
        db_path=args.db,
        today=to_date(args.today, 'today') if args.today else date.today(),
        timeframe=args.timeframe,
        export=args.export,
    )
