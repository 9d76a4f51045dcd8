"""Aggregation of transaction records into balances and period totals.

Every surface that shows a balance, an income/expense total or a savings
rate goes through :func:`aggregate`.  Sums are exact ``Decimal`` values so
that ``total_balance == period_income - period_expenses`` holds without
rounding drift; the pandas helpers at the bottom of the module only shape
already-validated records into chart series.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, localcontext
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .models import Category, Kind, TransactionRecord, validate_record

ZERO = Decimal("0")
HUNDRED = Decimal("100")

BREAKDOWN_COLUMNS = ['Period', 'Income', 'Expenses', 'Balance']
FRAME_COLUMNS = ['id', 'owner_id', 'Date', 'Kind', 'Category', 'Description', 'Amount', 'Signed Amount']
TIMEFRAMES = ('week', 'month', 'year')


@dataclass(frozen=True)
class DateWindow:
    """Inclusive date range; a missing bound is unbounded."""

    start: Optional[date] = None
    end: Optional[date] = None

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True


ALL_TIME = DateWindow()


@dataclass(frozen=True)
class AggregateSnapshot:
    total_balance: Decimal
    period_income: Decimal
    period_expenses: Decimal
    savings_rate_percent: Decimal
    record_count: int = 0


@dataclass(frozen=True)
class CategoryTotal:
    total: Decimal
    count: int


@dataclass(frozen=True)
class DashboardSnapshot:
    total_balance: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    savings_rate_percent: Decimal
    monthly_record_count: int


def month_window(year: int, month: int) -> DateWindow:
    last_day = calendar.monthrange(year, month)[1]
    return DateWindow(date(year, month, 1), date(year, month, last_day))


def trailing_window(today: date, days: int) -> DateWindow:
    """Window covering the ``days`` days before ``today`` plus today."""
    return DateWindow(today - timedelta(days=days), today)


def savings_rate(income: Decimal, expenses: Decimal) -> Decimal:
    """Savings rate in percent; zero income gives 0 rather than an error."""
    if income <= 0:
        return ZERO
    with localcontext() as ctx:
        ctx.prec = 28
        return (income - expenses) / income * HUNDRED


def _validated(
    records: Iterable[TransactionRecord],
    categories: Optional[Mapping[str, Category]] = None,
) -> Tuple[TransactionRecord, ...]:
    return tuple(validate_record(record, categories) for record in records)


def aggregate(
    records: Iterable[TransactionRecord],
    window: Optional[DateWindow] = None,
    categories: Optional[Mapping[str, Category]] = None,
) -> AggregateSnapshot:
    """Reduce ``records`` inside ``window`` into an :class:`AggregateSnapshot`.

    All records are validated before anything is summed, so a single
    malformed record raises :class:`~finance_tracker.models.ValidationError`
    even when it falls outside the window.
    """
    window = window or ALL_TIME
    checked = _validated(records, categories)
    in_window = [record for record in checked if window.contains(record.occurred_on)]

    income = sum((r.amount for r in in_window if r.kind is Kind.INCOME), ZERO)
    expenses = sum((r.amount for r in in_window if r.kind is Kind.EXPENSE), ZERO)

    return AggregateSnapshot(
        total_balance=income - expenses,
        period_income=income,
        period_expenses=expenses,
        savings_rate_percent=savings_rate(income, expenses),
        record_count=len(in_window),
    )


def aggregate_by_category(
    records: Iterable[TransactionRecord],
    categories: Optional[Mapping[str, Category]] = None,
) -> Dict[str, CategoryTotal]:
    """Total and count per category id; only categories present are returned."""
    totals: Dict[str, Decimal] = {}
    counts: Dict[str, int] = {}
    for record in _validated(records, categories):
        key = record.category_id
        totals[key] = totals.get(key, ZERO) + record.amount
        counts[key] = counts.get(key, 0) + 1
    return {key: CategoryTotal(total=totals[key], count=counts[key]) for key in totals}


def dashboard_snapshot(
    records: Sequence[TransactionRecord],
    today: date,
    categories: Optional[Mapping[str, Category]] = None,
) -> DashboardSnapshot:
    """All-time balance plus income, expenses and savings rate for ``today``'s month."""
    overall = aggregate(records, ALL_TIME, categories)
    monthly = aggregate(records, month_window(today.year, today.month), categories)
    return DashboardSnapshot(
        total_balance=overall.total_balance,
        monthly_income=monthly.period_income,
        monthly_expenses=monthly.period_expenses,
        savings_rate_percent=monthly.savings_rate_percent,
        monthly_record_count=monthly.record_count,
    )


# ---------------------------------------------------------------------------
# Chart series
# ---------------------------------------------------------------------------


def records_to_frame(records: Iterable[TransactionRecord]) -> pd.DataFrame:
    """Tabular view of records with float amounts for charting and export."""
    rows: List[Dict[str, object]] = [
        {
            'id': r.id,
            'owner_id': r.owner_id,
            'Date': r.occurred_on,
            'Kind': r.kind.value,
            'Category': r.category_id,
            'Description': r.description,
            'Amount': float(r.amount),
        }
        for r in records
    ]
    if not rows:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    df = pd.DataFrame(rows)
    df['Date'] = pd.to_datetime(df['Date'])
    df['Signed Amount'] = np.where(df['Kind'] == Kind.INCOME.value, df['Amount'], -df['Amount'])
    return df[FRAME_COLUMNS]


def breakdown_window(timeframe: str, today: date) -> DateWindow:
    """Date range covered by a chart timeframe ending on ``today``."""
    if timeframe == 'week':
        return DateWindow(today - timedelta(days=6), today)
    months_back = {'month': 5, 'year': 11}.get(timeframe)
    if months_back is None:
        raise ValueError(f"Unsupported timeframe '{timeframe}'. Expected one of {', '.join(TIMEFRAMES)}")
    year, month = today.year, today.month - months_back
    while month < 1:
        month += 12
        year -= 1
    return DateWindow(date(year, month, 1), today)


def period_breakdown(
    records: Iterable[TransactionRecord],
    timeframe: str = 'month',
    today: Optional[date] = None,
    categories: Optional[Mapping[str, Category]] = None,
) -> pd.DataFrame:
    """Income, expenses and balance per bucket for the chart timeframe.

    ``week`` buckets the last seven days per day; ``month`` (six months)
    and ``year`` (twelve months) bucket per calendar month.  Only buckets
    with at least one record appear.
    """
    today = today or date.today()
    window = breakdown_window(timeframe, today)
    in_window = [r for r in _validated(records, categories) if window.contains(r.occurred_on)]

    df = records_to_frame(in_window)
    if df.empty:
        return pd.DataFrame(columns=BREAKDOWN_COLUMNS)

    if timeframe == 'week':
        df['Period'] = df['Date'].dt.strftime('%Y-%m-%d')
    else:
        df['Period'] = df['Date'].dt.to_period('M').astype(str)

    is_income = df['Kind'] == Kind.INCOME.value
    df['Income'] = np.where(is_income, df['Amount'], 0.0)
    df['Expenses'] = np.where(is_income, 0.0, df['Amount'])

    grouped = df.groupby('Period', sort=True)[['Income', 'Expenses']].sum().reset_index()
    grouped['Balance'] = grouped['Income'] - grouped['Expenses']
    return grouped[BREAKDOWN_COLUMNS].round(2)


def export_records_csv(records: Iterable[TransactionRecord], path) -> str:
    """Write records to CSV and return the path written."""
    df = records_to_frame(records)
    if not df.empty:
        df['Date'] = df['Date'].dt.date.astype(str)
    df.to_csv(path, index=False)
    return str(path)
