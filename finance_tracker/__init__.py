"""Top‑level package for the Finance Tracker engine.

This file makes the directory a Python package and exposes
convenient names.  The primary modules are:

* ``models`` – transaction, category and recurring-schedule records
* ``aggregation`` – balances, savings rate and chart series
* ``trends`` – per-category spending trends
* ``suggestions`` – rule-based budgeting advice
* ``recurrence`` – read-only projection of recurring schedules
* ``store`` / ``service`` – owner-scoped data access and orchestration

The engine functions are pure: they accept records from any source (a
live store or a fixture) and behave identically either way.
"""

from .aggregation import (
    AggregateSnapshot,
    CategoryTotal,
    DashboardSnapshot,
    DateWindow,
    aggregate,
    aggregate_by_category,
    dashboard_snapshot,
    period_breakdown,
)
from .models import (
    Category,
    Frequency,
    Kind,
    RecurringSchedule,
    TransactionRecord,
    ValidationError,
    validate_record,
)
from .recurrence import compute_end_date, project_next_occurrence
from .suggestions import RulePolicy, Suggestion, SuggestionType, generate_suggestions
from .trends import Trend, TrendInsight, TrendThreshold, classify

__all__ = [
    # Records
    'Category',
    'Frequency',
    'Kind',
    'RecurringSchedule',
    'TransactionRecord',
    'ValidationError',
    'validate_record',
    # Aggregation
    'AggregateSnapshot',
    'CategoryTotal',
    'DashboardSnapshot',
    'DateWindow',
    'aggregate',
    'aggregate_by_category',
    'dashboard_snapshot',
    'period_breakdown',
    # Trends and suggestions
    'Trend',
    'TrendInsight',
    'TrendThreshold',
    'classify',
    'RulePolicy',
    'Suggestion',
    'SuggestionType',
    'generate_suggestions',
    # Recurrence
    'compute_end_date',
    'project_next_occurrence',
]
