"""Owner-scoped orchestration between a store and the engine.

Every call takes the owner explicitly; nothing here reads an ambient
session.  Store errors propagate unchanged to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

import pandas as pd

from . import config
from .aggregation import (
    DashboardSnapshot,
    aggregate,
    breakdown_window,
    dashboard_snapshot,
    period_breakdown,
    trailing_window,
)
from .models import Category, Kind, RecurringSchedule, category_index
from .recurrence import project_next_occurrence
from .store import TransactionFilter, TransactionStore
from .suggestions import RulePolicy, Suggestion, generate_suggestions
from .trends import CategoryInsight, TrendThreshold, spending_insights

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpcomingPayment:
    schedule: RecurringSchedule
    due_on: date


class FinanceService:
    """Fetch an owner's records and run them through the engine."""

    def __init__(
        self,
        store: TransactionStore,
        trend_threshold: Optional[TrendThreshold] = None,
        rules: Optional[RulePolicy] = None,
        insight_days: Optional[int] = None,
    ):
        self.store = store
        self.trend_threshold = trend_threshold or config.default_trend_threshold()
        self.rules = rules or config.default_rule_policy()
        self.insight_days = insight_days if insight_days is not None else config.INSIGHT_WINDOW_DAYS

    def _categories(self) -> Optional[Dict[str, Category]]:
        # Stores without a category catalogue skip the kind-match check.
        list_categories = getattr(self.store, 'categories', None)
        if not callable(list_categories):
            return None
        return category_index(list_categories()) or None

    def dashboard(self, owner_id: str, today: Optional[date] = None) -> DashboardSnapshot:
        today = today or date.today()
        records = self.store.list(owner_id)
        logger.debug("Dashboard for %s over %d records", owner_id, len(records))
        return dashboard_snapshot(records, today, self._categories())

    def insights(self, owner_id: str, today: Optional[date] = None) -> List[CategoryInsight]:
        today = today or date.today()
        window = trailing_window(today, self.insight_days)
        records = self.store.list(
            owner_id, TransactionFilter(start=window.start, end=window.end, kind=Kind.EXPENSE)
        )
        logger.debug("Spending insights for %s over %d expense records", owner_id, len(records))
        return spending_insights(records, self.trend_threshold, self._categories())

    def suggestions(self, owner_id: str, today: Optional[date] = None) -> List[Suggestion]:
        today = today or date.today()
        window = trailing_window(today, self.insight_days)
        records = self.store.list(owner_id, TransactionFilter(start=window.start, end=window.end))
        snapshot = aggregate(records, window, self._categories())
        logger.debug("Suggestions for %s over %d records", owner_id, snapshot.record_count)
        return generate_suggestions(snapshot, snapshot.record_count, self.rules)

    def chart(self, owner_id: str, timeframe: str = 'month', today: Optional[date] = None) -> pd.DataFrame:
        today = today or date.today()
        window = breakdown_window(timeframe, today)
        records = self.store.list(owner_id, TransactionFilter(start=window.start, end=window.end))
        return period_breakdown(records, timeframe, today, self._categories())

    def upcoming_recurring(self, owner_id: str, as_of: Optional[date] = None) -> List[UpcomingPayment]:
        """Projected next date of each schedule; suspended or lapsed ones are skipped."""
        list_schedules = getattr(self.store, 'schedules', None)
        if not callable(list_schedules):
            raise TypeError(f"{type(self.store).__name__} does not provide recurring schedules")
        as_of = as_of or date.today()
        upcoming: List[UpcomingPayment] = []
        for schedule in list_schedules(owner_id):
            due_on = project_next_occurrence(schedule, as_of)
            if due_on is not None:
                upcoming.append(UpcomingPayment(schedule=schedule, due_on=due_on))
        upcoming.sort(key=lambda item: (item.due_on, item.schedule.id))
        return upcoming
