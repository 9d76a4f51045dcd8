"""Per-category spending trend classification and recommendations."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Union

from .aggregation import aggregate_by_category
from .formatting import format_currency
from .models import Category, Kind, TransactionRecord, to_decimal, validate_record

FALLBACK_CATEGORY_NAME = 'Other'

Number = Union[Decimal, float, int]


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class TrendThreshold:
    """Bounds for classifying a category total; supplied by the caller."""

    low: Decimal
    high: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, 'low', to_decimal(self.low, 'low'))
        object.__setattr__(self, 'high', to_decimal(self.high, 'high'))


@dataclass(frozen=True)
class TrendInsight:
    trend: Trend
    message: str


@dataclass(frozen=True)
class CategoryInsight:
    category_id: str
    name: str
    amount: Decimal
    count: int
    trend: Trend
    recommendation: str


def classify(
    category_total: Number,
    threshold: TrendThreshold,
    category: Optional[str] = None,
) -> TrendInsight:
    """Label a category total as up, down or stable against ``threshold``.

    Above ``high`` is a cautionary ``UP``; below ``low`` is ``DOWN`` with
    positive reinforcement; anything in between restates the amount.
    """
    total = to_decimal(category_total, 'category_total')
    label = category or 'this category'

    if total > threshold.high:
        return TrendInsight(
            Trend.UP,
            f"High spending on {label}. Consider setting a monthly budget.",
        )
    if total < threshold.low:
        return TrendInsight(
            Trend.DOWN,
            f"Spending on {label} is under control. Great job!",
        )
    return TrendInsight(
        Trend.STABLE,
        f"You spent {format_currency(total)} on {label} this period.",
    )


def spending_insights(
    records: Iterable[TransactionRecord],
    threshold: TrendThreshold,
    categories: Optional[Mapping[str, Category]] = None,
) -> List[CategoryInsight]:
    """Classify every expense category present in ``records``.

    Income records are ignored.  Results are ordered by amount, largest
    first, with category id as the tie-breaker.
    """
    checked = [validate_record(record, categories) for record in records]
    totals = aggregate_by_category(
        (record for record in checked if record.kind is Kind.EXPENSE), categories
    )

    insights: List[CategoryInsight] = []
    for category_id, summary in totals.items():
        category = (categories or {}).get(category_id)
        name = category.name if category and category.name else FALLBACK_CATEGORY_NAME
        result = classify(summary.total, threshold, name)
        insights.append(
            CategoryInsight(
                category_id=category_id,
                name=name,
                amount=summary.total,
                count=summary.count,
                trend=result.trend,
                recommendation=result.message,
            )
        )
    insights.sort(key=lambda item: (-item.amount, item.category_id))
    return insights
