"""Rule-based budgeting suggestions derived from an aggregate snapshot.

Rules are plain functions evaluated in a fixed order against the same
snapshot.  Each returns a :class:`Suggestion` or ``None``; the results are
then ordered by priority, keeping rule order for ties.  An empty record set
short-circuits to a single onboarding tip.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, List, Optional, Sequence

from .aggregation import AggregateSnapshot
from .formatting import format_currency
from .models import to_decimal


class SuggestionType(str, Enum):
    WARNING = "warning"
    TIP = "tip"
    ACHIEVEMENT = "achievement"


@dataclass(frozen=True)
class Suggestion:
    id: str
    type: SuggestionType
    title: str
    description: str
    priority: int
    action: Optional[str] = None


@dataclass(frozen=True)
class RulePolicy:
    high_spend_threshold: Decimal = Decimal("1000")
    min_record_count: int = 5

    def __post_init__(self) -> None:
        object.__setattr__(
            self, 'high_spend_threshold', to_decimal(self.high_spend_threshold, 'high_spend_threshold')
        )


Rule = Callable[[AggregateSnapshot, int, RulePolicy], Optional[Suggestion]]


def high_spending_rule(snapshot: AggregateSnapshot, record_count: int, rules: RulePolicy) -> Optional[Suggestion]:
    if snapshot.period_expenses <= rules.high_spend_threshold:
        return None
    return Suggestion(
        id='high-spending',
        type=SuggestionType.WARNING,
        title='High Spending Detected',
        description=(
            f"You spent {format_currency(snapshot.period_expenses)} this period. "
            "Consider reviewing your budget."
        ),
        priority=1,
    )


def positive_savings_rule(snapshot: AggregateSnapshot, record_count: int, rules: RulePolicy) -> Optional[Suggestion]:
    if snapshot.period_income <= snapshot.period_expenses:
        return None
    surplus = snapshot.period_income - snapshot.period_expenses
    return Suggestion(
        id='positive-savings',
        type=SuggestionType.ACHIEVEMENT,
        title='Great Savings!',
        description=(
            f"You saved {format_currency(surplus)} this period. "
            "Consider investing part of it."
        ),
        priority=2,
    )


def track_more_rule(snapshot: AggregateSnapshot, record_count: int, rules: RulePolicy) -> Optional[Suggestion]:
    if record_count >= rules.min_record_count:
        return None
    return Suggestion(
        id='track-more',
        type=SuggestionType.TIP,
        title='Track More Transactions',
        description='Record all of your expenses to get more accurate analysis and personalised advice.',
        priority=3,
        action='Add Transaction',
    )


GET_STARTED = Suggestion(
    id='get-started',
    type=SuggestionType.TIP,
    title='Start Tracking Your Finances',
    description='Add your first transactions to receive personalised analysis and smart advice.',
    priority=1,
    action='Add First Transaction',
)

DEFAULT_RULES: Sequence[Rule] = (
    high_spending_rule,
    positive_savings_rule,
    track_more_rule,
)


def generate_suggestions(
    snapshot: AggregateSnapshot,
    record_count: int,
    rules: Optional[RulePolicy] = None,
    rule_set: Sequence[Rule] = DEFAULT_RULES,
) -> List[Suggestion]:
    """Evaluate ``rule_set`` against ``snapshot`` and return ordered suggestions."""
    if record_count < 0:
        raise ValueError(f"record_count must be non-negative, got {record_count}")
    rules = rules or RulePolicy()

    if record_count == 0:
        return [GET_STARTED]

    found = [s for s in (rule(snapshot, record_count, rules) for rule in rule_set) if s is not None]
    # sorted() is stable, so equal priorities keep rule order
    return sorted(found, key=lambda s: s.priority)
