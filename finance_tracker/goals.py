"""Financial goal progress.

Goals are a client-local concept: this module only applies progress deltas
and reports progress.  Storing goals is left to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

from .models import ValidationError, to_decimal

GOAL_PRIORITIES = ('high', 'medium', 'low')
GOAL_STATUSES = ('active', 'completed', 'paused')


@dataclass(frozen=True)
class FinancialGoal:
    id: str
    title: str
    target_amount: Decimal
    current_amount: Decimal = Decimal("0")
    deadline: Optional[date] = None
    category: str = 'savings'
    priority: str = 'medium'
    status: str = 'active'

    def __post_init__(self) -> None:
        target = to_decimal(self.target_amount, 'target_amount')
        current = to_decimal(self.current_amount, 'current_amount')
        if target <= 0:
            raise ValidationError('target_amount', 'must be positive')
        if current < 0:
            raise ValidationError('current_amount', 'must be non-negative')
        if self.priority not in GOAL_PRIORITIES:
            raise ValidationError('priority', f"expected one of {GOAL_PRIORITIES}")
        if self.status not in GOAL_STATUSES:
            raise ValidationError('status', f"expected one of {GOAL_STATUSES}")
        object.__setattr__(self, 'target_amount', target)
        object.__setattr__(self, 'current_amount', current)


def apply_progress(goal: FinancialGoal, amount) -> FinancialGoal:
    """Return ``goal`` with ``amount`` added, never exceeding the target."""
    delta = to_decimal(amount)
    updated = max(Decimal("0"), min(goal.current_amount + delta, goal.target_amount))
    if updated >= goal.target_amount:
        status = 'completed'
    elif goal.status == 'completed':
        status = 'active'
    else:
        status = goal.status
    return replace(goal, current_amount=updated, status=status)


def goal_progress(goal: FinancialGoal, monthly_savings=Decimal("0")) -> Dict[str, Any]:
    """Progress report: percentage (capped at 100), remaining, months to goal."""
    savings = to_decimal(monthly_savings, 'monthly_savings')
    percentage = min(goal.current_amount / goal.target_amount * 100, Decimal(100))
    remaining = max(goal.target_amount - goal.current_amount, Decimal("0"))

    months_to_goal: Optional[Decimal] = None
    if remaining == 0:
        months_to_goal = Decimal("0")
    elif savings > 0:
        months_to_goal = (remaining / savings).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)

    return {
        'name': goal.title,
        'current_amount': goal.current_amount,
        'target_amount': goal.target_amount,
        'progress_percentage': percentage.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP),
        'remaining_amount': remaining,
        'months_to_goal': months_to_goal,
        'status': 'Completed' if remaining == 0 else 'In Progress',
    }
