"""Client-side projection of recurring schedules.

These helpers only *forecast* dates.  Advancing a schedule's stored
``next_occurrence`` and materializing the due transaction is done by the
store's recurrence job; nothing here mutates a schedule.

Clamp rule for monthly and yearly steps: each step moves the stored
``next_occurrence`` forward one calendar month (or year) and keeps its
day-of-month, landing on the target month's last day only when that day
does not exist there.  When ``next_occurrence`` is itself such a clamped
month end (earlier than ``start_date.day`` and the last day of its month),
the start day is the anchor again, so a series started on Jan 31 runs
Jan 31 -> Feb 29 -> Mar 31 -> Apr 30 rather than drifting to the 29th.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional

from .models import Frequency, RecurringSchedule

FIXED_STEP_DAYS = {
    Frequency.DAILY: 1,
    Frequency.WEEKLY: 7,
}

# Approximate periods per month, used to compare schedules side by side.
MONTHLY_MULTIPLIERS: Dict[Frequency, Decimal] = {
    Frequency.DAILY: Decimal(365) / Decimal(12),
    Frequency.WEEKLY: Decimal(52) / Decimal(12),
    Frequency.MONTHLY: Decimal(1),
    Frequency.YEARLY: Decimal(1) / Decimal(12),
}

CENT = Decimal("0.01")


def add_months(day: date, months: int, anchor_day: Optional[int] = None) -> date:
    """Shift ``day`` by ``months`` calendar months, clamping to month end.

    ``anchor_day`` overrides the day-of-month to aim for (defaults to
    ``day.day``).
    """
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    target = anchor_day or day.day
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(target, last_day))


def add_years(day: date, years: int, anchor_day: Optional[int] = None) -> date:
    return add_months(day, years * 12, anchor_day)


def step(current: date, frequency: Frequency, anchor_day: Optional[int] = None) -> date:
    """Advance ``current`` by exactly one period of ``frequency``."""
    if frequency in FIXED_STEP_DAYS:
        return current + timedelta(days=FIXED_STEP_DAYS[frequency])
    if frequency is Frequency.MONTHLY:
        return add_months(current, 1, anchor_day)
    if frequency is Frequency.YEARLY:
        return add_years(current, 1, anchor_day)
    raise ValueError(f"Unsupported frequency: {frequency!r}")


def step_anchor(schedule: RecurringSchedule) -> int:
    """Day-of-month that monthly and yearly steps aim for."""
    current = schedule.next_occurrence or schedule.start_date
    last_day = calendar.monthrange(current.year, current.month)[1]
    if current.day < schedule.start_date.day and current.day == last_day:
        return schedule.start_date.day
    return current.day


def is_schedule_active(schedule: RecurringSchedule, as_of: date) -> bool:
    """True when the schedule is neither suspended nor past its end date."""
    if not schedule.active:
        return False
    return schedule.end_date is None or as_of <= schedule.end_date


def _fast_forward(current: date, frequency: Frequency, as_of: date) -> date:
    # Daily/weekly series can jump straight to the first step on/after as_of.
    days = FIXED_STEP_DAYS.get(frequency)
    if days is None or current >= as_of:
        return current
    periods = -(-(as_of - current).days // days)
    return current + timedelta(days=periods * days)


def project_next_occurrence(schedule: RecurringSchedule, as_of: date) -> Optional[date]:
    """Forecast the first occurrence on or after ``as_of``.

    Returns ``None`` for a suspended schedule, for one whose ``end_date``
    has passed, and when the next step would fall after ``end_date``.
    """
    if not is_schedule_active(schedule, as_of):
        return None

    anchor = step_anchor(schedule)
    current = _fast_forward(schedule.next_occurrence or schedule.start_date, schedule.frequency, as_of)
    while current < as_of:
        current = step(current, schedule.frequency, anchor)

    if schedule.end_date is not None and current > schedule.end_date:
        return None
    return current


def upcoming_occurrences(schedule: RecurringSchedule, as_of: date, count: int = 3) -> List[date]:
    """The next ``count`` projected dates, stopping at ``end_date``."""
    first = project_next_occurrence(schedule, as_of)
    if first is None or count <= 0:
        return []

    anchor = step_anchor(schedule)
    dates = [first]
    while len(dates) < count:
        following = step(dates[-1], schedule.frequency, anchor)
        if schedule.end_date is not None and following > schedule.end_date:
            break
        dates.append(following)
    return dates


def compute_end_date(start: date, years: int = 0, months: int = 0) -> date:
    """End date for a duration-based schedule (e.g. a 30-year mortgage).

    Years are added first, then months, both anchored on ``start.day``.
    """
    if years < 0 or months < 0:
        raise ValueError("Duration years and months must be non-negative")
    after_years = add_years(start, years, start.day)
    return add_months(after_years, months, start.day)


def monthly_equivalent(schedule: RecurringSchedule) -> Decimal:
    """Approximate monthly cost of a schedule, rounded to cents."""
    multiplier = MONTHLY_MULTIPLIERS[schedule.frequency]
    return (schedule.amount * multiplier).quantize(CENT, rounding=ROUND_HALF_UP)
