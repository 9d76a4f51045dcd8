"""Record model: transaction, category and recurring-schedule value types.

Records mirror the row shape returned by the store's query layer
(``user_id``, ``type``, ``category_id``, ``date`` ...) and are converted
into immutable dataclasses with exact ``Decimal`` amounts and
``datetime.date`` values.  Validation never coerces or drops data: a
malformed record raises :class:`ValidationError` naming the field.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional

import pandas as pd


class ValidationError(ValueError):
    """Raised when a record or schedule violates the record model."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class Kind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# ---------------------------------------------------------------------------
# Value parsing
# ---------------------------------------------------------------------------


def to_decimal(value: Any, field_name: str = "amount") -> Decimal:
    """Convert store amounts (numbers or numeric strings) to ``Decimal``.

    Floats go through ``str`` so ``89.99`` stays ``Decimal('89.99')``.
    """
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise ValidationError(field_name, "a numeric value is required")
    if isinstance(value, str):
        value = value.strip().replace(",", "")
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(field_name, f"not a number: {value!r}") from None
    if not result.is_finite():
        raise ValidationError(field_name, "must be finite")
    return result


def to_date(value: Any, field_name: str = "date") -> date:
    """Convert ``date``/``datetime``/Timestamp/ISO strings into ``date``."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(field_name, "a calendar date is required")
    if hasattr(value, "to_pydatetime"):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        raise ValidationError(field_name, f"not a valid calendar date: {value!r}")
    return ts.date()


def _optional_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_date(value, field_name)


def _to_kind(value: Any) -> Kind:
    try:
        return Kind(str(value).strip().lower())
    except ValueError:
        raise ValidationError("kind", f"expected 'income' or 'expense', got {value!r}") from None


def _to_frequency(value: Any) -> Frequency:
    try:
        return Frequency(str(value).strip().lower())
    except ValueError:
        raise ValidationError("frequency", f"unsupported frequency {value!r}") from None


TRUE_VALUES = {"1", "true", "t", "yes", "y"}
FALSE_VALUES = {"0", "false", "f", "no", "n"}


def _to_flag(value: Any, field_name: str) -> bool:
    """Parse store flags (``1``/``0``, ``"true"``/``"false"``) strictly."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValidationError(field_name, f"expected a boolean flag, got {value!r}")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    kind: Kind
    icon: str = ""
    color: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Category":
        return cls(
            id=str(row["id"]),
            name=str(row.get("name") or ""),
            kind=_to_kind(row.get("type", row.get("kind"))),
            icon=str(row.get("icon") or ""),
            color=str(row.get("color") or ""),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.kind.value,
            "icon": self.icon,
            "color": self.color,
        }


@dataclass(frozen=True)
class TransactionRecord:
    id: str
    owner_id: str
    amount: Decimal
    kind: Kind
    category_id: Optional[str]
    description: str
    occurred_on: date

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "TransactionRecord":
        """Build a record from a store row (``user_id``/``type``/``date`` keys)."""
        category_id = row.get("category_id")
        return cls(
            id=str(row.get("id") or ""),
            owner_id=str(row.get("user_id", row.get("owner_id")) or ""),
            amount=to_decimal(row.get("amount")),
            kind=_to_kind(row.get("type", row.get("kind"))),
            category_id=str(category_id) if category_id not in (None, "") else None,
            description=str(row.get("description") or ""),
            occurred_on=to_date(row.get("date", row.get("occurred_on")), "occurred_on"),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.owner_id,
            "amount": str(self.amount),
            "type": self.kind.value,
            "category_id": self.category_id,
            "description": self.description,
            "date": self.occurred_on.isoformat(),
        }

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.kind is Kind.INCOME else -self.amount


@dataclass(frozen=True)
class RecurringSchedule:
    id: str
    owner_id: str
    amount: Decimal
    description: str
    category_id: Optional[str]
    kind: Kind
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None
    next_occurrence: Optional[date] = None
    active: bool = True

    def __post_init__(self) -> None:
        # A freshly created schedule is first due on its start date.
        if self.next_occurrence is None:
            object.__setattr__(self, "next_occurrence", self.start_date)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RecurringSchedule":
        category_id = row.get("category_id")
        return cls(
            id=str(row.get("id") or ""),
            owner_id=str(row.get("user_id", row.get("owner_id")) or ""),
            amount=to_decimal(row.get("amount")),
            description=str(row.get("description") or ""),
            category_id=str(category_id) if category_id not in (None, "") else None,
            kind=_to_kind(row.get("type", row.get("kind"))),
            frequency=_to_frequency(row.get("frequency")),
            start_date=to_date(row.get("start_date"), "start_date"),
            end_date=_optional_date(row.get("end_date"), "end_date"),
            next_occurrence=_optional_date(
                row.get("next_date", row.get("next_occurrence")), "next_occurrence"
            ),
            active=_to_flag(row.get("is_active", row.get("active", True)), "active"),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.owner_id,
            "amount": str(self.amount),
            "description": self.description,
            "category_id": self.category_id,
            "type": self.kind.value,
            "frequency": self.frequency.value,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "next_date": self.next_occurrence.isoformat() if self.next_occurrence else None,
            "is_active": self.active,
        }


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_record(
    record: TransactionRecord,
    categories: Optional[Mapping[str, Category]] = None,
) -> TransactionRecord:
    """Check a record against the model invariants and return it unchanged.

    When ``categories`` (id -> Category) is given, the category must exist
    and share the record's kind.
    """
    if not isinstance(record.amount, Decimal) or not record.amount.is_finite():
        raise ValidationError("amount", f"expected a finite Decimal, got {record.amount!r}")
    if record.amount < 0:
        raise ValidationError("amount", f"must be non-negative, got {record.amount}")
    if not isinstance(record.kind, Kind):
        raise ValidationError("kind", f"expected a Kind, got {record.kind!r}")
    if not record.category_id:
        raise ValidationError("category_id", f"record {record.id or '<new>'} has no category")
    if not record.description or not record.description.strip():
        raise ValidationError("description", "must not be empty")
    if not isinstance(record.occurred_on, date) or isinstance(record.occurred_on, datetime):
        raise ValidationError("occurred_on", f"expected a calendar date, got {record.occurred_on!r}")

    if categories is not None:
        category = categories.get(record.category_id)
        if category is None:
            raise ValidationError("category_id", f"unknown category {record.category_id}")
        if category.kind is not record.kind:
            raise ValidationError(
                "category_id",
                f"category {category.name} is {category.kind.value}, record is {record.kind.value}",
            )
    return record


def validate_schedule(schedule: RecurringSchedule) -> RecurringSchedule:
    if schedule.amount < 0:
        raise ValidationError("amount", f"must be non-negative, got {schedule.amount}")
    if not isinstance(schedule.frequency, Frequency):
        raise ValidationError("frequency", f"unsupported frequency {schedule.frequency!r}")
    if schedule.end_date is not None and schedule.end_date < schedule.start_date:
        raise ValidationError("end_date", "must not be before start_date")
    if schedule.next_occurrence is not None and schedule.next_occurrence < schedule.start_date:
        raise ValidationError("next_occurrence", "must not be before start_date")
    if (
        schedule.active
        and schedule.end_date is not None
        and schedule.next_occurrence is not None
        and schedule.next_occurrence > schedule.end_date
    ):
        raise ValidationError("next_occurrence", "must not be after end_date while active")
    return schedule


def category_index(categories: Iterable[Category]) -> Dict[str, Category]:
    return {category.id: category for category in categories}


def replace_record(record: TransactionRecord, **changes: Any) -> TransactionRecord:
    """Full-field replace that keeps ``owner_id`` immutable."""
    if "owner_id" in changes and changes["owner_id"] != record.owner_id:
        raise ValidationError("owner_id", "owner cannot change after creation")
    return replace(record, **changes)
