from datetime import date, datetime
from decimal import Decimal

import pytest

from finance_tracker.models import (
    Category,
    Frequency,
    Kind,
    RecurringSchedule,
    TransactionRecord,
    ValidationError,
    category_index,
    replace_record,
    to_date,
    to_decimal,
    validate_record,
    validate_schedule,
)


def _record(**overrides):
    fields = dict(
        id='t1',
        owner_id='user-1',
        amount=Decimal('45.00'),
        kind=Kind.EXPENSE,
        category_id='food',
        description='Groceries',
        occurred_on=date(2024, 1, 14),
    )
    fields.update(overrides)
    return TransactionRecord(**fields)


def test_from_row_parses_store_shape():
    record = TransactionRecord.from_row({
        'id': 'abc',
        'user_id': 'user-1',
        'amount': 89.99,
        'type': 'expense',
        'category_id': 'food',
        'description': 'Supermarket',
        'date': '2024-01-14',
    })

    assert record.amount == Decimal('89.99')
    assert record.kind is Kind.EXPENSE
    assert record.occurred_on == date(2024, 1, 14)
    assert record.owner_id == 'user-1'
    assert record.signed_amount == Decimal('-89.99')


def test_to_row_roundtrips_through_from_row():
    record = _record()
    assert TransactionRecord.from_row(record.to_row()) == record


def test_to_decimal_avoids_binary_float_noise():
    assert to_decimal(0.1) + to_decimal(0.2) == Decimal('0.3')
    assert to_decimal('1,234.50') == Decimal('1234.50')


def test_to_decimal_rejects_garbage():
    with pytest.raises(ValidationError) as excinfo:
        to_decimal('twelve')
    assert excinfo.value.field == 'amount'


def test_to_date_accepts_datetime_and_strings():
    assert to_date(datetime(2024, 2, 29, 13, 45)) == date(2024, 2, 29)
    assert to_date('2024-02-29') == date(2024, 2, 29)
    with pytest.raises(ValidationError):
        to_date('2023-02-30')


def test_unknown_kind_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        TransactionRecord.from_row({
            'id': 'x', 'user_id': 'u', 'amount': 1, 'type': 'transfer',
            'category_id': 'c', 'description': 'd', 'date': '2024-01-01',
        })
    assert excinfo.value.field == 'kind'


def test_validate_record_rejects_negative_amount():
    with pytest.raises(ValidationError) as excinfo:
        validate_record(_record(amount=Decimal('-1')))
    assert excinfo.value.field == 'amount'


def test_validate_record_rejects_missing_category():
    with pytest.raises(ValidationError) as excinfo:
        validate_record(_record(category_id=None))
    assert excinfo.value.field == 'category_id'


def test_validate_record_rejects_blank_description():
    with pytest.raises(ValidationError) as excinfo:
        validate_record(_record(description='   '))
    assert excinfo.value.field == 'description'


def test_validate_record_flags_category_kind_mismatch():
    categories = category_index([
        Category(id='food', name='Food', kind=Kind.EXPENSE),
        Category(id='salary', name='Salary', kind=Kind.INCOME),
    ])

    assert validate_record(_record(), categories) == _record()
    with pytest.raises(ValidationError) as excinfo:
        validate_record(_record(category_id='salary'), categories)
    assert excinfo.value.field == 'category_id'
    with pytest.raises(ValidationError):
        validate_record(_record(category_id='unknown'), categories)


def test_owner_is_immutable_on_replace():
    record = _record()
    updated = replace_record(record, amount=Decimal('50'))
    assert updated.amount == Decimal('50')
    with pytest.raises(ValidationError) as excinfo:
        replace_record(record, owner_id='someone-else')
    assert excinfo.value.field == 'owner_id'


def test_schedule_defaults_next_occurrence_to_start():
    schedule = RecurringSchedule.from_row({
        'id': 's1', 'user_id': 'u', 'amount': '1200', 'description': 'Mortgage',
        'category_id': 'housing', 'type': 'expense', 'frequency': 'Monthly',
        'start_date': '2024-01-31', 'end_date': None, 'is_active': 1,
    })
    assert schedule.frequency is Frequency.MONTHLY
    assert schedule.next_occurrence == date(2024, 1, 31)
    assert schedule.active is True


def test_validate_schedule_checks_date_bounds():
    base = dict(
        id='s1', owner_id='u', amount=Decimal('10'), description='Gym', category_id='fit',
        kind=Kind.EXPENSE, frequency=Frequency.MONTHLY, start_date=date(2024, 3, 1),
    )
    with pytest.raises(ValidationError) as excinfo:
        validate_schedule(RecurringSchedule(end_date=date(2024, 2, 1), **base))
    assert excinfo.value.field == 'end_date'
    with pytest.raises(ValidationError) as excinfo:
        validate_schedule(RecurringSchedule(next_occurrence=date(2024, 2, 1), **base))
    assert excinfo.value.field == 'next_occurrence'


def test_validate_schedule_rejects_next_after_end_while_active():
    base = dict(
        id='s1', owner_id='u', amount=Decimal('10'), description='Gym', category_id='fit',
        kind=Kind.EXPENSE, frequency=Frequency.MONTHLY, start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 10), next_occurrence=date(2024, 2, 1),
    )
    with pytest.raises(ValidationError) as excinfo:
        validate_schedule(RecurringSchedule(**base))
    assert excinfo.value.field == 'next_occurrence'

    finished = RecurringSchedule(active=False, **base)
    assert validate_schedule(finished) is finished


def test_schedule_active_flag_is_parsed_strictly():
    row = {
        'id': 's1', 'user_id': 'u', 'amount': '15', 'description': 'Gym',
        'category_id': 'fit', 'type': 'expense', 'frequency': 'monthly',
        'start_date': '2024-01-01',
    }
    assert RecurringSchedule.from_row({**row, 'is_active': 'false'}).active is False
    assert RecurringSchedule.from_row({**row, 'is_active': '0'}).active is False
    assert RecurringSchedule.from_row({**row, 'is_active': 0}).active is False
    assert RecurringSchedule.from_row({**row, 'is_active': 'True'}).active is True
    assert RecurringSchedule.from_row(row).active is True
    with pytest.raises(ValidationError) as excinfo:
        RecurringSchedule.from_row({**row, 'is_active': 'maybe'})
    assert excinfo.value.field == 'active'
