from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.models import Category, Frequency, Kind, RecurringSchedule, TransactionRecord, ValidationError
from finance_tracker.recurrence import project_next_occurrence
from finance_tracker.store import RecordNotFoundError, SQLiteStore, TransactionFilter


def _store(tmp_path):
    return SQLiteStore(tmp_path / 'finance.db')


def _txn(owner='user-1', amount='45.00', kind=Kind.EXPENSE, category='food', description='Groceries', day=date(2024, 1, 14)):
    return TransactionRecord(
        id='',
        owner_id=owner,
        amount=Decimal(amount),
        kind=kind,
        category_id=category,
        description=description,
        occurred_on=day,
    )


def test_insert_assigns_id_and_round_trips_exact_amounts(tmp_path):
    store = _store(tmp_path)
    stored = store.insert(_txn(amount='89.99'))

    assert stored.id
    fetched = store.get('user-1', stored.id)
    assert fetched == stored
    assert fetched.amount == Decimal('89.99')


def test_list_is_scoped_to_owner(tmp_path):
    store = _store(tmp_path)
    store.insert(_txn(owner='user-1'))
    store.insert(_txn(owner='user-2', description='Someone else'))

    records = store.list('user-1')
    assert len(records) == 1
    assert records[0].owner_id == 'user-1'
    assert store.list('nobody') == []


def test_list_filters_by_date_kind_and_category(tmp_path):
    store = _store(tmp_path)
    store.insert(_txn(day=date(2024, 1, 5), amount='2500', kind=Kind.INCOME, category='salary', description='Salary'))
    store.insert(_txn(day=date(2024, 1, 14)))
    store.insert(_txn(day=date(2024, 2, 2), category='transport', description='Fuel'))

    january = store.list('user-1', TransactionFilter(start=date(2024, 1, 1), end=date(2024, 1, 31)))
    assert [r.description for r in january] == ['Salary', 'Groceries']

    expenses = store.list('user-1', TransactionFilter(kind=Kind.EXPENSE))
    assert {r.category_id for r in expenses} == {'food', 'transport'}

    fuel = store.list('user-1', TransactionFilter(category_id='transport'))
    assert [r.description for r in fuel] == ['Fuel']


def test_insert_rejects_invalid_records(tmp_path):
    store = _store(tmp_path)
    with pytest.raises(ValidationError):
        store.insert(_txn(amount='-3'))
    with pytest.raises(ValidationError) as excinfo:
        store.insert(_txn(owner=''))
    assert excinfo.value.field == 'owner_id'
    assert store.list('user-1') == []


def test_update_replaces_fields_but_not_owner(tmp_path):
    store = _store(tmp_path)
    stored = store.insert(_txn())

    changed = TransactionRecord(
        id=stored.id,
        owner_id='user-1',
        amount=Decimal('50.25'),
        kind=Kind.EXPENSE,
        category_id='food',
        description='Market',
        occurred_on=date(2024, 1, 15),
    )
    store.update('user-1', stored.id, changed)
    assert store.get('user-1', stored.id).description == 'Market'

    with pytest.raises(ValidationError):
        store.update('user-1', stored.id, TransactionRecord(**{**changed.__dict__, 'owner_id': 'user-2'}))


def test_update_and_delete_other_owners_record_fail(tmp_path):
    store = _store(tmp_path)
    stored = store.insert(_txn())

    with pytest.raises(RecordNotFoundError):
        store.update('user-2', stored.id, _txn(owner='user-2'))
    with pytest.raises(RecordNotFoundError):
        store.delete('user-2', stored.id)

    store.delete('user-1', stored.id)
    with pytest.raises(RecordNotFoundError):
        store.get('user-1', stored.id)


def test_description_suggestions(tmp_path):
    store = _store(tmp_path)
    store.insert(_txn(description='Supermarket'))
    store.insert(_txn(description='Supermarket'))
    store.insert(_txn(description='Sushi bar'))
    store.insert(_txn(description='Bakery'))
    store.insert(_txn(description='Subway', category='transport'))

    suggestions = store.description_suggestions('user-1', 'food', 'Su')
    assert sorted(suggestions) == ['Supermarket', 'Sushi bar']
    assert store.description_suggestions('user-1', 'food', 'S') == []
    assert store.description_suggestions('user-1', None, 'Su') == []
    assert store.description_suggestions('user-1', 'food', '%u') == []


def test_categories_by_kind(tmp_path):
    store = _store(tmp_path)
    store.add_category(Category(id='food', name='Food', kind=Kind.EXPENSE))
    store.add_category(Category(id='salary', name='Salary', kind=Kind.INCOME))

    assert [c.id for c in store.categories()] == ['food', 'salary']
    assert [c.id for c in store.categories(Kind.INCOME)] == ['salary']


def test_schedule_round_trip_and_update_keeps_next_date(tmp_path):
    store = _store(tmp_path)
    schedule = store.insert_schedule(RecurringSchedule(
        id='',
        owner_id='user-1',
        amount=Decimal('1200'),
        description='Mortgage',
        category_id='housing',
        kind=Kind.EXPENSE,
        frequency=Frequency.MONTHLY,
        start_date=date(2024, 1, 31),
        next_occurrence=date(2024, 2, 29),
    ))

    [fetched] = store.schedules('user-1')
    assert fetched == schedule

    edited = RecurringSchedule(**{**schedule.__dict__, 'amount': Decimal('1250'), 'next_occurrence': date(2030, 1, 1)})
    updated = store.update_schedule('user-1', schedule.id, edited)
    assert updated.amount == Decimal('1250')
    assert updated.next_occurrence == date(2024, 2, 29)

    suspended = RecurringSchedule(**{**updated.__dict__, 'active': False})
    store.update_schedule('user-1', schedule.id, suspended)
    assert store.schedules('user-1', active_only=True) == []

    store.delete_schedule('user-1', schedule.id)
    with pytest.raises(RecordNotFoundError):
        store.delete_schedule('user-1', schedule.id)


def _mortgage(store, **overrides):
    fields = dict(
        id='',
        owner_id='user-1',
        amount=Decimal('1200'),
        description='Mortgage',
        category_id='housing',
        kind=Kind.EXPENSE,
        frequency=Frequency.MONTHLY,
        start_date=date(2024, 1, 31),
        next_occurrence=date(2024, 2, 29),
    )
    fields.update(overrides)
    return store.insert_schedule(RecurringSchedule(**fields))


def test_moving_start_past_next_date_moves_next_date(tmp_path):
    store = _store(tmp_path)
    schedule = _mortgage(store)

    edited = RecurringSchedule(**{**schedule.__dict__, 'start_date': date(2024, 6, 1)})
    updated = store.update_schedule('user-1', schedule.id, edited)
    assert updated.next_occurrence == date(2024, 6, 1)

    [fetched] = store.schedules('user-1')
    assert fetched.next_occurrence >= fetched.start_date
    assert project_next_occurrence(fetched, date(2024, 3, 1)) == date(2024, 6, 1)


def test_schedule_edit_ending_before_next_date_is_rejected(tmp_path):
    store = _store(tmp_path)
    schedule = _mortgage(store)

    edited = RecurringSchedule(**{**schedule.__dict__, 'end_date': date(2024, 2, 10)})
    with pytest.raises(ValidationError) as excinfo:
        store.update_schedule('user-1', schedule.id, edited)
    assert excinfo.value.field == 'next_occurrence'
    assert store.schedules('user-1') == [schedule]


def test_update_missing_schedule_fails(tmp_path):
    store = _store(tmp_path)
    schedule = _mortgage(store)
    with pytest.raises(RecordNotFoundError):
        store.update_schedule('user-2', schedule.id, RecurringSchedule(**{**schedule.__dict__, 'owner_id': 'user-2'}))
