"""Owner-scoped record store.

:class:`TransactionStore` is the query interface the engine consumes: list,
insert, full-record update and delete, always scoped to one owner.  The
hosted backend provides the production implementation; :class:`SQLiteStore`
mirrors its tables locally for development, scripts and tests.

Amounts are stored as TEXT so ``Decimal`` values round-trip exactly.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence, Union

import pandas as pd

from . import config
from .models import (
    Category,
    Kind,
    RecurringSchedule,
    TransactionRecord,
    ValidationError,
    validate_record,
    validate_schedule,
)

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS categories (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    icon TEXT,
    color TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS transactions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    amount TEXT NOT NULL,
    type TEXT NOT NULL,
    category_id TEXT,
    description TEXT NOT NULL,
    date TEXT NOT NULL,
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS recurring_transactions (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    amount TEXT NOT NULL,
    description TEXT NOT NULL,
    category_id TEXT,
    type TEXT NOT NULL,
    frequency TEXT NOT NULL,
    start_date TEXT NOT NULL,
    end_date TEXT,
    next_date TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_txn_user_date ON transactions (user_id, date);
CREATE INDEX IF NOT EXISTS ix_txn_user_category ON transactions (user_id, category_id);
CREATE INDEX IF NOT EXISTS ix_recurring_user ON recurring_transactions (user_id);
"""

TRANSACTION_COLUMNS = "id, user_id, amount, type, category_id, description, date"
SCHEDULE_COLUMNS = (
    "id, user_id, amount, description, category_id, type, frequency, "
    "start_date, end_date, next_date, is_active"
)

MIN_SUGGESTION_PREFIX = 2


class RecordNotFoundError(LookupError):
    """Raised when a row does not exist or belongs to another owner."""


@dataclass(frozen=True)
class TransactionFilter:
    start: Optional[date] = None
    end: Optional[date] = None
    kind: Optional[Kind] = None
    category_id: Optional[str] = None


class TransactionStore(Protocol):
    def list(self, owner_id: str, filter: Optional[TransactionFilter] = None) -> List[TransactionRecord]:
        ...

    def insert(self, record: TransactionRecord) -> TransactionRecord:
        ...

    def update(self, owner_id: str, record_id: str, record: TransactionRecord) -> TransactionRecord:
        ...

    def delete(self, owner_id: str, record_id: str) -> None:
        ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _fetch_dicts(conn: sqlite3.Connection, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
    cursor = conn.execute(sql, params)
    columns = [column[0] for column in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


class SQLiteStore:
    """SQLite implementation of :class:`TransactionStore`."""

    def __init__(self, db_path: Union[str, Path, None] = None):
        self.db_path = Path(db_path) if db_path is not None else config.DB_PATH
        self.init_db()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> None:
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        logger.debug("Initialised store schema at %s", self.db_path)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def list(self, owner_id: str, filter: Optional[TransactionFilter] = None) -> List[TransactionRecord]:
        where: List[str] = ["user_id = ?"]
        params: List[Any] = [owner_id]
        filter = filter or TransactionFilter()

        if filter.start:
            where.append("date >= ?")
            params.append(filter.start.isoformat())
        if filter.end:
            where.append("date <= ?")
            params.append(filter.end.isoformat())
        if filter.kind:
            where.append("type = ?")
            params.append(filter.kind.value)
        if filter.category_id:
            where.append("category_id = ?")
            params.append(filter.category_id)

        sql = f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE " + " AND ".join(where)
        sql += " ORDER BY date ASC, created_at ASC, id ASC"

        with self.connect() as conn:
            df = pd.read_sql_query(sql, conn, params=params)
        logger.debug("Fetched %d transactions for owner %s", len(df), owner_id)
        df = df.astype(object).where(df.notna(), None)
        return [TransactionRecord.from_row(row) for row in df.to_dict('records')]

    def get(self, owner_id: str, record_id: str) -> TransactionRecord:
        with self.connect() as conn:
            rows = _fetch_dicts(
                conn,
                f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE id = ? AND user_id = ?",
                (record_id, owner_id),
            )
        if not rows:
            raise RecordNotFoundError(f"Transaction {record_id} not found for owner {owner_id}")
        return TransactionRecord.from_row(rows[0])

    def insert(self, record: TransactionRecord) -> TransactionRecord:
        validate_record(record)
        if not record.owner_id:
            raise ValidationError("owner_id", "an owner is required")
        stored = record if record.id else replace(record, id=str(uuid.uuid4()))
        row = stored.to_row()
        now = _now()
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO transactions (id, user_id, amount, type, category_id, description, date, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (row['id'], row['user_id'], row['amount'], row['type'], row['category_id'],
                 row['description'], row['date'], now, now),
            )
            conn.commit()
        logger.info("Inserted transaction %s for owner %s", stored.id, stored.owner_id)
        return stored

    def update(self, owner_id: str, record_id: str, record: TransactionRecord) -> TransactionRecord:
        """Replace every field of an existing record; the owner never changes."""
        if record.owner_id != owner_id:
            raise ValidationError("owner_id", "owner cannot change after creation")
        validate_record(record)
        stored = replace(record, id=record_id)
        row = stored.to_row()
        with self.connect() as conn:
            cursor = conn.execute(
                "UPDATE transactions SET amount = ?, type = ?, category_id = ?, description = ?, date = ?, updated_at = ? "
                "WHERE id = ? AND user_id = ?",
                (row['amount'], row['type'], row['category_id'], row['description'], row['date'],
                 _now(), record_id, owner_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"Transaction {record_id} not found for owner {owner_id}")
        return stored

    def delete(self, owner_id: str, record_id: str) -> None:
        with self.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM transactions WHERE id = ? AND user_id = ?", (record_id, owner_id)
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"Transaction {record_id} not found for owner {owner_id}")
        logger.info("Deleted transaction %s for owner %s", record_id, owner_id)

    def description_suggestions(
        self,
        owner_id: str,
        category_id: Optional[str],
        prefix: str,
        limit: int = 5,
    ) -> List[str]:
        """Distinct earlier descriptions in a category that start with ``prefix``."""
        if not category_id or len(prefix or '') < MIN_SUGGESTION_PREFIX:
            return []
        escaped = prefix.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT description, MAX(created_at) AS latest FROM transactions "
                "WHERE user_id = ? AND category_id = ? AND description LIKE ? ESCAPE '\\' "
                "GROUP BY description ORDER BY latest DESC LIMIT ?",
                (owner_id, category_id, f"{escaped}%", limit),
            ).fetchall()
        return [row[0] for row in rows]

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def categories(self, kind: Optional[Kind] = None) -> List[Category]:
        sql = "SELECT id, name, type, icon, color FROM categories"
        params: List[Any] = []
        if kind:
            sql += " WHERE type = ?"
            params.append(kind.value)
        sql += " ORDER BY name"
        with self.connect() as conn:
            rows = _fetch_dicts(conn, sql, params)
        return [Category.from_row(row) for row in rows]

    def add_category(self, category: Category) -> Category:
        stored = category if category.id else replace(category, id=str(uuid.uuid4()))
        row = stored.to_row()
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO categories (id, name, type, icon, color, created_at) VALUES (?, ?, ?, ?, ?, ?)",
                (row['id'], row['name'], row['type'], row['icon'], row['color'], _now()),
            )
            conn.commit()
        return stored

    # ------------------------------------------------------------------
    # Recurring schedules
    # ------------------------------------------------------------------

    def schedules(self, owner_id: str, active_only: bool = False) -> List[RecurringSchedule]:
        sql = f"SELECT {SCHEDULE_COLUMNS} FROM recurring_transactions WHERE user_id = ?"
        if active_only:
            sql += " AND is_active = 1"
        sql += " ORDER BY next_date ASC, id ASC"
        with self.connect() as conn:
            rows = _fetch_dicts(conn, sql, (owner_id,))
        return [RecurringSchedule.from_row(row) for row in rows]

    def insert_schedule(self, schedule: RecurringSchedule) -> RecurringSchedule:
        validate_schedule(schedule)
        stored = schedule if schedule.id else replace(schedule, id=str(uuid.uuid4()))
        row = stored.to_row()
        now = _now()
        with self.connect() as conn:
            conn.execute(
                f"INSERT INTO recurring_transactions ({SCHEDULE_COLUMNS}, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (row['id'], row['user_id'], row['amount'], row['description'], row['category_id'],
                 row['type'], row['frequency'], row['start_date'], row['end_date'], row['next_date'],
                 int(row['is_active']), now, now),
            )
            conn.commit()
        logger.info("Inserted recurring schedule %s for owner %s", stored.id, stored.owner_id)
        return stored

    def update_schedule(self, owner_id: str, schedule_id: str, schedule: RecurringSchedule) -> RecurringSchedule:
        """Replace a schedule's user-editable fields.

        ``next_date`` belongs to the recurrence job and is kept, except that
        moving ``start_date`` past it moves it up to the new start.  The
        merged row is validated before anything is written.
        """
        if schedule.owner_id != owner_id:
            raise ValidationError("owner_id", "owner cannot change after creation")
        with self.connect() as conn:
            existing = _fetch_dicts(
                conn,
                f"SELECT {SCHEDULE_COLUMNS} FROM recurring_transactions WHERE id = ? AND user_id = ?",
                (schedule_id, owner_id),
            )
            if not existing:
                raise RecordNotFoundError(f"Schedule {schedule_id} not found for owner {owner_id}")
            stored_next = RecurringSchedule.from_row(existing[0]).next_occurrence
            merged = validate_schedule(replace(
                schedule,
                id=schedule_id,
                next_occurrence=max(stored_next, schedule.start_date),
            ))
            row = merged.to_row()
            conn.execute(
                "UPDATE recurring_transactions SET amount = ?, description = ?, category_id = ?, type = ?, "
                "frequency = ?, start_date = ?, end_date = ?, next_date = ?, is_active = ?, updated_at = ? "
                "WHERE id = ? AND user_id = ?",
                (row['amount'], row['description'], row['category_id'], row['type'], row['frequency'],
                 row['start_date'], row['end_date'], row['next_date'], int(row['is_active']), _now(),
                 schedule_id, owner_id),
            )
            conn.commit()
        if merged.next_occurrence != stored_next:
            logger.info("Moved next occurrence of schedule %s to %s", schedule_id, merged.next_occurrence)
        return merged

    def delete_schedule(self, owner_id: str, schedule_id: str) -> None:
        with self.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM recurring_transactions WHERE id = ? AND user_id = ?", (schedule_id, owner_id)
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"Schedule {schedule_id} not found for owner {owner_id}")
