"""SQLite store for transactions, subscriptions, saving plans, report history and the user profile.

All reads that feed the aggregation engine come back as pandas DataFrames;
the engine itself never talks to the database.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Optional

import pandas as pd

from .billing import is_supported_cycle, normalize_cycle, parse_date, to_number
from .config import ensure_data_directories, get_db_path
from .goals import DEFAULT_PLAN_CATEGORY
from .logging_setup import get_logger
from .reports import REPORT_HISTORY_LIMIT

logger = get_logger(__name__)

TRANSACTION_TYPES = ('income', 'expense', 'transfer')
DEFAULT_TRANSACTION_CATEGORY = 'Uncategorized'
DEFAULT_SUBSCRIPTION_CATEGORY = 'Other'

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS "transaction" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    category TEXT NOT NULL,
    type TEXT NOT NULL CHECK (type IN ('income','expense','transfer')),
    amount REAL NOT NULL CHECK (amount >= 0),
    occurred_at TEXT NOT NULL,
    notes TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS ix_transaction_occurred ON "transaction" (occurred_at);

CREATE TABLE IF NOT EXISTS subscriptions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    category TEXT NOT NULL,
    amount REAL NOT NULL CHECK (amount >= 0),
    billing_cycle TEXT NOT NULL,
    next_billing_date TEXT,
    notes TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS user_profile (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    full_name TEXT NOT NULL,
    date_of_birth TEXT NOT NULL,
    monthly_income REAL NOT NULL CHECK (monthly_income >= 0),
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS saving_plan (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    category TEXT,
    target_amount REAL NOT NULL CHECK (target_amount >= 0),
    saved_amount REAL NOT NULL CHECK (saved_amount >= 0),
    note TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS report_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    report_type TEXT NOT NULL,
    file_format TEXT NOT NULL,
    period_start TEXT,
    period_end TEXT,
    summary TEXT,
    generated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""

_ERROR_MESSAGES = {
    sqlite3.IntegrityError: "Constraint failed. Check for duplicate or invalid data.",
}


class StoreError(RuntimeError):
    """Raised when the database can't be opened or a query fails."""


def normalize_db_error(error: BaseException) -> str:
    """Turn a driver error into a message suitable for the user."""
    for error_type, message in _ERROR_MESSAGES.items():
        if isinstance(error, error_type):
            return message
    text = str(error)
    lowered = text.lower()
    if 'locked' in lowered or 'busy' in lowered:
        return "Database is busy. Please retry in a moment."
    if 'readonly' in lowered or 'read-only' in lowered:
        return "Database is read-only. Adjust file permissions."
    if 'unable to open' in lowered:
        return f"{text}. Verify FINLYTICS_DB_PATH or FINLYTICS_DATABASE_URL (current path: {get_db_path()})."
    return text or "Unexpected error."


@contextmanager
def connect() -> Iterator[sqlite3.Connection]:
    ensure_data_directories()
    path = get_db_path()
    try:
        conn = sqlite3.connect(str(path))
    except sqlite3.Error as exc:
        raise StoreError(normalize_db_error(exc)) from exc
    try:
        yield conn
    except sqlite3.Error as exc:
        logger.error("Query against %s failed: %s", path, exc)
        raise StoreError(normalize_db_error(exc)) from exc
    except pd.errors.DatabaseError as exc:
        logger.error("Query against %s failed: %s", path, exc)
        cause = exc.__cause__ if isinstance(exc.__cause__, sqlite3.Error) else exc
        raise StoreError(normalize_db_error(cause)) from exc
    finally:
        conn.close()


def init_db() -> None:
    with connect() as conn:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
    logger.debug("Schema ensured at %s", get_db_path())


def _iso(value: Any) -> Optional[str]:
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else None


def _read(sql: str, params: Optional[List[Any]] = None) -> pd.DataFrame:
    init_db()
    with connect() as conn:
        df = pd.read_sql_query(sql, conn, params=params or [])
    logger.debug("Fetched %d rows", len(df))
    return df


def _row(table: str, row_id: int, columns: str) -> Optional[Dict[str, Any]]:
    with connect() as conn:
        conn.row_factory = sqlite3.Row
        row = conn.execute(f'SELECT {columns} FROM "{table}" WHERE id = ?', (row_id,)).fetchone()
    return dict(row) if row else None


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

TRANSACTION_COLUMNS = "id, title, category, type, amount, occurred_at, notes, created_at"


def validate_transaction(payload: Dict[str, Any]) -> Optional[str]:
    if not str(payload.get('title') or '').strip():
        return "Transaction title is required."
    kind = str(payload.get('type') or 'expense').strip().lower()
    if kind not in TRANSACTION_TYPES:
        return "Transaction type must be income, expense or transfer."
    try:
        amount = float(payload.get('amount'))
    except (TypeError, ValueError):
        return "Enter a valid amount greater than zero."
    if to_number(amount) <= 0:
        return "Enter a valid amount greater than zero."
    if _iso(payload.get('occurred_at')) is None:
        return "Provide a valid transaction date."
    return None


def create_transaction(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a transaction and return the stored row.

    Raises:
        ValueError: If the payload fails validation
    """
    problem = validate_transaction(payload)
    if problem:
        raise ValueError(problem)

    record = (
        str(payload['title']).strip(),
        str(payload.get('category') or '').strip() or DEFAULT_TRANSACTION_CATEGORY,
        str(payload.get('type') or 'expense').strip().lower(),
        abs(to_number(payload['amount'])),
        _iso(payload['occurred_at']),
        str(payload['notes']).strip() if payload.get('notes') else None,
    )
    init_db()
    with connect() as conn:
        cursor = conn.execute(
            'INSERT INTO "transaction" (title, category, type, amount, occurred_at, notes) '
            "VALUES (?, ?, ?, ?, ?, ?)",
            record,
        )
        conn.commit()
        new_id = cursor.lastrowid
    logger.info("Recorded %s transaction %s", record[2], new_id)
    return _row('transaction', new_id, TRANSACTION_COLUMNS)


def list_transactions(start_date: Any = None, end_date: Any = None) -> pd.DataFrame:
    """Transactions newest first, optionally limited to ``[start_date, end_date)``."""
    where: List[str] = []
    params: List[Any] = []
    if start_date:
        where.append("occurred_at >= ?")
        params.append(_iso(start_date))
    if end_date:
        where.append("occurred_at < ?")
        params.append(_iso(end_date))

    sql = f'SELECT {TRANSACTION_COLUMNS} FROM "transaction"'
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += " ORDER BY occurred_at DESC, created_at DESC, id DESC"
    df = _read(sql, params)
    df['notes'] = df['notes'].fillna('')
    return df


def delete_transaction(transaction_id: int) -> bool:
    init_db()
    with connect() as conn:
        cursor = conn.execute('DELETE FROM "transaction" WHERE id = ?', (transaction_id,))
        conn.commit()
        return cursor.rowcount > 0


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------

SUBSCRIPTION_COLUMNS = "id, name, category, amount, billing_cycle, next_billing_date, notes, created_at"


def validate_subscription(payload: Dict[str, Any]) -> Optional[str]:
    if not str(payload.get('name') or '').strip():
        return "Subscription name is required."
    try:
        amount = float(payload.get('amount'))
    except (TypeError, ValueError):
        return "Enter a valid amount greater than zero."
    if to_number(amount) <= 0:
        return "Enter a valid amount greater than zero."
    if not is_supported_cycle(payload.get('billing_cycle')):
        return "Select a supported billing cycle."
    if not payload.get('next_billing_date'):
        return "Next billing date is required."
    if _iso(payload['next_billing_date']) is None:
        return "Provide a valid next billing date."
    return None


def create_subscription(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a subscription and return the stored row.

    Raises:
        ValueError: If the payload fails validation
    """
    problem = validate_subscription(payload)
    if problem:
        raise ValueError(problem)

    record = (
        str(payload['name']).strip(),
        str(payload.get('category') or '').strip() or DEFAULT_SUBSCRIPTION_CATEGORY,
        to_number(payload['amount']),
        normalize_cycle(payload['billing_cycle']),
        _iso(payload['next_billing_date']),
        str(payload['notes']).strip() if payload.get('notes') else None,
    )
    init_db()
    with connect() as conn:
        cursor = conn.execute(
            "INSERT INTO subscriptions (name, category, amount, billing_cycle, next_billing_date, notes) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            record,
        )
        conn.commit()
        new_id = cursor.lastrowid
    logger.info("Added %s subscription %s", record[3], new_id)
    return _row('subscriptions', new_id, SUBSCRIPTION_COLUMNS)


def list_subscriptions() -> pd.DataFrame:
    """All subscriptions ordered by next billing date (undated last)."""
    sql = (
        f"SELECT {SUBSCRIPTION_COLUMNS} FROM subscriptions "
        "ORDER BY next_billing_date IS NULL, next_billing_date, id"
    )
    df = _read(sql)
    df['notes'] = df['notes'].fillna('')
    return df


def delete_subscription(subscription_id: int) -> bool:
    init_db()
    with connect() as conn:
        cursor = conn.execute("DELETE FROM subscriptions WHERE id = ?", (subscription_id,))
        conn.commit()
        return cursor.rowcount > 0


# ---------------------------------------------------------------------------
# User profile
# ---------------------------------------------------------------------------

def get_user_profile() -> Optional[Dict[str, Any]]:
    init_db()
    with connect() as conn:
        conn.row_factory = sqlite3.Row
        row = conn.execute(
            "SELECT id, full_name, date_of_birth, monthly_income, created_at "
            "FROM user_profile ORDER BY id LIMIT 1"
        ).fetchone()
    return dict(row) if row else None


def save_user_profile(full_name: str, date_of_birth: Any, monthly_income: Any) -> Optional[Dict[str, Any]]:
    """Replace the single stored profile."""
    init_db()
    with connect() as conn:
        conn.execute("DELETE FROM user_profile")
        conn.execute(
            "INSERT INTO user_profile (full_name, date_of_birth, monthly_income) VALUES (?, ?, ?)",
            ((full_name or '').strip(), _iso(date_of_birth), to_number(monthly_income)),
        )
        conn.commit()
    return get_user_profile()


# ---------------------------------------------------------------------------
# Saving plans
# ---------------------------------------------------------------------------

SAVING_PLAN_COLUMNS = "id, title, category, target_amount, saved_amount, note, created_at"


def validate_saving_plan(payload: Dict[str, Any]) -> Optional[str]:
    if not str(payload.get('title') or '').strip():
        return "Give your plan a title."
    if to_number(payload.get('target_amount')) <= 0:
        return "Target amount must be greater than zero."
    if to_number(payload.get('saved_amount')) < 0:
        return "Saved amount can't be negative."
    return None


def create_saving_plan(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a saving plan and return the stored row.

    Raises:
        ValueError: If the payload fails validation
    """
    problem = validate_saving_plan(payload)
    if problem:
        raise ValueError(problem)

    record = (
        str(payload['title']).strip(),
        str(payload.get('category') or '').strip() or DEFAULT_PLAN_CATEGORY,
        to_number(payload['target_amount']),
        to_number(payload.get('saved_amount')),
        str(payload['note']).strip() if payload.get('note') else None,
    )
    init_db()
    with connect() as conn:
        cursor = conn.execute(
            "INSERT INTO saving_plan (title, category, target_amount, saved_amount, note) "
            "VALUES (?, ?, ?, ?, ?)",
            record,
        )
        conn.commit()
        new_id = cursor.lastrowid
    logger.info("Added saving plan %s", new_id)
    return _row('saving_plan', new_id, SAVING_PLAN_COLUMNS)


def list_saving_plans() -> pd.DataFrame:
    """Saving plans, newest first."""
    df = _read(f"SELECT {SAVING_PLAN_COLUMNS} FROM saving_plan ORDER BY created_at DESC, id DESC")
    df['category'] = df['category'].fillna(DEFAULT_PLAN_CATEGORY)
    df['note'] = df['note'].fillna('')
    return df


# ---------------------------------------------------------------------------
# Report history
# ---------------------------------------------------------------------------

REPORT_COLUMNS = "id, title, report_type, file_format, period_start, period_end, summary, generated_at"


def create_report_record(record: Dict[str, Any], generated_at: Optional[datetime] = None) -> Dict[str, Any]:
    """Store a generated report's metadata; ``generated_at`` defaults to the database clock."""
    values = [
        record['title'],
        record.get('report_type') or 'summary',
        record.get('file_format') or 'PDF',
        _iso(record.get('period_start')),
        _iso(record.get('period_end')),
        record.get('summary'),
    ]
    columns = "title, report_type, file_format, period_start, period_end, summary"
    if generated_at is not None:
        columns += ", generated_at"
        values.append(generated_at.strftime('%Y-%m-%d %H:%M:%S'))

    init_db()
    with connect() as conn:
        cursor = conn.execute(
            f"INSERT INTO report_history ({columns}) VALUES ({', '.join('?' * len(values))})",
            values,
        )
        conn.commit()
        new_id = cursor.lastrowid
    logger.info("Saved report %s", new_id)
    return _row('report_history', new_id, REPORT_COLUMNS)


def list_reports(limit: int = REPORT_HISTORY_LIMIT) -> pd.DataFrame:
    """Most recently generated reports first."""
    df = _read(
        f"SELECT {REPORT_COLUMNS} FROM report_history "
        "ORDER BY datetime(generated_at) DESC, id DESC LIMIT ?",
        [limit],
    )
    df['summary'] = df['summary'].fillna('')
    return df


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

def month_totals(start_date: Any, end_date: Any) -> Dict[str, float]:
    """Income and expense totals over ``[start_date, end_date)``."""
    df = _read(
        """
        SELECT COALESCE(SUM(CASE WHEN type = 'income' THEN amount ELSE 0 END), 0) AS income,
               COALESCE(SUM(CASE WHEN type = 'expense' THEN amount ELSE 0 END), 0) AS expense
        FROM "transaction"
        WHERE occurred_at >= ? AND occurred_at < ?
        """,
        [_iso(start_date), _iso(end_date)],
    )
    row = df.iloc[0]
    return {'income': float(row['income']), 'expense': float(row['expense'])}


def monthly_aggregates(start_date: Any, end_date: Any) -> pd.DataFrame:
    """Per-month income/expense over ``[start_date, end_date)`` keyed by ``period``."""
    return _read(
        """
        SELECT strftime('%Y-%m', occurred_at) AS period,
               SUM(CASE WHEN type = 'income' THEN amount ELSE 0 END) AS income,
               SUM(CASE WHEN type = 'expense' THEN amount ELSE 0 END) AS expense
        FROM "transaction"
        WHERE occurred_at >= ? AND occurred_at < ?
        GROUP BY period
        ORDER BY period
        """,
        [_iso(start_date), _iso(end_date)],
    )


def category_expense_totals(start_date: Any, end_date: Any) -> pd.DataFrame:
    """Expense totals per category as ``name``/``amount`` columns."""
    return _read(
        """
        SELECT category AS name, SUM(amount) AS amount
        FROM "transaction"
        WHERE type = 'expense' AND occurred_at >= ? AND occurred_at < ?
        GROUP BY category
        """,
        [_iso(start_date), _iso(end_date)],
    )


def category_period_totals(start_date: Any, end_date: Any) -> pd.DataFrame:
    """Expense totals per category and month (``category``, ``period``, ``total``)."""
    return _read(
        """
        SELECT category, strftime('%Y-%m', occurred_at) AS period, SUM(amount) AS total
        FROM "transaction"
        WHERE type = 'expense' AND occurred_at >= ? AND occurred_at < ?
        GROUP BY category, period
        """,
        [_iso(start_date), _iso(end_date)],
    )


def monthly_expense_history(since: Any) -> pd.DataFrame:
    """Months with activity on or after ``since`` and their expense totals."""
    return _read(
        """
        SELECT strftime('%Y-%m', occurred_at) AS period,
               SUM(CASE WHEN type = 'expense' THEN amount ELSE 0 END) AS expense
        FROM "transaction"
        WHERE occurred_at >= ?
        GROUP BY period
        ORDER BY period
        """,
        [_iso(since)],
    )


def year_totals(year: int) -> Dict[str, float]:
    start = date(year, 1, 1)
    end = date(year + 1, 1, 1)
    return month_totals(start, end)


def clear_database() -> bool:
    """Delete every stored row in every table."""
    init_db()
    with connect() as conn:
        conn.execute('DELETE FROM "transaction"')
        conn.execute("DELETE FROM subscriptions")
        conn.execute("DELETE FROM user_profile")
        conn.execute("DELETE FROM saving_plan")
        conn.execute("DELETE FROM report_history")
        conn.commit()
    logger.info("Cleared database at %s", get_db_path())
    return True