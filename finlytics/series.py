"""Monthly income/expense series built from store aggregates."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

import pandas as pd

from .billing import to_number

DateLike = Union[date, datetime, pd.Timestamp]


@dataclass(frozen=True)
class MonthBucket:
    """One calendar month of activity.

    Forecast points share this shape; they are chained after the last
    historical bucket.
    """

    period_key: str
    label: str
    start_date: date
    income: float = 0.0
    expense: float = 0.0


def _period(value: DateLike) -> pd.Period:
    return pd.Period(pd.Timestamp(value), freq='M')


def month_key(value: DateLike) -> str:
    """``YYYY-MM`` key for the month containing ``value``."""
    return str(_period(value))


def month_start(value: DateLike) -> date:
    return _period(value).start_time.date()


def add_months(value: DateLike, months: int) -> date:
    """First day of the month ``months`` away from the month of ``value``."""
    return (_period(value) + months).start_time.date()


def month_label(value: DateLike) -> str:
    return pd.Timestamp(value).strftime('%b %Y')


def empty_bucket(value: DateLike) -> MonthBucket:
    start = month_start(value)
    return MonthBucket(month_key(start), month_label(start), start)


def series_range(month_count: int, now: DateLike) -> Tuple[date, date]:
    """Half-open ``[first bucket start, start of next month)`` for a lookback."""
    current = _period(now)
    first = current - (max(month_count, 1) - 1)
    return first.start_time.date(), (current + 1).start_time.date()


def build_monthly_series(
    month_count: int,
    now: DateLike,
    rows: Iterable[Mapping[str, Any]],
    subscription_monthly_total: Any = 0.0,
) -> List[MonthBucket]:
    """Build exactly ``month_count`` contiguous buckets ending at ``now``'s month.

    Args:
        month_count: Number of months in the lookback (current month included)
        now: Reference date
        rows: Pre-aggregated rows with ``period``, ``income`` and ``expense``
        subscription_monthly_total: Added to every bucket's expense

    Returns:
        Buckets ordered oldest to newest.  Months without rows are zero.

    Example:
        >>> [b.period_key for b in build_monthly_series(3, date(2024, 2, 10), [])]
        ['2023-12', '2024-01', '2024-02']
    """
    if month_count <= 0:
        return []

    periods = pd.period_range(end=_period(now), periods=month_count, freq='M')
    buckets: Dict[str, MonthBucket] = {
        str(period): empty_bucket(period.start_time) for period in periods
    }

    for row in rows:
        key = str(row.get('period') or '')
        if key not in buckets:
            continue
        buckets[key] = replace(
            buckets[key],
            income=to_number(row.get('income')),
            expense=to_number(row.get('expense')),
        )

    extra = to_number(subscription_monthly_total)
    return [
        replace(bucket, expense=bucket.expense + extra)
        for bucket in buckets.values()
    ]


def rows_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert an aggregate DataFrame into the row dicts the builders expect."""
    if df is None or df.empty:
        return []
    return df.to_dict(orient='records')
