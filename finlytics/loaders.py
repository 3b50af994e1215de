"""Store-backed entry points for the dashboard, forecast and report views.

Each loader performs its database round trips and hands plain rows to the
pure computations.  Nothing is cached: every call reflects the current
contents of the store, and a failing query propagates as
:class:`~finlytics.db.StoreError` for the whole request.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from . import db
from .billing import days_until, is_due_soon, subscription_totals, to_number
from .categories import (
    CategoryOutlookRow,
    CategoryRow,
    category_outlook,
    merge_categories,
    subscription_category_totals,
)
from .config import get_due_soon_days
from .forecast import expense_trend, forecast, income_trend
from .goals import SavingsMetrics, savings_metrics
from .logging_setup import get_logger
from .reports import (
    ReportHistorySummary,
    ReportMetrics,
    monthly_report_record,
    report_history_summary,
    report_metrics,
)
from .series import MonthBucket, add_months, build_monthly_series, rows_from_frame, series_range
from .snapshot import FinancialSnapshot, compute_snapshot

logger = get_logger(__name__)

HISTORY_MONTHS = 6
FORECAST_MONTHS = 3
REPORT_LOOKBACK_MONTHS = 6


def _subscription_rows() -> List[Dict[str, Any]]:
    return rows_from_frame(db.list_subscriptions())


def load_snapshot(now: Optional[datetime] = None) -> FinancialSnapshot:
    now = now or datetime.now()
    start, end = series_range(1, now)
    transactions = rows_from_frame(db.list_transactions(start, end))
    return compute_snapshot(now, transactions, _subscription_rows())


def load_history(month_count: int = HISTORY_MONTHS, now: Optional[datetime] = None) -> List[MonthBucket]:
    """Monthly buckets with subscription cost applied to every month."""
    now = now or datetime.now()
    start, end = series_range(month_count, now)
    rows = rows_from_frame(db.monthly_aggregates(start, end))
    monthly_subscriptions, _ = subscription_totals(_subscription_rows())
    return build_monthly_series(month_count, now, rows, monthly_subscriptions)


def has_activity(history: List[MonthBucket]) -> bool:
    return any(bucket.income > 0 or bucket.expense > 0 for bucket in history)


def load_forecast(
    history_months: int = HISTORY_MONTHS,
    months_ahead: int = FORECAST_MONTHS,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """History, projection, trend summaries and category outlook in one payload.

    With no recorded activity the projection and outlook are left empty.
    """
    history = load_history(history_months, now)
    result: Dict[str, Any] = {
        'history': history,
        'forecast': [],
        'expense_trend': None,
        'income_trend': None,
        'categories': [],
    }
    if not has_activity(history):
        logger.info("No activity in the last %d months; skipping forecast", history_months)
        return result

    points = forecast(history, months_ahead)
    result['forecast'] = points
    result['expense_trend'] = expense_trend(history, points)
    result['income_trend'] = income_trend(history, points)
    result['categories'] = load_category_outlook(history)
    return result


def load_category_breakdown(months: int = 1, now: Optional[datetime] = None) -> List[CategoryRow]:
    """Top categories of expense plus subscriptions over the lookback."""
    now = now or datetime.now()
    start, end = series_range(months, now)
    transaction_rows = rows_from_frame(db.category_expense_totals(start, end))
    return merge_categories(transaction_rows, subscription_category_totals(_subscription_rows()))


def load_category_outlook(history: List[MonthBucket]) -> List[CategoryOutlookRow]:
    if not history:
        return []
    current = history[-1]
    previous = history[-2] if len(history) > 1 else None
    rows = rows_from_frame(
        db.category_period_totals(add_months(current.start_date, -1), add_months(current.start_date, 1))
    )
    return category_outlook(
        rows,
        _subscription_rows(),
        current.period_key,
        previous.period_key if previous else None,
    )


def load_report_metrics(now: Optional[datetime] = None) -> ReportMetrics:
    now = now or datetime.now()
    # same calendar day six months back, so the oldest month may be partial
    since = (pd.Timestamp(now) - pd.DateOffset(months=REPORT_LOOKBACK_MONTHS)).date()
    monthly = rows_from_frame(db.monthly_expense_history(since))
    return report_metrics(monthly, db.year_totals(now.year))


def baseline_income(now: Optional[datetime] = None) -> float:
    """This month's recorded income, else the profile's declared monthly income."""
    snapshot = load_snapshot(now)
    if snapshot.monthly_income > 0:
        return snapshot.monthly_income
    profile = db.get_user_profile()
    if profile is None:
        return 0.0
    return to_number(profile.get('monthly_income'))


def load_upcoming_subscriptions(today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Subscriptions in billing order, each flagged ``due_soon`` when it bills within the threshold.

    The threshold comes from ``FINLYTICS_DUE_SOON_DAYS``; past-due and
    undated subscriptions are never flagged.
    """
    threshold = get_due_soon_days()
    rows = _subscription_rows()
    for row in rows:
        row['days_until'] = days_until(row.get('next_billing_date'), today)
        row['due_soon'] = is_due_soon(row.get('next_billing_date'), threshold, today)
    return rows


def load_saving_plans() -> Tuple[List[Dict[str, Any]], SavingsMetrics]:
    """Saving plans newest first, with overall progress across them."""
    plans = rows_from_frame(db.list_saving_plans())
    return plans, savings_metrics(plans)


def generate_monthly_report(now: Optional[datetime] = None) -> Dict[str, Any]:
    """Record a monthly snapshot report for ``now``'s calendar month."""
    now = now or datetime.now()
    return db.create_report_record(monthly_report_record(now), generated_at=now)


def load_report_history(now: Optional[datetime] = None) -> Tuple[List[Dict[str, Any]], ReportHistorySummary]:
    now = now or datetime.now()
    reports = rows_from_frame(db.list_reports())
    return reports, report_history_summary(reports, now)
