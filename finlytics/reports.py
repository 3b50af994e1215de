"""Headline metrics for the reports view."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, Mapping, Optional

from .billing import parse_date, round_currency, to_number
from .series import add_months, month_key, month_label, month_start

REPORT_HISTORY_LIMIT = 30
MONTHLY_REPORT_SUMMARY = "Auto-generated monthly summary with income, expense, and savings highlights."


@dataclass(frozen=True)
class ReportMetrics:
    average_spending: float
    expense_trend_pct: float
    has_trend: bool
    total_income: float
    total_expense: float
    net_savings: float
    savings_trend: str

    @property
    def average_trend(self) -> str:
        if not self.has_trend:
            return "Need more history"
        return f"{format_percent_change(self.expense_trend_pct)} vs prior month"


def percent_change(current: Any, previous: Any) -> float:
    """Percentage change from ``previous`` to ``current``.

    A zero baseline reports 100% growth when there is any current value.
    """
    current_value = to_number(current)
    previous_value = to_number(previous)
    if previous_value == 0:
        return 100.0 if current_value > 0 else 0.0
    return (current_value - previous_value) / previous_value * 100


def format_percent_change(value: Any) -> str:
    numeric = round_currency(value)
    sign = '+' if numeric > 0 else ''
    return f"{sign}{numeric:.1f}%"


def report_metrics(
    monthly_expenses: Iterable[Mapping[str, Any]],
    year_totals: Optional[Mapping[str, Any]] = None,
) -> ReportMetrics:
    """Summarise recent spending and year-to-date savings.

    Args:
        monthly_expenses: Rows with ``period`` and ``expense``, oldest first,
            one per month that had activity
        year_totals: ``income`` and ``expense`` totals for the current year
    """
    expenses = [to_number(row.get('expense')) for row in monthly_expenses]
    average = sum(expenses) / len(expenses) if expenses else 0.0
    latest = expenses[-1] if expenses else 0.0
    previous = expenses[-2] if len(expenses) > 1 else 0.0

    totals = year_totals or {}
    income = to_number(totals.get('income'))
    expense = to_number(totals.get('expense'))
    net = round_currency(income - expense)

    return ReportMetrics(
        average_spending=round_currency(average),
        expense_trend_pct=percent_change(latest, previous),
        has_trend=len(expenses) > 1,
        total_income=income,
        total_expense=expense,
        net_savings=net,
        savings_trend='Income ahead of expenses' if net >= 0 else 'Spending exceeds income',
    )


@dataclass(frozen=True)
class ReportHistorySummary:
    total_reports: int = 0
    generated_this_month: int = 0

    @property
    def trend(self) -> str:
        if not self.generated_this_month:
            return "No reports this month"
        return f"{self.generated_this_month} generated this month"


def monthly_report_record(now: datetime) -> Dict[str, Any]:
    """History record for a monthly snapshot covering ``now``'s calendar month."""
    first = month_start(now)
    last = add_months(now, 1) - timedelta(days=1)
    return {
        'title': f"Monthly Snapshot - {month_label(first)}",
        'report_type': 'summary',
        'file_format': 'PDF',
        'period_start': first.isoformat(),
        'period_end': last.isoformat(),
        'summary': MONTHLY_REPORT_SUMMARY,
    }


def report_history_summary(reports: Iterable[Mapping[str, Any]], now: date) -> ReportHistorySummary:
    """Count stored reports and those generated in ``now``'s month."""
    current = month_key(now)
    total = 0
    this_month = 0
    for row in reports:
        total += 1
        generated = parse_date(row.get('generated_at'))
        if generated is not None and month_key(generated) == current:
            this_month += 1
    return ReportHistorySummary(total_reports=total, generated_this_month=this_month)
