"""Current-month financial snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

from .affordability import safe_budgets
from .billing import parse_date, to_monthly, to_number
from .logging_setup import get_logger
from .series import add_months, month_start

logger = get_logger(__name__)


@dataclass(frozen=True)
class FinancialSnapshot:
    monthly_income: float = 0.0
    transaction_expenses: float = 0.0
    subscription_monthly: float = 0.0
    monthly_expenses: float = 0.0
    monthly_savings: float = 0.0
    safe_upfront_limit: float = 0.0
    safe_monthly_allocation: float = 0.0
    available_for_purchase: float = 0.0
    last_updated: Optional[datetime] = None


def _in_month(value: Any, start: date, end: date) -> bool:
    occurred = parse_date(value)
    if occurred is None:
        logger.warning("Skipping transaction with unreadable date %r", value)
        return False
    return start <= occurred < end


def compute_snapshot(
    now: datetime,
    transaction_rows: Iterable[Mapping[str, Any]],
    subscription_rows: Iterable[Mapping[str, Any]],
) -> FinancialSnapshot:
    """Recompute income, expenses, savings and safe limits for ``now``'s month.

    Transaction rows carry ``type``, ``amount`` and ``occurred_at``; rows
    outside the current calendar month are ignored.  Every subscription
    counts towards the month regardless of its next billing date.
    """
    start = month_start(now)
    end = add_months(now, 1)

    income = 0.0
    expenses = 0.0
    for row in transaction_rows:
        if not _in_month(row.get('occurred_at'), start, end):
            continue
        kind = str(row.get('type') or '').strip().lower()
        if kind == 'income':
            income += to_number(row.get('amount'))
        elif kind == 'expense':
            expenses += to_number(row.get('amount'))

    subscription_monthly = sum(
        to_monthly(row.get('amount'), row.get('billing_cycle')) for row in subscription_rows
    )

    monthly_expenses = expenses + subscription_monthly
    savings = income - monthly_expenses
    upfront_limit, monthly_allocation = safe_budgets(savings)

    snapshot = FinancialSnapshot(
        monthly_income=income,
        transaction_expenses=expenses,
        subscription_monthly=subscription_monthly,
        monthly_expenses=monthly_expenses,
        monthly_savings=savings,
        safe_upfront_limit=upfront_limit,
        safe_monthly_allocation=monthly_allocation,
        available_for_purchase=max(savings, 0.0),
        last_updated=now,
    )
    logger.debug(
        "Snapshot for %s: income=%.2f expenses=%.2f savings=%.2f",
        start.isoformat()[:7], income, monthly_expenses, savings,
    )
    return snapshot
