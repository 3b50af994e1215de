"""Linear trend forecasting over monthly series.

The forecast is a constant-slope extrapolation: the average month-over-month
change of the history is applied repeatedly from the last observed value.
There is no seasonality handling and no outlier dampening, so a single
unusual month moves the whole projection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from .billing import round_currency, to_number
from .series import MonthBucket, add_months, month_key, month_label


@dataclass(frozen=True)
class TrendSummary:
    actual_change_pct: float
    projected_change_pct: float
    last_actual: float
    projected_final: float


def average_change(values: Sequence[float]) -> float:
    """Mean of consecutive differences; ``0.0`` for fewer than two points."""
    if len(values) < 2:
        return 0.0
    return float(np.diff(np.asarray(values, dtype=float)).mean())


def forecast(history: Sequence[MonthBucket], months_ahead: int) -> List[MonthBucket]:
    """Extrapolate ``history`` ``months_ahead`` months forward.

    Income and expense are projected independently and floored at zero.

    Example:
        >>> from datetime import date
        >>> hist = [MonthBucket('2024-01', 'Jan 2024', date(2024, 1, 1), 0, 100),
        ...         MonthBucket('2024-02', 'Feb 2024', date(2024, 2, 1), 0, 120)]
        >>> [p.expense for p in forecast(hist, 2)]
        [140.0, 160.0]
    """
    if not history or months_ahead <= 0:
        return []

    incomes = [to_number(b.income) for b in history]
    expenses = [to_number(b.expense) for b in history]
    income_delta = average_change(incomes)
    expense_delta = average_change(expenses)

    previous_income = incomes[-1]
    previous_expense = expenses[-1]
    anchor = history[-1].start_date

    points: List[MonthBucket] = []
    for step in range(1, months_ahead + 1):
        start = add_months(anchor, step)
        previous_income = max(0.0, round_currency(previous_income + income_delta))
        previous_expense = max(0.0, round_currency(previous_expense + expense_delta))
        points.append(
            MonthBucket(
                period_key=month_key(start),
                label=month_label(start),
                start_date=start,
                income=previous_income,
                expense=previous_expense,
            )
        )
    return points


def trend_summary(actual: Sequence[float], projected: Sequence[float]) -> Optional[TrendSummary]:
    """Compare the history's first and last values, then last value vs projection."""
    if not actual:
        return None
    first = to_number(actual[0])
    last_actual = to_number(actual[-1])
    projected_final = to_number(projected[-1]) if projected else last_actual

    actual_change_pct = (last_actual - first) / first * 100 if first > 0 else 0.0
    if last_actual > 0:
        projected_change_pct = (projected_final - last_actual) / last_actual * 100
    else:
        projected_change_pct = 100.0 if projected_final > 0 else 0.0
    return TrendSummary(actual_change_pct, projected_change_pct, last_actual, projected_final)


def expense_trend(history: Sequence[MonthBucket], points: Sequence[MonthBucket]) -> Optional[TrendSummary]:
    return trend_summary([b.expense for b in history], [p.expense for p in points])


def income_trend(history: Sequence[MonthBucket], points: Sequence[MonthBucket]) -> Optional[TrendSummary]:
    return trend_summary([b.income for b in history], [p.income for p in points])


def compose_series(history: Sequence[MonthBucket], points: Sequence[MonthBucket]) -> Dict[str, list]:
    """Chart-ready parallel series for history followed by forecast.

    The forecast expense line starts at the last actual month so the two
    lines join; ``None`` marks months a line does not cover.
    """
    labels: List[str] = []
    income: List[float] = []
    actual_expense: List[Optional[float]] = []
    forecast_expense: List[Optional[float]] = []

    last_index = len(history) - 1
    for index, bucket in enumerate(history):
        labels.append(bucket.label)
        income.append(round_currency(bucket.income))
        actual_expense.append(round_currency(bucket.expense))
        forecast_expense.append(round_currency(bucket.expense) if index == last_index else None)

    for point in points:
        labels.append(point.label)
        income.append(round_currency(point.income))
        actual_expense.append(None)
        forecast_expense.append(round_currency(point.expense))

    return {
        'labels': labels,
        'income': income,
        'actual_expense': actual_expense,
        'forecast_expense': forecast_expense,
    }
