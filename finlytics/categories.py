"""Category roll-ups for the report and forecast views.

Transaction categories and subscription categories are merged into one
ranking.  Only the largest five categories are surfaced individually; the
long tail is folded into a synthetic ``Other`` row so that charts never show
more than six slices.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .billing import round_currency, to_monthly, to_number

UNCATEGORIZED = 'Uncategorized'
SUBSCRIPTIONS = 'Subscriptions'
OTHER = 'Other'
MAX_ROWS = 6
TOP_ROWS = MAX_ROWS - 1
# Growth assumed for a category with no prior month to compare against
NEW_CATEGORY_GROWTH = 0.05


@dataclass(frozen=True)
class CategoryRow:
    name: str
    amount: float


@dataclass(frozen=True)
class CategoryOutlookRow:
    name: str
    current: float
    forecast: float
    change: float
    change_pct: float


def clean_name(value: Any, default: str) -> str:
    text = str(value).strip() if value is not None else ''
    return text or default


def _ranked(totals: Mapping[str, float]) -> List[CategoryRow]:
    # amount descending, then name ascending for equal amounts
    ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [CategoryRow(name, round_currency(amount)) for name, amount in ordered]


def merge_categories(
    transaction_categories: Iterable[Mapping[str, Any]],
    subscription_categories: Mapping[Optional[str], Any],
) -> List[CategoryRow]:
    """Merge transaction and subscription spend per category.

    Args:
        transaction_categories: Rows with ``name`` and ``amount`` keys
        subscription_categories: Category name to monthly subscription cost

    Returns:
        At most six rows sorted by amount descending; when there are more
        than six categories the sixth row is ``Other`` holding the remainder.
    """
    totals: Dict[str, float] = defaultdict(float)
    for row in transaction_categories:
        totals[clean_name(row.get('name'), UNCATEGORIZED)] += to_number(row.get('amount'))
    for name, amount in subscription_categories.items():
        totals[clean_name(name, SUBSCRIPTIONS)] += to_number(amount)

    ranked = _ranked(totals)
    if len(ranked) <= MAX_ROWS:
        return ranked

    head = ranked[:TOP_ROWS]
    remainder = sum(totals[row.name] for row in ranked[TOP_ROWS:])
    return head + [CategoryRow(OTHER, round_currency(remainder))]


def subscription_category_totals(subscriptions: Iterable[Mapping[str, Any]]) -> Dict[str, float]:
    """Monthly subscription cost grouped by category."""
    totals: Dict[str, float] = defaultdict(float)
    for row in subscriptions:
        name = clean_name(row.get('category'), SUBSCRIPTIONS)
        totals[name] += to_monthly(row.get('amount'), row.get('billing_cycle'))
    return dict(totals)


def category_outlook(
    period_rows: Iterable[Mapping[str, Any]],
    subscriptions: Iterable[Mapping[str, Any]],
    current_key: str,
    previous_key: Optional[str] = None,
) -> List[CategoryOutlookRow]:
    """Project next month's spend per category.

    ``period_rows`` carry ``category``, ``period`` (``YYYY-MM``) and ``total``.
    Subscriptions count fully towards both the current and previous month.
    """
    current: Dict[str, float] = defaultdict(float)
    previous: Dict[str, float] = defaultdict(float)
    for row in period_rows:
        name = clean_name(row.get('category'), UNCATEGORIZED)
        total = to_number(row.get('total'))
        period = row.get('period')
        # register the name even when the row belongs to neither month
        current[name] += total if period == current_key else 0.0
        if previous_key and period == previous_key:
            previous[name] += total

    for name, monthly in subscription_category_totals(subscriptions).items():
        current[name] += monthly
        previous[name] += monthly

    rows: List[CategoryOutlookRow] = []
    for name in current:
        now_value = round_currency(current[name])
        before = round_currency(previous.get(name, 0.0))
        trend = now_value - before if before > 0 else now_value * NEW_CATEGORY_GROWTH
        projected = max(0.0, round_currency(now_value + trend))
        change = projected - now_value
        if now_value > 0:
            change_pct = change / now_value * 100
        else:
            change_pct = 100.0 if projected > 0 else 0.0
        rows.append(CategoryOutlookRow(name, now_value, projected, change, change_pct))

    rows.sort(key=lambda row: (-row.current, row.name))
    return rows[:MAX_ROWS]


def riskiest_category(rows: Iterable[CategoryOutlookRow]) -> Optional[CategoryOutlookRow]:
    """The growing category with the steepest projected percentage increase."""
    growing = [row for row in rows if row.change > 0]
    if not growing:
        return None
    return max(growing, key=lambda row: row.change_pct)
