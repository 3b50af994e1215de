"""Billing-cycle normalization for recurring subscriptions."""

from __future__ import annotations

import math
from datetime import date, datetime
from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

import pandas as pd

DEFAULT_CYCLE = 'Monthly'

# cycle -> (to monthly, to annual)
BILLING_CYCLES: Dict[str, Tuple[Callable[[float], float], Callable[[float], float]]] = {
    'Weekly': (lambda amount: amount * 52 / 12, lambda amount: amount * 52),
    'Monthly': (lambda amount: amount, lambda amount: amount * 12),
    'Quarterly': (lambda amount: amount / 3, lambda amount: amount * 4),
    'Semiannual': (lambda amount: amount / 6, lambda amount: amount * 2),
    'Yearly': (lambda amount: amount / 12, lambda amount: amount),
}
CYCLE_ALIASES = {'Annual': 'Yearly'}
CENT = Decimal('0.01')


def to_number(value: Any) -> float:
    """Coerce ``value`` to a finite float; anything else becomes ``0.0``."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def round_currency(value: Any) -> float:
    """Round to cents with halves going up (``0.125 -> 0.13``, ``-0.125 -> -0.12``).

    Works for any finite float; precision grows with the magnitude.
    """
    number = to_number(value)
    # repr-based Decimal keeps 1.005 from becoming 1.00499999...
    exact = Decimal(repr(number))
    # half-down on negatives also sends ties towards +inf
    rounding = ROUND_HALF_UP if number >= 0 else ROUND_HALF_DOWN
    with localcontext() as ctx:
        ctx.prec = max(28, exact.adjusted() + 3)
        rounded = exact.quantize(CENT, rounding=rounding)
    return float(rounded)


def normalize_cycle(cycle: Optional[str]) -> str:
    name = (cycle or '').strip()
    name = CYCLE_ALIASES.get(name, name)
    return name if name in BILLING_CYCLES else DEFAULT_CYCLE


def is_supported_cycle(cycle: Optional[str]) -> bool:
    name = (cycle or '').strip()
    return CYCLE_ALIASES.get(name, name) in BILLING_CYCLES


def to_monthly(amount: Any, cycle: Optional[str]) -> float:
    """Monthly equivalent of a recurring charge.

    Example:
        >>> to_monthly(1200, 'Yearly')
        100.0
    """
    convert, _ = BILLING_CYCLES[normalize_cycle(cycle)]
    return round_currency(convert(to_number(amount)))


def to_annual(amount: Any, cycle: Optional[str]) -> float:
    """Annual equivalent of a recurring charge.

    Example:
        >>> to_annual(10, 'Weekly')
        520.0
    """
    _, convert = BILLING_CYCLES[normalize_cycle(cycle)]
    return round_currency(convert(to_number(amount)))


def subscription_totals(subscriptions: Iterable[Mapping[str, Any]]) -> Tuple[float, float]:
    """Return ``(monthly, annual)`` totals across subscription rows."""
    monthly = 0.0
    annual = 0.0
    for row in subscriptions:
        monthly += to_monthly(row.get('amount'), row.get('billing_cycle'))
        annual += to_annual(row.get('amount'), row.get('billing_cycle'))
    return round_currency(monthly), round_currency(annual)


def parse_date(value: Any) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` strings, dates and timestamps into a ``date``."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    ts = pd.to_datetime(value, errors='coerce')
    if pd.isna(ts):
        return None
    return ts.date()


def days_until(value: Any, today: Optional[date] = None) -> Optional[int]:
    target = parse_date(value)
    if target is None:
        return None
    today = today or date.today()
    return (target - today).days


def is_due_soon(value: Any, threshold_days: int, today: Optional[date] = None) -> bool:
    """True when the billing date is today or within ``threshold_days`` ahead."""
    remaining = days_until(value, today)
    return remaining is not None and 0 <= remaining <= threshold_days
