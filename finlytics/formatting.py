"""Formatting utilities for currency and percentages.

Every function takes the :class:`~finlytics.config.FormattingConfig` to use,
so callers decide the locale and currency once per session.
"""

from __future__ import annotations

from typing import Union

from .billing import to_number
from .config import FormattingConfig

CURRENCY_SYMBOLS = {
    'INR': '₹',
    'USD': '$',
    'EUR': '€',
    'GBP': '£',
    'JPY': '¥',
}


def _group_indian(digits: str) -> str:
    """Group an integer string as ``12,34,567`` (lakh/crore style)."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    parts = []
    while len(head) > 2:
        parts.insert(0, head[-2:])
        head = head[:-2]
    if head:
        parts.insert(0, head)
    return ','.join(parts + [tail])


def format_number(value: Union[float, int], config: FormattingConfig, decimals: int = 0) -> str:
    """Format ``value`` with the digit grouping of ``config.locale``.

    Example:
        >>> format_number(1234567, FormattingConfig('en-IN', 'INR'))
        '12,34,567'
        >>> format_number(1234567, FormattingConfig('en-US', 'USD'))
        '1,234,567'
    """
    numeric = to_number(value)
    sign = '-' if numeric < 0 else ''
    text = f"{abs(numeric):.{decimals}f}"
    whole, _, fraction = text.partition('.')
    if config.locale.endswith('-IN'):
        whole = _group_indian(whole)
    else:
        whole = f"{int(whole):,}"
    return f"{sign}{whole}.{fraction}" if fraction else f"{sign}{whole}"


def format_currency(value: Union[float, int], config: FormattingConfig, decimals: int = 0) -> str:
    """Format a currency amount, e.g. ``₹1,06,500`` or ``$1,065``."""
    symbol = CURRENCY_SYMBOLS.get(config.currency_code, f"{config.currency_code} ")
    numeric = to_number(value)
    body = format_number(abs(numeric), config, decimals)
    return f"-{symbol}{body}" if numeric < 0 else f"{symbol}{body}"


def format_percent(ratio: float, decimals: int = 0) -> str:
    """Format a ratio (``0.25``) as a percentage (``25%``)."""
    return f"{to_number(ratio) * 100:.{decimals}f}%"
