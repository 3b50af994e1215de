"""Savings-goal progress.

A plan has a target amount and the amount saved towards it so far.  Overall
progress is weighted by target: total saved over total target, capped at
100%.  When every target is zero the mean of the per-plan ratios is used
instead.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .billing import round_currency, to_number

DEFAULT_PLAN_CATEGORY = 'General'


@dataclass(frozen=True)
class SavingsMetrics:
    plan_count: int = 0
    total_saved: float = 0.0
    total_target: float = 0.0
    progress_pct: int = 0


def _whole_percent(ratio: float) -> int:
    # halves go up, so 12.5% shows as 13%
    return int(math.floor(min(ratio, 1.0) * 100 + 0.5))


def plan_ratio(saved: Any, target: Any) -> float:
    target_value = to_number(target)
    if target_value <= 0:
        return 0.0
    return to_number(saved) / target_value


def plan_progress(saved: Any, target: Any) -> int:
    """Whole-number percent of ``target`` already saved, capped at 100."""
    return _whole_percent(plan_ratio(saved, target))


def remaining_amount(saved: Any, target: Any) -> float:
    return round_currency(max(to_number(target) - to_number(saved), 0.0))


def savings_metrics(plans: Iterable[Mapping[str, Any]]) -> SavingsMetrics:
    """Summarise plan rows carrying ``target_amount`` and ``saved_amount``.

    Example:
        >>> savings_metrics([{'target_amount': 1000, 'saved_amount': 250}]).progress_pct
        25
    """
    count = 0
    saved = 0.0
    target = 0.0
    ratio_sum = 0.0
    for plan in plans:
        count += 1
        saved += to_number(plan.get('saved_amount'))
        target += to_number(plan.get('target_amount'))
        ratio_sum += plan_ratio(plan.get('saved_amount'), plan.get('target_amount'))

    if target > 0:
        progress = _whole_percent(saved / target)
    elif count:
        progress = _whole_percent(ratio_sum / count)
    else:
        progress = 0

    return SavingsMetrics(
        plan_count=count,
        total_saved=round_currency(saved),
        total_target=round_currency(target),
        progress_pct=progress,
    )
