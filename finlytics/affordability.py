"""Affordability checks for one-time and instalment purchases.

Safe budgets are fixed fractions of current monthly savings:

* one-time purchases may use up to 90% of a month's savings
  (``safe upfront limit``);
* instalment plans may commit up to 60% of a month's savings to the
  periodic payment (``safe monthly allocation``).

With no positive savings there is no safe budget and nothing is affordable.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .billing import to_number

SAFE_UPFRONT_RATIO = 0.9
SAFE_MONTHLY_RATIO = 0.6
# Ratios within this of 1.0 still count as affordable
RATIO_TOLERANCE = sys.float_info.epsilon


@dataclass(frozen=True)
class PaymentPlan:
    key: str
    label: str
    months: int
    interest_rate: float
    description: str = ''

    @property
    def is_upfront(self) -> bool:
        return self.months == 1


PAYMENT_PLANS: Dict[str, PaymentPlan] = {
    plan.key: plan
    for plan in (
        PaymentPlan(
            'pay-in-full', 'Pay in Full (One-time)', 1, 0.0,
            'Uses your current savings for a one-time payment.',
        ),
        PaymentPlan(
            'emi-3', '3-Month EMI', 3, 0.015,
            'Short-term EMI with a 1.5% service charge distributed across 3 months.',
        ),
        PaymentPlan(
            'emi-6', '6-Month EMI', 6, 0.035,
            'Balanced EMI option with a 3.5% total finance cost.',
        ),
        PaymentPlan(
            'emi-12', '12-Month EMI', 12, 0.065,
            'Long-term EMI with a 6.5% total finance cost for maximum flexibility.',
        ),
        PaymentPlan(
            'emi-24', '24-Month EMI', 24, 0.095,
            'Extended EMI with a 9.5% total finance cost for the lowest monthly payments.',
        ),
    )
}


@dataclass(frozen=True)
class AffordabilityResult:
    total_cost: float
    periodic_payment: float
    safe_budget: float
    ratio: float
    affordable: bool
    difference: float


def get_plan(key: str) -> PaymentPlan:
    """Look up a catalog plan; raises ``KeyError`` for unknown keys."""
    return PAYMENT_PLANS[key]


def safe_budgets(monthly_savings: Any) -> Tuple[float, float]:
    """Return ``(safe_upfront_limit, safe_monthly_allocation)``."""
    savings = to_number(monthly_savings)
    if savings <= 0:
        return 0.0, 0.0
    return savings * SAFE_UPFRONT_RATIO, savings * SAFE_MONTHLY_RATIO


def validate_purchase(amount: Any, plan_key: Optional[str]) -> Optional[str]:
    """Return a user-facing message when the request can't be evaluated."""
    if not plan_key or plan_key not in PAYMENT_PLANS:
        return 'Select a payment plan to continue.'
    try:
        value = float(amount)
    except (TypeError, ValueError):
        value = math.nan
    if not math.isfinite(value) or value <= 0:
        return 'Please enter a purchase amount greater than zero.'
    return None


def evaluate(purchase_amount: float, plan: PaymentPlan, monthly_savings: Any) -> AffordabilityResult:
    """Evaluate a purchase against the safe budget for ``plan``.

    ``purchase_amount`` must already be validated as positive (see
    :func:`validate_purchase`).

    Example:
        >>> r = evaluate(1000, get_plan('emi-12'), 20000)
        >>> round(r.periodic_payment, 2), r.affordable
        (88.75, True)
    """
    upfront_limit, monthly_allocation = safe_budgets(monthly_savings)

    total_cost = purchase_amount * (1 + plan.interest_rate)
    periodic_payment = total_cost / plan.months
    safe_budget = upfront_limit if plan.is_upfront else monthly_allocation
    target = purchase_amount if plan.is_upfront else periodic_payment

    if safe_budget > 0:
        ratio = target / safe_budget
        difference = safe_budget - target
    else:
        ratio = math.inf
        difference = -target
    affordable = safe_budget > 0 and math.isfinite(ratio) and ratio <= 1 + RATIO_TOLERANCE

    return AffordabilityResult(
        total_cost=total_cost,
        periodic_payment=periodic_payment,
        safe_budget=safe_budget,
        ratio=ratio,
        affordable=affordable,
        difference=difference,
    )


def recommendation(result: AffordabilityResult, plan: PaymentPlan) -> Dict[str, str]:
    """Status, headline and advice texts shown next to an evaluation."""
    status = 'Affordable' if result.affordable else 'Hold Off'
    has_budget = result.safe_budget > 0

    if plan.is_upfront:
        if not has_budget:
            return {
                'status': status,
                'recommendation': 'Build savings first',
                'text': 'Your current savings are not ready for one-time purchases.',
                'tip': 'Add income transactions or lower expenses to create a savings buffer.',
            }
        if result.affordable:
            return {
                'status': status,
                'recommendation': 'Proceed with confidence',
                'text': 'You can comfortably afford this purchase with your current savings.',
                'tip': 'Keep three months of savings aside for emergencies.',
            }
        return {
            'status': status,
            'recommendation': 'Reduce the amount',
            'text': 'This purchase is higher than your safe one-time spending limit.',
            'tip': f'Trim {abs(result.difference):,.0f} or choose an EMI plan.',
        }

    if not has_budget:
        return {
            'status': status,
            'recommendation': 'Build savings first',
            'text': 'Your current savings do not support new EMIs yet.',
            'tip': 'Boost your monthly savings before committing to EMIs.',
        }
    if result.affordable:
        return {
            'status': status,
            'recommendation': 'Plan looks good',
            'text': 'Your EMI fits comfortably within your monthly savings.',
            'tip': 'You will still retain a savings buffer after this EMI.',
        }
    return {
        'status': status,
        'recommendation': 'Adjust plan or amount',
        'text': 'This EMI would use more than the safe portion of your savings.',
        'tip': f'Lower the purchase by {abs(result.difference):,.0f} or pick a longer tenure.',
    }
