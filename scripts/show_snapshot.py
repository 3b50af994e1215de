#!/usr/bin/env python3
"""Print the current snapshot, forecast, savings goals and report metrics for the configured database."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from finlytics import loaders
from finlytics.affordability import PAYMENT_PLANS, evaluate, recommendation, validate_purchase
from finlytics.categories import riskiest_category
from finlytics.config import formatting_config, get_db_path
from finlytics.db import StoreError
from finlytics.formatting import format_currency, format_percent
from finlytics.goals import plan_progress
from finlytics.logging_setup import configure_logging


def main(
    purchase: Optional[float] = None,
    plan_key: str = 'pay-in-full',
    months_ahead: int = 3,
    generate_report: bool = False,
) -> int:
    fmt = formatting_config()
    print(f"Database: {get_db_path()}")

    try:
        snapshot = loaders.load_snapshot()
        outlook = loaders.load_forecast(months_ahead=months_ahead)
        metrics = loaders.load_report_metrics()
        upcoming = loaders.load_upcoming_subscriptions()
        plans, savings = loaders.load_saving_plans()
        if generate_report:
            loaders.generate_monthly_report()
        _, history = loaders.load_report_history()
    except StoreError as exc:
        print(f"Unable to load your finances: {exc}")
        return 1

    print("\nThis month:")
    print(f"  Income:                  {format_currency(snapshot.monthly_income, fmt)}")
    print(f"  Expenses:                {format_currency(snapshot.monthly_expenses, fmt)}")
    print(f"    of which subscriptions {format_currency(snapshot.subscription_monthly, fmt)}")
    print(f"  Savings:                 {format_currency(snapshot.monthly_savings, fmt)}")
    print(f"  Available for purchase:  {format_currency(snapshot.available_for_purchase, fmt)}")
    print(f"  Safe monthly allocation: {format_currency(snapshot.safe_monthly_allocation, fmt)}")

    if outlook['forecast']:
        print("\nForecast:")
        for point in outlook['forecast']:
            print(
                f"  {point.label}: income {format_currency(point.income, fmt)}, "
                f"expense {format_currency(point.expense, fmt)}"
            )
        risk = riskiest_category(outlook['categories'])
        if risk:
            print(f"  Watch {risk.name}: {risk.change_pct:+.1f}% next month")
    else:
        print("\nAdd transactions and subscriptions to unlock personalized forecasts.")

    due = [row for row in upcoming if row['due_soon']]
    if due:
        print("\nDue soon:")
        for row in due:
            print(f"  {row['name']}: {format_currency(row['amount'], fmt)} in {row['days_until']} day(s)")

    print("\nReports:")
    print(f"  Average monthly spending: {format_currency(metrics.average_spending, fmt)}")
    print(f"  Net savings this year:    {format_currency(metrics.net_savings, fmt)} ({metrics.savings_trend})")
    print(f"  Spending trend:           {metrics.average_trend}")
    print(f"  Saved reports:            {history.total_reports} ({history.trend})")

    if plans:
        print(f"\nSaving plans ({savings.plan_count}):")
        for plan in plans:
            print(f"  {plan['title']}: {plan_progress(plan['saved_amount'], plan['target_amount'])}%")
        print(
            f"  Overall {savings.progress_pct}%: {format_currency(savings.total_saved, fmt)} "
            f"of {format_currency(savings.total_target, fmt)}"
        )

    if purchase is not None:
        problem = validate_purchase(purchase, plan_key)
        if problem:
            print(f"\n{problem}")
            return 1
        plan = PAYMENT_PLANS[plan_key]
        result = evaluate(purchase, plan, snapshot.monthly_savings)
        advice = recommendation(result, plan)
        print(f"\n{plan.label} for {format_currency(purchase, fmt)}: {advice['status']}")
        print(f"  Total cost {format_currency(result.total_cost, fmt)}, "
              f"{format_currency(result.periodic_payment, fmt)} per payment")
        if result.safe_budget > 0:
            print(f"  Uses {format_percent(result.ratio)} of your safe budget")
        print(f"  {advice['text']}")
        print(f"  Tip: {advice['tip']}")
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show the Finlytics snapshot for the configured database.')
    parser.add_argument('--purchase', type=float, default=None, help='Check whether a purchase is affordable')
    parser.add_argument('--plan', default='pay-in-full', choices=sorted(PAYMENT_PLANS), help='Payment plan key')
    parser.add_argument('--months-ahead', type=int, default=3, help='Months to forecast')
    parser.add_argument('--generate-report', action='store_true', help='Save a monthly snapshot report first')
    parser.add_argument('--log-level', default=None, help='Logging level (defaults to FINLYTICS_LOG_LEVEL)')
    args = parser.parse_args()
    configure_logging(args.log_level)
    sys.exit(main(
        purchase=args.purchase,
        plan_key=args.plan,
        months_ahead=args.months_ahead,
        generate_report=args.generate_report,
    ))
