from datetime import date

import pytest

from finlytics.billing import (
    BILLING_CYCLES,
    days_until,
    is_due_soon,
    is_supported_cycle,
    normalize_cycle,
    round_currency,
    subscription_totals,
    to_annual,
    to_monthly,
    to_number,
)


def test_yearly_to_monthly():
    assert to_monthly(1200, 'Yearly') == 100.00


def test_weekly_conversion_rounds_to_cents():
    assert to_monthly(10, 'Weekly') == 43.33
    assert to_annual(10, 'Weekly') == 520.0


def test_quarterly_and_semiannual():
    assert to_monthly(300, 'Quarterly') == 100.0
    assert to_annual(100, 'Quarterly') == 400.0
    assert to_monthly(600, 'Semiannual') == 100.0
    assert to_annual(600, 'Semiannual') == 1200.0


def test_annual_alias_matches_yearly():
    assert to_monthly(1200, 'Annual') == to_monthly(1200, 'Yearly')
    assert to_annual(99, 'Annual') == 99.0


def test_unknown_cycle_is_treated_as_monthly():
    assert to_monthly(50, 'Fortnightly') == 50.0
    assert to_annual(50, 'Fortnightly') == 600.0
    assert to_monthly(50, None) == 50.0


def test_invalid_amounts_coerce_to_zero():
    assert to_monthly('abc', 'Monthly') == 0.0
    assert to_monthly(None, 'Yearly') == 0.0
    assert to_annual(float('nan'), 'Weekly') == 0.0
    assert to_annual(float('inf'), 'Monthly') == 0.0


def test_numeric_strings_are_accepted():
    assert to_monthly('1200', 'Yearly') == 100.0


@pytest.mark.parametrize('cycle', sorted(BILLING_CYCLES))
@pytest.mark.parametrize('amount', [9.99, 120, 1234.56])
def test_monthly_agrees_with_annual_over_twelve(cycle, amount):
    assert to_monthly(amount, cycle) == pytest.approx(to_annual(amount, cycle) / 12, abs=0.01)


def test_round_currency_rounds_halves_up():
    assert round_currency(0.125) == 0.13
    assert round_currency(1.005) == 1.01
    assert round_currency(2.675) == 2.68
    assert round_currency(-0.125) == -0.12
    assert round_currency(-0.126) == -0.13
    assert round_currency('junk') == 0.0


def test_subscription_totals():
    monthly, annual = subscription_totals([
        {'amount': 499, 'billing_cycle': 'Monthly'},
        {'amount': 1200, 'billing_cycle': 'Yearly'},
    ])
    assert monthly == 599.0
    assert annual == 499 * 12 + 1200


def test_due_soon_window():
    today = date(2024, 1, 1)
    assert days_until('2024-01-10', today) == 9
    assert is_due_soon(date(2024, 1, 3), 5, today)
    assert is_due_soon('2024-01-01', 5, today)
    assert not is_due_soon('2024-01-11', 5, today)
    assert not is_due_soon('2023-12-30', 5, today)
    assert not is_due_soon(None, 5, today)
    assert days_until('not a date', today) is None


def test_cycle_names():
    assert normalize_cycle('Annual') == 'Yearly'
    assert normalize_cycle(' Weekly ') == 'Weekly'
    assert normalize_cycle('Fortnightly') == 'Monthly'
    assert normalize_cycle(None) == 'Monthly'
    assert is_supported_cycle('Annual')
    assert not is_supported_cycle('Fortnightly')


@pytest.mark.parametrize('value, expected', [
    ('12.5', 12.5),
    (None, 0.0),
    (True, 0.0),
    ('n/a', 0.0),
    (float('nan'), 0.0),
    (float('inf'), 0.0),
])
def test_to_number(value, expected):
    assert to_number(value) == expected


def test_huge_amounts_do_not_raise():
    assert to_monthly(1e30, 'Monthly') == 1e30
    assert to_annual(1e300, 'Yearly') == 1e300
    assert round_currency(-1e308) == -1e308
    # overflows to inf and coerces to zero
    assert to_annual(1.7e308, 'Weekly') == 0.0
