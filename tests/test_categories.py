import pytest

from finlytics.categories import (
    CategoryRow,
    category_outlook,
    merge_categories,
    riskiest_category,
    subscription_category_totals,
)


def test_eight_categories_collapse_into_other():
    amounts = {'A': 800, 'B': 700, 'C': 600, 'D': 500, 'E': 400, 'F': 300, 'G': 200, 'H': 100}
    rows = merge_categories([{'name': n, 'amount': a} for n, a in amounts.items()], {})

    assert len(rows) == 6
    assert [r.name for r in rows[:5]] == ['A', 'B', 'C', 'D', 'E']
    assert rows[5] == CategoryRow('Other', 600.0)


def test_six_categories_are_returned_as_is():
    txns = [{'name': f'C{i}', 'amount': i * 10} for i in range(1, 7)]
    rows = merge_categories(txns, {})
    assert len(rows) == 6
    assert 'Other' not in [r.name for r in rows]
    assert rows[0] == CategoryRow('C6', 60.0)


def test_subscriptions_merge_with_transaction_categories():
    rows = merge_categories(
        [{'name': 'Streaming', 'amount': 100}, {'name': 'Food', 'amount': 120}],
        {'Streaming': 50},
    )
    assert rows == [CategoryRow('Streaming', 150.0), CategoryRow('Food', 120.0)]


def test_blank_names_use_defaults():
    rows = merge_categories([{'name': '  ', 'amount': 10}, {'amount': 5}], {'': 7, None: 1})
    totals = {r.name: r.amount for r in rows}
    assert totals == {'Uncategorized': 15.0, 'Subscriptions': 8.0}


def test_names_are_trimmed_but_case_sensitive():
    rows = merge_categories(
        [{'name': ' Food ', 'amount': 10}, {'name': 'Food', 'amount': 5}, {'name': 'food', 'amount': 1}],
        {},
    )
    assert {r.name: r.amount for r in rows} == {'Food': 15.0, 'food': 1.0}


def test_ties_are_ordered_alphabetically():
    rows = merge_categories([{'name': 'Beta', 'amount': 10}, {'name': 'Alpha', 'amount': 10}], {})
    assert [r.name for r in rows] == ['Alpha', 'Beta']


def test_subscription_category_totals_normalise_cycles():
    totals = subscription_category_totals([
        {'category': 'Streaming', 'amount': 300, 'billing_cycle': 'Quarterly'},
        {'category': 'Streaming', 'amount': 50, 'billing_cycle': 'Monthly'},
        {'category': None, 'amount': 1200, 'billing_cycle': 'Yearly'},
    ])
    assert totals == {'Streaming': 150.0, 'Subscriptions': 100.0}


def _outlook():
    rows = [
        {'category': 'Food', 'period': '2024-03', 'total': 120},
        {'category': 'Food', 'period': '2024-02', 'total': 100},
        {'category': 'Travel', 'period': '2024-03', 'total': 50},
    ]
    subs = [{'category': 'Streaming', 'amount': 300, 'billing_cycle': 'Quarterly'}]
    return category_outlook(rows, subs, '2024-03', '2024-02')


def test_category_outlook_projects_next_month():
    outlook = {row.name: row for row in _outlook()}

    assert outlook['Food'].forecast == 140.0
    assert outlook['Food'].change_pct == pytest.approx(100 * 20 / 120)
    # no previous month: assume 5% growth
    assert outlook['Travel'].forecast == 52.5
    # subscriptions count in both months so they are flat
    assert outlook['Streaming'].current == 100.0
    assert outlook['Streaming'].change == 0


def test_category_outlook_sorted_by_current_spend():
    assert [row.name for row in _outlook()] == ['Food', 'Streaming', 'Travel']


def test_riskiest_category_picks_largest_increase():
    assert riskiest_category(_outlook()).name == 'Food'
    assert riskiest_category([]) is None
