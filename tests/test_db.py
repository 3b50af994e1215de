from datetime import date, datetime, timedelta

import pytest


def _txn(**overrides):
    payload = {
        'title': 'Salary',
        'category': 'Income',
        'type': 'income',
        'amount': 50000,
        'occurred_at': '2024-03-01',
    }
    payload.update(overrides)
    return payload


def test_create_and_list_transactions(store):
    created = store.create_transaction(_txn(notes='  March  '))
    store.create_transaction(_txn(title='Groceries', category='', type='Expense', amount=1200, occurred_at='2024-03-04'))

    assert created['id'] > 0
    assert created['notes'] == 'March'

    df = store.list_transactions()
    assert list(df['title']) == ['Groceries', 'Salary']
    groceries = df.iloc[0]
    assert groceries['category'] == 'Uncategorized'
    assert groceries['type'] == 'expense'
    assert groceries['amount'] == 1200
    assert groceries['notes'] == ''


def test_list_transactions_by_range(store):
    store.create_transaction(_txn(occurred_at='2024-02-28'))
    store.create_transaction(_txn(occurred_at='2024-03-31'))
    store.create_transaction(_txn(occurred_at='2024-04-01'))

    df = store.list_transactions(date(2024, 3, 1), date(2024, 4, 1))
    assert list(df['occurred_at']) == ['2024-03-31']


@pytest.mark.parametrize('overrides, message', [
    ({'title': ' '}, 'Transaction title is required.'),
    ({'type': 'refund'}, 'Transaction type must be income, expense or transfer.'),
    ({'amount': 'abc'}, 'Enter a valid amount greater than zero.'),
    ({'amount': 0}, 'Enter a valid amount greater than zero.'),
    ({'occurred_at': 'someday'}, 'Provide a valid transaction date.'),
])
def test_invalid_transactions_are_rejected(store, overrides, message):
    with pytest.raises(ValueError, match=message):
        store.create_transaction(_txn(**overrides))
    assert store.list_transactions().empty


def test_delete_transaction(store):
    created = store.create_transaction(_txn())
    assert store.delete_transaction(created['id'])
    assert not store.delete_transaction(created['id'])
    assert store.list_transactions().empty


def test_subscriptions_roundtrip(store):
    store.create_subscription({
        'name': 'Cloud Storage', 'category': 'Software', 'amount': 1200,
        'billing_cycle': 'Annual', 'next_billing_date': '2024-05-01',
    })
    created = store.create_subscription({
        'name': 'Music', 'amount': 99, 'billing_cycle': 'Monthly', 'next_billing_date': '2024-03-20',
    })

    assert created['category'] == 'Other'
    df = store.list_subscriptions()
    assert list(df['name']) == ['Music', 'Cloud Storage']
    assert df.iloc[1]['billing_cycle'] == 'Yearly'

    assert store.delete_subscription(created['id'])
    assert list(store.list_subscriptions()['name']) == ['Cloud Storage']


def test_invalid_subscription_is_rejected(store):
    with pytest.raises(ValueError, match='Select a supported billing cycle.'):
        store.create_subscription({
            'name': 'Gym', 'amount': 40, 'billing_cycle': 'Daily', 'next_billing_date': '2024-03-20',
        })
    with pytest.raises(ValueError, match='Next billing date is required.'):
        store.create_subscription({'name': 'Gym', 'amount': 40, 'billing_cycle': 'Monthly'})


def test_profile_is_replaced_on_save(store):
    assert store.get_user_profile() is None
    store.save_user_profile('Asha Rao', '1990-04-12', 60000)
    profile = store.save_user_profile(' Asha R. ', '1990-04-12', '65000')

    assert profile['full_name'] == 'Asha R.'
    assert profile['monthly_income'] == 65000


def test_monthly_and_category_aggregates(store):
    store.create_transaction(_txn(occurred_at='2024-02-01', amount=40000))
    store.create_transaction(_txn(title='Rent', category='Housing', type='expense', amount=15000, occurred_at='2024-02-03'))
    store.create_transaction(_txn(occurred_at='2024-03-01', amount=50000))
    store.create_transaction(_txn(title='Rent', category='Housing', type='expense', amount=15000, occurred_at='2024-03-03'))
    store.create_transaction(_txn(title='Dinner', category='Food', type='expense', amount=2500, occurred_at='2024-03-09'))
    store.create_transaction(_txn(title='To savings', category='Savings', type='transfer', amount=9000, occurred_at='2024-03-10'))

    monthly = store.monthly_aggregates(date(2024, 2, 1), date(2024, 4, 1))
    assert monthly.to_dict(orient='records') == [
        {'period': '2024-02', 'income': 40000, 'expense': 15000},
        {'period': '2024-03', 'income': 50000, 'expense': 17500},
    ]

    totals = store.month_totals(date(2024, 3, 1), date(2024, 4, 1))
    assert totals == {'income': 50000, 'expense': 17500}

    categories = store.category_expense_totals(date(2024, 3, 1), date(2024, 4, 1))
    assert dict(zip(categories['name'], categories['amount'])) == {'Housing': 15000, 'Food': 2500}

    per_period = store.category_period_totals(date(2024, 2, 1), date(2024, 4, 1))
    assert len(per_period) == 3

    history = store.monthly_expense_history(date(2024, 3, 1))
    assert list(history['period']) == ['2024-03']

    assert store.year_totals(2024) == {'income': 90000, 'expense': 32500}
    assert store.year_totals(2023) == {'income': 0, 'expense': 0}


def test_clear_database(store):
    store.create_transaction(_txn())
    store.save_user_profile('Asha Rao', '1990-04-12', 60000)
    assert store.clear_database()
    assert store.list_transactions().empty
    assert store.get_user_profile() is None


def test_unopenable_database_raises_store_error(tmp_path, monkeypatch):
    from finlytics import db

    # a directory can't be opened as a database file
    monkeypatch.setenv('FINLYTICS_DB_PATH', str(tmp_path))
    with pytest.raises(db.StoreError):
        db.init_db()


def test_normalize_db_error_messages():
    import sqlite3

    from finlytics.db import normalize_db_error

    assert normalize_db_error(sqlite3.IntegrityError('UNIQUE constraint failed')).startswith('Constraint failed')
    assert normalize_db_error(sqlite3.OperationalError('database is locked')).startswith('Database is busy')
    assert normalize_db_error(sqlite3.OperationalError('attempt to write a readonly database')).startswith(
        'Database is read-only'
    )
    assert normalize_db_error(sqlite3.OperationalError('no such table: x')) == 'no such table: x'


def test_saving_plans_roundtrip(store):
    store.create_saving_plan({'title': 'Emergency fund', 'target_amount': 100000, 'saved_amount': 25000})
    created = store.create_saving_plan({
        'title': ' Laptop ', 'category': 'Tech', 'target_amount': '80000', 'note': 'by June',
    })

    assert created['title'] == 'Laptop'
    assert created['saved_amount'] == 0

    df = store.list_saving_plans()
    assert list(df['title']) == ['Laptop', 'Emergency fund']
    assert list(df['category']) == ['Tech', 'General']
    assert list(df['note']) == ['by June', '']


@pytest.mark.parametrize('payload, message', [
    ({'title': '', 'target_amount': 100}, 'Give your plan a title.'),
    ({'title': 'Trip', 'target_amount': 0}, 'Target amount must be greater than zero.'),
    ({'title': 'Trip', 'target_amount': 100, 'saved_amount': -5}, "Saved amount can't be negative."),
])
def test_invalid_saving_plans_are_rejected(store, payload, message):
    with pytest.raises(ValueError, match=message):
        store.create_saving_plan(payload)
    assert store.list_saving_plans().empty


def test_report_history_is_newest_first_and_capped(store):
    for day in range(1, 33):
        store.create_report_record(
            {'title': f'Report {day}', 'period_start': '2024-01-01', 'period_end': '2024-01-31'},
            generated_at=datetime(2024, 1, 1, 9, 0) + timedelta(days=day),
        )

    reports = store.list_reports()
    assert len(reports) == 30
    assert reports.iloc[0]['title'] == 'Report 32'
    assert reports.iloc[0]['report_type'] == 'summary'
    assert reports.iloc[0]['file_format'] == 'PDF'
    assert reports.iloc[0]['summary'] == ''
    assert reports.iloc[-1]['title'] == 'Report 3'


def test_report_record_defaults_to_database_clock(store):
    created = store.create_report_record({'title': 'Now', 'summary': 'Quick look'})
    assert created['generated_at']
    assert created['period_start'] is None
