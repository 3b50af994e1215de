from __future__ import annotations

import pytest


@pytest.fixture
def store(tmp_path, monkeypatch):
    """Point the store at an empty SQLite file under ``tmp_path``."""
    db_path = tmp_path / 'finlytics.sqlite'
    monkeypatch.setenv('FINLYTICS_DB_PATH', str(db_path))
    monkeypatch.delenv('FINLYTICS_DATABASE_URL', raising=False)
    monkeypatch.delenv('DATABASE_URL', raising=False)

    from finlytics import db

    db.init_db()
    return db
