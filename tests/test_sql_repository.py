"""
Smoke tests for the SQL key-value backend against a temporary SQLite database.
"""
from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Make the codequest package importable when running from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from codequest.core import config as core_config  # noqa: E402
from codequest.db import create_tables  # noqa: E402
from codequest.db import session as db_session  # noqa: E402
from codequest.domain.accounts import new_account  # noqa: E402
from codequest.repositories.account_store import AccountStore  # noqa: E402
from codequest.repositories.sql_repository import SQLStorage  # noqa: E402


@pytest.fixture()
def temp_db(tmp_path, monkeypatch):
    """Point the SQL backend at a throwaway SQLite file and reset cached settings/engine."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("STORAGE_BACKEND", "sql")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]

    create_tables.create_all()

    yield db_file

    create_tables.drop_all()
    db_session.get_engine().dispose()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]
    core_config.get_settings.cache_clear()


def test_set_get_delete(temp_db):
    storage = SQLStorage()
    storage.set("codequest-users", [{"id": "1"}])
    storage.set("codequest-current-user", {"id": "1"})

    assert storage.get("codequest-users") == [{"id": "1"}]
    assert storage.keys() == ["codequest-current-user", "codequest-users"]

    storage.set("codequest-users", [])
    assert storage.get("codequest-users") == []

    storage.delete("codequest-current-user")
    assert storage.get("codequest-current-user") is None
    assert storage.keys() == ["codequest-users"]


def test_transaction_is_all_or_nothing(temp_db):
    storage = SQLStorage()
    storage.set("a", 1)

    with pytest.raises(ValueError):
        with storage.transaction():
            storage.set("a", 2)
            storage.set("b", 3)
            raise ValueError("abort")

    assert storage.get("a") == 1
    assert storage.get("b") is None

    with storage.transaction():
        storage.set("a", 2)
        storage.set("b", 3)
    assert (storage.get("a"), storage.get("b")) == (2, 3)


def test_account_store_over_sql(temp_db):
    store = AccountStore.from_settings()
    assert isinstance(store.backend, SQLStorage)

    account = new_account("42", "ana@example.com", "argon2$x", "Ana", datetime.now(timezone.utc))
    store.save_user(account)

    assert store.get_current_user().email == "ana@example.com"
    assert [u.id for u in store.get_users()] == ["42"]


def test_missing_database_url_is_reported(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "")
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    try:
        with pytest.raises(RuntimeError):
            db_session.get_engine()
    finally:
        core_config.get_settings.cache_clear()
        db_session.get_engine.cache_clear()
