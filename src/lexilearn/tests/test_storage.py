"""Tests for the key-value stores."""
from typing import Generator
from unittest.mock import MagicMock

import pytest
from faker import Faker
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from lexilearn.exceptions import StorageError
from lexilearn.models.base import SessionLocal, init_db
from lexilearn.models.models import StoredValue
from lexilearn.services.storage import InMemoryStore, KeyValueStore, SqlKeyValueStore

fake = Faker()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    init_db()
    db = SessionLocal()
    try:
        db.query(StoredValue).delete()
        db.commit()
        yield db
    finally:
        db.close()


@pytest.fixture(params=["memory", "sql"])
def store(request) -> KeyValueStore:
    """Run each behaviour test against both stores."""
    if request.param == "memory":
        return InMemoryStore()
    return SqlKeyValueStore(request.getfixturevalue("db"))


def test_get_missing_key(store: KeyValueStore) -> None:
    assert store.get("missing") is None


def test_set_and_overwrite(store: KeyValueStore) -> None:
    """Test creating and replacing a value."""
    value = fake.sentence()
    store.set("lexiLearnHistory", "[]")
    store.set("lexiLearnHistory", value)

    assert store.get("lexiLearnHistory") == value


def test_delete(store: KeyValueStore) -> None:
    """Test that deleting works and missing keys are ignored."""
    store.set("lexiLearnAnalysis", "[]")

    store.delete("lexiLearnAnalysis")
    store.delete("lexiLearnAnalysis")

    assert store.get("lexiLearnAnalysis") is None


def test_list_keys_and_clear(store: KeyValueStore) -> None:
    """Test prefix listing and clearing."""
    store.set("lexiLearnTypingHistory", "[]")
    store.set("lexiLearnHistory", "[]")
    store.set("other_key", "1")
    store.set("lexi_", "1")

    assert store.list_keys("lexiLearn") == ["lexiLearnHistory", "lexiLearnTypingHistory"]
    assert store.list_keys("lexi_") == ["lexi_"]
    assert len(store.list_keys()) == 4

    store.clear()

    assert store.list_keys() == []


def test_sql_store_persists_across_sessions(db: Session) -> None:
    """Test that values written by one session are seen by another."""
    SqlKeyValueStore(db).set("lexiLearnTestConfig", '{"gradeLevel": 3}')

    other = SessionLocal()
    try:
        assert SqlKeyValueStore(other).get("lexiLearnTestConfig") == '{"gradeLevel": 3}'
    finally:
        other.close()


def test_sql_store_wraps_database_errors() -> None:
    """Test that database failures surface as StorageError and roll back."""
    db = MagicMock()
    db.query.side_effect = OperationalError("SELECT", {}, Exception("disk I/O error"))
    store = SqlKeyValueStore(db)

    with pytest.raises(StorageError):
        store.get("lexiLearnHistory")
    with pytest.raises(StorageError):
        store.set("lexiLearnHistory", "[]")
    with pytest.raises(StorageError):
        store.list_keys()

    db.rollback.assert_called_once()


if __name__ == "__main__":
    pytest.main([__file__])
