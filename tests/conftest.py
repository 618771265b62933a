"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest
from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from migra.core.types import Migration
from migra.services.migrator import Migrator
from migra.store.database import create_engine
from migra.store.ledger import LedgerStore


@pytest.fixture
def test_db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path for tests."""
    return tmp_path / "test.db"


@pytest.fixture
def db_url(test_db_path: Path) -> str:
    """Provide a SQLAlchemy URL for the temporary database."""
    return f"sqlite:///{test_db_path}"


@pytest.fixture
def engine(db_url: str) -> Engine:
    """Provide an engine with transactional DDL enabled."""
    eng = create_engine(db_url)
    yield eng
    eng.dispose()


@pytest.fixture
def ledger(engine: Engine) -> LedgerStore:
    """Provide an initialized LedgerStore."""
    store = LedgerStore(engine)
    store.initialize()
    return store


@pytest.fixture
def migrator(engine: Engine) -> Migrator:
    """Provide a Migrator with an initialized ledger."""
    m = Migrator(engine)
    m.init()
    return m


@pytest.fixture
def make_migration():
    """Build a migration that creates and drops a table named after it."""

    def _make(name: str, table: str | None = None) -> Migration:
        table = table or f"t_{name}"
        return Migration(
            name=name,
            description=f"Create {table}",
            up=f"CREATE TABLE {table} (id INTEGER PRIMARY KEY)",
            down=f"DROP TABLE {table}",
        )

    return _make


@pytest.fixture
def has_table(engine: Engine):
    """Check whether a table exists in the test database."""

    def _has_table(name: str) -> bool:
        return inspect(engine).has_table(name)

    return _has_table
