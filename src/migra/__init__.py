"""migra - SQL schema migrations recorded in a ledger table.

Example:
    from migra import Migration, Migrator, create_engine

    engine = create_engine("sqlite:///app.db")
    migrator = Migrator(engine)
    migrator.init()
    migrator.push(Migration(name="create_users",
                            up="CREATE TABLE users (id INTEGER)",
                            down="DROP TABLE users"))
"""

from .core import (
    DEFAULT_MIGRATION_TABLE,
    DEFAULT_SCHEMA_NAME,
    Config,
    ExecutionError,
    LoaderError,
    MigraError,
    Migration,
    NoMigrationFound,
    StoreError,
    ValidationError,
)
from .services import MigrationLoader, Migrator
from .store import LedgerStore, create_engine

__version__ = "0.1.0"

__all__ = [
    "Config",
    "DEFAULT_MIGRATION_TABLE",
    "DEFAULT_SCHEMA_NAME",
    "ExecutionError",
    "LedgerStore",
    "LoaderError",
    "MigraError",
    "Migration",
    "MigrationLoader",
    "Migrator",
    "NoMigrationFound",
    "StoreError",
    "ValidationError",
    "create_engine",
]
