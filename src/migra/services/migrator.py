"""Migration engine: apply and revert migrations against the ledger.

Every state transition runs inside one transaction opened with
``Engine.begin()``. If anything fails, or the call is interrupted, the
context manager rolls back, so the ledger row and the schema change are
either both present or both absent.

No lock is taken on the ledger. Concurrent push/pop calls from several
processes are only as safe as the database's isolation level makes them.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable

from loguru import logger
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..core.config import DEFAULT_MIGRATION_TABLE, DEFAULT_SCHEMA_NAME
from ..core.exceptions import ExecutionError, NoMigrationFound, StoreError
from ..core.types import Migration
from ..store.database import execute_script
from ..store.ledger import LedgerStore
from .loading import MigrationLoader

if TYPE_CHECKING:
    from fsspec import AbstractFileSystem


class Migrator:
    """Applies ("push") and reverts ("pop") migrations in stack order.

    Example:
        migrator = Migrator(engine, table="_migrations", schema="public")
        migrator.init()
        migrator.push(Migration(name="create_users", up="CREATE TABLE users(id INT)",
                                down="DROP TABLE users"))
        migrator.pop()
    """

    def __init__(
        self,
        engine: Engine,
        table: str = DEFAULT_MIGRATION_TABLE,
        schema: str = DEFAULT_SCHEMA_NAME,
        loader: MigrationLoader | None = None,
    ):
        """Initialize with the target database and ledger identity.

        Args:
            engine: Engine for the target database, owned by the caller.
            table: Ledger table name.
            schema: Ledger schema name (ignored on SQLite).
            loader: Loader used by push_file/push_dir.
        """
        self.engine = engine
        self.ledger = LedgerStore(engine, table_name=table, schema_name=schema)
        self.loader = loader or MigrationLoader()

    @property
    def table(self) -> str:
        """Fully schema-prefixed ledger table name."""
        return self.ledger.qualified_name

    def init(self) -> None:
        """Create the ledger schema and table if needed."""
        self.ledger.initialize()

    def drop(self) -> None:
        """Drop the ledger table."""
        self.ledger.drop()

    def push(self, migration: Migration) -> bool:
        """Apply a migration and record it in the ledger.

        Pushing a migration whose name is already recorded does nothing.

        Args:
            migration: Migration to apply.

        Returns:
            True if the migration was applied, False if it was already recorded.

        Raises:
            ValidationError: If name or up statement is empty.
            ExecutionError: If any statement fails; nothing is committed.
        """
        migration.validate()

        try:
            with self.engine.begin() as conn:
                if not self.ledger.insert_pending(conn, migration):
                    logger.debug(f"Migration {migration.name!r} already pushed, skipping")
                    return False

                logger.info(f"Applying migration {migration.name!r}")
                execute_script(conn, migration.up)
                self.ledger.mark_migrated(conn, migration.name, datetime.now(timezone.utc))
        except SQLAlchemyError as e:
            logger.error(f"Migration {migration.name!r} failed: {e}")
            raise ExecutionError(migration.name, e) from e

        return True

    def push_many(self, migrations: Iterable[Migration]) -> int:
        """Push migrations in order, stopping at the first error.

        Migrations pushed before a failure stay applied.

        Returns:
            Number of migrations newly applied.
        """
        applied = 0
        for migration in migrations:
            if self.push(migration):
                applied += 1
        return applied

    def push_file(
        self, path: str, filesystem: AbstractFileSystem | None = None
    ) -> bool:
        """Load a migration file and push it.

        Args:
            path: Path of a .yaml, .yml, .json or .toml migration file.
            filesystem: fsspec filesystem to read from (default: local disk).

        Returns:
            True if the migration was applied, False if already recorded.
        """
        return self.push(self.loader.load_file(path, filesystem))

    def push_dir(
        self, path: str, filesystem: AbstractFileSystem | None = None
    ) -> int:
        """Push every migration file under a directory, recursively.

        Files are pushed in file name order; see MigrationLoader.iter_dir.

        Returns:
            Number of migrations newly applied.
        """
        return self.push_many(self.loader.iter_dir(path, filesystem))

    def pop(self) -> Migration:
        """Revert the most recently pushed migration.

        Returns:
            The migration that was reverted.

        Raises:
            NoMigrationFound: If the ledger is empty.
            ExecutionError: If the down statement fails; nothing is committed.
        """
        name = None
        try:
            with self.engine.begin() as conn:
                latest = self.ledger.fetch_latest(conn)
                name = latest.name

                logger.info(f"Reverting migration {name!r}")
                if latest.down.strip():
                    execute_script(conn, latest.down)
                else:
                    logger.warning(f"Migration {name!r} has no down statement")
                self.ledger.delete_by_name(conn, name)
        except SQLAlchemyError as e:
            logger.error(f"Reverting migration {name!r} failed: {e}")
            raise ExecutionError(name, e) from e

        return latest

    def pop_all(self) -> int:
        """Revert every migration in the ledger.

        Returns:
            Number of migrations reverted.

        Raises:
            NoMigrationFound: If the ledger was already empty.
        """
        popped = 0
        while True:
            try:
                self.pop()
            except NoMigrationFound:
                if popped == 0:
                    raise
                break
            popped += 1

        logger.info(f"Reverted {popped} migration(s)")
        return popped

    def pop_until(self, name: str) -> int:
        """Revert migrations until the named one is the latest.

        The named migration itself stays applied.

        Returns:
            Number of migrations reverted.

        Raises:
            NoMigrationFound: If the ledger empties before the name is reached.
        """
        popped = 0
        while True:
            latest = self.get_latest()
            if latest.name == name:
                return popped
            self.pop()
            popped += 1

    def list_all(self) -> list[Migration]:
        """Get all recorded migrations in push order.

        Raises:
            StoreError: If the ledger cannot be read.
        """
        try:
            with self.engine.connect() as conn:
                return self.ledger.fetch_all(conn)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list migrations in {self.table}: {e}") from e

    def get_latest(self) -> Migration:
        """Get the most recently pushed migration.

        Raises:
            NoMigrationFound: If the ledger is empty.
            StoreError: If the ledger cannot be read.
        """
        try:
            with self.engine.connect() as conn:
                return self.ledger.fetch_latest(conn)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read latest migration in {self.table}: {e}") from e
