"""Ledger table storage for migra.

The ledger is a single table recording which migrations have been applied
and in what order. Row-level methods take an open ``Connection`` so that the
engine can run them inside the same transaction as the migration SQL.
"""

from datetime import datetime

from loguru import logger
from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    Sequence,
    String,
    Table,
    Text,
    delete,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.engine import Connection, Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from ..core.config import DEFAULT_MIGRATION_TABLE, DEFAULT_SCHEMA_NAME
from ..core.exceptions import NoMigrationFound, StoreError
from ..core.types import Migration


def build_ledger_table(
    metadata: MetaData, table_name: str, schema: str | None
) -> Table:
    """Define the ledger table on the given metadata.

    ``position`` is kept separate from ``id`` and backed by its own sequence
    where the backend has sequences.
    """
    return Table(
        table_name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("name", String(255), nullable=False, unique=True),
        Column("description", Text, nullable=True),
        Column("up", Text, nullable=True),
        Column("down", Text, nullable=True),
        Column(
            "position",
            Integer,
            Sequence(f"{table_name}_position_seq", schema=schema),
            nullable=False,
        ),
        Column("migrated_at", DateTime(timezone=True), nullable=True),
        schema=schema,
        sqlite_autoincrement=True,
    )


class LedgerStore:
    """Repository for the migration ledger table.

    Example:
        store = LedgerStore(engine, table_name="_migrations")
        store.initialize()
        with engine.begin() as conn:
            store.insert_pending(conn, migration)
    """

    def __init__(
        self,
        engine: Engine,
        table_name: str = DEFAULT_MIGRATION_TABLE,
        schema_name: str = DEFAULT_SCHEMA_NAME,
    ):
        """Initialize with engine and ledger identity.

        Args:
            engine: Engine for the target database. Never disposed here.
            table_name: Ledger table name; empty falls back to the default.
            schema_name: Ledger schema name; empty falls back to the default.
                Ignored on SQLite, which has no schemas.

        Raises:
            StoreError: If the backend cannot assign positions.
        """
        self.engine = engine
        self.table_name = table_name or DEFAULT_MIGRATION_TABLE
        self.schema_name = schema_name or DEFAULT_SCHEMA_NAME

        dialect = engine.dialect
        self._is_sqlite = dialect.name == "sqlite"
        if not self._is_sqlite and not dialect.supports_sequences:
            raise StoreError(
                f"Unsupported database backend {dialect.name!r}: "
                "ledger positions need sequences or SQLite"
            )

        self.schema = None if self._is_sqlite else self.schema_name
        self.metadata = MetaData()
        self.table = build_ledger_table(self.metadata, self.table_name, self.schema)

    @property
    def qualified_name(self) -> str:
        """Schema-prefixed table name, as used in SQL."""
        if self.schema:
            return f"{self.schema}.{self.table_name}"
        return self.table_name

    def initialize(self) -> None:
        """Create the schema and ledger table if they do not exist.

        Raises:
            StoreError: If creation fails.
        """
        try:
            with self.engine.begin() as conn:
                if self.schema:
                    quoted = conn.dialect.identifier_preparer.quote_schema(self.schema)
                    conn.exec_driver_sql(f"CREATE SCHEMA IF NOT EXISTS {quoted}")
                self.metadata.create_all(conn, checkfirst=True)
        except SQLAlchemyError as e:
            raise StoreError(
                f"Failed to initialize ledger {self.qualified_name}: {e}"
            ) from e
        logger.debug(f"Ledger initialized: {self.qualified_name}")

    def drop(self) -> None:
        """Drop the ledger table.

        Raises:
            StoreError: If the table does not exist or cannot be dropped.
        """
        try:
            with self.engine.begin() as conn:
                self.table.drop(conn)
                if not self._is_sqlite:
                    for column in self.table.columns:
                        if isinstance(column.default, Sequence):
                            column.default.drop(conn, checkfirst=True)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to drop ledger {self.qualified_name}: {e}") from e
        logger.debug(f"Ledger dropped: {self.qualified_name}")

    def exists(self, conn: Connection, name: str) -> bool:
        """Check whether a migration with this name is recorded."""
        row = conn.execute(
            select(self.table.c.id).where(self.table.c.name == name)
        ).first()
        return row is not None

    def insert_pending(self, conn: Connection, migration: Migration) -> bool:
        """Record a migration that has not run yet.

        The insert is skipped when a row with the same name exists.

        Args:
            conn: Connection inside the caller's transaction.
            migration: Migration to record.

        Returns:
            True if a row was inserted, False if the name was already present.
        """
        if self.exists(conn, migration.name):
            return False

        values = {
            "name": migration.name,
            "description": migration.description,
            "up": migration.up,
            "down": migration.down,
        }
        if self._is_sqlite:
            values["position"] = self._next_sqlite_position(conn)

        conn.execute(insert(self.table).values(**values))
        return True

    def _next_sqlite_position(self, conn: Connection) -> int:
        # AUTOINCREMENT keeps its high-water mark in sqlite_sequence even
        # after the newest rows are deleted.
        seq = conn.execute(
            text("SELECT seq FROM sqlite_sequence WHERE name = :name"),
            {"name": self.table_name},
        ).scalar()
        return (seq or 0) + 1

    def mark_migrated(self, conn: Connection, name: str, timestamp: datetime) -> None:
        """Set migrated_at for the named migration."""
        conn.execute(
            update(self.table)
            .where(self.table.c.name == name)
            .values(migrated_at=timestamp)
        )

    def delete_by_name(self, conn: Connection, name: str) -> None:
        """Remove the named migration from the ledger."""
        conn.execute(delete(self.table).where(self.table.c.name == name))

    def fetch_latest(self, conn: Connection) -> Migration:
        """Get the migration with the highest position.

        Raises:
            NoMigrationFound: If the ledger is empty.
        """
        row = conn.execute(
            select(self.table).order_by(self.table.c.position.desc()).limit(1)
        ).first()
        if row is None:
            raise NoMigrationFound()
        return self._row_to_migration(row)

    def fetch_all(self, conn: Connection) -> list[Migration]:
        """Get all recorded migrations in ascending position order."""
        result = conn.execute(select(self.table).order_by(self.table.c.position.asc()))
        return [self._row_to_migration(row) for row in result]

    @staticmethod
    def _row_to_migration(row: Row) -> Migration:
        return Migration(
            id=row.id,
            name=row.name,
            description=row.description or "",
            up=row.up or "",
            down=row.down or "",
            position=row.position,
            migrated_at=row.migrated_at,
        )
