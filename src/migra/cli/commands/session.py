"""Shared database session handling for migra CLI commands."""

from contextlib import contextmanager
from typing import Iterator

from ...core.config import Config
from ...core.exceptions import MigraError
from ...services.migrator import Migrator
from ...store.database import create_engine


@contextmanager
def open_migrator(config: Config) -> Iterator[Migrator]:
    """Create an engine for the configured database and wrap it in a Migrator.

    The CLI owns this engine, so it is disposed on exit.

    Raises:
        MigraError: If no connection string is configured.
    """
    if not config.connection_string:
        raise MigraError(
            "no database configured: pass --conn or set MIGRA_CONNECTION_STRING"
        )

    engine = create_engine(config.connection_string, echo=config.echo)
    try:
        yield Migrator(engine, table=config.table, schema=config.schema)
    finally:
        engine.dispose()
