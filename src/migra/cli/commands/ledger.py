"""Ledger management commands for migra CLI."""

from ...core.config import Config
from ...core.exceptions import NoMigrationFound
from ...core.types import Migration
from .session import open_migrator


def handle_init(args, config: Config) -> None:
    """Create the ledger table."""
    with open_migrator(config) as migrator:
        migrator.init()
        print(f"initialized {migrator.table}")


def handle_drop(args, config: Config) -> None:
    """Drop the ledger table."""
    with open_migrator(config) as migrator:
        migrator.drop()
        print(f"dropped {migrator.table}")


def handle_list(args, config: Config) -> None:
    """Print every recorded migration in push order."""
    with open_migrator(config) as migrator:
        migrations = migrator.list_all()

    if not migrations:
        print("no migrations")
        return

    for migration in migrations:
        _print_migration(migration)


def handle_latest(args, config: Config) -> None:
    """Print the most recently pushed migration."""
    with open_migrator(config) as migrator:
        try:
            migration = migrator.get_latest()
        except NoMigrationFound:
            print("no migrations")
            return

    _print_migration(migration)


def _print_migration(migration: Migration) -> None:
    print("")
    print(f"--- {migration.id} {migration.name} ---")
    print(f"{migration.description}\n")
    up = migration.up.strip(" \t")
    down = migration.down.strip(" \t")
    print(f"Up: {up}")
    print(f"Down: {down}")
