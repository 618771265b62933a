"""Pop command for migra CLI."""

import argparse

from ...core.config import Config
from ...core.exceptions import MigraError, NoMigrationFound
from .formatting import count_migrations
from .session import open_migrator


def add_pop_arguments(parser: argparse.ArgumentParser) -> None:
    """Add arguments for the pop command."""
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--until", default="", help="pop until migration with this name is reached")
    target.add_argument("-a", "--all", action="store_true", help="pop all migrations")


def handle_pop(args, config: Config) -> None:
    """Revert one, all, or all migrations above a named one.

    Raises:
        NoMigrationFound: If there is nothing to revert.
    """
    with open_migrator(config) as migrator:
        if args.all:
            popped = migrator.pop_all()
            print(f"popped {count_migrations(popped)}")
        elif args.until:
            try:
                popped = migrator.pop_until(args.until)
            except NoMigrationFound as e:
                raise MigraError(
                    f"migration {args.until!r} not reached, ledger is empty"
                ) from e
            print(f"popped {count_migrations(popped)}")
        else:
            migrator.pop()
            print("popped 1 migration")
