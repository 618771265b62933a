"""Push command for migra CLI."""

import argparse

from ...core.config import Config
from ...core.types import Migration
from .formatting import count_migrations
from .session import open_migrator


def add_push_arguments(parser: argparse.ArgumentParser) -> None:
    """Add arguments for the push command."""
    source = parser.add_mutually_exclusive_group()
    source.add_argument("-d", "--dir", help="directory containing migration files")
    source.add_argument("-f", "--file", help="single migration file")
    parser.add_argument("--name", default="", help="name of migration")
    parser.add_argument("--desc", default="", help="description of migration")
    parser.add_argument("--up", default="", help="up migration sql")
    parser.add_argument("--down", default="", help="down migration sql")


def handle_push(args, config: Config) -> None:
    """Push migrations from a directory, a file, or the command line."""
    with open_migrator(config) as migrator:
        if args.dir:
            applied = migrator.push_dir(args.dir)
            print(f"pushed {count_migrations(applied)}")
        elif args.file:
            migrator.push_file(args.file)
        else:
            migrator.push(
                Migration(
                    name=args.name,
                    description=args.desc,
                    up=args.up,
                    down=args.down,
                )
            )

    print("done")
