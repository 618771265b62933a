"""CLI entry point for migra."""

import argparse
import sys
from typing import NoReturn

from loguru import logger

from .. import __version__
from ..core.config import Config
from ..core.exceptions import NoMigrationFound
from . import commands


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="migra",
        description="migra is a command line interface and library for managing sql migrations",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--conn",
        default="",
        help="SQLAlchemy database URL (default: $MIGRA_CONNECTION_STRING)",
    )
    parser.add_argument(
        "-t", "--table", default="", help="migrations table to use (default: _migrations)"
    )
    parser.add_argument("-s", "--schema", default="", help="schema to use (default: public)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")

    subparsers = parser.add_subparsers(dest="command", required=False)

    subparsers.add_parser("init", help="Create migration table and schema if specified")
    subparsers.add_parser("drop", help="Drop the migration table")
    subparsers.add_parser("list", aliases=["ls"], help="List all migrations")
    subparsers.add_parser("latest", help="Show the most recent migration")

    push_parser = subparsers.add_parser(
        "push", aliases=["add", "up"], help="Push a new migration"
    )
    commands.add_push_arguments(push_parser)

    pop_parser = subparsers.add_parser(
        "pop", aliases=["rm", "remove", "down"], help="Undo migrations"
    )
    commands.add_pop_arguments(pop_parser)

    return parser


COMMAND_ALIASES = {
    "ls": "list",
    "add": "push",
    "up": "push",
    "rm": "pop",
    "remove": "pop",
    "down": "pop",
}


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr, at DEBUG when verbose."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    config = Config.from_env().override(
        connection_string=args.conn, table=args.table, schema=args.schema
    )
    command = COMMAND_ALIASES.get(args.command, args.command)

    try:
        if command == "init":
            commands.handle_init(args, config)
        elif command == "drop":
            commands.handle_drop(args, config)
        elif command == "list":
            commands.handle_list(args, config)
        elif command == "latest":
            commands.handle_latest(args, config)
        elif command == "push":
            commands.handle_push(args, config)
        elif command == "pop":
            commands.handle_pop(args, config)
        else:
            parser.print_help()

        sys.exit(0)
    except NoMigrationFound:
        print("nothing to undo")
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
