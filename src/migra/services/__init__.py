"""Migration services: engine and file loading."""

from .loading import MigrationLoader, parse_migration
from .migrator import Migrator

__all__ = [
    "MigrationLoader",
    "Migrator",
    "parse_migration",
]
