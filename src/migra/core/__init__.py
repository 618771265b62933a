"""Core types, configuration and exceptions for migra."""

from .config import DEFAULT_MIGRATION_TABLE, DEFAULT_SCHEMA_NAME, Config
from .exceptions import (
    ExecutionError,
    LoaderError,
    MigraError,
    NoMigrationFound,
    StoreError,
    ValidationError,
)
from .types import Migration

__all__ = [
    "Config",
    "DEFAULT_MIGRATION_TABLE",
    "DEFAULT_SCHEMA_NAME",
    "ExecutionError",
    "LoaderError",
    "MigraError",
    "Migration",
    "NoMigrationFound",
    "StoreError",
    "ValidationError",
]
