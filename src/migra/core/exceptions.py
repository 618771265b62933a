"""Custom exceptions for migra."""


class MigraError(Exception):
    """Base exception for all migra errors."""

    pass


class ValidationError(MigraError):
    """Migration is missing a required field."""

    pass


class NoMigrationFound(MigraError):
    """The ledger has no migration to act on."""

    def __init__(self, message: str = "no migration found"):
        super().__init__(message)


class ExecutionError(MigraError):
    """A statement failed while applying or reverting a migration."""

    def __init__(self, migration_name: str | None, cause: Exception):
        """Initialize exception with the migration name and database error.

        Args:
            migration_name: Name of the migration being applied or reverted,
                or None if the failure happened before it was known.
            cause: Underlying database error.
        """
        self.migration_name = migration_name
        self.cause = cause
        if migration_name:
            message = f"Migration {migration_name!r} failed: {cause}"
        else:
            message = f"Migration failed: {cause}"
        super().__init__(message)


class StoreError(MigraError):
    """Ledger table management or read failed."""

    pass


class LoaderError(MigraError):
    """Migration file could not be read or parsed."""

    pass
