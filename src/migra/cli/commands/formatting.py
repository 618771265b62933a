"""Output helpers for migra CLI commands."""


def count_migrations(count: int) -> str:
    """Format a migration count, e.g. "1 migration" or "3 migrations"."""
    noun = "migration" if count == 1 else "migrations"
    return f"{count} {noun}"
