"""Type definitions for migra."""

from dataclasses import dataclass
from datetime import datetime

from .exceptions import ValidationError


@dataclass
class Migration:
    """A named, reversible change to the database.

    ``id``, ``position`` and ``migrated_at`` are assigned by the ledger and
    are only populated on migrations read back from it.
    """

    name: str
    up: str
    down: str = ""
    description: str = ""
    id: int | None = None
    position: int | None = None
    migrated_at: datetime | None = None

    def validate(self) -> None:
        """Check required fields.

        Raises:
            ValidationError: If name or up statement is empty.
        """
        if not self.name:
            raise ValidationError("migration name is required")
        if not self.up:
            raise ValidationError("up sql is required")

    @property
    def migrated(self) -> bool:
        """Whether the up statement has completed."""
        return self.migrated_at is not None

    def __repr__(self) -> str:
        return f"Migration({self.name!r}, position={self.position})"
