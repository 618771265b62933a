"""Configuration management for migra."""

import os
from dataclasses import dataclass

DEFAULT_MIGRATION_TABLE = "_migrations"
DEFAULT_SCHEMA_NAME = "public"


@dataclass
class Config:
    """Main application configuration."""

    connection_string: str = ""
    table: str = DEFAULT_MIGRATION_TABLE
    schema: str = DEFAULT_SCHEMA_NAME
    echo: bool = False  # Log every SQL statement issued by SQLAlchemy

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        config = cls()

        if url := os.environ.get("MIGRA_CONNECTION_STRING"):
            config.connection_string = url

        if table := os.environ.get("MIGRA_TABLE"):
            config.table = table
        if schema := os.environ.get("MIGRA_SCHEMA"):
            config.schema = schema

        if echo := os.environ.get("MIGRA_ECHO"):
            config.echo = echo.lower() in ("1", "true", "yes", "on")

        return config

    def override(
        self,
        connection_string: str | None = None,
        table: str | None = None,
        schema: str | None = None,
    ) -> "Config":
        """Apply non-empty command line values on top of this configuration.

        Returns:
            This configuration, for chaining.
        """
        if connection_string:
            self.connection_string = connection_string
        if table:
            self.table = table
        if schema:
            self.schema = schema
        return self
