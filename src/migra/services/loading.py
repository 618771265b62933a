"""Migration file loading.

Migration files are documents with the keys ``name``, ``description``,
``up`` and ``down``. The format is picked from the file extension.

Example migration (0001_create_users.yaml):
    name: create_users
    description: Users table
    up: CREATE TABLE users (id INTEGER PRIMARY KEY)
    down: DROP TABLE users
"""

from __future__ import annotations

import json
import posixpath
import tomllib
from typing import TYPE_CHECKING, Any, Callable, Iterator

import fsspec
import yaml
from loguru import logger

from ..core.exceptions import LoaderError
from ..core.types import Migration

if TYPE_CHECKING:
    from fsspec import AbstractFileSystem

MIGRATION_KEYS = ("name", "description", "up", "down")


def _parse_yaml(text: str) -> Any:
    return yaml.safe_load(text)


def _parse_toml(text: str) -> Any:
    return tomllib.loads(text)


PARSERS: dict[str, Callable[[str], Any]] = {
    ".yaml": _parse_yaml,
    ".yml": _parse_yaml,
    ".json": json.loads,
    ".toml": _parse_toml,
}


def parse_migration(text: str, extension: str, source: str = "<string>") -> Migration:
    """Parse a migration document.

    Unknown keys are ignored and missing keys default to empty strings;
    required fields are checked when the migration is pushed.

    Args:
        text: Document content.
        extension: File extension selecting the format (e.g. ".yaml").
        source: Name used in error messages.

    Returns:
        Parsed Migration.

    Raises:
        LoaderError: If the format is unknown or the document is malformed.
    """
    parser = PARSERS.get(extension.lower())
    if parser is None:
        raise LoaderError(f"Unsupported migration file type {extension!r}: {source}")

    try:
        data = parser(text)
    except (yaml.YAMLError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise LoaderError(f"Failed to parse migration file {source}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise LoaderError(f"Migration file {source} must contain a mapping")

    fields: dict[str, str] = {}
    for key in MIGRATION_KEYS:
        value = data.get(key, "")
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise LoaderError(f"Migration file {source}: {key!r} must be a string")
        fields[key] = value

    return Migration(**fields)


class MigrationLoader:
    """Reads migrations from files on any fsspec filesystem.

    Example:
        loader = MigrationLoader()
        for migration in loader.iter_dir("migrations"):
            print(migration.name)
    """

    def __init__(self, filesystem: AbstractFileSystem | None = None):
        """Initialize MigrationLoader.

        Args:
            filesystem: Default filesystem (local disk if not given).
        """
        self._fs = filesystem or fsspec.filesystem("file")

    def load_file(
        self, path: str, filesystem: AbstractFileSystem | None = None
    ) -> Migration:
        """Load a single migration file.

        Raises:
            LoaderError: If the file cannot be read or parsed.
        """
        fs = filesystem or self._fs
        logger.debug(f"Loading migration file {path}")

        try:
            with fs.open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise LoaderError(f"Failed to read migration file {path}: {e}") from e

        _, extension = posixpath.splitext(path)
        return parse_migration(text, extension, source=path)

    def iter_dir(
        self, path: str, filesystem: AbstractFileSystem | None = None
    ) -> Iterator[Migration]:
        """Yield migrations from a directory tree in file name order.

        Entries of each directory are sorted by name and subdirectories are
        visited where they sort, so "0002/" comes between "0001.yaml" and
        "0003.yaml". Files are loaded lazily, one per iteration.

        Raises:
            LoaderError: If the directory cannot be listed or a file is invalid.
        """
        fs = filesystem or self._fs

        try:
            entries = fs.ls(path, detail=True)
        except OSError as e:
            raise LoaderError(f"Failed to list migration directory {path}: {e}") from e

        for entry in sorted(entries, key=lambda e: posixpath.basename(e["name"].rstrip("/"))):
            entry_path = entry["name"]
            if entry["type"] == "directory":
                yield from self.iter_dir(entry_path, fs)
            else:
                yield self.load_file(entry_path, fs)
