"""SQL execution helpers for the migration ledger.

The engine is always owned by the caller. ``create_engine`` is a thin
wrapper around SQLAlchemy's that makes SQLite transactions cover DDL, so a
failing ``up`` or ``down`` script rolls back the tables it created or
dropped together with the ledger row.
"""

import sqlite3
from typing import Any

import sqlalchemy
from sqlalchemy import event
from sqlalchemy.engine import Connection, Engine


def create_engine(url: str, **kwargs: Any) -> Engine:
    """Create a SQLAlchemy engine suitable for running migrations.

    Args:
        url: SQLAlchemy database URL (e.g., "sqlite:///path/to/db.sqlite").
        **kwargs: Passed through to ``sqlalchemy.create_engine``.

    Returns:
        Configured Engine.
    """
    engine = sqlalchemy.create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        enable_transactional_ddl(engine)
    return engine


def enable_transactional_ddl(engine: Engine) -> None:
    """Let SQLAlchemy, not pysqlite, decide where SQLite transactions begin.

    pysqlite only opens a transaction before DML, so DDL issued first in a
    transaction would otherwise be committed immediately.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def split_statements(script: str) -> list[str]:
    """Split a SQLite script into complete statements.

    Semicolons inside string literals or trigger bodies do not end a
    statement. Trailing text without a semicolon is kept as the last
    statement.

    Args:
        script: SQL text with one or more statements.

    Returns:
        List of statements, empty ones removed.
    """
    statements: list[str] = []
    buffer = ""
    parts = script.split(";")
    for i, part in enumerate(parts):
        buffer += part
        if i < len(parts) - 1:
            buffer += ";"
        if sqlite3.complete_statement(buffer):
            if not _is_blank(buffer):
                statements.append(buffer.strip())
            buffer = ""
    if not _is_blank(buffer):
        statements.append(buffer.strip())
    return statements


def _is_blank(statement: str) -> bool:
    return not statement.replace(";", "").strip()


def execute_script(conn: Connection, script: str) -> None:
    """Execute raw migration SQL on an open connection.

    pysqlite only accepts one statement per call, so SQLite scripts are
    split first. Other drivers receive the script unchanged.

    Args:
        conn: Connection inside the caller's transaction.
        script: SQL text with one or more statements.
    """
    if conn.dialect.name == "sqlite":
        for statement in split_statements(script):
            conn.exec_driver_sql(statement)
    else:
        conn.exec_driver_sql(script)
