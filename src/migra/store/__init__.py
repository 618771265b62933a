"""Ledger storage and SQL execution for migra."""

from .database import create_engine, enable_transactional_ddl, execute_script, split_statements
from .ledger import LedgerStore, build_ledger_table

__all__ = [
    "LedgerStore",
    "build_ledger_table",
    "create_engine",
    "enable_transactional_ddl",
    "execute_script",
    "split_statements",
]
