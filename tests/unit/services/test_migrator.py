"""Tests for the Migrator engine."""

import pytest
from sqlalchemy import text
from sqlalchemy.engine import Engine

from migra.core.exceptions import (
    ExecutionError,
    NoMigrationFound,
    StoreError,
    ValidationError,
)
from migra.core.types import Migration
import migra.services.migrator as migrator_module
from migra.services.migrator import Migrator
from migra.store.database import execute_script


def _names(migrator: Migrator) -> list[str]:
    return [m.name for m in migrator.list_all()]


def _interrupt_after_script(monkeypatch) -> None:
    """Make the migrator run each script, then raise KeyboardInterrupt."""

    def _run_then_interrupt(conn, script):
        execute_script(conn, script)
        raise KeyboardInterrupt

    monkeypatch.setattr(migrator_module, "execute_script", _run_then_interrupt)


class TestPush:
    """Tests for pushing a single migration."""

    def test_create_users_scenario(self, migrator: Migrator, has_table):
        """Push then pop the canonical users migration."""
        migration = Migration(
            name="create_users",
            up="CREATE TABLE users(id INT)",
            down="DROP TABLE users",
        )

        assert migrator.push(migration) is True

        migrations = migrator.list_all()
        assert [m.name for m in migrations] == ["create_users"]
        assert migrations[0].migrated_at is not None
        assert has_table("users")

        popped = migrator.pop()

        assert popped.name == "create_users"
        assert migrator.list_all() == []
        assert not has_table("users")

    def test_push_is_idempotent(self, engine: Engine, migrator: Migrator):
        """Pushing the same name twice runs the up statement once."""
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE counter (n INTEGER)"))
        migration = Migration(name="count", up="INSERT INTO counter (n) VALUES (1)")

        assert migrator.push(migration) is True
        assert migrator.push(migration) is False

        with engine.connect() as conn:
            count = conn.execute(text("SELECT COUNT(*) FROM counter")).scalar()
        assert count == 1
        assert _names(migrator) == ["count"]

    @pytest.mark.parametrize(
        "migration",
        [
            Migration(name="", up="CREATE TABLE never (id INT)"),
            Migration(name="no_up", up=""),
        ],
    )
    def test_validation_rejects_missing_fields(self, migrator: Migrator, has_table, migration):
        with pytest.raises(ValidationError):
            migrator.push(migration)

        assert migrator.list_all() == []
        assert not has_table("never")

    def test_validation_happens_before_database(self, engine: Engine):
        """An invalid migration is rejected even without a ledger table."""
        migrator = Migrator(engine)

        with pytest.raises(ValidationError, match="name is required"):
            migrator.push(Migration(name="", up="SELECT 1"))

    def test_failed_up_rolls_back_everything(self, migrator: Migrator, has_table):
        """No ledger row and no partial schema change after a failing up."""
        migration = Migration(
            name="broken",
            up="CREATE TABLE half (id INT); INSERT INTO missing VALUES (1);",
            down="DROP TABLE half",
        )

        with pytest.raises(ExecutionError) as exc_info:
            migrator.push(migration)

        assert exc_info.value.migration_name == "broken"
        assert exc_info.value.__cause__ is not None
        assert migrator.list_all() == []
        assert not has_table("half")

    def test_push_without_ledger_raises(self, engine: Engine):
        migrator = Migrator(engine)

        with pytest.raises(ExecutionError):
            migrator.push(Migration(name="a", up="SELECT 1"))

    def test_interrupted_push_rolls_back(self, migrator: Migrator, has_table, monkeypatch):
        """An interrupt after the up DDL leaves no ledger row and no table."""
        _interrupt_after_script(monkeypatch)

        with pytest.raises(KeyboardInterrupt):
            migrator.push(Migration(name="x", up="CREATE TABLE x (id INT)", down="DROP TABLE x"))

        assert migrator.list_all() == []
        assert not has_table("x")

    def test_multi_statement_up(self, migrator: Migrator, has_table):
        migrator.push(
            Migration(
                name="two_tables",
                up="CREATE TABLE one (id INT);\nCREATE TABLE two (id INT);",
                down="DROP TABLE two; DROP TABLE one;",
            )
        )

        assert has_table("one")
        assert has_table("two")

        migrator.pop()

        assert not has_table("one")
        assert not has_table("two")


class TestPop:
    """Tests for reverting migrations."""

    def test_pop_on_empty_ledger(self, migrator: Migrator):
        with pytest.raises(NoMigrationFound):
            migrator.pop()

    def test_pop_is_stack_ordered(self, migrator: Migrator, make_migration):
        for name in ("a", "b", "c"):
            migrator.push(make_migration(name))

        assert [migrator.pop().name for _ in range(3)] == ["c", "b", "a"]

    def test_failed_down_keeps_row_and_schema(self, migrator: Migrator, has_table):
        migrator.push(
            Migration(
                name="keep",
                up="CREATE TABLE kept (id INT)",
                down="DROP TABLE kept; DROP TABLE missing;",
            )
        )

        with pytest.raises(ExecutionError) as exc_info:
            migrator.pop()

        assert exc_info.value.migration_name == "keep"
        assert _names(migrator) == ["keep"]
        assert has_table("kept")

    def test_empty_down_still_removes_row(self, migrator: Migrator, has_table):
        migrator.push(Migration(name="one_way", up="CREATE TABLE one_way (id INT)"))

        migrator.pop()

        assert migrator.list_all() == []
        assert has_table("one_way")

    def test_interrupted_pop_rolls_back(
        self, migrator: Migrator, make_migration, has_table, monkeypatch
    ):
        """An interrupt after the down DDL keeps both the row and the table."""
        migrator.push(make_migration("a"))
        _interrupt_after_script(monkeypatch)

        with pytest.raises(KeyboardInterrupt):
            migrator.pop()

        assert _names(migrator) == ["a"]
        assert has_table("t_a")

    def test_position_not_reused_after_pop(self, migrator: Migrator, make_migration):
        migrator.push(make_migration("a"))
        migrator.push(make_migration("b"))
        popped = migrator.pop()

        migrator.push(make_migration("c"))

        assert migrator.get_latest().position > popped.position


class TestPopAll:
    """Tests for reverting every migration."""

    def test_pop_all_returns_count(self, migrator: Migrator, make_migration, has_table):
        for name in ("a", "b", "c"):
            migrator.push(make_migration(name))

        assert migrator.pop_all() == 3
        assert migrator.list_all() == []
        assert not has_table("t_a")

    def test_pop_all_on_empty_ledger(self, migrator: Migrator):
        with pytest.raises(NoMigrationFound):
            migrator.pop_all()

    def test_pop_all_stops_on_execution_error(self, migrator: Migrator, make_migration):
        migrator.push(make_migration("a"))
        migrator.push(Migration(name="bad", up="SELECT 1", down="DROP TABLE missing"))

        with pytest.raises(ExecutionError):
            migrator.pop_all()

        assert _names(migrator) == ["a", "bad"]


class TestPopUntil:
    """Tests for reverting down to a named migration."""

    def test_pop_until_stops_at_target(self, migrator: Migrator, make_migration):
        for name in ("a", "b", "c"):
            migrator.push(make_migration(name))

        assert migrator.pop_until("a") == 2
        assert _names(migrator) == ["a"]

    def test_pop_until_latest_is_noop(self, migrator: Migrator, make_migration):
        migrator.push(make_migration("a"))

        assert migrator.pop_until("a") == 0
        assert _names(migrator) == ["a"]

    def test_pop_until_unknown_name_exhausts_ledger(self, migrator: Migrator, make_migration):
        migrator.push(make_migration("a"))
        migrator.push(make_migration("b"))

        with pytest.raises(NoMigrationFound):
            migrator.pop_until("never_pushed")

        assert migrator.list_all() == []


class TestPushMany:
    """Tests for pushing sequences of migrations."""

    def test_push_many_in_order(self, migrator: Migrator, make_migration):
        migrations = [make_migration(name) for name in ("a", "b", "c")]

        assert migrator.push_many(migrations) == 3
        assert _names(migrator) == ["a", "b", "c"]

    def test_push_many_fails_fast(self, migrator: Migrator, make_migration):
        migrations = [
            make_migration("a"),
            Migration(name="bad", up="INSERT INTO missing VALUES (1)"),
            make_migration("c"),
        ]

        with pytest.raises(ExecutionError):
            migrator.push_many(migrations)

        assert _names(migrator) == ["a"]

    def test_push_many_skips_applied(self, migrator: Migrator, make_migration):
        migrator.push(make_migration("a"))

        assert migrator.push_many([make_migration("a"), make_migration("b")]) == 1


class TestReads:
    """Tests for list_all, get_latest and ledger management."""

    def test_get_latest(self, migrator: Migrator, make_migration):
        migrator.push(make_migration("a"))
        migrator.push(make_migration("b"))

        latest = migrator.get_latest()

        assert latest.name == "b"
        assert latest.up == "CREATE TABLE t_b (id INTEGER PRIMARY KEY)"

    def test_get_latest_empty(self, migrator: Migrator):
        with pytest.raises(NoMigrationFound):
            migrator.get_latest()

    def test_reads_without_ledger_raise_store_error(self, engine: Engine):
        migrator = Migrator(engine)

        with pytest.raises(StoreError):
            migrator.list_all()
        with pytest.raises(StoreError):
            migrator.get_latest()

    def test_table_property(self, engine: Engine):
        assert Migrator(engine, table="ledger").table == "ledger"

    def test_drop(self, migrator: Migrator, has_table):
        migrator.drop()

        assert not has_table("_migrations")
        with pytest.raises(StoreError):
            migrator.drop()

    def test_engine_stays_usable(self, engine: Engine, migrator: Migrator, make_migration):
        """The migrator never disposes the caller's engine."""
        migrator.push(make_migration("a"))
        migrator.pop()

        with engine.connect() as conn:
            assert conn.execute(text("SELECT 1")).scalar() == 1
