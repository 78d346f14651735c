import sqlite3

import pytest

from ctf01d.updater import (
    MigrationError,
    init_database,
    insert_update_info,
    installed_versions,
    register_all_updates,
    register_update,
)
from ctf01d.updates import (
    UPDATE0001_UPDATE0001ADMIN,
    UPDATE0001_UPDATE0001TESTDATA,
    UPDATE0001_UPDATE0002,
    UPDATE0002_UPDATE0003,
    UPDATES,
)


class _PgLikeCursor:
    def __init__(self, inner):
        self.inner = inner

    def execute(self, sql, params=()):
        if sql.strip().upper().startswith("CREATE EXTENSION"):
            return
        self.inner.execute(sql.replace("DEFAULT uuid_generate_v4()", ""), params)

    def fetchall(self):
        return self.inner.fetchall()

    def close(self):
        self.inner.close()


class _PgLikeConnection:
    """sqlite connection that tolerates the few PostgreSQL-only statements."""

    paramstyle = "qmark"

    def __init__(self):
        self.inner = sqlite3.connect(":memory:")

    def cursor(self):
        return _PgLikeCursor(self.inner.cursor())

    def commit(self):
        self.inner.commit()

    def rollback(self):
        self.inner.rollback()


@pytest.fixture
def sqlite_conn():
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


def _table_names(conn):
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    return {row[0] for row in rows}


def test_register_update_groups_by_from_id():
    registry = {}
    result = register_update(registry, UPDATE0001_UPDATE0002)
    register_update(registry, UPDATE0001_UPDATE0001ADMIN)
    register_update(registry, UPDATE0002_UPDATE0003)
    assert result is registry
    assert registry["update0001"] == [UPDATE0001_UPDATE0002, UPDATE0001_UPDATE0001ADMIN]
    assert registry["update0002"] == [UPDATE0002_UPDATE0003]


def test_register_all_updates_covers_every_update_in_order():
    registry = register_all_updates()
    assert set(registry) == {u.from_id for u in UPDATES}
    assert [u for group in registry.values() for u in group] == sorted(
        UPDATES, key=lambda u: [u.from_id for u in UPDATES].index(u.from_id)
    )
    assert registry["update0001"] == [
        UPDATE0001_UPDATE0001ADMIN,
        UPDATE0001_UPDATE0001TESTDATA,
        UPDATE0001_UPDATE0002,
    ]


def test_installed_versions_creates_table_with_baseline(sqlite_conn):
    assert installed_versions(sqlite_conn) == ["update0000"]
    assert "database_updates" in _table_names(sqlite_conn)
    assert installed_versions(sqlite_conn) == ["update0000"]


def test_installed_versions_fills_empty_table(sqlite_conn):
    installed_versions(sqlite_conn)
    sqlite_conn.execute("DELETE FROM database_updates")
    sqlite_conn.commit()
    assert installed_versions(sqlite_conn) == ["update0000"]


def test_insert_update_info_is_recorded(sqlite_conn):
    installed_versions(sqlite_conn)
    insert_update_info(sqlite_conn, "update0000", "update0001", "Added table users")
    assert installed_versions(sqlite_conn) == ["update0000", "update0001"]
    row = sqlite_conn.execute(
        "SELECT from_update_id, description FROM database_updates "
        "WHERE to_update_id = 'update0001'"
    ).fetchone()
    assert row == ("update0000", "Added table users")


def test_insert_update_info_rejects_duplicate(sqlite_conn):
    installed_versions(sqlite_conn)
    with pytest.raises(MigrationError):
        insert_update_info(sqlite_conn, "other", "update0000", "again")


def test_insert_update_info_without_table_fails(sqlite_conn):
    with pytest.raises(MigrationError):
        insert_update_info(sqlite_conn, "", "update0000", "baseline")


def test_init_database_applies_all_updates():
    conn = _PgLikeConnection()
    assert init_database(conn) is conn
    installed = installed_versions(conn)
    assert set(installed) == {u.to_id for u in UPDATES} | {"update0000"}
    assert len(installed) == len(set(installed))
    assert {"users", "sessions", "universities"} <= _table_names(conn.inner)
    role = conn.inner.execute("SELECT role FROM users WHERE user_name = 'admin'").fetchone()
    assert role == ("admin",)
    inactive = conn.inner.execute(
        "SELECT user_name FROM users WHERE status = 'inactive'"
    ).fetchall()
    assert inactive == [("Smith",)]


def test_init_database_is_idempotent():
    conn = _PgLikeConnection()
    init_database(conn)
    users_before = conn.inner.execute("SELECT COUNT(*) FROM users").fetchone()
    history_before = installed_versions(conn)
    init_database(conn)
    assert conn.inner.execute("SELECT COUNT(*) FROM users").fetchone() == users_before
    assert installed_versions(conn) == history_before


def test_init_database_stops_on_failing_update(sqlite_conn):
    with pytest.raises(MigrationError) as info:
        init_database(sqlite_conn)
    assert "update0002" in str(info.value)
    installed = installed_versions(sqlite_conn)
    assert "update0001" in installed
    assert "update0002" not in installed
    assert "users" in _table_names(sqlite_conn)