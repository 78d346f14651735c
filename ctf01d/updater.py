"""Apply registered schema updates to a database and record them."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from .updates import UPDATES, Update

log = logging.getLogger(__name__)

BASELINE_ID = "update0000"
BASELINE_DESCRIPTION = "Added table database_updates"

_CREATE_TABLE = (
    "CREATE TABLE database_updates ("
    "    updated_at TIMESTAMP NOT NULL,"
    "    from_update_id VARCHAR(32) NOT NULL,"
    "    to_update_id VARCHAR(32) UNIQUE NOT NULL,"
    "    description TEXT, "
    "    PRIMARY KEY (from_update_id, to_update_id)"
    ");"
)

_MISSING_TABLE_MARKERS = (
    'relation "database_updates" does not exist',
    "no such table: database_updates",
)

_PLACEHOLDERS = {
    "qmark": lambda n: "?",
    "format": lambda n: "%s",
    "pyformat": lambda n: "%s",
    "numeric": lambda n: f":{n}",
}

Registry = dict[str, list[Update]]


class MigrationError(Exception):
    """Raised when the update history cannot be read or an update fails."""


def register_update(registry: Registry, update: Update) -> Registry:
    """Add *update* to *registry* under its from id and return the registry."""
    registry.setdefault(update.from_id, []).append(update)
    return registry


def register_all_updates() -> Registry:
    """Return every known update grouped by the id it starts from."""
    registry: Registry = {}
    for update in UPDATES:
        register_update(registry, update)
    return registry


def _placeholders(connection, count: int) -> list[str]:
    style = getattr(connection, "paramstyle", None)
    if style is None:
        style = "qmark" if isinstance(connection, sqlite3.Connection) else "format"
    try:
        make = _PLACEHOLDERS[style]
    except KeyError:
        raise MigrationError(f"unsupported parameter style {style!r}") from None
    return [make(n) for n in range(1, count + 1)]


def _execute(connection, sql: str, params: Sequence[Any] = ()) -> None:
    cursor = connection.cursor()
    try:
        cursor.execute(sql, tuple(params))
    finally:
        cursor.close()


def _query(connection, sql: str) -> list[tuple]:
    cursor = connection.cursor()
    try:
        cursor.execute(sql)
        return list(cursor.fetchall())
    finally:
        cursor.close()


def _rollback(connection) -> None:
    rollback = getattr(connection, "rollback", None)
    if rollback is not None:
        rollback()


def _is_missing_table(exc: Exception) -> bool:
    message = str(exc)
    return any(marker in message for marker in _MISSING_TABLE_MARKERS)


def insert_update_info(connection, from_id: str, to_id: str, description: str) -> None:
    """Record that the update *from_id* -> *to_id* has been installed."""
    marks = ", ".join(_placeholders(connection, 4))
    query = (
        "INSERT INTO database_updates ("
        "    updated_at, from_update_id, to_update_id, description"
        f") VALUES({marks})"
    )
    timestamp = datetime.now().isoformat(sep=" ")
    try:
        _execute(connection, query, (timestamp, from_id, to_id, description))
        connection.commit()
    except Exception as exc:
        log.error("InsertUpdateInfo: %s", exc)
        _rollback(connection)
        raise MigrationError(f"cannot record update {from_id} -> {to_id}: {exc}") from exc


def _install_baseline(connection) -> list[str]:
    insert_update_info(connection, "", BASELINE_ID, BASELINE_DESCRIPTION)
    return [BASELINE_ID]


def installed_versions(connection) -> list[str]:
    """Return the ids of installed updates, creating the history table if needed."""
    try:
        rows = _query(connection, "SELECT to_update_id FROM database_updates;")
    except Exception as exc:
        if not _is_missing_table(exc):
            raise MigrationError(f"cannot read installed updates: {exc}") from exc
        _rollback(connection)
        try:
            _execute(connection, _CREATE_TABLE)
            connection.commit()
        except Exception as create_exc:
            log.error("Create table database_updates: %s", create_exc)
            _rollback(connection)
            raise MigrationError(
                f"cannot create table database_updates: {create_exc}"
            ) from create_exc
        return _install_baseline(connection)

    if not rows:
        log.warning("Database_updates - No rows")
        return _install_baseline(connection)
    return [row[0] for row in rows]


def _apply(connection, update: Update) -> None:
    label = f"{update.from_id} -> {update.to_id} ({update.description})"
    try:
        update.apply(connection)
        connection.commit()
    except Exception as exc:
        log.error("Problem with update (1) %s: %s", label, exc)
        _rollback(connection)
        raise MigrationError(f"update {label} failed: {exc}") from exc
    try:
        insert_update_info(connection, update.from_id, update.to_id, update.description)
    except MigrationError as exc:
        log.error("Problem with update (2) %s: %s", label, exc)
        raise
    log.info("Successfully applied update %s", label)


def init_database(connection):
    """Bring the schema on *connection* up to date and return the connection."""
    log.info("Initing database...")
    installed = installed_versions(connection)
    log.info("Found last update: %s", installed[-1])

    registry = register_all_updates()
    checked: set[str] = set()
    progressed = True
    while progressed:
        progressed = False
        installed = installed_versions(connection)
        for installed_id in installed:
            for update in registry.get(installed_id, ()):
                if update.to_id in checked:
                    continue
                if update.to_id in installed:
                    log.debug(
                        "Update already installed %s -> %s", update.from_id, update.to_id
                    )
                    checked.add(update.to_id)
                    continue
                _apply(connection, update)
                checked.add(update.to_id)
                progressed = True
            log.debug("Installed update: %s", installed_id)

    log.info("Database inited.")
    return connection