"""Schema updates: each moves the database from one update id to the next."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

log = logging.getLogger(__name__)

_PREFIX = "DatabaseUpdate"


def parse_update_name(name: str) -> tuple[str, str]:
    """Split ``DatabaseUpdate_<from>_<to>[_suffix]`` into its from and to ids."""
    parts = name.split("_")
    if len(parts) < 3 or parts[0] != _PREFIX:
        raise ValueError(
            f"wrong update name {name!r}, expected like DatabaseUpdate_xxxx0000_xxxxx0001"
        )
    from_id, to_id = parts[1], parts[2]
    if from_id == to_id:
        raise ValueError(
            f"update {name!r} cannot go from and to the same id {to_id!r}, "
            "expected like DatabaseUpdate_xxxx0000_xxxxx0001"
        )
    return from_id, to_id


@dataclass(frozen=True)
class Update:
    """One schema update: its ids, a description and the SQL it runs."""

    from_id: str
    to_id: str
    description: str
    statements: tuple[str, ...]

    @classmethod
    def from_name(
        cls, name: str, description: str, statements: str | Iterable[str]
    ) -> Update:
        """Build an update whose ids are taken from *name*."""
        from_id, to_id = parse_update_name(name)
        if isinstance(statements, str):
            statements = (statements,)
        return cls(from_id, to_id, description, tuple(statements))

    def apply(self, connection) -> None:
        """Run the statements on a DB-API *connection*; committing is up to the caller."""
        cursor = connection.cursor()
        try:
            for statement in self.statements:
                try:
                    cursor.execute(statement)
                except Exception as exc:
                    log.error(
                        "Problem with update, query: %s\n   error:%s", statement, exc
                    )
                    raise
        finally:
            cursor.close()


# Do not change an update once it has been installed anywhere; add a new one.

UPDATE0000_UPDATE0001 = Update.from_name(
    "DatabaseUpdate_update0000_update0001",
    "Added table users",
    """
    CREATE TABLE users (
        id SERIAL PRIMARY KEY,
        user_name VARCHAR(255) UNIQUE NOT NULL,
        password_hash VARCHAR(255) NOT NULL,
        avatar_url VARCHAR(255),
        status VARCHAR(255),
        role VARCHAR(255) NOT NULL CHECK (role IN ('admin', 'player', 'guest'))
    );
    """,
)

UPDATE0001_UPDATE0001ADMIN = Update.from_name(
    "DatabaseUpdate_update0001_update0001admin",
    "Insert admin/admin/admin user",
    """
    INSERT INTO users (user_name, password_hash, role, avatar_url, status) VALUES
    ('admin', '$2a$10$zHYCbFK9BkGRL6oxy91GiOgrqTs/0A.K4FUpA/d9h..aJiVyePxqi', 'admin', 'https://robohash.org/admin', 'active')
    ;
    """,
)

_TEST_HASH = "7110eda4d09e062aa5e4a390b0a572ac0d2c0220"

UPDATE0001_UPDATE0001TESTDATA = Update.from_name(
    "DatabaseUpdate_update0001_update0001testdata",
    "Insert test data users",
    f"""
    INSERT INTO users (user_name, password_hash, role, avatar_url, status) VALUES
    ('Neo', '{_TEST_HASH}', 'player', 'https://robohash.org/neo', 'active'),
    ('Morpheus', '{_TEST_HASH}', 'player', 'https://robohash.org/morpheus', 'active'),
    ('Trinity', '{_TEST_HASH}', 'player', 'https://robohash.org/trinity', 'active'),
    ('Cipher', '{_TEST_HASH}', 'player', 'https://robohash.org/cipher', 'active'),
    ('Seraph', '{_TEST_HASH}', 'player', 'https://robohash.org/seraph', 'active'),
    ('Smith', '{_TEST_HASH}', 'player', 'https://robohash.org/smith', 'inactive'),
    ('Oracle', '{_TEST_HASH}', 'player', 'https://robohash.org/oracle', 'active'),
    ('Sati', '{_TEST_HASH}', 'player', 'https://robohash.org/sati', 'active'),
    ('Apoc', '{_TEST_HASH}', 'player', 'https://robohash.org/apoc', 'active'),
    ('Dozer', '{_TEST_HASH}', 'admin', 'https://robohash.org/dozer', '')
    ;
    """,
)

UPDATE0001_UPDATE0002 = Update.from_name(
    "DatabaseUpdate_update0001_update0002",
    "Create extension uuid-ossp",
    'CREATE EXTENSION IF NOT EXISTS "uuid-ossp";',
)

UPDATE0002_UPDATE0003 = Update.from_name(
    "DatabaseUpdate_update0002_update0003",
    "Added table sessions",
    """
    CREATE TABLE sessions (
        id uuid PRIMARY KEY DEFAULT uuid_generate_v4(),
        user_id INTEGER UNIQUE REFERENCES users(id),
        expires_at TIMESTAMP NOT NULL
    );
    """,
)

UPDATE0003_UPDATE0004 = Update.from_name(
    "DatabaseUpdate_update0003_update0004",
    "Added table universities",
    """
    CREATE TABLE universities (
        id SERIAL PRIMARY KEY,
        name VARCHAR(255) UNIQUE NOT NULL
    );
    """,
)

UPDATES: tuple[Update, ...] = (
    UPDATE0000_UPDATE0001,
    UPDATE0001_UPDATE0001ADMIN,
    UPDATE0001_UPDATE0001TESTDATA,
    UPDATE0001_UPDATE0002,
    UPDATE0002_UPDATE0003,
    UPDATE0003_UPDATE0004,
)