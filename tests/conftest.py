"""
Pytest configuration and fixtures for testing.

Repositories speak psycopg2 conventions: `%s` placeholders and
`conn.cursor(cursor_factory=...)` used as a context manager. The
SqliteConnection shim below accepts those conventions on top of an
in-memory SQLite database, so the SQL the repositories build is
actually executed.
"""

import sqlite3
import sys
from pathlib import Path

import pytest

# Add the project root directory to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from repositories.chat_message_repo import ChatMessageRepository
from repositories.location_repo import LocationRepository
from repositories.mail_queue_repo import MailQueueRepository
from repositories.oidc_provider_repo import OidcProviderRepository
from repositories.realm_repo import RealmRepository

SQLITE_SCHEMA = """
CREATE TABLE realms (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    name            TEXT NOT NULL,
    description     TEXT,
    logo            TEXT,
    author          TEXT,
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE locations (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    name            TEXT NOT NULL,
    description     TEXT,
    flag_code       TEXT,
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE mail_queue (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    user_uuid       TEXT NOT NULL,
    subject         TEXT NOT NULL,
    body            TEXT NOT NULL,
    status          TEXT NOT NULL DEFAULT 'pending',
    locked          BOOLEAN NOT NULL DEFAULT 0,
    deleted         BOOLEAN NOT NULL DEFAULT 0,
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE oidc_providers (
    uuid                    TEXT PRIMARY KEY,
    name                    TEXT NOT NULL,
    issuer_url              TEXT NOT NULL,
    client_id               TEXT NOT NULL,
    client_secret           TEXT NOT NULL,
    scopes                  TEXT NOT NULL DEFAULT 'openid email profile',
    email_claim             TEXT NOT NULL DEFAULT 'email',
    subject_claim           TEXT NOT NULL DEFAULT 'sub',
    group_claim             TEXT,
    group_value             TEXT,
    auto_provision          BOOLEAN NOT NULL DEFAULT 0,
    require_email_verified  BOOLEAN NOT NULL DEFAULT 0,
    enabled                 BOOLEAN NOT NULL DEFAULT 0,
    created_at              TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at              TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE chatbot_messages (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    conversation_id INTEGER NOT NULL,
    role            TEXT NOT NULL,
    content         TEXT,
    model           TEXT,
    created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


class _Cursor:
    """psycopg2-flavoured cursor over a sqlite3 cursor."""

    def __init__(self, owner: "SqliteConnection", as_dict: bool):
        self._owner = owner
        self._raw = owner.raw.cursor()
        self._as_dict = as_dict
        self._rows: list = []
        self.rowcount = -1

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self._raw.close()
        return False

    def execute(self, sql, params=()):
        self._owner.statements.append(sql)
        self._raw.execute(sql.replace("%s", "?"), tuple(params))
        self.rowcount = self._raw.rowcount
        # Drain immediately so INSERT ... RETURNING is finalized before commit.
        self._rows = [self._convert(r) for r in self._raw.fetchall()]

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def _convert(self, row):
        return dict(row) if self._as_dict else tuple(row)


class SqliteConnection:
    """Minimal DB-API connection accepting psycopg2-style calls."""

    def __init__(self):
        self.raw = sqlite3.connect(":memory:")
        self.raw.row_factory = sqlite3.Row
        self.raw.executescript(SQLITE_SCHEMA)
        self.statements: list[str] = []
        self.checkouts = 0
        self.releases = 0

    def cursor(self, cursor_factory=None):
        return _Cursor(self, as_dict=cursor_factory is not None)

    def commit(self):
        self.raw.commit()

    def rollback(self):
        self.raw.rollback()

    def close(self):
        self.raw.close()

    # Connection provider hooks handed to the repositories
    def checkout(self):
        self.checkouts += 1
        return self

    def release(self, conn):
        assert conn is self
        self.releases += 1


class BrokenConnection:
    """A connection whose every statement fails, as if the server went away."""

    def __init__(self):
        self.rolled_back = 0

    def cursor(self, cursor_factory=None):
        return self

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=()):
        raise sqlite3.OperationalError("server closed the connection unexpectedly")

    def commit(self):
        pass

    def rollback(self):
        self.rolled_back += 1


@pytest.fixture
def db():
    """Fresh in-memory database per test."""
    conn = SqliteConnection()
    yield conn
    conn.close()


@pytest.fixture
def provider(db):
    """Keyword arguments wiring a repository to the test database."""
    return {"get_conn": db.checkout, "release_conn": db.release}


@pytest.fixture
def broken_provider():
    conn = BrokenConnection()
    return {"get_conn": lambda: conn, "release_conn": lambda c: None}


@pytest.fixture
def realms(provider):
    return RealmRepository(**provider)


@pytest.fixture
def locations(provider):
    return LocationRepository(**provider)


@pytest.fixture
def mail_queue(provider):
    return MailQueueRepository(**provider)


@pytest.fixture
def oidc_providers(provider):
    return OidcProviderRepository(**provider)


@pytest.fixture
def chat_messages(provider):
    return ChatMessageRepository(**provider)
