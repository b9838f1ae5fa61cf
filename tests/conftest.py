"""Shared fixtures: SQLite test databases and a fake DB-API module."""

import sqlite3
from types import SimpleNamespace

import pytest


MOCK_TABLES = [
    """
    CREATE TABLE books (
        id         INTEGER PRIMARY KEY AUTOINCREMENT,
        author_id  INT,
        name       TEXT
    )
    """,
    """
    CREATE TABLE authors (
        id           INT,
        gender_name  TEXT,
        pref_name    TEXT,
        name         TEXT
    )
    """,
    """
    CREATE TABLE genders (
        name  TEXT
    )
    """,
    """
    CREATE TABLE prefectures (
        name  TEXT PRIMARY KEY
    )
    """,
]


def _create_db(path, statements):
    conn = sqlite3.connect(str(path))
    for statement in statements:
        conn.execute(statement)
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def mock_db(tmp_path):
    """SQLite database with books, authors, genders and prefectures."""
    return _create_db(tmp_path / "test.db", MOCK_TABLES)


@pytest.fixture
def mock_dsn(mock_db):
    return f"SQLite:{mock_db}"


@pytest.fixture
def books_genders_dsn(tmp_path):
    """SQLite database with only books and genders."""
    path = _create_db(tmp_path / "books.db", [MOCK_TABLES[0], MOCK_TABLES[2]])
    return f"SQLite:{path}"


@pytest.fixture
def composite_dsn(tmp_path):
    """SQLite database with a composite primary key table."""
    path = _create_db(tmp_path / "composite.db", [
        MOCK_TABLES[2],
        """
        CREATE TABLE book_tags (
            book_id  INT,
            tag      TEXT,
            PRIMARY KEY (book_id, tag)
        )
        """,
    ])
    return f"SQLite:{path}"


class FakeError(Exception):
    """DB-API Error class of the fake module."""


class FakeCursor:
    """
    Cursor answering catalog queries from a list of (marker, rows) pairs.

    The first pair whose marker appears in the SQL wins. SELECT * queries
    report ``columns`` as their description.
    """

    def __init__(self, answers, columns):
        self.answers = answers
        self.columns = columns
        self.description = None
        self.executed = []
        self._rows = []

    def execute(self, sql, params=None):
        self.executed.append((sql, params))
        if sql.startswith("SELECT * FROM"):
            self.description = [(name, None, None, None, None, None, None) for name in self.columns]
            self._rows = []
            return
        for marker, rows in self.answers:
            if marker in sql:
                self._rows = rows(params) if callable(rows) else rows
                return
        self._rows = []

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, answers, columns=()):
        self.answers = answers
        self.columns = list(columns)
        self.cursors = []
        self.closed = False

    def cursor(self):
        cursor = FakeCursor(self.answers, self.columns)
        self.cursors.append(cursor)
        return cursor

    def close(self):
        self.closed = True

    @property
    def executed(self):
        return [entry for cursor in self.cursors for entry in cursor.executed]


@pytest.fixture
def fake_module():
    """Build a DB-API-like module whose connect returns the given connection."""
    def build(connection=None, error=None):
        calls = []

        def connect(*args, **kwargs):
            calls.append((args, kwargs))
            if error is not None:
                raise error
            return connection

        return SimpleNamespace(Error=FakeError, connect=connect, calls=calls)

    return build


@pytest.fixture
def fake_connection():
    """Factory for FakeConnection(answers, columns)."""
    return FakeConnection
