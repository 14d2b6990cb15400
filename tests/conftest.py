"""
Pytest configuration and fixtures for replication tests.

Provides in-memory stand-ins for psycopg2 connections so the copier,
catalog and verifier can be exercised without a database.
"""

import random

import psycopg2
import psycopg2.errors
import pytest

from transformation import FieldAnonymizer, PIIAnonymizer, create_default_rules


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def statement_text(query) -> str:
    """Readable form of a psycopg2.sql object without a live connection."""
    return query if isinstance(query, str) else repr(query)


class FakeNamedCursor:
    """Server-side cursor over a fixed list of rows."""

    def __init__(self, connection, name, rows, fail_after=None, fail_on_execute=None):
        self.connection = connection
        self.name = name
        self.rows = rows
        self.fail_after = fail_after
        self.fail_on_execute = fail_on_execute
        self.itersize = 2000
        self.closed = False
        self.executed = []

    def execute(self, query, params=None):
        if self.fail_on_execute is not None:
            raise self.fail_on_execute
        self.executed.append(query)

    def __iter__(self):
        for index, row in enumerate(self.rows):
            if self.fail_after is not None and index == self.fail_after:
                raise psycopg2.OperationalError("server closed the connection unexpectedly")
            yield row

    def close(self):
        self.closed = True


class FakeSourceConnection:
    """Source side: hands out named cursors, counts rollbacks."""

    def __init__(self, rows=(), fail_after=None, fail_on_execute=None):
        self.rows = list(rows)
        self.fail_after = fail_after
        self.fail_on_execute = fail_on_execute
        self.cursors = []
        self.rollbacks = 0
        self.closed = False

    def cursor(self, name=None):
        cursor = FakeNamedCursor(
            self, name, self.rows, self.fail_after, self.fail_on_execute
        )
        self.cursors.append(cursor)
        return cursor

    def rollback(self):
        self.rollbacks += 1


class FakeWriteCursor:
    def __init__(self, connection):
        self.connection = connection

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def execute(self, query, params=None):
        self.connection.execute(query, params)


class FakeDestinationConnection:
    """
    Destination side with transaction semantics.

    Inserted rows are pending until ``commit``; ``rollback`` discards them.
    ``commits`` records the number of rows made durable by each commit
    (a TRUNCATE commit records 0).
    """

    def __init__(self, fail_on_insert=None, fail_on_commit=None, fail_on_truncate=False, fail_on_cursor=None):
        self.fail_on_insert = fail_on_insert
        self.fail_on_commit = fail_on_commit
        self.fail_on_truncate = fail_on_truncate
        self.statements = []
        self.pending = []
        self.committed = []
        self.commits = []
        self.rollbacks = 0
        self.truncated = False
        self.closed = False
        self.fail_on_cursor = fail_on_cursor
        self.cursors_opened = 0
        self._inserts = 0

    def cursor(self):
        # fail_on_cursor: the connection drops before the Nth cursor opens
        if self.fail_on_cursor is not None and self.cursors_opened >= self.fail_on_cursor:
            self.closed = True
            raise psycopg2.InterfaceError("connection already closed")
        self.cursors_opened += 1
        return FakeWriteCursor(self)

    def execute(self, query, params=None):
        text = statement_text(query)
        self.statements.append(query)

        if "TRUNCATE" in text:
            if self.fail_on_truncate:
                raise psycopg2.errors.InsufficientPrivilege("permission denied for table")
            self.truncated = True
            return

        if "INSERT INTO" in text:
            if self.fail_on_insert is not None and self._inserts == self.fail_on_insert:
                raise psycopg2.IntegrityError("duplicate key value violates unique constraint")
            self._inserts += 1
            self.pending.append(tuple(params))

    def commit(self):
        if self.fail_on_commit is not None and len(self.commits) == self.fail_on_commit:
            raise psycopg2.OperationalError("could not commit")
        self.commits.append(len(self.pending))
        self.committed.extend(self.pending)
        self.pending = []

    def rollback(self):
        self.rollbacks += 1
        self.pending = []

    @property
    def insert_statements(self):
        return [q for q in self.statements if "INSERT INTO" in statement_text(q)]


@pytest.fixture
def seeded_anonymizer() -> FieldAnonymizer:
    """Anonymizer with a deterministic random source and cheap bcrypt cost."""
    pii = PIIAnonymizer(rng=random.Random(42), bcrypt_rounds=4)
    return FieldAnonymizer(create_default_rules(pii))


@pytest.fixture
def fake_source():
    return FakeSourceConnection


@pytest.fixture
def fake_destination():
    return FakeDestinationConnection
