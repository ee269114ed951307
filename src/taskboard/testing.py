"""
In-memory stand-ins for a psycopg connection.

FakeConnection can be installed with
ConnectionRegistry.set_connection_override() to exercise services and
accessors without a database. Executed statements are rendered to strings
so tests can assert on the exact SQL and parameters.
"""

from contextlib import asynccontextmanager

from psycopg import sql


class FakeCursor:
    """Records executed statements and replays canned rows."""

    def __init__(self, rows=None, rowcount=None, error=None):
        self.rows = list(rows or [])
        self.rowcount = len(self.rows) if rowcount is None else rowcount
        self.error = error
        self.executed = []

    async def execute(self, query, params=None):
        text = query.as_string() if isinstance(query, sql.Composable) else query
        self.executed.append((text, params))
        if self.error is not None:
            raise self.error

    async def fetchone(self):
        return self.rows[0] if self.rows else None

    async def fetchall(self):
        return list(self.rows)


class FakeConnection:
    """Stands in for psycopg.AsyncConnection as a connection override."""

    def __init__(self, cursor: FakeCursor | None = None):
        self.cursor_obj = cursor or FakeCursor()
        self.transactions = 0

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield

    @asynccontextmanager
    async def cursor(self, row_factory=None):
        yield self.cursor_obj
