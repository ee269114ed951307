"""
Database connection registry and per-entity accessors.

The ConnectionRegistry owns the single connection pool of the process and
hands out one BoundAccessor per entity. A BoundAccessor is the only place
that talks SQL: table and column names are always composed as identifiers
and values are always sent as bound parameters.

For testing, use set_connection_override() to inject a connection that will
be used instead of the pool. This enables transaction rollback between tests.
"""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from taskboard.config import Config
from taskboard.entity import EntityDescriptor
from taskboard.errors import EntityRegistrationError

logger = logging.getLogger(__name__)

# Maintained on every UPDATE when the entity has it
UPDATED_AT = "updated_at"

# PostgreSQL wire protocol limit on bind parameters per statement
MAX_BIND_PARAMETERS = 65535


class BoundAccessor:
    """
    An entity descriptor paired with the shared connection.

    Each method is one store round-trip. Rows are returned as dicts keyed by
    field name.
    """

    def __init__(self, descriptor: EntityDescriptor, connection):
        self.descriptor = descriptor
        self.connection = connection

    # =========================================================================
    # SQL building blocks
    # =========================================================================

    @property
    def _table(self) -> sql.Identifier:
        return sql.Identifier(self.descriptor.table)

    @property
    def _key(self) -> sql.Identifier:
        return sql.Identifier(self.descriptor.primary_key_column)

    def _columns(self) -> sql.Composable:
        selected = []
        for field in self.descriptor.fields:
            if field.column_name == field.name:
                selected.append(sql.Identifier(field.name))
            else:
                selected.append(
                    sql.SQL("{} AS {}").format(
                        sql.Identifier(field.column_name), sql.Identifier(field.name)
                    )
                )
        return sql.SQL(", ").join(selected)

    def _column(self, name: str) -> sql.Identifier:
        return sql.Identifier(self.descriptor.column_for(name))

    # =========================================================================
    # Connection handling
    # =========================================================================

    @asynccontextmanager
    async def _cursor(self):
        """
        Cursor with dict rows, inside its own transaction block.

        On a pooled connection the block commits on exit. On an override
        connection that is already inside a transaction it becomes a
        savepoint, so a failed statement does not poison the outer test
        transaction.
        """
        if isinstance(self.connection, AsyncConnectionPool):
            async with self.connection.connection() as conn:
                async with conn.transaction():
                    async with conn.cursor(row_factory=dict_row) as cur:
                        yield cur
        else:
            async with self.connection.transaction():
                async with self.connection.cursor(row_factory=dict_row) as cur:
                    yield cur

    # =========================================================================
    # Store operations
    # =========================================================================

    async def insert(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Insert a row and return it, including store-generated fields."""
        if values:
            query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING {}").format(
                self._table,
                sql.SQL(", ").join(self._column(name) for name in values),
                sql.SQL(", ").join(sql.Placeholder() * len(values)),
                self._columns(),
            )
        else:
            query = sql.SQL("INSERT INTO {} DEFAULT VALUES RETURNING {}").format(
                self._table, self._columns()
            )

        async with self._cursor() as cur:
            await cur.execute(query, tuple(values.values()))
            return await cur.fetchone()

    async def fetch_by_key(self, key: Any) -> dict[str, Any] | None:
        query = sql.SQL("SELECT {} FROM {} WHERE {} = %s").format(
            self._columns(), self._table, self._key
        )
        async with self._cursor() as cur:
            await cur.execute(query, (key,))
            return await cur.fetchone()

    async def update_by_key(
        self, key: Any, values: Mapping[str, Any]
    ) -> tuple[int, dict[str, Any] | None]:
        """
        Update the row with the given key and return (affected, updated row).

        An empty value set is not sent to the store; it affects zero rows.
        An updated_at field not given in values is set to the statement time.
        """
        if not values:
            return 0, None

        assignments = [sql.SQL("{} = %s").format(self._column(name)) for name in values]
        if self.descriptor.has_field(UPDATED_AT) and UPDATED_AT not in values:
            # now() is frozen for the whole transaction
            assignments.append(
                sql.SQL("{} = statement_timestamp()").format(self._column(UPDATED_AT))
            )

        query = sql.SQL("UPDATE {} SET {} WHERE {} = %s RETURNING {}").format(
            self._table,
            sql.SQL(", ").join(assignments),
            self._key,
            self._columns(),
        )
        async with self._cursor() as cur:
            await cur.execute(query, (*values.values(), key))
            return cur.rowcount, await cur.fetchone()

    async def delete_by_key(self, key: Any) -> int:
        query = sql.SQL("DELETE FROM {} WHERE {} = %s").format(self._table, self._key)
        async with self._cursor() as cur:
            await cur.execute(query, (key,))
            return cur.rowcount

    async def select_where(self, filters: Mapping[str, Any]) -> list[dict[str, Any]]:
        """
        Select rows matching every field = value pair.

        Field names must already be known to the descriptor. A None value
        matches NULL.
        """
        query = sql.SQL("SELECT {} FROM {}").format(self._columns(), self._table)
        params = []

        if filters:
            conditions = []
            for name, value in filters.items():
                if value is None:
                    conditions.append(sql.SQL("{} IS NULL").format(self._column(name)))
                else:
                    conditions.append(sql.SQL("{} = %s").format(self._column(name)))
                    params.append(value)
            query += sql.SQL(" WHERE ") + sql.SQL(" AND ").join(conditions)

        async with self._cursor() as cur:
            await cur.execute(query, tuple(params))
            return await cur.fetchall()

    async def select_in(self, keys: Sequence[Any]) -> list[dict[str, Any]]:
        """Select the rows whose primary key is in keys, in one query."""
        if not keys:
            return []

        query = sql.SQL("SELECT {} FROM {} WHERE {} IN ({})").format(
            self._columns(),
            self._table,
            self._key,
            sql.SQL(", ").join(sql.Placeholder() * len(keys)),
        )
        async with self._cursor() as cur:
            await cur.execute(query, tuple(keys))
            return await cur.fetchall()

    async def select_raw(self, predicate: str, params: Any = None) -> list[dict[str, Any]]:
        """Select rows matching a caller-supplied SQL predicate."""
        query = sql.SQL("SELECT {} FROM {} WHERE ").format(
            self._columns(), self._table
        ) + sql.SQL(predicate)
        async with self._cursor() as cur:
            await cur.execute(query, params)
            return await cur.fetchall()


class ConnectionRegistry:
    """
    Owns the process-wide connection and the per-entity accessor cache.

    Build one at startup, call connect(), and pass it to every service that
    needs the store. Accessors are created on first request and kept for the
    lifetime of the registry.
    """

    def __init__(self):
        self._pool: AsyncConnectionPool | None = None
        self._connection_override = None
        self._accessors: dict[str, BoundAccessor] = {}
        self._connect_lock = asyncio.Lock()

    @property
    def connection(self):
        """The live connection handle, or None if none was established."""
        if self._connection_override is not None:
            return self._connection_override
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self.connection is not None

    # =========================================================================
    # Connection Override (for testing)
    # =========================================================================

    def set_connection_override(self, conn: psycopg.AsyncConnection) -> None:
        """
        Use a single connection instead of the pool.

        Used by test fixtures so that all operations run within one
        transaction that can be rolled back.
        """
        self._connection_override = conn
        self._accessors.clear()

    def clear_connection_override(self) -> None:
        self._connection_override = None
        self._accessors.clear()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self, config: Config) -> AsyncConnectionPool | None:
        """
        Open the connection pool, once.

        Returns the existing handle if already connected. On failure the
        error is logged and None is returned; the registry stays usable but
        hands out no accessors.
        """
        async with self._connect_lock:
            if self.connection is not None:
                return self.connection

            database = config.database
            kwargs = {"autocommit": True}
            if config.statement_timeout_ms:
                kwargs["options"] = f"-c statement_timeout={config.statement_timeout_ms}"

            pool = AsyncConnectionPool(
                database.conninfo,
                min_size=config.pool_min_size,
                max_size=config.pool_max_size,
                kwargs=kwargs,
                name="taskboard",
                open=False,
            )
            try:
                await pool.open(wait=True, timeout=config.connect_timeout)
            except (PoolTimeout, psycopg.Error) as e:
                logger.error(
                    "Error connecting to the database %s on %s:%s: %s",
                    database.dbname,
                    database.host,
                    database.port,
                    e,
                )
                await pool.close()
                return None

            self._pool = pool
            logger.info(
                "Connected to the database %s on %s:%s",
                database.dbname,
                database.host,
                database.port,
            )
            return pool

    async def close(self) -> None:
        """Close the pool. Accessors handed out before stop working."""
        self._accessors.clear()
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection closed")

    # =========================================================================
    # Accessors
    # =========================================================================

    def get_accessor(self, descriptor: EntityDescriptor) -> BoundAccessor | None:
        """
        Return the cached accessor for an entity, binding it on first use.

        Returns None when there is no connection; callers must treat that as
        "service unavailable".
        """
        accessor = self._accessors.get(descriptor.name)
        if accessor is not None:
            if accessor.descriptor != descriptor:
                raise EntityRegistrationError(
                    f"Entity {descriptor.name!r} is already bound to a different descriptor",
                    descriptor.name,
                )
            return accessor

        connection = self.connection
        if connection is None:
            logger.warning("No database connection, cannot bind %s", descriptor.name)
            return None

        # No await between the lookup and the insert, so concurrent first
        # binds cannot interleave here.
        return self._accessors.setdefault(
            descriptor.name, BoundAccessor(descriptor, connection)
        )

    @property
    def bound_entities(self) -> list[str]:
        return list(self._accessors)
