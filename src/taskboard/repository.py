"""
Generic repository service.

RepositoryService implements create, read, update, delete, batch read and
filtered listing once, for any entity described by an EntityDescriptor.
Every operation returns an OperationResult; expected failures (not found,
conflict, invalid data, store errors) never escape as exceptions.

Update and delete check that the record exists first and then act, in two
round-trips. Concurrent writers are not serialized: the last write wins,
and a record removed between the check and the delete still reports success.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import psycopg
from psycopg import errors

from taskboard.db import MAX_BIND_PARAMETERS, BoundAccessor, ConnectionRegistry
from taskboard.entity import EntityDescriptor
from taskboard.errors import ConnectionUnavailableError, EntityRegistrationError, QueryError
from taskboard.result import OperationResult

logger = logging.getLogger(__name__)


class RepositoryService:
    """
    CRUD over one entity.

    Subclasses set ``descriptor``; the generic class can also be used
    directly by passing one in.
    """

    descriptor: EntityDescriptor | None = None

    def __init__(self, registry: ConnectionRegistry, descriptor: EntityDescriptor | None = None):
        descriptor = descriptor or self.descriptor
        if descriptor is None:
            raise EntityRegistrationError(f"{type(self).__name__} has no entity descriptor")

        self.descriptor = descriptor
        self.registry = registry
        self._accessor = registry.get_accessor(descriptor)

    @property
    def entity(self) -> str:
        return self.descriptor.name

    def _get_accessor(self) -> BoundAccessor | None:
        # Rebind when the registry connected after construction, and drop
        # the accessor once it has been closed
        if self._accessor is None or not self.registry.is_connected:
            self._accessor = self.registry.get_accessor(self.descriptor)
        return self._accessor

    async def create(self, values: Mapping[str, Any]) -> OperationResult:
        """Insert a record built from the known fields of values."""
        accessor = self._get_accessor()
        if accessor is None:
            return OperationResult.unavailable()

        try:
            record = await accessor.insert(self.descriptor.pick(values))
        except errors.UniqueViolation as e:
            logger.info("Conflict creating %s: %s", self.entity, e)
            return OperationResult.conflict(e.diag.message_detail or str(e))
        except psycopg.Error as e:
            logger.error("Error creating %s: %s", self.entity, e)
            return OperationResult.internal(str(e))

        return OperationResult.created(record)

    async def find_one(self, id: Any) -> OperationResult:
        """Look a record up by primary key."""
        accessor = self._get_accessor()
        if accessor is None:
            return OperationResult.unavailable()

        try:
            record = await accessor.fetch_by_key(id)
        except errors.InvalidTextRepresentation:
            # A malformed key (e.g. not a UUID) cannot name an existing row
            logger.debug("Malformed %s key %r", self.entity, id)
            return OperationResult.not_found()
        except psycopg.Error as e:
            logger.error("Error fetching %s %s: %s", self.entity, id, e)
            return OperationResult.internal(str(e))

        if record is None:
            return OperationResult.not_found()
        return OperationResult.ok(record)

    async def update(self, id: Any, values: Mapping[str, Any]) -> OperationResult:
        """
        Partially update a record.

        Only keys that are fields of the entity are written; anything else
        is dropped. A missing record short-circuits with the 404 from
        find_one. Zero affected rows (including an empty field set) is
        reported as 400 Invalid Data.
        """
        existing = await self.find_one(id)
        if not existing.is_success:
            return existing

        changes = self.descriptor.pick(values)
        dropped = self.descriptor.unknown_fields(values or {})
        if dropped:
            logger.debug("Ignoring unknown %s fields: %s", self.entity, ", ".join(dropped))

        try:
            affected, record = await self._accessor.update_by_key(id, changes)
        except psycopg.Error as e:
            logger.error("Error updating %s %s: %s", self.entity, id, e)
            return OperationResult.internal(str(e))

        if affected > 0:
            return OperationResult.ok(record)
        return OperationResult.bad_input()

    async def find_all(self, filters: Mapping[str, Any] | None = None) -> OperationResult:
        """
        List records, optionally restricted by field equality.

        Filter names must be fields of the entity; values are always bound
        as parameters.
        """
        accessor = self._get_accessor()
        if accessor is None:
            return OperationResult.unavailable()

        filters = dict(filters or {})
        unknown = self.descriptor.unknown_fields(filters)
        if unknown:
            return OperationResult.bad_input(f"Unknown field: {', '.join(unknown)}")

        try:
            records = await accessor.select_where(filters)
        except errors.DataError as e:
            logger.info("Invalid filter value for %s: %s", self.entity, e)
            return OperationResult.bad_input(str(e))
        except psycopg.Error as e:
            logger.error("Error listing %s: %s", self.entity, e)
            return OperationResult.internal(str(e))

        return OperationResult.ok(records)

    async def find_by_ids(self, ids: Sequence[Any]) -> OperationResult:
        """Fetch every record whose primary key is in ids, in one query."""
        accessor = self._get_accessor()
        if accessor is None:
            return OperationResult.unavailable()

        ids = list(dict.fromkeys(ids or []))
        if not ids:
            return OperationResult.ok([])
        if len(ids) > MAX_BIND_PARAMETERS:
            return OperationResult.bad_input(
                f"Too many ids: {len(ids)} (at most {MAX_BIND_PARAMETERS} per lookup)"
            )

        try:
            records = await accessor.select_in(ids)
        except errors.DataError as e:
            logger.info("Invalid %s keys %s: %s", self.entity, ids, e)
            return OperationResult.bad_input(str(e))
        except psycopg.Error as e:
            logger.error("Error fetching %s by ids: %s", self.entity, e)
            return OperationResult.internal(str(e))

        return OperationResult.ok(records)

    async def delete(self, id: Any) -> OperationResult:
        """Delete a record by primary key after checking it exists."""
        existing = await self.find_one(id)
        if not existing.is_success:
            return existing

        try:
            deleted = await self._accessor.delete_by_key(id)
        except psycopg.Error as e:
            logger.error("Error deleting %s %s: %s", self.entity, id, e)
            return OperationResult.internal(str(e))

        if not deleted:
            logger.debug("%s %s was already gone at delete time", self.entity, id)
        return OperationResult.ok()

    async def custom_query(self, predicate: str, params: Any = None) -> list[dict[str, Any]]:
        """
        Run a raw SQL predicate against the entity's table.

        This is an escape hatch: the predicate is trusted as written, so
        pass values through params rather than formatting them in. Returns
        the matching rows; a store failure raises QueryError instead of
        looking like an empty result.
        """
        accessor = self._get_accessor()
        if accessor is None:
            raise ConnectionUnavailableError()

        try:
            return await accessor.select_raw(predicate, params)
        except psycopg.Error as e:
            logger.error("Error while executing custom query on %s: %s", self.entity, predicate)
            raise QueryError(self.entity, predicate, params) from e
