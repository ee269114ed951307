"""
Exceptions raised by taskboard.

Expected outcomes of CRUD operations (not found, conflict, bad input) are
returned as OperationResult values, not raised. The exceptions below cover
programming errors, configuration problems and the raw-query escape hatch.
"""

from typing import Any


class TaskboardError(Exception):
    """Base exception for taskboard."""


class ConfigError(TaskboardError):
    """Raised when the configuration document is invalid."""


class ConnectionUnavailableError(TaskboardError):
    """Raised when an operation needs the store but no connection was established."""

    def __init__(self, message: str = "Database connection unavailable") -> None:
        super().__init__(message)


class EntityRegistrationError(TaskboardError):
    """Raised for an invalid descriptor or a clashing registration."""

    def __init__(self, message: str, entity: str | None = None) -> None:
        self.entity = entity
        super().__init__(message)


class QueryError(TaskboardError):
    """Raised when a caller-supplied predicate fails at the store."""

    def __init__(self, entity: str, predicate: str, params: Any = None) -> None:
        self.entity = entity
        self.predicate = predicate
        self.params = params
        super().__init__(f"Custom query on {entity} failed: {predicate}")
