"""
Uniform result envelope returned by every repository operation.

Callers branch on ``status_code`` rather than on exceptions for the expected
outcomes (not found, conflict, bad input, store failure).
"""

from dataclasses import dataclass
from http import HTTPStatus
from typing import Any

SUCCESS = "success"
ERROR = "error"

NOT_FOUND = "Not Found"
INVALID_DATA = "Invalid Data"
CONNECTION_UNAVAILABLE = "Database connection unavailable"


@dataclass(frozen=True)
class OperationResult:
    status: str
    status_code: int
    message: str | None = None
    data: Any = None

    @property
    def is_success(self) -> bool:
        return self.status == SUCCESS

    @classmethod
    def ok(cls, data: Any = None) -> "OperationResult":
        return cls(SUCCESS, HTTPStatus.OK, data=data)

    @classmethod
    def created(cls, data: Any) -> "OperationResult":
        return cls(SUCCESS, HTTPStatus.CREATED, data=data)

    @classmethod
    def not_found(cls, message: str = NOT_FOUND) -> "OperationResult":
        return cls(ERROR, HTTPStatus.NOT_FOUND, message=message)

    @classmethod
    def bad_input(cls, message: str = INVALID_DATA) -> "OperationResult":
        return cls(ERROR, HTTPStatus.BAD_REQUEST, message=message)

    @classmethod
    def conflict(cls, message: str) -> "OperationResult":
        return cls(ERROR, HTTPStatus.CONFLICT, message=message)

    @classmethod
    def unavailable(cls, message: str = CONNECTION_UNAVAILABLE) -> "OperationResult":
        return cls(ERROR, HTTPStatus.SERVICE_UNAVAILABLE, message=message)

    @classmethod
    def internal(cls, message: str) -> "OperationResult":
        return cls(ERROR, HTTPStatus.INTERNAL_SERVER_ERROR, message=message)

    def to_dict(self) -> dict:
        """Render the envelope the way the route layer sends it out."""
        body = {"status": self.status, "statusCode": int(self.status_code)}
        if self.message is not None:
            body["message"] = self.message
        if self.data is not None:
            body["data"] = self.data
        return body
