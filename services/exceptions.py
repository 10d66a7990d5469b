"""
Failures raised by the consistency engine and the request gates.

Each exception knows its HTTP status; the Flask error handlers only turn
them into the response envelope.
"""
from __future__ import annotations

from typing import Any


class LibraryError(Exception):
    """Base class for every failure reported to API clients."""

    kind = "LibraryError"
    status = 400
    default_message = "Request could not be processed"

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        value: Any = None,
        errors: list[dict] | None = None,
        extra: dict | None = None,
    ):
        self.message = message or self.default_message
        self.field = field
        self.value = value
        self.errors = errors or []
        self.extra = extra or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        if self.field is not None:
            body["field"] = self.field
            body["value"] = self.value
        body.update(self.extra)
        return body


class ValidationFailed(LibraryError):
    kind = "ValidationFailed"
    default_message = "Validation failed"


class InvalidIdentifier(LibraryError):
    kind = "InvalidIdentifier"

    def __init__(self, param: str, value: Any):
        super().__init__(
            f"Invalid {param}: must be a 24 character hexadecimal id",
            field=param,
            value=value,
        )


class NotFound(LibraryError):
    kind = "NotFound"
    status = 404
    default_message = "Resource not found"


class DuplicateName(LibraryError):
    kind = "DuplicateName"
    status = 409
    default_message = "A category with this name already exists"


class DuplicateISBN(LibraryError):
    kind = "DuplicateISBN"
    status = 409
    default_message = "A book with this ISBN already exists"


class InvalidReference(LibraryError):
    kind = "InvalidReference"
    default_message = "The referenced category does not exist"


class InactiveReference(LibraryError):
    kind = "InactiveReference"
    default_message = "The referenced category is inactive"


class InsufficientStock(LibraryError):
    kind = "InsufficientStock"
    default_message = "Insufficient stock"


class InvalidOperation(LibraryError):
    kind = "InvalidOperation"
    default_message = "Invalid operation"


class AuthenticationRequired(LibraryError):
    kind = "AuthenticationRequired"
    status = 401
    default_message = "Authentication required"


class AdminRequired(LibraryError):
    kind = "AdminRequired"
    status = 403
    default_message = "Administrator privileges required"


class PersistenceFailure(LibraryError):
    kind = "PersistenceFailure"
    status = 500
    default_message = "Database error"
